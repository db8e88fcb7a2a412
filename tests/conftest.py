from collections import deque

import pytest

from tilde.editor import Editor
from tilde.syntax import select_syntax_highlight


class ScriptedInput:
    """Byte source fed from chunks of keystrokes.

    A read timeout (None) follows every chunk, the way a terminal goes idle
    between key presses, so a lone ESC chunk decodes as ESC.
    """

    def __init__(self, *chunks):
        self.pending = deque()
        self.idle = 0
        self.feed(*chunks)

    def feed(self, *chunks):
        for chunk in chunks:
            self.pending.extend(chunk)
            self.pending.append(None)

    def __call__(self):
        if self.pending:
            self.idle = 0
            return self.pending.popleft()
        self.idle += 1
        if self.idle > 50:
            raise AssertionError("scripted input exhausted")
        return None


class Screen:
    def __init__(self):
        self.frames = []

    def __call__(self, data):
        self.frames.append(data)

    @property
    def last(self):
        return self.frames[-1].decode("latin-1")


@pytest.fixture
def make_editor():
    def factory(lines=None, filename=None, size=(24, 80), keys=()):
        editor = Editor(ScriptedInput(*keys), Screen(), size)
        if filename is not None:
            editor.buf.filename = filename
            select_syntax_highlight(editor.buf)
        if lines is not None:
            editor.buf.load(lines)
        return editor

    return factory
