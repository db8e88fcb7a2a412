from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from .constants import BACKSPACE, CTRL_H, DEL_KEY, ENTER, ESC

if TYPE_CHECKING:
    from .editor import Editor

# Called after every key the prompt reads, with the current input and that key.
PromptCallback = Callable[[str, int], None]


def is_cntrl(c: int) -> bool:
    return c < 32 or c == 127


def prompt(editor: Editor, template: str, callback: PromptCallback | None = None) -> str | None:
    """Read one line of input in the message bar.

    ``template`` holds a single ``%s`` for the text typed so far. Returns
    the text on Enter (empty input is not accepted) or None on Escape.
    """
    buf = ""
    while True:
        editor.set_status_message(template, buf)
        editor.refresh_screen()

        c = editor.read_key()
        if c in (DEL_KEY, CTRL_H, BACKSPACE):
            buf = buf[:-1]
        elif c == ESC:
            editor.set_status_message("")
            if callback is not None:
                callback(buf, c)
            return None
        elif c == ENTER:
            if buf:
                editor.set_status_message("")
                if callback is not None:
                    callback(buf, c)
                return buf
        elif not is_cntrl(c) and c < 128:
            buf += chr(c)

        if callback is not None:
            callback(buf, c)
