from __future__ import annotations

from typing import TYPE_CHECKING

from .constants import ARROW_DOWN, ARROW_LEFT, ARROW_RIGHT, ARROW_UP, ENTER, ESC, HL_MATCH
from .models import SearchState
from .prompt import prompt

if TYPE_CHECKING:
    from .editor import Editor


class SearchSession:
    """Incremental search driven by the prompt, one call per keystroke."""

    def __init__(self, editor: Editor) -> None:
        self.editor = editor
        self.state = SearchState()

    def restore_highlight(self) -> None:
        state = self.state
        row = self.editor.buf.row_at(state.saved_hl_line)
        if state.saved_hl is not None and row is not None:
            row.hl = state.saved_hl
        state.saved_hl = None
        state.saved_hl_line = -1

    def __call__(self, query: str, key: int) -> None:
        state = self.state
        self.restore_highlight()

        if key in (ENTER, ESC):
            state.last_match = -1
            state.direction = 1
            return
        if key in (ARROW_RIGHT, ARROW_DOWN):
            state.direction = 1
        elif key in (ARROW_LEFT, ARROW_UP):
            state.direction = -1
        else:
            state.last_match = -1
            state.direction = 1

        if state.last_match == -1:
            state.direction = 1
        if query:
            self.find_next(query)

    def find_next(self, query: str) -> bool:
        state = self.state
        buf = self.editor.buf
        current = state.last_match
        for _ in range(buf.numrows):
            current += state.direction
            if current == -1:
                current = buf.numrows - 1
            elif current == buf.numrows:
                current = 0

            row = buf.rows[current]
            offset = row.render.find(query)
            if offset == -1:
                continue

            state.last_match = current
            cursor = self.editor.cursor
            cursor.cy = current
            cursor.cx = row.rx_to_cx(offset)
            # Past the end so the next scroll puts the match on the top line.
            self.editor.view.rowoff = buf.numrows

            state.saved_hl_line = current
            state.saved_hl = row.hl.copy()
            end = min(offset + len(query), row.rsize)
            row.hl[offset:end] = [HL_MATCH] * (end - offset)
            return True
        return False


def find(editor: Editor) -> None:
    cursor = editor.cursor
    view = editor.view
    saved = (cursor.cx, cursor.cy, view.coloff, view.rowoff)

    query = prompt(editor, "Search: %s (Use ESC/Arrows/Enter)", SearchSession(editor))
    if query is None:
        cursor.cx, cursor.cy, view.coloff, view.rowoff = saved
