from __future__ import annotations

from typing import Iterable

from .constants import TAB_STOP
from .models import Row, SyntaxProfile
from .syntax import update_syntax


class TextBuffer:
    """The document: an ordered list of rows plus its file and syntax state.

    Every mutation goes through this class so that row indices, the derived
    render/highlight arrays and the dirty flag stay consistent.
    """

    def __init__(self) -> None:
        self.rows: list[Row] = []
        self.dirty = False
        self.filename: str | None = None
        self.syntax: SyntaxProfile | None = None

    @property
    def numrows(self) -> int:
        return len(self.rows)

    def row_at(self, y: int) -> Row | None:
        if 0 <= y < self.numrows:
            return self.rows[y]
        return None

    def update_row(self, row: Row) -> None:
        out: list[str] = []
        idx = 0
        for ch in row.chars:
            if ch == "\t":
                out.append(" ")
                idx += 1
                while idx % TAB_STOP != 0:
                    out.append(" ")
                    idx += 1
            else:
                out.append(ch)
                idx += 1
        row.render = "".join(out)
        update_syntax(self, row.idx)

    def rehighlight(self) -> None:
        for row in self.rows:
            update_syntax(self, row.idx)

    def insert_row(self, at: int, s: str) -> None:
        if at < 0 or at > self.numrows:
            return
        # Seed with the state the following row was highlighted against, so
        # the cascade runs only if the new row changes it.
        prev_open = at > 0 and self.rows[at - 1].hl_open_comment
        self.rows.insert(at, Row(idx=at, chars=s, hl_open_comment=prev_open))
        for j in range(at + 1, self.numrows):
            self.rows[j].idx = j
        self.update_row(self.rows[at])
        self.dirty = True

    def delete_row(self, at: int) -> None:
        if at < 0 or at >= self.numrows:
            return
        removed = self.rows.pop(at)
        for j in range(at, self.numrows):
            self.rows[j].idx = j
        prev_open = at > 0 and self.rows[at - 1].hl_open_comment
        if at < self.numrows and removed.hl_open_comment != prev_open:
            update_syntax(self, at)
        self.dirty = True

    def row_insert_char(self, row: Row, at: int, c: str) -> None:
        if at < 0 or at > row.size:
            at = row.size
        row.chars = row.chars[:at] + c + row.chars[at:]
        self.update_row(row)
        self.dirty = True

    def row_append_string(self, row: Row, s: str) -> None:
        row.chars += s
        self.update_row(row)
        self.dirty = True

    def row_del_char(self, row: Row, at: int) -> None:
        if at < 0 or at >= row.size:
            return
        row.chars = row.chars[:at] + row.chars[at + 1 :]
        self.update_row(row)
        self.dirty = True

    def insert_char(self, y: int, x: int, c: str) -> None:
        if y == self.numrows:
            self.insert_row(self.numrows, "")
        row = self.row_at(y)
        if row is None:
            return
        self.row_insert_char(row, x, c)

    def delete_char(self, y: int, x: int) -> tuple[int, int]:
        """Delete the character before (x, y) and return the new cursor.

        At the start of a row the row is joined onto the previous one and
        the cursor lands on the old boundary.
        """
        row = self.row_at(y)
        if row is None or (x == 0 and y == 0):
            return x, y
        if x > 0:
            self.row_del_char(row, x - 1)
            return x - 1, y
        prev = self.rows[y - 1]
        boundary = prev.size
        self.row_append_string(prev, row.chars)
        self.delete_row(y)
        return boundary, y - 1

    def split_row(self, y: int, at: int) -> None:
        row = self.row_at(y)
        if at <= 0 or row is None:
            self.insert_row(y, "")
            return
        at = min(at, row.size)
        self.insert_row(y + 1, row.chars[at:])
        row = self.rows[y]
        row.chars = row.chars[:at]
        self.update_row(row)

    def serialize(self) -> tuple[int, bytes]:
        data = "".join(f"{row.chars}\n" for row in self.rows).encode("latin-1")
        return len(data), data

    def load(self, lines: Iterable[str]) -> None:
        self.rows = []
        for line in lines:
            self.insert_row(self.numrows, line.rstrip("\r\n"))
        self.dirty = False
