from __future__ import annotations

from dataclasses import dataclass, field

from .constants import TAB_STOP


@dataclass(frozen=True, slots=True)
class SyntaxProfile:
    filetype: str
    filematch: tuple[str, ...]
    keywords: tuple[str, ...]
    singleline_comment_start: str
    multiline_comment_start: str
    multiline_comment_end: str
    flags: int


@dataclass(slots=True)
class Row:
    idx: int
    chars: str
    render: str = ""
    hl: list[int] = field(default_factory=list)
    hl_open_comment: bool = False

    @property
    def size(self) -> int:
        return len(self.chars)

    @property
    def rsize(self) -> int:
        return len(self.render)

    def cx_to_rx(self, cx: int) -> int:
        rx = 0
        for ch in self.chars[:cx]:
            if ch == "\t":
                rx += (TAB_STOP - 1) - (rx % TAB_STOP)
            rx += 1
        return rx

    def rx_to_cx(self, rx: int) -> int:
        cur_rx = 0
        for cx, ch in enumerate(self.chars):
            if ch == "\t":
                cur_rx += (TAB_STOP - 1) - (cur_rx % TAB_STOP)
            cur_rx += 1
            if cur_rx > rx:
                return cx
        return self.size


@dataclass(slots=True)
class Cursor:
    cx: int = 0
    cy: int = 0
    rx: int = 0


@dataclass(slots=True)
class Viewport:
    rowoff: int = 0
    coloff: int = 0
    screenrows: int = 0
    screencols: int = 0


@dataclass(slots=True)
class SearchState:
    last_match: int = -1
    direction: int = 1
    saved_hl_line: int = -1
    saved_hl: list[int] | None = None
