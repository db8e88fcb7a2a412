from __future__ import annotations

import time
from typing import TYPE_CHECKING

from .constants import (
    ANSI_CLEAR_LINE,
    ANSI_CURSOR_HOME,
    ANSI_DEFAULT_FG,
    ANSI_HIDE_CURSOR,
    ANSI_INVERT_OFF,
    ANSI_INVERT_ON,
    ANSI_SHOW_CURSOR,
    HL_NORMAL,
    STATUS_MESSAGE_TIMEOUT,
    TILDE_VERSION,
)
from .syntax import syntax_to_color

if TYPE_CHECKING:
    from .editor import Editor


def scroll(editor: Editor) -> None:
    cur = editor.cursor
    view = editor.view
    row = editor.buf.row_at(cur.cy)
    cur.rx = row.cx_to_rx(cur.cx) if row is not None else 0

    if cur.cy < view.rowoff:
        view.rowoff = cur.cy
    if cur.cy >= view.rowoff + view.screenrows:
        view.rowoff = cur.cy - view.screenrows + 1
    if cur.rx < view.coloff:
        view.coloff = cur.rx
    if cur.rx >= view.coloff + view.screencols:
        view.coloff = cur.rx - view.screencols + 1


def refresh_screen(editor: Editor) -> None:
    scroll(editor)
    editor.write(compose_frame(editor).encode("latin-1", errors="replace"))


def compose_frame(editor: Editor) -> str:
    ab: list[str] = [ANSI_HIDE_CURSOR, ANSI_CURSOR_HOME]
    draw_rows(editor, ab)
    draw_status_bar(editor, ab)
    draw_message_bar(editor, ab)
    cur = editor.cursor
    view = editor.view
    ab.append(f"\x1b[{cur.cy - view.rowoff + 1};{cur.rx - view.coloff + 1}H")
    ab.append(ANSI_SHOW_CURSOR)
    return "".join(ab)


def draw_welcome(editor: Editor, ab: list[str]) -> None:
    cols = editor.view.screencols
    welcome = f"Tilde editor -- version {TILDE_VERSION}"[:cols]
    padding = (cols - len(welcome)) // 2
    if padding:
        ab.append("~")
        padding -= 1
    if padding > 0:
        ab.append(" " * padding)
    ab.append(welcome)


def draw_rows(editor: Editor, ab: list[str]) -> None:
    buf = editor.buf
    view = editor.view
    for y in range(view.screenrows):
        filerow = view.rowoff + y
        if filerow >= buf.numrows:
            if buf.numrows == 0 and y == view.screenrows // 3:
                draw_welcome(editor, ab)
            else:
                ab.append("~")
        else:
            row = buf.rows[filerow]
            text = row.render[view.coloff : view.coloff + view.screencols]
            hl = row.hl[view.coloff : view.coloff + view.screencols]
            current_color = -1
            for ch, h in zip(text, hl):
                code = ord(ch)
                if code < 32 or code == 127:
                    sym = chr(ord("@") + code) if code <= 26 else "?"
                    ab.append(ANSI_INVERT_ON)
                    ab.append(sym)
                    ab.append(ANSI_INVERT_OFF)
                    if current_color != -1:
                        ab.append(f"\x1b[{current_color}m")
                elif h == HL_NORMAL:
                    if current_color != -1:
                        ab.append(ANSI_DEFAULT_FG)
                        current_color = -1
                    ab.append(ch)
                else:
                    color = syntax_to_color(h)
                    if color != current_color:
                        current_color = color
                        ab.append(f"\x1b[{color}m")
                    ab.append(ch)
            ab.append(ANSI_DEFAULT_FG)
        ab.append(ANSI_CLEAR_LINE)
        ab.append("\r\n")


def draw_status_bar(editor: Editor, ab: list[str]) -> None:
    buf = editor.buf
    cols = editor.view.screencols
    filename = buf.filename if buf.filename else "[No Name]"
    status = f"{filename:.20} - {buf.numrows} lines {'(modified)' if buf.dirty else ''}"
    filetype = buf.syntax.filetype if buf.syntax else "no ft"
    rstatus = f"{filetype} | {editor.cursor.cy + 1}/{buf.numrows}"
    status = status[:cols]

    ab.append(ANSI_INVERT_ON)
    ab.append(status)
    fill = len(status)
    while fill < cols:
        if cols - fill == len(rstatus):
            ab.append(rstatus)
            break
        ab.append(" ")
        fill += 1
    ab.append(ANSI_INVERT_OFF)
    ab.append("\r\n")


def draw_message_bar(editor: Editor, ab: list[str]) -> None:
    ab.append(ANSI_CLEAR_LINE)
    msg = editor.statusmsg[: editor.view.screencols]
    if msg and time.time() - editor.statusmsg_time < STATUS_MESSAGE_TIMEOUT:
        ab.append(msg)
