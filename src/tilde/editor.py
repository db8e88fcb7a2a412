from __future__ import annotations

import errno
import os
import signal
import sys
import time
from functools import partial
from typing import Callable, Final

from .buffer import TextBuffer
from .constants import (
    ANSI_CLEAR_SCREEN,
    ANSI_CURSOR_HOME,
    ARROW_DOWN,
    ARROW_LEFT,
    ARROW_RIGHT,
    ARROW_UP,
    BACKSPACE,
    CTRL_F,
    CTRL_H,
    CTRL_L,
    CTRL_N,
    CTRL_P,
    CTRL_Q,
    CTRL_S,
    DEL_KEY,
    END_KEY,
    ENTER,
    ESC,
    HOME_KEY,
    PAGE_DOWN,
    PAGE_UP,
    QUIT_TIMES,
)
from .log import log
from .models import Cursor, Viewport
from .prompt import prompt
from .render import refresh_screen
from .search import find
from .syntax import select_syntax_highlight
from .terminal import ByteSource, RawMode, fd_byte_source, get_window_size, read_key, write_all


STDIN_FD: Final[int] = 0
STDOUT_FD: Final[int] = 1

HELP_MESSAGE = "HELP: Ctrl-S = save | Ctrl-Q = quit | Ctrl-F = find"


class Editor:
    """Owns the document, cursor and viewport and turns keys into edits.

    Input arrives through ``read_byte`` and frames leave through ``write``,
    so the editor itself never touches the terminal.
    """

    def __init__(
        self,
        read_byte: ByteSource,
        write: Callable[[bytes], object],
        screen_size: tuple[int, int],
    ) -> None:
        self.buf = TextBuffer()
        self.cursor = Cursor()
        self.view = Viewport()
        self.statusmsg = ""
        self.statusmsg_time = 0.0
        self.quit_times = QUIT_TIMES
        self.read_byte = read_byte
        self.write = write
        self.set_window_size(*screen_size)

    def set_window_size(self, rows: int, cols: int) -> None:
        # Two lines are reserved for the status and message bars.
        self.view.screenrows = max(1, rows - 2)
        self.view.screencols = max(1, cols)

    def handle_sigwinch(self, _signum: int, _frame) -> None:
        rows, cols = get_window_size(STDIN_FD, STDOUT_FD)
        log.debug("window resized to %dx%d", rows, cols)
        self.set_window_size(rows, cols)
        self.refresh_screen()

    def set_status_message(self, fmt: str, *args: object) -> None:
        self.statusmsg = fmt % args if args else fmt
        self.statusmsg_time = time.time()

    def read_key(self) -> int:
        return read_key(self.read_byte)

    def refresh_screen(self) -> None:
        refresh_screen(self)

    def open_file(self, filename: str) -> None:
        self.buf.filename = filename
        select_syntax_highlight(self.buf)
        try:
            with open(filename, "rb") as f:
                lines = [line.decode("latin-1") for line in f]
        except OSError as exc:
            raise OSError(exc.errno, f"Opening file failed: {filename}") from exc
        self.buf.load(lines)
        log.info("opened %s (%d rows)", filename, self.buf.numrows)

    def save(self) -> None:
        buf = self.buf
        if not buf.filename:
            filename = prompt(self, "Save as: %s (ESC to cancel)")
            if filename is None:
                self.set_status_message("Save aborted")
                log.info("save aborted")
                return
            buf.filename = filename
            select_syntax_highlight(buf)

        length, data = buf.serialize()
        fd = -1
        try:
            fd = os.open(buf.filename, os.O_RDWR | os.O_CREAT, 0o644)
            os.ftruncate(fd, length)
            write_all(fd, data)
        except OSError as exc:
            self.set_status_message("Can't save! I/O error: %s", os.strerror(exc.errno or errno.EIO))
            log.warning("saving %s failed: %s", buf.filename, exc)
            return
        finally:
            if fd != -1:
                os.close(fd)

        buf.dirty = False
        self.set_status_message("%d bytes written to disk", length)
        log.info("wrote %d bytes to %s", length, buf.filename)

    def find(self) -> None:
        find(self)

    def insert_char(self, c: int) -> None:
        cur = self.cursor
        self.buf.insert_char(cur.cy, cur.cx, chr(c))
        cur.cx += 1

    def insert_newline(self) -> None:
        cur = self.cursor
        self.buf.split_row(cur.cy, cur.cx)
        cur.cy += 1
        cur.cx = 0

    def del_char(self) -> None:
        cur = self.cursor
        cur.cx, cur.cy = self.buf.delete_char(cur.cy, cur.cx)

    def move_cursor(self, key: int) -> None:
        cur = self.cursor
        row = self.buf.row_at(cur.cy)

        if key == ARROW_LEFT:
            if cur.cx != 0:
                cur.cx -= 1
            elif cur.cy > 0:
                cur.cy -= 1
                cur.cx = self.buf.rows[cur.cy].size
        elif key == ARROW_RIGHT:
            if row is not None and cur.cx < row.size:
                cur.cx += 1
            elif row is not None and cur.cx == row.size:
                cur.cy += 1
                cur.cx = 0
        elif key == ARROW_UP:
            if cur.cy != 0:
                cur.cy -= 1
        elif key == ARROW_DOWN:
            if cur.cy < self.buf.numrows:
                cur.cy += 1

        row = self.buf.row_at(cur.cy)
        rowlen = row.size if row is not None else 0
        if cur.cx > rowlen:
            cur.cx = rowlen

    def page(self, key: int) -> None:
        cur = self.cursor
        view = self.view
        if key == PAGE_UP:
            cur.cy = view.rowoff
        else:
            cur.cy = min(view.rowoff + view.screenrows - 1, self.buf.numrows)
        for _ in range(view.screenrows):
            self.move_cursor(ARROW_UP if key == PAGE_UP else ARROW_DOWN)

    def process_keypress(self, c: int | None = None) -> None:
        if c is None:
            c = self.read_key()

        if c == ENTER:
            self.insert_newline()
        elif c == CTRL_Q:
            if self.buf.dirty and self.quit_times > 0:
                self.set_status_message(
                    "WARNING!!! File has unsaved changes. Press Ctrl-Q %d more times to quit.",
                    self.quit_times,
                )
                self.quit_times -= 1
                return
            self.write((ANSI_CLEAR_SCREEN + ANSI_CURSOR_HOME).encode())
            raise SystemExit(0)
        elif c == CTRL_S:
            self.save()
        elif c == CTRL_F:
            self.find()
        elif c == HOME_KEY:
            self.cursor.cx = 0
        elif c == END_KEY:
            row = self.buf.row_at(self.cursor.cy)
            if row is not None:
                self.cursor.cx = row.size
        elif c in (BACKSPACE, CTRL_H):
            self.del_char()
        elif c == DEL_KEY:
            self.move_cursor(ARROW_RIGHT)
            self.del_char()
        elif c in (PAGE_UP, PAGE_DOWN):
            self.page(c)
        elif c == CTRL_P:
            self.move_cursor(ARROW_UP)
        elif c == CTRL_N:
            self.move_cursor(ARROW_DOWN)
        elif c in (ARROW_UP, ARROW_DOWN, ARROW_LEFT, ARROW_RIGHT):
            self.move_cursor(c)
        elif c in (CTRL_L, ESC):
            pass
        elif c < 256:
            self.insert_char(c)

        self.quit_times = QUIT_TIMES

    def step(self) -> None:
        """Process one input event and draw the resulting frame."""
        self.process_keypress()
        self.refresh_screen()


def run(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) > 1:
        print("Usage: tilde [filename]", file=sys.stderr)
        return 1
    if not os.isatty(STDIN_FD) or not os.isatty(STDOUT_FD):
        print("tilde: stdin/stdout must be a tty", file=sys.stderr)
        return 1

    try:
        with RawMode(STDIN_FD):
            editor = Editor(
                fd_byte_source(STDIN_FD),
                partial(write_all, STDOUT_FD),
                get_window_size(STDIN_FD, STDOUT_FD),
            )
            if args:
                editor.open_file(args[0])
            signal.signal(signal.SIGWINCH, editor.handle_sigwinch)
            editor.set_status_message(HELP_MESSAGE)
            while True:
                editor.refresh_screen()
                editor.process_keypress()
    except SystemExit as exc:
        if isinstance(exc.code, int):
            return exc.code
        return 0
    except OSError as exc:
        write_all(STDOUT_FD, (ANSI_CLEAR_SCREEN + ANSI_CURSOR_HOME).encode())
        log.error("fatal: %s", exc)
        print(f"tilde: {exc}", file=sys.stderr)
        return 1


def main() -> None:
    raise SystemExit(run())
