from __future__ import annotations

import errno
import fcntl
import os
import re
import struct
import termios
from contextlib import AbstractContextManager
from typing import Callable

from .constants import CSI_LETTER_MAP, CSI_TILDE_MAP, ESC, SS3_LETTER_MAP

# One read with the terminal's short timeout; None when nothing arrived.
ByteSource = Callable[[], "int | None"]


def _read_byte_once(fd: int) -> int | None:
    try:
        data = os.read(fd, 1)
    except (InterruptedError, BlockingIOError):
        return None
    if not data:
        return None
    return data[0]


def fd_byte_source(fd: int) -> ByteSource:
    def read_byte() -> int | None:
        return _read_byte_once(fd)

    return read_byte


def _read_byte_blocking(read_byte: ByteSource) -> int:
    while True:
        c = read_byte()
        if c is not None:
            return c


def read_key(read_byte: ByteSource) -> int:
    """Block for one logical key, folding escape sequences into key codes.

    Incomplete or unknown sequences come back as a bare ESC.
    """
    c = _read_byte_blocking(read_byte)
    if c != ESC:
        return c

    seq0 = read_byte()
    if seq0 is None:
        return ESC
    seq1 = read_byte()
    if seq1 is None:
        return ESC

    if seq0 == ord("["):
        if ord("0") <= seq1 <= ord("9"):
            seq2 = read_byte()
            if seq2 is None:
                return ESC
            if seq2 == ord("~"):
                return CSI_TILDE_MAP.get(seq1, ESC)
            return ESC
        return CSI_LETTER_MAP.get(seq1, ESC)
    if seq0 == ord("O"):
        return SS3_LETTER_MAP.get(seq1, ESC)
    return ESC


def get_cursor_position(ifd: int, ofd: int) -> tuple[int, int]:
    if os.write(ofd, b"\x1b[6n") != 4:
        raise OSError(errno.EIO, "cursor query write failed")

    buf = bytearray()
    while len(buf) < 31:
        c = _read_byte_once(ifd)
        if c is None:
            break
        buf.append(c)
        if c == ord("R"):
            break

    match = re.match(rb"\x1b\[(\d+);(\d+)R", bytes(buf))
    if not match:
        raise OSError(errno.EIO, "invalid cursor position response")
    return int(match.group(1)), int(match.group(2))


def get_window_size(ifd: int, ofd: int) -> tuple[int, int]:
    try:
        packed = fcntl.ioctl(ofd, termios.TIOCGWINSZ, struct.pack("HHHH", 0, 0, 0, 0))
        rows, cols, _, _ = struct.unpack("HHHH", packed)
        if cols:
            return rows, cols
    except OSError:
        pass

    orig_row, orig_col = get_cursor_position(ifd, ofd)
    if os.write(ofd, b"\x1b[999C\x1b[999B") != 12:
        raise OSError(errno.EIO, "window query write failed")
    rows, cols = get_cursor_position(ifd, ofd)
    os.write(ofd, f"\x1b[{orig_row};{orig_col}H".encode())
    return rows, cols


class RawMode(AbstractContextManager["RawMode"]):
    def __init__(self, fd: int) -> None:
        self.fd = fd
        self._orig: list | None = None

    def __enter__(self) -> "RawMode":
        if not os.isatty(self.fd):
            raise OSError(errno.ENOTTY, "stdin is not a tty")

        self._orig = termios.tcgetattr(self.fd)
        raw = termios.tcgetattr(self.fd)
        raw[0] &= ~(termios.BRKINT | termios.ICRNL | termios.INPCK | termios.ISTRIP | termios.IXON)
        raw[1] &= ~termios.OPOST
        raw[2] |= termios.CS8
        raw[3] &= ~(termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG)
        raw[6][termios.VMIN] = 0
        raw[6][termios.VTIME] = 1
        termios.tcsetattr(self.fd, termios.TCSAFLUSH, raw)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._orig is not None:
            termios.tcsetattr(self.fd, termios.TCSAFLUSH, self._orig)


def write_all(fd: int, data: bytes) -> None:
    view = memoryview(data)
    while view:
        n = os.write(fd, view)
        if n <= 0:
            raise OSError(errno.EIO, "short write")
        view = view[n:]
