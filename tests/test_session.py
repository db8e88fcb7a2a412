import fcntl
import os
import pty
import select
import signal
import struct
import sys
import termios
import time
from dataclasses import dataclass
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
TILDE = [sys.executable, "-m", "tilde"]

pytestmark = pytest.mark.skipif(not sys.platform.startswith("linux"), reason="needs a Linux pty")


KEY_BYTES = {
    "ENTER": b"\r",
    "ESC": b"\x1b",
    "BACKSPACE": b"\x7f",
    "TAB": b"\t",
    "UP": b"\x1b[A",
    "DOWN": b"\x1b[B",
    "RIGHT": b"\x1b[C",
    "LEFT": b"\x1b[D",
    "HOME": b"\x1b[H",
    "END": b"\x1b[F",
    "DEL": b"\x1b[3~",
    "PAGE_UP": b"\x1b[5~",
    "PAGE_DOWN": b"\x1b[6~",
}


@dataclass(slots=True)
class SessionResult:
    status: int | None
    timed_out: bool
    transcript: bytes

    @property
    def exit_summary(self):
        if self.timed_out:
            return "timeout"
        if self.status is None:
            return "unknown"
        if os.WIFEXITED(self.status):
            return f"exit:{os.WEXITSTATUS(self.status)}"
        if os.WIFSIGNALED(self.status):
            return f"signal:{os.WTERMSIG(self.status)}"
        return f"raw:{self.status}"


def key_to_bytes(key):
    if key.startswith("CTRL_"):
        return bytes([ord(key[-1].upper()) & 0x1F])
    return KEY_BYTES[key]


def read_ready(fd, sink, duration_s):
    end = time.time() + duration_s
    while time.time() < end:
        readable, _, _ = select.select([fd], [], [], 0.02)
        if fd not in readable:
            continue
        try:
            data = os.read(fd, 65536)
        except OSError:
            return False
        if not data:
            return False
        sink.extend(data)
    return True


def wait_for_frame(fd, sink, timeout_s):
    deadline = time.time() + timeout_s
    while time.time() < deadline and b"\x1b[?25h" not in sink:
        if not read_ready(fd, sink, 0.05):
            break


def run_session(args, actions, timeout_s=10.0):
    pid, fd = pty.fork()
    if pid == 0:
        fcntl.ioctl(0, termios.TIOCSWINSZ, struct.pack("HHHH", 24, 80, 0, 0))
        env = dict(os.environ, PYTHONPATH=str(ROOT / "src"))
        env.pop("TILDE_LOG", None)
        os.execvpe(TILDE[0], TILDE + args, env)

    transcript = bytearray()
    status = None
    timed_out = False
    try:
        wait_for_frame(fd, transcript, timeout_s)
        for action in actions:
            if action.startswith("text:"):
                os.write(fd, action[5:].encode())
            else:
                os.write(fd, key_to_bytes(action))
            read_ready(fd, transcript, 0.15)

        deadline = time.time() + timeout_s
        while time.time() < deadline:
            read_ready(fd, transcript, 0.05)
            wpid, status = os.waitpid(pid, os.WNOHANG)
            if wpid == pid:
                break
            status = None
            time.sleep(0.02)

        if status is None:
            timed_out = True
            os.kill(pid, signal.SIGKILL)
            _, status = os.waitpid(pid, 0)
    finally:
        try:
            os.close(fd)
        except OSError:
            pass

    return SessionResult(status=status, timed_out=timed_out, transcript=bytes(transcript))


def test_edit_save_and_quit(tmp_path):
    path = tmp_path / "doc.c"
    path.write_bytes(b"abc\r\nint main;\n")
    result = run_session(
        [str(path)],
        ["text:x", "DOWN", "END", "BACKSPACE", "ENTER", "text:}", "CTRL_S", "CTRL_Q"],
    )
    assert result.exit_summary == "exit:0"
    assert path.read_bytes() == b"xabc\nint main\n}\n"


def test_dirty_quit_needs_repeated_ctrl_q(tmp_path):
    path = tmp_path / "doc.txt"
    path.write_bytes(b"keep\n")
    result = run_session([str(path)], ["text:zz"] + ["CTRL_Q"] * 4)
    assert result.exit_summary == "exit:0"
    assert path.read_bytes() == b"keep\n"
    assert b"WARNING!!! File has unsaved changes" in result.transcript


def test_search_then_edit_at_match(tmp_path):
    path = tmp_path / "doc.txt"
    path.write_bytes(b"one\ntwo\nthree\n")
    result = run_session(
        [str(path)],
        ["CTRL_F", "text:thr", "ENTER", "text:>", "CTRL_S", "CTRL_Q"],
    )
    assert result.exit_summary == "exit:0"
    assert path.read_bytes() == b"one\ntwo\n>three\n"


def test_missing_file_exits_with_error(tmp_path):
    result = run_session([str(tmp_path / "nope.txt")], [])
    assert result.exit_summary == "exit:1"
