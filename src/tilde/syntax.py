from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from .constants import (
    C_HL_EXTENSIONS,
    C_HL_KEYWORDS,
    HL_COMMENT,
    HL_HIGHLIGHT_NUMBERS,
    HL_HIGHLIGHT_STRINGS,
    HL_KEYWORD1,
    HL_KEYWORD2,
    HL_MATCH,
    HL_MLCOMMENT,
    HL_NORMAL,
    HL_NUMBER,
    HL_STRING,
    PY_HL_EXTENSIONS,
    PY_HL_KEYWORDS,
)
from .log import log
from .models import Row, SyntaxProfile

if TYPE_CHECKING:
    from .buffer import TextBuffer


HLDB: tuple[SyntaxProfile, ...] = (
    SyntaxProfile(
        filetype="c",
        filematch=C_HL_EXTENSIONS,
        keywords=C_HL_KEYWORDS,
        singleline_comment_start="//",
        multiline_comment_start="/*",
        multiline_comment_end="*/",
        flags=HL_HIGHLIGHT_NUMBERS | HL_HIGHLIGHT_STRINGS,
    ),
    SyntaxProfile(
        filetype="python",
        filematch=PY_HL_EXTENSIONS,
        keywords=PY_HL_KEYWORDS,
        singleline_comment_start="#",
        multiline_comment_start="",
        multiline_comment_end="",
        flags=HL_HIGHLIGHT_NUMBERS | HL_HIGHLIGHT_STRINGS,
    ),
)


def is_separator(c: str) -> bool:
    return not c or c.isspace() or c == "\0" or c in ",.()+-/*=~%<>[];"


def syntax_to_color(hl: int) -> int:
    if hl in (HL_COMMENT, HL_MLCOMMENT):
        return 36
    if hl == HL_KEYWORD1:
        return 33
    if hl == HL_KEYWORD2:
        return 32
    if hl == HL_STRING:
        return 35
    if hl == HL_NUMBER:
        return 31
    if hl == HL_MATCH:
        return 34
    return 37


def find_syntax(filename: str | None) -> SyntaxProfile | None:
    """Look a filename up in the profile registry.

    Patterns starting with "." must equal the final extension; anything
    else matches as a substring.
    """
    if not filename:
        return None
    dot = filename.rfind(".")
    ext = filename[dot:] if dot != -1 else None
    for syntax in HLDB:
        for pattern in syntax.filematch:
            if pattern.startswith("."):
                if ext == pattern:
                    return syntax
            elif pattern in filename:
                return syntax
    return None


def select_syntax_highlight(buf: TextBuffer) -> None:
    buf.syntax = find_syntax(buf.filename)
    log.debug("syntax for %r: %s", buf.filename, buf.syntax.filetype if buf.syntax else None)
    buf.rehighlight()


def _highlight_row(row: Row, syntax: SyntaxProfile, in_comment: bool) -> bool:
    """Classify one row's render text in place; return the open-comment state at its end."""
    keywords = syntax.keywords
    scs = syntax.singleline_comment_start
    mcs = syntax.multiline_comment_start
    mce = syntax.multiline_comment_end

    p = row.render
    hl = row.hl
    n = len(p)
    prev_sep = True
    in_string = ""

    i = 0
    while i < n:
        ch = p[i]
        prev_hl = hl[i - 1] if i > 0 else HL_NORMAL

        if scs and not in_string and not in_comment:
            if p.startswith(scs, i):
                hl[i:] = [HL_COMMENT] * (n - i)
                break

        if mcs and mce and not in_string:
            if in_comment:
                hl[i] = HL_MLCOMMENT
                if p.startswith(mce, i):
                    end = min(i + len(mce), n)
                    hl[i:end] = [HL_MLCOMMENT] * (end - i)
                    i = end
                    in_comment = False
                    prev_sep = True
                else:
                    i += 1
                continue
            if p.startswith(mcs, i):
                end = min(i + len(mcs), n)
                hl[i:end] = [HL_MLCOMMENT] * (end - i)
                i = end
                in_comment = True
                continue

        if syntax.flags & HL_HIGHLIGHT_STRINGS:
            if in_string:
                hl[i] = HL_STRING
                if ch == "\\" and i + 1 < n:
                    hl[i + 1] = HL_STRING
                    i += 2
                    continue
                if ch == in_string:
                    in_string = ""
                i += 1
                prev_sep = True
                continue
            if ch in ('"', "'"):
                in_string = ch
                hl[i] = HL_STRING
                i += 1
                continue

        if syntax.flags & HL_HIGHLIGHT_NUMBERS:
            if (ch.isdigit() and (prev_sep or prev_hl == HL_NUMBER)) or (
                ch == "." and prev_hl == HL_NUMBER
            ):
                hl[i] = HL_NUMBER
                i += 1
                prev_sep = False
                continue

        if prev_sep:
            matched = False
            for kw in keywords:
                kw2 = kw.endswith("|")
                token = kw[:-1] if kw2 else kw
                klen = len(token)
                tail = p[i + klen] if i + klen < n else ""
                if p.startswith(token, i) and is_separator(tail):
                    hl[i : i + klen] = [HL_KEYWORD2 if kw2 else HL_KEYWORD1] * klen
                    i += klen
                    matched = True
                    break
            if matched:
                prev_sep = False
                continue

        prev_sep = is_separator(ch)
        i += 1

    return in_comment


def update_syntax(buf: TextBuffer, idx: int) -> None:
    """Re-derive the highlight of row ``idx`` and of every following row
    whose incoming open-comment state changes as a result."""
    pending = deque([idx])
    while pending:
        at = pending.popleft()
        row = buf.rows[at]
        row.hl = [HL_NORMAL] * row.rsize
        if buf.syntax is None:
            row.hl_open_comment = False
            continue

        in_comment = at > 0 and buf.rows[at - 1].hl_open_comment
        open_comment = _highlight_row(row, buf.syntax, in_comment)
        changed = row.hl_open_comment != open_comment
        row.hl_open_comment = open_comment
        if changed and at + 1 < buf.numrows:
            pending.append(at + 1)
