"""
Pattern compiler: one line of gitignore syntax to one compiled rule.

Only the common glob subset is supported: ``*``, ``?``, ``**``, a leading
``/`` anchor, a trailing ``/`` directory marker, a leading ``!`` negation
and backslash escapes.
"""

import os
import re
from dataclasses import dataclass
from typing import Optional, Pattern

from ..exceptions import IgnorePatternError
from .constants import INLINE_SOURCE

# Applied in order to the re.escape()d glob
_GLOB_SUBSTITUTIONS = (
    ("/\\*\\*/", "(?:/[^/]*)*/"),
    ("\\*\\*/", "(?:.*/)?"),
    ("/\\*\\*", "(?:/.*)?"),
    ("\\*\\*", ".*"),
    ("\\*", "[^/]*"),
    ("\\?", "[^/]"),
)

_SEGMENT_END = "(?=/|$)"


@dataclass(frozen=True)
class IgnorePattern:
    """A single compiled ignore rule.

    ``matcher`` runs against a slash separated path relative to
    ``anchor_dir``. Instances are immutable and safe to share between
    threads.
    """
    matcher: Pattern
    negate: bool
    raw: str
    line_no: int
    anchor_dir: str
    anchored: bool
    source: str = INLINE_SOURCE

    def matches(self, rel_path: str) -> bool:
        return self.matcher.search(rel_path) is not None

    def describe(self) -> str:
        """``source:line:pattern``, the format of ``git check-ignore -v``"""
        return f"{self.source}:{self.line_no}:{self.raw}"


def clean_dir(path: str) -> str:
    """Absolute, normalized form of a directory path"""
    return os.path.normpath(os.path.abspath(os.path.expanduser(path)))


def _trim(text: str) -> str:
    body = text.strip()
    # "foo\ " keeps its escaped trailing space; "foo\\ " does not
    slashes = len(body) - len(body.rstrip("\\"))
    if slashes % 2 == 1 and len(body) < len(text.lstrip()):
        body += " "
    return body


def _unescape(text: str) -> str:
    out = []
    i = 0
    while i < len(text):
        ch = text[i]
        nxt = text[i + 1] if i + 1 < len(text) else ""
        if ch == "\\" and (nxt in ("\\", " ") or (i == 0 and nxt in ("!", "#"))):
            out.append(nxt)
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def translate_glob(glob: str) -> str:
    """Translate a glob body (markers already stripped) into a regex body"""
    expr = re.escape(glob)
    for old, new in _GLOB_SUBSTITUTIONS:
        expr = expr.replace(old, new)
    return expr


def compile_pattern(
    line: str,
    anchor_dir: str,
    line_no: int = 0,
    source: Optional[str] = None,
) -> Optional[IgnorePattern]:
    """
    Compile one line of ignore-file text.

    Args:
        line: Raw line, possibly with a trailing newline
        anchor_dir: Directory the rule belongs to
        line_no: 1-based line number, for diagnostics
        source: File the line came from, for diagnostics

    Returns:
        The compiled rule, or None for blank and comment lines

    Raises:
        IgnorePatternError: If the translated expression does not compile
    """
    source = source or INLINE_SOURCE
    raw = line.rstrip("\r\n")
    text = _trim(raw)
    if not text or text.startswith("#"):
        return None

    negate = False
    if text.startswith("!"):
        negate = True
        text = text[1:]

    text = _unescape(text)

    anchored = False
    if text.startswith("/"):
        anchored = True
        text = text[1:]

    if not text:
        return None

    if text.endswith("/"):
        text += "**"

    body = translate_glob(text)
    prefix = "^" if anchored else "(?:^|/)"
    try:
        matcher = re.compile(prefix + body + _SEGMENT_END)
    except re.error as e:
        raise IgnorePatternError(source, line_no, raw.strip(), str(e)) from e

    return IgnorePattern(
        matcher=matcher,
        negate=negate,
        raw=raw.strip(),
        line_no=line_no,
        anchor_dir=clean_dir(anchor_dir),
        anchored=anchored,
        source=source,
    )
