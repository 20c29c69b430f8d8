"""
Ordered collection of compiled ignore rules rooted at a scan root.
"""

import logging
import os
from typing import Iterable, Iterator, Optional, Tuple

from ..exceptions import IgnoreBuildError
from .compiler import IgnorePattern, clean_dir, compile_pattern
from .constants import INLINE_SOURCE

logger = logging.getLogger("ark-ignore")


class IgnoreSet:
    """
    Rules from every discovered ignore file, in discovery order.

    Later rules win on conflict. Appending replaces the internal tuple
    instead of mutating it, so a reader holding ``patterns`` never sees a
    half-appended set. Once handed to matchers the set is not appended to.
    """

    def __init__(self, root: str, patterns: Iterable[IgnorePattern] = ()):
        self.root = clean_dir(root)
        self._patterns: Tuple[IgnorePattern, ...] = tuple(patterns)

    @property
    def patterns(self) -> Tuple[IgnorePattern, ...]:
        return self._patterns

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self) -> Iterator[IgnorePattern]:
        return iter(self._patterns)

    def __repr__(self) -> str:
        return f"IgnoreSet(root={self.root!r}, patterns={len(self._patterns)})"

    def resolve(self, path: str) -> str:
        """Absolute normalized form of ``path``, relative paths taken from root"""
        if not os.path.isabs(path):
            path = os.path.join(self.root, path)
        return os.path.normpath(path)

    def append_lines(
        self,
        lines: Iterable[str],
        anchor_dir: Optional[str] = None,
        source: str = INLINE_SOURCE,
    ) -> int:
        """
        Compile and append rules.

        Args:
            lines: Raw ignore-file lines
            anchor_dir: Directory the rules apply from (defaults to root)
            source: Label used in diagnostics

        Returns:
            Number of rules appended

        Raises:
            IgnorePatternError: On the first line that fails to compile
        """
        anchor = anchor_dir or self.root
        compiled = []
        for line_no, line in enumerate(lines, 1):
            pattern = compile_pattern(line, anchor, line_no, source)
            if pattern is not None:
                compiled.append(pattern)
        self._patterns = self._patterns + tuple(compiled)
        return len(compiled)

    def append_file(self, path: str, anchor_dir: Optional[str] = None) -> int:
        """
        Read an ignore file and append its rules.

        Args:
            path: Ignore file to read
            anchor_dir: Directory the rules apply from (defaults to root,
                regardless of where the file lives)

        Raises:
            IgnoreBuildError: If the file cannot be read
            IgnorePatternError: If a line fails to compile
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                lines = f.read().split("\n")
        except (OSError, UnicodeDecodeError) as e:
            raise IgnoreBuildError(path, str(e)) from e

        count = self.append_lines(lines, anchor_dir, source=path)
        logger.debug(f"Loaded {count} rules from {path}")
        return count
