"""
Path matcher: classify a path against an IgnoreSet.

The last applicable rule wins. A rule applies only to paths at or below
its anchor directory. A negation un-excludes a path that an earlier rule
excluded; it is a no-op otherwise.
"""

import os
from typing import Optional, Tuple

from .compiler import IgnorePattern
from .ignore_set import IgnoreSet


def relative_to_anchor(abs_path: str, anchor_dir: str) -> Optional[str]:
    """Slash separated path of ``abs_path`` below ``anchor_dir``.

    Returns None when the path is the anchor itself or lies outside it.
    Both arguments must already be absolute and normalized.
    """
    prefix = anchor_dir if anchor_dir.endswith(os.sep) else anchor_dir + os.sep
    if not abs_path.startswith(prefix) or len(abs_path) == len(prefix):
        return None
    rel = abs_path[len(prefix):]
    if os.sep != "/":
        rel = rel.replace(os.sep, "/")
    return rel


def explain(ignore_set: IgnoreSet, path: str) -> Tuple[bool, Optional[IgnorePattern]]:
    """
    Decide whether ``path`` is ignored and report the responsible rule.

    Args:
        ignore_set: Rules to evaluate
        path: Absolute path, or path relative to ``ignore_set.root``

    Returns:
        Tuple of (matched, pattern). ``pattern`` is the last rule that set
        the result, or None when no rule had any effect.
    """
    abs_path = ignore_set.resolve(path)
    matched = False
    responsible = None

    for pattern in ignore_set.patterns:
        rel = relative_to_anchor(abs_path, pattern.anchor_dir)
        if rel is None or not pattern.matches(rel):
            continue
        if pattern.negate:
            if matched:
                matched = False
                responsible = pattern
        else:
            matched = True
            responsible = pattern

    return matched, responsible


def is_ignored(ignore_set: IgnoreSet, path: str) -> bool:
    return explain(ignore_set, path)[0]
