"""
Integrated ignore builder.

Walks the scan root, picks one ignore file per directory and folds every
rule into a single IgnoreSet. Shallower directories come first, so a
subdirectory's rules override its ancestors'.
"""

import logging
import os
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from ..exceptions import IgnoreBuildError
from .compiler import clean_dir
from .constants import ARKIGNORE_FILENAME, GIT_DIRNAME, GITIGNORE_FILENAME
from .ignore_set import IgnoreSet

logger = logging.getLogger("ark-ignore-builder")


class IgnoreSourceKind(Enum):
    GITIGNORE = GITIGNORE_FILENAME
    ARKIGNORE = ARKIGNORE_FILENAME


@dataclass(frozen=True)
class IgnoreSource:
    """The ignore file chosen for one directory"""
    kind: IgnoreSourceKind
    directory: str
    path: str


def resolve_ignore_source(directory: str, allow_gitignore: bool) -> Optional[IgnoreSource]:
    """
    Pick the ignore file that governs ``directory``.

    ``.gitignore`` wins when gitignore support is enabled and the file
    exists; otherwise ``.arkignore`` is used if present.
    """
    if allow_gitignore:
        candidate = os.path.join(directory, GITIGNORE_FILENAME)
        if os.path.isfile(candidate):
            return IgnoreSource(IgnoreSourceKind.GITIGNORE, directory, candidate)

    candidate = os.path.join(directory, ARKIGNORE_FILENAME)
    if os.path.isfile(candidate):
        return IgnoreSource(IgnoreSourceKind.ARKIGNORE, directory, candidate)

    return None


def _subdirectories(directory: str) -> List[str]:
    try:
        with os.scandir(directory) as it:
            names = [
                entry.name for entry in it
                if entry.is_dir(follow_symlinks=False) and entry.name != GIT_DIRNAME
            ]
    except OSError as e:
        raise IgnoreBuildError(directory, e.strerror or str(e)) from e
    return [os.path.join(directory, name) for name in sorted(names)]


def discover_ignore_sources(root: str, allow_gitignore: bool) -> List[IgnoreSource]:
    """
    Breadth-first walk of ``root`` collecting one ignore source per directory.

    Raises:
        IgnoreBuildError: If any directory cannot be listed
    """
    root = clean_dir(root)
    if not os.path.isdir(root):
        raise IgnoreBuildError(root, "not a directory")

    sources = []
    queue = deque([root])
    while queue:
        directory = queue.popleft()
        source = resolve_ignore_source(directory, allow_gitignore)
        if source is not None:
            sources.append(source)
        queue.extend(_subdirectories(directory))

    return sources


def build_ignore_set(
    allow_gitignore: bool,
    root: str,
    extra_ignore_files: Iterable[str] = (),
) -> IgnoreSet:
    """
    Build the IgnoreSet for a scan root.

    Args:
        allow_gitignore: Honour .gitignore files
        root: Scan root
        extra_ignore_files: Additional rule files, anchored at the root

    Returns:
        The populated IgnoreSet

    Raises:
        IgnoreBuildError: On any I/O failure; no partial set is returned
        IgnorePatternError: On the first malformed rule
    """
    ignore_set = IgnoreSet(root)

    for source in discover_ignore_sources(ignore_set.root, allow_gitignore):
        ignore_set.append_file(source.path, anchor_dir=source.directory)

    for extra in extra_ignore_files:
        if not os.path.isfile(extra):
            raise IgnoreBuildError(extra, "ignore rule file not found")
        ignore_set.append_file(extra, anchor_dir=ignore_set.root)

    logger.info(f"Built ignore set for {ignore_set.root}: {len(ignore_set)} rules")
    return ignore_set


def ignore_set_from_files(root: str, ignore_files: Iterable[str]) -> IgnoreSet:
    """Build an IgnoreSet from an explicit list of ignore files.

    Each file is anchored at the directory that contains it. Files are
    applied shallowest first.
    """
    ignore_set = IgnoreSet(root)
    paths = [os.path.abspath(p) for p in ignore_files]
    paths.sort(key=lambda p: (p.count(os.sep), p))
    for path in paths:
        ignore_set.append_file(path, anchor_dir=os.path.dirname(path))
    return ignore_set
