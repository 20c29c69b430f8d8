"""
Gitignore-style rule engine.

compile_pattern turns one line into an IgnorePattern; IgnoreSet keeps
rules in order; build_ignore_set discovers .gitignore/.arkignore files;
explain classifies a path.
"""

from .builder import (
    IgnoreSource,
    IgnoreSourceKind,
    build_ignore_set,
    discover_ignore_sources,
    ignore_set_from_files,
    resolve_ignore_source,
)
from .compiler import IgnorePattern, compile_pattern, translate_glob
from .constants import ARKIGNORE_FILENAME, GIT_DIRNAME, GITIGNORE_FILENAME
from .ignore_set import IgnoreSet
from .matcher import explain, is_ignored

__all__ = [
    'ARKIGNORE_FILENAME',
    'GIT_DIRNAME',
    'GITIGNORE_FILENAME',
    'IgnorePattern',
    'IgnoreSet',
    'IgnoreSource',
    'IgnoreSourceKind',
    'build_ignore_set',
    'compile_pattern',
    'discover_ignore_sources',
    'explain',
    'ignore_set_from_files',
    'is_ignored',
    'resolve_ignore_source',
    'translate_glob',
]
