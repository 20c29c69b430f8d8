"""
Admission filter: the single yes/no decision made for every filesystem entry.

The extension, regex, directory-name and dotfile checks are combined with
the ignore set. Every check must pass.
"""

import os
import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Pattern, Union

from .exceptions import ConfigurationError
from .ignore import IgnoreSet, is_ignored

ListOption = Union[str, Iterable[str], None]


def split_list(value: ListOption) -> List[str]:
    """Split a comma list (or flatten an iterable of them), trim, de-duplicate"""
    if value is None:
        return []
    items = [value] if isinstance(value, str) else list(value)
    seen = []
    for item in items:
        for part in str(item).split(","):
            part = part.strip()
            if part and part not in seen:
                seen.append(part)
    return seen


def normalize_extension(ext: str) -> str:
    ext = ext.strip()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


def compile_option_regex(value: Optional[str], option: str) -> Optional[Pattern]:
    if not value:
        return None
    try:
        return re.compile(value)
    except re.error as e:
        raise ConfigurationError(f"invalid regular expression {value!r}: {e}", option=option) from e


@dataclass(frozen=True)
class AdmissionConfig:
    """
    Normalized filter parameters for one scan or server session.

    Built once, before traversal, with ``from_options``; read-only afterwards.
    """
    ignore_set: Optional[IgnoreSet] = None
    include_ext: FrozenSet[str] = frozenset()
    exclude_ext: FrozenSet[str] = frozenset()
    exclude_dirs: FrozenSet[str] = frozenset()
    include_basename: Optional[Pattern] = None
    exclude_basename: Optional[Pattern] = None
    exclude_dir_path: Optional[Pattern] = None
    ignore_dotfiles: bool = False

    @classmethod
    def from_options(
        cls,
        ignore_set: Optional[IgnoreSet] = None,
        include_ext: ListOption = None,
        exclude_ext: ListOption = None,
        exclude_dirs: ListOption = None,
        pattern_regex: Optional[str] = None,
        exclude_file_regex: Optional[str] = None,
        exclude_dir_regex: Optional[str] = None,
        ignore_dotfiles: bool = False,
    ) -> "AdmissionConfig":
        """
        Normalize raw option values.

        Raises:
            ConfigurationError: If a regex option does not compile; the
                error names the option
        """
        return cls(
            ignore_set=ignore_set,
            include_ext=frozenset(normalize_extension(e) for e in split_list(include_ext)),
            exclude_ext=frozenset(normalize_extension(e) for e in split_list(exclude_ext)),
            exclude_dirs=frozenset(split_list(exclude_dirs)),
            include_basename=compile_option_regex(pattern_regex, "pattern-regex"),
            exclude_basename=compile_option_regex(exclude_file_regex, "exclude-file-regex"),
            exclude_dir_path=compile_option_regex(exclude_dir_regex, "exclude-dir-regex"),
            ignore_dotfiles=ignore_dotfiles,
        )

    @property
    def root(self) -> Optional[str]:
        return self.ignore_set.root if self.ignore_set is not None else None

    def absolute(self, path: str) -> str:
        if self.ignore_set is not None:
            return self.ignore_set.resolve(path)
        return os.path.normpath(os.path.abspath(path))

    def components(self, abs_path: str) -> List[str]:
        """Path segments below the root, or below the working directory when there is no root"""
        root = self.root if self.root is not None else os.getcwd()
        prefix = root if root.endswith(os.sep) else root + os.sep
        if abs_path.startswith(prefix):
            return abs_path[len(prefix):].split(os.sep)
        if abs_path == root:
            return []
        return [part for part in abs_path.split(os.sep) if part]


def _as_slash(path: str) -> str:
    return path.replace(os.sep, "/") if os.sep != "/" else path


def is_admitted(config: AdmissionConfig, path: str, is_dir: bool = False) -> bool:
    """
    Decide whether ``path`` is included.

    Args:
        config: Normalized filter configuration
        path: Absolute path, or relative to the ignore set root
        is_dir: Treat the path as a directory. Only the directory checks
            (excluded names, directory regex, dotfiles, ignore rules) apply,
            so a rejected directory prunes its whole subtree.

    Returns:
        True if every configured check passes
    """
    abs_path = config.absolute(path)
    if is_dir:
        return _admit_directory(config, abs_path)

    name = os.path.basename(abs_path)
    if config.include_basename is not None and not config.include_basename.search(name):
        return False

    dir_path = os.path.dirname(abs_path)
    parents = config.components(abs_path)[:-1]
    if config.exclude_dirs and any(part in config.exclude_dirs for part in parents):
        return False

    ext = os.path.splitext(name)[1]
    if config.include_ext and ext not in config.include_ext:
        return False

    if config.exclude_dir_path is not None and config.exclude_dir_path.search(_as_slash(dir_path)):
        return False

    if config.exclude_basename is not None and config.exclude_basename.search(name):
        return False

    if config.exclude_ext and ext in config.exclude_ext:
        return False

    if config.ignore_dotfiles and any(part.startswith(".") for part in parents + [name]):
        return False

    if config.ignore_set is not None and is_ignored(config.ignore_set, abs_path):
        return False

    return True


def _admit_directory(config: AdmissionConfig, abs_path: str) -> bool:
    parts = config.components(abs_path)
    if config.exclude_dirs and any(part in config.exclude_dirs for part in parts):
        return False

    if config.exclude_dir_path is not None and config.exclude_dir_path.search(_as_slash(abs_path)):
        return False

    if config.ignore_dotfiles and any(part.startswith(".") for part in parts):
        return False

    if config.ignore_set is not None and is_ignored(config.ignore_set, abs_path):
        return False

    return True
