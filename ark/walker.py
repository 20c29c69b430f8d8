"""
Tree walker: visit admitted entries depth-first and render the tree.

The walk uses an explicit stack, so arbitrarily deep trees do not hit the
recursion limit. Rejected directories are never opened.
"""

import json
import os
import sys
from dataclasses import dataclass
from typing import AbstractSet, Any, Dict, Iterator, List, Tuple

from .admission import AdmissionConfig, is_admitted
from .ignore import GIT_DIRNAME
from .ignore.compiler import clean_dir
from .utils import get_logger

logger = get_logger("ark-walker")

CASE_INSENSITIVE_FS = sys.platform in ("darwin", "win32")

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE_INDENT = "│   "
SPACE_INDENT = "    "


@dataclass(frozen=True)
class Entry:
    """One admitted filesystem entry"""
    path: str
    rel_path: str
    name: str
    is_dir: bool
    depth: int
    is_last: bool
    # is_last of every ancestor below the root, outermost first
    ancestors_last: Tuple[bool, ...] = ()


def sort_key(name: str):
    return (name.lower(), name) if CASE_INSENSITIVE_FS else name


def list_admitted(directory: str, config: AdmissionConfig,
                  exclude: AbstractSet[str] = frozenset()) -> List[Tuple[str, str, bool]]:
    """Sorted ``(name, path, is_dir)`` of the admitted children of ``directory``

    Paths in ``exclude`` are skipped as if rejected.
    """
    try:
        with os.scandir(directory) as it:
            raw = [(e.name, e.path, e.is_dir(follow_symlinks=False)) for e in it]
    except OSError as e:
        logger.warning(f"Cannot read directory {directory}: {e}")
        return []

    children = []
    for name, path, is_dir in sorted(raw, key=lambda item: sort_key(item[0])):
        if (is_dir and name == GIT_DIRNAME) or path in exclude:
            continue
        if not is_admitted(config, path, is_dir=is_dir):
            logger.trace("Rejected %s", path)
            continue
        children.append((name, path, is_dir))
    return children


def _child_entries(root: str, directory: str, depth: int, ancestors_last: Tuple[bool, ...],
                   config: AdmissionConfig, exclude: AbstractSet[str]) -> List[Entry]:
    children = list_admitted(directory, config, exclude)
    entries = []
    for index, (name, path, is_dir) in enumerate(children):
        entries.append(Entry(
            path=path,
            rel_path=os.path.relpath(path, root).replace(os.sep, "/"),
            name=name,
            is_dir=is_dir,
            depth=depth,
            is_last=index == len(children) - 1,
            ancestors_last=ancestors_last,
        ))
    return entries


def walk(root: str, config: AdmissionConfig,
         exclude: AbstractSet[str] = frozenset()) -> Iterator[Entry]:
    """
    Yield every admitted entry below ``root`` in depth-first, sorted order.

    Args:
        root: Directory to walk
        config: Admission configuration
        exclude: Absolute paths to leave out

    Yields:
        Entry objects; the root itself is not yielded
    """
    root = clean_dir(root)
    stack = list(reversed(_child_entries(root, root, 0, (), config, exclude)))

    while stack:
        entry = stack.pop()
        yield entry
        if entry.is_dir:
            children = _child_entries(
                root, entry.path, entry.depth + 1,
                entry.ancestors_last + (entry.is_last,), config, exclude,
            )
            stack.extend(reversed(children))


def allowed_files(root: str, config: AdmissionConfig) -> Tuple[str, ...]:
    """Absolute paths of every admitted file, in walk order"""
    return tuple(entry.path for entry in walk(root, config) if not entry.is_dir)


def tree_string(root: str, config: AdmissionConfig, exclude: AbstractSet[str] = frozenset()) -> str:
    """
    Draw the admitted tree.

    The first line is the root's name; each entry follows with box-drawing
    connectors, one per line, without a trailing newline.
    """
    root = clean_dir(root)
    lines = [os.path.basename(root) or root]
    for entry in walk(root, config, exclude):
        indent = "".join(SPACE_INDENT if last else PIPE_INDENT for last in entry.ancestors_last)
        connector = LAST_BRANCH if entry.is_last else BRANCH
        lines.append(f"{indent}{connector}{entry.name}")
    return "\n".join(lines)


def tree_json(root: str, config: AdmissionConfig, exclude: AbstractSet[str] = frozenset()) -> Dict[str, Any]:
    """Nested ``{name, type, children}`` description of the admitted tree"""
    root = clean_dir(root)
    top: Dict[str, Any] = {"name": os.path.basename(root) or root, "type": "directory", "children": []}
    nodes = {root: top}

    for entry in walk(root, config, exclude):
        parent = nodes[os.path.dirname(entry.path)]
        if entry.is_dir:
            node = {"name": entry.name, "type": "directory", "children": []}
            nodes[entry.path] = node
        else:
            node = {"name": entry.name, "type": "file"}
        parent["children"].append(node)

    return top


def tree_json_string(root: str, config: AdmissionConfig, indent=None,
                     exclude: AbstractSet[str] = frozenset()) -> str:
    separators = (",", ":") if indent is None else None
    return json.dumps(tree_json(root, config, exclude), ensure_ascii=False, indent=indent, separators=separators)
