#!/usr/bin/env python3
"""
MCP tool implementations.

Tool arguments arrive as loosely typed JSON maps. They are validated and
converted here, at the boundary, into paths and AdmissionConfig values;
the ignore engine and walker never see raw arguments.
"""

import dataclasses
import json
import os
import re
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..admission import AdmissionConfig, is_admitted
from ..content import NotTextError, delete_comments, detect_language, is_binary, mask_secrets, read_text
from ..dumpers import compact
from ..exceptions import AccessDeniedError, ToolArgumentError
from ..ignore.compiler import clean_dir
from ..options import FilterOptions, SWITCH_OFF, SWITCH_ON
from ..utils import get_logger
from ..walker import tree_json, walk
from ..watcher import ProjectSnapshot, ProjectWatcher, scan_project

logger = get_logger("ark-mcp-tools")

DEFAULT_MAX_RESULTS = 100
DEFAULT_MAX_FILES = 10

_PATH = {"type": "string", "description": "Path relative to the project root", "default": "."}

_FILTER_PROPERTIES = {
    "includeExt": {"type": "string", "description": "Comma separated extensions to include (e.g. .go,.py)"},
    "excludeExt": {"type": "string", "description": "Comma separated extensions to exclude"},
    "excludeDir": {"type": "string", "description": "Comma separated directory names to exclude"},
    "patternRegex": {"type": "string", "description": "Only include files whose name matches this regex"},
    "excludeFileRegex": {"type": "string", "description": "Exclude files whose name matches this regex"},
    "excludeDirRegex": {"type": "string", "description": "Exclude directories whose path matches this regex"},
    "ignoreDotfiles": {"type": "boolean", "description": "Skip files and directories starting with a dot"},
    "allowGitignore": {"type": "boolean", "description": "Honour .gitignore files"},
}

# argument name -> FilterOptions field
_FILTER_FIELDS = {
    "includeExt": "include_ext",
    "excludeExt": "exclude_ext",
    "excludeDir": "exclude_dir",
    "patternRegex": "pattern_regex",
    "excludeFileRegex": "exclude_file_regex",
    "excludeDirRegex": "exclude_dir_regex",
    "ignoreDotfiles": "ignore_dotfile",
    "allowGitignore": "allow_gitignore",
}

TOOL_SCHEMAS = [
    {
        "name": "get_directory_tree",
        "description": "Get the admitted directory tree as JSON",
        "inputSchema": {"type": "object", "properties": {"path": _PATH}},
    },
    {
        "name": "get_file_content",
        "description": "Get the content of a file, with secrets masked by default",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "File path relative to the project root"},
                "maskSecrets": {"type": "boolean", "default": True},
                "deleteComments": {"type": "boolean", "default": False},
                "withLineNumbers": {"type": "boolean", "default": True},
            },
            "required": ["path"],
        },
    },
    {
        "name": "list_files",
        "description": "List admitted files, optionally with additional filters",
        "inputSchema": {
            "type": "object",
            "properties": dict(
                {"path": _PATH, "skipNonUTF8": {"type": "boolean", "default": False}},
                **_FILTER_PROPERTIES,
            ),
        },
    },
    {
        "name": "search_in_files",
        "description": "Search admitted files for a substring or regular expression; results are path:line:text",
        "inputSchema": {
            "type": "object",
            "properties": dict(
                {
                    "path": _PATH,
                    "query": {"type": "string", "description": "Text or regular expression to search for"},
                    "isRegex": {"type": "boolean", "default": False},
                    "maxResults": {"type": "integer", "minimum": 1, "default": DEFAULT_MAX_RESULTS},
                },
                **_FILTER_PROPERTIES,
            ),
            "required": ["query"],
        },
    },
    {
        "name": "get_file_info",
        "description": "Get size, modification time and detected language of a file or directory",
        "inputSchema": {
            "type": "object",
            "properties": {"path": {"type": "string", "description": "Path relative to the project root"}},
            "required": ["path"],
        },
    },
    {
        "name": "get_project_stats",
        "description": "Count admitted files and directories, total size, and files per language and extension",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": _PATH,
                "ignoreDotfiles": _FILTER_PROPERTIES["ignoreDotfiles"],
                "allowGitignore": _FILTER_PROPERTIES["allowGitignore"],
            },
        },
    },
    {
        "name": "get_files_arklite",
        "description": "Get several files at once in the compact arklite form",
        "inputSchema": {
            "type": "object",
            "properties": {
                "paths": {"type": "array", "items": {"type": "string"}},
                "maskSecrets": {"type": "boolean", "default": True},
                "deleteComments": {"type": "boolean", "default": True},
                "maxFiles": {"type": "integer", "minimum": 1, "default": DEFAULT_MAX_FILES},
            },
            "required": ["paths"],
        },
    },
]


def get_str(arguments: Dict[str, Any], key: str, default: Optional[str] = None,
            required: bool = False) -> Optional[str]:
    value = arguments.get(key, default)
    if value is None:
        if required:
            raise ToolArgumentError(f"{key} parameter is required")
        return None
    if not isinstance(value, str):
        raise ToolArgumentError(f"{key} must be a string")
    if required and not value:
        raise ToolArgumentError(f"{key} parameter is required")
    return value


def get_bool(arguments: Dict[str, Any], key: str, default: bool) -> bool:
    value = arguments.get(key, default)
    if not isinstance(value, bool):
        raise ToolArgumentError(f"{key} must be a boolean")
    return value


def get_int(arguments: Dict[str, Any], key: str, default: int, minimum: int = 1) -> int:
    value = arguments.get(key, default)
    # JSON numbers may arrive as floats; bool is an int subclass
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ToolArgumentError(f"{key} must be an integer")
    if value < minimum:
        raise ToolArgumentError(f"{key} must be at least {minimum}")
    return value


def get_str_list(arguments: Dict[str, Any], key: str) -> List[str]:
    value = arguments.get(key)
    if value is None:
        raise ToolArgumentError(f"{key} parameter is required")
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ToolArgumentError(f"{key} must be an array of strings")
    return value


class ProjectTools:
    """
    Implements every MCP tool against one project root.

    Args:
        root: Served directory
        filters: Base filter options from the command line
        watcher: Live watcher providing the current snapshot; without one
            each call rescans
        mask_secrets: Default of the maskSecrets argument
        delete_comments: Default of the deleteComments argument of get_file_content
        skip_non_utf8: Default of the skipNonUTF8 argument
    """

    def __init__(self, root: str, filters: Optional[FilterOptions] = None,
                 watcher: Optional[ProjectWatcher] = None, mask_secrets: bool = True,
                 delete_comments: bool = False, skip_non_utf8: bool = False):
        self.root = clean_dir(root)
        self.filters = filters or FilterOptions()
        self.watcher = watcher
        self.mask_secrets = mask_secrets
        self.delete_comments = delete_comments
        self.skip_non_utf8 = skip_non_utf8
        self._handlers = {
            "get_directory_tree": self.get_directory_tree,
            "get_file_content": self.get_file_content,
            "list_files": self.list_files,
            "search_in_files": self.search_in_files,
            "get_file_info": self.get_file_info,
            "get_project_stats": self.get_project_stats,
            "get_files_arklite": self.get_files_arklite,
        }

    @property
    def tool_names(self) -> List[str]:
        return list(self._handlers)

    def dispatch(self, name: str, arguments: Optional[Dict[str, Any]]) -> str:
        handler = self._handlers.get(name)
        if handler is None:
            raise ToolArgumentError(f"Unknown tool: {name}")
        return handler(arguments or {})

    # Boundary helpers

    def snapshot(self) -> ProjectSnapshot:
        if self.watcher is not None:
            return self.watcher.snapshot
        return scan_project(self.root, self.filters)

    def admission_for(self, arguments: Dict[str, Any]) -> AdmissionConfig:
        """Base admission, or a fresh one when the call overrides any filter"""
        overrides = {}
        for key, field_name in _FILTER_FIELDS.items():
            if key not in arguments:
                continue
            if field_name in ("ignore_dotfile", "allow_gitignore"):
                overrides[field_name] = SWITCH_ON if get_bool(arguments, key, False) else SWITCH_OFF
            else:
                overrides[field_name] = get_str(arguments, key)
        if not overrides:
            return self.snapshot().admission
        filters = dataclasses.replace(self.filters, **overrides)
        return filters.build_admission(self.root)

    def resolve(self, path: Optional[str]) -> str:
        """Absolute path inside the root; anything outside is refused"""
        path = path or "."
        candidate = os.path.normpath(os.path.join(self.root, path))
        if candidate != self.root and not candidate.startswith(self.root.rstrip(os.sep) + os.sep):
            raise AccessDeniedError(f"{path} is outside the project root")
        return candidate

    def relative(self, path: str) -> str:
        return os.path.relpath(path, self.root).replace(os.sep, "/")

    def _existing_dir(self, arguments: Dict[str, Any]) -> str:
        directory = self.resolve(get_str(arguments, "path", "."))
        if not os.path.isdir(directory):
            raise ToolArgumentError(f"{self.relative(directory)} is not a directory")
        return directory

    def _admitted_file(self, path: str, admission: AdmissionConfig) -> str:
        full_path = self.resolve(path)
        if not os.path.isfile(full_path):
            raise ToolArgumentError(f"{path} is not a file")
        if not is_admitted(admission, full_path):
            raise AccessDeniedError(f"{path} is excluded by the project filters")
        return full_path

    def _read(self, full_path: str) -> str:
        try:
            return read_text(full_path)
        except NotTextError as e:
            raise ToolArgumentError(f"{self.relative(full_path)}: {e.reason}") from e

    # Tools

    def get_directory_tree(self, arguments: Dict[str, Any]) -> str:
        directory = self._existing_dir(arguments)
        return json.dumps(tree_json(directory, self.snapshot().admission), ensure_ascii=False, indent=2)

    def get_file_content(self, arguments: Dict[str, Any]) -> str:
        path = get_str(arguments, "path", required=True)
        full_path = self._admitted_file(path, self.snapshot().admission)
        text = self._read(full_path)

        if get_bool(arguments, "deleteComments", self.delete_comments):
            text = delete_comments(text, full_path)
        if get_bool(arguments, "maskSecrets", self.mask_secrets):
            text = mask_secrets(text)
        if get_bool(arguments, "withLineNumbers", True):
            text = "\n".join(f"{n}: {line}" for n, line in enumerate(text.split("\n"), 1))
        return text

    def _files(self, directory: str, admission: AdmissionConfig):
        if self.watcher is not None and directory == self.root and admission is self.snapshot().admission:
            return self.watcher.get_allowed()
        return [entry.path for entry in walk(directory, admission) if not entry.is_dir]

    def list_files(self, arguments: Dict[str, Any]) -> str:
        directory = self._existing_dir(arguments)
        admission = self.admission_for(arguments)
        skip_non_utf8 = get_bool(arguments, "skipNonUTF8", self.skip_non_utf8)

        results = []
        for path in self._files(directory, admission):
            if skip_non_utf8 and self._is_binary_file(path):
                continue
            results.append(os.path.relpath(path, directory).replace(os.sep, "/"))
        return "\n".join(results)

    def _is_binary_file(self, path: str) -> bool:
        try:
            with open(path, "rb") as f:
                return is_binary(f.read())
        except OSError as e:
            logger.warning(f"Cannot read {path}: {e}")
            return True

    def search_in_files(self, arguments: Dict[str, Any]) -> str:
        directory = self._existing_dir(arguments)
        query = get_str(arguments, "query", required=True)
        max_results = get_int(arguments, "maxResults", DEFAULT_MAX_RESULTS)
        if get_bool(arguments, "isRegex", False):
            try:
                pattern = re.compile(query)
            except re.error as e:
                raise ToolArgumentError(f"invalid regex pattern: {e}") from e
            matches = pattern.search
        else:
            matches = lambda line: query in line  # noqa: E731

        admission = self.admission_for(arguments)
        results = []
        for path in self._files(directory, admission):
            try:
                with open(path, "rb") as f:
                    data = f.read()
            except OSError as e:
                logger.warning(f"Skipping unreadable file {path}: {e}")
                continue
            if is_binary(data):
                continue

            rel = os.path.relpath(path, directory).replace(os.sep, "/")
            for line_no, line in enumerate(data.decode("utf-8").split("\n"), 1):
                if matches(line):
                    results.append(f"{rel}:{line_no}:{line}")
                    if len(results) >= max_results:
                        return "\n".join(results)

        if not results:
            return "No matches found."
        return "\n".join(results)

    def get_file_info(self, arguments: Dict[str, Any]) -> str:
        full_path = self.resolve(get_str(arguments, "path", required=True))
        try:
            stat = os.stat(full_path)
        except OSError as e:
            raise ToolArgumentError(f"{self.relative(full_path)}: {e.strerror or e}") from e

        is_dir = os.path.isdir(full_path)
        mod_time = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).astimezone()
        info = {
            "path": self.relative(full_path),
            "size": stat.st_size,
            "modTime": mod_time.isoformat(timespec="seconds"),
            "isDir": is_dir,
            "language": "" if is_dir else detect_language(full_path),
            "extension": "" if is_dir else os.path.splitext(full_path)[1],
            "basename": os.path.basename(full_path),
        }
        return json.dumps(info, indent=2)

    def get_project_stats(self, arguments: Dict[str, Any]) -> str:
        directory = self._existing_dir(arguments)
        admission = self.admission_for(arguments)

        total_files = 0
        total_dirs = 0
        total_size = 0
        languages: Counter = Counter()
        extensions: Counter = Counter()
        for entry in walk(directory, admission):
            if entry.is_dir:
                total_dirs += 1
                continue
            total_files += 1
            try:
                total_size += os.path.getsize(entry.path)
            except OSError as e:
                logger.warning(f"Cannot stat {entry.path}: {e}")
            languages[detect_language(entry.path) or "unknown"] += 1
            extensions[os.path.splitext(entry.name)[1] or "(none)"] += 1

        stats = {
            "totalFiles": total_files,
            "totalDirectories": total_dirs,
            "totalSize": total_size,
            "languageStats": dict(sorted(languages.items())),
            "extensionStats": dict(sorted(extensions.items())),
        }
        return json.dumps(stats, indent=2)

    def get_files_arklite(self, arguments: Dict[str, Any]) -> str:
        paths = get_str_list(arguments, "paths")
        mask = get_bool(arguments, "maskSecrets", self.mask_secrets)
        strip = get_bool(arguments, "deleteComments", True)
        max_files = get_int(arguments, "maxFiles", DEFAULT_MAX_FILES)
        admission = self.snapshot().admission

        parts = []
        for path in paths[:max_files]:
            full_path = self._admitted_file(path, admission)
            text = self._read(full_path)
            if strip:
                text = delete_comments(text, full_path)
            if mask:
                text = mask_secrets(text)
            parts.append(f"@{self.relative(full_path)}\n{compact(text)}")

        if len(paths) > max_files:
            parts.append(f"# {len(paths) - max_files} more files omitted (maxFiles={max_files})")
        return "\n".join(parts)
