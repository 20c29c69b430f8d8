"""
MCP resources: the project structure plus file and directory templates.
"""

import os
from dataclasses import dataclass
from typing import List
from urllib.parse import unquote

from ..exceptions import ToolArgumentError
from .tools import ProjectTools

STRUCTURE_URI = "ark://structure"
FILE_SCHEME = "file"
DIRECTORY_SCHEME = "directory"


@dataclass(frozen=True)
class ResourceInfo:
    uri: str
    name: str
    description: str
    mime_type: str


RESOURCES = [
    ResourceInfo(STRUCTURE_URI, "project-structure",
                 "Admitted directory tree of the served project", "application/json"),
]

RESOURCE_TEMPLATES = [
    ResourceInfo(f"{FILE_SCHEME}:///{{path}}", "file",
                 "Content of an admitted file, secrets masked", "text/plain"),
    ResourceInfo(f"{DIRECTORY_SCHEME}:///{{path}}", "directory",
                 "Admitted tree below a directory, as JSON", "application/json"),
]


class ProjectResources:
    """Reads resources through the same checks as the tools"""

    def __init__(self, tools: ProjectTools):
        self.tools = tools

    def list(self) -> List[ResourceInfo]:
        return list(RESOURCES)

    def templates(self) -> List[ResourceInfo]:
        return list(RESOURCE_TEMPLATES)

    def path_from_uri(self, rest: str) -> str:
        """Absolute paths inside the root are kept; anything else is root-relative"""
        raw = unquote(rest)
        root = self.tools.root
        if raw.startswith("/"):
            absolute = os.path.normpath(raw)
            if absolute == root or absolute.startswith(root.rstrip(os.sep) + os.sep):
                return absolute
        return raw.lstrip("/") or "."

    def read(self, uri: str) -> str:
        uri = str(uri)
        if uri == STRUCTURE_URI:
            return self.tools.get_directory_tree({"path": "."})

        scheme, sep, rest = uri.partition("://")
        if not sep:
            raise ToolArgumentError(f"Unsupported resource URI: {uri}")

        path = self.path_from_uri(rest)
        if scheme == FILE_SCHEME:
            return self.tools.get_file_content({"path": path, "withLineNumbers": False})
        if scheme == DIRECTORY_SCHEME:
            return self.tools.get_directory_tree({"path": path})
        raise ToolArgumentError(f"Unsupported resource URI: {uri}")
