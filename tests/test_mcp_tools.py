#!/usr/bin/env python3
"""
Tests for the MCP tools, resources and server wiring
"""

import json
import os

import pytest
import mcp.types as types

from ark.content import MASK
from ark.exceptions import AccessDeniedError, ConfigurationError, ToolArgumentError
from ark.mcp.resources import STRUCTURE_URI, ProjectResources
from ark.mcp.server import SERVER_NAME, ArkMCPServer
from ark.mcp.tools import TOOL_SCHEMAS, ProjectTools, get_bool, get_int, get_str, get_str_list
from ark.options import FilterOptions, ServeOptions
from ark.watcher import ProjectWatcher


@pytest.fixture
def project(make_tree):
    return make_tree({
        ".gitignore": "*.log\n",
        "README.md": "# Demo\n",
        "main.go": "package main\n\n// run it\nfunc main() {\n\tprintln(\"hello\")\n}\n",
        "src/util.go": "package src\n\nvar password = \"hunter2\"\n",
        "debug.log": "hello from the log\n",
    })


@pytest.fixture
def tools(project):
    return ProjectTools(str(project))


class TestArgumentHelpers:
    def test_get_str(self):
        assert get_str({"path": "a"}, "path") == "a"
        assert get_str({}, "path", ".") == "."
        with pytest.raises(ToolArgumentError):
            get_str({}, "path", required=True)
        with pytest.raises(ToolArgumentError):
            get_str({"path": 3}, "path")

    def test_get_bool(self):
        assert get_bool({}, "flag", True) is True
        with pytest.raises(ToolArgumentError):
            get_bool({"flag": "yes"}, "flag", False)

    def test_get_int(self):
        assert get_int({"n": 5.0}, "n", 1) == 5
        with pytest.raises(ToolArgumentError):
            get_int({"n": True}, "n", 1)
        with pytest.raises(ToolArgumentError):
            get_int({"n": 0}, "n", 1)

    def test_get_str_list(self):
        assert get_str_list({"paths": "a"}, "paths") == ["a"]
        with pytest.raises(ToolArgumentError):
            get_str_list({"paths": [1]}, "paths")


class TestTools:
    def test_every_schema_has_a_handler(self, tools):
        assert [schema["name"] for schema in TOOL_SCHEMAS] == tools.tool_names

    def test_unknown_tool(self, tools):
        with pytest.raises(ToolArgumentError):
            tools.dispatch("delete_everything", {})

    def test_directory_tree(self, tools):
        tree = json.loads(tools.dispatch("get_directory_tree", {}))
        names = [child["name"] for child in tree["children"]]
        assert names == [".gitignore", "README.md", "main.go", "src"]

    def test_directory_tree_of_subdirectory(self, tools):
        tree = json.loads(tools.dispatch("get_directory_tree", {"path": "src"}))
        assert tree["name"] == "src"
        assert tree["children"] == [{"name": "util.go", "type": "file"}]

    def test_file_content_defaults(self, tools):
        text = tools.dispatch("get_file_content", {"path": "src/util.go"})
        assert text.splitlines()[0] == "1: package src"
        assert f'3: var password = "{MASK}"' in text

    def test_file_content_options(self, tools):
        text = tools.dispatch("get_file_content", {
            "path": "main.go",
            "withLineNumbers": False,
            "deleteComments": True,
            "maskSecrets": False,
        })
        assert text == 'package main\nfunc main() {\nprintln("hello")\n}'

    def test_file_content_refuses_ignored_file(self, tools):
        with pytest.raises(AccessDeniedError):
            tools.dispatch("get_file_content", {"path": "debug.log"})

    def test_file_content_refuses_escape(self, tools):
        with pytest.raises(AccessDeniedError):
            tools.dispatch("get_file_content", {"path": "../outside.txt"})

    def test_file_content_requires_file(self, tools):
        with pytest.raises(ToolArgumentError):
            tools.dispatch("get_file_content", {"path": "src"})

    def test_list_files(self, tools):
        listing = tools.dispatch("list_files", {}).split("\n")
        assert listing == [".gitignore", "README.md", "main.go", "src/util.go"]

    def test_list_files_with_overrides(self, tools):
        assert tools.dispatch("list_files", {"includeExt": "go"}).split("\n") == ["main.go", "src/util.go"]
        assert tools.dispatch("list_files", {"path": "src"}) == "util.go"
        listing = tools.dispatch("list_files", {"allowGitignore": False}).split("\n")
        assert "debug.log" in listing
        assert ".gitignore" not in tools.dispatch("list_files", {"ignoreDotfiles": True})

    def test_list_files_bad_regex(self, tools):
        with pytest.raises(ConfigurationError) as exc_info:
            tools.dispatch("list_files", {"patternRegex": "("})
        assert "pattern-regex" in str(exc_info.value)

    def test_search_substring(self, tools):
        result = tools.dispatch("search_in_files", {"query": "hello"})
        assert result == 'main.go:5:\tprintln("hello")'

    def test_search_regex_and_limit(self, tools):
        result = tools.dispatch("search_in_files", {"query": r"^package \w+", "isRegex": True})
        assert result.split("\n") == ["main.go:1:package main", "src/util.go:1:package src"]

        limited = tools.dispatch("search_in_files", {"query": "package", "maxResults": 1})
        assert limited == "main.go:1:package main"

    def test_search_no_matches(self, tools):
        assert tools.dispatch("search_in_files", {"query": "nowhere"}) == "No matches found."

    def test_search_invalid_regex(self, tools):
        with pytest.raises(ToolArgumentError):
            tools.dispatch("search_in_files", {"query": "(", "isRegex": True})

    def test_file_info(self, tools, project):
        info = json.loads(tools.dispatch("get_file_info", {"path": "main.go"}))
        assert info["path"] == "main.go"
        assert info["size"] == os.path.getsize(project / "main.go")
        assert info["isDir"] is False
        assert info["language"] == "go"
        assert info["extension"] == ".go"
        assert info["basename"] == "main.go"

        info = json.loads(tools.dispatch("get_file_info", {"path": "src"}))
        assert info["isDir"] is True
        assert info["language"] == ""

    def test_file_info_missing(self, tools):
        with pytest.raises(ToolArgumentError):
            tools.dispatch("get_file_info", {"path": "nope.txt"})

    def test_project_stats(self, tools):
        stats = json.loads(tools.dispatch("get_project_stats", {}))
        assert stats["totalFiles"] == 4
        assert stats["totalDirectories"] == 1
        assert stats["languageStats"] == {"go": 2, "markdown": 1, "unknown": 1}
        assert stats["extensionStats"] == {"(none)": 1, ".go": 2, ".md": 1}
        assert stats["totalSize"] > 0

    def test_files_arklite(self, tools):
        result = tools.dispatch("get_files_arklite", {"paths": ["main.go", "src/util.go"]})
        assert result == (
            '@main.go\npackage main␤func main() {␤println("hello")␤}\n'
            f'@src/util.go\npackage src␤var password = "{MASK}"'
        )

    def test_files_arklite_limit(self, tools):
        result = tools.dispatch("get_files_arklite", {"paths": ["main.go", "README.md"], "maxFiles": 1})
        assert result.endswith("# 1 more files omitted (maxFiles=1)")
        assert "@README.md" not in result


class TestToolsWithWatcher:
    def test_uses_watcher_snapshot(self, project):
        watcher = ProjectWatcher(str(project))
        tools = ProjectTools(str(project), watcher=watcher)
        assert "main.go" in tools.dispatch("list_files", {}).split("\n")

        (project / "added.go").write_text("package main\n")
        # not visible until the watcher refreshes
        assert "added.go" not in tools.dispatch("list_files", {}).split("\n")

        watcher.mark_dirty()
        watcher.refresh_if_dirty()
        assert "added.go" in tools.dispatch("list_files", {}).split("\n")

    def test_base_filters(self, project):
        tools = ProjectTools(str(project), filters=FilterOptions(exclude_dir="src"))
        assert "src/util.go" not in tools.dispatch("list_files", {})


class TestResources:
    @pytest.fixture
    def resources(self, tools):
        return ProjectResources(tools)

    def test_listing(self, resources):
        assert [r.uri for r in resources.list()] == [STRUCTURE_URI]
        assert [t.uri for t in resources.templates()] == ["file:///{path}", "directory:///{path}"]

    def test_structure(self, resources):
        tree = json.loads(resources.read(STRUCTURE_URI))
        assert tree["name"] == "proj"

    def test_file(self, resources, project):
        assert resources.read("file:///README.md") == "# Demo\n"
        assert resources.read(f"file://{project / 'README.md'}") == "# Demo\n"

    def test_directory(self, resources):
        tree = json.loads(resources.read("directory:///src"))
        assert tree["children"] == [{"name": "util.go", "type": "file"}]

    def test_unknown_scheme(self, resources):
        with pytest.raises(ToolArgumentError):
            resources.read("http://example.com/")
        with pytest.raises(ToolArgumentError):
            resources.read("not-a-uri")


class TestServer:
    @pytest.fixture
    def server(self, project):
        options = ServeOptions(root=str(project), watch="off").normalize()
        return ArkMCPServer(options)

    def test_construction(self, server, project):
        assert server.watcher is None
        assert server.app.name == SERVER_NAME
        assert server.tools.root == str(project)

    def test_watcher_created_when_enabled(self, project):
        options = ServeOptions(root=str(project)).normalize()
        server = ArkMCPServer(options)
        assert isinstance(server.watcher, ProjectWatcher)
        assert server.tools.watcher is server.watcher

    def test_mcp_requirement_stays_on_decorator_api(self):
        # handlers are registered through the 1.x Server decorators
        pyproject = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "pyproject.toml")
        with open(pyproject, encoding="utf-8") as f:
            requirements = [line.strip().strip('",') for line in f if line.strip().startswith('"mcp')]
        assert requirements == ["mcp>=1.0.0,<2"]

        from mcp.server import Server
        for decorator in ("list_tools", "call_tool", "list_resources", "read_resource"):
            assert callable(getattr(Server, decorator, None)), decorator

    @pytest.mark.asyncio
    async def test_call_tool(self, server):
        text = await server.call_tool("list_files", {"includeExt": "md"})
        assert text == "README.md"

    @pytest.mark.asyncio
    async def test_call_tool_error_propagates(self, server):
        with pytest.raises(AccessDeniedError):
            await server.call_tool("get_file_content", {"path": "debug.log"})

    @pytest.mark.asyncio
    async def test_list_tools_handler(self, server):
        handler = server.app.request_handlers[types.ListToolsRequest]
        result = await handler(types.ListToolsRequest(method="tools/list"))
        names = [tool.name for tool in result.root.tools]
        assert names == [schema["name"] for schema in TOOL_SCHEMAS]


class TestServerDefaults:
    def test_session_defaults_apply_to_tools(self, project):
        options = ServeOptions(root=str(project), watch="off", mask_secrets="off",
                               delete_comments=True).normalize()
        tools = ArkMCPServer(options).tools

        text = tools.dispatch("get_file_content", {"path": "src/util.go", "withLineNumbers": False})
        assert 'var password = "hunter2"' in text

        text = tools.dispatch("get_file_content", {"path": "main.go", "withLineNumbers": False})
        assert "// run it" not in text
