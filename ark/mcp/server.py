#!/usr/bin/env python3
"""
MCP server exposing a project's admitted files over stdio.
"""

import asyncio
from typing import Optional

from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
import mcp.server.stdio
import mcp.types as types

from .. import __version__
from ..exceptions import ArkError
from ..ignore.compiler import clean_dir
from ..options import ServeOptions
from ..utils import get_logger
from ..watcher import ProjectWatcher, scan_project
from .resources import ProjectResources
from .tools import TOOL_SCHEMAS, ProjectTools

logger = get_logger("ark-mcp")

SERVER_NAME = "ark-mcp-server"


class ArkMCPServer:
    """
    Wires ProjectTools and ProjectResources into an ``mcp`` Server.

    Args:
        options: Normalized server options
        watcher: Injected watcher (tests); by default one is created when
            watching is enabled
    """

    def __init__(self, options: ServeOptions, watcher: Optional[ProjectWatcher] = None):
        self.options = options
        self.root = clean_dir(options.root)

        if watcher is None and options.watching:
            watcher = ProjectWatcher(
                self.root,
                scan=lambda root: scan_project(root, options.filters),
                interval=options.refresh_interval,
            )
        self.watcher = watcher
        self.tools = ProjectTools(
            self.root,
            options.filters,
            watcher,
            mask_secrets=options.masking,
            delete_comments=options.delete_comments,
            skip_non_utf8=options.skip_non_utf8,
        )
        self.resources = ProjectResources(self.tools)

        self.app = Server(SERVER_NAME)
        self._setup_handlers()

    def _setup_handlers(self):
        app = self.app

        @app.list_tools()
        async def handle_list_tools() -> list[types.Tool]:
            """List available tools"""
            return [
                types.Tool(name=schema["name"], description=schema["description"],
                           inputSchema=schema["inputSchema"])
                for schema in TOOL_SCHEMAS
            ]

        @app.call_tool()
        async def handle_call_tool(name: str, arguments: dict | None) -> list[types.TextContent]:
            """Handle tool calls"""
            text = await self.call_tool(name, arguments or {})
            return [types.TextContent(type="text", text=text)]

        @app.list_resources()
        async def handle_list_resources() -> list[types.Resource]:
            return [
                types.Resource(uri=r.uri, name=r.name, description=r.description, mimeType=r.mime_type)
                for r in self.resources.list()
            ]

        @app.list_resource_templates()
        async def handle_list_resource_templates() -> list[types.ResourceTemplate]:
            return [
                types.ResourceTemplate(uriTemplate=t.uri, name=t.name, description=t.description,
                                       mimeType=t.mime_type)
                for t in self.resources.templates()
            ]

        @app.read_resource()
        async def handle_read_resource(uri) -> str:
            return await asyncio.to_thread(self.resources.read, str(uri))

    async def call_tool(self, name: str, arguments: dict) -> str:
        """Run a tool off the event loop; errors propagate to the client as tool errors"""
        logger.debug(f"Tool call: {name} {arguments}")
        try:
            return await asyncio.to_thread(self.tools.dispatch, name, arguments)
        except (ArkError, OSError) as e:
            logger.warning(f"Tool {name} failed: {e}")
            raise

    async def run(self):
        """Serve over stdio until the client disconnects"""
        if self.watcher is not None:
            self.watcher.start()
        try:
            async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
                logger.info(f"Serving {self.root} as {SERVER_NAME} {__version__}")
                await self.app.run(
                    read_stream,
                    write_stream,
                    InitializationOptions(
                        server_name=SERVER_NAME,
                        server_version=__version__,
                        capabilities=self.app.get_capabilities(
                            notification_options=NotificationOptions(),
                            experimental_capabilities={},
                        ),
                    ),
                )
        finally:
            if self.watcher is not None:
                self.watcher.stop()


def serve(options: ServeOptions) -> None:
    asyncio.run(ArkMCPServer(options).run())
