"""MCP server for ark: tools, resources and the stdio entry point"""
