"""
ark - dump a directory tree into a single artifact.

The ignore engine (``ark.ignore``) and the admission filter
(``ark.admission``) decide which files are included; the dumpers,
the MCP server and the live watcher consume those decisions.
"""

__version__ = "0.4.0"
