"""
Header blocks that explain the dump layout to a reader (or a model).
"""

import os
from typing import Optional
from xml.sax.saxutils import escape

TEXT_TEMPLATE = """# Project Description

Project: {name}
Root: {root}

This file contains the directory tree of the project followed by the
content of every included file. Each file starts with a line of the form
"=== path/to/file ===".
{extra}
"""

MARKDOWN_TEMPLATE = """# Project Description

- **Project**: {name}
- **Root**: `{root}`

This document contains the directory tree of the project followed by the
content of every included file. Each file starts with a `# File: path`
heading and its content is fenced with the detected language.
{extra}
"""

XML_TEMPLATE = """<Description>
<Project>{name}</Project>
<Root>{root}</Root>
<Layout>The Tree element holds the directory tree. Directory and File elements mirror the project layout; file content is stored in CDATA sections.</Layout>{extra}
</Description>"""

ARKLITE_TEMPLATE = """# Arklite Dump
Project: {name}
Root: {root}
Format: one "@path" line per file, followed by its content on a single line.
Comments and blank lines are removed, lines are trimmed and joined with "␤".
{extra}
"""


def load_description(value: Optional[str]) -> str:
    """``--description`` value: the content of a file, or the text itself"""
    if not value:
        return ""
    if os.path.isfile(value):
        with open(value, "r", encoding="utf-8") as f:
            return f.read().strip()
    return value.strip()


def text_description(name: str, root: str, extra: str = "") -> str:
    return TEXT_TEMPLATE.format(name=name, root=root, extra=f"\n{extra}\n" if extra else "")


def markdown_description(name: str, root: str, extra: str = "") -> str:
    return MARKDOWN_TEMPLATE.format(name=name, root=root, extra=f"\n{extra}\n" if extra else "")


def xml_description(name: str, root: str, extra: str = "") -> str:
    extra_xml = f"\n<Notes>{escape(extra)}</Notes>" if extra else ""
    return XML_TEMPLATE.format(name=escape(name), root=escape(root), extra=extra_xml)


def arklite_description(name: str, root: str, extra: str = "") -> str:
    return ARKLITE_TEMPLATE.format(name=name, root=root, extra=f"{extra}\n" if extra else "")
