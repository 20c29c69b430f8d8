"""
XML writer.

Directories become nested ``<directory>`` elements and files become
``<file>`` elements holding their content in CDATA. Within a directory,
subdirectories come before files and names sort case-insensitively.
"""

import logging
import os
from typing import TextIO
from xml.sax.saxutils import quoteattr

from ..content import detect_language
from ..walker import Entry, list_admitted, tree_string
from .base import Dumper, DumpStats
from .description import load_description, xml_description

logger = logging.getLogger("ark-dumper-xml")

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def cdata(text: str) -> str:
    """Wrap text in CDATA, splitting any embedded ``]]>``"""
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def _xml_order(child):
    name, _, is_dir = child
    return (not is_dir, name.lower())


class XmlDumper(Dumper):

    def write(self, out: TextIO) -> DumpStats:
        extra = load_description(self.settings.description)
        out.write(XML_DECLARATION)
        out.write("<ProjectDump>\n")
        out.write(xml_description(self.project_name, self.root, extra) + "\n")
        out.write("<Tree>\n")
        out.write(cdata("\n" + tree_string(self.root, self.config, self.exclude_paths) + "\n") + "\n")
        out.write("</Tree>\n")

        # ("dir", path) opens an element and queues its children, ("end",) closes it
        stack = self._children(self.root)
        while stack:
            item = stack.pop()
            kind = item[0]
            if kind == "end":
                out.write("</directory>\n")
            elif kind == "dir":
                _, name, path = item
                out.write(f"<directory name={quoteattr(name)}>\n")
                stack.append(("end",))
                stack.extend(self._children(path))
            else:
                _, name, path = item
                self._write_file(out, name, path)

        out.write("</ProjectDump>\n")
        return self.stats

    def _children(self, directory: str):
        items = []
        for name, path, is_dir in sorted(list_admitted(directory, self.config, self.exclude_paths), key=_xml_order):
            if is_dir:
                items.append(("dir", name, path))
            else:
                items.append(("file", name, path))
        items.reverse()
        return items

    def _write_file(self, out: TextIO, name: str, path: str) -> None:
        entry = Entry(
            path=path,
            rel_path=os.path.relpath(path, self.root).replace(os.sep, "/"),
            name=name,
            is_dir=False,
            depth=0,
            is_last=False,
        )
        text = self.load(entry)
        if text is None:
            return
        language = detect_language(path)
        out.write(f"<file name={quoteattr(name)} language={quoteattr(language)}>")
        out.write(cdata(text))
        out.write("</file>\n")
        self.stats.files_written += 1
