"""
Plain text and Markdown writers.
"""

import logging
from typing import TextIO

from ..content import detect_language
from ..walker import tree_string
from .base import Dumper, DumpStats, split_lines
from .description import load_description, markdown_description, text_description

logger = logging.getLogger("ark-dumper-text")


class PlainTextDumper(Dumper):
    """``=== path ===`` separated dump, optionally with line numbers"""

    def header(self) -> str:
        extra = load_description(self.settings.description)
        return text_description(self.project_name, self.root, extra)

    def write(self, out: TextIO) -> DumpStats:
        out.write(self.header())
        out.write(tree_string(self.root, self.config, self.exclude_paths) + "\n")

        for entry in self.files():
            text = self.load(entry)
            if text is None:
                continue
            out.write(f"\n=== {entry.rel_path} ===\n")
            for number, line in enumerate(split_lines(text), 1):
                if self.settings.with_line_number:
                    out.write(f"{number:6d}: {line}\n")
                else:
                    out.write(line + "\n")
            self.stats.files_written += 1

        return self.stats


class MarkdownDumper(Dumper):
    """Fenced code block per file; line numbers are never added"""

    def header(self) -> str:
        extra = load_description(self.settings.description)
        return markdown_description(self.project_name, self.root, extra)

    def write(self, out: TextIO) -> DumpStats:
        out.write(self.header())
        out.write("# Project Tree\n\n```\n" + tree_string(self.root, self.config, self.exclude_paths) + "\n```\n")

        for entry in self.files():
            text = self.load(entry)
            if text is None:
                continue
            out.write("\n---\n\n")
            out.write(f"# File: {entry.rel_path}\n")
            out.write(f"```{detect_language(entry.path)}\n")
            for line in split_lines(text):
                out.write(line + "\n")
            out.write("```\n")
            self.stats.files_written += 1

        return self.stats
