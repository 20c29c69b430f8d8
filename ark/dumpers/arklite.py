"""
Arklite writer: a compact single-line-per-file form for feeding models.
"""

import logging
from typing import TextIO

from ..content import delete_comments, mask_secrets
from ..walker import Entry, tree_json_string
from .base import Dumper, DumpStats
from .description import arklite_description, load_description

logger = logging.getLogger("ark-dumper-arklite")

NEWLINE_TOKEN = "␤"


def compact(text: str) -> str:
    """Trim every line, drop blank ones, join the rest with the newline token"""
    return NEWLINE_TOKEN.join(line.strip() for line in text.split("\n") if line.strip())


class ArkliteDumper(Dumper):
    """Comments are always removed in this format"""

    def transform(self, text: str, entry: Entry) -> str:
        text = delete_comments(text, entry.path)
        if self.settings.mask_secrets:
            text = mask_secrets(text)
        return compact(text)

    def write(self, out: TextIO) -> DumpStats:
        extra = load_description(self.settings.description)
        out.write(arklite_description(self.project_name, self.root, extra))
        out.write("## Directory Tree (JSON)\n")
        out.write(tree_json_string(self.root, self.config, exclude=self.exclude_paths))
        out.write("\n\n")
        out.write("## File Dump\n")

        for entry in self.files():
            text = self.load(entry)
            if text is None:
                continue
            out.write(f"@{entry.rel_path}\n")
            out.write(text + "\n")
            self.stats.files_written += 1

        return self.stats
