"""
Base class for output writers.

A writer walks the admitted tree once and streams every file into an
open text handle. Files that cannot be read are logged and skipped; the
rest of the dump continues.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, TextIO

from ..admission import AdmissionConfig
from ..content import NotTextError, delete_comments, mask_secrets, read_text
from ..ignore.compiler import clean_dir
from ..walker import Entry, walk

logger = logging.getLogger("ark-dumper")


@dataclass
class DumpSettings:
    """Content options applied to every dumped file"""
    mask_secrets: bool = True
    delete_comments: bool = False
    with_line_number: bool = False
    skip_non_utf8: bool = False
    scan_buffer_bytes: Optional[int] = None
    description: Optional[str] = None


@dataclass
class DumpStats:
    files_written: int = 0
    files_skipped: int = 0
    errors: List[str] = field(default_factory=list)


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` only (dropping a CR before it); no empty line after a final newline"""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class Dumper(ABC):
    """Base class for all output formats"""

    def __init__(self, root: str, config: AdmissionConfig, settings: Optional[DumpSettings] = None,
                 exclude_paths=()):
        self.root = clean_dir(root)
        self.project_name = os.path.basename(self.root) or self.root
        self.config = config
        self.settings = settings or DumpSettings()
        self.exclude_paths = {os.path.abspath(p) for p in exclude_paths}
        self.stats = DumpStats()

    def files(self):
        """Admitted file entries in walk order"""
        for entry in walk(self.root, self.config, self.exclude_paths):
            if not entry.is_dir:
                yield entry

    def load(self, entry: Entry) -> Optional[str]:
        """
        Read and transform one file.

        Returns:
            Processed text, or None when the file is skipped
        """
        try:
            text = read_text(entry.path, self.settings.scan_buffer_bytes)
        except NotTextError as e:
            self.stats.files_skipped += 1
            if e.kind == NotTextError.LINE_LENGTH or (
                    e.kind == NotTextError.ENCODING and not self.settings.skip_non_utf8):
                logger.warning(f"Skipping {entry.rel_path}: {e.reason}")
                self.stats.errors.append(str(e))
            else:
                logger.debug(f"Skipping {entry.rel_path}: {e.reason}")
            return None
        except OSError as e:
            self.stats.files_skipped += 1
            logger.warning(f"Skipping unreadable file {entry.rel_path}: {e}")
            self.stats.errors.append(f"{entry.path}: {e}")
            return None

        return self.transform(text, entry)

    def transform(self, text: str, entry: Entry) -> str:
        if self.settings.delete_comments:
            text = delete_comments(text, entry.path)
        if self.settings.mask_secrets:
            text = mask_secrets(text)
        return text

    @abstractmethod
    def write(self, out: TextIO) -> DumpStats:
        """Write the whole dump to ``out``"""
        raise NotImplementedError("Subclasses must implement write method")
