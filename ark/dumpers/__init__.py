"""
Output writers and the dump entry point.
"""

import logging
import sys
from typing import Optional

from ..admission import AdmissionConfig
from ..options import OutputFormat
from ..utils import log_with_context
from .arklite import ArkliteDumper, compact
from .base import Dumper, DumpSettings, DumpStats
from .text import MarkdownDumper, PlainTextDumper
from .xml_dumper import XmlDumper, cdata

logger = logging.getLogger("ark-dumper")

DUMPERS = {
    OutputFormat.PLAINTEXT: PlainTextDumper,
    OutputFormat.MARKDOWN: MarkdownDumper,
    OutputFormat.XML: XmlDumper,
    OutputFormat.ARKLITE: ArkliteDumper,
}


def create_dumper(output_format: OutputFormat, root: str, config: AdmissionConfig,
                  settings: Optional[DumpSettings] = None, exclude_paths=()) -> Dumper:
    try:
        dumper_class = DUMPERS[output_format]
    except KeyError:
        raise ValueError(f"No writer for output format {output_format.value!r}") from None
    return dumper_class(root, config, settings, exclude_paths)


def dump(root: str, output: str, output_format: OutputFormat, config: AdmissionConfig,
         settings: Optional[DumpSettings] = None) -> DumpStats:
    """
    Dump ``root`` into ``output`` (``-`` for stdout).

    The output file is never part of its own dump. On interruption the
    file is flushed and closed before the exception propagates.
    """
    if output == "-":
        dumper = create_dumper(output_format, root, config, settings)
        stats = dumper.write(sys.stdout)
        sys.stdout.flush()
        return stats

    dumper = create_dumper(output_format, root, config, settings, exclude_paths=[output])
    with open(output, "w", encoding="utf-8", newline="\n") as out:
        stats = dumper.write(out)

    log_with_context(logger, logging.INFO, f"Wrote {stats.files_written} files to {output}",
                     output=output, written=stats.files_written, skipped=stats.files_skipped)
    return stats


__all__ = [
    'ArkliteDumper',
    'DUMPERS',
    'DumpSettings',
    'DumpStats',
    'Dumper',
    'MarkdownDumper',
    'PlainTextDumper',
    'XmlDumper',
    'cdata',
    'compact',
    'create_dumper',
    'dump',
]
