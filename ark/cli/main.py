#!/usr/bin/env python3
"""
ark command line.

    ark [options] DIR              dump DIR into one file
    ark mcp-server [options]       serve a directory over MCP (stdio)
    ark check-ignore [-v] PATH...  explain ignore decisions, like git check-ignore
"""

import argparse
import os
import sys
from typing import List, Optional

from .. import __version__
from ..dumpers import DumpSettings, dump
from ..exceptions import ArkError, ConfigurationError
from ..ignore import build_ignore_set, explain
from ..options import (
    DEFAULT_SCAN_BUFFER,
    SWITCH_OFF,
    SWITCH_ON,
    DumpOptions,
    FilterOptions,
    ServeOptions,
    parse_switch,
)
from ..admission import split_list
from ..utils import configure_logging, get_logger

logger = get_logger("ark-cli")

COMMANDS = ("mcp-server", "check-ignore")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("filters")
    group.add_argument("--allow-gitignore", default=SWITCH_ON, metavar="on|off",
                       help="Honour .gitignore files (default: on)")
    group.add_argument("--additionally-ignorerule", metavar="FILES",
                       help="Comma separated extra ignore rule files, anchored at the root")
    group.add_argument("--include-ext", metavar="EXTS", help="Only include these extensions (e.g. .go,.md)")
    group.add_argument("--exclude-ext", metavar="EXTS", help="Exclude these extensions")
    group.add_argument("--exclude-dir", metavar="NAMES", help="Exclude directories with these names")
    group.add_argument("--pattern-regex", metavar="REGEX", help="Only include file names matching REGEX")
    group.add_argument("--exclude-file-regex", metavar="REGEX", help="Exclude file names matching REGEX")
    group.add_argument("--exclude-dir-regex", metavar="REGEX", help="Exclude directory paths matching REGEX")
    group.add_argument("--ignore-dotfile", default=SWITCH_OFF, metavar="on|off",
                       help="Skip entries whose name starts with a dot (default: off)")


def filters_from_args(args: argparse.Namespace) -> FilterOptions:
    return FilterOptions(
        allow_gitignore=args.allow_gitignore,
        additionally_ignorerule=args.additionally_ignorerule,
        include_ext=args.include_ext,
        exclude_ext=args.exclude_ext,
        exclude_dir=args.exclude_dir,
        pattern_regex=args.pattern_regex,
        exclude_file_regex=args.exclude_file_regex,
        exclude_dir_regex=args.exclude_dir_regex,
        ignore_dotfile=args.ignore_dotfile,
    )


class ArkCLI:
    """Main ark CLI implementation"""

    def __init__(self, stdout=None, stderr=None):
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr

    def dump_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="ark",
            description="Dump a directory tree into a single text, Markdown, XML or arklite file",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=self.get_usage_examples(),
        )
        parser.add_argument("dirname", nargs="?", default=".", help="Directory to dump (default: .)")
        parser.add_argument("-o", "--output", "--output-filename", dest="output", metavar="FILE",
                            help="Output file, '-' for stdout (default: ark_output.<ext>)")
        parser.add_argument("-f", "--output-format", metavar="FORMAT",
                            help="plaintext, markdown, xml or arklite (default: from output name)")
        parser.add_argument("-b", "--scan-buffer", default=DEFAULT_SCAN_BUFFER, metavar="SIZE",
                            help="Longest accepted line, e.g. 512K or 10M (default: 10M)")
        parser.add_argument("-n", "--with-line-number", default=SWITCH_OFF, metavar="on|off",
                            help="Prefix lines with their number in plaintext output (default: off)")
        parser.add_argument("--mask-secrets", default=SWITCH_ON, metavar="on|off",
                            help="Mask likely secrets (default: on)")
        parser.add_argument("-D", "--delete-comments", action="store_true", help="Strip comments")
        parser.add_argument("-s", "--skip-non-utf8", action="store_true",
                            help="Silently skip files that are not UTF-8")
        parser.add_argument("--description", metavar="TEXT_OR_FILE",
                            help="Project description placed in the header")
        parser.add_argument("--log-level", help="Log level (default: ARK_LOG_LEVEL or WARNING)")
        parser.add_argument("-V", "--version", action="version", version=f"ark {__version__}")
        add_filter_arguments(parser)
        return parser

    def serve_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(prog="ark mcp-server",
                                         description="Serve a directory over MCP (stdio transport)")
        parser.add_argument("-r", "--root", default=".", help="Directory to serve (default: .)")
        parser.add_argument("-f", "--output-format", default="auto", metavar="FORMAT",
                            help="Preferred format for bulk responses (default: auto)")
        parser.add_argument("--mask-secrets", default=SWITCH_ON, metavar="on|off")
        parser.add_argument("-D", "--delete-comments", action="store_true")
        parser.add_argument("-s", "--skip-non-utf8", action="store_true")
        parser.add_argument("--watch", default=SWITCH_ON, metavar="on|off",
                            help="Track filesystem changes (default: on)")
        parser.add_argument("--refresh-interval", type=float, default=0.5, metavar="SECONDS")
        parser.add_argument("--log-level", help="Log level (default: ARK_LOG_LEVEL or INFO)")
        add_filter_arguments(parser)
        return parser

    def check_ignore_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(prog="ark check-ignore",
                                         description="Show which ignore rule decides each path")
        parser.add_argument("paths", nargs="+", metavar="PATH")
        parser.add_argument("-r", "--root", default=".", help="Scan root (default: .)")
        parser.add_argument("-v", "--verbose", action="store_true",
                            help="Print source:line:pattern for the deciding rule")
        parser.add_argument("-n", "--non-matching", action="store_true",
                            help="With -v, also print paths no rule matched")
        parser.add_argument("--allow-gitignore", default=SWITCH_ON, metavar="on|off")
        parser.add_argument("--additionally-ignorerule", metavar="FILES")
        parser.add_argument("--log-level")
        return parser

    def get_usage_examples(self) -> str:
        return """
Examples:
  ark .                                   # Dump current directory to ark_output.txt
  ark -o dump.md src                      # Markdown, format taken from the file name
  ark --include-ext .go,.mod -o - .       # Only Go sources, to stdout
  ark --exclude-dir vendor,testdata .     # Skip directories by name
  ark mcp-server --root .                 # Serve the project over MCP
  ark check-ignore -v build/app.o         # Which rule ignores a path

Environment Variables:
  ARK_LOG_LEVEL     TRACE, DEBUG, INFO, WARNING or ERROR
  ARK_LOG_FORMAT    'json' for structured logs
  ARK_LOG_FILE      Also write logs to this (rotating) file
"""

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Main entry point"""
        argv = list(sys.argv[1:] if argv is None else argv)
        command = argv[0] if argv and argv[0] in COMMANDS else "dump"
        if command != "dump":
            argv = argv[1:]

        handler = getattr(self, f"cmd_{command.replace('-', '_')}")
        try:
            return handler(argv)
        except ConfigurationError as e:
            print(f"ark: error: {e}", file=self.stderr)
            return EXIT_USAGE
        except ArkError as e:
            print(f"ark: error: {e}", file=self.stderr)
            return EXIT_ERROR

    # Command handlers

    def cmd_dump(self, argv: List[str]) -> int:
        args = self.dump_parser().parse_args(argv)
        configure_logging(args.log_level, default_level="WARNING")

        options = DumpOptions(
            target_dir=args.dirname,
            output=args.output,
            output_format=args.output_format,
            scan_buffer=args.scan_buffer,
            with_line_number=args.with_line_number,
            mask_secrets=args.mask_secrets,
            delete_comments=args.delete_comments,
            skip_non_utf8=args.skip_non_utf8,
            description=args.description,
            filters=filters_from_args(args),
        ).normalize()

        # Rules are fully validated before the output file is created
        admission = options.filters.build_admission(options.target_dir)
        settings = DumpSettings(
            mask_secrets=options.masking,
            delete_comments=options.delete_comments,
            with_line_number=options.line_numbers,
            skip_non_utf8=options.skip_non_utf8,
            scan_buffer_bytes=options.scan_buffer_bytes,
            description=options.description,
        )

        try:
            stats = dump(options.target_dir, options.output, options.format, admission, settings)
        except KeyboardInterrupt:
            logger.warning(f"Interrupted; partial output left in {options.output}")
            print(f"ark: interrupted, partial output written to {options.output}", file=self.stderr)
            return EXIT_INTERRUPTED
        except OSError as e:
            print(f"ark: error: cannot write {options.output}: {e}", file=self.stderr)
            return EXIT_ERROR

        if options.output != "-":
            print(f"Wrote {stats.files_written} files to {options.output}"
                  + (f" ({stats.files_skipped} skipped)" if stats.files_skipped else ""),
                  file=self.stdout)
        return EXIT_OK

    def cmd_mcp_server(self, argv: List[str]) -> int:
        args = self.serve_parser().parse_args(argv)
        configure_logging(args.log_level, default_level="INFO")

        options = ServeOptions(
            root=args.root,
            output_format=args.output_format,
            mask_secrets=args.mask_secrets,
            delete_comments=args.delete_comments,
            skip_non_utf8=args.skip_non_utf8,
            watch=args.watch,
            refresh_interval=args.refresh_interval,
            filters=filters_from_args(args),
        ).normalize()

        # Imported here so the dump command does not load the MCP SDK
        from ..mcp.server import serve

        try:
            serve(options)
        except KeyboardInterrupt:
            logger.info("MCP server stopped")
            return EXIT_INTERRUPTED
        return EXIT_OK

    def cmd_check_ignore(self, argv: List[str]) -> int:
        args = self.check_ignore_parser().parse_args(argv)
        configure_logging(args.log_level, default_level="WARNING")

        ignore_set = build_ignore_set(
            parse_switch(args.allow_gitignore, "--allow-gitignore"),
            args.root,
            split_list(args.additionally_ignorerule),
        )

        any_ignored = False
        for path in args.paths:
            matched, pattern = explain(ignore_set, os.path.abspath(path))
            any_ignored = any_ignored or matched
            if args.verbose:
                if pattern is not None:
                    print(f"{pattern.describe()}\t{path}", file=self.stdout)
                elif args.non_matching:
                    print(f"::\t{path}", file=self.stdout)
            elif matched:
                print(path, file=self.stdout)

        return EXIT_OK if any_ignored else EXIT_ERROR


def main(argv: Optional[List[str]] = None) -> int:
    """Console script entry point"""
    return ArkCLI().run(argv)


if __name__ == "__main__":
    sys.exit(main())
