"""
Option loader: raw command line strings to a normalized configuration.

Every problem is collected and reported together in one OptionError, so
a user fixes all their flags in one round.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .admission import AdmissionConfig, compile_option_regex, split_list
from .exceptions import ConfigurationError, OptionError
from .ignore import build_ignore_set

logger = logging.getLogger("ark-options")

SWITCH_ON = "on"
SWITCH_OFF = "off"

DEFAULT_SCAN_BUFFER = "10M"

_BYTE_SIZE_RE = re.compile(
    r"^(\d+(?:\.\d+)?)(B|K|KB|KI|KIB|M|MB|MI|MIB|G|GB|GI|GIB|T|TB|TI|TIB|P|PB|PI|PIB)?$",
    re.IGNORECASE,
)

_UNIT_POWERS = {"": 0, "B": 0, "K": 1, "M": 2, "G": 3, "T": 4, "P": 5}


def parse_switch(value, option: str) -> bool:
    """``on``/``off`` (case-insensitive) to bool; booleans pass through"""
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized == SWITCH_ON:
        return True
    if normalized == SWITCH_OFF:
        return False
    raise ConfigurationError(f"invalid value {value!r}, allowed values are 'on' and 'off'", option=option)


def parse_byte_size(value: str) -> int:
    """
    Parse a size such as ``512``, ``64K``, ``1.5MiB`` or ``10M``.

    All units are 1024-based.

    Raises:
        ValueError: If the string is not a size
    """
    match = _BYTE_SIZE_RE.match(value.strip())
    if not match:
        raise ValueError(f"invalid byte size {value!r}")
    number, unit = match.groups()
    unit = (unit or "").upper()
    return int(float(number) * (1024 ** _UNIT_POWERS[unit[:1]]))


class OutputFormat(Enum):
    PLAINTEXT = "plaintext"
    MARKDOWN = "markdown"
    XML = "xml"
    ARKLITE = "arklite"
    AUTO = "auto"

    @classmethod
    def parse(cls, value: str) -> "OutputFormat":
        key = value.strip()
        name = _FORMAT_ALIASES.get(key) or _FORMAT_ALIASES.get(key.lower())
        if name is None:
            raise ValueError(
                f"invalid value {value!r}, allowed values are 'markdown', 'plaintext', 'xml', 'arklite', 'auto'"
            )
        return cls(name)

    @classmethod
    def from_filename(cls, filename: str) -> Optional["OutputFormat"]:
        ext = os.path.splitext(filename)[1].lstrip(".").lower()
        name = _FORMAT_ALIASES.get(ext)
        if name is None or name == cls.AUTO.value:
            return None
        return cls(name)

    @property
    def default_filename(self) -> str:
        return f"ark_output{_DEFAULT_EXTENSIONS.get(self, '.txt')}"


_FORMAT_ALIASES = {
    "markdown": "markdown",
    "mark_down": "markdown",
    "mark-down": "markdown",
    "md": "markdown",
    "mdn": "markdown",
    "mkd": "markdown",
    "plaintext": "plaintext",
    "plain_text": "plaintext",
    "plain-text": "plaintext",
    "text": "plaintext",
    "txt": "plaintext",
    "xml": "xml",
    "arklite": "arklite",
    "arkl": "arklite",
    "ark": "arklite",
    "al": "arklite",
    "compact": "arklite",
    "auto": "auto",
}

_DEFAULT_EXTENSIONS = {
    OutputFormat.PLAINTEXT: ".txt",
    OutputFormat.MARKDOWN: ".md",
    OutputFormat.XML: ".xml",
    OutputFormat.ARKLITE: ".arklite",
}


@dataclass
class FilterOptions:
    """Raw filter flags shared by the dump command and the server"""
    allow_gitignore: str = SWITCH_ON
    additionally_ignorerule: Optional[str] = None
    include_ext: Optional[str] = None
    exclude_ext: Optional[str] = None
    exclude_dir: Optional[str] = None
    pattern_regex: Optional[str] = None
    exclude_file_regex: Optional[str] = None
    exclude_dir_regex: Optional[str] = None
    ignore_dotfile: str = SWITCH_OFF

    def validate(self, problems: List[str]) -> None:
        """Append a message for every invalid flag to ``problems``"""
        for option, value in (
            ("--allow-gitignore", self.allow_gitignore),
            ("--ignore-dotfile", self.ignore_dotfile),
        ):
            try:
                parse_switch(value, option)
            except ConfigurationError as e:
                problems.append(str(e))

        for option, value in (
            ("--pattern-regex", self.pattern_regex),
            ("--exclude-file-regex", self.exclude_file_regex),
            ("--exclude-dir-regex", self.exclude_dir_regex),
        ):
            try:
                compile_option_regex(value, option)
            except ConfigurationError as e:
                problems.append(str(e))

        for path in split_list(self.additionally_ignorerule):
            if not os.path.isfile(path):
                problems.append(f"--additionally-ignorerule: file not found: {path}")

    def build_admission(self, root: str) -> AdmissionConfig:
        """
        Discover ignore files under ``root`` and normalize every filter.

        Raises:
            ConfigurationError: For a bad flag or ignore rule
            IgnoreBuildError: If ignore discovery hits an I/O error
        """
        ignore_set = build_ignore_set(
            parse_switch(self.allow_gitignore, "--allow-gitignore"),
            root,
            split_list(self.additionally_ignorerule),
        )
        return AdmissionConfig.from_options(
            ignore_set=ignore_set,
            include_ext=self.include_ext,
            exclude_ext=self.exclude_ext,
            exclude_dirs=self.exclude_dir,
            pattern_regex=self.pattern_regex,
            exclude_file_regex=self.exclude_file_regex,
            exclude_dir_regex=self.exclude_dir_regex,
            ignore_dotfiles=parse_switch(self.ignore_dotfile, "--ignore-dotfile"),
        )


@dataclass
class DumpOptions:
    """Options of the dump command, normalized in place by ``normalize``"""
    target_dir: str = "."
    output: Optional[str] = None
    output_format: Optional[str] = None
    scan_buffer: str = DEFAULT_SCAN_BUFFER
    with_line_number: str = SWITCH_OFF
    mask_secrets: str = SWITCH_ON
    delete_comments: bool = False
    skip_non_utf8: bool = False
    description: Optional[str] = None
    filters: FilterOptions = field(default_factory=FilterOptions)

    # Filled by normalize()
    format: OutputFormat = OutputFormat.PLAINTEXT
    scan_buffer_bytes: int = 0
    line_numbers: bool = False
    masking: bool = True

    def normalize(self) -> "DumpOptions":
        """
        Validate every flag and resolve derived values.

        Raises:
            OptionError: Listing every invalid flag
        """
        problems: List[str] = []

        if not os.path.isdir(self.target_dir):
            problems.append(f"target directory not found: {self.target_dir}")

        try:
            self.scan_buffer_bytes = parse_byte_size(self.scan_buffer)
        except ValueError as e:
            problems.append(f"--scan-buffer: {e}")

        for attr, option, raw in (
            ("line_numbers", "--with-line-number", self.with_line_number),
            ("masking", "--mask-secrets", self.mask_secrets),
        ):
            try:
                setattr(self, attr, parse_switch(raw, option))
            except ConfigurationError as e:
                problems.append(str(e))

        if self.output_format:
            try:
                self.format = OutputFormat.parse(self.output_format)
                if self.format is OutputFormat.AUTO:
                    problems.append("--output-format: 'auto' is only valid for mcp-server")
            except ValueError as e:
                problems.append(f"--output-format: {e}")
        elif self.output and self.output != "-":
            self.format = OutputFormat.from_filename(self.output) or OutputFormat.PLAINTEXT
        else:
            self.format = OutputFormat.PLAINTEXT

        if not self.output:
            self.output = self.format.default_filename

        self.filters.validate(problems)

        if problems:
            raise OptionError(problems)

        logger.debug(f"Dump options: format={self.format.value}, output={self.output}")
        return self


@dataclass
class ServeOptions:
    """Options of the ``mcp-server`` command"""
    root: str = "."
    output_format: str = "auto"
    mask_secrets: str = SWITCH_ON
    delete_comments: bool = False
    skip_non_utf8: bool = False
    watch: str = SWITCH_ON
    refresh_interval: float = 0.5
    filters: FilterOptions = field(default_factory=FilterOptions)

    format: OutputFormat = OutputFormat.AUTO
    masking: bool = True
    watching: bool = True

    def normalize(self) -> "ServeOptions":
        problems: List[str] = []

        if not os.path.isdir(self.root):
            problems.append(f"--root: directory not found: {self.root}")

        try:
            self.format = OutputFormat.parse(self.output_format)
        except ValueError as e:
            problems.append(f"--output-format: {e}")

        for attr, option, raw in (
            ("masking", "--mask-secrets", self.mask_secrets),
            ("watching", "--watch", self.watch),
        ):
            try:
                setattr(self, attr, parse_switch(raw, option))
            except ConfigurationError as e:
                problems.append(str(e))

        if self.refresh_interval <= 0:
            problems.append("--refresh-interval: must be positive")

        self.filters.validate(problems)

        if problems:
            raise OptionError(problems)
        return self
