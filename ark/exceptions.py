"""
Exception hierarchy for ark.

Configuration problems are raised before a scan starts; I/O problems
while discovering ignore files abort the ignore-set build.
"""

from typing import Optional


class ArkError(Exception):
    """Base class for all ark errors"""


class ConfigurationError(ArkError):
    """An option or rule is invalid.

    Args:
        message: Human readable description
        option: Name of the offending option, if any
    """

    def __init__(self, message: str, option: Optional[str] = None):
        self.option = option
        if option:
            message = f"{option}: {message}"
        super().__init__(message)


class IgnorePatternError(ConfigurationError):
    """A line of an ignore file could not be compiled"""

    def __init__(self, source: str, line_no: int, raw: str, reason: str):
        self.source = source
        self.line_no = line_no
        self.raw = raw
        self.reason = reason
        super().__init__(f"{source}:{line_no}: invalid pattern {raw!r}: {reason}")


class OptionError(ConfigurationError):
    """One or more command line options failed validation"""

    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class IgnoreBuildError(ArkError):
    """Ignore file discovery failed with an I/O error"""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"failed to build ignore rules at {path}: {reason}")


class ToolArgumentError(ArkError):
    """An MCP tool was called with invalid arguments"""


class AccessDeniedError(ArkError):
    """A requested path is outside the served root or filtered out"""
