"""
Logging configuration for ark.

Provides environment-aware logging that:
- Writes to stderr only, so stdout stays free for dumps and the MCP stdio transport
- Outputs one JSON object per line when ARK_LOG_FORMAT=json
- Optionally mirrors records into a rotating log file (ARK_LOG_FILE)
- Includes a custom TRACE level for per-entry admission decisions
"""

import sys
import logging
import json
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional, Any

# Define TRACE level (lower number = more detailed)
TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

HUMAN_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'

NOISY_LIBRARIES = [
    'watchdog',
    'mcp',
    'anyio',
    'asyncio',
]


def trace(self, message, *args, **kwargs):
    if self.isEnabledFor(TRACE_LEVEL):
        self._log(TRACE_LEVEL, message, args, **kwargs)


def add_trace_to_logger():
    """Ensure trace method is available on all logger instances"""
    if not hasattr(logging.Logger, 'trace'):
        logging.Logger.trace = trace


add_trace_to_logger()


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log collectors"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'component': record.name,
            'message': record.getMessage(),
            'pid': os.getpid(),
        }

        if hasattr(record, 'extra'):
            log_data.update(record.extra)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def resolve_level(level_str: str) -> int:
    """Map a level name (including TRACE) to its numeric value"""
    name = level_str.strip().upper()
    if name == 'TRACE':
        return TRACE_LEVEL
    if name == 'WARN':
        name = 'WARNING'
    return getattr(logging, name, logging.INFO)


def configure_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    enable_rotation: bool = True,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    quiet_libraries: bool = True,
    default_level: str = 'WARNING',
) -> None:
    """
    Configure logging based on environment.

    Args:
        log_level: Override log level (defaults to ARK_LOG_LEVEL, then LOG_LEVEL)
        log_file: Path to an additional log file (defaults to ARK_LOG_FILE)
        enable_rotation: Enable log rotation for the file handler
        max_bytes: Maximum size of log file before rotation
        backup_count: Number of backup files to keep
        quiet_libraries: Suppress verbose third-party library logs
        default_level: Level used when neither argument nor environment sets one
    """
    level_str = (
        log_level
        or os.environ.get('ARK_LOG_LEVEL')
        or os.environ.get('LOG_LEVEL')
        or default_level
    )
    level = resolve_level(level_str)
    use_json = os.environ.get('ARK_LOG_FORMAT', '').lower() == 'json'

    root_logger = logging.getLogger()
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stderr)
    if use_json:
        console_handler.setFormatter(JsonFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root_logger.addHandler(console_handler)

    log_file = log_file or os.environ.get('ARK_LOG_FILE')
    if log_file:
        if enable_rotation:
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count
            )
        else:
            file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JsonFormatter() if use_json else logging.Formatter(HUMAN_FORMAT))
        root_logger.addHandler(file_handler)

    root_logger.setLevel(level)

    if quiet_libraries:
        for lib in NOISY_LIBRARIES:
            logging.getLogger(lib).setLevel(max(level, logging.WARNING))

    logger = logging.getLogger('ark')
    logger.debug(f"Logging configured - Level: {logging.getLevelName(level)}, JSON: {use_json}")


def get_logger(name: str) -> logging.Logger:
    """Named logger that also has a ``trace()`` method"""
    add_trace_to_logger()
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context: Any
) -> None:
    """
    Log a message with additional context fields.

    Args:
        logger: Logger instance
        level: Log level (e.g., logging.INFO)
        message: Log message
        **context: Additional fields to include in structured logs
    """
    extra = {'extra': context} if context else {}
    logger.log(level, message, extra=extra)
