# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logger for bertfx.

Every log entry is a single JSON line: timestamped, leveled, and tagged with
the source module. print() is not used anywhere in the package.

How this works:
  - We use Python's standard `logging` module under the hood, but replace the
    default formatter with JsonFormatter, which serializes every log record
    into a single JSON line.
  - One handler always writes to stdout, a second one optionally to a file.
  - The factory function `get_logger` is the only way to create loggers.

The JSON structure looks like:
  {"ts": "2026-...", "level": "INFO", "module": "bertfx.extraction.engine.core",
   "msg": "Truncating token sequence", "original_tokens": 640, ...}
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Attributes every LogRecord carries. Anything else came in through `extra`.
_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "relativeCreated",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "pathname",
        "filename",
        "module",
        "levelno",
        "levelname",
        "processName",
        "process",
        "threadName",
        "thread",
        "message",
        "msecs",
        "taskName",
    }
)


class JsonFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Each log entry contains four mandatory fields:
      ts     - ISO 8601 UTC timestamp
      level  - log level name
      module - the logger name (usually the Python module path)
      msg    - the formatted message string

    Fields passed through the `extra` kwarg are merged in as additional
    context. If the record carries exception info, the formatted traceback
    goes under "exc".
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _resolve_log_level(level_name: str) -> int:
    """Turn a level name string into the corresponding logging constant."""
    upper = level_name.upper()
    if upper not in _VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level '{level_name}'. Must be one of: {', '.join(sorted(_VALID_LOG_LEVELS))}"
        )
    return getattr(logging, upper)


# Set by set_package_log_file; loggers created afterwards pick it up too.
_package_log_file: Optional[Path] = None


def _is_package_logger(name: str) -> bool:
    return name == "bertfx" or name.startswith("bertfx.")


def _package_loggers() -> list[logging.Logger]:
    return [
        logging.getLogger(name)
        for name in list(logging.Logger.manager.loggerDict)
        if _is_package_logger(name)
    ]


def _attach_file_handler(logger: logging.Logger, log_file: Path, level: int) -> None:
    """Add a JSON file handler for log_file unless the logger already has one."""
    target = os.path.abspath(log_file)
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return

    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(JsonFormatter())
    logger.addHandler(file_handler)


def get_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Create a structured JSON logger.

    Every module calls this once at the top and keeps the returned instance.

    Args:
        name: Logger name, typically __name__ of the calling module.
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        log_file: Optional path to a log file. If provided, logs go to both
                  stdout and the file. bertfx loggers fall back to the file
                  set with set_package_log_file.

    Returns:
        A configured logging.Logger that outputs structured JSON.
    """
    logger = logging.getLogger(name)
    level = _resolve_log_level(log_level)
    logger.setLevel(level)

    if log_file is None and _is_package_logger(name):
        log_file = _package_log_file

    # Calling get_logger twice for the same name must not stack handlers.
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        if log_file is not None:
            _attach_file_handler(logger, log_file, level)
        return logger

    stdout_handler = logging.StreamHandler(stream=sys.stdout)
    stdout_handler.setLevel(level)
    stdout_handler.setFormatter(JsonFormatter())
    logger.addHandler(stdout_handler)

    if log_file is not None:
        _attach_file_handler(logger, log_file, level)

    logger.propagate = False

    return logger


def set_package_log_level(log_level: str) -> None:
    """
    Apply one log level to every bertfx logger created so far.

    Module-level loggers are created at import time with the default level,
    long before the CLI has parsed --log-level. This brings them in line.
    """
    level = _resolve_log_level(log_level)
    for existing in _package_loggers():
        existing.setLevel(level)
        for handler in existing.handlers:
            handler.setLevel(level)


def set_package_log_file(log_file: Optional[Path]) -> None:
    """
    Send every bertfx logger's records to log_file as well as stdout.

    Loggers created later get the same file through get_logger. Passing None
    detaches and closes the package file handlers again.
    """
    global _package_log_file
    previous = _package_log_file
    _package_log_file = log_file

    for existing in _package_loggers():
        if previous is not None:
            target = os.path.abspath(previous)
            for handler in list(existing.handlers):
                if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
                    existing.removeHandler(handler)
                    handler.close()
        if log_file is not None and existing.handlers:
            _attach_file_handler(existing, log_file, existing.level)
