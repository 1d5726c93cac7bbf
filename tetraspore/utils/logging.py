"""
Logging configuration for Tetraspore.

Provides formatted console output and optional file logging for the parser,
executors and processor.
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

LOGGER_PREFIX = "tetraspore"

# Module-level logger cache
_loggers: dict[str, logging.Logger] = {}


# ============================================================================
# Custom Formatter
# ============================================================================


class TetrasporeFormatter(logging.Formatter):
    """Formatter with optional ANSI level colours and shortened logger names."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def __init__(
        self,
        use_colors: bool = True,
        include_timestamp: bool = True,
    ):
        self.use_colors = use_colors
        self.include_timestamp = include_timestamp
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        parts = []

        if self.include_timestamp:
            timestamp = datetime.fromtimestamp(record.created, UTC).strftime(
                "%Y-%m-%d %H:%M:%S"
            )
            parts.append(f"[{timestamp}]")

        level = record.levelname
        if self.use_colors:
            color = self.COLORS.get(level, "")
            reset = self.COLORS["RESET"]
            parts.append(f"{color}{level:8}{reset}")
        else:
            parts.append(f"{level:8}")

        name = record.name
        if name.startswith(f"{LOGGER_PREFIX}."):
            name = name[len(LOGGER_PREFIX) + 1:]
        parts.append(f"[{name:24}]")

        parts.append(record.getMessage())

        if record.exc_info:
            parts.append(self.formatException(record.exc_info))

        return " ".join(parts)


# ============================================================================
# Setup Functions
# ============================================================================


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    log_dir: str | Path | None = None,
    console_output: bool = True,
    file_output: bool = True,
    log_filename: str = "tetraspore.log",
) -> None:
    """Configure the ``tetraspore`` logger hierarchy.

    Args:
        level: Minimum log level to capture
        log_dir: Directory for log files (required if file_output=True)
        console_output: Whether to log to stderr
        file_output: Whether to log to file
        log_filename: Name of the log file

    Usage:
        setup_logging(level="DEBUG", log_dir="./logs")
    """
    root_logger = logging.getLogger(LOGGER_PREFIX)
    root_logger.setLevel(getattr(logging, level))

    root_logger.handlers = []

    # stderr keeps stdout free for CLI output
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, level))
        console_handler.setFormatter(TetrasporeFormatter(use_colors=True))
        root_logger.addHandler(console_handler)

    if file_output and log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(
            log_path / log_filename,
            encoding="utf-8",
        )
        file_handler.setLevel(getattr(logging, level))
        file_handler.setFormatter(TetrasporeFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    root_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get or create a logger with the given name.

    Args:
        name: Logger name (will be prefixed with "tetraspore.")

    Returns:
        Configured logger instance

    Usage:
        logger = get_logger("actions.parser")
        logger.info("Parsing document")
    """
    if not name.startswith(f"{LOGGER_PREFIX}."):
        full_name = f"{LOGGER_PREFIX}.{name}"
    else:
        full_name = name

    if full_name not in _loggers:
        _loggers[full_name] = logging.getLogger(full_name)

    return _loggers[full_name]


# ============================================================================
# Convenience Functions
# ============================================================================


def log_operation(
    logger: logging.Logger,
    operation: str,
    details: dict | None = None,
) -> None:
    """Log an operation with optional key=value details."""
    if details:
        detail_str = ", ".join(f"{k}={v}" for k, v in details.items())
        logger.info(f"{operation}: {detail_str}")
    else:
        logger.info(operation)


def log_error(
    logger: logging.Logger,
    operation: str,
    error: Exception,
    context: dict | None = None,
) -> None:
    """Log a failed operation with its exception and context.

    Args:
        logger: Logger to use
        operation: Name of the failed operation
        error: The exception
        context: Optional context dict
    """
    msg = f"FAILED {operation}: {type(error).__name__}: {error}"
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        msg = f"{msg} | Context: {context_str}"
    logger.error(msg, exc_info=True)


# ============================================================================
# Default Setup
# ============================================================================


# Console-only setup for early imports
setup_logging(level="INFO", console_output=True, file_output=False)
