"""Shared utilities: logging setup and ID helpers."""

from tetraspore.utils.logging import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
