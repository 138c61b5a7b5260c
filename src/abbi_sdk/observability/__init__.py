"""Observability layer for the ABBI SDK.

This module provides structured logging for the SDK and its CLI.
"""

from .logging_config import setup_logging, get_logger, LoggerMixin

__all__ = [
    "setup_logging",
    "get_logger",
    "LoggerMixin",
]
