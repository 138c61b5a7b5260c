"""CLI interface for the ABBI SDK.

This module provides the ``abbi`` command for exercising an integration from
a terminal.
"""

from .main import app

__all__ = [
    "app",
]
