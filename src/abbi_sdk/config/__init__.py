"""Configuration management for the ABBI SDK.

This module provides centralized configuration management with support for
YAML/JSON files and ``ABBI_*`` environment variables.
"""

from .config_manager import ConfigManager
from .settings import (
    Settings,
    BackendSettings,
    DeliverySettings,
    LinkSettings,
    LoggingSettings,
)

__all__ = [
    "ConfigManager",
    "Settings",
    "BackendSettings",
    "DeliverySettings",
    "LinkSettings",
    "LoggingSettings",
]
