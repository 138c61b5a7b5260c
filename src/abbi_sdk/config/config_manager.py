"""Configuration manager implementation."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from ..core.interfaces import ConfigInterface
from .settings import Settings


class ConfigManager(ConfigInterface):
    """Configuration manager with file and environment variable support."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize the configuration manager.

        Args:
            settings: Settings instance. If None, loads default settings.
        """
        self.settings = settings or Settings()

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value.

        Args:
            key: Configuration key (dot-separated for nested access).
            default: Default value if key is not found.

        Returns:
            Configuration value or default.
        """
        keys = key.split(".")
        value = self.settings.model_dump()

        try:
            for k in keys:
                if isinstance(value, dict):
                    value = value[k]
                else:
                    return default
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value.

        Args:
            key: Configuration key (dot-separated for nested access).
            value: Value to set.
        """
        keys = key.split(".")
        config_dict = self.settings.model_dump()

        target = config_dict
        for k in keys[:-1]:
            if k not in target:
                target[k] = {}
            target = target[k]

        target[keys[-1]] = value
        self.settings = Settings(**config_dict)

    def has(self, key: str) -> bool:
        """Check if a configuration key exists."""
        return self.get(key, "__NOT_FOUND__") != "__NOT_FOUND__"

    def load_from_file(self, file_path: str) -> None:
        """Load configuration from a file."""
        self.settings = Settings.from_file(file_path)

    def save_to_file(self, file_path: str) -> None:
        """Save configuration to a file."""
        self.settings.to_file(file_path)

    def load_from_env(self) -> None:
        """Reload configuration from environment variables."""
        self.settings = Settings()

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values as a nested dictionary."""
        return self.settings.model_dump()

    def update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Update configuration from a dictionary.

        Nested sections are merged key by key, so a partial section only
        overrides the keys it names.

        Args:
            config_dict: Dictionary of configuration values.
        """
        current_config = self.settings.model_dump()
        for key, value in config_dict.items():
            if isinstance(value, dict) and isinstance(current_config.get(key), dict):
                current_config[key].update(value)
            else:
                current_config[key] = value
        self.settings = Settings(**current_config)

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get a configuration section as a dictionary."""
        config_dict = self.settings.model_dump()
        return config_dict.get(section, {})

    def set_section(self, section: str, values: Dict[str, Any]) -> None:
        """Set a configuration section from a dictionary."""
        config_dict = self.settings.model_dump()
        config_dict[section] = values
        self.settings = Settings(**config_dict)

    def create_default_config(self, file_path: str) -> None:
        """Create a default configuration file."""
        Settings().to_file(file_path)

    def validate_config(self) -> List[str]:
        """Validate the current configuration.

        Returns:
            List of validation error messages. Empty list if valid.
        """
        errors = []

        try:
            base_url = httpx.URL(self.settings.backend.base_url)
            if base_url.scheme not in ("http", "https") or not base_url.host:
                errors.append(f"Backend URL must be an absolute http(s) URL: {base_url}")
        except httpx.InvalidURL as e:
            errors.append(f"Backend URL is invalid: {e}")

        if self.settings.backend.timeout <= 0:
            errors.append("Backend timeout must be positive")

        if self.settings.backend.max_retries < 0:
            errors.append("Backend max_retries cannot be negative")

        if self.settings.delivery.max_queue_size <= 0:
            errors.append("Delivery queue size must be positive")

        scheme = self.settings.links.scheme
        if not scheme or not scheme.isascii() or not scheme[0].isalpha():
            errors.append(f"Link scheme must start with a letter: {scheme!r}")

        # Check log file location is writable
        if self.settings.logging.file_path:
            log_dir = Path(self.settings.logging.file_path).parent
            try:
                log_dir.mkdir(parents=True, exist_ok=True)
                test_file = log_dir / ".write_test"
                test_file.write_text("test")
                test_file.unlink()
            except Exception as e:
                errors.append(f"Log directory is not writable: {e}")

        return errors
