"""Pydantic settings model for SDK configuration."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendSettings(BaseSettings):
    """Settings for the backend transport."""

    model_config = SettingsConfigDict(env_prefix="ABBI_BACKEND_")

    base_url: str = "https://api.abbi.io"
    timeout: float = 10.0
    max_retries: int = 2
    user_agent: str = "abbi-sdk-python"


class DeliverySettings(BaseSettings):
    """Settings for the background delivery queue."""

    model_config = SettingsConfigDict(env_prefix="ABBI_DELIVERY_")

    max_queue_size: int = 1000
    shutdown_timeout: float = 5.0


class LinkSettings(BaseSettings):
    """Settings for inbound URL handling."""

    model_config = SettingsConfigDict(env_prefix="ABBI_LINKS_")

    scheme: str = "abbi"


class LoggingSettings(BaseSettings):
    """Settings for logging configuration."""

    model_config = SettingsConfigDict(env_prefix="ABBI_LOG_")

    level: str = "WARNING"
    json_format: bool = False
    file_path: Optional[str] = None


class Settings(BaseSettings):
    """Main SDK settings."""

    model_config = SettingsConfigDict(
        env_prefix="ABBI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False

    # Configuration file paths
    config_file: Optional[str] = None

    # Component settings
    backend: BackendSettings = Field(default_factory=BackendSettings)
    delivery: DeliverySettings = Field(default_factory=DeliverySettings)
    links: LinkSettings = Field(default_factory=LinkSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_file(cls, file_path: str) -> "Settings":
        """Load settings from a YAML or JSON file.

        Args:
            file_path: Path to the configuration file.

        Returns:
            Settings instance loaded from file.
        """
        import yaml
        import json

        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in [".yaml", ".yml"]:
                config_data = yaml.safe_load(f) or {}
            elif path.suffix.lower() == ".json":
                config_data = json.load(f)
            else:
                raise ValueError(f"Unsupported configuration file format: {path.suffix}")

        return cls(**config_data)

    def to_file(self, file_path: str) -> None:
        """Save settings to a YAML or JSON file.

        Args:
            file_path: Path where to save the configuration file.
        """
        import yaml
        import json

        path = Path(file_path)
        config_data = self.model_dump(mode="json")

        with open(path, "w", encoding="utf-8") as f:
            if path.suffix.lower() in [".yaml", ".yml"]:
                yaml.dump(config_data, f, default_flow_style=False, sort_keys=False)
            elif path.suffix.lower() == ".json":
                json.dump(config_data, f, indent=2, sort_keys=False)
            else:
                raise ValueError(f"Unsupported configuration file format: {path.suffix}")
