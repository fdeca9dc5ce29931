"""Configuration management using Pydantic Settings."""

from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

# Config file location
CONFIG_DIR = Path.home() / ".config" / "synccreds"
CONFIG_PATH = CONFIG_DIR / "config.yaml"


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from YAML config file."""

    def get_field_value(
        self, field: Any, field_name: str
    ) -> tuple[Any, str, bool]:
        """Get field value from YAML config."""
        config = self._load_config()
        if field_name in config:
            return config[field_name], field_name, False
        return None, field_name, False

    def _load_config(self) -> dict:
        return load_config()

    def __call__(self) -> dict[str, Any]:
        """Return all config values."""
        return self._load_config()


def validate_server_url(url: str | None) -> str:
    """Validate a sync server URL.

    Only http and https URLs with a host are accepted, so credentials are
    never attached to requests for some other scheme.

    Args:
        url: Server URL to validate

    Returns:
        The URL without surrounding whitespace

    Raises:
        ValueError: If the URL is empty or invalid
    """
    if not url or not url.strip():
        raise ValueError("Server URL cannot be empty")

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Unsupported URL scheme: {parsed.scheme or '<none>'}")
    if not parsed.hostname:
        raise ValueError(f"Server URL has no host: {url}")

    return url


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SYNCCREDS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = Field(
        default="synccreds",
        description="Keyring service name and settings group",
    )
    app_name_gui: str = Field(
        default="SyncCreds",
        description="Application name shown to the user in prompts",
    )
    server_url: str | None = Field(default=None, description="Sync server URL")
    user: str | None = Field(default=None, description="Username on the sync server")
    timeout: int = Field(default=30, ge=5, le=120, description="HTTP timeout in seconds")
    log_level: str = Field(default="WARNING", description="Logging level for the CLI")
    config_dir: Path = Field(
        default=CONFIG_DIR,
        description="Directory holding account settings",
    )

    @field_validator("config_dir", mode="after")
    @classmethod
    def ensure_config_dir_exists(cls, v: Path) -> Path:
        """Create config directory if it doesn't exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    @field_validator("server_url", mode="after")
    @classmethod
    def check_server_url(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return validate_server_url(v)

    @property
    def accounts_file(self) -> Path:
        """Path to the account settings file."""
        return self.config_dir / "accounts.yaml"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources - priority: env > yaml > defaults."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
        )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None


def load_config() -> dict[str, Any]:
    """Load config from YAML file.

    Returns:
        Dictionary of config values, empty dict if file doesn't exist or is invalid.
    """
    if not CONFIG_PATH.exists():
        return {}
    try:
        with open(CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError:
        return {}
