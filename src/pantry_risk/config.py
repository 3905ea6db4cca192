"""Configuration management for Pantry Risk."""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class DataConfig:
    """Data storage configuration."""

    db_path: Path


@dataclass
class AIConfig:
    """Text generation configuration."""

    enabled: bool = True
    api_key_env: str = "GEMINI_API_KEY"
    model: str = "gemini-1.5-flash"
    request_timeout: int = 45

    @property
    def api_key(self) -> str | None:
        return os.environ.get(self.api_key_env)


@dataclass
class AlertsConfig:
    """Alert generation configuration."""

    risk_threshold: float = 70
    cleanup_after_days: int = 30


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class Config:
    """Complete application configuration."""

    data: DataConfig
    ai: AIConfig
    alerts: AlertsConfig
    logging: LoggingConfig


class ConfigManager:
    """Manages application configuration from TOML files."""

    def __init__(self, config_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional explicit path to config file.
                        If not provided, searches standard locations.
        """
        self.config_path = config_path or self._find_config()
        self._config = self._load_config()

    @property
    def data(self) -> DataConfig:
        return self._config.data

    @property
    def ai(self) -> AIConfig:
        return self._config.ai

    @property
    def alerts(self) -> AlertsConfig:
        return self._config.alerts

    @property
    def logging(self) -> LoggingConfig:
        return self._config.logging

    def _find_config(self) -> Path:
        """Find config file in standard locations."""
        locations = [
            Path.cwd() / "config.toml",
            Path.home() / ".config" / "pantry-risk" / "config.toml",
            Path.home() / ".pantry-risk" / "config.toml",
        ]

        for loc in locations:
            if loc.exists():
                return loc

        return Path.home() / ".config" / "pantry-risk" / "config.toml"

    def _load_config(self) -> Config:
        """Load configuration from TOML file."""
        if not self.config_path.exists():
            return self._default_config()

        with open(self.config_path, "rb") as f:
            data = tomllib.load(f)

        data_section = data.get("data", {})
        ai_section = data.get("ai", {})
        alerts_section = data.get("alerts", {})
        logging_section = data.get("logging", {})

        return Config(
            data=DataConfig(
                db_path=Path(data_section.get("db_path", "~/pantry-risk/pantry.db")).expanduser(),
            ),
            ai=AIConfig(
                enabled=ai_section.get("enabled", True),
                api_key_env=ai_section.get("api_key_env", "GEMINI_API_KEY"),
                model=ai_section.get("model", "gemini-1.5-flash"),
                request_timeout=ai_section.get("request_timeout", 45),
            ),
            alerts=AlertsConfig(
                risk_threshold=alerts_section.get("risk_threshold", 70),
                cleanup_after_days=alerts_section.get("cleanup_after_days", 30),
            ),
            logging=LoggingConfig(level=str(logging_section.get("level", "WARNING")).upper()),
        )

    def _default_config(self) -> Config:
        """Return default configuration."""
        return Config(
            data=DataConfig(db_path=Path.home() / "pantry-risk" / "pantry.db"),
            ai=AIConfig(),
            alerts=AlertsConfig(),
            logging=LoggingConfig(),
        )

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get config value by dot-notation path.

        Args:
            key_path: Dot-separated path like 'ai.model'
            default: Default value if path not found

        Returns:
            Configuration value or default
        """
        value: Any = self._config

        for key in key_path.split("."):
            if hasattr(value, key):
                value = getattr(value, key)
            elif isinstance(value, dict):
                value = value.get(key)
                if value is None:
                    return default
            else:
                return default

        return value if value is not None else default
