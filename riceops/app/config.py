"""
Console Configuration.

Central configuration management for the RiceOps console.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from dotenv import load_dotenv

load_dotenv()


DEFAULT_API_BASE_URL = "http://localhost:3000/api"


# ============================================================================
# Default Paths
# ============================================================================


def get_default_data_dir() -> Path:
    """Get the default data directory for the console."""
    if env_path := os.environ.get("RICEOPS_DATA_DIR"):
        return Path(env_path)

    return Path.home() / ".riceops"


def get_default_config_path() -> Path:
    """Get the default location of the user configuration file."""
    return get_default_data_dir() / "console_config.json"


# ============================================================================
# Configuration Classes
# ============================================================================


@dataclass
class ApiConfig:
    """Connection settings for the back-office API."""

    base_url: str | None = None  # Falls back to RICEOPS_API_BASE_URL, then the default
    timeout: float = 30.0
    token: str | None = None  # Falls back to RICEOPS_API_TOKEN

    def __post_init__(self):
        if not self.base_url:
            self.base_url = os.environ.get("RICEOPS_API_BASE_URL") or DEFAULT_API_BASE_URL
        if self.token is None:
            self.token = os.environ.get("RICEOPS_API_TOKEN") or None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ApiConfig":
        return cls(
            base_url=data.get("base_url"),
            timeout=data.get("timeout", 30.0),
            token=data.get("token"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_url": self.base_url,
            "timeout": self.timeout,
            # Session tokens are never written to disk
        }


@dataclass
class FormConfig:
    """Behaviour of entity forms and the address lookup."""

    default_country: str = "India"
    lookup_on_keystroke: bool = True  # Also look up on every edit, not only on blur
    lookup_enabled: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FormConfig":
        return cls(**{k: v for k, v in data.items() if hasattr(cls, k)})

    def to_dict(self) -> dict[str, Any]:
        return {
            "default_country": self.default_country,
            "lookup_on_keystroke": self.lookup_on_keystroke,
            "lookup_enabled": self.lookup_enabled,
        }


@dataclass
class ConsoleConfig:
    """Main configuration for the console.

    Aggregates all sub-configurations and provides load/save functionality.
    """

    data_dir: Path = field(default_factory=get_default_data_dir)

    api: ApiConfig = field(default_factory=ApiConfig)
    forms: FormConfig = field(default_factory=FormConfig)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    def __post_init__(self):
        if isinstance(self.data_dir, str):
            self.data_dir = Path(self.data_dir)

    @property
    def log_dir(self) -> Path:
        return self.data_dir / "logs"

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "ConsoleConfig":
        """Load configuration from a JSON file.

        Args:
            config_path: Path to config file. If None, uses default location.

        Returns:
            ConsoleConfig instance (defaults when the file does not exist)
        """
        if config_path is None:
            config_path = get_default_config_path()

        config_path = Path(config_path)

        if not config_path.exists():
            return cls()

        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConsoleConfig":
        """Create config from dictionary."""
        return cls(
            data_dir=Path(data.get("data_dir", get_default_data_dir())),
            api=ApiConfig.from_dict(data.get("api", {})),
            forms=FormConfig.from_dict(data.get("forms", {})),
            log_level=data.get("log_level", "INFO"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "data_dir": str(self.data_dir),
            "api": self.api.to_dict(),
            "forms": self.forms.to_dict(),
            "log_level": self.log_level,
        }

    def save(self, config_path: str | Path | None = None) -> Path:
        """Save configuration to a JSON file.

        Returns:
            Path to saved file
        """
        if config_path is None:
            config_path = self.data_dir / "console_config.json"

        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

        return config_path


# ============================================================================
# Global Config Instance
# ============================================================================


_global_config: ConsoleConfig | None = None


def get_config() -> ConsoleConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = ConsoleConfig.load()
    return _global_config


def set_config(config: ConsoleConfig) -> None:
    """Set the global configuration instance."""
    global _global_config
    _global_config = config


def reload_config(config_path: str | Path | None = None) -> ConsoleConfig:
    """Reload configuration from disk."""
    global _global_config
    _global_config = ConsoleConfig.load(config_path)
    return _global_config
