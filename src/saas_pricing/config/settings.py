"""
Centralized settings and path configuration for the pricing calculator.
"""
import logging
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


ENV_PREFIX = "SAAS_PRICING_"


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def _env(name: str, default: str) -> str:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Saved calculations (JSON key-value file)
    storage_path: Path

    # Engine formula set: "enhanced" or "simple"
    formula_profile: str = "enhanced"

    # Collaboration
    typing_debounce_seconds: float = 1.0
    reconnect_attempts: int = 5
    reconnect_delay_seconds: float = 1.0

    log_level: str = "INFO"

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and SAAS_PRICING_* env vars."""
        root = project_root or get_project_root()

        storage = _env("STORAGE_PATH", "")
        storage_path = Path(storage) if storage else root / 'data' / 'saved_calculations.json'

        return cls(
            project_root=root,
            storage_path=storage_path,
            formula_profile=_env("FORMULA_PROFILE", "enhanced").strip().lower(),
            typing_debounce_seconds=float(_env("TYPING_DEBOUNCE_SECONDS", "1.0")),
            reconnect_attempts=int(_env("RECONNECT_ATTEMPTS", "5")),
            reconnect_delay_seconds=float(_env("RECONNECT_DELAY_SECONDS", "1.0")),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def configure_logging(settings: Optional[Settings] = None):
    """Apply the configured log level to the root logger."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
