"""Environment-based configuration."""

from __future__ import annotations
import os
from dataclasses import dataclass, field


def _split_origins(raw: str) -> tuple[str, ...]:
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings for the API shell and CLI.

    Fairness constants (derivation path, column ranges, attempt bounds)
    live in engine_core and are never read from here.
    """
    env: str = field(default_factory=lambda: os.getenv("BINGO_ENV", "development"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    allowed_origins: tuple[str, ...] = field(
        default_factory=lambda: _split_origins(os.getenv("ALLOWED_ORIGINS", "*"))
    )

    @property
    def is_production(self) -> bool:
        return self.env.lower().strip() == "production"


def get_settings() -> Settings:
    """Read settings from the current environment."""
    return Settings()
