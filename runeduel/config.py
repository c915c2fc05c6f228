"""Runtime settings for the duel server.

Values default to the tuned gameplay timings and can be overridden through
``RUNEDUEL_*`` environment variables, e.g. ``RUNEDUEL_COUNTDOWN_SECONDS=5``.
"""
from __future__ import annotations

import logging
import os
from typing import List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "RUNEDUEL_"


class GameSettings(BaseModel):
    countdown_seconds: int = Field(default=3, ge=0)
    # Pause between a round ending and the next countdown starting.
    round_pause_seconds: float = Field(default=1.5, ge=0)
    # Round wins needed to take the match (2 => best of 3).
    rounds_to_win: int = Field(default=2, ge=1)
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GameSettings":
        """Build settings from ``RUNEDUEL_``-prefixed environment variables."""
        environ = os.environ if environ is None else environ
        values: dict = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is None:
                continue
            if name == "cors_origins":
                values[name] = [origin.strip() for origin in raw.split(",") if origin.strip()]
            else:
                values[name] = raw
        return cls(**values)


def configure_logging(settings: GameSettings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = ["GameSettings", "configure_logging", "ENV_PREFIX"]
