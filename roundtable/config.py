"""Scheduler settings (delays, timeouts, context window).

Stored as {data_dir}/config.json. Reads merge stored values over the
defaults below; unknown keys in the file are ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Settings(BaseModel):
    settle_delay: float = Field(1.0, ge=0)  # before the first tick after start/reset
    turn_delay: float = Field(1.5, ge=0)  # between autonomous turns
    user_settle_delay: float = Field(0.5, ge=0)  # after a user message
    generation_timeout: float = Field(60.0, gt=0)
    http_timeout: float = Field(120.0, gt=0)
    context_window: int = Field(15, ge=0)
    default_temperature: float = Field(0.7, ge=0, le=2)


DEFAULTS = Settings()


def load_settings(stored: dict | None) -> Settings:
    """Defaults overlaid with whatever known fields `stored` provides."""
    data = DEFAULTS.model_dump()
    if stored:
        data.update({k: v for k, v in stored.items() if k in Settings.model_fields})
    return Settings.model_validate(data)
