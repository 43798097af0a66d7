"""
Runtime settings of the engine.

Defaults match the desktop app the engine was written for: the computer plays black and
takes one second to "think". Every value can be overridden with a CHESS_* environment variable.
"""

import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from src.core.shared_types import Color

ENV_PREFIX = "CHESS_"


class EngineSettings(BaseModel):
    ai_color: Color = Color.BLACK
    ai_thinking_delay: float = Field(default=1.0, ge=0.0)
    log_level: str = "INFO"
    random_seed: Optional[int] = None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value!r}")
        return level


def load_settings(environ: Optional[Mapping[str, str]] = None) -> EngineSettings:
    """Build the settings from the environment. Unset variables keep their default value."""
    environ = os.environ if environ is None else environ
    overrides = {
        field_name: environ[f"{ENV_PREFIX}{field_name.upper()}"]
        for field_name in EngineSettings.model_fields
        if f"{ENV_PREFIX}{field_name.upper()}" in environ
    }
    return EngineSettings.model_validate(overrides)
