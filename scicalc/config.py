"""
Runtime settings for the calculator front-end.

Values come from the environment (optionally seeded from a ``.env`` file) and are
validated with pydantic. Command-line flags in ``scicalc.repl`` take precedence.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .evaluator import AngleUnit

logger = logging.getLogger(__name__)

ENV_PREFIX = "SCICALC_"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseModel):
    """Validated calculator settings."""
    angle_unit: AngleUnit = AngleUnit.DEGREES
    log_level: str = "WARNING"
    prompt: str = Field("> ", min_length=1, description="Input prompt shown by the REPL")

    @field_validator('log_level')
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Build ``Settings`` from ``SCICALC_*`` environment variables.

    Raises:
        pydantic.ValidationError: if a variable holds an invalid value
    """
    load_dotenv(env_file)
    values = {}
    for field in ("angle_unit", "log_level", "prompt"):
        raw = os.getenv(ENV_PREFIX + field.upper())
        if raw is not None:
            values[field] = raw.strip() if field != "prompt" else raw
    settings = Settings(**values)
    logger.debug("Loaded settings: %s", settings)
    return settings
