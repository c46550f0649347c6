"""Runtime settings, read from the environment (``.env`` is loaded by the app entry point)."""

import logging
import os
from collections.abc import Mapping
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class Composition(str, Enum):
    """How the facts fetch and the photograph fetch are combined."""

    DEPENDENT = "dependent"  # facts first, photograph only after facts succeed
    PARALLEL_INDEPENDENT = "independent"  # both at once, each slot on its own
    PARALLEL_JOINED = "joined"  # both at once, one failure discards both


class IlluminationPolicy(str, Enum):
    """What to do with illumination values outside [0, 100]."""

    PASS = "pass"
    CLAMP = "clamp"
    REJECT = "reject"


class PhotoSourceKind(str, Enum):
    """Where the space photograph comes from."""

    MODEL = "model"
    APOD = "apod"


# Settings field -> environment variable
ENV_NAMES: dict[str, str] = {
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "nasa_api_key": "NASA_API_KEY",
    "model": "MOONPHASE_MODEL",
    "timeout": "MOONPHASE_TIMEOUT",
    "composition": "MOONPHASE_COMPOSITION",
    "photo_source": "MOONPHASE_PHOTO_SOURCE",
    "web_search": "MOONPHASE_WEB_SEARCH",
    "structured": "MOONPHASE_STRUCTURED",
    "geocode": "MOONPHASE_GEOCODE",
    "illumination_policy": "MOONPHASE_ILLUMINATION",
    "log_level": "MOONPHASE_LOG_LEVEL",
}


class Settings(BaseModel):
    """Validated runtime configuration. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    anthropic_api_key: str | None = None
    nasa_api_key: str = "DEMO_KEY"
    model: str = "claude-sonnet-4-6"
    timeout: float = Field(default=15.0, gt=0, allow_inf_nan=False)  # Seconds per stage
    composition: Composition = Composition.DEPENDENT
    photo_source: PhotoSourceKind = PhotoSourceKind.MODEL
    web_search: bool = True
    structured: bool = True
    geocode: bool = True
    illumination_policy: IlluminationPolicy = IlluminationPolicy.PASS
    log_level: str = "INFO"

    @field_validator("composition", "photo_source", "illumination_policy", mode="before")
    @classmethod
    def lower_choice(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Not a log level: {v!r}")
        return level

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``os.environ`` (or the given mapping). Blank values count as unset.

        Raises:
            ValueError: On an unparseable value, naming the offending variable.
        """
        env = os.environ if env is None else env
        values = {
            field: env[name].strip()
            for field, name in ENV_NAMES.items()
            if env.get(name, "").strip()
        }
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            problems = "; ".join(
                f"{ENV_NAMES.get(str(err['loc'][0]), err['loc'][0])}: {err['msg']}"
                for err in e.errors()
            )
            raise ValueError(f"Invalid configuration: {problems}") from None


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s: %(levelname)s: %(message)s",
    )
