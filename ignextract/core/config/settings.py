"""
Runtime settings — fetch tuning and the per-run option bundle.

``FetchSettings`` comes from the environment (IGNEXTRACT_HTTP_*),
CLI flags override individual fields. ``ExtractOptions`` is built once
by the CLI and passed explicitly to the extraction entry point.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ignextract.core.errors import ConfigError
from ignextract.core.reliability.backoff import Backoff

_ENV_PREFIX = "IGNEXTRACT_HTTP_"

_ENV_FIELDS = {
    "TIMEOUT": "timeout",
    "RETRIES": "retries",
    "BACKOFF_BASE": "backoff_base",
    "BACKOFF_MAX": "backoff_max",
}


class FetchSettings(BaseModel):
    """Timeouts and retry policy for remote content sources."""

    model_config = ConfigDict(frozen=True)

    timeout: float = Field(default=30.0, gt=0)
    retries: int = Field(default=3, ge=0)
    backoff_base: float = Field(default=0.5, ge=0)
    backoff_max: float = Field(default=8.0, ge=0)

    @property
    def backoff(self) -> Backoff:
        return Backoff(
            retries=self.retries,
            base_delay=self.backoff_base,
            max_delay=self.backoff_max,
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> FetchSettings:
        """Build settings from IGNEXTRACT_HTTP_* variables.

        Keyword overrides that are not None win over the environment.

        Raises:
            ConfigError: If a value cannot be validated.
        """
        env = os.environ if environ is None else environ
        data: dict[str, object] = {}
        for suffix, field_name in _ENV_FIELDS.items():
            raw = env.get(_ENV_PREFIX + suffix)
            if raw not in (None, ""):
                data[field_name] = raw
        data.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid fetch settings: {e}") from e


class ExtractOptions(BaseModel):
    """Everything one extraction run needs, parsed once from the CLI."""

    model_config = ConfigDict(frozen=True)

    output: Path
    source: str
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    fail_on_error: bool = False
