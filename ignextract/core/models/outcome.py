"""
Extraction outcomes — one per declared file.

The extraction loop never raises for a single file: every entry ends
in exactly one outcome (written, skipped, or failed), and failures
record the stage they stopped at.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict


class ExtractionStage(StrEnum):
    """Step of the per-file pipeline where a failure happened."""

    PATH = "path"
    MKDIR = "mkdir"
    CREATE = "create"
    SOURCE = "source"
    HEADERS = "headers"
    FETCH = "fetch"


class ExtractionOutcome(BaseModel):
    """Result of processing one file entry."""

    model_config = ConfigDict(frozen=True)

    path: str
    status: Literal["written", "skipped", "failed"]
    destination: str | None = None
    bytes_written: int = 0
    reason: str = ""
    stage: ExtractionStage | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "written"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def written(cls, path: str, destination: str, bytes_written: int) -> ExtractionOutcome:
        """Create an outcome for a file whose contents were written."""
        return cls(
            path=path,
            status="written",
            destination=destination,
            bytes_written=bytes_written,
        )

    @classmethod
    def skipped(cls, path: str, reason: str) -> ExtractionOutcome:
        """Create an outcome for a file that was intentionally not written."""
        return cls(path=path, status="skipped", reason=reason)

    @classmethod
    def failed_at(
        cls,
        path: str,
        stage: ExtractionStage,
        error: str,
        destination: str | None = None,
    ) -> ExtractionOutcome:
        """Create an outcome for a file that stopped at ``stage``."""
        return cls(
            path=path,
            status="failed",
            stage=stage,
            error=error,
            destination=destination,
        )

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)
