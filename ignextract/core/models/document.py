"""
Document models — the subset of an Ignition v3 config that extraction reads.

Field names follow Python conventions; the camelCase keys used in
Ignition documents (``httpHeaders``) are accepted through aliases.
Sections that extraction does not consume (``passwd``, ``systemd``,
``storage.directories`` ...) are ignored on load. An explicit ``null``
for a list or section reads the same as leaving it out.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator

_MODEL_CONFIG = ConfigDict(
    frozen=True,
    extra="ignore",
    populate_by_name=True,
)


class HTTPHeader(BaseModel):
    """One header to present when fetching a file's contents."""

    model_config = _MODEL_CONFIG

    name: StrictStr
    value: StrictStr | None = None


class Resource(BaseModel):
    """Where a file's bytes come from."""

    model_config = _MODEL_CONFIG

    source: StrictStr | None = None
    compression: StrictStr | None = None
    http_headers: list[HTTPHeader] = Field(default_factory=list, alias="httpHeaders")

    @field_validator("http_headers", mode="before")
    @classmethod
    def null_headers(cls, value: Any) -> Any:
        return [] if value is None else value


class File(BaseModel):
    """A file declared under ``storage.files``.

    ``overwrite`` is tri-state: ``None`` (unset) and ``False`` both mean
    "do not write", but stay distinguishable.
    """

    model_config = _MODEL_CONFIG

    path: StrictStr
    overwrite: StrictBool | None = None
    contents: Resource = Field(default_factory=Resource)

    @field_validator("contents", mode="before")
    @classmethod
    def null_contents(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def source(self) -> str | None:
        return self.contents.source


class Storage(BaseModel):
    model_config = _MODEL_CONFIG

    files: list[File] = Field(default_factory=list)

    @field_validator("files", mode="before")
    @classmethod
    def null_files(cls, value: Any) -> Any:
        return [] if value is None else value


class Ignition(BaseModel):
    model_config = _MODEL_CONFIG

    version: StrictStr


class Config(BaseModel):
    """Root of a parsed Ignition document."""

    model_config = _MODEL_CONFIG

    ignition: Ignition
    storage: Storage = Field(default_factory=Storage)

    @field_validator("storage", mode="before")
    @classmethod
    def null_storage(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def files(self) -> list[File]:
        return self.storage.files
