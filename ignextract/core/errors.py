"""
Error hierarchy for ignextract.

Fatal errors (``ConfigError``, ``OutputDirError``) abort the run before
any file is written. Per-entry errors (``PathError``, ``SourceError``,
``HeaderError``, ``FetchError``) are caught by the extraction loop and
turned into failed outcomes.
"""

from __future__ import annotations


class ExtractError(Exception):
    """Base class for all ignextract errors."""


class ConfigError(ExtractError):
    """Raised when the config input or runtime settings cannot be read."""


class OutputDirError(ExtractError):
    """Raised when the output directory is unusable."""


class SourceError(ExtractError):
    """Raised when a content source cannot be parsed as a URI."""


class HeaderError(ExtractError):
    """Raised when a file's HTTP header declarations are invalid."""


class FetchError(ExtractError):
    """Raised when content cannot be fetched or written."""


class PathError(ExtractError):
    """Raised when a file path would land outside the output directory."""
