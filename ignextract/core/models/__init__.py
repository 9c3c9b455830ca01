"""
Domain models — Pydantic types for ignextract.

All models are re-exported here for convenient access:

    from ignextract.core.models import Config, File, ExtractionOutcome, Report
"""

from ignextract.core.models.document import Config, File, HTTPHeader, Ignition, Resource, Storage
from ignextract.core.models.outcome import ExtractionOutcome, ExtractionStage
from ignextract.core.models.report import EntryKind, Report, ReportEntry

__all__ = [
    # document.py
    "Config",
    "EntryKind",
    # outcome.py
    "ExtractionOutcome",
    "ExtractionStage",
    "File",
    "HTTPHeader",
    "Ignition",
    # report.py
    "Report",
    "ReportEntry",
    "Resource",
    "Storage",
]
