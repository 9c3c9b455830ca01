"""
Diagnostic report — what the config loader found while parsing.

Entries are ordered as they were recorded. A report is fatal as soon
as it holds a single error entry; warnings and infos are surfaced to
the user but never stop the run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class EntryKind(StrEnum):
    """Severity of a report entry."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ReportEntry:
    """A single diagnostic, located by a JSON-path style context."""

    kind: EntryKind
    message: str
    context: str = ""

    def __str__(self) -> str:
        if self.context:
            return f"{self.kind} at {self.context}: {self.message}"
        return f"{self.kind}: {self.message}"


@dataclass
class Report:
    """Ordered collection of diagnostics produced by one parse."""

    entries: list[ReportEntry] = field(default_factory=list)

    def add(self, kind: EntryKind, message: str, context: str = "") -> None:
        self.entries.append(ReportEntry(kind=kind, message=message, context=context))

    def error(self, message: str, context: str = "") -> None:
        self.add(EntryKind.ERROR, message, context)

    def warning(self, message: str, context: str = "") -> None:
        self.add(EntryKind.WARNING, message, context)

    def info(self, message: str, context: str = "") -> None:
        self.add(EntryKind.INFO, message, context)

    def is_fatal(self) -> bool:
        """Whether any entry is an error."""
        return any(e.kind == EntryKind.ERROR for e in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __str__(self) -> str:
        return "\n".join(str(e) for e in self.entries)

    def to_dict(self) -> dict:
        return {
            "fatal": self.is_fatal(),
            "entries": [
                {"kind": str(e.kind), "message": e.message, "context": e.context}
                for e in self.entries
            ],
        }
