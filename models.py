"""Shared typed models for the self-review pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class ItemKind(str, Enum):
    CODE_CHANGE = "code_change"
    TICKET = "ticket"


class DateSource(str, Enum):
    EXPLICIT_DATE = "explicit_date"
    LLM_PARSED = "llm_parsed"
    FALLBACK_REGEX = "fallback_regex"
    FALLBACK_DEFAULT = "fallback_default"
    DEFAULT = "default"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Snapshot field order; source-specific fields follow the common ones.
_RECORD_FIELDS = (
    "kind",
    "title",
    "description",
    "url",
    "completed_on",
    "repository",
    "key",
    "summary",
    "status",
    "priority",
    "issue_type",
)


@dataclass(frozen=True, slots=True)
class WorkItem:
    """Normalized unit of completed work (a merged PR or a done ticket)."""

    kind: ItemKind
    title: str
    description: str
    url: str
    completed_on: str | None
    repository: str | None = None
    key: str | None = None
    summary: str | None = None
    status: str | None = None
    priority: str | None = None
    issue_type: str | None = None

    def to_record(self) -> dict[str, str]:
        """Flatten to a string-valued mapping, omitting absent fields."""
        record: dict[str, str] = {}
        for name in _RECORD_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            record[name] = value.value if isinstance(value, Enum) else str(value)
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any], kind: ItemKind) -> WorkItem:
        def _opt(name: str) -> str | None:
            value = record.get(name)
            return None if value is None else str(value)

        return cls(
            kind=kind,
            title=str(record.get("title") or ""),
            description=str(record.get("description") or ""),
            url=str(record.get("url") or ""),
            completed_on=_opt("completed_on"),
            repository=_opt("repository"),
            key=_opt("key"),
            summary=_opt("summary"),
            status=_opt("status"),
            priority=_opt("priority"),
            issue_type=_opt("issue_type"),
        )


@dataclass(frozen=True, slots=True)
class DateRange:
    """Resolved fetch window; start_date <= end_date always holds."""

    start_date: date
    end_date: date
    source: DateSource
    confidence: Confidence
    explanation: str | None = None

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError(
                f"start_date {self.start_date} is after end_date {self.end_date}"
            )


@dataclass(frozen=True, slots=True)
class WorkCluster:
    """Thematic grouping; item_numbers are 1-based positions in the combined list."""

    name: str
    description: str
    item_numbers: tuple[int, ...]
    items: tuple[WorkItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    accomplishments: tuple[str, ...]
    clusters: tuple[WorkCluster, ...]
    metadata: dict[str, Any]
    total_items: int


@dataclass(frozen=True, slots=True)
class ConnectionCheck:
    """Outcome of probing one source: status is success, missing or error."""

    source: str
    status: str
    message: str


def iso_date_part(value: Any) -> str | None:
    """Return the YYYY-MM-DD prefix of a timestamp string, or None if unparseable."""
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10]).isoformat()
    except ValueError:
        return None


def sort_newest_first(items: list[WorkItem]) -> list[WorkItem]:
    """Order by completed_on descending; undated items sort as earliest."""
    return sorted(items, key=lambda item: item.completed_on or "0000-00-00", reverse=True)
