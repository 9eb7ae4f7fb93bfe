"""YAML snapshot files written by ``fetch`` and read back by ``analyze``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from errors import NoPriorSnapshot
from models import DateRange, ItemKind, WorkItem

LOGGER = logging.getLogger(__name__)

SNAPSHOT_PREFIX = "recent-work-"
SNAPSHOT_SUFFIX = ".yml"
TIMESTAMP_FORMAT = "%y%m%d-%H%M%S"

_ITEM_KEYS = {ItemKind.CODE_CHANGE: "code_change_items", ItemKind.TICKET: "ticket_items"}
# Older snapshots stored source-specific lists with their own date field.
_LEGACY_ITEM_KEYS = {ItemKind.CODE_CHANGE: "github_prs", ItemKind.TICKET: "jira_tickets"}
_LEGACY_DATE_FIELDS = {ItemKind.CODE_CHANGE: "merged_at", ItemKind.TICKET: "updated"}


@dataclass(frozen=True, slots=True)
class Snapshot:
    path: Path
    metadata: dict[str, Any]
    code_items: list[WorkItem]
    ticket_items: list[WorkItem]

    @property
    def all_items(self) -> list[WorkItem]:
        """Combined list in clustering order: code changes, then tickets."""
        return self.code_items + self.ticket_items


def snapshot_filename(now: datetime) -> str:
    return f"{SNAPSHOT_PREFIX}{now.strftime(TIMESTAMP_FORMAT)}{SNAPSHOT_SUFFIX}"


def build_snapshot_document(
    date_range: DateRange,
    code_items: list[WorkItem],
    ticket_items: list[WorkItem],
    now: datetime,
) -> dict[str, Any]:
    return {
        "metadata": {
            "generated_at": now.strftime("%Y-%m-%d %H:%M:%S"),
            "start_date": date_range.start_date.isoformat(),
            "end_date": date_range.end_date.isoformat(),
            "date_source": date_range.source.value,
            "date_confidence": date_range.confidence.value,
            "date_explanation": date_range.explanation,
            "total_items": len(code_items) + len(ticket_items),
        },
        _ITEM_KEYS[ItemKind.CODE_CHANGE]: [item.to_record() for item in code_items],
        _ITEM_KEYS[ItemKind.TICKET]: [item.to_record() for item in ticket_items],
    }


def write_snapshot(
    date_range: DateRange,
    code_items: list[WorkItem],
    ticket_items: list[WorkItem],
    output_dir: Path,
    now: datetime | None = None,
) -> Path:
    """Write a new snapshot file; an existing file is never overwritten."""
    now = now or datetime.now()
    path = output_dir / snapshot_filename(now)
    document = build_snapshot_document(date_range, code_items, ticket_items, now)

    with path.open("x", encoding="utf-8") as fh:
        yaml.safe_dump(document, fh, sort_keys=False, allow_unicode=True)

    LOGGER.info("Wrote snapshot with %s items to %s", document["metadata"]["total_items"], path)
    return path


def latest_snapshot_path(output_dir: Path) -> Path:
    candidates = sorted(output_dir.glob(f"{SNAPSHOT_PREFIX}*{SNAPSHOT_SUFFIX}"))
    if not candidates:
        raise NoPriorSnapshot(f"No {SNAPSHOT_PREFIX}*{SNAPSHOT_SUFFIX} files in {output_dir}")
    return candidates[-1]


def load_snapshot(path: Path) -> Snapshot:
    """Read a snapshot; raises ValueError if the document is not a mapping."""
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Snapshot {path} is not valid YAML: {exc}") from exc
    if not isinstance(document, dict):
        raise ValueError(f"Snapshot {path} does not contain a mapping")

    metadata = document.get("metadata") if isinstance(document.get("metadata"), dict) else {}
    return Snapshot(
        path=path,
        metadata=metadata,
        code_items=_items(document, ItemKind.CODE_CHANGE),
        ticket_items=_items(document, ItemKind.TICKET),
    )


def _items(document: dict[str, Any], kind: ItemKind) -> list[WorkItem]:
    legacy = _ITEM_KEYS[kind] not in document
    records = document.get(_LEGACY_ITEM_KEYS[kind] if legacy else _ITEM_KEYS[kind])
    if not isinstance(records, list):
        return []
    records = [record for record in records if isinstance(record, dict)]
    if legacy:
        records = [_upgrade_legacy_record(record, kind) for record in records]
    return [WorkItem.from_record(record, kind) for record in records]


def _upgrade_legacy_record(record: dict[str, Any], kind: ItemKind) -> dict[str, Any]:
    upgraded = dict(record)
    upgraded.setdefault("completed_on", record.get(_LEGACY_DATE_FIELDS[kind]))
    if kind is ItemKind.CODE_CHANGE:
        upgraded.setdefault("description", record.get("body"))
    elif record.get("key"):
        upgraded.setdefault("title", f"{record['key']}: {record.get('summary') or ''}")
    return upgraded
