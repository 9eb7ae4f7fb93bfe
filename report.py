"""Markdown analysis report: rendering, writing and re-reading.

The report layout is:

    # Work Analysis
    Generated / Data period / Total items analyzed
    ## Key Accomplishments   (bullets)
    ## Work Clusters         (one ### section per cluster with its items)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from models import ItemKind, WorkCluster, WorkItem

LOGGER = logging.getLogger(__name__)

REPORT_PREFIX = "analysis-"
TIMESTAMP_FORMAT = "%y%m%d-%H%M%S"


def report_filename(now: datetime) -> str:
    return f"{REPORT_PREFIX}{now.strftime(TIMESTAMP_FORMAT)}.md"


def _data_period(metadata: dict[str, Any]) -> str | None:
    if metadata.get("start_date") and metadata.get("end_date"):
        return f"{metadata['start_date']} to {metadata['end_date']}"
    # Snapshots written before explicit end dates only carried since_date.
    if metadata.get("since_date"):
        generated_day = str(metadata.get("generated_at") or "").split(" ")[0]
        return f"{metadata['since_date']} to {generated_day}"
    return None


def _item_line(item: WorkItem) -> str:
    if item.kind is ItemKind.TICKET and item.key:
        return f"- {item.key}: {item.summary or ''} [»]({item.url})"
    repo = f" ({item.repository})" if item.repository else ""
    return f"- {item.title}{repo} [»]({item.url})"


def render_report(
    metadata: dict[str, Any],
    clusters: Sequence[WorkCluster],
    accomplishments: Sequence[str],
    now: datetime | None = None,
) -> str:
    now = now or datetime.now()
    lines = ["# Work Analysis", "", f"Generated: {now.strftime('%Y-%m-%d %H:%M:%S')}"]

    period = _data_period(metadata)
    if period:
        lines.append(f"Data period: {period}")
    lines.append(f"Total items analyzed: {metadata.get('total_items', 0)}")
    lines.append("")

    lines += ["## Key Accomplishments", ""]
    lines += [f"- {accomplishment}" for accomplishment in accomplishments]
    lines.append("")

    lines += ["## Work Clusters", ""]
    for index, cluster in enumerate(clusters, start=1):
        lines += [f"### {index}. {cluster.name}", "", cluster.description, ""]
        lines.append(f"**Items ({len(cluster.items)}):**")
        lines += [_item_line(item) for item in cluster.items]
        lines.append("")

    return "\n".join(lines)


def write_report(content: str, output_dir: Path, now: datetime | None = None) -> Path:
    now = now or datetime.now()
    path = output_dir / report_filename(now)
    with path.open("x", encoding="utf-8") as fh:
        fh.write(content)
    LOGGER.info("Wrote analysis report to %s", path)
    return path


def read_report(path: Path) -> str | None:
    """Return a saved report's text, or None when the file does not exist."""
    if not path.is_file():
        LOGGER.warning("Report file not found: %s", path)
        return None
    return path.read_text(encoding="utf-8")
