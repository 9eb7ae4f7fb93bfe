"""Turn work clusters into a short list of accomplishment bullets."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from models import WorkCluster
from oracle import Oracle

LOGGER = logging.getLogger(__name__)

_BULLET_RE = re.compile(r"^(?:[-*•]|\d+[.)])\s+")

_PROMPT_TEMPLATE = """You are a helpful assistant that summarizes technical accomplishments concisely.

Based on these work clusters, create a concise bullet-point summary of accomplishments:

{clusters_text}

Create 3-7 bullet points that highlight key accomplishments and impact. Focus on:
- What was built or improved
- Problems solved
- Value delivered

Format as a simple markdown list with bullet points.
"""


def build_summary_prompt(clusters: Sequence[WorkCluster]) -> str:
    lines = [
        f"- {cluster.name}: {cluster.description} ({len(cluster.items)} items)"
        for cluster in clusters
    ]
    return _PROMPT_TEMPLATE.format(clusters_text="\n".join(lines))


def parse_bullets(content: str) -> list[str]:
    """Keep only bullet or numbered-list lines, with the marker removed."""
    bullets = []
    for line in content.splitlines():
        stripped = line.strip()
        match = _BULLET_RE.match(stripped)
        if not match:
            continue
        text = stripped[match.end():].strip()
        if text:
            bullets.append(text)
    return bullets


def fallback_summary(clusters: Sequence[WorkCluster], total_items: int | None = None) -> list[str]:
    """Generic bullets; ``total_items`` defaults to the number of clustered items."""
    total = total_items if total_items is not None else sum(len(cluster.items) for cluster in clusters)
    return [
        f"Completed {total} work items across multiple areas",
        "Made progress on software development and task completion",
        "Delivered features and fixes to improve system functionality",
    ]


class AccomplishmentSummarizer:
    def __init__(self, oracle: Oracle) -> None:
        self.oracle = oracle

    def summarize(self, clusters: Sequence[WorkCluster], total_items: int | None = None) -> list[str]:
        if not clusters:
            return fallback_summary(clusters, total_items)

        try:
            response = self.oracle.ask(build_summary_prompt(clusters))
        except Exception as exc:
            LOGGER.warning("Summary request failed, using generic summary: %s", exc)
            return fallback_summary(clusters, total_items)

        bullets = parse_bullets(response.content)
        if not bullets:
            LOGGER.warning("Summary reply had no bullet lines, using generic summary")
            return fallback_summary(clusters, total_items)
        return bullets
