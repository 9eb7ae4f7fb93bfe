"""Group work items into named themes with one oracle call.

Fallback tiers, most to least informed:
1. oracle reply parsed and validated  -> oracle clusters
2. oracle replied but reply unusable   -> one "General Work" cluster
3. oracle unreachable                  -> split by source (GitHub / Jira)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import Any

from errors import MalformedOracleResponse
from models import ItemKind, WorkCluster, WorkItem
from oracle import Oracle, parse_json_object

LOGGER = logging.getLogger(__name__)

DESCRIPTION_MAX_LEN = 500

_KIND_LABELS = {
    ItemKind.CODE_CHANGE: "GitHub PR",
    ItemKind.TICKET: "Jira Ticket",
}

_PROMPT_TEMPLATE = """You are a helpful assistant that analyzes software development work and groups it into meaningful clusters.

Please analyze the following work items and group them into 3-7 meaningful clusters based on themes, projects, or types of work:

{items_text}

For each cluster, provide:
1. A descriptive name for the cluster
2. A brief one-to-two sentence description of what the cluster represents
3. The numbers of the work items that belong to this cluster

Every item must be assigned to a cluster. You may use a "Miscellaneous" cluster for items that do not fit elsewhere.

Respond ONLY with JSON in this structure, no prose:
{{
  "clusters": [
    {{
      "name": "Cluster Name",
      "description": "Brief description of the cluster",
      "item_numbers": [1, 3, 5]
    }}
  ]
}}
"""


def truncate_description(text: str, max_len: int = DESCRIPTION_MAX_LEN) -> str:
    text = text.strip()
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."


def build_cluster_prompt(items: Sequence[WorkItem]) -> str:
    entries = []
    for number, item in enumerate(items, start=1):
        entries.append(
            f"{number}. {_KIND_LABELS[item.kind]}: {item.title}\n"
            f"   Description: {truncate_description(item.description)}"
        )
    return _PROMPT_TEMPLATE.format(items_text="\n\n".join(entries))


def parse_cluster_response(content: str, total_items: int) -> list[WorkCluster]:
    """Validate the oracle's JSON and drop item numbers outside [1, total_items]."""
    data = parse_json_object(content)
    raw_clusters = data.get("clusters")
    if not isinstance(raw_clusters, list):
        raise MalformedOracleResponse("Cluster response has no 'clusters' list")

    clusters: list[WorkCluster] = []
    for raw in raw_clusters:
        if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
            raise MalformedOracleResponse(f"Cluster entry is not a named object: {raw!r}")
        numbers = raw.get("item_numbers")
        if not isinstance(numbers, list):
            raise MalformedOracleResponse(f"Cluster {raw['name']!r} has no item_numbers list")
        clusters.append(
            WorkCluster(
                name=raw["name"].strip(),
                description=str(raw.get("description") or "").strip(),
                item_numbers=_valid_numbers(numbers, total_items),
            )
        )
    return clusters


def _valid_numbers(numbers: list[Any], total_items: int) -> tuple[int, ...]:
    valid: list[int] = []
    for value in numbers:
        # bool is an int subclass; true/false are not item numbers
        if isinstance(value, bool) or not isinstance(value, int):
            continue
        if 1 <= value <= total_items and value not in valid:
            valid.append(value)
    return tuple(valid)


def general_work_cluster(total_items: int) -> list[WorkCluster]:
    """Single catch-all cluster used when the oracle reply cannot be parsed."""
    return [
        WorkCluster(
            name="General Work",
            description="Mixed development tasks and improvements",
            item_numbers=tuple(range(1, total_items + 1)),
        )
    ]


def partition_by_source(items: Sequence[WorkItem]) -> list[WorkCluster]:
    """Split items into at most two source clusters, skipping empty ones."""
    code_numbers = tuple(n for n, item in enumerate(items, 1) if item.kind is ItemKind.CODE_CHANGE)
    ticket_numbers = tuple(n for n, item in enumerate(items, 1) if item.kind is ItemKind.TICKET)

    clusters: list[WorkCluster] = []
    if code_numbers:
        clusters.append(
            WorkCluster(
                name="GitHub Development",
                description="Pull requests and code changes",
                item_numbers=code_numbers,
            )
        )
    if ticket_numbers:
        clusters.append(
            WorkCluster(
                name="Jira Tasks",
                description="Completed tickets and tasks",
                item_numbers=ticket_numbers,
            )
        )
    return clusters


def resolve_cluster_items(clusters: Sequence[WorkCluster], items: Sequence[WorkItem]) -> list[WorkCluster]:
    """Attach WorkItem references; out-of-range numbers are skipped."""
    resolved = []
    for cluster in clusters:
        members = tuple(items[n - 1] for n in cluster.item_numbers if 1 <= n <= len(items))
        resolved.append(replace(cluster, items=members))
    return resolved


class WorkClusterer:
    def __init__(self, oracle: Oracle) -> None:
        self.oracle = oracle

    def cluster(self, items: Sequence[WorkItem]) -> list[WorkCluster]:
        """Cluster items, which must be ordered code changes first, then tickets."""
        if not items:
            return []

        try:
            response = self.oracle.ask(build_cluster_prompt(items))
        except Exception as exc:
            LOGGER.warning("Clustering request failed, splitting by source: %s", exc)
            return partition_by_source(items)

        try:
            clusters = parse_cluster_response(response.content, len(items))
        except MalformedOracleResponse as exc:
            LOGGER.warning("Clustering reply unusable, using a single cluster: %s", exc)
            return general_work_cluster(len(items))

        covered = {n for cluster in clusters for n in cluster.item_numbers}
        if len(covered) < len(items):
            LOGGER.info(
                "Oracle clusters cover %s of %s items; uncovered items are left out",
                len(covered),
                len(items),
            )
        return clusters
