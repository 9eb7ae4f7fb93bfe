"""Fetch and analyze flows.

fetch:   resolve dates -> fetch GitHub + Jira -> write snapshot
analyze: load latest snapshot -> cluster -> resolve items -> summarize -> write report

Neither flow raises for expected failure states; each returns an outcome
whose ``status`` tells the caller where the run stopped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from pathlib import Path

from clusterer import WorkClusterer, resolve_cluster_items
from config import Config
from date_range import DEFAULT_WINDOW_DAYS, DateRangeResolver
from errors import ConfigurationMissing, InvalidDateFormat, NoPriorSnapshot
from github_feed import fetch_merged_pull_requests
from jira_feed import fetch_done_tickets
from models import AnalysisResult, Confidence, DateRange, DateSource, WorkItem
from oracle import LLMOracle, Oracle, build_oracle
from report import render_report, write_report
from snapshot_sink import latest_snapshot_path, load_snapshot, write_snapshot
from summarizer import AccomplishmentSummarizer

LOGGER = logging.getLogger(__name__)

OracleFactory = Callable[[Config], LLMOracle]


class PipelineStatus(str, Enum):
    DONE = "done"
    NO_CREDENTIALS = "no_credentials"
    NO_SNAPSHOT = "no_snapshot"
    SNAPSHOT_UNREADABLE = "snapshot_unreadable"
    NO_LLM_CONFIG = "no_llm_config"
    WRITE_FAILED = "write_failed"


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    status: PipelineStatus
    message: str
    path: Path | None = None
    date_range: DateRange | None = None
    code_items: tuple[WorkItem, ...] = ()
    ticket_items: tuple[WorkItem, ...] = ()

    @property
    def ok(self) -> bool:
        return self.status is PipelineStatus.DONE


@dataclass(frozen=True, slots=True)
class AnalyzeOutcome:
    status: PipelineStatus
    message: str
    path: Path | None = None
    snapshot_path: Path | None = None
    result: AnalysisResult | None = None
    report: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is PipelineStatus.DONE


def _optional_oracle(config: Config, oracle_factory: OracleFactory) -> Oracle | None:
    try:
        return oracle_factory(config)
    except ConfigurationMissing as exc:
        LOGGER.debug("Date parsing will use fallback rules only: %s", exc)
        return None


def _default_range(today: date) -> DateRange:
    return DateRange(
        start_date=today - timedelta(days=DEFAULT_WINDOW_DAYS),
        end_date=today,
        source=DateSource.FALLBACK_DEFAULT,
        confidence=Confidence.LOW,
    )


def run_fetch(
    config: Config,
    date_input: str | None,
    output_dir: Path,
    today: date | None = None,
    now: datetime | None = None,
    oracle_factory: OracleFactory = build_oracle,
) -> FetchOutcome:
    """Resolve the date window, fetch both sources and persist a snapshot."""
    if not config.has_any_source():
        return FetchOutcome(
            PipelineStatus.NO_CREDENTIALS,
            "No credentials configured for GitHub or Jira. Add them to the config file first.",
        )

    resolver = DateRangeResolver(_optional_oracle(config, oracle_factory), today=today)
    try:
        date_range = resolver.resolve(date_input)
    except InvalidDateFormat as exc:
        LOGGER.error("%s; using default range (last %s days)", exc, DEFAULT_WINDOW_DAYS)
        date_range = _default_range(resolver.today())

    LOGGER.info(
        "Date range: %s to %s (source=%s, confidence=%s)",
        date_range.start_date,
        date_range.end_date,
        date_range.source.value,
        date_range.confidence.value,
    )

    code_items: list[WorkItem] = []
    ticket_items: list[WorkItem] = []

    if config.has_github():
        LOGGER.info("Fetching from GitHub...")
        code_items = fetch_merged_pull_requests(
            config.github_token, date_range.start_date, date_range.end_date
        )
        LOGGER.info("Found %s merged PRs", len(code_items))
    else:
        LOGGER.info("GitHub not configured; skipping")

    if config.has_jira():
        LOGGER.info("Fetching from Jira...")
        ticket_items = fetch_done_tickets(
            config.jira_url,
            config.jira_username,
            config.jira_token,
            date_range.start_date,
            date_range.end_date,
        )
        LOGGER.info("Found %s completed tickets", len(ticket_items))
    elif config.get("jira_url"):
        LOGGER.warning("Jira URL configured without username/token; skipping Jira")

    try:
        path = write_snapshot(date_range, code_items, ticket_items, output_dir, now=now)
    except OSError as exc:
        return FetchOutcome(PipelineStatus.WRITE_FAILED, f"Could not write snapshot: {exc}", date_range=date_range)

    total = len(code_items) + len(ticket_items)
    return FetchOutcome(
        PipelineStatus.DONE,
        f"Work data saved to {path.name} ({total} items)",
        path=path,
        date_range=date_range,
        code_items=tuple(code_items),
        ticket_items=tuple(ticket_items),
    )


def run_analyze(
    config: Config,
    output_dir: Path,
    now: datetime | None = None,
    oracle_factory: OracleFactory = build_oracle,
) -> AnalyzeOutcome:
    """Cluster and summarize the most recent snapshot, then write a report."""
    try:
        snapshot_path = latest_snapshot_path(output_dir)
    except NoPriorSnapshot as exc:
        LOGGER.debug("%s", exc)
        return AnalyzeOutcome(PipelineStatus.NO_SNAPSHOT, "No work data found. Run 'fetch' first.")

    LOGGER.info("Using data from: %s", snapshot_path.name)
    try:
        snapshot = load_snapshot(snapshot_path)
    except (OSError, ValueError) as exc:
        return AnalyzeOutcome(
            PipelineStatus.SNAPSHOT_UNREADABLE,
            f"Error loading work data: {exc}",
            snapshot_path=snapshot_path,
        )

    try:
        oracle = oracle_factory(config)
    except ConfigurationMissing as exc:
        return AnalyzeOutcome(PipelineStatus.NO_LLM_CONFIG, str(exc), snapshot_path=snapshot_path)

    items = snapshot.all_items
    LOGGER.info(
        "Found %s GitHub PRs and %s Jira tickets",
        len(snapshot.code_items),
        len(snapshot.ticket_items),
    )

    LOGGER.info("Clustering work items...")
    clusters = resolve_cluster_items(WorkClusterer(oracle).cluster(items), items)
    LOGGER.info("Identified %s work clusters", len(clusters))

    LOGGER.info("Generating accomplishment summary...")
    accomplishments = AccomplishmentSummarizer(oracle).summarize(clusters, total_items=len(items))

    metadata = dict(snapshot.metadata)
    metadata["total_items"] = len(items)
    result = AnalysisResult(
        accomplishments=tuple(accomplishments),
        clusters=tuple(clusters),
        metadata=metadata,
        total_items=len(items),
    )

    now = now or datetime.now()
    content = render_report(metadata, result.clusters, result.accomplishments, now=now)
    try:
        path = write_report(content, output_dir, now=now)
    except OSError as exc:
        return AnalyzeOutcome(
            PipelineStatus.WRITE_FAILED,
            f"Could not write report: {exc}",
            snapshot_path=snapshot_path,
            result=result,
            report=content,
        )

    return AnalyzeOutcome(
        PipelineStatus.DONE,
        f"Analysis saved to {path.name}: {len(clusters)} clusters, "
        f"{len(accomplishments)} key accomplishments",
        path=path,
        snapshot_path=snapshot_path,
        result=result,
        report=content,
    )
