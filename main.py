"""CLI entrypoint: fetch recent work, analyze it, or check connectivity."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from config import Config, load_config
from github_feed import check_github
from jira_feed import check_jira
from oracle import check_oracle
from pipeline import run_analyze, run_fetch
from report import read_report

_RULE = "=" * 50


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(
        prog="self-review",
        description="Summarize recent GitHub and Jira work into an accomplishment report",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging of API and LLM calls")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory for snapshot and report files (default: current directory)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch = subparsers.add_parser("fetch", help="Fetch recent work from GitHub and Jira")
    fetch.add_argument(
        "date_range",
        nargs="?",
        default=None,
        help="Date range, e.g. 'last 3 months', 'q2 of this year' or 2024-01-01",
    )
    fetch.add_argument("--since", default=None, help="Fetch work since this date (YYYY-MM-DD)")

    analyze = subparsers.add_parser("analyze", help="Cluster and summarize the latest fetch")
    analyze.add_argument("--display", type=Path, default=None, help="Display an existing analysis file")

    auto = subparsers.add_parser("auto-analyze", help="Fetch and analyze work for a date range")
    auto.add_argument("date_range", help="Natural language date range")

    subparsers.add_parser("check", help="Check GitHub, Jira and LLM connectivity")
    return parser.parse_args(argv)


def _print_report(content: str) -> None:
    print(_RULE)
    print("ANALYSIS RESULTS")
    print(_RULE)
    print()
    print(content)


def cmd_fetch(config: Config, date_input: str | None, output_dir: Path) -> int:
    outcome = run_fetch(config, date_input, output_dir)
    if not outcome.ok:
        logging.error("%s", outcome.message)
        return 1

    date_range = outcome.date_range
    if date_input:
        print(f"Date range: {date_range.start_date} to {date_range.end_date}")
        if date_range.explanation:
            print(f"Interpreted as: {date_range.explanation}")
    print(outcome.message)
    return 0


def cmd_analyze(config: Config, display: Path | None, output_dir: Path) -> int:
    if display is not None:
        content = read_report(display)
        if content is None:
            logging.error("File not found: %s", display)
            return 1
        _print_report(content)
        return 0

    outcome = run_analyze(config, output_dir)
    if not outcome.ok:
        logging.error("%s", outcome.message)
        return 1
    print(outcome.message)
    _print_report(outcome.report)
    return 0


def cmd_check(config: Config) -> int:
    results = [
        (check_github(config.get("github_token")), config.has_github()),
        (
            check_jira(config.get("jira_url"), config.get("jira_username"), config.get("jira_token")),
            config.get("jira_url") is not None,
        ),
        (check_oracle(config), config.has_llm()),
    ]
    for check, _ in results:
        print(f"{check.source}: [{check.status}] {check.message}")

    configured = [check for check, is_configured in results if is_configured]
    if not configured:
        print("No APIs configured. Add credentials to the config file first.")
        return 1
    working = sum(1 for check in configured if check.status == "success")
    print(f"{working}/{len(configured)} APIs are working correctly.")
    return 0 if working == len(configured) else 1


def main(argv: list[str] | None = None) -> int:
    """Initialize config and dispatch the selected command."""
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    config = load_config()

    if args.command == "fetch":
        return cmd_fetch(config, args.date_range or args.since, args.output_dir)
    if args.command == "analyze":
        return cmd_analyze(config, args.display, args.output_dir)
    if args.command == "auto-analyze":
        status = cmd_fetch(config, args.date_range, args.output_dir)
        if status != 0:
            return status
        print(_RULE)
        return cmd_analyze(config, None, args.output_dir)
    return cmd_check(config)


if __name__ == "__main__":
    sys.exit(main())
