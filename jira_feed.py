"""Jira ingestion: tickets assigned to the current user and moved to Done."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

import requests

from github_feed import describe_http_error
from models import ConnectionCheck, ItemKind, WorkItem, iso_date_part, sort_newest_first

REQUEST_TIMEOUT_SECONDS = 30
MAX_RESULTS = 100
SEARCH_FIELDS = "key,summary,status,updated,description,assignee,priority,issuetype"

LOGGER = logging.getLogger(__name__)


def build_jql(start: date, end: date) -> str:
    """JQL for done tickets updated inside [start, end], end day inclusive."""
    day_after_end = end + timedelta(days=1)
    return (
        "assignee = currentUser() AND status = Done "
        f"AND updated >= '{start.isoformat()}' AND updated < '{day_after_end.isoformat()}'"
    )


def fetch_done_tickets(
    base_url: str,
    username: str,
    token: str,
    start: date,
    end: date,
) -> list[WorkItem]:
    """Run one search query and normalize the results.

    Failures are logged and produce an empty list rather than raising.
    """
    jql = build_jql(start, end)
    LOGGER.debug("Jira JQL: %s", jql)
    try:
        response = requests.get(
            f"{base_url.rstrip('/')}/rest/api/2/search",
            params={"jql": jql, "fields": SEARCH_FIELDS, "maxResults": MAX_RESULTS},
            auth=(username, token),
            headers={"Accept": "application/json"},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        issues = _parse_issues_payload(response.json())
    except requests.HTTPError as exc:
        LOGGER.warning("Jira fetch failed: %s", describe_http_error(exc))
        return []
    except requests.RequestException as exc:
        LOGGER.warning("Jira fetch failed (network): %s", exc)
        return []
    except ValueError as exc:
        LOGGER.warning("Jira fetch failed (malformed response): %s", exc)
        return []

    tickets = [_to_work_item(issue, base_url) for issue in issues]
    LOGGER.info("Jira fetch: %s done tickets between %s and %s", len(tickets), start, end)
    return sort_newest_first(tickets)


def check_jira(base_url: str | None, username: str | None, token: str | None) -> ConnectionCheck:
    if not base_url:
        return ConnectionCheck("Jira", "missing", "No Jira configuration found")
    try:
        response = requests.get(
            f"{base_url.rstrip('/')}/rest/api/2/myself",
            auth=(username or "", token or ""),
            headers={"Accept": "application/json"},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        body = response.json()
    except requests.HTTPError as exc:
        return ConnectionCheck("Jira", "error", describe_http_error(exc))
    except requests.Timeout:
        return ConnectionCheck("Jira", "error", "Timeout - check your connection")
    except requests.RequestException as exc:
        return ConnectionCheck("Jira", "error", f"Connection error: {exc}")
    except ValueError:
        return ConnectionCheck("Jira", "error", "Invalid response from server")
    display_name = body.get("displayName") if isinstance(body, dict) else None
    return ConnectionCheck("Jira", "success", f"Connected as {display_name or username}")


def _parse_issues_payload(payload: Any) -> list[dict[str, Any]]:
    if not isinstance(payload, dict) or not isinstance(payload.get("issues"), list):
        raise ValueError("Unexpected Jira search payload shape: expected an issues list")
    return [issue for issue in payload["issues"] if isinstance(issue, dict) and issue.get("key")]


def _name_of(value: Any) -> str | None:
    return value.get("name") if isinstance(value, dict) else None


def _to_work_item(issue: dict[str, Any], base_url: str) -> WorkItem:
    fields = issue.get("fields") if isinstance(issue.get("fields"), dict) else {}
    key = str(issue["key"])
    summary = str(fields.get("summary") or "")

    return WorkItem(
        kind=ItemKind.TICKET,
        title=f"{key}: {summary}",
        description=fields.get("description") or "",
        url=f"{base_url.rstrip('/')}/browse/{key}",
        completed_on=iso_date_part(fields.get("updated")),
        key=key,
        summary=summary,
        status=_name_of(fields.get("status")),
        priority=_name_of(fields.get("priority")) or "None",
        issue_type=_name_of(fields.get("issuetype")),
    )
