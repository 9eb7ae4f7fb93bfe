"""GitHub ingestion: merged pull requests authored by the token's owner."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

import requests

from models import ConnectionCheck, ItemKind, WorkItem, iso_date_part, sort_newest_first

GITHUB_API_URL = "https://api.github.com"
REQUEST_TIMEOUT_SECONDS = 30
PAGE_SIZE = 100
# The search API refuses to page past the first 1000 results.
MAX_PAGES = 10

LOGGER = logging.getLogger(__name__)


def fetch_merged_pull_requests(token: str, start: date, end: date) -> list[WorkItem]:
    """Fetch PRs authored by the authenticated user and merged within [start, end].

    Any network, auth, rate-limit or payload failure is logged and yields an
    empty list, so an empty result may also mean GitHub was unreachable.
    """
    try:
        login = _authenticated_login(token)
        query = build_search_query(login, start, end)
        LOGGER.debug("GitHub search query: %s", query)
        raw_items = _search_all(token, query)
    except requests.HTTPError as exc:
        LOGGER.warning("GitHub fetch failed: %s", describe_http_error(exc))
        return []
    except requests.RequestException as exc:
        LOGGER.warning("GitHub fetch failed (network): %s", exc)
        return []
    except ValueError as exc:
        LOGGER.warning("GitHub fetch failed (malformed response): %s", exc)
        return []

    items = [_to_work_item(raw) for raw in raw_items if isinstance(raw, dict)]
    LOGGER.info("GitHub fetch: %s merged PRs between %s and %s", len(items), start, end)
    return sort_newest_first(items)


def build_search_query(login: str, start: date, end: date) -> str:
    return f"author:{login} is:pr is:merged merged:{start.isoformat()}..{end.isoformat()}"


def check_github(token: str | None) -> ConnectionCheck:
    if not token:
        return ConnectionCheck("GitHub", "missing", "No GitHub token configured")
    try:
        login = _authenticated_login(token)
    except requests.HTTPError as exc:
        return ConnectionCheck("GitHub", "error", describe_http_error(exc))
    except requests.Timeout:
        return ConnectionCheck("GitHub", "error", "Timeout - check your connection")
    except requests.RequestException as exc:
        return ConnectionCheck("GitHub", "error", f"Connection error: {exc}")
    except ValueError:
        return ConnectionCheck("GitHub", "error", "Invalid response from server")
    return ConnectionCheck("GitHub", "success", f"Connected as {login}")


def describe_http_error(exc: requests.HTTPError) -> str:
    """Classify an HTTP error as auth failure, rate limit or generic status."""
    response = exc.response
    if response is None:
        return str(exc)
    status = response.status_code
    if status == 401:
        return "Unauthorized - check your token"
    if status == 429 or (status == 403 and response.headers.get("X-RateLimit-Remaining") == "0"):
        return "Rate limited - try again later"
    if status == 403:
        return "Forbidden - check your permissions"
    return f"HTTP {status}: {response.reason}"


def _headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
    }


def _authenticated_login(token: str) -> str:
    response = requests.get(
        f"{GITHUB_API_URL}/user",
        headers=_headers(token),
        timeout=REQUEST_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    body = response.json()
    login = body.get("login") if isinstance(body, dict) else None
    if not isinstance(login, str) or not login:
        raise ValueError("GitHub /user response has no login")
    return login


def _search_all(token: str, query: str) -> list[Any]:
    """Page through search results until a short page comes back."""
    collected: list[Any] = []
    for page in range(1, MAX_PAGES + 1):
        response = requests.get(
            f"{GITHUB_API_URL}/search/issues",
            headers=_headers(token),
            params={"q": query, "per_page": PAGE_SIZE, "page": page},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict) or not isinstance(body.get("items"), list):
            raise ValueError("Unexpected GitHub search payload shape: expected an items list")

        page_items = body["items"]
        collected.extend(page_items)
        LOGGER.debug("GitHub search page=%s returned %s items", page, len(page_items))
        if len(page_items) < PAGE_SIZE:
            break
    return collected


def _to_work_item(raw: dict[str, Any]) -> WorkItem:
    pull_request = raw.get("pull_request") if isinstance(raw.get("pull_request"), dict) else {}
    repository_url = raw.get("repository_url") or ""
    repository = "/".join(repository_url.rstrip("/").split("/")[-2:]) or None

    return WorkItem(
        kind=ItemKind.CODE_CHANGE,
        title=str(raw.get("title") or ""),
        description=raw.get("body") or "",
        url=str(raw.get("html_url") or ""),
        completed_on=iso_date_part(pull_request.get("merged_at")),
        repository=repository,
    )
