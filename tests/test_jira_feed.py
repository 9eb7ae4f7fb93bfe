from datetime import date
from unittest.mock import MagicMock, patch

import pytest
import requests

from jira_feed import build_jql, check_jira, fetch_done_tickets
from models import ItemKind

BASE_URL = "https://acme.atlassian.net/"
START = date(2024, 1, 1)
END = date(2024, 6, 15)


def _mock_resp(payload) -> MagicMock:
    mock = MagicMock()
    mock.json.return_value = payload
    return mock


def _issue(key: str, updated: str, priority: str | None = "High", description: str | None = "Details") -> dict:
    return {
        "key": key,
        "fields": {
            "summary": f"Summary of {key}",
            "status": {"name": "Done"},
            "updated": updated,
            "description": description,
            "priority": {"name": priority} if priority else None,
            "issuetype": {"name": "Story"},
        },
    }


def test_build_jql_includes_whole_end_day() -> None:
    jql = build_jql(START, END)

    assert jql.startswith("assignee = currentUser() AND status = Done")
    assert "updated >= '2024-01-01'" in jql
    assert "updated < '2024-06-16'" in jql


def test_fetch_maps_tickets_and_sorts_newest_first() -> None:
    payload = {
        "issues": [
            _issue("OPS-1", "2024-02-10T09:00:00.000+0000"),
            _issue("OPS-2", "2024-05-01T17:45:00.000+0000", priority=None, description=None),
        ]
    }

    with patch("jira_feed.requests.get", return_value=_mock_resp(payload)) as mock_get:
        tickets = fetch_done_tickets(BASE_URL, "me@acme.test", "secret", START, END)

    assert [t.key for t in tickets] == ["OPS-2", "OPS-1"]
    newest = tickets[0]
    assert newest.kind is ItemKind.TICKET
    assert newest.title == "OPS-2: Summary of OPS-2"
    assert newest.summary == "Summary of OPS-2"
    assert newest.description == ""
    assert newest.priority == "None"
    assert newest.issue_type == "Story"
    assert newest.status == "Done"
    assert newest.completed_on == "2024-05-01"
    assert newest.url == "https://acme.atlassian.net/browse/OPS-2"
    assert tickets[1].priority == "High"

    assert mock_get.call_count == 1
    call = mock_get.call_args
    assert call.args[0] == "https://acme.atlassian.net/rest/api/2/search"
    assert call.kwargs["auth"] == ("me@acme.test", "secret")
    assert call.kwargs["params"]["jql"] == build_jql(START, END)
    assert call.kwargs["params"]["maxResults"] == 100


def _http_error(status: int) -> MagicMock:
    response = requests.Response()
    response.status_code = status
    mock = MagicMock()
    mock.raise_for_status.side_effect = requests.HTTPError(response=response)
    return mock


def _bad_json() -> MagicMock:
    mock = MagicMock()
    mock.json.side_effect = ValueError("Expecting value")
    return mock


@pytest.mark.parametrize(
    "side_effect",
    [
        [_http_error(401)],
        [_http_error(429)],
        requests.Timeout("timed out"),
        [_bad_json()],
        [_mock_resp({"errorMessages": ["bad jql"]})],
    ],
)
def test_fetch_failures_degrade_to_empty_list(side_effect) -> None:
    with patch("jira_feed.requests.get", side_effect=side_effect):
        assert fetch_done_tickets(BASE_URL, "me", "secret", START, END) == []


def test_check_jira() -> None:
    assert check_jira(None, None, None).status == "missing"

    with patch("jira_feed.requests.get", return_value=_mock_resp({"displayName": "Dana Dev"})):
        result = check_jira(BASE_URL, "dana", "secret")
    assert result.status == "success"
    assert result.message == "Connected as Dana Dev"

    with patch("jira_feed.requests.get", return_value=_http_error(403)):
        result = check_jira(BASE_URL, "dana", "secret")
    assert result.status == "error"
    assert "Forbidden" in result.message
