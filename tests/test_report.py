from datetime import datetime
from pathlib import Path

from models import ItemKind, WorkCluster, WorkItem
from report import read_report, render_report, report_filename, write_report

NOW = datetime(2024, 6, 15, 10, 0, 0)

PR = WorkItem(
    kind=ItemKind.CODE_CHANGE,
    title="Add caching",
    description="",
    url="https://github.com/acme/app/pull/7",
    completed_on="2024-06-01",
    repository="acme/app",
)

TICKET = WorkItem(
    kind=ItemKind.TICKET,
    title="OPS-3: Rotate keys",
    description="",
    url="https://acme.atlassian.net/browse/OPS-3",
    completed_on="2024-05-02",
    key="OPS-3",
    summary="Rotate keys",
)

METADATA = {"start_date": "2024-04-01", "end_date": "2024-06-15", "total_items": 2}


def test_render_report_sections() -> None:
    clusters = [WorkCluster(name="Platform", description="Infra work", item_numbers=(1, 2), items=(PR, TICKET))]

    content = render_report(METADATA, clusters, ["Sped up the API", "Hardened secrets"], now=NOW)
    lines = content.splitlines()

    assert lines[0] == "# Work Analysis"
    assert "Generated: 2024-06-15 10:00:00" in lines
    assert "Data period: 2024-04-01 to 2024-06-15" in lines
    assert "Total items analyzed: 2" in lines
    assert lines.index("## Key Accomplishments") < lines.index("- Sped up the API")
    assert lines.index("## Work Clusters") < lines.index("### 1. Platform")
    assert "**Items (2):**" in lines
    assert "- Add caching (acme/app) [»](https://github.com/acme/app/pull/7)" in lines
    assert "- OPS-3: Rotate keys [»](https://acme.atlassian.net/browse/OPS-3)" in lines


def test_render_report_supports_legacy_since_date() -> None:
    metadata = {"since_date": "2024-01-01", "generated_at": "2024-02-01 08:00:00", "total_items": 0}

    content = render_report(metadata, [], [], now=NOW)

    assert "Data period: 2024-01-01 to 2024-02-01" in content.splitlines()


def test_write_and_read_report(tmp_path: Path) -> None:
    path = write_report("# Work Analysis\n", tmp_path, now=NOW)

    assert path.name == report_filename(NOW) == "analysis-240615-100000.md"
    assert read_report(path) == "# Work Analysis\n"


def test_read_report_missing_file(tmp_path: Path) -> None:
    assert read_report(tmp_path / "analysis-000000-000000.md") is None
