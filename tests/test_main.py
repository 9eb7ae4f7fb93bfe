from pathlib import Path
from unittest.mock import patch

from config import Config
from main import main, parse_args
from models import ConnectionCheck


def test_parse_args_fetch_with_range() -> None:
    args = parse_args(["fetch", "last 3 months"])
    assert args.command == "fetch"
    assert args.date_range == "last 3 months"
    assert args.since is None


def test_parse_args_analyze_display() -> None:
    args = parse_args(["--output-dir", "out", "analyze", "--display", "analysis-240615-100000.md"])
    assert args.output_dir == Path("out")
    assert args.display == Path("analysis-240615-100000.md")


def test_fetch_without_credentials_exits_nonzero(tmp_path: Path) -> None:
    with patch("main.load_dotenv"), patch("main.load_config", return_value=Config()):
        status = main(["--output-dir", str(tmp_path), "fetch"])

    assert status == 1
    assert list(tmp_path.iterdir()) == []


def test_analyze_without_snapshot_exits_nonzero(tmp_path: Path) -> None:
    with patch("main.load_dotenv"), patch("main.load_config", return_value=Config(openai_api_key="k")):
        status = main(["--output-dir", str(tmp_path), "analyze"])

    assert status == 1


def test_analyze_display_prints_file(tmp_path: Path, capsys) -> None:
    report = tmp_path / "analysis-240615-100000.md"
    report.write_text("# Work Analysis\n", encoding="utf-8")

    with patch("main.load_dotenv"), patch("main.load_config", return_value=Config()):
        status = main(["analyze", "--display", str(report)])

    assert status == 0
    assert "# Work Analysis" in capsys.readouterr().out


def test_check_reports_each_source(capsys) -> None:
    with patch("main.load_dotenv"), \
         patch("main.load_config", return_value=Config(github_token="t")), \
         patch("main.check_github", return_value=ConnectionCheck("GitHub", "success", "Connected as octocat")), \
         patch("main.check_jira", return_value=ConnectionCheck("Jira", "missing", "No Jira configuration found")):
        status = main(["check"])

    out = capsys.readouterr().out
    assert status == 0
    assert "GitHub: [success] Connected as octocat" in out
    assert "Jira: [missing]" in out
    assert "LLM: [missing] No LLM API keys configured" in out
    assert "1/1 APIs are working correctly." in out


def test_check_counts_only_configured_services(capsys) -> None:
    config = Config(github_token="t", openai_api_key="k")
    with patch("main.load_dotenv"), \
         patch("main.load_config", return_value=config), \
         patch("main.check_github", return_value=ConnectionCheck("GitHub", "success", "Connected as octocat")), \
         patch("main.check_jira", return_value=ConnectionCheck("Jira", "missing", "No Jira configuration found")), \
         patch("main.check_oracle", return_value=ConnectionCheck("LLM", "error", "LLM API error: quota")) as mock_llm:
        status = main(["check"])

    out = capsys.readouterr().out
    assert status == 1
    assert "LLM: [error] LLM API error: quota" in out
    assert "1/2 APIs are working correctly." in out
    mock_llm.assert_called_once_with(config)


def test_check_without_any_configuration(capsys) -> None:
    with patch("main.load_dotenv"), patch("main.load_config", return_value=Config()):
        status = main(["check"])

    assert status == 1
    assert "No APIs configured" in capsys.readouterr().out
