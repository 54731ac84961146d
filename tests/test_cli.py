from __future__ import annotations

from datetime import datetime, timezone
from functools import partial
from pathlib import Path

import pytest
import requests
from typer.testing import CliRunner

from activity_report import cli
from activity_report.adapters.github.github_client import GitHubApiError, GitHubClient, GitHubRateLimitError
from activity_report.pipeline.runner import ReportResult
from activity_report.report.window import calculate_report_window

runner = CliRunner()


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


class _StubRunner:
    error: Exception | None = None

    def __init__(self, config, github, ui=None) -> None:
        self.config = config

    def run(self, month):
        if self.error is not None:
            raise self.error
        return ReportResult(
            path=self.config.outputs.report_path("2026-01-31"),
            window=calculate_report_window(month),
            planned=3,
            opportunistic=4,
            contributors=5,
            new_contributors=1,
            bot_items=2,
            tap_promotions=0,
            top_voices=0,
        )


def test_missing_token_exits_with_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)

    result = runner.invoke(cli.app, ["generate", "--month", "2026-01"])

    assert result.exit_code == 1


def test_malformed_month_exits_with_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "t0k")

    result = runner.invoke(cli.app, ["generate", "--month", "2026-13"])

    assert result.exit_code == 1


def test_rate_limit_exits_with_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "t0k")
    stub = type(
        "RateLimited",
        (_StubRunner,),
        {"error": GitHubRateLimitError("limited", status=403, reset_at=datetime(2026, 1, 1, tzinfo=timezone.utc))},
    )
    monkeypatch.setattr(cli, "ReportRunner", stub)

    result = runner.invoke(cli.app, ["generate", "--month", "2026-01"])

    assert result.exit_code == 1


def test_successful_run_prints_summary(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GH_TOKEN", "t0k")
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.setattr(cli, "ReportRunner", _StubRunner)

    result = runner.invoke(cli.app, ["generate", "--month", "2026-01", "--output-dir", str(tmp_path)])

    assert result.exit_code == 0
    assert f"Wrote {tmp_path / '2026-01-31-report.mdx'}: 3 planned, 4 opportunistic" in result.output


def test_init_config_writes_example_once(tmp_path: Path) -> None:
    target = tmp_path / "report_config.toml"

    first = runner.invoke(cli.app, ["init-config", str(target)])
    assert first.exit_code == 0
    assert target.read_text(encoding="utf-8") == cli.EXAMPLE_CONFIG.read_text(encoding="utf-8")

    second = runner.invoke(cli.app, ["init-config", str(target)])
    assert second.exit_code != 0


def test_network_outage_exits_with_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "t0k")
    calls = {"n": 0}

    def unreachable(url, **kwargs):
        calls["n"] += 1
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(requests, "get", unreachable)
    monkeypatch.setattr(requests, "post", unreachable)
    monkeypatch.setattr(cli, "GitHubClient", partial(GitHubClient, sleep=lambda s: None))

    result = runner.invoke(
        cli.app,
        ["generate", "--month", "2026-01", "--output-dir", str(tmp_path / "reports"), "--history", str(tmp_path / "h.json")],
    )

    assert result.exit_code == 1
    assert calls["n"] == 3
    assert not (tmp_path / "reports").exists()
    assert "githubstatus.com" in result.output


def test_generic_api_failure_prints_tip(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "t0k")
    stub = type("Broken", (_StubRunner,), {"error": GitHubApiError("GET /repos/o/r failed: 500", status=500)})
    monkeypatch.setattr(cli, "ReportRunner", stub)

    result = runner.invoke(cli.app, ["generate", "--month", "2026-01"])

    assert result.exit_code == 1
    assert "Tip:" in result.output
