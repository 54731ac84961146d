from __future__ import annotations

from pathlib import Path

import pytest

from activity_report.cli import EXAMPLE_CONFIG
from activity_report.pipeline.config import ConfigurationError, GithubConfig, ReportConfig


def test_defaults_cover_the_monitored_organisation() -> None:
    cfg = ReportConfig()

    assert cfg.repos.planned_repo == "projectbluefin/common"
    assert cfg.repos.monitored[0] == "ublue-os/bluefin"
    assert "projectbluefin/common" not in cfg.repos.opportunistic_repos()
    assert len(cfg.repos.opportunistic_repos()) == len(cfg.repos.monitored) - 1
    assert cfg.github.max_attempts == 3
    assert cfg.outputs.report_path("2026-01-31") == Path("reports/2026-01-31-report.mdx")


def test_load_toml_overrides_nested_sections(tmp_path: Path) -> None:
    path = tmp_path / "report_config.toml"
    path.write_text(
        """
[repos]
planned_repo = "org/plan"
monitored = ["org/plan", "org/app"]
include_issues = true

[outputs]
reports_dir = "out"

[engagement]
enabled = false
""",
        encoding="utf-8",
    )

    cfg = ReportConfig.load_or_default(path)

    assert cfg.repos.opportunistic_repos() == ["org/app"]
    assert cfg.repos.include_issues is True
    assert cfg.outputs.report_path("2026-01-31") == Path("out/2026-01-31-report.mdx")
    assert cfg.engagement.enabled is False
    assert cfg.build_metrics.enabled is True


def test_example_config_is_loadable() -> None:
    cfg = ReportConfig.load(EXAMPLE_CONFIG)
    assert cfg.repos.planned_repo


def test_missing_config_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        ReportConfig.load_or_default(tmp_path / "nope.toml")


def test_token_resolution_order() -> None:
    github = GithubConfig()

    assert github.resolve_token({"GH_TOKEN": "gh", "GITHUB_TOKEN": "primary"}) == "primary"
    assert github.resolve_token({"GITHUB_TOKEN": "  ", "GH_TOKEN": "gh"}) == "gh"
    with pytest.raises(ConfigurationError, match="GITHUB_TOKEN or GH_TOKEN"):
        github.resolve_token({})
