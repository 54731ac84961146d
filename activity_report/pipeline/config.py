from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, Field


class ConfigurationError(RuntimeError):
    """Fatal misconfiguration detected before any network call."""


def _expand(path: str) -> Path:
    return Path(os.path.expanduser(path))


def _read_toml(path: Path) -> dict[str, Any]:
    return tomllib.loads(path.read_text(encoding="utf-8"))


class GithubConfig(BaseModel):
    token_env_vars: list[str] = Field(
        default_factory=lambda: ["GITHUB_TOKEN", "GH_TOKEN"],
        description="Environment variables checked, in order, for the API token.",
    )
    api_base_url: str = Field(default="https://api.github.com")
    timeout_s: float = Field(default=60.0)
    max_attempts: int = Field(default=3, description="Attempts per request on network errors.")
    backoff_base_s: float = Field(default=1.0, description="Delay before retry n is base * 2**n.")

    def resolve_token(self, environ: Mapping[str, str] | None = None) -> str:
        env = os.environ if environ is None else environ
        for var in self.token_env_vars:
            token = (env.get(var) or "").strip()
            if token:
                return token
        raise ConfigurationError(
            f"{' or '.join(self.token_env_vars)} environment variable required"
        )


class ReposConfig(BaseModel):
    planned_repo: str = Field(
        default="projectbluefin/common",
        description="Source of planned work.",
    )
    monitored: list[str] = Field(
        default_factory=lambda: [
            "ublue-os/bluefin",
            "ublue-os/bluefin-lts",
            "ublue-os/homebrew-tap",
            "ublue-os/homebrew-experimental-tap",
            "projectbluefin/common",
            "projectbluefin/documentation",
            "projectbluefin/branding",
            "projectbluefin/iso",
            "projectbluefin/dakota",
        ],
        description="Repositories scanned in this order; planned_repo is skipped for opportunistic work.",
    )
    discussions_repo: str = Field(default="ublue-os/bluefin")
    production_tap: str = Field(default="ublue-os/homebrew-tap")
    experimental_tap: str = Field(default="ublue-os/homebrew-experimental-tap")
    package_dirs: list[str] = Field(default_factory=lambda: ["Formula", "Casks"])
    include_issues: bool = Field(
        default=False,
        description="List closed issues as work items; by default only merged PRs are reported.",
    )

    def opportunistic_repos(self) -> list[str]:
        return [r for r in self.monitored if r != self.planned_repo]


class OutputConfig(BaseModel):
    reports_dir: str = Field(default="reports")
    history_path: str = Field(default="static/data/contributors-history.json")
    filename_template: str = Field(default="{end_date}-report.mdx")
    logs_dir: str | None = Field(default=None, description="Also write run.log here when set.")

    def report_path(self, end_date: str) -> Path:
        return _expand(self.reports_dir) / self.filename_template.format(end_date=end_date)

    def history_file(self) -> Path:
        return _expand(self.history_path)


class EngagementConfig(BaseModel):
    enabled: bool = Field(default=True)
    top_voices: int = Field(default=10)
    min_candidates: int = Field(default=5)


class BuildMetricsConfig(BaseModel):
    enabled: bool = Field(default=True)
    repos: list[str] = Field(default_factory=lambda: ["ublue-os/bluefin", "ublue-os/bluefin-lts"])
    workflows: list[str] = Field(
        default_factory=list,
        description="Workflow names to report; empty means every workflow.",
    )


class ContributorsConfig(BaseModel):
    track_history: bool = Field(default=True)
    maintainers_emeritus: list[str] = Field(
        default_factory=lambda: [
            "adamisrael",
            "bsherman",
            "bketelsen",
            "rothgar",
            "m2Giles",
            "marcoceppi",
            "KyleGospo",
        ]
    )
    special_guests: list[str] = Field(
        default_factory=lambda: ["kolunmi", "alatiera", "madonuko", "xe", "sramkrishna", "mairin"]
    )


class TapsConfig(BaseModel):
    promotions: bool = Field(default=True)
    experimental_additions: bool = Field(default=True)


class ReportConfig(BaseModel):
    github: GithubConfig = Field(default_factory=GithubConfig)
    repos: ReposConfig = Field(default_factory=ReposConfig)
    outputs: OutputConfig = Field(default_factory=OutputConfig)
    engagement: EngagementConfig = Field(default_factory=EngagementConfig)
    build_metrics: BuildMetricsConfig = Field(default_factory=BuildMetricsConfig)
    contributors: ContributorsConfig = Field(default_factory=ContributorsConfig)
    taps: TapsConfig = Field(default_factory=TapsConfig)

    @classmethod
    def load(cls, path: Path) -> "ReportConfig":
        raw = _read_toml(path)
        return cls.model_validate(raw)

    @classmethod
    def load_or_default(cls, path: Path | None) -> "ReportConfig":
        if path is None:
            return cls()
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        return cls.load(path)
