from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from activity_report.adapters.github.github_client import (
    GitHubApiError,
    GitHubAuthError,
    GitHubClient,
    GitHubNetworkError,
    GitHubRateLimitError,
)
from activity_report.common.annotations import annotations
from activity_report.common.logging_config import configure_logging
from activity_report.pipeline.config import ConfigurationError, ReportConfig
from activity_report.pipeline.progress_ui import progress_ui
from activity_report.pipeline.runner import ReportRunner
from activity_report.report.window import parse_month

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False)

EXAMPLE_CONFIG = Path(__file__).resolve().parent / "report_config.example.toml"


def _fail(message: str, tip: str | None = None) -> typer.Exit:
    logger.error(message)
    annotations.error(message)
    if tip:
        typer.echo(f"\nTip: {tip}", err=True)
    return typer.Exit(code=1)


def _run(month: Optional[str], config: Optional[Path], output_dir: Optional[Path], history: Optional[Path]) -> None:
    configure_logging(logging.INFO)
    logger.info("=== Monthly Report Generator ===")

    try:
        cfg = ReportConfig.load_or_default(config)
        if output_dir is not None:
            cfg.outputs.reports_dir = str(output_dir)
        if history is not None:
            cfg.outputs.history_path = str(history)
        if cfg.outputs.logs_dir:
            configure_logging(logging.INFO, log_dir=cfg.outputs.logs_dir)
        if month:
            parse_month(month)
            logger.info("Using month override: %s", month)
        token = cfg.github.resolve_token()
    except (ConfigurationError, ValueError) as exc:
        raise _fail(
            f"Configuration error: {exc}",
            "Set GITHUB_TOKEN or GH_TOKEN and pass --month as YYYY-MM",
        )

    github = GitHubClient(
        token=token,
        api_base_url=cfg.github.api_base_url,
        timeout_s=cfg.github.timeout_s,
        max_attempts=cfg.github.max_attempts,
        backoff_base_s=cfg.github.backoff_base_s,
    )

    try:
        with progress_ui() as ui:
            result = ReportRunner(config=cfg, github=github, ui=ui).run(month)
    except GitHubRateLimitError as exc:
        reset = f" Limit resets at {exc.reset_at.isoformat()}." if exc.reset_at else ""
        raise _fail(
            "GitHub API rate limit exceeded. Wait for rate limit reset or use token with higher limits." + reset,
            "Authenticated requests have higher limits; use a personal access token",
        )
    except GitHubAuthError as exc:
        raise _fail(
            f"GitHub authentication failed ({exc}). Ensure GITHUB_TOKEN or GH_TOKEN is valid "
            "and has repo and project read access.",
            "Set GITHUB_TOKEN or GH_TOKEN environment variable (https://github.com/settings/tokens)",
        )
    except GitHubNetworkError as exc:
        raise _fail(
            f"Network failure during report generation: {exc}",
            "Check connectivity and GitHub API status at https://www.githubstatus.com/",
        )
    except GitHubApiError as exc:
        raise _fail(
            f"Report generation failed: {exc}",
            "Check the repositories in --config exist and are readable, "
            "and GitHub API status at https://www.githubstatus.com/",
        )
    except Exception as exc:
        logger.exception("Unhandled error in report generation")
        raise _fail(
            f"Unhandled error: {exc}",
            "Re-run with the same --month; if it persists, check the log above and --config",
        )

    typer.echo(
        f"Wrote {result.path}: {result.planned} planned, {result.opportunistic} opportunistic, "
        f"{result.contributors} contributors ({result.new_contributors} new), "
        f"{result.bot_items} bot PRs, {result.tap_promotions} tap promotions, "
        f"{result.top_voices} top voices"
    )


_MONTH_OPTION = typer.Option(None, "--month", help="Report month as YYYY-MM (default: previous month)")
_CONFIG_OPTION = typer.Option(None, "--config", help="Path to report_config.toml")
_OUTPUT_OPTION = typer.Option(None, "--output-dir", help="Directory for the generated report")
_HISTORY_OPTION = typer.Option(None, "--history", help="Path to contributors-history.json")


@app.command()
def generate(
    month: Optional[str] = _MONTH_OPTION,
    config: Optional[Path] = _CONFIG_OPTION,
    output_dir: Optional[Path] = _OUTPUT_OPTION,
    history: Optional[Path] = _HISTORY_OPTION,
) -> None:
    """Generate the monthly activity report."""
    _run(month, config, output_dir, history)


@app.command()
def init_config(
    path: str = typer.Argument(
        "report_config.toml",
        help="Where to write the report configuration TOML",
    ),
) -> None:
    """Write an example report_config.toml."""
    if not EXAMPLE_CONFIG.exists():
        raise RuntimeError(f"Missing template file: {EXAMPLE_CONFIG}")

    out = Path(path).expanduser()
    if out.exists():
        raise typer.BadParameter(f"Refusing to overwrite existing file: {out}")

    out.write_text(EXAMPLE_CONFIG.read_text(encoding="utf-8"), encoding="utf-8")
    typer.echo(f"Wrote {out} (edit it, then run: generate-report --config {out})")


def main() -> None:
    """Entry point for the `generate-report` script."""
    typer.run(generate)
