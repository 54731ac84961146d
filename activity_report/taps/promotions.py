"""Homebrew tap promotion detection.

A package is promoted when a merged PR in the production tap adds its
formula or cask file. Additions to the experimental tap are detected the
same way.
"""
from __future__ import annotations

import logging
import re
from typing import Sequence

from activity_report.adapters.github.github_client import (
    GitHubAuthError,
    GitHubClient,
    GitHubNetworkError,
    GitHubRateLimitError,
)
from activity_report.adapters.github.github_ingest import fetch_merged_pull_requests
from activity_report.common.time_utils import parse_iso8601
from activity_report.domain.entities import ReportWindow, TapPromotion

logger = logging.getLogger(__name__)

DEFAULT_PACKAGE_DIRS: tuple[str, ...] = ("Formula", "Casks")

_DESC_DOUBLE = re.compile(r'desc\s+"([^"]+)"')
_DESC_SINGLE = re.compile(r"desc\s+'([^']+)'")


def parse_formula_description(content: str) -> str | None:
    for pattern in (_DESC_DOUBLE, _DESC_SINGLE):
        m = pattern.search(content)
        if m:
            return m.group(1)
    return None


def package_name_from_path(path: str, package_dirs: Sequence[str] = DEFAULT_PACKAGE_DIRS) -> str | None:
    for directory in package_dirs:
        prefix = directory.rstrip("/") + "/"
        if path.startswith(prefix):
            name = path[len(prefix):]
            if name.endswith(".rb"):
                name = name[: -len(".rb")]
            return name or None
    return None


def _fetch_description(github: GitHubClient, repo: str, path: str) -> str | None:
    try:
        content = github.get_text(f"/repos/{repo}/contents/{path}")
    except (GitHubAuthError, GitHubNetworkError, GitHubRateLimitError):
        raise
    except Exception as exc:
        logger.warning("Failed to fetch description for %s in %s: %s", path, repo, exc)
        return None
    return parse_formula_description(content)


def fetch_repo_additions(
    github: GitHubClient,
    repo: str,
    window: ReportWindow,
    *,
    package_dirs: Sequence[str] = DEFAULT_PACKAGE_DIRS,
) -> list[TapPromotion]:
    prs = fetch_merged_pull_requests(github, repo, window)
    logger.info("Found %d merged PRs in %s", len(prs), repo)

    additions: list[TapPromotion] = []
    for pr in prs:
        files = github.paginate(f"/repos/{repo}/pulls/{pr['number']}/files", per_page=100, max_pages=30)
        for f in files:
            if f.get("status") != "added":
                continue
            path = str(f.get("filename") or "")
            package = package_name_from_path(path, package_dirs)
            if package is None:
                continue
            additions.append(
                TapPromotion(
                    package_name=package,
                    description=_fetch_description(github, repo, path),
                    merged_at=parse_iso8601(pr["mergedAt"]),
                    pr_number=int(pr["number"]),
                    pr_url=str(pr["url"]),
                )
            )
            logger.info("Found addition in %s: %s (PR #%s)", repo, package, pr["number"])

    logger.info("Total additions found in %s: %d", repo, len(additions))
    return additions


def fetch_tap_promotions(
    github: GitHubClient,
    window: ReportWindow,
    *,
    production_repo: str,
    package_dirs: Sequence[str] = DEFAULT_PACKAGE_DIRS,
) -> list[TapPromotion]:
    return fetch_repo_additions(github, production_repo, window, package_dirs=package_dirs)


def fetch_experimental_additions(
    github: GitHubClient,
    window: ReportWindow,
    *,
    experimental_repo: str,
    package_dirs: Sequence[str] = DEFAULT_PACKAGE_DIRS,
) -> list[TapPromotion]:
    return fetch_repo_additions(github, experimental_repo, window, package_dirs=package_dirs)
