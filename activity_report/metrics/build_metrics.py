from __future__ import annotations

import logging
from collections import Counter
from typing import Sequence

from activity_report.adapters.github.github_client import GitHubClient
from activity_report.domain.entities import BuildMetrics, ReportWindow, WorkflowHealth

logger = logging.getLogger(__name__)

_FAILED_CONCLUSIONS = frozenset({"failure", "timed_out", "startup_failure"})


def fetch_build_metrics(
    github: GitHubClient,
    repos: Sequence[str],
    window: ReportWindow,
    *,
    workflows: Sequence[str] = (),
) -> BuildMetrics | None:
    """Per-workflow success/failure counts for Actions runs created in the window.

    Returns None when no run was found, so the report can skip the section.
    """
    created = f"{window.start_date.date().isoformat()}..{window.end_date.date().isoformat()}"
    wanted = set(workflows)
    health: list[WorkflowHealth] = []

    for repo in repos:
        totals: Counter[str] = Counter()
        successes: Counter[str] = Counter()
        failures: Counter[str] = Counter()
        for run in github.paginate(
            f"/repos/{repo}/actions/runs",
            params={"created": created},
            items_key="workflow_runs",
            per_page=100,
            max_pages=10,
        ):
            name = str(run.get("name") or "unknown")
            if wanted and name not in wanted:
                continue
            totals[name] += 1
            conclusion = run.get("conclusion")
            if conclusion == "success":
                successes[name] += 1
            elif conclusion in _FAILED_CONCLUSIONS:
                failures[name] += 1

        for name in sorted(totals):
            health.append(
                WorkflowHealth(
                    repo=repo,
                    workflow=name,
                    total_runs=totals[name],
                    successful=successes[name],
                    failed=failures[name],
                )
            )
        logger.info("%s: %d workflows with runs in window", repo, len(totals))

    if not health:
        return None
    return BuildMetrics(workflows=tuple(health))
