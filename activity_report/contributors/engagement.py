"""Community engagement tracking.

Counts discussion and issue comments per person. The three contributor groups
of a report are mutually exclusive: anyone who authored a merged PR in the
window is a code contributor (new or continuing) and never a top voice.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Mapping, Sequence

from activity_report.adapters.github.github_client import GitHubClient
from activity_report.adapters.github.github_ingest import (
    fetch_discussion_comments,
    fetch_issue_comments,
)
from activity_report.contributors.tracker import is_bot
from activity_report.domain.entities import Comment, EngagementStats, EngagementSummary, ReportWindow

logger = logging.getLogger(__name__)

CommentFetcher = Callable[[GitHubClient, str, str, ReportWindow], list[Comment]]


def aggregate_engagement(
    github: GitHubClient,
    window: ReportWindow,
    *,
    discussions_repo: str,
    monitored_repos: Sequence[str],
    discussion_fetcher: CommentFetcher = fetch_discussion_comments,
    issue_fetcher: CommentFetcher = fetch_issue_comments,
) -> dict[str, EngagementStats]:
    engagement: dict[str, EngagementStats] = {}

    owner, name = discussions_repo.split("/", 1)
    for comment in discussion_fetcher(github, owner, name, window):
        engagement.setdefault(comment.author, EngagementStats()).discussions += 1

    for repo in monitored_repos:
        owner, name = repo.split("/", 1)
        for comment in issue_fetcher(github, owner, name, window):
            engagement.setdefault(comment.author, EngagementStats()).issues += 1

    logger.info("Engagement participants: %d", len(engagement))
    return engagement


def exclude_contributors(
    engagement: Mapping[str, EngagementStats], contributors: Iterable[str]
) -> list[str]:
    pr_authors = set(contributors)
    return [u for u in engagement if not is_bot(u) and u not in pr_authors]


def get_top_voices(
    candidates: Sequence[str],
    engagement: Mapping[str, EngagementStats],
    count: int = 10,
    *,
    min_candidates: int = 5,
) -> list[str]:
    """Top `count` candidates by total activity, or [] below min_candidates."""
    if len(candidates) < min_candidates:
        logger.info(
            "Not enough participants for Top Voices (need %d, have %d)",
            min_candidates,
            len(candidates),
        )
        return []
    ranked = sorted(candidates, key=lambda u: (-engagement[u].total, u.lower()))
    return ranked[:count]


def summarize_engagement(
    engagement: Mapping[str, EngagementStats], candidates: Sequence[str]
) -> EngagementSummary:
    return EngagementSummary(
        total_discussions=sum(s.discussions for s in engagement.values()),
        total_issues=sum(s.issues for s in engagement.values()),
        unique_participants=len(candidates),
    )
