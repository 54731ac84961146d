from __future__ import annotations

import logging
from typing import Any, Iterator

from activity_report.adapters.github.github_client import (
    GitHubAuthError,
    GitHubClient,
    GitHubNetworkError,
    GitHubRateLimitError,
)
from activity_report.adapters.github.queries import (
    CLOSED_ISSUES_QUERY,
    DISCUSSION_COMMENTS_QUERY,
    ISSUE_COMMENTS_QUERY,
    MERGED_PULL_REQUESTS_QUERY,
)
from activity_report.common.time_utils import isoformat_z, parse_iso8601
from activity_report.domain.entities import Comment, ItemKind, Label, ReportWindow, WorkItem

logger = logging.getLogger(__name__)


def _iter_connection(
    github: GitHubClient,
    query: str,
    variables: dict[str, Any],
    connection: str,
) -> Iterator[list[dict[str, Any]]]:
    """Yield node pages of repository.<connection> until hasNextPage is false."""
    cursor: str | None = None
    while True:
        data = github.graphql(query, {**variables, "cursor": cursor})
        repo = (data or {}).get("repository") or {}
        conn = repo.get(connection) or {}
        yield list(conn.get("nodes") or [])

        page_info = conn.get("pageInfo") or {}
        if not page_info.get("hasNextPage"):
            return
        cursor = page_info.get("endCursor")


def _login(node: dict[str, Any]) -> str:
    return ((node.get("author") or {}).get("login")) or "unknown"


def _labels(node: dict[str, Any]) -> tuple[Label, ...]:
    out: list[Label] = []
    for lbl in (node.get("labels") or {}).get("nodes") or []:
        name = lbl.get("name")
        if not name:
            continue
        out.append(Label(name=name, color=lbl.get("color"), url=lbl.get("url")))
    return tuple(out)


def _closed_issues(github: GitHubClient, owner: str, name: str, window: ReportWindow) -> list[WorkItem]:
    items: list[WorkItem] = []
    variables = {"owner": owner, "name": name, "since": isoformat_z(window.start_date)}
    for nodes in _iter_connection(github, CLOSED_ISSUES_QUERY, variables, "issues"):
        for node in nodes:
            closed_at = node.get("closedAt")
            if not closed_at:
                continue
            closed_dt = parse_iso8601(closed_at)
            # `since` filters on updatedAt; the upper bound is ours to apply.
            if not window.contains(closed_dt):
                continue
            items.append(
                WorkItem(
                    kind=ItemKind.ISSUE,
                    number=int(node["number"]),
                    title=str(node.get("title") or ""),
                    url=str(node["url"]),
                    author=_login(node),
                    repository=f"{owner}/{name}",
                    labels=_labels(node),
                    closed_at=closed_dt,
                )
            )
    return items


def _merged_pull_request_nodes(
    github: GitHubClient, owner: str, name: str, window: ReportWindow
) -> Iterator[dict[str, Any]]:
    variables = {"owner": owner, "name": name}
    for nodes in _iter_connection(github, MERGED_PULL_REQUESTS_QUERY, variables, "pullRequests"):
        for node in nodes:
            merged_at = node.get("mergedAt")
            if merged_at and window.contains(parse_iso8601(merged_at)):
                yield node
        # Ordered by updatedAt desc, and merging bumps updatedAt: once a page
        # ends before the window, no later page can hold a merge inside it.
        if nodes:
            last_updated = nodes[-1].get("updatedAt") or nodes[-1].get("mergedAt")
            if last_updated and parse_iso8601(last_updated) < window.start_date:
                return


def _merged_pull_requests(github: GitHubClient, owner: str, name: str, window: ReportWindow) -> list[WorkItem]:
    items: list[WorkItem] = []
    for node in _merged_pull_request_nodes(github, owner, name, window):
        items.append(
            WorkItem(
                kind=ItemKind.PULL_REQUEST,
                number=int(node["number"]),
                title=str(node.get("title") or ""),
                url=str(node["url"]),
                author=_login(node),
                repository=f"{owner}/{name}",
                labels=_labels(node),
                closed_at=parse_iso8601(node["mergedAt"]),
            )
        )
    return items


def fetch_closed_items_from_repo(
    github: GitHubClient, owner: str, name: str, window: ReportWindow
) -> list[WorkItem]:
    """Closed issues and merged pull requests of owner/name inside the window.

    A single unreachable repository must not block the report: failures are
    logged and an empty list is returned. Authentication, rate-limit and
    exhausted network errors are the exception, since every later request
    would fail the same way.
    """
    try:
        issues = _closed_issues(github, owner, name, window)
        pulls = _merged_pull_requests(github, owner, name, window)
    except (GitHubAuthError, GitHubNetworkError, GitHubRateLimitError):
        raise
    except Exception as exc:
        logger.error("Error fetching closed items from %s/%s: %s", owner, name, exc)
        return []
    logger.info("%s/%s: %d closed issues, %d merged PRs", owner, name, len(issues), len(pulls))
    return issues + pulls


def fetch_merged_pull_requests(github: GitHubClient, repo: str, window: ReportWindow) -> list[dict[str, Any]]:
    """Raw merged-PR nodes (number, title, url, mergedAt) of repo inside the window."""
    owner, name = repo.split("/", 1)
    return [
        {
            "number": int(node["number"]),
            "title": node.get("title"),
            "url": node.get("url"),
            "mergedAt": node.get("mergedAt"),
        }
        for node in _merged_pull_request_nodes(github, owner, name, window)
    ]


def _thread_comments(thread: dict[str, Any], window: ReportWindow) -> list[Comment]:
    out: list[Comment] = []
    for c in (thread.get("comments") or {}).get("nodes") or []:
        author = (c.get("author") or {}).get("login")
        created = c.get("createdAt")
        if not author or not created:
            continue
        created_dt = parse_iso8601(created)
        if window.contains(created_dt):
            out.append(Comment(author=author, created_at=created_dt))
    return out


def fetch_discussion_comments(
    github: GitHubClient, owner: str, name: str, window: ReportWindow
) -> list[Comment]:
    comments: list[Comment] = []
    variables = {"owner": owner, "name": name}
    for nodes in _iter_connection(github, DISCUSSION_COMMENTS_QUERY, variables, "discussions"):
        for discussion in nodes:
            comments.extend(_thread_comments(discussion, window))
        if nodes:
            last_updated = nodes[-1].get("updatedAt")
            if last_updated and parse_iso8601(last_updated) < window.start_date:
                break
    logger.info("%s/%s: %d discussion comments", owner, name, len(comments))
    return comments


def fetch_issue_comments(
    github: GitHubClient, owner: str, name: str, window: ReportWindow
) -> list[Comment]:
    comments: list[Comment] = []
    variables = {"owner": owner, "name": name, "since": isoformat_z(window.start_date)}
    for nodes in _iter_connection(github, ISSUE_COMMENTS_QUERY, variables, "issues"):
        for issue in nodes:
            comments.extend(_thread_comments(issue, window))
    logger.info("%s/%s: %d issue comments", owner, name, len(comments))
    return comments
