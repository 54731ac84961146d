from __future__ import annotations

from typing import Any

import pytest

from activity_report.adapters.github.github_client import (
    GitHubApiError,
    GitHubAuthError,
    GitHubNetworkError,
)
from activity_report.adapters.github.github_ingest import (
    fetch_closed_items_from_repo,
    fetch_discussion_comments,
    fetch_issue_comments,
    fetch_merged_pull_requests,
)
from activity_report.adapters.github.queries import (
    CLOSED_ISSUES_QUERY,
    DISCUSSION_COMMENTS_QUERY,
    ISSUE_COMMENTS_QUERY,
    MERGED_PULL_REQUESTS_QUERY,
)
from activity_report.domain.entities import ItemKind
from activity_report.report.window import calculate_report_window

WINDOW = calculate_report_window("2026-01")


def _page(connection: str, nodes: list[dict[str, Any]], next_cursor: str | None = None) -> dict[str, Any]:
    return {
        "repository": {
            connection: {
                "nodes": nodes,
                "pageInfo": {"hasNextPage": next_cursor is not None, "endCursor": next_cursor},
            }
        }
    }


class FakeGraphQL:
    def __init__(self, responses: dict[tuple[str, str | None], Any]) -> None:
        self.responses = responses
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def graphql(self, query: str, variables: dict[str, Any] | None = None) -> Any:
        variables = variables or {}
        self.calls.append((query, variables))
        response = self.responses[(query, variables.get("cursor"))]
        if isinstance(response, Exception):
            raise response
        return response


def _pr(number: int, merged_at: str | None, updated_at: str, **extra: Any) -> dict[str, Any]:
    return {
        "number": number,
        "title": f"PR {number}",
        "url": f"https://github.com/o/r/pull/{number}",
        "mergedAt": merged_at,
        "updatedAt": updated_at,
        "author": {"login": "alice"},
        "labels": {"nodes": [{"name": "area/gnome", "color": "28A745", "url": None}]},
        **extra,
    }


def test_closed_items_follow_cursors_and_respect_window() -> None:
    issue_nodes = [
        {"number": 1, "title": "In window", "url": "https://github.com/o/r/issues/1", "closedAt": "2026-01-05T10:00:00Z", "author": None, "labels": {"nodes": []}},
        {"number": 2, "title": "After window", "url": "https://github.com/o/r/issues/2", "closedAt": "2026-02-01T00:00:00Z", "author": {"login": "bob"}, "labels": {"nodes": []}},
    ]
    fake = FakeGraphQL(
        {
            (CLOSED_ISSUES_QUERY, None): _page("issues", issue_nodes[:1], next_cursor="c1"),
            (CLOSED_ISSUES_QUERY, "c1"): _page("issues", issue_nodes[1:]),
            (MERGED_PULL_REQUESTS_QUERY, None): _page(
                "pullRequests",
                [_pr(10, "2026-01-20T00:00:00Z", "2026-01-21T00:00:00Z"), _pr(11, None, "2026-01-15T00:00:00Z")],
            ),
        }
    )

    items = fetch_closed_items_from_repo(fake, "o", "r", WINDOW)  # type: ignore[arg-type]

    assert [(i.kind, i.number) for i in items] == [(ItemKind.ISSUE, 1), (ItemKind.PULL_REQUEST, 10)]
    assert items[0].author == "unknown"
    assert items[1].label_names == ("area/gnome",)
    assert items[1].repository == "o/r"
    assert fake.calls[0][1]["since"] == "2026-01-01T00:00:00Z"


def test_pull_request_paging_stops_once_updates_predate_window() -> None:
    fake = FakeGraphQL(
        {
            (MERGED_PULL_REQUESTS_QUERY, None): _page(
                "pullRequests",
                [_pr(3, "2026-01-30T00:00:00Z", "2026-02-02T00:00:00Z"), _pr(2, "2025-12-20T00:00:00Z", "2025-12-20T00:00:00Z")],
                next_cursor="more",
            ),
        }
    )

    merged = fetch_merged_pull_requests(fake, "o/r", WINDOW)  # type: ignore[arg-type]

    assert merged == [
        {"number": 3, "title": "PR 3", "url": "https://github.com/o/r/pull/3", "mergedAt": "2026-01-30T00:00:00Z"}
    ]
    assert len(fake.calls) == 1


def test_repository_failure_yields_empty_list(caplog: pytest.LogCaptureFixture) -> None:
    fake = FakeGraphQL({(CLOSED_ISSUES_QUERY, None): GitHubApiError("GraphQL errors: Could not resolve")})

    assert fetch_closed_items_from_repo(fake, "o", "gone", WINDOW) == []  # type: ignore[arg-type]
    assert "o/gone" in caplog.text


@pytest.mark.parametrize(
    "error",
    [GitHubAuthError("rejected", status=401), GitHubNetworkError("GraphQL failed after 3 attempts")],
)
def test_fatal_failures_are_not_swallowed(error: GitHubApiError) -> None:
    fake = FakeGraphQL({(CLOSED_ISSUES_QUERY, None): error})

    with pytest.raises(type(error)):
        fetch_closed_items_from_repo(fake, "o", "r", WINDOW)  # type: ignore[arg-type]


def test_issue_comments_keep_every_author_inside_window() -> None:
    issue = {
        "number": 5,
        "author": {"login": "op"},
        "comments": {
            "nodes": [
                {"author": {"login": "op"}, "createdAt": "2026-01-03T00:00:00Z"},
                {"author": {"login": "helper"}, "createdAt": "2026-01-04T00:00:00Z"},
                {"author": {"login": "late"}, "createdAt": "2026-02-04T00:00:00Z"},
                {"author": None, "createdAt": "2026-01-05T00:00:00Z"},
            ]
        },
    }
    fake = FakeGraphQL({(ISSUE_COMMENTS_QUERY, None): _page("issues", [issue])})

    comments = fetch_issue_comments(fake, "o", "r", WINDOW)  # type: ignore[arg-type]

    assert [c.author for c in comments] == ["op", "helper"]


def test_long_discussion_keeps_newest_comments() -> None:
    # Busy threads exceed one page of comments; the recent end is what matters.
    assert "comments(last: 100)" in DISCUSSION_COMMENTS_QUERY

    old = [{"author": {"login": f"old{i}"}, "createdAt": "2025-11-02T00:00:00Z"} for i in range(50)]
    recent = [{"author": {"login": f"new{i}"}, "createdAt": "2026-01-20T00:00:00Z"} for i in range(50)]
    discussion = {
        "updatedAt": "2026-01-21T00:00:00Z",
        "author": {"login": "op"},
        "comments": {"nodes": old + recent},
    }
    fake = FakeGraphQL({(DISCUSSION_COMMENTS_QUERY, None): _page("discussions", [discussion])})

    comments = fetch_discussion_comments(fake, "o", "r", WINDOW)  # type: ignore[arg-type]

    assert len(comments) == 50
    assert {c.author for c in comments} == {f"new{i}" for i in range(50)}
