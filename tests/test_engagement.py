from __future__ import annotations

from datetime import datetime, timezone

from activity_report.contributors.engagement import (
    aggregate_engagement,
    exclude_contributors,
    get_top_voices,
    summarize_engagement,
)
from activity_report.domain.entities import Comment, EngagementStats, ReportWindow
from activity_report.report.window import calculate_report_window

_AT = datetime(2026, 1, 10, tzinfo=timezone.utc)


def test_aggregate_merges_discussions_and_issue_comments() -> None:
    seen_repos: list[str] = []

    def discussions(github, owner: str, name: str, window: ReportWindow) -> list[Comment]:
        assert f"{owner}/{name}" == "org/main"
        return [Comment("alice", _AT), Comment("alice", _AT), Comment("bob", _AT)]

    def issues(github, owner: str, name: str, window: ReportWindow) -> list[Comment]:
        seen_repos.append(f"{owner}/{name}")
        return [Comment("alice", _AT)] if name == "one" else [Comment("carol", _AT)]

    engagement = aggregate_engagement(
        object(),  # type: ignore[arg-type]
        calculate_report_window("2026-01"),
        discussions_repo="org/main",
        monitored_repos=["org/one", "org/two"],
        discussion_fetcher=discussions,
        issue_fetcher=issues,
    )

    assert seen_repos == ["org/one", "org/two"]
    assert engagement["alice"] == EngagementStats(discussions=2, issues=1)
    assert engagement["alice"].total == 3
    assert engagement["bob"].total == 1
    assert engagement["carol"] == EngagementStats(discussions=0, issues=1)


def test_exclude_contributors_removes_pr_authors_and_bots() -> None:
    engagement = {
        "a": EngagementStats(issues=1),
        "b": EngagementStats(issues=5),
        "renovate[bot]": EngagementStats(issues=9),
        "c": EngagementStats(discussions=2),
    }
    assert exclude_contributors(engagement, ["b"]) == ["a", "c"]


def test_top_voices_requires_minimum_sample() -> None:
    engagement = {u: EngagementStats(issues=i) for i, u in enumerate(["a", "b", "c", "d"], 1)}
    assert get_top_voices(list(engagement), engagement, 10) == []


def test_top_voices_sorted_by_total_and_capped() -> None:
    engagement = {
        "erin": EngagementStats(discussions=1),
        "dave": EngagementStats(issues=7),
        "carl": EngagementStats(discussions=3, issues=4),
        "bea": EngagementStats(issues=2),
        "abe": EngagementStats(issues=2),
        "fay": EngagementStats(),
    }
    voices = get_top_voices(list(engagement), engagement, 4)
    assert voices == ["carl", "dave", "abe", "bea"]


def test_summary_counts_all_comments() -> None:
    engagement = {"a": EngagementStats(discussions=2, issues=1), "b": EngagementStats(issues=3)}
    summary = summarize_engagement(engagement, ["a"])
    assert summary.total_discussions == 2
    assert summary.total_issues == 4
    assert summary.unique_participants == 1
