from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Sequence, TypeVar

from activity_report.adapters.github.github_client import (
    GitHubAuthError,
    GitHubClient,
    GitHubNetworkError,
    GitHubRateLimitError,
)
from activity_report.adapters.github.github_ingest import fetch_closed_items_from_repo
from activity_report.common.annotations import ActionsAnnotations, annotations
from activity_report.contributors.distinguished import DistinguishedContributors
from activity_report.contributors.engagement import (
    aggregate_engagement,
    exclude_contributors,
    get_top_voices,
    summarize_engagement,
)
from activity_report.contributors.tracker import is_bot, update_contributor_history
from activity_report.domain.entities import (
    BotActivity,
    BuildMetrics,
    EngagementSummary,
    ReportWindow,
    TapPromotion,
    WorkItem,
)
from activity_report.domain.results import Feature
from activity_report.metrics.build_metrics import fetch_build_metrics
from activity_report.pipeline.config import ReportConfig
from activity_report.pipeline.progress_ui import Ui
from activity_report.report.markdown import generate_report_markdown
from activity_report.report.window import calculate_report_window
from activity_report.taps.promotions import fetch_experimental_additions, fetch_tap_promotions

logger = logging.getLogger(__name__)

T = TypeVar("T")


def aggregate_bot_activity(bot_items: Iterable[WorkItem]) -> list[BotActivity]:
    """Group bot-authored items by (repository, bot login)."""
    groups: dict[tuple[str, str], BotActivity] = {}
    for item in bot_items:
        key = (item.repository, item.author or "unknown")
        activity = groups.setdefault(key, BotActivity(repo=key[0], bot=key[1]))
        activity.count += 1
        activity.items.append(item)
    return sorted(groups.values(), key=lambda a: (a.repo.lower(), a.bot.lower()))


def pr_authors(items: Iterable[WorkItem]) -> list[str]:
    """Unique human PR authors, first-seen order."""
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if not item.is_pull_request or not item.author or item.author == "unknown":
            continue
        if is_bot(item.author) or item.author in seen:
            continue
        seen.add(item.author)
        out.append(item.author)
    return out


@dataclass(frozen=True)
class ReportResult:
    path: Path
    window: ReportWindow
    planned: int
    opportunistic: int
    contributors: int
    new_contributors: int
    bot_items: int
    tap_promotions: int
    top_voices: int


@dataclass
class ReportRunner:
    """One report generation run: fetch, classify, render, write."""

    config: ReportConfig
    github: GitHubClient
    ui: Ui | None = None
    annotate: ActionsAnnotations = annotations
    fetch_items: Callable[[GitHubClient, str, str, ReportWindow], list[WorkItem]] = fetch_closed_items_from_repo
    today: Callable[[], date] = field(default=lambda: datetime.now(timezone.utc).date())

    def run(self, month: str | None = None) -> ReportResult:
        window = calculate_report_window(month)
        logger.info(
            "Report period: %s (%s to %s)",
            window.month_label,
            window.start_date.date().isoformat(),
            window.end_date.date().isoformat(),
        )

        planned, opportunistic = self._fetch_work(window)
        if not planned and not opportunistic:
            logger.warning("No items completed in this period - generating quiet period report")
            self.annotate.warning("This was a quiet period with no completed items")

        planned_human = [i for i in planned if not is_bot(i.author)]
        opportunistic_human = [i for i in opportunistic if not is_bot(i.author)]
        bot_items = [i for i in planned + opportunistic if is_bot(i.author)]
        logger.info("Planned work (human): %d", len(planned_human))
        logger.info("Opportunistic work (human): %d", len(opportunistic_human))
        logger.info("Bot contributions: %d", len(bot_items))

        contributors = pr_authors(planned_human + opportunistic_human)
        logger.info("Unique contributors (PR authors): %d", len(contributors))

        new_contributors = self._new_contributors(contributors).value_or([])
        if new_contributors:
            logger.info("New contributors this period: %s", ", ".join(new_contributors))
            plural = "s" if len(new_contributors) > 1 else ""
            self.annotate.notice(f"🎉 {len(new_contributors)} new contributor{plural} this period!")

        top_voices, engagement_summary = self._engagement(window, contributors).value_or(
            ([], EngagementSummary())
        )
        bot_activity = aggregate_bot_activity(bot_items)
        logger.info("Bot activity groups: %d", len(bot_activity))

        build_metrics = self._build_metrics(window)
        promotions = self._tap_promotions(window)
        experimental = self._experimental_additions(window)

        markdown = generate_report_markdown(
            planned_human,
            opportunistic_human,
            contributors,
            new_contributors,
            bot_activity,
            window,
            build_metrics.value,
            promotions.value,
            top_voices=top_voices,
            engagement_summary=engagement_summary if top_voices else None,
            experimental_additions=experimental.value,
            highlights=DistinguishedContributors(
                maintainers_emeritus=frozenset(self.config.contributors.maintainers_emeritus),
                special_guests=frozenset(self.config.contributors.special_guests),
            ),
            generated_on=self.today(),
        )

        path = self.config.outputs.report_path(window.end_date.date().isoformat())
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(markdown, encoding="utf-8")

        result = ReportResult(
            path=path,
            window=window,
            planned=len(planned_human),
            opportunistic=len(opportunistic_human),
            contributors=len(contributors),
            new_contributors=len(new_contributors),
            bot_items=len(bot_items),
            tap_promotions=len(promotions.value_or([])),
            top_voices=len(top_voices),
        )
        logger.info("Report generated: %s", path)
        self.annotate.notice(
            f"Report generated: {result.planned} planned + {result.opportunistic} opportunistic, "
            f"{result.contributors} contributors, {result.new_contributors} new, "
            f"{result.tap_promotions} tap promotions, {result.top_voices} top voices"
        )
        return result

    # --- Fetching -----------------------------------------------------------

    def _fetch_work(self, window: ReportWindow) -> tuple[list[WorkItem], list[WorkItem]]:
        repos_cfg = self.config.repos
        others = repos_cfg.opportunistic_repos()

        task = None
        if self.ui is not None:
            task = self.ui.progress.add_task("Fetching repositories", total=len(others) + 1)

        planned = self._fetch_repo(repos_cfg.planned_repo, window)
        self._advance(task)

        opportunistic: list[WorkItem] = []
        for repo in others:
            opportunistic.extend(self._fetch_repo(repo, window))
            self._advance(task)

        if not repos_cfg.include_issues:
            planned_prs = [i for i in planned if i.is_pull_request]
            opp_prs = [i for i in opportunistic if i.is_pull_request]
            logger.info(
                "Planned work from %s: %d PRs (%d issues excluded)",
                repos_cfg.planned_repo,
                len(planned_prs),
                len(planned) - len(planned_prs),
            )
            logger.info(
                "Opportunistic work: %d PRs (%d issues excluded)",
                len(opp_prs),
                len(opportunistic) - len(opp_prs),
            )
            planned, opportunistic = planned_prs, opp_prs
        return planned, opportunistic

    def _fetch_repo(self, repo: str, window: ReportWindow) -> list[WorkItem]:
        owner, name = repo.split("/", 1)
        logger.info("Fetching from %s...", repo)
        return self.fetch_items(self.github, owner, name, window)

    def _advance(self, task: object) -> None:
        if self.ui is not None and task is not None:
            self.ui.progress.advance(task)  # type: ignore[arg-type]

    # --- Optional features --------------------------------------------------

    def _optional(self, name: str, fn: Callable[[], T]) -> Feature[T]:
        """Run an enrichment; any failure short of auth, rate-limit or network loss leaves it absent."""
        try:
            return Feature.ok(fn())
        except (GitHubAuthError, GitHubNetworkError, GitHubRateLimitError):
            raise
        except Exception as exc:
            logger.warning("%s failed, continuing without it: %s", name, exc)
            return Feature.absent(str(exc))

    def _new_contributors(self, contributors: Sequence[str]) -> Feature[list[str]]:
        if not self.config.contributors.track_history:
            return Feature.absent("contributor history disabled")
        path = self.config.outputs.history_file()
        return self._optional(
            "New contributor detection",
            lambda: update_contributor_history(contributors, path),
        )

    def _engagement(
        self, window: ReportWindow, contributors: Sequence[str]
    ) -> Feature[tuple[list[str], EngagementSummary]]:
        cfg = self.config.engagement
        if not cfg.enabled:
            return Feature.absent("engagement tracking disabled")

        def compute() -> tuple[list[str], EngagementSummary]:
            engagement = aggregate_engagement(
                self.github,
                window,
                discussions_repo=self.config.repos.discussions_repo,
                monitored_repos=self.config.repos.monitored,
            )
            candidates = exclude_contributors(engagement, contributors)
            logger.info("Top Voices candidates (after filtering): %d", len(candidates))
            voices = get_top_voices(
                candidates, engagement, cfg.top_voices, min_candidates=cfg.min_candidates
            )
            if voices:
                self.annotate.notice(
                    f"👥 {len(voices)} Top Voices identified ({len(candidates)} participants)"
                )
            return voices, summarize_engagement(engagement, candidates)

        return self._optional("Engagement tracking", compute)

    def _build_metrics(self, window: ReportWindow) -> Feature[BuildMetrics]:
        cfg = self.config.build_metrics
        if not cfg.enabled:
            return Feature.absent("build metrics disabled")
        feature = self._optional(
            "Build metrics fetch",
            lambda: fetch_build_metrics(self.github, cfg.repos, window, workflows=cfg.workflows),
        )
        if feature.available:
            logger.info("Build metrics fetched: %d workflows tracked", len(feature.value.workflows))  # type: ignore[union-attr]
        elif feature.reason is None:
            logger.warning("Build metrics unavailable, section will be skipped")
            return Feature.absent("no workflow runs in window")
        return feature

    def _tap_promotions(self, window: ReportWindow) -> Feature[list[TapPromotion]]:
        repos_cfg = self.config.repos
        if not self.config.taps.promotions:
            return Feature.absent("tap promotions disabled")
        feature = self._optional(
            "Tap promotions fetch",
            lambda: fetch_tap_promotions(
                self.github,
                window,
                production_repo=repos_cfg.production_tap,
                package_dirs=repos_cfg.package_dirs,
            ),
        )
        promotions = feature.value_or([])
        if promotions:
            self.annotate.notice(f"🍺 {len(promotions)} packages promoted to production tap")
        return feature

    def _experimental_additions(self, window: ReportWindow) -> Feature[list[TapPromotion]]:
        repos_cfg = self.config.repos
        if not self.config.taps.experimental_additions:
            return Feature.absent("experimental additions disabled")
        return self._optional(
            "Experimental tap additions fetch",
            lambda: fetch_experimental_additions(
                self.github,
                window,
                experimental_repo=repos_cfg.experimental_tap,
                package_dirs=repos_cfg.package_dirs,
            ),
        )
