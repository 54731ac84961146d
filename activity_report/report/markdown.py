"""MDX rendering for the monthly report.

Rendering is a pure function of its inputs. Every list-producing section
takes the frozenset of URLs shown so far and returns it extended with the
URLs it listed, so an item appears in at most one list of the document.
"""
from __future__ import annotations

from datetime import date
from typing import Iterable, Sequence

from activity_report.classification.labels import (
    area_categories,
    category_badges,
    category_labels,
    get_category_for_item,
    has_known_label,
    kind_categories,
)
from activity_report.contributors.distinguished import DistinguishedContributors
from activity_report.domain.entities import (
    BotActivity,
    BuildMetrics,
    Category,
    EngagementSummary,
    ReportWindow,
    TapPromotion,
    WorkItem,
)

Displayed = frozenset[str]

# Placed between '@' and the login so GitHub does not notify the user.
ZERO_WIDTH_SPACE = "\u200b"

PROJECT_BOARD_URL = "https://todo.projectbluefin.io"
NEW_ISSUE_URL = "https://github.com/projectbluefin/common/issues/new"

_CARD_GRID = (
    "<div style={{ display: 'grid', gridTemplateColumns: 'repeat(2, 1fr)', "
    "gap: '1.5rem', marginBottom: '2rem' }}>"
)


def format_item_line(item: WorkItem) -> str:
    return f"- [#{item.number} {item.title}]({item.url}) by @{ZERO_WIDTH_SPACE}{item.author}"


def format_item_list(items: Iterable[WorkItem], displayed: Displayed) -> tuple[str, Displayed]:
    lines: list[str] = []
    shown = set(displayed)
    for item in items:
        if item.url in shown:
            continue
        shown.add(item.url)
        lines.append(format_item_line(item))
    return "\n".join(lines), frozenset(shown)


def belongs_to_category(item: WorkItem, category: Category) -> bool:
    """Label match, or for items without any known label, the fallback classifier."""
    labels = category_labels(category)
    if any(name in labels for name in item.label_names):
        return True
    if has_known_label(item):
        return False
    return get_category_for_item(item) is category


def _pending(items: Sequence[WorkItem], category: Category, displayed: Displayed) -> list[WorkItem]:
    return [i for i in items if i.url not in displayed and belongs_to_category(i, category)]


def render_category_section(
    planned_items: Sequence[WorkItem],
    opportunistic_items: Sequence[WorkItem],
    category: Category,
    displayed: Displayed,
) -> tuple[str, Displayed]:
    header = f"### {category.value}\n\n{category_badges(category)}"

    planned, displayed = format_item_list(_pending(planned_items, category, displayed), displayed)
    opportunistic, displayed = format_item_list(
        _pending(opportunistic_items, category, displayed), displayed
    )
    if not planned and not opportunistic:
        return f"{header}\n\n> Status: _ChillOps_", displayed

    parts = [header]
    if planned:
        parts.append(f"#### 📋 Planned Work\n\n{planned}")
    if opportunistic:
        parts.append(f"#### ⚡ Opportunistic Work\n\n{opportunistic}")
    return "\n\n".join(parts), displayed


def _render_category_group(
    title: str,
    categories: Sequence[Category],
    planned_items: Sequence[WorkItem],
    opportunistic_items: Sequence[WorkItem],
    displayed: Displayed,
) -> tuple[str, Displayed]:
    sections: list[str] = []
    for category in categories:
        section, displayed = render_category_section(
            planned_items, opportunistic_items, category, displayed
        )
        sections.append(section)
    return f"# {title}\n\n" + "\n\n".join(sections), displayed


def render_uncategorized_section(items: Sequence[WorkItem], displayed: Displayed) -> tuple[str, Displayed]:
    body, displayed = format_item_list(items, displayed)
    if not body:
        return "", displayed
    return f"## 📋 Other\n\n{body}", displayed


def _frontmatter(window: ReportWindow) -> str:
    return (
        "---\n"
        f'title: "Monthly Report: {window.month_label}"\n'
        f"date: {window.end_date.date().isoformat()}\n"
        "tags: [monthly-report, project-activity]\n"
        "---\n\n"
        "import GitHubProfileCard from '@site/src/components/GitHubProfileCard';"
    )


def _summary(
    window: ReportWindow,
    planned_count: int,
    opportunistic_count: int,
    contributor_count: int,
    new_count: int,
    bot_count: int,
    promotions: Sequence[TapPromotion] | None,
    top_voices: Sequence[str],
) -> str:
    total = planned_count + opportunistic_count
    rows = [
        ("Month", window.month_label),
        ("Total items", str(total)),
        ("Planned work", str(planned_count)),
        ("Opportunistic work", str(opportunistic_count)),
        ("Contributors", f"{new_count} new, {contributor_count} total"),
        ("Bot PRs", str(bot_count)),
    ]
    if promotions is not None:
        rows.append(("Tap promotions", str(len(promotions))))
    if top_voices:
        rows.append(("Top voices", str(len(top_voices))))

    table = "\n".join(
        ["| Metric | Value |", "|--------|-------|"] + [f"| {k} | {v} |" for k, v in rows]
    )
    out = f"# Summary\n\n{table}"
    if total == 0:
        out += "\n\n> This was a quiet period with no completed items."
    return out


def _promotions_table(title: str, intro: str, promotions: Sequence[TapPromotion]) -> str:
    if not promotions:
        return ""
    rows = ["| Package | Description | PR | Merged |", "|---------|-------------|----|--------|"]
    for p in sorted(promotions, key=lambda p: (p.merged_at, p.package_name)):
        description = (p.description or "No description available").replace("|", "\\|")
        rows.append(
            f"| `{p.package_name}` | {description} | [#{p.pr_number}]({p.pr_url}) "
            f"| {p.merged_at.date().isoformat()} |"
        )
    return f"## {title}\n\n{intro}\n\n" + "\n".join(rows)


def sorted_bot_activity(bot_activity: Iterable[BotActivity]) -> list[BotActivity]:
    return sorted(bot_activity, key=lambda a: (a.repo.lower(), a.bot.lower()))


def render_bot_activity_section(
    bot_activity: Sequence[BotActivity], displayed: Displayed
) -> tuple[str, Displayed]:
    if not bot_activity:
        return "", displayed

    groups = sorted_bot_activity(bot_activity)
    rows = ["| Repository | Bot | PRs |", "|------------|-----|-----|"]
    for activity in groups:
        short_repo = activity.repo.split("/", 1)[-1]
        rows.append(f"| {short_repo} | {activity.bot} | {activity.count} |")

    shown = set(displayed)
    details: list[str] = []
    for activity in groups:
        for item in activity.items:
            if item.url in shown:
                continue
            shown.add(item.url)
            details.append(f"- [#{item.number} {item.title}]({item.url}) in {item.repository}")

    section = (
        "## 🤖 Bot Activity\n\n"
        + "\n".join(rows)
        + "\n\n<details>\n<summary>View bot activity details</summary>\n\n"
        + "\n".join(details)
        + "\n\n</details>"
    )
    return section, frozenset(shown)


def render_build_health_section(metrics: BuildMetrics | None) -> str:
    if metrics is None or not metrics.workflows:
        return ""
    rows = ["| Repository | Workflow | Runs | Success rate |", "|------------|----------|------|--------------|"]
    for w in metrics.workflows:
        rows.append(
            f"| {w.repo.split('/', 1)[-1]} | {w.workflow} | {w.total_runs} | {w.success_rate:.0%} |"
        )
    return "## 🏗️ Build Health\n\n" + "\n".join(rows)


def _unique(usernames: Iterable[str], exclude: Iterable[str] = ()) -> list[str]:
    seen = set(exclude)
    out: list[str] = []
    for u in usernames:
        if u and u not in seen:
            seen.add(u)
            out.append(u)
    return out


def _card(username: str, highlight: str | None) -> str:
    if highlight is None:
        return f'<GitHubProfileCard username="{username}" />'
    if highlight == "gold":
        return f'<GitHubProfileCard username="{username}" highlight={{true}} />'
    return f'<GitHubProfileCard username="{username}" highlight="{highlight}" />'


def _card_grid(cards: Sequence[str]) -> str:
    return f"{_CARD_GRID}\n\n" + "\n\n".join(cards) + "\n\n</div>"


def render_contributors_section(
    contributors: Sequence[str],
    new_contributors: Sequence[str],
    *,
    top_voices: Sequence[str] = (),
    engagement_summary: EngagementSummary | None = None,
    highlights: DistinguishedContributors | None = None,
) -> str:
    highlights = highlights or DistinguishedContributors()
    new_lights = _unique(new_contributors)
    wayfinders = _unique(contributors, exclude=new_lights)
    voices = _unique(top_voices, exclude=new_lights + wayfinders)

    parts: list[str] = []
    if new_lights:
        cards = [_card(u, highlights.card_highlight(u, is_new=True)) for u in new_lights]
        parts.append(
            "## 🌟 New Lights\n\nWelcome to our first-time contributors!\n\n" + _card_grid(cards)
        )
    if wayfinders:
        cards = [_card(u, highlights.card_highlight(u, is_new=False)) for u in wayfinders]
        parts.append(
            "## 🧭 Wayfinders\n\nThank you to everyone who contributed this period!\n\n"
            + _card_grid(cards)
        )
    if voices:
        intro = "Community members who helped others in discussions and issues."
        if engagement_summary is not None:
            intro += (
                f" {engagement_summary.unique_participants} participants left "
                f"{engagement_summary.total_discussions} discussion comments and "
                f"{engagement_summary.total_issues} issue comments this period."
            )
        cards = [_card(u, highlights.highlight_for(u)) for u in voices]
        parts.append(f"## 📣 Top Voices\n\n{intro}\n\n" + _card_grid(cards))

    if not parts:
        return ""
    return "# Contributors\n\n" + "\n\n".join(parts)


def _footer(generated_on: date) -> str:
    return (
        "---\n\n"
        "*Want to see the latest OS releases? Check out the [Changelogs](/changelogs) page. "
        "For announcements and deep dives, read our [Blog](/blog).*\n\n"
        f"*This report was automatically generated from [todo.projectbluefin.io]({PROJECT_BOARD_URL}).*\n\n"
        "---\n\n"
        f"*Generated on {generated_on.isoformat()}*  \n"
        f"[View Project Board]({PROJECT_BOARD_URL}) | [Report an Issue]({NEW_ISSUE_URL})"
    )


def generate_report_markdown(
    planned_items: Sequence[WorkItem],
    opportunistic_items: Sequence[WorkItem],
    contributors: Sequence[str],
    new_contributors: Sequence[str],
    bot_activity: Sequence[BotActivity],
    window: ReportWindow,
    build_metrics: BuildMetrics | None = None,
    tap_promotions: Sequence[TapPromotion] | None = None,
    *,
    top_voices: Sequence[str] = (),
    engagement_summary: EngagementSummary | None = None,
    experimental_additions: Sequence[TapPromotion] | None = None,
    highlights: DistinguishedContributors | None = None,
    generated_on: date | None = None,
) -> str:
    displayed: Displayed = frozenset()
    contributor_names = _unique(contributors)
    new_names = _unique(new_contributors)
    voices = _unique(top_voices, exclude=contributor_names + new_names)

    summary = _summary(
        window,
        len(planned_items),
        len(opportunistic_items),
        len(_unique(contributor_names + new_names)),
        len(new_names),
        sum(a.count for a in bot_activity),
        tap_promotions,
        voices,
    )

    area, displayed = _render_category_group(
        "Focus Area", area_categories(), planned_items, opportunistic_items, displayed
    )
    kind, displayed = _render_category_group(
        "Work by Type", kind_categories(), planned_items, opportunistic_items, displayed
    )
    other, displayed = render_uncategorized_section(
        list(planned_items) + list(opportunistic_items), displayed
    )
    promotions = _promotions_table(
        "🍺 Tap Promotions",
        "Packages promoted to the production tap this period.",
        tap_promotions or (),
    )
    experimental = _promotions_table(
        "🧪 Experimental Tap Additions",
        "New packages available for testing in the experimental tap.",
        experimental_additions or (),
    )
    bots, displayed = render_bot_activity_section(bot_activity, displayed)
    build = render_build_health_section(build_metrics)
    people = render_contributors_section(
        contributor_names,
        new_names,
        top_voices=voices,
        engagement_summary=engagement_summary,
        highlights=highlights,
    )
    footer = _footer(generated_on or window.end_date.date())

    sections = [
        _frontmatter(window),
        summary,
        area,
        kind,
        other,
        promotions,
        experimental,
        bots,
        build,
        people,
        footer,
    ]
    return "\n\n".join(s for s in sections if s.strip()) + "\n"
