from __future__ import annotations

from activity_report.classification.labels import (
    area_categories,
    category_badges,
    generate_badge,
    get_category_for_item,
    get_category_for_label,
    get_category_from_title,
    kind_categories,
    label_color,
)
from activity_report.domain.entities import Category, ItemKind, Label, WorkItem


def _item(title: str, labels: tuple[str, ...] = (), repo: str = "org/misc") -> WorkItem:
    return WorkItem(
        kind=ItemKind.PULL_REQUEST,
        number=1,
        title=title,
        url=f"https://github.com/{repo}/pull/1",
        author="alice",
        repository=repo,
        labels=tuple(Label(name=n) for n in labels),
    )


def test_label_stage_outranks_title_and_repository() -> None:
    item = _item("Update GNOME docs", labels=("kind/automation",), repo="projectbluefin/documentation")
    assert get_category_for_item(item) is Category.AUTOMATION


def test_first_known_label_wins_and_unknown_labels_are_skipped() -> None:
    item = _item("anything", labels=("kind/bug", "area/nvidia", "area/gnome"))
    assert get_category_for_item(item) is Category.HARDWARE


def test_title_stage_used_without_known_labels() -> None:
    assert get_category_for_item(_item("Add Japanese translation", labels=("kind/bug",))) is Category.LOCALIZATION
    assert get_category_for_item(_item("Fix typo in README")) is Category.DOCUMENTATION
    # Localization patterns are tried before Desktop.
    assert get_category_from_title("translate gnome shell strings") is Category.LOCALIZATION


def test_repository_stage_then_other() -> None:
    assert get_category_for_item(_item("Bump foo", repo="ublue-os/homebrew-tap")) is Category.ECOSYSTEM
    assert get_category_for_item(_item("Crash on login", repo="org/misc")) is Category.OTHER
    assert get_category_for_label("kind/bug") is Category.OTHER


def test_category_groups_keep_enumeration_order() -> None:
    assert area_categories() == [
        Category.DESKTOP,
        Category.DEVELOPMENT,
        Category.ECOSYSTEM,
        Category.SERVICES,
        Category.HARDWARE,
        Category.INFRASTRUCTURE,
    ]
    assert kind_categories() == [
        Category.DOCUMENTATION,
        Category.TECH_DEBT,
        Category.AUTOMATION,
        Category.LOCALIZATION,
    ]


def test_badges_fall_back_to_gray_and_escape_names() -> None:
    assert label_color("area/gnome") == "28A745"
    assert label_color("something-new") == "808080"

    badge = generate_badge(Label(name="good first issue", url="https://example.test/l"))
    assert badge.startswith("[![good first issue](https://img.shields.io/badge/good_first_issue-7057FF")
    assert badge.endswith("(https://example.test/l)")

    assert generate_badge(Label(name="mystery")) == ""
    assert generate_badge(Label(name="mystery", color="123456")).startswith("![mystery]")

    assert "area%2Fdx-17A2B8" in category_badges(Category.DEVELOPMENT)
