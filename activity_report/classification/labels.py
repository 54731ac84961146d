from __future__ import annotations

from urllib.parse import quote

from activity_report.classification.rules import (
    DEFAULT_BADGE_COLOR,
    LABEL_CATEGORIES,
    LABEL_COLORS,
    REPO_CATEGORIES,
    TITLE_PATTERNS,
)
from activity_report.domain.entities import Category, Label, WorkItem

_KNOWN_LABELS: frozenset[str] = frozenset(
    label for _, labels in LABEL_CATEGORIES for label in labels
)


def category_labels(category: Category) -> tuple[str, ...]:
    for cat, labels in LABEL_CATEGORIES:
        if cat is category:
            return labels
    return ()


def area_categories() -> list[Category]:
    return [cat for cat, labels in LABEL_CATEGORIES if any(name.startswith("area/") for name in labels)]


def kind_categories() -> list[Category]:
    return [cat for cat, labels in LABEL_CATEGORIES if any(name.startswith("kind/") for name in labels)]


def get_category_for_label(label_name: str) -> Category:
    for category, labels in LABEL_CATEGORIES:
        if label_name in labels:
            return category
    return Category.OTHER


def get_category_from_title(title: str | None) -> Category | None:
    if not title:
        return None
    for category, patterns in TITLE_PATTERNS:
        for pattern in patterns:
            if pattern.search(title):
                return category
    return None


def get_category_from_repository(repo: str | None) -> Category | None:
    if not repo:
        return None
    return REPO_CATEGORIES.get(repo)


def has_known_label(item: WorkItem) -> bool:
    return any(name in _KNOWN_LABELS for name in item.label_names)


def get_category_for_item(item: WorkItem) -> Category:
    """Classify an item: label, then title keywords, then repository, else Other.

    Explicit labels always outrank the heuristic stages.
    """
    for name in item.label_names:
        if name in _KNOWN_LABELS:
            return get_category_for_label(name)

    by_title = get_category_from_title(item.title)
    if by_title is not None:
        return by_title

    by_repo = get_category_from_repository(item.repository)
    if by_repo is not None:
        return by_repo

    return Category.OTHER


def label_color(label_name: str) -> str:
    return LABEL_COLORS.get(label_name, DEFAULT_BADGE_COLOR)


def _shields_escape(label_name: str) -> str:
    # shields.io: '_' renders as space, '__' as underscore.
    return quote(label_name.replace("_", "__").replace(" ", "_"), safe="")


def badge_image(label_name: str, color: str | None = None) -> str:
    color = color or label_color(label_name)
    return (
        f"![{label_name}](https://img.shields.io/badge/"
        f"{_shields_escape(label_name)}-{color}?style=flat-square)"
    )


def generate_badge(label: Label) -> str:
    """Linked badge for a label; empty when no colour is known at all."""
    color = LABEL_COLORS.get(label.name) or label.color
    if not color:
        return ""
    image = badge_image(label.name, color)
    if not label.url:
        return image
    return f"[{image}]({label.url})"


def category_badges(category: Category) -> str:
    return " ".join(badge_image(name) for name in category_labels(category))
