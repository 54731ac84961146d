"""Ordered, editable classification tables.

Order matters everywhere in this module: the first matching rule wins, and
LABEL_CATEGORIES also fixes the order of report sections.
"""
from __future__ import annotations

import re
from typing import Final

from activity_report.domain.entities import Category

DEFAULT_BADGE_COLOR: Final[str] = "808080"

# Hex colours without '#', tuned for readability in light and dark mode.
LABEL_COLORS: Final[dict[str, str]] = {
    "area/gnome": "28A745",
    "area/aurora": "1D76DB",
    "area/bling": "F9C74F",
    "area/dx": "17A2B8",
    "area/buildstream": "0066FF",
    "area/finpilot": "7C3AED",
    "area/brew": "E8590C",
    "area/just": "E99695",
    "area/bluespeed": "1D76DB",
    "area/services": "4A90E2",
    "area/policy": "5B8BC1",
    "area/iso": "A0522D",
    "area/upstream": "5CB85C",
    "area/flatpak": "9333EA",
    "area/hardware": "F59E0B",
    "area/nvidia": "76B900",
    "area/testing": "F59E0B",
    "aarch64": "F59E0B",
    "kind/bug": "E8590C",
    "kind/enhancement": "17A2B8",
    "kind/documentation": "0066FF",
    "kind/tech-debt": "D4A259",
    "kind/automation": "5B8BC1",
    "kind/github-action": "2088FF",
    "kind/parity": "9333EA",
    "kind/renovate": "3B82F6",
    "kind/translation": "8B5CF6",
    "good first issue": "7057FF",
    "help wanted": "28A745",
    "wontfix": "6C757D",
    "duplicate": "6C757D",
    "invalid": "E8590C",
    "question": "D946EF",
}

LABEL_CATEGORIES: Final[tuple[tuple[Category, tuple[str, ...]], ...]] = (
    (Category.DESKTOP, ("area/gnome", "area/aurora", "area/bling")),
    (Category.DEVELOPMENT, ("area/dx",)),
    (Category.ECOSYSTEM, ("area/brew", "area/bluespeed", "area/flatpak")),
    (Category.SERVICES, ("area/services", "area/policy")),
    (Category.HARDWARE, ("area/hardware", "area/nvidia", "aarch64")),
    (
        Category.INFRASTRUCTURE,
        ("area/iso", "area/upstream", "area/buildstream", "area/finpilot", "area/just", "area/testing"),
    ),
    (Category.DOCUMENTATION, ("kind/documentation",)),
    (Category.TECH_DEBT, ("kind/tech-debt", "kind/parity")),
    (Category.AUTOMATION, ("kind/automation", "kind/github-action", "kind/renovate")),
    (Category.LOCALIZATION, ("kind/translation",)),
)


def _rx(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


# Fallback for items without a known label.
TITLE_PATTERNS: Final[tuple[tuple[Category, tuple[re.Pattern[str], ...]], ...]] = (
    (
        Category.LOCALIZATION,
        _rx(
            r"translation",
            r"translate",
            r"\bl10n\b",
            r"\bi18n\b",
            r"french|czech|german|spanish|italian|portuguese|russian|chinese|japanese",
        ),
    ),
    (Category.DOCUMENTATION, _rx(r"\bdocs?\b", r"documentation", r"readme", r"\bguide\b")),
    (Category.ECOSYSTEM, _rx(r"flatpak", r"bazaar", r"flathub", r"homebrew", r"\bbrew\b")),
    (
        Category.DESKTOP,
        _rx(
            r"\bgnome\b",
            r"gnomeos",
            r"dconf",
            r"\bkde\b",
            r"\bplasma\b",
            r"aurora",
            r"starship",
            r"terminal",
            r"\bshell\b",
            r"\bbash\b",
            r"\bzsh\b",
            r"prompt",
            r"\bbling\b",
            r"\bfonts?\b",
            r"\blogos?\b",
        ),
    ),
    (Category.HARDWARE, _rx(r"kernel", r"driver", r"firmware", r"nvidia", r"\bgpu\b")),
    (
        Category.INFRASTRUCTURE,
        _rx(
            r"\biso\b",
            r"upstream",
            r"\bbuild",
            r"buildstream",
            r"\bci\b",
            r"pipeline",
            r"\bjust\b",
            r"justfile",
            r"actions",
            r"chunkah",
        ),
    ),
    (
        Category.DEVELOPMENT,
        _rx(r"\bide\b", r"vscode", r"jetbrains", r"\bdx\b", r"docker", r"qemu", r"\bvm\b"),
    ),
    (Category.SERVICES, _rx(r"systemd", r"service", r"\bpolicy\b", r"polkit", r"selinux")),
)

REPO_CATEGORIES: Final[dict[str, Category]] = {
    "projectbluefin/documentation": Category.DOCUMENTATION,
    "ublue-os/homebrew-tap": Category.ECOSYSTEM,
    "ublue-os/homebrew-experimental-tap": Category.ECOSYSTEM,
}
