from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_PATH = Path("static/data/contributors-history.json")

# Ordered; the trailing catch-all is a heuristic and also matches humans
# whose login happens to end in "bot".
BOT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^dependabot\[bot\]$"),
    re.compile(r"^renovate\[bot\]$"),
    re.compile(r"^github-actions\[bot\]$"),
    re.compile(r"^github-actions$"),
    re.compile(r"^copilot-swe-agent$"),
    re.compile(r"^ubot-\d+$"),
    re.compile(r"\[bot\]$"),
    re.compile(r"bot$", re.IGNORECASE),
)


def is_bot(username: str) -> bool:
    return any(p.search(username) for p in BOT_PATTERNS)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    os.replace(tmp, path)


@dataclass
class ContributorHistory:
    """Append-only ledger of every human who has ever authored a merged PR.

    Loading never fails: a missing, unreadable or corrupt file yields an empty
    history so that contributor tracking cannot block a report.
    """

    path: Path
    contributors: list[str] = field(default_factory=list)
    last_updated: str = field(default_factory=_now_iso)

    @classmethod
    def load(cls, path: Path) -> "ContributorHistory":
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.info("No existing contributor history at %s, starting fresh", path)
            return cls(path=path)
        except json.JSONDecodeError as exc:
            logger.warning("Contributor history %s is corrupted, resetting it: %s", path, exc)
            return cls(path=path)
        except OSError as exc:
            logger.warning("Could not read contributor history %s: %s", path, exc)
            return cls(path=path)

        if not isinstance(raw, dict) or not isinstance(raw.get("contributors"), list):
            logger.warning("Contributor history %s has an unexpected shape, resetting it", path)
            return cls(path=path)

        return cls(
            path=path,
            contributors=[str(c) for c in raw["contributors"]],
            last_updated=str(raw.get("lastUpdated") or _now_iso()),
        )

    def unseen(self, usernames: Iterable[str]) -> list[str]:
        """Humans in usernames not yet recorded, first-seen order, no duplicates."""
        known = set(self.contributors)
        out: list[str] = []
        for username in usernames:
            if not username or is_bot(username) or username in known:
                continue
            known.add(username)
            out.append(username)
        return out

    def add(self, usernames: Iterable[str]) -> None:
        self.contributors.extend(usernames)
        self.last_updated = _now_iso()

    def save(self) -> None:
        _atomic_write_json(
            self.path,
            {"lastUpdated": self.last_updated, "contributors": self.contributors},
        )


def update_contributor_history(
    contributors: Iterable[str], path: Path = DEFAULT_HISTORY_PATH
) -> list[str]:
    """Record first-time contributors and return them.

    The file is rewritten only when at least one new name was found, so a
    second call with the same input is a no-op.
    """
    history = ContributorHistory.load(path)
    new_contributors = history.unseen(contributors)
    if new_contributors:
        history.add(new_contributors)
        history.save()
        logger.info("Added %d new contributors to history", len(new_contributors))
    else:
        logger.info("No new contributors this period")
    return new_contributors


def get_new_contributors(
    contributors: Iterable[str], path: Path = DEFAULT_HISTORY_PATH
) -> list[str]:
    """Like update_contributor_history, without touching the file."""
    return ContributorHistory.load(path).unseen(contributors)
