from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Highlight = Literal["diamond", "silver", "gold"]


@dataclass(frozen=True)
class DistinguishedContributors:
    """People whose profile cards always carry a foil effect.

    Maintainers emeritus get diamond, special guests silver. Either outranks
    the gold "New Light" effect given to first-time contributors.
    """

    maintainers_emeritus: frozenset[str] = field(default_factory=frozenset)
    special_guests: frozenset[str] = field(default_factory=frozenset)

    def highlight_for(self, username: str) -> Highlight | None:
        if username in self.maintainers_emeritus:
            return "diamond"
        if username in self.special_guests:
            return "silver"
        return None

    def card_highlight(self, username: str, *, is_new: bool) -> Highlight | None:
        distinguished = self.highlight_for(username)
        if distinguished is not None:
            return distinguished
        return "gold" if is_new else None
