from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Feature(Generic[T]):
    """Outcome of an optional report enrichment.

    Either carries a value, or records why the feature is absent. Renderer
    sections that depend on a feature are emitted only when it is available.
    """

    value: T | None = None
    reason: str | None = None

    @classmethod
    def ok(cls, value: T) -> "Feature[T]":
        return cls(value=value)

    @classmethod
    def absent(cls, reason: str) -> "Feature[T]":
        return cls(value=None, reason=reason)

    @property
    def available(self) -> bool:
        return self.reason is None and self.value is not None

    def value_or(self, default: T) -> T:
        if self.available:
            return self.value  # type: ignore[return-value]
        return default
