from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ItemKind(str, Enum):
    ISSUE = "Issue"
    PULL_REQUEST = "PullRequest"


class Category(str, Enum):
    """Report categories in enumeration (display) order."""

    DESKTOP = "Desktop"
    DEVELOPMENT = "Development"
    ECOSYSTEM = "Ecosystem"
    SERVICES = "System Services & Policies"
    HARDWARE = "Hardware"
    INFRASTRUCTURE = "Infrastructure"
    DOCUMENTATION = "Documentation"
    TECH_DEBT = "Tech Debt"
    AUTOMATION = "Automation"
    LOCALIZATION = "Localization"
    OTHER = "Other"


@dataclass(frozen=True)
class Label:
    name: str
    color: str | None = None
    url: str | None = None


@dataclass(frozen=True)
class WorkItem:
    """A closed issue or merged pull request fetched from a repository."""

    kind: ItemKind
    number: int
    title: str
    url: str
    author: str
    repository: str
    labels: tuple[Label, ...] = ()
    closed_at: datetime | None = None

    @property
    def label_names(self) -> tuple[str, ...]:
        return tuple(label.name for label in self.labels)

    @property
    def is_pull_request(self) -> bool:
        return self.kind is ItemKind.PULL_REQUEST


@dataclass(frozen=True)
class ReportWindow:
    """Closed UTC interval covered by one report."""

    start_date: datetime
    end_date: datetime

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError(
                f"Report window start {self.start_date.isoformat()} is after end {self.end_date.isoformat()}"
            )

    def contains(self, moment: datetime) -> bool:
        return self.start_date <= moment <= self.end_date

    @property
    def month_label(self) -> str:
        return self.start_date.strftime("%B %Y")


@dataclass(frozen=True)
class Comment:
    """One engagement event: a comment left by someone other than the thread author."""

    author: str
    created_at: datetime


@dataclass
class EngagementStats:
    discussions: int = 0
    issues: int = 0

    @property
    def total(self) -> int:
        return self.discussions + self.issues


@dataclass(frozen=True)
class EngagementSummary:
    total_discussions: int = 0
    total_issues: int = 0
    unique_participants: int = 0


@dataclass
class BotActivity:
    repo: str
    bot: str
    count: int = 0
    items: list[WorkItem] = field(default_factory=list)


@dataclass(frozen=True)
class TapPromotion:
    package_name: str
    description: str | None
    merged_at: datetime
    pr_number: int
    pr_url: str


@dataclass(frozen=True)
class WorkflowHealth:
    repo: str
    workflow: str
    total_runs: int
    successful: int
    failed: int

    @property
    def success_rate(self) -> float:
        finished = self.successful + self.failed
        if finished == 0:
            return 0.0
        return self.successful / finished


@dataclass(frozen=True)
class BuildMetrics:
    workflows: tuple[WorkflowHealth, ...]

    @property
    def total_runs(self) -> int:
        return sum(w.total_runs for w in self.workflows)
