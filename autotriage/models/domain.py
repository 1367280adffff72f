"""
Domain models for the triage pipeline.

These dataclasses are the normalized internal representation that the
engine works with. Provider adapters convert tracker-specific objects
(PyGithub issues, comments) and oracle responses into these types at the
boundary, so nothing past the adapters ever sees a loose response shape.

Example:
    Building a classification by hand::

        classification = Classification(
            type=IssueType.BUG,
            priority=Priority.P1,
            complexity=Complexity.MEDIUM,
            rationale="Login fails for SSO users",
        )
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from autotriage.enums import Complexity, IssueType, Priority


@dataclass
class Issue:
    """An issue as seen by the engine.

    Every operation re-fetches issues from the tracker; instances are never
    cached across invocations.
    """

    number: int
    """Repository-scoped issue number (e.g., #42)."""

    title: str
    """Issue title, typically a single line."""

    body: str
    """Full issue description. May be empty; never None."""

    labels: list[str]
    """Label names attached to the issue, in tracker order."""

    comments: int = 0
    """Number of comments on the issue."""

    assignee: str | None = None
    """Login of the first assignee, or None if unclaimed."""

    created_at: datetime | None = None
    """Timestamp when the issue was created."""

    updated_at: datetime | None = None
    """Timestamp of the most recent update (edits, comments, label changes)."""

    url: str = ""
    """Web URL of the issue."""

    @property
    def is_assigned(self) -> bool:
        return bool(self.assignee)


@dataclass
class Comment:
    """An issue comment."""

    id: int
    body: str
    author: str = "unknown"
    created_at: datetime | None = None


@dataclass(frozen=True)
class Classification:
    """Type/priority/complexity judgment for one issue.

    Immutable: a new classification replaces the old one entirely.
    """

    type: IssueType
    priority: Priority
    complexity: Complexity
    rationale: str

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.type.value,
            "priority": self.priority.value,
            "complexity": self.complexity.value,
            "rationale": self.rationale,
        }


@dataclass(frozen=True)
class LabelDelta:
    """Labels to remove and add to converge an issue on a classification."""

    to_remove: list[str] = field(default_factory=list)
    to_add: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_remove and not self.to_add


@dataclass
class TriageResult:
    """Outcome of triaging a single issue."""

    owner: str
    repo: str
    number: int
    classification: Classification
    labels_applied: list[str]
    labels_removed: list[str]
    annotation_posted: bool
    """False when an existing triage comment was preserved."""

    def summary(self) -> str:
        c = self.classification
        classified = f"Classified as: {c.type} ({c.priority}, {c.complexity})."
        if self.annotation_posted:
            return (
                f"Successfully triaged issue #{self.number}. {classified} "
                f"Labels applied: {', '.join(self.labels_applied)}. Triage comment posted."
            )
        return (
            f"Successfully updated triage labels for issue #{self.number}. {classified} "
            "Existing triage comment was preserved (no duplicate posted)."
        )


@dataclass
class BatchItemResult:
    """Per-issue line of a batch run."""

    number: int
    title: str
    status: str
    """One of "triaged", "skipped", "failed"."""

    classification: Classification | None = None
    labels: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass
class BatchSummary:
    """Ephemeral aggregate of one batch invocation. Never persisted."""

    owner: str
    repo: str
    dry_run: bool
    total: int = 0
    triaged: int = 0
    skipped: int = 0
    failed: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    by_priority: dict[str, int] = field(default_factory=dict)
    by_complexity: dict[str, int] = field(default_factory=dict)
    items: list[BatchItemResult] = field(default_factory=list)

    def record_classification(self, classification: Classification) -> None:
        """Increment the per-dimension histograms."""
        for histogram, key in (
            (self.by_type, classification.type.value),
            (self.by_priority, classification.priority.value),
            (self.by_complexity, classification.complexity.value),
        ):
            histogram[key] = histogram.get(key, 0) + 1


@dataclass
class RankedIssue:
    """An unassigned issue scored for beginner-friendliness."""

    issue: Issue
    score: int
    complexity: str
    skill_fit: str


@dataclass
class TriageStats:
    """Point-in-time label health metrics for a repository."""

    owner: str
    repo: str
    total: int
    by_type: dict[str, int]
    by_priority: dict[str, int]
    by_complexity: dict[str, int]
    stale: int
    """Issues whose last update is older than the stale threshold."""

    average_age_days: float
    stale_days: int
    generated_at: datetime

    @staticmethod
    def percentage(count: int, total: int) -> float:
        if total == 0:
            return 0.0
        return round(count * 100.0 / total, 1)

    def to_dict(self) -> dict[str, Any]:
        def bucketed(counts: dict[str, int]) -> dict[str, dict[str, float]]:
            return {
                name: {"count": count, "percent": self.percentage(count, self.total)}
                for name, count in counts.items()
            }

        return {
            "repository": f"{self.owner}/{self.repo}",
            "generated_at": self.generated_at.isoformat(),
            "total_open_issues": self.total,
            "by_type": bucketed(self.by_type),
            "by_priority": bucketed(self.by_priority),
            "by_complexity": bucketed(self.by_complexity),
            "stale": {
                "count": self.stale,
                "percent": self.percentage(self.stale, self.total),
                "threshold_days": self.stale_days,
            },
            "average_age_days": self.average_age_days,
        }
