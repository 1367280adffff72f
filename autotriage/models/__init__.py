"""Domain models for autotriage."""

from autotriage.models.domain import (
    BatchItemResult,
    BatchSummary,
    Classification,
    Comment,
    Issue,
    LabelDelta,
    RankedIssue,
    TriageResult,
    TriageStats,
)

__all__ = [
    "BatchItemResult",
    "BatchSummary",
    "Classification",
    "Comment",
    "Issue",
    "LabelDelta",
    "RankedIssue",
    "TriageResult",
    "TriageStats",
]
