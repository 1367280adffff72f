"""Triage engine: classification, label reconciliation and the orchestrators."""

from autotriage.engine.batch import BatchTriageOrchestrator
from autotriage.engine.classifier import ClassificationPolicy
from autotriage.engine.ranking import rank_issues
from autotriage.engine.stats import compute_stats
from autotriage.engine.triage import TriageOrchestrator

__all__ = [
    "BatchTriageOrchestrator",
    "ClassificationPolicy",
    "TriageOrchestrator",
    "compute_stats",
    "rank_issues",
]
