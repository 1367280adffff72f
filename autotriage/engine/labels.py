"""Label reconciler.

Triage labels follow the naming convention ``type-*``, ``priority-*`` and
``complexity-*``. Reconciliation is a full replace of that family: every
current triage label is removed and the three canonical labels for the new
classification are added. Labels outside the family are never touched.
"""

import re

import structlog

from autotriage.enums import Complexity, IssueType, Priority
from autotriage.models.domain import Classification, LabelDelta
from autotriage.providers.base import IssueStore

log = structlog.get_logger(__name__)

TRIAGE_LABEL_PATTERN = re.compile(r"^(type|priority|complexity)-")


def is_triage_label(label: str) -> bool:
    return TRIAGE_LABEL_PATTERN.match(label) is not None


def dedupe_labels(labels: list[str]) -> list[str]:
    """Drop case-insensitive duplicates, keeping the first spelling."""
    seen: set[str] = set()
    unique = []
    for label in labels:
        key = label.lower()
        if key not in seen:
            seen.add(key)
            unique.append(label)
    return unique


def labels_for(classification: Classification) -> list[str]:
    """Canonical triage labels, e.g. ``["type-bug", "priority-p1", "complexity-low"]``."""
    return dedupe_labels(
        [
            f"type-{classification.type.value}",
            f"priority-{classification.priority.value.lower()}",
            f"complexity-{classification.complexity.value.lower()}",
        ]
    )


def reconcile(current_labels: list[str], classification: Classification) -> LabelDelta:
    return LabelDelta(
        to_remove=[label for label in current_labels if is_triage_label(label)],
        to_add=labels_for(classification),
    )


# Loose matching used by the batch skip rule and stats. It recognizes
# hand-applied labels ("bug", "P1") as well as the triage convention.
LOOSE_TYPE_VALUES = [t.value for t in IssueType]
LOOSE_PRIORITY_VALUES = [p.value for p in Priority]
LOOSE_COMPLEXITY_VALUES = [c.value for c in Complexity]


def loose_type(labels: list[str]) -> str | None:
    lowered = [label.lower() for label in labels]
    for value in LOOSE_TYPE_VALUES:
        if any(value in label for label in lowered):
            return value
    return None


def loose_priority(labels: list[str]) -> str | None:
    lowered = [label.lower() for label in labels]
    for value in LOOSE_PRIORITY_VALUES:
        if any(value.lower() in label for label in lowered):
            return value
    return None


def loose_complexity(labels: list[str]) -> str | None:
    lowered = [label.lower() for label in labels]
    for value in LOOSE_COMPLEXITY_VALUES:
        if any(f"complexity-{value.lower()}" in label for label in lowered):
            return value
    return None


# Whole-word aliases for hand-applied labels, used by stats only.
ORGANIC_PRIORITY_ALIASES: dict[str, str] = {
    "critical": Priority.P0.value,
    "urgent": Priority.P0.value,
}
ORGANIC_COMPLEXITY_ALIASES: dict[str, str] = {
    "easy": Complexity.LOW.value,
    "hard": Complexity.HIGH.value,
}


def _organic_match(labels: list[str], aliases: dict[str, str]) -> str | None:
    lowered = [label.lower() for label in labels]
    for alias, value in aliases.items():
        pattern = re.compile(rf"\b{re.escape(alias)}\b")
        if any(pattern.search(label) for label in lowered):
            return value
    return None


def organic_priority(labels: list[str]) -> str | None:
    """Loose priority, also reading ``critical``/``urgent`` as P0."""
    return loose_priority(labels) or _organic_match(labels, ORGANIC_PRIORITY_ALIASES)


def organic_complexity(labels: list[str]) -> str | None:
    """Loose complexity, also reading ``easy`` as Low and ``hard`` as High."""
    return loose_complexity(labels) or _organic_match(labels, ORGANIC_COMPLEXITY_ALIASES)


def is_already_triaged(labels: list[str]) -> bool:
    """True when every dimension already carries some label.

    This is intentionally looser than ``reconcile``: ``["bug", "P1",
    "complexity-medium"]`` counts as triaged even though none of the
    first two follow the triage naming convention.
    """
    lowered = [label.lower() for label in labels]
    has_type = loose_type(labels) is not None or any("type-" in label for label in lowered)
    has_priority = loose_priority(labels) is not None or any("priority-" in label for label in lowered)
    has_complexity = any("complexity-" in label for label in lowered)
    return has_type and has_priority and has_complexity


async def apply_label_delta(
    store: IssueStore,
    owner: str,
    repo: str,
    number: int,
    delta: LabelDelta,
) -> None:
    """Apply a delta remove-then-add.

    Removal of an absent label and addition of a present label both count
    as success at the store level, so applying the same delta twice is
    harmless.
    """
    if delta.to_remove:
        log.info("removing_triage_labels", issue=number, labels=delta.to_remove)
    for label in delta.to_remove:
        await store.remove_label(owner, repo, number, label)

    if not delta.to_add:
        log.warning("no_labels_to_apply", issue=number)
        return

    log.info("applying_labels", issue=number, labels=delta.to_add)
    await store.add_labels(owner, repo, number, delta.to_add)
