"""Label health statistics for a repository's open issues."""

from datetime import datetime, timedelta, timezone

import structlog

from autotriage.engine.labels import (
    LOOSE_COMPLEXITY_VALUES,
    LOOSE_PRIORITY_VALUES,
    LOOSE_TYPE_VALUES,
    loose_type,
    organic_complexity,
    organic_priority,
)
from autotriage.models.domain import Issue, TriageStats

log = structlog.get_logger(__name__)

UNLABELED = "unlabeled"
DEFAULT_STALE_DAYS = 30


def _histogram(values: list[str]) -> dict[str, int]:
    return {value: 0 for value in values} | {UNLABELED: 0}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def compute_stats(
    issues: list[Issue],
    owner: str,
    repo: str,
    now: datetime | None = None,
    stale_days: int = DEFAULT_STALE_DAYS,
) -> TriageStats:
    """Aggregate open issues into per-dimension counts, staleness and age.

    Every issue lands in exactly one bucket per dimension; issues without a
    recognizable label go to ``unlabeled``. An issue is stale when its last
    update (or creation, if never updated) is more than ``stale_days`` old.
    """
    now = _as_utc(now or datetime.now(timezone.utc))

    by_type = _histogram(LOOSE_TYPE_VALUES)
    by_priority = _histogram(LOOSE_PRIORITY_VALUES)
    by_complexity = _histogram(LOOSE_COMPLEXITY_VALUES)
    stale = 0
    ages: list[float] = []

    for issue in issues:
        by_type[loose_type(issue.labels) or UNLABELED] += 1
        by_priority[organic_priority(issue.labels) or UNLABELED] += 1
        by_complexity[organic_complexity(issue.labels) or UNLABELED] += 1

        if issue.created_at is not None:
            ages.append((now - _as_utc(issue.created_at)).total_seconds() / 86400)

        last_activity = issue.updated_at or issue.created_at
        if last_activity is not None and now - _as_utc(last_activity) > timedelta(days=stale_days):
            stale += 1

    average_age = round(sum(ages) / len(ages), 1) if ages else 0.0

    log.info("stats_computed", owner=owner, repo=repo, total=len(issues), stale=stale)
    return TriageStats(
        owner=owner,
        repo=repo,
        total=len(issues),
        by_type=by_type,
        by_priority=by_priority,
        by_complexity=by_complexity,
        stale=stale,
        average_age_days=average_age,
        stale_days=stale_days,
        generated_at=now,
    )
