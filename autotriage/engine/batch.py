"""Batch triage over a repository's open issues.

Issues are processed strictly in sequence with a fixed pause between
oracle calls. Batch mode only reconciles labels; it never posts comments.
A failure on one issue is recorded and the loop moves on. Nothing is
rolled back.
"""

import asyncio

import structlog

from autotriage.engine.classifier import ClassificationPolicy
from autotriage.engine.labels import apply_label_delta, is_already_triaged, reconcile
from autotriage.models.domain import BatchItemResult, BatchSummary
from autotriage.providers.base import IssueStore

log = structlog.get_logger(__name__)

DEFAULT_BATCH_LIMIT = 100
DEFAULT_BATCH_DELAY = 4.0


class BatchTriageOrchestrator:
    """Classifies every untriaged open issue in a repository."""

    def __init__(
        self,
        store: IssueStore,
        policy: ClassificationPolicy,
        delay: float = DEFAULT_BATCH_DELAY,
        limit: int = DEFAULT_BATCH_LIMIT,
    ):
        self.store = store
        self.policy = policy
        self.delay = delay
        self.limit = limit

    async def run(
        self,
        owner: str,
        repo: str,
        dry_run: bool = True,
        limit: int | None = None,
    ) -> BatchSummary:
        """Run one batch.

        Args:
            owner: Repository owner
            repo: Repository name
            dry_run: Classify only; do not touch labels
            limit: Page size override, capped at the configured limit

        Raises:
            AutoTriageError: Only if the initial issue listing fails
        """
        page_size = min(limit, self.limit) if limit else self.limit
        log.info("batch_started", owner=owner, repo=repo, dry_run=dry_run, limit=page_size)

        issues = await self.store.search_issues(owner, repo, limit=page_size)
        summary = BatchSummary(owner=owner, repo=repo, dry_run=dry_run, total=len(issues))

        oracle_calls = 0
        for issue in issues:
            if is_already_triaged(issue.labels):
                log.debug("batch_issue_skipped", issue=issue.number, labels=issue.labels)
                summary.skipped += 1
                summary.items.append(BatchItemResult(issue.number, issue.title, "skipped"))
                continue

            if oracle_calls and self.delay > 0:
                await asyncio.sleep(self.delay)
            oracle_calls += 1

            try:
                classification = await self.policy.classify(issue.title, issue.body)
                delta = reconcile(issue.labels, classification)
                if not dry_run:
                    await apply_label_delta(self.store, owner, repo, issue.number, delta)
            except Exception as e:
                log.error("batch_issue_failed", issue=issue.number, error=str(e), exc_info=True)
                summary.failed += 1
                summary.items.append(
                    BatchItemResult(issue.number, issue.title, "failed", error=str(e))
                )
                continue

            summary.triaged += 1
            summary.record_classification(classification)
            summary.items.append(
                BatchItemResult(
                    issue.number,
                    issue.title,
                    "triaged",
                    classification=classification,
                    labels=delta.to_add,
                )
            )

        log.info(
            "batch_completed",
            owner=owner,
            repo=repo,
            total=summary.total,
            triaged=summary.triaged,
            skipped=summary.skipped,
            failed=summary.failed,
        )
        return summary
