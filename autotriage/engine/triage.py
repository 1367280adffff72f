"""Single-issue triage orchestrator.

Flow: fetch the issue, check for an existing triage comment, classify,
reconcile labels (remove then add), and post the triage comment only when
none exists yet. Running it twice leaves identical labels and exactly one
triage comment.
"""

import structlog

from autotriage.engine.annotations import check_existing_annotation
from autotriage.engine.classifier import ClassificationPolicy
from autotriage.engine.labels import apply_label_delta, reconcile
from autotriage.models.domain import TriageResult
from autotriage.providers.base import IssueStore
from autotriage.rendering import TemplateRenderer

log = structlog.get_logger(__name__)


class TriageOrchestrator:
    """Triages one issue end to end."""

    def __init__(
        self,
        store: IssueStore,
        policy: ClassificationPolicy,
        renderer: TemplateRenderer | None = None,
    ):
        self.store = store
        self.policy = policy
        self.renderer = renderer or TemplateRenderer()

    async def triage(self, owner: str, repo: str, number: int) -> TriageResult:
        """Classify an issue, converge its labels and annotate it once.

        Raises:
            IssueNotFoundError: The repository or issue does not exist
            AuthenticationError: The token was rejected
            OracleCredentialError: The oracle key is missing or rejected
            AutoTriageError: Any other failure, propagated unchanged
        """
        log.info("triage_started", owner=owner, repo=repo, issue=number)

        issue = await self.store.get_issue(owner, repo, number)
        already_annotated = await check_existing_annotation(self.store, owner, repo, number)

        classification = await self.policy.classify(issue.title, issue.body)

        delta = reconcile(issue.labels, classification)
        await apply_label_delta(self.store, owner, repo, number, delta)

        if already_annotated:
            log.info("triage_comment_preserved", issue=number)
        else:
            body = self.renderer.render_triage_comment(classification)
            await self.store.create_comment(owner, repo, number, body)
            log.info("triage_comment_posted", issue=number)

        log.info("triage_completed", owner=owner, repo=repo, issue=number)
        return TriageResult(
            owner=owner,
            repo=repo,
            number=number,
            classification=classification,
            labels_applied=delta.to_add,
            labels_removed=delta.to_remove,
            annotation_posted=not already_annotated,
        )
