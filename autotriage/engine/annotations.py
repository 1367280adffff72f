"""Annotation guard: detects a previously posted triage comment."""

import structlog

from autotriage.models.domain import Comment
from autotriage.providers.base import IssueStore

log = structlog.get_logger(__name__)

TRIAGE_COMMENT_SIGNATURE = "🔎 Issue Triage Summary"


def has_existing_annotation(comments: list[Comment]) -> bool:
    return any(TRIAGE_COMMENT_SIGNATURE in (comment.body or "") for comment in comments)


async def check_existing_annotation(store: IssueStore, owner: str, repo: str, number: int) -> bool:
    """Scan every comment on the issue for the triage signature."""
    comments = await store.list_comments(owner, repo, number)
    found = has_existing_annotation(comments)
    log.debug("annotation_guard_checked", issue=number, comments=len(comments), found=found)
    return found
