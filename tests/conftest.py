"""Pytest configuration and shared fixtures."""

import json
from datetime import UTC, datetime

import pytest

from autotriage.exceptions import IssueNotFoundError
from autotriage.models.domain import Comment, Issue
from autotriage.providers.base import ClassificationOracle, IssueStore

OWNER = "octo"
REPO = "widgets"


def judgment(
    type: str = "bug",
    priority: str = "P2",
    complexity: str = "Medium",
    reasoning: str = "Looks like a regression in the parser",
) -> str:
    """Oracle output in the shape the classifier expects."""
    return json.dumps(
        {"type": type, "priority": priority, "complexity": complexity, "reasoning": reasoning}
    )


def make_issue(
    number: int,
    title: str = "Something is wrong",
    body: str = "Steps to reproduce...",
    labels: list[str] | None = None,
    comments: int = 0,
    assignee: str | None = None,
    created_at: datetime | None = None,
    updated_at: datetime | None = None,
) -> Issue:
    created = created_at or datetime(2024, 1, 1, tzinfo=UTC)
    return Issue(
        number=number,
        title=title,
        body=body,
        labels=list(labels or []),
        comments=comments,
        assignee=assignee,
        created_at=created,
        updated_at=updated_at or created,
        url=f"https://github.com/{OWNER}/{REPO}/issues/{number}",
    )


class FakeIssueStore(IssueStore):
    """In-memory issue store that records every mutating call."""

    def __init__(self) -> None:
        self.issues: dict[tuple[str, str, int], Issue] = {}
        self.comments: dict[tuple[str, str, int], list[Comment]] = {}
        self.calls: list[tuple] = []
        self.fail_on: dict[str, Exception] = {}
        self.closed = False

    def add(self, issue: Issue, owner: str = OWNER, repo: str = REPO) -> Issue:
        self.issues[(owner, repo, issue.number)] = issue
        self.comments.setdefault((owner, repo, issue.number), [])
        return issue

    def _lookup(self, owner: str, repo: str, number: int) -> Issue:
        try:
            return self.issues[(owner, repo, number)]
        except KeyError:
            raise IssueNotFoundError(owner, repo, number) from None

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise self.fail_on[operation]

    async def get_issue(self, owner: str, repo: str, number: int) -> Issue:
        self._maybe_fail("get_issue")
        issue = self._lookup(owner, repo, number)
        return Issue(**{**issue.__dict__, "labels": list(issue.labels)})

    async def list_comments(self, owner: str, repo: str, number: int) -> list[Comment]:
        self._maybe_fail("list_comments")
        self._lookup(owner, repo, number)
        return list(self.comments[(owner, repo, number)])

    async def add_labels(self, owner: str, repo: str, number: int, labels: list[str]) -> None:
        self._maybe_fail("add_labels")
        issue = self._lookup(owner, repo, number)
        self.calls.append(("add_labels", number, list(labels)))
        for label in labels:
            if label not in issue.labels:
                issue.labels.append(label)

    async def remove_label(self, owner: str, repo: str, number: int, label: str) -> None:
        self._maybe_fail("remove_label")
        issue = self._lookup(owner, repo, number)
        self.calls.append(("remove_label", number, label))
        if label in issue.labels:
            issue.labels.remove(label)

    async def create_comment(self, owner: str, repo: str, number: int, body: str) -> Comment:
        self._maybe_fail("create_comment")
        self._lookup(owner, repo, number)
        self.calls.append(("create_comment", number, body))
        thread = self.comments[(owner, repo, number)]
        comment = Comment(id=len(thread) + 1, body=body, author="triage-bot")
        thread.append(comment)
        return comment

    async def search_issues(
        self,
        owner: str,
        repo: str,
        labels: list[str] | None = None,
        limit: int = 30,
    ) -> list[Issue]:
        self._maybe_fail("search_issues")
        self.calls.append(("search_issues", owner, repo, list(labels or []), limit))
        found = [
            Issue(**{**issue.__dict__, "labels": list(issue.labels)})
            for (o, r, _), issue in self.issues.items()
            if o == owner and r == repo and all(label in issue.labels for label in labels or [])
        ]
        found.sort(key=lambda issue: issue.updated_at, reverse=True)
        return found[:limit]

    async def close(self) -> None:
        self.closed = True


class ScriptedOracle(ClassificationOracle):
    """Oracle that replays canned outputs (or raises canned errors) in order.

    The last entry is repeated once the script runs out.
    """

    name = "scripted"

    def __init__(self, *outputs: str | Exception) -> None:
        self.outputs = list(outputs) or [judgment()]
        self.prompts: list[str] = []
        self.closed = False

    async def infer(self, prompt: str) -> str:
        self.prompts.append(prompt)
        index = min(len(self.prompts), len(self.outputs)) - 1
        output = self.outputs[index]
        if isinstance(output, Exception):
            raise output
        return output

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def store() -> FakeIssueStore:
    return FakeIssueStore()


@pytest.fixture
def oracle() -> ScriptedOracle:
    return ScriptedOracle(judgment("feature", "P1", "High", "Adds SSO support"))
