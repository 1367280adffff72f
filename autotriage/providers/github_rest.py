"""GitHub issue store implementation using PyGithub."""

import asyncio
from collections.abc import Callable
from itertools import islice
from typing import Any, TypeVar

import structlog
from github import Auth, Github, GithubException, RateLimitExceededException  # type: ignore[import-not-found]
from github.Issue import Issue as GHIssue  # type: ignore[import-not-found]
from github.IssueComment import IssueComment as GHComment  # type: ignore[import-not-found]
from github.Repository import Repository as GHRepository  # type: ignore[import-not-found]

from autotriage.exceptions import (
    AuthenticationError,
    ExternalServiceError,
    IssueNotFoundError,
    RateLimitError,
)
from autotriage.models.domain import Comment, Issue
from autotriage.providers.base import IssueStore
from autotriage.utils.retry import RetryPolicy

log = structlog.get_logger(__name__)

T = TypeVar("T")


async def _run_sync(func: Callable[[], T]) -> T:
    """Run a synchronous function in a thread pool.

    This prevents blocking the event loop when calling synchronous
    PyGithub methods.
    """
    return await asyncio.to_thread(func)


class GitHubRestProvider(IssueStore):
    """GitHub implementation using PyGithub library.

    Every call runs through the retry policy; PyGithub exceptions are
    translated into the autotriage hierarchy inside the retried attempt so
    the policy can recognize rate limits.
    """

    def __init__(
        self,
        token: str | None,
        base_url: str = "https://api.github.com",
        retry: RetryPolicy | None = None,
    ):
        """Initialize GitHub provider.

        Args:
            token: GitHub personal access token or App token
            base_url: GitHub API base URL (for GitHub Enterprise)
            retry: Rate-limit retry policy (defaults to 3 attempts, 1s base)
        """
        self.token = token.strip() if token else None
        self.base_url = base_url.rstrip("/")
        self.retry = retry or RetryPolicy()
        self._client: Github | None = None
        self._repos: dict[str, GHRepository] = {}

    def _get_client(self) -> Github:
        if not self.token:
            raise AuthenticationError(
                "GitHub token is not configured. Set GITHUB_TOKEN or github.token in the config file."
            )
        if self._client is None:
            self._client = Github(auth=Auth.Token(self.token), base_url=self.base_url, per_page=100)
            log.info("github_client_created", base_url=self.base_url)
        return self._client

    def _get_repo(self, owner: str, repo: str) -> GHRepository:
        full_name = f"{owner}/{repo}"
        if full_name not in self._repos:
            self._repos[full_name] = self._get_client().get_repo(full_name, lazy=True)
        return self._repos[full_name]

    async def close(self) -> None:
        """Close GitHub client."""
        if self._client:
            await _run_sync(self._client.close)
            self._client = None
            self._repos.clear()

    async def _execute(
        self,
        operation: str,
        func: Callable[[], T],
        owner: str,
        repo: str,
        number: int | None = None,
    ) -> T:
        async def attempt() -> T:
            try:
                return await _run_sync(func)
            except GithubException as e:
                log.debug(
                    "github_call_failed",
                    operation=operation,
                    owner=owner,
                    repo=repo,
                    number=number,
                    status=e.status,
                )
                raise self._translate_error(e, owner, repo, number) from e

        return await self.retry.run(attempt, description=f"github.{operation}")

    @staticmethod
    def _translate_error(
        error: GithubException,
        owner: str,
        repo: str,
        number: int | None,
    ) -> Exception:
        """Map a PyGithub exception onto the autotriage hierarchy."""
        status = error.status
        text = str(error.data) if error.data else str(error)

        if isinstance(error, RateLimitExceededException) or status == 429:
            return RateLimitError("GitHub API rate limit exceeded", status_code=status, service="github")
        if status == 403 and "rate limit" in text.lower():
            return RateLimitError("GitHub secondary rate limit exceeded", status_code=status, service="github")
        if status == 404:
            return IssueNotFoundError(owner, repo, number)
        if status in (401, 403):
            return AuthenticationError(status_code=status)
        return ExternalServiceError("GitHub API request failed", status_code=status, response_text=text)

    async def get_issue(self, owner: str, repo: str, number: int) -> Issue:
        """Get single issue by number."""
        log.info("get_issue", owner=owner, repo=repo, number=number)
        gh_issue = await self._execute(
            "get_issue",
            lambda: self._get_repo(owner, repo).get_issue(number),
            owner,
            repo,
            number,
        )
        return self._convert_issue(gh_issue)

    async def list_comments(self, owner: str, repo: str, number: int) -> list[Comment]:
        """Retrieve all comments for an issue."""
        log.info("list_comments", owner=owner, repo=repo, number=number)

        def _list_comments() -> list[GHComment]:
            gh_issue = self._get_repo(owner, repo).get_issue(number)
            return list(gh_issue.get_comments())

        gh_comments = await self._execute("list_comments", _list_comments, owner, repo, number)
        return [self._convert_comment(c) for c in gh_comments]

    async def add_labels(self, owner: str, repo: str, number: int, labels: list[str]) -> None:
        """Add labels; GitHub treats already-present labels as a no-op."""
        if not labels:
            return
        log.info("add_labels", owner=owner, repo=repo, number=number, labels=labels)

        def _add_labels() -> None:
            gh_issue = self._get_repo(owner, repo).get_issue(number)
            gh_issue.add_to_labels(*labels)

        await self._execute("add_labels", _add_labels, owner, repo, number)

    async def remove_label(self, owner: str, repo: str, number: int, label: str) -> None:
        """Remove a label, treating 'label not on issue' as success."""
        log.info("remove_label", owner=owner, repo=repo, number=number, label=label)

        def _remove_label() -> None:
            gh_issue = self._get_repo(owner, repo).get_issue(number)
            try:
                gh_issue.remove_from_labels(label)
            except GithubException as e:
                if e.status != 404:
                    raise
                log.debug("label_already_absent", number=number, label=label)

        await self._execute("remove_label", _remove_label, owner, repo, number)

    async def create_comment(self, owner: str, repo: str, number: int, body: str) -> Comment:
        """Add comment to issue."""
        log.info("create_comment", owner=owner, repo=repo, number=number)

        def _create_comment() -> GHComment:
            gh_issue = self._get_repo(owner, repo).get_issue(number)
            return gh_issue.create_comment(body)

        gh_comment = await self._execute("create_comment", _create_comment, owner, repo, number)
        return self._convert_comment(gh_comment)

    async def search_issues(
        self,
        owner: str,
        repo: str,
        labels: list[str] | None = None,
        limit: int = 30,
    ) -> list[Issue]:
        """List open issues sorted by last update, skipping pull requests."""
        log.info("search_issues", owner=owner, repo=repo, labels=labels, limit=limit)

        def _search() -> list[GHIssue]:
            kwargs: dict[str, Any] = {"state": "open", "sort": "updated", "direction": "desc"}
            if labels:
                kwargs["labels"] = labels
            paginated = self._get_repo(owner, repo).get_issues(**kwargs)
            only_issues = (i for i in paginated if i.pull_request is None)
            return list(islice(only_issues, limit))

        gh_issues = await self._execute("search_issues", _search, owner, repo)
        return [self._convert_issue(gh_issue) for gh_issue in gh_issues]

    def _convert_issue(self, gh_issue: GHIssue) -> Issue:
        """Convert GitHub Issue to our Issue model."""
        return Issue(
            number=gh_issue.number,
            title=gh_issue.title,
            body=gh_issue.body or "",
            labels=[label.name for label in gh_issue.labels],
            comments=gh_issue.comments or 0,
            assignee=gh_issue.assignee.login if gh_issue.assignee else None,
            created_at=gh_issue.created_at,
            updated_at=gh_issue.updated_at,
            url=gh_issue.html_url,
        )

    def _convert_comment(self, gh_comment: GHComment) -> Comment:
        """Convert GitHub Comment to our Comment model."""
        return Comment(
            id=gh_comment.id,
            body=gh_comment.body or "",
            author=gh_comment.user.login if gh_comment.user else "unknown",
            created_at=gh_comment.created_at,
        )
