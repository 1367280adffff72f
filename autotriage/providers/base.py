"""
Abstract base classes for providers.

This module defines the two collaborator contracts the engine depends on:
IssueStore (the issue tracker) and ClassificationOracle (the LLM). Concrete
implementations translate provider-specific responses and errors into the
domain models and exception hierarchy, so the engine never branches on a
provider's raw response shape.
"""

from abc import ABC, abstractmethod

from autotriage.models.domain import Comment, Issue


class IssueStore(ABC):
    """Abstract base class for issue tracker implementations.

    All methods are async and address issues by (owner, repo, number).
    Implementations raise:

    - IssueNotFoundError for HTTP 404
    - AuthenticationError for HTTP 401/403 that are not rate limits
    - RateLimitError for rate-limit responses
    - ExternalServiceError for anything else
    """

    @abstractmethod
    async def get_issue(self, owner: str, repo: str, number: int) -> Issue:
        """Fetch a single issue with its current labels."""
        pass

    @abstractmethod
    async def list_comments(self, owner: str, repo: str, number: int) -> list[Comment]:
        """List every comment on an issue, oldest first."""
        pass

    @abstractmethod
    async def add_labels(self, owner: str, repo: str, number: int, labels: list[str]) -> None:
        """Add labels to an issue.

        Adding a label that is already present must succeed silently.
        """
        pass

    @abstractmethod
    async def remove_label(self, owner: str, repo: str, number: int, label: str) -> None:
        """Remove one label from an issue.

        Removing a label that is already absent must succeed silently.
        """
        pass

    @abstractmethod
    async def create_comment(self, owner: str, repo: str, number: int, body: str) -> Comment:
        """Post a comment on an issue."""
        pass

    @abstractmethod
    async def search_issues(
        self,
        owner: str,
        repo: str,
        labels: list[str] | None = None,
        limit: int = 30,
    ) -> list[Issue]:
        """List open issues (pull requests excluded).

        Args:
            owner: Repository owner
            repo: Repository name
            labels: Only return issues carrying ALL of these labels
            limit: Maximum number of issues returned

        Returns:
            Issues sorted by last update, most recent first.
        """
        pass

    async def close(self) -> None:
        """Release client resources. Default is a no-op."""
        return None


class ClassificationOracle(ABC):
    """Abstract base class for LLM classification backends.

    The oracle is a single opaque call. It has no retry or validation
    responsibility: the classification policy validates the returned text
    and the RetryPolicy handles rate limits.
    """

    name: str = "oracle"

    @abstractmethod
    async def infer(self, prompt: str) -> str:
        """Send a prompt and return the raw model text.

        Raises:
            OracleCredentialError: API key missing or rejected
            RateLimitError: Provider reported a rate limit
            OracleError: Any other invocation failure
        """
        pass

    async def close(self) -> None:
        """Release client resources. Default is a no-op."""
        return None
