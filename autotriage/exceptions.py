"""Custom exception hierarchy for autotriage.

This module defines a structured exception hierarchy that separates
controlled failures (reported to the caller with a specific, human-readable
explanation) from unexpected failures (logged in full and reported
generically at the outermost boundary).

Exception Hierarchy:
    AutoTriageError (base)
    ├── ConfigurationError
    ├── ValidationError                 [controlled]
    ├── IssueStoreError
    │   ├── IssueNotFoundError          [controlled]
    │   └── AuthenticationError         [controlled]
    ├── OracleError
    │   └── OracleCredentialError       [controlled]
    └── ExternalServiceError
        └── RateLimitError

Example Usage:
    >>> from autotriage.exceptions import IssueNotFoundError
    >>> try:
    ...     issue = await store.get_issue("octo", "repo", 42)
    ... except IssueNotFoundError as e:
    ...     print(e.message)
"""


class AutoTriageError(Exception):
    """Base exception for all autotriage errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ControlledError(AutoTriageError):
    """Marker base for failures reported to the caller verbatim.

    Controlled failures never abort the enclosing process and are never
    logged as unexpected; their message is already user-facing.
    """

    pass


class ConfigurationError(AutoTriageError):
    """Configuration-related errors.

    Examples:
        - Configuration file not found
        - Invalid YAML syntax
        - Unknown oracle provider type
    """

    pass


class ValidationError(ControlledError):
    """Tool or command arguments are missing or malformed.

    Examples:
        - issue_number missing in maintainer mode
        - Non-positive limit
    """

    pass


class IssueStoreError(AutoTriageError):
    """Base class for issue tracker failures that carry an HTTP status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class IssueNotFoundError(IssueStoreError, ControlledError):
    """Issue or repository does not exist (HTTP 404)."""

    def __init__(
        self,
        owner: str,
        repo: str,
        number: int | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            owner: Repository owner
            repo: Repository name
            number: Issue number, or None when the repository itself is missing
        """
        self.owner = owner
        self.repo = repo
        self.number = number
        if number is None:
            message = f"Repository {owner}/{repo} not found. Please verify the repository name."
        else:
            message = (
                f"Issue #{number} not found in {owner}/{repo}. "
                "Please verify the repository and issue number."
            )
        super().__init__(message, status_code=404)


class AuthenticationError(IssueStoreError, ControlledError):
    """Token missing, invalid, or lacking permission (HTTP 401/403)."""

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        super().__init__(
            message
            or "Authentication failed or insufficient permissions. "
            "Please check your GitHub token has 'repo' scope.",
            status_code=status_code,
        )


class OracleError(AutoTriageError):
    """Classification oracle could not be invoked.

    Raised for transport-level failures (connection refused, HTTP 5xx,
    empty responses). Malformed oracle *output* is not an error; it degrades
    to the fallback classification instead.

    Attributes:
        provider: Oracle provider name (e.g., "gemini", "ollama")
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        full_message = message if provider is None else f"{message} (oracle: {provider})"
        super().__init__(full_message)
        self.message = full_message


class OracleCredentialError(OracleError, ControlledError):
    """Oracle API key is missing or was rejected."""

    pass


class ExternalServiceError(AutoTriageError):
    """External service communication errors.

    Raised when communication with the issue tracker or the oracle fails
    in a way that is neither a controlled condition nor retryable.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_text: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            status_code: HTTP status code (if applicable)
            response_text: Response body text (if applicable)
        """
        self.status_code = status_code
        self.response_text = response_text

        full_message = message
        if status_code:
            full_message = f"{message} (HTTP {status_code})"

        super().__init__(full_message)
        self.message = message


class RateLimitError(ExternalServiceError):
    """The remote service reported a rate-limit condition.

    Retried by RetryPolicy; surfaces as an unexpected failure once the
    attempt budget is exhausted.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        status_code: int | None = 429,
        service: str | None = None,
    ) -> None:
        self.service = service
        if service:
            message = f"{message} ({service})"
        super().__init__(message, status_code=status_code)


def is_controlled(error: BaseException) -> bool:
    """Return True when the error should be reported to the caller verbatim."""
    return isinstance(error, ControlledError)
