"""Shared httpx plumbing for HTTP-based classification oracles."""

from typing import Any

import httpx
import structlog

from autotriage.exceptions import OracleCredentialError, OracleError, RateLimitError
from autotriage.providers.base import ClassificationOracle
from autotriage.utils.retry import RetryPolicy

log = structlog.get_logger(__name__)

RATE_LIMIT_MARKERS = ("RESOURCE_EXHAUSTED", "rate limit", "Rate limit")
INVALID_KEY_MARKERS = ("API key not valid", "API_KEY_INVALID", "invalid_api_key", "Incorrect API key")


class HTTPOracle(ClassificationOracle):
    """Base class for oracles reached over a JSON HTTP API.

    Subclasses build the request payload and extract the model text;
    this class owns the client, the retry policy, and the mapping of HTTP
    failures onto OracleError / OracleCredentialError / RateLimitError.
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        model: str,
        headers: dict[str, str] | None = None,
        timeout: float = 60.0,
        temperature: float = 0.2,
        retry: RetryPolicy | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.retry = retry or RetryPolicy()
        self.client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Content-Type": "application/json", **(headers or {})},
        )

    async def close(self) -> None:
        await self.client.aclose()

    async def _post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON payload with rate-limit retries; return the decoded body."""

        async def attempt() -> dict[str, Any]:
            try:
                response = await self.client.post(url, json=payload)
            except (httpx.ConnectError, httpx.TimeoutException) as e:
                log.error("oracle_unreachable", provider=self.name, url=self.base_url, error=str(e))
                raise OracleError(f"Oracle not reachable at {self.base_url}: {e}", provider=self.name) from e
            except httpx.HTTPError as e:
                raise OracleError(f"Oracle request failed: {e}", provider=self.name) from e

            if response.status_code >= 400:
                raise self._translate_status(response)

            try:
                return response.json()
            except ValueError as e:
                raise OracleError("Oracle returned a non-JSON HTTP body", provider=self.name) from e

        return await self.retry.run(attempt, description=f"{self.name}.infer")

    def _translate_status(self, response: httpx.Response) -> Exception:
        status = response.status_code
        text = response.text
        detail = self._error_detail(response)

        if status == 429 or any(marker in text for marker in RATE_LIMIT_MARKERS):
            return RateLimitError(f"Oracle rate limit exceeded: {detail}", status_code=status, service=self.name)
        if status in (401, 403) or any(marker in text for marker in INVALID_KEY_MARKERS):
            return OracleCredentialError(
                f"Oracle rejected the API key ({status}): {detail}", provider=self.name
            )
        log.error("oracle_http_error", provider=self.name, status_code=status, error=detail)
        return OracleError(f"API error ({status}): {detail}", provider=self.name)

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return str(error.get("message", error))
        if error:
            return str(error)
        return response.text[:200]
