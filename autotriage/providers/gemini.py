"""Google Gemini oracle using the Generative Language REST API."""

import structlog

from autotriage.exceptions import OracleCredentialError
from autotriage.providers.http_oracle import HTTPOracle
from autotriage.utils.retry import RetryPolicy

log = structlog.get_logger(__name__)

DEFAULT_GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"


class GeminiOracle(HTTPOracle):
    """Oracle backed by Gemini's generateContent endpoint.

    Requests JSON output (``responseMimeType: application/json``) so the
    classification parser usually receives a bare JSON object.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: str | None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float = 60.0,
        temperature: float = 0.2,
        retry: RetryPolicy | None = None,
    ):
        """Initialize Gemini oracle.

        Args:
            api_key: Google API key; a missing key fails at call time
            model: Model name (default: gemini-1.5-flash)
            base_url: API root (default: public v1beta endpoint)
            timeout: Request timeout in seconds
            temperature: Sampling temperature
            retry: Rate-limit retry policy
        """
        self.api_key = api_key
        headers = {"x-goog-api-key": api_key} if api_key else {}
        super().__init__(
            base_url=base_url or DEFAULT_GEMINI_URL,
            model=model or DEFAULT_GEMINI_MODEL,
            headers=headers,
            timeout=timeout,
            temperature=temperature,
            retry=retry,
        )

    async def infer(self, prompt: str) -> str:
        if not self.api_key:
            raise OracleCredentialError(
                "GOOGLE_API_KEY environment variable is not set. Please configure your Gemini API key."
            )

        log.info("classifying_with_gemini", model=self.model)
        body = await self._post_json(
            f"{self.base_url}/models/{self.model}:generateContent",
            {
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {
                    "responseMimeType": "application/json",
                    "temperature": self.temperature,
                },
            },
        )

        candidates = body.get("candidates") or []
        if not candidates:
            log.warning("gemini_no_candidates", feedback=body.get("promptFeedback"))
            return ""
        parts = candidates[0].get("content", {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        log.debug("gemini_response", output_length=len(text))
        return text
