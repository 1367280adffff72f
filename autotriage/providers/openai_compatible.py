"""OpenAI-compatible oracle (OpenAI, Groq, OpenRouter, vLLM, LM Studio, etc.)."""

import structlog

from autotriage.providers.http_oracle import HTTPOracle
from autotriage.utils.retry import RetryPolicy

log = structlog.get_logger(__name__)

DEFAULT_OPENAI_URL = "https://api.openai.com/v1"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


class OpenAICompatibleOracle(HTTPOracle):
    """Oracle for servers implementing the OpenAI chat completions API."""

    name = "openai-compatible"

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        api_key: str | None = None,
        timeout: float = 60.0,
        temperature: float = 0.2,
        retry: RetryPolicy | None = None,
    ):
        """Initialize OpenAI-compatible oracle.

        Args:
            base_url: API base URL (e.g., http://localhost:8000/v1)
            model: Model identifier to use
            api_key: Optional API key; local servers usually need none
            timeout: Request timeout in seconds
            temperature: Sampling temperature
            retry: Rate-limit retry policy
        """
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        super().__init__(
            base_url=base_url or DEFAULT_OPENAI_URL,
            model=model or DEFAULT_OPENAI_MODEL,
            headers=headers,
            timeout=timeout,
            temperature=temperature,
            retry=retry,
        )

    async def infer(self, prompt: str) -> str:
        log.info("classifying_with_openai_compatible", model=self.model, url=self.base_url)
        body = await self._post_json(
            f"{self.base_url}/chat/completions",
            {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": self.temperature,
                "response_format": {"type": "json_object"},
            },
        )

        choices = body.get("choices") or []
        if not choices:
            log.warning("no_choices_in_response", model=self.model)
            return ""
        return choices[0].get("message", {}).get("content") or ""
