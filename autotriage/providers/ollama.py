"""Ollama oracle for local inference."""

import structlog

from autotriage.providers.http_oracle import HTTPOracle
from autotriage.utils.retry import RetryPolicy

log = structlog.get_logger(__name__)

DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "llama3.1:8b"


class OllamaOracle(HTTPOracle):
    """Oracle that uses a local Ollama server's generate API in JSON mode."""

    name = "ollama"

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float = 300.0,
        temperature: float = 0.2,
        retry: RetryPolicy | None = None,
    ):
        super().__init__(
            base_url=base_url or DEFAULT_OLLAMA_URL,
            model=model or DEFAULT_OLLAMA_MODEL,
            timeout=timeout,
            temperature=temperature,
            retry=retry,
        )

    async def infer(self, prompt: str) -> str:
        log.info("classifying_with_ollama", model=self.model)
        body = await self._post_json(
            f"{self.base_url}/api/generate",
            {
                "model": self.model,
                "prompt": prompt,
                "stream": False,
                "format": "json",
                "options": {"temperature": self.temperature},
            },
        )
        output = body.get("response", "")
        log.debug("ollama_response", output_length=len(output), tokens=body.get("eval_count", 0))
        return output
