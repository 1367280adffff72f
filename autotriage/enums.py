"""Enumerations for classification dimensions and provider types."""

from enum import Enum


class IssueType(str, Enum):
    """Kind of work an issue describes."""

    BUG = "bug"
    FEATURE = "feature"
    ENHANCEMENT = "enhancement"
    QUESTION = "question"

    def __str__(self) -> str:
        return self.value


class Priority(str, Enum):
    """Urgency, P0 being the most urgent."""

    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"

    def __str__(self) -> str:
        return self.value


class Complexity(str, Enum):
    """Estimated implementation effort."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    def __str__(self) -> str:
        return self.value


class TriageMode(str, Enum):
    """Entry-point modes of the triage_issue tool.

    - maintainer: classify one issue, apply labels, post summary
    - contributor: search open issues and rank them for newcomers
    """

    MAINTAINER = "maintainer"
    CONTRIBUTOR = "contributor"

    def __str__(self) -> str:
        return self.value


class OracleProviderType(str, Enum):
    """Classification oracle backends.

    Supported configurations:
    - gemini: Google Gemini REST API
    - ollama: Local Ollama server
    - openai-compatible: Any OpenAI-compatible chat completions endpoint
      (OpenAI, Groq, OpenRouter, vLLM, LM Studio, etc.)
    """

    GEMINI = "gemini"
    OLLAMA = "ollama"
    OPENAI_COMPATIBLE = "openai-compatible"

    def __str__(self) -> str:
        return self.value
