"""
Provider implementations for the issue tracker and the classification oracle.

Issue store:
    - GitHubRestProvider: GitHub via PyGithub

Oracles:
    - GeminiOracle: Google Gemini REST API
    - OpenAICompatibleOracle: OpenAI chat completions API and compatibles
    - OllamaOracle: Local Ollama server
"""

from autotriage.providers.base import ClassificationOracle, IssueStore
from autotriage.providers.gemini import GeminiOracle
from autotriage.providers.github_rest import GitHubRestProvider
from autotriage.providers.ollama import OllamaOracle
from autotriage.providers.openai_compatible import OpenAICompatibleOracle

__all__ = [
    "ClassificationOracle",
    "GeminiOracle",
    "GitHubRestProvider",
    "IssueStore",
    "OllamaOracle",
    "OpenAICompatibleOracle",
]
