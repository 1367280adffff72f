"""Factory for creating issue store and oracle instances from configuration."""

import structlog

from autotriage.config.settings import TriageSettings
from autotriage.enums import OracleProviderType
from autotriage.exceptions import ConfigurationError
from autotriage.providers.base import ClassificationOracle, IssueStore
from autotriage.providers.gemini import GeminiOracle
from autotriage.providers.github_rest import GitHubRestProvider
from autotriage.providers.ollama import OllamaOracle
from autotriage.providers.openai_compatible import OpenAICompatibleOracle
from autotriage.utils.retry import RetryPolicy

log = structlog.get_logger(__name__)


def create_retry_policy(settings: TriageSettings) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.retry.max_attempts,
        base_delay=settings.retry.base_delay,
    )


def create_issue_store(settings: TriageSettings) -> IssueStore:
    """Create the GitHub issue store.

    Example:
        >>> settings = TriageSettings.from_yaml("autotriage.yaml")
        >>> store = create_issue_store(settings)
        >>> issue = await store.get_issue("octo", "repo", 42)
    """
    token = settings.github.token.get_secret_value() if settings.github.token else None
    log.info("creating_github_store", base_url=settings.github.base_url, authenticated=bool(token))
    return GitHubRestProvider(
        token=token,
        base_url=settings.github.base_url,
        retry=create_retry_policy(settings),
    )


def create_oracle(settings: TriageSettings) -> ClassificationOracle:
    """Create the classification oracle selected by ``oracle.provider_type``.

    Raises:
        ConfigurationError: If the provider type is not supported
    """
    config = settings.oracle
    api_key = config.api_key.get_secret_value() if config.api_key else None
    retry = create_retry_policy(settings)
    provider_type = config.provider_type

    log.info("creating_oracle", provider=str(provider_type), model=config.model)

    if provider_type == OracleProviderType.GEMINI:
        return GeminiOracle(
            api_key=api_key,
            model=config.model,
            base_url=config.base_url,
            timeout=config.timeout,
            temperature=config.temperature,
            retry=retry,
        )
    elif provider_type == OracleProviderType.OPENAI_COMPATIBLE:
        return OpenAICompatibleOracle(
            base_url=config.base_url,
            model=config.model,
            api_key=api_key,
            timeout=config.timeout,
            temperature=config.temperature,
            retry=retry,
        )
    elif provider_type == OracleProviderType.OLLAMA:
        return OllamaOracle(
            base_url=config.base_url,
            model=config.model,
            timeout=config.timeout,
            temperature=config.temperature,
            retry=retry,
        )
    else:
        raise ConfigurationError(
            f"Unsupported oracle provider type: {provider_type}. "
            "Supported types: gemini, openai-compatible, ollama"
        )
