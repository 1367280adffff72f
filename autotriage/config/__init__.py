"""Configuration for autotriage.

Example:
    >>> from autotriage.config import TriageSettings
    >>> settings = TriageSettings.from_yaml("autotriage.yaml")
    >>> settings.triage.batch_delay
    4.0
"""

from autotriage.config.settings import (
    GitHubConfig,
    OracleConfig,
    RepositoryConfig,
    RetryConfig,
    TriageConfig,
    TriageSettings,
)

__all__ = [
    "GitHubConfig",
    "OracleConfig",
    "RepositoryConfig",
    "RetryConfig",
    "TriageConfig",
    "TriageSettings",
]
