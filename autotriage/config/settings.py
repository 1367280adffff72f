"""
Configuration system using Pydantic for type-safe settings management.

Settings are the only place that reads the process environment. Every
credential is handed to its adapter explicitly at construction, so the
engine never depends on ambient global state.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from autotriage.enums import OracleProviderType
from autotriage.exceptions import ConfigurationError


class GitHubConfig(BaseModel):
    """Issue tracker (GitHub) configuration."""

    token: SecretStr | None = Field(default=None, description="GitHub token with 'repo' scope")
    base_url: str = Field(
        default="https://api.github.com",
        description="GitHub API base URL (change for GitHub Enterprise)",
    )


class OracleConfig(BaseModel):
    """Classification oracle configuration."""

    provider_type: OracleProviderType = Field(
        default=OracleProviderType.GEMINI, description="Oracle backend"
    )
    model: str | None = Field(default=None, description="Model identifier (each provider has a default)")
    api_key: SecretStr | None = Field(default=None, description="API key for cloud providers")
    base_url: str | None = Field(
        default=None,
        description="Override the provider's default endpoint (required for openai-compatible)",
    )
    timeout: float = Field(default=60.0, gt=0, description="Request timeout in seconds")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Sampling temperature")


class RetryConfig(BaseModel):
    """Rate-limit retry behaviour shared by the tracker and the oracle."""

    max_attempts: int = Field(default=3, ge=1, le=10, description="Total attempts per call")
    base_delay: float = Field(default=1.0, ge=0.0, description="Seconds before the first retry")


class TriageConfig(BaseModel):
    """Engine tuning knobs."""

    body_max_chars: int = Field(default=2000, ge=100, description="Issue body truncation length")
    batch_limit: int = Field(default=100, ge=1, le=100, description="Max issues per batch run")
    batch_delay: float = Field(
        default=4.0,
        ge=0.0,
        description="Seconds between oracle calls in batch mode (15 requests/minute)",
    )
    stale_days: int = Field(default=30, ge=1, description="Days without update before an issue is stale")
    default_search_limit: int = Field(default=10, ge=1, le=100, description="Contributor mode result count")
    stats_limit: int = Field(default=500, ge=1, description="Max open issues scanned for stats")


class RepositoryConfig(BaseModel):
    """Optional default repository for CLI commands."""

    owner: str = Field(..., description="Repository owner/organization")
    name: str = Field(..., description="Repository name")


class TriageSettings(BaseSettings):
    """Main autotriage settings.

    Can be built from a YAML file (``from_yaml``), from the conventional
    environment variables (``from_env``), or directly with keyword
    arguments. Nested values can also be overridden with
    ``AUTOTRIAGE_<SECTION>__<FIELD>`` environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTOTRIAGE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    oracle: OracleConfig = Field(default_factory=OracleConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    triage: TriageConfig = Field(default_factory=TriageConfig)
    repository: RepositoryConfig | None = None

    @classmethod
    def from_env(cls) -> TriageSettings:
        """Build settings from the conventional environment variables.

        Reads ``GITHUB_TOKEN``, ``GOOGLE_API_KEY`` and ``GEMINI_MODEL``.
        The retry and triage sections still honor ``AUTOTRIAGE_*`` variables.
        """
        github: dict[str, str] = {}
        oracle: dict[str, str] = {}
        if token := os.getenv("GITHUB_TOKEN"):
            github["token"] = token
        if api_key := os.getenv("GOOGLE_API_KEY"):
            oracle["api_key"] = api_key
        if model := os.getenv("GEMINI_MODEL"):
            oracle["model"] = model
        return cls(github=GitHubConfig(**github), oracle=OracleConfig(**oracle))

    @classmethod
    def from_yaml(cls, config_path: str) -> TriageSettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} and ${VAR_NAME:-default} substitution.

        Raises:
            ConfigurationError: If config file is invalid or missing required fields
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_file) as f:
                yaml_content = f.read()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except Exception as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} placeholders with environment variables.

        YAML comment lines are left unchanged.

        Raises:
            ValueError: If a required environment variable is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))
