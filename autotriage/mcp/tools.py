"""MCP tool, resource and prompt handlers.

Three tools are exposed:

- ``triage_issue``: dual mode. Maintainer mode triages one issue (labels
  and a summary comment); contributor mode ranks open issues for
  newcomers.
- ``batch_triage``: classify every untriaged open issue in a repository.
- ``triage_stats``: label health report for a repository.

Every tool call returns a ToolResult. Controlled failures carry their own
message; anything else is logged with its traceback and reported
generically. Tool failures are never raised to the transport.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from autotriage.config.settings import TriageConfig, TriageSettings
from autotriage.engine.batch import BatchTriageOrchestrator
from autotriage.engine.classifier import ClassificationPolicy
from autotriage.engine.ranking import rank_issues
from autotriage.engine.stats import compute_stats
from autotriage.engine.triage import TriageOrchestrator
from autotriage.enums import TriageMode
from autotriage.exceptions import ValidationError, is_controlled
from autotriage.mcp.exceptions import InvalidParamsError
from autotriage.models.domain import TriageStats
from autotriage.providers.base import ClassificationOracle, IssueStore
from autotriage.providers.factory import create_issue_store, create_oracle
from autotriage.rendering import TemplateRenderer

log = structlog.get_logger(__name__)

STATS_URI_TEMPLATE = "triage://{owner}/{repo}/stats"
STATS_URI_PATTERN = re.compile(r"^triage://(?P<owner>[^/]+)/(?P<repo>[^/]+)/stats$")


class TriageIssueArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mode: TriageMode = Field(
        description='Triage mode: "maintainer" for full triage or "contributor" for issue recommendations'
    )
    owner: str = Field(min_length=1, description="GitHub repository owner/organization name")
    repo: str = Field(min_length=1, description="GitHub repository name")
    issue_number: int | None = Field(
        default=None, gt=0, description="GitHub issue number (required for maintainer mode)"
    )
    labels: list[str] | None = Field(
        default=None,
        description='Filter issues by labels (contributor mode, e.g., ["good first issue"])',
    )
    limit: int | None = Field(
        default=None, gt=0, description="Max issues to return (contributor mode, default: 10)"
    )


class BatchTriageArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    owner: str = Field(min_length=1, description="GitHub repository owner/organization name")
    repo: str = Field(min_length=1, description="GitHub repository name")
    dry_run: bool = Field(
        default=True, description="Classify without changing labels (default: true)"
    )
    limit: int | None = Field(
        default=None, gt=0, le=100, description="Max open issues to process (default: 100)"
    )


class TriageStatsArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")

    owner: str = Field(min_length=1, description="GitHub repository owner/organization name")
    repo: str = Field(min_length=1, description="GitHub repository name")
    format: Literal["markdown", "json"] = Field(
        default="markdown", description="Report format (default: markdown)"
    )


@dataclass(frozen=True, slots=True)
class ToolSpec:
    name: str
    description: str
    arguments: type[BaseModel]
    operation: str
    """Human name of the operation, used in unexpected-error messages."""

    def to_dict(self) -> dict[str, Any]:
        schema = self.arguments.model_json_schema()
        schema.pop("title", None)
        return {"name": self.name, "description": self.description, "inputSchema": schema}


TOOLS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="triage_issue",
        description=(
            "Dual-mode GitHub issue assistant. "
            "MAINTAINER MODE: Analyze and triage an issue with AI classification, apply labels, "
            "post summary (requires repo write access). "
            "CONTRIBUTOR MODE: Search open issues by label/complexity, rank by "
            "beginner-friendliness, return recommendations."
        ),
        arguments=TriageIssueArgs,
        operation="triage",
    ),
    ToolSpec(
        name="batch_triage",
        description=(
            "Classify every open issue that is not yet labeled for type, priority and complexity. "
            "Runs as a dry run unless dry_run is false; never posts comments."
        ),
        arguments=BatchTriageArgs,
        operation="batch triage",
    ),
    ToolSpec(
        name="triage_stats",
        description=(
            "Report label coverage for open issues: counts by type, priority and complexity, "
            "stale issues and average age."
        ),
        arguments=TriageStatsArgs,
        operation="stats",
    ),
)

PROMPTS: dict[str, dict[str, Any]] = {
    "triage-issue": {
        "description": "Triage a single GitHub issue as a maintainer",
        "arguments": [
            {"name": "owner", "description": "Repository owner", "required": True},
            {"name": "repo", "description": "Repository name", "required": True},
            {"name": "issue_number", "description": "Issue number to triage", "required": True},
        ],
        "template": (
            "Please triage issue #{issue_number} in {owner}/{repo}. "
            'Call the triage_issue tool with mode "maintainer", then summarize the '
            "classification and the labels that were applied."
        ),
    },
    "find-first-issue": {
        "description": "Find beginner-friendly issues to contribute to",
        "arguments": [
            {"name": "owner", "description": "Repository owner", "required": True},
            {"name": "repo", "description": "Repository name", "required": True},
            {"name": "labels", "description": "Comma-separated label filter", "required": False},
        ],
        "template": (
            "I want to make my first contribution to {owner}/{repo}. "
            'Call the triage_issue tool with mode "contributor"{label_hint} and recommend '
            "the best issue to start with, explaining why."
        ),
    },
}


@dataclass
class ToolResult:
    """Outcome of a tool call, serialized as MCP ``CallToolResult``."""

    text: str
    is_error: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"content": [{"type": "text", "text": self.text}], "isError": self.is_error}


def _format_validation_errors(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors(include_url=False):
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


class TriageToolkit:
    """Binds the tools to an issue store, an oracle and engine settings."""

    def __init__(
        self,
        store: IssueStore,
        oracle: ClassificationOracle,
        config: TriageConfig | None = None,
        renderer: TemplateRenderer | None = None,
        default_repository: tuple[str, str] | None = None,
    ):
        self.store = store
        self.oracle = oracle
        self.config = config or TriageConfig()
        self.renderer = renderer or TemplateRenderer()
        self.default_repository = default_repository
        self.policy = ClassificationPolicy(oracle, body_max_chars=self.config.body_max_chars)

    @classmethod
    def from_settings(cls, settings: TriageSettings) -> TriageToolkit:
        default_repository = None
        if settings.repository is not None:
            default_repository = (settings.repository.owner, settings.repository.name)
        return cls(
            store=create_issue_store(settings),
            oracle=create_oracle(settings),
            config=settings.triage,
            default_repository=default_repository,
        )

    async def close(self) -> None:
        await self.store.close()
        await self.oracle.close()

    # -- tools ---------------------------------------------------------------

    def list_tools(self) -> list[dict[str, Any]]:
        return [tool.to_dict() for tool in TOOLS]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> ToolResult:
        spec = next((tool for tool in TOOLS if tool.name == name), None)
        if spec is None:
            return ToolResult(f"Unknown tool: {name}", is_error=True)

        log.info("tool_called", tool=name)
        try:
            args = spec.arguments.model_validate(arguments or {})
        except PydanticValidationError as e:
            return ToolResult(f"Error: Invalid arguments: {_format_validation_errors(e)}", is_error=True)

        handler = getattr(self, f"_handle_{name}")
        try:
            return ToolResult(await handler(args))
        except Exception as e:
            if is_controlled(e):
                log.warning("tool_failed", tool=name, error=str(e))
                return ToolResult(f"Error: {e.message}", is_error=True)
            log.error("tool_unexpected_error", tool=name, error=str(e), exc_info=True)
            return ToolResult(
                f"Unexpected error during {spec.operation}: {e}. "
                "Please check the server logs for details.",
                is_error=True,
            )

    async def _handle_triage_issue(self, args: TriageIssueArgs) -> str:
        log.info("triage_mode", mode=str(args.mode), owner=args.owner, repo=args.repo)
        if args.mode == TriageMode.MAINTAINER:
            if args.issue_number is None:
                raise ValidationError("issue_number is required for maintainer mode")
            orchestrator = TriageOrchestrator(self.store, self.policy, self.renderer)
            result = await orchestrator.triage(args.owner, args.repo, args.issue_number)
            return result.summary()

        return await self.recommend(args.owner, args.repo, args.labels, args.limit)

    async def _handle_batch_triage(self, args: BatchTriageArgs) -> str:
        orchestrator = BatchTriageOrchestrator(
            self.store,
            self.policy,
            delay=self.config.batch_delay,
            limit=self.config.batch_limit,
        )
        summary = await orchestrator.run(args.owner, args.repo, dry_run=args.dry_run, limit=args.limit)
        return self.renderer.render_batch_summary(summary)

    async def _handle_triage_stats(self, args: TriageStatsArgs) -> str:
        stats = await self.stats(args.owner, args.repo)
        if args.format == "json":
            return json.dumps(stats.to_dict(), indent=2)
        return self.renderer.render_stats_report(stats)

    async def recommend(
        self,
        owner: str,
        repo: str,
        labels: list[str] | None = None,
        limit: int | None = None,
    ) -> str:
        """Search, rank and format contributor recommendations."""
        issues = await self.store.search_issues(
            owner, repo, labels=labels or None, limit=limit or self.config.default_search_limit
        )
        ranked = rank_issues(issues)
        log.info("recommendations_ranked", owner=owner, repo=repo, found=len(issues), ranked=len(ranked))
        return self.renderer.render_recommendations(owner, repo, ranked, labels)

    async def stats(self, owner: str, repo: str) -> TriageStats:
        issues = await self.store.search_issues(owner, repo, limit=self.config.stats_limit)
        return compute_stats(issues, owner, repo, stale_days=self.config.stale_days)

    # -- resources -----------------------------------------------------------

    def list_resources(self) -> list[dict[str, Any]]:
        if self.default_repository is None:
            return []
        owner, repo = self.default_repository
        return [
            {
                "uri": STATS_URI_TEMPLATE.format(owner=owner, repo=repo),
                "name": f"{owner}/{repo} triage stats",
                "mimeType": "application/json",
            }
        ]

    def list_resource_templates(self) -> list[dict[str, Any]]:
        return [
            {
                "uriTemplate": STATS_URI_TEMPLATE,
                "name": "triage-stats",
                "description": "Label coverage and staleness for a repository's open issues",
                "mimeType": "application/json",
            }
        ]

    async def read_resource(self, uri: str) -> dict[str, Any]:
        """Read ``triage://{owner}/{repo}/stats``.

        Raises:
            InvalidParamsError: If the URI does not name a known resource
        """
        match = STATS_URI_PATTERN.match(uri or "")
        if match is None:
            raise InvalidParamsError(f"Unknown resource: {uri}")
        stats = await self.stats(match["owner"], match["repo"])
        return {
            "contents": [
                {
                    "uri": uri,
                    "mimeType": "application/json",
                    "text": json.dumps(stats.to_dict(), indent=2),
                }
            ]
        }

    # -- prompts -------------------------------------------------------------

    def list_prompts(self) -> list[dict[str, Any]]:
        return [
            {"name": name, "description": prompt["description"], "arguments": prompt["arguments"]}
            for name, prompt in PROMPTS.items()
        ]

    def get_prompt(self, name: str, arguments: dict[str, Any] | None) -> dict[str, Any]:
        """Build a prompt's user message.

        Raises:
            InvalidParamsError: Unknown prompt or missing required argument
        """
        prompt = PROMPTS.get(name)
        if prompt is None:
            raise InvalidParamsError(f"Unknown prompt: {name}")

        arguments = arguments or {}
        missing = [
            arg["name"] for arg in prompt["arguments"] if arg["required"] and not arguments.get(arg["name"])
        ]
        if missing:
            raise InvalidParamsError(f"Missing required prompt arguments: {', '.join(missing)}")

        values = {key: str(value) for key, value in arguments.items()}
        labels = values.get("labels", "").strip()
        values["label_hint"] = f" and labels [{labels}]" if labels else ""
        return {
            "description": prompt["description"],
            "messages": [
                {
                    "role": "user",
                    "content": {"type": "text", "text": prompt["template"].format(**values)},
                }
            ],
        }