"""Classification policy: keyword heuristic combined with an LLM oracle.

The oracle is always consulted for type, complexity and rationale. When
the heuristic matches, it overrides only the priority (forced to P0) and
prefixes the rationale with an override notice. Malformed oracle output
never raises; it degrades to FALLBACK_CLASSIFICATION so the orchestrator
can always proceed.
"""

import json
import re
from dataclasses import replace

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from autotriage.engine.heuristics import OVERRIDE_NOTICE, find_critical_keywords
from autotriage.enums import Complexity, IssueType, Priority
from autotriage.models.domain import Classification
from autotriage.providers.base import ClassificationOracle

log = structlog.get_logger(__name__)

DEFAULT_BODY_MAX_CHARS = 2000
TRUNCATION_MARKER = "\n\n[... truncated for analysis]"

FALLBACK_CLASSIFICATION = Classification(
    type=IssueType.BUG,
    priority=Priority.P2,
    complexity=Complexity.MEDIUM,
    rationale="Classification failed, using default values",
)

_JSON_FENCE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)

PROMPT_TEMPLATE = """You are a GitHub issue classifier. Analyze the following issue and return a JSON object with classification.

Issue Title: {title}

Issue Body:
{body}

Classify across three dimensions:

**Type** (choose one):
- bug → broken functionality, crashes, incorrect behavior
- feature → new capability request
- enhancement → improvement to existing feature
- question → clarification request

**Priority** (choose one):
- P0 → critical production issue, security vulnerability, data loss
- P1 → major user-facing bug, broken core functionality
- P2 → moderate issue or useful feature
- P3 → minor improvement or low-impact request

**Complexity** (choose one):
- Low → small change, config tweak, UI fix
- Medium → moderate logic change or integration
- High → architectural change or cross-system impact

Return ONLY a JSON object with this exact structure:
{{
  "type": "bug|feature|enhancement|question",
  "priority": "P0|P1|P2|P3",
  "complexity": "Low|Medium|High",
  "reasoning": "brief explanation of classification"
}}"""


class OracleJudgment(BaseModel):
    """Validated shape of the oracle's JSON answer."""

    model_config = ConfigDict(extra="ignore")

    type: IssueType
    priority: Priority
    complexity: Complexity
    reasoning: str = Field(min_length=1)

    def to_classification(self) -> Classification:
        return Classification(
            type=self.type,
            priority=self.priority,
            complexity=self.complexity,
            rationale=self.reasoning.strip(),
        )


def truncate_body(body: str, max_length: int = DEFAULT_BODY_MAX_CHARS) -> str:
    """Cut the body to ``max_length`` characters, appending a marker if cut."""
    if len(body) <= max_length:
        return body
    return body[:max_length] + TRUNCATION_MARKER


def build_prompt(title: str, body: str) -> str:
    return PROMPT_TEMPLATE.format(title=title, body=body or "(No description provided)")


def _extract_json_object(output: str) -> dict | None:
    candidates = []
    fenced = _JSON_FENCE.search(output)
    if fenced:
        candidates.append(fenced.group(1))
    start, end = output.find("{"), output.rfind("}")
    if start >= 0 and end > start:
        candidates.append(output[start : end + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def parse_judgment(output: str) -> Classification | None:
    """Parse and validate oracle text; None when it is unusable."""
    data = _extract_json_object(output or "")
    if data is None:
        log.warning("oracle_output_not_json", output=(output or "")[:200])
        return None
    try:
        return OracleJudgment.model_validate(data).to_classification()
    except PydanticValidationError as e:
        log.warning("oracle_output_invalid", errors=e.errors(include_url=False), output=data)
        return None


class ClassificationPolicy:
    """Decides type/priority/complexity for one issue."""

    def __init__(
        self,
        oracle: ClassificationOracle,
        body_max_chars: int = DEFAULT_BODY_MAX_CHARS,
    ):
        self.oracle = oracle
        self.body_max_chars = body_max_chars

    async def classify(self, title: str, body: str) -> Classification:
        """Classify an issue.

        Raises:
            OracleCredentialError, OracleError, RateLimitError: only when the
                oracle cannot be invoked at all
        """
        keywords = find_critical_keywords(title, body)
        prompt = build_prompt(title, truncate_body(body, self.body_max_chars))

        output = await self.oracle.infer(prompt)
        classification = parse_judgment(output)
        if classification is None:
            classification = FALLBACK_CLASSIFICATION

        if keywords:
            log.info("p0_override_applied", keywords=keywords, oracle_priority=str(classification.priority))
            classification = replace(
                classification,
                priority=Priority.P0,
                rationale=f"{OVERRIDE_NOTICE} {classification.rationale}",
            )

        log.info(
            "issue_classified",
            type=str(classification.type),
            priority=str(classification.priority),
            complexity=str(classification.complexity),
        )
        return classification
