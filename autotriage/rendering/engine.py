"""Sandboxed Jinja2 rendering for triage comments and reports.

Issue titles, bodies and oracle rationales are untrusted text that ends up
in rendered markdown. Templates are therefore rendered in a
SandboxedEnvironment with StrictUndefined, and template paths are checked
so they cannot escape the template directory.

Example:
    >>> renderer = TemplateRenderer()
    >>> body = renderer.render_triage_comment(classification)
    >>> body.startswith("🔎 Issue Triage Summary")
    True
"""

from pathlib import Path
from typing import Any, cast

from jinja2 import FileSystemLoader, StrictUndefined, TemplateNotFound
from jinja2.sandbox import SandboxedEnvironment

from autotriage.enums import IssueType, Priority
from autotriage.models.domain import BatchSummary, Classification, RankedIssue, TriageStats

PRIORITY_STEPS: dict[Priority, list[str]] = {
    Priority.P0: [
        "🚨 **Immediate attention required** - This is a critical issue",
        "Assign to on-call engineer or team lead",
        "Create incident response ticket if needed",
    ],
    Priority.P1: [
        "Review and assign to appropriate team member within 24 hours",
        "Add to current sprint if capacity allows",
    ],
    Priority.P2: [
        "Add to backlog for prioritization in next sprint planning",
        "Assess against current roadmap",
    ],
    Priority.P3: [
        "Add to backlog for future consideration",
        "May be suitable for community contributions",
    ],
}

TYPE_STEPS: dict[IssueType, list[str]] = {
    IssueType.BUG: [
        "Verify reproduction steps",
        "Add relevant test cases to prevent regression",
    ],
    IssueType.FEATURE: [
        "Gather requirements and create technical design if approved",
        "Estimate effort and dependencies",
    ],
    IssueType.QUESTION: [
        "Provide clear answer or point to relevant documentation",
        "Consider if documentation needs improvement",
    ],
}


def suggested_next_steps(classification: Classification) -> list[str]:
    """Priority-driven steps first, then type-driven steps."""
    return PRIORITY_STEPS[classification.priority] + TYPE_STEPS.get(classification.type, [])


def format_histogram(counts: dict[str, int]) -> str:
    if not counts:
        return "none"
    return ", ".join(f"{name}: {count}" for name, count in sorted(counts.items()))


class TemplateRenderer:
    """Renders the package's markdown templates.

    Attributes:
        template_dir: Resolved path to the template directory.
        env: The SandboxedEnvironment instance.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        """Initialize the renderer.

        Args:
            template_dir: Root directory for templates. If None, uses the
                package's built-in templates directory.

        Raises:
            ValueError: If template_dir doesn't exist or isn't a directory.
        """
        if template_dir is None:
            template_dir = Path(__file__).parent.parent / "templates"

        self.template_dir = template_dir.resolve()

        if not self.template_dir.exists():
            raise ValueError(f"Template directory does not exist: {self.template_dir}")
        if not self.template_dir.is_dir():
            raise ValueError(f"Template path is not a directory: {self.template_dir}")

        self.env = SandboxedEnvironment(
            loader=FileSystemLoader(str(self.template_dir)),
            undefined=StrictUndefined,
            autoescape=False,  # markdown, not HTML
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["histogram"] = format_histogram

    def validate_template_path(self, template_path: str) -> Path:
        """Resolve a template path, rejecting anything outside template_dir.

        Raises:
            ValueError: If path escapes template directory.
            TemplateNotFound: If the template file doesn't exist.
        """
        requested_path = (self.template_dir / template_path).resolve()

        try:
            requested_path.relative_to(self.template_dir)
        except ValueError as e:
            raise ValueError(f"Template path escapes template directory: {template_path}") from e

        if not requested_path.exists():
            raise TemplateNotFound(template_path)

        return requested_path

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a template, stripping surrounding whitespace.

        Raises:
            TemplateNotFound: If template doesn't exist.
            jinja2.UndefinedError: If the template uses an undefined variable.
        """
        self.validate_template_path(template_path)
        template = self.env.get_template(template_path)
        return cast(str, template.render(**context)).strip()

    def render_triage_comment(self, classification: Classification) -> str:
        return self.render(
            "triage_comment.md.j2",
            {
                "classification": classification,
                "next_steps": suggested_next_steps(classification),
            },
        )

    def render_recommendations(
        self,
        owner: str,
        repo: str,
        ranked: list[RankedIssue],
        labels: list[str] | None = None,
    ) -> str:
        return self.render(
            "recommendations.md.j2",
            {"owner": owner, "repo": repo, "ranked": ranked, "labels": labels or []},
        )

    def render_batch_summary(self, summary: BatchSummary) -> str:
        return self.render("batch_summary.md.j2", {"summary": summary})

    def render_stats_report(self, stats: TriageStats) -> str:
        return self.render("stats_report.md.j2", {"stats": stats.to_dict()})
