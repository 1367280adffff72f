"""Tests for autotriage/rendering/engine.py - markdown templates."""

from datetime import UTC, datetime

import pytest
from conftest import make_issue
from jinja2 import TemplateNotFound, UndefinedError

from autotriage.engine.ranking import rank_issues
from autotriage.engine.stats import compute_stats
from autotriage.enums import Complexity, IssueType, Priority
from autotriage.models.domain import BatchItemResult, BatchSummary, Classification
from autotriage.rendering import TemplateRenderer, suggested_next_steps


@pytest.fixture
def renderer():
    return TemplateRenderer()


def classification(type=IssueType.BUG, priority=Priority.P1, complexity=Complexity.LOW, rationale="Login fails"):
    return Classification(type=type, priority=priority, complexity=complexity, rationale=rationale)


class TestNextSteps:
    """Tests for suggested next steps."""

    def test_priority_then_type(self):
        steps = suggested_next_steps(classification())

        assert steps == [
            "Review and assign to appropriate team member within 24 hours",
            "Add to current sprint if capacity allows",
            "Verify reproduction steps",
            "Add relevant test cases to prevent regression",
        ]

    def test_enhancement_has_no_type_steps(self):
        steps = suggested_next_steps(classification(type=IssueType.ENHANCEMENT, priority=Priority.P3))

        assert steps == [
            "Add to backlog for future consideration",
            "May be suitable for community contributions",
        ]


class TestTriageComment:
    """Tests for the triage comment template."""

    def test_full_comment(self, renderer):
        body = renderer.render_triage_comment(classification())

        assert body == (
            "🔎 Issue Triage Summary\n"
            "\n"
            "**Type:** bug\n"
            "**Priority:** P1\n"
            "**Complexity:** Low\n"
            "\n"
            "**Reasoning:**\n"
            "Login fails\n"
            "\n"
            "**Suggested Next Steps:**\n"
            "1. Review and assign to appropriate team member within 24 hours\n"
            "2. Add to current sprint if capacity allows\n"
            "3. Verify reproduction steps\n"
            "4. Add relevant test cases to prevent regression\n"
            "\n"
            "---\n"
            "*This triage was performed automatically. Re-running will update labels "
            "without duplicating this comment.*"
        )

    def test_rationale_is_not_evaluated(self, renderer):
        """Should render untrusted text literally."""
        body = renderer.render_triage_comment(classification(rationale="{{ 7 * 7 }} {% raw %}"))

        assert "{{ 7 * 7 }} {% raw %}" in body


class TestRecommendations:
    """Tests for the contributor recommendations template."""

    def test_numbered_list(self, renderer):
        ranked = rank_issues(
            [
                make_issue(12, title="Fix typo", labels=["good first issue", "docs"], comments=1),
                make_issue(15, title="Refactor cache"),
            ]
        )

        text = renderer.render_recommendations("octo", "widgets", ranked, ["good first issue"])

        assert text == (
            "Found 2 recommended issue(s) in octo/widgets (filtered by: good first issue):\n"
            "\n"
            "1. **#12**: Fix typo\n"
            "   - **Complexity**: Low\n"
            "   - **Skill Fit**: Documentation\n"
            "   - **Comments**: 1\n"
            "   - **Labels**: good first issue, docs\n"
            "   - **URL**: https://github.com/octo/widgets/issues/12\n"
            "\n"
            "2. **#15**: Refactor cache\n"
            "   - **Complexity**: Low\n"
            "   - **Skill Fit**: General\n"
            "   - **Comments**: 0\n"
            "   - **Labels**: none\n"
            "   - **URL**: https://github.com/octo/widgets/issues/15"
        )

    def test_empty(self, renderer):
        text = renderer.render_recommendations("octo", "widgets", [], ["help wanted"])

        assert text == (
            "No unassigned open issues found in octo/widgets with labels: help wanted. "
            "Try different label filters or check back later."
        )

    def test_empty_without_filter(self, renderer):
        text = renderer.render_recommendations("octo", "widgets", [])

        assert text.startswith("No unassigned open issues found in octo/widgets. Try")


class TestReports:
    """Tests for the batch and stats report templates."""

    def test_batch_summary(self, renderer):
        summary = BatchSummary(owner="octo", repo="widgets", dry_run=True, total=3, triaged=1, skipped=1, failed=1)
        summary.record_classification(classification())
        summary.items = [
            BatchItemResult(1, "Crash", "triaged", classification=classification(), labels=["type-bug"]),
            BatchItemResult(2, "Old", "skipped"),
            BatchItemResult(3, "Broken", "failed", error="timeout"),
        ]

        text = renderer.render_batch_summary(summary)

        assert text.startswith("Batch triage of octo/widgets (dry run: no labels were changed)\n\n")
        assert "Processed 3 open issue(s): 1 triaged, 1 skipped, 1 failed." in text
        assert "**By type:** bug: 1" in text
        assert "- #1 Crash: bug (P1, Low) would apply type-bug" in text
        assert "- #2 Old: skipped (already triaged)" in text
        assert "- #3 Broken: failed (timeout)" in text

    def test_batch_summary_empty_histograms(self, renderer):
        text = renderer.render_batch_summary(BatchSummary(owner="octo", repo="widgets", dry_run=False))

        assert text.splitlines()[0] == "Batch triage of octo/widgets"
        assert "**By priority:** none" in text
        assert "**Results:**" not in text

    def test_stats_report(self, renderer):
        now = datetime(2024, 6, 30, tzinfo=UTC)
        stats = compute_stats([make_issue(1, labels=["type-bug"])], "octo", "widgets", now=now)

        text = renderer.render_stats_report(stats)

        assert text.startswith("Triage stats for octo/widgets")
        assert "Open issues: 1" in text
        assert "**By type:**\n- bug: 1 (100.0%)" in text
        assert "- unlabeled: 1 (100.0%)" in text


class TestTemplateSafety:
    """Tests for template path validation and strict rendering."""

    def test_path_traversal_rejected(self, renderer):
        with pytest.raises(ValueError, match="escapes template directory"):
            renderer.render("../main.py", {})

    def test_unknown_template(self, renderer):
        with pytest.raises(TemplateNotFound):
            renderer.render("nope.md.j2", {})

    def test_missing_variable(self, renderer):
        with pytest.raises(UndefinedError):
            renderer.render("triage_comment.md.j2", {"next_steps": []})

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ValueError, match="does not exist"):
            TemplateRenderer(template_dir=tmp_path / "missing")
