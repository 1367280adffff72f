"""Tests for autotriage/engine/classifier.py and heuristics.py."""

import pytest
from conftest import ScriptedOracle, judgment

from autotriage.engine.classifier import (
    FALLBACK_CLASSIFICATION,
    TRUNCATION_MARKER,
    ClassificationPolicy,
    build_prompt,
    parse_judgment,
    truncate_body,
)
from autotriage.engine.heuristics import (
    OVERRIDE_NOTICE,
    find_critical_keywords,
    has_critical_keywords,
)
from autotriage.enums import Complexity, IssueType, Priority
from autotriage.exceptions import OracleCredentialError


class TestHeuristics:
    """Tests for the P0 keyword heuristic."""

    @pytest.mark.parametrize(
        "title,body",
        [
            ("App crashed on startup", ""),
            ("Login broken", "This is a security vulnerability in the session code"),
            ("Sync", "We are seeing DATA LOSS after the migration"),
            ("Production down", "since 10:00 UTC"),
            ("Dependency update", "Fixes CVE-2024-3094"),
            ("Urgent: payments failing", ""),
        ],
    )
    def test_matches_critical_text(self, title, body):
        """Should detect critical keywords case-insensitively in title or body."""
        assert has_critical_keywords(title, body) is True

    def test_ignores_ordinary_text(self):
        """Should not flag everyday issues."""
        assert has_critical_keywords("Typo in README", "The word 'recieve' is misspelled") is False

    def test_find_returns_matched_text(self):
        """Should return the matched fragments in pattern order."""
        found = find_critical_keywords("Crashing on save", "possible exploit")
        assert found == ["Crashing", "exploit"]


class TestTruncateBody:
    """Tests for body truncation."""

    def test_short_body_unchanged(self):
        """Should leave bodies at or under the limit untouched."""
        body = "a" * 2000
        assert truncate_body(body) == body

    def test_long_body_cut_with_marker(self):
        """Should cut to exactly 2000 characters and append the marker."""
        result = truncate_body("b" * 5000)
        assert result == "b" * 2000 + TRUNCATION_MARKER

    def test_empty_body_prompt(self):
        """Should tell the model when there is no description."""
        assert "(No description provided)" in build_prompt("Title", "")


class TestParseJudgment:
    """Tests for oracle output validation."""

    def test_plain_json(self):
        """Should parse a bare JSON object."""
        result = parse_judgment(judgment("question", "P3", "Low", "User asks about config"))

        assert result.type == IssueType.QUESTION
        assert result.priority == Priority.P3
        assert result.complexity == Complexity.LOW
        assert result.rationale == "User asks about config"

    def test_fenced_json(self):
        """Should extract JSON from a markdown code fence."""
        output = f"Here you go:\n```json\n{judgment('enhancement', 'P2', 'Medium')}\n```"
        result = parse_judgment(output)

        assert result.type == IssueType.ENHANCEMENT

    def test_json_surrounded_by_prose(self):
        """Should find the object inside surrounding text."""
        output = f"Sure! {judgment('feature', 'P1', 'High')} Hope this helps."
        assert parse_judgment(output).type == IssueType.FEATURE

    def test_missing_field(self):
        """Should reject output without a reasoning field."""
        assert parse_judgment('{"type": "bug", "priority": "P1", "complexity": "Low"}') is None

    @pytest.mark.parametrize(
        "output",
        [
            judgment(priority="P5"),
            judgment(type="chore"),
            judgment(complexity="low"),
            judgment(reasoning=""),
        ],
    )
    def test_out_of_enum_values(self, output):
        """Should reject values outside the closed enumerations."""
        assert parse_judgment(output) is None

    def test_not_json(self):
        """Should reject free text."""
        assert parse_judgment("I think this is a bug with high priority.") is None
        assert parse_judgment("") is None


class TestClassificationPolicy:
    """Tests for ClassificationPolicy.classify."""

    @pytest.mark.asyncio
    async def test_uses_oracle_judgment(self):
        """Should return the oracle's classification when no keyword matches."""
        oracle = ScriptedOracle(judgment("feature", "P1", "High", "Adds SSO support"))
        policy = ClassificationPolicy(oracle)

        result = await policy.classify("Support SSO login", "We would like SAML")

        assert result.type == IssueType.FEATURE
        assert result.priority == Priority.P1
        assert result.complexity == Complexity.HIGH
        assert result.rationale == "Adds SSO support"
        assert len(oracle.prompts) == 1

    @pytest.mark.asyncio
    async def test_heuristic_overrides_priority(self):
        """Should force P0 and prefix the rationale, keeping oracle type/complexity."""
        oracle = ScriptedOracle(judgment("bug", "P3", "Low", "Minor glitch"))
        policy = ClassificationPolicy(oracle)

        result = await policy.classify("App crashed after upgrade", "Stack trace attached")

        assert result.priority == Priority.P0
        assert result.type == IssueType.BUG
        assert result.complexity == Complexity.LOW
        assert result.rationale == f"{OVERRIDE_NOTICE} Minor glitch"
        assert len(oracle.prompts) == 1

    @pytest.mark.asyncio
    async def test_fallback_on_invalid_output(self):
        """Should fall back to the fixed classification on malformed output."""
        policy = ClassificationPolicy(ScriptedOracle('{"type": "bug"}'))

        result = await policy.classify("Button misaligned", "On the settings page")

        assert result == FALLBACK_CLASSIFICATION
        assert result.type == IssueType.BUG
        assert result.priority == Priority.P2
        assert result.complexity == Complexity.MEDIUM
        assert result.rationale == "Classification failed, using default values"

    @pytest.mark.asyncio
    async def test_fallback_still_gets_override(self):
        """Should apply the heuristic on top of the fallback."""
        policy = ClassificationPolicy(ScriptedOracle("not json"))

        result = await policy.classify("Data loss on export", "")

        assert result.priority == Priority.P0
        assert result.rationale == f"{OVERRIDE_NOTICE} {FALLBACK_CLASSIFICATION.rationale}"

    @pytest.mark.asyncio
    async def test_truncates_body_sent_to_oracle(self):
        """Should send exactly 2000 body characters plus the marker."""
        oracle = ScriptedOracle(judgment())
        policy = ClassificationPolicy(oracle)

        await policy.classify("Long report", "x" * 5000)

        prompt = oracle.prompts[0]
        assert "x" * 2000 + TRUNCATION_MARKER in prompt
        assert "x" * 2001 not in prompt

    @pytest.mark.asyncio
    async def test_keyword_past_truncation_still_counts(self):
        """Should test the heuristic against the full, untruncated body."""
        policy = ClassificationPolicy(ScriptedOracle(judgment(priority="P3")))

        result = await policy.classify("Report", "y" * 3000 + " exploit")

        assert result.priority == Priority.P0

    @pytest.mark.asyncio
    async def test_oracle_failure_propagates(self):
        """Should raise when the oracle cannot be invoked at all."""
        policy = ClassificationPolicy(ScriptedOracle(OracleCredentialError("no key")))

        with pytest.raises(OracleCredentialError):
            await policy.classify("Title", "Body")
