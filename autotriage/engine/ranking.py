"""Beginner-friendliness ranking for contributor mode.

Pure label and comment-count heuristics; the oracle is never consulted.
"""

from autotriage.models.domain import Issue, RankedIssue

BASE_SCORE = 100
COMMENT_PENALTY = 5
MAX_COMMENT_PENALTY = 30

LABEL_BONUSES: list[tuple[tuple[str, ...], int]] = [
    (("good first issue", "good-first-issue"), 50),
    (("help wanted", "help-wanted"), 30),
    (("easy", "beginner"), 40),
    (("documentation", "docs"), 20),
]

SKILL_FITS: list[tuple[str, tuple[str, ...]]] = [
    ("Frontend", ("frontend", "ui", "css")),
    ("Backend", ("backend", "api", "server")),
    ("Documentation", ("documentation", "docs")),
    ("Testing", ("testing", "test")),
]


def _lowered(issue: Issue) -> list[str]:
    return [label.lower() for label in issue.labels]


def _any_contains(labels: list[str], needles: tuple[str, ...]) -> bool:
    return any(needle in label for label in labels for needle in needles)


def score_issue(issue: Issue) -> int:
    labels = _lowered(issue)
    score = BASE_SCORE - min(issue.comments * COMMENT_PENALTY, MAX_COMMENT_PENALTY)
    for needles, bonus in LABEL_BONUSES:
        if _any_contains(labels, needles):
            score += bonus
    return score


def estimate_complexity(issue: Issue) -> str:
    """Guess complexity from labels, falling back on discussion volume."""
    labels = _lowered(issue)
    if _any_contains(labels, ("complexity-low", "easy", "simple")):
        return "Low"
    # "complex" must not catch the triage labels themselves
    if _any_contains(labels, ("complexity-high", "hard")) or any(
        "complex" in label and not label.startswith("complexity-") for label in labels
    ):
        return "High"
    if _any_contains(labels, ("complexity-medium", "moderate")):
        return "Medium"

    if issue.comments < 3:
        return "Low"
    if issue.comments > 10:
        return "High"
    return "Medium"


def suggest_skill_fit(issue: Issue) -> str:
    labels = _lowered(issue)
    fits = [name for name, needles in SKILL_FITS if _any_contains(labels, needles)]
    return ", ".join(fits) if fits else "General"


def rank_issues(issues: list[Issue]) -> list[RankedIssue]:
    """Drop assigned issues and order the rest by score, highest first.

    Ties keep their input order.
    """
    ranked = [
        RankedIssue(
            issue=issue,
            score=score_issue(issue),
            complexity=estimate_complexity(issue),
            skill_fit=suggest_skill_fit(issue),
        )
        for issue in issues
        if not issue.is_assigned
    ]
    ranked.sort(key=lambda item: item.score, reverse=True)
    return ranked
