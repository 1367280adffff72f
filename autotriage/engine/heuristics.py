"""Keyword heuristic that forces P0 priority for critical-sounding issues."""

import re

CRITICAL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"crash(ed|ing)?", re.IGNORECASE),
    re.compile(r"security\s+(vulnerability|issue|bug|flaw)", re.IGNORECASE),
    re.compile(r"data\s+loss", re.IGNORECASE),
    re.compile(r"production\s+down", re.IGNORECASE),
    re.compile(r"critical\s+(bug|issue)", re.IGNORECASE),
    re.compile(r"severe", re.IGNORECASE),
    re.compile(r"urgent", re.IGNORECASE),
    re.compile(r"exploit", re.IGNORECASE),
    re.compile(r"CVE-\d+", re.IGNORECASE),
    re.compile(r"vulnerability", re.IGNORECASE),
)

OVERRIDE_NOTICE = "P0 override applied due to critical keywords."


def find_critical_keywords(title: str, body: str) -> list[str]:
    """Return the matched text of every critical pattern, in pattern order."""
    text = f"{title} {body}"
    matches = []
    for pattern in CRITICAL_PATTERNS:
        match = pattern.search(text)
        if match:
            matches.append(match.group(0))
    return matches


def has_critical_keywords(title: str, body: str) -> bool:
    text = f"{title} {body}"
    return any(pattern.search(text) for pattern in CRITICAL_PATTERNS)
