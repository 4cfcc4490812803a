"""
Coach mention detection.

A client can pull the human coach into a thread by writing @coach (or the
coach's handle). Request handlers use this to skip the assistant reply.
"""

import re

COACH_MENTION_PATTERNS = [
    re.compile(r"@gena\b", re.IGNORECASE),
    re.compile(r"@coach\b", re.IGNORECASE),
    re.compile(r"@mentor\b", re.IGNORECASE),
]


def detect_coach_mention(content: str) -> bool:
    return any(p.search(content) for p in COACH_MENTION_PATTERNS)


def highlight_mentions(content: str) -> str:
    """Wrap every mention in ** for display."""
    for pattern in COACH_MENTION_PATTERNS:
        content = pattern.sub(lambda m: f"**{m.group(0)}**", content)
    return content
