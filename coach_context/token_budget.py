"""
Token Budget
============

Cheap token accounting for prompt assembly.

Token counts are approximated from character length so that every section
can be measured on every request without a tokenizer. The estimate is
monotonic in length and sub-additive (the estimate of a concatenation never
exceeds the sum of the estimates of its parts), which is what lets
independently truncated sections be summed against the allocations below.
"""

import math

# ==============================================================================
# BUDGET CONSTANTS
# ==============================================================================
CHARS_PER_TOKEN = 4
TOKEN_BUDGET = 32000
TRUNCATION_MARKER = "..."

TOKEN_ALLOCATIONS = {
    "role_prompt": 500,
    "methodology_frame": 2000,
    "reference_library": 3000,
    "file_attachments": 2000,
    "memory_context": 10000,
    "task_prompt": 500,
    "exercise_instructions": 1500,
    "exercise_state": 1000,
    "protocol_note": 300,
    "gap_hint": 300,
    "opening_task": 300,
    "consultation_framing": 400,
    "consultation_transcript": 8000,
    "consultation_guidance": 300,
    "current_input": 1000,
    "conversation_buffer": 7000,
}


def estimate_tokens(text: str) -> int:
    """Approximate token count: characters / CHARS_PER_TOKEN, rounded up."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def truncate_to_token_limit(text: str, max_tokens: int) -> str:
    """
    Truncate text to fit max_tokens, keeping the head.

    Text that already fits is returned unchanged, so the operation is
    idempotent. Truncated output ends with TRUNCATION_MARKER and never
    estimates above max_tokens.
    """
    if not text:
        return ""
    if estimate_tokens(text) <= max_tokens:
        return text
    if max_tokens <= 0:
        return ""

    max_chars = max_tokens * CHARS_PER_TOKEN
    return text[:max_chars - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


def remaining_budget(allocation: int, *used: int) -> int:
    """Tokens left in an allocation after the given usages, floored at 0."""
    return max(allocation - sum(used), 0)
