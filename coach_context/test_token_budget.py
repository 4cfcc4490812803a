"""
Token Budget Tests
==================
"""

import pytest

from coach_context.token_budget import (
    CHARS_PER_TOKEN, TOKEN_ALLOCATIONS, TRUNCATION_MARKER,
    estimate_tokens, remaining_budget, truncate_to_token_limit
)


class TestEstimateTokens:

    def test_empty_text_is_zero(self):
        assert estimate_tokens("") == 0

    def test_rounds_up_partial_tokens(self):
        assert estimate_tokens("a") == 1
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2

    def test_monotonic_in_length(self):
        previous = 0
        for length in range(0, 200):
            current = estimate_tokens("x" * length)
            assert current >= previous
            previous = current

    def test_concatenation_never_exceeds_sum_of_parts(self):
        parts = ["abc", "defgh", "", "ijklmnopq", "r"]
        assert estimate_tokens("".join(parts)) <= sum(estimate_tokens(p) for p in parts)


class TestTruncateToTokenLimit:

    def test_text_that_fits_is_unchanged(self):
        text = "hello world"
        assert truncate_to_token_limit(text, estimate_tokens(text)) == text

    def test_keeps_head_and_appends_marker(self):
        text = "0123456789" * 10
        result = truncate_to_token_limit(text, 5)

        assert result.endswith(TRUNCATION_MARKER)
        assert text.startswith(result[:-len(TRUNCATION_MARKER)])
        assert len(result) == 5 * CHARS_PER_TOKEN
        assert estimate_tokens(result) <= 5

    @pytest.mark.parametrize("limit", [0, 1, 2, 7, 50])
    def test_idempotent(self, limit):
        text = "The quick brown fox jumps over the lazy dog. " * 20
        once = truncate_to_token_limit(text, limit)
        assert truncate_to_token_limit(once, limit) == once

    @pytest.mark.parametrize("limit", [-3, 0])
    def test_non_positive_budget_gives_empty(self, limit):
        assert truncate_to_token_limit("some text", limit) == ""

    def test_one_token_budget(self):
        assert truncate_to_token_limit("abcdefghij", 1) == "a..."

    def test_empty_text(self):
        assert truncate_to_token_limit("", 10) == ""


class TestAllocations:

    def test_remaining_budget_never_negative(self):
        assert remaining_budget(100, 30, 20) == 50
        assert remaining_budget(100, 80, 40) == 0

    def test_static_allocations(self):
        assert TOKEN_ALLOCATIONS["conversation_buffer"] == 7000
        assert TOKEN_ALLOCATIONS["memory_context"] == 10000
        assert all(v > 0 for v in TOKEN_ALLOCATIONS.values())
