"""Tests for token estimation."""

import pytest
from contextify.token_estimator import CharRatioTokenEstimator, TokenEstimator, estimate_tokens


class TestCharRatioTokenEstimator:
    """Character-ratio estimator."""

    def test_satisfies_protocol(self):
        assert isinstance(CharRatioTokenEstimator(), TokenEstimator)

    def test_empty_text_is_zero(self):
        assert CharRatioTokenEstimator().estimate("") == 0

    @pytest.mark.parametrize("text,expected", [("a", 1), ("abcd", 1), ("abcde", 2), ("x" * 400, 100)])
    def test_rounds_up(self, text, expected):
        assert CharRatioTokenEstimator().estimate(text) == expected

    def test_monotonic_in_length(self):
        estimator = CharRatioTokenEstimator()
        counts = [estimator.estimate("y" * n) for n in range(0, 200)]

        assert counts == sorted(counts)


def test_estimate_tokens_uses_default_ratio():
    assert estimate_tokens("const a = 1;") == 3
