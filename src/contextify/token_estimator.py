"""Token estimation for scanned file content."""

from __future__ import annotations

import math
from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenEstimator(Protocol):
    """Protocol for estimating how many LLM tokens a piece of text costs."""

    def estimate(self, text: str) -> int:
        """Return estimated token count for text.

        Args:
            text: File content or any other prompt fragment.

        Returns:
            Estimated number of tokens, at least 1 for non-empty text.
        """
        ...


class CharRatioTokenEstimator:
    """Token estimator using a fixed characters-per-token ratio.

    Approximates common BPE tokenizers (~4 chars/token for source code and
    English prose). Monotonic in text length.
    """

    CHARS_PER_TOKEN = 4

    def estimate(self, text: str) -> int:
        if not text:
            return 0
        return math.ceil(len(text) / self.CHARS_PER_TOKEN)


_default_estimator = CharRatioTokenEstimator()


def estimate_tokens(text: str) -> int:
    """Estimate tokens for text with the default character-ratio estimator."""
    return _default_estimator.estimate(text)
