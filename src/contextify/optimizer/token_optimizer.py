"""Fit classified files into a token budget."""

import logging
import time
from typing import Callable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from ..errors import PolicyValidationError
from ..models import FileInfo, TargetLLM
from ..registry import patterns_for_technology
from ..token_estimator import CharRatioTokenEstimator, TokenEstimator
from . import content as transforms
from .policy import (
    COST_MULTIPLIERS,
    LARGE_FILE_BYTES,
    TOKEN_LIMITS,
    OptimizationPolicy,
    PolicyInput,
    validate_policy,
)


logger = logging.getLogger(__name__)


TRUNCATION_RATIO = 0.9
TRUNCATION_MARKER = "\n\n// ... (content truncated to fit {limit} token limit)"


class OptimizationSavings(BaseModel):
    """Percentage reductions achieved by one optimization run."""

    file_reduction: float = 0.0
    token_reduction: float = 0.0
    estimated_cost_savings: float = 0.0


class OptimizationResult(BaseModel):
    """Before/after report for one optimization run."""

    original_file_count: int = 0
    optimized_file_count: int = 0
    original_tokens: int = 0
    optimized_tokens: int = 0
    savings: OptimizationSavings = Field(default_factory=OptimizationSavings)
    applied_optimizations: List[str] = Field(default_factory=list)
    target_token_limit: int = 0
    fits_context_window: bool = True
    validation_errors: List[str] = Field(default_factory=list)


class TokenOptimizer:
    """Applies an OptimizationPolicy to a list of files.

    The input list and its files are never modified; every stage builds a
    new list and changed files are replaced with copies.

    Args:
        estimator: Token estimator used after content changes
        default_target: Target model when the policy does not name one
    """

    def __init__(
        self,
        estimator: Optional[TokenEstimator] = None,
        default_target: TargetLLM = TargetLLM.CLAUDE,
    ):
        self.estimator = estimator or CharRatioTokenEstimator()
        self.default_target = default_target

    def optimize(
        self, files: Sequence[FileInfo], policy: PolicyInput = None
    ) -> Tuple[List[FileInfo], OptimizationResult]:
        """Optimize files under a policy.

        Args:
            files: Classified files, usually sorted by priority
            policy: OptimizationPolicy, mapping of options, or None for identity

        Returns:
            (optimized files, OptimizationResult). An invalid policy returns
            the input unchanged with ``validation_errors`` set.
        """
        start = time.perf_counter()
        original = list(files)
        original_tokens = sum(f.tokens for f in original)

        try:
            policy = validate_policy(policy)
        except PolicyValidationError as e:
            logger.warning("%s", e)
            return original, self._report(original, original, [], self.default_target, e.errors)

        target = policy.target_llm or self.default_target
        if policy.is_identity or not original:
            return original, self._report(original, original, [], target)

        logger.info("Starting token optimization with %d files (%d tokens)", len(original), original_tokens)
        applied: List[str] = []
        current = original

        if policy.max_total_files is not None and len(current) > policy.max_total_files:
            current = sorted(current, key=lambda f: -f.priority)[: policy.max_total_files]
            applied.append(f"Limited to top {policy.max_total_files} priority files")

        if policy.priority_threshold is not None:
            threshold = policy.priority_threshold
            current = self._filter(
                current,
                lambda f: f.priority >= threshold,
                f"Filtered by priority threshold: {threshold}",
                applied,
            )

        if policy.exclude_large_files:
            current = self._filter(
                current,
                lambda f: f.size <= LARGE_FILE_BYTES,
                "Excluded large files (>50KB)",
                applied,
            )

        if policy.exclude_technologies:
            patterns = [p for tech in policy.exclude_technologies for p in patterns_for_technology(tech)]
            current = self._filter(
                current,
                lambda f: not any(p.matches_path(f.path) for p in patterns),
                f"Excluded technologies: {', '.join(policy.exclude_technologies)}",
                applied,
            )

        if policy.exclude_file_types:
            suffixes = tuple(policy.exclude_file_types)
            current = self._filter(
                current,
                lambda f: not f.path.endswith(suffixes),
                f"Excluded file types: {', '.join(policy.exclude_file_types)}",
                applied,
            )

        if policy.exclude_directories:
            current = self._filter(
                current,
                lambda f: not any(d in f.path for d in policy.exclude_directories),
                f"Excluded directories: {', '.join(policy.exclude_directories)}",
                applied,
            )

        if policy.remove_empty_lines:
            current = self._transform(
                current, lambda f: transforms.remove_empty_lines(f.content), "Removed empty lines", applied
            )
        if policy.remove_comments:
            current = self._transform(
                current, lambda f: transforms.remove_comments(f.content, f.path), "Removed comments", applied
            )
        if policy.summarize_content:
            current = self._transform(
                current, lambda f: transforms.summarize(f.content, f.path), "Summarized content", applied
            )

        if policy.max_tokens_per_file is not None:
            current = self._enforce_token_cap(current, policy.max_tokens_per_file, applied)

        result = self._report(original, current, applied, target)
        logger.info(
            "Token optimization completed in %.0f ms: %d -> %d files, %.1f%% token reduction",
            (time.perf_counter() - start) * 1000,
            result.original_file_count,
            result.optimized_file_count,
            result.savings.token_reduction,
        )
        return current, result

    def _filter(
        self,
        files: List[FileInfo],
        keep: Callable[[FileInfo], bool],
        message: str,
        applied: List[str],
    ) -> List[FileInfo]:
        kept = [f for f in files if keep(f)]
        if len(kept) < len(files):
            applied.append(message)
            logger.debug("%s (%d files dropped)", message, len(files) - len(kept))
        return kept

    def _transform(
        self,
        files: List[FileInfo],
        transform: Callable[[FileInfo], str],
        message: str,
        applied: List[str],
    ) -> List[FileInfo]:
        """Apply a content transform, keeping results that are not larger."""
        changed = 0
        result: List[FileInfo] = []
        for file_info in files:
            new_content = transform(file_info)
            if new_content == file_info.content or len(new_content) > len(file_info.content):
                result.append(file_info)
                continue
            result.append(self._with_content(file_info, new_content))
            changed += 1

        if changed:
            applied.append(f"{message} in {changed} files")
            logger.debug("%s in %d files", message, changed)
        return result

    def _enforce_token_cap(self, files: List[FileInfo], limit: int, applied: List[str]) -> List[FileInfo]:
        marker = TRUNCATION_MARKER.format(limit=limit)
        max_chars = limit * CharRatioTokenEstimator.CHARS_PER_TOKEN - len(marker)
        truncated = 0
        result: List[FileInfo] = []
        for file_info in files:
            tokens = self.estimator.estimate(file_info.content)
            if tokens <= limit:
                result.append(file_info)
                continue
            ratio = limit / tokens
            target_length = min(int(len(file_info.content) * ratio * TRUNCATION_RATIO), max_chars)
            new_content = file_info.content[: max(0, target_length)] + marker
            result.append(self._with_content(file_info, new_content))
            truncated += 1

        if truncated:
            applied.append(f"Limited files to {limit} tokens each ({truncated} truncated)")
        return result

    def _with_content(self, file_info: FileInfo, content: str) -> FileInfo:
        return file_info.model_copy(
            update={
                "content": content,
                "tokens": self.estimator.estimate(content),
                "size": len(content.encode("utf-8")),
            }
        )

    def _report(
        self,
        original: List[FileInfo],
        optimized: List[FileInfo],
        applied: List[str],
        target: TargetLLM,
        validation_errors: Optional[List[str]] = None,
    ) -> OptimizationResult:
        original_tokens = sum(f.tokens for f in original)
        optimized_tokens = sum(f.tokens for f in optimized)

        file_reduction = _percent(len(original) - len(optimized), len(original))
        token_reduction = _percent(original_tokens - optimized_tokens, original_tokens)
        limit = TOKEN_LIMITS.get(target, TOKEN_LIMITS[TargetLLM.CUSTOM])

        return OptimizationResult(
            original_file_count=len(original),
            optimized_file_count=len(optimized),
            original_tokens=original_tokens,
            optimized_tokens=optimized_tokens,
            savings=OptimizationSavings(
                file_reduction=file_reduction,
                token_reduction=token_reduction,
                estimated_cost_savings=token_reduction * COST_MULTIPLIERS.get(target, 1.0),
            ),
            applied_optimizations=list(applied),
            target_token_limit=limit,
            fits_context_window=optimized_tokens <= limit,
            validation_errors=list(validation_errors or []),
        )


def _percent(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return part / whole * 100


def optimize_files(
    files: Sequence[FileInfo], policy: PolicyInput = None
) -> Tuple[List[FileInfo], OptimizationResult]:
    """Optimize files with a default TokenOptimizer."""
    return TokenOptimizer().optimize(files, policy)
