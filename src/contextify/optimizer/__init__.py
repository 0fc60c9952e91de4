"""Token budget optimization of scanned files."""

from .policy import (
    COST_MULTIPLIERS,
    LARGE_FILE_BYTES,
    TOKEN_LIMITS,
    OptimizationPolicy,
    get_optimization_presets,
    validate_policy,
)
from .token_optimizer import OptimizationResult, OptimizationSavings, TokenOptimizer, optimize_files

__all__ = [
    "COST_MULTIPLIERS",
    "LARGE_FILE_BYTES",
    "TOKEN_LIMITS",
    "OptimizationPolicy",
    "get_optimization_presets",
    "validate_policy",
    "OptimizationResult",
    "OptimizationSavings",
    "TokenOptimizer",
    "optimize_files",
]
