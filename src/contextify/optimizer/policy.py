"""Optimization policy, presets and per-model constants."""

from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import PolicyValidationError
from ..models import TargetLLM


LARGE_FILE_BYTES = 50 * 1024  # 50KB
MIN_TOKENS_PER_FILE = 50

# Context window per target model
TOKEN_LIMITS: Dict[TargetLLM, int] = {
    TargetLLM.CLAUDE: 200_000,
    TargetLLM.GPT: 128_000,
    TargetLLM.GEMINI: 1_000_000,
    TargetLLM.DEEPSEEK: 64_000,
    TargetLLM.GROK: 128_000,
    TargetLLM.CUSTOM: 50_000,
}

# Relative per-token price, scales reported cost savings only
COST_MULTIPLIERS: Dict[TargetLLM, float] = {
    TargetLLM.GPT: 1.2,
    TargetLLM.CLAUDE: 1.0,
    TargetLLM.GEMINI: 0.8,
}


class OptimizationPolicy(BaseModel):
    """Which filters and content transforms the optimizer applies.

    Unset options disable their stage, so ``OptimizationPolicy()`` is the
    identity policy.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_total_files: Optional[int] = Field(default=None, ge=1)
    max_tokens_per_file: Optional[int] = Field(default=None, ge=MIN_TOKENS_PER_FILE)
    priority_threshold: Optional[int] = Field(default=None, ge=0, le=100)
    exclude_technologies: List[str] = Field(default_factory=list)
    exclude_file_types: List[str] = Field(default_factory=list)
    exclude_directories: List[str] = Field(default_factory=list)
    exclude_large_files: bool = False
    summarize_content: bool = False
    remove_comments: bool = False
    remove_empty_lines: bool = False
    target_llm: Optional[TargetLLM] = None

    @property
    def is_identity(self) -> bool:
        """True when no stage is enabled."""
        return self == OptimizationPolicy(target_llm=self.target_llm)


PolicyInput = Union[OptimizationPolicy, Mapping[str, Any], None]


def validate_policy(policy: PolicyInput) -> OptimizationPolicy:
    """Coerce and validate policy input.

    Args:
        policy: A policy, a mapping of policy options, or None for identity

    Returns:
        Validated OptimizationPolicy

    Raises:
        PolicyValidationError: If any option is invalid
    """
    if policy is None:
        return OptimizationPolicy()
    if isinstance(policy, OptimizationPolicy):
        return policy
    try:
        return OptimizationPolicy.model_validate(dict(policy))
    except ValidationError as e:
        messages = []
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"]) or "policy"
            messages.append(f"{location}: {error['msg']}")
        raise PolicyValidationError(messages) from e
    except (TypeError, ValueError) as e:
        raise PolicyValidationError([f"policy: {e}"]) from e


def get_optimization_presets() -> Dict[str, OptimizationPolicy]:
    """Named optimization presets, strongest first."""
    return {
        "aggressive": OptimizationPolicy(
            max_total_files=20,
            max_tokens_per_file=1000,
            priority_threshold=70,
            summarize_content=True,
            remove_comments=True,
            remove_empty_lines=True,
            exclude_large_files=True,
        ),
        "balanced": OptimizationPolicy(
            max_total_files=50,
            max_tokens_per_file=2000,
            exclude_large_files=True,
            remove_empty_lines=True,
        ),
        "light": OptimizationPolicy(
            max_total_files=100,
            remove_empty_lines=True,
        ),
        "none": OptimizationPolicy(),
    }
