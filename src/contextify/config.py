"""Configuration management for Next.js Contextify."""

import os
from typing import Optional
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .models import TargetLLM


load_dotenv()


DEFAULT_MAX_FILE_SIZE = 1024 * 1024  # 1MB
DEFAULT_MAX_DEPTH = 10
DEFAULT_MAX_WORKERS = 8


class Config(BaseModel):
    """Application configuration."""

    # Scanner Settings
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, ge=1)
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)
    max_workers: int = Field(default=DEFAULT_MAX_WORKERS, ge=1)
    ignore_patterns: list[str] = Field(default_factory=list)

    # Optimization Settings
    target_llm: TargetLLM = Field(default=TargetLLM.CLAUDE)

    # Logging
    log_level: str = Field(default="INFO")

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        def _parse_int(value: Optional[str], fallback: int) -> int:
            try:
                parsed = int(value) if value is not None else fallback
            except ValueError:
                return fallback
            return parsed if parsed > 0 else fallback

        ignore_patterns = []
        extra_ignored = os.getenv("IGNORE_PATTERNS")
        if extra_ignored:
            ignore_patterns.extend(
                [entry.strip() for entry in extra_ignored.split(",") if entry.strip()]
            )

        target = os.getenv("TARGET_LLM", TargetLLM.CLAUDE.value).lower()
        try:
            target_llm = TargetLLM(target)
        except ValueError:
            target_llm = TargetLLM.CLAUDE

        return cls(
            max_file_size=_parse_int(os.getenv("MAX_FILE_SIZE"), DEFAULT_MAX_FILE_SIZE),
            max_depth=_parse_int(os.getenv("MAX_SCAN_DEPTH"), DEFAULT_MAX_DEPTH),
            max_workers=_parse_int(os.getenv("SCAN_WORKERS"), DEFAULT_MAX_WORKERS),
            ignore_patterns=ignore_patterns,
            target_llm=target_llm,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
