"""Ignore rules for project scans (gitignore semantics)."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Protocol, runtime_checkable

from pathspec import PathSpec
from pathspec.patterns.gitwildmatch import GitWildMatchPattern


logger = logging.getLogger(__name__)


DEFAULT_IGNORE_PATTERNS = (
    "node_modules/",
    ".git/",
    ".next/",
    "dist/",
    "build/",
    ".turbo/",
    ".cache/",
    "coverage/",
    ".nyc_output/",
    ".swc/",
    ".vercel/",
    "*.tsbuildinfo",
    "*.log",
)

# Editor and AI-assistant ignore files, read in this order.
ASSISTANT_IGNORE_FILES = (
    ".nextjscollectorignore",
    ".cursorignore",
    ".codiumignore",
    ".clineignore",
    ".rooignore",
    ".windsurfignore",
    ".claudeignore",
    ".aiignore",
)


@runtime_checkable
class IgnorePolicy(Protocol):
    """Decides whether a root-relative path is skipped by a scan."""

    def should_ignore(self, relative_path: str) -> bool:
        ...


@dataclass
class IgnoreStats:
    has_gitignore: bool
    found_ignore_files: List[str] = field(default_factory=list)
    supported_ignore_files: List[str] = field(default_factory=list)
    total_patterns: int = 0


class IgnoreService:
    """Ignore policy built from defaults, ``.gitignore``, assistant ignore files
    and extra patterns.

    Directory queries must carry a trailing ``/`` so directory-only patterns
    such as ``node_modules/`` apply to them.
    """

    def __init__(self, root: Path, extra_patterns: Iterable[str] = ()):
        """Initialize the ignore policy for a project root.

        Args:
            root: Project root holding the ignore files
            extra_patterns: Additional gitignore-style patterns from configuration
        """
        self.root = Path(root)
        self.extra_patterns = [p for p in extra_patterns if p.strip()]
        self.found_ignore_files: List[str] = []
        self.patterns = self._collect_patterns()
        self.spec = PathSpec.from_lines(GitWildMatchPattern, self.patterns)

    def should_ignore(self, relative_path: str) -> bool:
        """Check if a root-relative POSIX path is ignored.

        Args:
            relative_path: Path relative to root; directories end with ``/``

        Returns:
            True if the path should be skipped
        """
        path = relative_path.replace("\\", "/")
        if not path or path in ("/", "./"):
            return False
        return self.spec.match_file(path)

    def refresh(self) -> None:
        """Re-read the ignore files from disk."""
        self.found_ignore_files = []
        self.patterns = self._collect_patterns()
        self.spec = PathSpec.from_lines(GitWildMatchPattern, self.patterns)
        logger.debug("Refreshed ignore rules for %s", self.root)

    def get_ignore_stats(self) -> IgnoreStats:
        return IgnoreStats(
            has_gitignore=".gitignore" in self.found_ignore_files,
            found_ignore_files=[f for f in self.found_ignore_files if f != ".gitignore"],
            supported_ignore_files=list(ASSISTANT_IGNORE_FILES),
            total_patterns=len(self.patterns),
        )

    def _collect_patterns(self) -> List[str]:
        patterns = list(DEFAULT_IGNORE_PATTERNS)
        # The ignore files themselves never end up in a bundle.
        patterns.append(".gitignore")
        patterns.extend(ASSISTANT_IGNORE_FILES)

        for ignore_file in (".gitignore",) + ASSISTANT_IGNORE_FILES:
            patterns.extend(self._read_ignore_file(ignore_file))

        patterns.extend(self.extra_patterns)
        return patterns

    def _read_ignore_file(self, name: str) -> List[str]:
        path = self.root / name
        if not path.is_file():
            return []

        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read %s: %s", path, e)
            return []

        self.found_ignore_files.append(name)
        entries = [line for line in lines if line.strip() and not line.lstrip().startswith("#")]
        logger.debug("Added %d patterns from %s", len(entries), name)
        return entries
