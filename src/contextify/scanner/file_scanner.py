"""Project file scanner: walk, classify and measure files."""

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from ..config import Config
from ..errors import RootPathError
from ..models import ContextStats, FileInfo, ProjectDetectionResult, ScanResult
from ..token_estimator import CharRatioTokenEstimator, TokenEstimator
from .classifier import FileClassifier
from .detector import ProjectDetector
from .ignore import IgnorePolicy, IgnoreService


logger = logging.getLogger(__name__)


DirectoryReader = Callable[[Path], Iterable[Tuple[str, bool]]]

ALLOWED_EXTENSIONS = {
    ".js",
    ".jsx",
    ".ts",
    ".tsx",
    ".mjs",
    ".cjs",
    ".json",
    ".md",
    ".mdx",
    ".css",
    ".scss",
    ".sass",
    ".less",
    ".prisma",
    ".zmodel",
    ".graphql",
    ".gql",
    ".sql",
    ".yml",
    ".yaml",
    ".toml",
}

SPECIAL_FILES = {
    ".env.example",
    ".env.local.example",
    "pnpm-workspace.yaml",
    ".yarnrc.yml",
    "bunfig.toml",
    ".npmrc",
    ".nvmrc",
    "Dockerfile",
}

# Machine-generated manifests that only inflate the context.
EXCLUDED_FILES = {"package-lock.json", "pnpm-lock.yaml", "yarn.lock", "bun.lockb"}


def read_directory(path: Path) -> Iterator[Tuple[str, bool]]:
    """Yield ``(name, is_directory)`` entries of a directory.

    Symlinked directories are skipped so traversal never follows them.
    """
    with os.scandir(path) as entries:
        for entry in entries:
            if entry.is_symlink() and entry.is_dir():
                continue
            yield entry.name, entry.is_dir(follow_symlinks=False)


def should_include_file(name: str) -> bool:
    """Whether a file name looks like web-project source or configuration."""
    if name in EXCLUDED_FILES:
        return False
    if name in SPECIAL_FILES:
        return True
    suffix = os.path.splitext(name)[1].lower()
    return suffix in ALLOWED_EXTENSIONS


def describe_features(detection: ProjectDetectionResult) -> List[str]:
    """Human-readable feature list for a detection result."""
    features = [f"Project archetype: {detection.structure_type.value} ({detection.confidence}% confidence)"]
    if detection.framework_version != "unknown":
        features.append(f"Next.js {detection.framework_version}")
    if detection.package_manager.value != "unknown":
        features.append(f"Package manager: {detection.package_manager.value}")
    if detection.router_type.value != "unknown":
        features.append(f"Router: {detection.router_type.value}")

    for bucket, names in detection.libraries.model_dump().items():
        if names:
            label = bucket.replace("_", " ").capitalize()
            features.append(f"{label}: {', '.join(names)}")
    return features


class FileScanner:
    """Scans a project tree into classified, token-estimated files."""

    def __init__(
        self,
        config: Optional[Config] = None,
        detector: Optional[ProjectDetector] = None,
        classifier: Optional[FileClassifier] = None,
        estimator: Optional[TokenEstimator] = None,
        ignore_policy: Optional[IgnorePolicy] = None,
        directory_reader: DirectoryReader = read_directory,
    ):
        """Initialize scanner.

        Args:
            config: Scanner settings; defaults to ``Config()``
            detector: Project detector, run once per scan
            classifier: File classifier shared by all worker threads
            estimator: Token estimator
            ignore_policy: Ignore collaborator; built per root from config when omitted
            directory_reader: Callable listing ``(name, is_directory)`` entries
        """
        self.config = config or Config()
        self.detector = detector or ProjectDetector()
        self.classifier = classifier or FileClassifier()
        self.estimator = estimator or CharRatioTokenEstimator()
        self.ignore_policy = ignore_policy
        self.directory_reader = directory_reader

    def scan(self, root: Path, cancel_event: Optional[threading.Event] = None) -> ScanResult:
        """Scan a project root.

        Args:
            root: Project root directory
            cancel_event: Set to stop the scan between files

        Returns:
            ScanResult with files sorted by priority (desc) then path

        Raises:
            RootPathError: If root does not exist or is not a directory
        """
        root = Path(root)
        if not root.exists():
            raise RootPathError(f"Root path does not exist: {root}")
        if not root.is_dir():
            raise RootPathError(f"Root path is not a directory: {root}")

        start = time.perf_counter()
        detection = self.detector.detect(root)
        ignore_policy = self.ignore_policy or IgnoreService(root, self.config.ignore_patterns)

        errors: List[str] = []
        candidates: List[str] = []
        self._walk(root, "", 0, ignore_policy, candidates, errors, cancel_event)
        logger.debug("Found %d candidate files under %s", len(candidates), root)

        files: List[FileInfo] = []
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            outcomes = executor.map(
                lambda rel: self._process_file(root, rel, detection, cancel_event),
                candidates,
            )
            for file_info, error in outcomes:
                if error:
                    errors.append(error)
                elif file_info is not None:
                    files.append(file_info)

        files.sort(key=lambda f: (-f.priority, f.path))
        cancelled = bool(cancel_event and cancel_event.is_set())
        elapsed_ms = (time.perf_counter() - start) * 1000

        stats = self._build_stats(files, detection, elapsed_ms)
        if cancelled:
            logger.info("Scan of %s cancelled after %d files", root, len(files))
        else:
            logger.info(
                "Scanned %d files (%d tokens) in %.0f ms, %d errors",
                stats.total_files,
                stats.total_tokens,
                elapsed_ms,
                len(errors),
            )
        return ScanResult(files=files, stats=stats, errors=errors, cancelled=cancelled)

    def _walk(
        self,
        root: Path,
        rel_dir: str,
        depth: int,
        ignore_policy: IgnorePolicy,
        candidates: List[str],
        errors: List[str],
        cancel_event: Optional[threading.Event],
    ) -> None:
        """Collect included file paths below ``rel_dir``, depth-first."""
        directory = root / rel_dir if rel_dir else root
        try:
            entries = sorted(self.directory_reader(directory))
        except OSError as e:
            logger.warning("Failed to read directory %s: %s", directory, e)
            errors.append(f"{rel_dir or '.'}: {e.strerror or e}")
            return

        for name, is_directory in entries:
            if cancel_event is not None and cancel_event.is_set():
                return
            rel_path = f"{rel_dir}/{name}" if rel_dir else name

            if is_directory:
                if ignore_policy.should_ignore(rel_path + "/"):
                    continue
                if depth + 1 > self.config.max_depth:
                    logger.debug("Depth limit reached, pruning %s", rel_path)
                    continue
                self._walk(root, rel_path, depth + 1, ignore_policy, candidates, errors, cancel_event)
            else:
                if ignore_policy.should_ignore(rel_path):
                    continue
                if should_include_file(name):
                    candidates.append(rel_path)

    def _process_file(
        self,
        root: Path,
        rel_path: str,
        detection: ProjectDetectionResult,
        cancel_event: Optional[threading.Event],
    ) -> Tuple[Optional[FileInfo], Optional[str]]:
        """Read, classify and measure one file.

        Returns:
            (file_info, error); both None when the file is skipped
        """
        if cancel_event is not None and cancel_event.is_set():
            return None, None

        full_path = root / rel_path
        try:
            stat = full_path.stat()
        except OSError as e:
            return None, f"{rel_path}: {e.strerror or e}"

        if stat.st_size > self.config.max_file_size:
            logger.debug("Skipping %s (%d bytes exceeds limit)", rel_path, stat.st_size)
            return None, None

        try:
            raw = full_path.read_bytes()
        except OSError as e:
            return None, f"{rel_path}: {e.strerror or e}"
        try:
            content = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            return None, f"{rel_path}: not valid UTF-8 ({e.reason})"

        classification = self.classifier.classify(rel_path, detection, content)
        return (
            FileInfo(
                path=rel_path,
                content=content,
                priority=classification.priority,
                category=classification.category,
                tokens=self.estimator.estimate(content),
                size=len(raw),
                last_modified=datetime.fromtimestamp(stat.st_mtime),
                is_client_component=classification.is_client_component,
                project_structure=detection.structure_type,
                detected_libraries=list(classification.matched_libraries),
            ),
            None,
        )

    def _build_stats(
        self, files: List[FileInfo], detection: ProjectDetectionResult, elapsed_ms: float
    ) -> ContextStats:
        categories: dict = {}
        for file_info in files:
            key = file_info.category.value
            categories[key] = categories.get(key, 0) + 1

        return ContextStats(
            total_files=len(files),
            total_tokens=sum(f.tokens for f in files),
            total_size=sum(f.size for f in files),
            categories=categories,
            processing_time_ms=elapsed_ms,
            project_detection=detection,
            detected_features=describe_features(detection),
        )


def scan_and_process_files(
    root: Path,
    config: Optional[Config] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ScanResult:
    """Scan a project root with a default-configured FileScanner."""
    return FileScanner(config).scan(root, cancel_event=cancel_event)
