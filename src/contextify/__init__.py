"""Next.js Contextify - Classify project files and fit them into an LLM context budget."""

__version__ = "0.1.0"

from .config import Config
from .errors import ContextifyError, PolicyValidationError, RootPathError
from .models import (
    FileCategory,
    FileInfo,
    ProjectDetectionResult,
    ProjectStructureType,
    ProjectType,
    RouterType,
    ScanResult,
    TargetLLM,
)
from .optimizer import (
    OptimizationPolicy,
    OptimizationResult,
    TokenOptimizer,
    get_optimization_presets,
    optimize_files,
)
from .scanner import FileClassifier, FileScanner, ProjectDetector, scan_and_process_files

__all__ = [
    "Config",
    "ContextifyError",
    "PolicyValidationError",
    "RootPathError",
    "FileCategory",
    "FileInfo",
    "ProjectDetectionResult",
    "ProjectStructureType",
    "ProjectType",
    "RouterType",
    "ScanResult",
    "TargetLLM",
    "OptimizationPolicy",
    "OptimizationResult",
    "TokenOptimizer",
    "get_optimization_presets",
    "optimize_files",
    "FileClassifier",
    "FileScanner",
    "ProjectDetector",
    "scan_and_process_files",
]
