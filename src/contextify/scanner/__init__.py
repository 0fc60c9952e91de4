"""Project detection, file classification and scanning."""

from .classifier import Classification, FileClassifier, content_kind_for, has_client_directive
from .detector import ProjectDetector
from .file_scanner import FileScanner, read_directory, scan_and_process_files, should_include_file
from .ignore import IgnorePolicy, IgnoreService, IgnoreStats

__all__ = [
    "Classification",
    "FileClassifier",
    "content_kind_for",
    "has_client_directive",
    "ProjectDetector",
    "FileScanner",
    "read_directory",
    "scan_and_process_files",
    "should_include_file",
    "IgnorePolicy",
    "IgnoreService",
    "IgnoreStats",
]
