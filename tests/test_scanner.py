"""Tests for the file scanner."""

import logging
import threading
import pytest
from pathlib import Path
from conftest import package_json, write_tree
from contextify.config import Config
from contextify.errors import RootPathError
from contextify.models import FileCategory, ProjectStructureType
from contextify.scanner import FileScanner, scan_and_process_files, should_include_file
from contextify.scanner.file_scanner import describe_features
from contextify.scanner.ignore import IgnoreService


@pytest.fixture
def scanner(config) -> FileScanner:
    return FileScanner(config)


@pytest.fixture
def next_repo(make_repo) -> Path:
    """Small App Router project with a large dependency folder."""
    files = {
        "package.json": package_json({"next": "14.2.3", "@trpc/server": "^11", "@prisma/client": "^5"}),
        "prisma/schema.prisma": "model Post {\n  id Int @id\n}\n",
        "src/server/api/trpc.ts": "export const t = initTRPC.create();\n",
        "app/layout.tsx": "export default function Layout({ children }) { return children; }\n",
        "app/page.tsx": "export default function Page() { return null; }\n",
    }
    files.update({f"node_modules/pkg{i}/index.js": "module.exports = {};\n" for i in range(1000)})
    return make_repo(files)


class TestScan:
    """End-to-end scans."""

    def test_scan_classifies_and_ignores(self, scanner, next_repo):
        result = scanner.scan(next_repo)
        by_path = {f.path: f for f in result.files}

        assert sorted(by_path) == [
            "app/layout.tsx",
            "app/page.tsx",
            "package.json",
            "prisma/schema.prisma",
            "src/server/api/trpc.ts",
        ]
        assert by_path["package.json"].priority == 95
        assert by_path["prisma/schema.prisma"].priority == 80
        assert by_path["src/server/api/trpc.ts"].priority == 80
        assert by_path["src/server/api/trpc.ts"].category == FileCategory.TRPC_PROCEDURES
        assert by_path["app/layout.tsx"].priority == 74
        assert by_path["app/page.tsx"].priority == 74
        assert result.errors == []
        assert result.cancelled is False

    def test_files_sorted_by_priority_then_path(self, scanner, make_repo):
        repo = make_repo(
            {
                "package.json": "{}",
                "src/utils/c.ts": "export {}",
                "src/utils/a.ts": "export {}",
                "src/utils/b.ts": "export {}",
                "next.config.js": "module.exports = {}",
            }
        )
        paths = [f.path for f in scanner.scan(repo).files]

        assert paths == ["next.config.js", "package.json", "src/utils/a.ts", "src/utils/b.ts", "src/utils/c.ts"]

    def test_file_info_fields(self, scanner, make_repo):
        content = "'use client'\nexport const Button = () => null;\n"
        repo = make_repo({"package.json": "{}", "src/components/Button.tsx": content})
        info = next(f for f in scanner.scan(repo).files if f.path.endswith("Button.tsx"))

        assert info.content == content
        assert info.size == len(content.encode("utf-8"))
        assert info.tokens == -(-len(content) // 4)
        assert info.is_client_component is True
        assert info.category == FileCategory.CLIENT_COMPONENTS
        assert info.project_structure == ProjectStructureType.STANDARD
        assert info.last_modified is not None

    def test_stats(self, scanner, next_repo):
        result = scanner.scan(next_repo)
        stats = result.stats

        assert stats.total_files == 5
        assert stats.total_tokens == sum(f.tokens for f in result.files)
        assert stats.total_size == sum(f.size for f in result.files)
        assert sum(stats.categories.values()) == 5
        assert stats.categories[FileCategory.APP_ROUTER_STRUCTURE.value] == 2
        assert stats.project_detection is not None
        assert stats.processing_time_ms is not None
        assert any("tRPC" in feature for feature in stats.detected_features)

    def test_paths_use_forward_slashes(self, scanner, next_repo):
        assert all("\\" not in f.path for f in scanner.scan(next_repo).files)

    def test_scan_is_repeatable(self, scanner, next_repo):
        first = scanner.scan(next_repo)
        second = scanner.scan(next_repo)

        assert [(f.path, f.priority, f.category) for f in first.files] == [
            (f.path, f.priority, f.category) for f in second.files
        ]


class TestFiltering:
    """Inclusion, size and depth limits."""

    def test_unsupported_and_lock_files_are_skipped(self, scanner, make_repo):
        repo = make_repo(
            {
                "package.json": "{}",
                "pnpm-lock.yaml": "lockfileVersion: 9",
                "public/logo.png": b"\x89PNG",
                "Dockerfile": "FROM node:20",
                ".env.example": "DATABASE_URL=",
            }
        )
        paths = {f.path for f in scanner.scan(repo).files}

        assert paths == {"package.json", "Dockerfile", ".env.example"}

    def test_oversized_files_are_skipped_silently(self, make_repo):
        repo = make_repo({"package.json": "{}", "big.ts": "x" * 200})
        result = FileScanner(Config(max_file_size=100, max_workers=1)).scan(repo)

        assert [f.path for f in result.files] == ["package.json"]
        assert result.errors == []

    def test_depth_limit_prunes_deep_directories(self, make_repo):
        repo = make_repo(
            {
                "a.ts": "export {}",
                "one/b.ts": "export {}",
                "one/two/c.ts": "export {}",
            }
        )
        result = FileScanner(Config(max_depth=1, max_workers=1)).scan(repo)

        assert sorted(f.path for f in result.files) == ["a.ts", "one/b.ts"]
        assert result.errors == []

    def test_configured_ignore_patterns(self, make_repo):
        repo = make_repo({"package.json": "{}", "generated/types.ts": "export {}"})
        result = FileScanner(Config(ignore_patterns=["generated/"], max_workers=1)).scan(repo)

        assert [f.path for f in result.files] == ["package.json"]

    def test_gitignore_is_respected(self, scanner, make_repo):
        repo = make_repo({".gitignore": "legacy/\n", "package.json": "{}", "legacy/old.js": "var a;"})
        assert [f.path for f in scanner.scan(repo).files] == ["package.json"]

    def test_injected_ignore_policy(self, config, make_repo, mocker):
        repo = make_repo({"package.json": "{}", "src/a.ts": "export {}"})
        policy = mocker.Mock()
        policy.should_ignore.side_effect = lambda rel: rel.startswith("src")

        result = FileScanner(config, ignore_policy=policy).scan(repo)

        assert [f.path for f in result.files] == ["package.json"]
        policy.should_ignore.assert_any_call("src/")

    def test_injected_directory_reader(self, config, make_repo):
        repo = make_repo({"package.json": "{}", "src/a.ts": "export {}", "src/b.ts": "export {}"})

        def reader(path: Path):
            # hide src/b.ts from the walk
            return [(p.name, p.is_dir()) for p in path.iterdir() if p.name != "b.ts"]

        result = FileScanner(config, directory_reader=reader).scan(repo)
        assert sorted(f.path for f in result.files) == ["package.json", "src/a.ts"]


class TestErrors:
    """Error handling at the scan boundary."""

    def test_missing_root(self, scanner, tmp_path):
        with pytest.raises(RootPathError, match="does not exist"):
            scanner.scan(tmp_path / "missing")

    def test_root_is_a_file(self, scanner, tmp_path):
        target = tmp_path / "file.ts"
        target.write_text("export {}")

        with pytest.raises(RootPathError, match="not a directory"):
            scanner.scan(target)

    def test_invalid_utf8_is_recorded(self, scanner, make_repo):
        repo = make_repo({"package.json": "{}", "src/broken.ts": b"const a = '\xff\xfe';"})
        result = scanner.scan(repo)

        assert [f.path for f in result.files] == ["package.json"]
        assert len(result.errors) == 1
        assert result.errors[0].startswith("src/broken.ts: not valid UTF-8")

    def test_unreadable_directory_is_recorded(self, config, make_repo):
        repo = make_repo({"package.json": "{}", "locked/a.ts": "export {}"})

        def reader(path: Path):
            if path.name == "locked":
                raise PermissionError(13, "Permission denied")
            return [(p.name, p.is_dir()) for p in path.iterdir()]

        result = FileScanner(config, directory_reader=reader).scan(repo)

        assert [f.path for f in result.files] == ["package.json"]
        assert result.errors == ["locked: Permission denied"]


class TestCancellation:
    """Cooperative cancellation."""

    def test_cancelled_before_start(self, scanner, next_repo):
        event = threading.Event()
        event.set()

        result = scanner.scan(next_repo, cancel_event=event)

        assert result.cancelled is True
        assert result.files == []

    def test_cancelled_mid_walk(self, config, next_repo):
        event = threading.Event()
        seen = []

        def reader(path: Path):
            seen.append(path)
            if len(seen) == 2:
                event.set()
            return [(p.name, p.is_dir()) for p in path.iterdir()]

        result = FileScanner(config, directory_reader=reader).scan(next_repo, cancel_event=event)

        assert result.cancelled is True
        assert result.stats.total_files == len(result.files)
        assert len(result.files) < 5


def test_scan_logs_summary(scanner, next_repo, caplog):
    with caplog.at_level(logging.INFO, logger="contextify.scanner.file_scanner"):
        scanner.scan(next_repo)

    assert "Scanned 5 files" in caplog.text


def test_scan_and_process_files(next_repo):
    result = scan_and_process_files(next_repo, Config(max_workers=2))
    assert result.stats.total_files == 5


@pytest.mark.parametrize(
    "name,included",
    [
        ("page.tsx", True),
        ("schema.prisma", True),
        ("styles.module.scss", True),
        ("bunfig.toml", True),
        ("Dockerfile", True),
        ("yarn.lock", False),
        ("package-lock.json", False),
        ("logo.svg", False),
        ("README", False),
    ],
)
def test_should_include_file(name, included):
    assert should_include_file(name) is included


def test_describe_features(t3_repo):
    detection = FileScanner().detector.detect(t3_repo)
    features = describe_features(detection)

    assert features[0].startswith("Project archetype: t3")
    assert "Next.js 14.2.3" in features
    assert "Package manager: pnpm" in features
