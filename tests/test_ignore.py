"""Tests for the ignore policy."""

import logging
import pytest
from contextify.scanner.ignore import ASSISTANT_IGNORE_FILES, IgnorePolicy, IgnoreService


class TestDefaults:
    """Built-in patterns."""

    def test_dependency_and_build_directories(self, tmp_path):
        service = IgnoreService(tmp_path)

        assert service.should_ignore("node_modules/")
        assert service.should_ignore("node_modules/react/index.js")
        assert service.should_ignore(".next/")
        assert service.should_ignore("packages/ui/node_modules/")
        assert service.should_ignore("tsconfig.tsbuildinfo")

    def test_source_is_kept(self, tmp_path):
        service = IgnoreService(tmp_path)

        assert not service.should_ignore("src/")
        assert not service.should_ignore("src/app/page.tsx")
        assert not service.should_ignore("package.json")

    def test_directory_only_pattern_needs_trailing_slash(self, tmp_path):
        service = IgnoreService(tmp_path)

        # A file named like an ignored directory is not a directory
        assert not service.should_ignore("build")
        assert service.should_ignore("build/")

    def test_root_is_never_ignored(self, tmp_path):
        service = IgnoreService(tmp_path, ["*"])

        assert not service.should_ignore("")
        assert not service.should_ignore("/")

    def test_ignore_files_are_ignored(self, tmp_path):
        service = IgnoreService(tmp_path)

        assert service.should_ignore(".gitignore")
        assert service.should_ignore(".cursorignore")

    def test_satisfies_policy_protocol(self, tmp_path):
        assert isinstance(IgnoreService(tmp_path), IgnorePolicy)


class TestIgnoreFiles:
    """Patterns read from disk."""

    def test_gitignore_patterns(self, tmp_path):
        (tmp_path / ".gitignore").write_text("# secrets\n\n*.secret.ts\ngenerated/\n")
        service = IgnoreService(tmp_path)

        assert service.should_ignore("src/keys.secret.ts")
        assert service.should_ignore("generated/")
        assert not service.should_ignore("src/keys.ts")

    def test_negation(self, tmp_path):
        (tmp_path / ".gitignore").write_text("*.md\n!README.md\n")
        service = IgnoreService(tmp_path)

        assert service.should_ignore("docs/guide.md")
        assert not service.should_ignore("README.md")

    def test_assistant_ignore_files(self, tmp_path):
        (tmp_path / ".cursorignore").write_text("fixtures/\n")
        (tmp_path / ".claudeignore").write_text("*.snap\n")
        service = IgnoreService(tmp_path)

        assert service.should_ignore("fixtures/")
        assert service.should_ignore("tests/__snapshots__/a.snap")

    def test_extra_patterns(self, tmp_path):
        service = IgnoreService(tmp_path, ["storybook-static/", "  "])

        assert service.should_ignore("storybook-static/")
        assert "  " not in service.patterns

    def test_unreadable_file_is_skipped(self, tmp_path, caplog):
        (tmp_path / ".gitignore").write_bytes(b"\xff\xfe\x00bad")

        with caplog.at_level(logging.WARNING):
            service = IgnoreService(tmp_path)

        assert "Failed to read" in caplog.text
        assert not service.get_ignore_stats().has_gitignore

    def test_refresh_rereads_files(self, tmp_path):
        service = IgnoreService(tmp_path)
        assert not service.should_ignore("tmp/")

        (tmp_path / ".gitignore").write_text("tmp/\n")
        service.refresh()

        assert service.should_ignore("tmp/")


def test_ignore_stats(tmp_path):
    (tmp_path / ".gitignore").write_text("a\nb\n")
    (tmp_path / ".windsurfignore").write_text("c\n")

    stats = IgnoreService(tmp_path).get_ignore_stats()

    assert stats.has_gitignore is True
    assert stats.found_ignore_files == [".windsurfignore"]
    assert stats.supported_ignore_files == list(ASSISTANT_IGNORE_FILES)
    assert stats.total_patterns >= 3


@pytest.mark.parametrize("name", ASSISTANT_IGNORE_FILES)
def test_every_assistant_file_is_read(tmp_path, name):
    (tmp_path / name).write_text("private/\n")
    assert IgnoreService(tmp_path).should_ignore("private/")
