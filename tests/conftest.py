"""Pytest configuration and shared fixtures."""

import json
import pytest
from pathlib import Path
from contextify.config import Config
from contextify.models import FileCategory, FileInfo
from contextify.token_estimator import estimate_tokens


def write_tree(root: Path, files: dict) -> Path:
    """Write a mapping of relative path -> content under root."""
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


def package_json(dependencies: dict | None = None, dev_dependencies: dict | None = None, **extra) -> str:
    manifest = {"name": "test-app", "version": "0.1.0", **extra}
    if dependencies is not None:
        manifest["dependencies"] = dependencies
    if dev_dependencies is not None:
        manifest["devDependencies"] = dev_dependencies
    return json.dumps(manifest, indent=2)


@pytest.fixture
def make_repo(tmp_path: Path):
    """Factory building a repository from a mapping of files."""
    counter = {"n": 0}

    def _make(files: dict) -> Path:
        counter["n"] += 1
        repo = tmp_path / f"repo_{counter['n']}"
        repo.mkdir()
        return write_tree(repo, files)

    return _make


@pytest.fixture
def t3_repo(make_repo) -> Path:
    """Repository with RPC, ORM and auth dependencies plus T3 helper files."""
    return make_repo(
        {
            "package.json": package_json(
                {
                    "next": "14.2.3",
                    "@trpc/server": "^11.0.0",
                    "@prisma/client": "^5.14.0",
                    "next-auth": "^4.24.7",
                },
                {"prisma": "^5.14.0"},
            ),
            "pnpm-lock.yaml": "lockfileVersion: '9.0'\n",
            "src/env.mjs": "export const env = createEnv({});\n",
            "src/server/api/trpc.ts": "export const createTRPCRouter = t.router;\n",
            "prisma/schema.prisma": "model User {\n  id String @id\n}\n",
            "src/app/layout.tsx": "export default function RootLayout() {}\n",
        }
    )


@pytest.fixture
def config() -> Config:
    """Provide a test configuration."""
    return Config(max_workers=2)


@pytest.fixture
def make_file():
    """Factory for FileInfo objects with consistent token and size estimates."""

    def _make(
        path: str,
        content: str = "const value = 1;\n",
        priority: int = 50,
        category: FileCategory = FileCategory.TYPESCRIPT_FILES,
    ) -> FileInfo:
        return FileInfo(
            path=path,
            content=content,
            priority=priority,
            category=category,
            tokens=estimate_tokens(content),
            size=len(content.encode("utf-8")),
        )

    return _make
