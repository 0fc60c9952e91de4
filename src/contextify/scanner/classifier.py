"""Rule-cascade file classification.

Every file gets exactly one ``FileCategory`` and a priority in [0, 100].
Rules are evaluated in a fixed order and the first match wins:

1. core configuration files
2. router structure, gated by the detected router type
3. data layer (schemas, RPC, services)
4. authentication
5. components (the only rule that looks at file content)
6. hooks, state, styling, tests, environment and build configuration
7. fallback

The priority literals are a fixed contract; new rules pick literals by
analogy with their neighbours.
"""

import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Callable, List, Optional, Tuple, Union

from ..models import ContentKind, FileCategory, ProjectDetectionResult, RouterType
from ..registry import LIBRARY_PATTERNS, LibraryPattern, patterns_for_path


ContentSource = Union[str, Callable[[], str], None]

CODE_EXTENSIONS = {".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"}
ROUTE_EXTENSIONS = CODE_EXTENSIONS | {".mdx"}
STYLE_EXTENSIONS = {".css", ".scss", ".sass", ".less"}

_CONTENT_KINDS = {
    **{ext: ContentKind.CODE for ext in CODE_EXTENSIONS | {".prisma", ".zmodel"}},
    ".json": ContentKind.STRUCTURED_DATA,
    ".yaml": ContentKind.STRUCTURED_DATA,
    ".yml": ContentKind.STRUCTURED_DATA,
    ".toml": ContentKind.STRUCTURED_DATA,
    ".md": ContentKind.MARKUP,
    ".mdx": ContentKind.MARKUP,
    ".html": ContentKind.MARKUP,
    ".xml": ContentKind.MARKUP,
}

_LEADING_TRIVIA = re.compile(r"\A(?:\s+|//[^\n]*|/\*.*?\*/)*", re.DOTALL)
_CLIENT_DIRECTIVES = ("'use client'", '"use client"')
_HOOK_NAME = re.compile(r"^use[A-Z\-_]")
_MIDDLEWARE = re.compile(r"(?:src/)?middleware\.[cm]?[jt]sx?")

STATE_LIBRARY_NAMES = ("zustand", "redux", "jotai", "valtio", "recoil", "mobx")
TEST_CONFIG_PREFIXES = ("jest.config.", "vitest.config.", "playwright.config.", "cypress.config.")
E2E_DIRECTORIES = {"cypress", "playwright", "e2e"}

AUTH_CATEGORIES = {
    "NextAuth.js": FileCategory.NEXTAUTH_CONFIG,
    "Auth.js": FileCategory.NEXTAUTH_CONFIG,
    "Clerk": FileCategory.CLERK_CONFIG,
    "Supabase Auth": FileCategory.SUPABASE_AUTH,
    "Firebase Auth": FileCategory.FIREBASE_AUTH,
}


@dataclass(frozen=True)
class Classification:
    """Category and priority assigned to one file."""

    category: FileCategory
    priority: int
    matched_libraries: Tuple[str, ...] = field(default=())
    is_client_component: Optional[bool] = None


def content_kind_for(path: str) -> ContentKind:
    """Coarse content tag for a path, decided by its extension."""
    return _CONTENT_KINDS.get(PurePosixPath(path.lower()).suffix, ContentKind.OTHER)


def has_client_directive(content: str) -> bool:
    """Whether content opens with a ``'use client'`` directive.

    Leading whitespace, line comments and block comments are skipped.
    """
    content = content.lstrip("\ufeff")
    match = _LEADING_TRIVIA.match(content)
    return content[match.end():].startswith(_CLIENT_DIRECTIVES)


class _PathFacts:
    """Pre-split views of a path shared by every rule."""

    def __init__(self, path: str):
        normalized = path.replace("\\", "/")
        while normalized.startswith("./"):
            normalized = normalized[2:]
        self.path = normalized
        self.lower = normalized.lower()
        parts = self.lower.split("/")
        self.name = parts[-1]
        self.original_name = normalized.split("/")[-1]
        self.dirs = parts[:-1]
        suffix = PurePosixPath(self.name).suffix
        self.ext = suffix
        self.stem = self.name[: -len(suffix)] if suffix else self.name

    def contains(self, fragment: str) -> bool:
        """Segment-aligned substring test, e.g. ``src/server/api/trpc.``."""
        return "/" + fragment in "/" + self.lower

    def under(self, directory: str) -> bool:
        """Whether the path sits in a top-level ``directory`` or ``src/directory``."""
        return (self.dirs[:1] == [directory]) or (self.dirs[:2] == ["src", directory])


class FileClassifier:
    """Assigns a category and priority to a file path.

    Stateless; safe to share across threads.
    """

    def classify(
        self,
        path: str,
        context: Optional[ProjectDetectionResult] = None,
        content: ContentSource = None,
    ) -> Classification:
        """Classify one file.

        Args:
            path: Root-relative POSIX path
            context: Detection snapshot of the project, if any
            content: File content, or a zero-argument callable returning it.
                Only resolved when the component rule needs it.

        Returns:
            Classification for the file
        """
        facts = _PathFacts(path)
        router = context.router_type if context else RouterType.UNKNOWN
        detected_auth = context.libraries.auth if context else []

        matched = tuple(pattern.name for pattern in patterns_for_path(facts.path))

        for rule in (
            lambda: self._core_config(facts),
            lambda: self._router_structure(facts, router),
            lambda: self._data_layer(facts),
            lambda: self._auth(facts, detected_auth),
            lambda: self._components(facts, content),
            lambda: self._conventions(facts),
        ):
            result = rule()
            if result is not None:
                category, priority, is_client = result
                return Classification(category, priority, matched, is_client)

        category, priority, _ = self._fallback(facts)
        return Classification(category, priority, matched)

    def _core_config(self, f: _PathFacts):
        core = FileCategory.CORE_CONFIGURATIONS
        if f.name.startswith("next.config."):
            return core, 100, None
        if f.name == "package.json":
            return core, 95, None
        if f.name in ("tsconfig.json", "jsconfig.json") or (f.name.startswith("tsconfig.") and f.ext == ".json"):
            return core, 90, None
        if _MIDDLEWARE.fullmatch(f.lower):
            return core, 88, None
        if f.lower.startswith("src/env.") or f.name in ("env.mjs", "env.js"):
            return core, 87, None
        if f.name.startswith("instrumentation."):
            return core, 85, None
        return None

    def _router_structure(self, f: _PathFacts, router: RouterType):
        app_enabled = router in (RouterType.APP_ROUTER, RouterType.MIXED)
        pages_enabled = router in (RouterType.PAGES_ROUTER, RouterType.MIXED)
        unknown = router == RouterType.UNKNOWN

        if f.under("app") and f.ext in ROUTE_EXTENSIONS:
            app = FileCategory.APP_ROUTER_STRUCTURE
            if f.stem in ("layout", "page") and (app_enabled or unknown):
                return app, 74, None
            if app_enabled:
                if f.stem in ("loading", "error", "not-found"):
                    return app, 72, None
                if f.stem == "route" and not f.contains("app/api/auth/"):
                    return app, 70, None
                if f.stem in ("template", "global-error"):
                    return app, 68, None

        if f.under("pages"):
            is_api = "api" in f.dirs
            if pages_enabled:
                if f.stem in ("_app", "_document"):
                    return FileCategory.PAGES_ROUTER_STRUCTURE, 72, None
                if is_api:
                    if "auth" not in f.dirs:
                        return FileCategory.REST_API_ROUTES, 70, None
                    return None
            if not is_api and (pages_enabled or unknown):
                return FileCategory.PAGES_ROUTER_STRUCTURE, 65, None
        return None

    def _data_layer(self, f: _PathFacts):
        db = FileCategory.DATABASE_SCHEMA
        trpc = FileCategory.TRPC_PROCEDURES

        if f.ext == ".zmodel":
            return FileCategory.ZENSTACK_SCHEMA, 85, None
        if f.name == "schema.prisma":
            return db, 80, None
        if f.name.startswith("drizzle.config."):
            return db, 81, None
        if f.contains("src/server/api/trpc."):
            return trpc, 80, None
        if f.contains("src/server/api/routers/"):
            return trpc, 78, None
        if f.contains("src/server/api/root."):
            return trpc, 76, None
        if f.contains("graphql/schema") or f.name == "schema.graphql":
            return FileCategory.GRAPHQL_SCHEMA, 75, None
        if f.contains("src/utils/api.") or f.contains("src/lib/api."):
            return trpc, 72, None
        if "prisma" in f.dirs and ("seed" in f.name or "migration" in f.lower):
            return db, 68, None
        if f.contains("src/server/db.") or f.contains("src/lib/db."):
            return db, 65, None
        if "drizzle" in f.dirs or "migrations" in f.dirs:
            return db, 62, None

        registry_match = self._registry_data_match(f)
        if registry_match is not None:
            return registry_match

        if "query" in f.lower or "mutation" in f.lower:
            return FileCategory.DATA_FETCHING, 58, None
        if "swr" in f.lower or "apollo" in f.lower:
            return FileCategory.DATA_FETCHING, 55, None
        if "socket" in f.lower:
            return FileCategory.WEBSOCKET_HANDLERS, 55, None

        is_auth = "auth" in f.lower
        if not is_auth:
            if f.contains("src/server/") and "api" not in f.dirs:
                return FileCategory.API_LAYER, 58, None
            if "services" in f.dirs or "api" in f.dirs:
                return FileCategory.API_LAYER, 55, None
        return None

    def _registry_data_match(self, f: _PathFacts):
        """Database and API registry patterns: file signals first, then directories."""
        candidates = [p for p in LIBRARY_PATTERNS if p.category in ("database", "api")]
        for pattern in candidates:
            if _matches_file_signal(pattern, f):
                return _data_category(pattern), pattern.priority, None
        for pattern in candidates:
            if pattern.matches_path(f.path):
                return _data_category(pattern), max(0, pattern.priority - 15), None
        return None

    def _auth(self, f: _PathFacts, detected_auth: List[str]):
        auth_patterns = [p for p in LIBRARY_PATTERNS if p.category == "auth"]
        ranked = sorted(auth_patterns, key=lambda p: p.name not in detected_auth)
        for pattern in ranked:
            if _matches_file_signal(pattern, f):
                category = AUTH_CATEGORIES.get(pattern.name, FileCategory.CUSTOM_AUTH)
                return category, pattern.priority, None

        if "clerk" in f.lower and ("middleware" in f.lower or "config" in f.lower):
            return FileCategory.CLERK_CONFIG, 80, None
        if "supabase" in f.lower and "auth" in f.lower:
            return FileCategory.SUPABASE_AUTH, 78, None
        if f.contains("pages/api/auth/") or f.contains("app/api/auth/"):
            return FileCategory.NEXTAUTH_CONFIG, 76, None
        if "firebase" in f.lower and "auth" in f.lower:
            return FileCategory.FIREBASE_AUTH, 76, None
        if "auth" in f.dirs:
            return FileCategory.CUSTOM_AUTH, 60, None
        return None

    def _components(self, f: _PathFacts, content: ContentSource):
        if _is_test_file(f):
            return None
        if not any(d in ("components", "component", "ui") for d in f.dirs):
            return None

        is_client = has_client_directive(_resolve(content))
        if f.contains("components/ui/"):
            priority = 55 if is_client else 52
        else:
            priority = 52 if is_client else 50
        category = FileCategory.CLIENT_COMPONENTS if is_client else FileCategory.SERVER_COMPONENTS
        return category, priority, is_client

    def _conventions(self, f: _PathFacts):
        tests = FileCategory.TESTS
        if f.name.startswith(TEST_CONFIG_PREFIXES):
            return tests, 30, None
        if ".stories." in f.name:
            return tests, 30, None
        if ".test." in f.name or ".spec." in f.name or "__tests__" in f.dirs:
            return tests, 28, None
        if E2E_DIRECTORIES.intersection(f.dirs):
            return tests, 25, None

        if f.name.startswith(("tailwind.config.", "postcss.config.")):
            return FileCategory.TAILWIND_CONFIG, 75, None
        if f.name == "components.json" or "ui.config" in f.name:
            return FileCategory.UI_COMPONENTS, 73, None
        if f.stem == "theme" and f.ext in CODE_EXTENSIONS:
            return FileCategory.DESIGN_SYSTEM, 70, None

        if "hooks" in f.dirs or "hook" in f.name or (_HOOK_NAME.match(f.original_name) and f.ext in (".ts", ".tsx")):
            return FileCategory.HOOKS_UTILITIES, 50, None
        if "util" in f.lower or "helper" in f.lower or "lib" in f.dirs:
            return FileCategory.HOOKS_UTILITIES, 45, None

        if "store" in f.lower or "context" in f.lower or "reducer" in f.lower:
            return FileCategory.STATE_MANAGEMENT, 42, None
        if any(name in f.lower for name in STATE_LIBRARY_NAMES):
            return FileCategory.STATE_MANAGEMENT, 40, None

        if "tokens" in f.name or "design-tokens" in f.dirs:
            return FileCategory.DESIGN_SYSTEM, 35, None
        if f.name in ("globals.css", "global.css"):
            return FileCategory.STYLING, 38, None
        if f.ext in STYLE_EXTENSIONS:
            return FileCategory.STYLING, 32, None

        if f.name.startswith(".env") or "config" in f.dirs:
            return FileCategory.ENV_CONFIG, 22, None
        if f.name.startswith(("pnpm-workspace", ".yarnrc", "bunfig", ".npmrc", ".nvmrc")):
            return FileCategory.PACKAGE_CONFIG, 21, None
        if (
            "docker" in f.lower
            or f.name in ("vercel.json", "netlify.toml", "turbo.json", "nx.json", "lerna.json", "rush.json")
            or ".github" in f.dirs
        ):
            return FileCategory.BUILD_CONFIG, 20, None

        if f.ext in (".md", ".mdx"):
            return FileCategory.DOCUMENTATION, 16, None
        return None

    def _fallback(self, f: _PathFacts):
        if f.ext in CODE_EXTENSIONS:
            return FileCategory.TYPESCRIPT_FILES, 12, None
        return FileCategory.OTHER_FILES, 10, None


def _matches_file_signal(pattern: LibraryPattern, f: _PathFacts) -> bool:
    for signal in pattern.files:
        lowered = signal.lower()
        if f.lower == lowered or f.lower.endswith("/" + lowered):
            return True
    return False


def _data_category(pattern: LibraryPattern) -> FileCategory:
    if pattern.category == "database":
        return FileCategory.ZENSTACK_SCHEMA if pattern.name == "ZenStack" else FileCategory.DATABASE_SCHEMA
    if pattern.name == "tRPC":
        return FileCategory.TRPC_PROCEDURES
    if pattern.name in ("GraphQL", "Apollo Client"):
        return FileCategory.GRAPHQL_SCHEMA
    if pattern.name == "Socket.IO":
        return FileCategory.WEBSOCKET_HANDLERS
    return FileCategory.API_LAYER


def _is_test_file(f: _PathFacts) -> bool:
    return (
        ".test." in f.name
        or ".spec." in f.name
        or ".stories." in f.name
        or "__tests__" in f.dirs
        or bool(E2E_DIRECTORIES.intersection(f.dirs))
    )


def _resolve(content: ContentSource) -> str:
    if content is None:
        return ""
    if callable(content):
        try:
            resolved = content()
        except (OSError, UnicodeDecodeError):
            return ""
        return resolved or ""
    return content
