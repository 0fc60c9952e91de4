"""Project detection from the dependency manifest and file tree."""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import yaml

from ..models import (
    PackageManager,
    ProjectCustomConfig,
    ProjectDetectionResult,
    ProjectLibraries,
    ProjectStructureType,
    ProjectType,
    RouterType,
    TailwindVersion,
)
from ..registry import LIBRARY_PATTERNS, PACKAGE_MANAGERS, LibraryPattern


logger = logging.getLogger(__name__)


DEPENDENCY_SIGNAL = 1.0
FILE_SIGNAL = 0.6
DIRECTORY_SIGNAL = 0.3
CONFIG_KEY_SIGNAL = 0.2
CONFIDENCE_FLOOR = 0.5

ORM_LIBRARIES = ("Prisma", "ZenStack", "Drizzle ORM")
RPC_LIBRARIES = ("tRPC",)
BACKEND_SERVICES = ("Supabase", "Firebase")

PRISMA_SCHEMA_PATHS = ("prisma/schema.prisma", "schema.prisma", "src/prisma/schema.prisma")
ZENSTACK_SCHEMA_PATHS = ("schema.zmodel", "prisma/schema.zmodel", "src/schema.zmodel")
TAILWIND_CONFIG_PATHS = ("tailwind.config.js", "tailwind.config.ts", "tailwind.config.mjs")
ENV_VALIDATION_PATHS = ("src/env.mjs", "src/env.js", "src/env.ts", "env.mjs", "env.js")
SERVER_HELPER_PATHS = ("src/server/api/trpc.ts", "src/server/api/trpc.js", "src/server/db.ts", "src/server/db.js")
DRIZZLE_CONFIG_PATHS = ("drizzle.config.ts", "drizzle.config.js")

MONOREPO_MARKERS = (
    ("turbo.json", "turborepo"),
    ("nx.json", "nx"),
    ("lerna.json", "lerna"),
)


@dataclass(frozen=True)
class _Evidence:
    """Facts the archetype rules are scored against."""

    libraries: ProjectLibraries
    schema_found: bool
    t3_signals: int
    has_framework: bool


def _has_any(bucket: List[str], names: Tuple[str, ...]) -> bool:
    return any(name in bucket for name in names)


def _t3_confidence(ev: _Evidence) -> int:
    return 70 + round(20 * ev.t3_signals / 3)


def _orm_confidence(ev: _Evidence) -> int:
    others = ev.libraries.populated_categories() - 1
    return min(70, 50 + (10 if ev.schema_found else 0) + 5 * others)


def _rpc_confidence(ev: _Evidence) -> int:
    others = ev.libraries.populated_categories() - 1
    return min(70, 50 + 5 * others)


def _backend_confidence(ev: _Evidence) -> int:
    others = ev.libraries.populated_categories() - 1
    return min(65, 45 + 5 * others)


def _enterprise_confidence(ev: _Evidence) -> int:
    return min(85, 60 + 4 * (ev.libraries.populated_categories() - 5))


def _standard_confidence(ev: _Evidence) -> int:
    score = 30 + 3 * len(ev.libraries.all_names())
    if ev.has_framework:
        score += 10
    return min(60, score)


# Evaluated top to bottom, first matching predicate decides the archetype.
ARCHETYPE_RULES: Tuple[Tuple[Callable[[_Evidence], bool], ProjectStructureType, Callable[[_Evidence], int]], ...] = (
    (
        lambda ev: _has_any(ev.libraries.api, RPC_LIBRARIES)
        and _has_any(ev.libraries.database, ORM_LIBRARIES)
        and bool(ev.libraries.auth),
        ProjectStructureType.T3_STACK,
        _t3_confidence,
    ),
    (lambda ev: _has_any(ev.libraries.database, ORM_LIBRARIES), ProjectStructureType.WITH_ORM, _orm_confidence),
    (
        lambda ev: _has_any(ev.libraries.database, BACKEND_SERVICES),
        ProjectStructureType.WITH_BACKEND_SERVICE,
        _backend_confidence,
    ),
    (lambda ev: _has_any(ev.libraries.api, RPC_LIBRARIES), ProjectStructureType.WITH_RPC, _rpc_confidence),
    (lambda ev: ev.libraries.populated_categories() > 4, ProjectStructureType.ENTERPRISE, _enterprise_confidence),
    (lambda ev: True, ProjectStructureType.STANDARD, _standard_confidence),
)


class ProjectDetector:
    """Detects package manager, libraries and archetype of a Next.js project."""

    def detect(self, root: Path) -> ProjectDetectionResult:
        """Detect what a project is built with.

        Never raises for missing or malformed manifests or unreadable paths;
        those degrade to absent signals.

        Args:
            root: Path to project root

        Returns:
            ProjectDetectionResult snapshot for this tree
        """
        root = Path(root)
        manifest, manifest_error = self._read_manifest(root)
        custom_config = self._detect_custom_config(root, manifest or {})

        if manifest is None:
            if manifest_error:
                recommendation = "Fix the malformed package.json so dependencies can be detected"
            else:
                recommendation = "Initialize a package.json manifest (npm init) to enable library detection"
            logger.info("No usable manifest in %s, detection degraded to custom", root)
            return ProjectDetectionResult(
                custom_config=custom_config,
                recommendations=[recommendation],
                manifest_found=manifest_error,
            )

        dependencies = self._merged_dependencies(manifest)
        libraries = self._detect_libraries(root, manifest, dependencies)
        package_manager = self._detect_package_manager(root)

        evidence = _Evidence(
            libraries=libraries,
            schema_found=bool(custom_config.prisma_schema_path or custom_config.zenstack_schema_path),
            t3_signals=self._count_t3_signals(root, custom_config),
            has_framework="next" in dependencies,
        )
        structure_type, confidence = self._score_archetype(evidence)
        project_type = self._detect_project_type(manifest, dependencies)
        recommendations = self._project_type_recommendations(project_type)
        recommendations.extend(self._recommendations(libraries, structure_type, custom_config, package_manager))

        result = ProjectDetectionResult(
            package_manager=package_manager,
            framework_version=str(dependencies.get("next", "unknown")),
            structure_type=structure_type,
            confidence=confidence,
            libraries=libraries,
            custom_config=custom_config,
            project_type=project_type,
            recommendations=recommendations,
            manifest_found=True,
        )
        logger.info(
            "Detected %s %s project (confidence %d, %d libraries, router %s)",
            project_type.value,
            structure_type.value,
            confidence,
            len(libraries.all_names()),
            custom_config.router_type.value,
        )
        return result

    def _read_manifest(self, root: Path) -> Tuple[Optional[dict], bool]:
        """Read package.json.

        Returns:
            (manifest, malformed) where manifest is None when missing or malformed
        """
        manifest_path = root / "package.json"
        try:
            raw = manifest_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None, False
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", manifest_path, e)
            return None, True

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Malformed package.json in %s: %s", root, e)
            return None, True

        if not isinstance(data, dict):
            logger.warning("package.json in %s is not a JSON object", root)
            return None, True
        return data, False

    def _merged_dependencies(self, manifest: dict) -> Dict[str, str]:
        deps: Dict[str, str] = {}
        for key in ("dependencies", "devDependencies"):
            section = manifest.get(key)
            if isinstance(section, dict):
                deps.update(section)
        return deps

    def _detect_project_type(self, manifest: dict, dependencies: Dict[str, str]) -> ProjectType:
        if "next" in dependencies:
            return ProjectType.NEXTJS
        if any(manifest.get(key) for key in ("dependencies", "devDependencies", "scripts")):
            return ProjectType.NODEJS
        return ProjectType.UNKNOWN

    def _project_type_recommendations(self, project_type: ProjectType) -> List[str]:
        if project_type == ProjectType.NODEJS:
            return [
                "This is a Node.js project but not a Next.js project; "
                "add \"next\" as a dependency or start from npx create-next-app@latest"
            ]
        if project_type == ProjectType.UNKNOWN:
            return ["Ensure \"next\" is listed in the package.json dependencies"]
        return []

    def _signal_score(self, root: Path, pattern: LibraryPattern, manifest: dict, dependencies: Dict[str, str]) -> float:
        """Strongest signal a pattern has in this project."""
        if any(dep in dependencies for dep in pattern.dependencies):
            return DEPENDENCY_SIGNAL
        if any(_is_file(root / file) for file in pattern.files):
            return FILE_SIGNAL
        if any(_is_dir(root / directory) for directory in pattern.directories):
            return DIRECTORY_SIGNAL
        if any(key in manifest for key in pattern.config_keys):
            return CONFIG_KEY_SIGNAL
        return 0.0

    def _detect_libraries(self, root: Path, manifest: dict, dependencies: Dict[str, str]) -> ProjectLibraries:
        buckets: Dict[str, List[str]] = {
            "auth": [],
            "ui": [],
            "database": [],
            "api": [],
            "styling": [],
            "testing": [],
            "state": [],
            "data_fetching": [],
            "utilities": [],
        }

        for pattern in LIBRARY_PATTERNS:
            score = self._signal_score(root, pattern, manifest, dependencies)
            if score < CONFIDENCE_FLOOR:
                continue
            bucket = _bucket_for(pattern)
            if pattern.name not in buckets[bucket]:
                buckets[bucket].append(pattern.name)
                logger.debug("Matched %s (%s, signal %.1f)", pattern.name, bucket, score)

        return ProjectLibraries(**buckets)

    def _detect_package_manager(self, root: Path) -> PackageManager:
        for manager in PACKAGE_MANAGERS:
            if _is_file(root / manager.lock_file):
                return manager.type
        return PackageManager.UNKNOWN

    def _detect_custom_config(self, root: Path, manifest: dict) -> ProjectCustomConfig:
        dependencies = self._merged_dependencies(manifest)
        router_type = self._detect_router_type(root)

        custom_paths: Dict[str, str] = {}
        for name, candidates in (
            ("env", ENV_VALIDATION_PATHS),
            ("drizzle_config", DRIZZLE_CONFIG_PATHS),
            ("server_helper", SERVER_HELPER_PATHS),
        ):
            found = _first_existing(root, candidates)
            if found:
                custom_paths[name] = found

        return ProjectCustomConfig(
            prisma_schema_path=_first_existing(root, PRISMA_SCHEMA_PATHS),
            zenstack_schema_path=_first_existing(root, ZENSTACK_SCHEMA_PATHS),
            tailwind_config_path=_first_existing(root, TAILWIND_CONFIG_PATHS),
            tailwind_version=self._detect_tailwind_version(dependencies),
            router_type=router_type,
            has_app_router=router_type in (RouterType.APP_ROUTER, RouterType.MIXED),
            has_pages_router=router_type in (RouterType.PAGES_ROUTER, RouterType.MIXED),
            monorepo_type=self._detect_monorepo(root, manifest),
            supabase_detected=any("supabase" in dep for dep in dependencies),
            custom_paths=custom_paths,
            workspace_root=str(root),
        )

    def _detect_router_type(self, root: Path) -> RouterType:
        has_app = any(_dir_has_stem(root / d, "layout") for d in ("app", "src/app"))
        has_pages = any(_dir_has_stem(root / d, "_app") for d in ("pages", "src/pages"))

        if has_app and has_pages:
            return RouterType.MIXED
        if has_app:
            return RouterType.APP_ROUTER
        if has_pages:
            return RouterType.PAGES_ROUTER
        return RouterType.UNKNOWN

    def _detect_tailwind_version(self, dependencies: Dict[str, str]) -> TailwindVersion:
        version_range = dependencies.get("tailwindcss")
        if not isinstance(version_range, str):
            return TailwindVersion.UNKNOWN

        match = re.search(r"\d+", version_range)
        if not match:
            return TailwindVersion.UNKNOWN
        major = int(match.group())
        if major == 4:
            return TailwindVersion.V4
        if major == 3:
            return TailwindVersion.V3
        return TailwindVersion.UNKNOWN

    def _detect_monorepo(self, root: Path, manifest: dict) -> Optional[str]:
        for marker, monorepo_type in MONOREPO_MARKERS[:2]:
            if _is_file(root / marker):
                return monorepo_type

        workspace_file = root / "pnpm-workspace.yaml"
        if _is_file(workspace_file):
            try:
                data = yaml.safe_load(workspace_file.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
                logger.debug("Could not parse %s: %s", workspace_file, e)
                data = None
            if isinstance(data, dict) and isinstance(data.get("packages"), list):
                return "pnpm-workspaces"

        for marker, monorepo_type in MONOREPO_MARKERS[2:]:
            if _is_file(root / marker):
                return monorepo_type

        if "workspaces" in manifest:
            return "npm-workspaces"
        return None

    def _count_t3_signals(self, root: Path, custom_config: ProjectCustomConfig) -> int:
        signals = 0
        if "env" in custom_config.custom_paths:
            signals += 1
        if "server_helper" in custom_config.custom_paths:
            signals += 1
        if custom_config.monorepo_type:
            signals += 1
        return signals

    def _score_archetype(self, evidence: _Evidence) -> Tuple[ProjectStructureType, int]:
        for predicate, archetype, confidence in ARCHETYPE_RULES:
            if predicate(evidence):
                return archetype, max(0, min(100, confidence(evidence)))
        return ProjectStructureType.CUSTOM, 0

    def _recommendations(
        self,
        libraries: ProjectLibraries,
        structure_type: ProjectStructureType,
        custom_config: ProjectCustomConfig,
        package_manager: PackageManager,
    ) -> List[str]:
        recommendations: List[str] = []

        if structure_type == ProjectStructureType.T3_STACK:
            recommendations.append("Focus on tRPC procedures, the database schema and the auth configuration")
            recommendations.append("Include the typed environment configuration and server setup")
        elif structure_type == ProjectStructureType.WITH_BACKEND_SERVICE:
            recommendations.append("Include the backend service client setup and its security rules")
        elif structure_type == ProjectStructureType.ENTERPRISE:
            recommendations.append("Large library surface detected; consider a preset to keep the context focused")

        if libraries.has("ZenStack"):
            recommendations.append("Include ZenStack schema files and generated types")
            recommendations.append("Consider access control policies and data model definitions")
        if libraries.has("Prisma"):
            recommendations.append("Include Prisma schema and migration files")
        if libraries.has("Drizzle ORM"):
            recommendations.append("Include the Drizzle config and table definitions")
        if libraries.has("shadcn/ui"):
            recommendations.append("Include shadcn/ui components and configuration")
        if libraries.has("Clerk"):
            recommendations.append("Include Clerk authentication setup and middleware")
        if libraries.has("TanStack Query"):
            recommendations.append("Include query client configuration and query definitions")
        if libraries.has("Tailwind CSS"):
            recommendations.append("Include Tailwind configuration and custom styles")
        if package_manager == PackageManager.UNKNOWN:
            recommendations.append("No lock file found; install dependencies to pin the package manager")
        if custom_config.router_type == RouterType.MIXED:
            recommendations.append("Both App Router and Pages Router are in use; include layouts from both")

        return recommendations


def _bucket_for(pattern: LibraryPattern) -> str:
    if pattern.category == "utility":
        return pattern.group or "utilities"
    return pattern.category


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


def _is_dir(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError:
        return False


def _first_existing(root: Path, candidates: Tuple[str, ...]) -> Optional[str]:
    for candidate in candidates:
        if _is_file(root / candidate):
            return candidate
    return None


def _dir_has_stem(directory: Path, stem: str) -> bool:
    """Whether a directory directly contains a file named ``<stem>.<ext>``."""
    try:
        return any(child.is_file() and child.stem == stem for child in directory.iterdir())
    except OSError:
        return False
