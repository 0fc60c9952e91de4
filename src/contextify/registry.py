"""Static library and package-manager detection tables.

The registry is immutable module-level data: an ordered tuple of
``LibraryPattern`` entries describing how a library shows up in a project
(dependency names, characteristic files and directories). Declaration order
is meaningful; when two patterns match equally, the first declared wins.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Literal, Optional, Tuple

from .models import PackageManager


PatternCategory = Literal["auth", "ui", "database", "api", "styling", "testing", "utility"]


@dataclass(frozen=True)
class LibraryPattern:
    """Detection signals for one library or technology."""

    name: str
    category: PatternCategory
    dependencies: Tuple[str, ...] = ()
    files: Tuple[str, ...] = ()
    directories: Tuple[str, ...] = ()
    config_keys: Tuple[str, ...] = ()
    extensions: Tuple[str, ...] = ()
    priority: int = 50
    group: Optional[Literal["state", "data_fetching"]] = None

    def matches_path(self, path: str) -> bool:
        """Whether a root-relative POSIX path carries one of this pattern's path signals."""
        lower = path.lower()
        padded = "/" + lower
        for file_signal in self.files:
            signal = file_signal.lower()
            if lower == signal or lower.endswith("/" + signal):
                return True
        for directory in self.directories:
            if f"/{directory.lower()}/" in padded:
                return True
        return any(lower.endswith(ext) for ext in self.extensions)

    def matches_dependencies(self, dependency_names: Iterable[str]) -> bool:
        names = set(dependency_names)
        return any(dep in names for dep in self.dependencies)


LIBRARY_PATTERNS: Tuple[LibraryPattern, ...] = (
    # Authentication
    LibraryPattern(
        name="NextAuth.js",
        category="auth",
        dependencies=("next-auth", "@auth/core"),
        files=("src/server/auth.ts", "src/lib/auth.ts"),
        config_keys=("nextauth",),
        priority=82,
    ),
    LibraryPattern(
        name="Auth.js",
        category="auth",
        dependencies=("@auth/nextjs", "@auth/core"),
        files=("src/app/api/auth/[...nextauth]/route.ts",),
        priority=82,
    ),
    LibraryPattern(
        name="Clerk",
        category="auth",
        dependencies=("@clerk/nextjs",),
        files=("src/middleware.ts",),
        priority=80,
    ),
    LibraryPattern(
        name="Better Auth",
        category="auth",
        dependencies=("better-auth",),
        files=("src/lib/auth.ts",),
        priority=78,
    ),
    LibraryPattern(
        name="Stack Auth",
        category="auth",
        dependencies=("@stackframe/stack",),
        files=("src/stack.ts",),
        priority=78,
    ),
    LibraryPattern(
        name="Lucia",
        category="auth",
        dependencies=("lucia",),
        files=("src/lib/lucia.ts",),
        priority=76,
    ),
    LibraryPattern(
        name="Auth0",
        category="auth",
        dependencies=("@auth0/nextjs-auth0",),
        priority=76,
    ),
    LibraryPattern(
        name="Supabase Auth",
        category="auth",
        dependencies=("@supabase/auth-js", "@supabase/auth-helpers-nextjs", "@supabase/ssr"),
        files=("src/lib/supabase.ts",),
        priority=74,
    ),
    LibraryPattern(
        name="Firebase Auth",
        category="auth",
        dependencies=("firebase", "firebase-admin"),
        files=("src/lib/firebase.ts", "lib/firebase.ts"),
        priority=74,
    ),
    # UI libraries
    LibraryPattern(
        name="shadcn/ui",
        category="ui",
        dependencies=("@radix-ui/react-dialog", "@radix-ui/react-dropdown-menu"),
        files=("components.json",),
        directories=("src/components/ui", "components/ui"),
        priority=75,
    ),
    LibraryPattern(
        name="Material-UI",
        category="ui",
        dependencies=("@mui/material",),
        priority=73,
    ),
    LibraryPattern(
        name="Chakra UI",
        category="ui",
        dependencies=("@chakra-ui/react",),
        files=("src/theme.ts",),
        priority=73,
    ),
    LibraryPattern(name="Ant Design", category="ui", dependencies=("antd",), priority=73),
    LibraryPattern(name="NextUI", category="ui", dependencies=("@nextui-org/react",), priority=71),
    LibraryPattern(name="HeroUI", category="ui", dependencies=("@heroui/react",), priority=71),
    LibraryPattern(name="Mantine", category="ui", dependencies=("@mantine/core",), priority=71),
    LibraryPattern(name="RSuite", category="ui", dependencies=("rsuite",), priority=69),
    LibraryPattern(name="Flowbite", category="ui", dependencies=("flowbite-react",), priority=69),
    LibraryPattern(name="DaisyUI", category="ui", dependencies=("daisyui",), priority=69),
    LibraryPattern(
        name="Radix UI",
        category="ui",
        dependencies=("@radix-ui/react-primitives", "@radix-ui/themes"),
        priority=69,
    ),
    LibraryPattern(name="Headless UI", category="ui", dependencies=("@headlessui/react",), priority=69),
    LibraryPattern(name="Evergreen", category="ui", dependencies=("evergreen-ui",), priority=67),
    LibraryPattern(name="Rebass", category="ui", dependencies=("rebass",), priority=67),
    LibraryPattern(name="Magic UI", category="ui", dependencies=("magicui",), priority=67),
    LibraryPattern(name="Supabase UI", category="ui", dependencies=("@supabase/ui",), priority=67),
    LibraryPattern(name="Preline UI", category="ui", dependencies=("preline",), priority=65),
    LibraryPattern(
        name="Kendo React",
        category="ui",
        dependencies=("@progress/kendo-react-grid",),
        priority=65,
    ),
    LibraryPattern(name="SaaS UI", category="ui", dependencies=("@saas-ui/react",), priority=65),
    # State management
    LibraryPattern(
        name="Zustand",
        category="utility",
        dependencies=("zustand",),
        directories=("src/store", "store"),
        priority=60,
        group="state",
    ),
    LibraryPattern(
        name="Redux Toolkit",
        category="utility",
        dependencies=("@reduxjs/toolkit",),
        directories=("src/store", "store"),
        priority=58,
        group="state",
    ),
    LibraryPattern(
        name="Jotai",
        category="utility",
        dependencies=("jotai",),
        directories=("src/atoms", "atoms"),
        priority=58,
        group="state",
    ),
    LibraryPattern(name="Valtio", category="utility", dependencies=("valtio",), priority=56, group="state"),
    LibraryPattern(name="Recoil", category="utility", dependencies=("recoil",), priority=56, group="state"),
    LibraryPattern(
        name="MobX",
        category="utility",
        dependencies=("mobx", "mobx-react-lite"),
        priority=56,
        group="state",
    ),
    # Database & ORM
    LibraryPattern(
        name="Prisma",
        category="database",
        dependencies=("prisma", "@prisma/client"),
        files=("prisma/schema.prisma",),
        directories=("prisma",),
        extensions=(".prisma",),
        priority=83,
    ),
    LibraryPattern(
        name="ZenStack",
        category="database",
        dependencies=("zenstack", "@zenstackhq/runtime"),
        files=("schema.zmodel",),
        directories=("zenstack",),
        extensions=(".zmodel",),
        priority=85,
    ),
    LibraryPattern(
        name="Drizzle ORM",
        category="database",
        dependencies=("drizzle-orm",),
        files=("drizzle.config.ts", "drizzle.config.js"),
        directories=("drizzle",),
        priority=81,
    ),
    LibraryPattern(
        name="Supabase",
        category="database",
        dependencies=("@supabase/supabase-js",),
        files=("src/lib/supabase.ts",),
        directories=("supabase",),
        priority=79,
    ),
    LibraryPattern(
        name="Firebase",
        category="database",
        dependencies=("firebase", "firebase-admin"),
        files=("firebase.json", "firestore.rules"),
        directories=("firebase",),
        priority=77,
    ),
    LibraryPattern(
        name="MongoDB",
        category="database",
        dependencies=("mongodb", "mongoose"),
        files=("src/lib/mongodb.ts", "lib/mongodb.ts"),
        directories=("mongodb",),
        priority=75,
    ),
    # API & data fetching
    LibraryPattern(
        name="tRPC",
        category="api",
        dependencies=("@trpc/server", "@trpc/client"),
        files=("src/server/api/trpc.ts",),
        directories=("src/server/api",),
        priority=80,
    ),
    LibraryPattern(
        name="TanStack Query",
        category="utility",
        dependencies=("@tanstack/react-query",),
        priority=58,
        group="data_fetching",
    ),
    LibraryPattern(name="SWR", category="utility", dependencies=("swr",), priority=55, group="data_fetching"),
    LibraryPattern(
        name="Relay",
        category="utility",
        dependencies=("relay-runtime", "react-relay"),
        priority=55,
        group="data_fetching",
    ),
    LibraryPattern(
        name="Apollo Client",
        category="api",
        dependencies=("@apollo/client", "apollo-client"),
        priority=75,
    ),
    LibraryPattern(
        name="GraphQL",
        category="api",
        dependencies=("graphql",),
        files=("schema.graphql",),
        directories=("graphql",),
        extensions=(".graphql", ".gql"),
        priority=75,
    ),
    LibraryPattern(
        name="Socket.IO",
        category="api",
        dependencies=("socket.io", "socket.io-client"),
        priority=60,
    ),
    # Testing
    LibraryPattern(
        name="Jest",
        category="testing",
        dependencies=("jest", "@jest/core"),
        files=("jest.config.js", "jest.config.ts"),
        directories=("__tests__",),
        priority=28,
    ),
    LibraryPattern(
        name="Vitest",
        category="testing",
        dependencies=("vitest",),
        files=("vitest.config.ts",),
        priority=28,
    ),
    LibraryPattern(
        name="Playwright",
        category="testing",
        dependencies=("@playwright/test", "playwright"),
        files=("playwright.config.ts",),
        directories=("tests", "e2e"),
        priority=25,
    ),
    LibraryPattern(
        name="Cypress",
        category="testing",
        dependencies=("cypress",),
        files=("cypress.config.js", "cypress.config.ts"),
        directories=("cypress",),
        priority=25,
    ),
    LibraryPattern(
        name="Testing Library",
        category="testing",
        dependencies=("@testing-library/react",),
        priority=28,
    ),
    LibraryPattern(
        name="Storybook",
        category="testing",
        dependencies=("@storybook/react", "storybook"),
        directories=(".storybook",),
        priority=30,
    ),
    LibraryPattern(name="Chromatic", category="testing", dependencies=("chromatic",), priority=25),
    # Styling
    LibraryPattern(
        name="Tailwind CSS",
        category="styling",
        dependencies=("tailwindcss",),
        files=("tailwind.config.js", "tailwind.config.ts", "tailwind.config.mjs"),
        priority=75,
    ),
    LibraryPattern(
        name="PostCSS",
        category="styling",
        dependencies=("postcss",),
        files=("postcss.config.js", "postcss.config.mjs", "postcss.config.cjs"),
        priority=70,
    ),
    LibraryPattern(
        name="Styled Components",
        category="styling",
        dependencies=("styled-components",),
        priority=65,
    ),
    LibraryPattern(name="Emotion", category="styling", dependencies=("@emotion/react",), priority=65),
    LibraryPattern(
        name="Stitches",
        category="styling",
        dependencies=("stitches", "@stitches/react"),
        priority=60,
    ),
    LibraryPattern(
        name="Vanilla Extract",
        category="styling",
        dependencies=("vanilla-extract", "@vanilla-extract/css"),
        priority=60,
    ),
    LibraryPattern(
        name="Tailwind Plugins",
        category="styling",
        dependencies=("@tailwindcss/forms", "@tailwindcss/typography"),
        priority=50,
    ),
    LibraryPattern(name="Autoprefixer", category="styling", dependencies=("autoprefixer",), priority=40),
    # Ecosystem utilities
    LibraryPattern(name="Next SEO", category="utility", dependencies=("next-seo",), priority=45),
    LibraryPattern(name="React Hook Form", category="utility", dependencies=("react-hook-form",), priority=50),
    LibraryPattern(name="Formik", category="utility", dependencies=("formik",), priority=48),
    LibraryPattern(name="Zod", category="utility", dependencies=("zod",), priority=48),
    LibraryPattern(name="Yup", category="utility", dependencies=("yup",), priority=45),
    LibraryPattern(name="Axios", category="utility", dependencies=("axios",), priority=45),
    LibraryPattern(name="Framer Motion", category="utility", dependencies=("framer-motion",), priority=42),
    LibraryPattern(name="React Hot Toast", category="utility", dependencies=("react-hot-toast",), priority=40),
    LibraryPattern(name="Next Themes", category="utility", dependencies=("next-themes",), priority=40),
    LibraryPattern(name="Lucide React", category="utility", dependencies=("lucide-react",), priority=35),
    LibraryPattern(name="React Icons", category="utility", dependencies=("react-icons",), priority=35),
    LibraryPattern(name="Date Fns", category="utility", dependencies=("date-fns",), priority=35),
    LibraryPattern(name="Day.js", category="utility", dependencies=("dayjs",), priority=35),
    LibraryPattern(name="Moment.js", category="utility", dependencies=("moment",), priority=30),
    LibraryPattern(name="Lodash", category="utility", dependencies=("lodash",), priority=35),
    LibraryPattern(name="Ramda", category="utility", dependencies=("ramda",), priority=30),
    LibraryPattern(name="Class Utilities", category="utility", dependencies=("clsx", "classnames"), priority=30),
    LibraryPattern(name="Lottie React", category="utility", dependencies=("lottie-react",), priority=30),
    LibraryPattern(name="React Dropzone", category="utility", dependencies=("react-dropzone",), priority=35),
    LibraryPattern(name="React Select", category="utility", dependencies=("react-select",), priority=35),
    LibraryPattern(name="React Datepicker", category="utility", dependencies=("react-datepicker",), priority=35),
    LibraryPattern(
        name="React Query DevTools",
        category="utility",
        dependencies=("@tanstack/react-query-devtools",),
        priority=30,
        group="data_fetching",
    ),
    LibraryPattern(
        name="AWS SDK",
        category="utility",
        dependencies=("aws-sdk", "@aws-sdk/client-s3"),
        directories=("aws",),
        priority=35,
    ),
)


@dataclass(frozen=True)
class PackageManagerInfo:
    type: PackageManager
    lock_file: str
    config_file: str
    install_command: str
    run_command: str


# Lock-file precedence: first existing lock file decides the package manager.
PACKAGE_MANAGERS: Tuple[PackageManagerInfo, ...] = (
    PackageManagerInfo(PackageManager.PNPM, "pnpm-lock.yaml", ".npmrc", "pnpm install", "pnpm run"),
    PackageManagerInfo(PackageManager.YARN, "yarn.lock", ".yarnrc.yml", "yarn install", "yarn run"),
    PackageManagerInfo(PackageManager.BUN, "bun.lockb", "bunfig.toml", "bun install", "bun run"),
    PackageManagerInfo(PackageManager.NPM, "package-lock.json", ".npmrc", "npm install", "npm run"),
)


def patterns_by_category(category: str) -> Tuple[LibraryPattern, ...]:
    """All patterns declared under a registry category."""
    return tuple(p for p in LIBRARY_PATTERNS if p.category == category)


def patterns_for_dependencies(dependency_names: Iterable[str]) -> Tuple[LibraryPattern, ...]:
    """All patterns whose dependency signals intersect the given names."""
    names = set(dependency_names)
    return tuple(p for p in LIBRARY_PATTERNS if p.matches_dependencies(names))


def patterns_for_path(path: str) -> Tuple[LibraryPattern, ...]:
    """All patterns whose file, directory or extension signals match a path."""
    return tuple(p for p in LIBRARY_PATTERNS if p.matches_path(path))


def get_pattern(name: str) -> Optional[LibraryPattern]:
    for pattern in LIBRARY_PATTERNS:
        if pattern.name == name:
            return pattern
    return None


def _normalize(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", value.lower())


def patterns_for_technology(technology: str) -> Tuple[LibraryPattern, ...]:
    """Patterns a technology keyword such as ``prisma`` or ``drizzle`` refers to.

    A keyword matches a pattern by its full name, any word of its name, or
    any of its dependency names.
    """
    keyword = technology.strip().lower()
    if not keyword:
        return ()
    normalized = _normalize(keyword)
    matches = []
    for pattern in LIBRARY_PATTERNS:
        name_words = [_normalize(word) for word in pattern.name.split()]
        if (
            normalized == _normalize(pattern.name)
            or normalized in name_words
            or keyword in pattern.dependencies
        ):
            matches.append(pattern)
    return tuple(matches)
