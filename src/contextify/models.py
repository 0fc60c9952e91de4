"""Core data models for Next.js Contextify."""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, List
from pydantic import BaseModel, ConfigDict, Field


class FileCategory(str, Enum):
    """Closed set of file categories, grouped into lettered tiers."""

    # A: Core configurations (80-100)
    CORE_CONFIGURATIONS = "A: Core Configurations"

    # B/C: Router structure (65-74)
    APP_ROUTER_STRUCTURE = "B: App Router Structure"
    PAGES_ROUTER_STRUCTURE = "C: Pages Router Structure"

    # D: Components (50-55)
    CLIENT_COMPONENTS = "D: Client Components"
    SERVER_COMPONENTS = "D: Server Components"

    # E: Hooks & utilities (45-50)
    HOOKS_UTILITIES = "E: Hooks & Utilities"

    # F: Data layer
    DATABASE_SCHEMA = "F1: Database Schema & Migrations"
    ZENSTACK_SCHEMA = "F2: ZenStack Schema & Models"
    STATE_MANAGEMENT = "F3: State Management"
    API_LAYER = "F4: API Layer & Services"
    DATA_FETCHING = "F5: Data Fetching & Queries"

    # G: API & routes
    TRPC_PROCEDURES = "G1: tRPC Procedures"
    REST_API_ROUTES = "G2: REST API Routes"
    GRAPHQL_SCHEMA = "G3: GraphQL Schema & Resolvers"
    WEBSOCKET_HANDLERS = "G4: WebSocket Handlers"

    # H: Authentication
    NEXTAUTH_CONFIG = "H1: NextAuth Configuration"
    CLERK_CONFIG = "H2: Clerk Authentication"
    SUPABASE_AUTH = "H3: Supabase Authentication"
    FIREBASE_AUTH = "H4: Firebase Authentication"
    CUSTOM_AUTH = "H5: Custom Authentication"

    # I: UI & styling
    UI_COMPONENTS = "I1: UI Library Components"
    TAILWIND_CONFIG = "I2: Tailwind & Styling Config"
    STYLING = "I3: Styling Files"
    DESIGN_SYSTEM = "I4: Design System & Tokens"

    # J: Testing (25-30)
    TESTS = "J: Tests & Testing Utils"

    # K: Configuration & environment (20-22)
    ENV_CONFIG = "K1: Environment & Config"
    BUILD_CONFIG = "K2: Build & Deployment Config"
    PACKAGE_CONFIG = "K3: Package Manager Config"

    # L: Documentation & other (10-16)
    DOCUMENTATION = "L1: Documentation"
    TYPESCRIPT_FILES = "L2: TypeScript/JavaScript Files"
    OTHER_FILES = "L3: Other Files"


class ProjectStructureType(str, Enum):
    """Project archetypes derived from combinations of detected libraries."""

    STANDARD = "standard"
    T3_STACK = "t3"
    WITH_ORM = "with-orm"
    WITH_RPC = "with-rpc"
    WITH_BACKEND_SERVICE = "with-backend-service"
    ENTERPRISE = "enterprise"
    CUSTOM = "custom"


class ProjectType(str, Enum):
    """Kind of JavaScript project found at the root."""

    NEXTJS = "nextjs"
    NODEJS = "nodejs"
    UNKNOWN = "unknown"


class PackageManager(str, Enum):
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"
    BUN = "bun"
    UNKNOWN = "unknown"


class RouterType(str, Enum):
    APP_ROUTER = "app-router"
    PAGES_ROUTER = "pages-router"
    MIXED = "mixed"
    UNKNOWN = "unknown"


class TailwindVersion(str, Enum):
    V3 = "v3"
    V4 = "v4"
    UNKNOWN = "unknown"


class TargetLLM(str, Enum):
    CLAUDE = "claude"
    GPT = "gpt"
    GEMINI = "gemini"
    DEEPSEEK = "deepseek"
    GROK = "grok"
    CUSTOM = "custom"


class ContentKind(str, Enum):
    """Coarse content tag used by content-sensitive rules and transforms."""

    CODE = "code"
    STRUCTURED_DATA = "structured-data"
    MARKUP = "markup"
    OTHER = "other"


class ProjectLibraries(BaseModel):
    """Matched library names per bucket, in registry declaration order."""

    model_config = ConfigDict(frozen=True)

    auth: List[str] = Field(default_factory=list)
    ui: List[str] = Field(default_factory=list)
    database: List[str] = Field(default_factory=list)
    api: List[str] = Field(default_factory=list)
    styling: List[str] = Field(default_factory=list)
    testing: List[str] = Field(default_factory=list)
    state: List[str] = Field(default_factory=list)
    data_fetching: List[str] = Field(default_factory=list)
    utilities: List[str] = Field(default_factory=list)

    def all_names(self) -> List[str]:
        """Every matched library name across buckets."""
        names: List[str] = []
        for bucket in self.model_dump().values():
            names.extend(name for name in bucket if name not in names)
        return names

    def populated_categories(self) -> int:
        """Number of buckets holding at least one library."""
        return sum(1 for bucket in self.model_dump().values() if bucket)

    def has(self, name: str) -> bool:
        return name in self.all_names()


class ProjectCustomConfig(BaseModel):
    """Non-default paths and detected settings of a project."""

    model_config = ConfigDict(frozen=True)

    prisma_schema_path: Optional[str] = None
    zenstack_schema_path: Optional[str] = None
    tailwind_config_path: Optional[str] = None
    tailwind_version: TailwindVersion = TailwindVersion.UNKNOWN
    router_type: RouterType = RouterType.UNKNOWN
    has_app_router: bool = False
    has_pages_router: bool = False
    monorepo_type: Optional[str] = None
    supabase_detected: bool = False
    custom_paths: Dict[str, str] = Field(default_factory=dict)
    workspace_root: Optional[str] = None


class ProjectDetectionResult(BaseModel):
    """Snapshot of what a project is built with, computed once per scan."""

    model_config = ConfigDict(frozen=True)

    package_manager: PackageManager = PackageManager.UNKNOWN
    framework_version: str = "unknown"
    structure_type: ProjectStructureType = ProjectStructureType.CUSTOM
    confidence: int = Field(default=0, ge=0, le=100)
    libraries: ProjectLibraries = Field(default_factory=ProjectLibraries)
    custom_config: ProjectCustomConfig = Field(default_factory=ProjectCustomConfig)
    project_type: ProjectType = ProjectType.UNKNOWN
    recommendations: List[str] = Field(default_factory=list)
    manifest_found: bool = False

    @property
    def router_type(self) -> RouterType:
        return self.custom_config.router_type

    @property
    def is_nextjs(self) -> bool:
        return self.project_type == ProjectType.NEXTJS


class FileInfo(BaseModel):
    """A classified file with its content and size estimates."""

    model_config = ConfigDict(frozen=True)

    path: str
    content: str
    priority: int = Field(ge=0, le=100)
    category: FileCategory
    tokens: int = Field(ge=0)
    size: int = Field(ge=0)
    last_modified: Optional[datetime] = None
    is_client_component: Optional[bool] = None
    project_structure: Optional[ProjectStructureType] = None
    detected_libraries: List[str] = Field(default_factory=list)


class ContextStats(BaseModel):
    """Aggregate statistics for one scan."""

    total_files: int = 0
    total_tokens: int = 0
    total_size: int = 0
    categories: Dict[str, int] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=datetime.now)
    processing_time_ms: Optional[float] = None
    project_detection: Optional[ProjectDetectionResult] = None
    detected_features: List[str] = Field(default_factory=list)


class ScanResult(BaseModel):
    """Files, statistics and per-file errors produced by a scan."""

    files: List[FileInfo] = Field(default_factory=list)
    stats: ContextStats = Field(default_factory=ContextStats)
    errors: List[str] = Field(default_factory=list)
    cancelled: bool = False
