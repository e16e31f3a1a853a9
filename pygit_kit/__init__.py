"""
pygit-kit: Git Workspace Toolkit

Finds git repositories under a project root with a parallel scanner, keeps
a validated cache of where they live, and clones new ones into a
predictable <domain>/<org>/<repo> layout.
"""

from colorama import init as colorama_init

colorama_init(autoreset=True)

__version__ = "0.2.0"

# Re-export public API so `from pygit_kit import X` keeps working.
from pygit_kit.cache import (  # noqa: E402
    CACHE_LOCK_RETRIES,
    CACHE_VERSION,
    ReadWriteLock,
    ResultCache,
    canonical_path,
)
from pygit_kit.cli import main  # noqa: E402
from pygit_kit.cloner import RepositoryCloner, parse_repo_url  # noqa: E402
from pygit_kit.config import (  # noqa: E402
    build_workspace_config,
    create_argument_parser,
    default_cache_path,
    load_config_file,
)
from pygit_kit.errors import (  # noqa: E402
    CacheUnavailableError,
    CloneError,
    ConfigError,
    InvalidRepoUrlError,
    NotARepositoryError,
    PygitKitError,
    RepositoryNotFoundError,
    RootNotADirectoryError,
    RootNotFoundError,
    ScanError,
    WorkerPoolError,
)
from pygit_kit.models import (  # noqa: E402
    CacheEntry,
    CacheOperation,
    CacheResult,
    CacheStatus,
    DirVisit,
    OperationResult,
    OperationType,
    ParsedRepoUrl,
    RepoFound,
    RepositoryInfo,
    ScanConfig,
    ScanSummary,
    ViewCommand,
    WorkspaceConfig,
)
from pygit_kit.orchestrator import WorkspaceOrchestrator  # noqa: E402
from pygit_kit.output import SECTION_WIDTH, ConsoleOutputHandler, NullOutputHandler  # noqa: E402
from pygit_kit.policy import PathFilterPolicy, is_repo_root  # noqa: E402
from pygit_kit.protocols import OutputHandler, RepoCache  # noqa: E402
from pygit_kit.reporter import ScanReporter, display_path  # noqa: E402
from pygit_kit.repository import GitPythonRepository  # noqa: E402
from pygit_kit.scanner import RepositoryScanner, ScanMetrics, ScanSession  # noqa: E402
from pygit_kit.viewer import RepositoryViewer  # noqa: E402

__all__ = [
    "__version__",
    "main",
    # Models
    "CacheEntry",
    "CacheOperation",
    "CacheResult",
    "CacheStatus",
    "DirVisit",
    "OperationResult",
    "OperationType",
    "ParsedRepoUrl",
    "RepoFound",
    "RepositoryInfo",
    "ScanConfig",
    "ScanSummary",
    "ViewCommand",
    "WorkspaceConfig",
    # Errors
    "CacheUnavailableError",
    "CloneError",
    "ConfigError",
    "InvalidRepoUrlError",
    "NotARepositoryError",
    "PygitKitError",
    "RepositoryNotFoundError",
    "RootNotADirectoryError",
    "RootNotFoundError",
    "ScanError",
    "WorkerPoolError",
    # Protocols
    "OutputHandler",
    "RepoCache",
    # Core
    "PathFilterPolicy",
    "is_repo_root",
    "RepositoryScanner",
    "ScanMetrics",
    "ScanSession",
    "ReadWriteLock",
    "ResultCache",
    "canonical_path",
    "CACHE_LOCK_RETRIES",
    "CACHE_VERSION",
    # Implementations
    "ConsoleOutputHandler",
    "NullOutputHandler",
    "SECTION_WIDTH",
    "GitPythonRepository",
    "RepositoryCloner",
    "parse_repo_url",
    "RepositoryViewer",
    "ScanReporter",
    "display_path",
    "WorkspaceOrchestrator",
    # Config
    "build_workspace_config",
    "create_argument_parser",
    "default_cache_path",
    "load_config_file",
]
