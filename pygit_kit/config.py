"""Configuration: argument parser, config file loader, and platform paths."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Any

try:
    import tomllib
except ModuleNotFoundError:
    try:
        import tomli as tomllib  # type: ignore[no-redef]
    except ImportError:
        tomllib = None  # type: ignore[assignment]

from pygit_kit.errors import ConfigError
from pygit_kit.models import (
    DEFAULT_CACHE_TTL,
    DEFAULT_PROJECT_ROOT,
    ViewCommand,
    WorkspaceConfig,
)

APP_NAME = 'pygit-kit'
LOCAL_CONFIG_NAME = '.pygitkit.toml'

# Keys in the config file that map onto ScanConfig fields
SCAN_OPTION_KEYS = {
    'max_depth': int,
    'follow_links': bool,
    'same_filesystem': bool,
    'threads': int,
    'max_repos': int,
    'stop_at_git': bool,
}

logger = logging.getLogger(__name__)


def config_dir() -> Path:
    """Per-user configuration directory: %APPDATA%\\pygit-kit or ~/.config/pygit-kit."""
    if sys.platform == 'win32' and os.environ.get('APPDATA'):
        return Path(os.environ['APPDATA']) / APP_NAME
    return Path.home() / '.config' / APP_NAME


def default_cache_path() -> Path:
    """Location of the persisted cache, falling back to the temp dir without a home."""
    try:
        return config_dir() / 'cache.json'
    except RuntimeError as e:
        logger.warning("Failed to get cache path, using temp dir: %s", e)
        return Path(tempfile.gettempdir()) / APP_NAME / 'cache.json'


def create_argument_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser with all pygit-kit commands."""
    # Lazy import to avoid circular dependency with __init__.py
    from pygit_kit import __version__

    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Manage a workspace of git repositories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ls                                   # List repos under project_root
  %(prog)s ls --full --max-depth 6              # Absolute paths, deeper scan
  %(prog)s find my-service                      # Locate a repo by name
  %(prog)s clone git@github.com:org/repo.git    # Clone into <root>/github.com/org/repo
  %(prog)s view github.com/org/repo             # Run configured view commands
        """
    )

    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Verbose output')
    parser.add_argument('--config', type=str, default=None,
                        help=f'Path to config file (default: ./{LOCAL_CONFIG_NAME} or ~/.config/{APP_NAME}/config.toml)')

    subparsers = parser.add_subparsers(dest='command', required=True)

    ls_parser = subparsers.add_parser('ls', help='List git repositories in the workspace')
    ls_parser.add_argument('-f', '--full', action='store_true',
                           help='Show full paths instead of paths relative to project_root')
    ls_parser.add_argument('--max-depth', type=int, default=None,
                           help='Maximum directory depth to search (default: 4)')
    ls_parser.add_argument('--follow-links', action='store_true', default=None,
                           help='Follow symbolic links (default: false)')
    ls_parser.add_argument('--cross-filesystems', dest='same_filesystem', action='store_false', default=None,
                           help='Descend into other mounted filesystems')
    ls_parser.add_argument('--threads', type=int, default=None,
                           help='Number of scan threads (default: number of CPU cores)')
    ls_parser.add_argument('--max-repos', type=int, default=None,
                           help='Stop after this many repositories (default: no limit)')
    ls_parser.add_argument('--no-stop-at-git', dest='stop_at_git', action='store_false', default=None,
                           help='Keep searching inside repositories for nested ones')
    ls_parser.add_argument('--json', dest='json_output', action='store_true',
                           help='Output results as JSON')
    ls_parser.add_argument('--no-progress', dest='progress', action='store_false',
                           help='Do not show the progress counter')
    ls_parser.add_argument('--no-cache', dest='use_cache', action='store_false',
                           help='Do not record found repositories in the cache')

    find_parser = subparsers.add_parser('find', help='Find repositories by directory name')
    find_parser.add_argument('name', help='Repository directory name')
    find_parser.add_argument('-f', '--full', action='store_true',
                             help='Show full paths')

    clone_parser = subparsers.add_parser('clone', help='Clone a repository into the workspace')
    clone_parser.add_argument('url', help='HTTPS or SSH repository URL')

    view_parser = subparsers.add_parser('view', help='Show information about a repository')
    view_parser.add_argument('path', help='Repository path (relative to project_root or absolute)')

    cache_parser = subparsers.add_parser('cache', help='Inspect or clean the repository cache')
    cache_parser.add_argument('action', choices=['show', 'prune'],
                              help='show: list entries, prune: drop stale entries')

    return parser


def config_candidates(config_path: str | None = None) -> list[Path]:
    """Config files to try, in priority order."""
    if config_path:
        return [Path(config_path).expanduser()]
    candidates = [Path.cwd() / LOCAL_CONFIG_NAME]
    try:
        candidates.append(config_dir() / 'config.toml')
    except RuntimeError:
        pass
    return candidates


def load_config_file(config_path: str | None = None) -> dict[str, Any]:
    """Load the first config file found from explicit path, cwd, or config dir.

    Returns empty dict if not found or tomllib is unavailable.
    """
    for path in config_candidates(config_path):
        if path.is_file():
            if tomllib is None:
                logger.warning("Found %s but tomllib/tomli not available (Python 3.11+ or pip install tomli). Ignoring.", path)
                return {}
            try:
                with open(path, 'rb') as f:
                    return tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                logger.warning("Failed to parse %s: %s", path, e)
                return {}
    if config_path:
        logger.warning("Config file '%s' not found. Ignoring.", config_path)
    return {}


def _expect(data: dict[str, Any], key: str, kind: type) -> Any:
    value = data[key]
    # bool is an int subclass; keep them apart
    if (kind is int and isinstance(value, bool)) or not isinstance(value, kind):
        raise ConfigError(f"Config key '{key}' must be {kind.__name__}, got {type(value).__name__}")
    return value


def build_workspace_config(data: dict[str, Any]) -> WorkspaceConfig:
    """Validate raw config file data into a WorkspaceConfig."""
    project_root = data.get('project_root', DEFAULT_PROJECT_ROOT)
    if not isinstance(project_root, str):
        raise ConfigError("Config key 'project_root' must be str")

    view_commands = []
    for item in data.get('view', []):
        if not isinstance(item, dict) or not isinstance(item.get('command'), str):
            raise ConfigError("Each [[view]] entry needs a 'command' string")
        view_commands.append(ViewCommand(label=str(item.get('label', item['command'])), command=item['command']))

    cache_ttl = _expect(data, 'cache_ttl', int) if 'cache_ttl' in data else DEFAULT_CACHE_TTL
    cache_path = Path(_expect(data, 'cache_path', str)).expanduser() if 'cache_path' in data else None
    scan_options = {key: _expect(data, key, kind) for key, kind in SCAN_OPTION_KEYS.items() if key in data}

    return WorkspaceConfig(
        project_root=Path(os.path.expandvars(project_root)).expanduser(),
        view_commands=view_commands,
        cache_ttl=cache_ttl,
        cache_path=cache_path,
        scan_options=scan_options,
    )
