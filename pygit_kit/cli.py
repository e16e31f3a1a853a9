"""CLI entry point: main() function."""

from __future__ import annotations

import argparse
import logging
import os
import sys

from pygit_kit.cache import ResultCache
from pygit_kit.config import build_workspace_config, create_argument_parser, load_config_file
from pygit_kit.errors import PygitKitError
from pygit_kit.orchestrator import WorkspaceOrchestrator
from pygit_kit.output import ConsoleOutputHandler


def _dispatch(args: argparse.Namespace, orchestrator: WorkspaceOrchestrator) -> int:
    """Run the selected command and return its exit code."""
    if args.command == 'ls':
        config = orchestrator.scan_config(
            max_depth=args.max_depth,
            follow_links=args.follow_links,
            same_filesystem=args.same_filesystem,
            thread_count=args.threads,
            max_repos=args.max_repos,
            stop_at_git=args.stop_at_git,
        )
        orchestrator.list_repositories(
            config,
            full=args.full,
            json_output=args.json_output,
            progress=args.progress and sys.stderr.isatty(),
            record=args.use_cache,
        )
        return 0

    if args.command == 'find':
        matches = orchestrator.find_repository(args.name, full=args.full)
        if not matches:
            orchestrator.output.warning(f"No repository named '{args.name}' under {orchestrator.project_root}")
            return 1
        return 0

    if args.command == 'clone':
        orchestrator.clone(args.url)
        return 0

    if args.command == 'view':
        results = orchestrator.view(args.path)
        return 0 if all(r.success for r in results) else 1

    if args.command == 'cache':
        if args.action == 'prune':
            orchestrator.prune_cache()
        else:
            orchestrator.show_cache()
        return 0

    raise PygitKitError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None):
    """Main entry point"""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logging.getLogger(__name__).debug("Logger initialized at %s level",
                                      'DEBUG' if args.verbose else 'WARNING')

    output = ConsoleOutputHandler(verbose=args.verbose)

    try:
        workspace = build_workspace_config(load_config_file(args.config))
        cache = ResultCache(workspace.cache_path, ttl_seconds=workspace.cache_ttl)
        orchestrator = WorkspaceOrchestrator(workspace, output, cache)
        sys.exit(_dispatch(args, orchestrator))

    except KeyboardInterrupt:
        output.warning("\n\nInterrupted by user")
        sys.exit(130)
    except BrokenPipeError:
        # Reader went away (e.g. `pygit-kit ls | head`); silence the final flush
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        sys.exit(0)
    except (PygitKitError, ValueError) as e:
        output.error(f"Error: {e}")
        sys.exit(1)
    except Exception as e:
        output.error(f"\nUnexpected error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)
