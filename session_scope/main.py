#!/usr/bin/env python3
"""Session Scope - terminal dashboard for AI coding session transcripts.

Entry point for the CLI application.
"""

import argparse
import logging
import os
import shutil

from .config import DEBUG_LOG_PATH

logger = logging.getLogger(__name__)


def _load_repository():
    from .repository import SessionRepository

    return SessionRepository.from_providers()


def _terminal_width() -> int:
    return shutil.get_terminal_size((120, 40)).columns


def cmd_browse(args):
    """Launch the TUI browser."""
    from .app import SessionScopeApp
    from .store import StateStore

    store = StateStore()
    snapshot = store.load() if args.restore else None

    app = SessionScopeApp(
        theme=args.theme,
        color=not args.no_color,
        search=args.search,
        regex=args.regex,
        snapshot=snapshot,
        store=store,
    )
    result = app.run()

    if result and isinstance(result, tuple):
        cmd, project_path = result
        if project_path and os.path.isdir(project_path):
            os.chdir(project_path)
        print(f"\n[Resuming session...]\n{cmd}\n")
        parts = cmd.split()
        if parts:
            os.execvp(parts[0], parts)


def cmd_search(args):
    """Search conversations from CLI."""
    from .ui.formatters import format_datetime, format_session_id

    repository = _load_repository()
    options = {"regex": args.regex, "thinking_only": args.thinking}
    results = repository.search_conversations(args.query, options)

    if not results:
        print(f"No matches found for: {args.query}")
        return

    print(f"Found {len(results)} matches:\n")

    for result in results[:args.limit]:
        print(f"{format_session_id(result.session_id)} {result.project_name} - Conv #{result.conversation_index + 1}")
        print(f"   {format_datetime(result.user_time)} • {result.tool_count} tools • match in {result.match_type}")
        print(f"   {result.match_context}")
        print()


def cmd_daily(args):
    """Show per-day activity."""
    from .ui.renderer import Renderer
    from .ui.styles import get_style_provider

    repository = _load_repository()
    renderer = Renderer(get_style_provider(color=not args.no_color))
    for line in renderer.render_daily_statistics(repository.get_daily_statistics(), _terminal_width()):
        print(line)


def cmd_projects(args):
    """Show project activity statistics."""
    from .ui.renderer import Renderer
    from .ui.styles import get_style_provider

    repository = _load_repository()
    stats = repository.get_project_statistics()[:args.limit]
    renderer = Renderer(get_style_provider(color=not args.no_color))
    for line in renderer.render_project_statistics(stats, _terminal_width()):
        print(line)


def setup_logging(debug: bool):
    """Log to a file only when asked; the TUI owns the terminal."""
    if not debug:
        logging.getLogger("session_scope").addHandler(logging.NullHandler())
        return
    DEBUG_LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=DEBUG_LOG_PATH,
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.debug("Debug logging enabled")


def main(argv=None):
    """Main entry point for session-scope CLI."""
    parser = argparse.ArgumentParser(
        description="Browse AI coding session transcripts in the terminal",
        prog="session-scope",
    )
    parser.add_argument(
        "--version", "-v",
        action="store_true",
        help="Show version"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help=f"Write debug log to {DEBUG_LOG_PATH}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    browse_parser = subparsers.add_parser("browse", help="Launch TUI browser (default)")
    browse_parser.add_argument("--search", "-s", help="Start with this session search")
    browse_parser.add_argument("--regex", "-r", action="store_true", help="Treat --search as a regular expression")
    browse_parser.add_argument("--restore", action="store_true", help="Restore the state saved on last exit")
    browse_parser.add_argument("--theme", default="default", help="Colour theme (default, dark, light, minimal)")
    browse_parser.add_argument("--no-color", action="store_true", help="Disable colours")

    search_parser = subparsers.add_parser("search", help="Search conversations")
    search_parser.add_argument("query", help="Search query")
    search_parser.add_argument("--regex", "-r", action="store_true", help="Treat query as a regular expression")
    search_parser.add_argument("--thinking", action="store_true", help="Only search thinking content")
    search_parser.add_argument("--limit", "-l", type=int, default=20, help="Max matches to show")

    daily_parser = subparsers.add_parser("daily", help="Per-day statistics")
    daily_parser.add_argument("--no-color", action="store_true", help="Disable colours")

    projects_parser = subparsers.add_parser("projects", help="Per-project statistics")
    projects_parser.add_argument("--limit", "-l", type=int, default=20, help="Max projects to show")
    projects_parser.add_argument("--no-color", action="store_true", help="Disable colours")

    args = parser.parse_args(argv)

    if args.version:
        from . import __version__
        print(f"session-scope {__version__}")
        return

    setup_logging(args.debug)

    if args.command == "search":
        cmd_search(args)
    elif args.command == "daily":
        cmd_daily(args)
    elif args.command == "projects":
        cmd_projects(args)
    elif args.command == "browse":
        cmd_browse(args)
    else:
        browse_args = argparse.Namespace(
            search=None,
            regex=False,
            restore=False,
            theme="default",
            no_color=False,
        )
        cmd_browse(browse_args)


if __name__ == "__main__":
    main()
