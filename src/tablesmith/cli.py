"""Command-line interface for TableSmith."""

import argparse
import json
import logging
import sys
from pathlib import Path

import uvicorn

from .config import settings
from .diff import TableDiffer
from .errors import TableSmithError
from .ops import TableEditSession
from .table import TableModel


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="TableSmith - Markdown table editing with undo/redo and version diffs"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Server command
    server_parser = subparsers.add_parser("serve", help="Start the web server")
    server_parser.add_argument(
        "--host", default=settings.host, help=f"Host to bind to (default: {settings.host})"
    )
    server_parser.add_argument(
        "--port", type=int, default=settings.port, help=f"Port to bind to (default: {settings.port})"
    )
    server_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    # Diff command
    diff_parser = subparsers.add_parser(
        "diff", help="Show the reconciled diff of two Markdown table files"
    )
    diff_parser.add_argument("old", help="Old version of the table (Markdown file)")
    diff_parser.add_argument("new", help="Current version of the table (Markdown file)")
    diff_parser.add_argument(
        "--json", action="store_true", help="Print the diff as JSON instead of text"
    )

    # Apply command
    apply_parser = subparsers.add_parser(
        "apply", help="Apply a JSON list of editor commands to a Markdown table"
    )
    apply_parser.add_argument("table", help="Markdown file holding the table")
    apply_parser.add_argument("commands", help='JSON file: [{"command": ..., "data": {...}}, ...]')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        run_server(args.host, args.port, args.reload)
    elif args.command == "diff":
        sys.exit(run_diff(Path(args.old), Path(args.new), args.json))
    elif args.command == "apply":
        sys.exit(run_apply(Path(args.table), Path(args.commands)))
    else:
        parser.print_help()
        sys.exit(1)


def run_server(host: str, port: int, reload: bool):
    """Run the web server."""
    uvicorn.run(
        "tablesmith.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


def run_diff(old_path: Path, new_path: Path, as_json: bool = False) -> int:
    """Print the reconciled grid of two table versions."""
    try:
        new_table = TableModel.from_markdown(new_path.read_text(encoding="utf-8"))
        differ = TableDiffer()
        diff = differ.diff(old_path.read_text(encoding="utf-8"), new_table)
        grid = differ.reconciler.reconcile(new_table, diff.column_diff, diff.rows)
    except (OSError, TableSmithError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps({"diff": diff.model_dump(), "grid": grid.model_dump()}, indent=2))
    else:
        for warning in diff.column_diff.warnings:
            print(f"warning: {warning}", file=sys.stderr)
        print(grid.to_text(), end="")
    return 0


def run_apply(table_path: Path, commands_path: Path) -> int:
    """Apply editor commands to a table and print the resulting Markdown."""
    try:
        session = TableEditSession.from_markdown(table_path.read_text(encoding="utf-8"))
        messages = json.loads(commands_path.read_text(encoding="utf-8"))
    except (OSError, ValueError, TableSmithError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not isinstance(messages, list):
        print("Error: commands file must hold a JSON list", file=sys.stderr)
        return 1

    failures = 0
    for position, message in enumerate(messages):
        result = session.execute_command(message)
        if not result.success:
            failures += 1
            print(f"command {position} ({result.action}) failed: {'; '.join(result.errors) or result.message}",
                  file=sys.stderr)

    print(session.to_markdown(), end="")
    return 1 if failures else 0


if __name__ == "__main__":
    main()
