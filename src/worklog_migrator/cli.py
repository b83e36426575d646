"""CLI for worklog-migrator - import legacy note-tool ZIP exports."""

import argparse
import json
import logging
import platform
import sys
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any

from . import __version__
from .board import build_board
from .runtime import build_runtime


def _parse_month(value: str) -> tuple[int, int]:
    try:
        year_str, month_str = value.split("-", 1)
        year, month = int(year_str), int(month_str)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {value!r}") from None
    if not 1 <= month <= 12:
        raise argparse.ArgumentTypeError(f"month out of range: {value!r}")
    return year, month


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from None


def cmd_import(args: argparse.Namespace, rt: Any) -> int:
    """Import a ZIP export for one owner."""
    from .import_migrate.orchestrator import save_report_json

    archive = Path(args.archive)
    if not archive.is_file():
        print(f"Archive does not exist: {archive}", file=sys.stderr)
        return 1

    report = rt.migrator.import_archive(
        args.owner,
        archive.read_bytes(),
        args.name or archive.name,
    )

    if args.report:
        report_path = Path(args.report)
        save_report_json(report, report_path)
        if not args.quiet:
            print(f"Saved report JSON to: {report_path}")

    if args.json:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    elif not args.quiet:
        print("\nImport Summary:")
        print(f"  Detected: {len(report.detected_patterns)}")
        print(f"  Items: {report.persisted_items}")
        print(f"  Files: {report.persisted_files}")
        print(f"  Failures: {len(report.failures)}")
        for failure in report.failures:
            print(f"    - {failure}")
        if report.manual_fix_hints:
            print("\nKnown limitations:")
            for hint in report.manual_fix_hints:
                print(f"  * {hint}")

    return 1 if report.failures else 0


def cmd_board(args: argparse.Namespace, rt: Any) -> int:
    """Print the monthly board for one owner."""
    year, month = args.month
    rows = build_board(rt.store, args.owner, year, month, rt.heuristics)

    if args.json:
        data = [{**asdict(row), "due_date": row.due_date.isoformat() if row.due_date else None} for row in rows]
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return 0

    for row in rows:
        checklist = f" [{row.checklist_done}/{row.checklist_total}]" if row.checklist_total else ""
        print(f"{row.due_date}  {row.title} ({row.template_type}){checklist}")
        if row.today_work:
            print(f"    work:  {row.today_work}")
        if row.issue:
            print(f"    issue: {row.issue}")
        if row.memo:
            print(f"    memo:  {row.memo}")
    if not rows and not args.quiet:
        print("No items.")
    return 0


def cmd_day_note(args: argparse.Namespace, rt: Any) -> int:
    """Print the day note for one date."""
    note = rt.store.day_notes.find(args.owner, args.date)
    if note is None:
        if not args.quiet:
            print(f"No day note for {args.date}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(
            {"dueDate": note.due_date.isoformat(), "issue": note.issue, "memo": note.memo},
            indent=2,
            ensure_ascii=False,
        ))
    else:
        print(f"Issue:\n{note.issue}\n\nMemo:\n{note.memo}")
    return 0


def cmd_serve(args: argparse.Namespace, rt: Any) -> int:
    """Start the HTTP import API."""
    try:
        import uvicorn

        from .api.app import create_app, generate_token
    except ImportError as e:
        print(
            "Error: API dependencies not installed. "
            "Install with: pip install worklog-migrator[api]",
            file=sys.stderr
        )
        print(f"Details: {e}", file=sys.stderr)
        return 1

    token: str | None
    if args.token == "auto":
        token = generate_token()
        print(f"Generated bearer token: {token}")
    elif args.token == "none":
        print("Warning: Running without authentication. Only use in trusted environments.")
        token = None
    else:
        token = args.token

    app = create_app(rt, token=token)

    print(f"Starting server on http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port, log_level="info")
    return 0


def _configure_logging(args: argparse.Namespace, level: str) -> None:
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="wlm", description="Import legacy note-tool exports as work items"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"worklog-migrator {__version__} (python {platform.python_version()}, {platform.system()})",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/worklog.toml, data/worklog.toml)",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=None,
        help="Path to data directory (overrides config)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to SQLite database (overrides config)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimize output"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Debug logging"
    )
    parser.add_argument(
        "--json", action="store_true", help="Machine-readable output"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # import command
    parser_import = subparsers.add_parser("import", help="Import a ZIP export")
    parser_import.add_argument("archive", help="Path to the ZIP file")
    parser_import.add_argument("--owner", required=True, help="Owner id for created records")
    parser_import.add_argument(
        "--name", default=None,
        help="Display name used as the first path segment (default: file name)"
    )
    parser_import.add_argument(
        "--report", default=None,
        help="Write the import report as JSON to this path"
    )

    # board command
    parser_board = subparsers.add_parser("board", help="Show the monthly board")
    parser_board.add_argument("--owner", required=True, help="Owner id")
    parser_board.add_argument("--month", required=True, type=_parse_month, help="Month as YYYY-MM")

    # day-note command
    parser_day = subparsers.add_parser("day-note", help="Show the day note for a date")
    parser_day.add_argument("--owner", required=True, help="Owner id")
    parser_day.add_argument("--date", required=True, type=_parse_date, help="Date as YYYY-MM-DD")

    # serve command
    parser_serve = subparsers.add_parser("serve", help="Start the HTTP import API")
    parser_serve.add_argument(
        "--host", default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser_serve.add_argument(
        "--port", type=int, default=8765,
        help="Port to bind to (default: 8765)"
    )
    parser_serve.add_argument(
        "--token", default="auto",
        help="Bearer token (auto|<string>|none, default: auto)"
    )

    args = parser.parse_args(argv)

    try:
        rt = build_runtime(
            data_dir=args.data,
            db_path=args.db,
            config_path=args.config,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    _configure_logging(args, rt.config.logging.level)

    handlers = {
        "import": cmd_import,
        "board": cmd_board,
        "day-note": cmd_day_note,
        "serve": cmd_serve,
    }
    handler = handlers.get(args.cmd)

    if handler:
        try:
            exit_code = handler(args, rt)
            sys.exit(exit_code)
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
