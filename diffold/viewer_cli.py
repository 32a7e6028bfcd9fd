from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from rich.console import Console

from .config import apply_overrides, load_config
from .generator import load_rows
from .html_report import render_diff_table_html
from .logger_setup import setup_logging
from .rows import resolve_input_path
from .table import DiffTable
from .viewer_render import render_diff_table, render_hunks, render_summary

logger = logging.getLogger(__name__)


def parse_view_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show a diff with long unchanged runs folded into hunk headers.")
    parser.add_argument("path", help="Path to a .json row document or a unified diff file")
    parser.add_argument("--file", dest="file_path", help="File to show when the diff covers several files")
    parser.add_argument("--config", help="Path to a diffold.toml config file")
    parser.add_argument("--max-context", type=int, help="Context rows kept next to each edit")
    parser.add_argument("--max-unfold", type=int, help="Rows revealed per unfold step")
    parser.add_argument(
        "--unfold-down",
        type=int,
        action="append",
        default=[],
        metavar="HUNK_ID",
        help="Unfold a hunk downward before showing it (repeatable)",
    )
    parser.add_argument(
        "--unfold-up",
        type=int,
        action="append",
        default=[],
        metavar="HUNK_ID",
        help="Unfold a hunk upward before showing it (repeatable)",
    )
    parser.add_argument("--title", help="Title for the summary and HTML page")
    parser.add_argument("--json", dest="as_json", action="store_true", help="Output the fold state as JSON")
    parser.add_argument("--html", dest="html_output", help="Write the folded diff as an HTML page")
    parser.add_argument("--app", action="store_true", help="Open the interactive viewer")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)")
    return parser.parse_args(argv)


def build_table(args: argparse.Namespace) -> tuple[DiffTable, list[str], Path]:
    config = load_config(Path(args.config) if args.config else None)
    config = apply_overrides(
        config,
        max_context=args.max_context,
        max_unfold_chunk=args.max_unfold,
        log_level=args.log_level,
    )
    setup_logging(config.logging.level_number, config.logging.file)

    path = resolve_input_path(Path(args.path), search_roots=[Path(__file__).resolve().parents[1]])
    rows, warnings = load_rows(path, file_path=args.file_path)
    table = DiffTable(rows, config.fold)
    # Two flags cannot keep their relative order through argparse; downs run first.
    for hunk_id in args.unfold_down:
        table.unfold_down(hunk_id)
    for hunk_id in args.unfold_up:
        table.unfold_up(hunk_id)
    return table, warnings, path


def run_view(argv: list[str]) -> int:
    args = parse_view_args(argv)
    console = Console()
    try:
        table, warnings, path = build_table(args)
    except LookupError as error:
        print(f"[error] {error}", file=sys.stderr)
        return 2
    except Exception as error:  # noqa: BLE001
        print(f"[error] {error}", file=sys.stderr)
        return 1

    title = args.title or path.name
    if args.html_output:
        output = Path(args.html_output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(render_diff_table_html(table, title=title, file_path=args.file_path), encoding="utf-8")
        logger.info("Wrote %s", output)
        print(f"Wrote: {output}")
        return 0

    if args.as_json:
        payload = {"warnings": warnings, **table.to_dict()}
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    if args.app:
        from .viewer_textual import DiffoldTextualApp

        DiffoldTextualApp(path, table, warnings, title=title).run()
        return 0

    render_summary(console, table, title, len(warnings))
    for warning in warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")
    render_hunks(console, table)
    render_diff_table(console, table)
    return 0


def main() -> int:
    return run_view(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main())
