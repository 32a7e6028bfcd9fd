#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
import webbrowser
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from diffold.config import apply_overrides, load_config  # noqa: E402
from diffold.generator import load_rows  # noqa: E402
from diffold.html_report import render_diff_table_html  # noqa: E402
from diffold.table import DiffTable  # noqa: E402


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export a folded diff as an HTML page.")
    parser.add_argument("--input", required=True, help="Input .json row document or unified diff path.")
    parser.add_argument("--output", required=True, help="Output HTML path.")
    parser.add_argument("--file", dest="file_path", help="File to export when the diff covers several files.")
    parser.add_argument("--config", help="Optional diffold.toml path.")
    parser.add_argument("--max-context", type=int, help="Context rows kept next to each edit.")
    parser.add_argument("--max-unfold", type=int, help="Rows revealed per unfold step.")
    parser.add_argument("--title", help="Optional custom page title.")
    parser.add_argument("--open", action="store_true", help="Open the generated HTML in your default browser.")
    return parser.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    input_path = Path(args.input)
    if not input_path.is_absolute():
        input_path = ROOT / input_path
    output_path = Path(args.output)
    if not output_path.is_absolute():
        output_path = ROOT / output_path

    try:
        config = load_config(Path(args.config) if args.config else None)
        config = apply_overrides(config, max_context=args.max_context, max_unfold_chunk=args.max_unfold)
        rows, _warnings = load_rows(input_path, file_path=args.file_path)
        table = DiffTable(rows, config.fold)
        html = render_diff_table_html(table, title=args.title or input_path.name, file_path=args.file_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(html, encoding="utf-8")
    except Exception as error:  # noqa: BLE001
        print(f"[error] {error}", file=sys.stderr)
        return 1

    print(f"Wrote: {output_path}")
    if args.open:
        webbrowser.open(output_path.resolve().as_uri())
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
