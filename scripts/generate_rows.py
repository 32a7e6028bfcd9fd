#!/usr/bin/env python3
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from diffold.generator import load_git_rows, parse_git_args  # noqa: E402
from diffold.rows import rows_to_document, write_document  # noqa: E402


def main(argv: list[str]) -> int:
    args = parse_git_args(argv)
    repo = Path(args.repo).resolve()
    output = Path(args.output)
    if not output.is_absolute():
        output = repo / output
    try:
        rows = load_git_rows(repo, args.base, args.head, args.file_path)
    except Exception as error:  # noqa: BLE001
        print(f"[error] {error}", file=sys.stderr)
        return 1

    meta = {"title": f"{args.file_path} ({args.base}...{args.head})", "path": args.file_path}
    write_document(rows_to_document(rows, meta), output)
    print(f"Wrote: {output}")
    print(f"Rows: {len(rows)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
