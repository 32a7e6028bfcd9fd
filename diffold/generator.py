from __future__ import annotations

import argparse
import logging
import re
import subprocess
from pathlib import Path
from typing import Any

from .rows import OP_DELETE, OP_INSERT, OP_MATCH, OP_OTHER, DiffRow, load_json, rows_from_document, validate_row_document

logger = logging.getLogger(__name__)

HUNK_HEADER_RE = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? "
    r"\+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@(?P<header>.*)$"
)
FULL_CONTEXT_LINES = 1_000_000


def run_git(repo: Path, args: list[str]) -> str:
    process = subprocess.run(
        ["git", "-C", str(repo), *args],
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        check=False,
    )
    if process.returncode != 0:
        message = process.stderr.strip() or process.stdout.strip()
        raise RuntimeError(f"git {' '.join(args)} failed: {message}")
    return process.stdout


def normalize_diff_path(raw: str) -> str | None:
    value = raw.strip()
    if value == "/dev/null":
        return None
    if value.startswith("a/") or value.startswith("b/"):
        return value[2:]
    return value


def _new_file(a_path: str | None, b_path: str | None, line: str) -> dict[str, Any]:
    return {"a_path": a_path, "b_path": b_path, "meta": [line], "hunks": []}


def parse_unified_diff(diff_text: str) -> list[dict[str, Any]]:
    lines = diff_text.splitlines()
    files: list[dict[str, Any]] = []
    current_file: dict[str, Any] | None = None
    current_hunk: dict[str, Any] | None = None

    for line in lines:
        if current_hunk is not None and (current_hunk["old_left"] > 0 or current_hunk["new_left"] > 0):
            if line.startswith("+"):
                current_hunk["lines"].append({"kind": "add", "text": line[1:]})
                current_hunk["new_left"] -= 1
            elif line.startswith("-"):
                current_hunk["lines"].append({"kind": "delete", "text": line[1:]})
                current_hunk["old_left"] -= 1
            elif line.startswith("\\"):
                current_hunk["lines"].append({"kind": "meta", "text": line[2:]})
            elif line.startswith(" ") or line == "":
                current_hunk["lines"].append({"kind": "context", "text": line[1:]})
                current_hunk["old_left"] -= 1
                current_hunk["new_left"] -= 1
            else:
                raise RuntimeError(f"Unexpected line inside hunk: {line}")
            continue

        if current_hunk is not None and line.startswith("\\ "):
            current_hunk["lines"].append({"kind": "meta", "text": line[2:]})
            continue
        current_hunk = None

        if line.startswith("diff --git "):
            if current_file is not None:
                files.append(current_file)
            parts = line.split()
            current_file = _new_file(
                normalize_diff_path(parts[2] if len(parts) > 2 else ""),
                normalize_diff_path(parts[3] if len(parts) > 3 else ""),
                line,
            )
            continue

        if line.startswith("--- "):
            if current_file is None or current_file["hunks"]:
                # plain "diff -u" output has no "diff --git" line
                if current_file is not None:
                    files.append(current_file)
                current_file = _new_file(normalize_diff_path(line[4:].split("\t")[0]), None, line)
            else:
                current_file["meta"].append(line)
            continue

        if line.startswith("+++ ") and current_file is not None:
            b_path = normalize_diff_path(line[4:].split("\t")[0])
            if b_path is not None:
                current_file["b_path"] = b_path
            current_file["meta"].append(line)
            continue

        if line.startswith("@@ "):
            match = HUNK_HEADER_RE.match(line)
            if not match:
                raise RuntimeError(f"Unsupported hunk header: {line}")
            if current_file is None:
                current_file = _new_file(None, None, line)
            old_count = int(match.group("old_count") or "1")
            new_count = int(match.group("new_count") or "1")
            current_hunk = {
                "old": {"start": int(match.group("old_start")), "count": old_count},
                "new": {"start": int(match.group("new_start")), "count": new_count},
                "header": match.group("header").strip(),
                "lines": [],
                "old_left": old_count,
                "new_left": new_count,
            }
            current_file["hunks"].append(current_hunk)
            continue

        if current_file is not None:
            current_file["meta"].append(line)

    if current_file is not None:
        files.append(current_file)
    return files


def _file_path(file_entry: dict[str, Any]) -> str:
    return file_entry["b_path"] or file_entry["a_path"] or "UNKNOWN"


def rows_from_unified_diff(diff_text: str, file_path: str | None = None) -> list[DiffRow]:
    files = parse_unified_diff(diff_text)
    if not files:
        raise RuntimeError("No file diff found in input.")
    if file_path is None:
        if len(files) > 1:
            names = ", ".join(_file_path(entry) for entry in files)
            raise RuntimeError(f"Input contains several files ({names}); choose one.")
        selected = files[0]
    else:
        matches = [entry for entry in files if file_path in {entry["a_path"], entry["b_path"]}]
        if not matches:
            raise RuntimeError(f"File not found in diff: {file_path}")
        selected = matches[0]

    rows: list[DiffRow] = []
    for hunk in selected["hunks"]:
        rows.append(DiffRow(index=len(rows), op=OP_OTHER))
        old_cursor = hunk["old"]["start"]
        new_cursor = hunk["new"]["start"]
        for line in hunk["lines"]:
            kind = line["kind"]
            if kind == "context":
                rows.append(DiffRow(len(rows), OP_MATCH, old_cursor, new_cursor, line["text"]))
                old_cursor += 1
                new_cursor += 1
            elif kind == "delete":
                rows.append(DiffRow(len(rows), OP_DELETE, old_cursor, None, line["text"]))
                old_cursor += 1
            elif kind == "add":
                rows.append(DiffRow(len(rows), OP_INSERT, None, new_cursor, line["text"]))
                new_cursor += 1
    logger.debug("Parsed %d rows for %s", len(rows), _file_path(selected))
    return rows


def load_git_rows(repo: Path, base_ref: str, head_ref: str, file_path: str) -> list[DiffRow]:
    run_git(repo, ["rev-parse", "--verify", base_ref])
    run_git(repo, ["rev-parse", "--verify", head_ref])
    diff_text = run_git(
        repo,
        ["diff", "--no-color", f"-U{FULL_CONTEXT_LINES}", base_ref, head_ref, "--", file_path],
    )
    if not diff_text.strip():
        raise RuntimeError(f"No changes for {file_path} between {base_ref} and {head_ref}")
    return rows_from_unified_diff(diff_text, file_path=file_path)


def load_rows(path: Path, file_path: str | None = None) -> tuple[list[DiffRow], list[str]]:
    if path.suffix.lower() == ".json":
        doc = load_json(path)
        warnings = validate_row_document(doc)
        return rows_from_document(doc), warnings
    try:
        diff_text = path.read_text(encoding="utf-8")
    except FileNotFoundError as error:
        raise RuntimeError(f"File not found: {path}") from error
    return rows_from_unified_diff(diff_text, file_path=file_path), []


def parse_git_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build a diffold row document for one file from two git refs.")
    parser.add_argument("--repo", default=".", help="Path to git repository (default: current directory).")
    parser.add_argument("--base", required=True, help="Base ref.")
    parser.add_argument("--head", required=True, help="Head ref.")
    parser.add_argument("--file", dest="file_path", required=True, help="Path of the file to diff.")
    parser.add_argument("--output", required=True, help="Output .json path.")
    return parser.parse_args(argv)
