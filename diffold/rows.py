from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

OP_MATCH = "match"
OP_INSERT = "insert"
OP_DELETE = "delete"
OP_OTHER = "other"
VALID_OPS = {OP_MATCH, OP_INSERT, OP_DELETE}
EDIT_OPS = {OP_INSERT, OP_DELETE}


@dataclass
class DiffRow:
    index: int
    op: str
    x_lineno: int | None = None
    y_lineno: int | None = None
    text: str | None = None
    block_start: bool = False
    block_end: bool = False
    visible: bool = True

    @property
    def is_edit(self) -> bool:
        return self.op in EDIT_OPS


def resolve_input_path(path: Path, search_roots: list[Path] | None = None) -> Path:
    if path.is_absolute():
        return path
    primary = (Path.cwd() / path).resolve()
    if primary.exists():
        return primary
    for root in search_roots or []:
        candidate = (root / path).resolve()
        if candidate.exists():
            return candidate
    return primary


def load_json(path: Path) -> dict[str, Any]:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as error:
        raise RuntimeError(f"File not found: {path}") from error
    except json.JSONDecodeError as error:
        raise RuntimeError(f"Invalid JSON: {error}") from error


def normalize_line_number(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def validate_row_document(doc: dict[str, Any]) -> list[str]:
    warnings: list[str] = []
    for key in ["format", "version", "rows"]:
        if key not in doc:
            raise RuntimeError(f"Missing required key: {key}")
    if doc["format"] != "diffold":
        raise RuntimeError(f"Unsupported format: {doc['format']}")
    if doc["version"] != 1:
        raise RuntimeError(f"Unsupported version: {doc['version']}")
    if not isinstance(doc["rows"], list):
        raise RuntimeError("rows must be an array")

    for index, row in enumerate(doc["rows"]):
        if not isinstance(row, dict):
            warnings.append(f"Row {index} is not an object; treated as structural.")
            continue
        op = row.get("op")
        x_lineno = normalize_line_number(row.get("xLineno"))
        y_lineno = normalize_line_number(row.get("yLineno"))
        if op is not None and op not in VALID_OPS:
            warnings.append(f"Row {index} has unknown op {op!r}; treated as structural.")
        if op == OP_MATCH and (x_lineno is None or y_lineno is None):
            warnings.append(f"Match row {index} is missing a line number.")
        if op == OP_INSERT and x_lineno is not None:
            warnings.append(f"Insert row {index} carries an original line number.")
        if op == OP_DELETE and y_lineno is not None:
            warnings.append(f"Delete row {index} carries a modified line number.")
    for warning in warnings:
        logger.warning(warning)
    return warnings


def rows_from_document(doc: dict[str, Any]) -> list[DiffRow]:
    rows: list[DiffRow] = []
    for index, raw in enumerate(doc.get("rows") or []):
        if not isinstance(raw, dict):
            rows.append(DiffRow(index=index, op=OP_OTHER))
            continue
        op = raw.get("op")
        text = raw.get("text")
        rows.append(
            DiffRow(
                index=index,
                op=op if op in VALID_OPS else OP_OTHER,
                x_lineno=normalize_line_number(raw.get("xLineno")),
                y_lineno=normalize_line_number(raw.get("yLineno")),
                text=None if text is None else str(text),
            )
        )
    return rows


def rows_to_document(rows: list[DiffRow], meta: dict[str, Any] | None = None) -> dict[str, Any]:
    payload_rows: list[dict[str, Any]] = []
    for row in rows:
        item: dict[str, Any] = {"op": row.op if row.op in VALID_OPS else None}
        if row.x_lineno is not None:
            item["xLineno"] = row.x_lineno
        if row.y_lineno is not None:
            item["yLineno"] = row.y_lineno
        if row.text is not None:
            item["text"] = row.text
        payload_rows.append(item)
    return {"format": "diffold", "version": 1, "meta": dict(meta or {}), "rows": payload_rows}


def write_document(document: dict[str, Any], output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(document, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
