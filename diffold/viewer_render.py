from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .control import ACTION_UNFOLD, ACTION_UNFOLD_DOWN, ACTION_UNFOLD_UP, ControlRow
from .rows import OP_DELETE, OP_INSERT, OP_MATCH, DiffRow
from .table import DiffTable

BUTTON_GLYPHS = {ACTION_UNFOLD: "↕", ACTION_UNFOLD_DOWN: "↓", ACTION_UNFOLD_UP: "↑"}


def op_style(op: str) -> str:
    if op == OP_INSERT:
        return "green"
    if op == OP_DELETE:
        return "red"
    if op == OP_MATCH:
        return "white"
    return "dim"


def op_prefix(op: str) -> str:
    return {OP_MATCH: " ", OP_INSERT: "+", OP_DELETE: "-"}.get(op, "")


def format_buttons(control: ControlRow) -> str:
    return " ".join(BUTTON_GLYPHS.get(button.action, "?") for button in control.buttons)


def control_label(control: ControlRow) -> Text:
    label = Text(f"[{control.hunk_id}] {format_buttons(control)} ", style="bold cyan")
    if control.header:
        label.append(control.header, style="bold blue")
    label.append(f"  ({control.hidden_count} hidden)", style="dim")
    return label


def render_summary(console: Console, table: DiffTable, title: str, warning_count: int) -> None:
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="bold cyan")
    grid.add_column()
    grid.add_row("Title", Text(title))
    grid.add_row("Rows", str(len(table.rows)))
    grid.add_row("Hidden", str(table.hidden_count()))
    grid.add_row("Hunks", str(len(table.hunks)))
    grid.add_row("Context", str(table.policy.max_context))
    grid.add_row("Unfold chunk", str(table.policy.max_unfold_chunk))
    grid.add_row("Warnings", str(warning_count))
    console.print(Panel(grid, title="Folded Diff", border_style="blue"))


def render_hunks(console: Console, table: DiffTable) -> None:
    hunk_table = Table(title=f"Hunks ({len(table.hunks)})", header_style="bold magenta")
    hunk_table.add_column("id", justify="right", style="cyan")
    hunk_table.add_column("rows", no_wrap=True)
    hunk_table.add_column("hidden", justify="right")
    hunk_table.add_column("buttons", no_wrap=True)
    hunk_table.add_column("header", overflow="ellipsis")
    for hunk in table.hunks:
        control = hunk.control
        hunk_table.add_row(
            str(hunk.id),
            f"{hunk.first}-{hunk.last}",
            str(hunk.size),
            ", ".join(button.action for button in control.buttons) if control else "-",
            Text((control.header or "") if control else ""),
        )
    console.print(hunk_table)


def _row_cells(row: DiffRow) -> tuple[str, str, Text]:
    return (
        "" if row.x_lineno is None else str(row.x_lineno),
        "" if row.y_lineno is None else str(row.y_lineno),
        Text(op_prefix(row.op) + (row.text or ""), style=op_style(row.op)),
    )


def render_diff_table(console: Console, table: DiffTable) -> None:
    lines_table = Table(header_style="bold magenta", show_lines=False)
    lines_table.add_column("old", justify="right", no_wrap=True)
    lines_table.add_column("new", justify="right", no_wrap=True)
    lines_table.add_column("content")
    for item in table.display_items():
        if item.control is not None:
            lines_table.add_row("", "", control_label(item.control), style="on grey15")
        elif item.row is not None:
            lines_table.add_row(*_row_cells(item.row))
    console.print(lines_table)

