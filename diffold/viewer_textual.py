from __future__ import annotations

import logging
from pathlib import Path

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import DataTable, Footer, Header, Static

from .control import ACTION_UNFOLD, ACTION_UNFOLD_DOWN, ControlRow
from .html_report import render_diff_table_html
from .table import DiffTable, DisplayItem
from .viewer_render import control_label, op_prefix, op_style

logger = logging.getLogger(__name__)

DOWN_ACTIONS = {ACTION_UNFOLD, ACTION_UNFOLD_DOWN}


def default_html_output(source_path: Path) -> Path:
    return source_path.with_name(f"{source_path.stem}.folded.html")


class DiffoldTextualApp(App[None]):
    CSS = """
    Screen { layout: vertical; }
    #topbar { height: 3; border: round #3a86ff; padding: 0 1; }
    #diff { height: 1fr; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("d", "unfold_down", "Unfold Down"),
        Binding("u", "unfold_up", "Unfold Up"),
        Binding("e", "expand_all", "Expand All"),
        Binding("n", "next_hunk", "Next Hunk"),
        Binding("p", "prev_hunk", "Prev Hunk"),
        Binding("h", "export_html", "Export HTML"),
    ]

    def __init__(
        self,
        source_path: Path,
        table: DiffTable,
        warnings: list[str],
        title: str | None = None,
        html_output: Path | None = None,
    ) -> None:
        super().__init__()
        self.source_path = source_path
        self.diff_table = table
        self.warnings = warnings
        self.report_title = title or source_path.name
        self.html_output = html_output or default_html_output(source_path)
        self._items: list[DisplayItem] = []

    def compose(self) -> ComposeResult:
        yield Header(show_clock=False)
        yield Static("", id="topbar")
        yield DataTable(id="diff", cursor_type="row", zebra_stripes=False)
        yield Footer()

    def on_mount(self) -> None:
        diff = self.query_one("#diff", DataTable)
        diff.add_columns("old", "new", "content")
        self._refresh_rows()
        diff.focus()

    def _refresh_topbar(self) -> None:
        topbar = self.query_one("#topbar", Static)
        topbar.update(
            f"{self.report_title}  rows {len(self.diff_table.rows)}  "
            f"hidden {self.diff_table.hidden_count()}  hunks {len(self.diff_table.hunks)}  "
            f"warnings {len(self.warnings)}"
        )

    def _refresh_rows(self, cursor_row: int | None = None) -> None:
        diff = self.query_one("#diff", DataTable)
        diff.clear()
        self._items = list(self.diff_table.display_items())
        for item in self._items:
            if item.control is not None:
                diff.add_row("", "", control_label(item.control))
            elif item.row is not None:
                row = item.row
                diff.add_row(
                    Text("" if row.x_lineno is None else str(row.x_lineno), style="dim"),
                    Text("" if row.y_lineno is None else str(row.y_lineno), style="dim"),
                    Text(op_prefix(row.op) + (row.text or ""), style=op_style(row.op)),
                )
        if cursor_row is not None and self._items:
            diff.move_cursor(row=min(cursor_row, len(self._items) - 1))
        self._refresh_topbar()

    def current_control(self) -> ControlRow | None:
        diff = self.query_one("#diff", DataTable)
        index = diff.cursor_row
        if index < 0 or index >= len(self._items):
            return None
        return self._items[index].control

    def _apply_unfold(self, control: ControlRow, action: str) -> None:
        diff = self.query_one("#diff", DataTable)
        cursor_row = diff.cursor_row
        survived = self.diff_table.unfold(control.hunk_id, action)
        logger.debug("Unfolded hunk %d (%s), survived=%s", control.hunk_id, action, survived)
        self._refresh_rows(cursor_row=cursor_row)

    def _unfold_current(self, want_down: bool) -> None:
        control = self.current_control()
        if control is None:
            self.notify("Move the cursor to a folded hunk first.", severity="warning")
            return
        for button in control.buttons:
            if (button.action in DOWN_ACTIONS) == want_down:
                self._apply_unfold(control, button.action)
                return
        self.notify("This hunk cannot unfold in that direction.", severity="warning")

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        control = self.current_control()
        if control is not None and control.buttons:
            self._apply_unfold(control, control.buttons[0].action)

    def action_unfold_down(self) -> None:
        self._unfold_current(want_down=True)

    def action_unfold_up(self) -> None:
        self._unfold_current(want_down=False)

    def action_expand_all(self) -> None:
        count = self.diff_table.unfold_all()
        self._refresh_rows(cursor_row=0)
        self.notify(f"Expanded {count} hunk(s).")

    def _control_positions(self) -> list[int]:
        return [index for index, item in enumerate(self._items) if item.is_control]

    def action_next_hunk(self) -> None:
        diff = self.query_one("#diff", DataTable)
        for index in self._control_positions():
            if index > diff.cursor_row:
                diff.move_cursor(row=index)
                return

    def action_prev_hunk(self) -> None:
        diff = self.query_one("#diff", DataTable)
        for index in reversed(self._control_positions()):
            if index < diff.cursor_row:
                diff.move_cursor(row=index)
                return

    def action_export_html(self) -> None:
        try:
            html = render_diff_table_html(self.diff_table, title=self.report_title)
            self.html_output.parent.mkdir(parents=True, exist_ok=True)
            self.html_output.write_text(html, encoding="utf-8")
        except OSError as error:
            self.notify(f"Export failed: {error}", severity="error")
            return
        logger.info("Wrote %s", self.html_output)
        self.notify(f"Wrote: {self.html_output}")
