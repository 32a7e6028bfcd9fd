from __future__ import annotations

import json
from html import escape

from .control import ControlRow
from .rows import DiffRow
from .table import DiffTable

REPORT_CSS = """
body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif; margin: 24px; color: #1f2328; }
h1 { font-size: 18px; }
.summary { color: #59636e; font-size: 13px; margin-bottom: 12px; }
table.code-snippet.diff { border-collapse: collapse; width: 100%; font-family: ui-monospace, monospace; font-size: 12px; }
table.code-snippet.diff td { padding: 0 8px; white-space: pre; vertical-align: top; }
td.lineno { color: #8c959f; text-align: right; user-select: none; width: 1%; }
td.op { width: 1%; user-select: none; }
tr[data-op='insert'] { background: #e6ffec; }
tr[data-op='delete'] { background: #ffebe9; }
tr.ctrl { background: #ddf4ff; color: #59636e; }
td.fold-ctrl { width: 1%; text-align: center; }
button.fold-button { border: none; background: transparent; cursor: pointer; padding: 0 4px; }
button.fold-button.unfold::after { content: "\\2195"; }
button.fold-button.unfold-down::after { content: "\\2193"; }
button.fold-button.unfold-up::after { content: "\\2191"; }
"""

OP_MARKS = {"match": " ", "insert": "+", "delete": "-"}

# Mirrors DiffTable.unfold_down/unfold_up and compute_hunk_header so the page
# can keep unfolding after export.
FOLD_SCRIPT = """
(function () {
  const table = document.querySelector("table.code-snippet.diff");
  const stateNode = document.getElementById("fold-state-json");
  if (!table || !stateNode) {
    return;
  }
  let state = {};
  try {
    state = JSON.parse(stateNode.textContent || "{}");
  } catch (_error) {
    return;
  }
  const maxUnfold = Math.max(1, Number(table.dataset.maxUnfold || 20));
  const rows = Array.from(table.querySelectorAll("tr[data-row]"));
  const hunks = new Map();
  let prevId = null;
  for (const item of state.hunks || []) {
    hunks.set(item.id, {
      id: item.id,
      first: item.first,
      last: item.last,
      isStart: Boolean(item.isStart),
      isEnd: Boolean(item.isEnd),
      prev: prevId,
      next: null,
      ctrl: table.querySelector(`tr.ctrl[data-hunk='${item.id}']`),
    });
    if (prevId !== null) {
      hunks.get(prevId).next = item.id;
    }
    prevId = item.id;
  }

  const isHidden = (row) => row.style.display === "none";

  function lineno(row, key) {
    const value = Number(row.dataset[key] || 0);
    return value > 0 ? value : null;
  }

  function leader(hunk) {
    for (let i = hunk.last; i >= 0; i--) {
      const row = rows[i];
      if (row.hasAttribute("data-block-start")) {
        const code = row.querySelector("code");
        return code ? code.textContent : "";
      }
      if (row.hasAttribute("data-block-end")) {
        break;
      }
    }
    return "";
  }

  function header(hunk) {
    const end = hunk.next === null ? rows.length : hunks.get(hunk.next).first;
    let x = null;
    let y = null;
    let xLines = 0;
    let yLines = 0;
    for (let i = hunk.last + 1; i < end; i++) {
      const row = rows[i];
      if (isHidden(row)) {
        continue;
      }
      const rowX = lineno(row, "xLineno");
      const rowY = lineno(row, "yLineno");
      if (rowX !== null) {
        x = x === null ? rowX : x;
        xLines++;
      }
      if (rowY !== null) {
        y = y === null ? rowY : y;
        yLines++;
      }
    }
    if (x === null || y === null) {
      return "";
    }
    return `@@ -${x},${xLines} +${y},${yLines} @@ ${leader(hunk)}`;
  }

  function buttons(hunk) {
    if (!hunk.isStart && !hunk.isEnd && hunk.last - hunk.first <= maxUnfold) {
      return [["unfold", 2]];
    }
    if (hunk.isStart && !hunk.isEnd) {
      return [["unfold-up", 2]];
    }
    if (!hunk.isStart && hunk.isEnd) {
      return [["unfold-down", 2]];
    }
    return [["unfold-down", 1], ["unfold-up", 1]];
  }

  function renderCtrl(hunk) {
    if (hunk.ctrl) {
      hunk.ctrl.remove();
    }
    const size = hunk.last - hunk.first + 1;
    const ctrl = document.createElement("tr");
    ctrl.className = "ctrl";
    ctrl.dataset.hunk = String(hunk.id);
    ctrl.dataset.hidden = String(size);
    for (const [action, colSpan] of buttons(hunk)) {
      const cell = ctrl.insertCell();
      cell.className = "fold-ctrl";
      cell.colSpan = colSpan;
      const button = document.createElement("button");
      button.className = `fold-button ${action}`;
      button.type = "button";
      button.dataset.action = action;
      button.dataset.hunk = String(hunk.id);
      button.title = `Show up to ${Math.min(size, maxUnfold)} more rows`;
      cell.appendChild(button);
    }
    ctrl.insertCell().className = "op";
    const desc = ctrl.insertCell();
    desc.className = "hunk-desc";
    desc.textContent = header(hunk);
    rows[hunk.first].before(ctrl);
    hunk.ctrl = ctrl;
  }

  function refreshHeader(id) {
    const hunk = id === null ? null : hunks.get(id);
    const desc = hunk && hunk.ctrl ? hunk.ctrl.querySelector(".hunk-desc") : null;
    if (desc) {
      desc.textContent = header(hunk);
    }
  }

  function dissolve(hunk) {
    if (hunk.prev !== null) {
      hunks.get(hunk.prev).next = hunk.next;
    }
    if (hunk.next !== null) {
      hunks.get(hunk.next).prev = hunk.prev;
    }
    if (hunk.ctrl) {
      hunk.ctrl.remove();
    }
    hunks.delete(hunk.id);
  }

  function unfold(hunk, down) {
    const prev = hunk.prev;
    const stop = down ? hunk.last : hunk.first;
    let cursor = down ? hunk.first : hunk.last;
    for (let i = 0; i < maxUnfold; i++) {
      rows[cursor].style.display = "";
      if (cursor === stop) {
        break;
      }
      cursor += down ? 1 : -1;
    }
    if (cursor === stop) {
      rows[cursor].style.display = "";
      dissolve(hunk);
    } else {
      if (down) {
        hunk.first = cursor;
      } else {
        hunk.last = cursor;
      }
      renderCtrl(hunk);
    }
    refreshHeader(prev);
  }

  function updateSummary() {
    const hiddenNode = document.getElementById("hidden-count");
    const hunkNode = document.getElementById("hunk-count");
    if (hiddenNode) {
      hiddenNode.textContent = String(rows.filter(isHidden).length);
    }
    if (hunkNode) {
      hunkNode.textContent = String(hunks.size);
    }
  }

  table.addEventListener("click", (event) => {
    const button = event.target.closest("button.fold-button");
    if (!button) {
      return;
    }
    const hunk = hunks.get(Number(button.dataset.hunk));
    if (!hunk) {
      return;
    }
    unfold(hunk, button.dataset.action !== "unfold-up");
    updateSummary();
  });
})();
"""


def _lineno_cell(value: int | None) -> str:
    return "<td class='lineno'>{value}</td>".format(value="" if value is None else escape(str(value)))


def _render_row(row: DiffRow) -> str:
    attrs = [f"data-row='{row.index}'"]
    if row.op in OP_MARKS:
        attrs.append(f"data-op='{escape(row.op)}'")
    if row.x_lineno is not None:
        attrs.append(f"data-x-lineno='{row.x_lineno}'")
    if row.y_lineno is not None:
        attrs.append(f"data-y-lineno='{row.y_lineno}'")
    if row.block_start:
        attrs.append("data-block-start=''")
    if row.block_end:
        attrs.append("data-block-end=''")
    if not row.visible:
        attrs.append("style='display: none;'")
    code = "" if row.text is None else "<code>{text}</code>".format(text=escape(row.text))
    return (
        "<tr {attrs}>{x_lineno}{y_lineno}<td class='op'>{mark}</td><td class='code'>{code}</td></tr>".format(
            attrs=" ".join(attrs),
            x_lineno=_lineno_cell(row.x_lineno),
            y_lineno=_lineno_cell(row.y_lineno),
            mark=escape(OP_MARKS.get(row.op, "")),
            code=code,
        )
    )


def _render_control(control: ControlRow, max_unfold: int) -> str:
    cells: list[str] = []
    for button in control.buttons:
        cells.append(
            "<td class='fold-ctrl' colspan='{span}'>"
            "<button class='fold-button {action}' type='button' data-action='{action}' data-hunk='{hunk}' "
            "title='{title}'></button></td>".format(
                span=button.col_span,
                action=escape(button.action),
                hunk=control.hunk_id,
                title=escape(f"Show up to {min(control.hidden_count, max_unfold)} more rows"),
            )
        )
    return (
        "<tr class='ctrl' data-hunk='{hunk}' data-hidden='{hidden}'>{buttons}<td class='op'></td>"
        "<td class='hunk-desc'>{header}</td></tr>".format(
            hunk=control.hunk_id,
            hidden=control.hidden_count,
            buttons="".join(cells),
            header=escape(control.header or ""),
        )
    )


def render_diff_rows_html(table: DiffTable) -> str:
    controls = {hunk.first: hunk.control for hunk in table.hunks if hunk.control is not None}
    parts: list[str] = []
    for position, row in enumerate(table.rows):
        control = controls.get(position)
        if control is not None:
            parts.append(_render_control(control, table.policy.max_unfold_chunk))
        # hidden rows stay in the page; FOLD_SCRIPT reveals them on click
        parts.append(_render_row(row))
    return "\n".join(parts)


def render_diff_table_html(table: DiffTable, *, title: str, file_path: str | None = None) -> str:
    state = json.dumps(table.to_dict(), ensure_ascii=False).replace("</", "<\\/")
    return """<!DOCTYPE html>
<html lang='en'>
<head>
<meta charset='utf-8'>
<title>{title}</title>
<style>{css}</style>
</head>
<body>
<h1>{title}</h1>
<div class='summary'>{file_label}rows {rows} / hidden <span id='hidden-count'>{hidden}</span> / hunks <span id='hunk-count'>{hunks}</span></div>
<table class='code-snippet diff' data-max-context='{max_context}' data-max-unfold='{max_unfold}'>
<tbody>
{rows_html}
</tbody>
</table>
<script id='fold-state-json' type='application/json'>{state}</script>
<script>{script}</script>
</body>
</html>
""".format(
        title=escape(title),
        css=REPORT_CSS,
        file_label=escape(f"{file_path} / ") if file_path else "",
        rows=len(table.rows),
        hidden=table.hidden_count(),
        hunks=len(table.hunks),
        max_context=table.policy.max_context,
        max_unfold=table.policy.max_unfold_chunk,
        rows_html=render_diff_rows_html(table),
        state=state,
        script=FOLD_SCRIPT,
    )
