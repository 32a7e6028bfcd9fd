import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from diffold.control import FoldButton  # noqa: E402
from diffold.policy import FoldPolicy  # noqa: E402
from diffold.rows import DiffRow  # noqa: E402
from diffold.table import DiffTable  # noqa: E402


def make_rows(ops: str, texts: dict[int, str] | None = None) -> list[DiffRow]:
    rows: list[DiffRow] = []
    x_lineno = 1
    y_lineno = 1
    for index, code in enumerate(ops):
        text = (texts or {}).get(index, f"v{index} = {index}")
        if code == "m":
            rows.append(DiffRow(index, "match", x_lineno, y_lineno, text))
            x_lineno += 1
            y_lineno += 1
        elif code == "d":
            rows.append(DiffRow(index, "delete", x_lineno, None, text))
            x_lineno += 1
        elif code == "i":
            rows.append(DiffRow(index, "insert", None, y_lineno, text))
            y_lineno += 1
        else:
            rows.append(DiffRow(index, "other"))
    return rows


def hidden_rows(table: DiffTable) -> list[int]:
    return [index for index, row in enumerate(table.rows) if not row.visible]


class TestDiffTableConstruction(unittest.TestCase):
    def test_end_to_end_example(self):
        table = DiffTable(make_rows("m" * 13 + "di" + "m" * 15), FoldPolicy(max_context=3, max_unfold_chunk=20))
        hunks = list(table.hunks)
        self.assertEqual(len(hunks), 2)

        top, bottom = hunks
        self.assertTrue(top.is_start)
        self.assertFalse(top.is_end)
        self.assertEqual((top.first, top.last), (0, 9))
        self.assertEqual(top.control.buttons, (FoldButton("unfold-up", 2),))
        self.assertEqual(top.control.header, "@@ -11,7 +11,7 @@ ")

        self.assertFalse(bottom.is_start)
        self.assertTrue(bottom.is_end)
        self.assertEqual((bottom.first, bottom.last), (18, 29))
        self.assertEqual(bottom.control.buttons, (FoldButton("unfold-down", 2),))
        self.assertIsNone(bottom.control.header)

        self.assertEqual(hidden_rows(table), list(range(0, 10)) + list(range(18, 30)))

    def test_interior_hunk_of_seven_rows_stays_visible(self):
        table = DiffTable(make_rows("d" + "m" * 7 + "i"))
        self.assertEqual(len(table.hunks), 0)
        self.assertEqual(hidden_rows(table), [])

    def test_interior_hunk_of_eight_rows_hides_two(self):
        table = DiffTable(make_rows("d" + "m" * 8 + "i"))
        (hunk,) = list(table.hunks)
        self.assertEqual(hidden_rows(table), [4, 5])
        self.assertEqual(hunk.control.buttons, (FoldButton("unfold", 2),))
        self.assertEqual(hunk.control.header, "@@ -7,3 +6,4 @@ ")
        self.assertEqual(hunk.control.hidden_count, 2)

    def test_start_hunk_keeps_only_trailing_context_and_finds_leader(self):
        texts = {0: "def f():"}
        texts.update({index: f"    x{index} = {index}" for index in range(1, 10)})
        texts[10] = "    return x1"
        table = DiffTable(make_rows("m" * 10 + "i", texts))
        (hunk,) = list(table.hunks)
        self.assertEqual((hunk.first, hunk.last), (0, 6))
        self.assertEqual(hidden_rows(table), list(range(0, 7)))
        self.assertEqual(hunk.control.header, "@@ -8,3 +8,4 @@ def f():")

    def test_whole_table_match_folds_everything(self):
        table = DiffTable(make_rows("m" * 5))
        (hunk,) = list(table.hunks)
        self.assertEqual(hidden_rows(table), [0, 1, 2, 3, 4])
        self.assertEqual(hunk.control.buttons, (FoldButton("unfold-down", 1), FoldButton("unfold-up", 1)))
        self.assertIsNone(hunk.control.header)

    def test_large_interior_hunk_gets_two_buttons(self):
        table = DiffTable(make_rows("d" + "m" * 40 + "i"))
        (hunk,) = list(table.hunks)
        self.assertEqual(hunk.span, 33)
        self.assertEqual(hunk.control.buttons, (FoldButton("unfold-down", 1), FoldButton("unfold-up", 1)))

    def test_dropped_hunk_is_unlinked_and_predecessor_header_spans_it(self):
        # A (start, folded) / B (interior, 5 rows, dropped) / C (end, folded)
        table = DiffTable(make_rows("m" * 10 + "d" + "m" * 5 + "i" + "m" * 10))
        first, last = list(table.hunks)
        self.assertEqual(first.next, last.id)
        self.assertEqual(last.prev, first.id)
        # rows 7..19 are visible between the two folds
        self.assertEqual(first.control.header, "@@ -8,12 +8,12 @@ ")

    def test_every_hidden_row_belongs_to_one_live_hunk(self):
        table = DiffTable(make_rows("m" * 12 + "d" + "m" * 30 + "ii" + "m" * 9 + "d" + "m" * 25))
        owned: list[int] = []
        for hunk in table.hunks:
            owned.extend(range(hunk.first, hunk.last + 1))
        self.assertEqual(sorted(owned), hidden_rows(table))

    def test_display_items_place_control_before_first_hidden_row(self):
        table = DiffTable(make_rows("m" * 13 + "di" + "m" * 15))
        items = list(table.display_items())
        self.assertTrue(items[0].is_control)
        self.assertEqual([item.row.index for item in items[1:9]], list(range(10, 18)))
        self.assertTrue(items[9].is_control)
        self.assertEqual(len(items), 10)


class TestUnfold(unittest.TestCase):
    def test_hidden_range_of_one_chunk_dissolves_in_one_call(self):
        table = DiffTable(make_rows("i" + "m" * 23))
        (hunk,) = list(table.hunks)
        self.assertEqual(hunk.size, 20)
        self.assertFalse(table.unfold_down(hunk.id))
        self.assertEqual(len(table.hunks), 0)
        self.assertEqual(hidden_rows(table), [])

    def test_hidden_range_of_one_chunk_dissolves_upward(self):
        table = DiffTable(make_rows("m" * 23 + "d"))
        (hunk,) = list(table.hunks)
        self.assertEqual(hunk.size, 20)
        self.assertFalse(table.unfold_up(hunk.id))
        self.assertEqual(hidden_rows(table), [])

    def test_oversized_range_needs_two_calls(self):
        table = DiffTable(make_rows("i" + "m" * 28))
        (hunk,) = list(table.hunks)
        self.assertEqual(hunk.size, 25)
        self.assertTrue(table.unfold_down(hunk.id))
        self.assertEqual((hunk.first, hunk.last), (24, 28))
        self.assertEqual(hidden_rows(table), [24, 25, 26, 27, 28])
        self.assertEqual(hunk.control.hidden_count, 5)
        self.assertFalse(table.unfold_down(hunk.id))
        self.assertEqual(hidden_rows(table), [])

    def test_unfold_up_moves_last(self):
        table = DiffTable(make_rows("m" * 40 + "d"))
        (hunk,) = list(table.hunks)
        self.assertEqual((hunk.first, hunk.last), (0, 36))
        self.assertTrue(table.unfold_up(hunk.id))
        self.assertEqual((hunk.first, hunk.last), (0, 16))
        self.assertEqual(hidden_rows(table), list(range(0, 17)))

    def test_unfold_refreshes_predecessor_header(self):
        table = DiffTable(make_rows("m" * 10 + "d" + "m" * 30 + "i" + "mm"))
        first, second = list(table.hunks)
        self.assertEqual(first.control.header, "@@ -8,7 +8,6 @@ ")
        self.assertEqual(second.control.header, "@@ -39,5 +38,6 @@ ")
        self.assertEqual(len(second.control.buttons), 2)

        self.assertTrue(table.unfold_down(second.id))
        self.assertEqual((second.first, second.last), (34, 37))
        self.assertEqual(first.control.header, "@@ -8,27 +8,26 @@ ")
        self.assertEqual(second.control.header, "@@ -39,5 +38,6 @@ ")
        self.assertEqual(second.control.buttons, (FoldButton("unfold", 2),))

        self.assertFalse(table.unfold_down(second.id))
        self.assertIsNone(first.next)
        self.assertEqual(first.control.header, "@@ -8,36 +8,36 @@ ")

    def test_dissolved_hunk_is_unreachable(self):
        table = DiffTable(make_rows("i" + "m" * 10))
        (hunk,) = list(table.hunks)
        table.unfold_down(hunk.id)
        self.assertIsNone(hunk.control)
        with self.assertRaises(LookupError):
            table.unfold_down(hunk.id)

    def test_unfold_dispatches_by_button_action(self):
        table = DiffTable(make_rows("m" * 40 + "d"))
        (hunk,) = list(table.hunks)
        table.unfold(hunk.id, hunk.control.buttons[0].action)
        self.assertEqual(hunk.last, 16)
        with self.assertRaises(ValueError):
            table.unfold(hunk.id, "sideways")

    def test_unfold_all_reveals_every_row(self):
        table = DiffTable(make_rows("m" * 50 + "d" + "m" * 60 + "i" + "m" * 45))
        self.assertEqual(len(table.hunks), 3)
        self.assertEqual(table.unfold_all(), 3)
        self.assertEqual(table.hidden_count(), 0)
        self.assertEqual(len(table.hunks), 0)

    def test_rebuild_is_idempotent(self):
        table = DiffTable(make_rows("m" * 10 + "d" + "m" * 30 + "i" + "mm"))
        for hunk in table.hunks:
            first = table.rebuild_control(hunk.id)
            second = table.rebuild_control(hunk.id)
            self.assertEqual(first, second)


class TestSnapshot(unittest.TestCase):
    def test_to_dict_reports_hunks_and_visible_rows(self):
        table = DiffTable(make_rows("m" * 13 + "di" + "m" * 15))
        payload = table.to_dict()
        self.assertEqual(payload["policy"], {"maxContext": 3, "maxUnfoldChunk": 20})
        self.assertEqual(payload["rows"], 30)
        self.assertEqual(payload["hiddenRows"], 22)
        self.assertEqual(payload["visibleRows"], list(range(10, 18)))
        self.assertEqual(
            payload["hunks"][0],
            {
                "id": 0,
                "first": 0,
                "last": 9,
                "isStart": True,
                "isEnd": False,
                "hidden": 10,
                "buttons": [{"action": "unfold-up", "colSpan": 2}],
                "header": "@@ -11,7 +11,7 @@ ",
            },
        )


if __name__ == "__main__":
    unittest.main()
