import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from diffold.blocks import BLANK_SCORE, annotate_blocks, score_indent  # noqa: E402
from diffold.rows import DiffRow  # noqa: E402


def make_code_rows(lines: list[str | None]) -> list[DiffRow]:
    rows = []
    for index, text in enumerate(lines):
        op = "match" if text is not None else "other"
        rows.append(DiffRow(index=index, op=op, x_lineno=index + 1, y_lineno=index + 1, text=text))
    return rows


class TestScoreIndent(unittest.TestCase):
    def test_spaces_and_tabs_are_weighted(self):
        self.assertEqual(score_indent("x = 1"), 0)
        self.assertEqual(score_indent("    return x"), 4)
        self.assertEqual(score_indent("\treturn x"), 4)
        self.assertEqual(score_indent(" \t x"), 6)

    def test_line_breaks_do_not_count(self):
        self.assertEqual(score_indent("  \r\nx"), 2)

    def test_blank_lines_score_infinite(self):
        self.assertEqual(score_indent(""), BLANK_SCORE)
        self.assertEqual(score_indent("   "), BLANK_SCORE)
        self.assertEqual(score_indent("\t\n"), BLANK_SCORE)


class TestAnnotateBlocks(unittest.TestCase):
    def test_marks_block_start_before_first_indented_line(self):
        rows = make_code_rows(["def f():", "    return 1", "", "x = 2"])
        annotate_blocks(rows)
        self.assertTrue(rows[0].block_start)
        self.assertFalse(any(row.block_start for row in rows[1:]))
        self.assertFalse(any(row.block_end for row in rows))

    def test_marks_block_end_before_blank_line_after_top_level_line(self):
        rows = make_code_rows(["func f() {", "\treturn 1", "}", "", "var x = 2"])
        annotate_blocks(rows)
        self.assertTrue(rows[0].block_start)
        self.assertTrue(rows[2].block_end)
        self.assertFalse(rows[3].block_end)

    def test_structural_rows_are_skipped_without_resetting_state(self):
        rows = make_code_rows(["class A:", None, "    pass"])
        annotate_blocks(rows)
        # the row right before the indented line is the structural one
        self.assertTrue(rows[1].block_start)
        self.assertFalse(rows[0].block_start)

    def test_first_row_has_no_predecessor_to_mark(self):
        rows = make_code_rows(["    indented", "x"])
        annotate_blocks(rows)
        self.assertFalse(any(row.block_start or row.block_end for row in rows))


if __name__ == "__main__":
    unittest.main()
