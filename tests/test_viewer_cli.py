import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from diffold.viewer_cli import parse_view_args, run_view  # noqa: E402
from scripts.view_folded_diff import main as view_main  # noqa: E402


def make_doc() -> dict:
    rows = [{"op": "match", "xLineno": n, "yLineno": n, "text": f"line_{n} = {n}"} for n in range(1, 14)]
    rows.append({"op": "delete", "xLineno": 14, "text": "old"})
    rows.append({"op": "insert", "yLineno": 14, "text": "new"})
    rows.extend({"op": "match", "xLineno": n, "yLineno": n, "text": f"line_{n} = {n}"} for n in range(15, 30))
    return {"format": "diffold", "version": 1, "rows": rows}


class TestViewerCli(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.doc_path = self.tmp / "rows.json"
        self.doc_path.write_text(json.dumps(make_doc()), encoding="utf-8")

    def tearDown(self):
        self._tmp.cleanup()

    def _run(self, argv: list[str]) -> tuple[int, str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            exit_code = run_view(argv)
        return exit_code, stdout.getvalue(), stderr.getvalue()

    def test_parse_args_defaults(self):
        args = parse_view_args(["rows.json"])
        self.assertEqual(args.unfold_down, [])
        self.assertEqual(args.unfold_up, [])
        self.assertFalse(args.as_json)
        self.assertIsNone(args.max_context)

    def test_json_output(self):
        exit_code, stdout, _ = self._run([str(self.doc_path), "--json"])
        self.assertEqual(exit_code, 0)
        payload = json.loads(stdout)
        self.assertEqual(payload["warnings"], [])
        self.assertEqual(payload["hiddenRows"], 22)
        self.assertEqual(payload["hunks"][0]["header"], "@@ -11,7 +11,7 @@ ")

    def test_unfold_flags_apply_before_output(self):
        exit_code, stdout, _ = self._run([str(self.doc_path), "--json", "--unfold-down", "1", "--unfold-up", "0"])
        self.assertEqual(exit_code, 0)
        payload = json.loads(stdout)
        self.assertEqual(payload["hiddenRows"], 0)
        self.assertEqual(payload["hunks"], [])

    def test_overrides_change_policy(self):
        exit_code, stdout, _ = self._run([str(self.doc_path), "--json", "--max-context", "1", "--max-unfold", "5"])
        self.assertEqual(exit_code, 0)
        payload = json.loads(stdout)
        self.assertEqual(payload["policy"], {"maxContext": 1, "maxUnfoldChunk": 5})
        self.assertEqual(payload["hiddenRows"], 26)

    def test_unknown_hunk_id_exits_with_two(self):
        exit_code, _, stderr = self._run([str(self.doc_path), "--json", "--unfold-down", "9"])
        self.assertEqual(exit_code, 2)
        self.assertIn("[error]", stderr)

    def test_missing_input_exits_with_one(self):
        exit_code, _, stderr = self._run([str(self.tmp / "missing.json")])
        self.assertEqual(exit_code, 1)
        self.assertIn("[error] File not found", stderr)

    def test_unknown_file_in_diff_exits_with_one(self):
        diff_path = self.tmp / "change.diff"
        diff_path.write_text("--- a/src/a.py\n+++ b/src/a.py\n@@ -1 +1 @@\n-a\n+b\n", encoding="utf-8")
        exit_code, _, stderr = self._run([str(diff_path), "--json", "--file", "src/zzz.py"])
        self.assertEqual(exit_code, 1)
        self.assertIn("[error] File not found in diff: src/zzz.py", stderr)

    def test_invalid_override_exits_with_one(self):
        exit_code, _, stderr = self._run([str(self.doc_path), "--max-unfold", "0"])
        self.assertEqual(exit_code, 1)
        self.assertIn("[error]", stderr)

    def test_html_output_writes_file(self):
        output = self.tmp / "out" / "rows.html"
        exit_code, stdout, _ = self._run([str(self.doc_path), "--html", str(output), "--title", "UT"])
        self.assertEqual(exit_code, 0)
        self.assertIn("Wrote:", stdout)
        self.assertIn("<title>UT</title>", output.read_text(encoding="utf-8"))

    def test_rich_output_via_script(self):
        stdout = io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(io.StringIO()):
            exit_code = view_main([str(self.doc_path)])
        self.assertEqual(exit_code, 0)
        self.assertIn("@@ -11,7 +11,7 @@", stdout.getvalue())


if __name__ == "__main__":
    unittest.main()
