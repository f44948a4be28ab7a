import io
import os
import shutil
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hrvreport import cli


class TestParser(unittest.TestCase):

    def test_parser_defaults(self):
        args = cli.build_parser().parse_args([])
        self.assertEqual(args.store, Path("hrv_state"))
        self.assertIsNone(args.config)
        self.assertIsNone(args.input)
        self.assertEqual(args.exclude, [])
        self.assertEqual(args.add, [])
        self.assertEqual(args.page_size, 0)
        self.assertFalse(args.list_kinds)

    def test_repeatable_options(self):
        args = cli.build_parser().parse_args(
            ["--add", "poincare", "--add", "histogram", "--exclude", "2", "--exclude", "5"]
        )
        self.assertEqual(args.add, ["poincare", "histogram"])
        self.assertEqual(args.exclude, [2, 5])

    def test_invalid_orientation(self):
        with self.assertRaises(SystemExit):
            with redirect_stderr(io.StringIO()):
                cli.build_parser().parse_args(["--orientation", "diagonal"])

    def test_session_selector(self):
        self.assertEqual(cli._parse_session("restSessionsFree|12"), ("restSessionsFree", 12))
        self.assertEqual(cli._parse_session("restSessionsFree|abc"), ("restSessionsFree", "abc"))
        with self.assertRaises(ValueError):
            cli._parse_session("restSessionsFree")


class TestMain(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.store_dir = os.path.join(self.temp_dir, "state")

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def run_main(self, *argv):
        out = io.StringIO()
        with redirect_stdout(out):
            code = cli.main(["--store", self.store_dir, *argv])
        return code, out.getvalue()

    def test_list_kinds(self):
        code, output = self.run_main("--list-kinds")
        self.assertEqual(code, 0)
        self.assertIn("poincare", output)
        self.assertIn("comprehensive_user_report", output)

    def test_full_run(self):
        rr_path = os.path.join(self.temp_dir, "rr.txt")
        with open(rr_path, "w", encoding="utf-8") as f:
            f.write("\n".join(str(800 + (i % 7) * 10) for i in range(100)))
        pdf_path = os.path.join(self.temp_dir, "report.pdf")
        csv_path = os.path.join(self.temp_dir, "intervals.csv")

        code, output = self.run_main(
            "--input", rr_path,
            "--exclude", "0",
            "--add", "poincare",
            "--add", "histogram",
            "--add", "general_summary",
            "--page-size", "2",
            "--pdf", pdf_path,
            "--intervals-csv", csv_path,
        )

        self.assertEqual(code, 0, output)
        self.assertTrue(os.path.exists(pdf_path))
        self.assertIn("Wrote 99 interval(s)", output)
        self.assertIn("[success] Loaded 100 RR intervals.", output)

        # Layout persisted in the store directory
        self.assertTrue(os.path.exists(os.path.join(self.store_dir, "reportState.json")))

    def test_failed_load_exit_code(self):
        code, output = self.run_main("--input", os.path.join(self.temp_dir, "missing.txt"))
        self.assertEqual(code, 1)
        self.assertIn("[error]", output)

    def test_missing_config_file_is_a_usage_error(self):
        missing = os.path.join(self.temp_dir, "missing.json")
        err = io.StringIO()
        with self.assertRaises(SystemExit) as ctx:
            with redirect_stderr(err):
                cli.main(["--store", self.store_dir, "--config", missing])
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("Config file not found", err.getvalue())

    def test_invalid_config_file_is_a_usage_error(self):
        bad = os.path.join(self.temp_dir, "bad.json")
        with open(bad, "w", encoding="utf-8") as f:
            f.write('{"histogram_rule": 12, "no_such_option": true}')
        with self.assertRaises(SystemExit) as ctx:
            with redirect_stderr(io.StringIO()):
                cli.main(["--store", self.store_dir, "--config", bad])
        self.assertEqual(ctx.exception.code, 2)


if __name__ == "__main__":
    unittest.main()
