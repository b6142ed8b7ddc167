"""Tests for the run_extract command line entry point."""

import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from extraction import parser as parser_module
from extraction.parser import get_language
from run_extract import (
    EXIT_CONFIG_ERROR,
    EXIT_OK,
    EXIT_PATH_ERROR,
    main,
    parse_args,
    read_input_paths,
    run,
)

FIXTURES_DIR = Path(__file__).parent / "extraction" / "tests" / "fixtures"


def _fixture(name: str) -> str:
    return str(FIXTURES_DIR / name)


def _run(argv, stdin_text: str = ""):
    out = io.StringIO()
    code = run(parse_args(argv), stdin=io.StringIO(stdin_text), stdout=out)
    return code, out.getvalue()


class TestRunExtract(unittest.TestCase):
    def test_jsonl_output_top_level(self):
        code, output = _run([_fixture("scenario.ps1")])
        records = [json.loads(line) for line in output.splitlines()]

        self.assertEqual(code, EXIT_OK)
        self.assertEqual([r["name"] for r in records], ["Alpha", "Gamma"])
        self.assertEqual(records[0]["parameter_names"], ["x", "y"])
        self.assertTrue(records[1]["is_alternate_form"])

    def test_include_nested_json(self):
        code, output = _run([_fixture("scenario.ps1"), "--include-nested", "--format", "json"])

        self.assertEqual(code, EXIT_OK)
        self.assertEqual([r["name"] for r in json.loads(output)], ["Alpha", "Beta", "Gamma"])

    def test_table_output(self):
        code, output = _run([_fixture("mixed_forms.ps1"), "--format", "table"])
        lines = output.splitlines()

        self.assertEqual(code, EXIT_OK)
        self.assertTrue(lines[0].startswith("NAME"))
        self.assertIn("Select-Even", lines[1])
        self.assertIn("filter", lines[1])

    def test_syntax_errors_still_succeed(self):
        code, output = _run([_fixture("broken_syntax.ps1")])
        self.assertEqual(code, EXIT_OK)
        self.assertEqual(json.loads(output.splitlines()[0])["name"], "Get-Good")

    def test_missing_path_is_distinguishable(self):
        code, output = _run([_fixture("nonexistent.ps1"), _fixture("scenario.ps1")])

        self.assertEqual(code, EXIT_PATH_ERROR)
        self.assertEqual(len(output.splitlines()), 2)

    def test_paths_from_stdin(self):
        stdin_text = f"{_fixture('nested.ps1')}\n\n{_fixture('scenario.ps1')}\n"
        code, output = _run(["-"], stdin_text)

        self.assertEqual(code, EXIT_OK)
        self.assertEqual(
            [json.loads(line)["name"] for line in output.splitlines()],
            ["Outer-Function", "Alpha", "Gamma"],
        )

    def test_directory_input(self):
        code, output = _run([_fixture("sample_module")])
        names = sorted(json.loads(line)["name"] for line in output.splitlines())

        self.assertEqual(code, EXIT_OK)
        self.assertEqual(names, ["Format-Helper", "Get-Tool"])

    def test_output_file_and_report(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            output_file = Path(tmpdir) / "out" / "defs.jsonl"
            report_dir = Path(tmpdir) / "reports"
            code, stdout = _run([
                _fixture("nested.ps1"),
                _fixture("nonexistent.ps1"),
                "--output", str(output_file),
                "--report-dir", str(report_dir),
            ])

            self.assertEqual(code, EXIT_PATH_ERROR)
            self.assertEqual(stdout, "")
            self.assertEqual(len(output_file.read_text(encoding="utf-8").splitlines()), 1)
            reports = list(report_dir.glob("*.json"))
            self.assertEqual(len(reports), 1)
            report = json.loads(reports[0].read_text(encoding="utf-8"))
            self.assertEqual(report["status"], "failed")
            self.assertEqual(report["stats"]["files_processed"], 1)

    def test_config_file_enables_nesting(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config = Path(tmpdir) / "scan.yml"
            config.write_text("include_nested: true\n", encoding="utf-8")
            code, output = _run([_fixture("nested.ps1"), "--config", str(config)])

        self.assertEqual(code, EXIT_OK)
        self.assertEqual(len(output.splitlines()), 3)


class TestReadInputPaths(unittest.TestCase):
    def test_dash_expands_stdin(self):
        paths = read_input_paths(["a.ps1", "-", "d.ps1"], io.StringIO("b.ps1\n  \nc.ps1\n"))
        self.assertEqual(paths, ["a.ps1", "b.ps1", "c.ps1", "d.ps1"])


class TestMain(unittest.TestCase):
    def test_fail_fast_returns_path_error(self):
        with mock.patch("sys.stdout", new_callable=io.StringIO):
            code = main([_fixture("nonexistent.ps1"), "--fail-fast"])
        self.assertEqual(code, EXIT_PATH_ERROR)

    def test_front_end_unavailable_returns_config_error(self):
        get_language.cache_clear()
        try:
            with mock.patch.object(
                parser_module.importlib, "import_module", side_effect=ImportError("gone")
            ):
                code = main([_fixture("nested.ps1")])
        finally:
            get_language.cache_clear()
        self.assertEqual(code, EXIT_CONFIG_ERROR)

    def test_strict_config_error_returns_config_error(self):
        with mock.patch.dict("os.environ", {"STRICT_CONFIG_VALIDATION": "1"}):
            code = main([_fixture("nested.ps1"), "--config", "/definitely/missing.yml"])
        self.assertEqual(code, EXIT_CONFIG_ERROR)


if __name__ == "__main__":
    unittest.main()
