"""
Unit tests for parser.py

Tests tree-sitter parser initialization, byte parsing, diagnostics and file
parsing.
"""

import unittest
from pathlib import Path
from unittest import mock

from extraction import parser as parser_module
from extraction.errors import FrontEndUnavailable, PathNotFound
from extraction.models import SourceUnit
from extraction.parser import (
    build_tree,
    collect_syntax_errors,
    count_error_nodes,
    create_parser,
    get_language,
    is_trivia_only,
    parse_bytes,
    parse_file,
    parse_text,
)


class TestParserInitialization(unittest.TestCase):
    """Test parser creation and initialization."""

    def test_create_parser(self):
        """Test that create_parser returns a parser with a language set."""
        parser = create_parser()
        self.assertIsNotNone(parser)
        self.assertIsNotNone(parser.language)

    def test_missing_grammar_raises_front_end_unavailable(self):
        """A missing grammar package is a configuration error."""
        get_language.cache_clear()
        try:
            with mock.patch.object(
                parser_module.importlib,
                "import_module",
                side_effect=ImportError("No module named 'tree_sitter_powershell'"),
            ):
                with self.assertRaises(FrontEndUnavailable):
                    create_parser()
        finally:
            get_language.cache_clear()

    def test_front_end_unavailable_is_not_a_syntax_error(self):
        get_language.cache_clear()
        try:
            with mock.patch.object(
                parser_module.importlib, "import_module", side_effect=ImportError("gone")
            ):
                with self.assertRaises(RuntimeError):
                    parse_text("function Foo { }")
        finally:
            get_language.cache_clear()


class TestParseBytes(unittest.TestCase):
    """Test parsing raw bytes of PowerShell code."""

    def test_parse_simple_function(self):
        tree = parse_bytes(b"function Get-Foo { 'foo' }")

        self.assertIsNotNone(tree)
        self.assertEqual(tree.root_node.type, "program")
        self.assertFalse(tree.root_node.has_error)

    def test_parse_empty(self):
        tree = parse_bytes(b"")

        self.assertIsNotNone(tree)
        self.assertEqual(collect_syntax_errors(tree), [])

    def test_parse_invalid_type(self):
        """Test that parse_bytes raises TypeError for non-bytes input."""
        with self.assertRaises(TypeError):
            parse_bytes("not bytes")

    def test_parse_with_errors_returns_tree(self):
        """Broken input is recovered, never raised."""
        tree = parse_bytes(b"function Get-Good { 'ok' }\n) } )\n")

        self.assertIsNotNone(tree)
        self.assertTrue(tree.root_node.has_error)

    def test_parse_text_encodes_utf8(self):
        tree = parse_text("function Get-Foo { 'café' }")
        self.assertIsNotNone(tree)
        self.assertFalse(tree.root_node.has_error)


class TestSyntaxDiagnostics(unittest.TestCase):
    """Test syntax diagnostic collection."""

    def test_clean_source_has_no_diagnostics(self):
        tree = parse_text("function Get-Foo($a) { $a }\nfilter Get-Bar { $_ }\n")
        self.assertEqual(collect_syntax_errors(tree), [])
        self.assertEqual(count_error_nodes(tree), 0)

    def test_broken_source_has_diagnostics(self):
        tree = parse_text("function Get-Good { 'ok' }\n) } )\n")
        diagnostics = collect_syntax_errors(tree)

        self.assertGreater(len(diagnostics), 0)
        self.assertEqual(count_error_nodes(tree), len(diagnostics))
        for diagnostic in diagnostics:
            self.assertIn(diagnostic.kind, ("error", "missing"))
            self.assertGreaterEqual(diagnostic.line, 1)
            self.assertGreaterEqual(diagnostic.column, 1)

    def test_blank_and_comment_only_sources_are_clean(self):
        sources = [
            "",
            "\n",
            "   \n",
            "# just a comment\n",
            "#requires -Version 5.1\n\n<#\n.SYNOPSIS\n  Nothing here\n#>\n",
        ]
        for source in sources:
            with self.subTest(source=source):
                tree = parse_text(source)
                self.assertEqual(collect_syntax_errors(tree), [])

    def test_is_trivia_only(self):
        self.assertTrue(is_trivia_only(b""))
        self.assertTrue(is_trivia_only(b"  \r\n\t\x00"))
        self.assertTrue(is_trivia_only(b"# note\n  # indented\n"))
        self.assertTrue(is_trivia_only(b"<# block\n function Not-Code { } #>\n"))
        self.assertFalse(is_trivia_only(b"# note\nGet-Item .\n"))
        self.assertFalse(is_trivia_only(b") } )"))

    def test_absent_tree_reports_no_tree(self):
        diagnostics = collect_syntax_errors(None)
        self.assertEqual(len(diagnostics), 1)
        self.assertEqual(diagnostics[0].kind, "no_tree")

    def test_build_tree_attaches_diagnostics_to_new_unit(self):
        unit = SourceUnit(path="/tmp/x.ps1", raw_text="function Get-Good { }\n) } )\n")
        tree, parsed = build_tree(unit)

        self.assertIsNotNone(tree)
        self.assertEqual(unit.syntax_errors, ())
        self.assertGreater(len(parsed.syntax_errors), 0)
        self.assertEqual(parsed.raw_text, unit.raw_text)
        self.assertEqual(parsed.path, unit.path)


class TestParseFile(unittest.TestCase):
    """Test parsing PowerShell files from disk."""

    def setUp(self):
        self.fixtures_dir = Path(__file__).parent / "fixtures"
        self.assertTrue(self.fixtures_dir.exists(),
                        f"Fixtures directory not found: {self.fixtures_dir}")

    def test_parse_simple_functions_file(self):
        tree, unit = parse_file(str(self.fixtures_dir / "simple_functions.ps1"))

        self.assertEqual(tree.root_node.type, "program")
        self.assertFalse(tree.root_node.has_error)
        self.assertEqual(unit.syntax_errors, ())
        self.assertGreater(len(unit.raw_text), 0)

    def test_parse_broken_syntax_file(self):
        """Test parsing file with syntax errors (error resilience)."""
        tree, unit = parse_file(str(self.fixtures_dir / "broken_syntax.ps1"))

        self.assertIsNotNone(tree)
        self.assertTrue(tree.root_node.has_error)
        self.assertGreater(len(unit.syntax_errors), 0)

    def test_parse_nonexistent_file(self):
        with self.assertRaises(PathNotFound):
            parse_file(str(self.fixtures_dir / "nonexistent.ps1"))

    def test_raw_text_matches_file(self):
        file_path = self.fixtures_dir / "nested.ps1"
        _, unit = parse_file(str(file_path))
        self.assertEqual(unit.raw_text, file_path.read_text(encoding="utf-8"))


if __name__ == "__main__":
    unittest.main()
