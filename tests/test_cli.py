"""
Unit tests for the CLI module.

Tests the sdl command-line interface: schema checks, document validation,
JSON Schema export and input parsing.
"""

import json
import tempfile
import unittest
from pathlib import Path

import typer
from typer.testing import CliRunner

from schema_dsl import __version__
from schema_dsl.cli import app, parse_input

runner = CliRunner()

USER_SCHEMA = '(username:string[3,20] regex("^[a-z_]+$"), age?:int[0,150]=30)'


class TestParseInput(unittest.TestCase):
    """Tests for --input parsing."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_parse_input_none(self):
        self.assertEqual(parse_input(None), {})

    def test_parse_input_json_string(self):
        self.assertEqual(parse_input('{"key": "value", "count": 5}'), {"key": "value", "count": 5})

    def test_parse_input_non_object_json(self):
        self.assertEqual(parse_input("[1, 2]"), [1, 2])

    def test_parse_input_json_file(self):
        path = self.dir / "input.json"
        path.write_text('{"username": "ada"}')
        self.assertEqual(parse_input(f"@{path}"), {"username": "ada"})

    def test_parse_input_yaml_file(self):
        path = self.dir / "input.yaml"
        path.write_text("username: ada\ntags:\n  - a\n  - b\n")
        self.assertEqual(parse_input(f"@{path}"), {"username": "ada", "tags": ["a", "b"]})

    def test_parse_input_missing_file(self):
        with self.assertRaises(typer.Exit):
            parse_input(f"@{self.dir / 'missing.json'}")

    def test_parse_input_invalid_json(self):
        with self.assertRaises(typer.Exit):
            parse_input("{not json")


class TestCommands(unittest.TestCase):
    """Tests for the check, validate and export commands."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)
        self.schema_file = self.write("user.sdl", USER_SCHEMA)

    def tearDown(self):
        self.tmp.cleanup()

    def write(self, name, content):
        path = self.dir / name
        path.write_text(content)
        return path

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn(f"sdl {__version__}", result.output)

    def test_check_ok(self):
        result = runner.invoke(app, ["check", str(self.schema_file)])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("OK (2 field(s))", result.output)

    def test_check_verbose_prints_canonical_source(self):
        result = runner.invoke(app, ["check", str(self.schema_file), "-v"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("age?:int [0,150]=30", result.output)

    def test_check_semantic_error(self):
        bad = self.write("bad.sdl", "(age:int[0,150]=200)")
        result = runner.invoke(app, ["check", str(bad)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("semantic error at 'age'", result.output)

    def test_check_parse_error(self):
        bad = self.write("bad.sdl", "(age int)")
        result = runner.invoke(app, ["check", str(bad)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("parse error at offset 5", result.output)

    def test_check_missing_file(self):
        result = runner.invoke(app, ["check", str(self.dir / "nope.sdl")])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("File not found", result.output)

    def test_validate_applies_defaults(self):
        result = runner.invoke(
            app, ["validate", str(self.schema_file), "--input", '{"username": "ada"}']
        )
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(json.loads(result.output), {"username": "ada", "age": 30})

    def test_validate_reports_all_errors(self):
        result = runner.invoke(
            app, ["validate", str(self.schema_file), "--input", '{"username": "A", "age": 200}']
        )
        self.assertEqual(result.exit_code, 1)
        errors = json.loads(result.output)
        self.assertEqual(
            [(e["path"], e["kind"]) for e in errors],
            [
                ("username", "length_out_of_range"),
                ("username", "regex_mismatch"),
                ("age", "range_out_of_range"),
            ],
        )

    def test_validate_input_file(self):
        data = self.write("doc.yaml", "username: grace\nage: 40\n")
        result = runner.invoke(app, ["validate", str(self.schema_file), "-i", f"@{data}"])
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(json.loads(result.output), {"username": "grace", "age": 40})

    def test_validate_unknown_keys_ignored_by_default(self):
        result = runner.invoke(
            app, ["validate", str(self.schema_file), "--input", '{"username": "ada", "x": 1}']
        )
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(json.loads(result.output), {"username": "ada", "x": 1, "age": 30})

    def test_validate_unknown_keys_strip(self):
        result = runner.invoke(
            app,
            [
                "validate",
                str(self.schema_file),
                "--input",
                '{"username": "ada", "x": 1}',
                "--unknown-keys",
                "strip",
            ],
        )
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(json.loads(result.output), {"username": "ada", "age": 30})

    def test_validate_unknown_keys_reject(self):
        result = runner.invoke(
            app,
            [
                "validate",
                str(self.schema_file),
                "--input",
                '{"username": "ada", "usernam": 1}',
                "--unknown-keys",
                "reject",
            ],
        )
        self.assertEqual(result.exit_code, 1)
        errors = json.loads(result.output)
        self.assertEqual(errors[0]["kind"], "unknown_field")
        self.assertEqual(errors[0]["expected"], ["username"])

    def test_validate_non_object_input(self):
        result = runner.invoke(app, ["validate", str(self.schema_file), "--input", "[1]"])
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(json.loads(result.output)[0]["kind"], "type_mismatch")

    def test_validate_invalid_json(self):
        result = runner.invoke(app, ["validate", str(self.schema_file), "--input", "{bad"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Invalid JSON", result.output)

    def test_export(self):
        result = runner.invoke(app, ["export", str(self.schema_file)])
        self.assertEqual(result.exit_code, 0)
        document = json.loads(result.output)
        self.assertEqual(document["required"], ["username"])
        self.assertEqual(document["properties"]["age"]["default"], 30)


if __name__ == "__main__":
    unittest.main()
