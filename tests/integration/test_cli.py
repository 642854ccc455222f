"""Integration tests for the click CLI."""

import json
import os
import tempfile
import unittest

from click.testing import CliRunner

from src.presentation.cli.commands import cli
from tests.fixtures.test_data import TestDataFactory


class TestCLI(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()
        self.tmp = tempfile.TemporaryDirectory()
        self.diagram_path = self._write("diagram.json", TestDataFactory.create_shop_diagram())
        self.migrations_dir = os.path.join(self.tmp.name, "migrations")

    def tearDown(self):
        self.tmp.cleanup()

    def _write(self, name, data):
        path = os.path.join(self.tmp.name, name)
        with open(path, "w") as f:
            json.dump(data, f)
        return path

    def test_transform_writes_physical_model(self):
        output = os.path.join(self.tmp.name, "schema.json")

        result = self.runner.invoke(cli, ["transform", self.diagram_path, "-o", output])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("order_line", result.output)
        with open(output) as f:
            self.assertEqual(len(json.load(f)["tables"]), 3)

    def test_transform_failure_exits_non_zero(self):
        path = self._write("bad.json", {"elements": {"c": {"name": "NoKey", "attributes": []}}})

        result = self.runner.invoke(cli, ["transform", path])

        self.assertNotEqual(result.exit_code, 0)

    def test_migrate_then_migrate_again(self):
        # Arrange
        model_path = os.path.join(self.tmp.name, "schema.json")

        # Act: bootstrap
        first = self.runner.invoke(
            cli, ["migrate", self.diagram_path, "-d", self.migrations_dir, "--model-out", model_path]
        )

        # Assert
        self.assertEqual(first.exit_code, 0, first.output)
        self.assertEqual(os.listdir(self.migrations_dir), ["V1__initial_schema.sql"])

        # Act: new class in the diagram
        diagram = TestDataFactory.create_shop_diagram()
        diagram["elements"]["c4"] = {"id": "c4", "name": "Coupon", "attributes": ["code: String {id}"]}
        changed_path = self._write("diagram_v2.json", diagram)
        second = self.runner.invoke(
            cli, ["migrate", changed_path, "-d", self.migrations_dir, "--previous-model", model_path]
        )

        # Assert
        self.assertEqual(second.exit_code, 0, second.output)
        self.assertEqual(
            sorted(os.listdir(self.migrations_dir)),
            ["V1__initial_schema.sql", "V2__add_1_tables.sql"],
        )

    def test_migrate_dry_run_prints_sql(self):
        result = self.runner.invoke(
            cli, ["migrate", self.diagram_path, "-d", self.migrations_dir, "--dry-run", "--dialect", "mysql"]
        )

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("CREATE TABLE IF NOT EXISTS `order`", result.output)
        self.assertFalse(os.path.exists(self.migrations_dir))

    def test_diff_of_identical_diagrams(self):
        result = self.runner.invoke(cli, ["diff", self.diagram_path, self.diagram_path])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("No changes", result.output)

    def test_diff_shows_new_table(self):
        diagram = TestDataFactory.create_shop_diagram()
        del diagram["elements"]["c3"]
        del diagram["relationships"]["r2"]
        previous_path = self._write("previous.json", diagram)

        result = self.runner.invoke(cli, ["diff", previous_path, self.diagram_path])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("+ order_line", result.output)
        self.assertIn('"newTables"', result.output)
