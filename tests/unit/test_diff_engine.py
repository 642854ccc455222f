"""Unit tests for DiffEngine."""

import copy
import unittest
from src.domain.services.diff_engine import DiffEngine
from src.domain.entities.schema import *
from tests.fixtures.test_data import TestDataFactory


class TestDiffEngine(unittest.TestCase):
    """Test DiffEngine functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.engine = DiffEngine()
        self.previous = TestDataFactory.create_physical_model()
        self.current = copy.deepcopy(self.previous)

    def test_identical_models_have_no_changes(self):
        """Diffing a model against itself yields nothing."""
        # Act
        changes = self.engine.compute_diff(self.previous, self.previous)

        # Assert
        self.assertFalse(changes.has_changes)
        self.assertEqual(changes.new_tables, [])
        self.assertEqual(changes.deleted_tables, [])
        self.assertEqual(changes.modified_tables, [])

    def test_new_table_detected(self):
        """Test that a new table is reported as new."""
        # Arrange
        self.current.tables["invoice"] = Table(
            name="invoice",
            columns=[Column("id", DataType.BIGINT, nullable=False, primary_key=True)],
            primary_keys=["id"],
        )

        # Act
        changes = self.engine.compute_diff(self.previous, self.current)

        # Assert
        self.assertEqual(changes.new_tables, ["invoice"])
        self.assertTrue(changes.has_changes)

    def test_deleted_table_detected(self):
        del self.current.tables["product"]

        changes = self.engine.compute_diff(self.previous, self.current)

        self.assertEqual(changes.deleted_tables, ["product"])
        self.assertEqual(changes.new_tables, [])

    def test_add_column_for_new_attribute(self):
        """Test that a new attribute shows up as a new column."""
        # Arrange
        self.current.tables["customer"].columns.append(Column("email", DataType.STRING))

        # Act
        changes = self.engine.compute_diff(self.previous, self.current)

        # Assert
        self.assertEqual(len(changes.modified_tables), 1)
        self.assertEqual(changes.modified_tables[0].table, "customer")
        self.assertEqual(changes.modified_tables[0].new_columns, ["email"])

    def test_modified_column_type_and_nullability(self):
        customer = self.current.tables["customer"]
        customer.get_column("name").nullable = True
        self.current.tables["product"].get_column("price").data_type = DataType.BIGINT

        changes = self.engine.compute_diff(self.previous, self.current)

        self.assertEqual(DiffEngine.modified_columns_of(changes), ["customer.name", "product.price"])

    def test_default_change_is_not_a_modification(self):
        self.current.tables["customer"].get_column("name").default_value = "'anonymous'"

        changes = self.engine.compute_diff(self.previous, self.current)

        self.assertFalse(changes.has_changes)

    def test_rename_is_delete_plus_add(self):
        """Columns are matched by name only."""
        self.current.tables["customer"].get_column("name").name = "full_name"

        changes = self.engine.compute_diff(self.previous, self.current)

        table_change = changes.modified_tables[0]
        self.assertEqual(table_change.new_columns, ["full_name"])
        self.assertEqual(table_change.deleted_columns, ["name"])

    def test_no_previous_model_means_everything_is_new(self):
        changes = self.engine.compute_diff(None, self.current)

        self.assertEqual(changes.new_tables, ["customer", "product"])

    def test_diff_does_not_mutate_inputs(self):
        snapshot = copy.deepcopy(self.previous)
        self.current.tables["customer"].columns.append(Column("email", DataType.STRING))

        self.engine.compute_diff(self.previous, self.current)

        self.assertEqual(self.previous, snapshot)

    def test_change_set_serialization(self):
        self.current.tables["customer"].columns.append(Column("email", DataType.STRING))

        data = self.engine.compute_diff(self.previous, self.current).to_dict()

        self.assertTrue(data["hasChanges"])
        self.assertEqual(data["modifiedTables"][0]["newColumns"], ["email"])
