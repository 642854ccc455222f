"""Unit tests for SQLValidator."""

import unittest

from src.domain.entities.evolution import DDLStatement
from src.domain.entities.schema import ChangeType, Column, DataType
from src.infrastructure.validators.sql_validator import SQLValidator


class TestSQLValidator(unittest.TestCase):

    def setUp(self):
        self.validator = SQLValidator()

    def test_valid_ddl(self):
        is_valid, error = self.validator.validate_syntax("ALTER TABLE customer ADD COLUMN email VARCHAR(255);")

        self.assertTrue(is_valid)
        self.assertIsNone(error)

    def test_empty_sql(self):
        self.assertEqual(self.validator.validate_syntax("-- only a comment"), (False, "Empty SQL statement"))

    def test_drop_database_rejected(self):
        is_valid, error = self.validator.validate_syntax("DROP DATABASE shop;")

        self.assertFalse(is_valid)
        self.assertIn("DROP DATABASE", error)

    def test_truncate_rejected(self):
        is_valid, _ = self.validator.validate_syntax("TRUNCATE TABLE customer;")

        self.assertFalse(is_valid)

    def test_script_with_comments(self):
        script = (
            "-- Migration V1__initial_schema.sql\n"
            "CREATE TABLE IF NOT EXISTS customer (\n    id BIGSERIAL,\n    PRIMARY KEY (id)\n);\n"
            "-- ALTER TABLE customer DROP COLUMN IF EXISTS name;\n"
            "CREATE INDEX IF NOT EXISTS idx_customer_id ON customer (id);\n"
        )

        self.assertEqual(self.validator.validate_script(script), [])

    def test_add_not_null_column_without_default_warns(self):
        statement = DDLStatement(
            change_type=ChangeType.ADD_COLUMN,
            target_table="customer",
            target_column="code",
            column=Column("code", DataType.STRING, nullable=False),
        )

        _, warnings = self.validator.validate_safety(statement)

        self.assertEqual(len(warnings), 1)
        self.assertIn("without DEFAULT", warnings[0])

    def test_drop_table_is_destructive(self):
        statement = DDLStatement(change_type=ChangeType.DROP_TABLE, target_table="order", safe=False)

        is_safe, warnings = self.validator.validate_safety(statement)

        self.assertFalse(is_safe)
        self.assertIn("Destructive operation", warnings[0])

    def test_disabled_statement_is_safe(self):
        statement = DDLStatement(
            change_type=ChangeType.DROP_COLUMN,
            target_table="customer",
            target_column="name",
            enabled=False,
            safe=False,
        )

        self.assertEqual(self.validator.validate_safety(statement), (True, []))
