"""Unit tests for AttributeParser."""

import unittest
from src.domain.services.attribute_parser import AttributeParser
from src.domain.entities.schema import DataType


class TestAttributeParser(unittest.TestCase):
    """Test AttributeParser functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.parser = AttributeParser()

    def test_primary_key_attribute(self):
        """Test that {id} makes a non-null primary key column."""
        # Act
        parsed = self.parser.parse("id: Long {id}")

        # Assert
        self.assertTrue(parsed.is_primary_key)
        self.assertEqual(parsed.column.name, "id")
        self.assertEqual(parsed.column.data_type, DataType.BIGINT)
        self.assertFalse(parsed.column.nullable)
        self.assertEqual(parsed.warnings, [])

    def test_required_and_unique_constraints(self):
        parsed = self.parser.parse("+emailAddress: String {Required, UNIQUE}")

        self.assertEqual(parsed.column.name, "email_address")
        self.assertFalse(parsed.column.nullable)
        self.assertTrue(parsed.column.unique)
        self.assertFalse(parsed.is_primary_key)

    def test_attribute_without_constraints_is_nullable(self):
        parsed = self.parser.parse("- birthDate: LocalDate")

        self.assertEqual(parsed.column.name, "birth_date")
        self.assertEqual(parsed.column.data_type, DataType.DATE)
        self.assertTrue(parsed.column.nullable)

    def test_default_value(self):
        parsed = self.parser.parse('status: String = "NEW" {required}')

        self.assertEqual(parsed.column.default_value, '"NEW"')
        self.assertFalse(parsed.column.nullable)

    def test_unknown_constraint_warns(self):
        """Test that unknown constraints produce a warning, not a failure."""
        parsed = self.parser.parse("code: String {indexed, required}")

        self.assertFalse(parsed.malformed)
        self.assertFalse(parsed.column.nullable)
        self.assertEqual(len(parsed.warnings), 1)
        self.assertIn("indexed", parsed.warnings[0])

    def test_malformed_attribute_falls_back(self):
        """Test that input without `name: type` yields attr_<index>."""
        # Act
        parsed = self.parser.parse("just some text", index=3)

        # Assert
        self.assertTrue(parsed.malformed)
        self.assertEqual(parsed.column.name, "attr_3")
        self.assertEqual(parsed.column.data_type, DataType.STRING)
        self.assertTrue(parsed.column.nullable)
        self.assertIn("Malformed attribute", parsed.warnings[0])

    def test_type_mapping(self):
        """Test UML type to logical type conversion."""
        self.assertEqual(AttributeParser.map_type("int"), DataType.INTEGER)
        self.assertEqual(AttributeParser.map_type("Double"), DataType.DECIMAL)
        self.assertEqual(AttributeParser.map_type("BigDecimal"), DataType.DECIMAL)
        self.assertEqual(AttributeParser.map_type("boolean"), DataType.BOOLEAN)
        self.assertEqual(AttributeParser.map_type("LocalDateTime"), DataType.TIMESTAMP)
        self.assertEqual(AttributeParser.map_type("byte[]"), DataType.BINARY)
        self.assertEqual(AttributeParser.map_type("UUID"), DataType.UUID)
        self.assertEqual(AttributeParser.map_type("Map"), DataType.JSON)
        self.assertEqual(AttributeParser.map_type("Integer[]"), DataType.INTEGER)
        self.assertEqual(AttributeParser.map_type("List<Long>"), DataType.STRING)
        self.assertEqual(AttributeParser.map_type("Address"), DataType.STRING)
