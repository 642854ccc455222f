"""Unit tests for RuleEngine."""

import unittest

from src.domain.entities.rules import default_rule_set
from src.domain.entities.schema import Column, DataType, ForeignKey, Index, PhysicalModel, Sequence, Table
from src.domain.services.rule_engine import RuleEngine


def _table(name, columns, primary_keys=("id",), foreign_keys=(), indexes=()):
    return Table(
        name=name,
        columns=list(columns),
        primary_keys=list(primary_keys),
        foreign_keys=list(foreign_keys),
        indexes=list(indexes),
    )


class TestRuleEngine(unittest.TestCase):
    """Test design rule validation."""

    def setUp(self):
        self.engine = RuleEngine(default_rule_set())
        self.audit = [
            Column("created_at", DataType.TIMESTAMP, nullable=False),
            Column("updated_at", DataType.TIMESTAMP, nullable=False),
        ]

    def test_clean_model_has_no_violations(self):
        model = PhysicalModel(
            tables={"customer": _table("customer", [Column("id", DataType.BIGINT, nullable=False)] + self.audit)},
            sequences=[Sequence("seq_customer", "customer", "id")],
        )

        self.assertEqual(self.engine.validate_model(model), {})

    def test_foreign_key_type_mismatch_is_an_error(self):
        # Arrange
        customer = _table("customer", [Column("id", DataType.BIGINT, nullable=False)])
        order = _table(
            "order",
            [Column("id", DataType.BIGINT), Column("customer_id", DataType.STRING)],
            foreign_keys=[ForeignKey("fk_order_customer_id", ["customer_id"], "customer", ["id"])],
            indexes=[Index("idx_order_customer_id", ["customer_id"])],
        )
        model = PhysicalModel(tables={"customer": customer, "order": order})

        # Act
        grouped = self.engine.split_by_severity(self.engine.validate_model(model))

        # Assert
        self.assertEqual(len(grouped["error"]), 1)
        self.assertTrue(grouped["error"][0].startswith("[R2_FK_TYPE_MATCH]"))

    def test_unknown_referenced_table(self):
        order = _table(
            "order",
            [Column("id", DataType.BIGINT), Column("ghost_id", DataType.BIGINT)],
            foreign_keys=[ForeignKey("fk_order_ghost_id", ["ghost_id"], "ghost", ["id"])],
        )

        violations = self.engine.validate_model(PhysicalModel(tables={"order": order}))

        self.assertIn("R2_FK_TYPE_MATCH", violations)
        self.assertIn("R3_INDEX_FK", violations)

    def test_primary_key_must_be_a_column(self):
        table = _table("tag", [Column("label", DataType.STRING)], primary_keys=["id"])

        violations = self.engine.validate_model(PhysicalModel(tables={"tag": table}))

        self.assertEqual(violations["R4_PK_COLUMNS_EXIST"], ["Primary key column 'id' is not a column of 'tag'"])

    def test_naming_violation_is_a_warning(self):
        table = _table("Customer", [Column("id", DataType.BIGINT), Column("firstName", DataType.STRING)])

        grouped = self.engine.split_by_severity(self.engine.validate_model(PhysicalModel(tables={"Customer": table})))

        self.assertEqual(len(grouped["warning"]), 2)

    def test_audit_columns_checked_only_for_entity_tables(self):
        junction = _table("a_b", [Column("a_id", DataType.BIGINT), Column("b_id", DataType.BIGINT)], ["a_id", "b_id"])
        entity = _table("a", [Column("id", DataType.BIGINT)])
        model = PhysicalModel(
            tables={"a": entity, "a_b": junction},
            sequences=[Sequence("seq_a", "a", "id")],
        )

        violations = self.engine.validate_model(model)

        self.assertEqual(violations["R5_TIMESTAMP_TRACKING"], ["Table 'a' lacks audit columns: created_at, updated_at"])
