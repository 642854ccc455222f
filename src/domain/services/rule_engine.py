import re
from typing import List, Dict, Optional
from src.domain.entities.schema import PhysicalModel, Table
from src.domain.entities.rules import RuleSet, DesignRule

_SNAKE_CASE = re.compile(r'^[a-z][a-z0-9_]*$')
AUDIT_COLUMNS = ("created_at", "updated_at")


class RuleEngine:
    """
    Validates a physical model against design rules.
    Single Responsibility: Rule validation only.
    """

    def __init__(self, rule_set: RuleSet):
        self._rules = rule_set

    @property
    def rule_set(self) -> RuleSet:
        return self._rules

    def validate_model(self, model: PhysicalModel) -> Dict[str, List[str]]:
        """
        Validate every table against every rule.
        Returns dict of violations by rule_id.
        """
        violations: Dict[str, List[str]] = {}

        for table in model.tables.values():
            for rule in self._rules.design_rules:
                for violation in self._check_rule(table, model, rule):
                    violations.setdefault(rule.rule_id, []).append(violation)

        return violations

    def split_by_severity(self, violations: Dict[str, List[str]]) -> Dict[str, List[str]]:
        """Group violation messages under the severity of the rule that produced them."""
        grouped: Dict[str, List[str]] = {"error": [], "warning": [], "info": []}
        for rule_id, messages in violations.items():
            rule = self._rules.get_rule(rule_id)
            severity = rule.severity if rule else "warning"
            grouped.setdefault(severity, []).extend(f"[{rule_id}] {m}" for m in messages)
        return grouped

    def _check_rule(self, table: Table, model: PhysicalModel, rule: DesignRule) -> List[str]:
        if rule.rule_id == "R1_NAMING":
            return self._check_naming_convention(table)
        elif rule.rule_id == "R2_FK_TYPE_MATCH":
            return self._check_fk_types(table, model)
        elif rule.rule_id == "R3_INDEX_FK":
            return self._check_fk_index(table)
        elif rule.rule_id == "R4_PK_COLUMNS_EXIST":
            return self._check_pk_columns(table)
        elif rule.rule_id == "R5_TIMESTAMP_TRACKING":
            return self._check_timestamps(table, model)
        return []

    def _check_naming_convention(self, table: Table) -> List[str]:
        """Validate naming conventions."""
        problems = []
        if not _SNAKE_CASE.match(table.name):
            problems.append(f"Table '{table.name}' does not follow snake_case")
        for column in table.columns:
            if not _SNAKE_CASE.match(column.name):
                problems.append(f"Column '{table.name}.{column.name}' does not follow snake_case")
        return problems

    def _check_fk_types(self, table: Table, model: PhysicalModel) -> List[str]:
        problems = []
        for fk in table.foreign_keys:
            referenced = model.get_table(fk.referenced_table)
            if referenced is None:
                problems.append(
                    f"Foreign key '{fk.name}' references unknown table '{fk.referenced_table}'"
                )
                continue
            for column_name, ref_name in zip(fk.columns, fk.referenced_columns):
                column = table.get_column(column_name)
                ref_column = referenced.get_column(ref_name)
                if column is None or ref_column is None:
                    problems.append(
                        f"Foreign key '{fk.name}' uses missing column "
                        f"'{table.name}.{column_name}' -> '{fk.referenced_table}.{ref_name}'"
                    )
                elif column.data_type != ref_column.data_type:
                    problems.append(
                        f"Column '{table.name}.{column_name}' ({column.data_type.value}) does not match "
                        f"'{fk.referenced_table}.{ref_name}' ({ref_column.data_type.value})"
                    )
        return problems

    def _check_fk_index(self, table: Table) -> List[str]:
        """Ensure foreign keys have indexes."""
        return [
            f"Foreign key columns {fk.columns} of '{table.name}' are not indexed"
            for fk in table.foreign_keys
            if not table.has_index_on(fk.columns)
        ]

    def _check_pk_columns(self, table: Table) -> List[str]:
        names = set(table.column_names)
        return [
            f"Primary key column '{pk}' is not a column of '{table.name}'"
            for pk in table.primary_keys
            if pk not in names
        ]

    def _check_timestamps(self, table: Table, model: PhysicalModel) -> List[str]:
        # Junction tables carry no audit columns
        if model.get_sequence(table.name) is None:
            return []
        missing = [c for c in AUDIT_COLUMNS if not table.has_column(c)]
        if missing:
            return [f"Table '{table.name}' lacks audit columns: {', '.join(missing)}"]
        return []
