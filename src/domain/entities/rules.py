import re
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any


@dataclass(frozen=True)
class NamingConvention:
    """Naming convention rules."""
    table_pattern: str = "snake_case"
    column_pattern: str = "snake_case"
    index_prefix: str = "idx_"
    constraint_prefix: str = "fk_"
    unique_prefix: str = "uq_"
    sequence_prefix: str = "seq_"
    pluralize_tables: bool = False

    @staticmethod
    def to_snake_case(name: str) -> str:
        """Convert PascalCase/camelCase (or spaced) names to snake_case."""
        snake = re.sub(r'[\s\-]+', '_', name.strip())
        snake = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', snake)
        snake = re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', snake)
        snake = re.sub(r'[^0-9a-zA-Z_]', '', snake)
        return re.sub(r'_+', '_', snake).strip('_').lower()

    def table_name(self, class_name: str) -> str:
        """Convert class name to table name."""
        snake = self.to_snake_case(class_name)
        # Simple pluralization, only when requested
        if self.pluralize_tables and not snake.endswith('s'):
            snake += 's'
        return snake

    def column_name(self, attr_name: str) -> str:
        """Convert attribute name to column name (snake_case)."""
        return self.to_snake_case(attr_name)

    def foreign_key_column(self, referenced_table: str, referenced_column: str) -> str:
        return f"{referenced_table}_{referenced_column}"

    def junction_table(self, source_table: str, target_table: str) -> str:
        return f"{source_table}_{target_table}"

    def index_name(self, table: str, columns: List[str]) -> str:
        return f"{self.index_prefix}{table}_{'_'.join(columns)}"

    def foreign_key_name(self, table: str, columns: List[str]) -> str:
        return f"{self.constraint_prefix}{table}_{'_'.join(columns)}"

    def unique_name(self, table: str, columns: List[str]) -> str:
        return f"{self.unique_prefix}{table}_{'_'.join(columns)}"

    def sequence_name(self, table: str) -> str:
        return f"{self.sequence_prefix}{table}"


@dataclass(frozen=True)
class DesignRule:
    """Represents a design rule (R1-R5 style)."""
    rule_id: str
    name: str
    description: str
    category: str  # naming, structure, performance, data_quality
    severity: str = "warning"  # info, warning, error
    remediation: Optional[str] = None


@dataclass
class RuleSet:
    """Collection of design rules."""
    naming: NamingConvention
    design_rules: List[DesignRule]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def get_rule(self, rule_id: str) -> Optional[DesignRule]:
        for rule in self.design_rules:
            if rule.rule_id == rule_id:
                return rule
        return None


def default_rule_set() -> RuleSet:
    """Rules checked on every physical model."""
    return RuleSet(
        naming=NamingConvention(),
        design_rules=[
            DesignRule(
                rule_id="R1_NAMING",
                name="Naming Convention",
                description="Tables and columns must use snake_case",
                category="naming",
                severity="warning",
            ),
            DesignRule(
                rule_id="R2_FK_TYPE_MATCH",
                name="Foreign Key Type Match",
                description="Foreign key columns must have the type of the referenced column",
                category="structure",
                severity="error",
            ),
            DesignRule(
                rule_id="R3_INDEX_FK",
                name="Index Foreign Keys",
                description="Foreign key columns should have indexes",
                category="performance",
                severity="info",
            ),
            DesignRule(
                rule_id="R4_PK_COLUMNS_EXIST",
                name="Primary Key Columns Exist",
                description="Primary key columns must be columns of the table",
                category="structure",
                severity="error",
            ),
            DesignRule(
                rule_id="R5_TIMESTAMP_TRACKING",
                name="Timestamp Tracking",
                description="Entity tables should have created_at and updated_at columns",
                category="data_quality",
                severity="info",
            ),
        ],
    )
