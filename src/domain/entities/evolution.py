from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from src.domain.entities.schema import (
    ChangeType, Column, ForeignKey, Index, Table, UniqueConstraint
)


@dataclass
class TableChange:
    """Column-level differences of a table present in both models."""
    table: str
    new_columns: List[str] = field(default_factory=list)
    deleted_columns: List[str] = field(default_factory=list)
    modified_columns: List[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.new_columns or self.deleted_columns or self.modified_columns)


@dataclass
class ChangeSet:
    """Structural diff between two physical models."""
    new_tables: List[str] = field(default_factory=list)
    deleted_tables: List[str] = field(default_factory=list)
    modified_tables: List[TableChange] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.new_tables or self.deleted_tables or self.modified_tables)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "newTables": list(self.new_tables),
            "deletedTables": list(self.deleted_tables),
            "modifiedTables": [
                {
                    "table": t.table,
                    "newColumns": list(t.new_columns),
                    "deletedColumns": list(t.deleted_columns),
                    "modifiedColumns": list(t.modified_columns),
                }
                for t in self.modified_tables
            ],
            "hasChanges": self.has_changes,
        }


@dataclass(frozen=True)
class DDLStatement:
    """A single DDL operation, decided but not yet rendered."""
    change_type: ChangeType
    target_table: str
    target_column: Optional[str] = None
    table: Optional[Table] = None
    column: Optional[Column] = None
    foreign_key: Optional[ForeignKey] = None
    index: Optional[Index] = None
    unique_constraint: Optional[UniqueConstraint] = None
    section: str = ""
    reason: str = ""
    enabled: bool = True  # disabled statements are rendered as comments
    safe: bool = True


@dataclass
class EvolutionPlan:
    """Ordered statements for one migration plus the diagnostics collected while planning."""
    statements: List[DDLStatement]
    description: str
    risk_level: str = "low"  # low, medium, high
    backward_compatible: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Migration:
    """One versioned, immutable DDL script."""
    version: int
    file_name: str
    description: str
    sql: str
    timestamp: str
    statements: List[DDLStatement] = field(default_factory=list, compare=False)

    def to_record(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "fileName": self.file_name,
            "description": self.description,
            "sql": self.sql,
            "timestamp": self.timestamp,
        }
