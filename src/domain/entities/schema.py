from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from enum import Enum


class DataType(Enum):
    """Logical column data types, independent of the target database."""
    STRING = "string"
    INTEGER = "integer"
    BIGINT = "bigint"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    TIMESTAMP = "timestamp"
    TIME = "time"
    BINARY = "binary"
    UUID = "uuid"
    JSON = "json"


class ChangeType(Enum):
    """Kinds of DDL statements a migration can contain."""
    CREATE_TABLE = "create_table"
    DROP_TABLE = "drop_table"
    ADD_COLUMN = "add_column"
    DROP_COLUMN = "drop_column"
    MODIFY_COLUMN = "modify_column"
    ADD_INDEX = "add_index"
    ADD_CONSTRAINT = "add_constraint"


class RelationshipType(Enum):
    """Physical shape a logical relationship was mapped to."""
    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_MANY = "many-to-many"
    INHERITANCE = "inheritance"


@dataclass(frozen=True)
class ColumnReference:
    """Target of a foreign-key column."""
    table: str
    column: str


@dataclass
class Column:
    """Represents a database column."""
    name: str
    data_type: DataType
    nullable: bool = True
    primary_key: bool = False
    unique: bool = False
    default_value: Optional[str] = None
    length: Optional[int] = None
    references: Optional[ColumnReference] = None

    @property
    def is_foreign_key(self) -> bool:
        return self.references is not None


@dataclass
class ForeignKey:
    """Represents a foreign key constraint."""
    name: str
    columns: List[str]
    referenced_table: str
    referenced_columns: List[str]
    on_delete: Optional[str] = None  # CASCADE, SET NULL, RESTRICT


@dataclass
class Index:
    """Represents a database index."""
    name: str
    columns: List[str]
    unique: bool = False


@dataclass
class UniqueConstraint:
    name: str
    columns: List[str]


@dataclass
class Table:
    """Represents a database table."""
    name: str
    columns: List[Column] = field(default_factory=list)
    primary_keys: List[str] = field(default_factory=list)
    foreign_keys: List[ForeignKey] = field(default_factory=list)
    indexes: List[Index] = field(default_factory=list)
    unique_constraints: List[UniqueConstraint] = field(default_factory=list)
    comment: Optional[str] = None

    def get_column(self, name: str) -> Optional[Column]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def has_column(self, name: str) -> bool:
        return self.get_column(name) is not None

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def has_index_on(self, columns: List[str]) -> bool:
        return any(idx.columns == list(columns) for idx in self.indexes)


@dataclass(frozen=True)
class Sequence:
    """Surrogate key generator metadata for a table."""
    name: str
    table: str
    column: Optional[str] = None


@dataclass
class PhysicalRelationship:
    """How a logical relationship ended up in the relational schema."""
    name: str
    relationship_type: RelationshipType
    source_table: str
    target_table: str
    columns: List[str] = field(default_factory=list)
    junction_table: Optional[str] = None
    on_delete: Optional[str] = None


@dataclass
class PhysicalModel:
    """Relational schema derived from a class diagram."""
    tables: Dict[str, Table] = field(default_factory=dict)
    relationships: List[PhysicalRelationship] = field(default_factory=list)
    sequences: List[Sequence] = field(default_factory=list)
    normalization_level: int = 3
    applied_normalizations: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def get_table(self, name: str) -> Optional[Table]:
        return self.tables.get(name)

    def get_sequence(self, table_name: str) -> Optional[Sequence]:
        for sequence in self.sequences:
            if sequence.table == table_name:
                return sequence
        return None
