"""Dialect-specific rendering of DDL statement records."""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional
import logging
import re

from src.domain.entities.evolution import DDLStatement
from src.domain.entities.schema import ChangeType, Column, DataType

logger = logging.getLogger(__name__)

RESERVED_WORDS = {
    "all", "and", "as", "asc", "between", "by", "case", "check", "column",
    "constraint", "create", "default", "delete", "desc", "distinct", "drop",
    "else", "end", "exists", "foreign", "from", "grant", "group", "having",
    "in", "index", "insert", "into", "is", "join", "key", "like", "limit",
    "not", "null", "offset", "on", "or", "order", "primary", "references",
    "select", "set", "table", "then", "to", "union", "unique", "update",
    "user", "values", "when", "where", "with",
}

SECTION_RULE = "-- ============================================"

# Bare defaults on string columns that are SQL, not text
SQL_DEFAULT_KEYWORDS = {"NULL", "CURRENT_TIMESTAMP", "CURRENT_DATE", "CURRENT_TIME", "CURRENT_USER"}
_FUNCTION_CALL_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*\(.*\)$")


class DDLRenderer(ABC):
    """
    Turns DDLStatement records into SQL text.
    Single Responsibility: SQL text generation only; what to emit and in
    which order is decided by the MigrationBuilder.
    """

    dialect = "generic"
    quote_char = '"'
    type_map: Dict[DataType, str] = {}
    auto_increment_map: Dict[DataType, str] = {}
    supports_add_column_if_not_exists = True
    supports_index_if_not_exists = True

    def render(self, statement: DDLStatement) -> Optional[str]:
        """Render a single statement; disabled statements come out commented."""
        generators = {
            ChangeType.CREATE_TABLE: self._gen_create_table,
            ChangeType.ADD_COLUMN: self._gen_add_column,
            ChangeType.MODIFY_COLUMN: self._gen_modify_column,
            ChangeType.DROP_COLUMN: self._gen_drop_column,
            ChangeType.ADD_CONSTRAINT: self._gen_add_constraint,
            ChangeType.ADD_INDEX: self._gen_add_index,
            ChangeType.DROP_TABLE: self._gen_drop_table,
        }

        generator = generators.get(statement.change_type)
        if generator is None:
            logger.warning(f"[DDLRenderer] No generator for {statement.change_type.value}")
            return None

        sql = generator(statement)
        if sql and not statement.enabled:
            sql = "\n".join(f"-- {line}" for line in sql.splitlines())
        return sql

    def render_script(self, statements: List[DDLStatement], header: List[str]) -> str:
        """Render a full migration script: header comments, then one block per section."""
        lines = [f"-- {h}" if h else "--" for h in header]
        lines.append(f"-- Database type: {self.dialect}")
        lines.append("")

        current_section = None
        for statement in statements:
            if statement.section and statement.section != current_section:
                current_section = statement.section
                lines.extend([SECTION_RULE, f"-- {current_section}", SECTION_RULE, ""])
            sql = self.render(statement)
            if not sql:
                continue
            if statement.reason and not statement.enabled:
                lines.append(f"-- {statement.reason}")
            lines.append(sql)
            lines.append("")

        lines.append("-- Migration completed successfully")
        return "\n".join(lines) + "\n"

    # ------------------------------------------------------------ identifiers

    def quote(self, identifier: str) -> str:
        if identifier.lower() in RESERVED_WORDS:
            return f"{self.quote_char}{identifier}{self.quote_char}"
        return identifier

    def _column_list(self, columns: List[str]) -> str:
        return ", ".join(self.quote(c) for c in columns)

    # ------------------------------------------------------------------ types

    def sql_type(self, column: Column, auto_increment: bool = False) -> str:
        if auto_increment and column.data_type in self.auto_increment_map:
            return self.auto_increment_map[column.data_type]
        if column.data_type == DataType.STRING:
            return f"VARCHAR({column.length or 255})"
        return self.type_map.get(column.data_type, "VARCHAR(255)")

    def _default_literal(self, value: str, data_type: DataType) -> str:
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        elif data_type != DataType.STRING or (len(value) >= 2 and value[0] == value[-1] == "'"):
            return value
        elif value.upper() in SQL_DEFAULT_KEYWORDS or _FUNCTION_CALL_RE.match(value):
            return value
        inner = value.replace("'", "''")
        return f"'{inner}'"

    def column_definition(self, column: Column, auto_increment: bool = False) -> str:
        parts = [self.quote(column.name), self.sql_type(column, auto_increment)]
        if not column.nullable and not (auto_increment and self._auto_increment_implies_not_null()):
            parts.append("NOT NULL")
        if column.default_value is not None:
            parts.append(f"DEFAULT {self._default_literal(column.default_value, column.data_type)}")
        return " ".join(parts)

    def _auto_increment_implies_not_null(self) -> bool:
        return False

    # ------------------------------------------------------------- generators

    def _gen_create_table(self, statement: DDLStatement) -> str:
        """Generate CREATE TABLE statement."""
        table = statement.table
        definitions = [
            f"    {self.column_definition(c, auto_increment=(c.name == statement.target_column))}"
            for c in table.columns
        ]
        if table.primary_keys:
            definitions.append(f"    PRIMARY KEY ({self._column_list(table.primary_keys)})")
        for unique in table.unique_constraints:
            definitions.append(f"    CONSTRAINT {unique.name} UNIQUE ({self._column_list(unique.columns)})")

        body = ",\n".join(definitions)
        return f"CREATE TABLE IF NOT EXISTS {self.quote(table.name)} (\n{body}\n);"

    def _gen_add_column(self, statement: DDLStatement) -> str:
        """Generate ALTER TABLE ADD COLUMN statement."""
        if_not_exists = " IF NOT EXISTS" if self.supports_add_column_if_not_exists else ""
        return (
            f"ALTER TABLE {self.quote(statement.target_table)} "
            f"ADD COLUMN{if_not_exists} {self.column_definition(statement.column)};"
        )

    @abstractmethod
    def _gen_modify_column(self, statement: DDLStatement) -> str:
        """Generate the dialect's ALTER statement(s) for a changed column."""

    def _gen_drop_column(self, statement: DDLStatement) -> str:
        return (
            f"ALTER TABLE {self.quote(statement.target_table)} "
            f"DROP COLUMN IF EXISTS {self.quote(statement.target_column)};"
        )

    def _gen_add_constraint(self, statement: DDLStatement) -> str:
        """Generate ALTER TABLE ADD CONSTRAINT statement (foreign key or unique)."""
        table = self.quote(statement.target_table)
        if statement.foreign_key is not None:
            fk = statement.foreign_key
            sql = (
                f"ALTER TABLE {table} ADD CONSTRAINT {fk.name} "
                f"FOREIGN KEY ({self._column_list(fk.columns)}) "
                f"REFERENCES {self.quote(fk.referenced_table)} ({self._column_list(fk.referenced_columns)})"
            )
            if fk.on_delete:
                sql += f" ON DELETE {fk.on_delete}"
            return sql + ";"

        unique = statement.unique_constraint
        return f"ALTER TABLE {table} ADD CONSTRAINT {unique.name} UNIQUE ({self._column_list(unique.columns)});"

    def _gen_add_index(self, statement: DDLStatement) -> str:
        """Generate CREATE INDEX statement."""
        index = statement.index
        unique = "UNIQUE " if index.unique else ""
        if_not_exists = "IF NOT EXISTS " if self.supports_index_if_not_exists else ""
        return (
            f"CREATE {unique}INDEX {if_not_exists}{index.name} "
            f"ON {self.quote(statement.target_table)} ({self._column_list(index.columns)});"
        )

    def _gen_drop_table(self, statement: DDLStatement) -> str:
        return f"DROP TABLE IF EXISTS {self.quote(statement.target_table)} CASCADE;"


class PostgreSQLRenderer(DDLRenderer):
    dialect = "postgresql"
    quote_char = '"'
    type_map = {
        DataType.INTEGER: "INTEGER",
        DataType.BIGINT: "BIGINT",
        DataType.DECIMAL: "DECIMAL(19,2)",
        DataType.BOOLEAN: "BOOLEAN",
        DataType.DATE: "DATE",
        DataType.TIMESTAMP: "TIMESTAMP",
        DataType.TIME: "TIME",
        DataType.BINARY: "BYTEA",
        DataType.UUID: "UUID",
        DataType.JSON: "JSONB",
    }
    auto_increment_map = {
        DataType.INTEGER: "SERIAL",
        DataType.BIGINT: "BIGSERIAL",
    }

    def _auto_increment_implies_not_null(self) -> bool:
        return True

    def _gen_modify_column(self, statement: DDLStatement) -> str:
        """PostgreSQL uses ALTER COLUMN ... TYPE plus SET/DROP NOT NULL."""
        column = statement.column
        table = self.quote(statement.target_table)
        name = self.quote(column.name)
        null_action = "DROP" if column.nullable else "SET"
        return (
            f"ALTER TABLE {table} ALTER COLUMN {name} TYPE {self.sql_type(column)};\n"
            f"ALTER TABLE {table} ALTER COLUMN {name} {null_action} NOT NULL;"
        )


class MySQLRenderer(DDLRenderer):
    dialect = "mysql"
    quote_char = "`"
    supports_add_column_if_not_exists = False
    supports_index_if_not_exists = False
    type_map = {
        DataType.INTEGER: "INT",
        DataType.BIGINT: "BIGINT",
        DataType.DECIMAL: "DECIMAL(19,2)",
        DataType.BOOLEAN: "TINYINT(1)",
        DataType.DATE: "DATE",
        DataType.TIMESTAMP: "DATETIME",
        DataType.TIME: "TIME",
        DataType.BINARY: "BLOB",
        DataType.UUID: "CHAR(36)",
        DataType.JSON: "JSON",
    }
    auto_increment_map = {
        DataType.INTEGER: "INT AUTO_INCREMENT",
        DataType.BIGINT: "BIGINT AUTO_INCREMENT",
    }

    def _gen_modify_column(self, statement: DDLStatement) -> str:
        """MySQL restates the whole column with MODIFY COLUMN."""
        return (
            f"ALTER TABLE {self.quote(statement.target_table)} "
            f"MODIFY COLUMN {self.column_definition(statement.column)};"
        )

    def _gen_drop_column(self, statement: DDLStatement) -> str:
        return (
            f"ALTER TABLE {self.quote(statement.target_table)} "
            f"DROP COLUMN {self.quote(statement.target_column)};"
        )


RENDERERS = {
    PostgreSQLRenderer.dialect: PostgreSQLRenderer,
    MySQLRenderer.dialect: MySQLRenderer,
}


def get_renderer(dialect: str = "postgresql") -> DDLRenderer:
    """Return the renderer for a dialect name."""
    try:
        return RENDERERS[dialect.lower()]()
    except KeyError:
        raise ValueError(
            f"Unsupported dialect '{dialect}'. Supported: {', '.join(sorted(RENDERERS))}"
        )
