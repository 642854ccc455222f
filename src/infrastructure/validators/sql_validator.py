"""SQL validation services."""

import sqlparse
from typing import Tuple, Optional, List
from src.domain.entities.evolution import DDLStatement
from src.domain.entities.schema import ChangeType

DDL_TYPES = ("CREATE", "ALTER", "DROP")


class SQLValidator:
    """
    Validates SQL statements.
    Single Responsibility: SQL validation.
    """

    def validate_syntax(self, sql: str) -> Tuple[bool, Optional[str]]:
        """
        Validate SQL syntax.
        Returns (is_valid, error_message).
        """
        try:
            code = sqlparse.format(sql or "", strip_comments=True).strip()
            if not code:
                return False, "Empty SQL statement"

            for statement in sqlparse.parse(code):
                if not str(statement).strip():
                    continue

                tokens = [t.value.upper() for t in statement.flatten() if not t.is_whitespace]

                if 'DROP' in tokens and 'DATABASE' in tokens:
                    return False, "DROP DATABASE is not allowed"

                if 'TRUNCATE' in tokens:
                    return False, "TRUNCATE requires explicit approval"

                statement_type = statement.get_type()
                if statement_type not in DDL_TYPES:
                    return False, f"Not a DDL statement: {str(statement).strip()[:60]}"

                if not str(statement).rstrip().endswith(';'):
                    return False, f"Statement not terminated: {str(statement).strip()[:60]}"

            return True, None

        except Exception as e:
            return False, f"Syntax error: {str(e)}"

    def validate_script(self, sql: str) -> List[str]:
        """Validate every statement of a rendered migration. Returns error messages."""
        errors = []
        code = sqlparse.format(sql or "", strip_comments=True)
        for i, statement in enumerate(sqlparse.split(code), 1):
            if not statement.strip():
                continue
            is_valid, error = self.validate_syntax(statement)
            if not is_valid:
                errors.append(f"Statement {i}: {error}")
        return errors

    def validate_safety(self, statement: DDLStatement) -> Tuple[bool, List[str]]:
        """
        Check if a statement is safe to execute.
        Returns (is_safe, list_of_warnings).
        """
        warnings = []

        # Disabled statements are only comments in the script
        if not statement.enabled:
            return True, warnings

        target = statement.target_table
        if statement.target_column:
            target = f"{target}.{statement.target_column}"

        # Check for destructive operations
        if statement.change_type in [ChangeType.DROP_TABLE, ChangeType.DROP_COLUMN]:
            warnings.append(f"Destructive operation: {statement.change_type.value} on {target}")

        # Check for NOT NULL on existing table
        if statement.change_type == ChangeType.ADD_COLUMN and statement.column is not None:
            column = statement.column
            if not column.nullable and column.default_value is None:
                warnings.append(f"Adding NOT NULL column {target} without DEFAULT may fail on existing data")

        if statement.change_type == ChangeType.MODIFY_COLUMN:
            warnings.append(f"Changing column {target} may fail on existing data or lock the table")

        is_safe = len(warnings) == 0 or statement.safe
        return is_safe, warnings
