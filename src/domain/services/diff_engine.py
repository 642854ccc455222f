from typing import List, Optional
import logging

from src.domain.entities.evolution import ChangeSet, TableChange
from src.domain.entities.schema import Column, PhysicalModel, Table

logger = logging.getLogger(__name__)


class DiffEngine:
    """
    Computes structural differences between two physical models.
    Single Responsibility: Only handles diff computation.

    Columns are matched by name only; a renamed attribute shows up as a
    deleted column plus a new one.
    """

    def compute_diff(self, previous: Optional[PhysicalModel], current: PhysicalModel) -> ChangeSet:
        """Compare the previous model with the current one. Pure, no side effects."""
        previous = previous or PhysicalModel()
        changes = ChangeSet()

        changes.new_tables = [name for name in current.tables if name not in previous.tables]
        changes.deleted_tables = [name for name in previous.tables if name not in current.tables]

        for name, table in current.tables.items():
            old_table = previous.tables.get(name)
            if old_table is None:
                continue
            table_change = self._compare_columns(old_table, table)
            if table_change.has_changes:
                changes.modified_tables.append(table_change)

        logger.info(
            f"[DiffEngine] {len(changes.new_tables)} new, {len(changes.modified_tables)} modified, "
            f"{len(changes.deleted_tables)} deleted tables"
        )
        return changes

    def _compare_columns(self, previous: Table, current: Table) -> TableChange:
        """Compare the columns of two versions of one table."""
        change = TableChange(table=current.name)
        old_columns = {c.name: c for c in previous.columns}
        new_columns = {c.name: c for c in current.columns}

        for column in current.columns:
            old = old_columns.get(column.name)
            if old is None:
                change.new_columns.append(column.name)
            elif self._is_modified(old, column):
                change.modified_columns.append(column.name)

        change.deleted_columns = [c.name for c in previous.columns if c.name not in new_columns]
        return change

    @staticmethod
    def _is_modified(old: Column, new: Column) -> bool:
        return (
            old.data_type != new.data_type
            or old.nullable != new.nullable
            or old.primary_key != new.primary_key
        )

    @staticmethod
    def modified_columns_of(changes: ChangeSet) -> List[str]:
        """Flat `table.column` list of every modified column."""
        return [
            f"{t.table}.{c}"
            for t in changes.modified_tables
            for c in t.modified_columns
        ]
