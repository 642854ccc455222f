"""Versioned migration planning: what to emit, in which order."""
import os
import re
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from src.domain.entities.evolution import ChangeSet, DDLStatement, EvolutionPlan, Migration, TableChange
from src.domain.entities.schema import ChangeType, DataType, PhysicalModel, Table
from src.domain.services.ddl_renderer import DDLRenderer, get_renderer

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r'^V(\d+)__')

INITIAL_DESCRIPTION = "initial_schema"

STEP_CREATE_TABLES = "Step 1: Create tables without foreign keys"
STEP_ADD_FK_COLUMNS = "Step 2: Add foreign key columns"
STEP_ADD_CONSTRAINTS = "Step 3: Add foreign key constraints"
STEP_CREATE_INDEXES = "Step 4: Create indexes"
STEP_MODIFY_TABLES = "Modify existing tables"
STEP_DROP_TABLES = "Drop tables"

_AUTO_INCREMENT_TYPES = (DataType.INTEGER, DataType.BIGINT)


class MigrationBuilder:
    """
    Builds versioned migrations from physical models and change sets.
    Single Responsibility: deciding statements and their order; text is
    produced by a DDLRenderer. Holds no state between calls, so version
    numbers come only from the file names the caller passes in.
    """

    def __init__(self, dialect: str = "postgresql", renderer: Optional[DDLRenderer] = None):
        self._renderer = renderer or get_renderer(dialect)
        self._dialect = self._renderer.dialect

    @property
    def dialect(self) -> str:
        return self._dialect

    # ------------------------------------------------------------- versioning

    @staticmethod
    def extract_version(file_name: str) -> int:
        """Version embedded in a `V<n>__...` file name, 0 if it does not match."""
        match = _VERSION_RE.match(os.path.basename(file_name or ""))
        return int(match.group(1)) if match else 0

    @classmethod
    def next_version(cls, existing_file_names: Iterable[str]) -> int:
        """1 + the highest existing version (max-based, gaps are not refilled)."""
        return 1 + max((cls.extract_version(f) for f in existing_file_names), default=0)

    @staticmethod
    def describe(changes: ChangeSet) -> str:
        parts = []
        if changes.new_tables:
            parts.append(f"add_{len(changes.new_tables)}_tables")
        if changes.modified_tables:
            parts.append(f"modify_{len(changes.modified_tables)}_tables")
        if changes.deleted_tables:
            parts.append(f"drop_{len(changes.deleted_tables)}_tables")
        return "_and_".join(parts) or "schema_changes"

    @staticmethod
    def sanitize_description(description: str) -> str:
        token = re.sub(r'[^a-z0-9_]', '_', description.lower())
        token = re.sub(r'_+', '_', token).strip('_')
        return token or "schema_changes"

    # -------------------------------------------------------------- migrations

    def generate_initial(self, model: PhysicalModel) -> Migration:
        """V1 migration creating the whole schema."""
        plan = self.plan_initial(model)
        return self.assemble(plan, version=1, description=INITIAL_DESCRIPTION)

    def generate_incremental(
        self,
        changes: ChangeSet,
        model: PhysicalModel,
        existing_file_names: Iterable[str] = (),
        previous: Optional[PhysicalModel] = None,
    ) -> Optional[Migration]:
        """Next migration for a change set, or None when nothing changed."""
        if not changes.has_changes:
            logger.info("[MigrationBuilder] No schema changes detected")
            return None

        plan = self.plan_incremental(changes, model, previous)
        version = self.next_version(existing_file_names)
        return self.assemble(plan, version=version, description=plan.description)

    def assemble(self, plan: EvolutionPlan, version: int, description: str) -> Migration:
        token = self.sanitize_description(description)
        file_name = f"V{version}__{token}.sql"
        header = [
            f"Migration {file_name}",
            "Auto-generated migration script",
            f"Description: {description}",
        ]
        sql = self._renderer.render_script(plan.statements, header)
        logger.info(f"[MigrationBuilder] Built {file_name} with {len(plan.statements)} statements")
        return Migration(
            version=version,
            file_name=file_name,
            description=description,
            sql=sql,
            timestamp=datetime.now(timezone.utc).isoformat(),
            statements=list(plan.statements),
        )

    def render(self, plan: EvolutionPlan) -> List[str]:
        """Render each statement of a plan on its own."""
        rendered = [self._renderer.render(s) for s in plan.statements]
        return [sql for sql in rendered if sql]

    # ---------------------------------------------------------------- planning

    def plan_initial(self, model: PhysicalModel) -> EvolutionPlan:
        plan = EvolutionPlan(statements=[], description=INITIAL_DESCRIPTION)
        plan.statements = self._plan_new_tables(model, list(model.tables), plan)
        return plan

    def plan_incremental(
        self, changes: ChangeSet, model: PhysicalModel, previous: Optional[PhysicalModel] = None
    ) -> EvolutionPlan:
        plan = EvolutionPlan(statements=[], description=self.describe(changes))

        statements = self._plan_new_tables(model, changes.new_tables, plan)
        for table_change in changes.modified_tables:
            statements.extend(self._plan_modified_table(model, table_change, plan, previous))
        for table_name in changes.deleted_tables:
            statements.append(DDLStatement(
                change_type=ChangeType.DROP_TABLE,
                target_table=table_name,
                section=STEP_DROP_TABLES,
                reason=f"Table '{table_name}' no longer in the diagram",
                safe=False,
            ))

        plan.statements = statements
        plan.risk_level = self._assess_risk(changes)
        plan.backward_compatible = not changes.deleted_tables and not any(
            t.modified_columns or t.deleted_columns for t in changes.modified_tables
        )
        return plan

    def _plan_new_tables(
        self, model: PhysicalModel, table_names: List[str], plan: EvolutionPlan
    ) -> List[DDLStatement]:
        """Four passes so tables may reference each other in any order, cycles included."""
        tables = []
        for name in table_names:
            table = model.get_table(name)
            if table is None:
                plan.errors.append(f"Table '{name}' is not part of the physical model")
                continue
            tables.append(table)

        creates, fk_columns, constraints, indexes = [], [], [], []
        for table in tables:
            if not table.primary_keys:
                plan.errors.append(f"Table '{table.name}' has no primary key")
            create_columns = [c for c in table.columns if not c.is_foreign_key or c.primary_key]
            create_names = {c.name for c in create_columns}

            creates.append(DDLStatement(
                change_type=ChangeType.CREATE_TABLE,
                target_table=table.name,
                target_column=self._auto_increment_column(model, table),
                table=Table(
                    name=table.name,
                    columns=create_columns,
                    primary_keys=list(table.primary_keys),
                    unique_constraints=[
                        u for u in table.unique_constraints if set(u.columns) <= create_names
                    ],
                ),
                section=STEP_CREATE_TABLES,
            ))

            for column in table.columns:
                if column.name not in create_names:
                    fk_columns.append(DDLStatement(
                        change_type=ChangeType.ADD_COLUMN,
                        target_table=table.name,
                        target_column=column.name,
                        column=column,
                        section=STEP_ADD_FK_COLUMNS,
                    ))

            constraints.extend(self._foreign_key_statements(model, table, table.foreign_keys, plan))
            constraints.extend(
                DDLStatement(
                    change_type=ChangeType.ADD_CONSTRAINT,
                    target_table=table.name,
                    unique_constraint=u,
                    section=STEP_ADD_CONSTRAINTS,
                )
                for u in table.unique_constraints
                if not set(u.columns) <= create_names
            )
            indexes.extend(
                DDLStatement(
                    change_type=ChangeType.ADD_INDEX,
                    target_table=table.name,
                    index=index,
                    section=STEP_CREATE_INDEXES,
                )
                for index in table.indexes
            )

        return creates + fk_columns + constraints + indexes

    def _plan_modified_table(
        self,
        model: PhysicalModel,
        change: TableChange,
        plan: EvolutionPlan,
        previous: Optional[PhysicalModel],
    ) -> List[DDLStatement]:
        table = model.get_table(change.table)
        if table is None:
            plan.errors.append(f"Modified table '{change.table}' is not part of the physical model")
            return []

        section = f"{STEP_MODIFY_TABLES}: {table.name}"
        statements = []
        new_names = set(change.new_columns)
        old_table = previous.get_table(table.name) if previous else None

        for name in change.new_columns:
            column = table.get_column(name)
            if column is None:
                plan.errors.append(f"New column '{table.name}.{name}' not found")
                continue
            if column.primary_key:
                plan.warnings.append(
                    f"New primary key column '{table.name}.{name}' requires a manual primary key change"
                )
            statements.append(DDLStatement(
                change_type=ChangeType.ADD_COLUMN,
                target_table=table.name,
                target_column=name,
                column=column,
                section=section,
            ))

        for name in change.modified_columns:
            column = table.get_column(name)
            if column is None:
                plan.errors.append(f"Modified column '{table.name}.{name}' not found")
                continue
            old = old_table.get_column(name) if old_table else None
            if old is not None and old.primary_key != column.primary_key:
                plan.warnings.append(
                    f"Primary key membership of '{table.name}.{name}' changed; review the primary key manually"
                )
            statements.append(DDLStatement(
                change_type=ChangeType.MODIFY_COLUMN,
                target_table=table.name,
                target_column=name,
                column=column,
                section=section,
                safe=False,
            ))

        new_fks = [fk for fk in table.foreign_keys if new_names.intersection(fk.columns)]
        statements.extend(self._foreign_key_statements(model, table, new_fks, plan, section))
        statements.extend(
            DDLStatement(
                change_type=ChangeType.ADD_CONSTRAINT,
                target_table=table.name,
                unique_constraint=u,
                section=section,
            )
            for u in table.unique_constraints
            if new_names.intersection(u.columns)
        )
        statements.extend(
            DDLStatement(
                change_type=ChangeType.ADD_INDEX,
                target_table=table.name,
                index=index,
                section=section,
            )
            for index in table.indexes
            if new_names.intersection(index.columns)
        )

        # Column drops are never applied automatically
        for name in change.deleted_columns:
            statements.append(DDLStatement(
                change_type=ChangeType.DROP_COLUMN,
                target_table=table.name,
                target_column=name,
                section=section,
                reason="Drop column (review before enabling, data loss)",
                enabled=False,
                safe=False,
            ))

        return statements

    def _foreign_key_statements(
        self, model: PhysicalModel, table: Table, foreign_keys, plan: EvolutionPlan,
        section: str = STEP_ADD_CONSTRAINTS,
    ) -> List[DDLStatement]:
        statements = []
        for fk in foreign_keys:
            if model.get_table(fk.referenced_table) is None:
                plan.errors.append(
                    f"Foreign key '{fk.name}' on '{table.name}' references unknown table '{fk.referenced_table}'"
                )
                continue
            statements.append(DDLStatement(
                change_type=ChangeType.ADD_CONSTRAINT,
                target_table=table.name,
                target_column=fk.columns[0] if len(fk.columns) == 1 else None,
                foreign_key=fk,
                section=section,
            ))
        return statements

    @staticmethod
    def _auto_increment_column(model: PhysicalModel, table: Table) -> Optional[str]:
        """Single integer primary key backed by a sequence renders as auto-increment."""
        sequence = model.get_sequence(table.name)
        if sequence is None or len(table.primary_keys) != 1:
            return None
        column = table.get_column(table.primary_keys[0])
        if column is None or column.is_foreign_key or column.data_type not in _AUTO_INCREMENT_TYPES:
            return None
        return column.name

    @staticmethod
    def _assess_risk(changes: ChangeSet) -> str:
        if changes.deleted_tables:
            return "high"
        if any(t.modified_columns or t.deleted_columns for t in changes.modified_tables):
            return "medium"
        return "low"
