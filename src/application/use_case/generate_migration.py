"""Use case for generating the next migration."""
import logging
from typing import Any, Dict, Iterable, Optional

from src.domain.entities.schema import PhysicalModel
from src.domain.services.diff_engine import DiffEngine
from src.domain.services.migration_builder import INITIAL_DESCRIPTION, MigrationBuilder
from src.infrastructure.validators.sql_validator import SQLValidator

logger = logging.getLogger(__name__)


class GenerateMigrationUseCase:
    """
    Use case: Generate an executable, versioned migration.
    Single Responsibility: Generate migration artifacts.
    """

    def __init__(
        self,
        diff_engine: DiffEngine,
        migration_builder: MigrationBuilder,
        sql_validator: SQLValidator,
    ):
        self._diff_engine = diff_engine
        self._migration_builder = migration_builder
        self._sql_validator = sql_validator

    def execute(
        self,
        current: PhysicalModel,
        previous: Optional[PhysicalModel] = None,
        existing_file_names: Iterable[str] = (),
    ) -> Dict[str, Any]:
        """
        Execute migration generation.

        Returns a dict with `changes`, `plan`, `migration` (None when there
        is nothing to migrate), `errors` and `warnings`.
        """
        existing_file_names = list(existing_file_names)
        warnings = []

        changes = self._diff_engine.compute_diff(previous, current)

        if previous is None:
            if existing_file_names:
                warnings.append(
                    f"No previous model supplied but {len(existing_file_names)} migration(s) exist; "
                    f"generating the initial migration"
                )
            plan = self._migration_builder.plan_initial(current)
            version, description = 1, INITIAL_DESCRIPTION
        elif not changes.has_changes:
            logger.info("[GenerateMigrationUseCase] Schema unchanged, no migration generated")
            return {"changes": changes, "plan": None, "migration": None, "errors": [], "warnings": warnings}
        else:
            plan = self._migration_builder.plan_incremental(changes, current, previous)
            version = self._migration_builder.next_version(existing_file_names)
            description = plan.description

        migration = self._migration_builder.assemble(plan, version=version, description=description)

        # Validate the rendered SQL
        errors = list(plan.errors)
        errors.extend(self._sql_validator.validate_script(migration.sql))

        # New tables are empty, so safety only matters for existing ones
        if previous is not None:
            for statement in plan.statements:
                if statement.target_table in changes.new_tables:
                    continue
                _, safety_warnings = self._sql_validator.validate_safety(statement)
                warnings.extend(safety_warnings)
        warnings.extend(plan.warnings)

        plan.metadata["sql_valid"] = not errors
        plan.metadata["statement_count"] = len(plan.statements)

        return {
            "changes": changes,
            "plan": plan,
            "migration": migration,
            "errors": errors,
            "warnings": warnings,
        }
