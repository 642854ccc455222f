"""Dependency Injection Container."""

from typing import Optional
import os
import logging

logger = logging.getLogger(__name__)

DEFAULT_DIALECT = "postgresql"
DEFAULT_MIGRATIONS_DIR = "db/migration"
DEFAULT_LOG_LEVEL = "INFO"


class DIContainer:
    """
    Dependency Injection Container.
    Follows Dependency Inversion Principle.

    Settings come from the environment (SCHEMA_DIALECT, MIGRATIONS_DIR,
    SCHEMA_LOG_LEVEL); configure() overrides them.
    """

    def __init__(self):
        self._dialect: str = os.getenv("SCHEMA_DIALECT", DEFAULT_DIALECT)
        self._migrations_dir: str = os.getenv("MIGRATIONS_DIR", DEFAULT_MIGRATIONS_DIR)
        self._log_level: str = os.getenv("SCHEMA_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
        self._services = {}

    def configure(self, dialect: Optional[str] = None, migrations_dir: Optional[str] = None):
        """Configure the container."""
        if dialect:
            self._dialect = dialect
        if migrations_dir:
            self._migrations_dir = migrations_dir
        # Services built for the old settings are stale
        self._services.clear()

    @property
    def dialect(self) -> str:
        return self._dialect

    @property
    def migrations_dir(self) -> str:
        return self._migrations_dir

    @property
    def log_level(self) -> str:
        return self._log_level

    def get_rule_engine(self):
        """Get rule engine."""
        if "rule_engine" not in self._services:
            from src.domain.services.rule_engine import RuleEngine
            from src.domain.entities.rules import default_rule_set

            self._services["rule_engine"] = RuleEngine(default_rule_set())

        return self._services["rule_engine"]

    def get_transformation_engine(self):
        """Get transformation engine."""
        if "transformation_engine" not in self._services:
            from src.domain.services.transformation_engine import TransformationEngine

            rule_engine = self.get_rule_engine()
            self._services["transformation_engine"] = TransformationEngine(
                naming_convention=rule_engine.rule_set.naming,
                rule_engine=rule_engine,
            )

        return self._services["transformation_engine"]

    def get_diff_engine(self):
        """Get diff engine."""
        if "diff_engine" not in self._services:
            from src.domain.services.diff_engine import DiffEngine
            self._services["diff_engine"] = DiffEngine()

        return self._services["diff_engine"]

    def get_migration_builder(self):
        """Get migration builder."""
        if "migration_builder" not in self._services:
            from src.domain.services.migration_builder import MigrationBuilder
            self._services["migration_builder"] = MigrationBuilder(self._dialect)

        return self._services["migration_builder"]

    def get_logical_repository(self):
        if "logical_repository" not in self._services:
            from src.infrastructure.repositories.logical_model_repository import LogicalModelRepository
            self._services["logical_repository"] = LogicalModelRepository()

        return self._services["logical_repository"]

    def get_physical_repository(self):
        if "physical_repository" not in self._services:
            from src.infrastructure.repositories.physical_model_repository import PhysicalModelRepository
            self._services["physical_repository"] = PhysicalModelRepository()

        return self._services["physical_repository"]

    def get_migration_repository(self):
        """Get filesystem migration history."""
        if "migration_repository" not in self._services:
            from src.infrastructure.repositories.migration_repository import MigrationRepository
            self._services["migration_repository"] = MigrationRepository(self._migrations_dir)

        return self._services["migration_repository"]

    def get_transform_use_case(self):
        from src.application.use_case.transform_model import TransformModelUseCase

        return TransformModelUseCase(self.get_logical_repository(), self.get_transformation_engine())

    def get_orchestrator(self):
        """Get evolution orchestrator."""
        from src.application.orchestrators.evolution_orchestrator import EvolutionOrchestrator
        from src.application.use_case.generate_migration import GenerateMigrationUseCase
        from src.infrastructure.validators.sql_validator import SQLValidator

        generate_use_case = GenerateMigrationUseCase(
            self.get_diff_engine(),
            self.get_migration_builder(),
            SQLValidator(),
        )

        logger.debug(f"[DIContainer] Orchestrator for dialect {self._dialect}")
        return EvolutionOrchestrator(
            self.get_transform_use_case(),
            generate_use_case,
            self.get_physical_repository(),
        )
