"""Data Transfer Objects for application layer."""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional
from src.domain.entities.evolution import ChangeSet, EvolutionPlan, Migration
from src.domain.entities.schema import PhysicalModel


@dataclass
class MigrationRequest:
    """
    Request to turn a class diagram into the next migration.

    The previous schema is given either as a physical model (as returned by
    an earlier run) or as the previous diagram. Without either, the initial
    V1 migration is generated.
    """
    logical_model_json: Dict[str, Any]
    previous_physical_model: Optional[Dict[str, Any]] = None
    previous_logical_model_json: Optional[Dict[str, Any]] = None
    existing_migrations: List[str] = field(default_factory=list)

    @property
    def is_bootstrap(self) -> bool:
        return self.previous_physical_model is None and self.previous_logical_model_json is None


@dataclass
class MigrationResponse:
    """Response containing the physical model and, when something changed, the migration."""
    success: bool
    physical_model: Optional[PhysicalModel] = None
    change_set: Optional[ChangeSet] = None
    plan: Optional[EvolutionPlan] = None
    migration: Optional[Migration] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    steps: List[str] = field(default_factory=list)
