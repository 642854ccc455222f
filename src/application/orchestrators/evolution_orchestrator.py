"""Main orchestrator for evolution process."""
import logging
from typing import Optional, Tuple

from src.application.dtos.evolution_dto import MigrationRequest, MigrationResponse
from src.application.use_case.generate_migration import GenerateMigrationUseCase
from src.application.use_case.transform_model import TransformModelUseCase
from src.domain.entities.schema import PhysicalModel
from src.domain.repositeries.interfaces import IPhysicalModelRepository

logger = logging.getLogger(__name__)


class EvolutionOrchestrator:
    """
    Main orchestrator coordinating the entire evolution process:
    diagram -> physical model -> (diff against the previous schema) -> migration.
    Single Responsibility: Coordinate use cases and present results.
    """

    def __init__(
        self,
        transform_use_case: TransformModelUseCase,
        generate_use_case: GenerateMigrationUseCase,
        physical_repository: IPhysicalModelRepository,
    ):
        self._transform = transform_use_case
        self._generate = generate_use_case
        self._physical_repo = physical_repository

    def process(self, request: MigrationRequest) -> MigrationResponse:
        """Process a complete request. Never raises; failures come back in the response."""
        try:
            return self._process(request)
        except Exception as e:
            logger.exception("[EvolutionOrchestrator] Unexpected failure")
            return MigrationResponse(success=False, errors=[f"Unexpected error: {e}"])

    def _process(self, request: MigrationRequest) -> MigrationResponse:
        # Step 1: Transform the current diagram
        logger.info("[EvolutionOrchestrator] Transforming logical model")
        result = self._transform.execute(request.logical_model_json)
        response = MigrationResponse(
            success=result.success,
            physical_model=result.physical_model,
            errors=list(result.errors),
            warnings=list(result.warnings),
            steps=list(result.steps),
        )
        if not result.success:
            logger.warning("[EvolutionOrchestrator] Transformation failed, no migration generated")
            return response

        # Step 2: Resolve the previous schema
        previous, previous_errors = self._resolve_previous(request)
        if previous_errors:
            response.success = False
            response.errors.extend(previous_errors)
            return response

        # Step 3: Diff and build the migration
        logger.info(
            f"[EvolutionOrchestrator] Generating "
            f"{'initial' if previous is None else 'incremental'} migration"
        )
        outcome = self._generate.execute(result.physical_model, previous, request.existing_migrations)
        response.change_set = outcome["changes"]
        response.plan = outcome["plan"]
        response.migration = outcome["migration"]
        response.errors.extend(outcome["errors"])
        response.warnings.extend(outcome["warnings"])
        response.success = not response.errors

        if response.migration is not None:
            logger.info(f"[EvolutionOrchestrator] Generated {response.migration.file_name}")
        return response

    def _resolve_previous(self, request: MigrationRequest) -> Tuple[Optional[PhysicalModel], list]:
        if request.is_bootstrap:
            return None, []

        if request.previous_physical_model is not None:
            try:
                return self._physical_repo.from_dict(request.previous_physical_model), []
            except (KeyError, TypeError, ValueError) as e:
                return None, [f"Invalid previous physical model: {e}"]

        if request.previous_logical_model_json is not None:
            previous = self._transform.execute(request.previous_logical_model_json)
            if not previous.success:
                return None, [f"Previous diagram: {e}" for e in previous.errors]
            return previous.physical_model, []

        return None, []
