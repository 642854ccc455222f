"""Use case for turning a serialized class diagram into a physical model."""
import logging
from typing import Any, Dict

from src.domain.repositeries.interfaces import ILogicalModelRepository
from src.domain.services.transformation_engine import TransformationEngine, TransformationResult

logger = logging.getLogger(__name__)


class TransformModelUseCase:
    """
    Use case: Parse a diagram and map it to a relational schema.
    Single Responsibility: Ingestion plus transformation, errors merged.
    """

    def __init__(self, logical_repository: ILogicalModelRepository, engine: TransformationEngine):
        self._logical_repo = logical_repository
        self._engine = engine

    def execute(self, logical_model_json: Dict[str, Any]) -> TransformationResult:
        """Execute the transformation. Ingestion errors make the result unsuccessful."""
        logical_model, ingestion_errors = self._logical_repo.parse(logical_model_json)
        result = self._engine.transform(logical_model)

        if ingestion_errors:
            logger.warning(f"[TransformModelUseCase] {len(ingestion_errors)} ingestion error(s)")
            result.errors[:0] = ingestion_errors
            result.success = False

        return result
