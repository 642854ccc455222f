from abc import ABC, abstractmethod
from typing import List, Dict, Any, Tuple
from src.domain.entities.logical import LogicalModel
from src.domain.entities.schema import PhysicalModel
from src.domain.entities.evolution import Migration


class ILogicalModelRepository(ABC):
    """Interface for class diagram ingestion."""

    @abstractmethod
    def parse(self, json_data: Dict[str, Any]) -> Tuple[LogicalModel, List[str]]:
        """Parse a serialized diagram. Returns the model and the ingestion errors."""
        pass

    @abstractmethod
    def load(self, path: str) -> Tuple[LogicalModel, List[str]]:
        """Read and parse a diagram JSON file."""
        pass


class IPhysicalModelRepository(ABC):
    """Interface for physical model (de)serialization."""

    @abstractmethod
    def to_dict(self, model: PhysicalModel) -> Dict[str, Any]:
        pass

    @abstractmethod
    def from_dict(self, data: Dict[str, Any]) -> PhysicalModel:
        pass

    @abstractmethod
    def load(self, path: str) -> PhysicalModel:
        pass

    @abstractmethod
    def save(self, model: PhysicalModel, path: str) -> None:
        pass


class IMigrationRepository(ABC):
    """Interface for the append-only migration history."""

    @abstractmethod
    def list_file_names(self) -> List[str]:
        """File names of every stored migration."""
        pass

    @abstractmethod
    def save(self, migration: Migration) -> str:
        """Store a new migration, returns its location. Never overwrites."""
        pass

    @abstractmethod
    def read(self, file_name: str) -> str:
        pass
