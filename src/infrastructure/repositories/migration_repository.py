import os
import logging
from typing import List

from src.domain.repositeries.interfaces import IMigrationRepository
from src.domain.entities.evolution import Migration
from src.domain.services.migration_builder import MigrationBuilder

logger = logging.getLogger(__name__)


class MigrationRepository(IMigrationRepository):
    """
    Filesystem migration history (`V<n>__<description>.sql` files in one directory).
    Single Responsibility: migration file storage. Append-only.
    """

    def __init__(self, directory: str):
        self._directory = directory

    @property
    def directory(self) -> str:
        return self._directory

    def list_file_names(self) -> List[str]:
        """Migration file names sorted by version."""
        if not os.path.isdir(self._directory):
            return []
        names = [
            name for name in os.listdir(self._directory)
            if name.endswith(".sql") and MigrationBuilder.extract_version(name) > 0
        ]
        return sorted(names, key=MigrationBuilder.extract_version)

    def save(self, migration: Migration) -> str:
        os.makedirs(self._directory, exist_ok=True)
        path = os.path.join(self._directory, migration.file_name)

        taken = [n for n in self.list_file_names() if MigrationBuilder.extract_version(n) == migration.version]
        if taken:
            raise FileExistsError(f"Migration version {migration.version} already exists: {taken[0]}")

        # mode 'x' fails if the file exists
        with open(path, 'x') as f:
            f.write(migration.sql)

        logger.info(f"[MigrationRepository] Wrote {path}")
        return path

    def read(self, file_name: str) -> str:
        with open(os.path.join(self._directory, file_name), 'r') as f:
            return f.read()
