"""
Pool backed by a directory with one `<name>.sql` file per sub-query.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ctekit.core.entities import CteEntity
from ctekit.parser.shared.exceptions import StorageError
from ctekit.parser.shared.types import FilePath

from .base import CtePool
from .cte_file import format_cte_file, parse_cte_file

logger = logging.getLogger(__name__)


class DirectoryCtePool(CtePool):
    """Stores each entity as a header-annotated SQL file."""

    def __init__(self, folder: FilePath, create: bool = True):
        """
        Initialize the pool.

        Args:
            folder: Directory holding the `.sql` files
            create: Create the directory if it does not exist
        """
        self.folder = Path(folder)
        if create:
            self.folder.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        return self.folder / f"{name}.sql"

    def get(self, name: str) -> CteEntity | None:
        path = self.path_for(name)
        if not path.exists():
            return None
        return self._read(path)

    def list(self) -> list[CteEntity]:
        if not self.folder.exists():
            return []
        return [self._read(path) for path in sorted(self.folder.glob("*.sql"))]

    def put(self, name: str, entity: CteEntity) -> None:
        self._check_name(name, entity)
        path = self.path_for(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(format_cte_file(entity), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write CTE '{name}' to {path}: {e}") from e
        logger.debug(f"Saved CTE {name} to {path}")

    def delete(self, name: str) -> bool:
        path = self.path_for(name)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            raise StorageError(f"Failed to delete CTE '{name}' at {path}: {e}") from e
        logger.debug(f"Deleted CTE {name} at {path}")
        return True

    def _read(self, path: Path) -> CteEntity:
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read CTE file {path}: {e}") from e
        return parse_cte_file(content, default_name=path.stem)
