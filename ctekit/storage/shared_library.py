"""
Cross-workspace library of shared sub-queries.

Entities live as files in a directory. Parsed metadata is cached in a JSON
file together with each source file's modification time; an entry is stale
once its file's modification time exceeds the cached marker, and is then
re-parsed on the next refresh.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ctekit.core.entities import CteEntity
from ctekit.parser.analysis.cte_extractor import CteExtractor
from ctekit.parser.shared.constants import DEFAULT_CACHE_FILE
from ctekit.parser.shared.exceptions import StorageError
from ctekit.parser.shared.types import FilePath

from .directory_pool import DirectoryCtePool

logger = logging.getLogger(__name__)


class SharedCteLibrary(DirectoryCtePool):
    """Directory pool with a modification-time based metadata cache."""

    def __init__(
        self,
        folder: FilePath,
        cache_file: FilePath | None = None,
        extractor: CteExtractor | None = None,
        auto_refresh: bool = True,
    ):
        """
        Initialize the library.

        Args:
            folder: Directory holding the shared `.sql` files
            cache_file: JSON cache location (default: inside the folder)
            extractor: Used to infer output columns of each body
            auto_refresh: Refresh the cache on every get()/list()
        """
        super().__init__(folder)
        self.cache_file = Path(cache_file) if cache_file else self.folder / DEFAULT_CACHE_FILE
        self.extractor = extractor or CteExtractor()
        self.auto_refresh = auto_refresh
        self._cache: dict[str, dict[str, Any]] = self._load_cache()

    def get(self, name: str) -> CteEntity | None:
        if self.auto_refresh:
            self.refresh()
        entry = self._cache.get(name)
        return self._entity_from_entry(entry) if entry else None

    def list(self) -> list[CteEntity]:
        if self.auto_refresh:
            self.refresh()
        return [self._entity_from_entry(entry) for entry in self._cache.values()]

    def put(self, name: str, entity: CteEntity) -> None:
        super().put(name, entity)
        self._cache_entity(entity, self.path_for(name))
        self._save_cache()

    def delete(self, name: str) -> bool:
        entry = self._cache.pop(name, None)
        path = Path(entry["file_path"]) if entry else self.path_for(name)
        existed = entry is not None
        if path.exists():
            try:
                path.unlink()
            except OSError as e:
                raise StorageError(f"Failed to delete shared CTE '{name}' at {path}: {e}") from e
            existed = True
        self._save_cache()
        return existed

    def is_stale(self, name: str) -> bool:
        """Whether the cached entry is missing or older than its source file."""
        entry = self._cache.get(name)
        if entry is None:
            return True
        path = Path(entry["file_path"])
        if not path.exists():
            return True
        return path.stat().st_mtime > entry["last_modified"]

    def refresh(self) -> bool:
        """
        Re-parse new and modified files and drop entries of deleted files.

        Returns:
            True if the cache changed

        Raises:
            StorageError: If two files declare the same name
        """
        updated = False
        cached_by_path = {entry["file_path"]: name for name, entry in self._cache.items()}
        seen_paths = set()
        claimed: dict[str, str] = {}

        for path in sorted(self.folder.glob("*.sql")):
            file_path = str(path)
            seen_paths.add(file_path)
            cached_name = cached_by_path.get(file_path)
            if cached_name and not self.is_stale(cached_name):
                self._claim(claimed, cached_name, file_path)
                continue

            entity = self._read(path)
            self._claim(claimed, entity.name, file_path)
            if cached_name and cached_name != entity.name:
                self._cache.pop(cached_name, None)
            self._cache_entity(entity, path)
            updated = True
            logger.info(f"Updated shared CTE cache for: {entity.name}")

        for name, entry in list(self._cache.items()):
            if entry["file_path"] not in seen_paths:
                del self._cache[name]
                updated = True
                logger.info(f"Removed from shared CTE cache: {name}")

        if updated:
            self._save_cache()
        return updated

    def _claim(self, claimed: dict[str, str], name: str, file_path: str) -> None:
        owner = claimed.setdefault(name, file_path)
        if owner != file_path:
            raise StorageError(f"Shared CTE '{name}' is declared by both {owner} and {file_path}")

    def _cache_entity(self, entity: CteEntity, path: Path) -> None:
        columns = entity.columns or entity.declared_columns
        if not columns:
            columns = self.extractor.infer_columns(entity.body_sql, entity.name)
        self._cache[entity.name] = {
            "name": entity.name,
            "description": entity.description,
            "dependencies": list(entity.dependencies),
            "declared_columns": list(entity.declared_columns),
            "columns": list(columns),
            "body_sql": entity.body_sql,
            "file_path": str(path),
            "last_modified": path.stat().st_mtime,
        }

    def _entity_from_entry(self, entry: dict[str, Any]) -> CteEntity:
        return CteEntity(
            name=entry["name"],
            body_sql=entry["body_sql"],
            dependencies=list(entry.get("dependencies", [])),
            declared_columns=list(entry.get("declared_columns", [])),
            columns=list(entry.get("columns", [])),
            description=entry.get("description"),
        )

    def _load_cache(self) -> dict[str, dict[str, Any]]:
        if not self.cache_file.exists():
            logger.debug("No shared CTE cache found, starting fresh")
            return {}
        try:
            with open(self.cache_file, encoding="utf-8") as f:
                cache = json.load(f)
            logger.debug(f"Shared CTE cache loaded: {len(cache)} entries")
            return cache
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable shared CTE cache {self.cache_file}: {e}")
            return {}

    def _save_cache(self) -> None:
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_file, "w", encoding="utf-8") as f:
                json.dump(self._cache, f, indent=2)
        except OSError as e:
            raise StorageError(f"Failed to write shared CTE cache {self.cache_file}: {e}") from e
