"""
Persistence contract for pools of named sub-queries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ctekit.core.entities import CteEntity


class CtePool(ABC):
    """
    Abstract base class for a pool of sub-queries.

    A pool holds at most one entity per name. Writes are last-writer-wins per
    entity; there are no cross-entity transactions.
    """

    @abstractmethod
    def get(self, name: str) -> CteEntity | None:
        """Return the entity with this name, or None."""
        pass

    @abstractmethod
    def list(self) -> list[CteEntity]:
        """Return every entity in the pool."""
        pass

    @abstractmethod
    def put(self, name: str, entity: CteEntity) -> None:
        """Create or replace the entity stored under ``name``."""
        pass

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Remove an entity; return whether it existed."""
        pass

    def names(self) -> list[str]:
        return [entity.name for entity in self.list()]

    def clear(self) -> None:
        for name in self.names():
            self.delete(name)

    def replace_all(self, entities: list[CteEntity]) -> None:
        """Replace the whole pool content."""
        self.clear()
        for entity in entities:
            self.put(entity.name, entity)

    def snapshot(self) -> dict[str, CteEntity]:
        """Independent copies of every entity, keyed by name."""
        return {entity.name: entity.copy() for entity in self.list()}

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __len__(self) -> int:
        return len(self.list())

    def _check_name(self, name: str, entity: CteEntity) -> None:
        if name != entity.name:
            raise ValueError(f"Entity name {entity.name!r} does not match key {name!r}")
