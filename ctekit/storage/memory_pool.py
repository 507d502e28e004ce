"""
In-memory pool, used for workspace-private sub-queries.
"""

from __future__ import annotations

from ctekit.core.entities import CteEntity

from .base import CtePool


class InMemoryCtePool(CtePool):
    """Pool backed by a dict; entities are copied in and out."""

    def __init__(self, entities: list[CteEntity] | None = None):
        self._entities: dict[str, CteEntity] = {}
        for entity in entities or []:
            self.put(entity.name, entity)

    def get(self, name: str) -> CteEntity | None:
        entity = self._entities.get(name)
        return entity.copy() if entity else None

    def list(self) -> list[CteEntity]:
        return [entity.copy() for entity in self._entities.values()]

    def put(self, name: str, entity: CteEntity) -> None:
        self._check_name(name, entity)
        self._entities[name] = entity.copy()

    def delete(self, name: str) -> bool:
        return self._entities.pop(name, None) is not None

    def clear(self) -> None:
        self._entities.clear()
