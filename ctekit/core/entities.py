"""
Data model for sub-queries, decomposed models and pool lookups.
"""

import re
from dataclasses import dataclass, field
from enum import Enum

from ctekit.parser.shared.constants import CTE_NAME_PATTERN, PRIVATE_POOL, SHARED_POOL
from ctekit.parser.shared.exceptions import InvalidCteNameError
from ctekit.typing.cte import CteEntityDict

_CTE_NAME_RE = re.compile(CTE_NAME_PATTERN)


def validate_cte_name(name: str) -> str:
    """Return the name if it is a plain SQL identifier, raise otherwise."""
    if not isinstance(name, str) or not _CTE_NAME_RE.match(name):
        raise InvalidCteNameError(name)
    return name


@dataclass
class CteEntity:
    """A named sub-query stored in a pool."""

    name: str
    body_sql: str
    dependencies: list[str] = field(default_factory=list)
    declared_columns: list[str] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)
    description: str | None = None

    def __post_init__(self):
        validate_cte_name(self.name)

    def copy(self) -> "CteEntity":
        """Independent copy, safe to hand to a resolution call."""
        return CteEntity(
            name=self.name,
            body_sql=self.body_sql,
            dependencies=list(self.dependencies),
            declared_columns=list(self.declared_columns),
            columns=list(self.columns),
            description=self.description,
        )

    def to_dict(self) -> CteEntityDict:
        return {
            "name": self.name,
            "body_sql": self.body_sql,
            "dependencies": list(self.dependencies),
            "declared_columns": list(self.declared_columns),
            "columns": list(self.columns),
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: CteEntityDict) -> "CteEntity":
        return cls(
            name=data["name"],
            body_sql=data["body_sql"],
            dependencies=list(data.get("dependencies", [])),
            declared_columns=list(data.get("declared_columns", [])),
            columns=list(data.get("columns", [])),
            description=data.get("description"),
        )


class ModelKind(str, Enum):
    """Role of a model in a decomposition."""

    MAIN = "main"
    SUB = "sub"


@dataclass(eq=False)
class SqlModel:
    """
    A node of a decomposed statement.

    ``dependencies`` holds references to the sibling models this one reads
    from. Models only live for the duration of one decompose/compose call.
    """

    kind: ModelKind
    name: str
    body_sql: str
    declared_columns: list[str] = field(default_factory=list)
    dependencies: list["SqlModel"] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)

    @property
    def dependency_names(self) -> list[str]:
        return [dependency.name for dependency in self.dependencies]

    @property
    def is_main(self) -> bool:
        return self.kind is ModelKind.MAIN

    def add_dependency(self, model: "SqlModel") -> None:
        """Add an edge to another model, ignoring self references and duplicates."""
        if model is self or model.name == self.name:
            return
        if model.name not in self.dependency_names:
            self.dependencies.append(model)

    def to_entity(self) -> CteEntity:
        """Flatten a sub model into a pool entity."""
        return CteEntity(
            name=self.name,
            body_sql=self.body_sql,
            dependencies=self.dependency_names,
            declared_columns=list(self.declared_columns),
            columns=list(self.columns),
        )

    def __repr__(self) -> str:
        return (
            f"SqlModel(kind={self.kind.value!r}, name={self.name!r}, "
            f"dependencies={self.dependency_names!r})"
        )


@dataclass(frozen=True)
class PrivateMatch:
    """A name found in the workspace-private pool."""

    entity: CteEntity
    pool: str = PRIVATE_POOL


@dataclass(frozen=True)
class SharedMatch:
    """A name found in the shared library."""

    entity: CteEntity
    pool: str = SHARED_POOL


PoolMatch = PrivateMatch | SharedMatch
