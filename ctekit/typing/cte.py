"""
Type definitions for serialized sub-queries and dependency reports.
"""

from typing import NotRequired, TypedDict


class CteEntityDict(TypedDict):
    """Serialized form of a sub-query entity."""

    name: str
    body_sql: str
    dependencies: list[str]
    declared_columns: list[str]
    columns: NotRequired[list[str]]
    description: NotRequired[str | None]


class WithItem(TypedDict):
    """One `name AS (body)` entry of a WITH clause."""

    name: str
    body: str
    columns: list[str]


class ParsedStatement(TypedDict):
    """Result of splitting a statement into its WITH entries and remainder."""

    with_items: list[WithItem]
    remainder: str
    recursive: bool
    has_with: bool


class DependencyReport(TypedDict):
    """
    Full dependency picture of a pool, for diagnostics and visualization.

    Edges point from dependency to consumer, matching execution direction.
    """

    nodes: list[str]
    dependencies: dict[str, list[str]]
    dependents: dict[str, list[str]]
    edges: list[tuple[str, str]]
    execution_order: list[str]
    cycles: list[list[str]]
