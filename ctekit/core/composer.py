"""
Composition of a main query and named sub-queries into one statement.
"""

import logging
from typing import Any, Sequence

from ctekit.core.entities import SqlModel
from ctekit.parser.analysis.cte_extractor import CteExtractor
from ctekit.parser.analysis.dependency_graph import DependencyGraphBuilder
from ctekit.parser.analysis.dependency_scanner import DependencyScanner
from ctekit.parser.parsers.sql_parser import SQLParser
from ctekit.parser.shared.exceptions import CompositionRenderError, SQLParsingError
from ctekit.parser.shared.types import DependencyGraph

logger = logging.getLogger(__name__)


class SqlComposer:
    """Renders WITH clauses from ordered sub-queries."""

    def __init__(
        self,
        parser: SQLParser | None = None,
        graph_builder: DependencyGraphBuilder | None = None,
    ):
        self.parser = parser or SQLParser()
        self.extractor = CteExtractor(self.parser)
        self.graph_builder = graph_builder or DependencyGraphBuilder(
            DependencyScanner(self.parser), max_depth=self.parser.max_depth
        )

    def reconstruct_sql(self, model: SqlModel) -> str:
        """
        Rebuild the full statement for a model from its dependency object graph.

        Args:
            model: Usually the main model of a decomposition

        Returns:
            SQL with a WITH clause listing every transitive dependency in
            dependency order; the bare body when there are none

        Raises:
            CircularDependencyError: If the object graph has a cycle
            CompositionRenderError: If the assembled SQL is invalid
        """
        arena, graph = self._collect(model)
        order = self.graph_builder.topological_order(model.dependency_names, graph)
        logger.debug(f"Reconstructing {model.name} with CTE order: {order}")
        return self.compose(model.body_sql, [arena[name] for name in order])

    def compose(self, main_body_sql: str, ordered_entities: Sequence[Any]) -> str:
        """
        Render a main body and an already ordered list of sub-queries.

        Args:
            main_body_sql: Main query; may carry a WITH clause of its own
            ordered_entities: Objects with ``name``, ``body_sql`` and
                ``declared_columns``, dependencies first

        Returns:
            The composed statement, or the main body unchanged when the list is empty

        Raises:
            SQLParsingError: If the main body is malformed
            CompositionRenderError: On duplicate names, non-query bodies or
                assembled SQL that does not re-parse
        """
        entities = list(ordered_entities)
        if not entities:
            return main_body_sql

        names = [entity.name for entity in entities]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise CompositionRenderError(
                f"Duplicate CTE names in composition: {', '.join(duplicates)}", duplicates
            )

        main = self.extractor.extract(main_body_sql)
        local_names = set(main.names)

        definitions = []
        recursive = main.recursive
        for entity in entities:
            if entity.name in local_names:
                logger.debug(f"Main query defines {entity.name} itself, skipping pooled version")
                continue
            body = self._render_body(entity)
            if entity.name in self.graph_builder.scanner.scan(body):
                recursive = True
            definitions.append(
                self._render_definition(entity.name, list(entity.declared_columns), body)
            )

        for definition in main.definitions:
            definitions.append(
                self._render_definition(
                    definition.name, definition.declared_columns, definition.body_sql
                )
            )

        keyword = "WITH RECURSIVE" if recursive else "WITH"
        sql = f"{keyword} {', '.join(definitions)} {main.remainder_sql}"

        try:
            expression = self.parser.parse_expression(sql)
        except SQLParsingError as e:
            raise CompositionRenderError(
                f"Composed SQL is not valid: {e}", [entity.name for entity in entities]
            ) from e

        return self.parser.render(expression)

    def _render_body(self, entity: Any) -> str:
        try:
            if not self.parser.is_query(entity.body_sql, name=entity.name):
                raise CompositionRenderError(
                    f"Body of CTE '{entity.name}' is not a query", [entity.name]
                )
            return self.parser.normalize(entity.body_sql, name=entity.name)
        except SQLParsingError as e:
            raise CompositionRenderError(
                f"Body of CTE '{entity.name}' is not valid SQL: {e}", [entity.name]
            ) from e

    def _render_definition(self, name: str, columns: list[str], body: str) -> str:
        alias = self.parser.render_identifier(name)
        if columns:
            alias += f"({', '.join(self.parser.render_identifier(c) for c in columns)})"
        return f"{alias} AS ({body})"

    def _collect(self, model: SqlModel) -> tuple[dict[str, SqlModel], DependencyGraph]:
        """Flatten the reachable object graph into a name-addressed arena and adjacency map."""
        arena: dict[str, SqlModel] = {}
        graph: DependencyGraph = {}
        stack = list(model.dependencies)
        while stack:
            node = stack.pop()
            if node.name in arena:
                continue
            arena[node.name] = node
            graph[node.name] = node.dependency_names
            stack.extend(node.dependencies)
        return arena, graph
