"""
Execution-time auto-composition of ad-hoc queries.

Given a query and the two pools, work out which referenced names are known
sub-queries rather than real tables and produce an executable statement.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ctekit.core.composer import SqlComposer
from ctekit.core.entities import CteEntity, PoolMatch, PrivateMatch, SharedMatch
from ctekit.parser.analysis.dependency_graph import DependencyGraphBuilder
from ctekit.parser.analysis.dependency_scanner import DependencyScanner
from ctekit.parser.parsers.sql_parser import SQLParser
from ctekit.parser.shared.constants import PRIVATE_POOL
from ctekit.parser.shared.exceptions import CompositionRenderError, SQLParsingError

if TYPE_CHECKING:
    from ctekit.storage.base import CtePool

logger = logging.getLogger(__name__)


@dataclass
class ResolutionResult:
    """Outcome of resolving one query against the private and shared pools."""

    sql: str
    original_sql: str
    ordered_names: list[str] = field(default_factory=list)
    private_names: list[str] = field(default_factory=list)
    shared_names: list[str] = field(default_factory=list)
    unknown_names: list[str] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)

    @property
    def composed(self) -> bool:
        return bool(self.ordered_names) and self.sql != self.original_sql


class CteResolutionService:
    """Resolves sub-query references of ad-hoc queries at execution time."""

    def __init__(
        self,
        parser: SQLParser | None = None,
        graph_builder: DependencyGraphBuilder | None = None,
        composer: SqlComposer | None = None,
    ):
        self.parser = parser or SQLParser()
        self.scanner = DependencyScanner(self.parser)
        self.graph_builder = graph_builder or DependencyGraphBuilder(
            self.scanner, max_depth=self.parser.max_depth
        )
        self.composer = composer or SqlComposer(self.parser, self.graph_builder)

    def resolve(
        self,
        query: str,
        private_pool: "CtePool | None",
        shared_pool: "CtePool | None" = None,
    ) -> ResolutionResult:
        """
        Compose a query with the sub-queries it references.

        Private entries come first, each pool internally in dependency order.
        A scan or render failure returns the query unmodified with a
        diagnostic.

        Args:
            query: Ad-hoc query body
            private_pool: Workspace-private pool
            shared_pool: Shared library

        Returns:
            ResolutionResult

        Raises:
            CircularDependencyError: If the referenced sub-queries form a cycle
            DependencyDepthError: If a dependency chain is too deep
        """
        # Snapshots keep concurrent pool edits out of this call
        private = private_pool.snapshot() if private_pool is not None else {}
        shared = shared_pool.snapshot() if shared_pool is not None else {}

        result = ResolutionResult(sql=query, original_sql=query)

        try:
            referenced = self.scanner.scan(query, strict=True)
        except SQLParsingError as e:
            self._record(result, f"Could not scan query, running it unmodified: {e}")
            return result

        matches = self.classify(referenced, private, shared)
        result.unknown_names = [name for name in referenced if name not in matches]
        if result.unknown_names:
            logger.debug(f"Treating as real tables: {result.unknown_names}")

        private_graph = self.graph_builder.build_graph(private.values())
        shared_graph = self.graph_builder.build_graph(shared.values())
        ordered = self.graph_builder.resolve_two_pools(
            list(matches), private_graph, shared_graph
        )

        entities: list[CteEntity] = []
        for name, pool in ordered:
            if pool == PRIVATE_POOL:
                result.private_names.append(name)
                entities.append(private[name])
            else:
                result.shared_names.append(name)
                entities.append(shared[name])
        result.ordered_names = [name for name, _ in ordered]

        if not entities:
            return result

        try:
            result.sql = self.composer.compose(query, entities)
        except (CompositionRenderError, SQLParsingError) as e:
            self._record(result, f"Could not compose CTEs, running query unmodified: {e}")
            result.sql = query
            return result

        logger.info(
            f"Composed query with {len(result.private_names)} private and "
            f"{len(result.shared_names)} shared CTEs: {result.ordered_names}"
        )
        return result

    def compose_for_execution(
        self,
        query: str,
        private_pool: "CtePool | None",
        shared_pool: "CtePool | None" = None,
    ) -> str:
        """Executable SQL for a query; see resolve()."""
        return self.resolve(query, private_pool, shared_pool).sql

    def classify(
        self,
        names: list[str],
        private: dict[str, CteEntity],
        shared: dict[str, CteEntity],
    ) -> dict[str, PoolMatch]:
        """
        Match names against the pools, private first.

        Args:
            names: Referenced relation names
            private: Private pool snapshot
            shared: Shared pool snapshot

        Returns:
            Dict of name -> PrivateMatch or SharedMatch; unknown names are absent
        """
        matches: dict[str, PoolMatch] = {}
        for name in names:
            if name in private:
                matches[name] = PrivateMatch(private[name])
            elif name in shared:
                matches[name] = SharedMatch(shared[name])
        return matches

    def _record(self, result: ResolutionResult, message: str) -> None:
        logger.warning(message)
        result.diagnostics.append(message)
