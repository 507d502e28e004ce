"""
Workspace lifecycle: one main query plus its private pool of sub-queries.

Edits go through the authoritative path: errors propagate unchanged and a
failed edit leaves the pool as it was.
"""

import logging
from pathlib import Path

from ctekit.config import CteKitConfig
from ctekit.core.composer import SqlComposer
from ctekit.core.decomposer import DecompositionResult, SqlDecomposer
from ctekit.core.entities import CteEntity
from ctekit.core.resolution import CteResolutionService, ResolutionResult
from ctekit.parser.analysis.cte_extractor import CteExtractor
from ctekit.parser.analysis.dependency_graph import DependencyGraphBuilder
from ctekit.parser.analysis.dependency_scanner import DependencyScanner
from ctekit.parser.parsers.sql_parser import SQLParser
from ctekit.parser.shared.constants import CTE_FOLDER, MAIN_QUERY_FILE
from ctekit.parser.shared.exceptions import (
    DependencyError,
    DependentsExistError,
    SQLParsingError,
    StorageError,
    UnknownNameError,
)
from ctekit.parser.shared.types import DependencyGraph, ExecutionOrder, FilePath
from ctekit.storage.base import CtePool
from ctekit.storage.directory_pool import DirectoryCtePool
from ctekit.storage.memory_pool import InMemoryCtePool
from ctekit.typing.cte import DependencyReport

logger = logging.getLogger(__name__)


class Workspace:
    """An editable main query and the private sub-queries it is built from."""

    def __init__(
        self,
        name: str,
        pool: CtePool | None = None,
        main_query: str = "",
        config: CteKitConfig | None = None,
    ):
        """
        Initialize the workspace.

        Args:
            name: Workspace name, also used as the main model name
            pool: Private pool (default: in-memory)
            main_query: Main query body
            config: Dialect and rendering settings
        """
        self.name = name
        self.pool = pool if pool is not None else InMemoryCtePool()
        self.main_query = main_query
        self.config = config or CteKitConfig()
        self.folder: Path | None = None

        self.parser = SQLParser(
            dialect=self.config.dialect,
            pretty=self.config.pretty,
            max_depth=self.config.max_depth,
        )
        self.scanner = DependencyScanner(self.parser)
        self.extractor = CteExtractor(self.parser)
        self.graph_builder = DependencyGraphBuilder(self.scanner, max_depth=self.config.max_depth)
        self.composer = SqlComposer(self.parser, self.graph_builder)
        self.decomposer = SqlDecomposer(self.parser, self.graph_builder)
        self.resolver = CteResolutionService(self.parser, self.graph_builder, self.composer)

    @classmethod
    def from_directory(
        cls, folder: FilePath, config: CteKitConfig | None = None, create: bool = False
    ) -> "Workspace":
        """
        Open a workspace stored as `main.sql` plus a `cte/` folder.

        Args:
            folder: Workspace directory
            config: Dialect and rendering settings
            create: Create the directory layout if missing

        Raises:
            StorageError: If the directory does not exist and create is False
        """
        folder = Path(folder)
        if not folder.is_dir() and not create:
            raise StorageError(f"Workspace directory not found: {folder}")

        main_file = folder / MAIN_QUERY_FILE
        main_query = main_file.read_text(encoding="utf-8").strip() if main_file.exists() else ""

        workspace = cls(
            name=folder.resolve().name,
            pool=DirectoryCtePool(folder / CTE_FOLDER, create=create),
            main_query=main_query,
            config=config,
        )
        workspace.folder = folder
        return workspace

    def save_main_query(self) -> Path:
        """Write the main query to the workspace directory."""
        if self.folder is None:
            raise StorageError(f"Workspace {self.name} is not backed by a directory")
        path = self.folder / MAIN_QUERY_FILE
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.main_query.strip() + "\n", encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write main query to {path}: {e}") from e
        return path

    def decompose(self, sql: str) -> DecompositionResult:
        """
        Decompose a statement and replace the private pool with its sub-queries.

        Raises:
            SQLParsingError: If the statement is malformed
            CircularDependencyError: If the sub-queries form a cycle
        """
        result = self.decomposer.decompose(sql, self.name)
        self.pool.replace_all(result.to_entities())
        self.main_query = result.main_model.body_sql
        logger.info(f"Workspace {self.name} now holds {len(result.sub_models)} CTEs")
        return result

    def save_cte(
        self,
        name: str,
        body_sql: str,
        description: str | None = None,
        declared_columns: list[str] | None = None,
    ) -> CteEntity:
        """
        Create or update a sub-query and refresh every entity's dependencies.

        Args:
            name: Sub-query name
            body_sql: Query body
            description: Optional description
            declared_columns: Optional explicit column list

        Returns:
            The stored entity with dependencies and columns filled in

        Raises:
            InvalidCteNameError: If the name is not a plain identifier
            SQLParsingError: If the body is malformed or not a query
            CircularDependencyError: If the edit would create a cycle
        """
        name = self.parser.canonical_name(name)
        entity = CteEntity(
            name=name,
            body_sql=body_sql.strip(),
            declared_columns=[
                self.parser.canonical_name(column) for column in declared_columns or []
            ],
            description=description,
        )
        if not self.parser.is_query(entity.body_sql, name=name):
            raise SQLParsingError(f"Body of CTE '{name}' is not a query", name=name)

        previous = self.pool.snapshot()
        self.pool.put(name, entity)
        try:
            self.refresh_dependencies()
        except DependencyError:
            logger.warning(f"Edit of CTE {name} rejected, restoring previous pool state")
            self.pool.replace_all(list(previous.values()))
            raise

        logger.info(f"Saved CTE {name}")
        return self.pool.get(name)

    def remove_cte(self, name: str, force: bool = False) -> list[str]:
        """
        Remove a sub-query.

        Args:
            name: Sub-query name
            force: Remove even if other sub-queries reference it

        Returns:
            Names of the sub-queries that referenced it

        Raises:
            UnknownNameError: If the pool has no such entity
            DependentsExistError: If other sub-queries depend on it and force is False
        """
        name = self.parser.canonical_name(name)
        if self.pool.get(name) is None:
            raise UnknownNameError(name)

        dependents = self.graph_builder.find_dependents(name, self._graph())
        if dependents and not force:
            raise DependentsExistError(name, dependents)

        self.pool.delete(name)
        self.refresh_dependencies()
        logger.info(f"Removed CTE {name}")
        return dependents

    def impact_of(self, name: str, transitive: bool = True) -> list[str]:
        """Sub-queries affected by changing or removing a name."""
        name = self.parser.canonical_name(name)
        if self.pool.get(name) is None:
            raise UnknownNameError(name)
        return self.graph_builder.find_dependents(name, self._graph(), transitive=transitive)

    def refresh_dependencies(self) -> DependencyGraph:
        """
        Re-scan every entity's dependencies and columns against the private pool.

        Returns:
            The refreshed dependency graph

        Raises:
            CircularDependencyError: If the pool contains a cycle; nothing is written
        """
        entities = self.pool.list()
        graph = self.graph_builder.build_graph(entities)
        self.graph_builder.execution_order(graph)

        for entity in entities:
            dependencies = graph[entity.name]
            columns = list(entity.declared_columns) or self.extractor.infer_columns(
                entity.body_sql, entity.name
            )
            if entity.dependencies != dependencies or entity.columns != columns:
                logger.debug(f"Refreshed {entity.name}: depends on {dependencies}")
                entity.dependencies = dependencies
                entity.columns = columns
                self.pool.put(entity.name, entity)

        return graph

    def dependency_graph(self) -> DependencyReport:
        """Dependency report of the private pool."""
        return self.graph_builder.get_dependency_graph(self.pool.list())

    def execution_order(self) -> ExecutionOrder:
        """Every private sub-query, dependencies first."""
        return self.graph_builder.execution_order(self._graph())

    def compose(self, names: list[str] | None = None) -> str:
        """
        Reassemble the main query with the private sub-queries it needs.

        Args:
            names: Sub-queries to include (plus their dependencies); by default
                those the main query references

        Returns:
            Executable SQL

        Raises:
            UnknownNameError: If a requested name is not in the pool
            CircularDependencyError: If the pool has a reachable cycle
            CompositionRenderError: If the assembled SQL is invalid
        """
        entities = self.pool.snapshot()
        graph = self.graph_builder.build_graph(entities.values())

        if names is None:
            requested = self.scanner.scan_restricted(self.main_query, entities)
        else:
            requested = [self.parser.canonical_name(name) for name in names]
            for name in requested:
                if name not in entities:
                    raise UnknownNameError(name)

        order = self.graph_builder.topological_order(requested, graph)
        return self.composer.compose(self.main_query, [entities[name] for name in order])

    def resolve(self, query: str | None = None, shared_pool: CtePool | None = None) -> ResolutionResult:
        """Resolve a query (default: the main query) against this workspace and a shared pool."""
        return self.resolver.resolve(
            query if query is not None else self.main_query, self.pool, shared_pool
        )

    def clear(self) -> None:
        """Remove every sub-query and the main query."""
        self.pool.clear()
        self.main_query = ""
        logger.info(f"Cleared workspace {self.name}")

    def _graph(self) -> DependencyGraph:
        return self.graph_builder.build_graph(self.pool.list())
