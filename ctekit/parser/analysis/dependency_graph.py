"""
Dependency graph building, ordering and analysis.
"""

import logging
from enum import Enum
from graphlib import CycleError, TopologicalSorter
from typing import Any, Iterable

from ctekit.parser.shared.constants import MAX_RESOLUTION_DEPTH, PRIVATE_POOL, SHARED_POOL
from ctekit.parser.shared.exceptions import CircularDependencyError, DependencyDepthError
from ctekit.parser.shared.types import DependencyGraph, ExecutionOrder, GraphCycles
from ctekit.typing.cte import DependencyReport

from .dependency_scanner import DependencyScanner

logger = logging.getLogger(__name__)


class _Mark(Enum):
    VISITING = "visiting"
    VISITED = "visited"


class DependencyGraphBuilder:
    """Handles dependency graph construction, ordering and analysis."""

    def __init__(
        self, scanner: DependencyScanner | None = None, max_depth: int = MAX_RESOLUTION_DEPTH
    ):
        self.scanner = scanner or DependencyScanner()
        self.max_depth = max_depth

    def build_graph(self, entities: Iterable[Any], restrict_to_pool: bool = True) -> DependencyGraph:
        """
        Build a dependency graph by scanning each entity's body.

        Args:
            entities: Objects with ``name`` and ``body_sql`` attributes
            restrict_to_pool: Keep only dependencies that are themselves in ``entities``;
                anything else is a real table

        Returns:
            Dict mapping entity name -> dependency names
        """
        entities = list(entities)
        pool_names = {entity.name for entity in entities}

        graph: DependencyGraph = {}
        for entity in entities:
            references = self.scanner.scan(entity.body_sql)
            # A recursive CTE referencing itself is not a dependency
            graph[entity.name] = [
                name
                for name in references
                if name != entity.name and (not restrict_to_pool or name in pool_names)
            ]
            logger.debug(f"{entity.name} depends on: {graph[entity.name]}")

        return graph

    def topological_order(self, requested: Iterable[str], graph: DependencyGraph) -> ExecutionOrder:
        """
        Order the requested names and their transitive dependencies, dependencies first.

        Names not present in the graph are treated as real tables and left out.

        Args:
            requested: Names to resolve, in priority order
            graph: Dict mapping name -> dependency names

        Returns:
            Deduplicated names in dependency order

        Raises:
            CircularDependencyError: If a cycle is reachable from the requested names
            DependencyDepthError: If a dependency chain is deeper than max_depth
        """
        marks: dict[str, _Mark] = {}
        path: list[str] = []
        order: ExecutionOrder = []

        def visit(name: str) -> None:
            mark = marks.get(name)
            if mark is _Mark.VISITED:
                return
            if mark is _Mark.VISITING:
                cycle = path[path.index(name):] + [name]
                raise CircularDependencyError(cycle)
            if len(path) >= self.max_depth:
                raise DependencyDepthError(path + [name], self.max_depth)

            marks[name] = _Mark.VISITING
            path.append(name)
            for dependency in graph.get(name, []):
                if dependency in graph:
                    visit(dependency)
            path.pop()
            marks[name] = _Mark.VISITED
            order.append(name)

        for name in requested:
            if name in graph:
                visit(name)

        return order

    def resolve_two_pools(
        self,
        requested: Iterable[str],
        private_graph: DependencyGraph,
        shared_graph: DependencyGraph,
    ) -> list[tuple[str, str]]:
        """
        Order names drawn from a private and a shared pool.

        Each name belongs to the private pool if it is there, otherwise to the
        shared pool, for the whole call. Private entities resolve their
        dependencies in the private pool only. A shared entity depending on a
        name the private pool shadows gets the private entity.

        Args:
            requested: Names referenced by the query being resolved
            private_graph: Graph of the private pool, restricted to private names
            shared_graph: Graph of the shared pool, restricted to shared names

        Returns:
            (name, pool) pairs; every private entry precedes every shared entry

        Raises:
            CircularDependencyError: If either pool has a reachable cycle
        """
        requested = list(dict.fromkeys(requested))
        private_requested = [name for name in requested if name in private_graph]
        shared_requested = [
            name for name in requested if name not in private_graph and name in shared_graph
        ]

        effective_shared = {
            name: dependencies
            for name, dependencies in shared_graph.items()
            if name not in private_graph
        }
        shared_order = self.topological_order(shared_requested, effective_shared)

        for name in shared_order:
            for dependency in shared_graph[name]:
                if dependency in private_graph and dependency not in private_requested:
                    logger.debug(f"Shared CTE {name} uses private {dependency} (shadowed)")
                    private_requested.append(dependency)

        private_order = self.topological_order(private_requested, private_graph)

        return [(name, PRIVATE_POOL) for name in private_order] + [
            (name, SHARED_POOL) for name in shared_order
        ]

    def execution_order(self, graph: DependencyGraph) -> ExecutionOrder:
        """Order every node of the graph, dependencies first."""
        return self.topological_order(list(graph), graph)

    def find_dependents(
        self, name: str, graph: DependencyGraph, transitive: bool = False
    ) -> list[str]:
        """
        Find the entities that depend on a name.

        Args:
            name: Name being changed or removed
            graph: Dict mapping name -> dependency names
            transitive: Also include dependents of dependents

        Returns:
            Dependent names, nearest first
        """
        direct = [node for node, dependencies in graph.items() if name in dependencies]
        if not transitive:
            return direct

        dependents: list[str] = []
        queue = list(direct)
        while queue:
            node = queue.pop(0)
            if node == name or node in dependents:
                continue
            dependents.append(node)
            queue.extend(
                consumer for consumer, dependencies in graph.items() if node in dependencies
            )
        return dependents

    def get_dependency_graph(self, entities: Iterable[Any]) -> DependencyReport:
        """
        Build the full dependency picture of a pool, for diagnostics and visualization.

        Args:
            entities: Objects with ``name`` and ``body_sql`` attributes

        Returns:
            DependencyReport; execution_order is empty when the graph has cycles
        """
        dependencies = self.build_graph(entities)

        dependents: dict[str, list[str]] = {node: [] for node in dependencies}
        for node, deps in dependencies.items():
            for dep in deps:
                if dep in dependents:
                    dependents[dep].append(node)

        edges = []
        for node, deps in dependencies.items():
            for dep in deps:
                edges.append((dep, node))  # dep -> node (execution direction)

        cycles = self.detect_cycles(dependencies)
        execution_order = self.execution_order(dependencies) if not cycles else []

        return {
            "nodes": list(dependencies),
            "dependencies": dependencies,
            "dependents": dependents,
            "edges": edges,
            "execution_order": execution_order,
            "cycles": cycles,
        }

    def validate_no_cycles(self, graph: DependencyGraph) -> bool:
        """Check that the graph has no circular dependencies."""
        return not self.detect_cycles(graph)

    def detect_cycles(self, graph: DependencyGraph) -> GraphCycles:
        """
        Detect cycles using graphlib.TopologicalSorter.

        Args:
            graph: Dict mapping name -> list of dependencies

        Returns:
            List of cycles found (empty if no cycles)
        """
        try:
            ts = TopologicalSorter()
            for node, deps in graph.items():
                ts.add(node, *deps)
            # static_order raises CycleError if there are cycles
            list(ts.static_order())
            return []
        except CycleError:
            # Fall back to DFS for the full cycle paths
            return self._detect_cycles(graph)

    def _detect_cycles(self, graph: DependencyGraph) -> GraphCycles:
        """
        Detect circular dependencies using DFS.

        Args:
            graph: Dict mapping name -> list of dependencies

        Returns:
            List of cycles found, each closed by repeating its first name
        """
        visited = set()
        rec_stack = set()
        cycles = []

        def dfs(node, path):
            if node in rec_stack:
                cycle_start = path.index(node)
                cycles.append(path[cycle_start:] + [node])
                return

            if node in visited:
                return

            visited.add(node)
            rec_stack.add(node)

            for neighbor in graph.get(node, []):
                dfs(neighbor, path + [node])

            rec_stack.remove(node)

        for node in graph:
            if node not in visited:
                dfs(node, [])

        return cycles
