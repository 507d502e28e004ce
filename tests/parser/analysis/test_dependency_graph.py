"""
Unit tests for DependencyGraphBuilder.
"""

import pytest

from ctekit.core.entities import CteEntity
from ctekit.parser.analysis.dependency_graph import DependencyGraphBuilder
from ctekit.parser.shared.constants import PRIVATE_POOL, SHARED_POOL
from ctekit.parser.shared.exceptions import CircularDependencyError, DependencyDepthError


def _assert_topological(order, graph):
    position = {name: index for index, name in enumerate(order)}
    for name in order:
        for dependency in graph.get(name, []):
            if dependency in position:
                assert position[dependency] < position[name]


class TestBuildGraph:
    """Test cases for graph construction from entity bodies."""

    def test_dependencies_restricted_to_pool(self, builder):
        entities = [
            CteEntity(name="a", body_sql="SELECT * FROM users"),
            CteEntity(name="b", body_sql="SELECT * FROM a JOIN orders ON a.id = orders.id"),
        ]

        assert builder.build_graph(entities) == {"a": [], "b": ["a"]}

    def test_unrestricted_graph_keeps_tables(self, builder):
        entities = [CteEntity(name="b", body_sql="SELECT * FROM a JOIN orders ON true")]

        assert builder.build_graph(entities, restrict_to_pool=False) == {"b": ["a", "orders"]}

    def test_self_reference_is_dropped(self, builder):
        entities = [
            CteEntity(name="t", body_sql="SELECT 1 AS n UNION ALL SELECT n + 1 FROM t WHERE n < 5")
        ]

        assert builder.build_graph(entities) == {"t": []}


class TestTopologicalOrder:
    """Test cases for ordering with cycle and depth detection."""

    def test_dependencies_come_first(self, builder):
        graph = {"a": [], "b": ["a"], "c": ["b", "a"]}
        order = builder.topological_order(["c"], graph)

        assert order == ["a", "b", "c"]
        _assert_topological(order, graph)

    def test_only_reachable_names(self, builder):
        graph = {"a": [], "b": ["a"], "unused": []}

        assert builder.topological_order(["b"], graph) == ["a", "b"]

    def test_unknown_names_are_skipped(self, builder):
        graph = {"a": ["users"]}

        assert builder.topological_order(["a", "orders"], graph) == ["a"]

    def test_deduplicated(self, builder):
        graph = {"a": [], "b": ["a"], "c": ["a"]}

        assert builder.topological_order(["b", "c", "b"], graph) == ["a", "b", "c"]

    def test_idempotent(self, builder):
        graph = {"x": [], "y": ["x"], "z": ["y", "x"]}

        first = builder.topological_order(["z", "y"], graph)
        second = builder.topological_order(["z", "y"], graph)
        assert first == second

    def test_cycle_raises_with_full_path(self, builder):
        graph = {"x": ["y"], "y": ["x"]}

        with pytest.raises(CircularDependencyError) as exc_info:
            builder.topological_order(["x"], graph)

        assert exc_info.value.cycle == ["x", "y", "x"]
        assert exc_info.value.names == ["x", "y"]
        assert "x -> y -> x" in str(exc_info.value)

    def test_depth_limit(self):
        builder = DependencyGraphBuilder(max_depth=3)
        graph = {"n0": [], "n1": ["n0"], "n2": ["n1"], "n3": ["n2"], "n4": ["n3"]}

        with pytest.raises(DependencyDepthError):
            builder.topological_order(["n4"], graph)

    def test_default_depth_allows_long_chains(self, builder):
        graph = {f"n{i}": [f"n{i - 1}"] if i else [] for i in range(60)}

        order = builder.topological_order(["n59"], graph)
        assert order == [f"n{i}" for i in range(60)]


class TestResolveTwoPools:
    """Test cases for ordering names drawn from two precedence-ordered pools."""

    def test_private_entries_precede_shared(self, builder):
        private_graph = {"p": []}
        shared_graph = {"s": []}

        result = builder.resolve_two_pools(["s", "p"], private_graph, shared_graph)

        assert result == [("p", PRIVATE_POOL), ("s", SHARED_POOL)]

    def test_private_shadows_shared(self, builder):
        private_graph = {"x": []}
        shared_graph = {"x": [], "y": ["x"]}

        result = builder.resolve_two_pools(["x", "y"], private_graph, shared_graph)

        assert result == [("x", PRIVATE_POOL), ("y", SHARED_POOL)]

    def test_shared_dependency_on_shadowed_name_uses_private(self, builder):
        private_graph = {"x": []}
        shared_graph = {"x": [], "y": ["x"]}

        result = builder.resolve_two_pools(["y"], private_graph, shared_graph)

        assert result == [("x", PRIVATE_POOL), ("y", SHARED_POOL)]

    def test_private_dependencies_stay_private(self, builder):
        private_graph = {"p": ["q"], "q": []}
        shared_graph = {"q": [], "r": []}

        result = builder.resolve_two_pools(["p"], private_graph, shared_graph)

        assert result == [("q", PRIVATE_POOL), ("p", PRIVATE_POOL)]

    def test_shared_transitive_dependencies(self, builder):
        shared_graph = {"s1": [], "s2": ["s1"]}

        result = builder.resolve_two_pools(["s2"], {}, shared_graph)

        assert result == [("s1", SHARED_POOL), ("s2", SHARED_POOL)]

    def test_no_matches(self, builder):
        assert builder.resolve_two_pools(["users"], {"a": []}, {"b": []}) == []

    def test_shared_cycle_raises(self, builder):
        with pytest.raises(CircularDependencyError):
            builder.resolve_two_pools(["a"], {}, {"a": ["b"], "b": ["a"]})


class TestGraphAnalysis:
    """Test cases for reverse lookups, cycle detection and reports."""

    def test_find_dependents(self, builder):
        graph = {"a": [], "b": ["a"], "c": ["b"], "d": ["a"]}

        assert builder.find_dependents("a", graph) == ["b", "d"]
        assert builder.find_dependents("a", graph, transitive=True) == ["b", "d", "c"]
        assert builder.find_dependents("c", graph) == []

    def test_execution_order_covers_all_nodes(self, builder):
        graph = {"b": ["a"], "a": [], "c": []}
        order = builder.execution_order(graph)

        assert sorted(order) == ["a", "b", "c"]
        _assert_topological(order, graph)

    def test_detect_cycles(self, builder):
        assert builder.detect_cycles({"a": [], "b": ["a"]}) == []
        assert builder.detect_cycles({"a": ["b"], "b": ["a"]}) == [["a", "b", "a"]]
        assert builder.validate_no_cycles({"a": []})
        assert not builder.validate_no_cycles({"a": ["b"], "b": ["a"]})

    def test_get_dependency_graph(self, builder):
        entities = [
            CteEntity(name="a", body_sql="SELECT 1 AS x"),
            CteEntity(name="b", body_sql="SELECT * FROM a"),
        ]

        report = builder.get_dependency_graph(entities)

        assert report["nodes"] == ["a", "b"]
        assert report["dependencies"] == {"a": [], "b": ["a"]}
        assert report["dependents"] == {"a": ["b"], "b": []}
        assert report["edges"] == [("a", "b")]
        assert report["execution_order"] == ["a", "b"]
        assert report["cycles"] == []

    def test_report_of_cyclic_pool(self, builder):
        entities = [
            CteEntity(name="a", body_sql="SELECT * FROM b"),
            CteEntity(name="b", body_sql="SELECT * FROM a"),
        ]

        report = builder.get_dependency_graph(entities)

        assert report["execution_order"] == []
        assert report["cycles"] == [["a", "b", "a"]]
