"""
Unit tests for CteResolutionService.
"""

from unittest.mock import Mock

import pytest

from ctekit.core.entities import CteEntity
from ctekit.core.resolution import CteResolutionService
from ctekit.parser.shared.exceptions import CircularDependencyError
from ctekit.storage.memory_pool import InMemoryCtePool


class TestCteResolutionService:
    """Test cases for execution-time composition."""

    @pytest.fixture
    def service(self, parser, builder):
        """Create a CteResolutionService instance."""
        return CteResolutionService(parser, builder)

    @pytest.fixture
    def shared_pool(self):
        """Shared library where y depends on x."""
        return InMemoryCtePool(
            [
                CteEntity(name="x", body_sql="SELECT 2 AS v"),
                CteEntity(name="y", body_sql="SELECT v FROM x"),
                CteEntity(name="z", body_sql="SELECT 3 AS w"),
            ]
        )

    def test_private_dependencies_are_composed(self, service, private_pool):
        result = service.resolve("SELECT * FROM s2", private_pool)

        assert result.sql == (
            "WITH s1 AS (SELECT id, amount FROM orders), "
            "s2 AS (SELECT id FROM s1 WHERE amount > 10) "
            "SELECT * FROM s2"
        )
        assert result.ordered_names == ["s1", "s2"]
        assert result.private_names == ["s1", "s2"]
        assert result.shared_names == []
        assert result.composed

    def test_no_pool_names_returns_query_unmodified(self, service, private_pool):
        query = "select *  from users"
        result = service.resolve(query, private_pool)

        assert result.sql == query
        assert result.ordered_names == []
        assert result.unknown_names == ["users"]
        assert not result.composed

    def test_unknown_names_are_treated_as_tables(self, service, private_pool):
        result = service.resolve("SELECT * FROM s1 JOIN users ON s1.id = users.id", private_pool)

        assert result.unknown_names == ["users"]
        assert result.ordered_names == ["s1"]

    def test_shared_only(self, service, shared_pool):
        result = service.resolve("SELECT * FROM y", None, shared_pool)

        assert result.sql == "WITH x AS (SELECT 2 AS v), y AS (SELECT v FROM x) SELECT * FROM y"
        assert result.shared_names == ["x", "y"]

    def test_private_shadows_shared(self, service, shared_pool):
        private_pool = InMemoryCtePool([CteEntity(name="x", body_sql="SELECT 1 AS v")])

        result = service.resolve("SELECT * FROM y", private_pool, shared_pool)

        assert result.sql == "WITH x AS (SELECT 1 AS v), y AS (SELECT v FROM x) SELECT * FROM y"
        assert result.private_names == ["x"]
        assert result.shared_names == ["y"]

    def test_private_entries_come_first(self, service, shared_pool, private_pool):
        result = service.resolve("SELECT * FROM z JOIN s1 ON true", private_pool, shared_pool)

        assert result.ordered_names == ["s1", "z"]
        assert result.sql.startswith("WITH s1 AS (")

    def test_cycle_aborts(self, service):
        pool = InMemoryCtePool(
            [
                CteEntity(name="a", body_sql="SELECT * FROM b"),
                CteEntity(name="b", body_sql="SELECT * FROM a"),
            ]
        )

        with pytest.raises(CircularDependencyError):
            service.resolve("SELECT * FROM a", pool)

    def test_scan_failure_degrades(self, service, private_pool):
        query = "SELECT * FROM s2 WHERE ("
        result = service.resolve(query, private_pool)

        assert result.sql == query
        assert len(result.diagnostics) == 1
        assert "unmodified" in result.diagnostics[0]

    def test_render_failure_degrades(self, service):
        pool = InMemoryCtePool([CteEntity(name="bad", body_sql="DELETE FROM users")])
        query = "SELECT * FROM bad"

        result = service.resolve(query, pool)

        assert result.sql == query
        assert result.ordered_names == ["bad"]
        assert result.diagnostics
        assert not result.composed

    def test_pools_are_snapshotted(self, service):
        pool = Mock()
        pool.snapshot.return_value = {"a": CteEntity(name="a", body_sql="SELECT 1 AS x")}

        result = service.resolve("SELECT * FROM a", pool)

        pool.snapshot.assert_called_once()
        pool.get.assert_not_called()
        assert result.sql == "WITH a AS (SELECT 1 AS x) SELECT * FROM a"

    def test_pools_are_not_modified(self, service, private_pool):
        before = private_pool.snapshot()
        service.resolve("SELECT * FROM s2", private_pool)

        assert private_pool.snapshot() == before

    def test_compose_for_execution(self, service, private_pool):
        assert service.compose_for_execution("SELECT * FROM s1", private_pool) == (
            "WITH s1 AS (SELECT id, amount FROM orders) SELECT * FROM s1"
        )

    def test_classify(self, service):
        private = {"a": CteEntity(name="a", body_sql="SELECT 1")}
        shared = {
            "a": CteEntity(name="a", body_sql="SELECT 2"),
            "b": CteEntity(name="b", body_sql="SELECT 3"),
        }

        matches = service.classify(["a", "b", "users"], private, shared)

        assert matches["a"].pool == "private"
        assert matches["a"].entity.body_sql == "SELECT 1"
        assert matches["b"].pool == "shared"
        assert "users" not in matches

    def test_unquoted_reference_matches_regardless_of_case(self, service, private_pool):
        result = service.resolve("SELECT * FROM S2", private_pool)

        assert result.ordered_names == ["s1", "s2"]
        assert result.sql.endswith("SELECT * FROM S2")

    def test_with_in_subquery_does_not_hide_pool_name(self, service):
        pool = InMemoryCtePool([CteEntity(name="orders", body_sql="SELECT 1 AS id")])
        query = (
            "SELECT * FROM orders AS o "
            "JOIN (WITH orders AS (SELECT 2 AS id) SELECT id FROM orders) AS t ON o.id = t.id"
        )

        result = service.resolve(query, pool)

        assert result.ordered_names == ["orders"]
        assert result.sql.startswith("WITH orders AS (SELECT 1 AS id) SELECT * FROM orders AS o")
