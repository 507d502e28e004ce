"""
Unit tests for SqlComposer.
"""

import pytest

from ctekit.core.composer import SqlComposer
from ctekit.core.entities import CteEntity, ModelKind, SqlModel
from ctekit.parser.parsers.sql_parser import SQLParser
from ctekit.parser.shared.exceptions import CircularDependencyError, CompositionRenderError


class TestCompose:
    """Test cases for rendering ordered sub-queries."""

    @pytest.fixture
    def composer(self, parser, builder):
        """Create a SqlComposer instance."""
        return SqlComposer(parser, builder)

    def test_empty_list_returns_main_unchanged(self, composer):
        sql = "select *   from users"
        assert composer.compose(sql, []) == sql

    def test_given_order_is_kept(self, composer):
        entities = [
            CteEntity(name="a", body_sql="SELECT 1 AS x"),
            CteEntity(name="b", body_sql="SELECT x FROM a"),
        ]

        assert (
            composer.compose("SELECT * FROM b", entities)
            == "WITH a AS (SELECT 1 AS x), b AS (SELECT x FROM a) SELECT * FROM b"
        )

    def test_bodies_are_normalized(self, composer):
        entities = [CteEntity(name="a", body_sql="select 1 as x;")]

        assert composer.compose("SELECT * FROM a", entities) == (
            "WITH a AS (SELECT 1 AS x) SELECT * FROM a"
        )

    def test_declared_columns_are_rendered(self, composer):
        entities = [CteEntity(name="t", body_sql="SELECT 1, 2", declared_columns=["x", "y"])]

        assert composer.compose("SELECT x FROM t", entities) == (
            "WITH t(x, y) AS (SELECT 1, 2) SELECT x FROM t"
        )

    def test_self_reference_renders_recursive(self, composer):
        entities = [
            CteEntity(
                name="t",
                body_sql="SELECT 1 UNION ALL SELECT n + 1 FROM t WHERE n < 3",
                declared_columns=["n"],
            )
        ]

        assert composer.compose("SELECT n FROM t", entities).startswith("WITH RECURSIVE t(n)")

    def test_main_with_clause_is_merged(self, composer):
        entities = [CteEntity(name="a", body_sql="SELECT 1 AS x")]

        sql = composer.compose("WITH agg AS (SELECT x FROM a) SELECT * FROM agg", entities)

        assert sql == "WITH a AS (SELECT 1 AS x), agg AS (SELECT x FROM a) SELECT * FROM agg"

    def test_main_local_cte_wins_over_pooled(self, composer):
        entities = [CteEntity(name="a", body_sql="SELECT 2 AS x")]

        sql = composer.compose("WITH a AS (SELECT 1 AS x) SELECT * FROM a", entities)

        assert sql == "WITH a AS (SELECT 1 AS x) SELECT * FROM a"

    def test_duplicate_names_raise(self, composer):
        entities = [
            CteEntity(name="a", body_sql="SELECT 1"),
            CteEntity(name="a", body_sql="SELECT 2"),
        ]

        with pytest.raises(CompositionRenderError) as exc_info:
            composer.compose("SELECT * FROM a", entities)

        assert exc_info.value.names == ["a"]

    def test_non_query_body_raises(self, composer):
        entities = [CteEntity(name="bad", body_sql="DELETE FROM users")]

        with pytest.raises(CompositionRenderError) as exc_info:
            composer.compose("SELECT * FROM bad", entities)

        assert exc_info.value.names == ["bad"]

    def test_invalid_body_raises(self, composer):
        entities = [CteEntity(name="bad", body_sql="SELECT (")]

        with pytest.raises(CompositionRenderError) as exc_info:
            composer.compose("SELECT * FROM bad", entities)

        assert exc_info.value.names == ["bad"]

    def test_pretty_output(self, builder):
        composer = SqlComposer(SQLParser(pretty=True), builder)
        entities = [CteEntity(name="a", body_sql="SELECT 1 AS x")]

        assert "\n" in composer.compose("SELECT * FROM a", entities)


class TestReconstructSql:
    """Test cases for rebuilding a statement from a model object graph."""

    @pytest.fixture
    def composer(self, parser, builder):
        """Create a SqlComposer instance."""
        return SqlComposer(parser, builder)

    def test_transitive_dependencies_in_order(self, composer):
        a = SqlModel(ModelKind.SUB, "a", "SELECT 1 AS x")
        b = SqlModel(ModelKind.SUB, "b", "SELECT x FROM a")
        c = SqlModel(ModelKind.SUB, "c", "SELECT x FROM b JOIN a USING (x)")
        b.add_dependency(a)
        c.add_dependency(b)
        c.add_dependency(a)
        main = SqlModel(ModelKind.MAIN, "main", "SELECT * FROM c")
        main.add_dependency(c)

        sql = composer.reconstruct_sql(main)

        assert sql.index("a AS") < sql.index("b AS") < sql.index("c AS")
        assert sql.endswith("SELECT * FROM c")

    def test_model_without_dependencies(self, composer):
        main = SqlModel(ModelKind.MAIN, "main", "SELECT 1")
        assert composer.reconstruct_sql(main) == "SELECT 1"

    def test_object_graph_cycle_raises(self, composer):
        x = SqlModel(ModelKind.SUB, "x", "SELECT * FROM y")
        y = SqlModel(ModelKind.SUB, "y", "SELECT * FROM x")
        x.add_dependency(y)
        y.add_dependency(x)
        main = SqlModel(ModelKind.MAIN, "main", "SELECT * FROM x")
        main.add_dependency(x)

        with pytest.raises(CircularDependencyError):
            composer.reconstruct_sql(main)
