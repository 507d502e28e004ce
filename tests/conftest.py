"""
Pytest configuration and shared fixtures for ctekit tests.
"""

import os
import tempfile
from pathlib import Path

import pytest

from ctekit.core.entities import CteEntity
from ctekit.parser.analysis.dependency_graph import DependencyGraphBuilder
from ctekit.parser.analysis.dependency_scanner import DependencyScanner
from ctekit.parser.parsers.sql_parser import SQLParser
from ctekit.storage.memory_pool import InMemoryCtePool


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def parser():
    """Create a SQLParser with the default dialect."""
    return SQLParser()


@pytest.fixture
def scanner(parser):
    """Create a DependencyScanner."""
    return DependencyScanner(parser)


@pytest.fixture
def builder(scanner):
    """Create a DependencyGraphBuilder."""
    return DependencyGraphBuilder(scanner)


@pytest.fixture
def example_a_sql():
    """Two chained CTEs."""
    return "WITH a AS (SELECT 1), b AS (SELECT * FROM a) SELECT * FROM b"


@pytest.fixture
def orders_sql():
    """A statement with a shared dependency, a join and a filter."""
    return (
        "WITH orders_clean AS (SELECT id, user_id, amount FROM sales.orders WHERE amount > 0), "
        "user_totals AS (SELECT user_id, SUM(amount) AS total FROM orders_clean GROUP BY user_id), "
        "big_orders AS (SELECT id, user_id FROM orders_clean WHERE amount > 100) "
        "SELECT u.user_id, u.total, COUNT(b.id) AS big_count "
        "FROM user_totals AS u LEFT JOIN big_orders AS b ON u.user_id = b.user_id "
        "GROUP BY u.user_id, u.total"
    )


@pytest.fixture
def private_pool():
    """Private pool with s2 depending on s1."""
    return InMemoryCtePool(
        [
            CteEntity(name="s1", body_sql="SELECT id, amount FROM orders"),
            CteEntity(name="s2", body_sql="SELECT id FROM s1 WHERE amount > 10"),
        ]
    )


@pytest.fixture
def clean_env(monkeypatch):
    """Remove ctekit environment variables for the duration of a test."""
    for key in list(os.environ):
        if key.startswith("CTEKIT_"):
            monkeypatch.delenv(key, raising=False)
