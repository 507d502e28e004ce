"""
Parsers layer for SQL parsing and rendering.
"""

from .base import BaseParser
from .sql_parser import SQLParser, get_with_clause, strip_with_clause

__all__ = [
    "BaseParser",
    "SQLParser",
    "get_with_clause",
    "strip_with_clause",
]
