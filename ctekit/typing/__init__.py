"""
Typed structures shared across ctekit.
"""

from .cte import CteEntityDict, DependencyReport, ParsedStatement, WithItem

__all__ = [
    "CteEntityDict",
    "DependencyReport",
    "ParsedStatement",
    "WithItem",
]
