"""
Parser Module

SQL parsing, WITH clause extraction and dependency graph analysis.
Organized in layers: shared (types, errors), parsers (sqlglot), analysis.
"""

from .analysis import (
    CteDefinition,
    CteExtractor,
    DependencyGraphBuilder,
    DependencyScanner,
    ExtractionResult,
)
from .parsers import BaseParser, SQLParser
from .shared import (
    CircularDependencyError,
    CompositionRenderError,
    DependencyDepthError,
    DependencyError,
    DependentsExistError,
    DuplicateCteError,
    InvalidCteNameError,
    ParserError,
    SQLParsingError,
    StorageError,
    UnknownNameError,
)

__all__ = [
    "BaseParser",
    "SQLParser",
    "CteDefinition",
    "CteExtractor",
    "DependencyGraphBuilder",
    "DependencyScanner",
    "ExtractionResult",
    "CircularDependencyError",
    "CompositionRenderError",
    "DependencyDepthError",
    "DependencyError",
    "DependentsExistError",
    "DuplicateCteError",
    "InvalidCteNameError",
    "ParserError",
    "SQLParsingError",
    "StorageError",
    "UnknownNameError",
]
