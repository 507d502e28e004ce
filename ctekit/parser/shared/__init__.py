"""
Shared utilities and common types for the parser module.
"""

from .types import *
from .exceptions import *
from .constants import *

__all__ = [
    # Types
    "CteName",
    "DependencyGraph",
    "ExecutionOrder",
    "GraphCycles",
    "TableReference",
    # Exceptions
    "ParserError",
    "SQLParsingError",
    "DuplicateCteError",
    "DependencyError",
    "CircularDependencyError",
    "DependencyDepthError",
    "DependentsExistError",
    "UnknownNameError",
    "InvalidCteNameError",
    "CompositionRenderError",
    "StorageError",
    # Constants
    "DEFAULT_DIALECT",
    "MAX_RESOLUTION_DEPTH",
    "PARSE_CACHE_SIZE",
    "PRIVATE_POOL",
    "SHARED_POOL",
]
