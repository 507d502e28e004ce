"""
Core layer: data model, decomposition, composition and resolution.
"""

from .composer import SqlComposer
from .decomposer import DecompositionResult, SqlDecomposer
from .entities import (
    CteEntity,
    ModelKind,
    PoolMatch,
    PrivateMatch,
    SharedMatch,
    SqlModel,
    validate_cte_name,
)
from .resolution import CteResolutionService, ResolutionResult

__all__ = [
    "CteEntity",
    "CteResolutionService",
    "DecompositionResult",
    "ModelKind",
    "PoolMatch",
    "PrivateMatch",
    "ResolutionResult",
    "SharedMatch",
    "SqlComposer",
    "SqlDecomposer",
    "SqlModel",
    "validate_cte_name",
]
