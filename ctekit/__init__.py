"""
ctekit - decompose SQL WITH clauses into editable sub-queries and compose them back.
"""

from ctekit.config import CteKitConfig, load_config
from ctekit.core import (
    CteEntity,
    CteResolutionService,
    DecompositionResult,
    ModelKind,
    ResolutionResult,
    SqlComposer,
    SqlDecomposer,
    SqlModel,
)
from ctekit.core.workspace import Workspace
from ctekit.parser import (
    CteExtractor,
    DependencyGraphBuilder,
    DependencyScanner,
    SQLParser,
)
from ctekit.storage import DirectoryCtePool, InMemoryCtePool, SharedCteLibrary

__version__ = "0.1.0"

__all__ = [
    "CteEntity",
    "CteExtractor",
    "CteKitConfig",
    "CteResolutionService",
    "DecompositionResult",
    "DependencyGraphBuilder",
    "DependencyScanner",
    "DirectoryCtePool",
    "InMemoryCtePool",
    "ModelKind",
    "ResolutionResult",
    "SQLParser",
    "SharedCteLibrary",
    "SqlComposer",
    "SqlDecomposer",
    "SqlModel",
    "Workspace",
    "load_config",
]
