"""
Storage Module

Pools of named sub-queries: the workspace-private pool and the shared library.
"""

from .base import CtePool
from .cte_file import format_cte_file, parse_cte_file
from .directory_pool import DirectoryCtePool
from .memory_pool import InMemoryCtePool
from .shared_library import SharedCteLibrary

__all__ = [
    "CtePool",
    "DirectoryCtePool",
    "InMemoryCtePool",
    "SharedCteLibrary",
    "format_cte_file",
    "parse_cte_file",
]
