"""
Analysis layer for dependency scanning, CTE extraction and graph resolution.
"""

from .cte_extractor import CteDefinition, CteExtractor, ExtractionResult
from .dependency_graph import DependencyGraphBuilder
from .dependency_scanner import DependencyScanner

__all__ = [
    "CteDefinition",
    "CteExtractor",
    "DependencyGraphBuilder",
    "DependencyScanner",
    "ExtractionResult",
]
