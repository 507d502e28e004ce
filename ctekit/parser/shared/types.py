"""
Common type definitions for the parser module.
"""

from pathlib import Path

# Names
CteName = str
TableReference = str

# File paths
FilePath = str | Path

# Dependency information: consumer -> dependencies
DependencyGraph = dict[str, list[str]]

# Execution order (dependencies first)
ExecutionOrder = list[str]

GraphCycles = list[list[str]]
