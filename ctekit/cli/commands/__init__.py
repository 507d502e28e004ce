"""
CLI command implementations.
"""

from ctekit.cli.commands.compose import cmd_compose
from ctekit.cli.commands.decompose import cmd_decompose
from ctekit.cli.commands.graph import cmd_dependents, cmd_graph
from ctekit.cli.commands.resolve import cmd_resolve

__all__ = ["cmd_compose", "cmd_decompose", "cmd_dependents", "cmd_graph", "cmd_resolve"]
