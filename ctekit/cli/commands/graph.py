"""
Graph and dependents command implementations.
"""

import typer

from ctekit.cli.context import CommandContext
from ctekit.cli.utils import OutputFormat, format_output
from ctekit.core.workspace import Workspace


def cmd_graph(
    workspace_dir: str,
    format: OutputFormat = "json",
    verbose: bool = False,
) -> None:
    """
    Print the dependency report of a workspace.

    Args:
        workspace_dir: Workspace directory
        format: Output format ("json" or "yaml")
        verbose: Enable verbose output
    """
    ctx = CommandContext(verbose=verbose)

    try:
        workspace = Workspace.from_directory(workspace_dir, config=ctx.config)
        report = workspace.dependency_graph()
        typer.echo(format_output(report, format))

        if report["cycles"]:
            typer.echo(f"Warning: {len(report['cycles'])} cycle(s) found", err=True)

    except Exception as e:
        ctx.handle_error(e)


def cmd_dependents(
    workspace_dir: str,
    name: str,
    transitive: bool = False,
    verbose: bool = False,
) -> None:
    """
    Print the sub-queries that depend on a name.

    Args:
        workspace_dir: Workspace directory
        name: Sub-query name
        transitive: Include dependents of dependents
        verbose: Enable verbose output
    """
    ctx = CommandContext(verbose=verbose)

    try:
        workspace = Workspace.from_directory(workspace_dir, config=ctx.config)
        dependents = workspace.impact_of(name, transitive=transitive)

        if not dependents:
            typer.echo(f"No CTEs depend on {name}")
            return
        for dependent in dependents:
            typer.echo(dependent)

    except Exception as e:
        ctx.handle_error(e)
