"""
Compose command implementation.
"""

from pathlib import Path

import typer

from ctekit.cli.context import CommandContext
from ctekit.core.workspace import Workspace


def cmd_compose(
    workspace_dir: str,
    output: str | None = None,
    verbose: bool = False,
) -> None:
    """
    Reassemble a workspace into one SQL statement.

    Args:
        workspace_dir: Workspace directory holding main.sql and cte/
        output: File to write the SQL to (default: print it)
        verbose: Enable verbose output
    """
    ctx = CommandContext(verbose=verbose)

    try:
        workspace = Workspace.from_directory(workspace_dir, config=ctx.config)
        sql = workspace.compose()

        if output:
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(sql + "\n", encoding="utf-8")
            typer.echo(f"Composed SQL written to {output_path}")
        else:
            typer.echo(sql)

    except Exception as e:
        ctx.handle_error(e)
