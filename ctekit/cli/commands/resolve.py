"""
Resolve command implementation.
"""

from pathlib import Path

import typer

from ctekit.cli.context import CommandContext
from ctekit.cli.utils import read_sql_file
from ctekit.core.workspace import Workspace
from ctekit.storage.shared_library import SharedCteLibrary


def cmd_resolve(
    query_file: str,
    workspace_dir: str | None = None,
    shared_dir: str | None = None,
    verbose: bool = False,
) -> None:
    """
    Print the executable form of an ad-hoc query.

    Names the query reads from are looked up in the workspace first and in the
    shared library second; everything else is left as a table reference.

    Args:
        query_file: File holding the ad-hoc query
        workspace_dir: Workspace directory (default: no private CTEs)
        shared_dir: Shared library directory (default: from configuration)
        verbose: Enable verbose output
    """
    ctx = CommandContext(verbose=verbose)

    try:
        query = read_sql_file(query_file)

        if workspace_dir:
            workspace = Workspace.from_directory(workspace_dir, config=ctx.config)
        else:
            workspace = Workspace("adhoc", config=ctx.config)

        shared_pool = None
        if shared_dir:
            if not Path(shared_dir).is_dir():
                raise FileNotFoundError(f"Shared CTE directory not found: {shared_dir}")
            shared_pool = SharedCteLibrary(shared_dir)
        elif ctx.config.shared_cte_dir.is_dir():
            shared_pool = SharedCteLibrary(
                ctx.config.shared_cte_dir, cache_file=ctx.config.shared_cache_file
            )

        result = workspace.resolve(query, shared_pool)

        for diagnostic in result.diagnostics:
            typer.echo(f"Warning: {diagnostic}", err=True)
        if verbose and result.ordered_names:
            typer.echo(
                f"Private CTEs: {result.private_names}, shared CTEs: {result.shared_names}",
                err=True,
            )
        typer.echo(result.sql)

    except Exception as e:
        ctx.handle_error(e)
