"""
Decompose command implementation.
"""

from pathlib import Path

import typer

from ctekit.cli.context import CommandContext
from ctekit.cli.utils import read_sql_file
from ctekit.core.workspace import Workspace
from ctekit.parser.shared.constants import CTE_FOLDER, MAIN_QUERY_FILE


def cmd_decompose(
    sql_file: str,
    output_dir: str | None = None,
    name: str | None = None,
    verbose: bool = False,
) -> None:
    """
    Split a SQL file into a workspace directory.

    Writes `main.sql` and one `cte/<name>.sql` file per sub-query, replacing
    the sub-query files already in the workspace.

    Args:
        sql_file: SQL statement to decompose
        output_dir: Workspace directory (default: next to the file, named after it)
        name: Main model name (default: the workspace directory name)
        verbose: Enable verbose output
    """
    ctx = CommandContext(verbose=verbose)

    try:
        sql = read_sql_file(sql_file)
        target = Path(output_dir) if output_dir else Path(sql_file).with_suffix("")

        workspace = Workspace.from_directory(target, config=ctx.config, create=True)
        if name:
            workspace.name = name

        result = workspace.decompose(sql)
        workspace.save_main_query()

        typer.echo(f"Decomposed {sql_file} into {target}")
        typer.echo(f"   Main query: {target / MAIN_QUERY_FILE}")
        typer.echo(f"   CTEs: {len(result.sub_models)} in {target / CTE_FOLDER}")
        for model in result.sub_models:
            dependencies = ", ".join(model.dependency_names) or "-"
            typer.echo(f"   - {model.name} (depends on: {dependencies})")

    except Exception as e:
        ctx.handle_error(e)
