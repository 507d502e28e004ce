"""
ctekit CLI Main Module

Command-line interface for decomposing SQL statements into sub-queries and
composing them back.
"""

from typing import Any, Literal

import typer

from ctekit.cli.commands import (
    cmd_compose,
    cmd_decompose,
    cmd_dependents,
    cmd_graph,
    cmd_resolve,
)

OutputFormat = Literal["json", "yaml"]


class AlphabeticalOrderGroup(typer.core.TyperGroup):
    """Custom Typer Group that lists commands in alphabetical order."""

    def list_commands(self, ctx: typer.Context) -> list[str]:
        return sorted(self.commands.keys())


def validate_format(value: str) -> OutputFormat:
    """Validate format option (json or yaml)."""
    if value not in ["json", "yaml"]:
        raise typer.BadParameter(
            typer.style("Error: ", fg=typer.colors.RED, bold=True)
            + f"Invalid format '{value}'. Must be 'json' or 'yaml'."
        )
    return value  # type: ignore[return-value]


app = typer.Typer(
    name="ctekit",
    help="ctekit - split SQL WITH clauses into editable sub-queries and compose them back",
    add_completion=False,
    rich_markup_mode="rich",
    cls=AlphabeticalOrderGroup,
    invoke_without_command=True,
)


@app.callback()
def main_callback(ctx: typer.Context) -> None:
    """Main CLI callback - shows help when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


WORKSPACE_DIR_ARG = typer.Argument(
    None, help="Workspace directory containing main.sql and a cte/ folder"
)
VERBOSE_OPTION = typer.Option(False, "-v", "--verbose", help="Enable verbose output")


def _check_required_argument(ctx: typer.Context, arg_name: str, arg_value: Any) -> None:
    """Check if a required argument is provided, show help if not."""
    if arg_value is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


@app.command()
def decompose(
    ctx: typer.Context,
    sql_file: str | None = typer.Argument(None, help="SQL file with a WITH clause"),
    output_dir: str | None = typer.Option(
        None, "-o", "--output-dir", help="Workspace directory to write to"
    ),
    name: str | None = typer.Option(None, "-n", "--name", help="Name of the main model"),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Split a SQL statement into a main query and CTE files."""
    _check_required_argument(ctx, "sql_file", sql_file)
    cmd_decompose(sql_file=sql_file, output_dir=output_dir, name=name, verbose=verbose)


@app.command()
def compose(
    ctx: typer.Context,
    workspace_dir: str | None = WORKSPACE_DIR_ARG,
    output: str | None = typer.Option(None, "-o", "--output", help="File to write the SQL to"),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Reassemble a workspace into one SQL statement."""
    _check_required_argument(ctx, "workspace_dir", workspace_dir)
    cmd_compose(workspace_dir=workspace_dir, output=output, verbose=verbose)


@app.command()
def resolve(
    ctx: typer.Context,
    query_file: str | None = typer.Argument(None, help="SQL file with the ad-hoc query"),
    workspace_dir: str | None = typer.Option(
        None, "-w", "--workspace", help="Workspace providing private CTEs"
    ),
    shared_dir: str | None = typer.Option(
        None, "--shared-dir", help="Directory of the shared CTE library"
    ),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Compose an ad-hoc query with the CTEs it references."""
    _check_required_argument(ctx, "query_file", query_file)
    cmd_resolve(
        query_file=query_file,
        workspace_dir=workspace_dir,
        shared_dir=shared_dir,
        verbose=verbose,
    )


@app.command()
def graph(
    ctx: typer.Context,
    workspace_dir: str | None = WORKSPACE_DIR_ARG,
    format: str = typer.Option(
        "json", "-f", "--format", help="Output format (json or yaml)", callback=validate_format
    ),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show the CTE dependency graph of a workspace."""
    _check_required_argument(ctx, "workspace_dir", workspace_dir)
    cmd_graph(workspace_dir=workspace_dir, format=format, verbose=verbose)  # type: ignore[arg-type]


@app.command()
def dependents(
    ctx: typer.Context,
    workspace_dir: str | None = WORKSPACE_DIR_ARG,
    name: str | None = typer.Argument(None, help="CTE name"),
    transitive: bool = typer.Option(
        False, "-t", "--transitive", help="Include dependents of dependents"
    ),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """List the CTEs that depend on a CTE."""
    _check_required_argument(ctx, "workspace_dir", workspace_dir)
    _check_required_argument(ctx, "name", name)
    cmd_dependents(
        workspace_dir=workspace_dir, name=name, transitive=transitive, verbose=verbose
    )


def main() -> None:
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
