"""
Command context for shared setup across CLI commands.
"""

import traceback
from pathlib import Path

import typer

from ctekit.config import load_config

from .utils import setup_logging


class CommandContext:
    """
    Shared context for CLI commands.

    Handles common setup: loading config and setting up logging.
    """

    def __init__(self, project_folder: str | None = None, verbose: bool = False):
        """
        Initialize command context from parameters.

        Args:
            project_folder: Folder holding ctekit.toml or pyproject.toml (default: cwd)
            verbose: Enable verbose output
        """
        self.verbose = verbose
        setup_logging(self.verbose)

        self.project_path = Path(project_folder).resolve() if project_folder else Path.cwd()
        self.config = load_config(self.project_path)

    def handle_error(self, error: Exception, show_traceback: bool | None = None) -> None:
        """
        Handle errors consistently across commands.

        Args:
            error: The exception that occurred
            show_traceback: Whether to show traceback (defaults to verbose mode)
        """
        if show_traceback is None:
            show_traceback = self.verbose

        error_prefix = typer.style("Error: ", fg=typer.colors.RED, bold=True)
        typer.echo(f"{error_prefix}{error}", err=True)
        if show_traceback:
            traceback.print_exc()
        raise typer.Exit(1)
