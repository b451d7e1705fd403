"""Platforms command implementation."""

from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from ..output import get_output_context
from ..pipelines import create_build_service
from .build import load_project_config


def platforms(
    project: Path = typer.Option(Path("."), "--project", "-p", help="Project directory"),
) -> None:
    """List registered platforms and whether they can build here."""
    ctx = get_output_context()
    project_root = project.resolve()
    config = load_project_config(project_root)
    service = create_build_service(project_root=project_root, config=config)

    availability = service.get_available_platforms()

    table = Table(title="Platforms")
    table.add_column("Platform", style="cyan")
    table.add_column("Name")
    table.add_column("Available")
    table.add_column("Reason")
    for item in availability:
        table.add_row(
            item.platform.value,
            item.display_name,
            "[green]yes[/green]" if item.available else "[red]no[/red]",
            escape(item.reason or ""),
        )

    ctx.table(table, [item.model_dump(mode="json") for item in availability])
