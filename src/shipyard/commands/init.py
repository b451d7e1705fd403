"""Init command implementation."""

from pathlib import Path

import typer

from ..config import write_config_template
from ..constants import CONFIG_FILE, DEFAULT_MODULES_DIR
from ..output import get_output_context

PROJECT_DIRS = (DEFAULT_MODULES_DIR, "assets", "scenes", "scripts")


def init(
    project: Path = typer.Option(Path("."), "--project", "-p", help="Project directory"),
    name: str | None = typer.Option(None, "--name", "-n", help="Project name"),
) -> None:
    """Initialize a shipyard project."""
    ctx = get_output_context()
    project_root = project.resolve()

    if project_root.exists() and not project_root.is_dir():
        ctx.error(f"Not a directory: {project_root}")
        raise typer.Exit(1)
    project_root.mkdir(parents=True, exist_ok=True)

    config_path = project_root / CONFIG_FILE
    created_config = False
    if not config_path.exists():
        write_config_template(project_root, name or project_root.name)
        created_config = True
        ctx.print(f"[green]Created config template:[/green] {config_path}")
    else:
        ctx.print(f"[yellow]Config already exists:[/yellow] {config_path}")

    created_dirs = []
    for dir_name in PROJECT_DIRS:
        path = project_root / dir_name
        if not path.exists():
            path.mkdir(parents=True)
            created_dirs.append(dir_name)
            ctx.print(f"[green]✓[/green] {dir_name}/")

    ctx.success(
        "Shipyard project initialized",
        {
            "project_root": str(project_root),
            "config": str(config_path),
            "created_config": created_config,
            "created_dirs": created_dirs,
        },
    )
