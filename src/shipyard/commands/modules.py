"""Modules command implementation."""

from pathlib import Path

import typer
from rich.table import Table

from ..core import ModuleDiscoveryError, classify_modules, discover_modules
from ..output import get_output_context
from ..services import LocalBuildFileSystem
from .build import load_project_config


def modules(
    project: Path = typer.Option(Path("."), "--project", "-p", help="Project directory"),
) -> None:
    """List the engine modules a build would include."""
    ctx = get_output_context()
    project_root = project.resolve()
    config = load_project_config(project_root)
    modules_dir = project_root / config.modules.path

    try:
        manifests = discover_modules(LocalBuildFileSystem(), modules_dir)
    except ModuleDiscoveryError as e:
        ctx.error(str(e))
        raise typer.Exit(1) from None

    classification = classify_modules(manifests, config.modules.enabled, config.modules.disabled)
    if not classification.all_modules:
        ctx.warning(f"No modules found in {modules_dir}")

    rows = []
    table = Table(title=f"Modules ({len(classification.core)} core, {len(classification.plugins)} plugins)")
    table.add_column("ID", style="cyan")
    table.add_column("Package")
    table.add_column("Kind")
    table.add_column("WASM")
    for manifest in classification.all_modules:
        kind = "core" if manifest.is_core else "plugin"
        table.add_row(
            manifest.id, manifest.package_name, kind, "yes" if manifest.requires_wasm else ""
        )
        rows.append(
            {
                "id": manifest.id,
                "package": manifest.package_name,
                "kind": kind,
                "requires_wasm": manifest.requires_wasm,
            }
        )

    ctx.table(table, rows)
