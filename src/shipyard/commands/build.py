"""Build command implementation."""

import logging
import tomllib
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.markup import escape
from rich.table import Table

from ..config import ShipyardConfig, load_config
from ..constants import CONFIG_FILE
from ..core import BuildService, ConfigValidationError, PipelineNotFoundError, format_bytes
from ..models import BuildConfig, BuildPlatform, BuildProgress, BuildResult
from ..output import get_output_context
from ..pipelines import create_build_service

logger = logging.getLogger(__name__)


def load_project_config(project_root: Path) -> ShipyardConfig:
    """Load shipyard.toml or exit with code 2 if it is unusable."""
    ctx = get_output_context()
    try:
        return load_config(project_root)
    except tomllib.TOMLDecodeError as e:
        ctx.error(f"Invalid {CONFIG_FILE}: {e}")
        raise typer.Exit(2) from None
    except ValidationError as e:
        ctx.error(f"Invalid {CONFIG_FILE}: {e.error_count()} validation error(s)")
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            ctx.print(f"  {location}: {escape(error['msg'])}")
        raise typer.Exit(2) from None


def parse_platform(value: str) -> BuildPlatform:
    """Resolve a platform name or exit with code 3."""
    try:
        return BuildPlatform(value)
    except ValueError:
        known = ", ".join(p.value for p in BuildPlatform)
        get_output_context().error(f"Unknown platform: {value} (expected one of: {known})")
        raise typer.Exit(3) from None


def _print_progress(progress: BuildProgress) -> None:
    ctx = get_output_context()
    if progress.total_steps and not progress.status.is_terminal:
        ctx.print(
            f"[cyan]\\[{progress.current_step}/{progress.total_steps}][/cyan] "
            f"{escape(progress.message)}"
        )


def run_build(service: BuildService, config: BuildConfig) -> BuildResult:
    """Run a build on a worker thread so Ctrl+C can cancel it cleanly."""
    ctx = get_output_context()
    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(service.build, config, _print_progress)
        try:
            return future.result()
        except KeyboardInterrupt:
            if service.cancel_build():
                ctx.warning("Cancelling build...")
            return future.result()


def _result_table(result: BuildResult) -> Table:
    table = Table(title="Build result", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Platform", result.platform.value)
    table.add_row("Status", result.status.value)
    table.add_row("Output", escape(result.output_path))
    table.add_row("Duration", f"{result.duration:.2f}s")
    table.add_row("Files", str(len(result.output_files)))
    if result.stats is not None:
        table.add_row("Total size", format_bytes(result.stats.total_size))
        table.add_row("JavaScript", format_bytes(result.stats.js_size))
        table.add_row("WASM", format_bytes(result.stats.wasm_size))
        table.add_row("Assets", format_bytes(result.stats.assets_size))
    return table


def build(
    platform: str = typer.Argument(..., help="Target platform (web, wechat-minigame)"),
    project: Path = typer.Option(Path("."), "--project", "-p", help="Project directory"),
    output: str | None = typer.Option(
        None, "--output", "-o", help="Output directory (relative to the project)"
    ),
    mode: str | None = typer.Option(
        None, "--mode", "-m", help="Web build mode: split-bundles or single-bundle"
    ),
    debug: bool = typer.Option(False, "--debug", help="Development build (no minification)"),
    source_map: bool | None = typer.Option(
        None, "--source-map/--no-source-map", help="Emit source maps"
    ),
) -> None:
    """Build the project for a platform."""
    ctx = get_output_context()
    target = parse_platform(platform)
    project_root = project.resolve()
    config = load_project_config(project_root)

    overrides: dict[str, object] = {"output_path": output, "source_map": source_map}
    if debug:
        overrides["is_release"] = False
    if mode is not None:
        if target != BuildPlatform.WEB:
            ctx.error("--mode is only supported for web builds")
            raise typer.Exit(2)
        overrides["build_mode"] = mode

    try:
        build_config = config.build_config(target, **overrides)
    except ValidationError as e:
        ctx.error(f"Invalid build options: {e.error_count()} validation error(s)")
        raise typer.Exit(2) from None
    except ValueError:
        # No config section means no pipeline for this platform either
        build_config = BuildConfig(platform=target, output_path=output or f"./build/{target.value}")

    service = create_build_service(project_root=project_root, config=config)
    ctx.print(f"[bold]Building {target.value}[/bold] in {escape(str(project_root))}")

    try:
        result = run_build(service, build_config)
    except PipelineNotFoundError as e:
        ctx.error(str(e))
        raise typer.Exit(3) from None
    except ConfigValidationError as e:
        ctx.error("Invalid build config", {"errors": e.errors})
        for error in e.errors:
            ctx.print(f"  - {escape(error)}")
        raise typer.Exit(2) from None

    if ctx.json_mode:
        ctx.print_json(result.model_dump(mode="json"))
    else:
        for warning in result.warnings:
            ctx.warning(escape(warning))
        ctx.console.print(_result_table(result))
        if result.success:
            ctx.success("Build completed")
        elif result.cancelled:
            ctx.console.print("[yellow]Build cancelled[/yellow]")
        else:
            ctx.error(escape(result.error or "Build failed"))

    if not result.success:
        raise typer.Exit(1)
