"""Shipyard CLI: build engine projects for web and mini-game platforms."""

import typer

from shipyard import __version__

from .commands import build, init, modules, platforms
from .logging import configure_logging
from .output import OutputContext, set_output_context


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"shipyard {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="shipyard",
    help="Per-platform build pipelines for engine projects",
    no_args_is_help=True,
)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v, -vv)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress non-error output",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in JSON format for automation",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
) -> None:
    """Shipyard - build engine projects for web and mini-game platforms."""
    console = configure_logging(
        verbosity=verbose,
        quiet=quiet,
        no_color=no_color,
    )
    set_output_context(OutputContext(console=console, json_mode=json_output))


app.command()(init)
app.command()(build)
app.command()(platforms)
app.command()(modules)


if __name__ == "__main__":
    app()
