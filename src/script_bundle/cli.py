"""Command-line interface for packing and inspecting script archives."""

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from script_bundle.archive.location import ArchiveScriptLocation
from script_bundle.config import settings
from script_bundle.directory import DirectoryScriptLocation
from script_bundle.errors import ScriptBundleError
from script_bundle.location import LocationConfig
from script_bundle.properties import load_default_config
from script_bundle.script import Script

app = typer.Typer(help="Build and inspect script archives")
console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def _defaults(config_file: Path | None) -> LocationConfig:
    return load_default_config(config_file or settings.custom_config)


def _fail(error: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}", highlight=False)
    raise typer.Exit(code=1)


def _kind(script: Script) -> str:
    if script.is_postprocessing:
        return "postprocessing"
    if script.is_repeatable:
        return "repeatable"
    return "incremental"


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Build and inspect script archives."""
    _configure_logging("DEBUG" if verbose else settings.log_level)


@app.command("pack")
def pack(
    source_dir: Path = typer.Argument(..., help="Directory containing the scripts"),
    target: Path = typer.Argument(..., help="Archive file to create (.zip or .jar)"),
    config_file: Path | None = typer.Option(
        None, "--config", "-c", help="Custom configuration overriding the defaults"
    ),
):
    """Pack all scripts under SOURCE_DIR into a new archive."""
    try:
        staged = DirectoryScriptLocation.scan(source_dir, _defaults(config_file))
        bundle = staged.to_archive()
        bundle.write(target)
    except ScriptBundleError as e:
        _fail(e)
    console.print(f"Packed {len(bundle.scripts)} scripts into {target}", highlight=False)


@app.command("list")
def list_scripts(
    archive_path: Path = typer.Argument(..., help="Path to the script archive"),
    config_file: Path | None = typer.Option(
        None, "--config", "-c", help="Custom configuration overriding the defaults"
    ),
):
    """Show the configuration and the scripts of an archive, in execution order."""
    try:
        location = ArchiveScriptLocation.open(archive_path, _defaults(config_file))
    except ScriptBundleError as e:
        _fail(e)

    with location:
        for key, value in location.config.to_properties().items():
            console.print(f"[bold]{key}:[/bold] {escape(value)}", highlight=False)

        table = Table(title=f"Scripts in {archive_path.name}")
        table.add_column("#", justify="right")
        table.add_column("Name", style="cyan")
        table.add_column("Last modified", style="green")
        table.add_column("Kind", style="magenta")
        for i, script in enumerate(location.scripts, start=1):
            modified = datetime.fromtimestamp(script.last_modified / 1000, UTC)
            table.add_row(
                str(i), escape(script.name), modified.strftime("%Y-%m-%d %H:%M:%S"), _kind(script)
            )
        console.print(table)


@app.command("cat")
def cat_script(
    archive_path: Path = typer.Argument(..., help="Path to the script archive"),
    name: str = typer.Argument(..., help="Name of the script inside the archive"),
):
    """Print the content of one script."""
    try:
        location = ArchiveScriptLocation.open(archive_path, _defaults(None))
    except ScriptBundleError as e:
        _fail(e)

    with location:
        script = next((s for s in location.scripts if s.name == name), None)
        if script is None:
            _fail(ScriptBundleError(f"No script named {name!r} in {archive_path}"))
        try:
            typer.echo(script.content.read_text(), nl=False)
        except ScriptBundleError as e:
            _fail(e)
