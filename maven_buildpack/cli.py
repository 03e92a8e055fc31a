"""Thin CLI wrapper for maven_buildpack.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from maven_buildpack import __version__
from maven_buildpack.config import get_settings, render_settings_json

app = typer.Typer(
    name="maven-buildpack",
    help="Maven Buildpack - decide how Maven applications are built",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"maven-buildpack version {__version__}")
        raise typer.Exit()


def configure_logging(level: str) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Maven Buildpack - decide how Maven applications are built."""
    configure_logging(get_settings().log_level)


@app.command()
def config(
    buildpack: Annotated[
        Path | None,
        typer.Option("--buildpack", "-b", help="buildpack.toml with defaults"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    from maven_buildpack.metadata.context import settings_for_buildpack
    from maven_buildpack.metadata.io import MetadataLoadError, load_buildpack

    if buildpack is not None:
        try:
            settings = settings_for_buildpack(load_buildpack(buildpack))
        except MetadataLoadError as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            raise typer.Exit(code=1) from None
    else:
        settings = get_settings()

    if json_output:
        typer.echo(render_settings_json(settings))
        return

    pom_display = settings.pom_file or "(Maven default)"
    settings_display = settings.settings_path or "(not set)"
    version_display = settings.version or "(any)"
    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Build:[/bold]")
    console.print(f"  Build arguments:     {settings.build_arguments}")
    console.print(f"  POM file:            {pom_display}")
    console.print(f"  Settings path:       {settings_display}")
    console.print()
    console.print("[bold]Distribution:[/bold]")
    console.print(f"  Daemon enabled:      {settings.daemon_enabled}")
    console.print(f"  Maven version:       {version_display}")
    console.print()
    console.print("[bold]Operational:[/bold]")
    console.print(f"  Log level:           {settings.log_level}")


@app.command()
def build(
    application: Annotated[
        Path,
        typer.Argument(help="Application directory", exists=True, file_okay=False),
    ],
    layers: Annotated[
        Path,
        typer.Option("--layers", "-l", help="Layers directory"),
    ],
    buildpack: Annotated[
        Path | None,
        typer.Option("--buildpack", "-b", help="Path to buildpack.toml"),
    ] = None,
    plan: Annotated[
        Path | None,
        typer.Option("--plan", "-p", help="Path to the buildpack plan"),
    ] = None,
    platform: Annotated[
        Path | None,
        typer.Option("--platform", help="Platform directory holding bindings"),
    ] = None,
    stack: Annotated[
        str | None,
        typer.Option("--stack", envvar="CNB_STACK_ID", help="Stack ID"),
    ] = None,
    api: Annotated[
        str | None,
        typer.Option("--api", help="Override the buildpack API version"),
    ] = None,
    tty: Annotated[
        bool | None,
        typer.Option("--tty/--no-tty", help="Force interactive mode on or off"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write a JSON build manifest"),
    ] = None,
) -> None:
    """Decide distributions, arguments and layers for a Maven build."""
    from maven_buildpack.builds.distribution import DistributionResolutionError
    from maven_buildpack.builds.layers import DefaultApplicationFactory
    from maven_buildpack.builds.manifest import generate_manifest, write_manifest
    from maven_buildpack.builds.service import BuildError, MavenBuild
    from maven_buildpack.builds.settings import SettingsResolutionError
    from maven_buildpack.metadata.context import create_build_configuration
    from maven_buildpack.metadata.io import (
        MetadataLoadError,
        bindings_root,
        load_bindings,
        load_buildpack,
        load_plan,
    )
    from maven_buildpack.metadata.schema import BuildpackSchema

    if tty is None:
        tty = sys.stdout.isatty()

    try:
        buildpack_schema = (
            load_buildpack(buildpack) if buildpack is not None else BuildpackSchema()
        )
        if api is not None:
            buildpack_schema = buildpack_schema.model_copy(update={"api": api})
        plan_schema = load_plan(plan) if plan is not None else None
        bindings = load_bindings(bindings_root(platform))

        configuration = create_build_configuration(
            application_path=application.absolute(),
            layers_path=layers.absolute(),
            buildpack=buildpack_schema,
            plan=plan_schema,
            bindings=bindings,
            stack_id=stack,
            tty=tty,
        )
        factory = DefaultApplicationFactory(configuration.application_path)
        result = MavenBuild(factory).build(configuration)
    except (
        MetadataLoadError,
        SettingsResolutionError,
        DistributionResolutionError,
        BuildError,
    ) as e:
        if json_output:
            typer.echo(json.dumps({"code": e.code, "message": str(e)}, indent=2))
        else:
            console.print(f"[red]Build failed: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    manifest = generate_manifest(result, configuration)
    if output is not None:
        write_manifest(manifest, output)

    if json_output:
        typer.echo(json.dumps(manifest, indent=2, sort_keys=True))
        return

    console.print(f"[bold]Layers:[/bold] {', '.join(result.layer_names)}")
    application_layer = result.application
    if application_layer is not None:
        console.print(f"[bold]Command:[/bold] {application_layer.command}")
        arguments = " ".join(application_layer.arguments)
        console.print(f"[bold]Arguments:[/bold] {arguments}")
    else:
        console.print("[yellow]Stage-only run, no build command[/yellow]")
    for entry in result.bom:
        console.print(f"  [green]{entry.name}[/green] {entry.version} (build)")

