"""Pagesmith CLI Main Entry Point

Compile annotated HTML templates into static pages.

Usage:
    pagesmith                          # compile every page under inpath
    pagesmith index.html about/        # compile the given pages / directories
    pagesmith -i site -o build         # choose source and output directories
    pagesmith --formatter pretty       # pretty | minimized | none
    pagesmith --watch                  # rebuild on change
    pagesmith --version                # show version
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
import yaml

from pagesmith._version import __version__
from pagesmith.cli.engine import BuildEngine
from pagesmith.cli.utils import console, setup_logging
from pagesmith.config import BuildConfig, find_config, load_config
from pagesmith.pipeline.formatter import FormatterMode

typer_app = typer.Typer()


def resolve_config(
    config_path: Optional[Path],
    inpath: Optional[Path],
    outpath: Optional[Path],
    formatter: Optional[FormatterMode],
) -> BuildConfig:
    """Load pagesmith.yaml (if any) and apply command line overrides."""
    if config_path is None:
        config_path = find_config()
    config = load_config(config_path) if config_path is not None else BuildConfig()

    overrides = {}
    if inpath is not None:
        overrides["inpath"] = inpath
    if outpath is not None:
        overrides["outpath"] = outpath
    if formatter is not None:
        overrides["formatter"] = formatter
    return config.model_copy(update=overrides)


@typer_app.command()
def cli(
    pages: Optional[List[Path]] = typer.Argument(
        None, help="Pages or directories to compile (default: every page under inpath)."
    ),
    inpath: Optional[Path] = typer.Option(None, "-i", "--inpath", help="Source directory."),
    outpath: Optional[Path] = typer.Option(None, "-o", "--outpath", help="Output directory."),
    formatter: Optional[FormatterMode] = typer.Option(
        None, "-f", "--formatter", help="Output formatting."
    ),
    watch: bool = typer.Option(False, "-w", "--watch", help="Rebuild pages when sources change."),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log every compiled page."),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    config_path: Optional[Path] = typer.Option(
        None, "-c", "--config", help="Path to pagesmith.yaml."
    ),
) -> None:
    """Compile annotated HTML templates into static pages."""
    if version:
        typer.echo(f"pagesmith {__version__}")
        raise typer.Exit()

    setup_logging(verbose)

    try:
        config = resolve_config(config_path, inpath, outpath, formatter)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        typer.secho(f"Error: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if not Path(config.inpath).is_dir():
        typer.secho(f"Error: Source directory not found: {config.inpath}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if watch:
        from pagesmith.watch.engine import WatchingBuildEngine

        engine: BuildEngine = WatchingBuildEngine(config)
    else:
        engine = BuildEngine(config)

    if pages:
        page_paths = list(pages)
    elif config.pages:
        page_paths = [Path(config.inpath) / page for page in config.pages]
    else:
        page_paths = [Path(config.inpath)]
    res_paths = engine.collect_pages(page_paths)

    if not res_paths:
        typer.secho("Error: No pages to compile.", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if watch:
        console.print(f"[dim]Watching[/dim] {config.inpath} [dim](Ctrl+C to stop)[/dim]")
        engine.watch(res_paths)
        raise typer.Exit()

    failed = engine.build(res_paths)
    compiled = len(res_paths) - failed
    console.print(f"Compiled {compiled} page(s) into {config.outpath}")
    if failed:
        typer.secho(f"{failed} page(s) failed.", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)


def app() -> None:
    """Entry point for the CLI."""
    typer_app()


if __name__ == "__main__":
    app()
