"""CLI entry point for the visual diff engine."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from visdiff.differs.registry import available_differs, create_differs
from visdiff.models.config import DiffConfig
from visdiff.orchestrator import Orchestrator

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: Optional[str]) -> DiffConfig:
    if config is None:
        return DiffConfig()
    return DiffConfig.load(config)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression diff engine"""
    setup_logging(verbose)


@cli.command()
@click.option("--folders", nargs=2, type=str, default=None,
              metavar="BASELINE TEST", help="Diff same-named files of two directories")
@click.option("--patterns", nargs=2, type=str, default=None,
              metavar="BASELINE TEST", help="Diff the sorted matches of two glob patterns")
@click.option("--differs", "-d", multiple=True, help="Differ to run (repeatable, in order)")
@click.option("--threads", "-t", type=int, default=None, help="Worker count (default: one per core)")
@click.option("--alpha-dir", default=None, help="Directory for difference images")
@click.option("--output", "-o", default=None, help="JSON report path")
@click.option("--jsonp", is_flag=True, help="Wrap the JSON report as a JSONP assignment")
@click.option("--csv", "csv_path", default=None, help="CSV report path")
@click.option("--config", "-c", default=None, help="Config file path")
def run(
    folders: Optional[tuple[str, str]],
    patterns: Optional[tuple[str, str]],
    differs: tuple[str, ...],
    threads: Optional[int],
    alpha_dir: Optional[str],
    output: Optional[str],
    jsonp: bool,
    csv_path: Optional[str],
    config: Optional[str],
) -> None:
    """Diff a baseline image set against a test image set."""
    if bool(folders) == bool(patterns):
        raise click.UsageError("Pass exactly one of --folders or --patterns")

    try:
        cfg = _load_config(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'visdiff init' to create a default config.")
        sys.exit(1)

    if differs:
        cfg.differs = list(differs)
    if alpha_dir:
        cfg.difference_dir = alpha_dir

    try:
        differ_list = create_differs(cfg.differs, cfg)
    except KeyError as e:
        console.print(f"[red]{e.args[0]}[/red]")
        sys.exit(1)

    orchestrator = Orchestrator(cfg, differs=differ_list)
    if threads is not None:
        try:
            orchestrator.set_worker_count(threads)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--threads") from None

    if folders:
        orchestrator.diff_directories(*folders)
    else:
        orchestrator.diff_patterns(*patterns)

    outputs: dict[str, Path] = {}
    if output:
        outputs["tree-wrapped" if jsonp else "tree"] = Path(output)
    if csv_path:
        outputs["tabular"] = Path(csv_path)
    reports = orchestrator.generate_reports(outputs)

    summary = orchestrator.summary()
    console.print("\n[bold green]Diff Complete[/bold green]")
    table = Table(title="Results Summary")
    table.add_column("Differ", style="bold")
    table.add_column("Identical")
    table.add_column("Different")
    table.add_column("Not applicable")
    for name, counts in summary["differs"].items():
        table.add_row(
            name,
            f"[green]{counts['identical']}[/green]",
            f"[red]{counts['different']}[/red]",
            f"[yellow]{counts['not_applicable']}[/yellow]",
        )
    console.print(table)
    console.print(f"  Records: {summary['records']}")
    if summary["with_difference_image"]:
        console.print(f"  Difference images: {summary['with_difference_image']}")

    for fmt, path in reports.items():
        console.print(f"  {fmt.upper()} report: [blue]{path}[/blue]")


@cli.command("differs")
def list_differs() -> None:
    """List the registered differs."""
    for name in available_differs():
        console.print(f"  {name}")


@cli.command()
@click.option("--config", "-c", default="visdiff-config.json", help="Config file path")
def init(config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    DiffConfig().save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nYou can now customize this file and run:")
    console.print(f"  [blue]visdiff run --config {config_path} --folders BASELINE TEST[/blue]")


if __name__ == "__main__":
    cli()
