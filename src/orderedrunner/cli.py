"""Command-line interface for orderedrunner."""

import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from orderedrunner import __version__
from orderedrunner.config import RunnerConfig, create_example_config
from orderedrunner.exceptions import ConfigurationError
from orderedrunner.log import configure_logging

console = Console()

EXIT_FAILED = 1
EXIT_CONFIGURATION = 2


def print_banner() -> None:
    """Print the orderedrunner banner."""
    console.print(
        Panel.fit(
            "[bold blue]orderedrunner[/bold blue] - ordered, parameterized test execution",
            subtitle=f"v{__version__}",
        )
    )


def _load_config(ctx: click.Context) -> RunnerConfig:
    config_path = ctx.obj.get("config_path")
    try:
        config = RunnerConfig.load_or_default(config_path)
    except (FileNotFoundError, ValidationError) as e:
        console.print(f"[red]Error loading configuration:[/red] {escape(str(e))}")
        sys.exit(EXIT_CONFIGURATION)

    level = "DEBUG" if ctx.obj.get("verbose") else config.logging.level
    configure_logging(level)
    return config


@click.group()
@click.version_option(version=__version__, prog_name="orderedrunner")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False),
    help="Path to configuration file (default: search for orderedrunner.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """orderedrunner - run test classes with first/last ordering and parameter sources."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="orderedrunner.json",
    help="Output path for configuration file",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite existing configuration")
def init(output: str, force: bool) -> None:
    """Create an example configuration file."""
    output_path = Path(output)
    if output_path.exists() and not force:
        console.print(f"[yellow]Configuration file already exists:[/yellow] {output_path}")
        console.print("Use --force to overwrite")
        sys.exit(EXIT_FAILED)

    create_example_config(output_path)
    console.print(f"[green]Created configuration file:[/green] {output_path}")


@main.command()
@click.argument("target")
@click.pass_context
def plan(ctx: click.Context, target: str) -> None:
    """Show how the tests of TARGET (module:Class) would be scheduled."""
    from orderedrunner.core.classifier import build_plan
    from orderedrunner.core.loader import load_test_class

    config = _load_config(ctx)

    try:
        test_class = load_test_class(target)
        scheduling_plan = build_plan(test_class, parallel=config.execution.parallel)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        sys.exit(EXIT_CONFIGURATION)

    table = Table(title=f"Plan for {test_class.__qualname__}")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Method", style="cyan")
    table.add_column("Role")
    table.add_column("Parameterized")
    table.add_column("Ignored")

    for position, method in enumerate(scheduling_plan.methods, start=1):
        table.add_row(
            str(position),
            method.name,
            method.role.value,
            "yes" if method.parameterized else "-",
            "yes" if method.ignored else "-",
        )

    console.print(table)
    mode = "parallel" if scheduling_plan.parallel else "sequential"
    console.print(f"[dim]Normal tests run {mode}[/dim]")


@main.command()
@click.argument("target")
@click.option(
    "--parallel/--sequential",
    default=None,
    help="Override the class's parallel_execution setting",
)
@click.option("--max-workers", "-w", type=int, default=None, help="Thread pool size")
@click.pass_context
def run(
    ctx: click.Context,
    target: str,
    parallel: Optional[bool],
    max_workers: Optional[int],
) -> None:
    """Run the tests of TARGET (module:Class)."""
    from orderedrunner.core.classifier import build_plan
    from orderedrunner.core.extractor import ParameterExtractor
    from orderedrunner.core.loader import load_test_class
    from orderedrunner.core.scheduler import Scheduler
    from orderedrunner.core.notification import ConsoleNotifier

    print_banner()
    config = _load_config(ctx)

    if parallel is None:
        parallel = config.execution.parallel

    try:
        test_class = load_test_class(target)
        scheduling_plan = build_plan(test_class, parallel=parallel)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        sys.exit(EXIT_CONFIGURATION)

    notifier = ConsoleNotifier(console=console, show_started=ctx.obj.get("verbose", False))
    scheduler = Scheduler(
        scheduling_plan,
        notifier=notifier,
        extractor=ParameterExtractor(search_paths=config.get_search_paths()),
        max_workers=max_workers or config.execution.max_workers,
    )
    summary = scheduler.run()

    _display_summary(summary.to_dict())

    if summary.configuration_errors:
        sys.exit(EXIT_CONFIGURATION)
    if not summary.success:
        sys.exit(EXIT_FAILED)


def _display_summary(results: dict) -> None:
    """Display a summary of a run."""
    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Total Units", str(results.get("total", 0)))
    table.add_row("Passed", f"[green]{results.get('passed', 0)}[/green]")
    table.add_row("Failed", f"[red]{results.get('failed', 0)}[/red]")
    table.add_row("Errors", f"[red]{results.get('errors', 0)}[/red]")
    table.add_row("Ignored", f"[yellow]{results.get('ignored', 0)}[/yellow]")
    table.add_row("Duration", f"{results.get('duration_ms', 0)}ms")

    console.print()
    console.print(table)

    errors = results.get("configuration_errors") or []
    if errors:
        console.print("\n[red]Configuration errors:[/red]")
        for message in errors:
            console.print(f"  [red]✗[/red] {escape(message)}", highlight=False)
    elif results.get("success"):
        console.print("\n[green]All tests passed![/green]")
    else:
        console.print("\n[red]Some tests failed![/red]")


if __name__ == "__main__":
    main()
