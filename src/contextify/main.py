"""Main CLI entry point for Next.js Contextify."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import Config
from .errors import ContextifyError, RootPathError
from .models import ProjectDetectionResult, ScanResult
from .optimizer import OptimizationResult, TokenOptimizer, get_optimization_presets
from .scanner import FileScanner, ProjectDetector


console = Console()
err_console = Console(stderr=True)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(error: Exception) -> None:
    err_console.print(f"[red]Error:[/red] {escape(str(error))}")
    sys.exit(1)


@click.group()
def cli():
    """Next.js Contextify - Fit a Next.js project into an LLM context window."""
    pass


@cli.command()
@click.argument("repo_path", type=click.Path(path_type=Path))
@click.option(
    "--preset",
    "-p",
    type=click.Choice(list(get_optimization_presets())),
    default=None,
    help="Optimization preset applied after scanning",
)
@click.option("--top", "-n", type=int, default=10, show_default=True, help="Number of top files to list")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def scan(repo_path: Path, preset: str | None, top: int, debug: bool):
    """Scan a project and summarize its files by category.

    Examples:
        contextify scan ./my-next-app

        contextify scan ./my-next-app --preset balanced --top 20
    """
    config = Config.from_env()
    _configure_logging("DEBUG" if debug else config.log_level)

    try:
        result = FileScanner(config).scan(repo_path.resolve())
    except ContextifyError as e:
        _fail(e)
        return

    files = result.files
    optimization = None
    if preset:
        optimizer = TokenOptimizer(default_target=config.target_llm)
        files, optimization = optimizer.optimize(files, get_optimization_presets()[preset])

    _print_scan(result)
    if optimization is not None:
        _print_optimization(preset, optimization)

    top_table = Table(title=f"Top {min(top, len(files))} files")
    top_table.add_column("Priority", justify="right")
    top_table.add_column("Category")
    top_table.add_column("Tokens", justify="right")
    top_table.add_column("Path")
    for file_info in files[:top]:
        top_table.add_row(str(file_info.priority), file_info.category.value, str(file_info.tokens), escape(file_info.path))
    console.print(top_table)

    if result.errors:
        console.print(f"[yellow]{len(result.errors)} files could not be read[/yellow]")
        for error in result.errors:
            console.print(f"  {escape(error)}")


@cli.command()
@click.argument("repo_path", type=click.Path(path_type=Path))
def detect(repo_path: Path):
    """Detect the libraries and archetype of a project."""
    config = Config.from_env()
    _configure_logging(config.log_level)

    root = repo_path.resolve()
    if not root.is_dir():
        _fail(RootPathError(f"Root path is not a directory: {root}"))
        return

    _print_detection(ProjectDetector().detect(root))


@cli.command()
def presets():
    """List the optimization presets."""
    table = Table(title="Optimization presets")
    table.add_column("Name")
    table.add_column("Settings")
    for name, policy in get_optimization_presets().items():
        settings = policy.model_dump(exclude_defaults=True)
        description = ", ".join(f"{key}={value}" for key, value in settings.items()) or "no changes"
        table.add_row(name, description)
    console.print(table)


def _print_detection(detection: ProjectDetectionResult) -> None:
    console.print(f"[bold]Project type:[/bold] {detection.project_type.value}")
    console.print(
        f"[bold]Archetype:[/bold] {detection.structure_type.value} "
        f"({detection.confidence}% confidence)"
    )
    console.print(f"[bold]Package manager:[/bold] {detection.package_manager.value}")
    console.print(f"[bold]Next.js:[/bold] {detection.framework_version}")
    console.print(f"[bold]Router:[/bold] {detection.router_type.value}")

    for bucket, names in detection.libraries.model_dump().items():
        if names:
            console.print(f"  {bucket}: {escape(', '.join(names))}")

    if detection.recommendations:
        console.print("[bold]Recommendations:[/bold]")
        for recommendation in detection.recommendations:
            console.print(f"  - {escape(recommendation)}")


def _print_scan(result: ScanResult) -> None:
    stats = result.stats
    if stats.project_detection is not None:
        _print_detection(stats.project_detection)

    table = Table(title="Files by category")
    table.add_column("Category")
    table.add_column("Files", justify="right")
    for category, count in sorted(stats.categories.items()):
        table.add_row(category, str(count))
    console.print(table)
    console.print(
        f"Total: {stats.total_files} files, {stats.total_tokens} tokens, {stats.total_size} bytes "
        f"({stats.processing_time_ms or 0:.0f} ms)"
    )


def _print_optimization(preset: str, optimization: OptimizationResult) -> None:
    console.print(
        f"[bold]Preset {preset}:[/bold] {optimization.original_file_count} -> "
        f"{optimization.optimized_file_count} files, {optimization.original_tokens} -> "
        f"{optimization.optimized_tokens} tokens "
        f"({optimization.savings.token_reduction:.1f}% reduction)"
    )
    for step in optimization.applied_optimizations:
        console.print(f"  - {escape(step)}")
    fits = "fits" if optimization.fits_context_window else "does not fit"
    console.print(f"Context window: {optimization.target_token_limit} tokens ({fits})")


if __name__ == "__main__":
    cli()
