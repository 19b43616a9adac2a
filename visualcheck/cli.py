"""CLI entry point for visual regression checks."""

from __future__ import annotations

import logging
import sys
import time
import uuid
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from visualcheck.comparison.assertions import ensure_all_passed
from visualcheck.comparison.engine import VisualRegressionEngine
from visualcheck.errors import ConfigurationError, DecodeError, NotFoundError, VisualComparisonException
from visualcheck.models.comparison import ComparisonResult, ComparisonRun
from visualcheck.models.config import VisualConfig
from visualcheck.reporter.reporter import Reporter
from visualcheck.reporter.sinks import DirectoryReportSink

console = Console()

DEFAULT_CONFIG = "visual-config.json"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(path: str) -> VisualConfig:
    try:
        if not Path(path).exists():
            return VisualConfig.from_env()
        return VisualConfig.load(path)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)


def _build_engine(
    config: VisualConfig,
    pixel_tolerance: float | None,
    diff_threshold: float | None,
) -> VisualRegressionEngine:
    engine = VisualRegressionEngine.from_config(
        config, report_sink=DirectoryReportSink(Path(config.attachments_dir))
    )
    try:
        if pixel_tolerance is not None:
            engine = engine.with_pixel_tolerance(pixel_tolerance)
        if diff_threshold is not None:
            engine = engine.with_diff_threshold(diff_threshold)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)
    return engine


def _results_table(results: list[ComparisonResult]) -> Table:
    table = Table(title="Visual Comparison")
    table.add_column("Baseline", style="bold")
    table.add_column("Result")
    table.add_column("Diff", justify="right")
    table.add_column("Pixels", justify="right")
    table.add_column("Message")
    for r in results:
        if r.baseline_created:
            status = "[blue]NEW[/blue]"
        elif r.passed:
            status = "[green]PASS[/green]"
        else:
            status = "[red]FAIL[/red]"
        table.add_row(
            r.baseline_name,
            status,
            f"{r.diff_percent:.2f}%",
            f"{r.diff_pixel_count}/{r.total_pixels}",
            r.message,
        )
    return table


tolerance_option = click.option(
    "--pixel-tolerance", type=float, default=None, help="Per-channel tolerance (0.0-1.0)"
)
threshold_option = click.option(
    "--diff-threshold", type=float, default=None, help="Max fraction of differing pixels (0.0-1.0)"
)
config_option = click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression checks against approved baseline screenshots"""
    setup_logging(verbose)


@cli.command()
@click.option("--baseline-dir", default="./visual-baselines", help="Where approved baselines live")
def init(baseline_dir: str) -> None:
    """Create a default configuration file."""
    config_path = Path(DEFAULT_CONFIG)
    if config_path.exists():
        if not click.confirm(f"{DEFAULT_CONFIG} already exists. Overwrite?"):
            return

    cfg = VisualConfig(baseline_dir=baseline_dir)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nCompare a screenshot with:")
    console.print("  [blue]visualcheck compare checkout-summary screenshot.png[/blue]")


@cli.command()
@click.argument("name")
@click.argument("image", type=click.Path(exists=True, dir_okay=False))
@tolerance_option
@threshold_option
@config_option
def compare(name: str, image: str, pixel_tolerance: float | None, diff_threshold: float | None, config: str) -> None:
    """Compare IMAGE with the baseline stored as NAME."""
    cfg = _load_config(config)
    engine = _build_engine(cfg, pixel_tolerance, diff_threshold)
    try:
        result = engine.compare(name, Path(image).read_bytes())
    except (DecodeError, ConfigurationError) as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)

    console.print(_results_table([result]))
    if result.diff_path:
        console.print(f"  Diff image: [blue]{result.diff_path}[/blue]")
    if not result.passed:
        console.print(
            f"[red]Visual comparison failed for '{name}': {result.diff_percent:.2f}% difference "
            f"(threshold: {result.threshold_percent:.2f}%)[/red]"
        )
        sys.exit(1)


@cli.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@tolerance_option
@threshold_option
@config_option
def batch(directory: str, pixel_tolerance: float | None, diff_threshold: float | None, config: str) -> None:
    """Compare every PNG in DIRECTORY, using each file name as the baseline name."""
    cfg = _load_config(config)
    engine = _build_engine(cfg, pixel_tolerance, diff_threshold)
    regions = {p.stem: p.read_bytes() for p in sorted(Path(directory).glob("*.png"))}
    if not regions:
        console.print(f"[yellow]No PNG files found in {directory}[/yellow]")
        return

    run = ComparisonRun(
        run_id=f"run_{uuid.uuid4().hex[:8]}",
        started_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
        pixel_tolerance=engine.pixel_tolerance,
        diff_threshold=engine.diff_threshold,
    )
    try:
        results = engine.compare_all(regions)
    except (DecodeError, ConfigurationError) as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)
    run.results = list(results.values())
    run.completed_at = time.strftime("%Y-%m-%dT%H:%M:%SZ")

    console.print(_results_table(run.results))
    for fmt, path in Reporter(cfg).generate_reports(run).items():
        console.print(f"  {fmt.upper()} report: [blue]{path}[/blue]")

    try:
        ensure_all_passed(results)
    except VisualComparisonException as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


@cli.command()
@click.argument("name")
@click.argument("image", type=click.Path(exists=True, dir_okay=False))
@config_option
def approve(name: str, image: str, config: str) -> None:
    """Replace the baseline NAME with IMAGE."""
    cfg = _load_config(config)
    engine = VisualRegressionEngine.from_config(cfg)
    try:
        path = engine.update_baseline(name, Path(image).read_bytes())
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)
    console.print(f"[green]Updated baseline[/green] {name}: {path}")


@cli.command("list")
@config_option
def list_baselines(config: str) -> None:
    """List stored baselines."""
    cfg = _load_config(config)
    engine = VisualRegressionEngine.from_config(cfg)
    names = engine.repository.names()
    if not names:
        console.print("[yellow]No baselines stored[/yellow]")
        return
    for name in names:
        console.print(f"  {name}: {engine.repository.baseline_path(name)}")


@cli.command()
@click.argument("name")
@click.option("--output", "-o", required=True, type=click.Path(dir_okay=False), help="Where to write the PNG")
@config_option
def export(name: str, output: str, config: str) -> None:
    """Copy the baseline NAME to OUTPUT."""
    cfg = _load_config(config)
    engine = VisualRegressionEngine.from_config(cfg)
    try:
        data = engine.load_baseline(name)
    except NotFoundError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    Path(output).write_bytes(data)
    console.print(f"[green]Exported[/green] {name} to {output}")


@cli.command()
@config_option
def clean(config: str) -> None:
    """Remove actual captures and diff images. Baselines are kept."""
    cfg = _load_config(config)
    engine = VisualRegressionEngine.from_config(cfg)
    removed = engine.repository.clean_artifacts()
    console.print(f"[green]Removed {removed} artifacts[/green]")


if __name__ == "__main__":
    cli()
