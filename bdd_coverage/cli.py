from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .config import AppConfig
from .errors import DiscoveryRootMissing
from .logging_setup import configure_logging
from .pipeline import ValidationRun, run_validation
from .reporting.renderer import missing_step_keywords, render_step_stubs, write_report, write_stubs


app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()


def _load_config(
    features_dir: Optional[str],
    steps_dir: Optional[str],
    verbose: bool = False,
) -> AppConfig:
    load_dotenv(override=False)
    config = AppConfig()
    if features_dir:
        config.features_dir = features_dir
    if steps_dir:
        config.steps_dir = steps_dir
    configure_logging("DEBUG" if verbose else config.log_level, console=Console(stderr=True))
    return config


def _run(path: str, config: AppConfig) -> ValidationRun:
    root = Path(path).resolve()
    try:
        return run_validation(root, config)
    except DiscoveryRootMissing as exc:
        raise typer.BadParameter(str(exc)) from exc


def _print_diagnostics(run: ValidationRun) -> None:
    for diagnostic in run.diagnostics:
        console.print(f"[yellow]Skipped[/yellow] {diagnostic}")


ROOT_ARG = typer.Argument(".", help="Project root containing the feature and step directories")
FEATURES_OPT = typer.Option(None, help="Feature directory, relative to the root")
STEPS_OPT = typer.Option(None, help="Step definition directory, relative to the root")


@app.command()
def validate(
    path: str = ROOT_ARG,
    features_dir: Optional[str] = FEATURES_OPT,
    steps_dir: Optional[str] = STEPS_OPT,
    json_out: Optional[str] = typer.Option(None, "--json", help="Write the report as JSON to this file"),
    fail_under: int = typer.Option(0, help="Exit with code 1 when coverage is below this percentage"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Check step definition coverage for every scenario and print a report."""
    cfg = _load_config(features_dir, steps_dir, verbose)
    run = _run(path, cfg)
    report = run.report
    _print_diagnostics(run)

    summary = report.summary
    table = Table(title="BDD Validation Summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Features", str(summary.total_features))
    table.add_row("Scenarios", str(summary.total_scenarios))
    table.add_row("Unique steps", str(summary.total_steps))
    table.add_row("Step definitions", str(summary.total_step_definitions))
    table.add_row("Step coverage", f"{summary.step_coverage}%")
    table.add_row("Missing steps", str(summary.missing_steps_count))
    console.print(table)

    if report.features:
        features = Table(title="Features")
        features.add_column("Feature")
        features.add_column("Path")
        features.add_column("Scenarios", justify="right")
        for feature in report.features:
            features.add_row(feature.name, feature.path, str(feature.scenario_count))
        console.print(features)

    if report.missing_steps:
        console.print("[bold yellow]Missing step definitions:[/bold yellow]")
        for step in report.missing_steps:
            console.print(f"  - {step}", markup=False, highlight=False)
    else:
        console.print("[green]All steps have definitions![/green]")

    if report.recommendations:
        console.print("[bold]Recommendations:[/bold]")
        for idx, rec in enumerate(report.recommendations, start=1):
            console.print(f"  {idx}. {rec}")

    if json_out:
        out_file = write_report(report, Path(json_out).resolve())
        console.print(f"[green]Wrote[/green] {out_file}")

    if summary.step_coverage < fail_under:
        console.print(f"[red]Coverage {summary.step_coverage}% is below {fail_under}%[/red]")
        raise typer.Exit(code=1)


@app.command()
def missing(
    path: str = ROOT_ARG,
    features_dir: Optional[str] = FEATURES_OPT,
    steps_dir: Optional[str] = STEPS_OPT,
):
    """List step texts that no step definition matches."""
    cfg = _load_config(features_dir, steps_dir)
    run = _run(path, cfg)
    _print_diagnostics(run)
    for step in run.coverage.missing_steps:
        console.print(step, markup=False, highlight=False, soft_wrap=True)
    console.print(
        f"[dim]{len(run.coverage.missing_steps)} missing of {run.coverage.total_unique_steps} unique steps[/dim]"
    )


@app.command()
def stubs(
    path: str = ROOT_ARG,
    features_dir: Optional[str] = FEATURES_OPT,
    steps_dir: Optional[str] = STEPS_OPT,
    out: Optional[str] = typer.Option(None, help="Write stubs to this file instead of stdout"),
):
    """Generate Python step definition stubs for every missing step."""
    cfg = _load_config(features_dir, steps_dir)
    run = _run(path, cfg)
    missing_steps = list(run.coverage.missing_steps)
    if not missing_steps:
        console.print("[green]No missing steps[/green]")
        raise typer.Exit(code=0)

    content = render_step_stubs(missing_steps, missing_step_keywords(run.features, missing_steps))
    if out is None:
        console.print(content, markup=False, highlight=False, soft_wrap=True)
        return

    def _written(file_path: Path) -> None:
        console.print(f"[green]Wrote[/green] {len(missing_steps)} stubs to {file_path}")

    write_stubs(content, Path(out).resolve(), progress_callback=_written)


@app.command()
def simulate(
    path: str = ROOT_ARG,
    features_dir: Optional[str] = FEATURES_OPT,
    steps_dir: Optional[str] = STEPS_OPT,
):
    """Show a synthetic run of the first scenarios of each feature."""
    cfg = _load_config(features_dir, steps_dir)
    run = _run(path, cfg)
    table = Table(title="Sample Scenarios")
    table.add_column("Feature")
    table.add_column("Scenario")
    table.add_column("Passed", justify="right")
    table.add_column("Pending", justify="right")
    for result in run.test_results:
        passed = sum(1 for s in result.steps if s.status == "passed")
        table.add_row(result.feature, result.scenario, str(passed), str(len(result.steps) - passed))
    console.print(table)


if __name__ == "__main__":  # pragma: no cover
    app()
