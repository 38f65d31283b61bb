"""
Command-line interface for QGRADE.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from qgrade.config import GraderConfig
from qgrade.core.errors import ConfigurationError
from qgrade.core.profiles import TargetProfile
from qgrade.utils.logging import configure_logging

console = Console()


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='YAML configuration file')
@click.pass_context
def main(ctx: click.Context, verbose: bool, debug: bool, config_path: Optional[str]) -> None:
    """QGRADE: equivalence-based grading of quantum exercises."""
    try:
        config = GraderConfig.from_yaml(config_path) if config_path else GraderConfig()
    except ConfigurationError as e:
        raise click.UsageError(f"Invalid configuration: {e}")
    level = "DEBUG" if debug else ("INFO" if verbose else config.log_level)
    configure_logging(level=level)
    ctx.obj = config


@main.command(name="list")
@click.option('--tag', '-t', help='Only list exercises with this tag')
def list_exercises(tag: Optional[str]) -> None:
    """List the built-in exercises."""
    from qgrade.exercises import default_catalog

    catalog = default_catalog()
    exercises = catalog.filter(tag) if tag else list(catalog)

    table = Table(title="Exercises")
    table.add_column("Name", style="cyan")
    table.add_column("Qubits", style="green")
    table.add_column("Mode")
    table.add_column("Description")
    for exercise in exercises:
        table.add_row(exercise.name, str(exercise.num_qubits), exercise.mode.value,
                      exercise.description)
    console.print(table)


@main.command()
@click.argument('exercise')
@click.option('--submission', '-s', required=True,
              help='Submission file or module; append :NAME to pick the operation')
@click.option('--profile', '-p', type=click.Choice(['base', 'adaptive', 'unrestricted']),
              help='Target profile override')
@click.option('--diagnostics/--no-diagnostics', default=None,
              help='Show expected-vs-actual state on failure')
@click.pass_obj
def check(config: GraderConfig, exercise: str, submission: str, profile: Optional[str],
          diagnostics: Optional[bool]) -> None:
    """Grade one submission against EXERCISE."""
    from qgrade.exercises import default_catalog
    from qgrade.harness import GradingHarness, OperationRegistry, RichReporter

    catalog = default_catalog()
    if exercise not in catalog:
        raise click.BadParameter(f"Unknown exercise '{exercise}'", param_hint="EXERCISE")
    target = catalog.get(exercise)

    source, _, name = submission.rpartition(":") if ":" in submission else (submission, "", "")
    try:
        config = config.with_overrides(target_profile=profile, diagnostics=diagnostics)
        registry = OperationRegistry.from_source(source)
        harness = GradingHarness(config=config, registry=registry)
    except (ConfigurationError, ImportError, FileNotFoundError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(2)

    result = harness.grade(target, name or None, RichReporter(console))
    console.print(f"Time: {result.verdict.time_seconds:.3f}s")
    sys.exit(0 if result.passed else 1)


@main.command(name="run-all")
@click.option('--submission', '-s', required=True, help='Submission file or module')
@click.option('--workers', '-w', type=int, help='Parallel workers')
@click.option('--timeout', type=float, help='Timeout per exercise in seconds')
@click.option('--tag', '-t', help='Only grade exercises with this tag')
@click.option('--output', '-o', type=click.Path(), help='Output file for results (JSON)')
@click.pass_obj
def run_all(config: GraderConfig, submission: str, workers: Optional[int],
            timeout: Optional[float], tag: Optional[str], output: Optional[str]) -> None:
    """Grade a submission against every built-in exercise."""
    from qgrade.exercises import default_catalog
    from qgrade.harness import GradingHarness, OperationRegistry, SuiteRunner

    catalog = default_catalog()
    exercises = catalog.filter(tag) if tag else list(catalog)
    try:
        registry = OperationRegistry.from_source(submission)
        harness = GradingHarness(config=config, registry=registry)
    except (ConfigurationError, ImportError, FileNotFoundError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(2)

    runner = SuiteRunner(harness, max_workers=workers, timeout=timeout)
    results = runner.run(exercises)

    table = Table(title="Results")
    table.add_column("Exercise", style="cyan")
    table.add_column("Status")
    table.add_column("Message")
    styles = {"CORRECT": "green", "INCORRECT": "red", "EXECUTION_ERROR": "yellow",
              "ABORTED": "magenta"}
    for result in results.results:
        status = result.status.name
        message = "" if result.passed else result.verdict.message
        table.add_row(result.exercise, f"[{styles[status]}]{status}[/{styles[status]}]", message)
    console.print(table)
    console.print(f"Passed {results.passed}/{results.total} ({results.pass_rate:.1%}) "
                  f"in {results.total_time_seconds:.2f}s")

    if output:
        results.save(Path(output))
        console.print(f"Results saved to {output}")
    sys.exit(0 if results.passed == results.total else 1)


@main.command()
@click.pass_obj
def profiles(config: GraderConfig) -> None:
    """List the available target profiles."""
    table = Table(title="Target profiles")
    table.add_column("Setting", style="cyan")
    table.add_column("Name")
    table.add_column("Instructions")
    for profile in TargetProfile.available(config.enable_adaptive_profile):
        instructions = ", ".join(sorted(i.value for i in profile.instructions))
        marker = " (active)" if profile.value == config.target_profile else ""
        table.add_row(profile.value + marker, profile.friendly_name, instructions)
    console.print(table)


@main.command()
def info() -> None:
    """Display QGRADE information."""
    from qgrade import __version__

    console.print(f"[bold blue]QGRADE[/bold blue] v{__version__}")
    console.print("Equivalence-based grading of quantum programming exercises")
    console.print("\nComponents:")
    console.print("  • StateVector / ApplicationEngine - dense simulation")
    console.print("  • EquivalenceChecker - control-indirection equivalence test")
    console.print("  • GradingHarness / SuiteRunner - grading and reporting")


if __name__ == "__main__":
    main()
