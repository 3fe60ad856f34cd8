"""Main Typer CLI application for the differential projection check."""

import logging
from pathlib import Path
from typing import Any

import typer

from projection_check.config import HarnessConfig, get_default_config
from projection_check.errors import HarnessError
from projection_check.harness import run_harness
from projection_check.reporter import OutputFormat, Reporter

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Check the numpy projection model against OpenCV on randomized cameras",
)


def _configure_logging(verbose: bool) -> None:
    """Send log records to stderr; stdout is reserved for the report."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format='%(levelname)s: %(message)s')
    logging.getLogger("projection_check").setLevel(level)


def _load_config(config_file: Path | None, overrides: dict[str, Any]) -> HarnessConfig:
    """Defaults < config file < command-line overrides."""
    config = HarnessConfig.from_yaml(config_file) if config_file else get_default_config()

    given = {key: value for key, value in overrides.items() if value is not None}
    if not given:
        return config

    logger.info(f"Command-line overrides: {given}")
    merged = config.to_dict()
    merged.update(given)
    return HarnessConfig.from_dict(merged)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML file with a 'harness' section",
    ),
    iterations: int | None = typer.Option(None, help="Number of randomized scenarios [default: 10000]"),
    epsilon: float | None = typer.Option(None, help="Absolute pixel tolerance [default: 0.001]"),
    n_points: int | None = typer.Option(None, "--n-points", help="World points per scenario [default: 1]"),
    seed: int | None = typer.Option(None, help="Seed for the random generator (unseeded by default)"),
    min_depth: float | None = typer.Option(
        None,
        "--min-depth",
        help="Redraw world points closer than this to the camera plane [default: 0, disabled]",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.HUMAN,
        "--format",
        "-f",
        help="Output format",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
) -> None:
    """
    Run the differential projection test.

    Samples random poses, intrinsics, distortion and world points, projects
    them with the numpy model and with cv2.projectPoints, and reports every
    disagreement larger than epsilon plus a pass/fail summary. Comparison
    failures do not change the exit status; harness errors exit with 1.

    Example:
        projcheck
        projcheck --iterations 500 --seed 7
        projcheck --config config/projection_check.yaml --format json
        projcheck --epsilon 1e-6 config
    """
    _configure_logging(verbose)

    try:
        config = _load_config(
            config_file,
            {
                "iterations": iterations,
                "epsilon": epsilon,
                "n_points": n_points,
                "seed": seed,
                "min_depth": min_depth,
            },
        )
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except ValueError as e:
        typer.echo(f"Error: Invalid configuration: {e}", err=True)
        raise typer.Exit(1)

    if ctx.invoked_subcommand is not None:
        ctx.obj = config
        return

    reporter = Reporter(config.epsilon, output_format=output_format)
    try:
        run_harness(config, reporter=reporter)
    except HarnessError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command("config")
def config_command(ctx: typer.Context) -> None:
    """
    Print the effective configuration as YAML.

    Example:
        projcheck config > my_run.yaml
        projcheck --iterations 100 --seed 3 config
    """
    config: HarnessConfig = ctx.obj
    typer.echo(config.to_yaml(), nl=False)


if __name__ == "__main__":
    app()
