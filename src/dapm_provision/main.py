"""CLI main entry point."""

import asyncio
import sys
from pathlib import Path

import click
from rich.console import Console

from . import __version__
from .config import ProvisionConfig, load_config
from .errors import ConfigError
from .runner import RunResult
from .sequencer import ScenarioSequencer
from .shared.logging import configure_logging, get_logger, level_for_verbosity

logger = get_logger(__name__)


async def run_scenario(config: ProvisionConfig, console: Console) -> RunResult:
    """Run the configured scenario once."""
    sequencer = ScenarioSequencer(config, console=console)
    return await sequencer.run()


@click.command()
@click.option("-c", "--config", "config_path", type=click.Path(), help="Config file path")
@click.option(
    "--templates-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding templates and config schemas",
)
@click.option("-v", "--verbose", count=True, help="Increase verbosity")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON")
@click.version_option(__version__, prog_name="dapm-provision")
def cli(
    config_path: str | None,
    templates_dir: Path | None,
    verbose: int,
    json_logs: bool,
) -> None:
    """Provision processing element templates across platform deployments.

    Logs in to each deployment in turn and uploads its templates. Stops at
    the first failed step and exits with status 1.
    """
    configure_logging(level_for_verbosity(verbose), json_output=json_logs)
    console = Console()

    try:
        config = load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)

    if templates_dir is not None:
        config.templates_dir = templates_dir
        config._sources["templates_dir"] = "command line"

    logger.info(
        "config_loaded",
        deployments=config.deployments,
        templates_dir=str(config.templates_dir),
        scenario_source=config.get_source("scenario"),
    )

    result = asyncio.run(run_scenario(config, console))
    sys.exit(result.exit_code)


def main() -> None:
    """Console script entry point."""
    cli()
