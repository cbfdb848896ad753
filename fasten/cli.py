"""
Command-line entry point.

Usage:
    fasten --reset 'git checkout .' --build make --fitness bin/run-benchmark src/
    fasten --config fasten.yaml --generations 100 --population 40 .
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path
import sys
import time

import click
from dotenv import load_dotenv
from loguru import logger

from fasten.config import FastenConfig, build_config
from fasten.evolution.engine import EvolutionEngine
from fasten.exceptions import (
    FastenError,
    NoFastenersError,
    RunInterruptedError,
    UsageError,
)
from fasten.exercise.evaluator import Exerciser
from fasten.exercise.journal import Journal
from fasten.exercise.outcome import MeasurementDirection
from fasten.exercise.runner import Command
from fasten.report import RunReport, build_report, format_report, write_report
from fasten.source.loader import SourceLoader
from fasten.utils.logger_setup import setup_logger
from fasten.utils.serve import run_until_signal


def build_exerciser(config: FastenConfig) -> Exerciser:
    commands = config.commands

    def command(name: str, command_line: str) -> Command:
        return Command(name, command_line, commands.timeout_ms, cwd=commands.workdir)

    journal = Journal(config.output.journal) if config.output.journal else None
    return Exerciser(
        reset=command("reset", commands.reset),
        build=command("build", commands.build),
        fitness=command("fitness", commands.fitness),
        direction=commands.direction,
        journal=journal,
    )


async def run_fasten(config: FastenConfig) -> RunReport:
    logger.info("Loading files from {}", ", ".join(map(str, config.loader.directories)))
    seed = SourceLoader(config.loader.file_pattern).load(config.loader.directories)
    if not any(file.fasteners for file in seed):
        raise NoFastenersError(
            f"No FASTENABLE constants found in files matching {config.loader.file_pattern!r}"
        )

    engine = EvolutionEngine(seed, build_exerciser(config), config.engine)
    result = await engine.run()

    report = build_report(result)
    if config.output.report:
        write_report(report, config.output.report)
        logger.info("Report written to {}", config.output.report)
    return report


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("directories", nargs=-1, type=click.Path(path_type=Path))
@click.option(
    "--build", "build_command", help="The command that builds the source tree (e.g. 'make')."
)
@click.option(
    "--fitness",
    "fitness_command",
    help="The command that computes fitness (e.g. 'bin/run-benchmark').",
)
@click.option(
    "--reset",
    "reset_command",
    help="The command that resets the source tree (e.g. 'git checkout .').",
)
@click.option("--files", "file_pattern", help="Regular expression matching file names to search.")
@click.option("--generations", type=int, help="Number of generations to run (default 20).")
@click.option("--population", type=int, help="Size of a population (default 20).")
@click.option(
    "--timeout",
    "timeout_ms",
    type=int,
    help="Milliseconds to wait for external processes before killing them (default 60000).",
)
@click.option(
    "--direction",
    type=click.Choice([d.value for d in MeasurementDirection]),
    help="Whether the fitness command's number is better when lower (default) or higher.",
)
@click.option("--seed", type=int, help="Random seed for a reproducible run.")
@click.option(
    "--journal",
    type=click.Path(path_type=Path),
    help="Append every exercised individual to this JSON-lines file.",
)
@click.option(
    "--report", type=click.Path(path_type=Path), help="Write the final report as JSON."
)
@click.option(
    "--workdir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Working directory for the external commands.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file with defaults for any of these options.",
)
@click.option("--log-level", help="Console log level (default INFO).")
@click.option("--log-dir", help="Directory for log files (default logs).")
def main(
    directories: tuple[Path, ...],
    build_command: str | None,
    fitness_command: str | None,
    reset_command: str | None,
    file_pattern: str | None,
    generations: int | None,
    population: int | None,
    timeout_ms: int | None,
    direction: str | None,
    seed: int | None,
    journal: Path | None,
    report: Path | None,
    workdir: Path | None,
    config_path: Path | None,
    log_level: str | None,
    log_dir: str | None,
) -> None:
    """Evolve the FASTENABLE constants found under DIRECTORIES."""
    load_dotenv()

    overrides = {
        "commands": {
            "reset": reset_command,
            "build": build_command,
            "fitness": fitness_command,
            "timeout_ms": timeout_ms,
            "workdir": workdir,
            "direction": direction,
        },
        "loader": {
            "directories": list(directories) or None,
            "file_pattern": file_pattern,
        },
        "engine": {
            "population_size": population,
            "generations": generations,
            "seed": seed,
        },
        "logging": {"level": log_level, "log_dir": log_dir},
        "output": {"journal": journal, "report": report},
    }
    try:
        config = build_config(overrides, config_path)
    except UsageError as e:
        raise click.UsageError(str(e)) from e

    log_file = setup_logger(
        log_dir=config.logging.log_dir,
        level=config.logging.level,
        rotation=config.logging.rotation,
        retention=config.logging.retention,
    )
    logger.info("Log file: {}", log_file)
    logger.info("Start time: {}", datetime.now(timezone.utc).isoformat())

    start_time = time.time()
    try:
        run_report = asyncio.run(run_until_signal(run_fasten(config)))
    except RunInterruptedError as e:
        logger.warning("{}", e)
        sys.exit(130)
    except FastenError as e:
        logger.error("Fasten run failed: {}", e)
        sys.exit(1)
    finally:
        logger.info("Total duration: {:.2f} seconds", time.time() - start_time)

    click.echo(format_report(run_report))


if __name__ == "__main__":
    main()
