"""Run configuration: pydantic models, optionally seeded from a YAML file."""

from __future__ import annotations

from pathlib import Path
import re
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator
import yaml

from fasten.evolution.engine.config import EngineConfig
from fasten.exceptions import ConfigurationError
from fasten.exercise.outcome import MeasurementDirection
from fasten.source.loader import DEFAULT_FILE_PATTERN

DEFAULT_TIMEOUT_MS = 60 * 1000


class CommandsConfig(BaseModel):
    """The three operator-supplied command lines and their shared timeout."""

    reset: str = Field(description="Restores the pristine tree (e.g. 'git checkout .')")
    build: str = Field(description="Builds the tree (e.g. 'make')")
    fitness: str = Field(description="Prints one number measuring the build")
    timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        gt=0,
        description="Time allowed to each external process before it is killed",
    )
    workdir: Path | None = Field(
        default=None, description="Working directory for the commands"
    )
    direction: MeasurementDirection = Field(
        default=MeasurementDirection.LOWER_IS_BETTER,
        description="Whether smaller or larger fitness output is better",
    )

    @field_validator("reset", "build", "fitness")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("command line cannot be empty")
        return v


class LoaderConfig(BaseModel):
    directories: list[Path] = Field(min_length=1, description="Search roots")
    file_pattern: str = Field(
        default=DEFAULT_FILE_PATTERN,
        description="Regular expression matching file names to search",
    )

    @field_validator("file_pattern")
    @classmethod
    def _compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid regular expression: {e}") from e
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_dir: str = "logs"
    rotation: str = "50 MB"
    retention: str = "30 days"

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        # logger.level raises ValueError for a level loguru does not know
        logger.level(v.upper())
        return v.upper()


class OutputConfig(BaseModel):
    journal: Path | None = Field(
        default=None, description="JSON-lines file receiving every exercise"
    )
    report: Path | None = Field(default=None, description="JSON report of the run")


class FastenConfig(BaseModel):
    commands: CommandsConfig
    loader: LoaderConfig
    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


def read_config_file(path: str | Path) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read config {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {path} must be a mapping at top level")
    return data


def merge_overrides(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``overrides`` into ``base``, skipping None leaves."""
    merged = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_overrides(merged[key], value)
        elif isinstance(value, dict):
            merged[key] = merge_overrides({}, value)
        else:
            merged[key] = value
    return merged


def build_config(
    overrides: dict[str, Any], config_path: str | Path | None = None
) -> FastenConfig:
    base = read_config_file(config_path) if config_path else {}
    data = merge_overrides(base, overrides)
    try:
        return FastenConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
