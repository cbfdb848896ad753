"""Exercising individuals: reset, patch, build, measure."""

from __future__ import annotations

import asyncio
from collections import Counter
import math
from typing import NamedTuple

from loguru import logger

from fasten.exceptions import (
    CommandError,
    ResetFailedError,
    UnparseableFitnessError,
)
from fasten.exercise.journal import ExerciseRecord, Journal
from fasten.exercise.outcome import ExerciseOutcome, MeasurementDirection
from fasten.exercise.runner import Command, CommandResult, CommandStatus
from fasten.genome.models import (
    ExerciseResult,
    Individual,
    Population,
    describe_individual,
)
from fasten.source.patch import write_individual


def parse_measurement(output: str) -> float:
    text = output.strip()
    try:
        measurement = float(text)
    except ValueError:
        raise UnparseableFitnessError(output) from None
    if not math.isfinite(measurement):
        raise UnparseableFitnessError(output, "not finite")
    return measurement


def fitness_of(measurement: float, direction: MeasurementDirection) -> float:
    """Map a raw measurement onto the higher-is-better fitness scale."""
    if direction is MeasurementDirection.HIGHER_IS_BETTER:
        return measurement
    if measurement == 0.0:
        raise UnparseableFitnessError(str(measurement), "zero has no reciprocal")
    fitness = 1.0 / measurement
    if not math.isfinite(fitness):
        raise UnparseableFitnessError(str(measurement), "reciprocal is not finite")
    return fitness


class Exercise(NamedTuple):
    outcome: ExerciseOutcome
    result: ExerciseResult | None = None
    detail: str = ""


def _stderr_tail(result: CommandResult, limit: int = 2000) -> str:
    return result.stderr.strip()[-limit:]


class Exerciser:
    """Drives individuals through the external reset/build/fitness commands.

    All commands act on one shared working tree, so an individual's reset,
    patch, build and measurement run under a single lock.
    """

    def __init__(
        self,
        reset: Command,
        build: Command,
        fitness: Command,
        direction: MeasurementDirection = MeasurementDirection.LOWER_IS_BETTER,
        journal: Journal | None = None,
    ):
        self.reset = reset
        self.build = build
        self.fitness = fitness
        self.direction = direction
        self.journal = journal
        self.outcomes: Counter[ExerciseOutcome] = Counter()
        self._tree_lock = asyncio.Lock()

    async def exercise(
        self, individual: Individual, *, generation: int = 0, index: int = 0
    ) -> ExerciseResult | None:
        """Measure one individual; None if it failed to build or measure."""
        async with self._tree_lock:
            exercise = await self._exercise(individual)

        self.outcomes[exercise.outcome] += 1
        if exercise.result is None:
            logger.info(
                "[Exerciser] Individual {} dropped: {}", index, exercise.outcome.value
            )
        else:
            logger.info(
                "[Exerciser] Individual {} fitness={:.6g} (measurement={:.6g})",
                index,
                exercise.result.fitness,
                exercise.result.measurement,
            )

        if self.journal is not None:
            self.journal.append(
                ExerciseRecord(
                    generation=generation,
                    index=index,
                    outcome=exercise.outcome,
                    measurement=exercise.result.measurement if exercise.result else None,
                    fitness=exercise.result.fitness if exercise.result else None,
                    changes=describe_individual(individual),
                    detail=exercise.detail,
                )
            )
        return exercise.result

    async def exercise_population(
        self, population: Population, *, generation: int = 0
    ) -> list[ExerciseResult]:
        logger.info(
            "[Exerciser] Exercising population of {} (generation {})",
            len(population),
            generation,
        )
        results = []
        for index, individual in enumerate(population):
            result = await self.exercise(individual, generation=generation, index=index)
            if result is not None:
                results.append(result)
        logger.info(
            "[Exerciser] {}/{} individual(s) produced a fitness",
            len(results),
            len(population),
        )
        return results

    async def _exercise(self, individual: Individual) -> Exercise:
        logger.debug("[Exerciser] Resetting tree")
        reset = await self.reset()
        try:
            reset.raise_for_status()
        except CommandError as e:
            raise ResetFailedError(
                f"Reset failed, tree is no longer pristine: {e}",
                command=e.command,
                stderr=e.stderr,
            ) from e

        logger.debug("[Exerciser] Writing individual")
        await asyncio.to_thread(write_individual, individual)

        logger.debug("[Exerciser] Building")
        build = await self.build()
        if build.status is CommandStatus.TIMED_OUT:
            return Exercise(ExerciseOutcome.BUILD_TIMED_OUT)
        if not build.ok:
            return Exercise(ExerciseOutcome.BUILD_FAILED, detail=_stderr_tail(build))

        logger.debug("[Exerciser] Testing fitness")
        fitness = await self.fitness()
        if fitness.status is CommandStatus.TIMED_OUT:
            return Exercise(ExerciseOutcome.FITNESS_TIMED_OUT)
        if not fitness.ok:
            return Exercise(ExerciseOutcome.FITNESS_FAILED, detail=_stderr_tail(fitness))

        try:
            measurement = parse_measurement(fitness.stdout)
            value = fitness_of(measurement, self.direction)
        except UnparseableFitnessError as e:
            logger.warning("[Exerciser] {}", e)
            return Exercise(ExerciseOutcome.UNPARSEABLE_FITNESS, detail=str(e))

        return Exercise(
            ExerciseOutcome.MEASURED,
            ExerciseResult(individual=individual, fitness=value, measurement=measurement),
        )
