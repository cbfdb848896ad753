from __future__ import annotations

import random

from loguru import logger
from pydantic import BaseModel, Field

from fasten.exceptions import EmptyGenerationError, EvolutionError
from fasten.evolution.crossover import cross
from fasten.evolution.engine.config import EngineConfig
from fasten.evolution.engine.metrics import EngineMetrics, GenerationSummary
from fasten.evolution.engine.state import EngineState, can_transition
from fasten.evolution.mutation import mutate_individual
from fasten.exercise.evaluator import Exerciser
from fasten.genome.models import ExerciseResult, Individual, Population

__all__ = ["EvolutionEngine", "EvolutionResult"]


class EvolutionResult(BaseModel):
    """What a finished run hands back for reporting."""

    ranked: list[ExerciseResult] = Field(
        description="Measured individuals of the final generation, best first"
    )
    best: ExerciseResult = Field(description="Best individual seen in the whole run")
    history: list[GenerationSummary] = Field(default_factory=list)
    metrics: EngineMetrics


class EvolutionEngine:
    """
    Generational loop as an explicit state machine:

    INITIALIZED -> EVALUATING -> SELECTING -> BREEDING -> EVALUATING ...
                                          \\-> TERMINAL

    - The seed individual is never modified; the first population is made of
      independent mutants of it.
    - Selection keeps the best half of the measured individuals; the next
      population is their mutants plus weighted crossover children.
    """

    def __init__(
        self,
        seed: Individual,
        exerciser: Exerciser,
        config: EngineConfig,
        rng: random.Random | None = None,
    ):
        self.seed = seed
        self.exerciser = exerciser
        self.config = config
        self.rng = rng or random.Random(config.seed)

        self.state = EngineState.INITIALIZED
        self.metrics = EngineMetrics()
        self.history: list[GenerationSummary] = []
        self.best: ExerciseResult | None = None

        logger.info(
            "[EvolutionEngine] Init | population={}, generations={}, files={}",
            config.population_size,
            config.generations,
            len(seed),
        )

    async def run(self) -> EvolutionResult:
        logger.info("[EvolutionEngine] Start")
        population = self.initial_population()
        remaining = self.config.generations
        generation = 0

        while True:
            self._transition(EngineState.EVALUATING)
            logger.info(
                "[EvolutionEngine] Generation {} ({} remaining)", generation, remaining
            )
            results = await self.exerciser.exercise_population(
                population, generation=generation
            )

            self._transition(EngineState.SELECTING)
            ranked = self.rank(results, generation)
            self._record(generation, len(population), ranked)
            remaining -= 1

            if remaining <= 0:
                self._transition(EngineState.TERMINAL)
                logger.info(
                    "[EvolutionEngine] Stopped after {} generation(s); best fitness={:.6g}",
                    self.metrics.total_generations,
                    self.best.fitness,
                )
                return EvolutionResult(
                    ranked=ranked,
                    best=self.best,
                    history=list(self.history),
                    metrics=self.metrics,
                )

            self._transition(EngineState.BREEDING)
            population = self.next_population(self.select_fittest(ranked))
            generation += 1

    def initial_population(self) -> Population:
        return [
            mutate_individual(self.rng, self.seed)
            for _ in range(self.config.population_size)
        ]

    @staticmethod
    def rank(results: list[ExerciseResult], generation: int = 0) -> list[ExerciseResult]:
        if not results:
            raise EmptyGenerationError(
                f"Generation {generation}: no individual produced a fitness"
            )
        return sorted(results, key=lambda result: result.fitness, reverse=True)

    @staticmethod
    def select_fittest(ranked: list[ExerciseResult]) -> list[ExerciseResult]:
        """Best half of ``ranked`` (which must be best first), never empty."""
        return ranked[: max(1, len(ranked) // 2)]

    def next_population(self, fittest: list[ExerciseResult]) -> Population:
        if not fittest:
            raise EvolutionError("Cannot breed from an empty selection")

        mutants = [mutate_individual(self.rng, result.individual) for result in fittest]
        mutants = mutants[: self.config.population_size]
        children = cross(self.rng, fittest, self.config.population_size - len(mutants))

        self.metrics.record_breeding(len(mutants), len(children))
        logger.debug(
            "[EvolutionEngine] Bred {} mutant(s) and {} child(ren) from {} survivor(s)",
            len(mutants),
            len(children),
            len(fittest),
        )
        return mutants + children

    def _record(
        self, generation: int, evaluated: int, ranked: list[ExerciseResult]
    ) -> None:
        summary = GenerationSummary.from_results(generation, evaluated, ranked)
        self.history.append(summary)
        self.metrics.record_generation(evaluated, len(ranked))
        self.metrics.outcomes = dict(self.exerciser.outcomes)
        if self.best is None or ranked[0].fitness > self.best.fitness:
            self.best = ranked[0]
        logger.info(
            "[EvolutionEngine] Generation {} | measured={}/{}, best={:.6g}, mean={:.6g}",
            generation,
            summary.measured,
            summary.evaluated,
            summary.best_fitness,
            summary.mean_fitness,
        )

    def _transition(self, target: EngineState) -> None:
        if not can_transition(self.state, target):
            raise EvolutionError(
                f"Invalid engine transition {self.state.value} -> {target.value}"
            )
        logger.debug("[EvolutionEngine] {} -> {}", self.state.value, target.value)
        self.state = target
