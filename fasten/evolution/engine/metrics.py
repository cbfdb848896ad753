from __future__ import annotations

from typing import Sequence

import numpy as np
from pydantic import BaseModel, Field

from fasten.exercise.outcome import ExerciseOutcome
from fasten.genome.models import ExerciseResult


class GenerationSummary(BaseModel):
    """What one generation looked like once it was measured."""

    generation: int = Field(description="0-based generation index")
    evaluated: int = Field(description="Individuals exercised")
    measured: int = Field(description="Individuals that produced a fitness")
    best_fitness: float
    mean_fitness: float
    best_measurement: float

    @classmethod
    def from_results(
        cls, generation: int, evaluated: int, ranked: Sequence[ExerciseResult]
    ) -> GenerationSummary:
        fitness = np.asarray([result.fitness for result in ranked], dtype=float)
        return cls(
            generation=generation,
            evaluated=evaluated,
            measured=len(ranked),
            best_fitness=float(fitness.max()),
            mean_fitness=float(fitness.mean()),
            best_measurement=ranked[0].measurement,
        )


class EngineMetrics(BaseModel):
    """Counters accumulated over a run."""

    total_generations: int = Field(
        default=0, description="Total number of generations evaluated"
    )
    individuals_exercised: int = Field(
        default=0, description="Total number of individuals exercised"
    )
    individuals_measured: int = Field(
        default=0, description="Total number of individuals that produced a fitness"
    )
    children_bred: int = Field(default=0, description="Total crossover children")
    mutants_created: int = Field(default=0, description="Total mutants of survivors")
    outcomes: dict[ExerciseOutcome, int] = Field(
        default_factory=dict, description="Exercise outcomes by kind"
    )

    def record_generation(self, evaluated: int, measured: int) -> None:
        self.total_generations += 1
        self.individuals_exercised += evaluated
        self.individuals_measured += measured

    def record_breeding(self, mutants: int, children: int) -> None:
        self.mutants_created += mutants
        self.children_bred += children

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = self.model_dump(exclude={"outcomes"})
        for outcome, count in self.outcomes.items():
            data[outcome.value] = count
        return data
