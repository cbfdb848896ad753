"""Fitness-proportionate parent selection and single-point crossover."""

from __future__ import annotations

import random
from typing import Sequence

from loguru import logger
import numpy as np

from fasten.genome.models import ExerciseResult, Individual, SourceFile


def cumulative_weights(results: Sequence[ExerciseResult]) -> np.ndarray:
    """Running sum of selection weights; non-positive fitness weighs nothing."""
    weights = np.clip(
        np.asarray([result.fitness for result in results], dtype=float), 0.0, None
    )
    return np.cumsum(weights)


def select_weighted(
    rng: random.Random, results: Sequence[ExerciseResult]
) -> ExerciseResult:
    """Roulette-wheel selection over ``results``.

    Draws a point in ``[0, total)`` and returns the first result whose
    cumulative weight passes it, so a zero-weight result is never chosen
    while any positive weight exists. Falls back to a uniform choice when no
    weight is positive.
    """
    if not results:
        raise ValueError("Cannot select from an empty pool")

    sums = cumulative_weights(results)
    total = float(sums[-1])
    if not total > 0.0:
        logger.debug(
            "[Crossover] No positive weight among {} result(s), choosing uniformly",
            len(results),
        )
        return results[rng.randrange(len(results))]

    position = rng.random() * total
    index = int(np.searchsorted(sums, position, side="right"))
    return results[min(index, len(results) - 1)]


def merge_files(rng: random.Random, first: SourceFile, second: SourceFile) -> SourceFile:
    """Head of ``first``'s fasteners up to a random split, tail of ``second``'s after it."""
    shorter = min(len(first.fasteners), len(second.fasteners))
    split = rng.randrange(shorter) if shorter else 0
    return first.with_fasteners(first.fasteners[:split] + second.fasteners[split:])


def breed(rng: random.Random, first: Individual, second: Individual) -> Individual:
    # Files are aligned across individuals: all descend from one seed.
    if len(first) != len(second):
        raise ValueError(
            f"Cannot breed individuals with {len(first)} and {len(second)} files"
        )
    return tuple(merge_files(rng, a, b) for a, b in zip(first, second))


def cross(
    rng: random.Random, fittest: Sequence[ExerciseResult], count: int
) -> list[Individual]:
    """Breed ``count`` children from weighted draws of two parents each."""
    children = []
    for _ in range(count):
        mother = select_weighted(rng, fittest)
        father = select_weighted(rng, fittest)
        children.append(breed(rng, mother.individual, father.individual))
    return children
