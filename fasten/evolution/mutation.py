"""Point mutation operators.

Every operator is pure given its random source: it returns new frozen models
and never touches its input. One call perturbs at most one fastener per file.
"""

from __future__ import annotations

from enum import Enum
import random
from typing import Callable, Sequence, TypeVar

from fasten.genome.models import Fastener, Individual, SourceFile
from fasten.genome.values import (
    INT64_MAX,
    INT64_MIN,
    BooleanValue,
    IntegerValue,
    PowerOfTwoValue,
    Value,
)

T = TypeVar("T")


class RandomStep(Enum):
    DOWN = "down"
    STAY = "stay"
    UP = "up"


def random_step(rng: random.Random) -> RandomStep:
    draw = rng.random()
    if draw < 0.33:
        return RandomStep.DOWN
    if draw < 0.66:
        return RandomStep.STAY
    return RandomStep.UP


def step_value(value: Value, step: RandomStep) -> Value:
    """Apply ``step`` to ``value`` following the semantics of its kind."""
    if step is RandomStep.STAY:
        return value

    if isinstance(value, BooleanValue):
        # Both directions toggle.
        return BooleanValue(flag=not value.flag)

    if isinstance(value, PowerOfTwoValue):
        if step is RandomStep.DOWN:
            shifted = value.number >> 1
            if shifted == 0:
                return value
        else:
            shifted = value.number << 1
            if not INT64_MIN <= shifted <= INT64_MAX:
                return value
        return PowerOfTwoValue(number=shifted)

    if isinstance(value, IntegerValue):
        stepped = value.number - 1 if step is RandomStep.DOWN else value.number + 1
        if not INT64_MIN <= stepped <= INT64_MAX:
            return value
        return IntegerValue(number=stepped)

    raise TypeError(f"Unknown value kind: {type(value).__name__}")


def mutate_value(rng: random.Random, value: Value) -> Value:
    return step_value(value, random_step(rng))


def map_random(
    rng: random.Random, fn: Callable[[T], T], items: Sequence[T]
) -> tuple[T, ...]:
    """Return a copy of ``items`` with ``fn`` applied to one uniformly chosen element."""
    items = tuple(items)
    if not items:
        return items
    index = rng.randrange(len(items))
    return items[:index] + (fn(items[index]),) + items[index + 1 :]


def mutate_fastener(rng: random.Random, fastener: Fastener) -> Fastener:
    return fastener.with_value(mutate_value(rng, fastener.value))


def mutate_file(rng: random.Random, file: SourceFile) -> SourceFile:
    if not file.fasteners:
        return file
    return file.with_fasteners(
        map_random(rng, lambda fastener: mutate_fastener(rng, fastener), file.fasteners)
    )


def mutate_individual(rng: random.Random, individual: Individual) -> Individual:
    return tuple(mutate_file(rng, file) for file in individual)
