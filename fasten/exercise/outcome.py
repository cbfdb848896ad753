from enum import Enum


class ExerciseOutcome(str, Enum):
    MEASURED = "measured"
    BUILD_FAILED = "build_failed"
    BUILD_TIMED_OUT = "build_timed_out"
    FITNESS_FAILED = "fitness_failed"
    FITNESS_TIMED_OUT = "fitness_timed_out"
    UNPARSEABLE_FITNESS = "unparseable_fitness"


class MeasurementDirection(str, Enum):
    """How to read the number printed by the fitness command."""

    LOWER_IS_BETTER = "lower_is_better"
    HIGHER_IS_BETTER = "higher_is_better"
