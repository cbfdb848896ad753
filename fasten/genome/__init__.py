from fasten.genome.models import (
    ExerciseResult,
    Fastener,
    Individual,
    Population,
    SourceFile,
    all_fasteners,
    describe_individual,
)
from fasten.genome.values import (
    BooleanValue,
    IntegerValue,
    PowerOfTwoValue,
    Value,
    ValueKind,
    is_power_of_two,
    make_value,
    render_value,
)

__all__ = [
    "BooleanValue",
    "ExerciseResult",
    "Fastener",
    "Individual",
    "IntegerValue",
    "Population",
    "PowerOfTwoValue",
    "SourceFile",
    "Value",
    "ValueKind",
    "all_fasteners",
    "describe_individual",
    "is_power_of_two",
    "make_value",
    "render_value",
]
