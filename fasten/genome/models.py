from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fasten.genome.values import Value, render_value


class Fastener(BaseModel):
    """One tunable constant: where it lives, what it was, what it is now."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Path of the owning source file")
    line: int = Field(ge=1, description="1-based line number")
    original: Value = Field(description="Value captured at load time")
    value: Value = Field(description="Current (possibly mutated) value")

    @property
    def changed(self) -> bool:
        return self.value != self.original

    def with_value(self, value: Value) -> Fastener:
        return self.model_copy(update={"value": value})

    def describe_change(self) -> str:
        """``path:line: change <original> to <current>``, or ``""`` if unchanged."""
        if not self.changed:
            return ""
        return (
            f"{self.path}:{self.line}: change "
            f"{render_value(self.original)} to {render_value(self.value)}"
        )


class SourceFile(BaseModel):
    """A source file's full text and the fasteners found in it."""

    model_config = ConfigDict(frozen=True)

    path: str
    lines: tuple[str, ...] = Field(description="File text, one entry per line")
    fasteners: tuple[Fastener, ...] = ()

    @model_validator(mode="after")
    def _validate_fasteners(self) -> SourceFile:
        for fastener in self.fasteners:
            if fastener.path != self.path:
                raise ValueError(
                    f"Fastener path {fastener.path!r} does not match file {self.path!r}"
                )
            if fastener.line > len(self.lines):
                raise ValueError(
                    f"Fastener line {fastener.line} is outside {self.path} "
                    f"({len(self.lines)} lines)"
                )
        return self

    def with_fasteners(self, fasteners: tuple[Fastener, ...]) -> SourceFile:
        return self.model_copy(update={"fasteners": tuple(fasteners)})


Individual = tuple[SourceFile, ...]

Population = list[Individual]


class ExerciseResult(BaseModel):
    """An individual paired with its measured fitness (higher is better)."""

    model_config = ConfigDict(frozen=True)

    individual: Individual
    fitness: float
    measurement: float = Field(description="Raw number printed by the fitness command")


def all_fasteners(individual: Individual) -> list[Fastener]:
    return [fastener for file in individual for fastener in file.fasteners]


def describe_individual(individual: Individual) -> list[str]:
    """Non-empty diff lines for every changed fastener, in file order."""
    lines = (fastener.describe_change() for fastener in all_fasteners(individual))
    return [line for line in lines if line]
