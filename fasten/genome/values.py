"""Typed fastener values.

A value is one of three closed kinds, fixed when the fastener is discovered:

- ``INT``: a plain signed 64-bit integer, stepped by one.
- ``POW``: a 64-bit power of two, stepped by shifting.
- ``BOOL``: a flag written as ``0``/``1`` in source text, stepped by toggling.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class ValueKind(str, Enum):
    INT = "INT"
    POW = "POW"
    BOOL = "BOOL"


class IntegerValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["INT"] = "INT"
    number: int = Field(ge=INT64_MIN, le=INT64_MAX)

    def render(self) -> str:
        return str(self.number)


class PowerOfTwoValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["POW"] = "POW"
    number: int = Field(ge=INT64_MIN, le=INT64_MAX)

    def render(self) -> str:
        return str(self.number)


class BooleanValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["BOOL"] = "BOOL"
    flag: bool

    def render(self) -> str:
        return "1" if self.flag else "0"


Value = Annotated[
    Union[IntegerValue, PowerOfTwoValue, BooleanValue],
    Field(discriminator="kind"),
]


def make_value(kind: ValueKind | str, number: int) -> Value:
    """Build a value of ``kind`` from the integer literal found in source."""
    kind = ValueKind(kind)
    if kind is ValueKind.INT:
        return IntegerValue(number=number)
    if kind is ValueKind.POW:
        return PowerOfTwoValue(number=number)
    return BooleanValue(flag=number != 0)


def render_value(value: Value) -> str:
    return value.render()


def is_power_of_two(number: int) -> bool:
    return number > 0 and (number & (number - 1)) == 0
