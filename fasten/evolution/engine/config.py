from __future__ import annotations

from pydantic import BaseModel, Field


class EngineConfig(BaseModel):
    """Configuration options controlling EvolutionEngine behaviour."""

    population_size: int = Field(
        default=20, gt=0, description="Number of individuals per generation"
    )
    generations: int = Field(
        default=20, gt=0, description="Number of generations to evaluate"
    )
    seed: int | None = Field(
        default=None, description="Random seed (None = nondeterministic)"
    )
