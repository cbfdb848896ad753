from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, Field

from fasten.exercise.outcome import ExerciseOutcome


class ExerciseRecord(BaseModel):
    """One line of the run journal: what was tried and how it went."""

    generation: int
    index: int = Field(description="Position of the individual in its population")
    outcome: ExerciseOutcome
    measurement: float | None = None
    fitness: float | None = None
    changes: list[str] = Field(
        default_factory=list, description="Diff lines against the seed"
    )
    detail: str = Field(default="", description="Tail of stderr or parse error")
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Journal:
    """Append-only JSON-lines log of every exercised individual."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: ExerciseRecord) -> None:
        with self.path.open("a", encoding="utf-8") as f:
            f.write(record.model_dump_json() + "\n")

    def read(self) -> list[ExerciseRecord]:
        if not self.path.exists():
            return []
        records = []
        with self.path.open("r", encoding="utf-8") as f:
            for number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    records.append(ExerciseRecord.model_validate_json(line))
                except ValueError as e:
                    logger.warning(
                        "[Journal] Skipping malformed line {} of {}: {}", number, self.path, e
                    )
        return records
