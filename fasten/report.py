"""Final report: surviving individuals as diffs against the seed."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from fasten.evolution.engine.core import EvolutionResult
from fasten.evolution.engine.metrics import GenerationSummary
from fasten.genome.models import ExerciseResult, describe_individual


class IndividualReport(BaseModel):
    rank: int = Field(description="1 for the best individual")
    fitness: float
    measurement: float
    changes: list[str] = Field(description="'path:line: change X to Y' lines")


class RunReport(BaseModel):
    ranked: list[IndividualReport]
    best: IndividualReport
    history: list[GenerationSummary]
    metrics: dict[str, object]


def report_individual(rank: int, result: ExerciseResult) -> IndividualReport:
    return IndividualReport(
        rank=rank,
        fitness=result.fitness,
        measurement=result.measurement,
        changes=describe_individual(result.individual),
    )


def build_report(result: EvolutionResult) -> RunReport:
    return RunReport(
        ranked=[
            report_individual(rank, ranked)
            for rank, ranked in enumerate(result.ranked, start=1)
        ],
        best=report_individual(1, result.best),
        history=result.history,
        metrics=result.metrics.to_dict(),
    )


def _format_individual(entry: IndividualReport, title: str) -> list[str]:
    lines = [f"{title} (fitness {entry.fitness:.6g}, measurement {entry.measurement:.6g})"]
    if entry.changes:
        lines.extend(f"  {change}" for change in entry.changes)
    else:
        lines.append("  (no changes)")
    return lines


def format_report(report: RunReport) -> str:
    lines = ["Final generation, best first:"]
    for entry in report.ranked:
        lines.extend(_format_individual(entry, f"#{entry.rank}"))
    lines.append("")
    lines.extend(_format_individual(report.best, "Best individual of the run"))
    lines.append("")
    lines.append("Generations:")
    for summary in report.history:
        lines.append(
            f"  {summary.generation}: measured {summary.measured}/{summary.evaluated}, "
            f"best {summary.best_fitness:.6g}, mean {summary.mean_fitness:.6g}"
        )
    return "\n".join(lines)


def write_report(report: RunReport, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
