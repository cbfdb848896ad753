from fasten.exercise.evaluator import Exerciser, fitness_of, parse_measurement
from fasten.exercise.journal import ExerciseRecord, Journal
from fasten.exercise.outcome import ExerciseOutcome, MeasurementDirection
from fasten.exercise.runner import Command, CommandResult, CommandStatus, run_command

__all__ = [
    "Command",
    "CommandResult",
    "CommandStatus",
    "ExerciseOutcome",
    "ExerciseRecord",
    "Exerciser",
    "Journal",
    "MeasurementDirection",
    "fitness_of",
    "parse_measurement",
    "run_command",
]
