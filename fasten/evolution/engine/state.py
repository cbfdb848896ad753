from enum import Enum


class EngineState(str, Enum):
    INITIALIZED = "initialized"
    EVALUATING = "evaluating"
    SELECTING = "selecting"
    BREEDING = "breeding"
    TERMINAL = "terminal"


TRANSITIONS: dict[EngineState, frozenset[EngineState]] = {
    EngineState.INITIALIZED: frozenset({EngineState.EVALUATING}),
    EngineState.EVALUATING: frozenset({EngineState.SELECTING}),
    EngineState.SELECTING: frozenset({EngineState.BREEDING, EngineState.TERMINAL}),
    EngineState.BREEDING: frozenset({EngineState.EVALUATING}),
    EngineState.TERMINAL: frozenset(),
}


def can_transition(current: EngineState, target: EngineState) -> bool:
    return target in TRANSITIONS[current]
