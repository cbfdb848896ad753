from __future__ import annotations

from fasten.evolution.engine.config import EngineConfig
from fasten.evolution.engine.core import EvolutionEngine, EvolutionResult
from fasten.evolution.engine.metrics import EngineMetrics, GenerationSummary
from fasten.evolution.engine.state import EngineState
