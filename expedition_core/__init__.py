"""
Probability engine for expedition planning.

The public API is intentionally small: callers build a roster, pick draw types,
and read scenario values off the returned result.
"""

from __future__ import annotations

from .api import (
    ExpeditionComputationResult,
    calculate,
    calculate_with_sampling,
    distribute_all_scenarios,
    distribute_damage,
    explain,
    sample_path,
)
from .engine import ExpeditionEngine
from .loadout import build_loadout, make_participant
from .models import ExpeditionResult, Loadout, Participant, ScenarioQuad
from .settings import DEFAULT_SETTINGS, EngineSettings, load_engine_settings

__all__ = [
    "DEFAULT_SETTINGS",
    "EngineSettings",
    "ExpeditionComputationResult",
    "ExpeditionEngine",
    "ExpeditionResult",
    "Loadout",
    "Participant",
    "ScenarioQuad",
    "build_loadout",
    "calculate",
    "calculate_with_sampling",
    "distribute_all_scenarios",
    "distribute_damage",
    "explain",
    "load_engine_settings",
    "make_participant",
    "sample_path",
]
