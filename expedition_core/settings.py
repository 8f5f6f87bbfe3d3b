"""Tunable numerical settings shared by the calculators."""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Final


@dataclass(frozen=True)
class EngineSettings:
    """Numerical thresholds and scoring weights used during one computation."""

    probability_tolerance: float = 1e-6
    zero_outcome_threshold: float = 1e-4
    tail_fraction: float = 0.25
    tail_epsilon: float = 1e-10
    total_damage_weight: float = 100.0
    concentration_weight: float = 10.0
    grenade_power: int = 3
    default_exploration_weight: float = 8.0

    def score(self, total_damage: float, max_damage_to_one: float) -> float:
        """Return the comparator score of a damage outcome."""

        return total_damage * self.total_damage_weight + max_damage_to_one * self.concentration_weight


DEFAULT_SETTINGS: Final[EngineSettings] = EngineSettings()

# Fields that must stay strictly positive; zero or less keeps the default.
POSITIVE_FIELDS: Final[frozenset[str]] = frozenset({"probability_tolerance", "tail_fraction"})
UPPER_BOUNDS: Final[dict[str, float]] = {"tail_fraction": 1.0}


def settings_from_mapping(raw_data: Mapping[object, object]) -> EngineSettings:
    """Override the default settings with recognised, parsable keys.

    Non-finite values are ignored and the rest are clamped to their valid range.
    """

    known = {field.name: field.type for field in fields(EngineSettings)}
    overrides: dict[str, float | int] = {}
    for key, value in raw_data.items():
        if key not in known:
            continue
        try:
            parsed = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError, OverflowError):
            continue
        if not math.isfinite(parsed):
            continue
        if key in POSITIVE_FIELDS and parsed <= 0.0:
            continue
        parsed = min(max(parsed, 0.0), UPPER_BOUNDS.get(key, math.inf))
        overrides[str(key)] = int(parsed) if known[key] == "int" else parsed
    return replace(DEFAULT_SETTINGS, **overrides)


def load_engine_settings(path: str | Path | None) -> EngineSettings:
    """Load settings overrides from a JSON object file, if present."""

    if not path:
        return DEFAULT_SETTINGS

    try:
        raw_data = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        return DEFAULT_SETTINGS
    except (OSError, json.JSONDecodeError):
        return DEFAULT_SETTINGS

    if not isinstance(raw_data, Mapping):
        return DEFAULT_SETTINGS

    return settings_from_mapping(raw_data)
