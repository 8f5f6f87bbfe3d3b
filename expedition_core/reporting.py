"""Tabular views of an expedition result for notebooks and front-ends."""

from __future__ import annotations

from collections.abc import Mapping

import pandas as pd

from .data import event_label
from .models import SCENARIO_NAMES, AttributionResult, ExpeditionResult, ScenarioQuad


def _quad_rows(section: str, name: str, quad: ScenarioQuad) -> list[dict[str, object]]:
    return [
        {
            "section": section,
            "name": name,
            "scenario": scenario,
            "value": quad.value(scenario),
            "probability": quad.probability(scenario),
        }
        for scenario in SCENARIO_NAMES
    ]


def scenario_frame(result: ExpeditionResult) -> pd.DataFrame:
    """One row per (section, name, scenario) with its value and bucket probability.

    Sections are ``resource``, ``damage``, ``occurrence`` and ``rare_event``; rare
    events report tail expectations and carry no bucket probability.
    """

    rows: list[dict[str, object]] = []
    for name, resource in result.resources.items():
        rows.extend(_quad_rows("resource", name, resource.scenarios))
    for damage in (result.combat, result.environment):
        rows.extend(_quad_rows("damage", damage.category, damage.damage))
        rows.extend(_quad_rows("occurrence", damage.category, damage.combined.scenarios))
    for name, rare in result.rare_events.items():
        for scenario in SCENARIO_NAMES:
            rows.append(
                {
                    "section": "rare_event",
                    "name": name,
                    "scenario": scenario,
                    "value": getattr(rare.tail, scenario),
                    "probability": float("nan"),
                }
            )
    return pd.DataFrame(rows, columns=["section", "name", "scenario", "value", "probability"])


def breakdown_frame(result: ExpeditionResult, labels: bool = False) -> pd.DataFrame:
    """Draw types as rows, event probabilities as columns, plus the draw count.

    With ``labels`` the event columns carry their human-readable descriptions.
    """

    records = {
        draw_type: {"count": entry.count, **entry.probabilities}
        for draw_type, entry in result.breakdown.items()
    }
    frame = pd.DataFrame.from_dict(records, orient="index").fillna(0.0)
    frame.index.name = "draw_type"
    if labels:
        events = [column for column in frame.columns if column != "count"]
        frame = frame.rename(columns={event_id: event_label(event_id) for event_id in events})
    return frame


def distribution_frame(distribution: Mapping[float, float]) -> pd.DataFrame:
    """Outcome/probability table sorted by outcome, with the cumulative mass."""

    frame = pd.DataFrame(
        sorted(distribution.items()),
        columns=["outcome", "probability"],
    )
    frame["cumulative"] = frame["probability"].cumsum()
    return frame


def attribution_frame(attribution: AttributionResult) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "name": player.name,
                "health": player.health,
                "damage": player.damage,
                "final_health": player.final_health,
                "effects": len(player.effects),
            }
            for player in attribution.participants
        ],
        columns=["name", "health", "damage", "final_health", "effects"],
    )
