"""Visit-likelihood approximation for expeditions that cannot explore every sector."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from typing import Optional

from .data import (
    ITEM_SECTOR_DISCOVERY_BONUS,
    LANDING,
    NOT_VISITED_EVENT,
    SECTOR_EVENT_WEIGHTS,
    EventWeights,
    SectorCatalogue,
    sector_exploration_weight,
)
from .loadout import to_identifier
from .models import Loadout
from .settings import DEFAULT_SETTINGS, EngineSettings

logger = logging.getLogger(__name__)


def clamp_budget(movement_budget: object) -> float:
    """Return a finite, non-negative movement budget."""

    try:
        budget = float(movement_budget)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(budget) or budget < 0:
        return 0.0
    return budget


def exploration_weights(
    draw_types: Iterable[str],
    loadout: Optional[Loadout] = None,
    catalogue: Mapping[str, Mapping[str, float]] = SECTOR_EVENT_WEIGHTS,
    default_weight: float = DEFAULT_SETTINGS.default_exploration_weight,
) -> dict[str, float]:
    """Exploration weight per draw type, after item discovery bonuses.

    Draw types missing from ``catalogue`` get a weight of zero.
    """

    items = {to_identifier(item) for item in (loadout.items if loadout else ())}
    weights: dict[str, float] = {}
    for draw_type in draw_types:
        if draw_type in weights:
            continue
        weight = sector_exploration_weight(draw_type, default_weight) if draw_type in catalogue else 0.0
        for item in sorted(items):
            weight *= ITEM_SECTOR_DISCOVERY_BONUS.get(item, {}).get(draw_type, 1.0)
        weights[draw_type] = weight
    return weights


def visit_likelihoods(
    draw_types: Sequence[str],
    movement_budget: object,
    loadout: Optional[Loadout] = None,
    catalogue: Mapping[str, Mapping[str, float]] = SECTOR_EVENT_WEIGHTS,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> list[float]:
    """Approximate probability that each selected draw is visited at least once.

    Parameters
    ----------
    draw_types:
        Selected draws in order; repeated draw types are separate sectors.
    movement_budget:
        Number of sectors the expedition can explore. Negative, NaN, or unparsable
        values count as zero.
    loadout:
        Items with sector discovery bonuses scale the exploration weights.
    catalogue:
        Known draw types; unknown ones have no exploration weight.

    Returns
    -------
    list[float]
        ``clamp(X * w / sum(w), 0, 1)`` per draw. LANDING is always visited and
        does not consume movement. When every other weight is zero, the budget is
        split uniformly.
    """

    budget = clamp_budget(movement_budget)
    weights = exploration_weights(draw_types, loadout, catalogue, settings.default_exploration_weight)
    explorable = [draw_type for draw_type in draw_types if draw_type != LANDING]
    total_weight = sum(weights[draw_type] for draw_type in explorable)

    likelihoods: list[float] = []
    for draw_type in draw_types:
        if draw_type == LANDING:
            likelihoods.append(1.0)
        elif total_weight <= 0:
            likelihoods.append(min(1.0, budget / len(explorable)))
        else:
            likelihoods.append(min(1.0, max(0.0, budget * weights[draw_type] / total_weight)))
    return likelihoods


def scale_event_weights(table: Mapping[str, float], likelihood: float) -> EventWeights:
    """Scale a draw's weights by its visit likelihood, keeping the total unchanged.

    The removed mass goes to a synthetic not-visited event, so normalising the result
    yields each event's probability multiplied by ``likelihood``.
    """

    likelihood = min(1.0, max(0.0, likelihood))
    scaled = {event_id: weight * likelihood for event_id, weight in table.items()}
    total = sum(table.values())
    if likelihood < 1.0 and total > 0:
        scaled[NOT_VISITED_EVENT] = scaled.get(NOT_VISITED_EVENT, 0.0) + (1.0 - likelihood) * total
    return scaled


def weighted_catalogue(
    draw_types: Sequence[str],
    movement_budget: object,
    loadout: Optional[Loadout] = None,
    catalogue: Mapping[str, Mapping[str, float]] = SECTOR_EVENT_WEIGHTS,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> SectorCatalogue:
    """Return the catalogue entries of ``draw_types`` scaled by their visit likelihood.

    Every sector of one draw type shares the same exploration weight and hence the
    same likelihood, so the result stays keyed by draw type.
    """

    likelihoods = visit_likelihoods(draw_types, movement_budget, loadout, catalogue, settings)
    scaled: SectorCatalogue = {}
    for draw_type, likelihood in zip(draw_types, likelihoods):
        if draw_type in scaled or draw_type not in catalogue:
            continue
        scaled[draw_type] = scale_event_weights(catalogue[draw_type], likelihood)
        logger.debug("Visit likelihood of %s: %.4f", draw_type, likelihood)
    return scaled
