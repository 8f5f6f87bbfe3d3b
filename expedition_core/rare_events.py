"""Tail statistics for sparse negative events (disease, lost players, kills, ...)."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Optional

from .distribution import check_distribution, tail_scenarios
from .events import NEGATIVE_EVENT_CATEGORIES
from .models import RareEventResult
from .occurrence import OccurrenceCalculator, ProbabilityCache
from .settings import DEFAULT_SETTINGS, EngineSettings


class NegativeEventCalculator:
    """Conditional tail expectations per negative event category.

    Percentiles of a count that is almost always zero collapse to zero, so the
    optimist and pessimist report the mean of the lowest and highest quarter of the
    probability mass instead.
    """

    def __init__(
        self,
        occurrence: Optional[OccurrenceCalculator] = None,
        categories: Mapping[str, Sequence[str]] = NEGATIVE_EVENT_CATEGORIES,
        settings: EngineSettings = DEFAULT_SETTINGS,
    ) -> None:
        self.occurrence = occurrence if occurrence is not None else OccurrenceCalculator(settings)
        self.categories = {name: tuple(event_ids) for name, event_ids in categories.items()}
        self.settings = settings

    def calculate_category(
        self,
        category: str,
        draw_types: Sequence[str],
        cache: ProbabilityCache,
    ) -> RareEventResult:
        event_ids = self.categories.get(category)
        if event_ids is None:
            raise ValueError(f"Unknown negative event category '{category}'")

        overall = self.occurrence.calculate_overall(draw_types, event_ids, cache, label=category)
        check_distribution(overall.distribution, self.settings.probability_tolerance)
        return RareEventResult(
            category=category,
            tail=tail_scenarios(
                overall.distribution,
                self.settings.tail_fraction,
                self.settings.tail_epsilon,
            ),
            distribution=overall.distribution,
            sources=overall.sources,
        )

    def calculate(self, draw_types: Sequence[str], cache: ProbabilityCache) -> dict[str, RareEventResult]:
        """Return one tail result per configured category, in registry order."""

        return {
            category: self.calculate_category(category, draw_types, cache)
            for category in self.categories
        }
