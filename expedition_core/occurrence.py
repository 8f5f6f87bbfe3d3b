"""Occurrence counts of events across the draws of an expedition."""

from __future__ import annotations

from collections.abc import Collection, Iterable, Iterator, Mapping, Sequence
from dataclasses import replace
from typing import Optional

from .data import ProbabilityTable
from .distribution import bernoulli, check_distribution, convolve_all, expected_value, get_scenarios
from .models import DrawSource, OccurrenceResult
from .settings import DEFAULT_SETTINGS, EngineSettings


class ProbabilityCache(Mapping[str, ProbabilityTable]):
    """Modified probability tables of one request, keyed by draw type.

    Each draw type is stored once and read many times. Calculators read it with
    ``get(draw_type, {})`` so unknown draw types contribute nothing.
    """

    def __init__(self, tables: Optional[Mapping[str, ProbabilityTable]] = None) -> None:
        self._tables: dict[str, ProbabilityTable] = {}
        for draw_type, table in (tables or {}).items():
            self.store(draw_type, table)

    def store(self, draw_type: str, table: Mapping[str, float]) -> None:
        if draw_type in self._tables:
            raise KeyError(f"Probability table for '{draw_type}' is already cached")
        self._tables[draw_type] = dict(table)

    def __getitem__(self, draw_type: str) -> ProbabilityTable:
        return self._tables[draw_type]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)


class OccurrenceCalculator:
    """Build Bernoulli-per-draw count distributions from a probability cache."""

    def __init__(self, settings: EngineSettings = DEFAULT_SETTINGS) -> None:
        self.settings = settings

    def _result(
        self,
        event_id: str,
        distributions: Sequence[Mapping[float, float]],
        sources: list[DrawSource],
        max_possible: int,
    ) -> OccurrenceResult:
        distribution = convolve_all(distributions)
        check_distribution(distribution, self.settings.probability_tolerance)
        # More occurrences are worse; the average slot reports the mean count.
        scenarios = replace(
            get_scenarios(distribution, higher_is_better=False),
            average=expected_value(distribution),
        )
        return OccurrenceResult(
            event_id=event_id,
            scenarios=scenarios,
            distribution=distribution,
            max_possible=max_possible,
            sources=sources,
        )

    def calculate_for_type(
        self,
        draw_types: Sequence[str],
        event_id: str,
        cache: ProbabilityCache,
    ) -> OccurrenceResult:
        """Return the occurrence distribution of one event.

        Draws that cannot produce the event are left out entirely, so ``sources`` lists
        exactly the draws that matter.
        """

        distributions: list[dict[float, float]] = []
        sources: list[DrawSource] = []
        for index, draw_type in enumerate(draw_types):
            probability = cache.get(draw_type, {}).get(event_id, 0.0)
            if probability <= 0.0:
                continue
            sources.append(DrawSource(index, draw_type, probability))
            distributions.append(bernoulli(probability))
        return self._result(event_id, distributions, sources, len(sources))

    def combine(self, results: Iterable[OccurrenceResult], label: str = "combined") -> OccurrenceResult:
        """Convolve already computed occurrence distributions into one total."""

        collected = list(results)
        sources = sorted(
            (source for result in collected for source in result.sources),
            key=lambda source: source.index,
        )
        return self._result(
            label,
            [result.distribution for result in collected],
            sources,
            sum(result.max_possible for result in collected),
        )

    def calculate_overall(
        self,
        draw_types: Sequence[str],
        event_ids: Iterable[str],
        cache: ProbabilityCache,
        excluded: Collection[int] = (),
        label: str = "overall",
    ) -> OccurrenceResult:
        """Count draws on which any of ``event_ids`` fires.

        Parameters
        ----------
        draw_types:
            Ordered draw identifiers of the expedition.
        event_ids:
            Candidate events; their probabilities are summed per draw.
        cache:
            Modified probability tables keyed by draw type.
        excluded:
            Draw indices to ignore.
        """

        candidates = tuple(event_ids)
        distributions: list[dict[float, float]] = []
        sources: list[DrawSource] = []
        for index, draw_type in enumerate(draw_types):
            if index in excluded:
                continue
            table = cache.get(draw_type, {})
            probability = min(1.0, sum(table.get(event_id, 0.0) for event_id in candidates))
            if probability <= 0.0:
                continue
            sources.append(DrawSource(index, draw_type, probability))
            distributions.append(bernoulli(probability))
        return self._result(label, distributions, sources, len(sources))
