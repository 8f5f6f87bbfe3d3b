"""Explanation sampler: reconstruct one per-draw story for an aggregate damage total."""

from __future__ import annotations

import logging
import random
from bisect import bisect_left
from collections.abc import Iterable, Sequence
from itertools import accumulate
from typing import Optional

import numpy as np

from .models import DrawCandidates, DrawOutcome, PathStep, SampledPath

logger = logging.getLogger(__name__)

NO_EVENT = DrawOutcome(None, 0, 0.0)


class DamagePathSampler:
    """Sample per-draw outcomes conditioned on their total.

    ``ways[i][r]`` holds the probability-weighted number of ways draws ``i..end`` can
    add up to exactly ``r``. The forward pass picks each draw's outcome with weight
    ``probability x ways[i + 1][remaining - damage]``. The result is one plausible
    explanation of a total, not a replay of the random process that produced it.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng if rng is not None else random.Random()

    @staticmethod
    def build_ways(draws: Sequence[DrawCandidates], cap: int) -> np.ndarray:
        """Return the backward reachability table for totals ``0..cap``."""

        count = len(draws)
        ways = np.zeros((count + 1, cap + 1), dtype=np.float64)
        ways[count, 0] = 1.0
        for index in range(count - 1, -1, -1):
            following = ways[index + 1]
            row = np.zeros(cap + 1, dtype=np.float64)
            for outcome in draws[index].outcomes:
                damage = outcome.damage
                if outcome.probability <= 0.0 or damage < 0 or damage > cap:
                    continue
                row[damage:] += outcome.probability * following[: cap + 1 - damage]
            ways[index] = row
        return ways

    def _pick(self, outcomes: list[DrawOutcome], weights: list[float], rng: random.Random) -> DrawOutcome:
        cumulative = list(accumulate(weights))
        position = bisect_left(cumulative, rng.random() * cumulative[-1])
        return outcomes[min(position, len(outcomes) - 1)]

    def _forward(
        self,
        draws: Sequence[DrawCandidates],
        ways: np.ndarray,
        target: int,
        rng: random.Random,
    ) -> SampledPath:
        remaining = target
        steps: list[PathStep] = []
        for position, draw in enumerate(draws):
            outcomes: list[DrawOutcome] = []
            weights: list[float] = []
            for outcome in draw.outcomes:
                damage = outcome.damage
                if outcome.probability <= 0.0 or damage < 0 or damage > remaining:
                    continue
                weight = outcome.probability * float(ways[position + 1, remaining - damage])
                if weight > 0.0:
                    outcomes.append(outcome)
                    weights.append(weight)
            if outcomes:
                chosen = self._pick(outcomes, weights, rng)
            else:
                logger.warning(
                    "No outcome of draw %d (%s) fits the remaining total %d; assuming no event",
                    draw.index,
                    draw.draw_type,
                    remaining,
                )
                chosen = NO_EVENT
            steps.append(PathStep(draw.index, draw.draw_type, chosen.event_id, chosen.damage))
            remaining -= chosen.damage
        return SampledPath(target=target, sources=steps)

    @staticmethod
    def _quiet_path(draws: Sequence[DrawCandidates]) -> SampledPath:
        return SampledPath(
            target=0,
            sources=[PathStep(draw.index, draw.draw_type, None, 0) for draw in draws],
        )

    def sample_path(
        self,
        draws: Sequence[DrawCandidates],
        target: int,
        rng: Optional[random.Random] = None,
    ) -> SampledPath:
        """Return one assignment of outcomes to draws whose damages sum to ``target``.

        Parameters
        ----------
        draws:
            Per-draw outcome candidates, each including a no-event outcome.
        target:
            Aggregate total to explain. Negative values are clamped to zero.
        rng:
            Optional random source overriding the sampler's own.

        Raises
        ------
        ValueError
            If no combination of outcomes reaches ``target``.
        """

        target = max(0, int(target))
        if target == 0:
            return self._quiet_path(draws)

        ways = self.build_ways(draws, target)
        if ways[0, target] <= 0.0:
            raise ValueError(f"Total {target} cannot be reached by the supplied draws")
        return self._forward(draws, ways, target, rng or self.rng)

    def sample_paths(
        self,
        draws: Sequence[DrawCandidates],
        targets: Iterable[int],
        rng: Optional[random.Random] = None,
    ) -> dict[int, SampledPath]:
        """Explain several totals with a single table built up to the largest one.

        Unreachable targets are logged and left out of the result.
        """

        wanted = sorted({max(0, int(target)) for target in targets})
        if not wanted:
            return {}

        generator = rng or self.rng
        ways = self.build_ways(draws, wanted[-1])
        paths: dict[int, SampledPath] = {}
        for target in wanted:
            if target == 0:
                paths[target] = self._quiet_path(draws)
            elif ways[0, target] > 0.0:
                paths[target] = self._forward(draws, ways, target, generator)
            else:
                logger.warning("Total %d cannot be reached by the supplied draws", target)
        return paths
