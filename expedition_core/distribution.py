"""Discrete distribution algebra: convolution, percentiles, and scenario extraction."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from itertools import accumulate

from .data import Distribution
from .models import ScenarioQuad, TailScenarios

PERCENTILE_EPSILON = 1e-12


class DistributionInvariantError(AssertionError):
    """Raised when a distribution breaks the algebra's invariants."""


def identity() -> Distribution:
    """Return the distribution of a certain zero outcome."""

    return {0: 1.0}


def bernoulli(probability: float) -> Distribution:
    """Return ``{0: 1 - p, 1: p}`` without zero-probability entries."""

    if probability >= 1.0:
        return {1: 1.0}
    if probability <= 0.0:
        return {0: 1.0}
    return {0: 1.0 - probability, 1: probability}


def convolve(left: Mapping[float, float], right: Mapping[float, float]) -> Distribution:
    """Return the distribution of the sum of two independent variables."""

    result: Distribution = {}
    for value_a, prob_a in left.items():
        for value_b, prob_b in right.items():
            total = value_a + value_b
            result[total] = result.get(total, 0.0) + prob_a * prob_b
    return result


def convolve_all(distributions: Iterable[Mapping[float, float]]) -> Distribution:
    """Fold ``convolve`` over the supplied distributions; no input gives ``{0: 1}``."""

    result: Distribution | None = None
    for distribution in distributions:
        result = dict(distribution) if result is None else convolve(result, distribution)
    return identity() if result is None else result


def mixture(components: Iterable[tuple[float, Mapping[float, float]]]) -> Distribution:
    """Return the weighted sum of distributions (weights are not renormalised)."""

    result: Distribution = {}
    for weight, distribution in components:
        if weight <= 0.0:
            continue
        for value, probability in distribution.items():
            result[value] = result.get(value, 0.0) + weight * probability
    return result


def expected_value(distribution: Mapping[float, float]) -> float:
    """Return the mean of a distribution."""

    return sum(value * probability for value, probability in distribution.items())


def total_mass(distribution: Mapping[float, float]) -> float:
    return sum(distribution.values())


def _sorted_items(distribution: Mapping[float, float]) -> list[tuple[float, float]]:
    items = sorted(distribution.items())
    return items if items else [(0, 1.0)]


def percentile(distribution: Mapping[float, float], threshold: float) -> float:
    """Return the first value whose cumulative mass reaches ``threshold``.

    Parameters
    ----------
    distribution:
        Outcome to probability mapping. An empty mapping is treated as ``{0: 1}``.
    threshold:
        Cumulative mass on ``[0, 1]``.
    """

    items = _sorted_items(distribution)
    cumulative = accumulate(probability for _, probability in items)
    for (value, _), mass in zip(items, cumulative):
        if mass >= threshold - PERCENTILE_EPSILON:
            return value
    return items[-1][0]


def get_scenarios(distribution: Mapping[float, float], higher_is_better: bool) -> ScenarioQuad:
    """Extract the optimist/average/pessimist/worst-case quad from one distribution.

    Parameters
    ----------
    distribution:
        Outcome to probability mapping.
    higher_is_better:
        ``True`` for yields (optimist is the 75th percentile, worst case the minimum),
        ``False`` for damage and counts of bad events (optimist is the 25th percentile,
        worst case the maximum).

    Returns
    -------
    ScenarioQuad
        Scenario values with exclusive bucket probabilities. The most favourable
        scenario owns every outcome at least as good as its value; each following
        scenario owns the outcomes strictly worse than the previous scenario's value
        and no worse than its own. The four probabilities therefore sum to one.
    """

    items = _sorted_items(distribution)
    p0, p25, p50, p75, p100 = (
        percentile(distribution, threshold) for threshold in (0.0, 0.25, 0.5, 0.75, 1.0)
    )
    if higher_is_better:
        values = (p75, p50, p25, p0)
    else:
        values = (p25, p50, p75, p100)

    # Flip the axis so "more favourable" always means "smaller".
    sign = -1 if higher_is_better else 1
    bounds = [sign * value for value in values]
    masses = [0.0, 0.0, 0.0, 0.0]
    for value, probability in items:
        position = sign * value
        for bucket, bound in enumerate(bounds):
            if position <= bound:
                masses[bucket] += probability
                break
        else:
            masses[-1] += probability

    return ScenarioQuad(
        optimist=values[0],
        average=values[1],
        pessimist=values[2],
        worst_case=values[3],
        optimist_probability=masses[0],
        average_probability=masses[1],
        pessimist_probability=masses[2],
        worst_case_probability=masses[3],
    )


def _tail_mean(items: Sequence[tuple[float, float]], fraction: float, epsilon: float) -> float:
    remaining = fraction
    accumulated = 0.0
    for value, probability in items:
        taken = min(remaining, probability)
        accumulated += value * taken
        remaining -= taken
        if remaining <= epsilon:
            break
    return accumulated / fraction


def tail_scenarios(
    distribution: Mapping[float, float],
    fraction: float = 0.25,
    epsilon: float = 1e-10,
) -> TailScenarios:
    """Return conditional tail expectations for a sparse count distribution.

    The optimist is the mean of the lowest ``fraction`` of probability mass, the
    pessimist the mean of the highest ``fraction``; the average is the plain mean.
    """

    if not 0.0 < fraction <= 1.0:
        raise ValueError("Tail fraction must lie in (0, 1].")

    items = _sorted_items(distribution)
    return TailScenarios(
        optimist=_tail_mean(items, fraction, epsilon),
        average=expected_value(dict(items)),
        pessimist=_tail_mean(list(reversed(items)), fraction, epsilon),
        worst_case=items[-1][0],
    )


def check_distribution(distribution: Mapping[float, float], tolerance: float = 1e-6) -> None:
    """Fail loudly if ``distribution`` has negative mass or does not sum to one."""

    if not distribution:
        return
    for value, probability in distribution.items():
        if probability < 0.0 or probability != probability:
            raise DistributionInvariantError(
                f"Invalid probability {probability!r} at outcome {value!r}"
            )
    mass = total_mass(distribution)
    if abs(mass - 1.0) > tolerance:
        raise DistributionInvariantError(f"Distribution mass {mass!r} differs from 1")
