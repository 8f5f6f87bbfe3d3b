import math
from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from expedition_core.distribution import (
    DistributionInvariantError,
    bernoulli,
    check_distribution,
    convolve,
    convolve_all,
    expected_value,
    get_scenarios,
    mixture,
    percentile,
    tail_scenarios,
    total_mass,
)


UNIFORM_FOUR = {0: 0.25, 1: 0.25, 2: 0.25, 3: 0.25}


def _assert_same_distribution(left, right):
    assert set(left) == set(right)
    for value, probability in left.items():
        assert math.isclose(probability, right[value], abs_tol=1e-12)


def test_convolve_two_fair_coins():
    result = convolve(bernoulli(0.5), bernoulli(0.5))

    _assert_same_distribution(result, {0: 0.25, 1: 0.5, 2: 0.25})


def test_convolve_all_without_inputs_is_certain_zero():
    assert convolve_all([]) == {0: 1.0}


def test_convolution_is_order_independent_and_conserves_mass():
    parts = [bernoulli(0.2), {0: 0.5, 3: 0.5}, bernoulli(0.9), {1: 0.3, 2: 0.7}]

    forward = convolve_all(parts)
    backward = convolve_all(reversed(parts))

    _assert_same_distribution(forward, backward)
    assert math.isclose(total_mass(forward), 1.0, abs_tol=1e-9)
    assert math.isclose(expected_value(forward), 0.2 + 1.5 + 0.9 + 1.7)


@pytest.mark.parametrize(
    "probability, expected",
    [(0.0, {0: 1.0}), (1.0, {1: 1.0}), (0.25, {0: 0.75, 1: 0.25})],
)
def test_bernoulli_drops_impossible_outcomes(probability, expected):
    assert bernoulli(probability) == expected


@pytest.mark.parametrize(
    "threshold, expected",
    [(0.0, 0), (0.25, 0), (0.5, 1), (0.75, 2), (1.0, 3)],
)
def test_percentile_returns_first_value_reaching_threshold(threshold, expected):
    assert percentile(UNIFORM_FOUR, threshold) == expected


@pytest.mark.parametrize("threshold, expected", [(0.8, 1), (0.9, 2)])
def test_percentile_tolerates_accumulated_rounding(threshold, expected):
    # Cumulative sums land just below 0.8 and 0.9 in floating point.
    distribution = {0: 0.7, 1: 0.1, 2: 0.1, 3: 0.1}

    assert percentile(distribution, threshold) == expected


def test_percentile_of_empty_distribution_is_zero():
    assert percentile({}, 0.5) == 0


def test_damage_scenarios_use_upper_percentiles_and_partition_mass():
    quad = get_scenarios(UNIFORM_FOUR, higher_is_better=False)

    assert (quad.optimist, quad.average, quad.pessimist, quad.worst_case) == (0, 1, 2, 3)
    for scenario in ("optimist", "average", "pessimist", "worst_case"):
        assert math.isclose(quad.probability(scenario), 0.25)


def test_resource_scenarios_use_lower_percentiles_and_partition_mass():
    quad = get_scenarios(UNIFORM_FOUR, higher_is_better=True)

    assert (quad.optimist, quad.average, quad.pessimist, quad.worst_case) == (2, 1, 0, 0)
    assert math.isclose(quad.optimist_probability, 0.5)
    assert math.isclose(quad.average_probability, 0.25)
    assert math.isclose(quad.pessimist_probability, 0.25)
    assert quad.worst_case_probability == 0.0


@pytest.mark.parametrize("higher_is_better", [True, False])
def test_scenario_values_are_ordered_and_probabilities_sum_to_one(higher_is_better):
    distribution = convolve_all([bernoulli(0.3), bernoulli(0.6), {0: 0.2, 2: 0.5, 5: 0.3}])

    quad = get_scenarios(distribution, higher_is_better)
    values = [quad.optimist, quad.average, quad.pessimist, quad.worst_case]
    total = sum(quad.probability(name) for name in ("optimist", "average", "pessimist", "worst_case"))

    assert math.isclose(total, 1.0, abs_tol=1e-9)
    if higher_is_better:
        assert values == sorted(values, reverse=True)
    else:
        assert values == sorted(values)


def test_unknown_scenario_name_is_rejected():
    quad = get_scenarios(UNIFORM_FOUR, higher_is_better=False)

    with pytest.raises(ValueError):
        quad.value("median")


@pytest.mark.parametrize("probability", [0.02, 0.1, 0.25])
def test_tail_pessimist_of_rare_event_scales_with_probability(probability):
    tail = tail_scenarios(bernoulli(probability))

    assert tail.optimist == 0
    assert math.isclose(tail.average, probability)
    assert math.isclose(tail.pessimist, probability / 0.25)
    assert tail.worst_case == 1


def test_tail_of_certain_event():
    tail = tail_scenarios({2: 1.0})

    assert (tail.optimist, tail.average, tail.pessimist, tail.worst_case) == (2, 2, 2, 2)


def test_tail_fraction_must_be_positive():
    with pytest.raises(ValueError):
        tail_scenarios(bernoulli(0.5), fraction=0.0)


def test_mixture_weights_components():
    result = mixture([(0.5, {0: 1.0}), (0.5, {2: 1.0}), (0.0, {9: 1.0})])

    assert result == {0: 0.5, 2: 0.5}


@pytest.mark.parametrize("distribution", [{0: 0.5}, {0: 1.2, 1: -0.2}, {0: float("nan")}])
def test_check_distribution_fails_loudly(distribution):
    with pytest.raises(DistributionInvariantError):
        check_distribution(distribution)


def test_invariant_error_is_an_assertion():
    assert issubclass(DistributionInvariantError, AssertionError)
    check_distribution({0: 0.5, 1: 0.5})


@pytest.mark.parametrize("probability, damage, optimist", [(0.8, 1, 0.2), (0.9, 1, 0.6), (0.9, 5, 3.0)])
def test_tail_optimist_blends_no_event_and_damage_for_likely_events(probability, damage, optimist):
    tail = tail_scenarios({0: 1.0 - probability, damage: probability})

    assert math.isclose(tail.optimist, optimist)
    assert 0 < tail.optimist < damage
    assert math.isclose(tail.pessimist, damage)
