import math
from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from expedition_core.damage import (
    CombatDamageCalculator,
    DamageCalculator,
    EnvironmentalDamageCalculator,
    apply_grenades,
    round_half_up,
)
from expedition_core.events import DamageProfile
from expedition_core.models import DamageContext, DamageInstance
from expedition_core.occurrence import OccurrenceCalculator


@pytest.mark.parametrize("value, expected", [(0.49, 0), (0.5, 1), (2 / 3, 1), (1.5, 2), (2.5, 3)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_occurrence_skips_draws_that_cannot_produce_the_event():
    cache = {"A": {"DISEASE": 0.5}, "B": {"HARVEST_2": 1.0}}

    result = OccurrenceCalculator().calculate_for_type(["A", "B", "A"], "DISEASE", cache)

    assert [source.index for source in result.sources] == [0, 2]
    assert result.max_possible == 2
    assert math.isclose(result.distribution[1], 0.5)
    assert math.isclose(result.scenarios.average, 1.0)


def test_overall_occurrence_sums_event_probabilities_per_draw():
    cache = {"LOST": {"KILL_LOST": 0.1, "AGAIN": 0.2}, "MANKAROG": {"KILL_RANDOM": 0.4}}

    result = OccurrenceCalculator().calculate_overall(
        ["LOST", "MANKAROG", "LOST"], ["KILL_LOST", "KILL_RANDOM"], cache, excluded={2}
    )

    assert [source.probability for source in result.sources] == [0.1, 0.4]
    assert math.isclose(result.distribution[2], 0.04)


def test_end_to_end_average_damage_uses_rounded_occurrences():
    profile = DamageProfile("A", "disaster", (4,), affects_all=True)
    calculator = DamageCalculator({"A": profile})
    cache = {"X": {"A": 2 / 3, "B": 1 / 3}}

    result = calculator.calculate(["X"], cache, DamageContext(participant_count=3))

    assert math.isclose(result.occurrence["A"].scenarios.average, 2 / 3)
    assert result.damage.average == 12
    assert result.damage.optimist == 0
    assert result.damage.worst_case == 12
    assert math.isclose(result.distribution[12], 2 / 3)
    assert math.isclose(result.distribution[0], 1 / 3)


def test_greedy_scenarios_count_each_draw_once():
    calculator = EnvironmentalDamageCalculator()
    cache = {"Y": {"ACCIDENT_3_5": 0.5, "TIRED_2": 0.5}}

    result = calculator.calculate(["Y"], cache, DamageContext(participant_count=3))

    # Two events on one draw: the combined count reaches 2, yet only one can happen.
    assert result.combined.scenarios.worst_case == 2
    assert result.damage.worst_case == 6
    assert sum(instance.count for instance in result.instances["worst_case"]) == 1


def test_worst_case_ignores_excluded_draws():
    calculator = EnvironmentalDamageCalculator()
    cache = {"Y": {"ACCIDENT_3_5": 0.5, "NOTHING_TO_REPORT": 0.5}}

    result = calculator.calculate(["Y"], cache, DamageContext(participant_count=1), exclusions={0})

    assert result.damage.pessimist == 5
    assert result.damage.worst_case == 0
    assert result.exclusions == frozenset({0})


def test_scenario_probabilities_do_not_depend_on_the_roster():
    calculator = CombatDamageCalculator()
    cache = {"P": {"FIGHT_12": 0.4, "NOTHING_TO_REPORT": 0.6}}
    draws = ["P", "P", "P"]

    weak = calculator.calculate(draws, cache, DamageContext(participant_count=1, fighting_power=1))
    strong = calculator.calculate(draws, cache, DamageContext(participant_count=4, fighting_power=12))

    assert strong.damage.worst_case == 0
    for scenario in ("optimist", "average", "pessimist", "worst_case"):
        assert weak.damage.probability(scenario) == strong.damage.probability(scenario)


def test_fighting_power_and_grenades_reduce_fights():
    calculator = CombatDamageCalculator()
    cache = {"P": {"FIGHT_12": 1.0}}

    plain = calculator.calculate(["P"], cache, DamageContext(participant_count=2, fighting_power=4))
    armed = calculator.calculate(["P"], cache, DamageContext(participant_count=2, fighting_power=4, grenades=1))

    assert plain.damage.worst_case == 8
    assert armed.damage.worst_case == 5
    # The full distribution describes fights before grenades.
    assert armed.distribution == {8: 1.0}


def test_variable_fight_uses_nominal_average_and_uniform_outcomes():
    calculator = CombatDamageCalculator()
    cache = {"W": {"FIGHT_8_10_12_15_18_32": 1.0}}

    result = calculator.calculate(["W"], cache, DamageContext(participant_count=1))
    draws = calculator.candidates(["W"], cache, DamageContext(participant_count=1))

    assert result.damage.optimist == 8
    assert result.damage.average == 17.5
    assert result.damage.worst_case == 32
    assert sorted(outcome.damage for outcome in draws[0].outcomes) == [8, 10, 12, 15, 18, 32]
    assert all(math.isclose(outcome.probability, 1 / 6) for outcome in draws[0].outcomes)


def test_unknown_fight_identifiers_get_a_fixed_profile():
    calculator = CombatDamageCalculator()

    result = calculator.calculate(["Z"], {"Z": {"FIGHT_20": 1.0}}, DamageContext(participant_count=1))

    assert result.damage.worst_case == 20


def test_candidates_always_offer_a_quiet_outcome():
    calculator = EnvironmentalDamageCalculator()
    cache = {"Y": {"ACCIDENT_3_5": 0.5, "HARVEST_2": 0.5}}

    draws = calculator.candidates(["Y", "UNKNOWN"], cache, DamageContext(participant_count=1), exclusions={0})

    assert [(outcome.event_id, outcome.damage, outcome.probability) for outcome in draws[0].outcomes] == [
        (None, 0, 1.0)
    ]
    assert draws[1].outcomes[0].event_id is None


def test_grenades_go_to_the_biggest_fights_first():
    instances = [
        DamageInstance("fight", "FIGHT_12", 1, 10),
        DamageInstance("fight", "FIGHT_8", 2, 4),
    ]

    mitigated = apply_grenades(instances, grenades=3, power=3)
    damages = sorted(
        instance.damage_per_instance
        for instance in mitigated
        for _ in range(instance.count)
    )

    # 10 -> 7 -> 4, then one of the 4s -> 1.
    assert damages == [1, 4, 4]


def test_grenades_are_not_wasted_on_harmless_fights():
    instances = [DamageInstance("fight", "FIGHT_8", 1, 2)]

    mitigated = apply_grenades(instances, grenades=5, power=3)

    assert [instance.damage_per_instance for instance in mitigated] == [0]


@pytest.mark.parametrize(
    "draws, cache, participant_count",
    [
        (["Y"], {"Y": {"ACCIDENT_3_5": 0.5, "TIRED_2": 0.5}}, 3),
        (
            ["X", "X", "X"],
            {"X": {"ACCIDENT_3_5": 0.3, "DISASTER_3_5": 0.3, "TIRED_2": 0.3, "NOTHING_TO_REPORT": 0.1}},
            2,
        ),
        (["M", "Y", "M"], {"M": {"ACCIDENT_3_5": 0.4, "TIRED_2": 0.6}, "Y": {"TIRED_2": 0.2}}, 4),
    ],
)
def test_damage_scenarios_are_ordered(draws, cache, participant_count):
    result = EnvironmentalDamageCalculator().calculate(draws, cache, DamageContext(participant_count=participant_count))
    damage = result.damage

    assert damage.optimist <= damage.average <= damage.pessimist <= damage.worst_case
    for scenario in ("optimist", "average", "pessimist", "worst_case"):
        assert sum(instance.total_damage for instance in result.instances[scenario]) == damage.value(scenario)


def test_average_damage_is_capped_by_the_pessimist_selection():
    calculator = EnvironmentalDamageCalculator()
    cache = {"Y": {"ACCIDENT_3_5": 0.5, "TIRED_2": 0.5}}

    result = calculator.calculate(["Y"], cache, DamageContext(participant_count=3))

    # Per type, the accident (4) and the tiredness (2 x 3) would both count the single draw.
    assert result.damage.average == 6
    assert result.damage.pessimist == 6
    assert [instance.event_id for instance in result.instances["average"]] == ["TIRED_2"]
    assert result.instances["average"][0] is not result.instances["pessimist"][0]
