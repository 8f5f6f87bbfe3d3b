from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from expedition_core.models import DamageContext
from expedition_core.resolver import DamageComparator


def test_stronger_fight_excludes_the_environmental_event():
    comparator = DamageComparator()
    cache = {"R": {"FIGHT_12": 0.5, "ACCIDENT_3_5": 0.5}}

    exclusions = comparator.evaluate(["R"], cache, DamageContext(participant_count=1, fighting_power=1))

    assert exclusions.environment == frozenset({0})
    assert exclusions.fight == frozenset()
    assert exclusions.decisions[0].winner == "fight"


def test_weak_fight_is_excluded():
    comparator = DamageComparator()
    cache = {"R": {"FIGHT_12": 0.5, "ACCIDENT_3_5": 0.5}}

    exclusions = comparator.evaluate(["R"], cache, DamageContext(participant_count=1, fighting_power=10))

    assert exclusions.fight == frozenset({0})
    assert exclusions.environment == frozenset()


def test_equal_scores_go_to_the_environmental_event():
    comparator = DamageComparator()
    cache = {"R": {"FIGHT_8": 0.5, "ACCIDENT_3_5": 0.5}}

    # 8 - 3 = 5 damage to one participant, same as the worst accident.
    exclusions = comparator.evaluate(["R"], cache, DamageContext(participant_count=1, fighting_power=3))

    assert exclusions.fight == frozenset({0})


def test_events_hitting_everyone_score_per_participant():
    comparator = DamageComparator()
    cache = {"L": {"FIGHT_10": 0.5, "DISASTER_3_5": 0.5}}

    exclusions = comparator.evaluate(["L"], cache, DamageContext(participant_count=4, fighting_power=4))

    # Fight: 6 total, at most 2 per participant. Disaster: 20 total, 5 each.
    assert exclusions.fight == frozenset({0})


def test_draws_with_a_single_category_are_never_excluded():
    comparator = DamageComparator()
    cache = {"P": {"FIGHT_12": 1.0}, "D": {"TIRED_2": 1.0}, "N": {"HARVEST_2": 1.0}}

    exclusions = comparator.evaluate(["P", "D", "N"], cache, DamageContext(participant_count=2))

    assert exclusions.fight == frozenset()
    assert exclusions.environment == frozenset()
    assert exclusions.decisions == []


def test_grenades_are_spent_on_the_biggest_fights_first():
    comparator = DamageComparator()
    cache = {"S": {"FIGHT_8": 0.5, "ACCIDENT_3_5": 0.5}, "M": {"FIGHT_32": 1.0}}

    exclusions = comparator.evaluate(["S", "M"], cache, DamageContext(participant_count=1, grenades=1))

    # The fight-only draw takes the grenade, so the small fight is scored at 8.
    decision = exclusions.decisions[0]
    assert decision.index == 0
    assert decision.winner == "fight"
    assert decision.grenade_used is False
    assert decision.fight_score == pytest.approx(8 * 100 + 8 * 10)


@pytest.mark.parametrize("fighting_power", [0, 3, 6, 9, 12])
def test_no_draw_is_active_in_both_worst_cases(fighting_power):
    comparator = DamageComparator()
    cache = {
        "RUINS": {"ARTEFACT": 0.4, "NOTHING_TO_REPORT": 0.3, "FIGHT_15": 0.2, "ACCIDENT_3_5": 0.1},
        "PREDATOR": {"FIGHT_12": 0.4, "ACCIDENT_3_5": 0.3, "NOTHING_TO_REPORT": 0.2, "PROVISION_3": 0.1},
    }
    draws = ["RUINS", "PREDATOR", "RUINS"]

    exclusions = comparator.evaluate(
        draws, cache, DamageContext(participant_count=3, fighting_power=fighting_power, grenades=1)
    )

    assert not exclusions.fight & exclusions.environment
    assert exclusions.fight | exclusions.environment == frozenset({0, 1, 2})
