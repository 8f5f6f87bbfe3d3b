from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from expedition_core.events import (
    ENVIRONMENT_PROFILES,
    FIGHT_PROFILES,
    classify_event,
    fight_event_ids,
    parse_fight_profile,
)


@pytest.mark.parametrize(
    "event_id, category",
    [
        ("FIGHT_12", "fight"),
        ("FIGHT_8_10_12_15_18_32", "fight"),
        ("TIRED_2", "tired"),
        ("ACCIDENT_3_5", "accident"),
        ("DISASTER_3_5", "disaster"),
        ("KILL_LOST", "kill_one"),
        ("KILL_ALL", "kill_all"),
        ("NOTHING_TO_REPORT", "nothing"),
        ("HARVEST_3", "resource"),
        ("STARMAP", "resource"),
        ("BACK", "back"),
        ("__NOT_VISITED__", "unknown"),
    ],
)
def test_classify_event(event_id, category):
    assert classify_event(event_id) == category


def test_profile_categories_follow_classification():
    for profile in (*FIGHT_PROFILES.values(), *ENVIRONMENT_PROFILES.values()):
        assert profile.category == classify_event(profile.event_id)


def test_fight_event_ids_keep_possible_fights_in_table_order():
    table = {"FIGHT_18": 0.2, "HARVEST_2": 0.5, "FIGHT_8": 0.0, "FIGHT_20": 0.3}

    assert fight_event_ids(table) == ["FIGHT_18", "FIGHT_20"]


@pytest.mark.parametrize("event_id", ["FIGHT_", "FIGHT_X", "TIRED_2"])
def test_parse_fight_profile_rejects_non_fights(event_id):
    assert parse_fight_profile(event_id) is None


def test_parse_fight_profile_builds_fixed_and_variable_fights():
    assert parse_fight_profile("FIGHT_20").outcomes == (20,)
    assert parse_fight_profile("FIGHT_4_6").average == 5
