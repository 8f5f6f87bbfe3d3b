import math
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from expedition_core import api
from expedition_core.loadout import make_participant
from expedition_core.reporting import attribution_frame, breakdown_frame, distribution_frame, scenario_frame


def _computation():
    return api.calculate(["FOREST", "FOREST", "RUINS"], [make_participant("Chun"), make_participant("Kuan Ti")])


def test_scenario_frame_has_four_rows_per_quantity():
    frame = scenario_frame(_computation().result)

    assert list(frame.columns) == ["section", "name", "scenario", "value", "probability"]
    assert set(frame["section"]) == {"resource", "damage", "occurrence", "rare_event"}
    assert (frame.groupby(["section", "name"]).size() == 4).all()

    fight = frame[(frame["section"] == "damage") & (frame["name"] == "fight")]
    assert math.isclose(fight["probability"].sum(), 1.0)


def test_breakdown_frame_lists_draw_types_and_counts():
    frame = breakdown_frame(_computation().result)

    assert sorted(frame.index) == ["FOREST", "RUINS"]
    assert frame.loc["FOREST", "count"] == 2
    assert frame.loc["FOREST", "FIGHT_15"] == 0.0
    assert math.isclose(frame.loc["RUINS", "FIGHT_15"], 0.2)


def test_distribution_frame_is_sorted_with_cumulative_mass():
    frame = distribution_frame({2: 0.25, 0: 0.5, 1: 0.25})

    assert list(frame["outcome"]) == [0, 1, 2]
    assert math.isclose(frame["cumulative"].iloc[-1], 1.0)


def test_attribution_frame_has_one_row_per_participant():
    computation = _computation()
    attribution = api.distribute_damage(computation.result.environment.instances["worst_case"], computation.roster, seed=2)

    frame = attribution_frame(attribution)

    assert list(frame["name"]) == ["Chun", "Kuan Ti"]
    assert (frame["final_health"] == frame["health"] - frame["damage"]).all()


def test_breakdown_frame_can_use_event_descriptions():
    frame = breakdown_frame(_computation().result, labels=True)

    assert "Fight (15 damage split among players)" in frame.columns
    assert "FIGHT_15" not in frame.columns
    assert frame.loc["FOREST", "count"] == 2
