import math
from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from expedition_core.data import NOT_VISITED_EVENT
from expedition_core.engine import calculate_probabilities
from expedition_core.models import Loadout
from expedition_core.weighting import scale_event_weights, visit_likelihoods, weighted_catalogue


def test_likelihood_follows_exploration_weights():
    likelihoods = visit_likelihoods(["LANDING", "FOREST", "CRISTAL_FIELD"], 1)

    assert likelihoods[0] == 1.0
    assert math.isclose(likelihoods[1], 8 / 18)
    assert math.isclose(likelihoods[2], 10 / 18)


def test_likelihood_is_capped_at_one():
    assert visit_likelihoods(["FOREST", "DESERT"], 5) == [1.0, 1.0]


@pytest.mark.parametrize("budget", [-2, float("nan"), None, "lots"])
def test_invalid_budgets_count_as_zero(budget):
    assert visit_likelihoods(["LANDING", "FOREST"], budget) == [1.0, 0.0]


def test_zero_weights_split_the_budget_uniformly():
    likelihoods = visit_likelihoods(["X", "Y", "Z", "W"], 1, catalogue={})

    assert likelihoods == [0.25, 0.25, 0.25, 0.25]


def test_discovery_items_boost_their_sectors():
    loadout = Loadout(items=frozenset({"ECHO_SOUNDER"}))

    likelihoods = visit_likelihoods(["HYDROCARBON", "FOREST"], 1, loadout)

    assert math.isclose(likelihoods[0], 32 / 40)
    assert math.isclose(likelihoods[1], 8 / 40)


def test_scaling_keeps_total_weight_and_scales_probabilities():
    scaled = scale_event_weights({"HARVEST_2": 3.0, "AGAIN": 1.0}, 0.25)
    probabilities = calculate_probabilities(scaled)

    assert math.isclose(sum(scaled.values()), 4.0)
    assert math.isclose(probabilities["HARVEST_2"], 0.25 * 0.75)
    assert math.isclose(probabilities[NOT_VISITED_EVENT], 0.75)


def test_certain_visit_adds_no_placeholder():
    assert scale_event_weights({"HARVEST_2": 3.0}, 1.0) == {"HARVEST_2": 3.0}


def test_weighted_catalogue_is_keyed_by_draw_type():
    catalogue = weighted_catalogue(["FOREST", "FOREST", "NOWHERE"], 1)

    assert list(catalogue) == ["FOREST"]
    assert math.isclose(catalogue["FOREST"][NOT_VISITED_EVENT], 0.5 * 10)
