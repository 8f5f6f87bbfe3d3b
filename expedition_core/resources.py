"""Yield distributions for the six resource kinds gathered during exploration."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Final, Optional

from .data import ProbabilityTable
from .distribution import check_distribution, convolve_all, expected_value, get_scenarios
from .loadout import ability_count, item_count
from .models import Participant, ResourceResult
from .settings import DEFAULT_SETTINGS, EngineSettings


@dataclass(frozen=True)
class ResourceBonuses:
    """Roster-derived bonuses applied to raw event yields."""

    botanists: int = 0
    survivalists: int = 0
    drillers: int = 0

    @classmethod
    def from_roster(cls, roster: Sequence[Participant]) -> "ResourceBonuses":
        return cls(
            botanists=ability_count(roster, "BOTANIC"),
            survivalists=ability_count(roster, "SURVIVAL"),
            drillers=item_count(roster, "DRILLER"),
        )


def suffix_amount(event_id: str, prefix: str) -> Optional[int]:
    """Return ``n`` for ``<prefix>n`` identifiers, else ``None``."""

    if not event_id.startswith(prefix):
        return None
    try:
        return int(event_id[len(prefix):])
    except ValueError:
        return None


@dataclass(frozen=True)
class ResourceRule:
    """How one resource kind is read off event identifiers.

    ``yield_fn`` returns the yield of one event in integer units; the final amount is
    ``units / denominator``.
    """

    name: str
    yield_fn: Callable[[str, ResourceBonuses], Optional[int]]
    denominator: int = 1


def _fruits(event_id: str, bonuses: ResourceBonuses) -> Optional[int]:
    amount = suffix_amount(event_id, "HARVEST_")
    return None if amount is None else amount + bonuses.botanists


def _steaks(event_id: str, bonuses: ResourceBonuses) -> Optional[int]:
    amount = suffix_amount(event_id, "PROVISION_")
    return None if amount is None else amount + bonuses.survivalists


def _fuel(event_id: str, bonuses: ResourceBonuses) -> Optional[int]:
    amount = suffix_amount(event_id, "FUEL_")
    return None if amount is None else amount * 2 ** bonuses.drillers


def _oxygen(event_id: str, _: ResourceBonuses) -> Optional[int]:
    return suffix_amount(event_id, "OXYGEN_")


def _artefacts(event_id: str, _: ResourceBonuses) -> Optional[int]:
    # Eight artefacts in nine are regular artefacts, the ninth is a map fragment.
    return 8 if event_id == "ARTEFACT" else None


def _map_fragments(event_id: str, _: ResourceBonuses) -> Optional[int]:
    if event_id == "STARMAP":
        return 9
    if event_id == "ARTEFACT":
        return 1
    return None


RESOURCE_RULES: Final[tuple[ResourceRule, ...]] = (
    ResourceRule("fruits", _fruits),
    ResourceRule("steaks", _steaks),
    ResourceRule("fuel", _fuel),
    ResourceRule("oxygen", _oxygen),
    ResourceRule("artefacts", _artefacts, denominator=9),
    ResourceRule("map_fragments", _map_fragments, denominator=9),
)


class ResourceCalculator:
    """Convolve per-draw yields into resource distributions and scenario quads."""

    def __init__(
        self,
        rules: Sequence[ResourceRule] = RESOURCE_RULES,
        settings: EngineSettings = DEFAULT_SETTINGS,
    ) -> None:
        self.rules = tuple(rules)
        self.settings = settings

    def draw_distribution(
        self,
        table: ProbabilityTable,
        rule: ResourceRule,
        bonuses: ResourceBonuses,
    ) -> dict[float, float]:
        """Return the unit yield distribution of one draw (empty if it yields nothing)."""

        distribution: dict[float, float] = {}
        for event_id, probability in table.items():
            if probability <= 0.0:
                continue
            amount = rule.yield_fn(event_id, bonuses)
            if not amount:
                continue
            distribution[amount] = distribution.get(amount, 0.0) + probability
        if not distribution:
            return distribution

        zero_mass = 1.0 - sum(distribution.values())
        if zero_mass > self.settings.zero_outcome_threshold:
            distribution[0] = zero_mass
        else:
            # Absorb floating residue so the draw still sums to one.
            total = sum(distribution.values())
            distribution = {value: mass / total for value, mass in distribution.items()}
        return distribution

    def calculate_resource(
        self,
        rule: ResourceRule,
        draw_types: Sequence[str],
        cache: Mapping[str, ProbabilityTable],
        bonuses: ResourceBonuses,
    ) -> ResourceResult:
        per_draw = [
            self.draw_distribution(cache.get(draw_type, {}), rule, bonuses)
            for draw_type in draw_types
        ]
        units = convolve_all(distribution for distribution in per_draw if distribution)
        if rule.denominator == 1:
            distribution = units
        else:
            distribution = {value / rule.denominator: mass for value, mass in units.items()}
        check_distribution(distribution, self.settings.probability_tolerance)
        return ResourceResult(
            resource=rule.name,
            scenarios=get_scenarios(distribution, higher_is_better=True),
            expected=expected_value(distribution),
            distribution=distribution,
        )

    def calculate(
        self,
        draw_types: Sequence[str],
        cache: Mapping[str, ProbabilityTable],
        roster: Sequence[Participant] = (),
    ) -> dict[str, ResourceResult]:
        """Return one result per resource kind, keyed by resource name."""

        bonuses = ResourceBonuses.from_roster(roster)
        return {
            rule.name: self.calculate_resource(rule, draw_types, cache, bonuses)
            for rule in self.rules
        }
