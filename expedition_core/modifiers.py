"""Ability, item, and project rules that reshape a draw's event-weight table."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Final

from .data import LANDING, LOST, NOTHING_EVENT, EventWeights
from .events import FIGHT_PREFIX
from .models import Loadout

Modifier = Callable[[Mapping[str, float], str], EventWeights]


def remove_events(event_ids: Iterable[str]) -> Modifier:
    """Return a modifier dropping the named events."""

    targets = frozenset(event_ids)

    def modifier(table: Mapping[str, float], _: str) -> EventWeights:
        return {event: weight for event, weight in table.items() if event not in targets}

    return modifier


def remove_events_by_prefix(prefix: str) -> Modifier:
    """Return a modifier dropping every event whose identifier starts with ``prefix``."""

    def modifier(table: Mapping[str, float], _: str) -> EventWeights:
        return {event: weight for event, weight in table.items() if not event.startswith(prefix)}

    return modifier


def multiply_event_weight(event_id: str, factor: float) -> Modifier:
    """Return a modifier scaling one event's weight, leaving absent events absent."""

    def modifier(table: Mapping[str, float], _: str) -> EventWeights:
        result = dict(table)
        if event_id in result:
            result[event_id] = result[event_id] * factor
        return result

    return modifier


def only_on(draw_type: str, modifier: Modifier) -> Modifier:
    """Restrict ``modifier`` to one draw type."""

    def conditional(table: Mapping[str, float], current: str) -> EventWeights:
        if current != draw_type:
            return dict(table)
        return modifier(table, current)

    return conditional


@dataclass(frozen=True)
class ModifierRule:
    """Removals and weight scalings granted by one modifier identifier."""

    removals: tuple[Modifier, ...] = ()
    scalings: tuple[Modifier, ...] = ()


ABILITY_RULES: Final[dict[str, ModifierRule]] = {
    "PILOT": ModifierRule(
        removals=(only_on(LANDING, remove_events(("TIRED_2", "ACCIDENT_3_5", "DISASTER_3_5"))),)
    ),
    "DIPLOMACY": ModifierRule(removals=(remove_events_by_prefix(FIGHT_PREFIX),)),
    "TRACKER": ModifierRule(removals=(only_on(LOST, remove_events(("KILL_LOST",))),)),
}

ITEM_RULES: Final[dict[str, ModifierRule]] = {
    "WHITE_FLAG": ModifierRule(removals=(only_on("INTELLIGENT", remove_events_by_prefix(FIGHT_PREFIX)),)),
    "QUAD_COMPASS": ModifierRule(removals=(remove_events_by_prefix("AGAIN"),)),
    "TRAD_MODULE": ModifierRule(scalings=(only_on("INTELLIGENT", multiply_event_weight("ARTEFACT", 2)),)),
}

PROJECT_RULES: Final[dict[str, ModifierRule]] = {
    "ANTIGRAV_PROPELLER": ModifierRule(
        scalings=(only_on(LANDING, multiply_event_weight(NOTHING_EVENT, 2)),)
    ),
}


class ModifierPipeline:
    """Apply loadout rules to a draw's event table without touching the catalogue."""

    def __init__(
        self,
        ability_rules: Mapping[str, ModifierRule] = ABILITY_RULES,
        item_rules: Mapping[str, ModifierRule] = ITEM_RULES,
        project_rules: Mapping[str, ModifierRule] = PROJECT_RULES,
    ) -> None:
        self.ability_rules = dict(ability_rules)
        self.item_rules = dict(item_rules)
        self.project_rules = dict(project_rules)

    def active_rules(self, loadout: Loadout) -> list[ModifierRule]:
        """Return the known rules of ``loadout`` in application order.

        Abilities come first, then items, then projects; identifiers without a rule
        are skipped.
        """

        ordered: list[ModifierRule] = []
        for rules, identifiers in (
            (self.ability_rules, loadout.abilities),
            (self.item_rules, loadout.items),
            (self.project_rules, loadout.projects),
        ):
            for identifier in sorted(identifier.upper() for identifier in identifiers):
                rule = rules.get(identifier)
                if rule is not None:
                    ordered.append(rule)
        return ordered

    def apply(self, table: Mapping[str, float], draw_type: str, loadout: Loadout) -> EventWeights:
        """Return a modified copy of ``table`` for ``draw_type``.

        Parameters
        ----------
        table:
            Canonical event weights of the draw type. Never mutated.
        draw_type:
            Identifier used by location-specific rules.
        loadout:
            Active ability, item, and project identifiers.

        Returns
        -------
        EventWeights
            New weight table. When the rules remove every event, the draw keeps an
            explicit ``NOTHING_TO_REPORT`` outcome so no probability mass disappears.
        """

        result: EventWeights = dict(table)
        rules = self.active_rules(loadout)
        for rule in rules:
            for modifier in rule.removals:
                result = modifier(result, draw_type)
        for rule in rules:
            for modifier in rule.scalings:
                result = modifier(result, draw_type)
        if table and not result:
            result = {NOTHING_EVENT: 1.0}
        return result
