"""Roster helpers: loadout assembly, fighting power, and participation rules."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from .data import (
    ABILITY_ALIASES,
    CENTAURI_BLASTER_BONUS,
    DEFAULT_HEALTH,
    GRENADE,
    GUN_ITEMS,
    ITEM_COMBAT_POWER,
    MAX_PLAYERS,
    OXYGEN_SECTOR,
)
from .models import Loadout, Participant

_EXTENSION_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif)$", re.IGNORECASE)

GUNMAN = "GUNMAN"
SPACE_SUIT = "SPACE_SUIT"


def to_identifier(name: str) -> str:
    """Normalise ``pilot.png`` style names to ``PILOT``."""

    return _EXTENSION_PATTERN.sub("", name.strip()).upper()


def make_participant(
    name: str,
    health: object = DEFAULT_HEALTH,
    abilities: Iterable[str] = (),
    items: Iterable[str] = (),
) -> Participant:
    """Build a participant, clamping health and normalising identifiers.

    Health that cannot be parsed, or is not finite, falls back to ``DEFAULT_HEALTH``;
    negative values are clamped to zero. Empty ability or item slots are ignored.
    """

    try:
        parsed_health = int(health)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        parsed_health = DEFAULT_HEALTH
    return Participant(
        name=name,
        health=max(0, parsed_health),
        abilities=frozenset(to_identifier(ability) for ability in abilities if ability),
        items=tuple(to_identifier(item) for item in items if item),
    )


def clamp_roster(roster: Sequence[Participant]) -> list[Participant]:
    """Return at most ``MAX_PLAYERS`` participants."""

    return list(roster[:MAX_PLAYERS])


def expand_abilities(abilities: Iterable[str]) -> frozenset[str]:
    """Return ``abilities`` plus the effects granted through aliases."""

    expanded: set[str] = set()
    for ability in abilities:
        identifier = to_identifier(ability)
        expanded.add(identifier)
        expanded.update(ABILITY_ALIASES.get(identifier, ()))
    return frozenset(expanded)


def build_loadout(roster: Iterable[Participant], projects: Iterable[str] = ()) -> Loadout:
    """Collect every participant's abilities and items into one loadout."""

    abilities: set[str] = set()
    items: set[str] = set()
    for participant in roster:
        abilities.update(participant.abilities)
        items.update(to_identifier(item) for item in participant.items)
    return Loadout(
        abilities=expand_abilities(abilities),
        items=frozenset(items),
        projects=frozenset(to_identifier(project) for project in projects if project),
    )


def item_power(item: str, centauri: bool = False) -> int:
    """Combat power granted by one item (grenades are counted separately)."""

    identifier = to_identifier(item)
    power = ITEM_COMBAT_POWER.get(identifier, 0)
    if centauri and identifier == "BLASTER":
        power += CENTAURI_BLASTER_BONUS
    return power


def has_gun(participant: Participant) -> bool:
    return any(to_identifier(item) in GUN_ITEMS for item in participant.items)


def fighting_power(roster: Sequence[Participant], centauri: bool = False) -> int:
    """Return the expedition's permanent fighting power.

    Each participant counts for one point, plus the combat bonus of their items and
    one more point for a gunman who carries a gun.
    """

    power = len(roster)
    for participant in roster:
        power += sum(
            item_power(item, centauri)
            for item in participant.items
            if to_identifier(item) != GRENADE
        )
        if GUNMAN in expand_abilities(participant.abilities) and has_gun(participant):
            power += 1
    return power


def grenade_count(roster: Iterable[Participant]) -> int:
    return item_count(roster, GRENADE)


def ability_count(roster: Iterable[Participant], ability: str) -> int:
    """Number of participants holding ``ability`` directly or through an alias."""

    target = to_identifier(ability)
    return sum(1 for participant in roster if target in expand_abilities(participant.abilities))


def item_count(roster: Iterable[Participant], item: str) -> int:
    """Number of copies of ``item`` carried across the roster."""

    target = to_identifier(item)
    return sum(
        1 for participant in roster for carried in participant.items if to_identifier(carried) == target
    )


def participating_roster(roster: Sequence[Participant], draw_types: Sequence[str]) -> list[Participant]:
    """Return the participants able to leave the ship.

    Without an oxygen sector on the planet only participants wearing a space suit can
    explore.
    """

    if OXYGEN_SECTOR in draw_types:
        return list(roster)
    return [
        participant
        for participant in roster
        if any(to_identifier(item) == SPACE_SUIT for item in participant.items)
    ]
