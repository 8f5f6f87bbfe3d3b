"""Event classification and per-event damage profiles."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final, Optional

FIGHT_PREFIX: Final[str] = "FIGHT_"
VARIABLE_FIGHT: Final[str] = "FIGHT_8_10_12_15_18_32"

RESOURCE_PREFIXES: Final[tuple[str, ...]] = ("HARVEST_", "PROVISION_", "FUEL_", "OXYGEN_")
RESOURCE_EVENTS: Final[frozenset[str]] = frozenset({"ARTEFACT", "STARMAP", "FIND_LOST"})

_EXACT_CATEGORIES: Final[dict[str, str]] = {
    "NOTHING_TO_REPORT": "nothing",
    "KILL_ALL": "kill_all",
    "KILL_RANDOM": "kill_one",
    "KILL_LOST": "kill_one",
    "DISEASE": "disease",
    "PLAYER_LOST": "player_lost",
    "ITEM_LOST": "item_lost",
    "MUSH_TRAP": "mush_trap",
    "AGAIN": "again",
    "BACK": "back",
}

_PREFIX_CATEGORIES: Final[tuple[tuple[str, str], ...]] = (
    (FIGHT_PREFIX, "fight"),
    ("TIRED_", "tired"),
    ("ACCIDENT_", "accident"),
    ("DISASTER_", "disaster"),
)

NEGATIVE_EVENT_CATEGORIES: Final[dict[str, tuple[str, ...]]] = {
    "disease": ("DISEASE",),
    "player_lost": ("PLAYER_LOST",),
    "again": ("AGAIN",),
    "item_lost": ("ITEM_LOST",),
    "kill_all": ("KILL_ALL",),
    "kill_one": ("KILL_RANDOM", "KILL_LOST"),
    "mush_trap": ("MUSH_TRAP",),
}


def classify_event(event_id: str) -> str:
    """Return the category name of an event identifier."""

    if event_id in _EXACT_CATEGORIES:
        return _EXACT_CATEGORIES[event_id]
    for prefix, category in _PREFIX_CATEGORIES:
        if event_id.startswith(prefix):
            return category
    if event_id in RESOURCE_EVENTS or event_id.startswith(RESOURCE_PREFIXES):
        return "resource"
    return "unknown"


@dataclass(frozen=True)
class DamageProfile:
    """Damage dealt by one occurrence of an event.

    ``outcomes`` lists the concrete damage values, each equally likely; ``average`` is
    their mean unless ``nominal_average`` overrides it. ``affects_all`` marks events
    that hit every participant.
    """

    event_id: str
    category: str
    outcomes: tuple[int, ...]
    affects_all: bool = False
    nominal_average: Optional[float] = None

    @property
    def minimum(self) -> int:
        return min(self.outcomes)

    @property
    def maximum(self) -> int:
        return max(self.outcomes)

    @property
    def average(self) -> float:
        if self.nominal_average is not None:
            return self.nominal_average
        return sum(self.outcomes) / len(self.outcomes)

    def per_event(self, scenario: str) -> float:
        """Damage used for one occurrence in the named scenario."""

        if scenario == "optimist":
            return self.minimum
        if scenario == "average":
            return self.average
        return self.maximum

    def multiplier(self, participant_count: int) -> int:
        return max(participant_count, 0) if self.affects_all else 1


def _fight(base: int) -> DamageProfile:
    event_id = f"{FIGHT_PREFIX}{base}"
    return DamageProfile(event_id, classify_event(event_id), (base,))


FIGHT_PROFILES: Final[dict[str, DamageProfile]] = {
    **{profile.event_id: profile for profile in (_fight(base) for base in (8, 10, 12, 15, 18, 32))},
    VARIABLE_FIGHT: DamageProfile(
        VARIABLE_FIGHT, "fight", (8, 10, 12, 15, 18, 32), nominal_average=17.5
    ),
}

ENVIRONMENT_PROFILES: Final[dict[str, DamageProfile]] = {
    event_id: DamageProfile(event_id, classify_event(event_id), outcomes, affects_all=affects_all)
    for event_id, outcomes, affects_all in (
        ("TIRED_2", (2,), True),
        ("ACCIDENT_3_5", (3, 4, 5), False),
        ("DISASTER_3_5", (3, 4, 5), True),
    )
}


def parse_fight_profile(event_id: str) -> Optional[DamageProfile]:
    """Build a profile for ``FIGHT_<n>[_<m>...]`` identifiers missing from the tables."""

    if classify_event(event_id) != "fight":
        return None
    try:
        outcomes = tuple(int(part) for part in event_id[len(FIGHT_PREFIX):].split("_"))
    except ValueError:
        return None
    if not outcomes:
        return None
    return DamageProfile(event_id, "fight", outcomes)


def fight_event_ids(table: Mapping[str, float]) -> list[str]:
    """Fight identifiers that can still fire on a draw, in table order."""

    return [
        event_id
        for event_id, probability in table.items()
        if probability > 0.0 and classify_event(event_id) == "fight"
    ]
