"""Static sector catalogue, effect descriptors, and shared type aliases."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Final

Distribution = dict[float, float]
EventWeights = dict[str, float]
ProbabilityTable = dict[str, float]
SectorCatalogue = dict[str, EventWeights]

MAX_SECTORS: Final[int] = 20
MAX_PLAYERS: Final[int] = 8
DEFAULT_HEALTH: Final[int] = 14

NOTHING_EVENT: Final[str] = "NOTHING_TO_REPORT"
NOT_VISITED_EVENT: Final[str] = "__NOT_VISITED__"
LANDING: Final[str] = "LANDING"
LOST: Final[str] = "LOST"
OXYGEN_SECTOR: Final[str] = "OXYGEN"

SECTOR_EVENT_WEIGHTS: Final[SectorCatalogue] = {
    "FOREST": {"HARVEST_2": 4, "AGAIN": 3, "DISEASE": 2, "PLAYER_LOST": 1},
    "MOUNTAIN": {"ACCIDENT_3_5": 4, "FUEL_1": 3, "TIRED_2": 2, "HARVEST_1": 1},
    "SWAMP": {"DISEASE": 4, "HARVEST_2": 3, "TIRED_2": 2, "NOTHING_TO_REPORT": 1},
    "DESERT": {"NOTHING_TO_REPORT": 5, "TIRED_2": 4, "AGAIN": 1},
    "OCEAN": {"NOTHING_TO_REPORT": 7, "PROVISION_3": 2, "PLAYER_LOST": 1},
    "CAVE": {"FUEL_2": 4, "ACCIDENT_3_5": 3, "AGAIN": 2, "ARTEFACT": 1},
    "RUINS": {"ARTEFACT": 4, "NOTHING_TO_REPORT": 3, "FIGHT_15": 2, "ACCIDENT_3_5": 1},
    "WRECK": {"ARTEFACT": 4, "FUEL_3": 3, "NOTHING_TO_REPORT": 2, "FIGHT_8_10_12_15_18_32": 1},
    "FRUIT_TREES": {"HARVEST_3": 4, "HARVEST_1": 3, "NOTHING_TO_REPORT": 3},
    "CRISTAL_FIELD": {"MUSH_TRAP": 4, "STARMAP": 3, "FIGHT_18": 2, "PLAYER_LOST": 1},
    "RUMINANT": {"PROVISION_4": 4, "PROVISION_2": 3, "ACCIDENT_3_5": 2, "FIGHT_8": 1},
    "PREDATOR": {"FIGHT_12": 4, "ACCIDENT_3_5": 3, "NOTHING_TO_REPORT": 2, "PROVISION_3": 1},
    "INTELLIGENT": {"FIGHT_12": 4, "PROVISION_2": 3, "ARTEFACT": 2, "ITEM_LOST": 1},
    "INSECT": {"ACCIDENT_3_5": 4, "DISEASE": 3, "PROVISION_1": 2, "FIGHT_10": 1},
    "MANKAROG": {"KILL_RANDOM": 4, "FIGHT_32": 3, "BACK": 2, "ARTEFACT": 1},
    "COLD": {"NOTHING_TO_REPORT": 4, "TIRED_2": 3, "PLAYER_LOST": 2, "ACCIDENT_3_5": 1},
    "HOT": {"TIRED_2": 4, "NOTHING_TO_REPORT": 3, "HARVEST_2": 2, "ACCIDENT_3_5": 1},
    "STRONG_WIND": {"NOTHING_TO_REPORT": 6, "TIRED_2": 3, "ITEM_LOST": 1},
    "SEISMIC_ACTIVITY": {"NOTHING_TO_REPORT": 4, "BACK": 3, "ACCIDENT_3_5": 2, "KILL_RANDOM": 1},
    "VOLCANIC_ACTIVITY": {"NOTHING_TO_REPORT": 7, "BACK": 2, "KILL_ALL": 1},
    "HYDROCARBON": {"FUEL_3": 4, "FUEL_4": 3, "FUEL_5": 2, "FUEL_6": 1},
    "OXYGEN": {"OXYGEN_24": 4, "OXYGEN_16": 3, "OXYGEN_8": 2, "NOTHING_TO_REPORT": 1},
    "LANDING": {"NOTHING_TO_REPORT": 4, "TIRED_2": 3, "ACCIDENT_3_5": 2, "DISASTER_3_5": 1},
    "LOST": {"FIND_LOST": 7, "AGAIN": 2, "KILL_LOST": 1},
}

SECTOR_EXPLORATION_WEIGHTS: Final[dict[str, float]] = {
    "CRISTAL_FIELD": 10,
    "PREDATOR": 6,
    "MANKAROG": 6,
    "VOLCANIC_ACTIVITY": 6,
    "LANDING": 0,
}

EVENT_DESCRIPTIONS: Final[dict[str, str]] = {
    "NOTHING_TO_REPORT": "Nothing to Report",
    "TIRED_2": "Tired (-2 HP to all players)",
    "ACCIDENT_3_5": "Accident (3-5 damage to one player)",
    "DISASTER_3_5": "Disaster (3-5 damage to all players)",
    "HARVEST_1": "Harvest +1 Alien Fruit",
    "HARVEST_2": "Harvest +2 Alien Fruits",
    "HARVEST_3": "Harvest +3 Alien Fruits",
    "AGAIN": "Sector Unexplored (reroll needed)",
    "DISEASE": "Disease",
    "PLAYER_LOST": "Player Lost (adds Lost event)",
    "FUEL_1": "Fuel +1",
    "FUEL_2": "Fuel +2",
    "FUEL_3": "Fuel +3",
    "FUEL_4": "Fuel +4",
    "FUEL_5": "Fuel +5",
    "FUEL_6": "Fuel +6",
    "PROVISION_1": "Provision +1 Steak",
    "PROVISION_2": "Provision +2 Steaks",
    "PROVISION_3": "Provision +3 Steaks",
    "PROVISION_4": "Provision +4 Steaks",
    "ARTEFACT": "Artefact Found",
    "FIGHT_8": "Fight (8 damage split among players)",
    "FIGHT_10": "Fight (10 damage split among players)",
    "FIGHT_12": "Fight (12 damage split among players)",
    "FIGHT_15": "Fight (15 damage split among players)",
    "FIGHT_18": "Fight (18 damage split among players)",
    "FIGHT_32": "Fight (32 damage split among players)",
    "FIGHT_8_10_12_15_18_32": "Fight (8-32 damage split among players)",
    "ITEM_LOST": "Item Lost",
    "KILL_RANDOM": "Kill Random Player",
    "BACK": "Go Back (forced retreat)",
    "KILL_ALL": "Kill All Players",
    "FIND_LOST": "Find Lost Player",
    "KILL_LOST": "Kill Lost Player",
    "MUSH_TRAP": "Mush Trap",
    "STARMAP": "Starmap Found",
    "OXYGEN_8": "Oxygen +8",
    "OXYGEN_16": "Oxygen +16",
    "OXYGEN_24": "Oxygen +24",
}

# ---- Effect descriptors -------------------------------------------------------

ITEM_COMBAT_POWER: Final[dict[str, int]] = {
    "BLASTER": 1,
    "KNIFE": 1,
    "MACHINE_GUN": 2,
    "MISSILE_LAUNCHER": 3,
    "NATAMY_RIFFLE": 1,
    "SNIPER_RIFFLE": 1,
}
GUN_ITEMS: Final[frozenset[str]] = frozenset(
    {"BLASTER", "MACHINE_GUN", "MISSILE_LAUNCHER", "NATAMY_RIFFLE", "SNIPER_RIFFLE"}
)
CENTAURI_BLASTER_BONUS: Final[int] = 1
GRENADE: Final[str] = "GRENADE"

ITEM_SECTOR_DISCOVERY_BONUS: Final[dict[str, dict[str, float]]] = {
    "ECHO_SOUNDER": {"HYDROCARBON": 4},
    "HEAT_SEEKER": {
        "RUMINANT": 4,
        "MANKAROG": 4,
        "INSECT": 4,
        "PREDATOR": 4,
        "INTELLIGENT": 4,
    },
}

ROPE_IMMUNE_SECTORS: Final[frozenset[str]] = frozenset({"SEISMIC_ACTIVITY", "CAVE", "MOUNTAIN"})

# SKILLFUL grants the diplomacy effect on top of its own.
ABILITY_ALIASES: Final[dict[str, tuple[str, ...]]] = {
    "SKILLFUL": ("DIPLOMACY",),
}


def sector_exploration_weight(draw_type: str, default: float = 8.0) -> float:
    """Return the relative exploration weight of a draw type."""

    return float(SECTOR_EXPLORATION_WEIGHTS.get(draw_type, default))


def event_label(event_id: str) -> str:
    return EVENT_DESCRIPTIONS.get(event_id, event_id)


def clone_catalogue(catalogue: Mapping[str, Mapping[str, float]]) -> SectorCatalogue:
    """Return a deep copy of the supplied catalogue with float weights."""

    return {
        draw_type: {event: float(weight) for event, weight in events.items()}
        for draw_type, events in catalogue.items()
    }


def normalize_sector_catalogue(raw_data: Mapping[object, object]) -> SectorCatalogue:
    """Coerce JSON-compatible input into a draw type to event weights mapping."""

    catalogue: SectorCatalogue = {}
    for draw_type, events in raw_data.items():
        if not isinstance(draw_type, str) or not isinstance(events, Mapping):
            continue
        parsed: EventWeights = {}
        for event, weight in events.items():
            if not isinstance(event, str):
                continue
            try:
                value = float(weight)
            except (TypeError, ValueError):
                continue
            if value != value or value < 0:
                continue
            parsed[event] = value
        if parsed:
            catalogue[draw_type.upper()] = parsed
    return catalogue


def load_sector_catalogue(path: str | Path | None = None) -> SectorCatalogue:
    """Load the sector catalogue, merging a user JSON file over the built-in tables.

    Parameters
    ----------
    path:
        Optional JSON file mapping draw type names to ``{event: weight}`` objects.
        Missing or malformed files leave the built-in catalogue untouched.
    """

    catalogue = clone_catalogue(SECTOR_EVENT_WEIGHTS)
    if not path:
        return catalogue

    try:
        raw_data = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        return catalogue
    except (OSError, json.JSONDecodeError):
        return catalogue

    if not isinstance(raw_data, Mapping):
        return catalogue

    catalogue.update(normalize_sector_catalogue(raw_data))
    return catalogue
