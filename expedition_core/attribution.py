"""Spread scenario damage over participants and apply personal reductions."""

from __future__ import annotations

import random
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Final, Optional

from .data import ROPE_IMMUNE_SECTORS
from .damage import round_half_up
from .loadout import expand_abilities, to_identifier
from .models import (
    AppliedEffect,
    AttributionResult,
    DamageHit,
    DamageInstance,
    Participant,
    ParticipantDamage,
)

AFFECTS_ALL_CATEGORIES: Final[frozenset[str]] = frozenset({"tired", "disaster"})
SURVIVAL_CATEGORIES: Final[frozenset[str]] = frozenset({"accident", "disaster", "tired", "fight"})


@dataclass(frozen=True)
class ReductionStep:
    """One personal damage reduction, applied hit by hit."""

    effect: str
    applies: Callable[[Participant], bool]
    reduce: Callable[[DamageHit], int]


def _has_ability(ability: str) -> Callable[[Participant], bool]:
    return lambda participant: ability in expand_abilities(participant.abilities)


def _has_item(item: str) -> Callable[[Participant], bool]:
    return lambda participant: any(to_identifier(carried) == item for carried in participant.items)


def _survival(hit: DamageHit) -> int:
    if hit.category in SURVIVAL_CATEGORIES:
        return max(0, hit.amount - 1)
    return hit.amount


def _armor(hit: DamageHit) -> int:
    if hit.category == "fight":
        return max(0, hit.amount - 1)
    return hit.amount


def _rope(hit: DamageHit) -> int:
    if hit.category == "accident" and hit.draw_type in ROPE_IMMUNE_SECTORS:
        return 0
    return hit.amount


REDUCTION_STEPS: Final[tuple[ReductionStep, ...]] = (
    ReductionStep("SURVIVAL", _has_ability("SURVIVAL"), _survival),
    ReductionStep("PLASTENITE_ARMOR", _has_item("PLASTENITE_ARMOR"), _armor),
    ReductionStep("ROPE", _has_item("ROPE"), _rope),
)


class DamageSpreader:
    """Attribute scenario damage instances to individual participants."""

    def __init__(
        self,
        steps: Sequence[ReductionStep] = REDUCTION_STEPS,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.steps = tuple(steps)
        self.rng = rng if rng is not None else random.Random()

    def _spread_fight(
        self,
        players: list[ParticipantDamage],
        instance: DamageInstance,
        amount: int,
        draw_type: Optional[str],
        rng: random.Random,
    ) -> None:
        # Each point of a fight lands on a random participant.
        landed = [0] * len(players)
        for _ in range(amount):
            landed[rng.randrange(len(players))] += 1
        for player, points in zip(players, landed):
            if points > 0:
                player.hits.append(DamageHit(instance.category, instance.event_id, points, draw_type))

    def spread(
        self,
        instances: Iterable[DamageInstance],
        roster: Sequence[Participant],
        rng: Optional[random.Random] = None,
    ) -> list[ParticipantDamage]:
        """Return raw per-participant hits before any reduction."""

        generator = rng or self.rng
        players = [ParticipantDamage(name=member.name, health=member.health) for member in roster]
        if not players:
            return players

        for instance in instances:
            amount = max(0, round_half_up(instance.damage_per_instance))
            if amount == 0:
                continue
            for position in range(instance.count):
                source = instance.sources[position] if position < len(instance.sources) else None
                draw_type = source.draw_type if source is not None else None
                if instance.category == "fight":
                    self._spread_fight(players, instance, amount, draw_type, generator)
                elif instance.category in AFFECTS_ALL_CATEGORIES:
                    for player in players:
                        player.hits.append(DamageHit(instance.category, instance.event_id, amount, draw_type))
                else:
                    target = players[generator.randrange(len(players))]
                    target.hits.append(DamageHit(instance.category, instance.event_id, amount, draw_type))
        return players

    def reduce(self, players: list[ParticipantDamage], roster: Sequence[Participant]) -> None:
        """Apply the reduction steps in order, annotating every hit they change."""

        for step in self.steps:
            for member, player in zip(roster, players):
                if not step.applies(member):
                    continue
                reduced: list[DamageHit] = []
                for hit in player.hits:
                    after = max(0, step.reduce(hit))
                    if after != hit.amount:
                        player.effects.append(AppliedEffect(step.effect, hit.event_id, hit.amount, after))
                        hit = replace(hit, amount=after)
                    reduced.append(hit)
                player.hits = reduced

    def distribute(
        self,
        instances: Iterable[DamageInstance],
        roster: Sequence[Participant],
        rng: Optional[random.Random] = None,
    ) -> AttributionResult:
        """Spread damage, apply reductions, and report final health per participant.

        Parameters
        ----------
        instances:
            Damage instances of one scenario, from any damage category.
        roster:
            Participants in roster order.
        rng:
            Optional random source overriding the spreader's own.

        Returns
        -------
        AttributionResult
            Per-participant hits, reduction annotations, and ``max(0, health - damage)``.
        """

        players = self.spread(instances, roster, rng)
        self.reduce(players, roster)
        return AttributionResult(participants=players)
