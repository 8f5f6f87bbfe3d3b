"""Decide, per draw, whether the fight or the environmental hit is the worse outcome."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Optional

from .events import (
    ENVIRONMENT_PROFILES,
    FIGHT_PROFILES,
    DamageProfile,
    fight_event_ids,
    parse_fight_profile,
)
from .models import DamageContext, ExclusionDecision, ExclusionSets
from .occurrence import ProbabilityCache
from .settings import DEFAULT_SETTINGS, EngineSettings


@dataclass(frozen=True)
class OutcomeScore:
    """Damage summary used to rank one candidate outcome of a draw."""

    total_damage: float
    max_damage_to_one: float
    score: float
    grenade_used: bool = False


class DamageComparator:
    """Mutual-exclusivity resolver between the combat and environmental calculators.

    A draw yields at most one event, yet both damage calculators would otherwise count
    their own worst event on it. For every draw able to produce both kinds, the worse
    outcome wins and the losing category receives the draw in its exclusion set.
    """

    def __init__(
        self,
        fight_profiles: Mapping[str, DamageProfile] = FIGHT_PROFILES,
        event_profiles: Mapping[str, DamageProfile] = ENVIRONMENT_PROFILES,
        settings: EngineSettings = DEFAULT_SETTINGS,
    ) -> None:
        self.fight_profiles = dict(fight_profiles)
        self.event_profiles = dict(event_profiles)
        self.settings = settings

    def worst_fight_base(self, table: Mapping[str, float]) -> Optional[int]:
        """Highest base damage among the fights still possible on a draw."""

        bases = []
        for event_id in fight_event_ids(table):
            profile = self.fight_profiles.get(event_id) or parse_fight_profile(event_id)
            if profile is not None:
                bases.append(profile.maximum)
        return max(bases) if bases else None

    def worst_event_profile(self, table: Mapping[str, float], participant_count: int) -> Optional[DamageProfile]:
        """The environmental event with the highest total worst-case damage on a draw."""

        worst: Optional[DamageProfile] = None
        worst_score = -1.0
        for event_id, probability in table.items():
            profile = self.event_profiles.get(event_id)
            if probability <= 0.0 or profile is None:
                continue
            score = self.score_event(profile, participant_count).score
            if score > worst_score:
                worst, worst_score = profile, score
        return worst

    def score_fight(
        self,
        base_damage: int,
        participant_count: int,
        fighting_power: int,
        grenades_available: int,
    ) -> OutcomeScore:
        """Score a fight, spending one grenade when it lowers the damage."""

        without_grenade = max(0, base_damage - fighting_power)
        grenade_used = False
        total = without_grenade
        if grenades_available > 0:
            with_grenade = max(0, without_grenade - self.settings.grenade_power)
            if with_grenade < without_grenade:
                total = with_grenade
                grenade_used = True
        # Fight damage is split across the group.
        max_to_one = math.ceil(total / participant_count) if participant_count > 0 else total
        return OutcomeScore(total, max_to_one, self.settings.score(total, max_to_one), grenade_used)

    def score_event(self, profile: DamageProfile, participant_count: int) -> OutcomeScore:
        """Score an environmental event at its maximum damage."""

        worst = profile.maximum
        total = worst * participant_count if profile.affects_all else worst
        return OutcomeScore(total, worst, self.settings.score(total, worst))

    def evaluate(
        self,
        draw_types: Sequence[str],
        cache: ProbabilityCache,
        context: DamageContext,
    ) -> ExclusionSets:
        """Return the fight and environment exclusion sets, keyed by draw index.

        Parameters
        ----------
        draw_types:
            Ordered draw identifiers.
        cache:
            Modified probability tables of the request.
        context:
            Participant count, fighting power, and the expedition's grenade pool.

        Returns
        -------
        ExclusionSets
            Draws are visited from the most dangerous fight down (ties keep draw
            order) so grenades go to the biggest fights first; a grenade is only spent
            when the fight wins its draw. On equal scores the environmental event wins.
        """

        rows: list[tuple[int, int, str, Optional[int], Optional[DamageProfile]]] = []
        for index, draw_type in enumerate(draw_types):
            table = cache.get(draw_type, {})
            fight_base = self.worst_fight_base(table)
            event_profile = self.worst_event_profile(table, context.participant_count)
            if fight_base is None and event_profile is None:
                continue
            rows.append((fight_base or 0, index, draw_type, fight_base, event_profile))
        rows.sort(key=lambda row: (-row[0], row[1]))

        grenades = max(0, context.grenades)
        fight_exclusions: set[int] = set()
        event_exclusions: set[int] = set()
        decisions: list[ExclusionDecision] = []
        for _, index, draw_type, fight_base, event_profile in rows:
            fight_score = (
                self.score_fight(fight_base, context.participant_count, context.fighting_power, grenades)
                if fight_base is not None
                else None
            )
            event_score = (
                self.score_event(event_profile, context.participant_count)
                if event_profile is not None
                else None
            )
            if fight_score is None or event_score is None:
                # Only one category can hit this draw; nothing to exclude.
                if fight_score is not None and fight_score.grenade_used:
                    grenades -= 1
                continue

            if fight_score.score > event_score.score:
                event_exclusions.add(index)
                winner = "fight"
                if fight_score.grenade_used:
                    grenades -= 1
            else:
                fight_exclusions.add(index)
                winner = "environment"
            decisions.append(
                ExclusionDecision(
                    index=index,
                    draw_type=draw_type,
                    winner=winner,
                    fight_score=fight_score.score,
                    event_score=event_score.score,
                    grenade_used=winner == "fight" and fight_score.grenade_used,
                )
            )

        return ExclusionSets(
            fight=frozenset(fight_exclusions),
            environment=frozenset(event_exclusions),
            decisions=decisions,
        )
