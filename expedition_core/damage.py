"""Combat and environmental damage calculators sharing one occurrence-to-damage pipeline."""

from __future__ import annotations

import logging
import math
from collections.abc import Collection, Mapping, Sequence
from dataclasses import replace
from typing import Optional

from .data import ProbabilityTable
from .distribution import check_distribution, convolve_all
from .events import ENVIRONMENT_PROFILES, FIGHT_PROFILES, DamageProfile, parse_fight_profile
from .models import (
    SCENARIO_NAMES,
    DamageContext,
    DamageInstance,
    DamageResult,
    DrawCandidates,
    DrawOutcome,
    DrawSource,
    OccurrenceResult,
    ScenarioQuad,
)
from .occurrence import OccurrenceCalculator, ProbabilityCache
from .settings import DEFAULT_SETTINGS, EngineSettings

logger = logging.getLogger(__name__)

QUIET_EPSILON = 1e-12


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negative input."""

    return int(math.floor(value + 0.5))


class DamageCalculator:
    """Turn event occurrences of one damage category into scenario damage.

    Optimist and average damage are computed per event type as
    ``round(occurrences) x damage per event x multiplier``. Pessimist and worst case
    pick, for each draw, its single most damaging candidate and consume draws in
    descending probability (ties keep draw order) until the combined occurrence count
    of the scenario is reached, so no draw is counted twice. The arithmetic totals
    are capped by the next scenario up so optimist <= average <= pessimist holds.
    """

    category = "damage"

    def __init__(
        self,
        profiles: Mapping[str, DamageProfile],
        occurrence: Optional[OccurrenceCalculator] = None,
        settings: EngineSettings = DEFAULT_SETTINGS,
    ) -> None:
        self.profiles = dict(profiles)
        self.occurrence = occurrence if occurrence is not None else OccurrenceCalculator(settings)
        self.settings = settings

    # ---- Category hooks ---------------------------------------------------------

    def profile_for(self, event_id: str) -> Optional[DamageProfile]:
        return self.profiles.get(event_id)

    def damage_per_event(self, profile: DamageProfile, scenario: str, context: DamageContext) -> float:
        """Per-participant damage of one occurrence in ``scenario``."""

        return profile.per_event(scenario)

    def outcome_damage(self, profile: DamageProfile, value: int, context: DamageContext) -> int:
        """Per-participant damage of one concrete outcome of ``profile``."""

        return value

    def mitigate(self, instances: list[DamageInstance], context: DamageContext) -> list[DamageInstance]:
        return instances

    # ---- Pipeline ---------------------------------------------------------------

    def event_ids(self, draw_types: Sequence[str], cache: ProbabilityCache) -> list[str]:
        """Events of this category that can fire on at least one draw, in first-seen order."""

        seen: dict[str, None] = {}
        for draw_type in draw_types:
            for event_id, probability in cache.get(draw_type, {}).items():
                if probability > 0.0 and self.profile_for(event_id) is not None:
                    seen.setdefault(event_id)
        return list(seen)

    def _arithmetic_instances(
        self,
        scenario: str,
        occurrence: Mapping[str, OccurrenceResult],
        context: DamageContext,
    ) -> list[DamageInstance]:
        instances: list[DamageInstance] = []
        for event_id, result in occurrence.items():
            count = round_half_up(result.scenarios.value(scenario))
            profile = self.profile_for(event_id)
            if count <= 0 or profile is None:
                continue
            likely_sources = sorted(result.sources, key=lambda source: (-source.probability, source.index))
            instances.append(
                DamageInstance(
                    category=profile.category,
                    event_id=event_id,
                    count=count,
                    damage_per_instance=self.damage_per_event(profile, scenario, context),
                    sources=likely_sources[:count],
                    multiplier=profile.multiplier(context.participant_count),
                )
            )
        return instances

    def _best_candidate(
        self,
        table: ProbabilityTable,
        scenario: str,
        context: DamageContext,
    ) -> Optional[tuple[float, str, DamageProfile, float]]:
        """Return ``(draw probability, event, profile, event probability)`` of the worst event."""

        best: Optional[tuple[str, DamageProfile, float]] = None
        best_damage = -1.0
        draw_probability = 0.0
        for event_id, probability in table.items():
            profile = self.profile_for(event_id)
            if probability <= 0.0 or profile is None:
                continue
            draw_probability += probability
            damage = self.damage_per_event(profile, scenario, context) * profile.multiplier(
                context.participant_count
            )
            if damage > best_damage:
                best_damage = damage
                best = (event_id, profile, probability)
        if best is None:
            return None
        return (draw_probability, *best)

    def _greedy_instances(
        self,
        scenario: str,
        draw_types: Sequence[str],
        cache: ProbabilityCache,
        context: DamageContext,
        target_count: int,
        exclusions: Collection[int] = (),
    ) -> list[DamageInstance]:
        picks: list[tuple[float, int, str, str, DamageProfile, float]] = []
        for index, draw_type in enumerate(draw_types):
            candidate = self._best_candidate(cache.get(draw_type, {}), scenario, context)
            if candidate is None:
                continue
            draw_probability, event_id, profile, event_probability = candidate
            picks.append((draw_probability, index, draw_type, event_id, profile, event_probability))
        picks.sort(key=lambda pick: (-pick[0], pick[1]))

        grouped: dict[str, DamageInstance] = {}
        for _, index, draw_type, event_id, profile, event_probability in picks[:target_count]:
            if index in exclusions:
                continue
            instance = grouped.get(event_id)
            if instance is None:
                instance = DamageInstance(
                    category=profile.category,
                    event_id=event_id,
                    count=0,
                    damage_per_instance=self.damage_per_event(profile, scenario, context),
                    multiplier=profile.multiplier(context.participant_count),
                )
                grouped[event_id] = instance
            instance.count += 1
            instance.sources.append(DrawSource(index, draw_type, event_probability))
        return list(grouped.values())

    def candidates(
        self,
        draw_types: Sequence[str],
        cache: ProbabilityCache,
        context: DamageContext,
        exclusions: Collection[int] = (),
    ) -> list[DrawCandidates]:
        """Per-draw outcomes with integer total damage, for explanation sampling.

        Variable-damage events are split into their equally likely concrete values and
        every draw carries an explicit no-event outcome. Excluded draws only carry the
        no-event outcome.
        """

        draws: list[DrawCandidates] = []
        for index, draw_type in enumerate(draw_types):
            outcomes: list[DrawOutcome] = []
            if index not in exclusions:
                for event_id, probability in cache.get(draw_type, {}).items():
                    profile = self.profile_for(event_id)
                    if probability <= 0.0 or profile is None:
                        continue
                    share = probability / len(profile.outcomes)
                    multiplier = profile.multiplier(context.participant_count)
                    for value in profile.outcomes:
                        damage = self.outcome_damage(profile, value, context) * multiplier
                        outcomes.append(DrawOutcome(event_id, damage, share))
            event_mass = sum(outcome.probability for outcome in outcomes)
            nothing = max(0.0, 1.0 - event_mass)
            if nothing > QUIET_EPSILON or not outcomes:
                outcomes.append(DrawOutcome(None, 0, nothing if outcomes else 1.0))
            draws.append(DrawCandidates(index, draw_type, outcomes))
        return draws

    def damage_distribution(self, draws: Sequence[DrawCandidates]) -> dict[float, float]:
        """Convolve per-draw damage outcomes into the total damage distribution."""

        per_draw: list[dict[float, float]] = []
        for draw in draws:
            table: dict[float, float] = {}
            for outcome in draw.outcomes:
                table[outcome.damage] = table.get(outcome.damage, 0.0) + outcome.probability
            per_draw.append(table)
        distribution = convolve_all(per_draw)
        check_distribution(distribution, self.settings.probability_tolerance)
        return distribution

    def calculate(
        self,
        draw_types: Sequence[str],
        cache: ProbabilityCache,
        context: DamageContext,
        exclusions: Collection[int] = (),
    ) -> DamageResult:
        """Compute occurrence statistics and scenario damage for this category.

        Parameters
        ----------
        draw_types:
            Ordered draw identifiers.
        cache:
            Modified probability tables shared by every calculator of the request.
        context:
            Participant count, fighting power, and grenades available.
        exclusions:
            Draw indices whose worst-case contribution is taken by another category.

        Returns
        -------
        DamageResult
            Scenario damage whose probabilities come from the combined occurrence
            distribution, so they do not depend on the roster or its equipment.
        """

        event_ids = self.event_ids(draw_types, cache)
        occurrence = {
            event_id: self.occurrence.calculate_for_type(draw_types, event_id, cache)
            for event_id in event_ids
        }
        combined = self.occurrence.combine(occurrence.values(), label=self.category)

        instances = {
            "optimist": self._arithmetic_instances("optimist", occurrence, context),
            "average": self._arithmetic_instances("average", occurrence, context),
            "pessimist": self._greedy_instances(
                "pessimist", draw_types, cache, context, int(combined.scenarios.pessimist)
            ),
            "worst_case": self._greedy_instances(
                "worst_case",
                draw_types,
                cache,
                context,
                int(combined.scenarios.worst_case),
                exclusions,
            ),
        }
        instances = {scenario: self.mitigate(found, context) for scenario, found in instances.items()}
        values = {
            scenario: sum(instance.total_damage for instance in instances[scenario])
            for scenario in SCENARIO_NAMES
        }
        # Per-type arithmetic may count one draw once per candidate event.
        for lower, upper in (("average", "pessimist"), ("optimist", "average")):
            if values[lower] > values[upper]:
                instances[lower] = [
                    replace(instance, sources=list(instance.sources)) for instance in instances[upper]
                ]
                values[lower] = values[upper]
        occurrence_quad = combined.scenarios
        damage = ScenarioQuad(
            optimist=values["optimist"],
            average=values["average"],
            pessimist=values["pessimist"],
            worst_case=values["worst_case"],
            optimist_probability=occurrence_quad.optimist_probability,
            average_probability=occurrence_quad.average_probability,
            pessimist_probability=occurrence_quad.pessimist_probability,
            worst_case_probability=occurrence_quad.worst_case_probability,
        )
        distribution = self.damage_distribution(self.candidates(draw_types, cache, context))

        logger.debug(
            "%s damage: optimist=%s average=%s pessimist=%s worst=%s (excluded draws: %s)",
            self.category,
            damage.optimist,
            damage.average,
            damage.pessimist,
            damage.worst_case,
            sorted(exclusions),
        )
        return DamageResult(
            category=self.category,
            occurrence=occurrence,
            combined=combined,
            damage=damage,
            instances=instances,
            distribution=distribution,
            exclusions=frozenset(exclusions),
            context=context,
        )


def apply_grenades(instances: list[DamageInstance], grenades: int, power: int) -> list[DamageInstance]:
    """Spend grenades on the most damaging fights, one at a time while each still helps."""

    if grenades <= 0 or not instances:
        return instances

    fights: list[list] = []
    for instance in instances:
        for position in range(instance.count):
            source = instance.sources[position] if position < len(instance.sources) else None
            fights.append([instance.damage_per_instance, instance, source])

    remaining = grenades
    while remaining > 0 and fights:
        target = max(fights, key=lambda fight: fight[0])
        if target[0] <= 0:
            break
        target[0] = max(0, target[0] - power)
        remaining -= 1

    grouped: dict[tuple[str, float], DamageInstance] = {}
    for damage, instance, source in fights:
        key = (instance.event_id, damage)
        regrouped = grouped.get(key)
        if regrouped is None:
            regrouped = DamageInstance(
                category=instance.category,
                event_id=instance.event_id,
                count=0,
                damage_per_instance=damage,
                multiplier=instance.multiplier,
            )
            grouped[key] = regrouped
        regrouped.count += 1
        if source is not None:
            regrouped.sources.append(source)
    return list(grouped.values())


class CombatDamageCalculator(DamageCalculator):
    """Fight damage after fighting power and grenades."""

    category = "fight"

    def __init__(
        self,
        profiles: Mapping[str, DamageProfile] = FIGHT_PROFILES,
        occurrence: Optional[OccurrenceCalculator] = None,
        settings: EngineSettings = DEFAULT_SETTINGS,
    ) -> None:
        super().__init__(profiles, occurrence, settings)

    def profile_for(self, event_id: str) -> Optional[DamageProfile]:
        profile = self.profiles.get(event_id)
        if profile is None:
            profile = parse_fight_profile(event_id)
        return profile

    def damage_per_event(self, profile: DamageProfile, scenario: str, context: DamageContext) -> float:
        return max(0, profile.per_event(scenario) - context.fighting_power)

    def outcome_damage(self, profile: DamageProfile, value: int, context: DamageContext) -> int:
        return max(0, value - context.fighting_power)

    def mitigate(self, instances: list[DamageInstance], context: DamageContext) -> list[DamageInstance]:
        return apply_grenades(instances, context.grenades, self.settings.grenade_power)


class EnvironmentalDamageCalculator(DamageCalculator):
    """Damage from tiredness, accidents, and disasters."""

    category = "environment"

    def __init__(
        self,
        profiles: Mapping[str, DamageProfile] = ENVIRONMENT_PROFILES,
        occurrence: Optional[OccurrenceCalculator] = None,
        settings: EngineSettings = DEFAULT_SETTINGS,
    ) -> None:
        super().__init__(profiles, occurrence, settings)
