"""Orchestrator: per-request probability cache and fan-out to the domain calculators."""

from __future__ import annotations

import logging
import random
from collections import Counter
from collections.abc import Mapping, Sequence
from typing import Optional

from .attribution import DamageSpreader
from .damage import CombatDamageCalculator, DamageCalculator, EnvironmentalDamageCalculator
from .data import SECTOR_EVENT_WEIGHTS, EventWeights, ProbabilityTable, clone_catalogue
from .events import NEGATIVE_EVENT_CATEGORIES
from .loadout import fighting_power, grenade_count
from .models import (
    SCENARIO_NAMES,
    AttributionResult,
    DamageContext,
    ExpeditionResult,
    Loadout,
    Participant,
    SampledPath,
    SectorBreakdown,
    check_scenario_name,
)
from .modifiers import ModifierPipeline
from .occurrence import OccurrenceCalculator, ProbabilityCache
from .rare_events import NegativeEventCalculator
from .resolver import DamageComparator
from .resources import ResourceCalculator
from .sampler import DamagePathSampler
from .settings import DEFAULT_SETTINGS, EngineSettings
from .weighting import weighted_catalogue

logger = logging.getLogger(__name__)


def calculate_probabilities(weights: Mapping[str, float]) -> ProbabilityTable:
    """Normalise event weights into probabilities; a zero total gives an empty table."""

    positive = {event_id: float(weight) for event_id, weight in weights.items() if weight > 0}
    total = sum(positive.values())
    if total <= 0:
        return {}
    return {event_id: weight / total for event_id, weight in positive.items()}


class ExpeditionEngine:
    """Compute every outcome distribution of one expedition.

    Collaborators are injected so tests can swap any of them; :meth:`default` wires
    the standard set around one :class:`EngineSettings`.
    """

    def __init__(
        self,
        occurrence: OccurrenceCalculator,
        resources: ResourceCalculator,
        combat: CombatDamageCalculator,
        environment: EnvironmentalDamageCalculator,
        resolver: DamageComparator,
        rare_events: NegativeEventCalculator,
        pipeline: ModifierPipeline,
        catalogue: Mapping[str, Mapping[str, float]] = SECTOR_EVENT_WEIGHTS,
        settings: EngineSettings = DEFAULT_SETTINGS,
        sampler: Optional[DamagePathSampler] = None,
        spreader: Optional[DamageSpreader] = None,
    ) -> None:
        self.occurrence = occurrence
        self.resources = resources
        self.combat = combat
        self.environment = environment
        self.resolver = resolver
        self.rare_events = rare_events
        self.pipeline = pipeline
        self.catalogue = clone_catalogue(catalogue)
        self.settings = settings
        self.sampler = sampler if sampler is not None else DamagePathSampler()
        self.spreader = spreader if spreader is not None else DamageSpreader()

    @classmethod
    def default(
        cls,
        settings: EngineSettings = DEFAULT_SETTINGS,
        catalogue: Mapping[str, Mapping[str, float]] = SECTOR_EVENT_WEIGHTS,
    ) -> ExpeditionEngine:
        occurrence = OccurrenceCalculator(settings)
        return cls(
            occurrence=occurrence,
            resources=ResourceCalculator(settings=settings),
            combat=CombatDamageCalculator(occurrence=occurrence, settings=settings),
            environment=EnvironmentalDamageCalculator(occurrence=occurrence, settings=settings),
            resolver=DamageComparator(settings=settings),
            rare_events=NegativeEventCalculator(occurrence, settings=settings),
            pipeline=ModifierPipeline(),
            catalogue=catalogue,
            settings=settings,
        )

    # ---- Probability tables -----------------------------------------------------

    @staticmethod
    def calculate_probabilities(weights: Mapping[str, float]) -> ProbabilityTable:
        return calculate_probabilities(weights)

    def modified_weights(self, draw_type: str, loadout: Loadout) -> EventWeights:
        """Event weights of ``draw_type`` after the loadout's modifiers (empty if unknown)."""

        table = self.catalogue.get(draw_type)
        if table is None:
            return {}
        return self.pipeline.apply(table, draw_type, loadout)

    def get_modified_probabilities(self, draw_type: str, loadout: Loadout) -> ProbabilityTable:
        return calculate_probabilities(self.modified_weights(draw_type, loadout))

    def precompute(self, draw_types: Sequence[str], loadout: Loadout) -> ProbabilityCache:
        """Build the request's probability cache, once per distinct draw type."""

        cache = ProbabilityCache()
        for draw_type in draw_types:
            if draw_type not in cache:
                cache.store(draw_type, self.get_modified_probabilities(draw_type, loadout))
        return cache

    def precompute_weighted(
        self,
        draw_types: Sequence[str],
        movement_budget: object,
        loadout: Loadout,
    ) -> ProbabilityCache:
        """Probability cache scaled by each draw type's visit likelihood.

        Modifiers run first so multiplicative rules act on visited outcomes only.
        """

        modified = {
            draw_type: self.modified_weights(draw_type, loadout)
            for draw_type in dict.fromkeys(draw_types)
            if draw_type in self.catalogue
        }
        scaled = weighted_catalogue(draw_types, movement_budget, loadout, modified, self.settings)
        cache = ProbabilityCache()
        for draw_type in draw_types:
            if draw_type not in cache:
                cache.store(draw_type, calculate_probabilities(scaled.get(draw_type, {})))
        return cache

    # ---- Calculation ------------------------------------------------------------

    def run(
        self,
        draw_types: Sequence[str],
        cache: ProbabilityCache,
        loadout: Loadout,
        roster: Sequence[Participant],
        centauri: bool = False,
    ) -> ExpeditionResult:
        """Run every calculator over an already built probability cache."""

        draws = list(draw_types)
        resources = self.resources.calculate(draws, cache, roster)

        context = DamageContext(
            participant_count=len(roster),
            fighting_power=fighting_power(roster, centauri),
            grenades=grenade_count(roster),
        )
        exclusions = self.resolver.evaluate(draws, cache, context)
        combat = self.combat.calculate(draws, cache, context, exclusions.fight)
        environment = self.environment.calculate(draws, cache, context, exclusions.environment)
        rare_events = self.rare_events.calculate(draws, cache)

        counts = Counter(draws)
        breakdown = {
            draw_type: SectorBreakdown(count=count, probabilities=dict(cache.get(draw_type, {})))
            for draw_type, count in counts.items()
        }
        negative_ids = [event_id for event_ids in NEGATIVE_EVENT_CATEGORIES.values() for event_id in event_ids]
        overall_negative = self.occurrence.calculate_overall(draws, negative_ids, cache, label="negative")

        logger.debug(
            "Expedition of %d draws: fight=%s environment=%s (fighting power %d, %d grenades)",
            len(draws),
            combat.damage,
            environment.damage,
            context.fighting_power,
            context.grenades,
        )
        return ExpeditionResult(
            draw_types=draws,
            loadout=loadout,
            participant_count=context.participant_count,
            fighting_power=context.fighting_power,
            grenades=context.grenades,
            resources=resources,
            combat=combat,
            environment=environment,
            rare_events=rare_events,
            exclusions=exclusions,
            breakdown=breakdown,
            overall_negative=overall_negative,
        )

    def calculate(
        self,
        draw_types: Sequence[str],
        loadout: Loadout,
        roster: Sequence[Participant],
        centauri: bool = False,
    ) -> ExpeditionResult:
        """Compute resources, damage, and rare events for a fully explored expedition.

        Parameters
        ----------
        draw_types:
            Ordered draw identifiers; unknown ones contribute nothing.
        loadout:
            Active modifiers, usually built from ``roster``.
        roster:
            Participants taking part in the expedition.
        centauri:
            Whether blasters get their Centauri base bonus.

        Returns
        -------
        ExpeditionResult
            Resources first, then the resolver's exclusion sets, then combat and
            environmental damage computed with those exclusions, then rare events.
        """

        cache = self.precompute(draw_types, loadout)
        return self.run(draw_types, cache, loadout, roster, centauri)

    def calculate_with_sampling(
        self,
        draw_types: Sequence[str],
        movement_budget: object,
        loadout: Loadout,
        roster: Sequence[Participant],
        centauri: bool = False,
    ) -> ExpeditionResult:
        """Like :meth:`calculate`, weighting each draw by its chance of being visited."""

        cache = self.precompute_weighted(draw_types, movement_budget, loadout)
        return self.run(draw_types, cache, loadout, roster, centauri)

    # ---- Explanation and attribution --------------------------------------------

    def calculator_for(self, category: str) -> DamageCalculator:
        if category == "fight":
            return self.combat
        if category == "environment":
            return self.environment
        raise ValueError(f"Unknown damage category '{category}'")

    def explain(
        self,
        result: ExpeditionResult,
        category: str,
        scenario: str,
        rng: Optional[random.Random] = None,
    ) -> SampledPath:
        """Sample one per-draw story behind a scenario's damage total.

        The target is the reachable total closest to the scenario value (lower value
        on ties). Worst-case explanations respect the resolver's exclusions. The
        path is an explanation of the total, not the events that will happen.
        """

        check_scenario_name(scenario)
        damage = result.damage(category)
        calculator = self.calculator_for(category)
        cache = ProbabilityCache(
            {draw_type: entry.probabilities for draw_type, entry in result.breakdown.items()}
        )
        exclusions = damage.exclusions if scenario == "worst_case" else frozenset()
        draws = calculator.candidates(result.draw_types, cache, damage.context, exclusions)

        reachable = calculator.damage_distribution(draws)
        wanted = damage.damage.value(scenario)
        target = min(reachable, key=lambda value: (abs(value - wanted), value))
        try:
            return self.sampler.sample_path(draws, int(target), rng)
        except ValueError as exc:
            raise ValueError(
                f"Cannot explain {category} {scenario} damage of {wanted}"
            ) from exc

    def distribute_damage(
        self,
        result: ExpeditionResult,
        roster: Sequence[Participant],
        scenario: str,
        rng: Optional[random.Random] = None,
    ) -> AttributionResult:
        """Attribute one scenario's fight and environmental damage to participants."""

        check_scenario_name(scenario)
        instances = [*result.combat.instances[scenario], *result.environment.instances[scenario]]
        return self.spreader.distribute(instances, roster, rng)

    def distribute_all_scenarios(
        self,
        result: ExpeditionResult,
        roster: Sequence[Participant],
        rng: Optional[random.Random] = None,
    ) -> dict[str, AttributionResult]:
        return {
            scenario: self.distribute_damage(result, roster, scenario, rng)
            for scenario in SCENARIO_NAMES
        }
