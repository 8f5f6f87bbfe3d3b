"""Dataclasses shared across the calculators and the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final, Optional

from .data import DEFAULT_HEALTH, Distribution, ProbabilityTable

SCENARIO_NAMES: Final[tuple[str, ...]] = ("optimist", "average", "pessimist", "worst_case")


def check_scenario_name(name: str) -> str:
    """Return ``name`` if it designates a scenario, else raise ``ValueError``."""

    if name not in SCENARIO_NAMES:
        raise ValueError(f"Unknown scenario '{name}', expected one of {SCENARIO_NAMES}")
    return name


@dataclass(frozen=True)
class Participant:
    """One expedition member with health, skills, and carried items."""

    name: str
    health: int = DEFAULT_HEALTH
    abilities: frozenset[str] = frozenset()
    items: tuple[str, ...] = ()


@dataclass(frozen=True)
class Loadout:
    """Active modifier identifiers for one computation, grouped by category."""

    abilities: frozenset[str] = frozenset()
    items: frozenset[str] = frozenset()
    projects: frozenset[str] = frozenset()


@dataclass(frozen=True)
class ScenarioQuad:
    """Four representative values of one distribution with their bucket masses."""

    optimist: float
    average: float
    pessimist: float
    worst_case: float
    optimist_probability: float
    average_probability: float
    pessimist_probability: float
    worst_case_probability: float

    def value(self, scenario: str) -> float:
        return getattr(self, check_scenario_name(scenario))

    def probability(self, scenario: str) -> float:
        return getattr(self, f"{check_scenario_name(scenario)}_probability")


@dataclass(frozen=True)
class TailScenarios:
    """Conditional tail expectations for sparse event counts."""

    optimist: float
    average: float
    pessimist: float
    worst_case: float


@dataclass(frozen=True)
class DrawSource:
    """A draw that can produce a given event, with its probability."""

    index: int
    draw_type: str
    probability: float


@dataclass
class OccurrenceResult:
    """Occurrence distribution of one event (or event group) across the draws."""

    event_id: str
    scenarios: ScenarioQuad
    distribution: Distribution
    max_possible: int
    sources: list[DrawSource] = field(default_factory=list)


@dataclass(frozen=True)
class DamageContext:
    """Roster figures that turn event occurrences into damage."""

    participant_count: int = 0
    fighting_power: int = 0
    grenades: int = 0


@dataclass
class DamageInstance:
    """Descriptive damage record consumed by the attribution step.

    ``sources`` holds one draw per counted instance. Totals reported to callers come
    from the scenario quad, not from these records.
    """

    category: str
    event_id: str
    count: int
    damage_per_instance: float
    sources: list[DrawSource] = field(default_factory=list)
    multiplier: int = 1

    @property
    def total_damage(self) -> float:
        return self.count * self.damage_per_instance * self.multiplier


@dataclass
class DamageResult:
    """Occurrence statistics and scenario damage for one damage category."""

    category: str
    occurrence: dict[str, OccurrenceResult]
    combined: OccurrenceResult
    damage: ScenarioQuad
    instances: dict[str, list[DamageInstance]]
    distribution: Distribution
    exclusions: frozenset[int] = frozenset()
    context: DamageContext = field(default_factory=DamageContext)


@dataclass
class ResourceResult:
    """Yield distribution and scenarios for one resource kind."""

    resource: str
    scenarios: ScenarioQuad
    expected: float
    distribution: Distribution


@dataclass
class RareEventResult:
    """Tail statistics for one sparse negative event category."""

    category: str
    tail: TailScenarios
    distribution: Distribution
    sources: list[DrawSource] = field(default_factory=list)


@dataclass(frozen=True)
class ExclusionDecision:
    """Outcome of the per-draw comparison between a fight and an environmental hit."""

    index: int
    draw_type: str
    winner: str
    fight_score: float
    event_score: float
    grenade_used: bool = False


@dataclass
class ExclusionSets:
    """Draw indices each damage calculator must ignore in its worst case."""

    fight: frozenset[int] = frozenset()
    environment: frozenset[int] = frozenset()
    decisions: list[ExclusionDecision] = field(default_factory=list)


@dataclass(frozen=True)
class DrawOutcome:
    """One possible result of a draw for explanation sampling."""

    event_id: Optional[str]
    damage: int
    probability: float


@dataclass
class DrawCandidates:
    """All outcomes of one draw, including the explicit no-event outcome."""

    index: int
    draw_type: str
    outcomes: list[DrawOutcome]


@dataclass(frozen=True)
class PathStep:
    """Outcome chosen for a single draw by the explanation sampler."""

    index: int
    draw_type: str
    event_id: Optional[str]
    damage: int


@dataclass
class SampledPath:
    """One per-draw assignment consistent with an aggregate target."""

    target: int
    sources: list[PathStep]

    @property
    def total(self) -> int:
        return sum(step.damage for step in self.sources)


@dataclass(frozen=True)
class DamageHit:
    """Damage landed on a participant by one event instance."""

    category: str
    event_id: str
    amount: int
    draw_type: Optional[str] = None


@dataclass(frozen=True)
class AppliedEffect:
    """Annotation recording a reduction effect and the damage it removed."""

    effect: str
    event_id: str
    before: int
    after: int


@dataclass
class ParticipantDamage:
    """Attributed damage and resulting health for one participant."""

    name: str
    health: int
    hits: list[DamageHit] = field(default_factory=list)
    effects: list[AppliedEffect] = field(default_factory=list)

    @property
    def damage(self) -> int:
        return sum(hit.amount for hit in self.hits)

    @property
    def final_health(self) -> int:
        return max(0, self.health - self.damage)


@dataclass
class AttributionResult:
    """Per-participant damage for one scenario."""

    participants: list[ParticipantDamage]

    @property
    def total_damage(self) -> int:
        return sum(player.damage for player in self.participants)

    def final_health(self) -> dict[str, int]:
        return {player.name: player.final_health for player in self.participants}


@dataclass
class SectorBreakdown:
    """How often a draw type appears and its modified event probabilities."""

    count: int
    probabilities: ProbabilityTable


@dataclass
class ExpeditionResult:
    """Everything computed for one expedition request."""

    draw_types: list[str]
    loadout: Loadout
    participant_count: int
    fighting_power: int
    grenades: int
    resources: dict[str, ResourceResult]
    combat: DamageResult
    environment: DamageResult
    rare_events: dict[str, RareEventResult]
    exclusions: ExclusionSets
    breakdown: dict[str, SectorBreakdown]
    overall_negative: Optional[OccurrenceResult] = None

    def damage(self, category: str) -> DamageResult:
        if category == "fight":
            return self.combat
        if category == "environment":
            return self.environment
        raise ValueError(f"Unknown damage category '{category}'")
