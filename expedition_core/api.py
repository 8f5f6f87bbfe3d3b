"""High-level entry points used by callers and front-ends."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from time import perf_counter
from typing import Optional

from .attribution import DamageSpreader
from .data import LANDING, MAX_SECTORS
from .engine import ExpeditionEngine
from .loadout import build_loadout, clamp_roster, participating_roster, to_identifier
from .models import (
    AttributionResult,
    DamageInstance,
    DrawCandidates,
    ExpeditionResult,
    Loadout,
    Participant,
    SampledPath,
)
from .sampler import DamagePathSampler
from .settings import DEFAULT_SETTINGS, EngineSettings
from .weighting import clamp_budget

logger = logging.getLogger(__name__)


@dataclass
class ExpeditionComputationResult:
    """Bundle containing the engine result and the inputs it was computed from."""

    result: ExpeditionResult
    roster: list[Participant]
    loadout: Loadout
    compute_seconds: float
    sampled: bool = False
    movement_budget: Optional[float] = None
    left_behind: list[str] = field(default_factory=list)


def normalize_draw_types(draw_types: Iterable[str]) -> list[str]:
    """Upper-case draw identifiers, dropping blanks and anything past ``MAX_SECTORS``."""

    draws = [to_identifier(draw_type) for draw_type in draw_types if draw_type]
    if len(draws) > MAX_SECTORS:
        logger.warning("Expedition has %d draws; keeping the first %d", len(draws), MAX_SECTORS)
        draws = draws[:MAX_SECTORS]
    return draws


def _prepare(
    draw_types: Iterable[str],
    roster: Sequence[Participant],
    projects: Iterable[str],
    require_oxygen: bool,
) -> tuple[list[str], list[Participant], list[str], Loadout]:
    draws = normalize_draw_types(draw_types)
    members = clamp_roster(roster)
    participants = participating_roster(members, draws) if require_oxygen else members
    left_behind = [member.name for member in members if member not in participants]
    return draws, participants, left_behind, build_loadout(participants, projects)


def calculate(
    draw_types: Iterable[str],
    roster: Sequence[Participant],
    projects: Iterable[str] = (),
    settings: Optional[EngineSettings] = None,
    require_oxygen: bool = False,
    centauri: bool = False,
    engine: Optional[ExpeditionEngine] = None,
) -> ExpeditionComputationResult:
    """Compute every outcome of an expedition that explores all its draws.

    Parameters
    ----------
    draw_types:
        Selected draw identifiers, in exploration order.
    roster:
        Participants; only the first ``MAX_PLAYERS`` are used.
    projects:
        Active project identifiers.
    settings:
        Optional override for the default engine settings.
    require_oxygen:
        Leave participants without a space suit behind unless an oxygen sector is
        part of the expedition.
    centauri:
        Apply the Centauri base blaster bonus to fighting power.
    engine:
        Pre-built engine; ``settings`` is ignored when supplied.

    Returns
    -------
    ExpeditionComputationResult
        Engine result, participating roster, loadout, and computation time.
    """

    if engine is None:
        engine = ExpeditionEngine.default(settings or DEFAULT_SETTINGS)
    draws, participants, left_behind, loadout = _prepare(draw_types, roster, projects, require_oxygen)

    compute_start = perf_counter()
    result = engine.calculate(draws, loadout, participants, centauri)
    compute_seconds = perf_counter() - compute_start

    return ExpeditionComputationResult(
        result=result,
        roster=participants,
        loadout=loadout,
        compute_seconds=compute_seconds,
        left_behind=left_behind,
    )


def calculate_with_sampling(
    draw_types: Iterable[str],
    roster: Sequence[Participant],
    movement_budget: object,
    projects: Iterable[str] = (),
    settings: Optional[EngineSettings] = None,
    require_oxygen: bool = False,
    centauri: bool = False,
    engine: Optional[ExpeditionEngine] = None,
) -> ExpeditionComputationResult:
    """Compute outcomes when the movement budget may not cover every draw.

    Falls back to :func:`calculate` when the budget reaches every draw other than
    the landing site.
    """

    if engine is None:
        engine = ExpeditionEngine.default(settings or DEFAULT_SETTINGS)
    draws, participants, left_behind, loadout = _prepare(draw_types, roster, projects, require_oxygen)
    budget = clamp_budget(movement_budget)
    explorable = sum(1 for draw_type in draws if draw_type != LANDING)

    compute_start = perf_counter()
    if budget >= explorable:
        result = engine.calculate(draws, loadout, participants, centauri)
        sampled = False
    else:
        result = engine.calculate_with_sampling(draws, budget, loadout, participants, centauri)
        sampled = True
    compute_seconds = perf_counter() - compute_start

    return ExpeditionComputationResult(
        result=result,
        roster=participants,
        loadout=loadout,
        compute_seconds=compute_seconds,
        sampled=sampled,
        movement_budget=budget,
        left_behind=left_behind,
    )


def distribute_damage(
    instances: Iterable[DamageInstance],
    roster: Sequence[Participant],
    seed: Optional[int] = None,
) -> AttributionResult:
    """Attribute damage instances to participants with a seeded random source."""

    return DamageSpreader(rng=random.Random(seed)).distribute(instances, roster)


def sample_path(
    candidates: Sequence[DrawCandidates],
    target: int,
    seed: Optional[int] = None,
) -> SampledPath:
    """Explain ``target`` with one per-draw assignment, reproducible through ``seed``."""

    return DamagePathSampler(random.Random(seed)).sample_path(candidates, target)


def explain(
    computation: ExpeditionComputationResult,
    category: str,
    scenario: str,
    seed: Optional[int] = None,
    engine: Optional[ExpeditionEngine] = None,
) -> SampledPath:
    if engine is None:
        engine = ExpeditionEngine.default()
    return engine.explain(computation.result, category, scenario, random.Random(seed))


def distribute_all_scenarios(
    computation: ExpeditionComputationResult,
    seed: Optional[int] = None,
    engine: Optional[ExpeditionEngine] = None,
) -> dict[str, AttributionResult]:
    """Per-scenario damage attribution over the computation's participating roster."""

    if engine is None:
        engine = ExpeditionEngine.default()
    return engine.distribute_all_scenarios(computation.result, computation.roster, random.Random(seed))
