"""Mission planning and completion status."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from squad_sim.domain.combat_models import MissionContext
from squad_sim.domain.types import CombatEstimate
from squad_sim.rules.ruleset import CombatRules
from squad_sim.sim.synchronizer import CombatSessionManager
from squad_sim.systems.formula import estimate
from squad_sim.systems.stats import coerce_number
from squad_sim.systems.terrain import TerrainProfile, resolve_terrain


class MissionStage(str, Enum):
    PLANNED = "planned"
    IN_COMBAT = "in_combat"
    COMPLETE = "complete"


@dataclass(frozen=True)
class MissionPlan:
    mission_id: str
    context: MissionContext
    terrain: TerrainProfile
    estimate: CombatEstimate
    squad: tuple[Any, ...]
    enemies: tuple[Any, ...]


@dataclass(frozen=True)
class MissionProgress:
    mission_id: str
    stage: MissionStage
    victory: bool | None
    eta_seconds: float
    actual_duration_seconds: float | None


def plan_mission(
    mission_id: str,
    squad: Sequence[Any],
    enemies: Sequence[Any],
    difficulty: Any,
    location: str,
    sub_terrain: str | None = None,
    *,
    rules: CombatRules | None = None,
) -> MissionPlan:
    """Resolve terrain once and attach the upfront estimate to the mission."""
    terrain = resolve_terrain(location, sub_terrain)
    squad_roster = tuple(squad or ())
    enemy_roster = tuple(enemies or ())
    context = MissionContext(
        mission_id=mission_id,
        difficulty=coerce_number(difficulty, 1.0, minimum=0.0),
        location=location if isinstance(location, str) else "",
        sub_terrain=sub_terrain if isinstance(sub_terrain, str) else None,
    )
    return MissionPlan(
        mission_id=mission_id,
        context=context,
        terrain=terrain,
        estimate=estimate(
            squad_roster,
            enemy_roster,
            context.difficulty,
            terrain.location,
            terrain.sub_terrain,
            rules=rules,
        ),
        squad=squad_roster,
        enemies=enemy_roster,
    )


def launch_mission(manager: CombatSessionManager, plan: MissionPlan) -> None:
    manager.start_session(plan.mission_id, plan.squad, plan.enemies, plan.context)


def mission_progress(
    plan: MissionPlan,
    manager: CombatSessionManager,
    elapsed_seconds: float,
) -> MissionProgress:
    """Report where the mission stands.

    Completion comes only from the archived combat result; an elapsed
    estimate leaves the mission in combat with a zero ETA.
    """
    result = manager.get_final_result(plan.mission_id)
    if result is not None:
        return MissionProgress(
            mission_id=plan.mission_id,
            stage=MissionStage.COMPLETE,
            victory=result.victory,
            eta_seconds=0.0,
            actual_duration_seconds=result.actual_duration_seconds,
        )

    total = plan.estimate.estimated_duration_seconds
    if manager.is_session_active(plan.mission_id):
        elapsed = coerce_number(elapsed_seconds, 0.0, minimum=0.0)
        return MissionProgress(
            mission_id=plan.mission_id,
            stage=MissionStage.IN_COMBAT,
            victory=None,
            eta_seconds=max(0.0, total - elapsed),
            actual_duration_seconds=None,
        )

    return MissionProgress(
        mission_id=plan.mission_id,
        stage=MissionStage.PLANNED,
        victory=None,
        eta_seconds=total,
        actual_duration_seconds=None,
    )
