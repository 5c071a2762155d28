from __future__ import annotations

from squad_sim.domain.combat_models import CombatSnapshot, FinalResult
from squad_sim.domain.types import CombatEstimate
from squad_sim.systems.missions import MissionProgress
from squad_sim.systems.terrain import TerrainProfile
from squad_sim.web.api import schemas


def build_estimate_response(estimate: CombatEstimate, terrain: TerrainProfile) -> schemas.EstimateResponse:
    return schemas.EstimateResponse(
        estimated_duration_seconds=estimate.estimated_duration_seconds,
        combat_seconds=estimate.combat_seconds,
        power_ratio=estimate.power_ratio,
        squad_dps=estimate.squad_dps,
        enemy_dps=estimate.enemy_dps,
        total_enemy_health=estimate.total_enemy_health,
        difficulty_modifier=estimate.difficulty_modifier,
        travel_minutes=estimate.travel_minutes,
        location_terrain=terrain.location.value,
        sub_terrain=terrain.sub_terrain.value,
    )


def build_state_response(
    mission_id: str,
    snapshot: CombatSnapshot | None,
    *,
    active: bool,
    progress: MissionProgress | None = None,
) -> schemas.CombatStateResponse:
    if progress is not None:
        stage = progress.stage.value
    else:
        stage = "in_combat" if active else "unknown"
    payload = schemas.CombatStateResponse(
        mission_id=mission_id,
        active=active,
        stage=stage,
        eta_seconds=progress.eta_seconds if progress is not None else None,
    )
    if snapshot is not None:
        payload.tick = snapshot.tick
        payload.victory = snapshot.victory
        payload.combatants = [
            schemas.CombatantHealth(
                id=c.id,
                side=c.side,
                health=c.health,
                max_health=c.max_health,
            )
            for c in snapshot.combatants
        ]
    return payload


def build_result_response(mission_id: str, result: FinalResult | None) -> schemas.FinalResultResponse:
    if result is None:
        return schemas.FinalResultResponse(mission_id=mission_id, ok=False)
    return schemas.FinalResultResponse(
        mission_id=mission_id,
        ok=True,
        victory=result.victory,
        actual_duration_seconds=result.actual_duration_seconds,
        final_health_by_combatant_id=dict(result.final_health_by_combatant_id),
    )
