from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_by_name=True)


class ApiResponse(CamelModel):
    ok: bool
    message: Optional[str] = None
    message_kind: Optional[str] = Field(None, alias="messageKind")


class EstimateRequest(CamelModel):
    squad: List[Dict[str, Any]] = Field(default_factory=list)
    enemies: List[Dict[str, Any]] = Field(default_factory=list)
    difficulty: float = Field(1.0, ge=0)
    location: str = ""
    sub_terrain: Optional[str] = Field(None, alias="subTerrain")


class StartMissionRequest(EstimateRequest):
    pass


class EstimateResponse(CamelModel):
    estimated_duration_seconds: float = Field(..., alias="estimatedDurationSeconds")
    combat_seconds: float = Field(..., alias="combatSeconds")
    power_ratio: float = Field(..., alias="powerRatio")
    squad_dps: float = Field(..., alias="squadDps")
    enemy_dps: float = Field(..., alias="enemyDps")
    total_enemy_health: float = Field(..., alias="totalEnemyHealth")
    difficulty_modifier: float = Field(..., alias="difficultyModifier")
    travel_minutes: int = Field(..., alias="travelMinutes")
    location_terrain: str = Field(..., alias="locationTerrain")
    sub_terrain: str = Field(..., alias="subTerrain")


class CombatantHealth(CamelModel):
    id: str
    side: str
    health: float
    max_health: float = Field(..., alias="maxHealth")


class CombatStateResponse(CamelModel):
    mission_id: str = Field(..., alias="missionId")
    active: bool
    stage: str
    tick: Optional[int] = None
    victory: Optional[bool] = None
    combatants: List[CombatantHealth] = Field(default_factory=list)
    eta_seconds: Optional[float] = Field(None, alias="etaSeconds")


class FinalResultResponse(CamelModel):
    mission_id: str = Field(..., alias="missionId")
    ok: bool
    victory: Optional[bool] = None
    actual_duration_seconds: Optional[float] = Field(None, alias="actualDurationSeconds")
    final_health_by_combatant_id: Dict[str, float] = Field(
        default_factory=dict, alias="finalHealthByCombatantId"
    )


class MissionStartResponse(ApiResponse):
    mission_id: str = Field(..., alias="missionId")
    estimate: Optional[EstimateResponse] = None


class MissionListResponse(CamelModel):
    active: List[str]
    completed: List[str]
