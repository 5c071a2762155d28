from __future__ import annotations

from fastapi import APIRouter, Request

from squad_sim.systems.formula import estimate
from squad_sim.systems.missions import plan_mission
from squad_sim.systems.terrain import resolve_terrain
from squad_sim.web.api import mappers, schemas
from squad_sim.web.session import CombatService

router = APIRouter(prefix="/api")


def _service(request: Request) -> CombatService:
    return request.app.state.combat


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.post("/estimate", response_model=schemas.EstimateResponse)
async def post_estimate(payload: schemas.EstimateRequest):
    terrain = resolve_terrain(payload.location, payload.sub_terrain)
    result = estimate(
        payload.squad,
        payload.enemies,
        payload.difficulty,
        terrain.location,
        terrain.sub_terrain,
    )
    return mappers.build_estimate_response(result, terrain)


@router.get("/missions", response_model=schemas.MissionListResponse)
async def list_missions(request: Request):
    service = _service(request)
    async with service.lock:
        completed = [
            mission_id for mission_id in service.plans if service.manager.is_mission_complete(mission_id)
        ]
        return schemas.MissionListResponse(
            active=service.manager.list_active_mission_ids(),
            completed=completed,
        )


@router.post("/missions/{mission_id}/start", response_model=schemas.MissionStartResponse)
async def start_mission(mission_id: str, payload: schemas.StartMissionRequest, request: Request):
    service = _service(request)
    async with service.lock:
        plan = plan_mission(
            mission_id,
            payload.squad,
            payload.enemies,
            payload.difficulty,
            payload.location,
            payload.sub_terrain,
        )
        if not service.launch(plan):
            return schemas.MissionStartResponse(
                ok=False,
                message=f"Combat for mission {mission_id} already started",
                message_kind="info",
                mission_id=mission_id,
            )
        return schemas.MissionStartResponse(
            ok=True,
            message="Combat started",
            message_kind="accent",
            mission_id=mission_id,
            estimate=mappers.build_estimate_response(plan.estimate, plan.terrain),
        )


@router.post("/missions/{mission_id}/resolve", response_model=schemas.FinalResultResponse)
async def resolve_mission(mission_id: str, request: Request):
    service = _service(request)
    async with service.lock:
        service.resolve(mission_id)
        return mappers.build_result_response(mission_id, service.manager.get_final_result(mission_id))


@router.post("/missions/{mission_id}/abort", response_model=schemas.FinalResultResponse)
async def abort_mission(mission_id: str, request: Request):
    service = _service(request)
    async with service.lock:
        service.manager.force_session_end(mission_id)
        return mappers.build_result_response(mission_id, service.manager.get_final_result(mission_id))


@router.get("/missions/{mission_id}/state", response_model=schemas.CombatStateResponse)
async def get_mission_state(mission_id: str, request: Request):
    service = _service(request)
    async with service.lock:
        manager = service.manager
        return mappers.build_state_response(
            mission_id,
            manager.get_live_session_state(mission_id),
            active=manager.is_session_active(mission_id),
            progress=service.progress(mission_id),
        )


@router.get("/missions/{mission_id}/result", response_model=schemas.FinalResultResponse)
async def get_mission_result(mission_id: str, request: Request):
    service = _service(request)
    async with service.lock:
        return mappers.build_result_response(mission_id, service.manager.get_final_result(mission_id))
