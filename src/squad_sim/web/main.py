from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from squad_sim.web.api.router import router as api_router
from squad_sim.web.session import CombatService, build_service


def create_app(
    service: CombatService | None = None,
    *,
    tick_interval: float = 0.5,
    realtime: bool = True,
) -> FastAPI:
    combat = service or build_service(tick_interval=tick_interval, realtime=realtime)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await combat.shutdown()

    app = FastAPI(title="Squad Combat Sim", lifespan=lifespan)
    app.state.combat = combat
    app.include_router(api_router)
    return app


app = create_app()
