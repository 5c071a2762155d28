from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

from squad_sim.sim.driver import drive
from squad_sim.sim.synchronizer import CombatSessionManager
from squad_sim.systems.missions import MissionPlan, MissionProgress, launch_mission, mission_progress
from squad_sim.systems.skirmish import SkirmishSimulator, skirmish_factory

logger = logging.getLogger(__name__)


@dataclass
class CombatService:
    """The web app's single session manager plus the simulators it drives."""

    manager: CombatSessionManager
    simulators: dict[str, SkirmishSimulator]
    tick_interval: float
    realtime: bool
    plans: dict[str, MissionPlan] = field(default_factory=dict)
    launched_at: dict[str, float] = field(default_factory=dict)
    tasks: set[asyncio.Task] = field(default_factory=set)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def launch(self, plan: MissionPlan) -> bool:
        """Start combat for ``plan``; False when the mission was already started."""
        if self.manager.is_session_active(plan.mission_id) or self.manager.is_mission_complete(plan.mission_id):
            return False
        self.plans[plan.mission_id] = plan
        self.launched_at[plan.mission_id] = time.monotonic()
        launch_mission(self.manager, plan)
        simulator = self.simulators.get(plan.mission_id)
        self.manager.on_session_complete(plan.mission_id, lambda victory, duration: self._release(plan.mission_id))
        if self.realtime and simulator is not None and not simulator.is_finished:
            task = asyncio.get_running_loop().create_task(drive(simulator, tick_seconds=self.tick_interval))
            self.tasks.add(task)
            task.add_done_callback(self.tasks.discard)
        return True

    def resolve(self, mission_id: str) -> bool:
        """Step a live simulator to its terminal event immediately."""
        simulator = self.simulators.get(mission_id)
        if simulator is None or not self.manager.is_session_active(mission_id):
            return False
        simulator.run_to_completion()
        return True

    def progress(self, mission_id: str) -> MissionProgress | None:
        plan = self.plans.get(mission_id)
        if plan is None:
            return None
        elapsed = time.monotonic() - self.launched_at.get(mission_id, time.monotonic())
        return mission_progress(plan, self.manager, elapsed)

    def _release(self, mission_id: str) -> None:
        # The archived result replaces the simulator; plans stay for /state.
        self.simulators.pop(mission_id, None)
        self.launched_at.pop(mission_id, None)

    async def shutdown(self) -> None:
        if self.tasks:
            logger.info("Stopping %d combat drivers", len(self.tasks))
        for task in list(self.tasks):
            task.cancel()
        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)
        for mission_id in self.manager.list_active_mission_ids():
            self.manager.force_session_end(mission_id)


def build_service(
    *,
    base_seed: int = 0,
    tick_interval: float = 0.5,
    realtime: bool = True,
    max_ticks: int = 3600,
) -> CombatService:
    simulators: dict[str, SkirmishSimulator] = {}
    factory = skirmish_factory(base_seed=base_seed, max_ticks=max_ticks)

    def tracked(mission_id: str) -> SkirmishSimulator:
        simulator = factory(mission_id)
        simulators[mission_id] = simulator
        return simulator

    return CombatService(
        manager=CombatSessionManager(tracked),
        simulators=simulators,
        tick_interval=tick_interval,
        realtime=realtime,
    )
