from __future__ import annotations

from dataclasses import replace
from typing import Any

from squad_sim.domain.combat_models import CombatantHealth, CombatSnapshot, MissionContext
from squad_sim.sim.synchronizer import CombatSessionManager


def ranged_weapon(
    *,
    damage: float = 20,
    rpm: float = 60,
    accuracy: float = 80,
    reliability: float = 90,
) -> dict[str, Any]:
    return {
        "category": "ranged",
        "damage": damage,
        "rpm": rpm,
        "accuracy": accuracy,
        "reliability": reliability,
    }


def melee_weapon(
    *,
    damage: float = 15,
    swing_speed: float = 40,
    accuracy: float = 75,
    reliability: float = 95,
) -> dict[str, Any]:
    return {
        "category": "melee",
        "damage": damage,
        "swingSpeed": swing_speed,
        "accuracy": accuracy,
        "reliability": reliability,
    }


def make_member(
    member_id: str = "m1",
    *,
    weapon: Any = None,
    stats: dict[str, Any] | None = None,
    health: float | None = None,
) -> dict[str, Any]:
    member: dict[str, Any] = {"id": member_id}
    if weapon is not None:
        member["equipment"] = {"weapon": weapon}
    if stats is not None:
        member["stats"] = stats
    if health is not None:
        member["health"] = health
    return member


def make_enemy(enemy_id: str = "e1", **fields: Any) -> dict[str, Any]:
    enemy: dict[str, Any] = {"id": enemy_id, "health": 40}
    enemy.update(fields)
    return enemy


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCollaborator:
    """Hand-driven combat collaborator for ordering tests."""

    def __init__(self, mission_id: str, clock: FakeClock, *, resolve_on_start: bool | None = None) -> None:
        self.mission_id = mission_id
        self.clock = clock
        self.resolve_on_start = resolve_on_start
        self.handlers: list[Any] = []
        self.state: CombatSnapshot | None = None
        self.start_calls = 0
        self.context: MissionContext | None = None
        self.stopped = False

    def subscribe(self, handler) -> None:
        self.handlers.append(handler)

    def start(self, squad, enemies, context) -> None:
        self.start_calls += 1
        self.context = context
        combatants = tuple(
            CombatantHealth(id=str(m["id"]), health=100.0, side="squad", max_health=100.0) for m in squad
        ) + tuple(
            CombatantHealth(id=str(e["id"]), health=40.0, side="enemy", max_health=40.0) for e in enemies
        )
        self.emit(CombatSnapshot(victory=None, start_time=self.clock(), combatants=combatants))
        if self.resolve_on_start is not None:
            self.finish(self.resolve_on_start)

    def snapshot(self) -> CombatSnapshot | None:
        return self.state

    def stop(self) -> None:
        self.stopped = True

    def emit(self, snapshot: CombatSnapshot) -> None:
        self.state = snapshot
        for handler in list(self.handlers):
            handler(snapshot)

    def set_health(self, combatant_id: str, health: float) -> None:
        assert self.state is not None
        combatants = tuple(
            replace(c, health=health) if c.id == combatant_id else c for c in self.state.combatants
        )
        self.emit(replace(self.state, combatants=combatants, tick=self.state.tick + 1))

    def finish(self, victory: bool) -> None:
        assert self.state is not None
        self.emit(replace(self.state, victory=victory, tick=self.state.tick + 1))


def make_manager(
    *,
    clock: FakeClock | None = None,
    resolve_on_start: bool | None = None,
) -> tuple[CombatSessionManager, dict[str, FakeCollaborator], FakeClock]:
    """Create a manager whose collaborators are recorded per mission."""
    clock = clock or FakeClock()
    collaborators: dict[str, FakeCollaborator] = {}

    def factory(mission_id: str) -> FakeCollaborator:
        collaborator = FakeCollaborator(mission_id, clock, resolve_on_start=resolve_on_start)
        collaborators[mission_id] = collaborator
        return collaborator

    return CombatSessionManager(factory, clock=clock), collaborators, clock


def default_squad() -> list[dict[str, Any]]:
    return [make_member("m1", weapon=ranged_weapon()), make_member("m2", weapon=melee_weapon())]


def default_enemies() -> list[dict[str, Any]]:
    return [make_enemy("e1"), make_enemy("e2", weapon="pipe_pistol")]
