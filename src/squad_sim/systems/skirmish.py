"""Tick-based squad-vs-enemy skirmish simulator.

Implements the combat collaborator contract used by the session manager:
``subscribe`` / ``start`` / ``snapshot`` / ``stop``, plus ``step`` for whoever
drives the clock. Every emitted update is a ``CombatSnapshot``; exactly one
of them carries a non-null ``victory``.
"""

from __future__ import annotations

import random
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Callable

from squad_sim.domain.combat_models import CombatantHealth, CombatSnapshot, MissionContext, SnapshotHandler
from squad_sim.rules.ruleset import CombatRules, load_default_rules
from squad_sim.rules.weapons import WeaponCatalog
from squad_sim.sim.rng import mission_rng
from squad_sim.systems.formula import enemy_dps_for, enemy_health, member_dps
from squad_sim.systems.stats import coerce_number, read_field

SQUAD = "squad"
ENEMY = "enemy"

DEFAULT_MEMBER_HEALTH = 100.0


@dataclass()
class SkirmishCombatant:
    id: str
    side: str
    health: float
    max_health: float
    dps: float

    @property
    def alive(self) -> bool:
        return self.health > 0.0


class SkirmishSimulator:
    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        tick_seconds: float = 1.0,
        max_ticks: int = 3600,
        clock: Callable[[], float] = time.time,
        rules: CombatRules | None = None,
        catalog: WeaponCatalog | None = None,
    ) -> None:
        if tick_seconds <= 0:
            raise ValueError("tick_seconds must be > 0")
        if max_ticks < 1:
            raise ValueError("max_ticks must be >= 1")
        self.rng = rng or random.Random(0)
        self.tick_seconds = tick_seconds
        self.max_ticks = max_ticks
        self.clock = clock
        self.rules = rules or load_default_rules()
        self.catalog = catalog

        self.combatants: list[SkirmishCombatant] = []
        self.tick = 0
        self.start_time: float | None = None
        self.victory: bool | None = None
        self.reason: str | None = None
        self.stopped = False
        self._handlers: list[SnapshotHandler] = []

    @property
    def started(self) -> bool:
        return self.start_time is not None

    @property
    def is_finished(self) -> bool:
        return self.victory is not None or self.stopped

    def subscribe(self, handler: SnapshotHandler) -> None:
        self._handlers.append(handler)

    def start(
        self,
        squad: Sequence[Any],
        enemies: Sequence[Any],
        context: MissionContext | None = None,
    ) -> None:
        if self.started:
            raise RuntimeError("Skirmish already started")
        self.combatants = [
            self._build_member(member, index) for index, member in enumerate(squad or [])
        ] + [self._build_enemy(enemy, index) for index, enemy in enumerate(enemies or [])]
        self.start_time = self.clock()

        if not self._alive(ENEMY):
            self._finish(True, "No enemy resistance")
        elif not self._alive(SQUAD):
            self._finish(False, "No squad deployed")
        self._emit()

    def step(self) -> CombatSnapshot | None:
        if not self.started or self.is_finished:
            return None

        self.tick += 1
        squad_damage = self._side_damage(SQUAD)
        enemy_damage = self._side_damage(ENEMY)
        self._apply_damage(ENEMY, squad_damage)
        self._apply_damage(SQUAD, enemy_damage)

        squad_alive = bool(self._alive(SQUAD))
        enemy_alive = bool(self._alive(ENEMY))
        if not enemy_alive and squad_alive:
            self._finish(True, "Enemy force eliminated")
        elif not squad_alive:
            self._finish(False, "Squad eliminated")
        elif self.tick >= self.max_ticks:
            self._finish(False, "Engagement stalled")

        return self._emit()

    def run_to_completion(self) -> CombatSnapshot | None:
        last = self.snapshot()
        while not self.is_finished:
            last = self.step()
        return last

    def snapshot(self) -> CombatSnapshot | None:
        if self.start_time is None:
            return None
        return CombatSnapshot(
            victory=self.victory,
            start_time=self.start_time,
            combatants=tuple(
                CombatantHealth(id=c.id, health=c.health, side=c.side, max_health=c.max_health)
                for c in self.combatants
            ),
            tick=self.tick,
            reason=self.reason,
        )

    def stop(self) -> None:
        self.stopped = True

    def _emit(self) -> CombatSnapshot | None:
        snapshot = self.snapshot()
        if snapshot is None:
            return None
        for handler in list(self._handlers):
            handler(snapshot)
        return snapshot

    def _finish(self, victory: bool, reason: str) -> None:
        self.victory = victory
        self.reason = reason

    def _alive(self, side: str) -> list[SkirmishCombatant]:
        return [c for c in self.combatants if c.side == side and c.alive]

    def _side_damage(self, side: str) -> float:
        dps = sum(c.dps for c in self._alive(side))
        return dps * self.tick_seconds * self.rng.uniform(0.9, 1.1)

    def _apply_damage(self, side: str, damage: float) -> None:
        # Focus fire; overflow carries to the next target.
        remaining = damage
        for target in self._alive(side):
            if remaining <= 0.0:
                break
            dealt = min(target.health, remaining)
            target.health -= dealt
            remaining -= dealt

    def _build_member(self, member: Any, index: int) -> SkirmishCombatant:
        health = coerce_number(
            read_field(member, "health"),
            DEFAULT_MEMBER_HEALTH,
            minimum=0.0,
            maximum=self.rules.limits.max_health,
        ) * self.rules.enemy.health_scale
        return SkirmishCombatant(
            id=_combatant_id(member, SQUAD, index),
            side=SQUAD,
            health=health,
            max_health=health,
            dps=member_dps(member, rules=self.rules, catalog=self.catalog),
        )

    def _build_enemy(self, enemy: Any, index: int) -> SkirmishCombatant:
        health = enemy_health(enemy, rules=self.rules)
        return SkirmishCombatant(
            id=_combatant_id(enemy, ENEMY, index),
            side=ENEMY,
            health=health,
            max_health=health,
            dps=enemy_dps_for(enemy, rules=self.rules, catalog=self.catalog),
        )


def skirmish_factory(
    *,
    base_seed: int = 0,
    tick_seconds: float = 1.0,
    max_ticks: int = 3600,
    clock: Callable[[], float] = time.time,
    rules: CombatRules | None = None,
) -> Callable[[str], SkirmishSimulator]:
    """Build a per-mission simulator factory with mission-derived seeds."""

    def build(mission_id: str) -> SkirmishSimulator:
        return SkirmishSimulator(
            rng=mission_rng(base_seed, mission_id),
            tick_seconds=tick_seconds,
            max_ticks=max_ticks,
            clock=clock,
            rules=rules,
        )

    return build


def _combatant_id(record: Any, side: str, index: int) -> str:
    value = read_field(record, "id")
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        return str(value)
    return f"{side}-{index}"
