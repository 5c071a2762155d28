"""Combat session runtime models."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Callable, Protocol, TypeAlias


@dataclass(frozen=True)
class MissionContext:
    mission_id: str
    difficulty: float = 1.0
    location: str = ""
    sub_terrain: str | None = None


@dataclass(frozen=True)
class CombatantHealth:
    id: str
    health: float
    side: str = "squad"
    max_health: float = 0.0


@dataclass(frozen=True)
class CombatSnapshot:
    """One update from a combat collaborator.

    ``victory`` stays ``None`` until the terminal update, which carries the
    squad's outcome.
    """

    victory: bool | None
    start_time: float
    combatants: tuple[CombatantHealth, ...]
    tick: int = 0
    reason: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.victory is not None

    def health_by_id(self) -> dict[str, float]:
        return {c.id: c.health for c in self.combatants}


@dataclass(frozen=True)
class FinalResult:
    victory: bool
    actual_duration_seconds: float
    final_health_by_combatant_id: Mapping[str, float]


SnapshotHandler: TypeAlias = Callable[[CombatSnapshot], None]
CompletionListener: TypeAlias = Callable[[bool, float], None]


class CombatCollaborator(Protocol):
    """Contract required of a real-time combat simulator."""

    def subscribe(self, handler: SnapshotHandler) -> None: ...

    def start(
        self,
        squad: Sequence[Any],
        enemies: Sequence[Any],
        context: MissionContext | None,
    ) -> None: ...

    def snapshot(self) -> CombatSnapshot | None: ...

    def stop(self) -> None: ...


@dataclass()
class CombatSession:
    mission_id: str
    collaborator: CombatCollaborator
    context: MissionContext | None
    started_at: float
    is_complete: bool = False
    actual_duration: float = 0.0
