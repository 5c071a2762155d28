"""Per-mission combat session lifecycle.

One ``CombatSessionManager`` owns every live and resolved combat run for the
missions it was asked to start. Each mission moves through

    unstarted -> starting (locked) -> live -> complete (archived)

and ``complete`` is absorbing: a resolved mission is never started again, and
its ``FinalResult`` is written once and never changes.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from types import MappingProxyType
from typing import Any, Callable

from squad_sim.domain.combat_models import (
    CombatCollaborator,
    CombatSession,
    CombatSnapshot,
    CompletionListener,
    FinalResult,
    MissionContext,
)

logger = logging.getLogger(__name__)

CollaboratorFactory = Callable[[str], CombatCollaborator]


class CombatSessionManager:
    def __init__(
        self,
        collaborator_factory: CollaboratorFactory,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._factory = collaborator_factory
        self._clock = clock
        self._sessions: dict[str, CombatSession] = {}
        self._completed: set[str] = set()
        self._results: dict[str, FinalResult] = {}
        self._starting: set[str] = set()
        self._listeners: dict[str, list[CompletionListener]] = {}
        self._early_terminal: dict[str, CombatSnapshot] = {}
        self._starting_with: dict[str, CombatCollaborator] = {}

    def start_session(
        self,
        mission_id: str,
        squad: Sequence[Any],
        enemies: Sequence[Any],
        context: MissionContext | None = None,
    ) -> None:
        """Start the mission's combat run unless it is starting, live or resolved."""
        if mission_id in self._completed or mission_id in self._results or mission_id in self._starting:
            logger.debug("Ignoring start for mission %s; already resolved or starting", mission_id)
            return
        existing = self._sessions.get(mission_id)
        if existing is not None and not existing.is_complete:
            logger.debug("Ignoring start for mission %s; combat already live", mission_id)
            return

        self._starting.add(mission_id)
        try:
            collaborator = self._factory(mission_id)
            collaborator.subscribe(
                lambda snapshot, source=collaborator: self._on_update(mission_id, source, snapshot)
            )
            self._starting_with[mission_id] = collaborator
            collaborator.start(squad, enemies, context)
            self._sessions[mission_id] = CombatSession(
                mission_id=mission_id,
                collaborator=collaborator,
                context=context,
                started_at=self._clock(),
            )
        except Exception:
            self._early_terminal.pop(mission_id, None)
            raise
        finally:
            self._starting.discard(mission_id)
            self._starting_with.pop(mission_id, None)

        logger.info("Combat for mission %s started", mission_id)
        pending = self._early_terminal.pop(mission_id, None)
        if pending is not None:
            self._on_update(mission_id, collaborator, pending)

    def is_session_active(self, mission_id: str) -> bool:
        if mission_id in self._starting:
            return True
        session = self._sessions.get(mission_id)
        return session is not None and not session.is_complete

    def is_mission_complete(self, mission_id: str) -> bool:
        return mission_id in self._completed

    def on_session_complete(self, mission_id: str, listener: CompletionListener) -> None:
        """Register ``listener(victory, actual_duration)`` for the mission's result.

        Listeners registered after the result is archived fire immediately.
        """
        result = self._results.get(mission_id)
        if result is not None:
            self._notify(mission_id, listener, result.victory, result.actual_duration_seconds)
            return
        self._listeners.setdefault(mission_id, []).append(listener)

    def force_session_end(self, mission_id: str) -> None:
        """Resolve a live session as a defeat and stop its collaborator."""
        session = self._sessions.get(mission_id)
        if session is None or session.is_complete:
            return

        snapshot = session.collaborator.snapshot()
        healths = snapshot.health_by_id() if snapshot is not None else {}
        self._complete(session, victory=False, final_healths=healths)
        session.collaborator.stop()
        logger.info("Forced combat end for mission %s", mission_id)

    def get_final_result(self, mission_id: str) -> FinalResult | None:
        return self._results.get(mission_id)

    def get_actual_duration(self, mission_id: str) -> float | None:
        result = self._results.get(mission_id)
        return result.actual_duration_seconds if result is not None else None

    def get_live_session_state(self, mission_id: str) -> CombatSnapshot | None:
        session = self._sessions.get(mission_id)
        if session is None or session.is_complete:
            return None
        return session.collaborator.snapshot()

    def list_active_mission_ids(self) -> list[str]:
        return [mission_id for mission_id, session in self._sessions.items() if not session.is_complete]

    def _on_update(self, mission_id: str, source: CombatCollaborator, snapshot: CombatSnapshot) -> None:
        if snapshot.victory is None:
            return
        session = self._sessions.get(mission_id)
        if session is None:
            if self._starting_with.get(mission_id) is source:
                # Resolved inside collaborator.start(); applied once registered.
                self._early_terminal[mission_id] = snapshot
            return
        if session.is_complete or session.collaborator is not source:
            return
        self._complete(session, victory=snapshot.victory, final_healths=snapshot.health_by_id())

    def _complete(self, session: CombatSession, *, victory: bool, final_healths: dict[str, float]) -> None:
        mission_id = session.mission_id
        actual_duration = max(0.0, self._clock() - session.started_at)
        session.is_complete = True
        session.actual_duration = actual_duration

        self._results[mission_id] = FinalResult(
            victory=victory,
            actual_duration_seconds=actual_duration,
            final_health_by_combatant_id=MappingProxyType(dict(final_healths)),
        )

        for listener in list(self._listeners.get(mission_id, ())):
            self._notify(mission_id, listener, victory, actual_duration)

        self._sessions.pop(mission_id, None)
        self._listeners.pop(mission_id, None)
        self._completed.add(mission_id)
        self._starting.discard(mission_id)

        logger.info(
            "Combat for mission %s completed: %s after %.1fs",
            mission_id,
            "Victory" if victory else "Defeat",
            actual_duration,
        )

    def _notify(self, mission_id: str, listener: CompletionListener, victory: bool, duration: float) -> None:
        try:
            listener(victory, duration)
        except Exception:
            logger.exception("Completion listener failed for mission %s", mission_id)
