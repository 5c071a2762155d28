"""Wall-clock driver for tick-based combat collaborators."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Steppable(Protocol):
    @property
    def is_finished(self) -> bool: ...

    def step(self) -> Any: ...


async def drive(simulator: Steppable, *, tick_seconds: float, max_steps: int | None = None) -> int:
    """Step ``simulator`` every ``tick_seconds`` until it finishes or is stopped.

    Returns the number of steps taken. Each step runs on the event loop, so
    updates reach subscribers one at a time.
    """
    if tick_seconds < 0:
        raise ValueError("tick_seconds must be >= 0")
    steps = 0
    while not simulator.is_finished:
        if max_steps is not None and steps >= max_steps:
            logger.warning("Combat driver gave up after %d steps", steps)
            break
        await asyncio.sleep(tick_seconds)
        if simulator.is_finished:
            break
        simulator.step()
        steps += 1
    return steps
