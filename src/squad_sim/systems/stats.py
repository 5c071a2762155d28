"""Roster field access and core-stat derivation."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from squad_sim.domain.types import CoreStats

_MISSING = object()

DEFAULT_STAT = 5.0
STAT_CAP = 10.0


def read_field(record: Any, *keys: str, default: Any = None) -> Any:
    """Return the first present key of a mapping or attribute of an object."""
    for key in keys:
        if isinstance(record, Mapping):
            value = record.get(key, _MISSING)
        else:
            value = getattr(record, key, _MISSING)
        if value is not _MISSING and value is not None:
            return value
    return default


def is_record(value: Any) -> bool:
    """True for mappings and plain objects whose fields ``read_field`` can reach."""
    return isinstance(value, Mapping) or hasattr(value, "__dict__")


def coerce_number(
    value: Any,
    default: float,
    *,
    minimum: float | None = None,
    maximum: float | None = None,
) -> float:
    """Coerce to a finite float, falling back to ``default``, then clamp."""
    number = default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            candidate = float(value)
        except OverflowError:
            candidate = math.nan
        if math.isfinite(candidate):
            number = candidate
    if minimum is not None:
        number = max(minimum, number)
    if maximum is not None:
        number = min(maximum, number)
    return number


def map_core_stats(member: Any) -> CoreStats:
    stats = read_field(member, "stats", default=None)
    source = stats if is_record(stats) else member

    combat_level = _stat(read_field(source, "combat", "combatLevel", "combat_level", "level"))
    strength = _stat(read_field(source, "strength"))
    intelligence = _stat(read_field(source, "intelligence"))
    survival = _stat(read_field(source, "survival"))

    explicit = read_field(member, "damageMultiplier", "damage_multiplier")
    if explicit is None and source is not member:
        explicit = read_field(source, "damageMultiplier", "damage_multiplier")
    if explicit is not None:
        damage_multiplier = coerce_number(explicit, 1.0, minimum=0.0, maximum=5.0)
    else:
        damage_multiplier = min(1.5, max(0.5, 1.0 + 0.1 * (strength - DEFAULT_STAT)))

    return CoreStats(
        combat_level=combat_level,
        damage_multiplier=damage_multiplier,
        intelligence=intelligence,
        survival=survival,
    )


def _stat(value: Any) -> float:
    return coerce_number(value, DEFAULT_STAT, minimum=0.0, maximum=STAT_CAP)
