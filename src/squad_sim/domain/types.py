"""Common types and enums."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class WeaponCategory(str, Enum):
    RANGED = "ranged"
    MELEE = "melee"
    UNARMED = "unarmed"


@dataclass(frozen=True)
class CoreStats:
    """Derived per-combatant attributes on a 0-10 scale."""

    combat_level: float
    damage_multiplier: float
    intelligence: float
    survival: float


@dataclass(frozen=True)
class CombatantStat:
    """Normalized combat inputs for one weapon or one unarmed combatant.

    ``rate_per_minute`` is rounds per minute for ranged weapons and swings per
    minute for melee weapons. Accuracy and reliability are fractions in [0, 1].
    """

    category: WeaponCategory
    damage: float
    rate_per_minute: float
    accuracy: float
    reliability: float
    weapon_id: str | None = None

    def dps(self, damage_multiplier: float = 1.0) -> float:
        return (
            self.damage
            * (self.rate_per_minute / 60.0)
            * self.accuracy
            * self.reliability
            * damage_multiplier
        )


@dataclass(frozen=True)
class CombatEstimate:
    estimated_duration_seconds: float
    power_ratio: float
    squad_dps: float
    enemy_dps: float
    total_enemy_health: float
    difficulty_modifier: float
    travel_minutes: int
    combat_seconds: float


class LocationTerrain(str, Enum):
    """Location terrain tags, in keyword precedence order."""

    JUNCTION = "junction"
    COMPLEX = "complex"
    VALLEY = "valley"
    OPEN = "open"


class SubTerrain(str, Enum):
    """Sub-terrain tags, in keyword precedence order."""

    ALLEYS = "alleys"
    TUNNEL = "tunnel"
    CANYON = "canyon"
    DUNES = "dunes"
    SALT = "salt"
    MARSH = "marsh"
    RUINS = "ruins"
    NONE = "none"
