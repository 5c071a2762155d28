"""Deterministic combat duration and travel-time estimation."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from squad_sim.domain.types import CombatantStat, CombatEstimate, CoreStats, WeaponCategory
from squad_sim.rules.ruleset import CombatRules, load_default_rules
from squad_sim.rules.weapons import WeaponCatalog, normalize_weapon
from squad_sim.systems.stats import DEFAULT_STAT, coerce_number, is_record, map_core_stats, read_field
from squad_sim.systems.terrain import resolve_terrain


def estimate(
    squad_members: Iterable[Any] | None,
    enemies: Iterable[Any] | None,
    difficulty: Any,
    location: Any,
    sub_terrain: Any = None,
    *,
    rules: CombatRules | None = None,
    catalog: WeaponCatalog | None = None,
) -> CombatEstimate:
    """Estimate fight length, relative power and travel time for a mission.

    Pure and total: malformed roster entries fall back to defaults, and both
    DPS terms are floored so the result is always finite. ``location`` and
    ``sub_terrain`` accept free text or already-resolved terrain tags.
    """
    rules = rules or load_default_rules()
    members = _as_list(squad_members)
    foes = _as_list(enemies)
    level = coerce_number(difficulty, 1.0, minimum=0.0, maximum=rules.difficulty.max_difficulty)

    squad_dps = max(
        rules.squad.dps_floor,
        sum(member_dps(m, rules=rules, catalog=catalog) for m in members),
    )
    enemy_dps = max(
        rules.enemy.dps_floor,
        sum(enemy_dps_for(e, rules=rules, catalog=catalog) for e in foes),
    )
    total_enemy_health = sum(enemy_health(e, rules=rules) for e in foes)

    base_combat_seconds = total_enemy_health / squad_dps

    difficulty_modifier = math.pow(max(1.0, level), rules.difficulty.exponent)

    power_ratio = squad_dps / max(enemy_dps, rules.enemy.dps_floor)
    combat_seconds = base_combat_seconds * difficulty_modifier * _power_ratio_multiplier(power_ratio, rules)

    travel_minutes = _travel_minutes(members, level, location, sub_terrain, rules)

    return CombatEstimate(
        estimated_duration_seconds=combat_seconds + travel_minutes * 60,
        power_ratio=power_ratio,
        squad_dps=squad_dps,
        enemy_dps=enemy_dps,
        total_enemy_health=total_enemy_health,
        difficulty_modifier=difficulty_modifier,
        travel_minutes=travel_minutes,
        combat_seconds=combat_seconds,
    )


def member_dps(
    member: Any,
    *,
    rules: CombatRules | None = None,
    catalog: WeaponCatalog | None = None,
) -> float:
    rules = rules or load_default_rules()
    core = map_core_stats(member)
    weapon = member_weapon(member, catalog=catalog)
    if weapon is None:
        base = rules.squad.unarmed_base_dps + core.combat_level * rules.squad.unarmed_dps_per_level
        return base * core.damage_multiplier
    return _limited(weapon, rules).dps(core.damage_multiplier)


def member_weapon(member: Any, *, catalog: WeaponCatalog | None = None) -> CombatantStat | None:
    equipment = read_field(member, "equipment")
    if equipment is None:
        return None
    return normalize_weapon(read_field(equipment, "weapon"), catalog)


def enemy_stat(
    enemy: Any,
    *,
    rules: CombatRules | None = None,
    catalog: WeaponCatalog | None = None,
) -> CombatantStat:
    """Resolve an enemy's attack profile from its weapon field or defaults."""
    rules = rules or load_default_rules()
    defaults = rules.enemy

    accuracy = coerce_number(read_field(enemy, "accuracy"), defaults.default_accuracy, minimum=0.0, maximum=100.0)
    damage = coerce_number(read_field(enemy, "damage"), defaults.default_damage, minimum=0.0)
    stat = CombatantStat(
        category=WeaponCategory.UNARMED,
        damage=damage,
        rate_per_minute=defaults.default_rate_per_minute,
        accuracy=accuracy / 100.0,
        reliability=defaults.default_reliability,
    )

    weapon = read_field(enemy, "weapon")
    if isinstance(weapon, str):
        resolved = normalize_weapon(weapon, catalog)
        if resolved is not None:
            stat = resolved
    elif is_record(weapon):
        fire_rate = coerce_number(read_field(weapon, "fireRate", "fire_rate"), 1.0, minimum=0.0)
        stat = CombatantStat(
            category=WeaponCategory.RANGED,
            damage=coerce_number(read_field(weapon, "damage"), damage, minimum=0.0),
            rate_per_minute=fire_rate * defaults.inline_fire_rate_scale,
            accuracy=stat.accuracy,
            reliability=stat.reliability,
        )

    return _limited(stat, rules)


def enemy_dps_for(
    enemy: Any,
    *,
    rules: CombatRules | None = None,
    catalog: WeaponCatalog | None = None,
) -> float:
    rules = rules or load_default_rules()
    return max(rules.enemy.dps_floor, enemy_stat(enemy, rules=rules, catalog=catalog).dps())


def enemy_health(enemy: Any, *, rules: CombatRules | None = None) -> float:
    """Declared health scaled into the same units as per-second damage."""
    rules = rules or load_default_rules()
    health = coerce_number(
        read_field(enemy, "health"),
        rules.enemy.default_health,
        minimum=0.0,
        maximum=rules.limits.max_health,
    )
    return health * rules.enemy.health_scale


def average_core_stats(members: list[Any]) -> tuple[float, float]:
    """Average (intelligence, survival) across the squad."""
    if not members:
        return DEFAULT_STAT, DEFAULT_STAT
    cores: list[CoreStats] = [map_core_stats(m) for m in members]
    count = len(cores)
    return (
        sum(c.intelligence for c in cores) / count,
        sum(c.survival for c in cores) / count,
    )


def _power_ratio_multiplier(power_ratio: float, rules: CombatRules) -> float:
    config = rules.power_ratio
    if power_ratio > config.dominant_threshold:
        return config.dominant_multiplier
    if power_ratio < config.outmatched_threshold:
        return config.outmatched_multiplier
    return config.even_multiplier


def _travel_minutes(
    members: list[Any],
    level: float,
    location: Any,
    sub_terrain: Any,
    rules: CombatRules,
) -> int:
    travel = rules.travel
    avg_int, avg_surv = average_core_stats(members)

    base = travel.base_minutes + level * travel.minutes_per_difficulty
    terrain_factor = resolve_terrain(location, sub_terrain).travel_factor(rules)
    reduction = 1.0 - (avg_int / 10.0) * travel.intelligence_weight - (avg_surv / 10.0) * travel.survival_weight
    minutes = _round_half_up(base * terrain_factor * max(travel.reduction_floor, reduction))
    return int(_clamp(minutes, travel.min_minutes, travel.max_minutes))


def _limited(stat: CombatantStat, rules: CombatRules) -> CombatantStat:
    limits = rules.limits
    if stat.damage <= limits.max_damage and stat.rate_per_minute <= limits.max_rate_per_minute:
        return stat
    return CombatantStat(
        category=stat.category,
        damage=min(limits.max_damage, stat.damage),
        rate_per_minute=min(limits.max_rate_per_minute, stat.rate_per_minute),
        accuracy=stat.accuracy,
        reliability=stat.reliability,
        weapon_id=stat.weapon_id,
    )


def _as_list(items: Iterable[Any] | None) -> list[Any]:
    if items is None or isinstance(items, (str, bytes, Mapping)):
        return []
    try:
        return list(items)
    except TypeError:
        return []


def _round_half_up(value: float) -> float:
    return math.floor(value + 0.5)


def _clamp(value: float, minimum: float, maximum: float) -> float:
    return min(maximum, max(minimum, value))
