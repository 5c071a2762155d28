"""Data-driven combat rules."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from squad_sim.domain.types import LocationTerrain, SubTerrain

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).resolve().parents[1] / "data"


class RulesError(ValueError):
    """Error loading or validating rules."""


@dataclass(frozen=True)
class SquadConfig:
    dps_floor: float
    unarmed_base_dps: float
    unarmed_dps_per_level: float


@dataclass(frozen=True)
class EnemyConfig:
    dps_floor: float
    default_accuracy: float
    default_rate_per_minute: float
    default_damage: float
    default_reliability: float
    default_health: float
    inline_fire_rate_scale: float
    health_scale: float


@dataclass(frozen=True)
class DifficultyConfig:
    exponent: float
    max_difficulty: float


@dataclass(frozen=True)
class PowerRatioConfig:
    dominant_threshold: float
    dominant_multiplier: float
    outmatched_threshold: float
    outmatched_multiplier: float
    even_multiplier: float


@dataclass(frozen=True)
class TravelConfig:
    base_minutes: float
    minutes_per_difficulty: float
    intelligence_weight: float
    survival_weight: float
    reduction_floor: float
    min_minutes: int
    max_minutes: int


@dataclass(frozen=True)
class TerrainFactors:
    location: dict[LocationTerrain, float]
    sub_terrain: dict[SubTerrain, float]


@dataclass(frozen=True)
class LimitsConfig:
    max_health: float
    max_damage: float
    max_rate_per_minute: float


@dataclass(frozen=True)
class CombatRules:
    """Loaded and validated combat rules."""

    squad: SquadConfig
    enemy: EnemyConfig
    difficulty: DifficultyConfig
    power_ratio: PowerRatioConfig
    travel: TravelConfig
    terrain: TerrainFactors
    limits: LimitsConfig

    @staticmethod
    def load(data_dir: Path) -> "CombatRules":
        """Load combat rules from ``combat.json`` in the data directory."""
        path = data_dir / "combat.json"
        data = load_json(path)
        return CombatRules(
            squad=_load_squad(path, _section(path, data, "squad")),
            enemy=_load_enemy(path, _section(path, data, "enemy")),
            difficulty=_load_difficulty(path, _section(path, data, "difficulty")),
            power_ratio=_load_power_ratio(path, _section(path, data, "power_ratio")),
            travel=_load_travel(path, _section(path, data, "travel")),
            terrain=_load_terrain(path, _section(path, data, "terrain")),
            limits=_load_limits(path, _section(path, data, "limits")),
        )


@lru_cache(maxsize=1)
def load_default_rules() -> CombatRules:
    return CombatRules.load(DEFAULT_DATA_DIR)


def load_json(path: Path) -> dict[str, Any]:
    """Load JSON file."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError as exc:
        raise RulesError(f"Rules file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise RulesError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise RulesError(f"{path}: top level must be object")
    return data


def _section(path: Path, data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise RulesError(f"{path}: '{key}' must be object")
    return value


def _float(path: Path, data: dict[str, Any], key: str, default: float) -> float:
    value = data.get(key, default)
    if isinstance(value, bool):
        raise RulesError(f"{path}: {key} must be number")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise RulesError(f"{path}: {key} must be number") from exc


def _load_squad(path: Path, data: dict[str, Any]) -> SquadConfig:
    return SquadConfig(
        dps_floor=_float(path, data, "dps_floor", 0.5),
        unarmed_base_dps=_float(path, data, "unarmed_base_dps", 0.2),
        unarmed_dps_per_level=_float(path, data, "unarmed_dps_per_level", 0.25),
    )


def _load_enemy(path: Path, data: dict[str, Any]) -> EnemyConfig:
    return EnemyConfig(
        dps_floor=_float(path, data, "dps_floor", 0.5),
        default_accuracy=_float(path, data, "default_accuracy", 60.0),
        default_rate_per_minute=_float(path, data, "default_rate_per_minute", 30.0),
        default_damage=_float(path, data, "default_damage", 10.0),
        default_reliability=_float(path, data, "default_reliability", 0.75),
        default_health=_float(path, data, "default_health", 40.0),
        inline_fire_rate_scale=_float(path, data, "inline_fire_rate_scale", 20.0),
        health_scale=_float(path, data, "health_scale", 30.0),
    )


def _load_difficulty(path: Path, data: dict[str, Any]) -> DifficultyConfig:
    config = DifficultyConfig(
        exponent=_float(path, data, "exponent", 1.5),
        max_difficulty=_float(path, data, "max_difficulty", 1000.0),
    )
    if config.max_difficulty < 1.0:
        raise RulesError(f"{path}: difficulty.max_difficulty must be >= 1")
    return config


def _load_power_ratio(path: Path, data: dict[str, Any]) -> PowerRatioConfig:
    config = PowerRatioConfig(
        dominant_threshold=_float(path, data, "dominant_threshold", 2.0),
        dominant_multiplier=_float(path, data, "dominant_multiplier", 0.6),
        outmatched_threshold=_float(path, data, "outmatched_threshold", 0.5),
        outmatched_multiplier=_float(path, data, "outmatched_multiplier", 2.5),
        even_multiplier=_float(path, data, "even_multiplier", 1.2),
    )
    if config.outmatched_threshold > config.dominant_threshold:
        raise RulesError(f"{path}: power_ratio thresholds are inverted")
    return config


def _load_travel(path: Path, data: dict[str, Any]) -> TravelConfig:
    config = TravelConfig(
        base_minutes=_float(path, data, "base_minutes", 30.0),
        minutes_per_difficulty=_float(path, data, "minutes_per_difficulty", 10.0),
        intelligence_weight=_float(path, data, "intelligence_weight", 0.2),
        survival_weight=_float(path, data, "survival_weight", 0.2),
        reduction_floor=_float(path, data, "reduction_floor", 0.6),
        min_minutes=int(_float(path, data, "min_minutes", 9)),
        max_minutes=int(_float(path, data, "max_minutes", 600)),
    )
    if config.min_minutes > config.max_minutes:
        raise RulesError(f"{path}: travel.min_minutes exceeds travel.max_minutes")
    return config


def _load_terrain(path: Path, data: dict[str, Any]) -> TerrainFactors:
    location = _load_factor_table(path, data.get("location", []), "terrain.location")
    sub_terrain = _load_factor_table(path, data.get("sub_terrain", []), "terrain.sub_terrain")

    location_factors: dict[LocationTerrain, float] = {}
    for tag in LocationTerrain:
        if tag.value not in location:
            raise RulesError(f"{path}: terrain.location missing '{tag.value}'")
        location_factors[tag] = location.pop(tag.value)

    sub_factors: dict[SubTerrain, float] = {}
    for tag in SubTerrain:
        # Unlisted sub-terrains are neutral.
        sub_factors[tag] = sub_terrain.pop(tag.value, 1.0)

    for unknown in sorted(set(location) | set(sub_terrain)):
        logger.warning("Ignoring unknown terrain key '%s' in %s", unknown, path)

    return TerrainFactors(location=location_factors, sub_terrain=sub_factors)


def _load_factor_table(path: Path, items: Any, label: str) -> dict[str, float]:
    if not isinstance(items, list):
        raise RulesError(f"{path}: {label} must be array")
    table: dict[str, float] = {}
    for item in items:
        if not isinstance(item, dict):
            raise RulesError(f"{path}: {label} entry must be object")
        entry_id = item.get("id")
        if not isinstance(entry_id, str):
            raise RulesError(f"{path}: {label}.id must be string")
        table[entry_id.lower()] = _float(path, item, "factor", 1.0)
    return table


def _load_limits(path: Path, data: dict[str, Any]) -> LimitsConfig:
    return LimitsConfig(
        max_health=_float(path, data, "max_health", 1_000_000.0),
        max_damage=_float(path, data, "max_damage", 100_000.0),
        max_rate_per_minute=_float(path, data, "max_rate_per_minute", 6000.0),
    )
