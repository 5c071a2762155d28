"""Weapon table and weapon normalization."""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from squad_sim.domain.types import CombatantStat, WeaponCategory
from squad_sim.rules.ruleset import DEFAULT_DATA_DIR, RulesError, load_json
from squad_sim.systems.stats import is_record, read_field

_RATE_KEYS = ("rpm", "roundsPerMinute", "rounds_per_minute")
_SWING_KEYS = ("swing_speed", "swingSpeed", "swingsPerMinute", "swings_per_minute")
_ID_KEYS = ("id", "itemId", "item_id")


@dataclass(frozen=True)
class WeaponDef:
    """A weapon table entry. Accuracy and reliability are percentages."""

    id: str
    name: str
    category: WeaponCategory
    damage: float
    rate_per_minute: float
    accuracy: float
    reliability: float

    def to_stat(self) -> CombatantStat:
        return CombatantStat(
            category=self.category,
            damage=self.damage,
            rate_per_minute=self.rate_per_minute,
            accuracy=self.accuracy / 100.0,
            reliability=self.reliability / 100.0,
            weapon_id=self.id,
        )


@dataclass(frozen=True)
class WeaponCatalog:
    weapons: dict[str, WeaponDef]

    @staticmethod
    def load(path: Path) -> "WeaponCatalog":
        data = load_json(path)
        if "weapons" not in data:
            raise RulesError(f"{path}: missing 'weapons' key")
        items = data["weapons"]
        if not isinstance(items, list):
            raise RulesError(f"{path}: 'weapons' must be array")
        weapons: dict[str, WeaponDef] = {}
        for item in items:
            if not isinstance(item, dict):
                raise RulesError(f"{path}: weapon entry must be object")
            weapon_id = item.get("id")
            if not isinstance(weapon_id, str):
                raise RulesError(f"{path}: weapon.id must be string")
            try:
                category = WeaponCategory(str(item.get("category", "")).lower())
            except ValueError as exc:
                raise RulesError(f"{path}: weapon '{weapon_id}' has unknown category") from exc
            if category == WeaponCategory.UNARMED:
                raise RulesError(f"{path}: weapon '{weapon_id}' cannot be unarmed")
            rate_keys = _RATE_KEYS if category == WeaponCategory.RANGED else _SWING_KEYS
            rate = _first_number(item, rate_keys)
            if rate is None:
                raise RulesError(f"{path}: weapon '{weapon_id}' is missing a rate")
            try:
                weapons[weapon_id.lower()] = WeaponDef(
                    id=weapon_id,
                    name=str(item.get("name", weapon_id)),
                    category=category,
                    damage=float(item["damage"]),
                    rate_per_minute=rate,
                    accuracy=float(item.get("accuracy", 100.0)),
                    reliability=float(item.get("reliability", 100.0)),
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise RulesError(f"{path}: weapon '{weapon_id}' has invalid stats") from exc
        return WeaponCatalog(weapons=weapons)

    def get(self, weapon_id: str) -> WeaponDef | None:
        return self.weapons.get(weapon_id.strip().lower())


@lru_cache(maxsize=1)
def load_default_catalog() -> WeaponCatalog:
    return WeaponCatalog.load(DEFAULT_DATA_DIR / "weapons.json")


def normalize_weapon(ref: Any, catalog: WeaponCatalog | None = None) -> CombatantStat | None:
    """Resolve an equipped-item reference into a ``CombatantStat``.

    ``ref`` may be a weapon id, an item record (mapping or plain object) whose
    id is in the catalog, or an inline record carrying its own stats. Anything else resolves to None.
    """
    catalog = catalog or load_default_catalog()

    if isinstance(ref, str):
        weapon = catalog.get(ref)
        return weapon.to_stat() if weapon else None

    if not is_record(ref):
        return None

    for key in _ID_KEYS:
        value = read_field(ref, key)
        if isinstance(value, str):
            weapon = catalog.get(value)
            if weapon is not None:
                return weapon.to_stat()

    return _inline_stat(ref)


def _inline_stat(ref: Any) -> CombatantStat | None:
    category = _inline_category(ref)
    if category is None:
        return None
    rate_keys = _RATE_KEYS if category == WeaponCategory.RANGED else _SWING_KEYS
    rate = _first_number(ref, rate_keys)
    damage = _first_number(ref, ("damage",))
    if rate is None or damage is None:
        return None
    accuracy = _first_number(ref, ("accuracy",))
    reliability = _first_number(ref, ("reliability",))
    ids = (read_field(ref, key) for key in _ID_KEYS)
    weapon_id = next((value for value in ids if isinstance(value, str)), None)
    return CombatantStat(
        category=category,
        damage=max(0.0, damage),
        rate_per_minute=max(0.0, rate),
        accuracy=_percent(accuracy, 100.0),
        reliability=_percent(reliability, 100.0),
        weapon_id=weapon_id,
    )


def _inline_category(ref: Any) -> WeaponCategory | None:
    raw = read_field(ref, "category", "type")
    if isinstance(raw, str):
        lowered = raw.lower()
        if lowered in ("ranged", "gun", "firearm"):
            return WeaponCategory.RANGED
        if lowered == "melee":
            return WeaponCategory.MELEE
    if _first_number(ref, _RATE_KEYS) is not None:
        return WeaponCategory.RANGED
    if _first_number(ref, _SWING_KEYS) is not None:
        return WeaponCategory.MELEE
    return None


def _first_number(data: Any, keys: tuple[str, ...]) -> float | None:
    for key in keys:
        value = read_field(data, key)
        if isinstance(value, bool):
            continue
        if not isinstance(value, (int, float)):
            continue
        try:
            number = float(value)
        except OverflowError:
            continue
        if math.isfinite(number):
            return number
    return None


def _percent(value: float | None, default: float) -> float:
    if value is None:
        value = default
    return min(1.0, max(0.0, value / 100.0))
