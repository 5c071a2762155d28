from __future__ import annotations

import pytest

from squad_sim.systems.stats import coerce_number, map_core_stats, read_field


def test_read_field_from_mapping_and_object() -> None:
    class Record:
        name = "Vex"
        rank = None

    assert read_field({"a": None, "b": 2}, "a", "b") == 2
    assert read_field(Record(), "rank", "name") == "Vex"
    assert read_field(Record(), "missing", default="x") == "x"
    assert read_field(None, "anything") is None


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (3, 3.0),
        (2.5, 2.5),
        (True, 7.0),
        ("3", 7.0),
        (None, 7.0),
        (float("nan"), 7.0),
        (float("inf"), 7.0),
        (10**400, 7.0),
    ],
)
def test_coerce_number(value, expected: float) -> None:
    assert coerce_number(value, 7.0) == expected


def test_coerce_number_clamps() -> None:
    assert coerce_number(-5, 1.0, minimum=0.0) == 0.0
    assert coerce_number(50, 1.0, maximum=10.0) == 10.0
    assert coerce_number(None, -3.0, minimum=0.0) == 0.0


def test_defaults_for_missing_stats() -> None:
    stats = map_core_stats({})

    assert stats.combat_level == 5
    assert stats.intelligence == 5
    assert stats.survival == 5
    assert stats.damage_multiplier == pytest.approx(1.0)


def test_stats_read_from_nested_or_top_level() -> None:
    nested = map_core_stats({"stats": {"combat": 8, "intelligence": 7}})
    flat = map_core_stats({"combatLevel": 8, "intelligence": 7})

    assert nested == flat
    assert nested.combat_level == 8


def test_stats_above_scale_are_capped() -> None:
    stats = map_core_stats({"stats": {"combat": 75, "survival": 250, "intelligence": 11}})

    assert stats.combat_level == 10
    assert stats.survival == 10
    assert stats.intelligence == 10


@pytest.mark.parametrize(("strength", "expected"), [(0, 0.5), (3, 0.8), (5, 1.0), (9, 1.4), (10, 1.5)])
def test_strength_drives_damage_multiplier(strength: float, expected: float) -> None:
    assert map_core_stats({"stats": {"strength": strength}}).damage_multiplier == pytest.approx(expected)


def test_explicit_damage_multiplier_wins() -> None:
    assert map_core_stats({"damageMultiplier": 2.0, "stats": {"strength": 0}}).damage_multiplier == 2.0
    assert map_core_stats({"stats": {"damage_multiplier": 9}}).damage_multiplier == 5.0
    assert map_core_stats({"damageMultiplier": "lots"}).damage_multiplier == 1.0


def test_negative_and_junk_stats() -> None:
    stats = map_core_stats({"stats": {"combat": -3, "intelligence": "smart"}})

    assert stats.combat_level == 0
    assert stats.intelligence == 5
