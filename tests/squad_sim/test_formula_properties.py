from __future__ import annotations

import copy

from hypothesis import given, settings
from hypothesis import strategies as st

from squad_sim.systems.formula import estimate, member_dps
from tests.helpers.factories import make_enemy, make_member, ranged_weapon
from tests.helpers.invariants import assert_estimate_well_formed
from tests.helpers.strategies import (
    difficulty_strategy,
    enemy_strategy,
    junk_values,
    location_strategy,
    member_strategy,
    sub_terrain_strategy,
)


@given(
    squad=st.lists(member_strategy(), max_size=6),
    enemies=st.lists(enemy_strategy(), max_size=6),
    difficulty=difficulty_strategy(),
    location=location_strategy(),
    sub_terrain=sub_terrain_strategy(),
)
@settings(max_examples=200)
def test_estimate_is_total_and_finite(squad, enemies, difficulty, location, sub_terrain) -> None:
    result = estimate(squad, enemies, difficulty, location, sub_terrain)

    assert_estimate_well_formed(result)


@given(difficulty=junk_values, location=junk_values, sub_terrain=junk_values)
@settings(max_examples=50)
def test_estimate_tolerates_junk_scalars(difficulty, location, sub_terrain) -> None:
    result = estimate([make_member()], [make_enemy()], difficulty, location, sub_terrain)

    assert_estimate_well_formed(result)


@given(
    squad=st.lists(member_strategy(), max_size=4),
    enemies=st.lists(enemy_strategy(), max_size=4),
    difficulty=difficulty_strategy(),
    location=location_strategy(),
)
@settings(max_examples=75)
def test_estimate_is_pure(squad, enemies, difficulty, location) -> None:
    squad_copy = copy.deepcopy(squad)
    enemies_copy = copy.deepcopy(enemies)

    first = estimate(squad, enemies, difficulty, location)
    second = estimate(squad_copy, enemies_copy, difficulty, location)

    assert first == second
    assert squad == squad_copy
    assert enemies == enemies_copy


@given(
    low=difficulty_strategy(),
    bump=st.floats(min_value=0, max_value=50, allow_nan=False),
    enemies=st.lists(enemy_strategy(), max_size=4),
)
@settings(max_examples=100)
def test_difficulty_modifier_is_monotonic(low: float, bump: float, enemies) -> None:
    squad = [make_member(weapon=ranged_weapon())]
    easy = estimate(squad, enemies, low, "Valley")
    hard = estimate(squad, enemies, low + bump, "Valley")

    assert hard.difficulty_modifier >= easy.difficulty_modifier
    assert hard.travel_minutes >= easy.travel_minutes


@given(
    health=st.floats(min_value=1, max_value=500, allow_nan=False),
    squad_damage=st.floats(min_value=10, max_value=200, allow_nan=False),
)
@settings(max_examples=100)
def test_dominant_squad_finishes_faster_than_even_fight(health: float, squad_damage: float) -> None:
    squad = [make_member(weapon=ranged_weapon(damage=squad_damage, rpm=60, accuracy=100, reliability=100))]
    # Same total health, enemy DPS chosen to land the ratio in either branch.
    weak_enemy = [make_enemy(health=health, damage=squad_damage / 10, accuracy=100, weapon={"fireRate": 3})]
    even_enemy = [make_enemy(health=health, damage=squad_damage / 0.75, accuracy=100, weapon={"fireRate": 3})]

    dominant = estimate(squad, weak_enemy, 1, "Valley")
    even = estimate(squad, even_enemy, 1, "Valley")

    assert dominant.total_enemy_health == even.total_enemy_health
    assert dominant.power_ratio > 2
    assert 0.5 <= even.power_ratio <= 2
    assert dominant.combat_seconds < even.combat_seconds


@given(
    low=st.floats(min_value=0, max_value=200, allow_nan=False),
    bump=st.floats(min_value=0, max_value=200, allow_nan=False),
    stat=st.sampled_from(["combat", "level", "strength"]),
)
@settings(max_examples=150)
def test_higher_combat_stats_never_lower_member_dps(low: float, bump: float, stat: str) -> None:
    weaker = member_dps(make_member(stats={stat: low}))
    stronger = member_dps(make_member(stats={stat: low + bump}))

    assert stronger >= weaker


@given(
    low=st.floats(min_value=0, max_value=200, allow_nan=False),
    bump=st.floats(min_value=0, max_value=200, allow_nan=False),
)
@settings(max_examples=150)
def test_smarter_squads_never_travel_longer(low: float, bump: float) -> None:
    slow = estimate([make_member(stats={"intelligence": low, "survival": low})], [], 2, "Valley")
    fast = estimate([make_member(stats={"intelligence": low + bump, "survival": low + bump})], [], 2, "Valley")

    assert fast.travel_minutes <= slow.travel_minutes
