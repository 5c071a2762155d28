"""Terrain tag resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from squad_sim.domain.types import LocationTerrain, SubTerrain
from squad_sim.rules.ruleset import CombatRules


@dataclass(frozen=True)
class TerrainProfile:
    location: LocationTerrain
    sub_terrain: SubTerrain

    def travel_factor(self, rules: CombatRules) -> float:
        factors = rules.terrain
        return factors.location[self.location] * factors.sub_terrain[self.sub_terrain]


def resolve_location(location: Any) -> LocationTerrain:
    if isinstance(location, LocationTerrain):
        return location
    text = location.lower() if isinstance(location, str) else ""
    for tag in LocationTerrain:
        if tag != LocationTerrain.OPEN and tag.value in text:
            return tag
    return LocationTerrain.OPEN


def resolve_sub_terrain(sub_terrain: Any) -> SubTerrain:
    if isinstance(sub_terrain, SubTerrain):
        return sub_terrain
    text = sub_terrain.lower() if isinstance(sub_terrain, str) else ""
    for tag in SubTerrain:
        if tag != SubTerrain.NONE and tag.value in text:
            return tag
    return SubTerrain.NONE


def resolve_terrain(location: Any, sub_terrain: Any = None) -> TerrainProfile:
    """Parse free-text location names once into terrain tags.

    Matching is a case-insensitive substring test in enum order, so
    "Junction Complex" resolves to JUNCTION.
    """
    return TerrainProfile(
        location=resolve_location(location),
        sub_terrain=resolve_sub_terrain(sub_terrain),
    )
