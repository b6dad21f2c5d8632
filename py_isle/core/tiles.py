"""
Tile data model and the canonical terrain taxonomy.

A single Terrain enum is shared by generation, faction growth, exploration
difficulty and travel costs, so every subsystem speaks about the same
terrain tags.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Dict, FrozenSet, Optional

from .hex_grid import HexCoordinate

if TYPE_CHECKING:
    from .locations import StrategicLocation


class Terrain(IntEnum):
    """Terrain and biome types."""

    SEA = 0
    BEACH = 1
    CLIFF = 2
    RIVER = 3
    SAVANNA = 4
    FOREST = 5
    RAINFOREST = 6
    DRY_HILL = 7
    JUNGLE_HILL = 8
    CLOUD_FOREST = 9
    ROCKY_PEAK = 10
    MISTY_PEAK = 11
    MANGROVE = 12
    PALM_GROVE = 13

    @property
    def tag(self) -> str:
        return TERRAIN_TAGS[self]

    @classmethod
    def from_tag(cls, tag: str) -> "Terrain":
        try:
            return _TAG_LOOKUP[tag]
        except KeyError:
            raise ValueError(f"Unknown terrain tag: {tag!r}") from None


# Serialized tags
TERRAIN_TAGS: Dict[Terrain, str] = {
    Terrain.SEA: "sea",
    Terrain.BEACH: "beach",
    Terrain.CLIFF: "cliff",
    Terrain.RIVER: "river",
    Terrain.SAVANNA: "savanna",
    Terrain.FOREST: "forest",
    Terrain.RAINFOREST: "rainforest",
    Terrain.DRY_HILL: "dry-hill",
    Terrain.JUNGLE_HILL: "jungle-hill",
    Terrain.CLOUD_FOREST: "cloud-forest",
    Terrain.ROCKY_PEAK: "rocky-peak",
    Terrain.MISTY_PEAK: "misty-peak",
    Terrain.MANGROVE: "mangrove",
    Terrain.PALM_GROVE: "palm-grove",
}

_TAG_LOOKUP: Dict[str, Terrain] = {tag: terrain for terrain, tag in TERRAIN_TAGS.items()}

# Terrain names for display
TERRAIN_NAMES: Dict[Terrain, str] = {
    Terrain.SEA: "Sea",
    Terrain.BEACH: "Beach",
    Terrain.CLIFF: "Cliff",
    Terrain.RIVER: "River",
    Terrain.SAVANNA: "Savanna",
    Terrain.FOREST: "Forest",
    Terrain.RAINFOREST: "Rainforest",
    Terrain.DRY_HILL: "Dry Hills",
    Terrain.JUNGLE_HILL: "Jungle Hills",
    Terrain.CLOUD_FOREST: "Cloud Forest",
    Terrain.ROCKY_PEAK: "Rocky Peak",
    Terrain.MISTY_PEAK: "Misty Peak",
    Terrain.MANGROVE: "Mangrove Swamp",
    Terrain.PALM_GROVE: "Palm Grove",
}

# The eight biomes of the elevation x moisture table
CORE_BIOMES = (
    Terrain.SAVANNA,
    Terrain.FOREST,
    Terrain.RAINFOREST,
    Terrain.DRY_HILL,
    Terrain.JUNGLE_HILL,
    Terrain.CLOUD_FOREST,
    Terrain.ROCKY_PEAK,
    Terrain.MISTY_PEAK,
)

COASTAL_BIOMES = (Terrain.MANGROVE, Terrain.PALM_GROVE)

BIOMES: FrozenSet[Terrain] = frozenset(CORE_BIOMES + COASTAL_BIOMES)

COASTLINE: FrozenSet[Terrain] = frozenset({Terrain.BEACH, Terrain.CLIFF})

# Tiles whose terrain is fixed by hydrology/coast passes, never by biome passes
FIXED_TERRAIN: FrozenSet[Terrain] = frozenset({Terrain.SEA, Terrain.BEACH, Terrain.CLIFF, Terrain.RIVER})

HILLS: FrozenSet[Terrain] = frozenset({Terrain.DRY_HILL, Terrain.JUNGLE_HILL})
PEAKS: FrozenSet[Terrain] = frozenset({Terrain.ROCKY_PEAK, Terrain.MISTY_PEAK})

# Faction keys
CASTAWAYS = "castaways"
TIDAL_CLAN = "tidal-clan"
RIDGE_CLAN = "ridge-clan"
MERCENARIES = "mercenaries"
NEUTRAL = "neutral"


@dataclass(eq=False)
class Tile:
    """One hex of the island. Mutated in place by the generation passes."""

    coord: HexCoordinate
    elevation: float = 0.0
    moisture: float = 0.0
    terrain: Optional[Terrain] = None
    is_land: bool = False
    is_passable: bool = False
    is_edge: bool = False
    is_cliff: bool = False
    is_river: bool = False
    distance_to_water: Optional[int] = None
    faction: Optional[str] = None
    territory_distance: Optional[int] = None
    is_frontier: bool = False
    is_strategic: bool = False
    is_sacred: bool = False
    strategic_location: Optional["StrategicLocation"] = field(default=None, repr=False)

    @property
    def q(self) -> int:
        return self.coord.q

    @property
    def r(self) -> int:
        return self.coord.r

    @property
    def is_coastline(self) -> bool:
        return self.terrain in COASTLINE

    @property
    def can_land_from_sea(self) -> bool:
        return self.terrain == Terrain.BEACH

    @property
    def is_biome(self) -> bool:
        return self.terrain in BIOMES

    def water_distance(self, default: int) -> int:
        """``distance_to_water`` with a fallback for tiles the BFS never reached."""
        if self.distance_to_water is None:
            return default
        return self.distance_to_water


TileMap = Dict[HexCoordinate, Tile]
