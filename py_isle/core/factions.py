"""
Faction territory generation.

Process:
1. Each faction grows from its capital with a probabilistic BFS
   (``grow_territory``) in a fixed priority order
2. Remaining unsacred land becomes neutral
3. Frontier tiles (owned tiles bordering another owner) are marked

``grow_territory`` is also used at runtime for player expansion, so it only
talks to the map through two callables.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field

from .hex_grid import HexCoordinate, hex_neighbors, pack_key
from .mulberry_prng import MulberryPRNG
from .tiles import (
    CASTAWAYS,
    MERCENARIES,
    NEUTRAL,
    RIDGE_CLAN,
    TIDAL_CLAN,
    Terrain,
    Tile,
    TileMap,
)

logger = structlog.get_logger()

PLAYER = "player"

FACTION_NAMES: Dict[str, str] = {
    CASTAWAYS: "Castaways",
    TIDAL_CLAN: "Tidal Clan",
    RIDGE_CLAN: "Ridge Clan",
    MERCENARIES: "Mercenaries",
    PLAYER: "Player",
    NEUTRAL: "Neutral",
}

FACTION_COLORS: Dict[str, str] = {
    CASTAWAYS: "#fbbf24",
    TIDAL_CLAN: "#3b82f6",
    RIDGE_CLAN: "#84cc16",
    MERCENARIES: "#dc2626",
    PLAYER: "#4dd0e1",
}

# Earlier factions get first claim on contested tiles
GROWTH_ORDER = [TIDAL_CLAN, RIDGE_CLAN, MERCENARIES, CASTAWAYS]

# Returns the terrain of a claimable coordinate, None when it cannot be claimed
ClaimableFn = Callable[[HexCoordinate], Optional[Terrain]]
ClaimFn = Callable[[HexCoordinate, int], None]


class FactionConfig(BaseModel):
    """Growth parameters of a faction."""

    max_radius: int = Field(default=6, ge=0, description="Maximum BFS depth from the capital")
    preferred_terrains: List[Terrain] = Field(
        default_factory=list, description="Terrains that get a growth bonus"
    )
    growth_rate: float = Field(default=1.0, description="Base claim chance per neighbour")


@dataclass
class FactionTerritory:
    """A faction's claimed tiles."""

    key: str
    name: str
    color: Optional[str] = None  # Map color in hex format
    capital: Optional[Tile] = None
    tiles: List[Tile] = field(default_factory=list)  # Claim order, capital first
    config: Optional[FactionConfig] = None

    @property
    def size(self) -> int:
        return len(self.tiles)


DEFAULT_FACTION_CONFIGS: Dict[str, FactionConfig] = {
    CASTAWAYS: FactionConfig(
        max_radius=6,
        preferred_terrains=[Terrain.BEACH, Terrain.SAVANNA, Terrain.FOREST],
        growth_rate=0.8,
    ),
    TIDAL_CLAN: FactionConfig(
        max_radius=12,
        preferred_terrains=[Terrain.BEACH, Terrain.FOREST, Terrain.SAVANNA, Terrain.RIVER],
        growth_rate=1.0,
    ),
    RIDGE_CLAN: FactionConfig(
        max_radius=10,
        preferred_terrains=[
            Terrain.JUNGLE_HILL,
            Terrain.CLOUD_FOREST,
            Terrain.DRY_HILL,
            Terrain.ROCKY_PEAK,
            Terrain.MISTY_PEAK,
        ],
        growth_rate=0.9,
    ),
    MERCENARIES: FactionConfig(
        max_radius=8,
        preferred_terrains=[Terrain.FOREST, Terrain.JUNGLE_HILL, Terrain.DRY_HILL, Terrain.SAVANNA],
        growth_rate=0.7,
    ),
}


def expansion_chance(terrain: Optional[Terrain], depth: int, config: FactionConfig) -> float:
    """Claim probability for a neighbour reached from BFS depth ``depth``."""
    chance = config.growth_rate
    if terrain in config.preferred_terrains:
        chance += 0.3
    if terrain == Terrain.RIVER:
        chance -= 0.5
    if config.max_radius > 0:
        chance -= depth / config.max_radius * 0.4
    return max(0.1, chance)


def grow_territory(
    capital: HexCoordinate,
    config: FactionConfig,
    prng: MulberryPRNG,
    claimable: ClaimableFn,
    claim: ClaimFn,
) -> List[HexCoordinate]:
    """
    Grow a territory outward from a capital.

    BFS in canonical neighbour order. Every claimable neighbour is rolled at
    most once; claimed ones are enqueued until ``max_radius`` is reached.
    The capital itself is always claimed at distance 0.

    Args:
        capital: Capital coordinate
        config: Growth configuration
        prng: PRNG, one ``next()`` per rolled neighbour
        claimable: Terrain of an unclaimed coordinate, or None if it cannot be claimed
        claim: Called with (coordinate, distance) for every claimed tile

    Returns:
        Claimed coordinates in claim order, capital first
    """
    claim(capital, 0)
    claimed = [capital]

    queue = deque([(capital, 0)])
    visited = {pack_key(capital.q, capital.r)}

    while queue:
        current, distance = queue.popleft()
        if distance >= config.max_radius:
            continue

        for n in hex_neighbors(current):
            key = pack_key(n.q, n.r)
            if key in visited:
                continue
            terrain = claimable(n)
            if terrain is None:
                continue
            visited.add(key)

            if prng.next() < expansion_chance(terrain, distance, config):
                claim(n, distance + 1)
                claimed.append(n)
                queue.append((n, distance + 1))

    return claimed


def mark_frontier_tiles(tiles: TileMap) -> int:
    """
    Recompute ``is_frontier`` for every tile.

    A frontier tile is owned by a non-neutral faction and has a land
    neighbour with a different owner (neutral or unclaimed included).

    Returns:
        Number of frontier tiles
    """
    frontier = 0
    for tile in tiles.values():
        tile.is_frontier = False
        if tile.faction is None or tile.faction == NEUTRAL:
            continue
        for n in hex_neighbors(tile.coord):
            neighbor = tiles.get(n)
            if neighbor is not None and neighbor.is_land and neighbor.faction != tile.faction:
                tile.is_frontier = True
                frontier += 1
                break
    return frontier


class FactionTerritoryGenerator:
    """Partitions the island into faction territories."""

    def __init__(
        self,
        tiles: TileMap,
        prng: MulberryPRNG,
        configs: Optional[Dict[str, FactionConfig]] = None,
    ):
        """
        Initialize generator.

        Args:
            tiles: Tile map with strategic locations marked
            prng: Generation PRNG, shared with location placement
            configs: Growth configuration per faction key
        """
        self.tiles = tiles
        self.prng = prng
        self.configs = configs or DEFAULT_FACTION_CONFIGS
        self.territories: Dict[str, FactionTerritory] = {}

    def _claimable(self, coord: HexCoordinate) -> Optional[Terrain]:
        tile = self.tiles.get(coord)
        if tile is None or not tile.is_land or tile.faction is not None or tile.is_sacred:
            return None
        return tile.terrain

    def generate(self, capitals: Dict[str, Tile]) -> Dict[str, FactionTerritory]:
        """
        Grow every faction from its capital, then assign neutral land.

        Args:
            capitals: Capital tile per faction key

        Returns:
            Territories per faction key, plus ``neutral``
        """
        for key in GROWTH_ORDER:
            if key in self.configs:
                self.territories[key] = FactionTerritory(
                    key=key,
                    name=FACTION_NAMES.get(key, key),
                    color=FACTION_COLORS.get(key),
                    config=self.configs[key],
                )
        neutral = FactionTerritory(key=NEUTRAL, name=FACTION_NAMES[NEUTRAL])

        for key in GROWTH_ORDER:
            territory = self.territories.get(key)
            if territory is None:
                continue
            capital = capitals.get(key)
            if capital is None:
                logger.warning("No capital for faction, skipping territory", faction=key)
                continue

            territory.capital = capital

            def claim(coord: HexCoordinate, distance: int, territory=territory) -> None:
                tile = self.tiles[coord]
                tile.faction = territory.key
                tile.territory_distance = distance
                territory.tiles.append(tile)

            grow_territory(capital.coord, territory.config, self.prng, self._claimable, claim)

        for tile in self.tiles.values():
            if tile.is_land and tile.faction is None and not tile.is_sacred:
                tile.faction = NEUTRAL
                neutral.tiles.append(tile)
        self.territories[NEUTRAL] = neutral

        frontier = mark_frontier_tiles(self.tiles)

        logger.info(
            "Generated faction territories",
            frontier_tiles=frontier,
            **{key.replace("-", "_"): t.size for key, t in self.territories.items()},
        )
        return self.territories
