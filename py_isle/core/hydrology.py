"""
River carving.

Rivers start at the highest inland tiles and walk greedily downhill and
toward the coast until they reach the sea, get stuck, or hit the step limit.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from .hex_grid import HexCoordinate, hex_neighbors, pack_key
from .tiles import COASTLINE, Terrain, Tile, TileMap

logger = structlog.get_logger()


@dataclass
class HydrologyOptions:
    """River carving options."""

    river_sources: int = 3  # Number of rivers to carve
    min_source_elevation: float = 0.65  # Sources must be strictly above this
    min_source_water_distance: int = 3  # Sources must be strictly further inland
    max_river_length: int = 100  # Step limit per river
    elevation_weight: float = 100.0
    water_distance_weight: float = 2.0
    unknown_water_distance: int = 10  # Used for tiles the distance BFS never reached


@dataclass
class River:
    """Represents a carved river."""

    id: int
    cells: List[HexCoordinate] = field(default_factory=list)  # Walk order, source first
    source: Optional[HexCoordinate] = None
    mouth: Optional[HexCoordinate] = None  # Last tile before the sea, if it got there
    reached_sea: bool = False

    @property
    def length(self) -> int:
        return len(self.cells)


class Hydrology:
    """Handles river generation on a marked-up tile map."""

    def __init__(self, tiles: TileMap, options: Optional[HydrologyOptions] = None):
        """
        Initialize hydrology system.

        Args:
            tiles: Tile map with coastline and water distance populated
            options: River carving options
        """
        self.tiles = tiles
        self.options = options or HydrologyOptions()
        self.rivers: List[River] = []

    def find_sources(self) -> List[Tile]:
        """High inland tiles, highest first."""
        opts = self.options
        candidates = [
            tile
            for tile in self.tiles.values()
            if tile.is_land
            and tile.terrain not in COASTLINE
            and tile.elevation > opts.min_source_elevation
            and tile.water_distance(0) > opts.min_source_water_distance
        ]
        candidates.sort(key=lambda t: t.elevation, reverse=True)
        return candidates[: opts.river_sources]

    def _score(self, tile: Tile) -> float:
        opts = self.options
        return (
            tile.elevation * opts.elevation_weight
            + tile.water_distance(opts.unknown_water_distance) * opts.water_distance_weight
        )

    def trace_river(self, river_id: int, source: Tile) -> River:
        """Greedy walk from a source over unvisited neighbours."""
        river = River(id=river_id, source=source.coord)
        visited = set()
        current: Optional[Tile] = source

        while current is not None and len(river.cells) < self.options.max_river_length:
            if current.terrain == Terrain.SEA:
                river.reached_sea = True
                break

            river.cells.append(current.coord)
            visited.add(pack_key(current.q, current.r))

            lowest = None
            lowest_score = float("inf")
            for n in hex_neighbors(current.coord):
                if pack_key(n.q, n.r) in visited:
                    continue
                neighbor = self.tiles.get(n)
                if neighbor is None:
                    continue
                score = self._score(neighbor)
                if score < lowest_score:
                    lowest_score = score
                    lowest = neighbor

            current = lowest

        if river.reached_sea and river.cells:
            river.mouth = river.cells[-1]
        return river

    def carve_rivers(self) -> List[River]:
        """
        Carve rivers from the highest inland sources.

        Non-coastline tiles on each path become RIVER tiles with water
        distance 0. Beaches and cliffs on a path keep their terrain.
        """
        sources = self.find_sources()
        if not sources:
            logger.warning("No suitable river sources found")
            return []

        logger.info(
            "Carving rivers",
            rivers=len(sources),
            top_elevation=round(sources[0].elevation, 2),
        )

        total = 0
        for i, source in enumerate(sources):
            river = self.trace_river(i, source)
            for coord in river.cells:
                tile = self.tiles[coord]
                if tile.terrain in COASTLINE:
                    continue
                tile.terrain = Terrain.RIVER
                tile.is_river = True
                tile.is_passable = True
                tile.distance_to_water = 0
                total += 1
            self.rivers.append(river)
            logger.debug("River carved", river_id=i, length=river.length, reached_sea=river.reached_sea)

        logger.info("Carved rivers", river_tiles=total)
        return self.rivers
