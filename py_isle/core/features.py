"""
Geographic features detection and markup.

This module handles:
- Single landmass enforcement (connected components of land)
- Beach marking along the coastline
- Distance-to-water field (multi-source BFS)
- Cliff marking on high coastline
"""

from collections import deque
from typing import Dict, List

import structlog

from .hex_grid import HexCoordinate, hex_neighbors, pack_key
from .tiles import Terrain, Tile, TileMap

logger = structlog.get_logger()

DEFAULT_CLIFF_ELEVATION = 0.6


class Features:
    """Handles coastline markup on a tile map."""

    def __init__(self, tiles: TileMap, cliff_elevation: float = DEFAULT_CLIFF_ELEVATION):
        self.tiles = tiles
        self.cliff_elevation = cliff_elevation

    def land_components(self) -> List[List[Tile]]:
        """Connected land components, each in BFS order."""
        visited = set()
        components = []

        for coord, tile in self.tiles.items():
            key = pack_key(coord.q, coord.r)
            if not tile.is_land or key in visited:
                continue

            component = []
            queue = deque([tile])
            visited.add(key)
            while queue:
                current = queue.popleft()
                component.append(current)
                for n in hex_neighbors(current.coord):
                    n_key = pack_key(n.q, n.r)
                    if n_key in visited:
                        continue
                    neighbor = self.tiles.get(n)
                    if neighbor is None or not neighbor.is_land:
                        continue
                    visited.add(n_key)
                    queue.append(neighbor)

            components.append(component)

        return components

    def ensure_single_landmass(self) -> int:
        """
        Keep only the largest land component, sinking the rest.

        Returns:
            Number of tiles converted to sea
        """
        components = self.land_components()
        if not components:
            logger.warning("No landmass found")
            return 0

        # Stable sort, the first-found component wins a size tie
        components.sort(key=len, reverse=True)

        removed = 0
        for component in components[1:]:
            for tile in component:
                tile.terrain = Terrain.SEA
                tile.is_land = False
                tile.is_passable = False
                tile.elevation = 0.0
                removed += 1

        logger.info(
            "Ensured single landmass",
            landmasses=len(components),
            main_tiles=len(components[0]),
            removed_tiles=removed,
        )
        return removed

    def mark_beaches(self) -> List[Tile]:
        """Land tiles touching the sea become beaches at water distance 0."""
        beaches = []
        for tile in self.tiles.values():
            if not tile.is_land:
                continue
            for n in hex_neighbors(tile.coord):
                neighbor = self.tiles.get(n)
                if neighbor is not None and neighbor.terrain == Terrain.SEA:
                    tile.terrain = Terrain.BEACH
                    tile.distance_to_water = 0
                    beaches.append(tile)
                    break

        self.calculate_water_distance(beaches)
        logger.info("Marked beaches", beach_tiles=len(beaches))
        return beaches

    def calculate_water_distance(self, sources: List[Tile]) -> Dict[HexCoordinate, int]:
        """
        Multi-source BFS over land from the given water-adjacent tiles.

        Unreached land keeps ``distance_to_water = None``.
        """
        distances = {}
        queue = deque(sources)
        visited = {pack_key(t.q, t.r) for t in sources}
        for t in sources:
            distances[t.coord] = t.distance_to_water or 0

        while queue:
            current = queue.popleft()
            for n in hex_neighbors(current.coord):
                key = pack_key(n.q, n.r)
                if key in visited:
                    continue
                neighbor = self.tiles.get(n)
                if neighbor is None or not neighbor.is_land:
                    continue
                neighbor.distance_to_water = (current.distance_to_water or 0) + 1
                distances[n] = neighbor.distance_to_water
                visited.add(key)
                queue.append(neighbor)

        return distances

    def mark_cliffs(self) -> int:
        """High beaches become cliffs: walkable from land, no sea landing."""
        cliffs = 0
        for tile in self.tiles.values():
            if tile.terrain != Terrain.BEACH:
                continue
            if tile.elevation >= self.cliff_elevation:
                tile.terrain = Terrain.CLIFF
                tile.is_cliff = True
                tile.is_passable = True
                cliffs += 1

        logger.info("Marked cliffs", cliff_tiles=cliffs)
        return cliffs

    def markup(self) -> None:
        """Run the coastline passes in order."""
        self.ensure_single_landmass()
        self.mark_beaches()
        self.mark_cliffs()
