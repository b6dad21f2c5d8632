"""
Elevation generation for the hex island.

Elevation is a blend of a radial continent falloff and fractal simplex noise.
A second noise field jitters the falloff distance so the coastline is not a
perfect hexagon. Tiles beyond ``radius - ocean_boundary_width`` form a forced
ocean rim.
"""

from collections import OrderedDict
from dataclasses import dataclass

import numpy as np
import structlog

from .hex_grid import HexGrid
from .noise import SimplexNoise
from .tiles import Terrain, Tile, TileMap

logger = structlog.get_logger()


@dataclass
class HeightmapOptions:
    """Elevation and land/sea options."""

    ocean_boundary_width: int = 1  # Rings of forced ocean at the map edge
    elevation_scale: float = 0.12  # Noise frequency, lower = smoother terrain
    edge_noise_scale: float = 0.2  # Frequency of the coastline jitter
    edge_noise_strength: float = 0.15  # Amplitude of the coastline jitter
    falloff_exponent: float = 1.5  # Lower = land extends further out
    continent_blend: float = 0.6  # Share of falloff vs noise in the elevation
    land_threshold: float = 0.25  # Elevation at or below which a tile is sea
    octaves: int = 4


class HeightmapGenerator:
    """Builds the tile map and assigns elevation, edge and land flags."""

    def __init__(
        self,
        grid: HexGrid,
        noise: SimplexNoise,
        edge_noise: SimplexNoise,
        options: HeightmapOptions = None,
    ):
        """
        Initialize heightmap generator.

        Args:
            grid: Hex grid defining the map radius
            noise: Elevation noise field
            edge_noise: Coastline jitter noise field
            options: Heightmap options
        """
        self.grid = grid
        self.noise = noise
        self.edge_noise = edge_noise
        self.options = options or HeightmapOptions()

    def generate(self) -> TileMap:
        """Create every tile of the circular map with its elevation."""
        tiles = self.generate_elevation()
        self.threshold_land_sea(tiles)
        return tiles

    def generate_elevation(self) -> TileMap:
        """
        Compute elevation for every hex.

        Returns:
            Ordered tile map in canonical (q-major) order
        """
        opts = self.options
        radius = self.grid.radius
        coords = self.grid.circular_map()

        q = np.array([c.q for c in coords], dtype=np.float64)
        r = np.array([c.r for c in coords], dtype=np.float64)
        dist = np.maximum(np.maximum(np.abs(q), np.abs(r)), np.abs(q + r))

        land_radius = radius - opts.ocean_boundary_width
        is_edge = dist > land_radius

        # Coastline jitter perturbs the normalized distance
        coast_noise = np.array(
            [
                self.edge_noise.noise2d(c.q * opts.edge_noise_scale, c.r * opts.edge_noise_scale)
                for c in coords
            ]
        )
        land_dist = dist / land_radius if land_radius > 0 else np.ones_like(dist)
        adjusted = np.maximum(0.0, land_dist + coast_noise * opts.edge_noise_strength)

        # Rim tiles can push ``1 - adjusted`` negative, they are forced to 0 below
        base = np.clip(1.0 - adjusted, 0.0, None)
        falloff = np.power(base, opts.falloff_exponent)

        fractal = np.array(
            [
                self.noise.fractal(
                    c.q * opts.elevation_scale, c.r * opts.elevation_scale, opts.octaves, 0.5, 2.0
                )
                for c in coords
            ]
        )

        elevation = opts.continent_blend * falloff + (1 - opts.continent_blend) * (fractal * 0.5 + 0.5)
        elevation = np.clip(elevation, 0.0, 1.0)
        elevation[is_edge] = 0.0

        tiles: TileMap = OrderedDict()
        for i, coord in enumerate(coords):
            tiles[coord] = Tile(
                coord=coord,
                elevation=float(elevation[i]),
                is_edge=bool(is_edge[i]),
            )

        logger.info(
            "Generated elevation",
            tiles=len(tiles),
            edge_tiles=int(is_edge.sum()),
            mean_elevation=round(float(elevation.mean()), 3) if len(coords) else 0.0,
        )
        return tiles

    def threshold_land_sea(self, tiles: TileMap) -> int:
        """
        Split land from sea. Rim tiles and tiles at or below the threshold
        become impassable sea.

        Returns:
            Number of land tiles
        """
        land = 0
        for tile in tiles.values():
            if tile.is_edge or tile.elevation <= self.options.land_threshold:
                tile.terrain = Terrain.SEA
                tile.is_land = False
                tile.is_passable = False
            else:
                tile.is_land = True
                tile.is_passable = True
                land += 1

        if land == 0:
            logger.warning("No land above threshold", land_threshold=self.options.land_threshold)
        else:
            logger.info("Separated land from sea", land_tiles=land, sea_tiles=len(tiles) - land)
        return land
