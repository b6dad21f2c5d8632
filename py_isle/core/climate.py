"""
Moisture calculation.

Moisture blends a fractal noise field with proximity to water, so coasts and
river valleys come out wetter than the dry interior.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
import structlog

from .noise import SimplexNoise
from .tiles import TileMap

logger = structlog.get_logger()


@dataclass
class ClimateOptions:
    """Moisture calculation options."""

    moisture_scale: float = 0.14  # Noise frequency
    octaves: int = 3
    noise_weight: float = 0.6  # Share of noise, the rest is water proximity
    proximity_falloff: float = 0.3  # Per-step decay of the water proximity bonus
    unknown_water_distance: int = 10  # Used for tiles the distance BFS never reached


class Climate:
    """Handles moisture calculation."""

    def __init__(self, tiles: TileMap, noise: SimplexNoise, options: Optional[ClimateOptions] = None):
        """
        Initialize climate calculator.

        Args:
            tiles: Tile map with hydrology applied
            noise: Moisture noise field
            options: Moisture options
        """
        self.tiles = tiles
        self.noise = noise
        self.options = options or ClimateOptions()

    def generate_moisture(self) -> np.ndarray:
        """
        Assign moisture to every tile. Sea tiles get 0.

        Returns:
            Moisture values in tile order
        """
        opts = self.options
        values = np.zeros(len(self.tiles), dtype=np.float64)

        for i, tile in enumerate(self.tiles.values()):
            if not tile.is_land:
                tile.moisture = 0.0
                continue

            base = self.noise.fractal(tile.q * opts.moisture_scale, tile.r * opts.moisture_scale, opts.octaves)
            base = base * 0.5 + 0.5

            distance = tile.water_distance(opts.unknown_water_distance)
            proximity = 1.0 / (1.0 + distance * opts.proximity_falloff)

            moisture = base * opts.noise_weight + proximity * (1 - opts.noise_weight)
            tile.moisture = max(0.0, min(1.0, moisture))
            values[i] = tile.moisture

        land = values[values > 0]
        logger.info(
            "Generated moisture",
            land_tiles=int(land.size),
            mean_moisture=round(float(land.mean()), 3) if land.size else 0.0,
        )
        return values
