"""
Island generation pipeline.

Runs the generation passes in strict order on a single seed:

1. Elevation (radial falloff blended with fractal noise)
2. Land/sea threshold
3. Single landmass enforcement
4. Beaches, water distance and cliffs
5. River carving
6. Moisture
7. Biome assignment, diversity seeding and smoothing
8. Strategic locations
9. Faction territories

Every pass reads state written by the previous one. A pass with nothing to
work on logs a warning and is skipped, the pipeline always returns an Island.
"""

import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field

from ..utils.random import Seed, create_prng, normalize_seed
from .biomes import BiomeClassifier, BiomeOptions
from .climate import Climate, ClimateOptions
from .factions import FactionTerritory, FactionTerritoryGenerator
from .features import Features
from .heightmap import HeightmapGenerator, HeightmapOptions
from .hex_grid import HexCoordinate, HexGrid
from .hydrology import Hydrology, HydrologyOptions, River
from .locations import LocationOptions, StrategicLocationPlacer, StrategicLocations
from .noise import SimplexNoise
from .tiles import TERRAIN_TAGS, Tile, TileMap

logger = structlog.get_logger()

EDGE_NOISE_SEED_OFFSET = 500
MOISTURE_NOISE_SEED_OFFSET = 1000


class IslandOptions(BaseModel):
    """Island generation options."""

    radius: int = Field(default=20, ge=2, le=200, description="Hex radius of the map")
    ocean_boundary_width: int = Field(
        default=1, ge=0, le=10, description="Rings of forced ocean at the map edge"
    )
    elevation_scale: float = Field(
        default=0.12, gt=0, description="Elevation noise frequency, lower = smoother terrain"
    )
    moisture_scale: float = Field(default=0.14, gt=0, description="Moisture noise frequency")
    falloff_exponent: float = Field(
        default=1.5, gt=0, description="Radial falloff exponent, lower = land extends further"
    )
    river_sources: int = Field(default=3, ge=0, le=20, description="Number of rivers to carve")
    land_threshold: float = Field(
        default=0.25, ge=0, le=1, description="Elevation at or below which a tile is sea"
    )
    edge_noise_strength: float = Field(
        default=0.15, ge=0, le=1, description="Coastline irregularity"
    )
    continent_blend: float = Field(
        default=0.6, ge=0, le=1, description="Share of radial falloff vs noise in elevation"
    )
    cliff_elevation: float = Field(
        default=0.6, ge=0, le=1, description="Beaches at or above this elevation become cliffs"
    )
    coastal_biomes: bool = Field(default=True, description="Enable mangrove and palm grove biomes")
    min_biome_tiles: int = Field(default=3, ge=0, description="Minimum tiles per core biome")
    smoothing_passes: int = Field(default=2, ge=0, le=10, description="Biome smoothing passes")
    points_of_interest: bool = Field(
        default=True, description="Place shipwrecks, natural landmarks and ruins"
    )
    hex_size: float = Field(default=40.0, gt=0, description="Pixel size of a hex for renderers")

    def heightmap_options(self) -> HeightmapOptions:
        return HeightmapOptions(
            ocean_boundary_width=self.ocean_boundary_width,
            elevation_scale=self.elevation_scale,
            edge_noise_strength=self.edge_noise_strength,
            falloff_exponent=self.falloff_exponent,
            continent_blend=self.continent_blend,
            land_threshold=self.land_threshold,
        )

    def hydrology_options(self) -> HydrologyOptions:
        return HydrologyOptions(river_sources=self.river_sources)

    def climate_options(self) -> ClimateOptions:
        return ClimateOptions(moisture_scale=self.moisture_scale)

    def biome_options(self) -> BiomeOptions:
        return BiomeOptions(
            coastal_biomes=self.coastal_biomes,
            min_biome_tiles=self.min_biome_tiles,
            smoothing_passes=self.smoothing_passes,
        )

    def location_options(self) -> LocationOptions:
        return LocationOptions(place_points_of_interest=self.points_of_interest)


@dataclass
class Island:
    """A generated island. Plain data, safe to hand to renderers and serializers."""

    seed: Seed
    numeric_seed: int
    options: IslandOptions
    grid: HexGrid
    tiles: TileMap
    locations: StrategicLocations
    factions: Dict[str, FactionTerritory]
    rivers: List[River] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)
    generation_time_seconds: float = 0.0

    @property
    def radius(self) -> int:
        return self.grid.radius

    def get_tile(self, q: int, r: int) -> Optional[Tile]:
        return self.tiles.get(HexCoordinate(q, r))

    def land_tiles(self) -> List[Tile]:
        return [t for t in self.tiles.values() if t.is_land]

    @property
    def starting_tile(self) -> Optional[Tile]:
        beach = self.locations.castaway_beach
        return beach.tile if beach is not None else None


def get_map_stats(tiles: TileMap) -> Dict[str, Any]:
    """
    Summary statistics of a tile map.

    Returns:
        total_tiles, terrain_counts (by tag), land_tiles, sea_tiles,
        land_percentage and edge_tiles
    """
    counts = Counter(t.terrain for t in tiles.values() if t.terrain is not None)
    land = sum(1 for t in tiles.values() if t.is_land)
    total = len(tiles)
    return {
        "total_tiles": total,
        "terrain_counts": {TERRAIN_TAGS[terrain]: counts[terrain] for terrain in sorted(counts)},
        "land_tiles": land,
        "sea_tiles": total - land,
        "land_percentage": round(land / total * 100, 1) if total else 0.0,
        "edge_tiles": sum(1 for t in tiles.values() if t.is_edge),
    }


class IslandGenerator:
    """
    Generates an island from a seed.

    All randomness comes from one Mulberry32 stream and three simplex noise
    fields derived from the seed, so the same seed and options always give
    the same island.
    """

    def __init__(self, seed: Seed, options: Optional[IslandOptions] = None):
        """
        Initialize the generator.

        Args:
            seed: Seed string or number
            options: Generation options, defaults for anything omitted
        """
        self.seed = seed
        self.numeric_seed = normalize_seed(seed)
        self.options = options or IslandOptions()
        self.grid = HexGrid(self.options.radius, self.options.hex_size)

        self.prng = create_prng(self.numeric_seed)
        self.elevation_noise = SimplexNoise(self.numeric_seed)
        self.edge_noise = SimplexNoise(self.numeric_seed + EDGE_NOISE_SEED_OFFSET)
        self.moisture_noise = SimplexNoise(self.numeric_seed + MOISTURE_NOISE_SEED_OFFSET)

    def generate(self) -> Island:
        """Run the full pipeline."""
        opts = self.options
        start = time.time()
        logger.info("Generating island", seed=self.seed, numeric_seed=self.numeric_seed, radius=opts.radius)

        # Steps 1-2: elevation and land/sea
        heightmap = HeightmapGenerator(
            self.grid, self.elevation_noise, self.edge_noise, opts.heightmap_options()
        )
        tiles = heightmap.generate()

        # Steps 3-4: coastline
        features = Features(tiles, cliff_elevation=opts.cliff_elevation)
        features.markup()

        # Step 5: rivers
        hydrology = Hydrology(tiles, opts.hydrology_options())
        rivers = hydrology.carve_rivers()

        # Step 6: moisture
        Climate(tiles, self.moisture_noise, opts.climate_options()).generate_moisture()

        # Step 7: biomes
        BiomeClassifier(tiles, opts.biome_options()).run_full_classification()

        # Step 8: strategic locations
        placer = StrategicLocationPlacer(tiles, self.grid, self.prng, opts.location_options())
        locations = placer.place_all()

        # Step 9: faction territories
        factions = FactionTerritoryGenerator(tiles, self.prng).generate(locations.capitals())

        stats = get_map_stats(tiles)
        elapsed = time.time() - start
        logger.info(
            "Island generation completed",
            seed=self.seed,
            land_tiles=stats["land_tiles"],
            land_percentage=stats["land_percentage"],
            prng_calls=self.prng.call_count,
            seconds=round(elapsed, 3),
        )

        return Island(
            seed=self.seed,
            numeric_seed=self.numeric_seed,
            options=opts,
            grid=self.grid,
            tiles=tiles,
            locations=locations,
            factions=factions,
            rivers=rivers,
            stats=stats,
            generation_time_seconds=elapsed,
        )


def generate_island(seed: Seed, options: Optional[IslandOptions] = None, **overrides) -> Island:
    """
    Convenience wrapper around ``IslandGenerator``.

    Keyword overrides are applied on top of ``options`` (or the defaults)
    and validated.
    """
    if overrides:
        base = options.model_dump() if options is not None else {}
        base.update(overrides)
        options = IslandOptions(**base)
    return IslandGenerator(seed, options).generate()
