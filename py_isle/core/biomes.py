"""
Biome classification based on elevation and moisture.

This module implements:
- Elevation x moisture lookup table with coastal overrides
- Diversity seeding so every core biome is present
- Majority-vote smoothing of isolated biome tiles
"""

from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Tuple

import structlog

from .hex_grid import hex_neighbors
from .tiles import BIOMES, CORE_BIOMES, FIXED_TERRAIN, TERRAIN_TAGS, Terrain, Tile, TileMap

logger = structlog.get_logger()


@dataclass
class BiomeOptions:
    """Biome classification options."""

    coastal_biomes: bool = True  # Mangrove and palm grove overrides
    min_biome_tiles: int = 3  # Diversity target per core biome
    diversity_conversions: int = 5  # Tiles converted per missing biome
    smoothing_passes: int = 2
    smoothing_majority: int = 4  # Land neighbours that must agree to flip a tile
    unknown_water_distance: int = 999


class BiomeRange(NamedTuple):
    """Ideal elevation/moisture box of a biome."""

    elev_min: float
    elev_max: float
    moist_min: float
    moist_max: float
    max_water_distance: Optional[int] = None


BIOME_RANGES: Dict[Terrain, BiomeRange] = {
    Terrain.SAVANNA: BiomeRange(0.35, 0.5, 0.0, 0.3),
    Terrain.FOREST: BiomeRange(0.35, 0.5, 0.3, 0.6),
    Terrain.RAINFOREST: BiomeRange(0.35, 0.5, 0.6, 1.0),
    Terrain.MANGROVE: BiomeRange(0.25, 0.4, 0.7, 1.0, 2),
    Terrain.PALM_GROVE: BiomeRange(0.25, 0.45, 0.6, 1.0, 1),
    Terrain.DRY_HILL: BiomeRange(0.5, 0.7, 0.0, 0.5),
    Terrain.JUNGLE_HILL: BiomeRange(0.5, 0.7, 0.4, 0.75),
    Terrain.CLOUD_FOREST: BiomeRange(0.5, 0.7, 0.7, 1.0),
    Terrain.ROCKY_PEAK: BiomeRange(0.7, 1.0, 0.0, 0.5),
    Terrain.MISTY_PEAK: BiomeRange(0.7, 1.0, 0.5, 1.0),
}


def _gap(value: float, low: float, high: float) -> float:
    if value < low:
        return low - value
    if value > high:
        return value - high
    return 0.0


class BiomeClassifier:
    """Handles biome classification for land tiles."""

    def __init__(self, tiles: TileMap, options: Optional[BiomeOptions] = None):
        """
        Initialize biome classifier.

        Args:
            tiles: Tile map with elevation, moisture and hydrology applied
            options: Biome classification options
        """
        self.tiles = tiles
        self.options = options or BiomeOptions()

    def _biome_tiles(self) -> List[Tile]:
        return [t for t in self.tiles.values() if t.is_land and t.terrain not in FIXED_TERRAIN]

    def classify_tile(self, tile: Tile) -> Terrain:
        """Biome for a single land tile from its elevation, moisture and water distance."""
        elev = tile.elevation
        moist = tile.moisture

        if self.options.coastal_biomes:
            distance = tile.water_distance(self.options.unknown_water_distance)
            if elev < 0.4 and moist > 0.7 and distance <= 2:
                return Terrain.MANGROVE
            if elev < 0.45 and moist > 0.6 and distance == 1:
                return Terrain.PALM_GROVE

        if elev < 0.5:
            if moist < 0.3:
                return Terrain.SAVANNA
            if moist < 0.6:
                return Terrain.FOREST
            return Terrain.RAINFOREST
        if elev < 0.7:
            if moist < 0.5:
                return Terrain.DRY_HILL
            if moist < 0.75:
                return Terrain.JUNGLE_HILL
            return Terrain.CLOUD_FOREST
        if moist < 0.5:
            return Terrain.ROCKY_PEAK
        return Terrain.MISTY_PEAK

    def classify_biomes(self) -> int:
        """Assign a biome to every land tile not already sea, beach, cliff or river."""
        logger.info("Classifying biomes")
        assigned = 0
        for tile in self.tiles.values():
            if tile.terrain in FIXED_TERRAIN or not tile.is_land:
                continue
            tile.terrain = self.classify_tile(tile)
            assigned += 1
        logger.info("Biomes classified", tiles=assigned)
        return assigned

    def get_biome_suitability(self, tile: Tile, biome: Terrain) -> float:
        """
        Fraction of a biome's range conditions the tile meets (0-1).

        Elevation band, moisture band and, for coastal biomes, water distance
        each count as one condition.
        """
        biome_range = BIOME_RANGES.get(biome)
        if biome_range is None:
            return 0.0

        elev_score = 1 if biome_range.elev_min <= tile.elevation <= biome_range.elev_max else 0
        moist_score = 1 if biome_range.moist_min <= tile.moisture <= biome_range.moist_max else 0
        water_score = 1
        if biome_range.max_water_distance is not None:
            distance = tile.water_distance(self.options.unknown_water_distance)
            water_score = 1 if distance <= biome_range.max_water_distance else 0
        return (elev_score + moist_score + water_score) / 3

    def get_biome_proximity(self, tile: Tile, biome: Terrain) -> float:
        """
        Continuous closeness of a tile to a biome's ideal box.

        1.0 inside the box, decreasing with the elevation and moisture gap.
        Used to rank diversity candidates so a biome can be seeded even when
        no tile sits inside its box.
        """
        biome_range = BIOME_RANGES[biome]
        elev_gap = _gap(tile.elevation, biome_range.elev_min, biome_range.elev_max)
        moist_gap = _gap(tile.moisture, biome_range.moist_min, biome_range.moist_max)
        return 1.0 - (elev_gap + moist_gap)

    def get_biome_statistics(self) -> Dict[str, int]:
        """Tile count per biome tag."""
        counts = Counter(t.terrain for t in self.tiles.values() if t.terrain in BIOMES)
        return {TERRAIN_TAGS[b]: counts[b] for b in sorted(counts)}

    def _biome_counts(self) -> Counter:
        return Counter(t.terrain for t in self._biome_tiles())

    def ensure_biome_diversity(self) -> Dict[Terrain, int]:
        """
        Seed every core biome that has fewer than ``min_biome_tiles`` tiles.

        Each missing biome takes the best candidates by proximity to its
        ideal box. A donor is skipped when losing the tile would drop its own
        core biome below the minimum, and a tile converts at most once.

        Returns:
            Tiles converted per seeded biome
        """
        minimum = self.options.min_biome_tiles
        counts = self._biome_counts()
        missing = [b for b in CORE_BIOMES if counts[b] < minimum]
        if not missing:
            return {}

        logger.info("Seeding missing biomes", biomes=[TERRAIN_TAGS[b] for b in missing])

        converted = set()
        seeded: Dict[Terrain, int] = {}
        candidates_pool = self._biome_tiles()

        for biome in missing:
            ranked: List[Tuple[float, int, Tile]] = []
            for order, tile in enumerate(candidates_pool):
                if tile.terrain == biome or id(tile) in converted:
                    continue
                ranked.append((self.get_biome_proximity(tile, biome), order, tile))
            ranked.sort(key=lambda item: (-item[0], item[1]))

            done = 0
            for _, _, tile in ranked:
                if done >= self.options.diversity_conversions:
                    break
                donor = tile.terrain
                if donor in CORE_BIOMES and counts[donor] - 1 < minimum:
                    continue
                counts[donor] -= 1
                counts[biome] += 1
                tile.terrain = biome
                converted.add(id(tile))
                done += 1

            seeded[biome] = done
            if counts[biome] < minimum:
                logger.warning(
                    "Could not seed biome to minimum",
                    biome=TERRAIN_TAGS[biome],
                    tiles=counts[biome],
                )

        return seeded

    def smooth_biomes(self, passes: Optional[int] = None) -> int:
        """
        Majority-vote smoothing.

        Each pass computes flips from a snapshot, then applies them. A biome
        tile flips when at least ``smoothing_majority`` land neighbours share a
        different biome. A flip that would drop a core biome below the
        minimum is skipped.

        Returns:
            Total number of flipped tiles
        """
        if passes is None:
            passes = self.options.smoothing_passes
        minimum = self.options.min_biome_tiles
        total = 0

        for _ in range(passes):
            changes = []
            for tile in self._biome_tiles():
                votes = Counter()
                for n in hex_neighbors(tile.coord):
                    neighbor = self.tiles.get(n)
                    if neighbor is not None and neighbor.is_land and neighbor.terrain in BIOMES:
                        votes[neighbor.terrain] += 1
                if not votes:
                    continue
                modal, count = votes.most_common(1)[0]
                if count >= self.options.smoothing_majority and modal != tile.terrain:
                    changes.append((tile, modal))

            counts = self._biome_counts()
            flipped = 0
            for tile, new_terrain in changes:
                old = tile.terrain
                if old in CORE_BIOMES and counts[old] - 1 < minimum:
                    continue
                counts[old] -= 1
                counts[new_terrain] += 1
                tile.terrain = new_terrain
                flipped += 1

            total += flipped
            if flipped == 0:
                break

        logger.info("Smoothed biomes", flipped=total)
        return total

    def run_full_classification(self) -> Dict[str, int]:
        """Assignment, diversity seeding and smoothing, in that order."""
        self.classify_biomes()
        self.ensure_biome_diversity()
        self.smooth_biomes()
        stats = self.get_biome_statistics()
        logger.info("Biome classification complete", biomes=len(stats))
        return stats
