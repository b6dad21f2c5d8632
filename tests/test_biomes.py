"""Tests for biome classification, diversity seeding and smoothing."""

import pytest

from py_isle.core.biomes import BiomeClassifier, BiomeOptions
from py_isle.core.hex_grid import HexCoordinate
from py_isle.core.tiles import BIOMES, CORE_BIOMES, Terrain, Tile


def tile(elevation, moisture, distance=5):
    return Tile(
        coord=HexCoordinate(0, 0),
        elevation=elevation,
        moisture=moisture,
        is_land=True,
        is_passable=True,
        distance_to_water=distance,
    )


class TestClassifyTile:
    """The elevation x moisture table."""

    @pytest.mark.parametrize(
        "elevation,moisture,expected",
        [
            (0.45, 0.2, Terrain.SAVANNA),
            (0.45, 0.45, Terrain.FOREST),
            (0.45, 0.8, Terrain.RAINFOREST),
            (0.6, 0.2, Terrain.DRY_HILL),
            (0.6, 0.6, Terrain.JUNGLE_HILL),
            (0.6, 0.8, Terrain.CLOUD_FOREST),
            (0.8, 0.3, Terrain.ROCKY_PEAK),
            (0.8, 0.6, Terrain.MISTY_PEAK),
        ],
    )
    def test_core_table(self, elevation, moisture, expected):
        classifier = BiomeClassifier({})
        assert classifier.classify_tile(tile(elevation, moisture)) == expected

    def test_coastal_overrides(self):
        classifier = BiomeClassifier({})
        assert classifier.classify_tile(tile(0.3, 0.8, distance=1)) == Terrain.MANGROVE
        assert classifier.classify_tile(tile(0.42, 0.65, distance=1)) == Terrain.PALM_GROVE
        # Too far from water for either
        assert classifier.classify_tile(tile(0.3, 0.8, distance=3)) == Terrain.RAINFOREST

    def test_coastal_biomes_disabled(self):
        classifier = BiomeClassifier({}, BiomeOptions(coastal_biomes=False))
        assert classifier.classify_tile(tile(0.3, 0.8, distance=1)) == Terrain.RAINFOREST

    def test_unknown_water_distance_is_not_coastal(self):
        classifier = BiomeClassifier({})
        assert classifier.classify_tile(tile(0.3, 0.8, distance=None)) == Terrain.RAINFOREST

    def test_suitability(self):
        classifier = BiomeClassifier({})
        assert classifier.get_biome_suitability(tile(0.4, 0.1), Terrain.SAVANNA) == 1.0
        assert classifier.get_biome_suitability(tile(0.9, 0.9), Terrain.SAVANNA) == pytest.approx(1 / 3)
        assert classifier.get_biome_suitability(tile(0.3, 0.8, distance=5), Terrain.MANGROVE) == pytest.approx(2 / 3)


class TestDiversity:
    def test_missing_biomes_are_seeded(self, tile_factory):
        grid, tiles = tile_factory(4, lambda c: True, elevation_fn=lambda c: 0.4, terrain=Terrain.SAVANNA)
        for t in tiles.values():
            t.moisture = 0.1

        classifier = BiomeClassifier(tiles)
        seeded = classifier.ensure_biome_diversity()

        assert set(seeded) == set(CORE_BIOMES) - {Terrain.SAVANNA}
        counts = classifier.get_biome_statistics()
        for biome in CORE_BIOMES:
            assert counts[biome.tag] >= 3

    def test_nothing_to_do(self, tile_factory):
        terrains = list(CORE_BIOMES)
        grid, tiles = tile_factory(3, lambda c: True)
        for i, t in enumerate(tiles.values()):
            t.terrain = terrains[i % len(terrains)]
        assert BiomeClassifier(tiles).ensure_biome_diversity() == {}


class TestSmoothing:
    """Majority-vote smoothing."""

    def island_with_lone_forest(self, tile_factory):
        grid, tiles = tile_factory(1, lambda c: True, terrain=Terrain.SAVANNA)
        tiles[HexCoordinate(0, 0)].terrain = Terrain.FOREST
        return tiles

    def test_lone_tile_flips(self, tile_factory):
        tiles = self.island_with_lone_forest(tile_factory)
        flipped = BiomeClassifier(tiles, BiomeOptions(min_biome_tiles=0)).smooth_biomes(passes=1)
        assert flipped == 1
        assert tiles[HexCoordinate(0, 0)].terrain == Terrain.SAVANNA

    def test_minimum_is_protected(self, tile_factory):
        tiles = self.island_with_lone_forest(tile_factory)
        flipped = BiomeClassifier(tiles, BiomeOptions(min_biome_tiles=3)).smooth_biomes(passes=2)
        assert flipped == 0
        assert tiles[HexCoordinate(0, 0)].terrain == Terrain.FOREST


class TestGeneratedBiomes:
    def test_every_land_tile_has_terrain(self, island):
        for t in island.tiles.values():
            assert t.terrain is not None
            if t.is_land:
                assert t.terrain != Terrain.SEA

    def test_core_biome_coverage(self, island):
        biome_tiles = [t for t in island.tiles.values() if t.terrain in BIOMES]
        if len(biome_tiles) < 100:
            pytest.skip("Island too small for the coverage guarantee")
        counts = BiomeClassifier(island.tiles).get_biome_statistics()
        for biome in CORE_BIOMES:
            assert counts.get(biome.tag, 0) >= 3, biome
