"""Tests for river carving."""

from py_isle.core.features import Features
from py_isle.core.hex_grid import hex_distance
from py_isle.core.hydrology import Hydrology, HydrologyOptions
from py_isle.core.tiles import COASTLINE, Terrain


def cone(tile_factory, radius=6):
    """Land cone peaking at the centre, one ring of sea around it."""
    ring = lambda c: hex_distance((0, 0), c)
    grid, tiles = tile_factory(
        radius,
        lambda c: ring(c) < radius,
        elevation_fn=lambda c: 0.0 if ring(c) >= radius else 1.0 - ring(c) * 0.1,
    )
    Features(tiles).markup()
    return tiles


class TestHydrology:
    """River sources and tracing."""

    def test_sources_are_high_and_inland(self, tile_factory):
        tiles = cone(tile_factory)
        sources = Hydrology(tiles, HydrologyOptions(river_sources=3)).find_sources()

        assert len(sources) == 3
        assert sources[0].coord == (0, 0)
        for source in sources:
            assert source.elevation > 0.65
            assert source.distance_to_water > 3
            assert source.terrain not in COASTLINE
        elevations = [s.elevation for s in sources]
        assert elevations == sorted(elevations, reverse=True)

    def test_rivers_run_downhill_to_sea(self, tile_factory):
        tiles = cone(tile_factory)
        rivers = Hydrology(tiles, HydrologyOptions(river_sources=1)).carve_rivers()

        assert len(rivers) == 1
        river = rivers[0]
        assert river.reached_sea
        assert river.cells[0] == river.source == (0, 0)
        assert tiles[river.mouth].terrain == Terrain.BEACH
        assert len(set(river.cells)) == len(river.cells)
        for a, b in zip(river.cells, river.cells[1:]):
            assert hex_distance(a, b) == 1
            assert tiles[b].elevation <= tiles[a].elevation

    def test_carving_keeps_coastline(self, tile_factory):
        tiles = cone(tile_factory)
        rivers = Hydrology(tiles).carve_rivers()

        for river in rivers:
            for coord in river.cells:
                tile = tiles[coord]
                if tile.terrain in COASTLINE:
                    assert not tile.is_river
                else:
                    assert tile.terrain == Terrain.RIVER
                    assert tile.is_river
                    assert tile.distance_to_water == 0

    def test_no_sources_on_flat_land(self, tile_factory):
        grid, tiles = tile_factory(6, lambda c: hex_distance((0, 0), c) < 6)
        Features(tiles).markup()
        assert Hydrology(tiles).carve_rivers() == []

    def test_max_length(self, tile_factory):
        tiles = cone(tile_factory, radius=8)
        rivers = Hydrology(tiles, HydrologyOptions(river_sources=1, max_river_length=3)).carve_rivers()
        assert rivers[0].length == 3
        assert not rivers[0].reached_sea
        assert rivers[0].mouth is None
