"""Shared fixtures."""

from collections import OrderedDict

import pytest

from py_isle.core.hex_grid import HexGrid
from py_isle.core.island_generator import IslandOptions, generate_island
from py_isle.core.tiles import Terrain, Tile

ISLAND_SEED = "abc123"


@pytest.fixture(scope="session")
def island():
    """Default radius 20 island. Shared, do not mutate its tiles."""
    return generate_island(ISLAND_SEED)


@pytest.fixture(scope="session")
def small_island():
    return generate_island("small_test", IslandOptions(radius=12))


def make_tiles(radius, land_fn, elevation_fn=None, terrain=None):
    """
    Build a tile map by hand.

    Args:
        radius: Grid radius
        land_fn: Called with a coordinate, True for land
        elevation_fn: Called with a coordinate, defaults to 0.5 on land
        terrain: Terrain given to land tiles
    """
    grid = HexGrid(radius)
    tiles = OrderedDict()
    for coord in grid.circular_map():
        is_land = land_fn(coord)
        elevation = elevation_fn(coord) if elevation_fn else (0.5 if is_land else 0.0)
        tiles[coord] = Tile(
            coord=coord,
            elevation=elevation,
            terrain=terrain if is_land else Terrain.SEA,
            is_land=is_land,
            is_passable=is_land,
        )
    return grid, tiles


@pytest.fixture
def tile_factory():
    """The ``make_tiles`` helper, for tests that build maps by hand."""
    return make_tiles
