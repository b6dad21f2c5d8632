"""Tests for faction territory growth."""

from collections import Counter

import pytest

from py_isle.core.factions import (
    DEFAULT_FACTION_CONFIGS,
    FactionConfig,
    expansion_chance,
    grow_territory,
    mark_frontier_tiles,
)
from py_isle.core.hex_grid import HexCoordinate, HexGrid, hex_distance
from py_isle.core.mulberry_prng import MulberryPRNG
from py_isle.core.tiles import CASTAWAYS, NEUTRAL, Terrain


class TestExpansionChance:
    def test_preferred_terrain_bonus(self):
        config = FactionConfig(max_radius=4, preferred_terrains=[Terrain.FOREST], growth_rate=0.5)
        assert expansion_chance(Terrain.FOREST, 0, config) == pytest.approx(0.8)
        assert expansion_chance(Terrain.SAVANNA, 0, config) == pytest.approx(0.5)

    def test_depth_falloff(self):
        config = FactionConfig(max_radius=4, growth_rate=0.9)
        assert expansion_chance(Terrain.SAVANNA, 2, config) == pytest.approx(0.7)

    def test_floor(self):
        config = FactionConfig(max_radius=4, growth_rate=0.2)
        assert expansion_chance(Terrain.RIVER, 3, config) == pytest.approx(0.1)


class TestGrowTerritory:
    """Generic BFS growth."""

    def test_certain_growth_fills_radius(self):
        grid = HexGrid(8)
        owned = {}
        config = FactionConfig(max_radius=2, growth_rate=5.0)
        claimed = grow_territory(
            HexCoordinate(0, 0),
            config,
            MulberryPRNG(1),
            lambda c: Terrain.SAVANNA if grid.in_bounds(c) and c not in owned else None,
            lambda c, d: owned.__setitem__(c, d),
        )
        assert claimed[0] == (0, 0)
        assert len(claimed) == 19
        assert set(claimed) == set(grid.hexes_in_range((0, 0), 2))
        for coord, distance in owned.items():
            assert distance == hex_distance((0, 0), coord)

    def test_growth_is_bounded_and_unique(self):
        grid = HexGrid(10)
        owned = {}
        config = FactionConfig(max_radius=3, growth_rate=0.6)
        claimed = grow_territory(
            HexCoordinate(1, 1),
            config,
            MulberryPRNG("bounded"),
            lambda c: Terrain.FOREST if grid.in_bounds(c) and c not in owned else None,
            lambda c, d: owned.__setitem__(c, d),
        )
        assert len(claimed) == len(set(claimed))
        for coord in claimed:
            assert hex_distance((1, 1), coord) <= 3
            assert owned[coord] <= 3

    def test_zero_radius_claims_capital_only(self):
        claimed = grow_territory(
            HexCoordinate(0, 0),
            FactionConfig(max_radius=0, growth_rate=5.0),
            MulberryPRNG(1),
            lambda c: Terrain.SAVANNA,
            lambda c, d: None,
        )
        assert claimed == [(0, 0)]


class TestFrontier:
    def test_frontier_marking(self, tile_factory):
        grid, tiles = tile_factory(3, lambda c: hex_distance((0, 0), c) <= 2, terrain=Terrain.SAVANNA)
        for coord, tile in tiles.items():
            if tile.is_land:
                tile.faction = "tidal-clan" if coord.q < 0 else NEUTRAL

        count = mark_frontier_tiles(tiles)
        frontier = [t for t in tiles.values() if t.is_frontier]
        assert count == len(frontier) > 0
        for tile in frontier:
            assert tile.faction == "tidal-clan"
            assert any(
                tiles.get(n) is not None and tiles[n].is_land and tiles[n].faction != tile.faction
                for n in grid.neighbors(tile.coord)
            )
        assert all(t.faction != NEUTRAL for t in frontier)


class TestGeneratedTerritories:
    """Faction partition of the default island."""

    def test_ownership_is_exclusive(self, island):
        membership = Counter()
        for territory in island.factions.values():
            for tile in territory.tiles:
                membership[tile.coord] += 1
                assert tile.faction == territory.key

        for coord, tile in island.tiles.items():
            if not tile.is_land:
                assert membership[coord] == 0
                assert tile.faction is None
            elif tile.is_sacred:
                assert membership[coord] == 0
            else:
                assert membership[coord] == 1

    def test_capitals_are_first_and_at_distance_zero(self, island):
        for key, territory in island.factions.items():
            if key == NEUTRAL or territory.capital is None:
                continue
            assert territory.tiles[0] is territory.capital
            assert territory.capital.territory_distance == 0

    def test_growth_bound(self, island):
        castaways = island.factions[CASTAWAYS]
        max_radius = DEFAULT_FACTION_CONFIGS[CASTAWAYS].max_radius
        assert max_radius == 6
        for tile in castaways.tiles:
            assert tile.territory_distance <= max_radius
            assert hex_distance(castaways.capital.coord, tile.coord) <= max_radius

    def test_neutral_has_no_capital(self, island):
        assert NEUTRAL in island.factions
        assert island.factions[NEUTRAL].capital is None
