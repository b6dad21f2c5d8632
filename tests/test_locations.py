"""Tests for strategic location placement."""

import math
from itertools import combinations

from py_isle.core.locations import LocationType, get_quadrant
from py_isle.core.tiles import CASTAWAYS, MERCENARIES, RIDGE_CLAN, TIDAL_CLAN, Terrain


class TestQuadrants:
    def test_quadrants(self):
        assert get_quadrant((1, -1)) == "NE"
        assert get_quadrant((0, -1)) == "NE"
        assert get_quadrant((1, 0)) == "SE"
        assert get_quadrant((0, 1)) == "SW"
        assert get_quadrant((-1, 0)) == "NW"
        assert get_quadrant((0, 0)) == "NW"


class TestPlacement:
    """Placement on the default island."""

    def test_castaway_beach(self, island):
        beach = island.locations.castaway_beach
        assert beach is not None
        assert beach.type == LocationType.STARTING_POINT
        assert beach.tile.terrain == Terrain.BEACH
        assert not beach.tile.is_cliff
        assert island.starting_tile is beach.tile

    def test_capitals(self, island):
        capitals = island.locations.capitals()
        assert set(capitals) <= {CASTAWAYS, TIDAL_CLAN, RIDGE_CLAN, MERCENARIES}
        assert CASTAWAYS in capitals
        for faction, tile in capitals.items():
            assert tile.is_land
            assert tile.faction == faction

    def test_capitals_keep_their_distance(self, island):
        min_distance = math.floor(island.radius * 0.6)
        tiles = list(island.locations.capitals().values())
        for a, b in combinations(tiles, 2):
            assert island.grid.distance(a.coord, b.coord) >= min_distance

    def test_ridge_village_is_high(self, island):
        ridge = island.locations.ridge_village
        if ridge is not None:
            assert ridge.tile.elevation >= 0.6
            assert ridge.tile.terrain != Terrain.BEACH

    def test_locations_never_share_a_tile(self, island):
        coords = [loc.coord for loc in island.locations.all()]
        assert len(coords) == len(set(coords))

    def test_tiles_point_back_at_locations(self, island):
        for location in island.locations.all():
            assert location.tile.strategic_location is location
            assert location.tile.is_strategic

    def test_sacred_sites(self, island):
        sites = island.locations.sacred_sites
        assert 1 <= len(sites) <= 5
        for site in sites:
            assert site.type == LocationType.SACRED_SITE
            assert site.tile.is_sacred
            assert not site.tile.is_coastline
            assert site.tile.faction is None
        for a, b in combinations(sites, 2):
            assert island.grid.distance(a.coord, b.coord) >= 5

    def test_shipwrecks(self, island):
        for wreck in island.locations.shipwrecks:
            assert wreck.tile.terrain == Terrain.BEACH
            assert wreck.loot_quality in ("poor", "normal", "rich")
        assert len(island.locations.shipwrecks) <= 3

    def test_landmarks(self, island):
        locs = island.locations
        if locs.waterfall is not None:
            assert locs.waterfall.tile.terrain == Terrain.RIVER
        if locs.harbor is not None:
            assert locs.harbor.tile.terrain == Terrain.BEACH
        assert len(locs.caves) <= 2
        for cave in locs.caves:
            assert cave.tile.elevation >= 0.55

    def test_ruins_keep_away_from_villages(self, island):
        villages = [v for v in (island.locations.tidal_village, island.locations.ridge_village) if v]
        for ruin in island.locations.ruins:
            assert ruin.type == LocationType.RUINS
            for village in villages:
                assert island.grid.distance(ruin.coord, village.coord) >= 8

    def test_by_type(self, island):
        assert island.locations.by_type(LocationType.SACRED_SITE) == island.locations.sacred_sites

    def test_points_of_interest_can_be_disabled(self):
        from py_isle.core.island_generator import generate_island

        island = generate_island("abc123", radius=12, points_of_interest=False)
        locs = island.locations
        assert locs.shipwrecks == []
        assert locs.ruins == []
        assert locs.landmarks == []
