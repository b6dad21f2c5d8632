"""Tests for island export and save/load."""

import json

import pytest

from py_isle.core.factions import PLAYER
from py_isle.core.island_generator import IslandOptions, generate_island
from py_isle.core.mulberry_prng import MulberryPRNG
from py_isle.core.territory import TerritoryManager
from py_isle.export.serializers import (
    IslandSave,
    TerritoryRecord,
    create_island_save,
    export_island,
    load_island_file,
    load_island_save,
    save_island,
    territory_from_record,
)

SAVE_SEED = "save_test"


@pytest.fixture(scope="module")
def save_island_fixture():
    return generate_island(SAVE_SEED, IslandOptions(radius=10))


@pytest.fixture
def session(save_island_fixture):
    manager = TerritoryManager(MulberryPRNG(9))
    manager.init_from_island(save_island_fixture)
    start = save_island_fixture.starting_tile
    manager.generate_starting_territories((start.q, start.r), game_minutes=15)
    return save_island_fixture, manager


class TestExport:
    """JSON export of a generated island."""

    def test_export_is_json_ready(self, island):
        data = export_island(island)
        decoded = json.loads(json.dumps(data))
        assert decoded["seed"] == "abc123"
        assert decoded["radius"] == 20
        assert len(decoded["tiles"]) == len(island.tiles)

    def test_tiles_keep_generation_order(self, island):
        data = export_island(island)
        assert [(t["q"], t["r"]) for t in data["tiles"]] == [tuple(c) for c in island.tiles]

    def test_terrain_tags(self, island):
        data = export_island(island)
        tags = {t["terrain"] for t in data["tiles"]}
        assert "sea" in tags
        assert "beach" in tags

    def test_locations_and_factions(self, island):
        data = export_island(island)
        assert [loc["name"] for loc in data["locations"]] == [loc.name for loc in island.locations.all()]
        sizes = {f["key"]: f["size"] for f in data["factions"]}
        assert sizes == {key: t.size for key, t in island.factions.items()}
        for faction in data["factions"]:
            assert len(faction["tiles"]) == faction["size"]


class TestTerritoryRecords:
    def test_from_record_recomputes_modifiers(self):
        record = TerritoryRecord(position={"q": 2, "r": -1}, owner=PLAYER, exploration_progress=100)
        territory = territory_from_record(record)
        assert territory.position == (2, -1)
        assert territory.fully_explored
        assert territory.travel_cost_modifier == 0.5

    def test_bounds(self):
        with pytest.raises(ValueError):
            TerritoryRecord(position={"q": 0, "r": 0}, control_strength=150)


class TestSaveLoad:
    """Saves hold the seed and territory state, loading regenerates the map."""

    def test_roundtrip(self, session):
        island, manager = session
        payload = json.loads(create_island_save(island, manager).model_dump_json())

        result = load_island_save(payload)

        assert result.success
        assert result.reason is None
        assert [t.terrain for t in result.island.tiles.values()] == [t.terrain for t in island.tiles.values()]
        start = island.starting_tile
        home = result.territories.get_territory(start.q, start.r)
        assert home.owner == PLAYER
        assert home.visited
        assert home.last_visited == 15

    def test_file_roundtrip(self, session, tmp_path):
        island, manager = session
        path = save_island(island, manager, tmp_path / "island.json")
        result = load_island_file(path)
        assert result.success
        assert result.island.seed == SAVE_SEED
        assert result.island.radius == 10

    def test_missing_seed(self):
        result = load_island_save({"territories": []})
        assert not result.success
        assert "seed" in result.reason
        assert result.island is None

    def test_malformed_payload(self):
        result = load_island_save({"seed": "x", "territories": "not a list"})
        assert not result.success
        assert result.reason.startswith("Malformed")

    def test_invalid_json(self):
        result = load_island_save("{not json")
        assert not result.success

    def test_not_an_object(self):
        assert not load_island_save([1, 2, 3]).success

    def test_position_outside_island(self):
        payload = {
            "seed": SAVE_SEED,
            "options": {"radius": 10},
            "territories": [{"position": {"q": 40, "r": 0}}],
        }
        result = load_island_save(payload)
        assert not result.success

    def test_radius_over_limit(self):
        result = load_island_save({"seed": SAVE_SEED, "options": {"radius": 30}}, max_radius=10)
        assert not result.success
        assert "at most 10" in result.reason
        assert result.island is None

    def test_missing_file(self, tmp_path):
        result = load_island_file(tmp_path / "missing.json")
        assert not result.success

    def test_save_defaults(self):
        save = IslandSave(seed=12)
        assert save.options.radius == 20
        assert save.territories == []
