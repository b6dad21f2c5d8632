"""
Serialization of generated islands and runtime territory state.

Islands are not stored tile by tile: a save holds the seed, the generation
options and the runtime territory records. Loading regenerates the island
from the seed and overlays the saved territory state.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import structlog
from pydantic import BaseModel, Field, ValidationError

from ..core.hex_grid import HexCoordinate
from ..core.island_generator import Island, IslandGenerator, IslandOptions
from ..core.locations import StrategicLocation
from ..core.mulberry_prng import MulberryPRNG
from ..core.territory import Territory, TerritoryManager
from ..core.tiles import TERRAIN_NAMES, Tile
from ..utils.random import create_prng

logger = structlog.get_logger()

SAVE_FORMAT_VERSION = 1

# Runtime actions draw from their own stream so they never shift generation
RUNTIME_PRNG_OFFSET = 7919


class Position(BaseModel):
    q: int
    r: int


class TileRecord(BaseModel):
    """Exported tile."""

    q: int
    r: int
    terrain: Optional[str] = Field(default=None, description="Terrain tag")
    terrain_name: Optional[str] = Field(default=None, description="Terrain display name")
    elevation: float
    moisture: float
    is_land: bool
    is_passable: bool
    is_edge: bool = False
    is_cliff: bool = False
    is_river: bool = False
    distance_to_water: Optional[int] = None
    faction: Optional[str] = None
    territory_distance: Optional[int] = None
    is_frontier: bool = False
    is_strategic: bool = False
    is_sacred: bool = False
    location: Optional[str] = Field(default=None, description="Name of the location on this tile")


class LocationRecord(BaseModel):
    """Exported strategic location."""

    name: str
    type: str
    q: int
    r: int
    description: str
    faction: Optional[str] = None
    loot_quality: Optional[str] = None
    looted: bool = False
    explored: bool = False


class FactionRecord(BaseModel):
    """Exported faction territory."""

    key: str
    name: str
    color: Optional[str] = None
    capital: Optional[Position] = None
    size: int
    tiles: List[Tuple[int, int]] = Field(default_factory=list)


class RiverRecord(BaseModel):
    id: int
    cells: List[Tuple[int, int]]
    reached_sea: bool


class IslandExport(BaseModel):
    """JSON-ready view of a whole island."""

    seed: Union[int, str]
    numeric_seed: int
    radius: int
    options: Dict[str, Any]
    stats: Dict[str, Any]
    tiles: List[TileRecord]
    locations: List[LocationRecord]
    factions: List[FactionRecord]
    rivers: List[RiverRecord]


class TerritoryRecord(BaseModel):
    """Saved runtime state of one territory."""

    position: Position
    owner: Optional[str] = None
    discovered: bool = False
    visited: bool = False
    control_strength: float = Field(default=0.0, ge=0, le=100)
    exploration_progress: float = Field(default=0.0, ge=0, le=100)
    claim_progress: float = Field(default=0.0, ge=0, le=100)
    claimant: Optional[str] = None
    resource_node_id: Optional[str] = None
    event_id: Optional[str] = None
    npc_id: Optional[str] = None
    last_visited: Optional[int] = Field(default=None, description="Game minutes")


class IslandSave(BaseModel):
    """Everything needed to restore an island session."""

    version: int = SAVE_FORMAT_VERSION
    seed: Union[int, str]
    options: IslandOptions = Field(default_factory=IslandOptions)
    territories: List[TerritoryRecord] = Field(default_factory=list)


@dataclass
class LoadResult:
    """Outcome of loading a save. Failures carry a reason instead of raising."""

    success: bool
    reason: Optional[str] = None
    island: Optional[Island] = None
    territories: Optional[TerritoryManager] = None


# ----- island export -----


def tile_to_record(tile: Tile) -> TileRecord:
    return TileRecord(
        q=tile.q,
        r=tile.r,
        terrain=tile.terrain.tag if tile.terrain is not None else None,
        terrain_name=TERRAIN_NAMES.get(tile.terrain),
        elevation=round(tile.elevation, 4),
        moisture=round(tile.moisture, 4),
        is_land=tile.is_land,
        is_passable=tile.is_passable,
        is_edge=tile.is_edge,
        is_cliff=tile.is_cliff,
        is_river=tile.is_river,
        distance_to_water=tile.distance_to_water,
        faction=tile.faction,
        territory_distance=tile.territory_distance,
        is_frontier=tile.is_frontier,
        is_strategic=tile.is_strategic,
        is_sacred=tile.is_sacred,
        location=tile.strategic_location.name if tile.strategic_location is not None else None,
    )


def location_to_record(location: StrategicLocation) -> LocationRecord:
    return LocationRecord(
        name=location.name,
        type=location.type.value,
        q=location.tile.q,
        r=location.tile.r,
        description=location.description,
        faction=location.faction,
        loot_quality=location.loot_quality,
        looted=location.looted,
        explored=location.explored,
    )


def export_island(island: Island) -> Dict[str, Any]:
    """
    Export an island as a JSON-ready dict.

    Tiles keep generation order, locations keep placement order.
    """
    factions = []
    for key, territory in island.factions.items():
        capital = territory.capital
        factions.append(
            FactionRecord(
                key=key,
                name=territory.name,
                color=territory.color,
                capital=Position(q=capital.q, r=capital.r) if capital is not None else None,
                size=territory.size,
                tiles=[(t.q, t.r) for t in territory.tiles],
            )
        )

    export = IslandExport(
        seed=island.seed,
        numeric_seed=island.numeric_seed,
        radius=island.radius,
        options=island.options.model_dump(),
        stats=island.stats,
        tiles=[tile_to_record(t) for t in island.tiles.values()],
        locations=[location_to_record(loc) for loc in island.locations.all()],
        factions=factions,
        rivers=[
            RiverRecord(id=r.id, cells=[(c.q, c.r) for c in r.cells], reached_sea=r.reached_sea)
            for r in island.rivers
        ],
    )
    return export.model_dump()


# ----- territory records -----


def territory_to_record(territory: Territory) -> TerritoryRecord:
    return TerritoryRecord(
        position=Position(q=territory.position.q, r=territory.position.r),
        owner=territory.owner,
        discovered=territory.discovered,
        visited=territory.visited,
        control_strength=territory.control_strength,
        exploration_progress=territory.exploration_progress,
        claim_progress=territory.claim_progress,
        claimant=territory.claimant,
        resource_node_id=territory.resource_node_id,
        event_id=territory.event_id,
        npc_id=territory.npc_id,
        last_visited=territory.last_visited,
    )


def territory_from_record(record: TerritoryRecord) -> Territory:
    """Rebuild a territory. Travel modifiers are recomputed from the owner."""
    return Territory(
        position=HexCoordinate(record.position.q, record.position.r),
        owner=record.owner,
        control_strength=record.control_strength,
        discovered=record.discovered,
        # Discovered territories are out of the fog
        visible_from_fog=record.discovered,
        visited=record.visited,
        exploration_progress=record.exploration_progress,
        fully_explored=record.exploration_progress >= 100,
        claim_progress=record.claim_progress,
        claimant=record.claimant,
        resource_node_id=record.resource_node_id,
        event_id=record.event_id,
        npc_id=record.npc_id,
        last_visited=record.last_visited,
    )


# ----- saves -----


def create_island_save(island: Island, territories: Optional[TerritoryManager] = None) -> IslandSave:
    return IslandSave(
        seed=island.seed,
        options=island.options,
        territories=territories.to_records() if territories is not None else [],
    )


def save_island(island: Island, territories: Optional[TerritoryManager], path: Union[str, Path]) -> Path:
    """Write a save file as JSON."""
    path = Path(path)
    save = create_island_save(island, territories)
    path.write_text(save.model_dump_json(indent=2), encoding="utf-8")
    logger.info("Saved island", path=str(path), territories=len(save.territories))
    return path


def load_island_save(
    data: Any, prng: Optional[MulberryPRNG] = None, max_radius: Optional[int] = None
) -> LoadResult:
    """
    Restore an island session from a save payload.

    Args:
        data: Save payload as a dict or JSON string
        prng: Runtime PRNG for the territory manager, derived from the seed if omitted
        max_radius: Largest island radius a save may regenerate, unlimited if omitted

    Returns:
        LoadResult, with ``success=False`` and a reason for missing seeds and
        malformed payloads
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except ValueError as e:
            logger.warning("Save is not valid JSON", error=str(e))
            return LoadResult(success=False, reason=f"Save is not valid JSON: {e}")

    if not isinstance(data, dict):
        return LoadResult(success=False, reason="Save payload must be an object")
    if data.get("seed") in (None, ""):
        logger.warning("Save has no seed")
        return LoadResult(success=False, reason="Save has no seed")

    try:
        save = IslandSave.model_validate(data)
    except ValidationError as e:
        logger.warning("Malformed save", errors=e.error_count())
        return LoadResult(success=False, reason=f"Malformed save: {e.error_count()} invalid field(s)")

    if save.version > SAVE_FORMAT_VERSION:
        return LoadResult(success=False, reason=f"Unsupported save version {save.version}")
    if max_radius is not None and save.options.radius > max_radius:
        logger.warning("Save radius over limit", radius=save.options.radius, max_radius=max_radius)
        return LoadResult(success=False, reason=f"Save radius must be at most {max_radius}")

    island = IslandGenerator(save.seed, save.options).generate()
    if prng is None:
        prng = create_prng(save.seed, offset=RUNTIME_PRNG_OFFSET)

    unknown = [
        rec for rec in save.territories if HexCoordinate(rec.position.q, rec.position.r) not in island.tiles
    ]
    if unknown:
        return LoadResult(
            success=False,
            reason=f"Save references {len(unknown)} position(s) outside the island",
        )

    manager = TerritoryManager.from_records(save.territories, prng, island)
    logger.info("Loaded island", seed=save.seed, territories=len(save.territories))
    return LoadResult(success=True, island=island, territories=manager)


def load_island_file(path: Union[str, Path], prng: Optional[MulberryPRNG] = None) -> LoadResult:
    """Read and restore a save file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning("Could not read save", path=str(path), error=str(e))
        return LoadResult(success=False, reason=f"Could not read save: {e}")
    return load_island_save(text, prng)
