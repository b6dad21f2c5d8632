"""FastAPI main application."""

import uuid
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from .. import __version__
from ..config import configure_logging, settings
from ..core.island_generator import Island, IslandGenerator, IslandOptions
from ..export.serializers import (
    LocationRecord,
    TileRecord,
    export_island,
    load_island_save,
    location_to_record,
    tile_to_record,
)

configure_logging(settings)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Py Isle API",
    description="Deterministic hex island and faction territory generator",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class IslandGenerationRequest(BaseModel):
    """Request to generate an island."""

    seed: Optional[str] = Field(None, description="Seed for reproducible generation")
    radius: int = Field(default_factory=lambda: settings.default_radius, ge=2, description="Hex radius")
    overrides: Dict[str, Any] = Field(
        default_factory=dict, description="IslandOptions fields to override"
    )


class FactionSummary(BaseModel):
    key: str
    name: str
    size: int
    capital: Optional[Tuple[int, int]] = None


class IslandSummary(BaseModel):
    """Summary information about a generated island."""

    seed: str
    radius: int
    stats: Dict[str, Any]
    starting_point: Optional[Tuple[int, int]] = None
    locations: List[str]
    factions: List[FactionSummary]
    rivers_count: int
    generation_time_seconds: float


class LoadResponse(BaseModel):
    success: bool
    reason: Optional[str] = None
    island: Optional[IslandSummary] = None


# Generated islands, most recently used last
_island_cache: "OrderedDict[Tuple[str, int, str], Island]" = OrderedDict()


def _cache_key(seed: str, options: IslandOptions) -> Tuple[str, int, str]:
    return seed, options.radius, options.model_dump_json()


def get_or_generate_island(seed: str, options: Optional[IslandOptions] = None) -> Island:
    """Generate an island, or return the cached one for the same seed and options."""
    options = options or IslandOptions(radius=settings.default_radius)
    key = _cache_key(seed, options)

    island = _island_cache.get(key)
    if island is not None:
        _island_cache.move_to_end(key)
        return island

    island = IslandGenerator(seed, options).generate()
    _island_cache[key] = island
    while len(_island_cache) > settings.generation_cache_size:
        _island_cache.popitem(last=False)
    return island


def clear_island_cache() -> None:
    _island_cache.clear()


def summarize_island(island: Island) -> IslandSummary:
    start = island.starting_tile
    factions = []
    for key, territory in island.factions.items():
        capital = territory.capital
        factions.append(
            FactionSummary(
                key=key,
                name=territory.name,
                size=territory.size,
                capital=(capital.q, capital.r) if capital is not None else None,
            )
        )
    return IslandSummary(
        seed=str(island.seed),
        radius=island.radius,
        stats=island.stats,
        starting_point=(start.q, start.r) if start is not None else None,
        locations=[loc.name for loc in island.locations.all()],
        factions=factions,
        rivers_count=len(island.rivers),
        generation_time_seconds=round(island.generation_time_seconds, 3),
    )


def _island_for(seed: str, radius: Optional[int]) -> Island:
    radius = radius or settings.default_radius
    if radius > settings.max_radius:
        raise HTTPException(status_code=400, detail=f"Radius must be at most {settings.max_radius}")
    try:
        options = IslandOptions(radius=radius)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid radius: {e.error_count()} error(s)")
    return get_or_generate_island(seed, options)


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Py Isle API", "version": __version__, "status": "running"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "cached_islands": len(_island_cache)}


@app.post("/islands/generate", response_model=IslandSummary)
async def generate(request: IslandGenerationRequest):
    """Generate an island and return its summary."""
    logger.info("Island generation requested", request=request.model_dump())

    if request.radius > settings.max_radius:
        raise HTTPException(status_code=400, detail=f"Radius must be at most {settings.max_radius}")

    seed = request.seed or str(uuid.uuid4())[:8]
    try:
        options = IslandOptions(**{**request.overrides, "radius": request.radius})
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid options: {e.error_count()} error(s)")

    island = get_or_generate_island(seed, options)
    return summarize_island(island)


@app.post("/islands/load", response_model=LoadResponse)
async def load(payload: Dict[str, Any]):
    """Regenerate an island from a save payload."""
    result = load_island_save(payload, max_radius=settings.max_radius)
    if not result.success:
        logger.warning("Island load failed", reason=result.reason)
        return LoadResponse(success=False, reason=result.reason)
    return LoadResponse(success=True, island=summarize_island(result.island))


@app.get("/islands/{seed}")
async def get_island(seed: str, radius: Optional[int] = None):
    """Full JSON export of an island."""
    return export_island(_island_for(seed, radius))


@app.get("/islands/{seed}/stats")
async def get_island_stats(seed: str, radius: Optional[int] = None):
    """Terrain statistics of an island."""
    return _island_for(seed, radius).stats


@app.get("/islands/{seed}/locations", response_model=List[LocationRecord])
async def get_island_locations(seed: str, radius: Optional[int] = None):
    """Strategic locations in placement order."""
    island = _island_for(seed, radius)
    return [location_to_record(loc) for loc in island.locations.all()]


@app.get("/islands/{seed}/territories", response_model=List[FactionSummary])
async def get_island_territories(seed: str, radius: Optional[int] = None):
    """Faction territory sizes and capitals."""
    return summarize_island(_island_for(seed, radius)).factions


@app.get("/islands/{seed}/tiles/{q}/{r}", response_model=TileRecord)
async def get_island_tile(seed: str, q: int, r: int, radius: Optional[int] = None):
    """A single tile."""
    tile = _island_for(seed, radius).get_tile(q, r)
    if tile is None:
        raise HTTPException(status_code=404, detail="Tile not found")
    return tile_to_record(tile)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
