"""
Strategic location placement.

Places the story-critical locations on a finished terrain map:
- Castaway starting beach
- Tidal Clan and Ridge Clan villages
- Mercenary compound
- Sacred sites
- Shipwrecks, natural landmarks and ancient ruins

Each placement scores every eligible tile and takes the best. Faction
capitals keep a minimum distance from each other and earn a bonus for
sitting in a quadrant no earlier capital uses.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

import structlog

from .hex_grid import HexCoordinate, HexGrid, hex_distance, hex_neighbors
from .mulberry_prng import MulberryPRNG
from .tiles import (
    CASTAWAYS,
    HILLS,
    MERCENARIES,
    PEAKS,
    RIDGE_CLAN,
    TIDAL_CLAN,
    Terrain,
    Tile,
    TileMap,
)

logger = structlog.get_logger()


class LocationType(str, Enum):
    """Strategic location categories."""

    STARTING_POINT = "starting-point"
    NATIVE_VILLAGE = "native-village"
    HOSTILE_BASE = "hostile-base"
    SACRED_SITE = "sacred-site"
    SHIPWRECK = "shipwreck"
    WATERFALL = "waterfall"
    HOT_SPRING = "hot-spring"
    CAVE = "cave"
    HARBOR = "harbor"
    RUINS = "ruins"


LANDMARK_TYPES = frozenset(
    {LocationType.WATERFALL, LocationType.HOT_SPRING, LocationType.CAVE, LocationType.HARBOR}
)

SHIPWRECK_NAMES = ["Broken Promise", "Sea Maiden", "Fortune's Folly", "Last Hope", "Wayward Soul"]

CAVE_NAMES = ["Cave of Echoes", "Cave of Shadows"]

RUIN_TYPES = [
    ("Ancient Temple", "Stone ruins covered in vines. What civilization built this?"),
    (
        "Observatory Ruins",
        "Crumbling stone circles aligned with the stars. Ancient astronomers worked here.",
    ),
    ("Forgotten Shrine", "A weathered shrine to unknown gods. Strange energy lingers."),
    ("Overgrown Plaza", "Stone pathways and broken pillars hint at a once-great city."),
]

RESOURCE_BIOMES = frozenset({Terrain.FOREST, Terrain.JUNGLE_HILL, Terrain.DRY_HILL})


@dataclass(eq=False)
class StrategicLocation:
    """A named location. The tile back-reference is set when tiles are marked."""

    name: str
    type: LocationType
    tile: Tile
    description: str
    faction: Optional[str] = None
    loot_quality: Optional[str] = None
    looted: bool = False
    explored: bool = False

    @property
    def coord(self) -> HexCoordinate:
        return self.tile.coord


@dataclass
class StrategicLocations:
    """All placed locations of an island."""

    castaway_beach: Optional[StrategicLocation] = None
    tidal_village: Optional[StrategicLocation] = None
    ridge_village: Optional[StrategicLocation] = None
    mercenary_compound: Optional[StrategicLocation] = None
    sacred_sites: List[StrategicLocation] = field(default_factory=list)
    shipwrecks: List[StrategicLocation] = field(default_factory=list)
    waterfall: Optional[StrategicLocation] = None
    hot_spring: Optional[StrategicLocation] = None
    caves: List[StrategicLocation] = field(default_factory=list)
    harbor: Optional[StrategicLocation] = None
    ruins: List[StrategicLocation] = field(default_factory=list)

    @property
    def landmarks(self) -> List[StrategicLocation]:
        found = [self.waterfall, self.hot_spring] + self.caves + [self.harbor]
        return [loc for loc in found if loc is not None]

    def all(self) -> List[StrategicLocation]:
        """Every placed location in placement order."""
        singles = [self.castaway_beach, self.tidal_village, self.ridge_village, self.mercenary_compound]
        result = [loc for loc in singles if loc is not None]
        result.extend(self.sacred_sites)
        result.extend(self.shipwrecks)
        result.extend(self.landmarks)
        result.extend(self.ruins)
        return result

    def capitals(self) -> Dict[str, Tile]:
        """Capital tile per faction key, for factions that got one."""
        capitals = {}
        for faction, location in (
            (CASTAWAYS, self.castaway_beach),
            (TIDAL_CLAN, self.tidal_village),
            (RIDGE_CLAN, self.ridge_village),
            (MERCENARIES, self.mercenary_compound),
        ):
            if location is not None:
                capitals[faction] = location.tile
        return capitals

    def by_type(self, location_type: LocationType) -> List[StrategicLocation]:
        return [loc for loc in self.all() if loc.type == location_type]

    def __len__(self) -> int:
        return len(self.all())


@dataclass
class LocationOptions:
    """Strategic location placement options."""

    min_base_distance_factor: float = 0.6  # Capitals at least floor(radius * factor) apart
    sacred_site_spacing: int = 5
    shipwreck_spacing: int = 8
    cave_spacing: int = 10
    ruin_spacing: int = 10
    ruin_village_distance: int = 8
    hot_spring_chance: float = 0.3
    num_caves: int = 2
    place_points_of_interest: bool = True  # Shipwrecks, landmarks and ruins


def get_quadrant(coord: Tuple[int, int]) -> str:
    """Map quadrant of an axial coordinate: NE, SE, SW or NW."""
    q, r = coord
    if q >= 0 and r < 0:
        return "NE"
    if q > 0 and r >= 0:
        return "SE"
    if q <= 0 and r > 0:
        return "SW"
    return "NW"


def _best(candidates: List[Tuple[float, Tile]]) -> Optional[Tile]:
    """Highest score wins, the first in tile order breaks ties."""
    if not candidates:
        return None
    best_score, best_tile = candidates[0]
    for score, tile in candidates[1:]:
        if score > best_score:
            best_score, best_tile = score, tile
    return best_tile


class StrategicLocationPlacer:
    """Places strategic locations on a tile map."""

    def __init__(
        self,
        tiles: TileMap,
        grid: HexGrid,
        prng: MulberryPRNG,
        options: Optional[LocationOptions] = None,
    ):
        """
        Initialize placer.

        Args:
            tiles: Tile map with biomes assigned
            grid: Hex grid of the map
            prng: Generation PRNG, shared with faction growth
            options: Placement options
        """
        self.tiles = tiles
        self.grid = grid
        self.prng = prng
        self.options = options or LocationOptions()
        self.radius = max(grid.radius, 1)
        self.locations = StrategicLocations()
        self._occupied: Set[HexCoordinate] = set()

    # ----- helpers -----

    def _neighbors(self, tile: Tile) -> List[Tile]:
        result = []
        for n in hex_neighbors(tile.coord):
            neighbor = self.tiles.get(n)
            if neighbor is not None:
                result.append(neighbor)
        return result

    def _quadrant_bonus(self, tile: Tile, existing: List[Tile]) -> float:
        if not existing:
            return 0.0
        quadrant = get_quadrant(tile.coord)
        if all(get_quadrant(t.coord) != quadrant for t in existing):
            return 0.5
        return 0.0

    def _too_close(self, tile: Tile, others: List[Tile], min_distance: int) -> bool:
        return any(hex_distance(tile.coord, o.coord) < min_distance for o in others)

    def _free(self, tile: Tile) -> bool:
        return tile.coord not in self._occupied

    def _claim(self, location: Optional[StrategicLocation]) -> Optional[StrategicLocation]:
        if location is not None:
            self._occupied.add(location.tile.coord)
        return location

    # ----- faction capitals -----

    def find_castaway_beach(self) -> Optional[StrategicLocation]:
        """Southern-ish open beach with room to expand inland."""
        candidates = []
        for tile in self.tiles.values():
            if tile.terrain != Terrain.BEACH or tile.is_cliff:
                continue
            south_score = max(0, tile.r) / self.radius
            land_neighbors = sum(1 for n in self._neighbors(tile) if n.is_land and n.terrain != Terrain.SEA)
            access_score = land_neighbors / 6
            edge_score = hex_distance((0, 0), tile.coord) / self.radius
            candidates.append((south_score * 0.4 + access_score * 0.4 + edge_score * 0.2, tile))

        tile = _best(candidates)
        if tile is None:
            logger.warning("No beach for the castaway landing")
            return None
        return StrategicLocation(
            name="Castaway Beach",
            type=LocationType.STARTING_POINT,
            tile=tile,
            description="Where your journey began. The wreckage of your arrival still litters the sand.",
            faction=CASTAWAYS,
        )

    def find_tidal_village(self, existing: List[Tile], min_distance: int) -> Optional[StrategicLocation]:
        """Coastal lowland site, ideally beside a river."""
        candidates = []
        for tile in self.tiles.values():
            if tile.terrain == Terrain.SEA or not self._free(tile):
                continue
            if self._too_close(tile, existing, min_distance):
                continue

            neighbors = self._neighbors(tile)
            if tile.terrain == Terrain.BEACH:
                coastal_score = 1.0
            elif tile.is_land and any(n.terrain == Terrain.BEACH for n in neighbors):
                coastal_score = 0.7
            else:
                continue

            river_score = 1.0 if any(n.terrain == Terrain.RIVER for n in neighbors) else 0.0
            elev_score = 1.0 if tile.elevation < 0.5 else 0.3
            terrain_score = 1.0 if tile.terrain in (Terrain.FOREST, Terrain.SAVANNA) else 0.5
            quadrant_bonus = self._quadrant_bonus(tile, existing)

            score = (
                coastal_score * 0.4
                + river_score * 0.3
                + elev_score * 0.15
                + terrain_score * 0.1
                + quadrant_bonus * 0.05
            )
            candidates.append((score, tile))

        tile = _best(candidates)
        if tile is None:
            logger.warning("No site for the Tidal Clan village")
            return None
        return StrategicLocation(
            name="Tidal Village",
            type=LocationType.NATIVE_VILLAGE,
            tile=tile,
            description="The Tidal Clan's seaside settlement. They are masters of fishing and sailing.",
            faction=TIDAL_CLAN,
        )

    def find_ridge_village(self, existing: List[Tile], min_distance: int) -> Optional[StrategicLocation]:
        """Highland site that is hard to approach."""
        candidates = []
        for tile in self.tiles.values():
            if not tile.is_land or tile.terrain == Terrain.BEACH or not self._free(tile):
                continue
            if tile.elevation < 0.6:
                continue
            if self._too_close(tile, existing, min_distance):
                continue

            terrain_score = 1.0 if tile.terrain in HILLS or tile.terrain in PEAKS else 0.5

            difficult = 0
            for n in hex_neighbors(tile.coord):
                neighbor = self.tiles.get(n)
                if neighbor is None or not neighbor.is_passable or neighbor.elevation > 0.6:
                    difficult += 1
            defense_score = difficult / 6

            interior_score = tile.water_distance(0) / 10
            quadrant_bonus = self._quadrant_bonus(tile, existing)

            score = (
                tile.elevation * 0.25
                + terrain_score * 0.25
                + defense_score * 0.2
                + interior_score * 0.15
                + quadrant_bonus * 0.15
            )
            candidates.append((score, tile))

        tile = _best(candidates)
        if tile is None:
            logger.warning("No site for the Ridge Clan village")
            return None
        return StrategicLocation(
            name="Ridge Village",
            type=LocationType.NATIVE_VILLAGE,
            tile=tile,
            description="The Ridge Clan's highland fortress. They are fierce warriors and spiritual guides.",
            faction=RIDGE_CLAN,
        )

    def find_mercenary_compound(
        self, existing: List[Tile], min_distance: int
    ) -> Optional[StrategicLocation]:
        """Defensible, resource-rich, reasonably central site."""
        candidates = []
        for tile in self.tiles.values():
            if not tile.is_land or tile.terrain == Terrain.BEACH or not self._free(tile):
                continue
            if self._too_close(tile, existing, min_distance):
                continue

            elev_score = 1 - abs(tile.elevation - 0.55)
            resource_score = 1.0 if tile.terrain in RESOURCE_BIOMES else 0.5
            passable = sum(1 for n in self._neighbors(tile) if n.is_passable)
            defense_score = 1 - passable / 6
            centrality_score = 1 - hex_distance((0, 0), tile.coord) / self.radius
            quadrant_bonus = self._quadrant_bonus(tile, existing)

            score = (
                elev_score * 0.25
                + resource_score * 0.25
                + defense_score * 0.15
                + centrality_score * 0.15
                + quadrant_bonus * 0.2
            )
            candidates.append((score, tile))

        tile = _best(candidates)
        if tile is None:
            logger.warning("No site for the mercenary compound")
            return None
        return StrategicLocation(
            name="Blacksteel Compound",
            type=LocationType.HOSTILE_BASE,
            tile=tile,
            description="A fortified compound controlled by ruthless mercenaries. Approach with caution.",
            faction=MERCENARIES,
        )

    # ----- sacred sites -----

    def place_sacred_sites(self) -> List[StrategicLocation]:
        """3-5 sites on peaks and cloud forest, spread apart."""
        num_sites = 3 + math.floor(self.prng.next() * 3)
        candidates = []
        for tile in self.tiles.values():
            if not tile.is_land or tile.is_coastline or not self._free(tile):
                continue
            score = 0.0
            if tile.terrain in PEAKS:
                score += tile.elevation * 2.0
            if tile.terrain == Terrain.CLOUD_FOREST:
                score += 1.5
            score += tile.water_distance(5) / 10 * 0.5
            if score > 0:
                candidates.append((score, tile))

        candidates.sort(key=lambda c: c[0], reverse=True)

        sites: List[StrategicLocation] = []
        for _, tile in candidates:
            if len(sites) >= num_sites:
                break
            if self._too_close(tile, [s.tile for s in sites], self.options.sacred_site_spacing):
                continue
            sites.append(
                self._claim(
                    StrategicLocation(
                        name=f"Sacred Site {chr(65 + len(sites))}",
                        type=LocationType.SACRED_SITE,
                        tile=tile,
                        description="A place where the Pulse flows strong. The natives hold this land as sacred.",
                    )
                )
            )

        if not sites:
            logger.warning("No sacred site candidates")
        return sites

    # ----- points of interest -----

    def place_shipwrecks(self) -> List[StrategicLocation]:
        """2-3 wrecks on remote beaches."""
        num_wrecks = 2 + math.floor(self.prng.next() * 2)
        candidates = []
        for tile in self.tiles.values():
            if tile.terrain != Terrain.BEACH or not self._free(tile):
                continue
            if not any(n.terrain == Terrain.SEA for n in self._neighbors(tile)):
                continue
            remoteness = hex_distance((0, 0), tile.coord) / self.radius
            candidates.append((remoteness * 0.7 + self.prng.next() * 0.3, tile))

        if not candidates:
            logger.warning("No suitable shipwreck locations found")
            return []

        candidates.sort(key=lambda c: c[0], reverse=True)

        wrecks: List[StrategicLocation] = []
        for _, tile in candidates:
            if len(wrecks) >= num_wrecks:
                break
            if self._too_close(tile, [w.tile for w in wrecks], self.options.shipwreck_spacing):
                continue
            roll = self.prng.next()
            if roll > 0.7:
                quality = "rich"
            elif roll > 0.3:
                quality = "normal"
            else:
                quality = "poor"
            wrecks.append(
                self._claim(
                    StrategicLocation(
                        name=f"Shipwreck: {SHIPWRECK_NAMES[len(wrecks) % len(SHIPWRECK_NAMES)]}",
                        type=LocationType.SHIPWRECK,
                        tile=tile,
                        description="The remains of a ship that wasn't so lucky. May contain salvage.",
                        loot_quality=quality,
                    )
                )
            )

        logger.info("Placed shipwrecks", count=len(wrecks))
        return wrecks

    def find_waterfall(self) -> Optional[StrategicLocation]:
        """River tile on the steepest drop."""
        candidates = []
        for tile in self.tiles.values():
            if tile.terrain != Terrain.RIVER or not self._free(tile):
                continue
            drops = [abs(tile.elevation - n.elevation) for n in self._neighbors(tile) if n.is_land]
            max_drop = max(drops, default=0.0)
            if max_drop > 0.15:
                candidates.append((max_drop, tile))

        tile = _best(candidates)
        if tile is None:
            return None
        return self._claim(
            StrategicLocation(
                name="Cascade Falls",
                type=LocationType.WATERFALL,
                tile=tile,
                description="A beautiful waterfall cascading down the mountainside. "
                "Fresh water and a peaceful resting spot.",
            )
        )

    def find_hot_spring(self) -> Optional[StrategicLocation]:
        """Rare: high, wet ground. Only appears on some islands."""
        if self.prng.next() > self.options.hot_spring_chance:
            return None

        candidates = []
        for tile in self.tiles.values():
            if not tile.is_land or tile.is_coastline or not self._free(tile):
                continue
            if tile.elevation >= 0.6 and tile.moisture >= 0.7:
                bonus = 0.5 if tile.terrain in (Terrain.MISTY_PEAK, Terrain.CLOUD_FOREST) else 0.0
                candidates.append((tile.elevation + tile.moisture + bonus, tile))

        tile = _best(candidates)
        if tile is None:
            return None
        return self._claim(
            StrategicLocation(
                name="Steaming Springs",
                type=LocationType.HOT_SPRING,
                tile=tile,
                description="Natural hot springs warmed by geothermal activity. Restorative and relaxing.",
            )
        )

    def find_caves(self) -> List[StrategicLocation]:
        candidates = []
        for tile in self.tiles.values():
            if not tile.is_land or tile.is_coastline or not self._free(tile):
                continue
            if tile.elevation >= 0.55:
                candidates.append((tile.elevation + self.prng.next() * 0.3, tile))

        candidates.sort(key=lambda c: c[0], reverse=True)

        caves: List[StrategicLocation] = []
        for _, tile in candidates:
            if len(caves) >= min(self.options.num_caves, len(CAVE_NAMES)):
                break
            if self._too_close(tile, [c.tile for c in caves], self.options.cave_spacing):
                continue
            caves.append(
                self._claim(
                    StrategicLocation(
                        name=CAVE_NAMES[len(caves)],
                        type=LocationType.CAVE,
                        tile=tile,
                        description="A dark cave entrance. Could provide shelter, or hide dangers.",
                    )
                )
            )
        return caves

    def find_harbor(self) -> Optional[StrategicLocation]:
        """Beach with some sea access but mostly sheltered by land."""
        candidates = []
        for tile in self.tiles.values():
            if tile.terrain != Terrain.BEACH or not self._free(tile):
                continue
            sea = 0
            land = 0
            for n in self._neighbors(tile):
                if n.terrain == Terrain.SEA:
                    sea += 1
                elif n.is_land:
                    land += 1
            if 2 <= sea <= 3 and land >= 3:
                candidates.append((land + self.prng.next() * 2, tile))

        tile = _best(candidates)
        if tile is None:
            return None
        return self._claim(
            StrategicLocation(
                name="Safe Harbor",
                type=LocationType.HARBOR,
                tile=tile,
                description="A naturally protected cove, sheltered from rough seas. Perfect for boats.",
            )
        )

    def place_natural_landmarks(self) -> None:
        locs = self.locations
        locs.waterfall = self.find_waterfall()
        locs.hot_spring = self.find_hot_spring()
        locs.caves = self.find_caves()
        locs.harbor = self.find_harbor()
        logger.info("Placed natural landmarks", count=len(locs.landmarks))

    def place_ancient_ruins(self) -> List[StrategicLocation]:
        """1-2 ruins deep in jungle or on peaks, away from the villages."""
        num_ruins = 1 + math.floor(self.prng.next() * 2)
        villages = [
            loc.tile for loc in (self.locations.tidal_village, self.locations.ridge_village) if loc is not None
        ]

        candidates = []
        for tile in self.tiles.values():
            if not tile.is_land or tile.is_coastline or not self._free(tile):
                continue
            if tile.terrain in (Terrain.RAINFOREST, Terrain.JUNGLE_HILL):
                score = 2.0 + tile.water_distance(0) / 10
            elif tile.terrain in PEAKS:
                score = 1.8 + tile.elevation
            elif tile.terrain == Terrain.CLOUD_FOREST:
                score = 1.5 + tile.water_distance(0) / 10
            else:
                continue
            if self._too_close(tile, villages, self.options.ruin_village_distance):
                continue
            candidates.append((score, tile))

        if not candidates:
            logger.warning("No suitable ruin locations found")
            return []

        candidates.sort(key=lambda c: c[0], reverse=True)

        ruins: List[StrategicLocation] = []
        for _, tile in candidates:
            if len(ruins) >= num_ruins:
                break
            if self._too_close(tile, [r.tile for r in ruins], self.options.ruin_spacing):
                continue
            name, description = RUIN_TYPES[len(ruins) % len(RUIN_TYPES)]
            quality = "rich" if self.prng.next() > 0.5 else "abundant"
            ruins.append(
                self._claim(
                    StrategicLocation(
                        name=name,
                        type=LocationType.RUINS,
                        tile=tile,
                        description=description,
                        loot_quality=quality,
                    )
                )
            )

        logger.info("Placed ancient ruins", count=len(ruins))
        return ruins

    # ----- orchestration -----

    def mark_strategic_tiles(self) -> None:
        """
        Back-reference each location from its tile.

        Capital tiles take their faction right away so no earlier faction's
        growth can swallow a later faction's capital.
        """
        for location in self.locations.all():
            tile = location.tile
            tile.strategic_location = location
            tile.is_strategic = True
            if location.type == LocationType.SACRED_SITE:
                tile.is_sacred = True
            if location.faction is not None:
                tile.faction = location.faction

    def place_all(self) -> StrategicLocations:
        """
        Place every location in a fixed order.

        The order matters: capitals constrain each other through the minimum
        distance, and every later step draws from the shared PRNG.
        """
        locs = self.locations
        min_distance = math.floor(self.grid.radius * self.options.min_base_distance_factor)
        placed: List[Tile] = []

        locs.castaway_beach = self._claim(self.find_castaway_beach())
        if locs.castaway_beach:
            placed.append(locs.castaway_beach.tile)

        locs.tidal_village = self._claim(self.find_tidal_village(placed, min_distance))
        if locs.tidal_village:
            placed.append(locs.tidal_village.tile)

        locs.ridge_village = self._claim(self.find_ridge_village(placed, min_distance))
        if locs.ridge_village:
            placed.append(locs.ridge_village.tile)

        locs.mercenary_compound = self._claim(self.find_mercenary_compound(placed, min_distance))
        if locs.mercenary_compound:
            placed.append(locs.mercenary_compound.tile)

        locs.sacred_sites = self.place_sacred_sites()

        if self.options.place_points_of_interest:
            locs.shipwrecks = self.place_shipwrecks()
            self.place_natural_landmarks()
            locs.ruins = self.place_ancient_ruins()

        self.mark_strategic_tiles()

        logger.info(
            "Placed strategic locations",
            total=len(locs),
            sacred_sites=len(locs.sacred_sites),
            shipwrecks=len(locs.shipwrecks),
            landmarks=len(locs.landmarks),
            ruins=len(locs.ruins),
        )
        if locs.castaway_beach and locs.tidal_village:
            logger.debug(
                "Castaway to Tidal distance",
                distance=hex_distance(locs.castaway_beach.coord, locs.tidal_village.coord),
            )
        return locs
