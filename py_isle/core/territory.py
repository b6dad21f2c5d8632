"""
Territory & faction control at runtime.

Wraps every tile of a generated island in a mutable ``Territory`` that tracks
ownership, fog of war, exploration and claim progress. ``TerritoryManager``
owns all post-generation mutation:
- Ownership changes and player expansion
- Fog of war (discovery and vision range)
- Exploration and claiming attempts, returned as result objects
- Frontier (perimeter) recomputation
- Travel costs and routing over owned/unowned land
"""

import math
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Protocol, Set, Tuple

import structlog

from .factions import PLAYER, FactionConfig, grow_territory
from .hex_grid import HexCoordinate, HexGrid, hex_neighbors
from .mulberry_prng import MulberryPRNG
from .tiles import NEUTRAL, Terrain

logger = structlog.get_logger()

EXPLORATION_SKILL = "survival"
CLAIM_SKILL = "diplomacy"

EXPLORE_SUCCESS_XP = 5
EXPLORE_FAILURE_XP = 1
CLAIM_SUCCESS_XP = 3
CLAIM_FAILURE_XP = 1

# Game minutes spent by every claim attempt that gets rolled
CLAIM_DURATION_MINUTES = 120

CONTESTED_ROLLBACK_CHANCE = 0.3
CONTESTED_ROLLBACK_POINTS = 10

DEFAULT_VISION_RANGE = 2

# Exploration difficulty per terrain, subtracted from the success chance
EXPLORATION_DIFFICULTY: Dict[Terrain, float] = {
    Terrain.BEACH: 5,
    Terrain.SAVANNA: 10,
    Terrain.PALM_GROVE: 10,
    Terrain.RIVER: 15,
    Terrain.FOREST: 20,
    Terrain.DRY_HILL: 25,
    Terrain.MANGROVE: 30,
    Terrain.RAINFOREST: 30,
    Terrain.JUNGLE_HILL: 35,
    Terrain.CLIFF: 35,
    Terrain.CLOUD_FOREST: 40,
    Terrain.ROCKY_PEAK: 45,
    Terrain.MISTY_PEAK: 50,
}

# Base cost of entering a tile when travelling
MOVEMENT_COST: Dict[Terrain, float] = {
    Terrain.BEACH: 1.0,
    Terrain.SAVANNA: 1.0,
    Terrain.PALM_GROVE: 1.2,
    Terrain.FOREST: 1.5,
    Terrain.RIVER: 2.0,
    Terrain.DRY_HILL: 2.0,
    Terrain.MANGROVE: 2.5,
    Terrain.RAINFOREST: 2.5,
    Terrain.JUNGLE_HILL: 3.0,
    Terrain.CLIFF: 3.0,
    Terrain.CLOUD_FOREST: 3.0,
    Terrain.ROCKY_PEAK: 4.0,
    Terrain.MISTY_PEAK: 4.0,
}

PLAYER_GROWTH = FactionConfig(
    max_radius=2,
    preferred_terrains=[Terrain.BEACH, Terrain.SAVANNA, Terrain.FOREST, Terrain.PALM_GROVE],
    growth_rate=0.6,
)


class SkillHolder(Protocol):
    """Whoever attempts actions: exposes skills and takes experience."""

    def get_effective_skill(self, name: str) -> float:
        ...

    def gain_skill_xp(self, name: str, amount: float) -> None:
        ...


class GameClock(Protocol):
    def advance_time(self, minutes: int) -> None:
        ...


class DiscoveryType(str, Enum):
    RESOURCE = "resource"
    NPC = "npc"
    EVENT = "event"
    SURVEY_COMPLETE = "survey-complete"


DISCOVERY_THRESHOLDS: Tuple[Tuple[int, DiscoveryType], ...] = (
    (25, DiscoveryType.RESOURCE),
    (50, DiscoveryType.NPC),
    (75, DiscoveryType.EVENT),
    (100, DiscoveryType.SURVEY_COMPLETE),
)


@dataclass
class Discovery:
    """Something revealed by crossing an exploration threshold."""

    type: DiscoveryType
    threshold: int
    position: HexCoordinate


@dataclass
class ExplorationResult:
    success: bool
    position: HexCoordinate
    progress: float
    gained: float = 0.0
    fully_explored: bool = False
    discoveries: List[Discovery] = field(default_factory=list)
    chance: Optional[float] = None
    roll: Optional[float] = None
    xp_gained: int = 0
    reason: Optional[str] = None


@dataclass
class ClaimResult:
    success: bool
    position: HexCoordinate
    progress: float
    gained: float = 0.0
    claimed: bool = False  # Ownership changed hands on this attempt
    contested: bool = False
    requires_exploration: bool = False
    progress_lost: float = 0.0
    chance: Optional[float] = None
    roll: Optional[float] = None
    minutes_spent: int = 0
    xp_gained: int = 0
    reason: Optional[str] = None


@dataclass(eq=False)
class Territory:
    """Runtime state of one hex."""

    position: HexCoordinate
    terrain: Optional[Terrain] = None
    elevation: float = 0.0
    is_passable: bool = True
    is_sacred: bool = False
    owner: Optional[str] = None
    control_strength: float = 0.0
    discovered: bool = False
    discovered_by: Optional[str] = None
    visited: bool = False
    visible_from_fog: bool = False
    exploration_progress: float = 0.0
    fully_explored: bool = False
    claim_progress: float = 0.0
    claimant: Optional[str] = None
    is_frontier: bool = False
    resource_node_id: Optional[str] = None
    event_id: Optional[str] = None
    npc_id: Optional[str] = None
    last_visited: Optional[int] = None  # Game minutes
    travel_cost_modifier: float = 1.0
    travel_speed_modifier: float = 1.0

    def __post_init__(self):
        self.update_travel_modifiers()

    @property
    def has_resource_node(self) -> bool:
        return self.resource_node_id is not None

    @property
    def has_event(self) -> bool:
        return self.event_id is not None

    @property
    def has_npc(self) -> bool:
        return self.npc_id is not None

    def set_owner(self, faction: Optional[str], strength: float = 50) -> None:
        # Claim progress never carries over a change of hands
        if faction != self.owner:
            self.claim_progress = 0.0
            self.claimant = None
        self.owner = faction
        self.control_strength = strength if faction is not None else 0.0
        self.update_travel_modifiers()

    def update_travel_modifiers(self) -> None:
        """Own land is cheap and fast, other factions' land slow and costly."""
        if self.owner == PLAYER:
            self.travel_cost_modifier = 0.5
            self.travel_speed_modifier = 1.5
        elif self.owner:
            self.travel_cost_modifier = 1.2
            self.travel_speed_modifier = 0.9
        else:
            self.travel_cost_modifier = 1.0
            self.travel_speed_modifier = 1.0

    def discover(self, discovered_by: str = PLAYER) -> bool:
        """Returns True if this call revealed the territory."""
        if self.discovered:
            return False
        self.discovered = True
        self.discovered_by = discovered_by
        self.visible_from_fog = True
        return True

    def visit(self, game_minutes: Optional[int] = None) -> None:
        self.visited = True
        if game_minutes is not None:
            self.last_visited = game_minutes
        self.discover(PLAYER)


class TerritoryManager:
    """Manages all territories on the island."""

    def __init__(self, prng: MulberryPRNG, grid: Optional[HexGrid] = None):
        """
        Initialize manager.

        Args:
            prng: Runtime PRNG for exploration, claims and expansion
            grid: Hex grid of the island, used for routing
        """
        self.prng = prng
        self.grid = grid
        self.territories: Dict[HexCoordinate, Territory] = OrderedDict()

    # ----- setup -----

    def init_from_island(self, island) -> int:
        """
        Create a territory for every tile of a generated island.

        Faction tiles start owned by their faction, capitals at full
        strength. Neutral land starts unclaimed.
        """
        self.grid = island.grid
        self.territories = OrderedDict()
        capitals = {tile.coord for tile in island.locations.capitals().values()}

        for coord, tile in island.tiles.items():
            territory = Territory(
                position=coord,
                terrain=tile.terrain,
                elevation=tile.elevation,
                is_passable=tile.is_passable,
                is_sacred=tile.is_sacred,
            )
            if tile.faction is not None and tile.faction != NEUTRAL:
                territory.set_owner(tile.faction, 100 if coord in capitals else 50)
            self.territories[coord] = territory

        self.recompute_frontier()
        logger.info("Initialized territories", count=len(self.territories))
        return len(self.territories)

    # ----- lookup -----

    def get_territory(self, q: int, r: int) -> Optional[Territory]:
        return self.territories.get(HexCoordinate(q, r))

    def faction_territories(self, faction: str) -> List[Territory]:
        return [t for t in self.territories.values() if t.owner == faction]

    def adjacent_territories(self, q: int, r: int) -> List[Territory]:
        result = []
        for n in hex_neighbors((q, r)):
            territory = self.territories.get(n)
            if territory is not None:
                result.append(territory)
        return result

    # ----- ownership -----

    def set_owner(self, q: int, r: int, faction: Optional[str], strength: float = 50) -> bool:
        territory = self.get_territory(q, r)
        if territory is None:
            return False
        territory.set_owner(faction, strength)
        self.recompute_frontier()
        return True

    def expand_territory(
        self,
        q: int,
        r: int,
        faction: str = PLAYER,
        config: Optional[FactionConfig] = None,
        strength: float = 30,
    ) -> List[Territory]:
        """
        Grow ``faction`` outward from (q, r) with the same BFS used at
        generation time. Only unclaimed, passable, unsacred territory is
        taken. The origin must be passable, unsacred, and unclaimed or
        already owned by ``faction``.

        Returns:
            Newly claimed territories, origin excluded
        """
        origin = self.get_territory(q, r)
        if origin is None or not origin.is_passable or origin.is_sacred:
            return []
        if origin.owner is not None and origin.owner != faction:
            return []
        config = config or PLAYER_GROWTH

        def claimable(coord: HexCoordinate) -> Optional[Terrain]:
            territory = self.territories.get(coord)
            if (
                territory is None
                or not territory.is_passable
                or territory.owner is not None
                or territory.is_sacred
            ):
                return None
            return territory.terrain

        claimed: List[Territory] = []

        def claim(coord: HexCoordinate, distance: int) -> None:
            territory = self.territories[coord]
            if distance == 0:
                if territory.owner != faction:
                    territory.set_owner(faction, max(strength, territory.control_strength))
                return
            territory.set_owner(faction, strength)
            claimed.append(territory)

        grow_territory(origin.position, config, self.prng, claimable, claim)
        self.recompute_frontier()
        logger.info("Expanded territory", faction=faction, origin=str(origin.position), claimed=len(claimed))
        return claimed

    def recompute_frontier(self) -> Set[HexCoordinate]:
        """
        Full recompute of ``is_frontier``: an owned, non-neutral territory is
        frontier when a passable neighbour has a different owner or none.
        """
        frontier = set()
        for coord, territory in self.territories.items():
            territory.is_frontier = False
            if territory.owner is None or territory.owner == NEUTRAL:
                continue
            for n in hex_neighbors(coord):
                neighbor = self.territories.get(n)
                if neighbor is not None and neighbor.is_passable and neighbor.owner != territory.owner:
                    territory.is_frontier = True
                    frontier.add(coord)
                    break
        return frontier

    # ----- fog of war -----

    def visible_territories(
        self, position: Tuple[int, int], vision_range: int = DEFAULT_VISION_RANGE
    ) -> List[Territory]:
        """Territories within ``vision_range`` hex steps, marked visible."""
        center = self.territories.get(HexCoordinate(position[0], position[1]))
        if center is None:
            return []

        grid = self.grid or HexGrid(0)
        visible = []
        for coord in grid.hexes_in_range(center.position, vision_range):
            territory = self.territories.get(coord)
            if territory is not None:
                territory.visible_from_fog = True
                visible.append(territory)
        return visible

    def update_fog_of_war(
        self, positions: Iterable[Tuple[int, int]], discovered_by: str = PLAYER
    ) -> List[Territory]:
        """Discover the given positions. Returns the newly discovered ones."""
        revealed = []
        for q, r in positions:
            territory = self.get_territory(q, r)
            if territory is not None and territory.discover(discovered_by):
                revealed.append(territory)
        return revealed

    def generate_starting_territories(
        self,
        start: Tuple[int, int],
        vision_range: int = DEFAULT_VISION_RANGE,
        game_minutes: Optional[int] = None,
    ) -> List[Territory]:
        """
        Give the player the starting tile and reveal the area around it.

        Returns:
            Territories visible from the start
        """
        q, r = start
        territory = self.get_territory(q, r)
        if territory is None:
            logger.warning("No territory at player start", q=q, r=r)
            return []

        territory.set_owner(PLAYER, 100)
        territory.visit(game_minutes)
        visible = self.visible_territories(start, vision_range)
        self.recompute_frontier()
        logger.info("Generated starting territories", q=q, r=r, visible=len(visible))
        return visible

    # ----- actions -----

    def exploration_difficulty(self, territory: Territory) -> float:
        return EXPLORATION_DIFFICULTY.get(territory.terrain, 25)

    def attempt_explore(
        self,
        q: int,
        r: int,
        skills: SkillHolder,
        explorer: str = PLAYER,
        game_minutes: Optional[int] = None,
    ) -> ExplorationResult:
        """
        Roll one exploration attempt.

        Success adds ``10 + skill/5`` progress (capped at 100) and reports
        discoveries for every threshold crossed on this attempt only.
        """
        position = HexCoordinate(q, r)
        territory = self.territories.get(position)
        if territory is None:
            return ExplorationResult(False, position, 0.0, reason="No territory at this position")
        if not territory.is_passable:
            return ExplorationResult(
                False, position, territory.exploration_progress, reason="Territory cannot be explored"
            )
        if territory.fully_explored:
            return ExplorationResult(
                False,
                position,
                territory.exploration_progress,
                fully_explored=True,
                reason="Territory is already fully explored",
            )

        skill = skills.get_effective_skill(EXPLORATION_SKILL)
        chance = 50 + skill - self.exploration_difficulty(territory)
        roll = self.prng.next() * 100

        if explorer == PLAYER:
            territory.visit(game_minutes)
        else:
            territory.discover(explorer)

        if roll >= chance:
            skills.gain_skill_xp(EXPLORATION_SKILL, EXPLORE_FAILURE_XP)
            return ExplorationResult(
                False,
                position,
                territory.exploration_progress,
                chance=chance,
                roll=roll,
                xp_gained=EXPLORE_FAILURE_XP,
                reason="Exploration attempt failed",
            )

        before = territory.exploration_progress
        gained = 10 + skill / 5
        after = min(100.0, before + gained)
        territory.exploration_progress = after

        discoveries = [
            Discovery(kind, threshold, position)
            for threshold, kind in DISCOVERY_THRESHOLDS
            if before < threshold <= after
        ]
        if after >= 100 and not territory.fully_explored:
            territory.fully_explored = True

        skills.gain_skill_xp(EXPLORATION_SKILL, EXPLORE_SUCCESS_XP)
        logger.debug(
            "Exploration progressed",
            position=str(position),
            progress=after,
            discoveries=[d.type.value for d in discoveries],
        )
        return ExplorationResult(
            True,
            position,
            after,
            gained=after - before,
            fully_explored=territory.fully_explored,
            discoveries=discoveries,
            chance=chance,
            roll=roll,
            xp_gained=EXPLORE_SUCCESS_XP,
        )

    def attempt_claim(
        self,
        q: int,
        r: int,
        skills: SkillHolder,
        clock: GameClock,
        claimant: str = PLAYER,
    ) -> ClaimResult:
        """
        Roll one claim attempt. Requires the territory to be fully explored.

        Every rolled attempt spends ``CLAIM_DURATION_MINUTES`` of game time.
        A failed attempt on a contested territory may lose progress.
        """
        position = HexCoordinate(q, r)
        territory = self.territories.get(position)
        if territory is None:
            return ClaimResult(False, position, 0.0, reason="No territory at this position")
        if not territory.fully_explored:
            return ClaimResult(
                False,
                position,
                territory.claim_progress,
                requires_exploration=True,
                reason="Territory must be fully explored before it can be claimed",
            )
        if territory.owner == claimant:
            return ClaimResult(False, position, territory.claim_progress, reason="Territory is already yours")

        # A new claimant starts from scratch
        if territory.claimant != claimant:
            territory.claimant = claimant
            territory.claim_progress = 0.0

        contested = territory.owner is not None
        skill = skills.get_effective_skill(CLAIM_SKILL)
        difficulty = 40 + (30 if contested else 0) + territory.control_strength * 0.3
        chance = 50 + skill - difficulty

        clock.advance_time(CLAIM_DURATION_MINUTES)
        roll = self.prng.next() * 100

        if roll < chance:
            before = territory.claim_progress
            progress = min(100.0, before + 15 + skill / 4)
            territory.claim_progress = progress
            claimed = False
            if progress >= 100:
                previous = territory.owner
                # Spends the progress: a later claim starts from zero
                territory.set_owner(claimant, 100)
                self.recompute_frontier()
                claimed = True
                logger.info("Territory claimed", position=str(position), claimant=claimant, previous=previous)
            skills.gain_skill_xp(CLAIM_SKILL, CLAIM_SUCCESS_XP)
            return ClaimResult(
                True,
                position,
                progress,
                gained=progress - before,
                claimed=claimed,
                contested=contested,
                chance=chance,
                roll=roll,
                minutes_spent=CLAIM_DURATION_MINUTES,
                xp_gained=CLAIM_SUCCESS_XP,
            )

        lost = 0.0
        if contested and self.prng.next() < CONTESTED_ROLLBACK_CHANCE:
            before = territory.claim_progress
            territory.claim_progress = max(0.0, before - CONTESTED_ROLLBACK_POINTS)
            lost = before - territory.claim_progress

        skills.gain_skill_xp(CLAIM_SKILL, CLAIM_FAILURE_XP)
        return ClaimResult(
            False,
            position,
            territory.claim_progress,
            contested=contested,
            progress_lost=lost,
            chance=chance,
            roll=roll,
            minutes_spent=CLAIM_DURATION_MINUTES,
            xp_gained=CLAIM_FAILURE_XP,
            reason="Claim attempt failed",
        )

    # ----- travel -----

    def travel_cost(self, coord: Tuple[int, int]) -> float:
        """Cost of entering a hex, ``math.inf`` when impassable."""
        territory = self.territories.get(HexCoordinate(coord[0], coord[1]))
        if territory is None or not territory.is_passable:
            return math.inf
        base = MOVEMENT_COST.get(territory.terrain, 1.0)
        return max(1.0, base * territory.travel_cost_modifier)

    def find_route(self, start: Tuple[int, int], goal: Tuple[int, int]) -> List[HexCoordinate]:
        """Cheapest passable route, empty when unreachable."""
        if self.grid is None:
            return []
        return self.grid.find_path(start, goal, self.travel_cost)

    # ----- reporting -----

    def get_stats(self) -> Dict:
        stats = {
            "total": len(self.territories),
            "discovered": 0,
            "visited": 0,
            "fully_explored": 0,
            "frontier": 0,
            "owned": {},
            "unclaimed": 0,
        }
        for territory in self.territories.values():
            if territory.discovered:
                stats["discovered"] += 1
            if territory.visited:
                stats["visited"] += 1
            if territory.fully_explored:
                stats["fully_explored"] += 1
            if territory.is_frontier:
                stats["frontier"] += 1
            if territory.owner:
                stats["owned"][territory.owner] = stats["owned"].get(territory.owner, 0) + 1
            else:
                stats["unclaimed"] += 1
        return stats

    # ----- persistence -----

    def to_records(self):
        """Serializable records of every territory, in tile order."""
        from ..export.serializers import territory_to_record

        return [territory_to_record(t) for t in self.territories.values()]

    @classmethod
    def from_records(cls, records, prng: MulberryPRNG, island=None) -> "TerritoryManager":
        """
        Rebuild a manager from saved records.

        When the island is given, terrain, elevation and passability come
        from its tiles; saved progress and ownership overlay them.
        """
        from ..export.serializers import territory_from_record

        manager = cls(prng, island.grid if island is not None else None)
        if island is not None:
            manager.init_from_island(island)

        for record in records:
            restored = territory_from_record(record)
            base = manager.territories.get(restored.position)
            if base is not None:
                restored.terrain = base.terrain
                restored.elevation = base.elevation
                restored.is_passable = base.is_passable
                restored.is_sacred = base.is_sacred
            manager.territories[restored.position] = restored

        manager.recompute_frontier()
        return manager
