"""
Hexagonal grid utilities.

Uses the axial coordinate system (q, r) with an implicit cube coordinate
(x = q, y = -q - r, z = r) for distance math and rounding.

This module implements:
- Coordinate conversion, rounding and packed keys
- Distance, neighbour, ring, range and line queries
- Circular map layout (the canonical tile iteration order)
- A* pathfinding with a pluggable per-tile cost
- Flat-top pixel projection for renderers
"""

import heapq
import math
from itertools import count
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

SQRT3 = math.sqrt(3.0)


class HexCoordinate(NamedTuple):
    """Axial hex coordinate. Immutable."""

    q: int
    r: int

    @property
    def x(self) -> int:
        return self.q

    @property
    def y(self) -> int:
        return -self.q - self.r

    @property
    def z(self) -> int:
        return self.r

    @property
    def key(self) -> int:
        """Canonical packed 64-bit key."""
        return pack_key(self.q, self.r)

    def __add__(self, other):
        return HexCoordinate(self.q + other[0], self.r + other[1])

    def __str__(self) -> str:
        return f"{self.q},{self.r}"


# Clockwise from East: E, NE, NW, W, SW, SE.
# This is the iteration order for every flood fill in the package.
DIRECTIONS: Tuple[HexCoordinate, ...] = (
    HexCoordinate(1, 0),
    HexCoordinate(1, -1),
    HexCoordinate(0, -1),
    HexCoordinate(-1, 0),
    HexCoordinate(-1, 1),
    HexCoordinate(0, 1),
)

# Ring walk starts at the SW corner and turns through these
_RING_DIRECTIONS: Tuple[HexCoordinate, ...] = (
    HexCoordinate(1, -1),
    HexCoordinate(1, 0),
    HexCoordinate(0, 1),
    HexCoordinate(-1, 1),
    HexCoordinate(-1, 0),
    HexCoordinate(0, -1),
)

CostFn = Callable[[HexCoordinate], float]


def make_coordinate(q, r) -> HexCoordinate:
    """Build a coordinate, rejecting non-integer components."""
    for value in (q, r):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Hex coordinates must be integers, got {value!r}")
    return HexCoordinate(q, r)


def pack_key(q: int, r: int) -> int:
    """Pack an axial coordinate into a single 64-bit integer."""
    return (q << 32) | (r & 0xFFFFFFFF)


def unpack_key(key: int) -> HexCoordinate:
    """Inverse of ``pack_key``."""
    r = key & 0xFFFFFFFF
    if r >= 0x80000000:
        r -= 0x100000000
    q = (key - (r & 0xFFFFFFFF)) >> 32
    return HexCoordinate(q, r)


def hex_distance(a: Tuple[int, int], b: Tuple[int, int]) -> int:
    """Distance between two hexes in hex steps (cube max-norm)."""
    dq = a[0] - b[0]
    dr = a[1] - b[1]
    return max(abs(dq), abs(dr), abs(dq + dr))


def cube_round(x: float, y: float, z: float) -> Tuple[int, int, int]:
    """Round fractional cube coordinates to the nearest hex."""
    rx = round(x)
    ry = round(y)
    rz = round(z)

    x_diff = abs(rx - x)
    y_diff = abs(ry - y)
    z_diff = abs(rz - z)

    if x_diff > y_diff and x_diff > z_diff:
        rx = -ry - rz
    elif y_diff > z_diff:
        ry = -rx - rz
    else:
        rz = -rx - ry

    return int(rx), int(ry), int(rz)


def axial_round(q: float, r: float) -> HexCoordinate:
    """Round fractional axial coordinates via cube rounding."""
    x, _, z = cube_round(q, -q - r, r)
    return HexCoordinate(x, z)


def hex_neighbors(coord: Tuple[int, int]) -> List[HexCoordinate]:
    """All 6 neighbours in canonical clockwise order starting East."""
    q, r = coord
    return [HexCoordinate(q + d.q, r + d.r) for d in DIRECTIONS]


class HexGrid:
    """Hex grid of a given radius around the origin."""

    def __init__(self, radius: int = 20, hex_size: float = 40.0):
        """
        Initialize grid.

        Args:
            radius: Number of hexes from the centre to the edge
            hex_size: Pixel size of each hex (centre to corner)
        """
        if radius < 0:
            raise ValueError("Grid radius must be non-negative")
        self.radius = radius
        self.hex_size = hex_size
        self.origin = HexCoordinate(0, 0)

    # ----- distance & neighbours -----

    def distance(self, a: Tuple[int, int], b: Tuple[int, int]) -> int:
        return hex_distance(a, b)

    def neighbors(self, coord: Tuple[int, int]) -> List[HexCoordinate]:
        return hex_neighbors(coord)

    def neighbor(self, coord: Tuple[int, int], direction: int) -> HexCoordinate:
        """Specific neighbour by direction index (0-5, wraps)."""
        d = DIRECTIONS[direction % 6]
        return HexCoordinate(coord[0] + d.q, coord[1] + d.r)

    # ----- area queries -----

    def hexes_in_range(self, center: Tuple[int, int], radius: int) -> List[HexCoordinate]:
        """All hexes within ``radius`` steps of ``center`` (q-major order)."""
        cq, cr = center
        hexes = []
        for dq in range(-radius, radius + 1):
            r1 = max(-radius, -dq - radius)
            r2 = min(radius, -dq + radius)
            for dr in range(r1, r2 + 1):
                hexes.append(HexCoordinate(cq + dq, cr + dr))
        return hexes

    def ring(self, center: Tuple[int, int], radius: int) -> List[HexCoordinate]:
        """Hexes at exactly ``radius`` steps: 6 * radius of them, 1 for radius 0."""
        if radius < 0:
            raise ValueError("Ring radius must be non-negative")
        if radius == 0:
            return [HexCoordinate(center[0], center[1])]

        results = []
        hex_q, hex_r = center[0] - radius, center[1] + radius
        for direction in _RING_DIRECTIONS:
            for _ in range(radius):
                results.append(HexCoordinate(hex_q, hex_r))
                hex_q += direction.q
                hex_r += direction.r
        return results

    def line(self, a: Tuple[int, int], b: Tuple[int, int]) -> List[HexCoordinate]:
        """Hexes on the straight line from ``a`` to ``b``, inclusive."""
        n = hex_distance(a, b)
        if n == 0:
            return [HexCoordinate(a[0], a[1])]

        # Nudge off exact hex edges so rounding never ties
        ax, ay, az = a[0] + 1e-6, -a[0] - a[1] + 2e-6, a[1] - 3e-6
        bx, by, bz = b[0] + 1e-6, -b[0] - b[1] + 2e-6, b[1] - 3e-6

        results = []
        for i in range(n + 1):
            t = i / n
            x, _, z = cube_round(
                ax + (bx - ax) * t,
                ay + (by - ay) * t,
                az + (bz - az) * t,
            )
            results.append(HexCoordinate(x, z))
        return results

    # ----- map layout -----

    def circular_map(self, radius: Optional[int] = None) -> List[HexCoordinate]:
        """Every hex of a hexagonal map, q-major. Canonical tile order."""
        if radius is None:
            radius = self.radius
        return self.hexes_in_range(self.origin, radius)

    def in_bounds(self, coord: Tuple[int, int], radius: Optional[int] = None) -> bool:
        if radius is None:
            radius = self.radius
        return hex_distance(self.origin, coord) <= radius

    # ----- pathfinding -----

    def find_path(
        self,
        start: Tuple[int, int],
        goal: Tuple[int, int],
        cost_fn: Optional[CostFn] = None,
    ) -> List[HexCoordinate]:
        """
        A* search between two hexes.

        Hex distance is the heuristic; it never overestimates as long as every
        step costs at least 1. ``cost_fn`` returns the cost of entering a hex;
        ``math.inf`` marks it impassable. The search is confined to the grid.

        Args:
            start: Start hex
            goal: Goal hex
            cost_fn: Cost of entering a hex, defaults to 1 everywhere

        Returns:
            Path from start to goal inclusive, or an empty list if unreachable
        """
        start = HexCoordinate(start[0], start[1])
        goal = HexCoordinate(goal[0], goal[1])
        if cost_fn is None:
            cost_fn = lambda coord: 1.0

        if not self.in_bounds(start) or not self.in_bounds(goal):
            return []
        if start == goal:
            return [start]

        tie = count()
        frontier: List[Tuple[float, int, HexCoordinate]] = [(0.0, next(tie), start)]
        came_from: Dict[HexCoordinate, Optional[HexCoordinate]] = {start: None}
        cost_so_far: Dict[HexCoordinate, float] = {start: 0.0}

        while frontier:
            _, _, current = heapq.heappop(frontier)
            if current == goal:
                break

            for nxt in hex_neighbors(current):
                if not self.in_bounds(nxt):
                    continue
                step = cost_fn(nxt)
                if step is None or math.isinf(step):
                    continue
                new_cost = cost_so_far[current] + step
                if nxt not in cost_so_far or new_cost < cost_so_far[nxt]:
                    cost_so_far[nxt] = new_cost
                    priority = new_cost + hex_distance(nxt, goal)
                    heapq.heappush(frontier, (priority, next(tie), nxt))
                    came_from[nxt] = current

        if goal not in came_from:
            return []

        path = []
        node: Optional[HexCoordinate] = goal
        while node is not None:
            path.append(node)
            node = came_from[node]
        path.reverse()
        return path

    # ----- rendering helpers -----

    def axial_to_pixel(self, coord: Tuple[int, int]) -> Tuple[float, float]:
        """Centre of a hex in pixels (flat-top layout)."""
        q, r = coord
        x = self.hex_size * (1.5 * q)
        y = self.hex_size * (SQRT3 / 2 * q + SQRT3 * r)
        return x, y

    def pixel_to_axial(self, x: float, y: float) -> HexCoordinate:
        """Hex containing a pixel (flat-top layout), cube rounded."""
        q = (2.0 / 3.0 * x) / self.hex_size
        r = (-1.0 / 3.0 * x + SQRT3 / 3.0 * y) / self.hex_size
        return axial_round(q, r)

    def hex_corners(self, coord: Tuple[int, int]) -> List[Tuple[float, float]]:
        """Polygon corners for drawing a flat-top hex."""
        cx, cy = self.axial_to_pixel(coord)
        corners = []
        for i in range(6):
            angle = math.pi / 3 * i
            corners.append(
                (cx + self.hex_size * math.cos(angle), cy + self.hex_size * math.sin(angle))
            )
        return corners
