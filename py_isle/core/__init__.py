"""
Core island generation functionality.
"""

from .mulberry_prng import MulberryPRNG
from .hex_grid import HexCoordinate, HexGrid
from .tiles import Terrain, Tile

__all__ = ['MulberryPRNG', 'HexCoordinate', 'HexGrid', 'Terrain', 'Tile']
