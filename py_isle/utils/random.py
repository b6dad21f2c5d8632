"""
Random number generation utilities.

Every generator in py_isle is constructed explicitly from a seed and passed
to the code that consumes it. Python's random and NumPy's random should not
be used in generation code: they would break reproducibility.
"""

from typing import Union

from ..core.mulberry_prng import MulberryPRNG, hash_seed_string

Seed = Union[int, str]


def normalize_seed(seed: Seed) -> int:
    """
    Convert a user supplied seed into the numeric seed used by all generators.

    Args:
        seed: Seed string or number

    Returns:
        Non-negative integer seed
    """
    if isinstance(seed, bool):
        raise TypeError("Seed must be a string or an integer")
    if isinstance(seed, str):
        return hash_seed_string(seed)
    return abs(int(seed))


def create_prng(seed: Seed, offset: int = 0) -> MulberryPRNG:
    """
    Create a Mulberry32 PRNG for the given seed.

    Args:
        seed: Seed string or number
        offset: Added to the numeric seed to derive an independent stream

    Returns:
        MulberryPRNG instance
    """
    return MulberryPRNG(normalize_seed(seed) + offset)
