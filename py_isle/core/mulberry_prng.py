"""
Python implementation of the Mulberry32 PRNG used for island generation.

Mulberry32 is a tiny 32-bit generator with a single word of state. All
arithmetic is done on unsigned 32-bit integers so the stream is identical on
every platform for the same seed.
"""

from __future__ import annotations

import math
from typing import List, MutableSequence, Sequence, TypeVar, Union

T = TypeVar("T")

_MASK = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5


def _uint32(n: int) -> int:
    """Convert to unsigned 32-bit integer."""
    return n & _MASK


def _imul(a: int, b: int) -> int:
    """32-bit integer multiply, wrapping like a C uint32_t."""
    return (a * b) & _MASK


def hash_seed_string(seed: str) -> int:
    """
    Hash a string seed into a non-negative integer.

    Rolling ``h * 31 + unit`` hash over UTF-16 code units, truncated to a
    signed 32-bit integer after every step, absolute value at the end.
    """
    h = 0
    data = seed.encode("utf-16-le")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & _MASK
        if h >= 0x80000000:
            h -= 0x100000000
    return abs(h)


class MulberryPRNG:
    """
    Mulberry32 PRNG.

    Every derived operation (``range``, ``int``, ``bool``, ``choice``,
    ``shuffle``) is built on ``next()`` so reproducibility follows from the
    seed alone.
    """

    def __init__(self, seed: Union[int, str]):
        """Initialize with seed string or number."""
        if isinstance(seed, str):
            seed = hash_seed_string(seed)
        self.seed = int(seed)
        self.state = _uint32(self.seed)
        self.call_count = 0

    def next(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        self.state = _uint32(self.state + _INCREMENT)
        t = self.state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= _uint32(t + _imul(t ^ (t >> 7), t | 61))
        return _uint32(t ^ (t >> 14)) / 4294967296

    # Alias so the generator can stand in wherever a ``random()`` source is expected
    random = next

    def range(self, min_val: float, max_val: float) -> float:
        """Random float between min and max."""
        return min_val + self.next() * (max_val - min_val)

    def int(self, min_val: int, max_val: int) -> int:
        """Random integer between min and max, both inclusive."""
        span = max_val - min_val + 1
        return min_val + math.floor(self.next() * span)

    def bool(self, probability: float = 0.5) -> bool:
        """Random boolean, True with the given probability."""
        return self.next() < probability

    def choice(self, seq: Sequence[T]) -> T:
        """Choose a random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[self.int(0, len(seq) - 1)]

    def shuffle(self, items: MutableSequence[T]) -> MutableSequence[T]:
        """Fisher-Yates shuffle in place. Returns the same sequence."""
        for i in range(len(items) - 1, 0, -1):
            j = self.int(0, i)
            items[i], items[j] = items[j], items[i]
        return items

    def sample(self, items: Sequence[T], k: int) -> List[T]:
        """Pick ``k`` distinct elements, in shuffled order."""
        pool = list(items)
        self.shuffle(pool)
        return pool[:k]

    def reset(self) -> None:
        """Rewind to the initial seed."""
        self.state = _uint32(self.seed)
        self.call_count = 0

    def set_seed(self, seed: Union[int, str]) -> None:
        """Reseed the generator."""
        if isinstance(seed, str):
            seed = hash_seed_string(seed)
        self.seed = int(seed)
        self.reset()
