"""
Seeded 2D simplex noise.

Based on Stefan Gustavson's simplex noise. The permutation table is shuffled
by a Park-Miller LCG keyed on the seed, so two fields built from seeds that
differ by a few hundred share no structure.
"""

import math
from typing import Union

import numpy as np

from ..utils.random import normalize_seed

F2 = 0.5 * (math.sqrt(3.0) - 1.0)
G2 = (3.0 - math.sqrt(3.0)) / 6.0

_LCG_MULTIPLIER = 16807
_LCG_MODULUS = 2147483647

GRAD3 = np.array(
    [
        [1, 1, 0], [-1, 1, 0], [1, -1, 0], [-1, -1, 0],
        [1, 0, 1], [-1, 0, 1], [1, 0, -1], [-1, 0, -1],
        [0, 1, 1], [0, -1, 1], [0, 1, -1], [0, -1, -1],
    ],
    dtype=np.float64,
)


class SimplexNoise:
    """2D simplex noise field keyed by seed."""

    def __init__(self, seed: Union[int, str] = 0):
        """
        Build the permutation tables.

        Args:
            seed: Seed string or number
        """
        self.seed = normalize_seed(seed)

        p = np.arange(256, dtype=np.int64)
        state = self.seed
        for i in range(255, 0, -1):
            state = (state * _LCG_MULTIPLIER) % _LCG_MODULUS
            n = math.floor(state / _LCG_MODULUS * (i + 1))
            p[i], p[n] = p[n], p[i]

        # Doubled to 512 entries so index sums never need wrapping
        self.perm = np.concatenate([p, p])
        self.perm_mod12 = self.perm % 12

        # Plain lists for the scalar hot path
        self._perm = self.perm.tolist()
        self._perm_mod12 = self.perm_mod12.tolist()
        self._grad = GRAD3[:, :2].tolist()

    def _corner(self, gi: int, x: float, y: float) -> float:
        t = 0.5 - x * x - y * y
        if t < 0:
            return 0.0
        t *= t
        gx, gy = self._grad[gi]
        return t * t * (gx * x + gy * y)

    def noise2d(self, xin: float, yin: float) -> float:
        """Single-octave noise, roughly in [-1, 1]."""
        s = (xin + yin) * F2
        i = math.floor(xin + s)
        j = math.floor(yin + s)
        t = (i + j) * G2
        x0 = xin - (i - t)
        y0 = yin - (j - t)

        if x0 > y0:
            i1, j1 = 1, 0
        else:
            i1, j1 = 0, 1

        x1 = x0 - i1 + G2
        y1 = y0 - j1 + G2
        x2 = x0 - 1.0 + 2.0 * G2
        y2 = y0 - 1.0 + 2.0 * G2

        ii = i & 255
        jj = j & 255
        perm = self._perm
        gi0 = self._perm_mod12[(ii + perm[jj]) & 511]
        gi1 = self._perm_mod12[(ii + i1 + perm[(jj + j1) & 255]) & 511]
        gi2 = self._perm_mod12[(ii + 1 + perm[(jj + 1) & 255]) & 511]

        n0 = self._corner(gi0, x0, y0)
        n1 = self._corner(gi1, x1, y1)
        n2 = self._corner(gi2, x2, y2)
        return 70.0 * (n0 + n1 + n2)

    def fractal(
        self,
        x: float,
        y: float,
        octaves: int = 4,
        persistence: float = 0.5,
        lacunarity: float = 2.0,
    ) -> float:
        """
        Fractal (octave) noise, normalized by total amplitude.

        Args:
            x: Sample x
            y: Sample y
            octaves: Number of noise layers
            persistence: Amplitude multiplier per octave
            lacunarity: Frequency multiplier per octave

        Returns:
            Value roughly in [-1, 1]
        """
        if octaves < 1:
            raise ValueError("octaves must be at least 1")

        total = 0.0
        frequency = 1.0
        amplitude = 1.0
        max_value = 0.0

        for _ in range(octaves):
            total += self.noise2d(x * frequency, y * frequency) * amplitude
            max_value += amplitude
            amplitude *= persistence
            frequency *= lacunarity

        return total / max_value

