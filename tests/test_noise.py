"""Tests for seeded simplex noise."""

import pytest

from py_isle.core.noise import SimplexNoise

POINTS = [(x * 0.37, y * 0.53) for x in range(-5, 6) for y in range(-5, 6)]


class TestSimplexNoise:
    def test_deterministic(self):
        a = SimplexNoise("abc123")
        b = SimplexNoise("abc123")
        assert [a.noise2d(x, y) for x, y in POINTS] == [b.noise2d(x, y) for x, y in POINTS]

    def test_seeds_differ(self):
        a = SimplexNoise(1)
        b = SimplexNoise(501)
        assert [a.noise2d(x, y) for x, y in POINTS] != [b.noise2d(x, y) for x, y in POINTS]

    def test_permutation_table(self):
        noise = SimplexNoise(42)
        assert len(noise.perm) == 512
        assert sorted(noise.perm[:256].tolist()) == list(range(256))

    def test_range(self):
        noise = SimplexNoise(7)
        for x, y in POINTS:
            assert -1.0 <= noise.noise2d(x, y) <= 1.0
            assert -1.0 <= noise.fractal(x, y) <= 1.0

    def test_zero_at_lattice_origin(self):
        assert SimplexNoise(3).noise2d(0.0, 0.0) == pytest.approx(0.0)

    def test_fractal_requires_octaves(self):
        with pytest.raises(ValueError):
            SimplexNoise(1).fractal(0.5, 0.5, octaves=0)

    def test_single_octave_fractal_matches_noise(self):
        noise = SimplexNoise(11)
        assert noise.fractal(0.3, 0.7, octaves=1) == pytest.approx(noise.noise2d(0.3, 0.7))
