"""Tests for the Mulberry32 PRNG and seed helpers."""

import pytest

from py_isle.core.mulberry_prng import MulberryPRNG, hash_seed_string
from py_isle.utils.random import create_prng, normalize_seed


class TestSeedHashing:
    def test_known_hashes(self):
        assert hash_seed_string("") == 0
        assert hash_seed_string("a") == 97
        assert hash_seed_string("ab") == 97 * 31 + 98

    def test_hash_is_non_negative(self):
        for seed in ["abc123", "island", "a much longer seed string than usual", "ñandú"]:
            assert hash_seed_string(seed) >= 0

    def test_normalize_seed(self):
        assert normalize_seed("a") == 97
        assert normalize_seed(42) == 42
        assert normalize_seed(-42) == 42
        with pytest.raises(TypeError):
            normalize_seed(True)


class TestMulberryPRNG:
    """Stream properties."""

    def test_same_seed_same_stream(self):
        a = MulberryPRNG(12345)
        b = MulberryPRNG(12345)
        assert [a.next() for _ in range(50)] == [b.next() for _ in range(50)]

    def test_string_seed_matches_hashed_seed(self):
        a = MulberryPRNG("abc123")
        b = MulberryPRNG(hash_seed_string("abc123"))
        assert [a.next() for _ in range(10)] == [b.next() for _ in range(10)]

    def test_different_seeds_differ(self):
        a = MulberryPRNG(1)
        b = MulberryPRNG(2)
        assert [a.next() for _ in range(10)] != [b.next() for _ in range(10)]

    def test_values_in_unit_interval(self):
        prng = MulberryPRNG(7)
        for _ in range(1000):
            value = prng.next()
            assert 0.0 <= value < 1.0

    def test_int_is_inclusive(self):
        prng = MulberryPRNG(99)
        seen = {prng.int(1, 3) for _ in range(500)}
        assert seen == {1, 2, 3}

    def test_range(self):
        prng = MulberryPRNG(3)
        for _ in range(200):
            assert 2.0 <= prng.range(2.0, 5.0) < 5.0

    def test_choice_empty_raises(self):
        with pytest.raises(IndexError):
            MulberryPRNG(1).choice([])

    def test_shuffle_is_permutation(self):
        items = list(range(20))
        shuffled = MulberryPRNG(5).shuffle(list(items))
        assert sorted(shuffled) == items

    def test_sample(self):
        picked = MulberryPRNG(5).sample(range(10), 4)
        assert len(picked) == 4
        assert len(set(picked)) == 4

    def test_reset_and_call_count(self):
        prng = MulberryPRNG(2024)
        first = [prng.next() for _ in range(5)]
        assert prng.call_count == 5
        prng.reset()
        assert prng.call_count == 0
        assert [prng.next() for _ in range(5)] == first

    def test_set_seed(self):
        prng = MulberryPRNG(1)
        prng.set_seed("abc123")
        assert prng.next() == MulberryPRNG("abc123").next()

    def test_create_prng_offset(self):
        base = create_prng("abc123")
        offset = create_prng("abc123", offset=500)
        assert offset.seed == base.seed + 500
