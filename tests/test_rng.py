"""
Tests for the seeded Park-Miller generator.
"""
from rng import MODULUS, SeededRandom


def test_first_draws_for_seed_one():
    rng = SeededRandom(1)
    assert rng.random() == 16806 / (MODULUS - 1)
    assert rng.random() == 282475248 / (MODULUS - 1)


def test_zero_seed_maps_to_top_of_range():
    assert SeededRandom(0).random() == SeededRandom(MODULUS - 1).random()
    assert SeededRandom(MODULUS).random() == SeededRandom(0).random()


def test_negative_seed_follows_truncating_remainder():
    # -5 % M keeps its sign, then shifts by M - 1
    assert SeededRandom(-5).random() == SeededRandom(MODULUS - 6).random()


def test_huge_seeds_reduce_with_integer_arithmetic():
    huge = 10 ** 400
    assert SeededRandom(huge).random() == SeededRandom(huge % MODULUS).random()
    assert SeededRandom(-huge).random() == SeededRandom(MODULUS - 1 - huge % MODULUS).random()


def test_values_stay_in_unit_interval():
    rng = SeededRandom(123456)
    for _ in range(1000):
        value = rng()
        assert 0.0 <= value < 1.0


def test_same_seed_same_sequence():
    a, b = SeededRandom(42), SeededRandom(42)
    assert [a() for _ in range(20)] == [b() for _ in range(20)]


def test_shuffle_is_a_permutation_and_leaves_input_alone():
    items = list(range(10))
    shuffled = SeededRandom(7).shuffle(items)
    assert sorted(shuffled) == items
    assert items == list(range(10))
    assert shuffled == SeededRandom(7).shuffle(items)


def test_shuffle_consumes_one_draw_per_position_but_the_first():
    rng = SeededRandom(99)
    rng.shuffle(["a", "b", "c", "d"])

    reference = SeededRandom(99)
    for _ in range(3):
        reference()
    assert rng() == reference()


def test_shuffle_of_empty_or_single_draws_nothing():
    rng = SeededRandom(5)
    assert rng.shuffle([]) == []
    assert rng.shuffle(["x"]) == ["x"]
    assert rng() == SeededRandom(5)()


def test_choice():
    rng = SeededRandom(3)
    assert rng.choice([]) is None
    assert rng.choice(["only"]) == "only"
