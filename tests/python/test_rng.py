from __future__ import annotations

from pytest import approx

from birbs.sim.core.rng import DeterministicRng, derive_stream_seed


def test_reset_rewinds_to_the_first_draw():
    rng = DeterministicRng(42)
    first = [rng.next_range(0.0, 10.0) for _ in range(5)]

    rng.reset()

    assert rng.seed == 42
    assert [rng.next_range(0.0, 10.0) for _ in range(5)] == first


def test_unit_circle_draws_have_unit_length():
    rng = DeterministicRng(7)
    for _ in range(50):
        assert rng.next_unit_circle().length() == approx(1.0)


def test_sample_choice_handles_empty_palettes():
    rng = DeterministicRng(3)

    assert rng.sample_choice([]) is None
    assert rng.sample_choice(["#fff"]) == "#fff"


def test_derived_streams_differ_from_the_base_seed():
    salted = derive_stream_seed(42, 0xA51E0EA7E9CA2311)

    assert salted != 42
    assert 0 <= salted < 2**64
    assert derive_stream_seed(42, 0xA51E0EA7E9CA2311) == salted
