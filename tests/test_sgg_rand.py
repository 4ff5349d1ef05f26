from __future__ import annotations

import math

import pytest

from sgg.rand import SggPcg, bounded, rand_double, rand_gaussian, rand_int


class ScriptedWords:
    def __init__(self, words: list[int]) -> None:
        self.words = list(words)
        self.calls = 0

    def next_u32(self) -> int:
        self.calls += 1
        return self.words.pop(0)


def test_seed_zero_sequence_is_stable() -> None:
    rng = SggPcg(0)
    assert [rng.next_u32() for _ in range(5)] == [1171109249, 1934028935, 2909580550, 3819163856, 1743198003]


def test_seed_42_sequence_and_state() -> None:
    rng = SggPcg(42)
    assert rng.state == 6779305439596099596
    assert rng.next_u32() == 2432193511
    assert rng.state == 7790706192040027663
    assert [rng.next_u32() for _ in range(4)] == [112991805, 52371003, 252600158, 2617875736]


def test_negative_seed_is_sign_extended() -> None:
    rng = SggPcg(-1)
    assert [rng.next_u32() for _ in range(3)] == [2366702860, 527929896, 539734970]


def test_reseed_ignores_history() -> None:
    a = SggPcg(1234)
    for _ in range(100):
        a.next_u32()
    a = SggPcg(99)
    b = SggPcg(99)
    assert [a.next_u32() for _ in range(20)] == [b.next_u32() for _ in range(20)]


def test_rand_int_seed_42_dice() -> None:
    rng = SggPcg(42)
    assert [rand_int(rng, 1, 6) for _ in range(3)] == [2, 4, 4]
    assert [rand_int(rng, 1, 6) for _ in range(7)] == [3, 5, 5, 3, 5, 2, 4]


def test_rand_int_negative_range() -> None:
    rng = SggPcg(7)
    assert [rand_int(rng, -5, 5) for _ in range(5)] == [0, 3, 1, 1, -3]


@pytest.mark.parametrize(("lo", "hi"), [(3, 3), (5, 1), (0, -1), (-2**31, -2**31)])
def test_rand_int_empty_range_consumes_nothing(lo: int, hi: int) -> None:
    rng = SggPcg(42)
    before = rng.state
    assert rand_int(rng, lo, hi) == lo
    assert rng.state == before
    assert rng.next_u32() == 2432193511


def test_rand_int_full_range_uses_one_word() -> None:
    words = ScriptedWords([0x8000_0005])
    assert rand_int(words, -2**31, 2**31 - 1) == 5
    assert words.calls == 1


def test_bounded_rejects_words_below_threshold() -> None:
    # bound 7: (2**32 - 7) % 7 == 4, so words 0..3 are redrawn.
    words = ScriptedWords([0, 3, 4, 11])
    assert bounded(words, 7) == 4 % 7
    assert words.calls == 3
    # bound 3: threshold 1.
    words = ScriptedWords([0, 5])
    assert bounded(words, 3) == 2
    assert words.calls == 2


@pytest.mark.parametrize("bound", [1, 2, 3, 5, 6, 7, 10, 100, 1000, 12345])
def test_bounded_accepted_range_is_a_multiple_of_bound(bound: int) -> None:
    threshold = (2**32 - bound) % bound
    accepted = 2**32 - threshold
    assert accepted % bound == 0
    # Each residue is hit by exactly accepted // bound words.
    per_residue = [0] * bound
    for residue in range(bound):
        first = threshold + ((residue - threshold) % bound)
        per_residue[residue] = (2**32 - 1 - first) // bound + 1
    assert len(set(per_residue)) == 1


def test_bounded_small_bounds_reach_every_residue() -> None:
    for bound in (3, 7):
        threshold = (2**32 - bound) % bound
        words = ScriptedWords(list(range(threshold, threshold + bound * 4)))
        seen = [bounded(words, bound) for _ in range(bound * 4)]
        assert sorted(set(seen)) == list(range(bound))
        assert all(seen.count(r) == 4 for r in range(bound))


def test_rand_double_endpoints() -> None:
    assert rand_double(ScriptedWords([0])) == 0.0
    top = rand_double(ScriptedWords([0xFFFFFFFF]))
    assert top < 1.0
    assert top == 0xFFFFFFFF / 2**32


def test_rand_double_seed_42() -> None:
    rng = SggPcg(42)
    values = [rand_double(rng) for _ in range(3)]
    assert values == [math.ldexp(w, -32) for w in (2432193511, 112991805, 52371003)]
    assert values[0] == pytest.approx(0.56628918065689504, abs=0)


def test_rand_gaussian_is_constant_and_free() -> None:
    rng = SggPcg(5)
    before = rng.state
    assert rand_gaussian(rng) == 0.0
    assert rng.state == before
