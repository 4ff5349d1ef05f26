from __future__ import annotations

import math
from typing import Protocol

__all__ = [
    "PCG_INCREMENT",
    "PCG_MULTIPLIER",
    "SggPcg",
    "WordSource",
    "bounded",
    "rand_double",
    "rand_gaussian",
    "rand_int",
]

MASK32 = 0xFFFFFFFF
MASK64 = 0xFFFFFFFFFFFFFFFF

PCG_MULTIPLIER = 6364136223846793005
# Fixed stream selector baked into the engine.
PCG_INCREMENT = 11634580027462260723


class WordSource(Protocol):
    def next_u32(self) -> int: ...


def _to_i32(value: int) -> int:
    value &= MASK32
    return value - 0x1_0000_0000 if value & 0x8000_0000 else value


class SggPcg:
    """PCG32 (XSH-RR) generator matching the engine's `RandomSeed`/`RandomInt`.

    Seeding follows `pcg32_srandom_r` with the engine's fixed increment:
      state = 0; step(); state += seed; step()
    where the signed 32-bit seed is sign-extended to 64 bits.
    """

    __slots__ = ("_state",)

    def __init__(self, seed: int = 0) -> None:
        self._state = 0
        self._step()
        self._state = (self._state + int(seed)) & MASK64
        self._step()

    @property
    def state(self) -> int:
        return self._state

    def _step(self) -> None:
        self._state = (self._state * PCG_MULTIPLIER + PCG_INCREMENT) & MASK64

    def next_u32(self) -> int:
        old = self._state
        self._step()
        xorshifted = (((old >> 18) ^ old) >> 27) & MASK32
        rot = old >> 59
        return ((xorshifted >> rot) | (xorshifted << ((-rot) & 31))) & MASK32


def bounded(rng: WordSource, bound: int) -> int:
    """Unbiased draw in `[0, bound)` by rejecting words below the threshold."""
    bound &= MASK32
    if bound == 0:
        # Full 32-bit range: every word is already uniform.
        return rng.next_u32()
    threshold = (0x1_0000_0000 - bound) % bound
    while True:
        r = rng.next_u32()
        if r >= threshold:
            return r % bound


def rand_int(rng: WordSource, min_value: int, max_value: int) -> int:
    """Inclusive integer in `[min_value, max_value]`.

    An empty or single-value range returns `min_value` without touching the
    generator; scripts rely on that call-count parity.
    """
    min_value = _to_i32(min_value)
    max_value = _to_i32(max_value)
    if max_value <= min_value:
        return min_value
    bound = (max_value - min_value + 1) & MASK32
    return _to_i32(min_value + bounded(rng, bound))


def rand_double(rng: WordSource) -> float:
    return math.ldexp(float(rng.next_u32()), -32)


def rand_gaussian(rng: WordSource) -> float:
    # The engine samples gaussians from a separate, never reseeded stream.
    # It only skews enemy ratios within an encounter, so a constant keeps
    # wave counts and types aligned.
    del rng
    return 0.0
