from __future__ import annotations

from collections.abc import Callable
from threading import Lock
from typing import TypeVar

from sgg.rand import SggPcg, rand_double, rand_gaussian, rand_int

__all__ = [
    "RandomHooks",
    "ReentrantDrawError",
    "lua_int32",
]

T = TypeVar("T")


class ReentrantDrawError(RuntimeError):
    pass


def lua_int32(value: object, *, default: int = 0) -> int:
    """Coerce a Lua number (or nil) to a signed 32-bit int, truncating floats."""
    if value is None:
        return default
    if isinstance(value, bool):
        raise TypeError(f"expected a number, got boolean {value!r}")
    if isinstance(value, float):
        value = int(value)
    if not isinstance(value, int):
        raise TypeError(f"expected a number, got {type(value).__name__}")
    value &= 0xFFFFFFFF
    return value - 0x1_0000_0000 if value & 0x8000_0000 else value


class RandomHooks:
    """Single owner of the shared generator, exposed to scripts as callables.

    Starts seeded with 0, like the engine at boot. `randomseed` replaces the
    generator outright; the previous sequence cannot be resumed.
    """

    __slots__ = ("_rng", "_lock")

    def __init__(self, seed: int = 0) -> None:
        self._rng = SggPcg(seed)
        self._lock = Lock()

    @property
    def rng(self) -> SggPcg:
        return self._rng

    def _exclusive(self, fn: Callable[[SggPcg], T]) -> T:
        if not self._lock.acquire(blocking=False):
            raise ReentrantDrawError("random hook re-entered while another draw is in progress")
        try:
            return fn(self._rng)
        finally:
            self._lock.release()

    def randomseed(self, seed: object = None, _id: object = None) -> None:
        value = lua_int32(seed)

        def _reseed(_rng: SggPcg) -> None:
            self._rng = SggPcg(value)

        self._exclusive(_reseed)

    def randomint(self, min_value: object, max_value: object, _id: object = None) -> int:
        lo = lua_int32(min_value)
        hi = lua_int32(max_value)
        return self._exclusive(lambda rng: rand_int(rng, lo, hi))

    def random(self, *_args: object) -> float:
        return self._exclusive(rand_double)

    def randomgaussian(self, *_args: object) -> float:
        return self._exclusive(rand_gaussian)

    def as_globals(self) -> dict[str, Callable[..., object]]:
        return {
            "randomseed": self.randomseed,
            "randomint": self.randomint,
            "random": self.random,
            "randomgaussian": self.randomgaussian,
        }
