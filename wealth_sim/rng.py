"""Deterministic random source (Mulberry32 + Box-Muller)."""

import math

_MASK32 = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    """32-bit integer multiply (low 32 bits of the product)."""
    return (a * b) & _MASK32


class Mulberry32:
    """Small 32-bit state generator.

    The same seed always yields the same sequence of uniforms, on any
    platform, so single paths can be re-simulated from (seed, regime) alone.
    Exposes ``random()`` like ``random.Random`` so call sites read the same.
    """

    __slots__ = ("_state",)

    def __init__(self, seed: int):
        self._state = seed & _MASK32

    def random(self) -> float:
        """Return the next uniform value in [0, 1)."""
        self._state = (self._state + 0x6D2B79F5) & _MASK32
        t = self._state
        r = _imul(t ^ (t >> 15), 1 | t)
        r ^= (r + _imul(r ^ (r >> 7), 61 | r)) & _MASK32
        return ((r ^ (r >> 14)) & _MASK32) / 4294967296


def standard_normal(rng: Mulberry32) -> float:
    """Draw one N(0, 1) value, consuming two uniforms (Box-Muller).

    A zero uniform is re-drawn so log() never sees 0.
    """
    u = 0.0
    while u == 0.0:
        u = rng.random()
    v = 0.0
    while v == 0.0:
        v = rng.random()
    return math.sqrt(-2 * math.log(u)) * math.cos(2 * math.pi * v)
