"""
Alea pseudo random number generator.

Based on Johannes Baagøe's Alea algorithm. It is small, fast and gives the
same sequence for the same seed on every platform, which keeps terrain
generation reproducible without touching Python's or NumPy's global state.

Any object exposing ``random() -> float in [0, 1)`` can be used wherever a
random source is expected (``numpy.random.Generator`` qualifies).
"""

from typing import Any, Optional


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


class AleaPRNG:
    """Seeded Alea generator producing uniform floats in ``[0, 1)``."""

    def __init__(self, seed):
        """Initialize with seed string, number, or iterable of either."""
        # Draw counter, useful to check one draw per written cell
        self.call_count = 0

        if hasattr(seed, "__iter__") and not isinstance(seed, str):
            args = list(seed)
        else:
            args = [seed]

        mash_n = 0xEFC8249D

        def mash(data):
            nonlocal mash_n
            for char in str(data):
                mash_n = mash_n + ord(char)
                h = 0.02519603282416938 * mash_n
                mash_n = _uint32(h)
                h -= mash_n
                h *= mash_n
                mash_n = _uint32(h)
                h -= mash_n
                mash_n += h * 0x100000000  # 2^32
            return _uint32(mash_n) * 2.3283064365386963e-10  # 2^-32

        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        for arg in args:
            self.s0 -= mash(arg)
            if self.s0 < 0:
                self.s0 += 1
            self.s1 -= mash(arg)
            if self.s1 < 0:
                self.s1 += 1
            self.s2 -= mash(arg)
            if self.s2 < 0:
                self.s2 += 1

    def random(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * 2.3283064365386963e-10  # 2^-32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def uniform(self, low: float, high: float) -> float:
        """Uniform float in ``[low, high)``."""
        return low + (high - low) * self.random()


def make_random_source(seed: Optional[Any] = None, rng: Optional[Any] = None):
    """
    Resolve the random source for a generation run.

    An explicit ``rng`` wins; otherwise a fresh ``AleaPRNG`` is seeded with
    ``seed`` (or ``"default"`` when no seed is given).
    """
    if rng is not None:
        if not callable(getattr(rng, "random", None)):
            raise ValueError("Random source must provide a random() method")
        return rng
    return AleaPRNG("default" if seed is None else seed)


def displacement(rng, magnitude: float) -> float:
    """
    Uniform offset in ``[-magnitude, magnitude]`` drawn from ``rng``.

    Sources with ``uniform(low, high)`` (``AleaPRNG``, numpy generators) are
    asked for the interval directly; bare ``random()`` sources are scaled.
    """
    if magnitude == 0:
        return 0.0
    if callable(getattr(rng, "uniform", None)):
        return rng.uniform(-magnitude, magnitude)
    return (rng.random() * 2.0 - 1.0) * magnitude
