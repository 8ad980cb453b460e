"""
Python implementation of the java.util.Random linear congruential generator.

Dithered imports must paint exactly the same cells every time they run, and
must match masks dithered by Java-based map editors, so the dither
decorators draw from this generator rather than Python's random.
"""

from typing import Optional

_MULTIPLIER = 0x5DEECE66D
_ADDEND = 0xB
_MASK = (1 << 48) - 1


def _int32(n):
    """Convert to signed 32-bit integer."""
    n &= 0xFFFFFFFF
    return n - 0x100000000 if n & 0x80000000 else n


class JavaRandom:
    """
    48-bit LCG matching java.util.Random.

    Only the integer draws used by the mapping engine are provided.
    """

    def __init__(self, seed: int = 0):
        """Initialize with a 64-bit seed, scrambled the way Java does."""
        self.call_count = 0
        self._seed = (seed ^ _MULTIPLIER) & _MASK

    def _next(self, bits: int) -> int:
        self._seed = (self._seed * _MULTIPLIER + _ADDEND) & _MASK
        return _int32(self._seed >> (48 - bits))

    def next_int(self, bound: Optional[int] = None) -> int:
        """
        Generate the next integer.

        Without a bound this returns a signed 32-bit value; with a bound it
        returns a uniform value in [0, bound).

        Raises:
            ValueError: If bound is not positive
        """
        self.call_count += 1
        if bound is None:
            return self._next(32)
        if bound <= 0:
            raise ValueError(f"bound must be positive, got {bound}")

        r = self._next(31)
        m = bound - 1
        if bound & m == 0:
            # Power of two: take the high bits
            return (bound * r) >> 31

        # Reject draws from the incomplete last bucket (int overflow in Java)
        u = r
        r = u % bound
        while u - r + m >= 0x80000000:
            u = self._next(31)
            r = u % bound
        return r
