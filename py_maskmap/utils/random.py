"""
Random number generation utilities.

Dither decorators must be reproducible: re-running an import over the same
mask in the same order has to paint the same cells. Each decorator therefore
gets its own generator seeded with DITHER_SEED. Python's random and NumPy's
random should not be used for dithering.
"""

from ..core.java_random import JavaRandom

# Fixed seed for every dither decorator
DITHER_SEED = 0


def create_dither_prng(seed: int = DITHER_SEED) -> JavaRandom:
    """
    Create a fresh generator for one dither decorator.

    Args:
        seed: Seed to use, DITHER_SEED unless a test needs another stream

    Returns:
        JavaRandom instance owned by the caller
    """
    return JavaRandom(seed)
