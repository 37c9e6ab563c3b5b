"""
Error types raised by the terrain synthesis core.
"""


class TerrainError(Exception):
    """Base class for terrain synthesis errors."""


class OutOfBoundsError(TerrainError, IndexError):
    """Grid index outside ``[0, W] x [0, H]``."""

    def __init__(self, x: int, y: int, width: int, height: int):
        self.x = x
        self.y = y
        super().__init__(
            f"Cell ({x}, {y}) outside grid bounds [0, {width}] x [0, {height}]"
        )


class InvalidResolutionError(TerrainError, ValueError):
    """Requested grid size is not ``2^k + 1``."""


class DegenerateRangeError(TerrainError, ValueError):
    """Normalizer was given a perfectly flat grid."""

    def __init__(self, value: float):
        self.value = value
        super().__init__(f"Cannot normalize flat grid (all cells = {value})")


class DegenerateWeightsError(TerrainError, ValueError):
    """Splat weight vector summed to zero or less."""
