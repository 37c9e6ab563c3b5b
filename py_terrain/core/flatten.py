"""
Initial surface for a generation run.
"""

import numpy as np
from enum import Enum

from .grid import HeightGrid


class FlattenMode(str, Enum):
    """Starting surface before mountains and detail are added."""

    CONSTANT = "constant"
    EDGE_FALLOFF = "edge_falloff"


def edge_falloff(grid: HeightGrid, scale: float = 0.1) -> np.ndarray:
    """
    Low rim rising towards the interior.

    ``d`` is the distance in cells to the nearest border plus one, and the
    value is ``(1 - 1 / (d/2 + 1)^2) * scale``: about ``0.556 * scale`` on the
    border, approaching ``scale`` inside.
    """
    xs = np.arange(grid.width + 1)
    ys = np.arange(grid.height + 1)
    from_x = np.minimum(xs, grid.width - xs)
    from_y = np.minimum(ys, grid.height - ys)
    dist = np.minimum.outer(from_x, from_y) + 1
    return (1.0 - 1.0 / ((dist / 2.0 + 1.0) ** 2)) * scale


def flatten(
    grid: HeightGrid,
    mode: FlattenMode = FlattenMode.CONSTANT,
    value: float = 0.0,
    falloff_scale: float = 0.1,
) -> None:
    """Reset every cell of ``grid`` in place."""
    mode = FlattenMode(mode)
    if mode == FlattenMode.CONSTANT:
        grid.fill(value)
    else:
        grid.heights[:, :] = edge_falloff(grid, falloff_scale)
