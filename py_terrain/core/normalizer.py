"""
Linear remapping of grid values into a target range.
"""

import numpy as np
from typing import Tuple

from .errors import DegenerateRangeError
from .grid import HeightGrid


def normalize(
    grid: HeightGrid, target_min: float = 0.0, target_max: float = 1.0
) -> Tuple[float, float]:
    """
    Remap every cell of ``grid`` from its actual range into the target range.

    Args:
        grid: grid to rescale in place
        target_min: value the current minimum maps to
        target_max: value the current maximum maps to

    Returns:
        The ``(min, max)`` observed before remapping

    Raises:
        DegenerateRangeError: if the grid is flat; it is left untouched
    """
    actual_min, actual_max = grid.value_range()
    if actual_max == actual_min:
        raise DegenerateRangeError(actual_min)

    values = grid.heights.astype(np.float64)
    scale = (target_max - target_min) / (actual_max - actual_min)
    grid.heights[:, :] = target_min + (values - actual_min) * scale
    return actual_min, actual_max
