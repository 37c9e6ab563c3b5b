"""
Height grid storage.

A ``HeightGrid`` owns a ``(W+1) x (H+1)`` float32 array indexed ``[x, y]``
where W and H are powers of two. Every consumer receives the grid
explicitly; nothing about the resolution lives in module state.
"""

import numpy as np
from typing import List, Optional, Tuple

from .errors import InvalidResolutionError, OutOfBoundsError


def is_power_of_two(value: int) -> bool:
    """True for 2, 4, 8, ... (``2^k`` with ``k >= 1``)."""
    return isinstance(value, (int, np.integer)) and value >= 2 and (value & (value - 1)) == 0


def validate_resolution(resolution: int) -> int:
    """
    Check that ``resolution`` is ``2^k`` for some ``k >= 1``.

    Raises:
        InvalidResolutionError: if it is not
    """
    if isinstance(resolution, bool) or not is_power_of_two(resolution):
        raise InvalidResolutionError(
            f"Resolution must be a power of two >= 2, got {resolution!r}"
        )
    return int(resolution)


def next_power_of_two(value: int) -> int:
    """Smallest power of two >= ``value`` (at least 2)."""
    result = 2
    while result < value:
        result *= 2
    return result


class HeightGrid:
    """
    Fixed-size elevation grid with bounds-checked access.

    ``width`` and ``height`` are W and H; valid indices are
    ``0 <= x <= W`` and ``0 <= y <= H``.
    """

    def __init__(
        self,
        resolution: int,
        height_resolution: Optional[int] = None,
        fill: float = 0.0,
    ):
        """
        Allocate a grid.

        Args:
            resolution: W, a power of two
            height_resolution: H, defaults to W (square grid)
            fill: initial value for every cell
        """
        # Validate before allocating anything
        self._width = validate_resolution(resolution)
        self._height = validate_resolution(
            resolution if height_resolution is None else height_resolution
        )
        self.heights = np.full(
            (self._width + 1, self._height + 1), fill, dtype=np.float32
        )

    @classmethod
    def from_array(cls, values: np.ndarray) -> "HeightGrid":
        """Build a grid from an existing ``(W+1, H+1)`` array (copied)."""
        values = np.asarray(values)
        if values.ndim != 2:
            raise InvalidResolutionError(
                f"Expected a 2D array, got shape {values.shape}"
            )
        grid = cls(values.shape[0] - 1, values.shape[1] - 1)
        grid.heights[:, :] = values
        return grid

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def shape(self) -> Tuple[int, int]:
        return self.heights.shape

    @property
    def is_square(self) -> bool:
        return self._width == self._height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x <= self._width and 0 <= y <= self._height

    def _check(self, x: int, y: int) -> None:
        if not self.in_bounds(x, y):
            raise OutOfBoundsError(x, y, self._width, self._height)

    def get(self, x: int, y: int) -> float:
        self._check(x, y)
        return float(self.heights[x, y])

    def set(self, x: int, y: int, value: float) -> None:
        self._check(x, y)
        self.heights[x, y] = value

    def fill(self, value: float) -> None:
        self.heights.fill(value)

    def axis_neighbors(self, x: int, y: int, distance: int) -> List[float]:
        """
        Values of the in-bounds left/right/up/down cells at ``distance``.

        Edge cells return 2 or 3 values; out-of-bounds neighbors are
        omitted rather than treated as zero.
        """
        self._check(x, y)
        values = []
        for nx, ny in (
            (x - distance, y),
            (x + distance, y),
            (x, y - distance),
            (x, y + distance),
        ):
            if self.in_bounds(nx, ny):
                values.append(float(self.heights[nx, ny]))
        return values

    def diagonal_neighbors(self, x: int, y: int, distance: int) -> List[float]:
        """Values of the four diagonal cells at ``distance`` (all must exist)."""
        return [
            self.get(x - distance, y - distance),
            self.get(x + distance, y - distance),
            self.get(x - distance, y + distance),
            self.get(x + distance, y + distance),
        ]

    def corners(self) -> Tuple[float, float, float, float]:
        w, h = self._width, self._height
        return (
            float(self.heights[0, 0]),
            float(self.heights[w, 0]),
            float(self.heights[0, h]),
            float(self.heights[w, h]),
        )

    def value_range(self) -> Tuple[float, float]:
        """Actual ``(min, max)`` over all cells."""
        return float(self.heights.min()), float(self.heights.max())

    def stats(self) -> dict:
        """Summary used in stage log events."""
        return {
            "min": float(self.heights.min()),
            "max": float(self.heights.max()),
            "mean": float(self.heights.mean()),
        }

    def snapshot(self) -> np.ndarray:
        """Read-only copy of the current heights."""
        snap = self.heights.copy()
        snap.flags.writeable = False
        return snap

    def copy(self) -> "HeightGrid":
        return HeightGrid.from_array(self.heights)
