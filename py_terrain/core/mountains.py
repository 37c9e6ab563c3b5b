"""
Radial mountain shaping.

Stamps circular peaks into a height grid. Each peak blends a parabolic and a
conical falloff from its centre, and by default only ever raises terrain
(``max`` blending), so several peaks accumulate in any order.
"""

import numpy as np
import structlog
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional

from .diamond_square import DiamondSquare, DiamondSquareOptions
from .grid import HeightGrid, next_power_of_two

logger = structlog.get_logger()


class MountainBlend(str, Enum):
    """How a computed mountain height combines with existing terrain."""

    MAX = "max"
    OVERWRITE = "overwrite"


@dataclass
class MountainSpec:
    """A single circular peak in grid coordinates."""

    px: int
    py: int
    radius: int
    min_height: float = 0.1
    max_height: float = 1.0
    blend: MountainBlend = MountainBlend.MAX

    def __post_init__(self):
        if self.radius < 1:
            raise ValueError(f"Mountain radius must be >= 1, got {self.radius}")
        if self.max_height < self.min_height:
            raise ValueError(
                f"max_height ({self.max_height}) below min_height ({self.min_height})"
            )
        self.blend = MountainBlend(self.blend)


def falloff(distance: np.ndarray, radius: float) -> np.ndarray:
    """Mean of the parabolic ``1 - (d/r)^2`` and conical ``1 - d/r`` curves."""
    ratio = distance / float(radius)
    return ((1.0 - ratio**2) + (1.0 - ratio)) / 2.0


def _blend_into(region: np.ndarray, values: np.ndarray, mask: np.ndarray, blend: MountainBlend) -> None:
    if blend == MountainBlend.MAX:
        region[mask] = np.maximum(values[mask], region[mask])
    else:
        region[mask] = values[mask]


class RadialMountainShaper:
    """Applies ``MountainSpec`` peaks to a grid."""

    def apply(self, grid: HeightGrid, spec: MountainSpec) -> int:
        """
        Stamp one peak into ``grid`` in place.

        Only cells inside the grid and within ``radius`` of the peak are
        touched; the bounding box is clipped to the grid.

        Returns:
            Number of cells inside the circular base
        """
        r = spec.radius
        x0, x1 = max(spec.px - r, 0), min(spec.px + r, grid.width)
        y0, y1 = max(spec.py - r, 0), min(spec.py + r, grid.height)
        if x0 > x1 or y0 > y1:
            return 0

        dx = np.arange(x0, x1 + 1) - spec.px
        dy = np.arange(y0, y1 + 1) - spec.py
        DX, DY = np.meshgrid(dx, dy, indexing="ij")
        distance = np.sqrt(DX**2 + DY**2)

        # Skip the box corners to keep the base circular
        inside = distance <= r
        heights = spec.min_height + falloff(distance, r) * (spec.max_height - spec.min_height)

        region = grid.heights[x0 : x1 + 1, y0 : y1 + 1]
        _blend_into(region, heights, inside, spec.blend)
        return int(inside.sum())

    def apply_all(self, grid: HeightGrid, specs: Iterable[MountainSpec]) -> int:
        total = 0
        for spec in specs:
            cells = self.apply(grid, spec)
            logger.info(
                "Mountain applied",
                px=spec.px,
                py=spec.py,
                radius=spec.radius,
                blend=spec.blend.value,
                cells=cells,
            )
            total += cells
        return total


def default_mountain_layout(
    grid: HeightGrid,
    min_height: float = 0.1,
    max_height: float = 1.0,
    blend: MountainBlend = MountainBlend.MAX,
) -> List[MountainSpec]:
    """
    Three-peak chain placed two thirds of the way across the grid.

    Radius is an eighth of the shorter side; peaks sit at ``(xp, yp)``,
    ``(xp - r, yp)`` and ``(xp - 2r, yp - r)``.
    """
    size_x, size_y = grid.width + 1, grid.height + 1
    xp = (size_x // 3) * 2
    yp = (size_y // 3) * 2
    radius = max(min(size_x, size_y) // 8, 1)
    return [
        MountainSpec(xp, yp, radius, min_height, max_height, blend),
        MountainSpec(xp - radius, yp, radius, min_height, max_height, blend),
        MountainSpec(xp - 2 * radius, yp - radius, radius, min_height, max_height, blend),
    ]


def fractal_mountain_patch(
    radius: int,
    min_height: float = 0.0,
    max_height: float = 1.0,
    displacement: float = 0.2,
    roughness: float = 2.0,
    rng: Any = None,
    seed: Optional[Any] = None,
) -> np.ndarray:
    """
    Grow a standalone diamond-square mountain and crop it to ``2r+1`` cells.

    The working grid is the next power of two above ``2r`` with its corners
    and edge midpoints at ``min_height`` and the centre forced to
    ``max_height``.
    """
    if radius < 1:
        raise ValueError(f"Mountain radius must be >= 1, got {radius}")
    resolution = next_power_of_two(radius * 2)
    patch_grid = HeightGrid(resolution, fill=min_height)
    engine = DiamondSquare(
        DiamondSquareOptions(
            displacement=displacement,
            roughness=roughness,
            min_height=min_height,
            max_height=max_height,
            peak_height=max_height,
        )
    )
    engine.run(patch_grid, rng=rng, seed=seed)

    offset = (resolution - radius * 2) // 2
    size = radius * 2 + 1
    return patch_grid.heights[offset : offset + size, offset : offset + size].copy()


def stamp_patch(
    grid: HeightGrid,
    patch: np.ndarray,
    offset_x: int,
    offset_y: int,
    blend: MountainBlend = MountainBlend.OVERWRITE,
) -> None:
    """Write ``patch`` into ``grid`` at an offset, clipped to the grid."""
    blend = MountainBlend(blend)
    x0, y0 = max(offset_x, 0), max(offset_y, 0)
    x1 = min(offset_x + patch.shape[0], grid.width + 1)
    y1 = min(offset_y + patch.shape[1], grid.height + 1)
    if x0 >= x1 or y0 >= y1:
        return
    source = patch[x0 - offset_x : x1 - offset_x, y0 - offset_y : y1 - offset_y]
    region = grid.heights[x0:x1, y0:y1]
    _blend_into(region, source, np.ones(source.shape, dtype=bool), blend)
