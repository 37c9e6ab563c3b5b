"""
Diamond-square midpoint displacement.

Refines a square ``(2^k)+1`` grid from the coarse lattice down to single
cells. Each pass first fills the square centres from their four diagonal
corners, then the diamond points from their in-bounds axis neighbors, each
with a random offset whose magnitude decays by ``2^(-roughness)`` per pass.
"""

import numpy as np
import structlog
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Tuple

from .alea_prng import displacement, make_random_source
from .errors import InvalidResolutionError
from .grid import HeightGrid

logger = structlog.get_logger()


@dataclass
class DiamondSquareOptions:
    """Options for one diamond-square run."""

    displacement: float = 0.8  # Initial displacement magnitude
    roughness: float = 1.0  # Decay exponent, higher = smoother
    min_height: float = 0.0  # Floor, also the seeded edge midpoints
    max_height: float = 1.0  # Ceiling
    peak_height: float = 1.0  # Seeded centre value
    seed_peak: bool = True  # Force centre peak and edge midpoints first
    clamp_each_step: bool = True  # False clamps once after the last pass
    existing_weight: float = 0.0  # Share of the current value kept per write

    def __post_init__(self):
        if self.max_height < self.min_height:
            raise ValueError(
                f"max_height ({self.max_height}) below min_height ({self.min_height})"
            )
        if not 0.0 <= self.existing_weight < 1.0:
            raise ValueError("existing_weight must be in [0, 1)")
        if self.displacement < 0:
            raise ValueError("displacement must be non-negative")


@dataclass
class DisplacementState:
    """Transient state of a run: current half-step and displacement."""

    half_step: int
    displacement: float
    roughness: float

    def decay(self) -> None:
        self.displacement *= 2.0 ** (-self.roughness)


def first_half_step(resolution: int, seed_peak: bool) -> int:
    """
    Half-step of the first refinement pass.

    Seeding fills the ``resolution/2`` level, so refinement starts one level
    finer; there is always at least one pass at half-step 1.
    """
    if seed_peak:
        return max(resolution // 4, 1)
    return resolution // 2


def square_points(size: int, hs: int) -> Iterator[Tuple[int, int]]:
    """Square centres of a pass: spacing ``2hs``, offset ``hs``."""
    for x in range(hs, size, hs * 2):
        for y in range(hs, size, hs * 2):
            yield x, y


def diamond_points(size: int, hs: int) -> Iterator[Tuple[int, int]]:
    """
    Diamond points of a pass, each once.

    These are the cells at axis distance ``hs`` from a square centre, i.e.
    lattice cells whose coordinates in units of ``hs`` have an odd sum.
    """
    for x in range(0, size, hs):
        start = hs if (x // hs) % 2 == 0 else 0
        for y in range(start, size, hs * 2):
            yield x, y


class DiamondSquare:
    """
    Diamond-square engine.

    The four grid corners are never written; the caller sets them (usually
    through flattening) before running.
    """

    def __init__(self, options: Optional[DiamondSquareOptions] = None):
        self.options = options or DiamondSquareOptions()

    def _lim(self, value: float) -> float:
        """Clamp to the configured height range."""
        return min(max(value, self.options.min_height), self.options.max_height)

    def _write(self, grid: HeightGrid, x: int, y: int, average: float, dis: float, rng) -> None:
        value = average + displacement(rng, dis)
        weight = self.options.existing_weight
        if weight:
            value = weight * float(grid.heights[x, y]) + (1.0 - weight) * value
        if self.options.clamp_each_step:
            value = self._lim(value)
        grid.heights[x, y] = value

    def _check_grid(self, grid: HeightGrid) -> int:
        if not grid.is_square:
            raise InvalidResolutionError(
                f"Diamond-square needs a square grid, got {grid.width}x{grid.height}"
            )
        return grid.width

    def seed(self, grid: HeightGrid) -> None:
        """Force the centre peak and the four outer-edge midpoints."""
        resolution = self._check_grid(grid)
        hs = resolution // 2
        grid.heights[hs, hs] = self.options.peak_height
        grid.heights[hs, 0] = self.options.min_height
        grid.heights[hs, resolution] = self.options.min_height
        grid.heights[0, hs] = self.options.min_height
        grid.heights[resolution, hs] = self.options.min_height

    def square_pass(self, grid: HeightGrid, state: DisplacementState, rng) -> int:
        """Fill every square centre of the current half-step."""
        hs = state.half_step
        count = 0
        for x, y in square_points(grid.width + 1, hs):
            average = sum(grid.diagonal_neighbors(x, y, hs)) / 4.0
            self._write(grid, x, y, average, state.displacement, rng)
            count += 1
        return count

    def diamond_pass(self, grid: HeightGrid, state: DisplacementState, rng) -> int:
        """Fill every diamond point from its in-bounds axis neighbors."""
        hs = state.half_step
        count = 0
        for x, y in diamond_points(grid.width + 1, hs):
            neighbors = grid.axis_neighbors(x, y, hs)
            self._write(grid, x, y, sum(neighbors) / len(neighbors), state.displacement, rng)
            count += 1
        return count

    def soften_peak(self, grid: HeightGrid) -> None:
        """Replace the centre with the mean of its diagonal neighbors."""
        centre = grid.width // 2
        average = sum(grid.diagonal_neighbors(centre, centre, 1)) / 4.0
        self._write(grid, centre, centre, average, 0.0, None)

    def run(
        self,
        grid: HeightGrid,
        rng: Any = None,
        seed: Optional[Any] = None,
    ) -> List[int]:
        """
        Run the full pass sequence over ``grid`` in place.

        Args:
            grid: square grid with corners already set
            rng: random source with ``random()`` in [0, 1)
            seed: seed for a fresh Alea generator when ``rng`` is not given

        Returns:
            Half-steps processed, coarsest first
        """
        resolution = self._check_grid(grid)
        rng = make_random_source(seed, rng)
        options = self.options

        if options.seed_peak:
            self.seed(grid)

        state = DisplacementState(
            half_step=first_half_step(resolution, options.seed_peak),
            displacement=options.displacement,
            roughness=options.roughness,
        )

        passes = []
        while state.half_step >= 1:
            # All square writes land before any diamond point reads them
            squares = self.square_pass(grid, state, rng)
            diamonds = self.diamond_pass(grid, state, rng)
            logger.debug(
                "Diamond-square pass",
                half_step=state.half_step,
                displacement=state.displacement,
                squares=squares,
                diamonds=diamonds,
            )
            passes.append(state.half_step)
            state.decay()
            state.half_step //= 2

        if options.seed_peak:
            self.soften_peak(grid)

        if not options.clamp_each_step:
            corners = grid.heights[::resolution, ::resolution].copy()
            np.clip(
                grid.heights, options.min_height, options.max_height, out=grid.heights
            )
            grid.heights[::resolution, ::resolution] = corners

        logger.info("Diamond-square complete", resolution=resolution, passes=len(passes))
        return passes
