"""
Terrain generation pipeline.

Runs the full synthesis for one heightmap:

1. validate the resolution (before anything is allocated)
2. flatten the grid to its starting surface
3. stamp radial mountains
4. add diamond-square detail
5. normalize into the target range
6. derive the splat map from height and steepness

The grid is private to a run; callers only see read-only snapshots in the
returned ``TerrainResult``, and can push heights to a host object through
``apply_heights``.
"""

import dataclasses
import numpy as np
import structlog
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field

from ..config.config import settings
from .alea_prng import make_random_source
from .diamond_square import DiamondSquare, DiamondSquareOptions
from .errors import DegenerateRangeError, InvalidResolutionError
from .flatten import FlattenMode, flatten
from .grid import HeightGrid, validate_resolution
from .mountains import (
    MountainBlend,
    MountainSpec,
    RadialMountainShaper,
    default_mountain_layout,
)
from .normalizer import normalize
from .splat import SplatLayer, SplatPolicy, build_splat_map

logger = structlog.get_logger()


class HeightWriter(Protocol):
    """Host capability receiving one height per cell."""

    def write(self, x: int, y: int, height: float) -> None:
        ...


def _pipeline_detail_options() -> DiamondSquareOptions:
    # Detail is blended over the flattened surface and mountains instead of
    # replacing them, and no centre peak is forced
    return DiamondSquareOptions(
        displacement=0.8,
        roughness=1.0,
        seed_peak=False,
        existing_weight=0.8,
    )


class TerrainConfig(BaseModel):
    """Options for one terrain generation run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    resolution: int = Field(
        default_factory=lambda: settings.default_resolution,
        description="Grid resolution W; the grid has W+1 cells per side",
    )
    min_height: float = Field(default=0.0, description="Terrain floor")
    max_height: float = Field(default=1.0, description="Terrain ceiling")

    # Starting surface
    flatten_mode: FlattenMode = Field(
        default=FlattenMode.CONSTANT, description="Initial surface shape"
    )
    flatten_value: Optional[float] = Field(
        default=None, description="Constant fill, defaults to min_height"
    )
    falloff_scale: float = Field(
        default=0.1, description="Interior height of the edge falloff surface"
    )

    # Mountains
    mountains: List[MountainSpec] = Field(
        default_factory=list, description="Explicit peaks"
    )
    use_default_mountains: bool = Field(
        default=True, description="Add the three-peak default chain"
    )
    mountain_base_height: float = Field(
        default=0.1, description="Floor of the default chain"
    )
    mountain_peak_height: float = Field(
        default=1.0, description="Ceiling of the default chain"
    )
    mountain_blend: MountainBlend = Field(
        default=MountainBlend.MAX, description="Blend mode of the default chain"
    )

    # Fractal detail
    diamond_square: DiamondSquareOptions = Field(
        default_factory=_pipeline_detail_options,
        description="Diamond-square options; height range follows min/max_height",
    )
    apply_detail: bool = Field(default=True, description="Run diamond-square")

    # Normalization
    normalize: bool = Field(default=True, description="Rescale into the target range")
    target_min: float = Field(default=0.0, description="Normalized minimum")
    target_max: float = Field(default=1.0, description="Normalized maximum")

    # Splat map
    derive_splat: bool = Field(default=True, description="Compute the splat map")
    splat_policy: Union[str, SplatPolicy] = Field(
        default_factory=lambda: settings.default_splat_policy,
        description="Policy preset name or policy object",
    )
    terrain_size: float = Field(default=1000.0, description="World width of the terrain")
    terrain_height: float = Field(default=600.0, description="World height of a value of 1")
    alphamap_size: Optional[int] = Field(
        default=None, description="Splat map side length, defaults to grid size"
    )

    seed: Optional[Union[str, int]] = Field(
        default=None, description="Seed for the Alea generator, string or number"
    )


@dataclass
class TerrainResult:
    """Read-only output of a generation run."""

    heights: np.ndarray
    splat: Optional[np.ndarray]
    layer_names: Tuple[str, ...]
    raw_range: Tuple[float, float]
    passes: List[int]

    @property
    def resolution(self) -> int:
        return self.heights.shape[0] - 1

    def splat_at(self, x: int, y: int) -> SplatLayer:
        if self.splat is None:
            raise ValueError("Splat map was not derived for this run")
        return SplatLayer(
            names=self.layer_names,
            weights=tuple(float(w) for w in self.splat[x, y]),
        )


class TerrainGenerator:
    """Orchestrates one heightmap and splat map generation."""

    def __init__(self, config: Optional[TerrainConfig] = None, rng: Any = None):
        """
        Args:
            config: run options, defaults to ``TerrainConfig()``
            rng: random source with ``random()``; overrides ``config.seed``

        Raises:
            InvalidResolutionError: before any grid is allocated
        """
        self.config = config or TerrainConfig()
        self._check_resolution(self.config.resolution)
        if self.config.max_height < self.config.min_height:
            raise ValueError("max_height must not be below min_height")

        self.policy = self._resolve_policy(self.config.splat_policy)
        self._rng = rng
        self.result: Optional[TerrainResult] = None

    @staticmethod
    def _check_resolution(resolution: int) -> None:
        validate_resolution(resolution)
        if resolution > settings.max_resolution:
            raise InvalidResolutionError(
                f"Resolution {resolution} exceeds maximum {settings.max_resolution}"
            )

    @staticmethod
    def _resolve_policy(policy: Union[str, SplatPolicy]) -> SplatPolicy:
        if isinstance(policy, SplatPolicy):
            return policy
        from ..config.splat_policies import get_policy

        return get_policy(policy)

    def _log_stage(self, title: str, grid: HeightGrid) -> None:
        logger.info(title, **grid.stats())

    def mountain_specs(self, grid: HeightGrid) -> List[MountainSpec]:
        """Explicit peaks followed by the default chain when enabled."""
        specs = list(self.config.mountains)
        if self.config.use_default_mountains:
            specs.extend(
                default_mountain_layout(
                    grid,
                    self.config.mountain_base_height,
                    self.config.mountain_peak_height,
                    self.config.mountain_blend,
                )
            )
        return specs

    def generate(self) -> TerrainResult:
        """Run the pipeline and return read-only heights and splat map."""
        config = self.config
        rng = make_random_source(config.seed, self._rng)

        logger.info("Starting terrain generation", resolution=config.resolution, seed=config.seed)
        grid = HeightGrid(config.resolution, fill=config.min_height)

        fill = config.min_height if config.flatten_value is None else config.flatten_value
        flatten(grid, config.flatten_mode, fill, config.falloff_scale)
        self._log_stage("After flatten", grid)

        shaper = RadialMountainShaper()
        shaper.apply_all(grid, self.mountain_specs(grid))
        self._log_stage("After mountains", grid)

        passes: List[int] = []
        if config.apply_detail:
            options = dataclasses.replace(
                config.diamond_square,
                min_height=config.min_height,
                max_height=config.max_height,
            )
            passes = DiamondSquare(options).run(grid, rng=rng)
            self._log_stage("After diamond-square", grid)

        raw_range = grid.value_range()
        if config.normalize:
            try:
                normalize(grid, config.target_min, config.target_max)
            except DegenerateRangeError as e:
                # Flat terrain is already uniform; leave it as is
                logger.warning("Skipping normalization", reason=str(e))
            self._log_stage("After normalize", grid)

        splat = None
        if config.derive_splat:
            splat = build_splat_map(
                grid,
                self.policy,
                cell_size=config.terrain_size / config.resolution,
                height_scale=config.terrain_height,
                alphamap_size=config.alphamap_size,
            )
            splat.flags.writeable = False
            logger.info("Splat map derived", shape=list(splat.shape))

        self.result = TerrainResult(
            heights=grid.snapshot(),
            splat=splat,
            layer_names=tuple(self.policy.layer_names),
            raw_range=raw_range,
            passes=passes,
        )
        return self.result

    def apply_heights(
        self,
        writer: Union[HeightWriter, Callable[[int, int, float], None]],
        offset_x: int = 0,
        offset_y: int = 0,
    ) -> int:
        """
        Push every height of the last result to a host, once per cell.

        Args:
            writer: object with ``write(x, y, height)`` or a plain callable
            offset_x: added to every x passed to the writer
            offset_y: added to every y passed to the writer

        Returns:
            Number of cells written
        """
        if self.result is None:
            raise ValueError("No terrain generated yet; call generate() first")

        write = writer.write if hasattr(writer, "write") else writer
        heights = self.result.heights
        size_x, size_y = heights.shape
        for x in range(size_x):
            for y in range(size_y):
                write(offset_x + x, offset_y + y, float(heights[x, y]))
        return size_x * size_y


def generate_terrain(config: Optional[TerrainConfig] = None, rng: Any = None) -> TerrainResult:
    """Convenience wrapper: build a generator and run it once."""
    return TerrainGenerator(config, rng=rng).generate()
