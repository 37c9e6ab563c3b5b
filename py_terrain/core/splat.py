"""
Splat (texture weight) derivation from height and steepness.

Each cell gets an N-way weight vector chosen by a piecewise policy:

- low cells go entirely to the valley layer
- high cells split between a cliff layer (``steepness * height``) and a snow
  layer (``steepness``)
- everything in between mixes a constant base layer, grass fading as
  ``1 - height^2`` and dirt growing with height

Weights are clamped to be non-negative and normalized to sum to 1; an
all-zero vector falls back to uniform weights.
"""

import numpy as np
import structlog
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import DegenerateWeightsError
from .grid import HeightGrid

logger = structlog.get_logger()


class SplatPolicy(BaseModel):
    """Thresholds, curves and layer roles for splat derivation."""

    model_config = ConfigDict(frozen=True)

    layer_names: Tuple[str, ...] = Field(
        default=("base", "grass", "rock", "valley", "snow"),
        description="Ordered texture layer names",
    )
    low_threshold: float = Field(
        default=0.09, description="Heights below this are valley only"
    )
    high_threshold: float = Field(
        default=0.8, description="Heights above this are cliff and snow"
    )
    base_weight: float = Field(
        default=0.1, description="Constant base layer weight in the mid band"
    )

    # Layer index for each role
    base_layer: int = Field(default=0, description="Constant mid-band layer")
    grass_layer: int = Field(default=1, description="Fades with height")
    dirt_layer: int = Field(default=2, description="Grows with height")
    cliff_layer: int = Field(default=2, description="High, weighted by steepness * height")
    valley_layer: int = Field(default=3, description="Low cells")
    snow_layer: int = Field(default=4, description="High, weighted by steepness")

    @property
    def layer_count(self) -> int:
        return len(self.layer_names)

    @model_validator(mode="after")
    def _check_layers(self):
        if not self.layer_names:
            raise ValueError("At least one layer is required")
        if self.high_threshold < self.low_threshold:
            raise ValueError("high_threshold must not be below low_threshold")
        for role in ("base", "grass", "dirt", "cliff", "valley", "snow"):
            index = getattr(self, f"{role}_layer")
            if not 0 <= index < len(self.layer_names):
                raise ValueError(
                    f"{role}_layer index {index} outside {len(self.layer_names)} layers"
                )
        return self


@dataclass(frozen=True)
class SplatLayer:
    """Named, normalized texture weights for one cell."""

    names: Tuple[str, ...]
    weights: Tuple[float, ...]

    def __len__(self) -> int:
        return len(self.weights)

    def __getitem__(self, key: Union[int, str]) -> float:
        if isinstance(key, str):
            return self.weights[self.names.index(key)]
        return self.weights[key]

    @property
    def total(self) -> float:
        return float(sum(self.weights))

    def as_dict(self) -> Dict[str, float]:
        return dict(zip(self.names, self.weights))


def raw_weights(height01, steepness01, policy: SplatPolicy) -> np.ndarray:
    """
    Un-normalized weights, shape ``broadcast(height, steepness) + (layers,)``.

    Inputs are clipped to [0, 1] and negative weights clamped to zero.
    """
    h = np.clip(np.asarray(height01, dtype=np.float64), 0.0, 1.0)
    s = np.clip(np.asarray(steepness01, dtype=np.float64), 0.0, 1.0)
    h, s = np.broadcast_arrays(h, s)

    low = h < policy.low_threshold
    high = h > policy.high_threshold
    mid = ~low & ~high

    raw = np.zeros(h.shape + (policy.layer_count,), dtype=np.float64)
    raw[..., policy.valley_layer] += np.where(low, 1.0, 0.0)
    raw[..., policy.cliff_layer] += np.where(high, s * h, 0.0)
    raw[..., policy.snow_layer] += np.where(high, s, 0.0)
    raw[..., policy.base_layer] += np.where(mid, policy.base_weight, 0.0)
    raw[..., policy.grass_layer] += np.where(mid, 1.0 - h**2, 0.0)
    raw[..., policy.dirt_layer] += np.where(mid, h, 0.0)

    return np.maximum(raw, 0.0)


def normalize_vector(raw: np.ndarray) -> np.ndarray:
    """
    Scale a single weight vector to sum to 1.

    Raises:
        DegenerateWeightsError: if the weights sum to zero or less
    """
    total = float(raw.sum())
    if total <= 0:
        raise DegenerateWeightsError(f"Splat weights sum to {total}")
    return raw / total


def weights(
    height01: float, steepness01: float, policy: Optional[SplatPolicy] = None
) -> SplatLayer:
    """Splat weights for one cell from normalized height and steepness."""
    policy = policy or SplatPolicy()
    raw = raw_weights(height01, steepness01, policy)
    try:
        normalized = normalize_vector(raw)
    except DegenerateWeightsError:
        normalized = np.full(policy.layer_count, 1.0 / policy.layer_count)
    return SplatLayer(
        names=tuple(policy.layer_names),
        weights=tuple(float(w) for w in normalized),
    )


def derive_weights(height01, steepness01, policy: Optional[SplatPolicy] = None) -> np.ndarray:
    """Vectorized ``weights``: arrays in, ``(..., layers)`` weights out."""
    policy = policy or SplatPolicy()
    raw = raw_weights(height01, steepness01, policy)
    total = raw.sum(axis=-1, keepdims=True)

    degenerate = total[..., 0] <= 0
    if np.any(degenerate):
        raw[degenerate] = 1.0 / policy.layer_count
        total[degenerate] = 1.0
        logger.debug("Uniform splat fallback", cells=int(degenerate.sum()))

    return raw / total


def compute_steepness(
    heights: np.ndarray, cell_size: float = 1.0, height_scale: float = 1.0
) -> np.ndarray:
    """
    Slope angle in degrees at every cell.

    Args:
        heights: ``[x, y]`` height array, typically normalized to [0, 1]
        cell_size: world distance between neighboring cells
        height_scale: world height of a normalized value of 1
    """
    if cell_size <= 0:
        raise ValueError("cell_size must be positive")
    scaled = np.asarray(heights, dtype=np.float64) * height_scale
    gx, gy = np.gradient(scaled, cell_size)
    return np.degrees(np.arctan(np.hypot(gx, gy)))


def normalize_steepness(degrees) -> np.ndarray:
    """Map an unbounded slope to [0, 1) via ``1 - 1/(s + 1)``."""
    degrees = np.maximum(np.asarray(degrees, dtype=np.float64), 0.0)
    return 1.0 - 1.0 / (degrees + 1.0)


def _sample_indices(source: int, target: int) -> np.ndarray:
    if target == 1:
        return np.zeros(1, dtype=int)
    return np.rint(np.arange(target) / (target - 1) * (source - 1)).astype(int)


def build_splat_map(
    grid: Union[HeightGrid, np.ndarray],
    policy: Optional[SplatPolicy] = None,
    cell_size: float = 1.0,
    height_scale: float = 1.0,
    alphamap_size: Optional[int] = None,
) -> np.ndarray:
    """
    Splat map for a whole grid. The grid is only read.

    Args:
        grid: normalized heights
        policy: splat policy, defaults to ``SplatPolicy()``
        cell_size: world distance between neighboring cells
        height_scale: world height of a normalized value of 1
        alphamap_size: output side length; defaults to the grid size, other
            sizes sample the nearest height cell

    Returns:
        float32 array of shape ``(size_x, size_y, layers)``
    """
    policy = policy or SplatPolicy()
    heights = grid.heights if isinstance(grid, HeightGrid) else np.asarray(grid)
    steepness = normalize_steepness(compute_steepness(heights, cell_size, height_scale))

    if alphamap_size is not None:
        if alphamap_size < 1:
            raise ValueError("alphamap_size must be positive")
        ix = _sample_indices(heights.shape[0], alphamap_size)
        iy = _sample_indices(heights.shape[1], alphamap_size)
        heights = heights[np.ix_(ix, iy)]
        steepness = steepness[np.ix_(ix, iy)]

    return derive_weights(heights, steepness, policy).astype(np.float32)
