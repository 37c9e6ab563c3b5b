"""
Core terrain synthesis functionality.
"""

from .errors import (
    TerrainError,
    OutOfBoundsError,
    InvalidResolutionError,
    DegenerateRangeError,
    DegenerateWeightsError,
)
from .grid import HeightGrid, validate_resolution
from .alea_prng import AleaPRNG
from .diamond_square import DiamondSquare, DiamondSquareOptions, DisplacementState
from .mountains import MountainSpec, MountainBlend, RadialMountainShaper, default_mountain_layout
from .flatten import FlattenMode, flatten
from .normalizer import normalize
from .splat import SplatLayer, SplatPolicy, weights, derive_weights, build_splat_map
from .terrain_generator import TerrainConfig, TerrainGenerator, TerrainResult, generate_terrain

__all__ = ['TerrainError', 'OutOfBoundsError', 'InvalidResolutionError',
           'DegenerateRangeError', 'DegenerateWeightsError',
           'HeightGrid', 'validate_resolution', 'AleaPRNG',
           'DiamondSquare', 'DiamondSquareOptions', 'DisplacementState',
           'MountainSpec', 'MountainBlend', 'RadialMountainShaper', 'default_mountain_layout',
           'FlattenMode', 'flatten', 'normalize',
           'SplatLayer', 'SplatPolicy', 'weights', 'derive_weights', 'build_splat_map',
           'TerrainConfig', 'TerrainGenerator', 'TerrainResult', 'generate_terrain']
