"""
Tests for the terrain generation pipeline.
"""

import pytest
import numpy as np
from py_terrain.core.diamond_square import DiamondSquareOptions
from py_terrain.core.errors import InvalidResolutionError
from py_terrain.core.flatten import FlattenMode
from py_terrain.core.mountains import MountainSpec
from py_terrain.core.splat import SplatPolicy
from py_terrain.core.terrain_generator import (
    TerrainConfig,
    TerrainGenerator,
    generate_terrain,
)


class RecordingWriter:
    """Host stand-in collecting write() calls."""

    def __init__(self):
        self.calls = []

    def write(self, x, y, height):
        self.calls.append((x, y, height))


class TestTerrainGenerator:
    """Test the end-to-end pipeline."""

    @pytest.fixture
    def config(self):
        return TerrainConfig(resolution=16, seed="pipeline")

    @pytest.fixture
    def result(self, config):
        return TerrainGenerator(config).generate()

    def test_output_shapes(self, result):
        """Test heights and splat map dimensions."""
        assert result.heights.shape == (17, 17)
        assert result.splat.shape == (17, 17, 5)
        assert result.layer_names == ("base", "grass", "rock", "valley", "snow")
        assert result.resolution == 16

    def test_heights_normalized(self, result):
        """Test that heights span exactly [0, 1]."""
        assert result.heights.min() == pytest.approx(0.0)
        assert result.heights.max() == pytest.approx(1.0)

    def test_splat_sums_to_one(self, result):
        """Test the per-cell weight sum."""
        np.testing.assert_allclose(result.splat.sum(axis=-1), 1.0, atol=1e-5)
        assert result.splat_at(3, 4).total == pytest.approx(1.0, abs=1e-5)

    def test_outputs_are_read_only(self, result):
        """Test that callers cannot mutate the snapshots."""
        with pytest.raises(ValueError):
            result.heights[0, 0] = 0.5
        with pytest.raises(ValueError):
            result.splat[0, 0, 0] = 0.5

    def test_detail_pass_schedule(self, result):
        """Test that unseeded detail refines from hs=8 down to 1."""
        assert result.passes == [8, 4, 2, 1]

    def test_deterministic_for_seed(self, config):
        """Test identical output for identical seeds."""
        first = TerrainGenerator(config).generate()
        second = TerrainGenerator(config).generate()
        other = TerrainGenerator(TerrainConfig(resolution=16, seed="elsewhere")).generate()

        assert np.array_equal(first.heights, second.heights)
        assert not np.array_equal(first.heights, other.heights)

    def test_numeric_seed(self):
        """Test that an integer seed is accepted and reproducible."""
        first = generate_terrain(TerrainConfig(resolution=8, seed=42))
        second = generate_terrain(TerrainConfig(resolution=8, seed=42))
        textual = generate_terrain(TerrainConfig(resolution=8, seed="42"))

        assert TerrainConfig(seed=42).seed == 42
        assert np.array_equal(first.heights, second.heights)
        # Alea hashes the textual form, so 42 and "42" give the same stream
        assert np.array_equal(first.heights, textual.heights)

    def test_explicit_rng_overrides_seed(self, config):
        """Test that a supplied random source is used."""
        a = TerrainGenerator(config, rng=np.random.default_rng(1)).generate()
        b = TerrainGenerator(config, rng=np.random.default_rng(1)).generate()

        assert np.array_equal(a.heights, b.heights)

    @pytest.mark.parametrize("resolution", [0, 3, 10, 17])
    def test_invalid_resolution_before_generation(self, resolution):
        """Test that bad sizes fail at construction."""
        with pytest.raises(InvalidResolutionError):
            TerrainGenerator(TerrainConfig(resolution=resolution))

    def test_resolution_above_maximum(self):
        """Test the configured resolution ceiling."""
        with pytest.raises(InvalidResolutionError):
            TerrainGenerator(TerrainConfig(resolution=2**20))

    def test_flat_terrain_skips_normalization(self):
        """Test recovery from a degenerate range."""
        config = TerrainConfig(
            resolution=8,
            use_default_mountains=False,
            apply_detail=False,
            flatten_value=0.0,
        )
        result = generate_terrain(config)

        assert result.raw_range == (0.0, 0.0)
        assert np.all(result.heights == 0.0)
        # Height 0 is below the valley threshold everywhere
        np.testing.assert_allclose(result.splat[..., 3], 1.0)

    def test_mountains_without_detail(self):
        """Test explicit mountains on a constant surface, no normalization."""
        config = TerrainConfig(
            resolution=16,
            mountains=[MountainSpec(8, 8, 4, min_height=0.2, max_height=0.9)],
            use_default_mountains=False,
            apply_detail=False,
            normalize=False,
        )
        result = generate_terrain(config)

        assert result.heights[8, 8] == pytest.approx(0.9)
        assert result.heights[0, 0] == 0.0
        assert result.passes == []

    def test_seeded_peak_pipeline(self):
        """Test the forced-peak detail variant inside the pipeline."""
        config = TerrainConfig(
            resolution=8,
            use_default_mountains=False,
            diamond_square=DiamondSquareOptions(displacement=0.0, seed_peak=True),
            normalize=False,
        )
        result = generate_terrain(config)

        assert result.passes == [2, 1]
        assert result.heights[0, 0] == 0.0
        assert result.heights[4, 4] > result.heights[4, 0]

    def test_edge_falloff_surface(self):
        """Test the falloff starting surface."""
        config = TerrainConfig(
            resolution=8,
            flatten_mode=FlattenMode.EDGE_FALLOFF,
            use_default_mountains=False,
            apply_detail=False,
            normalize=False,
            derive_splat=False,
        )
        result = generate_terrain(config)

        assert result.splat is None
        assert result.heights[4, 4] > result.heights[0, 0]
        with pytest.raises(ValueError):
            result.splat_at(0, 0)

    def test_policy_by_name_and_object(self):
        """Test splat policy resolution."""
        named = TerrainGenerator(TerrainConfig(resolution=4, splat_policy="alpine"))
        assert len(named.policy.layer_names) == 6

        custom = SplatPolicy(layer_names=("a", "b", "c", "d", "e"))
        direct = TerrainGenerator(TerrainConfig(resolution=4, splat_policy=custom))
        assert direct.policy is custom

        with pytest.raises(ValueError):
            TerrainGenerator(TerrainConfig(resolution=4, splat_policy="missing"))

    def test_alphamap_size(self):
        """Test a splat map at a different size than the heightmap."""
        result = generate_terrain(TerrainConfig(resolution=8, alphamap_size=4, seed="alpha"))
        assert result.splat.shape == (4, 4, 5)


class TestApplyHeights:
    """Test pushing heights to a host."""

    def test_writer_called_once_per_cell(self):
        """Test the write capability with offsets."""
        generator = TerrainGenerator(TerrainConfig(resolution=4, seed="host"))
        result = generator.generate()
        writer = RecordingWriter()

        count = generator.apply_heights(writer, offset_x=10, offset_y=20)

        assert count == 25
        assert len(writer.calls) == 25
        assert len({(x, y) for x, y, _ in writer.calls}) == 25
        assert (10, 20, float(result.heights[0, 0])) in writer.calls
        assert (14, 24, float(result.heights[4, 4])) in writer.calls

    def test_callable_writer(self):
        """Test a plain function as the writer."""
        generator = TerrainGenerator(TerrainConfig(resolution=2, seed="fn"))
        generator.generate()
        seen = {}

        generator.apply_heights(lambda x, y, h: seen.__setitem__((x, y), h))

        assert len(seen) == 9

    def test_requires_generation(self):
        """Test writing before any run."""
        with pytest.raises(ValueError):
            TerrainGenerator(TerrainConfig(resolution=4)).apply_heights(RecordingWriter())
