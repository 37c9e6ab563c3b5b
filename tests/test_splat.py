"""
Tests for splat weight derivation.
"""

import pytest
import numpy as np
from py_terrain.core.errors import DegenerateWeightsError
from py_terrain.core.grid import HeightGrid
from py_terrain.core.splat import (
    SplatLayer,
    SplatPolicy,
    build_splat_map,
    compute_steepness,
    derive_weights,
    normalize_steepness,
    normalize_vector,
    weights,
)


class TestWeights:
    """Test the per-cell policy."""

    @pytest.fixture
    def policy(self):
        return SplatPolicy()

    def test_low_cells_are_valley(self, policy):
        """Test that low cells go entirely to the valley layer."""
        layer = weights(0.05, 0.7, policy)

        assert layer["valley"] == pytest.approx(1.0)
        assert layer.total == pytest.approx(1.0)
        assert sum(w for name, w in layer.as_dict().items() if name != "valley") == 0.0

    def test_mid_band_mix(self, policy):
        """Test base, grass and dirt in the mid band."""
        layer = weights(0.5, 0.3, policy)
        total = 0.1 + 0.75 + 0.5

        assert layer["base"] == pytest.approx(0.1 / total)
        assert layer["grass"] == pytest.approx(0.75 / total)
        assert layer["rock"] == pytest.approx(0.5 / total)
        assert layer["valley"] == 0.0
        assert layer["snow"] == 0.0

    def test_high_band_split(self, policy):
        """Test cliff and snow weights on high cells."""
        layer = weights(0.9, 0.5, policy)
        total = 0.45 + 0.5

        assert layer["rock"] == pytest.approx(0.45 / total)
        assert layer["snow"] == pytest.approx(0.5 / total)

    def test_flat_peak_falls_back_to_uniform(self, policy):
        """Test the uniform fallback when all weights are zero."""
        layer = weights(0.95, 0.0, policy)

        assert layer.weights == pytest.approx((0.2,) * 5)

    def test_thresholds_are_exclusive(self, policy):
        """Test that the threshold values themselves are mid band."""
        assert weights(0.09, 0.5, policy)["valley"] == 0.0
        assert weights(0.8, 0.5, policy)["snow"] == 0.0

    def test_inputs_are_clipped(self, policy):
        """Test that out-of-range inputs are clipped to [0, 1]."""
        assert weights(-0.5, 2.0, policy)["valley"] == pytest.approx(1.0)
        assert weights(1.5, 2.0, policy).as_dict() == weights(1.0, 1.0, policy).as_dict()

    def test_default_policy(self):
        """Test that the policy argument is optional."""
        layer = weights(0.5, 0.5)

        assert len(layer) == 5
        assert layer[0] == layer["base"]

    def test_normalize_vector_degenerate(self):
        """Test that an all-zero vector raises."""
        with pytest.raises(DegenerateWeightsError):
            normalize_vector(np.zeros(4))

    def test_custom_policy(self):
        """Test a six-layer policy with its own cliff layer."""
        policy = SplatPolicy(
            layer_names=("base", "grass", "dirt", "valley", "snow", "cliff"),
            high_threshold=0.6,
            cliff_layer=5,
        )
        layer = weights(0.7, 1.0, policy)

        assert layer["cliff"] == pytest.approx(0.7 / 1.7)
        assert layer["snow"] == pytest.approx(1.0 / 1.7)
        assert layer["dirt"] == 0.0

    def test_policy_validation(self):
        """Test that bad layer indices and thresholds are rejected."""
        with pytest.raises(ValueError):
            SplatPolicy(cliff_layer=7)
        with pytest.raises(ValueError):
            SplatPolicy(low_threshold=0.9, high_threshold=0.1)
        with pytest.raises(ValueError):
            SplatPolicy(layer_names=())

    def test_splat_layer_lookup(self):
        """Test lookup by name and index."""
        layer = SplatLayer(names=("a", "b"), weights=(0.25, 0.75))

        assert layer["b"] == 0.75
        assert layer[0] == 0.25
        assert layer.as_dict() == {"a": 0.25, "b": 0.75}


class TestSplatMap:
    """Test vectorized derivation over grids."""

    def test_weights_sum_to_one(self):
        """Test the sum invariant over random inputs, degenerate cells included."""
        rng = np.random.default_rng(5)
        heights = rng.random((40, 40))
        steepness = rng.random((40, 40))
        steepness[::7, ::7] = 0.0
        heights[::7, ::7] = 0.95

        result = derive_weights(heights, steepness)

        assert result.shape == (40, 40, 5)
        assert np.all(result >= 0.0)
        np.testing.assert_allclose(result.sum(axis=-1), 1.0, atol=1e-9)

    def test_matches_scalar_weights(self):
        """Test that the vectorized path agrees with weights()."""
        heights = np.array([0.05, 0.3, 0.85, 0.99])
        steepness = np.array([0.2, 0.4, 0.6, 0.0])
        result = derive_weights(heights, steepness)

        for i in range(4):
            assert tuple(result[i]) == pytest.approx(weights(heights[i], steepness[i]).weights)

    def test_steepness_of_plane(self):
        """Test the slope angle of a 45 degree ramp."""
        heights = np.tile(np.arange(5, dtype=np.float64)[:, None], (1, 5))
        degrees = compute_steepness(heights, cell_size=1.0)

        np.testing.assert_allclose(degrees, 45.0)
        np.testing.assert_allclose(normalize_steepness(degrees), 1.0 - 1.0 / 46.0)

    def test_normalize_steepness(self):
        """Test the unbounded-to-unit mapping."""
        assert normalize_steepness(0.0) == 0.0
        assert normalize_steepness(1.0) == pytest.approx(0.5)

    def test_build_splat_map_flat_grid(self):
        """Test a flat mid-height grid: zero steepness, mid band weights."""
        grid = HeightGrid(8, fill=0.5)
        splat = build_splat_map(grid)

        assert splat.shape == (9, 9, 5)
        assert splat.dtype == np.float32
        np.testing.assert_allclose(splat[4, 4], weights(0.5, 0.0).weights, rtol=1e-6)

    def test_build_splat_map_alphamap_size(self):
        """Test resampling to a different splat map size."""
        grid = HeightGrid(8, fill=0.02)
        grid.set(8, 8, 0.5)
        splat = build_splat_map(grid, alphamap_size=3)

        assert splat.shape == (3, 3, 5)
        assert splat[0, 0, 3] == pytest.approx(1.0)
        assert splat[2, 2, 3] == 0.0

    def test_build_splat_map_does_not_mutate(self):
        """Test that the grid is only read."""
        grid = HeightGrid(8)
        grid.heights[:, :] = np.random.default_rng(2).random((9, 9))
        before = grid.heights.copy()

        build_splat_map(grid, cell_size=10.0, height_scale=600.0)

        assert np.array_equal(grid.heights, before)
