"""
Tests for the escape-time fractal kernel.
"""

import logging
import math
import pytest
import numpy as np
from complexsim.core import Viewport, DimensionError
from complexsim.color import ColorPipeline
from complexsim.fractal import (
    FractalKernel, FractalParams, FractalVariant,
    compute_samples, sample_point, colorize, pixel_coordinates, precision_exceeded,
)


class TestEscapePoint:
    """Tests for single-point iteration."""

    @pytest.mark.parametrize("cap", [1, 2, 10, 100, 1000])
    def test_origin_never_escapes(self, cap):
        """Test c = 0 stays bounded for every positive cap."""
        escaped, n, mu = sample_point(0.0, 0.0, FractalParams(max_iterations=cap))
        assert not escaped
        assert n == cap
        assert mu == cap

    def test_far_point_escapes_quickly(self):
        """Test a point far outside the set escapes in one iteration."""
        escaped, n, _ = sample_point(3.0, 0.0, FractalParams(max_iterations=50))
        assert escaped
        assert n == 1

    def test_julia_seed_outside_radius(self):
        """Test a Julia seed already outside the radius escapes at n = 0."""
        params = FractalParams(variant=FractalVariant.JULIA, max_iterations=50)
        escaped, n, _ = sample_point(3.0, 0.0, params)
        assert escaped
        assert n == 0

    def test_zero_cap_marks_escaped(self):
        """Test a zero iteration cap marks points escaped at iteration 0."""
        escaped, n, _ = sample_point(0.0, 0.0, FractalParams(max_iterations=0))
        assert escaped
        assert n == 0

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_escapes(self, value):
        """Test non-finite magnitudes count as escaped."""
        escaped, n, mu = sample_point(value, 0.0, FractalParams(max_iterations=50))
        assert escaped
        assert n <= 1
        assert not math.isnan(mu)

    def test_smooth_value_near_count(self):
        """Test the continuous value stays close to the integer count."""
        escaped, n, mu = sample_point(0.5, 0.5, FractalParams(max_iterations=100))
        assert escaped
        assert abs(mu - n) < 2.0

    def test_smoothing_off(self):
        """Test smoothing off reports the raw count."""
        escaped, n, mu = sample_point(0.5, 0.5, FractalParams(max_iterations=100, smooth=False))
        assert escaped
        assert mu == n

    def test_higher_power(self):
        """Test the origin stays bounded for higher powers."""
        escaped, n, _ = sample_point(0.0, 0.0, FractalParams(power=5, max_iterations=40))
        assert not escaped
        assert n == 40

    def test_burning_ship(self):
        """Test Burning Ship iteration folds both components."""
        params = FractalParams(variant=FractalVariant.BURNING_SHIP, max_iterations=100)
        assert not sample_point(0.0, 0.0, params)[0]
        assert sample_point(2.0, 2.0, params)[0]


class TestComputeSamples:
    """Tests for full-grid evaluation."""

    def test_center_pixel_of_2x2(self):
        """Test pixel (1, 1) of a 2x2 grid sits exactly on the center."""
        samples = compute_samples((2, 2), Viewport(0.0, 0.0, 1.0), FractalParams(max_iterations=64),
                                  parallel=False)
        assert not samples.escaped[1, 1]
        assert samples.iterations[1, 1] == 64

    def test_shapes_and_dtypes(self):
        """Test output arrays share the requested shape."""
        samples = compute_samples((12, 20), Viewport(-0.5, 0.0, 1.0), FractalParams(max_iterations=30),
                                  parallel=False)
        assert samples.shape == (12, 20)
        assert samples.iterations.dtype == np.int32
        assert samples.smooth.dtype == np.float64
        assert samples.iterations.max() <= 30
        assert 0.0 < samples.escaped_fraction() < 1.0

    def test_zero_cap_all_escaped(self):
        """Test a zero cap marks every pixel escaped."""
        samples = compute_samples((8, 8), Viewport(-0.5, 0.0, 1.0), FractalParams(max_iterations=0),
                                  parallel=False)
        assert samples.escaped.all()
        assert (samples.iterations == 0).all()

    @pytest.mark.parametrize("variant", list(FractalVariant))
    def test_parallel_matches_serial(self, variant):
        """Test row partitioning never changes the result."""
        params = FractalParams(variant=variant, max_iterations=80)
        view = Viewport(-0.4, -0.2, 1.3, rotation=0.3)
        serial = compute_samples((24, 32), view, params, parallel=False)
        parallel = compute_samples((24, 32), view, params, parallel=True)
        np.testing.assert_array_equal(serial.escaped, parallel.escaped)
        np.testing.assert_array_equal(serial.iterations, parallel.iterations)
        np.testing.assert_array_equal(serial.smooth, parallel.smooth)

    def test_grid_matches_point_samples(self):
        """Test grid evaluation agrees with point sampling at pixel coordinates."""
        params = FractalParams(max_iterations=50)
        view = Viewport(-0.5, 0.1, 2.0, rotation=0.5)
        samples = compute_samples((6, 9), view, params, parallel=False)
        re, im = pixel_coordinates((6, 9), view)
        for y in range(6):
            for x in range(9):
                escaped, n, _ = sample_point(re[y, x], im[y, x], params)
                assert escaped == samples.escaped[y, x]
                assert n == samples.iterations[y, x]

    def test_oversize_shape_rejected(self):
        """Test oversize shapes raise before allocating."""
        with pytest.raises(DimensionError):
            compute_samples((100000, 10), Viewport(), FractalParams())
        with pytest.raises(DimensionError):
            compute_samples((0, 10), Viewport(), FractalParams())

    def test_invalid_params_rejected(self):
        """Test iteration caps above the configured limit are rejected."""
        with pytest.raises(ValueError):
            compute_samples((4, 4), Viewport(), FractalParams(max_iterations=10 ** 6))
        with pytest.raises(ValueError):
            compute_samples((4, 4), Viewport(), FractalParams(escape_radius=0.0))


class TestViewport:
    """Tests for viewport mapping."""

    def test_invalid_zoom(self):
        """Test non-positive or infinite zoom is rejected."""
        for zoom in (0.0, -1.0, float("inf"), float("nan")):
            with pytest.raises(ValueError):
                Viewport(0.0, 0.0, zoom)

    def test_span(self):
        """Test visible height is 4 / zoom."""
        assert Viewport(zoom=4.0).span == 1.0

    def test_rotation_quarter_turn(self):
        """Test a quarter turn maps (dx, dy) to (-dy, dx)."""
        re0, im0 = pixel_coordinates((5, 7), Viewport(0.0, 0.0, 1.0))
        re1, im1 = pixel_coordinates((5, 7), Viewport(0.0, 0.0, 1.0, rotation=math.pi / 2))
        np.testing.assert_allclose(re1, -im0, atol=1e-12)
        np.testing.assert_allclose(im1, re0, atol=1e-12)

    def test_precision_check(self):
        """Test extreme zoom is flagged as beyond float64 resolution."""
        assert not precision_exceeded((480, 640), Viewport(-0.5, 0.0, 1.0))
        assert precision_exceeded((480, 640), Viewport(-0.5, 0.0, 1e14))


class TestFractalKernel:
    """Tests for FractalKernel rendering."""

    def test_render_interior_color(self):
        """Test bounded pixels receive the scheme's interior color."""
        kernel = FractalKernel(parallel=False)
        rgb = kernel.render((2, 2), Viewport(0.0, 0.0, 1.0), FractalParams(max_iterations=20),
                            ColorPipeline("ice"))
        assert rgb.shape == (2, 2, 3)
        assert rgb.dtype == np.uint8
        assert tuple(rgb[1, 1]) == (0, 0, 32)

    def test_colorize_escaped_pixels(self):
        """Test escaped pixels map smooth / cap through the pipeline."""
        params = FractalParams(max_iterations=20, smooth=False)
        samples = compute_samples((2, 2), Viewport(10.0, 0.0, 1.0), params, parallel=False)
        assert samples.escaped.all()
        rgb = colorize(samples, 20, ColorPipeline("grayscale"))
        expected = ColorPipeline("grayscale").apply(samples.iterations / 20.0)
        np.testing.assert_array_equal(rgb, expected)

    def test_precision_warning_logged_once(self, caplog):
        """Test the precision warning is reported once per excursion."""
        kernel = FractalKernel(parallel=False)
        params = FractalParams(max_iterations=10)
        deep = Viewport(0.5, 0.0, 1e16)
        with caplog.at_level(logging.WARNING, logger="complexsim.fractal.kernel"):
            kernel.sample((4, 4), deep, params)
            kernel.sample((4, 4), deep, params)
        warnings = [r for r in caplog.records if "PrecisionLimit" in r.getMessage()]
        assert len(warnings) == 1

        caplog.clear()
        with caplog.at_level(logging.WARNING, logger="complexsim.fractal.kernel"):
            kernel.sample((4, 4), Viewport(0.5, 0.0, 1.0), params)
            kernel.sample((4, 4), deep, params)
        warnings = [r for r in caplog.records if "PrecisionLimit" in r.getMessage()]
        assert len(warnings) == 1
