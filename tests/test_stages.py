import numpy as np
import pytest

from photofilter.models.adjustment_parameters import Adjustment
from photofilter.pipeline.stages import (
    STAGES,
    adjust_brightness,
    adjust_contrast,
    adjust_saturation,
    adjust_temperature,
    apply_fade,
    apply_vignette,
    contrast_factor,
    temperature_shift,
    vignette_factors,
)


def row(*pixels):
    """1-row RGBA array from (r, g, b, a) tuples."""
    return np.array([pixels], dtype=np.uint8)


def rgb_of(array):
    return [tuple(int(c) for c in px[:3]) for px in array[0]]


KERNELS = [adjust_brightness, adjust_contrast, adjust_saturation, adjust_temperature, apply_fade, apply_vignette]


def test_stage_order():
    assert [stage.adjustment for stage in STAGES] == list(Adjustment)
    assert [stage.name for stage in STAGES] == [a.value for a in Adjustment]


class TestBrightness:
    def test_scales_and_clamps(self):
        out = adjust_brightness(row((128, 200, 0, 255)), 50)
        assert rgb_of(out) == [(192, 255, 0)]

    def test_darkening_truncates(self):
        out = adjust_brightness(row((255, 255, 255, 255)), -50)
        assert rgb_of(out) == [(127, 127, 127)]

    def test_minus_hundred_is_black(self):
        out = adjust_brightness(row((12, 130, 255, 9)), -100)
        assert out[0, 0].tolist() == [0, 0, 0, 9]


class TestContrast:
    def test_factor(self):
        assert contrast_factor(0) == pytest.approx(1.0)
        assert contrast_factor(50) == pytest.approx(78995 / 53295, rel=1e-6)

    def test_positive_spreads_around_mid_grey(self):
        out = adjust_contrast(row((50, 128, 200, 255), (0, 0, 0, 255)), 50)
        assert rgb_of(out) == [(12, 128, 234), (0, 0, 0)]

    def test_negative_pulls_toward_mid_grey(self):
        out = adjust_contrast(row((0, 255, 128, 255)), -100)
        assert rgb_of(out) == [(71, 183, 128)]


class TestSaturation:
    def test_full_desaturation_of_pure_red(self):
        out = adjust_saturation(row((255, 0, 0, 255), (128, 0, 0, 255)), -100)
        assert rgb_of(out) == [(255, 255, 255), (128, 128, 128)]

    def test_boost(self):
        out = adjust_saturation(row((200, 100, 50, 255)), 50)
        assert rgb_of(out) == [(200, 67, 0)]

    def test_reduce(self):
        out = adjust_saturation(row((200, 100, 50, 255)), -50)
        assert rgb_of(out) == [(200, 150, 125)]

    def test_grey_is_fixed_point(self):
        out = adjust_saturation(row((90, 90, 90, 40), (0, 0, 0, 255)), 80)
        assert out.tolist() == row((90, 90, 90, 40), (0, 0, 0, 255)).tolist()


class TestTemperature:
    @pytest.mark.parametrize("value,shift", [(50, 15), (33, 9), (-33, -9), (-100, -30), (10, 3), (-20, -6), (0, 0)])
    def test_shift_truncates_toward_zero(self, value, shift):
        assert temperature_shift(value) == shift

    def test_warms_red_and_cools_blue(self):
        out = adjust_temperature(row((100, 100, 100, 255)), 50)
        assert rgb_of(out) == [(115, 100, 85)]

    def test_cooling(self):
        out = adjust_temperature(row((100, 100, 100, 255)), -33)
        assert rgb_of(out) == [(91, 100, 109)]

    def test_clamps(self):
        out = adjust_temperature(row((250, 7, 5, 255)), 50)
        assert rgb_of(out) == [(255, 7, 0)]


class TestFade:
    def test_blends_toward_light_grey(self):
        out = apply_fade(row((100, 0, 255, 255)), 50)
        assert rgb_of(out) == [(160, 110, 237)]

    def test_full_fade_is_flat_grey(self):
        out = apply_fade(row((3, 140, 255, 17)), 100)
        assert out[0, 0].tolist() == [220, 220, 220, 17]

    def test_non_positive_values_skip_the_stage(self):
        fade = STAGES[4]
        assert fade.adjustment is Adjustment.FADE
        pixels = row((100, 0, 255, 255))
        assert fade.run(pixels, -50) is pixels
        assert fade.run(pixels, 0) is pixels


class TestVignette:
    def grid(self, size, value=200):
        return np.full((size, size, 4), value, dtype=np.uint8)

    def test_full_strength_blacks_out_corners(self):
        out = apply_vignette(self.grid(5), 100)
        assert out[0, 0, :3].tolist() == [0, 0, 0]
        assert out[4, 4, :3].tolist() == [0, 0, 0]
        assert out[2, 2, :3].tolist() == [200, 200, 200]
        # two pixels above centre: 1 - 2 / sqrt(8)
        assert out[0, 2, :3].tolist() == [58, 58, 58]
        assert (out[..., 3] == 200).all()

    def test_half_strength(self):
        out = apply_vignette(self.grid(5), 50)
        assert out[0, 0, :3].tolist() == [100, 100, 100]

    def test_negative_strength_brightens_edges(self):
        out = apply_vignette(self.grid(5), -50)
        assert out[0, 0, :3].tolist() == [255, 255, 255]
        assert out[2, 2, :3].tolist() == [200, 200, 200]

    def test_even_dimensions_use_lower_right_centre(self):
        out = apply_vignette(self.grid(4), 100)
        assert out[2, 2, :3].tolist() == [200, 200, 200]
        assert out[3, 3, :3].tolist() == [100, 100, 100]
        assert out[0, 0, :3].tolist() == [0, 0, 0]

    def test_single_pixel_is_untouched(self):
        out = apply_vignette(self.grid(1, 77), 100)
        assert out.tolist() == self.grid(1, 77).tolist()

    def test_factors_never_negative(self):
        factors = vignette_factors(9, 3, 100)
        assert factors.shape == (3, 9)
        assert factors.dtype == np.float32
        assert (factors >= 0).all()


@pytest.mark.parametrize("kernel", KERNELS)
def test_kernels_leave_input_alone_and_keep_alpha(kernel):
    rng = np.random.default_rng(99)
    pixels = rng.integers(0, 256, size=(3, 4, 4), dtype=np.uint8)
    snapshot = pixels.copy()
    out = kernel(pixels, 60)
    assert out is not pixels
    assert out.shape == pixels.shape
    assert out.dtype == np.uint8
    np.testing.assert_array_equal(pixels, snapshot)
    np.testing.assert_array_equal(out[..., 3], snapshot[..., 3])
