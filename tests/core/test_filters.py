"""Tests for the pixel filters dispatched by ``apply_filter``."""

import numpy as np
import pytest

from iScan.core.filters import EdgeColoringParams, FilterKind, TiledExecutor, apply_filter
from iScan.core.pixel_buffer import PixelBuffer
from iScan.errors import FilterApplicationError, InvalidFilterParamsError, InvalidStrengthError


def _uniform(width: int, height: int, rgb: tuple[int, int, int], alpha: int = 255) -> PixelBuffer:
    return PixelBuffer.blank(width, height, (*rgb, alpha))


def _saturated_colours() -> PixelBuffer:
    """Fully saturated, full value colours around the hue circle."""

    ramp = np.arange(0, 256, 5, dtype=np.uint8)
    rows = []
    for order in [(0, 1, 2), (1, 0, 2), (2, 0, 1), (2, 1, 0), (1, 2, 0), (0, 2, 1)]:
        row = np.zeros((len(ramp), 3), dtype=np.uint8)
        row[:, order[0]] = 255
        row[:, order[1]] = ramp
        rows.append(row)
    return PixelBuffer.from_array(np.stack(rows, axis=0))


# ── Binary ────────────────────────────────────────────────────────────────


def test_binary_gray_image_below_threshold_turns_white():
    image = _uniform(4, 4, (128, 128, 128))

    result = apply_filter(image, FilterKind.BINARY, 127)

    assert np.all(result.rgb == 255)


def test_binary_gray_image_at_threshold_turns_black():
    image = _uniform(4, 4, (128, 128, 128))

    result = apply_filter(image, FilterKind.BINARY, 128)

    assert np.all(result.rgb == 0)


def test_binary_is_idempotent(random_buffer):
    once = apply_filter(random_buffer, FilterKind.BINARY, 100)
    twice = apply_filter(once, FilterKind.BINARY, 100)

    assert twice.same_pixels(once)
    assert set(np.unique(once.rgb)) <= {0, 255}


@pytest.mark.parametrize("strength", [-1, 256])
def test_binary_rejects_out_of_range_strength(random_buffer, strength):
    with pytest.raises(InvalidStrengthError):
        apply_filter(random_buffer, FilterKind.BINARY, strength)


@pytest.mark.parametrize("strength", [0, 255])
def test_binary_accepts_domain_edges(random_buffer, strength):
    apply_filter(random_buffer, FilterKind.BINARY, strength)


# ── Strength domains ──────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "kind, strength",
    [
        (FilterKind.CONTRAST, 259),
        (FilterKind.CONTRAST, 501),
        (FilterKind.CONTRAST, -201),
        (FilterKind.MEDIAN, 0),
        (FilterKind.AVERAGING, 21),
        (FilterKind.SHARPEN, 0),
        (FilterKind.HUE_HSV, 256),
        (FilterKind.BRIGHTNESS_HSV, -256),
        (FilterKind.EDGE_COLORING, 2),
    ],
)
def test_invalid_strength_is_rejected(random_buffer, kind, strength):
    with pytest.raises(InvalidStrengthError):
        apply_filter(random_buffer, kind, strength)


def test_non_integer_strength_is_rejected(random_buffer):
    with pytest.raises(InvalidStrengthError):
        apply_filter(random_buffer, FilterKind.BINARY, 12.5)
    with pytest.raises(InvalidStrengthError):
        apply_filter(random_buffer, FilterKind.BINARY, True)


def test_invalid_strength_error_is_a_value_error():
    assert issubclass(InvalidStrengthError, ValueError)


@pytest.mark.parametrize("kind", list(FilterKind))
def test_every_filter_preserves_alpha_and_input(random_buffer, kind):
    before = random_buffer.copy()

    result = apply_filter(random_buffer, kind, kind.default_strength, executor=TiledExecutor(8))

    assert result.pixels.shape == random_buffer.pixels.shape
    assert np.array_equal(result.alpha, random_buffer.alpha)
    assert random_buffer.same_pixels(before)
    assert result.pixels is not random_buffer.pixels


# ── Point filters ─────────────────────────────────────────────────────────


def test_grayscale_uses_weighted_sum_rounded_half_up():
    image = PixelBuffer.from_array(np.array([[[10, 200, 30], [255, 255, 255]]], dtype=np.uint8))

    result = apply_filter(image, FilterKind.GRAYSCALE, 5)

    assert result.pixels[0, 0, :3].tolist() == [124, 124, 124]
    assert result.pixels[0, 1, :3].tolist() == [255, 255, 255]
    assert result.is_monochrome()


def test_contrast_zero_is_identity(random_buffer):
    result = apply_filter(random_buffer, FilterKind.CONTRAST, 0)

    assert result.same_pixels(random_buffer)


def test_contrast_stretches_and_truncates():
    image = PixelBuffer.from_array(np.array([[[200, 100, 128]]], dtype=np.uint8))

    result = apply_filter(image, FilterKind.CONTRAST, 100)

    # factor = 259 * 355 / (255 * 159) ~ 2.2677
    assert result.pixels[0, 0, :3].tolist() == [255, 64, 128]


# ── HSV ───────────────────────────────────────────────────────────────────


@pytest.mark.parametrize("strength", [1, 37, 128, 200, 255, -90])
def test_hue_round_trip_returns_to_original(strength):
    image = _saturated_colours()

    shifted = apply_filter(image, FilterKind.HUE_HSV, strength)
    restored = apply_filter(shifted, FilterKind.HUE_HSV, -strength)

    difference = np.abs(restored.rgb.astype(int) - image.rgb.astype(int))
    assert difference.max() <= 2


def test_hue_full_cycle_is_identity():
    image = _saturated_colours()

    result = apply_filter(image, FilterKind.HUE_HSV, 255)

    assert np.abs(result.rgb.astype(int) - image.rgb.astype(int)).max() <= 1


def test_brightness_minimum_turns_image_black(random_buffer):
    result = apply_filter(random_buffer, FilterKind.BRIGHTNESS_HSV, -255)

    assert np.all(result.rgb == 0)


def test_saturation_minimum_produces_gray_at_value():
    image = PixelBuffer.from_array(np.array([[[200, 100, 50]]], dtype=np.uint8))

    result = apply_filter(image, FilterKind.SATURATION_HSV, -255)

    assert result.pixels[0, 0, :3].tolist() == [200, 200, 200]


# ── Edge colouring ────────────────────────────────────────────────────────


def test_edge_coloring_copies_border(random_buffer):
    result = apply_filter(random_buffer, FilterKind.EDGE_COLORING, 1)

    assert np.array_equal(result.pixels[0], random_buffer.pixels[0])
    assert np.array_equal(result.pixels[-1], random_buffer.pixels[-1])
    assert np.array_equal(result.pixels[:, 0], random_buffer.pixels[:, 0])
    assert np.array_equal(result.pixels[:, -1], random_buffer.pixels[:, -1])


def test_edge_coloring_uniform_interior_is_black():
    image = _uniform(6, 5, (90, 140, 30))

    result = apply_filter(image, FilterKind.EDGE_COLORING, 1)

    assert np.all(result.pixels[1:-1, 1:-1, :3] == 0)


def test_edge_coloring_small_image_is_unchanged_copy():
    image = _uniform(2, 2, (12, 34, 56))

    result = apply_filter(image, FilterKind.EDGE_COLORING, 1)

    assert result.same_pixels(image)
    assert result.pixels is not image.pixels


def test_edge_coloring_paints_step_edge_in_custom_colour():
    pixels = np.zeros((5, 6, 3), dtype=np.uint8)
    pixels[:, 3:] = 255
    image = PixelBuffer.from_array(pixels)

    result = apply_filter(image, FilterKind.EDGE_COLORING, 1, EdgeColoringParams((0, 255, 0)))

    interior = result.pixels[1:-1, :, :3]
    assert np.all(interior[:, 2] == [0, 255, 0])
    assert np.all(interior[:, 3] == [0, 255, 0])
    assert np.all(interior[:, 1] == 0)
    assert np.all(interior[:, 4] == 0)


def test_edge_coloring_defaults_to_red():
    pixels = np.zeros((4, 4, 3), dtype=np.uint8)
    pixels[:, 2:] = 255

    result = apply_filter(PixelBuffer.from_array(pixels), FilterKind.EDGE_COLORING, 1)

    assert result.pixels[1, 1, :3].tolist() == [255, 0, 0]


def test_params_for_wrong_kind_are_rejected(random_buffer):
    with pytest.raises(InvalidFilterParamsError):
        apply_filter(random_buffer, FilterKind.BINARY, 10, EdgeColoringParams())


@pytest.mark.parametrize("color", [(300, 0, 0), (1, 2), ("a", "b", "c")])
def test_edge_colour_must_be_three_bytes(color):
    with pytest.raises(InvalidFilterParamsError):
        EdgeColoringParams(color)


def test_edge_colour_list_is_normalised_to_tuple():
    params = EdgeColoringParams([1, 2, 3])

    assert params.color == (1, 2, 3)
    assert hash(params) == hash(EdgeColoringParams((1, 2, 3)))


def test_edge_coloring_without_resolved_params_fails_cleanly(monkeypatch, random_buffer):
    monkeypatch.setattr("iScan.core.filters.facade.resolve_params", lambda kind, params: None)

    with pytest.raises(FilterApplicationError):
        apply_filter(random_buffer, FilterKind.EDGE_COLORING, 1)


# ── Neighbourhood filters ─────────────────────────────────────────────────


def test_averaging_uses_clipped_window_and_floor_division():
    pixels = np.zeros((3, 3, 3), dtype=np.uint8)
    pixels[1, 1] = 90
    image = PixelBuffer.from_array(pixels)

    result = apply_filter(image, FilterKind.AVERAGING, 1)

    assert result.pixels[1, 1, 0] == 10
    assert result.pixels[0, 0, 0] == 22
    assert result.pixels[0, 1, 0] == 15


def test_averaging_uniform_image_is_unchanged():
    image = _uniform(9, 7, (10, 20, 30))

    result = apply_filter(image, FilterKind.AVERAGING, 4)

    assert result.same_pixels(image)


def test_median_counts_outside_samples_as_black():
    image = _uniform(6, 6, (200, 200, 200))

    result = apply_filter(image, FilterKind.MEDIAN, 3)

    # Corners see five black samples out of nine, edges only three.
    assert result.pixels[0, 0, :3].tolist() == [0, 0, 0]
    assert result.pixels[0, 2, :3].tolist() == [200, 200, 200]
    assert np.all(result.pixels[1:-1, 1:-1, :3] == 200)


def test_median_removes_isolated_speck():
    image = _uniform(7, 7, (50, 50, 50))
    image.pixels[3, 3, :3] = 255

    result = apply_filter(image, FilterKind.MEDIAN, 3)

    assert result.pixels[3, 3, :3].tolist() == [50, 50, 50]


def test_median_strength_one_is_identity(random_buffer):
    result = apply_filter(random_buffer, FilterKind.MEDIAN, 1)

    assert result.same_pixels(random_buffer)


def test_sharpen_keeps_flat_interior_and_amplifies_border():
    image = _uniform(10, 10, (100, 100, 100))

    result = apply_filter(image, FilterKind.SHARPEN, 3)

    assert np.all(result.pixels[1:-1, 1:-1, :3] == 100)
    # The median darkens the corners, so the detail term pushes them up.
    assert result.pixels[0, 0, :3].tolist() == [255, 255, 255]
