import numpy as np
import pytest

from burnscan.services.color_gate import ColorGate, color_gate

# Cb=111 Cr=164, red
RED_SKIN = (180, 110, 100)
# Cb=113 Cr=137, R leads G by only 15
PLAIN_SKIN = (190, 175, 150)
GRAY = (128, 128, 128)


def test_all_gray_has_no_red_on_skin(solid_image):
    # Every gray level, one per row: R == G == B can never be red
    pixels = solid_image(GRAY)
    pixels[:, :] = np.arange(128, dtype=np.uint8)[:, None, None] * 2
    skin, red_on_skin, mask = color_gate.analyze(pixels)
    assert red_on_skin == 0.0
    assert not mask.any()
    assert skin == 0.0


def test_no_skin_gives_zero_not_nan(solid_image):
    skin, red_on_skin, _ = color_gate.analyze(solid_image((0, 0, 255)))
    assert skin == 0.0
    assert red_on_skin == 0.0


def test_single_red_square():
    # 16x16 red-on-skin square on a gray 128x128 background
    pixels = np.full((128, 128, 3), GRAY, dtype=np.uint8)
    pixels[40:56, 60:76] = RED_SKIN

    features = color_gate.color_features(pixels)
    assert features.skin_fraction == pytest.approx(256 / 16384)
    assert features.skin_fraction == pytest.approx(0.0156, abs=1e-4)
    assert features.red_on_skin_fraction == 1.0
    assert features.largest_blob_fraction == pytest.approx(256 / 16384)


def test_plain_skin_is_skin_but_not_red(solid_image):
    skin, red_on_skin, mask = color_gate.analyze(solid_image(PLAIN_SKIN))
    assert skin == 1.0
    assert red_on_skin == 0.0
    assert not mask.any()


def test_red_fraction_is_relative_to_skin():
    # Left half plain skin, a quarter red skin, the rest gray
    pixels = np.full((128, 128, 3), GRAY, dtype=np.uint8)
    pixels[:, :64] = PLAIN_SKIN
    pixels[:, 64:96] = RED_SKIN

    skin, red_on_skin, mask = color_gate.analyze(pixels)
    assert skin == pytest.approx(0.75)
    assert red_on_skin == pytest.approx(1 / 3)
    assert mask.sum() == 128 * 32


def test_large_input_is_downsampled():
    pixels = np.full((512, 512, 3), GRAY, dtype=np.uint8)
    pixels[256:320, 256:320] = RED_SKIN

    skin, red_on_skin, mask = color_gate.analyze(pixels)
    assert mask.shape == (128, 128)
    assert red_on_skin > 0.9
    features = color_gate.color_features(pixels)
    # 64x64 shrinks to ~16x16; bilinear edges may add a ring
    assert 0.012 < features.largest_blob_fraction < 0.022


def test_caller_buffer_untouched(solid_image):
    pixels = solid_image(RED_SKIN, width=300, height=200)
    before = pixels.copy()
    ColorGate().color_features(pixels)
    assert np.array_equal(pixels, before)
    assert pixels.flags.writeable
