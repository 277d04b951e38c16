import numpy as np
import pytest

from burnscan.services.blob_analyzer import blob_analyzer


def test_empty_mask():
    mask = np.zeros((128, 128), dtype=bool)
    assert blob_analyzer.largest_component(mask, 128, 128) == 0.0


def test_two_disjoint_squares_count_once():
    mask = np.zeros((128, 128), dtype=bool)
    mask[10:26, 10:26] = True
    mask[80:96, 80:96] = True
    # Largest component is one square, not the sum
    assert blob_analyzer.largest_component(mask, 128, 128) == pytest.approx(256 / 16384)


def test_picks_the_larger_region():
    mask = np.zeros((64, 64), dtype=bool)
    mask[0:4, 0:4] = True
    mask[30:40, 30:40] = True
    assert blob_analyzer.largest_component(mask, 64, 64) == pytest.approx(100 / 4096)


def test_diagonal_neighbors_are_not_connected():
    mask = np.zeros((8, 8), dtype=bool)
    mask[0, 0] = True
    mask[1, 1] = True
    mask[2, 2] = True
    assert blob_analyzer.largest_component(mask, 8, 8) == pytest.approx(1 / 64)


def test_non_convex_region_is_one_component():
    # U shape: two columns joined by a bottom row
    mask = np.zeros((10, 10), dtype=bool)
    mask[0:10, 0] = True
    mask[0:10, 9] = True
    mask[9, 0:10] = True
    assert blob_analyzer.largest_component(mask, 10, 10) == pytest.approx(28 / 100)


def test_full_mask():
    mask = np.ones((16, 32), dtype=bool)
    assert blob_analyzer.largest_component(mask, 32, 16) == 1.0
