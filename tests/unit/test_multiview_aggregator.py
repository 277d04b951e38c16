import math

import numpy as np
import pytest

from burnscan.burn_data import NORMALIZATION_SCHEMES
from burnscan.exceptions import InferenceFailure
from burnscan.services.multiview_aggregator import multiview_aggregator
from burnscan.services.statistical_gate import statistical_gate


def _view():
    # Left half red, right half blue, so the mirror differs from the original
    pixels = np.zeros((32, 32, 3), dtype=np.uint8)
    pixels[:, :16] = (200, 0, 0)
    pixels[:, 16:] = (0, 0, 200)
    return pixels


class RecordingForwardPass:
    """Returns logits from a table keyed by (scheme mean, mirrored?)."""

    def __init__(self, table):
        self.table = table
        self.calls = []

    def __call__(self, tensor, mean, std):
        # Red channel mean over the left half is higher on the original view
        left = tensor[0, 0, :, :16].mean()
        right = tensor[0, 0, :, 16:].mean()
        mirrored = bool(right > left)
        self.calls.append((tuple(mean), mirrored, tensor.shape))
        return self.table[(tuple(mean), mirrored)]


def _table(orig_by_scheme, flip_by_scheme):
    table = {}
    for (_, mean, _), orig, flip in zip(NORMALIZATION_SCHEMES, orig_by_scheme, flip_by_scheme):
        table[(tuple(mean), False)] = orig
        table[(tuple(mean), True)] = flip
    return table


def test_runs_six_forward_passes():
    fake = RecordingForwardPass(_table([[1, 0, 0]] * 3, [[1, 0, 0]] * 3))
    multiview_aggregator.aggregate(_view(), fake, 3)
    assert len(fake.calls) == 6
    assert sum(1 for _, mirrored, _ in fake.calls if mirrored) == 3
    assert all(shape == (1, 3, 32, 32) for _, _, shape in fake.calls)


def test_picks_scheme_with_highest_peak():
    fake = RecordingForwardPass(_table(
        [[0, 0, 0], [3, 0, 0], [1, 0, 0]],
        [[0, 0, 0], [3, 0, 0], [1, 0, 0]],
    ))
    result = multiview_aggregator.aggregate(_view(), fake, 3)
    assert result.scheme_index == 1
    assert result.scheme_name == "identity"
    assert np.allclose(result.canonical, statistical_gate.softmax([3, 0, 0]))
    assert len(result.candidates) == 3


def test_canonical_is_average_of_views():
    fake = RecordingForwardPass(_table(
        [[0, 0, 0], [0, 0, 0], [2, 0, 0]],
        [[0, 0, 0], [0, 0, 0], [0, 2, 0]],
    ))
    result = multiview_aggregator.aggregate(_view(), fake, 3)
    orig = statistical_gate.softmax([2, 0, 0])
    flip = statistical_gate.softmax([0, 2, 0])
    assert result.scheme_index == 2
    assert np.allclose(result.orig, orig)
    assert np.allclose(result.flip, flip)
    assert np.allclose(result.canonical, 0.5 * (orig + flip))
    assert result.canonical.sum() == pytest.approx(1.0)


def test_tie_keeps_first_scheme():
    fake = RecordingForwardPass(_table([[2, 1, 0]] * 3, [[2, 1, 0]] * 3))
    result = multiview_aggregator.aggregate(_view(), fake, 3)
    assert result.scheme_index == 0
    assert result.scheme_name == "imagenet"


def test_wrong_logit_count_is_inference_failure():
    with pytest.raises(InferenceFailure):
        multiview_aggregator.aggregate(_view(), lambda t, m, s: [0.1, 0.2], 3)


def test_nan_logits_are_inference_failure():
    with pytest.raises(InferenceFailure):
        multiview_aggregator.aggregate(_view(), lambda t, m, s: [0.1, math.nan, 0.2], 3)


def test_forward_exception_is_wrapped():
    def broken(tensor, mean, std):
        raise RuntimeError("device lost")

    with pytest.raises(InferenceFailure) as exc_info:
        multiview_aggregator.aggregate(_view(), broken, 3)
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_accepts_batched_logits():
    # Models usually return 1 x n_classes
    result = multiview_aggregator.aggregate(_view(), lambda t, m, s: np.array([[4.0, 0.0, 0.0]]), 3)
    assert result.canonical.shape == (3,)
    assert result.canonical.argmax() == 0
