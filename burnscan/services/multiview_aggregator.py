import logging
from dataclasses import dataclass
from typing import Callable, List, Sequence

import numpy as np

from burnscan.burn_data import NORMALIZATION_SCHEMES
from burnscan.exceptions import InferenceFailure
from burnscan.services.image_preprocess_service import image_preprocess_service
from burnscan.services.statistical_gate import statistical_gate

logger = logging.getLogger(__name__)

# forward_pass(tensor, mean, std) -> logits
# tensor is 1 x 3 x H x W float32, already normalized with mean/std; the
# scheme is passed along for collaborators that key on it.
ForwardPass = Callable[[np.ndarray, Sequence[float], Sequence[float]], Sequence[float]]


@dataclass(frozen=True)
class MultiViewResult:
    canonical: np.ndarray
    orig: np.ndarray
    flip: np.ndarray
    scheme_index: int
    scheme_name: str
    candidates: List[np.ndarray]


class MultiViewAggregator:
    """
    Test-time augmentation over two views (original, horizontal mirror) and
    three normalization schemes.

    Per scheme the orig/flip distributions are averaged; the scheme whose
    average has the highest peak becomes the canonical distribution. The
    un-averaged pair for that scheme is kept for the consistency check.
    """

    def __init__(self, schemes=NORMALIZATION_SCHEMES):
        self.schemes = list(schemes)

    def _probs(self, forward_pass: ForwardPass, view: np.ndarray, mean, std, num_classes: int) -> np.ndarray:
        tensor = image_preprocess_service.to_input_tensor(view, mean, std)
        try:
            raw = forward_pass(tensor, mean, std)
        except Exception as e:
            raise InferenceFailure(f"Forward pass failed: {e}") from e

        try:
            logits = np.asarray(raw, dtype=np.float64).reshape(-1)
        except (TypeError, ValueError) as e:
            raise InferenceFailure(f"Forward pass returned non-numeric logits: {e}") from e

        if logits.shape[0] != num_classes:
            raise InferenceFailure(f"Expected {num_classes} logits, got {logits.shape[0]}")
        if not np.all(np.isfinite(logits)):
            raise InferenceFailure("Forward pass returned non-finite logits")
        return statistical_gate.softmax(logits)

    def aggregate(self, view: np.ndarray, forward_pass: ForwardPass, num_classes: int) -> MultiViewResult:
        """
        view is the center-cropped model input (H x W x 3 uint8).
        """
        flipped = image_preprocess_service.mirror(view)

        probs_orig = [self._probs(forward_pass, view, mean, std, num_classes) for _, mean, std in self.schemes]
        probs_flip = [self._probs(forward_pass, flipped, mean, std, num_classes) for _, mean, std in self.schemes]

        candidates = []
        for orig, flip in zip(probs_orig, probs_flip):
            averaged = 0.5 * (orig + flip)
            averaged.setflags(write=False)
            candidates.append(averaged)

        # max() keeps the first candidate on ties
        picked = max(range(len(candidates)), key=lambda i: float(candidates[i].max()))
        logger.debug(
            f"Scheme peaks: {[round(float(c.max()), 4) for c in candidates]} -> picked {self.schemes[picked][0]}"
        )

        return MultiViewResult(
            canonical=candidates[picked],
            orig=probs_orig[picked],
            flip=probs_flip[picked],
            scheme_index=picked,
            scheme_name=self.schemes[picked][0],
            candidates=candidates,
        )


multiview_aggregator = MultiViewAggregator()
