import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from burnscan.config import ANALYSIS_SIZE
from burnscan.services.blob_analyzer import blob_analyzer
from burnscan.services.image_preprocess_service import image_preprocess_service

logger = logging.getLogger(__name__)

# YCbCr skin box (inclusive)
CR_RANGE = (133, 173)
CB_RANGE = (77, 127)

# Redness among skin pixels: R must lead G and B by this much and exceed RED_FLOOR
RED_LEAD = 18
RED_FLOOR = 90


@dataclass(frozen=True)
class ColorFeatures:
    skin_fraction: float
    red_on_skin_fraction: float
    largest_blob_fraction: float


class ColorGate:
    """
    Heuristic "does this look like inflamed skin" evidence.

    Works on a fixed analysis grid so that thresholds mean the same thing for
    any input resolution. The output is only ever used to reject images,
    never to pick a severity.
    """

    def __init__(self, analysis_size: Tuple[int, int] = ANALYSIS_SIZE):
        self.analysis_size = tuple(analysis_size)

    def analyze(self, pixels: np.ndarray) -> Tuple[float, float, np.ndarray]:
        """
        Returns (skin_fraction, red_on_skin_fraction, mask) where mask marks
        red-on-skin pixels of the analysis grid.
        """
        grid = image_preprocess_service.resize(pixels, self.analysis_size).astype(np.int32)
        r, g, b = grid[..., 0], grid[..., 1], grid[..., 2]

        # BT.601, each component truncated toward zero like an int cast
        y = np.trunc(0.299 * r + 0.587 * g + 0.114 * b)
        cb = np.trunc((b - y) * 0.564 + 128)
        cr = np.trunc((r - y) * 0.713 + 128)

        skin = (cr >= CR_RANGE[0]) & (cr <= CR_RANGE[1]) & (cb >= CB_RANGE[0]) & (cb <= CB_RANGE[1])
        red = (r > g + RED_LEAD) & (r > b + RED_LEAD) & (r > RED_FLOOR)
        mask = skin & red

        total = mask.size
        skin_count = int(skin.sum())
        red_on_skin_count = int(mask.sum())

        skin_fraction = skin_count / total if total > 0 else 0.0
        red_on_skin_fraction = red_on_skin_count / skin_count if skin_count > 0 else 0.0
        return skin_fraction, red_on_skin_fraction, mask

    def color_features(self, pixels: np.ndarray) -> ColorFeatures:
        skin_fraction, red_on_skin_fraction, mask = self.analyze(pixels)
        height, width = mask.shape
        blob_fraction = blob_analyzer.largest_component(mask, width, height)
        logger.debug(
            f"Color gate: skin={skin_fraction:.3f} redOnSkin={red_on_skin_fraction:.3f} blob={blob_fraction:.3f}"
        )
        return ColorFeatures(
            skin_fraction=skin_fraction,
            red_on_skin_fraction=red_on_skin_fraction,
            largest_blob_fraction=blob_fraction,
        )


color_gate = ColorGate()
