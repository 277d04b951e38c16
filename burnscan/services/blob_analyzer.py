import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class BlobAnalyzer:
    def largest_component(self, mask: np.ndarray, width: int, height: int) -> float:
        """
        Size of the largest 4-connected True region, as a fraction of all
        width * height pixels. Only the maximum matters, so the labeling
        order is irrelevant.
        """
        total = width * height
        if total <= 0:
            return 0.0

        grid = np.asarray(mask, dtype=bool).reshape(height, width)
        if not grid.any():
            return 0.0

        num_labels, _, stats, _ = cv2.connectedComponentsWithStats(
            grid.astype(np.uint8), connectivity=4
        )
        # Label 0 is the background
        largest = int(stats[1:num_labels, cv2.CC_STAT_AREA].max())
        return largest / total


blob_analyzer = BlobAnalyzer()
