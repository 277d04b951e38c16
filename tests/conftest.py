import io
import os
import sys

# Ensure project root is in path
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, PROJECT_ROOT)

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from burnscan.burn_data import CANONICAL_BURN_LABELS
from burnscan.main import app

# Gray is never skin (Cr=128)
GRAY = (128, 128, 128)


@pytest.fixture
def client():
    """
    Test client for the FastAPI app.
    """
    return TestClient(app)


@pytest.fixture
def solid_image():
    """Factory: H x W x 3 uint8 buffer filled with one color."""
    def _make(color=GRAY, width=128, height=128):
        pixels = np.zeros((height, width, 3), dtype=np.uint8)
        pixels[:, :] = color
        return pixels
    return _make


@pytest.fixture
def png_bytes():
    """Factory: encodes a pixel buffer as PNG bytes."""
    def _encode(pixels):
        buf = io.BytesIO()
        Image.fromarray(pixels).save(buf, format="PNG")
        return buf.getvalue()
    return _encode


@pytest.fixture
def canonical_labels():
    return list(CANONICAL_BURN_LABELS)
