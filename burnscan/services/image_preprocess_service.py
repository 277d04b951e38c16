import io
import logging
from typing import Sequence, Tuple, Union

import numpy as np
from PIL import Image

from burnscan.config import MODEL_IMAGE_SIZE
from burnscan.exceptions import InvalidInput

logger = logging.getLogger(__name__)

PixelSource = Union[bytes, Image.Image, np.ndarray]


class ImagePreprocessService:
    """
    Turns caller input into read-only RGB pixel buffers and derives the
    scaled, cropped and mirrored copies the engine works on.

    A pixel buffer is an H x W x 3 uint8 numpy array. The caller's buffer is
    never written to; every helper returns a new array.
    """

    def to_pixel_array(self, source: PixelSource) -> np.ndarray:
        """Validates/decodes the input and returns a read-only RGB array."""
        if source is None:
            raise InvalidInput("No image provided")

        if isinstance(source, (bytes, bytearray)):
            if not source:
                raise InvalidInput("Image content is empty")
            try:
                with Image.open(io.BytesIO(source)) as img:
                    pixels = np.array(img.convert("RGB"))
            except Exception as e:
                # Pillow reports corrupt data as OSError, ValueError, SyntaxError or DecompressionBombError
                raise InvalidInput(f"Image decode failed: {e}") from e
        elif isinstance(source, Image.Image):
            try:
                pixels = np.array(source.convert("RGB"))
            except Exception as e:
                raise InvalidInput(f"Image decode failed: {e}") from e
        elif isinstance(source, np.ndarray):
            pixels = source.view()
        else:
            raise InvalidInput(f"Unsupported image type: {type(source).__name__}")

        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise InvalidInput(f"Expected an H x W x 3 RGB buffer, got shape {pixels.shape}")
        if pixels.dtype != np.uint8:
            raise InvalidInput(f"Expected 8-bit channels, got {pixels.dtype}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise InvalidInput("Image has no pixels")

        pixels.setflags(write=False)
        return pixels

    def resize(self, pixels: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
        """Bilinear resize to size=(width, height). Same-size input is copied."""
        if (pixels.shape[1], pixels.shape[0]) == tuple(size):
            return pixels.copy()
        image = Image.fromarray(pixels)
        return np.array(image.resize(tuple(size), Image.Resampling.BILINEAR))

    def center_crop_and_resize(self, pixels: np.ndarray, size: Tuple[int, int] = MODEL_IMAGE_SIZE) -> np.ndarray:
        """
        Crops the largest centered square and resizes it to the model input.
        """
        height, width = pixels.shape[:2]
        side = min(width, height)
        left = (width - side) // 2
        top = (height - side) // 2
        square = pixels[top:top + side, left:left + side]
        return self.resize(np.ascontiguousarray(square), size)

    def mirror(self, pixels: np.ndarray) -> np.ndarray:
        """Horizontal flip."""
        return np.ascontiguousarray(pixels[:, ::-1, :])

    def to_input_tensor(self, pixels: np.ndarray, mean: Sequence[float], std: Sequence[float]) -> np.ndarray:
        """
        Converts an RGB view into a 1 x 3 x H x W float32 tensor,
        (pixel / 255 - mean) / std per channel.
        """
        scaled = pixels.astype(np.float32) / 255.0
        normalized = (scaled - np.asarray(mean, dtype=np.float32)) / np.asarray(std, dtype=np.float32)
        return np.ascontiguousarray(normalized.transpose(2, 0, 1)[np.newaxis, ...])


image_preprocess_service = ImagePreprocessService()
