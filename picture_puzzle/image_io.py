"""Decoding and encoding of puzzle images.

The engine works on decoded numpy arrays only. These helpers sit on the
adapter side: they turn files or raw bytes into RGBA arrays and turn
composites back into PNG data.
"""

import logging
from io import BytesIO
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import InvalidImage

logger = logging.getLogger(__name__)


def resize_image(img: Image.Image, resize_to: int | tuple[int, int]) -> Image.Image:
    """
    Resize a PIL image.

    Args:
        img: PIL Image to resize
        resize_to: Either an int, so the shorter side equals this value
            (aspect ratio kept), or an exact (width, height) tuple

    Returns:
        Resized PIL Image
    """
    if isinstance(resize_to, int):
        w, h = img.size
        if w < h:
            new_w = resize_to
            new_h = int(h * (resize_to / w))
        else:
            new_h = resize_to
            new_w = int(w * (resize_to / h))
        return img.resize((new_w, new_h), Image.Resampling.LANCZOS)
    return img.resize(resize_to, Image.Resampling.LANCZOS)


def _to_rgba_array(img: Image.Image, resize_to: Optional[int | tuple[int, int]]) -> np.ndarray:
    img = img.convert("RGBA")
    if resize_to is not None:
        img = resize_image(img, resize_to)
    return np.array(img)


def load_image(
    path: str | Path,
    resize_to: Optional[int | tuple[int, int]] = None,
) -> np.ndarray:
    """
    Load an image file as an RGBA array.

    Raises:
        InvalidImage: If the file is missing or not a readable image
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            array = _to_rgba_array(img, resize_to)
    except (OSError, UnidentifiedImageError) as e:
        raise InvalidImage(f"Failed to load image '{path}': {e}") from e

    logger.debug(f"Loaded {path} as {array.shape[1]}x{array.shape[0]}")
    return array


def decode_image(
    data: bytes,
    resize_to: Optional[int | tuple[int, int]] = None,
) -> np.ndarray:
    """Decode compressed image bytes (PNG, JPEG, ...) into an RGBA array."""
    try:
        with Image.open(BytesIO(data)) as img:
            return _to_rgba_array(img, resize_to)
    except (OSError, UnidentifiedImageError) as e:
        raise InvalidImage(f"Failed to decode image: {e}") from e


def encode_png(image: np.ndarray) -> bytes:
    """Encode an image array as PNG bytes."""
    buffer = BytesIO()
    Image.fromarray(image).save(buffer, format="PNG")
    return buffer.getvalue()


def save_image(image: np.ndarray, path: str | Path) -> Path:
    """Save an image array to disk, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(image).save(path)
    return path
