"""Image loading and preprocessing: fit, recolor and outline.

Image buffers are numpy ``uint8`` arrays of shape ``(height, width, 4)``.
The alpha channel doubles as the draw mask: only pixels with an alpha above
``ALPHA_THRESHOLD`` are solid and ever sent to the server.
"""

import io
import logging
import os
import random
from enum import Enum
from typing import Tuple
from urllib.parse import urlparse

import numpy as np
import requests
from PIL import Image

from .config import DEFAULT_IMAGE_PATH
from .errors import AssetError

logger = logging.getLogger(__name__)

ALPHA_THRESHOLD = 240
OUTLINE_COLOR = (0, 0, 0)


class PixelState(Enum):
    SOLID = "solid"
    TRANSPARENT = "transparent"
    OUT_OF_RANGE = "out_of_range"


def load_image(source: str, timeout: float = 10.0) -> Image.Image:
    """Decode an image file, SVG file or http(s) URL into an RGBA image."""
    if not source:
        source = DEFAULT_IMAGE_PATH

    if source.startswith(("http://", "https://")):
        data = _download(source, timeout)
        name = urlparse(source).path
    else:
        if not os.path.exists(source):
            raise AssetError(f"Image file not found: {source}")
        if os.path.getsize(source) == 0:
            raise AssetError(f"Image file is empty: {source}")
        with open(source, "rb") as f:
            data = f.read()
        name = source

    if name.lower().endswith(".svg"):
        data = _render_svg(data, source)

    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (OSError, Image.DecompressionBombError) as e:
        raise AssetError(f"Could not decode image {source}: {e}") from e

    logger.info("Image loaded: %dx%d, mode: %s", img.width, img.height, img.mode)
    return img.convert("RGBA")


def _download(url: str, timeout: float) -> bytes:
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise AssetError(f"Could not download image {url}: {e}") from e
    return response.content


def _render_svg(data: bytes, source: str) -> bytes:
    """Rasterize an SVG document to PNG bytes at its natural size."""
    try:
        import cairosvg
    except (ImportError, OSError) as e:
        raise AssetError(f"SVG support requires cairosvg and the cairo library: {e}") from e

    try:
        return cairosvg.svg2png(bytestring=data)
    except Exception as e:
        raise AssetError(f"Could not render SVG {source}: {e}") from e


def fit_dimensions(width: int, height: int, size: int) -> Tuple[int, int]:
    """Largest dimensions with the same aspect ratio that fit a size x size box."""
    fit_scale = min(size / width, size / height)
    return max(1, round(width * fit_scale)), max(1, round(height * fit_scale))


def fit_image(img: Image.Image, size: int) -> np.ndarray:
    """Resize an image into a square bounding box and return it as an RGBA buffer."""
    if img.mode != "RGBA":
        img = img.convert("RGBA")

    new_width, new_height = fit_dimensions(img.width, img.height, size)
    if (new_width, new_height) != img.size:
        img = img.resize((new_width, new_height), Image.BOX)
        logger.info("Resized image to: %dx%d", new_width, new_height)

    return np.array(img, dtype=np.uint8)


def solid_mask(image: np.ndarray) -> np.ndarray:
    return image[:, :, 3] > ALPHA_THRESHOLD


def pixel_state(image: np.ndarray, x: int, y: int) -> PixelState:
    """Bounds-checked pixel lookup."""
    height, width = image.shape[:2]
    if not (0 <= x < width and 0 <= y < height):
        return PixelState.OUT_OF_RANGE
    if image[y, x, 3] > ALPHA_THRESHOLD:
        return PixelState.SOLID
    return PixelState.TRANSPARENT


def is_transparent(image: np.ndarray, x: int, y: int) -> bool:
    # Anything outside the buffer counts as transparent, so the outline also
    # runs along the image's own edges.
    return pixel_state(image, x, y) is not PixelState.SOLID


def recolor(image: np.ndarray, rng: random.Random) -> Tuple[int, int, int]:
    """Paint every solid pixel with one random color, leaving holes untouched."""
    color = (rng.randint(0, 255), rng.randint(0, 255), rng.randint(0, 255))
    logger.info("Changing colors to [%d, %d, %d]", *color)
    image[solid_mask(image), :3] = color
    return color


def outline_reach(width: int) -> int:
    """Neighbor distance inspected by :func:`outline` for a stroke width.

    Offsets ``0..width`` are evaluated in turn and each result replaces the
    previous one, so only the last offset, ``width - 1``, decides.
    """
    return max(width - 1, 0)


def _shifted(mask: np.ndarray, dx: int, dy: int, fill: bool) -> np.ndarray:
    """``result[y, x] == mask[y + dy, x + dx]``, or ``fill`` outside the mask."""
    height, width = mask.shape
    pad = max(abs(dx), abs(dy))
    padded = np.pad(mask, pad, mode="constant", constant_values=fill)
    return padded[pad + dy:pad + dy + height, pad + dx:pad + dx + width]


def outline(image: np.ndarray, width: int) -> int:
    """Blacken solid pixels whose axis neighbors at the outline reach are transparent.

    Returns the number of pixels that were blackened.
    """
    if width <= 0:
        return 0

    reach = outline_reach(width)
    solid = solid_mask(image)
    transparent = ~solid

    edge = (
        _shifted(transparent, -reach, 0, True)
        | _shifted(transparent, reach, 0, True)
        | _shifted(transparent, 0, -reach, True)
        | _shifted(transparent, 0, reach, True)
    )
    stroke = solid & edge
    image[stroke, :3] = OUTLINE_COLOR
    return int(np.count_nonzero(stroke))
