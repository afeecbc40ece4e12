"""Subsampled pixel dispatch over a connection pool."""

import logging
from typing import List, Tuple

import numpy as np

from .canvas import Canvas
from .image import solid_mask
from .pool import ConnectionPool

logger = logging.getLogger(__name__)

BATCH_SIZE = 20000


class FieldCounter:
    """Subsample divisor cycling through ``1 .. fields - 1``."""

    def __init__(self, fields: int):
        self.fields = fields
        self.value = 1

    def advance(self) -> int:
        self.value += 1
        if self.value >= self.fields:
            self.value = 1
        return self.value


def encode_pixel(x: int, y: int, r: int, g: int, b: int) -> str:
    return f"PX {x} {y} {r:02X}{g:02X}{b:02X}\n"


def visible_pixels(image: np.ndarray, canvas: Canvas, offset: Tuple[int, int],
                   field: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Canvas coordinates and colors of the pixels one pass should draw.

    Pixels come back in row-major image order. Holes, pixels whose canvas
    coordinates are not both multiples of ``field`` and pixels off the canvas
    are dropped.
    """
    ys, xs = np.nonzero(solid_mask(image))
    colors = image[ys, xs, :3]

    x = xs.astype(np.int64) + offset[0]
    y = ys.astype(np.int64) + offset[1]
    keep = (
        (x % field == 0) & (y % field == 0)
        & (x >= 0) & (y >= 0)
        & (x <= canvas.width) & (y <= canvas.height)
    )
    return x[keep], y[keep], colors[keep]


def build_commands(pool: ConnectionPool, image: np.ndarray, canvas: Canvas,
                   offset: Tuple[int, int], field: int) -> List[List[str]]:
    """Encode one pass and assign every command to a connection round-robin."""
    buckets = [[] for _ in range(len(pool))]
    xs, ys, colors = visible_pixels(image, canvas, offset, field)
    for x, y, (r, g, b) in zip(xs.tolist(), ys.tolist(), colors.tolist()):
        buckets[pool.next_index()].append(encode_pixel(x, y, r, g, b))
    return buckets


def dispatch_pass(pool: ConnectionPool, image: np.ndarray, canvas: Canvas,
                  offset: Tuple[int, int], field: int) -> int:
    """Draw one subsampled pass of the image. Returns the number of commands sent.

    Raises RuntimeIOError on the first failed write.
    """
    buckets = build_commands(pool, image, canvas, offset, field)
    sent = 0
    for index, commands in enumerate(buckets):
        for i in range(0, len(commands), BATCH_SIZE):
            batch = commands[i:i + BATCH_SIZE]
            pool.send(index, "".join(batch).encode())
            sent += len(batch)
    return sent
