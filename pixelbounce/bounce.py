"""Bounce and drift physics for the sprite."""

import logging
import random
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .canvas import Canvas
from .image import outline, recolor

logger = logging.getLogger(__name__)

JITTER_ODDS = 9


@dataclass
class SpriteState:
    """Canvas-space top-left offset of the image and its per-frame drift."""

    x: int
    y: int
    dx: int
    dy: int

    @property
    def offset(self) -> Tuple[int, int]:
        return self.x, self.y

    @property
    def drift(self) -> Tuple[int, int]:
        return self.dx, self.dy

    def advance(self):
        self.x += self.dx
        self.y += self.dy


def random_start_offset(canvas: Canvas, image: np.ndarray, rng: random.Random) -> Tuple[int, int]:
    """Pick a start offset that keeps the image inside the canvas where possible."""
    height, width = image.shape[:2]
    x = rng.randrange(canvas.width - width) if canvas.width > width else 0
    y = rng.randrange(canvas.height - height) if canvas.height > height else 0
    return x, y


def jitter_drift(drift: int, rng: random.Random) -> int:
    """Speed a drift component up by one with a 1 in 9 chance."""
    if rng.randrange(JITTER_ODDS) == 0:
        drift += 1
    return drift


class BounceEngine:
    """Flips drift when the sprite hits a canvas edge and restyles it on every bounce."""

    def __init__(self, canvas: Canvas, rng: random.Random, stroke: int = 4, jitter: bool = False):
        self.canvas = canvas
        self.rng = rng
        self.stroke = stroke
        self.jitter = jitter

    def check_edges(self, sprite: SpriteState, image: np.ndarray) -> bool:
        """Invert the drift of every axis whose edge crossed the canvas border."""
        height, width = image.shape[:2]
        bounce = False

        if sprite.x <= 0 or sprite.x + width > self.canvas.width:
            sprite.dx = -sprite.dx
            bounce = True

        if sprite.y <= 0 or sprite.y + height > self.canvas.height:
            sprite.dy = -sprite.dy
            bounce = True

        return bounce

    def step(self, sprite: SpriteState, image: np.ndarray) -> bool:
        """Run the per-frame edge check, restyling the image on a bounce.

        The offset is left alone; callers advance it once the frame is drawn.
        """
        if not self.check_edges(sprite, image):
            return False

        color = recolor(image, self.rng)
        outline(image, self.stroke)

        if self.jitter:
            sprite.dx = jitter_drift(sprite.dx, self.rng)
            sprite.dy = jitter_drift(sprite.dy, self.rng)

        logger.info("Detected bounce, new color %s", color)
        logger.info("Offset: [%d, %d] - Drift: [%d, %d]", sprite.x, sprite.y, sprite.dx, sprite.dy)
        return True
