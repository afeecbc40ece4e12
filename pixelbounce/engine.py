"""Frame loop tying negotiation, preprocessing, bounce physics and dispatch together."""

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional

import numpy as np

from .bounce import BounceEngine, SpriteState, random_start_offset
from .canvas import Canvas, query_canvas_size
from .config import DrawOptions
from .dispatch import FieldCounter, dispatch_pass
from .errors import ConnectError
from .image import fit_image, load_image, outline, recolor
from .pool import ConnectionPool, create_connection

logger = logging.getLogger(__name__)

STATS_INTERVAL = 1000
SLOW_FRAME_SECONDS = 1.0


@dataclass
class EngineState:
    """All mutable state of a run, owned by the single draw loop."""

    canvas: Canvas
    sprite: SpriteState
    image: np.ndarray
    pool: ConnectionPool
    fields: FieldCounter
    frame: int = 0


class FrameStats(NamedTuple):
    bounced: bool
    passes: int
    commands: int
    elapsed: float


class DrawEngine:
    """Paces draw passes to the frame rate and moves the sprite between frames."""

    def __init__(self, state: EngineState, bounce: BounceEngine, frame_period: float,
                 clock: Callable[[], float] = time.monotonic):
        self.state = state
        self.bounce = bounce
        self.frame_period = frame_period
        self.clock = clock

    @classmethod
    def from_options(cls, options: DrawOptions, rng: Optional[random.Random] = None,
                     clock: Callable[[], float] = time.monotonic,
                     connector: Callable = create_connection) -> "DrawEngine":
        """Run the startup sequence and return an engine ready to draw.

        Raises AssetError, ConnectError or ProtocolError when startup fails.
        """
        options.validate()
        if rng is None:
            rng = random.Random(options.seed)

        logger.info("Connecting to '%s:%d'", options.host, options.port)
        logger.info("Using image from path '%s'", options.image_path)
        source = load_image(options.image_path, timeout=options.timeout)

        canvas = query_canvas_size(options.host, options.port, timeout=options.timeout)
        image = fit_image(source, options.resize)

        x, y = random_start_offset(canvas, image, rng)
        logger.info("Start offset [%d, %d]", x, y)

        pool = ConnectionPool.open(options.host, options.port, options.pool_size,
                                   timeout=options.timeout, connector=connector)
        if not len(pool):
            raise ConnectError("No sockets could be established")

        recolor(image, rng)
        outline(image, options.stroke)

        state = EngineState(
            canvas=canvas,
            sprite=SpriteState(x, y, options.drift_x, options.drift_y),
            image=image,
            pool=pool,
            fields=FieldCounter(options.fields),
        )
        bounce = BounceEngine(canvas, rng, stroke=options.stroke, jitter=options.jitter)
        return cls(state, bounce, options.frame_period, clock=clock)

    def draw_frame(self) -> FrameStats:
        """Draw one animation frame.

        Passes repeat with a fresh field value until the frame period is used
        up; at least one pass always runs.
        """
        state = self.state
        start = self.clock()

        state.frame += 1
        if state.frame % STATS_INTERVAL == 0:
            logger.info("Offset: [%d, %d] - Drift: [%d, %d]", *state.sprite.offset, *state.sprite.drift)

        bounced = self.bounce.step(state.sprite, state.image)

        passes = commands = 0
        elapsed = 0.0
        while elapsed < self.frame_period:
            commands += dispatch_pass(state.pool, state.image, state.canvas,
                                      state.sprite.offset, state.fields.value)
            state.fields.advance()
            passes += 1
            elapsed = self.clock() - start

        state.sprite.advance()

        if elapsed > SLOW_FRAME_SECONDS:
            logger.warning("Slow drawing (%.2fs)", elapsed)

        return FrameStats(bounced, passes, commands, elapsed)

    def run(self, max_frames: Optional[int] = None) -> int:
        """Draw frames until an error is raised or ``max_frames`` have been drawn."""
        frames = 0
        while max_frames is None or frames < max_frames:
            self.draw_frame()
            frames += 1
        return frames

    def close(self):
        self.state.pool.close()
