"""Command line interface for the Pixelflut bounce client."""

import argparse
import logging
import os
import sys

from . import config
from .config import DrawOptions
from .engine import DrawEngine
from .errors import PixelbounceError

logger = logging.getLogger("pixelbounce")

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
LOG_LEVEL_ENV = "PIXELBOUNCE_LOG_LEVEL"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pixelbounce",
        description="Bounce an image around a Pixelflut canvas like a screensaver",
    )
    parser.add_argument('-H', '--host', required=True, help='Pixelflut server hostname or IP')
    parser.add_argument('-p', '--port', type=int, default=config.DEFAULT_PORT,
                        help=f'Pixelflut server port (default: {config.DEFAULT_PORT})')
    parser.add_argument('--image-path', default=config.DEFAULT_IMAGE_PATH,
                        help=f'Image file, SVG file or URL to draw (default: {config.DEFAULT_IMAGE_PATH})')
    parser.add_argument('--resize', type=int, default=config.DEFAULT_RESIZE,
                        help=f'Fit the image into a square of this size (default: {config.DEFAULT_RESIZE})')
    parser.add_argument('--drift-x', type=int, default=config.DEFAULT_DRIFT[0],
                        help=f'Horizontal drift per frame (default: {config.DEFAULT_DRIFT[0]})')
    parser.add_argument('--drift-y', type=int, default=config.DEFAULT_DRIFT[1],
                        help=f'Vertical drift per frame (default: {config.DEFAULT_DRIFT[1]})')
    parser.add_argument('--draw-rate', type=float, default=config.DEFAULT_DRAW_RATE,
                        help=f'Frames per second (default: {config.DEFAULT_DRAW_RATE})')
    parser.add_argument('--stroke', type=int, default=config.DEFAULT_STROKE,
                        help=f'Outline width, 0 disables the outline (default: {config.DEFAULT_STROKE})')
    parser.add_argument('--jitter', action='store_true', help='Randomly speed up drift on bounces')
    parser.add_argument('-c', '--connections', type=int,
                        help='Number of server connections (default: same as --resize)')
    parser.add_argument('--fields', type=int, default=config.DEFAULT_FIELDS,
                        help=f'Subsample divisor cycle length (default: {config.DEFAULT_FIELDS})')
    parser.add_argument('--timeout', type=float, default=config.DEFAULT_TIMEOUT,
                        help=f'Socket timeout in seconds (default: {config.DEFAULT_TIMEOUT:g})')
    parser.add_argument('--seed', type=int, help='Seed for colors, jitter and start position')
    parser.add_argument('--log-level', default=os.environ.get(LOG_LEVEL_ENV, 'INFO'),
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        type=str.upper, help='Log level (default: INFO)')
    return parser


def options_from_args(args: argparse.Namespace) -> DrawOptions:
    return DrawOptions(
        host=args.host,
        port=args.port,
        resize=args.resize,
        drift_x=args.drift_x,
        drift_y=args.drift_y,
        image_path=args.image_path,
        draw_rate=args.draw_rate,
        stroke=args.stroke,
        jitter=args.jitter,
        connections=args.connections,
        fields=args.fields,
        timeout=args.timeout,
        seed=args.seed,
    )


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format=LOG_FORMAT)

    engine = None
    try:
        engine = DrawEngine.from_options(options_from_args(args))
        engine.run()
    except PixelbounceError as e:
        logger.error("Error: %s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, closing connections")
        sys.exit(130)
    finally:
        if engine is not None:
            engine.close()


if __name__ == "__main__":
    main()
