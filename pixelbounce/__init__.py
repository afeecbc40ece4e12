"""
Pixelflut Bounce Client
Streams an image onto a Pixelflut canvas and bounces it around like a screensaver.
"""

from .canvas import Canvas, negotiate_canvas_size, query_canvas_size
from .config import DrawOptions
from .engine import DrawEngine, EngineState
from .errors import (
    AssetError,
    ConfigError,
    ConnectError,
    PixelbounceError,
    ProtocolError,
    RuntimeIOError,
)

__version__ = "0.1.0"

__all__ = [
    "AssetError",
    "Canvas",
    "ConfigError",
    "ConnectError",
    "DrawEngine",
    "DrawOptions",
    "EngineState",
    "PixelbounceError",
    "ProtocolError",
    "RuntimeIOError",
    "negotiate_canvas_size",
    "query_canvas_size",
]
