"""Draw options consumed by the engine."""

from dataclasses import dataclass
from typing import Optional

from .errors import ConfigError

DEFAULT_PORT = 1337
DEFAULT_RESIZE = 350
DEFAULT_DRIFT = (12, 9)
DEFAULT_IMAGE_PATH = "assets/image.png"
DEFAULT_DRAW_RATE = 60
DEFAULT_STROKE = 4
DEFAULT_FIELDS = 4
DEFAULT_TIMEOUT = 10.0


@dataclass
class DrawOptions:
    """Everything the draw engine needs to know about a run."""

    host: str
    port: int = DEFAULT_PORT
    resize: int = DEFAULT_RESIZE
    drift_x: int = DEFAULT_DRIFT[0]
    drift_y: int = DEFAULT_DRIFT[1]
    image_path: str = DEFAULT_IMAGE_PATH
    draw_rate: float = DEFAULT_DRAW_RATE
    stroke: int = DEFAULT_STROKE
    jitter: bool = False
    connections: Optional[int] = None
    fields: int = DEFAULT_FIELDS
    timeout: float = DEFAULT_TIMEOUT
    seed: Optional[int] = None

    @property
    def pool_size(self) -> int:
        """Target number of connections; falls back to the resize value."""
        return self.connections if self.connections is not None else self.resize

    @property
    def frame_period(self) -> float:
        return 1.0 / self.draw_rate

    def validate(self) -> "DrawOptions":
        if not self.host:
            raise ConfigError("A Pixelflut host is required")
        if not 0 < self.port < 65536:
            raise ConfigError(f"Port must be between 1 and 65535, got {self.port}")
        if self.resize < 1:
            raise ConfigError(f"Resize must be at least 1, got {self.resize}")
        if self.draw_rate <= 0:
            raise ConfigError(f"Draw rate must be positive, got {self.draw_rate}")
        if self.stroke < 0:
            raise ConfigError(f"Stroke width must not be negative, got {self.stroke}")
        if self.fields < 1:
            raise ConfigError(f"Fields must be at least 1, got {self.fields}")
        if self.pool_size < 1:
            raise ConfigError(f"Connection count must be at least 1, got {self.pool_size}")
        if self.timeout <= 0:
            raise ConfigError(f"Timeout must be positive, got {self.timeout}")
        return self
