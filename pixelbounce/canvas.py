"""Canvas size negotiation with a Pixelflut server."""

import logging
import socket
from dataclasses import dataclass

from .errors import ConnectError, ProtocolError, RuntimeIOError

logger = logging.getLogger(__name__)

SIZE_COMMAND = b"SIZE\n"
SIZE_RESPONSE_LIMIT = 1024


@dataclass(frozen=True)
class Canvas:
    width: int
    height: int


def parse_size_response(data: bytes) -> Canvas:
    """Parse a ``SIZE <width> <height>`` reply.

    Token 0 is the reply tag and is ignored; tokens 1 and 2 are the canvas
    width and height in decimal.
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ProtocolError(f"SIZE response is not valid text: {e}") from e

    tokens = text.split()
    if len(tokens) < 3:
        raise ProtocolError(f"Unexpected SIZE response: {text.strip()!r}")

    try:
        width, height = int(tokens[1]), int(tokens[2])
    except ValueError as e:
        raise ProtocolError(f"Unexpected SIZE response: {text.strip()!r}") from e

    if width < 0 or height < 0:
        raise ProtocolError(f"Negative canvas size in SIZE response: {width}x{height}")
    return Canvas(width, height)


def negotiate_canvas_size(sock) -> Canvas:
    """Ask the server behind an already connected socket for its canvas size."""
    try:
        sock.sendall(SIZE_COMMAND)
        response = sock.recv(SIZE_RESPONSE_LIMIT)
    except OSError as e:
        raise RuntimeIOError(f"Could not read SIZE response: {e}") from e

    logger.info("Read data %r (%d bytes)", response.decode("utf-8", errors="replace").strip(), len(response))
    canvas = parse_size_response(response)
    logger.info("Set canvas to [%d, %d]", canvas.width, canvas.height)
    return canvas


def query_canvas_size(host: str, port: int, timeout: float = 10.0) -> Canvas:
    """Open a dedicated query connection, negotiate the canvas size and close it."""
    try:
        size_sock = socket.create_connection((host, port), timeout=timeout)
    except OSError as e:
        raise ConnectError(f"Could not connect to {host}:{port}: {e}") from e

    logger.info("Successfully connected to server! Getting canvas size.")
    try:
        return negotiate_canvas_size(size_sock)
    finally:
        size_sock.close()
