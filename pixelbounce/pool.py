"""Pool of outbound Pixelflut connections with round-robin dispatch."""

import logging
import socket
from typing import Callable, List, Optional

from .errors import RuntimeIOError

logger = logging.getLogger(__name__)

SEND_BUFFER_SIZE = 8388608
MAX_FAILED_CONNECTIONS = 5


def create_connection(host: str, port: int, timeout: float) -> socket.socket:
    """Open one blocking connection with bounded read/write/connect timeouts."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_SNDBUF, SEND_BUFFER_SIZE)
    sock.settimeout(timeout)
    try:
        sock.connect((host, port))
    except OSError:
        sock.close()
        raise
    return sock


class ConnectionPool:
    """Ordered connections plus a round-robin cursor.

    The cursor always indexes a valid slot while the pool is non-empty.
    """

    def __init__(self, connections: Optional[List] = None):
        self.connections = list(connections or [])
        self.cursor = 0

    @classmethod
    def open(cls, host: str, port: int, size: int, timeout: float = 10.0,
             max_failures: int = MAX_FAILED_CONNECTIONS,
             connector: Callable = create_connection) -> "ConnectionPool":
        """Grow a pool towards ``size`` connections.

        Growth stops for good once ``max_failures`` consecutive connection
        attempts have failed; the pool keeps whatever it has at that point.
        """
        connections = []
        failed = 0
        while len(connections) < size:
            try:
                connections.append(connector(host, port, timeout))
            except OSError as e:
                failed += 1
                logger.error(
                    "Couldn't open connection %d - Failed connections %d/%d: %s",
                    len(connections), failed, max_failures, e,
                )
                if failed >= max_failures:
                    break
                continue
            failed = 0

        logger.info("Opened %d server connections", len(connections))
        return cls(connections)

    def __len__(self):
        return len(self.connections)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def next_index(self) -> int:
        """Return the slot at the cursor and advance the cursor."""
        if not self.connections:
            raise RuntimeIOError("Connection pool is empty")
        index = self.cursor
        self.cursor = (self.cursor + 1) % len(self.connections)
        return index

    def next(self):
        return self.connections[self.next_index()]

    def send(self, index: int, data: bytes):
        """Write to one connection. Failures are reported, never retried."""
        try:
            self.connections[index].sendall(data)
        except OSError as e:
            raise RuntimeIOError(f"Connection {index} write failed: {e}") from e

    def close(self):
        for sock in self.connections:
            try:
                sock.close()
            except OSError as e:
                logger.debug("Ignoring error while closing connection: %s", e)
        self.connections = []
        self.cursor = 0
