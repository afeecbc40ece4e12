#!/usr/bin/env python3
"""
Dummy Pixelflut Server
A small threaded server speaking the ASCII Pixelflut protocol, for running
pixelbounce locally and for end-to-end tests.
"""

import socket
import threading
import argparse
import time
from typing import Tuple
import numpy as np


class PixelflutServer:
    """Dummy ASCII Pixelflut server keeping the canvas in a numpy array."""

    def __init__(self, host: str = "127.0.0.1", port: int = 1337,
                 width: int = 1280, height: int = 720, max_connections: int = 512,
                 verbose: bool = True):
        self.host = host
        self.port = port
        self.width = width
        self.height = height
        self.max_connections = max_connections
        self.verbose = verbose

        self.stats = {
            'connections': 0,
            'size_requests': 0,
            'total_pixels': 0,
            'invalid_commands': 0,
            'bytes_received': 0,
            'start_time': time.time(),
        }
        self.stats_lock = threading.Lock()

        self.canvas = np.zeros((height, width, 3), dtype=np.uint8)
        self.canvas_lock = threading.Lock()

        self.running = False
        self.server_socket = None
        self._accept_thread = None

    def bind(self) -> int:
        """Bind the listening socket and return the bound port (useful with port 0)."""
        self.server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.server_socket.bind((self.host, self.port))
        self.server_socket.listen(self.max_connections)
        self.port = self.server_socket.getsockname()[1]
        self.running = True
        self._log(f"Pixelflut server listening on {self.host}:{self.port}")
        self._log(f"Canvas size: {self.width}x{self.height}")
        return self.port

    def serve_forever(self):
        """Accept clients until stopped, one handler thread per client."""
        while self.running:
            try:
                client_socket, address = self.server_socket.accept()
            except OSError as e:
                if self.running:
                    self._log(f"Socket error: {e}")
                break

            with self.stats_lock:
                self.stats['connections'] += 1

            client_thread = threading.Thread(
                target=self._handle_client,
                args=(client_socket, address),
                daemon=True
            )
            client_thread.start()

    def start_background(self) -> int:
        """Bind and serve from a daemon thread. Returns the bound port."""
        port = self.bind()
        self._accept_thread = threading.Thread(target=self.serve_forever, daemon=True)
        self._accept_thread.start()
        return port

    def stop(self):
        self.running = False
        if self.server_socket:
            try:
                # wakes a thread blocked in accept()
                self.server_socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self.server_socket.close()
        if self._accept_thread:
            self._accept_thread.join(timeout=1.0)

    def pixel(self, x: int, y: int) -> Tuple[int, int, int]:
        with self.canvas_lock:
            return tuple(int(c) for c in self.canvas[y, x])

    def _log(self, message: str):
        if self.verbose:
            print(message)

    def _handle_client(self, client_socket: socket.socket, address: Tuple[str, int]):
        buffer = bytearray()
        try:
            while self.running:
                try:
                    data = client_socket.recv(65536)
                except OSError:
                    break
                if not data:
                    break

                with self.stats_lock:
                    self.stats['bytes_received'] += len(data)

                buffer.extend(data)
                self._process_buffer(buffer, client_socket)
        finally:
            client_socket.close()

    def _process_buffer(self, buffer: bytearray, client_socket: socket.socket):
        """Execute every complete line in the buffer, keeping any partial tail."""
        end = buffer.rfind(b'\n')
        if end == -1:
            return
        lines = bytes(buffer[:end]).split(b'\n')
        del buffer[:end + 1]

        for line in lines:
            command = line.decode('ascii', errors='ignore').strip()
            if command:
                self._process_command(command, client_socket)

    def _process_command(self, command: str, client_socket: socket.socket):
        parts = command.split()
        cmd = parts[0].upper()

        try:
            if cmd == "SIZE":
                with self.stats_lock:
                    self.stats['size_requests'] += 1
                client_socket.sendall(f"SIZE {self.width} {self.height}\n".encode())

            elif cmd == "HELP":
                client_socket.sendall(
                    b"SIZE - Get canvas dimensions\n"
                    b"PX x y - Get pixel color\n"
                    b"PX x y rrggbb - Set pixel\n"
                )

            elif cmd == "PX" and len(parts) == 3:
                x, y = int(parts[1]), int(parts[2])
                if 0 <= x < self.width and 0 <= y < self.height:
                    r, g, b = self.pixel(x, y)
                    client_socket.sendall(f"PX {x} {y} {r:02x}{g:02x}{b:02x}\n".encode())

            elif cmd == "PX" and len(parts) == 4 and len(parts[3]) in (6, 8):
                x, y = int(parts[1]), int(parts[2])
                color = parts[3]
                r, g, b = int(color[0:2], 16), int(color[2:4], 16), int(color[4:6], 16)
                if 0 <= x < self.width and 0 <= y < self.height:
                    with self.canvas_lock:
                        self.canvas[y, x] = (r, g, b)
                    with self.stats_lock:
                        self.stats['total_pixels'] += 1

            else:
                with self.stats_lock:
                    self.stats['invalid_commands'] += 1

        except ValueError:
            with self.stats_lock:
                self.stats['invalid_commands'] += 1

    def print_stats(self):
        elapsed = time.time() - self.stats['start_time']
        with self.stats_lock:
            print("\n=== Final Statistics ===")
            print(f"Runtime: {elapsed:.1f} seconds")
            print(f"Total pixels: {self.stats['total_pixels']:,}")
            if elapsed > 0:
                print(f"Average pixels/second: {self.stats['total_pixels'] / elapsed:.0f}")
            print(f"Total connections: {self.stats['connections']}")
            print(f"Data received: {self.stats['bytes_received'] / 1024 / 1024:.1f} MB")
            print(f"Invalid commands: {self.stats['invalid_commands']}")


def main():
    """Command line interface for the dummy Pixelflut server."""
    parser = argparse.ArgumentParser(description='Dummy Pixelflut Server')
    parser.add_argument('--host', default='0.0.0.0', help='Host to bind to (default: 0.0.0.0)')
    parser.add_argument('--port', type=int, default=1337, help='Port to bind to (default: 1337)')
    parser.add_argument('--width', type=int, default=1280, help='Canvas width (default: 1280)')
    parser.add_argument('--height', type=int, default=720, help='Canvas height (default: 720)')
    parser.add_argument('--max-connections', type=int, default=512, help='Listen backlog (default: 512)')
    args = parser.parse_args()

    server = PixelflutServer(
        host=args.host,
        port=args.port,
        width=args.width,
        height=args.height,
        max_connections=args.max_connections,
    )

    try:
        server.bind()
        print("Press Ctrl+C to stop")
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down server...")
    finally:
        server.stop()
        server.print_stats()


if __name__ == "__main__":
    main()
