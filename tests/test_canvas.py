import socket

import pytest

from pixelbounce.canvas import Canvas, negotiate_canvas_size, parse_size_response, query_canvas_size
from pixelbounce.errors import ConnectError, ProtocolError, RuntimeIOError


def test_parse_size_response():
    assert parse_size_response(b"SIZE 800 600\n") == Canvas(800, 600)


def test_parse_size_response_ignores_extra_tokens():
    assert parse_size_response(b"SIZE 1920 1080 extra\n") == Canvas(1920, 1080)


@pytest.mark.parametrize("response", [
    b"SIZE 800\n",
    b"",
    b"SIZE wide 600\n",
    b"SIZE 800 6x0\n",
    b"SIZE -800 600\n",
    b"\xff\xfe 800 600\n",
])
def test_parse_size_response_rejects_malformed(response):
    with pytest.raises(ProtocolError):
        parse_size_response(response)


def test_negotiate_canvas_size_over_socket():
    client, server = socket.socketpair()
    try:
        server.sendall(b"SIZE 800 600\n")
        assert negotiate_canvas_size(client) == Canvas(800, 600)
        assert server.recv(16) == b"SIZE\n"
    finally:
        client.close()
        server.close()


def test_negotiate_canvas_size_reports_socket_errors_as_io():
    client, server = socket.socketpair()
    server.close()
    client.close()
    with pytest.raises(RuntimeIOError, match="Could not read SIZE"):
        negotiate_canvas_size(client)


def test_query_canvas_size_connect_failure():
    # grab a free port, then close it so nothing is listening there
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()

    with pytest.raises(ConnectError):
        query_canvas_size("127.0.0.1", port, timeout=1.0)
