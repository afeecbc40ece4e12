import numpy as np
import pytest

from conftest import FakeConnection, make_image
from pixelbounce import dispatch
from pixelbounce.canvas import Canvas
from pixelbounce.dispatch import FieldCounter, dispatch_pass, encode_pixel, visible_pixels
from pixelbounce.errors import RuntimeIOError
from pixelbounce.pool import ConnectionPool


def parse(command):
    tag, x, y, color = command.split()
    assert tag == "PX"
    return int(x), int(y), color


def all_commands(pool):
    return [parse(c) for conn in pool.connections for c in conn.commands]


def test_field_counter_cycles():
    counter = FieldCounter(4)
    seen = [counter.value]
    for _ in range(6):
        seen.append(counter.advance())
    assert seen == [1, 2, 3, 1, 2, 3, 1]


def test_field_counter_single_field_stays_at_one():
    counter = FieldCounter(1)
    assert [counter.advance() for _ in range(3)] == [1, 1, 1]


def test_encode_pixel():
    assert encode_pixel(5, 7, 255, 10, 0) == "PX 5 7 FF0A00\n"
    assert encode_pixel(0, 0, 0, 0, 0) == "PX 0 0 000000\n"


def test_holes_are_never_sent(fake_pool):
    gen = np.random.default_rng(9)
    image = make_image(16, 12)
    image[:, :, 3] = gen.choice([0, 200, 240, 241, 255], size=(12, 16))
    canvas = Canvas(40, 30)

    for offset in [(0, 0), (3, 5), (-4, -2), (30, 25)]:
        for field in [1, 2, 3]:
            pool = fake_pool(3)
            dispatch_pass(pool, image, canvas, offset, field)
            for x, y, _ in all_commands(pool):
                assert image[y - offset[1], x - offset[0], 3] > 240


def test_field_two_draws_even_coordinates_only(fake_pool):
    pool = fake_pool(2)
    sent = dispatch_pass(pool, make_image(10, 10), Canvas(100, 100), (3, 4), 2)
    coords = {(x, y) for x, y, _ in all_commands(pool)}
    assert sent == len(coords) == 25
    assert all(x % 2 == 0 and y % 2 == 0 for x, y in coords)


def test_offscreen_pixels_are_skipped():
    image = make_image(4, 4)
    xs, ys, _ = visible_pixels(image, Canvas(5, 5), (-2, 3), 1)
    coords = set(zip(xs.tolist(), ys.tolist()))
    # x in 0..1, y in 3..5 (a coordinate equal to the canvas size still passes)
    assert coords == {(x, y) for x in (0, 1) for y in (3, 4, 5)}


def test_colors_are_uppercase_hex(fake_pool):
    image = make_image(2, 1, color=(171, 205, 239))
    pool = fake_pool(1)
    dispatch_pass(pool, image, Canvas(10, 10), (1, 1), 1)
    assert pool.connections[0].commands == ["PX 1 1 ABCDEF", "PX 2 1 ABCDEF"]


def test_round_robin_spread_and_order(fake_pool):
    image = make_image(7, 5)
    image[2, 3, 3] = 0
    pool = fake_pool(4)

    sent = dispatch_pass(pool, image, Canvas(50, 50), (1, 1), 1)

    assert sent == 34
    counts = [len(conn.commands) for conn in pool.connections]
    assert sorted(counts) == [8, 8, 9, 9]

    row_major = [(x + 1, y + 1) for y in range(5) for x in range(7) if (x, y) != (3, 2)]
    for index, conn in enumerate(pool.connections):
        coords = [(x, y) for x, y, _ in map(parse, conn.commands)]
        assert coords == row_major[index::4]


def test_cursor_continues_between_passes(fake_pool):
    pool = fake_pool(3)
    dispatch_pass(pool, make_image(2, 1), Canvas(10, 10), (1, 1), 1)
    assert pool.cursor == 2
    dispatch_pass(pool, make_image(2, 1), Canvas(10, 10), (1, 1), 1)
    assert pool.cursor == 1


def test_commands_are_batched(monkeypatch, fake_pool):
    monkeypatch.setattr(dispatch, "BATCH_SIZE", 2)
    pool = fake_pool(1)
    dispatch_pass(pool, make_image(5, 1), Canvas(10, 10), (1, 1), 1)
    conn = pool.connections[0]
    assert len(conn.sent) == 3
    assert len(conn.commands) == 5


def test_write_failure_is_fatal():
    pool = ConnectionPool([FakeConnection(), FakeConnection(fail_with=TimeoutError("timed out"))])
    with pytest.raises(RuntimeIOError):
        dispatch_pass(pool, make_image(4, 4), Canvas(10, 10), (1, 1), 1)


def test_empty_pool_with_pixels_is_fatal():
    with pytest.raises(RuntimeIOError):
        dispatch_pass(ConnectionPool(), make_image(2, 2), Canvas(10, 10), (1, 1), 1)
