import random

import numpy as np
import pytest

from pixelbounce.pool import ConnectionPool


class FakeConnection:
    """Stands in for a socket, recording every write."""

    def __init__(self, fail_with=None):
        self.sent = []
        self.closed = False
        self.fail_with = fail_with

    def sendall(self, data):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(data)

    def close(self):
        self.closed = True

    @property
    def commands(self):
        text = b"".join(self.sent).decode()
        return [line for line in text.split("\n") if line]


class TickClock:
    """Clock advancing by a fixed step on every call."""

    def __init__(self, step):
        self.step = step
        self.now = 0.0

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


class FixedRandom(random.Random):
    """Random source whose randrange always returns one value."""

    def __init__(self, value):
        super().__init__(0)
        self.value = value

    def randrange(self, *args, **kwargs):
        return self.value


def make_image(width, height, alpha=255, color=(10, 20, 30)):
    image = np.zeros((height, width, 4), dtype=np.uint8)
    image[:, :, :3] = color
    image[:, :, 3] = alpha
    return image


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def fake_pool():
    def build(size=3):
        return ConnectionPool([FakeConnection() for _ in range(size)])
    return build
