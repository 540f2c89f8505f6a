"""Shared fixtures: a controllable millisecond clock."""

from datetime import datetime

import pytest

from navigraph.clock import to_ms

T0 = to_ms(datetime(2024, 3, 4, 10, 0, 0))


class FakeClock:
    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def clock():
    return FakeClock()
