from unittest import mock

import pytest


class _Mocker:
    def __init__(self):
        self._patches = []

    def patch(self, *args, **kwargs):
        p = mock.patch(*args, **kwargs)
        m = p.start()
        self._patches.append(p)
        return m

    def stopall(self):
        for p in reversed(self._patches):
            p.stop()
        self._patches.clear()


@pytest.fixture
def mocker():
    m = _Mocker()
    try:
        yield m
    finally:
        m.stopall()


class FakeClock:
    """Manually advanced replacement for ``time.monotonic``."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
