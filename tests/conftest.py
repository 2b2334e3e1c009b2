"""
Test Configuration
==================

Pytest fixtures and test doubles for Mini-Guard.
"""

import signal
from typing import List, Optional

import numpy as np
import pytest

from miniguard.capture.frame import Frame
from miniguard.models.alert import AlertEvent
from miniguard.models.credentials import Credentials


FRAME_HEIGHT = 480
FRAME_WIDTH = 640


class FakeFrameSource:
    """In-memory frame source. ``None`` entries simulate failed grabs."""

    def __init__(self, images: List[Optional[np.ndarray]], fail_open: bool = False) -> None:
        self._images = list(images)
        self._fail_open = fail_open
        self.open_count = 0
        self.close_count = 0
        self.read_count = 0

    @property
    def is_open(self) -> bool:
        return self.open_count > self.close_count

    def open(self) -> None:
        if self._fail_open:
            from miniguard.capture.source import CameraOpenError
            raise CameraOpenError("fake camera unavailable")
        self.open_count += 1

    def close(self) -> None:
        self.close_count += 1

    def read(self) -> Optional[Frame]:
        index = self.read_count
        self.read_count += 1
        if index >= len(self._images) or self._images[index] is None:
            return None
        return Frame(
            image=self._images[index].copy(),
            frame_id=index,
            timestamp=index * 0.05,
        )

    def __enter__(self) -> "FakeFrameSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class RecordingDispatcher:
    """Dispatcher that records every event and reports success."""

    def __init__(self) -> None:
        self.events: List[AlertEvent] = []
        self.credentials: List[Credentials] = []

    def dispatch(self, event: AlertEvent, credentials: Credentials) -> bool:
        self.events.append(event)
        self.credentials.append(credentials)
        return True

    def close(self) -> None:
        pass


class FailingDispatcher:
    """Dispatcher whose transport always blows up."""

    def __init__(self) -> None:
        self.attempts = 0

    def dispatch(self, event: AlertEvent, credentials: Credentials) -> bool:
        self.attempts += 1
        raise RuntimeError("network unreachable")

    def close(self) -> None:
        pass


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep MINIGUARD_* variables from the host out of the tests."""
    import os

    for key in list(os.environ):
        if key.startswith("MINIGUARD_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def restore_sigterm():
    """Restore the SIGTERM handler after tests that install one."""
    original = signal.getsignal(signal.SIGTERM)
    yield
    signal.signal(signal.SIGTERM, original)


@pytest.fixture
def black_image() -> np.ndarray:
    """All-black raw BGR frame."""
    return np.zeros((FRAME_HEIGHT, FRAME_WIDTH, 3), dtype=np.uint8)


@pytest.fixture
def white_rect_image() -> np.ndarray:
    """Black raw BGR frame with a 200x200 white rectangle in the middle."""
    image = np.zeros((FRAME_HEIGHT, FRAME_WIDTH, 3), dtype=np.uint8)
    image[140:340, 220:420] = 255
    return image


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(bot_token="123456:ABC-DEF", chat_id="987654321")


@pytest.fixture
def make_source():
    """Factory for FakeFrameSource."""
    return FakeFrameSource


@pytest.fixture
def recording_dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def failing_dispatcher() -> FailingDispatcher:
    return FailingDispatcher()
