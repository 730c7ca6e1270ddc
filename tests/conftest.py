"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Temporary history database, a controllable clock, and fake camera / decoder
doubles so the scan flow can be exercised without Qt or a real webcam.

==============================================================================
"""

import os

# Qt tests run headless unless a display platform is already chosen
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Tuple

import numpy as np
import pytest

from scan_station.modules.db_module import ScanStore
from scan_station.modules.errors import DeviceError
from scan_station.modules.scan_coordinator import ScanCoordinator


# ============================================================================
# DOUBLES
# ============================================================================

@dataclass
class FakeResult:
    """Same shape as decode_module.DecodeResult, without needing libzbar."""
    text: str
    polygon: List[Tuple[int, int]] = field(default_factory=lambda: [(10, 10), (60, 10), (60, 60), (10, 60)])
    symbol_type: str = "QRCODE"


class StepClock:
    """Returns start, start + step, start + 2*step, ..."""

    def __init__(self, start=datetime(2024, 5, 1, 8, 30, 0), step=timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self):
        now = self.current
        self.current += self.step
        return now


class ScriptedDecoder:
    """Plays back a list of outcomes: FakeResult, None, or an Exception instance to raise."""

    def __init__(self, outcomes=None):
        self.outcomes = list(outcomes or [])
        self.calls = 0

    def __call__(self, frame):
        self.calls += 1
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeCamera:
    """Stands in for CameraSource; frames are pushed by the test."""

    instances = []
    fail_on_start = False

    def __init__(self, index, mailbox, width=640, height=480, max_read_failures=10):
        self.index = index
        self.mailbox = mailbox
        self.failed = False
        self.started = False
        self.stopped = False
        FakeCamera.instances.append(self)

    def start(self):
        if FakeCamera.fail_on_start:
            raise DeviceError(f"Cannot open camera {self.index}")
        self.started = True

    def stop(self):
        self.stopped = True

    def push(self, frame):
        self.mailbox.put(frame)


class Recorder:
    """Collects coordinator side effects in call order."""

    def __init__(self):
        self.events = []

    def show_text(self, text):
        self.events.append(("show", text))

    def copy_to_clipboard(self, text):
        self.events.append(("clipboard", text))

    def play_sound(self):
        self.events.append(("sound",))

    def refresh_history(self):
        self.events.append(("refresh",))


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "ScanHistory.sqlite")


@pytest.fixture
def store(db_path, clock):
    s = ScanStore(db_path, clock=clock)
    s.initialize()
    return s


@pytest.fixture
def frame():
    return np.full((120, 160, 3), 255, dtype=np.uint8)


@pytest.fixture
def fake_camera():
    FakeCamera.instances = []
    FakeCamera.fail_on_start = False
    yield FakeCamera
    FakeCamera.instances = []
    FakeCamera.fail_on_start = False


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def make_coordinator(store, fake_camera, recorder):
    def _make(outcomes=None):
        decoder = ScriptedDecoder(outcomes)
        coordinator = ScanCoordinator(
            store,
            decoder=decoder,
            camera_factory=fake_camera,
            show_text=recorder.show_text,
            copy_to_clipboard=recorder.copy_to_clipboard,
            play_sound=recorder.play_sound,
            refresh_history=recorder.refresh_history,
        )
        return coordinator, decoder
    return _make


@pytest.fixture
def make_result():
    return FakeResult
