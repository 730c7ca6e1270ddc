# modules/scan_coordinator.py
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

from .applog import get_logger
from .camera_module import CameraSource, FrameMailbox, draw_overlay
from .db_module import ScanRecord, ScanStore

if TYPE_CHECKING:
    from .decode_module import DecodeResult

logger = get_logger("coordinator")


def _noop(*_args):
    pass


class CaptureState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class ScanCoordinator:
    """
    Ties camera, decoder, history store and the window together.

    All methods are meant to be called from the UI thread; the only other thread
    is the camera reader, which talks to us through the FrameMailbox.
    The window plugs its side effects in through the callbacks:
        show_text(text), copy_to_clipboard(text), play_sound(), refresh_history()
    """

    def __init__(self, store: ScanStore,
                 decoder: Callable[..., Optional["DecodeResult"]],
                 camera_factory: Callable[..., CameraSource] = CameraSource,
                 width: int = 640, height: int = 480, max_read_failures: int = 10,
                 show_text=_noop, copy_to_clipboard=_noop, play_sound=_noop, refresh_history=_noop):
        self.store = store
        self.decoder = decoder
        self.camera_factory = camera_factory
        self.width = width
        self.height = height
        self.max_read_failures = max_read_failures

        self.show_text = show_text
        self.copy_to_clipboard = copy_to_clipboard
        self.play_sound = play_sound
        self.refresh_history = refresh_history

        self.mailbox = FrameMailbox()
        self.camera: Optional[CameraSource] = None
        self.state = CaptureState.STOPPED

        self.current_frame = None
        self.current_text = ""
        self.last_polygon = None

    # ---------- capture lifecycle ----------
    @property
    def is_running(self) -> bool:
        return self.state is CaptureState.RUNNING

    @property
    def capture_failed(self) -> bool:
        return self.camera is not None and self.camera.failed

    def start(self, device_index: int):
        """Stopped -> Running. DeviceError propagates and leaves us Stopped."""
        if self.is_running:
            return
        camera = self.camera_factory(device_index, self.mailbox, width=self.width, height=self.height,
                                     max_read_failures=self.max_read_failures)
        camera.start()
        self.camera = camera
        self.state = CaptureState.RUNNING
        logger.info(f"[Scan] capture started on device {device_index}")

    def stop(self):
        """Running -> Stopped. Blocks until the camera thread has released the device."""
        if self.camera is not None:
            self.camera.stop()
            self.camera = None
        self.mailbox.clear()
        self.current_frame = None
        self.last_polygon = None
        if self.is_running:
            self.state = CaptureState.STOPPED
            logger.info("[Scan] capture stopped")

    def shutdown(self):
        self.stop()
        logger.info("[Scan] coordinator shut down")

    # ---------- frames ----------
    def next_display_frame(self):
        """Take the newest frame from the camera; returns it with the overlay, or None if nothing new."""
        frame = self.mailbox.get()
        if frame is None:
            return None
        self.current_frame = frame
        return draw_overlay(frame, self.last_polygon)

    def _safe_decode(self, frame) -> Optional["DecodeResult"]:
        try:
            return self.decoder(frame)
        except Exception as e:
            # a frame the decoder chokes on counts as "nothing found"
            logger.debug(f"[Scan] decode error ignored: {e!r}")
            return None

    def scan_current_frame(self) -> Optional["DecodeResult"]:
        if self.current_frame is None:
            return None

        result = self._safe_decode(self.current_frame)
        if result is None:
            self.last_polygon = None
            return None

        self.last_polygon = list(result.polygon) or None
        if result.text != self.current_text:
            self._on_new_text(result.text)
        return result

    def _on_new_text(self, text: str):
        self.current_text = text
        self.show_text(text)
        self.copy_to_clipboard(text)
        self.play_sound()
        self.store.insert(text)
        self.refresh_history()

    # ---------- history ----------
    def history(self) -> List[ScanRecord]:
        return self.store.fetch_all()
