# modules/camera_module.py
import time
import threading
from queue import Queue, Empty
from typing import Callable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from .applog import get_logger
from .errors import DeviceError

LIME_GREEN = (50, 205, 50)  # BGR

logger = get_logger("camera")


def open_camera(index=0, width=640, height=480, capture_factory=cv2.VideoCapture):
    cap = capture_factory(index)
    if cap is None or not cap.isOpened():
        if cap is not None:
            cap.release()
        return None
    # keep only the newest frame in the driver buffer
    cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
    return cap


def list_cameras(max_probe=5, capture_factory=cv2.VideoCapture) -> List[Tuple[int, str]]:
    """Probe indices 0..max_probe-1 and return (index, name) for devices that deliver a frame."""
    found = []
    for idx in range(max_probe):
        cap = capture_factory(idx)
        try:
            if cap.isOpened() and cap.read()[0]:
                found.append((idx, f"Camera {idx}"))
        finally:
            cap.release()
    logger.info(f"[Cam] {len(found)} device(s) found")
    return found


def draw_overlay(frame, polygon: Optional[Sequence[Tuple[int, int]]], color=LIME_GREEN, thickness=3):
    """Copy of frame with the detected symbol outline drawn on it."""
    if frame is None or not polygon:
        return frame
    out = frame.copy()
    pts = np.array(polygon, dtype=np.int32).reshape(-1, 1, 2)
    cv2.polylines(out, [pts], True, color, thickness)
    return out


class FrameMailbox:
    """
    Single-slot hand-off between the capture thread and the UI thread.
    put() overwrites whatever frame has not been taken yet.
    """

    def __init__(self):
        self._q = Queue(maxsize=1)

    def put(self, frame):
        # one producer only, so the slot is free after the drain
        try:
            self._q.get_nowait()
        except Empty:
            pass
        self._q.put_nowait(frame)

    def get(self):
        try:
            return self._q.get_nowait()
        except Empty:
            return None

    def clear(self):
        self.get()


class CameraSource:
    """
    Reads one OpenCV device on a background thread and drops frames into a FrameMailbox.
    stop() signals the thread and blocks until the device is released.
    """

    def __init__(self, index: int, mailbox: FrameMailbox, width: int = 640, height: int = 480,
                 max_read_failures: int = 10, capture_factory: Callable = cv2.VideoCapture):
        self.index = index
        self.mailbox = mailbox
        self.width = width
        self.height = height
        self.max_read_failures = max_read_failures
        self.capture_factory = capture_factory

        self.cap = None
        self.failed = False
        self._fail_count = 0
        self._stop_event = threading.Event()
        self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.is_running:
            return
        try:
            self.cap = open_camera(self.index, self.width, self.height, self.capture_factory)
        except cv2.error as e:
            raise DeviceError(f"Cannot open camera {self.index}: {e}") from e
        if self.cap is None:
            raise DeviceError(f"Cannot open camera {self.index}")

        self.failed = False
        self._fail_count = 0
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=f"camera-{self.index}", daemon=True)
        self._thread.start()
        logger.info(f"[Cam] opened camera {self.index} ({self.width}x{self.height})")

    def _run(self):
        try:
            while not self._stop_event.is_set():
                ret, frame = self.cap.read()
                if not ret or frame is None or frame.size == 0:
                    self._fail_count += 1
                    if self._fail_count >= self.max_read_failures:
                        logger.warning(f"[Cam] {self._fail_count} read fails on camera {self.index} -> giving up")
                        self.failed = True
                        break
                    time.sleep(0.01)
                    continue
                self._fail_count = 0
                self.mailbox.put(frame)
        except Exception as e:
            logger.error(f"[Cam] read error on camera {self.index}: {e}")
            self.failed = True
        finally:
            self.cap.release()

    def stop(self):
        if self._thread is None:
            if self.cap is not None:
                self.cap.release()
                self.cap = None
            return
        self._stop_event.set()
        self._thread.join()
        self._thread = None
        self.cap = None
        self.mailbox.clear()
        logger.info(f"[Cam] camera {self.index} stopped")
