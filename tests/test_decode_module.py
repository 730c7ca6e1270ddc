"""
pyzbar decode adapter, fed with QR codes rendered by the qrcode package.
Skipped when the ZBar shared library is not installed.
"""

import cv2
import numpy as np
import pytest

pytest.importorskip("pyzbar.pyzbar")
qrcode = pytest.importorskip("qrcode")

from scan_station.modules.decode_module import DecodeResult, decode_frame  # noqa: E402


def _qr_frame(text, size=(480, 640)):
    """White BGR frame with a QR code for text pasted near the middle."""
    img = qrcode.make(text, box_size=6, border=4).convert("RGB")
    qr = cv2.cvtColor(np.array(img), cv2.COLOR_RGB2BGR)
    frame = np.full((size[0], size[1], 3), 255, dtype=np.uint8)
    h, w = qr.shape[:2]
    y0, x0 = (size[0] - h) // 2, (size[1] - w) // 2
    frame[y0:y0 + h, x0:x0 + w] = qr
    return frame, (x0, y0, w, h)


def test_decodes_text_and_polygon():
    frame, (x0, y0, w, h) = _qr_frame("SP-000123")

    result = decode_frame(frame)

    assert isinstance(result, DecodeResult)
    assert result.text == "SP-000123"
    assert result.symbol_type == "QRCODE"
    assert len(result.polygon) >= 4
    for x, y in result.polygon:
        assert x0 <= x <= x0 + w
        assert y0 <= y <= y0 + h


def test_blank_frame_is_no_detection():
    blank = np.full((240, 320, 3), 255, dtype=np.uint8)
    assert decode_frame(blank) is None
    assert decode_frame(blank, try_harder=False) is None


def test_grayscale_input():
    frame, _ = _qr_frame("GRAY")
    gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    assert decode_frame(gray).text == "GRAY"


@pytest.mark.parametrize("frame", [None, np.zeros((0, 0, 3), dtype=np.uint8)])
def test_missing_frame(frame):
    assert decode_frame(frame) is None


def test_low_contrast_frame_decodes():
    frame, _ = _qr_frame("FAINT")
    # squeeze black/white into a narrow grey band
    faint = (frame.astype(np.float32) * 0.08 + 110).astype(np.uint8)

    result = decode_frame(faint, try_harder=True)

    assert result is not None and result.text == "FAINT"
