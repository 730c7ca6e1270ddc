# modules/decode_module.py
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import cv2
import numpy as np
from pyzbar.pyzbar import decode

from .applog import get_logger

logger = get_logger("decode")


@dataclass
class DecodeResult:
    text: str
    polygon: List[Tuple[int, int]] = field(default_factory=list)  # frame pixel coords
    symbol_type: str = ""


def _candidates(frame):
    """
    Extra images for a second pass when the raw frame decodes nothing.
    All keep the frame size so the polygon stays in frame coordinates.
    """
    gray = frame if frame.ndim == 2 else cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8)).apply(gray)
    th1 = cv2.adaptiveThreshold(clahe, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
                                cv2.THRESH_BINARY, 31, 5)
    th2 = cv2.threshold(clahe, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)[1]
    return [gray, clahe, th1, th2]


def _first_symbol(image) -> Optional[DecodeResult]:
    for symbol in decode(np.ascontiguousarray(image, dtype=np.uint8)):
        text = symbol.data.decode("utf-8", errors="ignore").strip()
        if not text:
            continue
        polygon = [(int(p.x), int(p.y)) for p in symbol.polygon]
        if not polygon:
            x, y, w, h = symbol.rect
            polygon = [(x, y), (x + w, y), (x + w, y + h), (x, y + h)]
        return DecodeResult(text=text, polygon=polygon, symbol_type=symbol.type)
    return None


def decode_frame(frame, try_harder: bool = True) -> Optional[DecodeResult]:
    """
    Find the first barcode / QR code in a BGR frame.
    Returns None when nothing is found; pyzbar/OpenCV errors are left to the caller.
    """
    if frame is None or frame.size == 0:
        return None

    result = _first_symbol(frame)
    if result is not None or not try_harder:
        return result

    for img in _candidates(frame):
        result = _first_symbol(img)
        if result is not None:
            logger.debug(f"decoded on preprocessed pass: {result.symbol_type}")
            return result
    return None
