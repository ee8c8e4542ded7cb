"""Barcode format classification and check-digit validation."""

from __future__ import annotations

import re
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Any, Optional


class Symbology(Enum):
    """Barcode format family."""

    EAN13 = "EAN-13/JAN-13"
    EAN8 = "EAN-8"
    UPCA = "UPC-A"
    UPCE = "UPC-E"
    UNKNOWN = "Unknown"


CHECKSUM_ERROR = "Check digit is invalid"
UNSUPPORTED_ERROR = "Unsupported barcode format"

_DIGITS_13 = re.compile(r"[0-9]{13}")
_DIGITS_12 = re.compile(r"[0-9]{12}")
_DIGITS_8 = re.compile(r"[0-9]{8}")


@dataclass(frozen=True)
class BarcodeValidation:
    """Outcome of validate_barcode()."""

    barcode: str
    is_valid: bool
    symbology: Symbology
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "isValid": self.is_valid,
            "type": self.symbology.value,
        }
        if self.error:
            data["error"] = self.error
        return data


def ean13_check_digit(first_twelve: str) -> int:
    """
    Check digit for the first 12 digits of an EAN-13.

    Weights alternate 1, 3 starting from the leftmost digit.
    """
    total = sum(
        int(digit) * (1 if index % 2 == 0 else 3)
        for index, digit in enumerate(first_twelve)
    )
    return (10 - (total % 10)) % 10


def validate_barcode(raw: str) -> BarcodeValidation:
    """
    Classify a scanned code and validate it where a checksum is enforced.

    Rules, first match wins:
        13 digits -> EAN-13/JAN-13, check digit verified
        12 digits -> UPC-A, accepted as-is (check digit NOT verified)
         8 digits -> EAN-8, accepted as-is (check digit NOT verified)
        otherwise -> Unknown, rejected

    UPC-E is never reported: an 8-digit code is always classified EAN-8.
    """
    code = (raw or "").strip()

    if _DIGITS_13.fullmatch(code):
        if int(code[12]) == ean13_check_digit(code[:12]):
            return BarcodeValidation(code, True, Symbology.EAN13)
        return BarcodeValidation(code, False, Symbology.EAN13, CHECKSUM_ERROR)

    if _DIGITS_12.fullmatch(code):
        return BarcodeValidation(code, True, Symbology.UPCA)

    if _DIGITS_8.fullmatch(code):
        return BarcodeValidation(code, True, Symbology.EAN8)

    return BarcodeValidation(code, False, Symbology.UNKNOWN, UNSUPPORTED_ERROR)


class ScanDeduplicator:
    """
    Suppresses rapid repeated reads of the same code.

    A camera in continuous mode decodes the same barcode many times per
    second. After a code is accepted, further reads of that code are
    ignored until ``window_seconds`` have passed. A different code is
    accepted immediately and restarts the window.
    """

    def __init__(
        self,
        window_seconds: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_seconds = window_seconds
        self._clock = clock
        self._last_code: Optional[str] = None
        self._last_at = 0.0
        self._lock = threading.Lock()

    def is_duplicate(self, code: str) -> bool:
        with self._lock:
            return self._is_duplicate_locked(code)

    def register(self, code: str) -> None:
        with self._lock:
            self._last_code = code
            self._last_at = self._clock()

    def accept(self, code: str) -> bool:
        """Register ``code`` unless it is a duplicate. Returns True if accepted."""
        with self._lock:
            if self._is_duplicate_locked(code):
                return False
            self._last_code = code
            self._last_at = self._clock()
            return True

    def reset(self) -> None:
        with self._lock:
            self._last_code = None
            self._last_at = 0.0

    def _is_duplicate_locked(self, code: str) -> bool:
        if self._last_code != code:
            return False
        return (self._clock() - self._last_at) < self.window_seconds
