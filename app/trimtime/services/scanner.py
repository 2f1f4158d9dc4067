"""Barcode input for the register.

Codes arrive either from a keyboard-wedge scanner (a burst of keystrokes
ending in Enter) or from a camera decoder that yields strings. Both paths go
through ``RegisterScanner.scan``, which is rate limited by ``ScanGate``.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterable, Iterator

from app.trimtime.core.config import settings
from app.trimtime.core.error_catalog import CapabilityUnavailable, LookupMiss
from app.trimtime.core.logging import log_json
from app.trimtime.schemas.catalog import Product
from app.trimtime.services.cart import Cart
from app.trimtime.services.reconciler import ProductReconciler

logger = logging.getLogger("trimtime.scanner")

MIN_WEDGE_CODE_LENGTH = 4


class ScanGate:
    """Drops every scan that arrives while the previous one's cooldown is running."""

    def __init__(self, cooldown_seconds: float | None = None, clock: Callable[[], float] = time.monotonic):
        self.cooldown_seconds = settings.SCAN_COOLDOWN_SECONDS if cooldown_seconds is None else cooldown_seconds
        self._clock = clock
        self._open_at = float("-inf")
        self._lock = threading.Lock()

    def admit(self) -> bool:
        with self._lock:
            now = self._clock()
            if now < self._open_at:
                return False
            self._open_at = now + self.cooldown_seconds
            return True


class KeystrokeBuffer:
    def __init__(self, gap_ms: int | None = None, clock: Callable[[], float] = time.monotonic):
        self.gap_seconds = (settings.KEYSTROKE_GAP_MS if gap_ms is None else gap_ms) / 1000
        self._clock = clock
        self._buffer = ""
        self._last_key_at = clock()

    def feed(self, key: str) -> str | None:
        """Accept one key name. Returns a complete code when Enter closes a long enough burst."""
        now = self._clock()
        if now - self._last_key_at > self.gap_seconds:
            self._buffer = ""
        self._last_key_at = now
        if key == "Enter":
            if len(self._buffer) >= MIN_WEDGE_CODE_LENGTH:
                code, self._buffer = self._buffer, ""
                return code
            return None
        if len(key) == 1:
            self._buffer += key
        return None


class RegisterScanner:
    def __init__(self, cart: Cart, products: ProductReconciler, gate: ScanGate | None = None):
        self.cart = cart
        self.products = products
        self.gate = gate or ScanGate()

    def scan(self, code: str) -> Product | None:
        """Add the product with this barcode to the cart.

        Returns ``None`` when the scan was dropped by the cooldown. Raises
        ``LookupMiss`` when no product carries the code; the cart is untouched.
        """
        if not self.gate.admit():
            return None
        product = self.products.find_by_barcode(code)
        if product is None:
            log_json(logger, {"event": "scan_miss", "code": code})
            raise LookupMiss(code)
        self.cart.add_line(product, "product")
        log_json(logger, {"event": "scan_hit", "code": code, "product_id": product.id})
        return product


class CameraScanner:
    """Feeds decoded strings from a camera capture into a ``RegisterScanner``.

    ``open_capture`` acquires the device and returns an iterable of decoded
    strings. Failing to acquire it is reported once as ``CapabilityUnavailable``;
    there is no retry, the operator types the code instead.
    """

    def __init__(
        self,
        scanner: RegisterScanner,
        open_capture: Callable[[], Iterable[str]],
        on_result: Callable[[Product | None, LookupMiss | None], None] | None = None,
    ):
        self.scanner = scanner
        self.open_capture = open_capture
        self.on_result = on_result
        self._stream: Iterator[str] | None = None

    def start(self) -> None:
        try:
            self._stream = iter(self.open_capture())
        except (PermissionError, OSError, RuntimeError) as exc:
            log_json(logger, {"event": "camera_unavailable", "error": str(exc)}, level=logging.WARNING)
            raise CapabilityUnavailable("camera", str(exc) or exc.__class__.__name__) from exc

    def run(self) -> int:
        """Consume the stream until it ends. Returns the number of products added."""
        if self._stream is None:
            self.start()
        added = 0
        for code in self._stream:
            try:
                product = self.scanner.scan(code)
            except LookupMiss as miss:
                self._report(None, miss)
                continue
            if product is not None:
                added += 1
                self._report(product, None)
        self.stop()
        return added

    def _report(self, product: Product | None, miss: LookupMiss | None) -> None:
        if self.on_result is not None:
            self.on_result(product, miss)

    def stop(self) -> None:
        stream, self._stream = self._stream, None
        close = getattr(stream, "close", None)
        if close is not None:
            close()
