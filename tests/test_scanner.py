import pytest

from app.trimtime.client.dispatch import InlineDispatcher
from app.trimtime.client.remote_store import CollectionGateway
from app.trimtime.core.error_catalog import CapabilityUnavailable, LookupMiss
from app.trimtime.services.cart import Cart
from app.trimtime.services.reconciler import ProductReconciler
from app.trimtime.services.scanner import CameraScanner, KeystrokeBuffer, RegisterScanner, ScanGate
from tests.register_helpers import ADMIN, RecordingStore, product


class Ticker:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture()
def cart(session):
    session.login("admin", "admin123", [ADMIN])
    return Cart(session)


@pytest.fixture()
def products():
    return ProductReconciler(
        CollectionGateway(RecordingStore(), "products"),
        InlineDispatcher(),
        [product("P1", barcode="8901234567890"), product("P2")],
    )


def test_gate_drops_scans_during_cooldown():
    ticker = Ticker()
    gate = ScanGate(cooldown_seconds=1.5, clock=ticker)

    assert gate.admit() is True
    ticker.now += 1.0
    assert gate.admit() is False
    ticker.now += 0.6
    assert gate.admit() is True


def test_scan_hit_adds_product_line(cart, products):
    ticker = Ticker()
    scanner = RegisterScanner(cart, products, ScanGate(clock=ticker))

    found = scanner.scan("8901234567890")

    assert found.id == "P1"
    assert [(line.item_id, line.kind) for line in cart.lines] == [("P1", "product")]


def test_duplicate_read_inside_cooldown_is_dropped(cart, products):
    ticker = Ticker()
    scanner = RegisterScanner(cart, products, ScanGate(clock=ticker))

    scanner.scan("8901234567890")
    assert scanner.scan("8901234567890") is None

    assert cart.lines[0].quantity == 1


def test_scan_miss_leaves_cart_unchanged(cart, products):
    scanner = RegisterScanner(cart, products, ScanGate(cooldown_seconds=0))

    with pytest.raises(LookupMiss) as excinfo:
        scanner.scan("000")

    assert str(excinfo.value) == "Not Found: 000"
    assert cart.lines == ()


def test_keystroke_buffer_emits_code_on_enter():
    ticker = Ticker()
    buffer = KeystrokeBuffer(gap_ms=50, clock=ticker)
    result = None
    for key in "8901234567890":
        ticker.now += 0.01
        result = buffer.feed(key)
        assert result is None
    ticker.now += 0.01

    assert buffer.feed("Enter") == "8901234567890"


def test_keystroke_buffer_resets_after_slow_typing():
    ticker = Ticker()
    buffer = KeystrokeBuffer(gap_ms=50, clock=ticker)
    for key in "ABCDE":
        ticker.now += 0.2
        buffer.feed(key)
    ticker.now += 0.01

    assert buffer.feed("Enter") is None


def test_keystroke_buffer_ignores_short_bursts_and_named_keys():
    ticker = Ticker()
    buffer = KeystrokeBuffer(gap_ms=50, clock=ticker)
    for key in ["1", "Shift", "2", "3"]:
        ticker.now += 0.01
        buffer.feed(key)
    ticker.now += 0.01

    assert buffer.feed("Enter") is None


def test_camera_feeds_codes_and_reports_misses(cart, products):
    ticker = Ticker()
    gate = ScanGate(clock=ticker)
    results = []

    def frames():
        yield "8901234567890"
        yield "8901234567890"
        ticker.now += 2
        yield "unknown"

    camera = CameraScanner(RegisterScanner(cart, products, gate), frames, lambda p, miss: results.append((p, miss)))

    assert camera.run() == 1
    assert results[0][0].id == "P1"
    assert isinstance(results[1][1], LookupMiss)
    assert cart.lines[0].quantity == 1


def test_camera_permission_denied_is_capability_unavailable(cart, products):
    def denied():
        raise PermissionError("Permission denied")

    camera = CameraScanner(RegisterScanner(cart, products), denied)

    with pytest.raises(CapabilityUnavailable) as excinfo:
        camera.start()

    assert excinfo.value.capability == "camera"
