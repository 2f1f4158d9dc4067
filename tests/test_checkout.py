from decimal import Decimal

import pytest

from app.trimtime.core.error_catalog import AuthenticationError, ValidationError
from app.trimtime.schemas.settings import ShopSettings
from app.trimtime.services.cart import Cart
from app.trimtime.services.checkout import SaleCommitter
from app.trimtime.services.shop_state import ShopState
from tests.register_helpers import (
    ADMIN,
    BARBER,
    SECOND_BARBER,
    RecordingStore,
    default_rows,
    default_settings,
    product,
    service,
)


@pytest.fixture()
def shop(session, dispatcher):
    rows = default_rows()
    rows["products"].append(product("PR1", price="20", stock=10).model_dump(mode="json"))
    shop = ShopState(RecordingStore(rows, settings=default_settings()), dispatcher, session)
    shop.load()
    shop.login("admin", "admin123")
    return shop


def _committer(shop, clock):
    ids = iter(["SALE1", "SALE2", "SALE3"])
    return SaleCommitter(shop, clock=clock, id_factory=lambda: next(ids))


def test_commit_decrements_stock_from_snapshot(shop, session, clock):
    cart = Cart(session)
    cart.add_line(shop.products.get("PR1"), "product")
    cart.update_quantity("PR1", "product", 1)
    cart.select_staff("ST2")

    sale = _committer(shop, clock).commit(cart, "cash")

    assert shop.products.get("PR1").stock == 8
    assert sale.product_quantity() == 2
    assert shop.remote.tables["products"]["PR1"]["stock"] == 8
    assert ("adjust_stock", "products", {"id": "PR1", "delta": -2}) in shop.remote.calls

    shop.products.set_stock("PR1", 50)
    assert sale.product_quantity() == 2


def test_commit_freezes_totals_and_resets_cart(shop, session, clock):
    shop.update_settings(ShopSettings(shop_name="Fade Lab", tax_rate=Decimal("5"), tax_type="excluded"))
    cart = Cart(session)
    cart.add_line(service("A", price="50"), "service")
    cart.apply_discount("SAVE10")
    cart.select_customer("C1")
    cart.select_staff("ST1")

    sale = _committer(shop, clock).commit(cart, "card")

    assert sale.id == "SALE1"
    assert sale.created_at == clock.now
    assert (sale.total, sale.tax, sale.discount) == (Decimal("47.25"), Decimal("2.25"), Decimal("5"))
    assert sale.discount_code == "SAVE10"
    assert sale.tax_mode == "excluded"
    assert sale.customer_id == "C1"
    assert shop.sales == [sale]
    assert cart.state == "idle"
    assert cart.customer_id is None
    assert cart.staff_id is None

    shop.update_settings(ShopSettings(shop_name="Fade Lab", tax_rate=Decimal("20"), tax_type="excluded"))
    assert shop.sales[0].total == Decimal("47.25")


@pytest.mark.parametrize(
    ("fill", "staff", "missing"),
    [
        (False, "ST1", ["items"]),
        (True, None, ["staff"]),
        (False, None, ["items", "staff"]),
    ],
)
def test_commit_preconditions(shop, session, clock, fill, staff, missing):
    cart = Cart(session)
    if fill:
        cart.add_line(service(), "service")
    if staff:
        cart.select_staff(staff)
    calls_before = list(shop.remote.calls)

    with pytest.raises(ValidationError) as excinfo:
        _committer(shop, clock).commit(cart, "cash")

    assert excinfo.value.missing == missing
    assert shop.sales == []
    assert shop.remote.calls == calls_before


def test_failed_sale_write_keeps_local_state_and_still_decrements(shop, session, clock, dispatcher):
    shop.remote.fail("sales", "insert")
    cart = Cart(session)
    cart.add_line(shop.products.get("PR1"), "product")
    cart.select_staff("ST1")

    sale = _committer(shop, clock).commit(cart, "cash")

    assert shop.sales == [sale]
    assert shop.products.get("PR1").stock == 9
    assert shop.remote.tables["products"]["PR1"]["stock"] == 9
    assert [(f.collection, f.operation) for f in dispatcher.failures] == [("sales", "insert")]


def test_one_failed_stock_write_does_not_block_the_others(shop, session, clock, dispatcher):
    original = shop.remote.adjust_stock

    def flaky(product_id, delta):
        if product_id == "P1":
            raise ConnectionError("timeout")
        return original(product_id, delta)

    shop.remote.adjust_stock = flaky
    cart = Cart(session)
    cart.add_line(shop.products.get("P1"), "product")
    cart.add_line(shop.products.get("PR1"), "product")
    cart.select_staff("ST1")

    _committer(shop, clock).commit(cart, "cash")

    assert shop.products.get("P1").stock == 23
    assert shop.products.get("PR1").stock == 9
    assert shop.remote.tables["products"]["PR1"]["stock"] == 9
    assert len(dispatcher.failures) == 1


def test_sale_is_attributed_to_whoever_is_logged_in_at_commit(shop, session, clock):
    session.logout()
    session.login(BARBER.username, BARBER.password, [ADMIN, BARBER, SECOND_BARBER])
    cart = Cart(session)

    session.logout("expired")
    session.login(SECOND_BARBER.username, SECOND_BARBER.password, [ADMIN, BARBER, SECOND_BARBER])
    cart.add_line(shop.products.get("PR1"), "product")

    sale = _committer(shop, clock).commit(cart, "cash")

    assert sale.staff_id == SECOND_BARBER.id
    assert cart.staff_id == SECOND_BARBER.id


def test_commit_after_logout_writes_nothing(shop, session, clock):
    session.logout()
    session.login(BARBER.username, BARBER.password, [ADMIN, BARBER])
    cart = Cart(session)
    cart.add_line(shop.products.get("PR1"), "product")
    calls_before = list(shop.remote.calls)

    session.logout("expired")
    with pytest.raises(AuthenticationError):
        _committer(shop, clock).commit(cart, "cash")

    assert shop.sales == []
    assert shop.products.get("PR1").stock == 10
    assert shop.remote.calls == calls_before
    assert [line.item_id for line in cart.lines] == ["PR1"]


def test_logout_right_after_commit_starts_does_not_break_it(shop, session, clock):
    cart = Cart(session)
    cart.add_line(shop.products.get("PR1"), "product")
    cart.select_staff(BARBER.id)
    original_record = shop.record_sale

    def record_then_expire(sale):
        original_record(sale)
        session.logout("expired")

    shop.record_sale = record_then_expire

    sale = _committer(shop, clock).commit(cart, "cash")

    assert shop.sales == [sale]
    assert shop.products.get("PR1").stock == 9
    assert cart.state == "idle"
    assert cart.staff_id is None
