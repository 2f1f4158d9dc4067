from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from app.trimtime.core.error_catalog import ValidationError
from app.trimtime.core.ids import new_record_id
from app.trimtime.core.logging import log_json
from app.trimtime.schemas.sales import PaymentMethod, Sale
from app.trimtime.services.cart import Cart
from app.trimtime.services.shop_state import ShopState

logger = logging.getLogger("trimtime.checkout")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SaleCommitter:
    """Turns the live cart into an immutable ``Sale``.

    The sale is appended locally and sent to the store, then every product
    line decrements stock on its own. Remote failures are logged by the
    dispatcher and never undo the local state. The operator is read once,
    before anything is written; a logout after that point does not stop the
    commit.
    """

    def __init__(
        self,
        shop: ShopState,
        *,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = new_record_id,
    ) -> None:
        self.shop = shop
        self._clock = clock
        self._new_id = id_factory

    def missing_requirements(self, cart: Cart) -> list[str]:
        missing = []
        if cart.is_empty():
            missing.append("items")
        if not cart.staff_id:
            missing.append("staff")
        return missing

    def commit(self, cart: Cart, payment_method: PaymentMethod) -> Sale:
        operator = self.shop.session.require_operator()
        missing = self.missing_requirements(cart)
        if missing:
            raise ValidationError(missing)
        staff_id = operator.id if operator.is_restricted else cart.staff_id

        tax = self.shop.tax
        totals = cart.totals(tax)
        sale = Sale(
            id=self._new_id(),
            created_at=self._clock(),
            lines=cart.lines,
            staff_id=staff_id,
            customer_id=cart.customer_id,
            total=totals.total,
            tax=totals.tax,
            discount=totals.discount,
            discount_code=cart.discount_code if totals.discount else None,
            payment_method=payment_method,
            tax_mode=tax.mode,
        )
        self.shop.record_sale(sale)

        # Each decrement reads the pre-sale snapshot of its product.
        snapshot = {product.id: product for product in self.shop.products.items}
        for line in sale.lines:
            if line.kind != "product":
                continue
            product = snapshot.get(line.item_id)
            if product is None:
                logger.warning("sold product %s is not in the local catalog", line.item_id)
                continue
            self.shop.decrement_stock(product, line.quantity)

        cart.reset()
        log_json(
            logger,
            {
                "event": "sale_committed",
                "sale_id": sale.id,
                "staff_id": sale.staff_id,
                "total": sale.total,
                "lines": len(sale.lines),
                "payment_method": payment_method,
            },
        )
        return sale
