from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from app.trimtime.core.config import settings
from app.trimtime.schemas.sales import CartLine, DiscountCode, Totals
from app.trimtime.schemas.settings import TaxConfig

ZERO = Decimal("0")
HUNDRED = Decimal("100")

DISCOUNT_CODES: tuple[DiscountCode, ...] = (
    DiscountCode(code="SAVE10", kind="percentage", value=Decimal("10"), description="10% off the ticket"),
    DiscountCode(code="SAVE20", kind="percentage", value=Decimal("20"), description="20% off the ticket"),
    DiscountCode(code="WELCOME5", kind="fixed", value=Decimal("5"), description="5 off a first visit"),
)


def find_discount(code: str | None, catalog: Iterable[DiscountCode] = DISCOUNT_CODES) -> DiscountCode | None:
    if not code:
        return None
    for entry in catalog:
        if entry.code == code:
            return entry
    return None


def subtotal_of(lines: Iterable[CartLine]) -> Decimal:
    return sum((line.unit_price * line.quantity for line in lines), ZERO)


def discount_for(subtotal: Decimal, code: DiscountCode | None, clamp: bool) -> Decimal:
    if code is None:
        return ZERO
    if code.kind == "percentage":
        discount = subtotal * code.value / HUNDRED
    else:
        discount = code.value
    if clamp:
        discount = max(ZERO, min(discount, subtotal))
    return discount


def compute_totals(
    lines: Iterable[CartLine],
    discount_code: str | None,
    tax: TaxConfig,
    *,
    catalog: Iterable[DiscountCode] = DISCOUNT_CODES,
    clamp_discount: bool | None = None,
) -> Totals:
    """Price a cart.

    Excluded tax is added on top of the discounted amount. Included tax is
    backed out of the discounted amount so the charged total does not change.
    """
    clamp = settings.CLAMP_DISCOUNT_TO_SUBTOTAL if clamp_discount is None else clamp_discount
    subtotal = subtotal_of(lines)
    discount = discount_for(subtotal, find_discount(discount_code, catalog), clamp)
    discounted = subtotal - discount
    rate = Decimal(tax.rate) / HUNDRED

    if tax.mode == "included":
        total = discounted
        tax_amount = total - total / (1 + rate)
    else:
        tax_amount = discounted * rate
        total = discounted + tax_amount

    return Totals(subtotal=subtotal, discount=discount, tax=tax_amount, total=total)
