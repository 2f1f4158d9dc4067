from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.trimtime.schemas.settings import TaxMode

LineKind = Literal["service", "product"]
PaymentMethod = Literal["cash", "card"]


class CartLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_id: str
    name: str
    unit_price: Decimal
    kind: LineKind
    quantity: int = Field(default=1, ge=1)

    @property
    def key(self) -> tuple[str, str]:
        return (self.item_id, self.kind)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class DiscountCode(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    kind: Literal["percentage", "fixed"]
    value: Decimal
    description: str = ""


class Totals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal


class HeldSale(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime
    lines: tuple[CartLine, ...]
    customer_id: str | None = None
    staff_id: str | None = None


class Sale(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime
    lines: tuple[CartLine, ...]
    staff_id: str
    customer_id: str | None = None
    total: Decimal
    tax: Decimal
    discount: Decimal
    discount_code: str | None = None
    payment_method: PaymentMethod
    tax_mode: TaxMode

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self.lines), Decimal("0"))

    def product_quantity(self) -> int:
        return sum(line.quantity for line in self.lines if line.kind == "product")
