"""The in-progress ticket: lines, selections, and the held-sale list.

States: ``idle`` (no lines) and ``building`` (at least one line). Holding moves
the ticket into ``held_sales`` and returns the cart to ``idle``; resuming moves
it back. Committing is done by ``services.checkout`` which calls ``reset``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Literal

from app.trimtime.core.error_catalog import AssignmentNotAllowed, HeldSaleNotFound
from app.trimtime.core.ids import new_record_id
from app.trimtime.schemas.catalog import Product, Service, Staff
from app.trimtime.schemas.sales import CartLine, HeldSale, LineKind, Totals
from app.trimtime.schemas.settings import TaxConfig
from app.trimtime.services.pricing import compute_totals, find_discount
from app.trimtime.services.session import SessionContext

logger = logging.getLogger(__name__)

CartState = Literal["idle", "building"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Cart:
    def __init__(
        self,
        session: SessionContext,
        *,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = new_record_id,
    ) -> None:
        self.session = session
        self._clock = clock
        self._new_id = id_factory
        self._lines: list[CartLine] = []
        self.held_sales: list[HeldSale] = []
        self.discount_code: str | None = None
        self.customer_id: str | None = None
        self._chosen_staff_id: str | None = None

    @property
    def operator(self) -> Staff:
        return self.session.require_operator()

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def state(self) -> CartState:
        return "building" if self._lines else "idle"

    def is_empty(self) -> bool:
        return not self._lines

    @property
    def staff_id(self) -> str | None:
        """The assignee as of now; a restricted operator is always their own assignee."""
        operator = self.session.operator
        if operator is not None and operator.is_restricted:
            return operator.id
        return self._chosen_staff_id

    def _index(self, item_id: str, kind: LineKind) -> int | None:
        for position, line in enumerate(self._lines):
            if line.item_id == item_id and line.kind == kind:
                return position
        return None

    def add_line(self, item: Service | Product, kind: LineKind) -> CartLine:
        position = self._index(item.id, kind)
        if position is not None:
            current = self._lines[position]
            line = current.model_copy(update={"quantity": current.quantity + 1})
            self._lines[position] = line
            return line
        line = CartLine(item_id=item.id, name=item.name, unit_price=item.price, kind=kind, quantity=1)
        self._lines.append(line)
        return line

    def update_quantity(self, item_id: str, kind: LineKind, delta: int) -> CartLine | None:
        position = self._index(item_id, kind)
        if position is None:
            return None
        current = self._lines[position]
        line = current.model_copy(update={"quantity": max(1, current.quantity + delta)})
        self._lines[position] = line
        return line

    def remove_line(self, item_id: str, kind: LineKind) -> None:
        position = self._index(item_id, kind)
        if position is not None:
            del self._lines[position]

    def apply_discount(self, code: str | None) -> bool:
        """Remember the code as typed; returns whether it matched the catalog."""
        self.discount_code = (code or "").strip() or None
        return find_discount(self.discount_code) is not None

    def select_customer(self, customer_id: str | None) -> None:
        self.customer_id = customer_id or None

    def select_staff(self, staff_id: str | None) -> None:
        operator = self.operator
        if operator.is_restricted and staff_id != operator.id:
            raise AssignmentNotAllowed(operator.id, staff_id or "")
        self._chosen_staff_id = staff_id or None

    def totals(self, tax: TaxConfig) -> Totals:
        return compute_totals(self._lines, self.discount_code, tax)

    def hold(self) -> HeldSale | None:
        if not self._lines:
            return None
        self.session.require_operator()
        held = HeldSale(
            id=self._new_id(),
            created_at=self._clock(),
            lines=tuple(self._lines),
            customer_id=self.customer_id,
            staff_id=self.staff_id,
        )
        self.held_sales.insert(0, held)
        self._lines.clear()
        self.customer_id = None
        self._chosen_staff_id = None
        logger.info("held ticket %s with %s lines", held.id, len(held.lines))
        return held

    def resume(self, held_id: str) -> HeldSale:
        held = next((entry for entry in self.held_sales if entry.id == held_id), None)
        if held is None:
            raise HeldSaleNotFound(held_id)
        operator = self.operator
        self._lines = list(held.lines)
        if held.customer_id:
            self.customer_id = held.customer_id
        if operator.is_restricted:
            self._chosen_staff_id = operator.id
        elif held.staff_id:
            self._chosen_staff_id = held.staff_id
        self.held_sales = [entry for entry in self.held_sales if entry.id != held_id]
        logger.info("resumed ticket %s", held.id)
        return held

    def reset(self) -> None:
        self._lines.clear()
        self.customer_id = None
        self.discount_code = None
        self._chosen_staff_id = None
