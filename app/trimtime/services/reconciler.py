"""Diff-and-sync of a local collection against its remote counterpart.

One routine serves every mutable collection. It is parameterized by a
``CollectionGateway`` (``delete(ids)`` / ``upsert(rows)``) and a dispatcher
that runs the remote calls without blocking the register.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Sequence, TypeVar

from pydantic import BaseModel

from app.trimtime.client.dispatch import WriteDispatcher
from app.trimtime.client.remote_store import CollectionGateway, Row
from app.trimtime.core.logging import log_json
from app.trimtime.schemas.catalog import Customer, Product, Service, Staff
from app.trimtime.services.session import SessionContext

logger = logging.getLogger("trimtime.reconcile")

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class ReconcileResult:
    removed_ids: tuple[str, ...]
    upserted_ids: tuple[str, ...]


def removed_ids(prev: Iterable[BaseModel], next_items: Iterable[BaseModel]) -> tuple[str, ...]:
    keep = {item.id for item in next_items}
    seen: set[str] = set()
    removed: list[str] = []
    for item in prev:
        if item.id not in keep and item.id not in seen:
            seen.add(item.id)
            removed.append(item.id)
    return tuple(removed)


def _to_row(item: BaseModel) -> Row:
    return item.model_dump(mode="json")


class EntityReconciler(Generic[T]):
    def __init__(
        self,
        gateway: CollectionGateway,
        dispatcher: WriteDispatcher,
        items: Iterable[T] = (),
        *,
        to_row: Callable[[T], Row] = _to_row,
    ) -> None:
        self.gateway = gateway
        self.dispatcher = dispatcher
        self._items: list[T] = list(items)
        self._to_row = to_row

    @property
    def name(self) -> str:
        return self.gateway.name

    @property
    def items(self) -> list[T]:
        return list(self._items)

    def get(self, item_id: str) -> T | None:
        return next((item for item in self._items if item.id == item_id), None)

    def replace_local(self, items: Iterable[T]) -> None:
        """Set local state without touching the remote store (bootstrap, stock side effects)."""
        self._items = list(items)

    def reconcile(self, next_items: Sequence[T]) -> ReconcileResult:
        next_items = list(next_items)
        removed = removed_ids(self._items, next_items)
        self._items = next_items
        self._after_local_update(next_items)

        rows = [self._to_row(item) for item in next_items]
        steps = []
        if removed:
            steps.append(("delete", lambda: self.gateway.delete(removed)))
        if rows:
            steps.append(("upsert", lambda: self.gateway.upsert(rows)))
        if steps:
            self.dispatcher.submit_steps(self.name, steps)

        log_json(
            logger,
            {"event": "reconcile", "collection": self.name, "removed": len(removed), "upserted": len(rows)},
            level=logging.DEBUG,
        )
        return ReconcileResult(removed_ids=removed, upserted_ids=tuple(item.id for item in next_items))

    def _after_local_update(self, next_items: list[T]) -> None:
        pass


class ServiceReconciler(EntityReconciler[Service]):
    pass


class ProductReconciler(EntityReconciler[Product]):
    def find_by_barcode(self, code: str) -> Product | None:
        return next((p for p in self._items if p.barcode and p.barcode == code), None)

    def set_stock(self, product_id: str, stock: int) -> Product | None:
        product = self.get(product_id)
        if product is None:
            return None
        updated = product.model_copy(update={"stock": stock})
        self._items = [updated if p.id == product_id else p for p in self._items]
        return updated


class CustomerReconciler(EntityReconciler[Customer]):
    def add(self, customer: Customer) -> ReconcileResult:
        return self.reconcile([*self._items, customer])


class StaffReconciler(EntityReconciler[Staff]):
    """Staff sync that also keeps the logged-in operator's identity current."""

    def __init__(
        self,
        gateway: CollectionGateway,
        dispatcher: WriteDispatcher,
        items: Iterable[Staff] = (),
        *,
        to_row: Callable[[Staff], Row] = _to_row,
        session: SessionContext | None = None,
    ) -> None:
        super().__init__(gateway, dispatcher, items, to_row=to_row)
        self.session = session

    def _after_local_update(self, next_items: list[Staff]) -> None:
        if self.session is None or self.session.operator is None:
            return
        own = next((s for s in next_items if s.id == self.session.operator.id), None)
        if own is not None:
            self.session.refresh_identity(own)
