"""Everything the register holds in memory, and the writes that keep the store in step."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from pydantic import BaseModel

from app.trimtime.client.dispatch import WriteDispatcher
from app.trimtime.client.remote_store import CollectionGateway, RemoteStore
from app.trimtime.core.error_catalog import AuthenticationError
from app.trimtime.core.logging import log_json
from app.trimtime.db.seed import DEFAULT_COLLECTIONS, default_settings_data
from app.trimtime.schemas.catalog import Customer, Expense, Product, Service, Staff
from app.trimtime.schemas.sales import Sale
from app.trimtime.schemas.settings import ShopSettings, TaxConfig
from app.trimtime.services.reconciler import (
    CustomerReconciler,
    ProductReconciler,
    ServiceReconciler,
    StaffReconciler,
)
from app.trimtime.services.session import SessionContext

logger = logging.getLogger("trimtime.shop")


def _parse(model: type[BaseModel], rows: Iterable[dict]) -> list[Any]:
    return [model.model_validate(row) for row in rows]


class ShopState:
    def __init__(self, remote: RemoteStore, dispatcher: WriteDispatcher, session: SessionContext) -> None:
        self.remote = remote
        self.dispatcher = dispatcher
        self.session = session
        self.services = ServiceReconciler(CollectionGateway(remote, "services"), dispatcher)
        self.products = ProductReconciler(CollectionGateway(remote, "products"), dispatcher)
        self.staff = StaffReconciler(CollectionGateway(remote, "staff"), dispatcher, session=session)
        self.customers = CustomerReconciler(CollectionGateway(remote, "customers"), dispatcher)
        self.expenses: list[Expense] = []
        self.sales: list[Sale] = []
        self.settings = ShopSettings.model_validate(default_settings_data())

    @property
    def tax(self) -> TaxConfig:
        return self.settings.tax_config

    # -- bootstrap -----------------------------------------------------------

    def _fetch(self, collection: str) -> list[dict] | None:
        try:
            return self.remote.select_all(collection)
        except Exception as exc:
            log_json(
                logger,
                {"event": "load_failed", "collection": collection, "error_class": exc.__class__.__name__},
                level=logging.WARNING,
            )
            return None

    def _load_collection(self, collection: str, model: type[BaseModel], *, empty_means_missing: bool = False):
        rows = self._fetch(collection)
        if rows is None or (empty_means_missing and not rows):
            return _parse(model, DEFAULT_COLLECTIONS[collection]), True
        return _parse(model, rows), False

    def load(self) -> dict[str, bool]:
        """Fetch every collection and the settings row. Returns which ones fell back to defaults."""
        fallbacks: dict[str, bool] = {}
        items, fallbacks["services"] = self._load_collection("services", Service)
        self.services.replace_local(items)
        items, fallbacks["products"] = self._load_collection("products", Product)
        self.products.replace_local(items)
        # A fresh install needs somebody who can log in.
        items, fallbacks["staff"] = self._load_collection("staff", Staff, empty_means_missing=True)
        self.staff.replace_local(items)
        items, fallbacks["expenses"] = self._load_collection("expenses", Expense)
        self.expenses = items
        items, fallbacks["customers"] = self._load_collection("customers", Customer)
        self.customers.replace_local(items)

        rows = self._fetch("sales")
        if rows is not None:
            self.sales = _parse(Sale, rows)

        try:
            data = self.remote.get_settings()
        except Exception as exc:
            log_json(
                logger,
                {"event": "load_failed", "collection": "settings", "error_class": exc.__class__.__name__},
                level=logging.WARNING,
            )
            data = None
        fallbacks["settings"] = not data
        if data:
            self.settings = ShopSettings.model_validate(data)

        log_json(logger, {"event": "shop_loaded", "fallbacks": sorted(k for k, v in fallbacks.items() if v)})
        return fallbacks

    # -- writes --------------------------------------------------------------

    def login(self, username: str, password: str, remember_me: bool = False) -> Staff:
        return self.session.login(username, password, self.staff.items, remember_me)

    def add_customer(self, customer: Customer) -> None:
        self.customers.add(customer)

    def add_expense(self, expense: Expense) -> None:
        self.expenses = [*self.expenses, expense]
        row = expense.model_dump(mode="json")
        self.dispatcher.submit("expenses", "insert", lambda: self.remote.insert("expenses", row))

    def delete_expense(self, expense_id: str) -> None:
        self.expenses = [e for e in self.expenses if e.id != expense_id]
        self.dispatcher.submit("expenses", "delete", lambda: self.remote.delete("expenses", [expense_id]))

    def update_settings(self, new_settings: ShopSettings) -> None:
        self.settings = new_settings
        data = new_settings.model_dump(mode="json")
        self.dispatcher.submit("settings", "upsert", lambda: self.remote.put_settings(data))

    def update_profile(
        self,
        *,
        name: str,
        username: str,
        email: str | None = None,
        password: str | None = None,
    ) -> Staff:
        """Edit the operator's own staff record and push only the profile fields."""
        operator = self.session.operator
        if operator is None:
            raise AuthenticationError("no operator is logged in")
        fields = {"name": name, "username": username, "email": email or None, "password": password or None}
        updated = operator.model_copy(update=fields)
        self.staff.replace_local([updated if s.id == updated.id else s for s in self.staff.items])
        self.session.refresh_identity(updated)
        self.dispatcher.submit("staff", "update", lambda: self.remote.update("staff", updated.id, fields))
        log_json(logger, {"event": "profile_updated", "staff_id": updated.id})
        return updated

    def record_sale(self, sale: Sale) -> None:
        self.sales = [*self.sales, sale]
        row = sale.model_dump(mode="json")
        self.dispatcher.submit("sales", "insert", lambda: self.remote.insert("sales", row))

    def decrement_stock(self, product: Product, quantity: int) -> Product | None:
        """Local stock follows the pre-sale snapshot; the store applies an atomic delta."""
        updated = self.products.set_stock(product.id, product.stock - quantity)
        self.dispatcher.submit(
            "products", "adjust_stock", lambda: self.remote.adjust_stock(product.id, -quantity)
        )
        return updated
