"""Adapters for the table-oriented remote store.

Every adapter speaks plain JSON-mode dicts keyed by ``id``. ``HttpRemoteStore``
talks to the store server over HTTP; ``SqlRemoteStore`` writes straight to the
database and is what an all-in-one register install uses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Protocol

from app.trimtime.repos.collections import CollectionRepository, ProductStockRepository
from app.trimtime.repos.settings import SettingsRepository

from .exceptions import NotFoundError
from .http_client import HttpClient

Row = dict[str, Any]


class RemoteStore(Protocol):
    def select_all(self, collection: str) -> list[Row]: ...

    def select_one(self, collection: str, record_id: str) -> Row | None: ...

    def upsert(self, collection: str, rows: list[Row]) -> None: ...

    def delete(self, collection: str, ids: list[str]) -> None: ...

    def insert(self, collection: str, row: Row) -> None: ...

    def update(self, collection: str, record_id: str, fields: Row) -> None: ...

    def adjust_stock(self, product_id: str, delta: int) -> int: ...

    def get_settings(self) -> Row | None: ...

    def put_settings(self, data: Row) -> None: ...


@dataclass(frozen=True)
class CollectionGateway:
    """The two write capabilities the reconciler needs, bound to one collection."""

    store: RemoteStore
    name: str

    def delete(self, ids: Iterable[str]) -> None:
        self.store.delete(self.name, list(ids))

    def upsert(self, rows: Iterable[Row]) -> None:
        self.store.upsert(self.name, list(rows))


@dataclass
class HttpRemoteStore:
    http: HttpClient
    prefix: str = "/trimtime"

    def _path(self, *parts: str) -> str:
        return "/".join([self.prefix, *parts])

    def select_all(self, collection: str) -> list[Row]:
        data = self.http.request("GET", self._path(collection), operation=f"{collection}.select_all")
        if not isinstance(data, dict):
            raise ValueError("Expected select-all response to be a JSON object")
        return list(data.get("rows") or [])

    def select_one(self, collection: str, record_id: str) -> Row | None:
        try:
            data = self.http.request("GET", self._path(collection, record_id), operation=f"{collection}.select_one")
        except NotFoundError:
            return None
        if not isinstance(data, dict):
            raise ValueError("Expected single-row response to be a JSON object")
        return data

    def upsert(self, collection: str, rows: list[Row]) -> None:
        self.http.request(
            "PUT",
            self._path(collection),
            json_body=rows,
            retry_mutation=True,
            operation=f"{collection}.upsert",
        )

    def delete(self, collection: str, ids: list[str]) -> None:
        self.http.request(
            "POST",
            self._path(collection, "delete"),
            json_body={"ids": ids},
            retry_mutation=True,
            operation=f"{collection}.delete",
        )

    def insert(self, collection: str, row: Row) -> None:
        self.http.request("POST", self._path(collection), json_body=row, operation=f"{collection}.insert")

    def update(self, collection: str, record_id: str, fields: Row) -> None:
        self.http.request(
            "PATCH",
            self._path(collection, record_id),
            json_body=fields,
            retry_mutation=True,
            operation=f"{collection}.update",
        )

    def adjust_stock(self, product_id: str, delta: int) -> int:
        data = self.http.request(
            "POST",
            self._path("products", product_id, "stock-adjustments"),
            json_body={"delta": delta},
            operation="products.adjust_stock",
        )
        if not isinstance(data, dict):
            raise ValueError("Expected stock adjustment response to be a JSON object")
        return int(data["stock"])

    def get_settings(self) -> Row | None:
        try:
            data = self.http.request("GET", self._path("settings"), operation="settings.select_one")
        except NotFoundError:
            return None
        return data if isinstance(data, dict) else None

    def put_settings(self, data: Row) -> None:
        self.http.request(
            "PUT",
            self._path("settings"),
            json_body=data,
            retry_mutation=True,
            operation="settings.upsert",
        )


@dataclass
class SqlRemoteStore:
    session_factory: Callable[[], Any]

    def _run(self, work: Callable[[Any], Any]) -> Any:
        db = self.session_factory()
        try:
            return work(db)
        finally:
            db.close()

    def select_all(self, collection: str) -> list[Row]:
        return self._run(
            lambda db: [r.model_dump(mode="json") for r in CollectionRepository(db, collection).list_all()]
        )

    def select_one(self, collection: str, record_id: str) -> Row | None:
        def work(db):
            record = CollectionRepository(db, collection).get(record_id)
            return record.model_dump(mode="json") if record is not None else None

        return self._run(work)

    def upsert(self, collection: str, rows: list[Row]) -> None:
        self._run(lambda db: CollectionRepository(db, collection).upsert(rows))

    def delete(self, collection: str, ids: list[str]) -> None:
        self._run(lambda db: CollectionRepository(db, collection).delete(ids))

    def insert(self, collection: str, row: Row) -> None:
        self._run(lambda db: CollectionRepository(db, collection).insert(row))

    def update(self, collection: str, record_id: str, fields: Row) -> None:
        def work(db):
            if CollectionRepository(db, collection).patch(record_id, fields) is None:
                raise KeyError(f"{collection}/{record_id} not found")

        self._run(work)

    def adjust_stock(self, product_id: str, delta: int) -> int:
        def work(db):
            new_stock = ProductStockRepository(db).adjust(product_id, delta)
            if new_stock is None:
                raise KeyError(f"products/{product_id} not found")
            return new_stock

        return self._run(work)

    def get_settings(self) -> Row | None:
        return self._run(lambda db: SettingsRepository(db).get())

    def put_settings(self, data: Row) -> None:
        self._run(lambda db: SettingsRepository(db).upsert(data))
