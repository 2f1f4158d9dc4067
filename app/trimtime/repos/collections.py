from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel
from sqlalchemy import delete, select, update

from app.trimtime.db.models import COLLECTION_MODELS, ProductRow
from app.trimtime.schemas.catalog import Customer, Expense, Product, Service, Staff
from app.trimtime.schemas.sales import Sale

COLLECTION_SCHEMAS: dict[str, type[BaseModel]] = {
    "services": Service,
    "products": Product,
    "staff": Staff,
    "customers": Customer,
    "expenses": Expense,
    "sales": Sale,
}


class UnknownCollectionError(KeyError):
    pass


def _columns(collection: str, record: BaseModel) -> dict[str, Any]:
    values = record.model_dump()
    if collection == "sales":
        values["lines"] = [line.model_dump(mode="json") for line in record.lines]
    return values


class CollectionRepository:
    def __init__(self, db, collection: str):
        if collection not in COLLECTION_MODELS:
            raise UnknownCollectionError(collection)
        self.db = db
        self.collection = collection
        self.model = COLLECTION_MODELS[collection]
        self.schema = COLLECTION_SCHEMAS[collection]

    def validate(self, payload: Mapping[str, Any]) -> BaseModel:
        return self.schema.model_validate(dict(payload))

    def to_record(self, row) -> BaseModel:
        values = {column.key: getattr(row, column.key) for column in self.model.__table__.columns}
        return self.schema.model_validate(values)

    def list_all(self) -> list[BaseModel]:
        rows = self.db.execute(select(self.model).order_by(self.model.id)).scalars().all()
        return [self.to_record(row) for row in rows]

    def get(self, record_id: str) -> BaseModel | None:
        row = self.db.get(self.model, record_id)
        return self.to_record(row) if row is not None else None

    def exists(self, record_id: str) -> bool:
        return self.db.get(self.model, record_id) is not None

    def upsert(self, payloads: Iterable[Mapping[str, Any]]) -> list[BaseModel]:
        records = [self.validate(payload) for payload in payloads]
        for record in records:
            self.db.merge(self.model(**_columns(self.collection, record)))
        self.db.commit()
        return records

    def insert(self, payload: Mapping[str, Any]) -> BaseModel:
        record = self.validate(payload)
        self.db.add(self.model(**_columns(self.collection, record)))
        self.db.commit()
        return record

    def delete(self, ids: Iterable[str]) -> int:
        doomed = list(ids)
        if not doomed:
            return 0
        result = self.db.execute(delete(self.model).where(self.model.id.in_(doomed)))
        self.db.commit()
        return result.rowcount or 0

    def patch(self, record_id: str, fields: Mapping[str, Any]) -> BaseModel | None:
        row = self.db.get(self.model, record_id)
        if row is None:
            return None
        current = self.to_record(row).model_dump()
        merged = self.validate({**current, **dict(fields), "id": record_id})
        for key, value in _columns(self.collection, merged).items():
            setattr(row, key, value)
        self.db.commit()
        return merged


class ProductStockRepository:
    def __init__(self, db):
        self.db = db

    def adjust(self, product_id: str, delta: int) -> int | None:
        result = self.db.execute(
            update(ProductRow)
            .where(ProductRow.id == product_id)
            .values(stock=ProductRow.stock + delta)
            .returning(ProductRow.stock)
        )
        new_stock = result.scalar_one_or_none()
        self.db.commit()
        return new_stock
