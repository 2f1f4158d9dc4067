from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from app.trimtime.core.error_catalog import AppError, ErrorCatalog
from app.trimtime.db.models import APPEND_ONLY_COLLECTIONS
from app.trimtime.db.session import get_db
from app.trimtime.repos.collections import (
    CollectionRepository,
    ProductStockRepository,
    UnknownCollectionError,
)
from app.trimtime.schemas.store import (
    DeleteRequest,
    DeleteResponse,
    RowsResponse,
    StockAdjustmentRequest,
    StockAdjustmentResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _repository(db, collection: str) -> CollectionRepository:
    try:
        return CollectionRepository(db, collection)
    except UnknownCollectionError as exc:
        raise AppError(ErrorCatalog.UNKNOWN_COLLECTION, details={"collection": collection}) from exc


def _require_mutable(collection: str) -> None:
    if collection in APPEND_ONLY_COLLECTIONS:
        raise AppError(ErrorCatalog.APPEND_ONLY_COLLECTION, details={"collection": collection})


def _invalid(exc: ValidationError) -> AppError:
    return AppError(
        ErrorCatalog.VALIDATION_ERROR,
        details={"errors": exc.errors(include_url=False, include_input=False, include_context=False)},
    )


def _dump(record) -> dict[str, Any]:
    return record.model_dump(mode="json")


@router.get("/trimtime/{collection}", response_model=RowsResponse)
def select_all(collection: str, db=Depends(get_db)):
    repo = _repository(db, collection)
    return RowsResponse(rows=[_dump(record) for record in repo.list_all()])


@router.get("/trimtime/{collection}/{record_id}")
def select_one(collection: str, record_id: str, db=Depends(get_db)):
    repo = _repository(db, collection)
    record = repo.get(record_id)
    if record is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"collection": collection, "id": record_id})
    return _dump(record)


@router.put("/trimtime/{collection}", response_model=RowsResponse)
def upsert(collection: str, rows: list[dict[str, Any]] = Body(...), db=Depends(get_db)):
    repo = _repository(db, collection)
    _require_mutable(collection)
    try:
        records = repo.upsert(rows)
    except ValidationError as exc:
        raise _invalid(exc) from exc
    logger.info("upserted %s rows into %s", len(records), collection)
    return RowsResponse(rows=[_dump(record) for record in records])


@router.post("/trimtime/{collection}", status_code=201)
def insert(collection: str, row: dict[str, Any] = Body(...), db=Depends(get_db)):
    repo = _repository(db, collection)
    if row.get("id") and repo.exists(str(row["id"])):
        raise AppError(ErrorCatalog.DUPLICATE_ID, details={"collection": collection, "id": row["id"]})
    try:
        record = repo.insert(row)
    except ValidationError as exc:
        raise _invalid(exc) from exc
    except IntegrityError as exc:
        db.rollback()
        raise AppError(ErrorCatalog.DUPLICATE_ID, details={"collection": collection}) from exc
    return _dump(record)


@router.post("/trimtime/{collection}/delete", response_model=DeleteResponse)
def delete(collection: str, payload: DeleteRequest, db=Depends(get_db)):
    repo = _repository(db, collection)
    _require_mutable(collection)
    deleted = repo.delete(payload.ids)
    logger.info("deleted %s rows from %s", deleted, collection)
    return DeleteResponse(deleted=deleted)


@router.patch("/trimtime/{collection}/{record_id}")
def patch(collection: str, record_id: str, fields: dict[str, Any] = Body(...), db=Depends(get_db)):
    repo = _repository(db, collection)
    _require_mutable(collection)
    try:
        record = repo.patch(record_id, fields)
    except ValidationError as exc:
        raise _invalid(exc) from exc
    if record is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"collection": collection, "id": record_id})
    return _dump(record)


@router.post("/trimtime/products/{product_id}/stock-adjustments", response_model=StockAdjustmentResponse)
def adjust_stock(product_id: str, payload: StockAdjustmentRequest, db=Depends(get_db)):
    new_stock = ProductStockRepository(db).adjust(product_id, payload.delta)
    if new_stock is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"collection": "products", "id": product_id})
    return StockAdjustmentResponse(id=product_id, stock=new_stock)
