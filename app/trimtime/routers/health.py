from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.trimtime.core.error_catalog import ErrorCatalog
from app.trimtime.core.errors import error_response
from app.trimtime.db.session import get_db

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    """Liveness only; does not touch the database."""
    return {"status": "ok", "trace_id": request.state.trace_id}


@router.get("/ready")
def ready(request: Request, db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        unavailable = ErrorCatalog.DB_UNAVAILABLE
        return error_response(
            code=unavailable.code,
            message=unavailable.message,
            details={"type": exc.__class__.__name__},
            trace_id=request.state.trace_id,
            status_code=unavailable.status_code,
        )
    return {"status": "ready", "trace_id": request.state.trace_id}
