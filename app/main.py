from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.trimtime.api import api_router
from app.trimtime.core.config import settings
from app.trimtime.core.errors import setup_exception_handlers
from app.trimtime.core.logging import configure_logging
from app.trimtime.db.seed import run_seed
from app.trimtime.db.session import init_db, session_scope
from app.trimtime.middleware.observability import ObservabilityMiddleware
from app.trimtime.middleware.trace import TraceIdMiddleware


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    if settings.SEED_DEFAULT_CATALOG:
        with session_scope() as db:
            run_seed(db)
    yield


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(ObservabilityMiddleware)
    setup_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
