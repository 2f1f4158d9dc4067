from fastapi import APIRouter, Depends

from app.trimtime.core.error_catalog import AppError, ErrorCatalog
from app.trimtime.db.session import get_db
from app.trimtime.repos.settings import SettingsRepository
from app.trimtime.schemas.settings import ShopSettings

router = APIRouter()


@router.get("/trimtime/settings", response_model=ShopSettings)
def get_settings(db=Depends(get_db)):
    data = SettingsRepository(db).get()
    if data is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"collection": "settings"})
    return ShopSettings.model_validate(data)


@router.put("/trimtime/settings", response_model=ShopSettings)
def put_settings(payload: ShopSettings, db=Depends(get_db)):
    SettingsRepository(db).upsert(payload.model_dump(mode="json"))
    return payload
