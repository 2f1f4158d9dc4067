from sqlalchemy import func, select

from app.trimtime.core.config import settings
from app.trimtime.db.models import COLLECTION_MODELS, SettingsRow
from app.trimtime.repos.collections import CollectionRepository


DEFAULT_SERVICES = [
    {"id": "S1", "name": "Classic Haircut", "price": "25.00", "duration": 30, "category": "Hair"},
    {"id": "S2", "name": "Beard Trim", "price": "15.00", "duration": 15, "category": "Beard"},
    {"id": "S3", "name": "Hot Towel Shave", "price": "30.00", "duration": 30, "category": "Beard"},
    {"id": "S4", "name": "Haircut & Beard", "price": "35.00", "duration": 45, "category": "Combo"},
]

DEFAULT_PRODUCTS = [
    {"id": "P1", "name": "Matte Pomade", "price": "18.00", "cost": "7.50", "stock": 24, "barcode": "8901234567890"},
    {"id": "P2", "name": "Beard Oil", "price": "22.00", "cost": "9.00", "stock": 15, "barcode": "8901234567891"},
    {"id": "P3", "name": "Styling Comb", "price": "6.00", "cost": "1.20", "stock": 40, "barcode": None},
]

DEFAULT_STAFF = [
    {
        "id": "ST1",
        "name": "Shop Admin",
        "role": "admin",
        "commission": "0",
        "username": "admin",
        "password": "admin123",
        "email": "admin@example.com",
    },
    {
        "id": "ST2",
        "name": "Barber One",
        "role": "employee",
        "commission": "40",
        "username": "barber",
        "password": "barber123",
        "email": None,
    },
]

DEFAULT_CUSTOMERS: list[dict] = []

DEFAULT_EXPENSES: list[dict] = []


def default_settings_data() -> dict:
    return {
        "shop_name": settings.DEFAULT_SHOP_NAME,
        "currency": settings.DEFAULT_CURRENCY,
        "language": "en",
        "whatsapp_enabled": False,
        "whatsapp_number": "",
        "receipt_footer": settings.DEFAULT_RECEIPT_FOOTER,
        "tax_rate": str(settings.DEFAULT_TAX_RATE),
        "tax_type": settings.DEFAULT_TAX_TYPE,
    }


DEFAULT_COLLECTIONS = {
    "services": DEFAULT_SERVICES,
    "products": DEFAULT_PRODUCTS,
    "staff": DEFAULT_STAFF,
    "customers": DEFAULT_CUSTOMERS,
    "expenses": DEFAULT_EXPENSES,
}


def _is_empty(db, model) -> bool:
    return db.execute(select(func.count()).select_from(model)).scalar_one() == 0


def run_seed(db) -> None:
    for collection, rows in DEFAULT_COLLECTIONS.items():
        if rows and _is_empty(db, COLLECTION_MODELS[collection]):
            CollectionRepository(db, collection).upsert(rows)
    if db.get(SettingsRow, 1) is None:
        db.add(SettingsRow(id=1, data=default_settings_data()))
        db.commit()
