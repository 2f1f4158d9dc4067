from app.trimtime.db.models import SettingsRow

SETTINGS_ROW_ID = 1


class SettingsRepository:
    def __init__(self, db):
        self.db = db

    def get(self) -> dict | None:
        row = self.db.get(SettingsRow, SETTINGS_ROW_ID)
        return dict(row.data) if row is not None else None

    def upsert(self, data: dict) -> dict:
        self.db.merge(SettingsRow(id=SETTINGS_ROW_ID, data=data))
        self.db.commit()
        return data
