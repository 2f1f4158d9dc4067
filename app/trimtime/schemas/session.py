from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from app.trimtime.schemas.catalog import Staff


class SessionData(BaseModel):
    user: Staff
    expires_at: datetime
