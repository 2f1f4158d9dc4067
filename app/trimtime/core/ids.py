from __future__ import annotations

import uuid


def new_record_id() -> str:
    """Short uppercase id used for tickets, sales and catalog entries."""
    return uuid.uuid4().hex[:9].upper()
