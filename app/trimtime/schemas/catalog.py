from __future__ import annotations

import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

StaffRole = Literal["admin", "employee"]
RESTRICTED_ROLES = frozenset({"employee"})


class Service(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    price: Decimal
    duration: int = Field(default=30, description="minutes")
    category: str = ""


class Product(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    price: Decimal
    cost: Decimal = Decimal("0")
    stock: int = 0
    barcode: str | None = None


class Staff(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    role: StaffRole = "employee"
    commission: Decimal = Field(default=Decimal("0"), description="percentage")
    username: str
    password: str | None = None
    email: str | None = None

    @property
    def is_restricted(self) -> bool:
        return self.role in RESTRICTED_ROLES


class Customer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    phone: str = ""
    email: str = ""
    notes: str = ""
    created_at: datetime.datetime | None = None


class Expense(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    date: datetime.date
    category: str
    amount: Decimal
    description: str = ""
