from datetime import date, datetime

from sqlalchemy import JSON, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

MONEY = Numeric(14, 4)


class Base(DeclarativeBase):
    pass


class ServiceRow(Base):
    __tablename__ = "services"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price = mapped_column(MONEY, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, default=30, nullable=False)
    category: Mapped[str] = mapped_column(String(100), default="", nullable=False)


class ProductRow(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price = mapped_column(MONEY, nullable=False)
    cost = mapped_column(MONEY, default=0, nullable=False)
    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    barcode: Mapped[str | None] = mapped_column(String(128), index=True, nullable=True)


class StaffRow(Base):
    __tablename__ = "staff"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="employee", nullable=False)
    commission = mapped_column(Numeric(6, 2), default=0, nullable=False)
    username: Mapped[str] = mapped_column(String(150), nullable=False, index=True)
    password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)


class CustomerRow(Base):
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    email: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class ExpenseRow(Base):
    __tablename__ = "expenses"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    amount = mapped_column(MONEY, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)


class SaleRow(Base):
    __tablename__ = "sales"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    lines: Mapped[list] = mapped_column(JSON, nullable=False)
    staff_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    customer_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    total = mapped_column(MONEY, nullable=False)
    tax = mapped_column(MONEY, nullable=False)
    discount = mapped_column(MONEY, nullable=False)
    discount_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    payment_method: Mapped[str] = mapped_column(String(10), nullable=False)
    tax_mode: Mapped[str] = mapped_column(String(10), nullable=False)


class SettingsRow(Base):
    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    data: Mapped[dict] = mapped_column(JSON, nullable=False)


COLLECTION_MODELS: dict[str, type[Base]] = {
    "services": ServiceRow,
    "products": ProductRow,
    "staff": StaffRow,
    "customers": CustomerRow,
    "expenses": ExpenseRow,
    "sales": SaleRow,
}

APPEND_ONLY_COLLECTIONS = frozenset({"sales"})
