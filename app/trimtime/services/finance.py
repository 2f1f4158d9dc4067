from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Sequence

from app.trimtime.schemas.catalog import Expense, Staff
from app.trimtime.schemas.sales import Sale

ZERO = Decimal("0")
HUNDRED = Decimal("100")
TREND_DAYS = 7


def sale_date(sale: Sale) -> date:
    created = sale.created_at
    if created.tzinfo is not None:
        created = created.astimezone(timezone.utc)
    return created.date()


@dataclass(frozen=True)
class DailyRevenue:
    day: date
    revenue: Decimal


@dataclass(frozen=True)
class DashboardSummary:
    total_revenue: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    average_ticket: Decimal
    last_7_days: tuple[DailyRevenue, ...]


@dataclass(frozen=True)
class StaffPerformance:
    staff_id: str
    name: str
    commission_rate: Decimal
    sales_count: int
    revenue: Decimal
    commission_earned: Decimal


@dataclass(frozen=True)
class PerformanceReport:
    start: date
    end: date
    staff: tuple[StaffPerformance, ...]
    period_revenue: Decimal
    period_commission: Decimal
    sales_count: int


def dashboard_summary(sales: Sequence[Sale], expenses: Iterable[Expense], today: date | None = None) -> DashboardSummary:
    today = today or datetime.now(timezone.utc).date()
    total_revenue = sum((s.total for s in sales), ZERO)
    total_expenses = sum((e.amount for e in expenses), ZERO)
    average_ticket = total_revenue / len(sales) if sales else ZERO

    days = [today - timedelta(days=offset) for offset in range(TREND_DAYS - 1, -1, -1)]
    by_day = {day: ZERO for day in days}
    for sale in sales:
        day = sale_date(sale)
        if day in by_day:
            by_day[day] += sale.total

    return DashboardSummary(
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        net_profit=total_revenue - total_expenses,
        average_ticket=average_ticket,
        last_7_days=tuple(DailyRevenue(day=day, revenue=by_day[day]) for day in days),
    )


def staff_performance(sales: Iterable[Sale], staff: Iterable[Staff], start: date, end: date) -> PerformanceReport:
    """Commission report for sales dated within ``[start, end]`` inclusive."""
    in_period = [s for s in sales if start <= sale_date(s) <= end]
    rows = []
    for member in staff:
        own = [s for s in in_period if s.staff_id == member.id]
        revenue = sum((s.total for s in own), ZERO)
        rows.append(
            StaffPerformance(
                staff_id=member.id,
                name=member.name,
                commission_rate=member.commission,
                sales_count=len(own),
                revenue=revenue,
                commission_earned=revenue * member.commission / HUNDRED,
            )
        )
    rows.sort(key=lambda row: row.revenue, reverse=True)

    return PerformanceReport(
        start=start,
        end=end,
        staff=tuple(rows),
        period_revenue=sum((s.total for s in in_period), ZERO),
        period_commission=sum((row.commission_earned for row in rows), ZERO),
        sales_count=len(in_period),
    )
