"""
Sales Reports

Aggregations behind the cashier and admin report pages. Rows are fetched
with plain selects and summed / grouped in Python, which keeps the
queries portable between PostgreSQL and SQLite.

All windows are half-open ``[start, end)`` in UTC; ``end=None`` means
"up to now".
"""

import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qr_ordering.core.clock import as_utc, utcnow
from qr_ordering.core.exceptions import ValidationFailedError
from qr_ordering.models import Order, OrderItem, SalesLog, Shift, User, UserRole
from qr_ordering.services import catalog

logger = logging.getLogger(__name__)


class ReportPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# =============================================================================
# WINDOWS
# =============================================================================

def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def period_window(
    period: ReportPeriod,
    day: Optional[date] = None,
    now: Optional[datetime] = None,
) -> tuple[datetime, Optional[datetime]]:
    """
    Resolve a report period to a UTC window.

    daily   -> the given day (default today), midnight to midnight
    weekly  -> the last 7 days up to now
    monthly -> since the 1st of the current month
    yearly  -> since January 1st of the current year
    """
    now = as_utc(now) if now else utcnow()
    period = ReportPeriod(period)

    if period == ReportPeriod.DAILY:
        start = start_of_day(day or now.date())
        return start, start + timedelta(days=1)
    if period == ReportPeriod.WEEKLY:
        return now - timedelta(days=7), None
    if period == ReportPeriod.MONTHLY:
        return start_of_day(now.date().replace(day=1)), None
    return start_of_day(date(now.year, 1, 1)), None


def parse_report_date(raw: Optional[str]) -> Optional[date]:
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValidationFailedError(f"Invalid date '{raw}', expected YYYY-MM-DD")


def _in_window(value: Optional[datetime], start: datetime, end: Optional[datetime]) -> bool:
    value = as_utc(value)
    if value is None or value < start:
        return False
    return end is None or value < end


def _window_clause(column, start: datetime, end: Optional[datetime]) -> list:
    clauses = [column >= start]
    if end is not None:
        clauses.append(column < end)
    return clauses


# =============================================================================
# SALES LOGS
# =============================================================================

async def sales_logs_between(
    db: AsyncSession,
    start: datetime,
    end: Optional[datetime] = None,
    cashier_id: Optional[str] = None,
) -> list[SalesLog]:
    """Sales logs in the window, newest first, with their cashier loaded."""
    query = (
        select(SalesLog)
        .where(*_window_clause(SalesLog.created_at, start, end))
        .order_by(SalesLog.created_at.desc())
    )
    if cashier_id:
        query = query.where(SalesLog.cashier_id == cashier_id)
    result = await db.execute(query)
    return [log for log in result.scalars().all() if _in_window(log.created_at, start, end)]


def total_sales(logs: list[SalesLog]) -> float:
    return round(sum(log.total_price or 0 for log in logs), 2)


async def cashier_performance(
    db: AsyncSession,
    start: datetime,
    end: Optional[datetime] = None,
) -> list[dict[str, Any]]:
    """
    Per cashier: sales total and order count from sales logs, plus the
    minutes worked in closed shifts that started inside the window.
    """
    cashiers = (
        await db.execute(select(User).where(User.role == UserRole.CASHIER).order_by(User.name))
    ).scalars().all()
    logs = await sales_logs_between(db, start, end)
    shifts = (
        await db.execute(
            select(Shift).where(
                *_window_clause(Shift.start_time, start, end),
                Shift.end_time.is_not(None),
            )
        )
    ).scalars().all()

    sales = defaultdict(float)
    orders = defaultdict(int)
    for log in logs:
        sales[log.cashier_id] += log.total_price or 0
        orders[log.cashier_id] += 1

    minutes = defaultdict(float)
    for shift in shifts:
        if not _in_window(shift.start_time, start, end):
            continue
        worked = as_utc(shift.end_time) - as_utc(shift.start_time)
        minutes[shift.cashier_id] += max(worked.total_seconds(), 0) / 60

    rows = [
        {
            "cashier_id": cashier.id,
            "cashier_name": cashier.name,
            "email": cashier.email,
            "total_sales": round(sales[cashier.id], 2),
            "total_orders": orders[cashier.id],
            "shift_minutes": round(minutes[cashier.id], 1),
        }
        for cashier in cashiers
    ]
    rows.sort(key=lambda row: row["total_sales"], reverse=True)
    return rows


# =============================================================================
# CHART SERIES
# =============================================================================

async def sales_by_date(
    db: AsyncSession,
    start: datetime,
    end: Optional[datetime] = None,
) -> dict[str, float]:
    totals = defaultdict(float)
    for log in await sales_logs_between(db, start, end):
        totals[as_utc(log.created_at).date().isoformat()] += log.total_price or 0
    return {day: round(total, 2) for day, total in totals.items()}


async def orders_by_date(
    db: AsyncSession,
    start: datetime,
    end: Optional[datetime] = None,
) -> dict[str, int]:
    result = await db.execute(
        select(Order.created_at).where(*_window_clause(Order.created_at, start, end))
    )
    counts = defaultdict(int)
    for created_at in result.scalars().all():
        if _in_window(created_at, start, end):
            counts[as_utc(created_at).date().isoformat()] += 1
    return dict(counts)


def merge_chart_series(sales: dict[str, float], orders: dict[str, int]) -> list[dict[str, Any]]:
    """One point per date present in either series, sorted by date."""
    return [
        {"date": day, "sales": sales.get(day, 0.0), "orders": orders.get(day, 0)}
        for day in sorted(set(sales) | set(orders))
    ]


# =============================================================================
# ITEMS
# =============================================================================

async def item_sales(
    db: AsyncSession,
    start: datetime,
    end: Optional[datetime] = None,
) -> list[dict[str, Any]]:
    """
    Quantities sold per menu item, keyed by the name captured at order
    time, for orders finalized inside the window. Best sellers first.
    """
    result = await db.execute(
        select(OrderItem, SalesLog.created_at)
        .join(SalesLog, SalesLog.order_id == OrderItem.order_id)
        .where(*_window_clause(SalesLog.created_at, start, end))
    )

    quantity = defaultdict(int)
    revenue = defaultdict(float)
    for item, sold_at in result.all():
        if not _in_window(sold_at, start, end):
            continue
        quantity[item.name_snapshot] += item.quantity
        revenue[item.name_snapshot] += item.subtotal

    rows = [
        {"name": name, "quantity": qty, "revenue": round(revenue[name], 2)}
        for name, qty in quantity.items()
    ]
    rows.sort(key=lambda row: (-row["quantity"], row["name"]))
    return rows


# =============================================================================
# DASHBOARD
# =============================================================================

async def dashboard(
    db: AsyncSession,
    period: ReportPeriod = ReportPeriod.MONTHLY,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    start, end = period_window(period, now=now)

    logs = await sales_logs_between(db, start, end)
    orders = await orders_by_date(db, start, end)
    items = await item_sales(db, start, end)

    summary = {
        "period": ReportPeriod(period).value,
        "start": start,
        "end": end,
        "total_sales": total_sales(logs),
        "order_count": sum(orders.values()),
        "menu_count": await catalog.count_menu_items(db),
        "restaurant_count": await catalog.count_restaurants(db),
        "chart": merge_chart_series(await sales_by_date(db, start, end), orders),
        "best_seller": items[0] if items else None,
        "least_seller": items[-1] if items else None,
    }
    logger.debug(
        f"Dashboard {summary['period']}: {summary['total_sales']} from "
        f"{len(logs)} sales"
    )
    return summary
