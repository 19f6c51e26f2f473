import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest

from qr_ordering.core.exceptions import ValidationFailedError
from qr_ordering.database import async_session_maker
from qr_ordering.models import Shift, User, UserRole
from qr_ordering.services.auth import hash_password
from qr_ordering.services.reports import (
    ReportPeriod,
    cashier_performance,
    merge_chart_series,
    parse_report_date,
    period_window,
)

NOW = datetime(2026, 5, 14, 15, 30, tzinfo=timezone.utc)


def test_daily_window_is_half_open_day():
    start, end = period_window(ReportPeriod.DAILY, now=NOW)
    assert start == datetime(2026, 5, 14, tzinfo=timezone.utc)
    assert end == start + timedelta(days=1)


def test_daily_window_for_given_day():
    start, end = period_window(ReportPeriod.DAILY, day=date(2026, 1, 31), now=NOW)
    assert start == datetime(2026, 1, 31, tzinfo=timezone.utc)
    assert end == datetime(2026, 2, 1, tzinfo=timezone.utc)


def test_weekly_window_is_last_seven_days():
    start, end = period_window(ReportPeriod.WEEKLY, now=NOW)
    assert start == NOW - timedelta(days=7)
    assert end is None


def test_monthly_and_yearly_windows():
    start, end = period_window("monthly", now=NOW)
    assert start == datetime(2026, 5, 1, tzinfo=timezone.utc)
    assert end is None

    start, end = period_window(ReportPeriod.YEARLY, now=NOW)
    assert start == datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert end is None


def test_parse_report_date():
    assert parse_report_date(None) is None
    assert parse_report_date("") is None
    assert parse_report_date("2026-02-28") == date(2026, 2, 28)
    with pytest.raises(ValidationFailedError):
        parse_report_date("28/02/2026")


def test_merge_chart_series_fills_missing_days():
    points = merge_chart_series(
        {"2026-05-02": 50000.0, "2026-05-01": 10000.0},
        {"2026-05-02": 3, "2026-05-03": 1},
    )
    assert points == [
        {"date": "2026-05-01", "sales": 10000.0, "orders": 0},
        {"date": "2026-05-02", "sales": 50000.0, "orders": 3},
        {"date": "2026-05-03", "sales": 0.0, "orders": 1},
    ]


def test_merge_chart_series_empty():
    assert merge_chart_series({}, {}) == []


def at(day, hour, minute=0):
    return datetime(2026, 5, day, hour, minute, tzinfo=timezone.utc)


def test_shift_minutes_count_closed_shifts_started_in_window(client):
    async def scenario():
        async with async_session_maker() as db:
            ani = User(name="Ani", email="ani@resto.id", password_hash=hash_password("x"), role=UserRole.CASHIER)
            budi = User(name="Budi", email="budi@resto.id", password_hash=hash_password("x"), role=UserRole.CASHIER)
            db.add_all([ani, budi])
            await db.flush()
            db.add_all([
                Shift(cashier_id=ani.id, start_time=at(14, 9), end_time=at(14, 11, 30)),
                Shift(cashier_id=ani.id, start_time=at(14, 13), end_time=at(14, 13, 45)),
                # still open
                Shift(cashier_id=ani.id, start_time=at(14, 15), end_time=None),
                # started the night before
                Shift(cashier_id=ani.id, start_time=at(13, 22), end_time=at(14, 2)),
                # started the next day
                Shift(cashier_id=budi.id, start_time=at(15, 8), end_time=at(15, 10)),
            ])
            await db.commit()

            start, end = period_window(ReportPeriod.DAILY, day=date(2026, 5, 14))
            return await cashier_performance(db, start, end)

    rows = {row["cashier_name"]: row for row in asyncio.run(scenario())}

    assert rows["Ani"]["shift_minutes"] == 195.0
    assert rows["Budi"]["shift_minutes"] == 0
    assert rows["Ani"]["total_orders"] == 0
