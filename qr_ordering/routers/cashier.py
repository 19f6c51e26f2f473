"""
Cashier API

Endpoints (prefix /api/cashier):
    - POST /login, /logout, GET /me: shift-backed sessions
    - POST /scan: look up the order behind a scanned QR code
    - POST /orders/{id}/confirm: take payment, write the sales log
    - GET /orders/{id}/receipt, POST /orders/{id}/print
    - GET /sales/today, /reports/daily, /reports/monthly
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query
from kombu.exceptions import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from qr_ordering.core.exceptions import InvalidStateError
from qr_ordering.database import get_db
from qr_ordering.dependencies import get_session_manager, require_cashier
from qr_ordering.models import OrderStatus, UserRole
from qr_ordering.schemas import (
    CashierDashboardResponse,
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    OrderResponse,
    PrintResponse,
    ReceiptResponse,
    SalesLogResponse,
    SalesReportResponse,
    ScanRequest,
    SessionResponse,
    ShiftResponse,
    UserResponse,
)
from qr_ordering.services import orders, reports, shifts
from qr_ordering.services.auth import SessionData, SessionManager, authenticate
from qr_ordering.services.printer import get_printer_service
from qr_ordering.services.receipt import render_receipt
from qr_ordering.tasks import export_sale_to_excel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cashier", tags=["Cashier"])


def queue_sale_export(payload: dict) -> None:
    """Hand the sale to Celery; a broker outage must not undo the sale."""
    try:
        export_sale_to_excel.delay(payload)
    except OperationalError as e:
        logger.error(f"Could not queue ledger export for order {payload.get('order_id')}: {e}")


async def _receipt_cashier_name(db: AsyncSession, order_id: str, session: SessionData) -> str:
    sales_log = await orders.get_sales_log_for_order(db, order_id)
    if sales_log is not None and sales_log.cashier_name:
        return sales_log.cashier_name
    return session.name


# =============================================================================
# SESSION
# =============================================================================

@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Authenticate a cashier and open a new shift."""
    user = await authenticate(db, body.email, body.password, UserRole.CASHIER)
    shift = await shifts.open_shift(db, user.id)
    session = await sessions.create(user, shift_id=shift.id)

    return LoginResponse(
        token=session.token,
        user=UserResponse.model_validate(user),
        shift=ShiftResponse.model_validate(shift),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    x_session_token: Optional[str] = Header(None, alias="X-Session-Token"),
    session: SessionData = Depends(require_cashier),
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Close the cashier's shift and end the session."""
    if session.shift_id:
        await shifts.close_shift(db, session.shift_id)
    await sessions.destroy(x_session_token)
    return MessageResponse(message="Logged out, shift closed")


@router.get("/me", response_model=SessionResponse)
async def me(
    session: SessionData = Depends(require_cashier),
    db: AsyncSession = Depends(get_db),
):
    shift = await shifts.get_shift(db, session.shift_id) if session.shift_id else None
    return SessionResponse(
        user_id=session.user_id,
        name=session.name,
        email=session.email,
        role=session.role,
        restaurant_id=session.restaurant_id,
        shift=ShiftResponse.model_validate(shift) if shift else None,
    )


# =============================================================================
# ORDERS
# =============================================================================

@router.post("/scan", response_model=OrderResponse)
async def scan_order(
    body: ScanRequest,
    session: SessionData = Depends(require_cashier),
    db: AsyncSession = Depends(get_db),
):
    """Resolve scanned QR text to an order and mark it scanned."""
    order_id = orders.parse_order_code(body.code)
    logger.info(f"Cashier {session.email} scanned order {order_id}")
    return await orders.mark_scanned(db, order_id)


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    session: SessionData = Depends(require_cashier),
    db: AsyncSession = Depends(get_db),
):
    return await orders.get_order(db, order_id)


@router.post("/orders/{order_id}/confirm", response_model=ConfirmPaymentResponse)
async def confirm_order(
    order_id: str,
    body: Optional[ConfirmPaymentRequest] = None,
    session: SessionData = Depends(require_cashier),
    db: AsyncSession = Depends(get_db),
):
    """
    Record payment for the order.

    Writes the sales log and completes the order in one transaction,
    then queues the ledger export.
    """
    payment_method = body.payment_method if body else "cash"
    order, sales_log = await orders.confirm_payment(
        db,
        order_id,
        cashier_id=session.user_id,
        shift_id=session.shift_id,
        payment_method=payment_method,
    )

    queue_sale_export(orders.sale_payload(order, sales_log, session.name))

    return ConfirmPaymentResponse(
        message="Payment recorded, order completed",
        order=OrderResponse.model_validate(order),
        sales_log=SalesLogResponse.model_validate(sales_log),
        receipt=render_receipt(order, session.name),
    )


@router.get("/orders/{order_id}/receipt", response_model=ReceiptResponse)
async def get_receipt(
    order_id: str,
    session: SessionData = Depends(require_cashier),
    db: AsyncSession = Depends(get_db),
):
    order = await orders.get_order(db, order_id)
    cashier_name = await _receipt_cashier_name(db, order_id, session)
    return ReceiptResponse(order_id=order.id, receipt=render_receipt(order, cashier_name))


@router.post("/orders/{order_id}/print", response_model=PrintResponse)
async def print_receipt(
    order_id: str,
    session: SessionData = Depends(require_cashier),
    db: AsyncSession = Depends(get_db),
):
    order = await orders.get_order(db, order_id)
    if order.status != OrderStatus.COMPLETED:
        raise InvalidStateError("Only completed orders can be printed")

    cashier_name = await _receipt_cashier_name(db, order_id, session)
    printer = get_printer_service()
    result = await printer.print_receipt(render_receipt(order, cashier_name), order.id)

    return PrintResponse(
        success=result.success,
        order_id=result.order_id,
        printer=printer.provider_name,
        destination=result.destination,
        error_message=result.error_message,
    )


@router.post("/orders/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    session: SessionData = Depends(require_cashier),
    db: AsyncSession = Depends(get_db),
):
    logger.info(f"Cashier {session.email} cancelling order {order_id}")
    return await orders.cancel_order(db, order_id)


# =============================================================================
# REPORTS
# =============================================================================

@router.get("/sales/today", response_model=CashierDashboardResponse)
async def sales_today(
    session: SessionData = Depends(require_cashier),
    db: AsyncSession = Depends(get_db),
):
    """Today's sales across all cashiers plus the caller's current shift."""
    start, end = reports.period_window(reports.ReportPeriod.DAILY)
    logs = await reports.sales_logs_between(db, start, end)
    shift = await shifts.get_shift(db, session.shift_id) if session.shift_id else None

    return CashierDashboardResponse(
        start=start,
        end=end,
        total_sales=reports.total_sales(logs),
        count=len(logs),
        logs=[SalesLogResponse.model_validate(log) for log in logs],
        shift=ShiftResponse.model_validate(shift) if shift else None,
    )


@router.get("/reports/daily", response_model=SalesReportResponse)
async def daily_report(
    date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today (UTC)"),
    session: SessionData = Depends(require_cashier),
    db: AsyncSession = Depends(get_db),
):
    day = reports.parse_report_date(date)
    start, end = reports.period_window(reports.ReportPeriod.DAILY, day=day)
    logs = await reports.sales_logs_between(db, start, end)
    return SalesReportResponse(
        start=start,
        end=end,
        total_sales=reports.total_sales(logs),
        count=len(logs),
        logs=[SalesLogResponse.model_validate(log) for log in logs],
    )


@router.get("/reports/monthly", response_model=SalesReportResponse)
async def monthly_report(
    session: SessionData = Depends(require_cashier),
    db: AsyncSession = Depends(get_db),
):
    start, end = reports.period_window(reports.ReportPeriod.MONTHLY)
    logs = await reports.sales_logs_between(db, start, end)
    return SalesReportResponse(
        start=start,
        end=end,
        total_sales=reports.total_sales(logs),
        count=len(logs),
        logs=[SalesLogResponse.model_validate(log) for log in logs],
    )
