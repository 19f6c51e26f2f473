"""
Admin API

Endpoints (prefix /api/admin):
    - POST /signup, /login, /logout
    - Restaurants, menu items and cashiers CRUD, logo/image uploads
    - GET /orders, POST /orders/{id}/cancel
    - GET /dashboard, /reports/cashiers, /reports/items, /reports/sales
    - GET /export/sales-logs.xlsx, /export/sales-logs.csv, /export/cashiers.xlsx
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, File, Header, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from qr_ordering.core.clock import as_utc
from qr_ordering.core.config import get_settings
from qr_ordering.core.exceptions import PermissionDeniedError
from qr_ordering.database import get_db
from qr_ordering.dependencies import get_session_manager, require_admin
from qr_ordering.models import OrderStatus, UserRole
from qr_ordering.schemas import (
    AdminSignupRequest,
    CashierCreate,
    CashierPerformanceResponse,
    CashierUpdate,
    DashboardResponse,
    ImageUploadResponse,
    ItemSalesResponse,
    LoginRequest,
    LoginResponse,
    MenuItemCreate,
    MenuItemResponse,
    MenuItemUpdate,
    MessageResponse,
    OrderListResponse,
    OrderResponse,
    RestaurantCreate,
    RestaurantResponse,
    RestaurantUpdate,
    SalesLogResponse,
    SalesReportResponse,
    UserResponse,
)
from qr_ordering.services import catalog, orders, reports
from qr_ordering.services.auth import SessionData, SessionManager, authenticate, register_admin
from qr_ordering.services.excel_manager import ExcelManager
from qr_ordering.services.reports import ReportPeriod
from qr_ordering.services.uploads import save_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
EARLIEST = datetime(1970, 1, 1, tzinfo=timezone.utc)

SALES_EXPORT_COLUMNS = ["order_id", "cashier", "total_price", "payment_method", "date"]
SALES_EXPORT_HEADERS = {
    "order_id": "Order ID",
    "cashier": "Cashier",
    "total_price": "Total",
    "payment_method": "Payment Method",
    "date": "Date",
}
CASHIER_EXPORT_COLUMNS = ["cashier_name", "email", "total_sales", "total_orders", "shift_hours"]
CASHIER_EXPORT_HEADERS = {
    "cashier_name": "Cashier",
    "email": "Email",
    "total_sales": f"Total Sales ({get_settings().currency_prefix})",
    "total_orders": "Orders",
    "shift_hours": "Shift Hours",
}


def _download(content, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _window(period: Optional[ReportPeriod], date: Optional[str] = None):
    if period is None:
        return EARLIEST, None
    return reports.period_window(period, day=reports.parse_report_date(date))


async def _sales_rows(db: AsyncSession, period: Optional[ReportPeriod]) -> list[dict]:
    start, end = _window(period)
    return [
        {
            "order_id": log.order_id,
            "cashier": log.cashier_name or "-",
            "total_price": log.total_price,
            "payment_method": log.payment_method,
            "date": as_utc(log.created_at).strftime("%Y-%m-%d %H:%M:%S"),
        }
        for log in await reports.sales_logs_between(db, start, end)
    ]


# =============================================================================
# AUTH
# =============================================================================

@router.post("/signup", response_model=UserResponse, status_code=201)
async def signup(body: AdminSignupRequest, db: AsyncSession = Depends(get_db)):
    if not get_settings().allow_admin_signup:
        raise PermissionDeniedError("Admin signup is disabled")
    return await register_admin(db, body.name, body.email, body.password, body.confirm_password)


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    user = await authenticate(db, body.email, body.password, UserRole.ADMIN)
    session = await sessions.create(user)
    return LoginResponse(token=session.token, user=UserResponse.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    x_session_token: Optional[str] = Header(None, alias="X-Session-Token"),
    session: SessionData = Depends(require_admin),
    sessions: SessionManager = Depends(get_session_manager),
):
    await sessions.destroy(x_session_token)
    return MessageResponse(message="Logged out")


# =============================================================================
# RESTAURANTS
# =============================================================================

@router.get("/restaurants", response_model=list[RestaurantResponse])
async def list_restaurants(
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.list_restaurants(db)


@router.post("/restaurants", response_model=RestaurantResponse, status_code=201)
async def create_restaurant(
    body: RestaurantCreate,
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.create_restaurant(db, body.name, body.location, body.logo_url)


@router.get("/restaurants/{restaurant_id}", response_model=RestaurantResponse)
async def get_restaurant(
    restaurant_id: str,
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.get_restaurant(db, restaurant_id)


@router.put("/restaurants/{restaurant_id}", response_model=RestaurantResponse)
async def update_restaurant(
    restaurant_id: str,
    body: RestaurantUpdate,
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.update_restaurant(db, restaurant_id, body.model_dump(exclude_unset=True))


@router.delete("/restaurants/{restaurant_id}", response_model=MessageResponse)
async def delete_restaurant(
    restaurant_id: str,
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await catalog.delete_restaurant(db, restaurant_id)
    return MessageResponse(message="Restaurant deleted")


@router.post("/restaurants/{restaurant_id}/logo", response_model=ImageUploadResponse)
async def upload_restaurant_logo(
    restaurant_id: str,
    file: UploadFile = File(...),
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await catalog.get_restaurant(db, restaurant_id)
    url = await save_image(file)
    await catalog.update_restaurant(db, restaurant_id, {"logo_url": url})
    return ImageUploadResponse(url=url)


# =============================================================================
# MENU
# =============================================================================

@router.get("/menu", response_model=list[MenuItemResponse])
async def list_menu(
    restaurant_id: Optional[str] = Query(None),
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.list_menu_items(db, restaurant_id)


@router.get("/menu/categories", response_model=list[str])
async def list_menu_categories(
    restaurant_id: Optional[str] = Query(None),
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.list_categories(db, restaurant_id)


@router.post("/menu", response_model=MenuItemResponse, status_code=201)
async def create_menu_item(
    body: MenuItemCreate,
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.create_menu_item(
        db,
        restaurant_id=body.restaurant_id,
        name=body.name,
        price=body.price,
        category=body.category,
        is_available=body.is_available,
        image_url=body.image_url,
    )


@router.get("/menu/{menu_item_id}", response_model=MenuItemResponse)
async def get_menu_item(
    menu_item_id: str,
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.get_menu_item(db, menu_item_id)


@router.put("/menu/{menu_item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    menu_item_id: str,
    body: MenuItemUpdate,
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.update_menu_item(db, menu_item_id, body.model_dump(exclude_unset=True))


@router.delete("/menu/{menu_item_id}", response_model=MessageResponse)
async def delete_menu_item(
    menu_item_id: str,
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await catalog.delete_menu_item(db, menu_item_id)
    return MessageResponse(message="Menu item deleted")


@router.post("/menu/{menu_item_id}/image", response_model=ImageUploadResponse)
async def upload_menu_image(
    menu_item_id: str,
    file: UploadFile = File(...),
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await catalog.get_menu_item(db, menu_item_id)
    url = await save_image(file)
    await catalog.update_menu_item(db, menu_item_id, {"image_url": url})
    return ImageUploadResponse(url=url)


# =============================================================================
# CASHIERS
# =============================================================================

@router.get("/cashiers", response_model=list[UserResponse])
async def list_cashiers(
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.list_cashiers(db)


@router.post("/cashiers", response_model=UserResponse, status_code=201)
async def create_cashier(
    body: CashierCreate,
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.create_cashier(
        db, body.name, body.email, body.password, body.restaurant_id
    )


@router.get("/cashiers/{cashier_id}", response_model=UserResponse)
async def get_cashier(
    cashier_id: str,
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.get_cashier(db, cashier_id)


@router.put("/cashiers/{cashier_id}", response_model=UserResponse)
async def update_cashier(
    cashier_id: str,
    body: CashierUpdate,
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await catalog.update_cashier(db, cashier_id, body.model_dump(exclude_unset=True))


@router.delete("/cashiers/{cashier_id}", response_model=MessageResponse)
async def delete_cashier(
    cashier_id: str,
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await catalog.delete_cashier(db, cashier_id)
    return MessageResponse(message="Cashier deleted")


# =============================================================================
# ORDERS
# =============================================================================

@router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = Query(None),
    restaurant_id: Optional[str] = Query(None),
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Retrieve paginated list of orders."""
    total, rows = await orders.list_orders(db, status, restaurant_id, skip, limit)
    return OrderListResponse(
        total=total,
        orders=[OrderResponse.model_validate(order) for order in rows],
    )


@router.post("/orders/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await orders.cancel_order(db, order_id)


# =============================================================================
# DASHBOARD & REPORTS
# =============================================================================

@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    period: ReportPeriod = Query(ReportPeriod.MONTHLY),
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await reports.dashboard(db, period)


@router.get("/reports/cashiers", response_model=CashierPerformanceResponse)
async def cashier_report(
    period: ReportPeriod = Query(ReportPeriod.DAILY),
    date: Optional[str] = Query(None, description="YYYY-MM-DD, daily period only"),
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    start, end = _window(period, date)
    return CashierPerformanceResponse(
        period=period.value,
        start=start,
        end=end,
        cashiers=await reports.cashier_performance(db, start, end),
    )


@router.get("/reports/items", response_model=ItemSalesResponse)
async def item_report(
    period: ReportPeriod = Query(ReportPeriod.MONTHLY),
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    start, end = _window(period)
    return ItemSalesResponse(
        period=period.value,
        start=start,
        end=end,
        items=await reports.item_sales(db, start, end),
    )


@router.get("/reports/sales", response_model=SalesReportResponse)
async def sales_report(
    period: ReportPeriod = Query(ReportPeriod.DAILY),
    date: Optional[str] = Query(None, description="YYYY-MM-DD, daily period only"),
    cashier_id: Optional[str] = Query(None),
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    start, end = _window(period, date)
    logs = await reports.sales_logs_between(db, start, end, cashier_id)
    return SalesReportResponse(
        start=start,
        end=end,
        total_sales=reports.total_sales(logs),
        count=len(logs),
        logs=[SalesLogResponse.model_validate(log) for log in logs],
    )


# =============================================================================
# EXPORTS
# =============================================================================

@router.get("/export/sales-logs.xlsx")
async def export_sales_logs_xlsx(
    period: Optional[ReportPeriod] = Query(None, description="Omit for every sale"),
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    rows = await _sales_rows(db, period)
    content = ExcelManager.build_workbook(
        rows, SALES_EXPORT_COLUMNS, sheet_name="Sales Logs", headers=SALES_EXPORT_HEADERS
    )
    logger.info(f"Exported {len(rows)} sales logs to xlsx")
    return _download(content, XLSX_MEDIA_TYPE, "sales_logs.xlsx")


@router.get("/export/sales-logs.csv")
async def export_sales_logs_csv(
    period: Optional[ReportPeriod] = Query(None, description="Omit for every sale"),
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    rows = await _sales_rows(db, period)
    content = ExcelManager.build_csv(rows, SALES_EXPORT_COLUMNS, headers=SALES_EXPORT_HEADERS)
    logger.info(f"Exported {len(rows)} sales logs to csv")
    return _download(content, "text/csv; charset=utf-8", "sales_logs.csv")


@router.get("/export/cashiers.xlsx")
async def export_cashiers_xlsx(
    period: ReportPeriod = Query(ReportPeriod.DAILY),
    date: Optional[str] = Query(None, description="YYYY-MM-DD, daily period only"),
    session: SessionData = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    start, end = _window(period, date)
    rows = [
        {**row, "shift_hours": round(row["shift_minutes"] / 60, 2)}
        for row in await reports.cashier_performance(db, start, end)
    ]
    content = ExcelManager.build_workbook(
        rows, CASHIER_EXPORT_COLUMNS, sheet_name="Cashiers", headers=CASHIER_EXPORT_HEADERS
    )
    return _download(content, XLSX_MEDIA_TYPE, f"cashiers_{period.value}.xlsx")
