"""
Pydantic Schemas for Request/Response Validation

Grouped by the three audiences of the API:
- Customers: restaurants, menus, carts, orders
- Cashiers: login, scan, confirm, receipts, daily/monthly reports
- Admins: catalog management, dashboard, exports

Version: 1.0.0
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Any
from datetime import datetime

from qr_ordering.models import OrderStatus, UserRole


# =============================================================================
# SHARED
# =============================================================================

class MessageResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[Any] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    environment: str
    database: str
    storage: str
    broker: str
    printer: str
    timestamp: datetime


# =============================================================================
# RESTAURANTS & MENU
# =============================================================================

class RestaurantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120, examples=["Warung Nusantara"])
    location: str = Field(..., min_length=1, max_length=255, examples=["Jl. Merdeka No. 1"])
    logo_url: Optional[str] = Field(None, max_length=500)


class RestaurantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    logo_url: Optional[str] = Field(None, max_length=500)


class RestaurantResponse(BaseModel):
    id: str
    name: str
    location: str
    logo_url: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class MenuItemCreate(BaseModel):
    restaurant_id: str
    name: str = Field(..., min_length=1, max_length=120, examples=["Nasi Goreng"])
    category: Optional[str] = Field(None, max_length=60, examples=["Food"])
    price: float = Field(..., gt=0, examples=[25000])
    is_available: bool = True
    image_url: Optional[str] = Field(None, max_length=500)


class MenuItemUpdate(BaseModel):
    restaurant_id: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    category: Optional[str] = Field(None, max_length=60)
    price: Optional[float] = Field(None, gt=0)
    is_available: Optional[bool] = None
    image_url: Optional[str] = Field(None, max_length=500)


class MenuItemResponse(BaseModel):
    id: str
    restaurant_id: str
    name: str
    category: str
    price: float
    is_available: bool
    image_url: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class ImageUploadResponse(BaseModel):
    success: bool = True
    url: str


# =============================================================================
# CARTS
# =============================================================================

class CartCreate(BaseModel):
    restaurant_id: str
    table_number: Optional[str] = Field(None, max_length=20)


class CartItemAdd(BaseModel):
    menu_item_id: str
    quantity: int = Field(default=1, ge=1, le=99)


class CartItemQuantity(BaseModel):
    quantity: int = Field(..., ge=1, le=99)


class CartTableUpdate(BaseModel):
    table_number: str = Field(..., min_length=1, max_length=20, examples=["12"])


class CartLineResponse(BaseModel):
    menu_item_id: str
    name: str
    price: float
    quantity: int
    subtotal: float
    image_url: Optional[str] = None


class CartResponse(BaseModel):
    cart_id: str
    restaurant_id: str
    table_number: Optional[str]
    items: List[CartLineResponse]
    total_items: int
    total_price: float


# =============================================================================
# ORDERS
# =============================================================================

class OrderItemResponse(BaseModel):
    id: str
    menu_item_id: Optional[str]
    name_snapshot: str
    price_snapshot: float
    quantity: int
    subtotal: float

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    """Response schema for a single order."""
    id: str
    restaurant_id: str
    restaurant_name: Optional[str]
    table_number: str
    status: OrderStatus
    items: List[OrderItemResponse]
    total: float
    total_quantity: int
    created_at: Optional[datetime]
    scanned_at: Optional[datetime]
    completed_at: Optional[datetime]

    class Config:
        from_attributes = True


class CheckoutResponse(BaseModel):
    """Response after a cart becomes an order."""
    success: bool = True
    message: str
    order_id: str
    total: float
    status: OrderStatus
    qr_code_url: str
    status_url: str


class OrderStatusResponse(BaseModel):
    order_id: str
    status: OrderStatus
    is_final: bool
    poll_interval_seconds: int


class OrderListResponse(BaseModel):
    """Response for listing multiple orders."""
    total: int
    orders: List[OrderResponse]


# =============================================================================
# AUTH & USERS
# =============================================================================

class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, examples=["kasir@resto.id"])
    password: str = Field(..., min_length=1)


class AdminSignupRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1)
    confirm_password: str


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    restaurant_id: Optional[str]
    restaurant_name: Optional[str] = None
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class ShiftResponse(BaseModel):
    id: str
    cashier_id: str
    start_time: datetime
    end_time: Optional[datetime]
    is_open: bool

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    user: UserResponse
    shift: Optional[ShiftResponse] = None


class SessionResponse(BaseModel):
    user_id: str
    name: str
    email: str
    role: UserRole
    restaurant_id: Optional[str]
    shift: Optional[ShiftResponse] = None


class CashierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1)
    restaurant_id: Optional[str] = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        if '@' not in v:
            raise ValueError('Invalid email format')
        return v.strip().lower()


class CashierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = None
    restaurant_id: Optional[str] = None


# =============================================================================
# CASHIER WORKFLOW
# =============================================================================

class ScanRequest(BaseModel):
    code: str = Field(..., description="Text decoded from the customer's QR code")


class ConfirmPaymentRequest(BaseModel):
    payment_method: str = Field(default="cash", max_length=30, examples=["cash", "qris"])


class SalesLogResponse(BaseModel):
    id: str
    order_id: str
    cashier_id: str
    cashier_name: Optional[str]
    shift_id: str
    total_price: float
    payment_method: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class ConfirmPaymentResponse(BaseModel):
    success: bool = True
    message: str
    order: OrderResponse
    sales_log: SalesLogResponse
    receipt: str


class ReceiptResponse(BaseModel):
    order_id: str
    receipt: str


class PrintResponse(BaseModel):
    success: bool
    order_id: str
    printer: str
    destination: Optional[str] = None
    error_message: Optional[str] = None


# =============================================================================
# REPORTS
# =============================================================================

class SalesReportResponse(BaseModel):
    start: datetime
    end: Optional[datetime]
    total_sales: float
    count: int
    logs: List[SalesLogResponse]


class CashierDashboardResponse(SalesReportResponse):
    shift: Optional[ShiftResponse] = None


class CashierPerformanceRow(BaseModel):
    cashier_id: str
    cashier_name: str
    email: str
    total_sales: float
    total_orders: int
    shift_minutes: float


class CashierPerformanceResponse(BaseModel):
    period: str
    start: datetime
    end: Optional[datetime]
    cashiers: List[CashierPerformanceRow]


class ItemSalesRow(BaseModel):
    name: str
    quantity: int
    revenue: float


class ItemSalesResponse(BaseModel):
    period: str
    start: datetime
    end: Optional[datetime]
    items: List[ItemSalesRow]


class ChartPoint(BaseModel):
    date: str
    sales: float
    orders: int


class DashboardResponse(BaseModel):
    period: str
    start: datetime
    end: Optional[datetime]
    total_sales: float
    order_count: int
    menu_count: int
    restaurant_count: int
    chart: List[ChartPoint]
    best_seller: Optional[ItemSalesRow]
    least_seller: Optional[ItemSalesRow]
