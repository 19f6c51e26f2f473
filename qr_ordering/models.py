"""
SQLAlchemy Database Models

Row-level tables for the QR ordering platform:
- restaurants / menu_items: the catalog customers browse
- orders / order_items: customer purchases with name/price snapshots
- users / shifts: admins and cashiers, cashier work sessions
- sales_logs: one row per order finalized by a cashier

Version: 1.0.0
"""

import enum
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from qr_ordering.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class OrderStatus(str, enum.Enum):
    """Order status workflow: pending -> scanned -> completed (or cancelled)."""
    PENDING = "pending"
    SCANNED = "scanned"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_final(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    CASHIER = "cashier"


class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(120), nullable=False)
    location = Column(String(255), nullable=False)
    logo_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<Restaurant {self.name}>"


class MenuItem(Base):
    """A dish or drink offered by one restaurant."""
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    restaurant_id = Column(
        String(36),
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(120), nullable=False)
    category = Column(String(60), nullable=False, default="Other", index=True)
    price = Column(Float, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
    image_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<MenuItem {self.name} - {self.price}>"


class User(Base):
    """
    Admins and cashiers.

    Authentication is a plain lookup on this table; there is no external
    identity provider.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=_enum_values),
        nullable=False,
        index=True,
    )
    restaurant_id = Column(
        String(36),
        ForeignKey("restaurants.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    restaurant = relationship("Restaurant", lazy="selectin")

    @property
    def restaurant_name(self):
        return self.restaurant.name if self.restaurant else None

    def __repr__(self):
        return f"<User {self.email} - {self.role.value}>"


class Shift(Base):
    """A cashier work session; open while end_time is null."""
    __tablename__ = "shifts"

    id = Column(String(36), primary_key=True, default=_uuid)
    cashier_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def __repr__(self):
        return f"<Shift {self.id} - cashier {self.cashier_id}>"


class Order(Base):
    """
    A customer order placed from a table.

    The order id is also the payload of the QR code the customer shows
    to the cashier.
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_uuid)
    restaurant_id = Column(
        String(36),
        ForeignKey("restaurants.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    table_number = Column(String(20), nullable=False)
    status = Column(
        Enum(OrderStatus, name="order_status", values_callable=_enum_values),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    scanned_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderItem",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )
    restaurant = relationship("Restaurant", lazy="selectin")

    @property
    def total(self) -> float:
        return round(sum(item.subtotal for item in self.items), 2)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def restaurant_name(self):
        return self.restaurant.name if self.restaurant else None

    def __repr__(self):
        return f"<Order {self.id} - table {self.table_number} - {self.status.value}>"


class OrderItem(Base):
    """Line item; name and price are copied from the menu at order time."""
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    menu_item_id = Column(
        String(36),
        ForeignKey("menu_items.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    position = Column(Integer, nullable=False, default=0)
    name_snapshot = Column(String(120), nullable=False)
    price_snapshot = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")

    @property
    def subtotal(self) -> float:
        return round(self.price_snapshot * self.quantity, 2)

    def __repr__(self):
        return f"<OrderItem {self.name_snapshot} x{self.quantity}>"


class SalesLog(Base):
    """
    Written when a cashier finalizes an order.

    Used for every sales report and the spreadsheet exports.
    """
    __tablename__ = "sales_logs"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )
    cashier_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    shift_id = Column(
        String(36),
        ForeignKey("shifts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    total_price = Column(Float, nullable=False)
    payment_method = Column(String(30), nullable=False, default="cash")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    cashier = relationship("User", lazy="selectin")

    @property
    def cashier_name(self):
        return self.cashier.name if self.cashier else None

    def __repr__(self):
        return f"<SalesLog order {self.order_id} - {self.total_price}>"
