"""
Catalog Service

CRUD for what admins manage: restaurants, their menu items, and the
cashier accounts that work at them.

Deletion rules follow the foreign keys:
    - deleting a restaurant removes its menu items, but is refused while
      any order references it
    - deleting a menu item leaves order-item snapshots intact
    - deleting a cashier is refused while sales logs reference them
"""

import logging
from typing import Any, Optional

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from qr_ordering.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from qr_ordering.database import commit_or_conflict
from qr_ordering.models import MenuItem, Order, Restaurant, SalesLog, User, UserRole
from qr_ordering.services.auth import get_user_by_email, hash_password, load_user, validate_email

logger = logging.getLogger(__name__)


def _require_text(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationFailedError(f"{field} is required")
    return value


# =============================================================================
# RESTAURANTS
# =============================================================================

async def list_restaurants(db: AsyncSession) -> list[Restaurant]:
    result = await db.execute(select(Restaurant).order_by(Restaurant.created_at.desc()))
    return list(result.scalars().all())


async def get_restaurant(db: AsyncSession, restaurant_id: str) -> Restaurant:
    restaurant = await db.get(Restaurant, restaurant_id)
    if restaurant is None:
        raise NotFoundError(f"Restaurant {restaurant_id} not found")
    return restaurant


async def create_restaurant(
    db: AsyncSession,
    name: str,
    location: str,
    logo_url: Optional[str] = None,
) -> Restaurant:
    restaurant = Restaurant(
        name=_require_text(name, "Name"),
        location=_require_text(location, "Location"),
        logo_url=logo_url,
    )
    db.add(restaurant)
    await commit_or_conflict(db, "Restaurant could not be created")
    await db.refresh(restaurant)

    logger.info(f"Restaurant created: {restaurant.name} ({restaurant.id})")
    return restaurant


async def update_restaurant(db: AsyncSession, restaurant_id: str, changes: dict[str, Any]) -> Restaurant:
    restaurant = await get_restaurant(db, restaurant_id)

    for field in ("name", "location"):
        if field in changes:
            setattr(restaurant, field, _require_text(changes[field], field.capitalize()))
    if "logo_url" in changes:
        restaurant.logo_url = changes["logo_url"]

    await commit_or_conflict(db, "Restaurant could not be updated")
    await db.refresh(restaurant)
    return restaurant


async def delete_restaurant(db: AsyncSession, restaurant_id: str) -> None:
    restaurant = await get_restaurant(db, restaurant_id)

    order_count = (
        await db.execute(select(func.count(Order.id)).where(Order.restaurant_id == restaurant_id))
    ).scalar() or 0
    if order_count:
        raise ConflictError(
            f"Restaurant has {order_count} orders and cannot be deleted"
        )

    await db.delete(restaurant)
    await commit_or_conflict(db, "Restaurant is still referenced and cannot be deleted")
    logger.info(f"Restaurant deleted: {restaurant_id}")


# =============================================================================
# MENU ITEMS
# =============================================================================

async def list_menu_items(db: AsyncSession, restaurant_id: Optional[str] = None) -> list[MenuItem]:
    query = select(MenuItem).order_by(MenuItem.created_at.desc())
    if restaurant_id:
        query = query.where(MenuItem.restaurant_id == restaurant_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_available_menu(
    db: AsyncSession,
    restaurant_id: str,
    category: Optional[str] = None,
) -> list[MenuItem]:
    """Menu shown to customers: available items only, optionally one category."""
    await get_restaurant(db, restaurant_id)

    query = (
        select(MenuItem)
        .where(MenuItem.restaurant_id == restaurant_id, MenuItem.is_available.is_(True))
        .order_by(MenuItem.category, MenuItem.name)
    )
    if category:
        query = query.where(MenuItem.category == category)
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_categories(db: AsyncSession, restaurant_id: Optional[str] = None) -> list[str]:
    query = select(distinct(MenuItem.category)).order_by(MenuItem.category)
    if restaurant_id:
        query = query.where(MenuItem.restaurant_id == restaurant_id)
    result = await db.execute(query)
    return [category for category in result.scalars().all() if category]


async def get_menu_item(db: AsyncSession, menu_item_id: str) -> MenuItem:
    menu_item = await db.get(MenuItem, menu_item_id)
    if menu_item is None:
        raise NotFoundError(f"Menu item {menu_item_id} not found")
    return menu_item


async def create_menu_item(
    db: AsyncSession,
    restaurant_id: str,
    name: str,
    price: float,
    category: Optional[str] = None,
    is_available: bool = True,
    image_url: Optional[str] = None,
) -> MenuItem:
    await get_restaurant(db, restaurant_id)

    menu_item = MenuItem(
        restaurant_id=restaurant_id,
        name=_require_text(name, "Name"),
        category=(category or "").strip() or "Other",
        price=price,
        is_available=is_available,
        image_url=image_url,
    )
    db.add(menu_item)
    await commit_or_conflict(db, "Menu item could not be created")
    await db.refresh(menu_item)

    logger.info(f"Menu item created: {menu_item.name} @ {menu_item.price}")
    return menu_item


async def update_menu_item(db: AsyncSession, menu_item_id: str, changes: dict[str, Any]) -> MenuItem:
    menu_item = await get_menu_item(db, menu_item_id)

    for field in ("restaurant_id", "price", "is_available"):
        if field in changes and changes[field] is None:
            raise ValidationFailedError(f"{field} cannot be null")

    if "restaurant_id" in changes and changes["restaurant_id"] != menu_item.restaurant_id:
        await get_restaurant(db, changes["restaurant_id"])
        menu_item.restaurant_id = changes["restaurant_id"]
    if "name" in changes:
        menu_item.name = _require_text(changes["name"], "Name")
    if "category" in changes:
        menu_item.category = (changes["category"] or "").strip() or "Other"
    for field in ("price", "is_available", "image_url"):
        if field in changes:
            setattr(menu_item, field, changes[field])

    await commit_or_conflict(db, "Menu item could not be updated")
    await db.refresh(menu_item)
    return menu_item


async def delete_menu_item(db: AsyncSession, menu_item_id: str) -> None:
    menu_item = await get_menu_item(db, menu_item_id)
    await db.delete(menu_item)
    await commit_or_conflict(db, "Menu item could not be deleted")
    logger.info(f"Menu item deleted: {menu_item_id}")


# =============================================================================
# CASHIERS
# =============================================================================

async def list_cashiers(db: AsyncSession) -> list[User]:
    result = await db.execute(
        select(User).where(User.role == UserRole.CASHIER).order_by(User.created_at.desc())
    )
    return list(result.scalars().all())


async def get_cashier(db: AsyncSession, cashier_id: str) -> User:
    user = await db.get(User, cashier_id)
    if user is None or user.role != UserRole.CASHIER:
        raise NotFoundError(f"Cashier {cashier_id} not found")
    return user


async def create_cashier(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    restaurant_id: Optional[str] = None,
) -> User:
    email = validate_email(email)
    if not password:
        raise ValidationFailedError("Password is required")
    if await get_user_by_email(db, email) is not None:
        raise ConflictError("Email is already registered")
    if restaurant_id:
        await get_restaurant(db, restaurant_id)

    cashier = User(
        name=_require_text(name, "Name"),
        email=email,
        password_hash=hash_password(password),
        role=UserRole.CASHIER,
        restaurant_id=restaurant_id,
    )
    db.add(cashier)
    await commit_or_conflict(db, "Email is already registered")
    cashier = await load_user(db, cashier.id)

    logger.info(f"Cashier created: {cashier.email}")
    return cashier


async def update_cashier(db: AsyncSession, cashier_id: str, changes: dict[str, Any]) -> User:
    cashier = await get_cashier(db, cashier_id)

    if "name" in changes:
        cashier.name = _require_text(changes["name"], "Name")
    if "email" in changes:
        email = validate_email(changes["email"])
        if email != cashier.email:
            existing = await get_user_by_email(db, email)
            if existing is not None:
                raise ConflictError("Email is already registered")
            cashier.email = email
    if "restaurant_id" in changes:
        if changes["restaurant_id"]:
            await get_restaurant(db, changes["restaurant_id"])
        cashier.restaurant_id = changes["restaurant_id"]
    if changes.get("password"):
        cashier.password_hash = hash_password(changes["password"])

    await commit_or_conflict(db, "Email is already registered")
    return await load_user(db, cashier_id)


async def delete_cashier(db: AsyncSession, cashier_id: str) -> None:
    cashier = await get_cashier(db, cashier_id)

    log_count = (
        await db.execute(select(func.count(SalesLog.id)).where(SalesLog.cashier_id == cashier_id))
    ).scalar() or 0
    if log_count:
        raise ConflictError(
            f"Cashier has {log_count} recorded sales and cannot be deleted"
        )

    await db.delete(cashier)
    await commit_or_conflict(db, "Cashier is still referenced and cannot be deleted")
    logger.info(f"Cashier deleted: {cashier_id}")


async def count_menu_items(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(MenuItem.id)))).scalar() or 0


async def count_restaurants(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(Restaurant.id)))).scalar() or 0
