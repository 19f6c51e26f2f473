"""
Shopping Cart

The cart is a small reducer over a dictionary of lines keyed by menu item
id, persisted as JSON in the storage service between requests:

    add_item      -> quantity + n (new line when missing)
    decrement     -> quantity - 1, line removed at zero
    set_quantity  -> explicit quantity, values below 1 rejected
    remove_item   -> line removed
    clear         -> every line removed

A cart belongs to exactly one restaurant. Checkout turns it into an order
plus order-item rows (see services.orders.submit_cart).
"""

import logging
import uuid
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from qr_ordering.core.config import get_settings
from qr_ordering.core.exceptions import (
    NotFoundError,
    ValidationFailedError,
    ConflictError,
)
from qr_ordering.models import MenuItem, Restaurant
from qr_ordering.services.storage import BaseStorageService, get_storage_service

logger = logging.getLogger(__name__)


class CartLine(BaseModel):
    """Menu item snapshot held in the cart."""
    menu_item_id: str
    name: str
    price: float
    quantity: int = Field(..., ge=1)
    image_url: Optional[str] = None

    @property
    def subtotal(self) -> float:
        return round(self.price * self.quantity, 2)


class CartState(BaseModel):
    cart_id: str
    restaurant_id: str
    table_number: Optional[str] = None
    items: dict[str, CartLine] = Field(default_factory=dict)

    # =========================================================================
    # REDUCER
    # =========================================================================

    def add_item(self, line: CartLine, quantity: int = 1) -> CartLine:
        if quantity < 1:
            raise ValidationFailedError("Quantity must be at least 1")

        current = self.items.get(line.menu_item_id)
        if current is None:
            current = line.model_copy(update={"quantity": quantity})
        else:
            current = current.model_copy(update={"quantity": current.quantity + quantity})
        self.items[line.menu_item_id] = current
        return current

    def decrement(self, menu_item_id: str) -> Optional[CartLine]:
        """Lower a line by one; returns None when the line was removed."""
        current = self._line(menu_item_id)
        if current.quantity <= 1:
            del self.items[menu_item_id]
            return None
        current = current.model_copy(update={"quantity": current.quantity - 1})
        self.items[menu_item_id] = current
        return current

    def set_quantity(self, menu_item_id: str, quantity: int) -> CartLine:
        if quantity < 1:
            raise ValidationFailedError("Quantity must be at least 1")
        current = self._line(menu_item_id).model_copy(update={"quantity": quantity})
        self.items[menu_item_id] = current
        return current

    def remove_item(self, menu_item_id: str) -> CartLine:
        line = self._line(menu_item_id)
        del self.items[menu_item_id]
        return line

    def clear(self) -> None:
        self.items.clear()

    def _line(self, menu_item_id: str) -> CartLine:
        try:
            return self.items[menu_item_id]
        except KeyError:
            raise NotFoundError(f"Item {menu_item_id} is not in the cart")

    # =========================================================================
    # TOTALS
    # =========================================================================

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.items.values())

    @property
    def total_price(self) -> float:
        return round(sum(line.subtotal for line in self.items.values()), 2)


class CartService:
    """
    Loads, mutates and saves carts in the storage service.

    Every write refreshes the cart's TTL, so an abandoned cart disappears
    on its own. Mutations go through ``storage.update`` so two requests
    editing one cart never overwrite each other's lines.
    """

    KEY_PREFIX = "cart:"

    def __init__(self, storage: Optional[BaseStorageService] = None):
        self.storage = storage or get_storage_service()
        self.ttl = get_settings().cart_ttl_seconds

    def _key(self, cart_id: str) -> str:
        return f"{self.KEY_PREFIX}{cart_id}"

    @staticmethod
    def _missing(cart_id: str) -> NotFoundError:
        return NotFoundError(f"Cart {cart_id} not found or expired")

    async def save(self, cart: CartState) -> CartState:
        await self.storage.set(self._key(cart.cart_id), cart.model_dump_json(), ttl=self.ttl)
        return cart

    async def get(self, cart_id: str) -> CartState:
        raw = await self.storage.get(self._key(cart_id))
        if raw is None:
            raise self._missing(cart_id)
        return CartState.model_validate_json(raw)

    async def claim(self, cart_id: str) -> CartState:
        """
        Take the cart out of storage for checkout.

        Only one of several concurrent callers gets it; the rest see a
        missing cart. Put it back with ``save`` if the checkout fails.
        """
        raw = await self.storage.pop(self._key(cart_id))
        if raw is None:
            raise self._missing(cart_id)
        return CartState.model_validate_json(raw)

    async def _mutate(self, cart_id: str, change: Callable[[CartState], Any]) -> CartState:
        def apply(raw: Optional[str]) -> str:
            if raw is None:
                raise self._missing(cart_id)
            cart = CartState.model_validate_json(raw)
            change(cart)
            return cart.model_dump_json()

        raw = await self.storage.update(self._key(cart_id), apply, ttl=self.ttl)
        return CartState.model_validate_json(raw)

    async def create(
        self,
        db: AsyncSession,
        restaurant_id: str,
        table_number: Optional[str] = None,
    ) -> CartState:
        if await db.get(Restaurant, restaurant_id) is None:
            raise NotFoundError(f"Restaurant {restaurant_id} not found")

        cart = CartState(
            cart_id=uuid.uuid4().hex,
            restaurant_id=restaurant_id,
            table_number=table_number or None,
        )
        logger.info(f"Cart {cart.cart_id} created for restaurant {restaurant_id}")
        return await self.save(cart)

    async def add_menu_item(
        self,
        db: AsyncSession,
        cart_id: str,
        menu_item_id: str,
        quantity: int = 1,
    ) -> CartState:
        cart = await self.get(cart_id)

        menu_item = await db.get(MenuItem, menu_item_id)
        if menu_item is None:
            raise NotFoundError(f"Menu item {menu_item_id} not found")
        if menu_item.restaurant_id != cart.restaurant_id:
            raise ConflictError("Menu item belongs to a different restaurant than the cart")
        if not menu_item.is_available:
            raise ConflictError(f"{menu_item.name} is currently unavailable")

        line = CartLine(
            menu_item_id=menu_item.id,
            name=menu_item.name,
            price=menu_item.price,
            quantity=1,
            image_url=menu_item.image_url,
        )
        return await self._mutate(cart_id, lambda current: current.add_item(line, quantity=quantity))

    async def decrement(self, cart_id: str, menu_item_id: str) -> CartState:
        return await self._mutate(cart_id, lambda cart: cart.decrement(menu_item_id))

    async def set_quantity(self, cart_id: str, menu_item_id: str, quantity: int) -> CartState:
        return await self._mutate(cart_id, lambda cart: cart.set_quantity(menu_item_id, quantity))

    async def remove(self, cart_id: str, menu_item_id: str) -> CartState:
        return await self._mutate(cart_id, lambda cart: cart.remove_item(menu_item_id))

    async def set_table(self, cart_id: str, table_number: str) -> CartState:
        table_number = table_number.strip()
        if not table_number:
            raise ValidationFailedError("Table number is required")

        def assign(cart: CartState) -> None:
            cart.table_number = table_number

        return await self._mutate(cart_id, assign)

    async def delete(self, cart_id: str) -> bool:
        return await self.storage.delete(self._key(cart_id))


def get_cart_service() -> CartService:
    """FastAPI dependency returning a cart service on the shared store."""
    return CartService(get_storage_service())
