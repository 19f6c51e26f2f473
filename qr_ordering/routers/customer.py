"""
Customer API

Browsing restaurants and menus, building a cart, checking out, and
following the order until the cashier completes it.

Endpoints (prefix /api):
    - GET  /restaurants, /restaurants/{id}, /restaurants/{id}/menu, /restaurants/{id}/categories
    - POST /carts, GET/DELETE /carts/{id}, item and table updates, POST /carts/{id}/checkout
    - GET  /orders/{id}, /orders/{id}/status, /orders/{id}/qr.png
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from qr_ordering.core.config import get_settings
from qr_ordering.database import get_db
from qr_ordering.schemas import (
    CartCreate,
    CartItemAdd,
    CartItemQuantity,
    CartLineResponse,
    CartResponse,
    CartTableUpdate,
    CheckoutResponse,
    MenuItemResponse,
    MessageResponse,
    OrderResponse,
    OrderStatusResponse,
    RestaurantResponse,
)
from qr_ordering.services import catalog, orders
from qr_ordering.services.cart import CartService, CartState, get_cart_service
from qr_ordering.services.qr import order_qr_png

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Customer"])


def cart_response(cart: CartState) -> CartResponse:
    return CartResponse(
        cart_id=cart.cart_id,
        restaurant_id=cart.restaurant_id,
        table_number=cart.table_number,
        items=[
            CartLineResponse(
                menu_item_id=line.menu_item_id,
                name=line.name,
                price=line.price,
                quantity=line.quantity,
                subtotal=line.subtotal,
                image_url=line.image_url,
            )
            for line in cart.items.values()
        ],
        total_items=cart.total_items,
        total_price=cart.total_price,
    )


# =============================================================================
# RESTAURANTS & MENU
# =============================================================================

@router.get("/restaurants", response_model=list[RestaurantResponse])
async def list_restaurants(db: AsyncSession = Depends(get_db)):
    return await catalog.list_restaurants(db)


@router.get("/restaurants/{restaurant_id}", response_model=RestaurantResponse)
async def get_restaurant(restaurant_id: str, db: AsyncSession = Depends(get_db)):
    return await catalog.get_restaurant(db, restaurant_id)


@router.get("/restaurants/{restaurant_id}/menu", response_model=list[MenuItemResponse])
async def get_menu(
    restaurant_id: str,
    category: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Available menu items of a restaurant, optionally filtered by category."""
    return await catalog.list_available_menu(db, restaurant_id, category)


@router.get("/restaurants/{restaurant_id}/categories", response_model=list[str])
async def get_categories(restaurant_id: str, db: AsyncSession = Depends(get_db)):
    await catalog.get_restaurant(db, restaurant_id)
    return await catalog.list_categories(db, restaurant_id)


# =============================================================================
# CART
# =============================================================================

@router.post("/carts", response_model=CartResponse, status_code=201)
async def create_cart(
    body: CartCreate,
    db: AsyncSession = Depends(get_db),
    carts: CartService = Depends(get_cart_service),
):
    cart = await carts.create(db, body.restaurant_id, body.table_number)
    return cart_response(cart)


@router.get("/carts/{cart_id}", response_model=CartResponse)
async def get_cart(cart_id: str, carts: CartService = Depends(get_cart_service)):
    return cart_response(await carts.get(cart_id))


@router.post("/carts/{cart_id}/items", response_model=CartResponse)
async def add_cart_item(
    cart_id: str,
    body: CartItemAdd,
    db: AsyncSession = Depends(get_db),
    carts: CartService = Depends(get_cart_service),
):
    cart = await carts.add_menu_item(db, cart_id, body.menu_item_id, body.quantity)
    return cart_response(cart)


@router.patch("/carts/{cart_id}/items/{menu_item_id}", response_model=CartResponse)
async def set_cart_item_quantity(
    cart_id: str,
    menu_item_id: str,
    body: CartItemQuantity,
    carts: CartService = Depends(get_cart_service),
):
    return cart_response(await carts.set_quantity(cart_id, menu_item_id, body.quantity))


@router.post("/carts/{cart_id}/items/{menu_item_id}/decrement", response_model=CartResponse)
async def decrement_cart_item(
    cart_id: str,
    menu_item_id: str,
    carts: CartService = Depends(get_cart_service),
):
    return cart_response(await carts.decrement(cart_id, menu_item_id))


@router.delete("/carts/{cart_id}/items/{menu_item_id}", response_model=CartResponse)
async def remove_cart_item(
    cart_id: str,
    menu_item_id: str,
    carts: CartService = Depends(get_cart_service),
):
    return cart_response(await carts.remove(cart_id, menu_item_id))


@router.put("/carts/{cart_id}/table", response_model=CartResponse)
async def set_cart_table(
    cart_id: str,
    body: CartTableUpdate,
    carts: CartService = Depends(get_cart_service),
):
    return cart_response(await carts.set_table(cart_id, body.table_number))


@router.delete("/carts/{cart_id}", response_model=MessageResponse)
async def delete_cart(cart_id: str, carts: CartService = Depends(get_cart_service)):
    await carts.get(cart_id)
    await carts.delete(cart_id)
    return MessageResponse(message="Cart cleared")


@router.post("/carts/{cart_id}/checkout", response_model=CheckoutResponse, status_code=201)
async def checkout(
    cart_id: str,
    db: AsyncSession = Depends(get_db),
    carts: CartService = Depends(get_cart_service),
):
    """
    Submit the cart as an order.

    The cart is claimed before the order is written, so a double-tapped
    submit places one order and the second request gets a 404. If the
    order cannot be saved the cart is put back and checkout can be retried.
    """
    cart = await carts.claim(cart_id)
    try:
        order = await orders.submit_cart(db, cart)
    except Exception:
        await carts.save(cart)
        raise

    return CheckoutResponse(
        message="Order placed! Show the QR code to the cashier.",
        order_id=order.id,
        total=order.total,
        status=order.status,
        qr_code_url=f"/api/orders/{order.id}/qr.png",
        status_url=f"/api/orders/{order.id}/status",
    )


# =============================================================================
# ORDERS
# =============================================================================

@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, db: AsyncSession = Depends(get_db)):
    return await orders.get_order(db, order_id)


@router.get("/orders/{order_id}/status", response_model=OrderStatusResponse)
async def get_order_status(order_id: str, db: AsyncSession = Depends(get_db)):
    status = await orders.get_status(db, order_id)
    return OrderStatusResponse(
        order_id=order_id,
        status=status,
        is_final=status.is_final,
        poll_interval_seconds=get_settings().order_poll_interval_seconds,
    )


@router.get("/orders/{order_id}/qr.png", response_class=Response)
async def get_order_qr(order_id: str, db: AsyncSession = Depends(get_db)):
    await orders.get_status(db, order_id)
    return Response(content=order_qr_png(order_id), media_type="image/png")
