"""
Rush Hour Simulation Script

Simulates a busy service against a running server: many customers check
out at once, then several cashiers race to confirm the same orders.
Every order must end up with exactly one sales log.

Run from project root: python scripts/simulate.py

Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
import uuid
from datetime import datetime
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50
TOTAL_CASHIERS = 3

MENU_ITEMS = [
    {"name": "Nasi Goreng", "category": "Food", "price": 25000},
    {"name": "Mie Ayam", "category": "Food", "price": 20000},
    {"name": "Sate Ayam", "category": "Food", "price": 30000},
    {"name": "Gado-Gado", "category": "Food", "price": 18000},
    {"name": "Es Teh Manis", "category": "Drink", "price": 5000},
    {"name": "Es Jeruk", "category": "Drink", "price": 8000},
    {"name": "Kopi Tubruk", "category": "Drink", "price": 10000},
]


def _auth(token: str) -> dict[str, str]:
    return {"X-Session-Token": token}


# =============================================================================
# SETUP (ADMIN)
# =============================================================================

async def seed(client: httpx.AsyncClient, num_cashiers: int) -> dict[str, Any]:
    """Create an admin, a restaurant, its menu and the cashier accounts."""
    suffix = uuid.uuid4().hex[:6]
    admin = {"email": f"admin-{suffix}@sim.local", "password": "admin-pass"}

    response = await client.post(
        f"{API_BASE_URL}/api/admin/signup",
        json={**admin, "name": "Sim Admin", "confirm_password": admin["password"]},
    )
    response.raise_for_status()
    response = await client.post(f"{API_BASE_URL}/api/admin/login", json=admin)
    response.raise_for_status()
    token = response.json()["token"]

    response = await client.post(
        f"{API_BASE_URL}/api/admin/restaurants",
        json={"name": f"Warung Sim {suffix}", "location": "Jl. Simulasi 1"},
        headers=_auth(token),
    )
    response.raise_for_status()
    restaurant_id = response.json()["id"]

    menu_ids = []
    for item in MENU_ITEMS:
        response = await client.post(
            f"{API_BASE_URL}/api/admin/menu",
            json={**item, "restaurant_id": restaurant_id},
            headers=_auth(token),
        )
        response.raise_for_status()
        menu_ids.append(response.json()["id"])

    cashiers = []
    for i in range(num_cashiers):
        cashier = {"email": f"kasir{i}-{suffix}@sim.local", "password": "kasir-pass"}
        response = await client.post(
            f"{API_BASE_URL}/api/admin/cashiers",
            json={**cashier, "name": f"Kasir {i + 1}", "restaurant_id": restaurant_id},
            headers=_auth(token),
        )
        response.raise_for_status()
        cashiers.append(cashier)

    return {
        "admin_token": token,
        "restaurant_id": restaurant_id,
        "menu_ids": menu_ids,
        "cashiers": cashiers,
    }


# =============================================================================
# CUSTOMERS
# =============================================================================

async def customer_checkout(
    client: httpx.AsyncClient,
    order_num: int,
    restaurant_id: str,
    menu_ids: list[str],
) -> dict[str, Any]:
    """Build a random cart and check it out."""
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/carts",
            json={"restaurant_id": restaurant_id, "table_number": str(random.randint(1, 20))},
        )
        response.raise_for_status()
        cart_id = response.json()["cart_id"]

        for menu_id in random.sample(menu_ids, random.randint(1, 4)):
            response = await client.post(
                f"{API_BASE_URL}/api/carts/{cart_id}/items",
                json={"menu_item_id": menu_id, "quantity": random.randint(1, 3)},
            )
            response.raise_for_status()

        response = await client.post(f"{API_BASE_URL}/api/carts/{cart_id}/checkout", timeout=30.0)
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            data = response.json()
            return {
                "order_num": order_num,
                "success": True,
                "order_id": data["order_id"],
                "total": data["total"],
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


# =============================================================================
# CASHIERS
# =============================================================================

async def cashier_login(client: httpx.AsyncClient, cashier: dict[str, str]) -> str:
    response = await client.post(f"{API_BASE_URL}/api/cashier/login", json=cashier)
    response.raise_for_status()
    return response.json()["token"]


async def cashier_confirm(
    client: httpx.AsyncClient,
    token: str,
    order_id: str,
) -> int:
    """Scan and confirm an order; returns the confirm status code."""
    response = await client.post(
        f"{API_BASE_URL}/api/cashier/scan",
        json={"code": order_id},
        headers=_auth(token),
    )
    if response.status_code not in (200, 409):
        return response.status_code

    response = await client.post(
        f"{API_BASE_URL}/api/cashier/orders/{order_id}/confirm",
        json={"payment_method": random.choice(["cash", "qris"])},
        headers=_auth(token),
    )
    return response.status_code


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(
    num_orders: int = TOTAL_ORDERS,
    num_cashiers: int = TOTAL_CASHIERS,
) -> dict[str, Any]:
    print("=" * 70)
    print("🔥 RUSH HOUR SIMULATION")
    print("=" * 70)
    print(f"📋 Orders: {num_orders}")
    print(f"🧑‍💼 Cashiers: {num_cashiers}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient(timeout=30.0) as client:
        setup = await seed(client, num_cashiers)
        print(f"\n✅ Seeded restaurant {setup['restaurant_id']}")

        print("\n🚀 Customers checking out...\n")
        results = await asyncio.gather(*[
            customer_checkout(client, i + 1, setup["restaurant_id"], setup["menu_ids"])
            for i in range(num_orders)
        ])
        placed = [r for r in results if r["success"]]
        failed = [r for r in results if not r["success"]]

        tokens = await asyncio.gather(*[cashier_login(client, c) for c in setup["cashiers"]])

        print("🚀 Every cashier tries to confirm every order...\n")
        confirms = await asyncio.gather(*[
            cashier_confirm(client, token, r["order_id"])
            for r in placed
            for token in tokens
        ])

        for token in tokens:
            await client.post(f"{API_BASE_URL}/api/cashier/logout", headers=_auth(token))

        response = await client.get(
            f"{API_BASE_URL}/api/admin/reports/sales",
            params={"period": "daily"},
            headers=_auth(setup["admin_token"]),
        )
        response.raise_for_status()
        report = response.json()

    total_time = round(time.time() - start_time, 2)
    confirmed = confirms.count(200)
    rejected = confirms.count(409)
    placed_ids = {r["order_id"] for r in placed}
    logged_ids = [log["order_id"] for log in report["logs"] if log["order_id"] in placed_ids]

    print("=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Orders placed: {len(placed)}/{num_orders}")
    print(f"❌ Checkout failures: {len(failed)}")
    print(f"💳 Confirmations accepted: {confirmed}")
    print(f"🔒 Duplicate confirmations rejected: {rejected}")
    print(f"🧾 Sales logs for these orders: {len(logged_ids)} ({len(set(logged_ids))} unique)")
    print(f"⏱️  Total Time: {total_time}s")

    if placed:
        avg_time = round(sum(r["time"] for r in placed) / len(placed), 3)
        revenue = sum(r["total"] for r in placed)
        print(f"\n📈 Average checkout: {avg_time}s")
        print(f"   💰 Total Revenue: Rp {revenue:,.0f}".replace(",", "."))

    if failed:
        print(f"\n⚠️  Failed checkouts (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    ok = confirmed == len(placed) == len(set(logged_ids)) == len(logged_ids)
    print("\n" + "=" * 70)
    print("✅ ONE SALE PER ORDER" if ok else "❌ SALES LOG MISMATCH")
    print("Next: python scripts/verify.py (once the Celery worker is idle)")
    print("=" * 70)

    return {
        "placed": len(placed),
        "confirmed": confirmed,
        "rejected": rejected,
        "consistent": ok,
        "total_time": total_time,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Rush Hour Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--cashiers", type=int, default=TOTAL_CASHIERS, help="Number of cashiers")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")
    summary = asyncio.run(run_simulation(num_orders=args.orders, num_cashiers=args.cashiers))
    sys.exit(0 if summary["consistent"] else 1)
