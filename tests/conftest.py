import asyncio
import os
import sys
import tempfile

import httpx
import pytest

# Ensure project root in path
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# Configure the app for testing before anything reads the settings:
# isolated SQLite file, in-memory storage, mock printer, inline Celery.
TMP_DIR = tempfile.mkdtemp(prefix="qr_ordering_test_")
os.environ["ENV_MODE"] = "development"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(TMP_DIR, 'test.db')}"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["DATA_DIRECTORY"] = os.path.join(TMP_DIR, "data")
os.environ["UPLOAD_DIRECTORY"] = os.path.join(TMP_DIR, "data", "uploads")
os.environ["ALLOW_ADMIN_SIGNUP"] = "true"

from qr_ordering.core.config import get_settings  # noqa: E402

get_settings.cache_clear()

from fastapi.testclient import TestClient  # noqa: E402

from qr_ordering.database import drop_db  # noqa: E402
from qr_ordering.main import app  # noqa: E402
from qr_ordering.services.excel_manager import ExcelManager  # noqa: E402
from qr_ordering.services.printer import reset_printer_service  # noqa: E402
from qr_ordering.services.storage import reset_storage_service  # noqa: E402

ADMIN = {"name": "Admin", "email": "admin@resto.id", "password": "admin123"}
CASHIER = {"name": "Budi", "email": "budi@resto.id", "password": "kasir123"}


@pytest.fixture()
def client():
    """Fresh database, store and ledger for every test."""
    asyncio.run(drop_db())
    reset_storage_service()
    reset_printer_service()
    ExcelManager.clear_all()

    # Entering the client runs the lifespan, which recreates the tables
    with TestClient(app) as test_client:
        yield test_client


def auth(token):
    return {"X-Session-Token": token}


def send_together(*requests):
    """
    Fire (method, url, kwargs) requests at the app at the same time and
    return the responses in the same order.

    Uses its own event loop; the tables already exist because the
    `client` fixture ran the lifespan.
    """
    async def _send():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
            return await asyncio.gather(
                *(ac.request(method, url, **kwargs) for method, url, kwargs in requests)
            )
    return asyncio.run(_send())


@pytest.fixture()
def admin_token(client):
    r = client.post("/api/admin/signup", json={**ADMIN, "confirm_password": ADMIN["password"]})
    assert r.status_code == 201, r.text
    r = client.post("/api/admin/login", json={"email": ADMIN["email"], "password": ADMIN["password"]})
    assert r.status_code == 200, r.text
    return r.json()["token"]


@pytest.fixture()
def restaurant(client, admin_token):
    r = client.post(
        "/api/admin/restaurants",
        json={"name": "Warung Nusantara", "location": "Jl. Merdeka 10"},
        headers=auth(admin_token),
    )
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture()
def menu(client, admin_token, restaurant):
    items = {}
    for name, category, price in [
        ("Nasi Goreng", "Food", 25000),
        ("Mie Ayam", "Food", 20000),
        ("Es Teh", "Drink", 5000),
    ]:
        r = client.post(
            "/api/admin/menu",
            json={
                "restaurant_id": restaurant["id"],
                "name": name,
                "category": category,
                "price": price,
            },
            headers=auth(admin_token),
        )
        assert r.status_code == 201, r.text
        items[name] = r.json()
    return items


@pytest.fixture()
def cashier(client, admin_token, restaurant):
    r = client.post(
        "/api/admin/cashiers",
        json={**CASHIER, "restaurant_id": restaurant["id"]},
        headers=auth(admin_token),
    )
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture()
def cashier_login(client, cashier):
    r = client.post("/api/cashier/login", json={"email": CASHIER["email"], "password": CASHIER["password"]})
    assert r.status_code == 200, r.text
    return r.json()


@pytest.fixture()
def cashier_token(cashier_login):
    return cashier_login["token"]


@pytest.fixture()
def place_order(client, restaurant, menu):
    """Returns a function that checks out a cart and gives back the order id."""
    def _place(lines=(("Nasi Goreng", 2), ("Es Teh", 1)), table="7"):
        r = client.post("/api/carts", json={"restaurant_id": restaurant["id"], "table_number": table})
        assert r.status_code == 201, r.text
        cart_id = r.json()["cart_id"]
        for name, quantity in lines:
            r = client.post(
                f"/api/carts/{cart_id}/items",
                json={"menu_item_id": menu[name]["id"], "quantity": quantity},
            )
            assert r.status_code == 200, r.text
        r = client.post(f"/api/carts/{cart_id}/checkout")
        assert r.status_code == 201, r.text
        return r.json()["order_id"]
    return _place
