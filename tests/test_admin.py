from io import BytesIO, StringIO

import pandas as pd

from conftest import ADMIN, CASHIER, auth
from qr_ordering.core.config import get_settings

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def test_signup_rules(client, admin_token):
    r = client.post(
        "/api/admin/signup",
        json={"email": "new@resto.id", "password": "a", "confirm_password": "b"},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Passwords do not match"

    r = client.post(
        "/api/admin/signup",
        json={"email": ADMIN["email"].upper(), "password": "a", "confirm_password": "a"},
    )
    assert r.status_code == 409

    r = client.post(
        "/api/admin/signup",
        json={"email": "not-an-email", "password": "a", "confirm_password": "a"},
    )
    assert r.status_code == 400


def test_signup_can_be_disabled(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "allow_admin_signup", False)
    r = client.post(
        "/api/admin/signup",
        json={"email": "x@resto.id", "password": "a", "confirm_password": "a"},
    )
    assert r.status_code == 403


def test_admin_login_and_logout(client, admin_token, cashier):
    r = client.post("/api/admin/login", json={"email": CASHIER["email"], "password": CASHIER["password"]})
    assert r.status_code == 403

    assert client.get("/api/admin/restaurants", headers=auth(admin_token)).status_code == 200
    assert client.post("/api/admin/logout", headers=auth(admin_token)).status_code == 200
    assert client.get("/api/admin/restaurants", headers=auth(admin_token)).status_code == 401


def test_admin_endpoints_reject_cashiers(client, cashier_token):
    assert client.get("/api/admin/restaurants", headers=auth(cashier_token)).status_code == 403
    assert client.get("/api/admin/dashboard").status_code == 401


def test_restaurant_crud(client, admin_token, restaurant):
    headers = auth(admin_token)

    r = client.put(
        f"/api/admin/restaurants/{restaurant['id']}",
        json={"location": "Jl. Sudirman 5"},
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json()["name"] == "Warung Nusantara"
    assert r.json()["location"] == "Jl. Sudirman 5"

    assert client.get(f"/api/admin/restaurants/{restaurant['id']}", headers=headers).status_code == 200

    r = client.delete(f"/api/admin/restaurants/{restaurant['id']}", headers=headers)
    assert r.status_code == 200
    assert client.get(f"/api/restaurants/{restaurant['id']}").status_code == 404
    assert client.delete(f"/api/admin/restaurants/{restaurant['id']}", headers=headers).status_code == 404


def test_restaurant_with_orders_cannot_be_deleted(client, admin_token, restaurant, place_order):
    place_order()
    r = client.delete(f"/api/admin/restaurants/{restaurant['id']}", headers=auth(admin_token))
    assert r.status_code == 409


def test_menu_crud(client, admin_token, restaurant, menu):
    headers = auth(admin_token)

    r = client.get("/api/admin/menu", params={"restaurant_id": restaurant["id"]}, headers=headers)
    assert len(r.json()) == 3

    r = client.get("/api/admin/menu/categories", headers=headers)
    assert r.json() == ["Drink", "Food"]

    item_id = menu["Mie Ayam"]["id"]
    r = client.put(f"/api/admin/menu/{item_id}", json={"price": 22000, "category": ""}, headers=headers)
    assert r.json()["price"] == 22000
    assert r.json()["category"] == "Other"

    for field in ("price", "is_available", "restaurant_id"):
        r = client.put(f"/api/admin/menu/{item_id}", json={field: None}, headers=headers)
        assert r.status_code == 400, field
        assert r.json()["detail"] == f"{field} cannot be null"
    assert client.get(f"/api/admin/menu/{item_id}", headers=headers).json()["price"] == 22000

    r = client.post(
        "/api/admin/menu",
        json={"restaurant_id": restaurant["id"], "name": "Gratis", "price": 0},
        headers=headers,
    )
    assert r.status_code == 422

    r = client.post(
        "/api/admin/menu",
        json={"restaurant_id": "missing", "name": "Soto", "price": 10000},
        headers=headers,
    )
    assert r.status_code == 404

    assert client.delete(f"/api/admin/menu/{item_id}", headers=headers).status_code == 200
    assert client.get(f"/api/admin/menu/{item_id}", headers=headers).status_code == 404


def test_deleting_menu_item_keeps_past_orders(client, admin_token, menu, place_order):
    order_id = place_order()
    r = client.delete(f"/api/admin/menu/{menu['Nasi Goreng']['id']}", headers=auth(admin_token))
    assert r.status_code == 200

    order = client.get(f"/api/orders/{order_id}").json()
    assert order["items"][0]["name_snapshot"] == "Nasi Goreng"
    assert order["items"][0]["menu_item_id"] is None
    assert order["total"] == 55000


def test_image_uploads(client, admin_token, restaurant, menu):
    headers = auth(admin_token)

    r = client.post(
        f"/api/admin/restaurants/{restaurant['id']}/logo",
        files={"file": ("My Logo.PNG", PNG_BYTES, "image/png")},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    url = r.json()["url"]
    assert url.startswith("/uploads/") and url.endswith("-my_logo.png")
    assert client.get(url).content == PNG_BYTES
    assert client.get(f"/api/restaurants/{restaurant['id']}").json()["logo_url"] == url

    item_id = menu["Es Teh"]["id"]
    r = client.post(
        f"/api/admin/menu/{item_id}/image",
        files={"file": ("teh.jpg", b"jpegdata", "image/jpeg")},
        headers=headers,
    )
    assert r.status_code == 200
    assert client.get(f"/api/admin/menu/{item_id}", headers=headers).json()["image_url"] == r.json()["url"]

    r = client.post(
        f"/api/admin/menu/{item_id}/image",
        files={"file": ("script.exe", b"MZ", "application/octet-stream")},
        headers=headers,
    )
    assert r.status_code == 400

    r = client.post(
        f"/api/admin/menu/{item_id}/image",
        files={"file": ("empty.png", b"", "image/png")},
        headers=headers,
    )
    assert r.status_code == 400


def test_cashier_crud(client, admin_token, restaurant, cashier):
    headers = auth(admin_token)
    assert cashier["role"] == "cashier"

    r = client.post(
        "/api/admin/cashiers",
        json={"name": "Dup", "email": CASHIER["email"], "password": "x"},
        headers=headers,
    )
    assert r.status_code == 409

    r = client.put(
        f"/api/admin/cashiers/{cashier['id']}",
        json={"name": "Budi Santoso", "password": "baru123"},
        headers=headers,
    )
    assert r.json()["name"] == "Budi Santoso"

    r = client.post("/api/cashier/login", json={"email": CASHIER["email"], "password": "baru123"})
    assert r.status_code == 200

    r = client.get("/api/admin/cashiers", headers=headers)
    assert [c["email"] for c in r.json()] == [CASHIER["email"]]

    r = client.post(
        "/api/admin/cashiers",
        json={"name": "Sari", "email": "sari@resto.id", "password": "x"},
        headers=headers,
    )
    sari = r.json()
    assert client.delete(f"/api/admin/cashiers/{sari['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/admin/cashiers/{sari['id']}", headers=headers).status_code == 404


def test_cashier_with_sales_cannot_be_deleted(client, admin_token, cashier, cashier_token, place_order):
    order_id = place_order()
    client.post(f"/api/cashier/orders/{order_id}/confirm", headers=auth(cashier_token))

    r = client.delete(f"/api/admin/cashiers/{cashier['id']}", headers=auth(admin_token))
    assert r.status_code == 409


def test_order_list_and_cancel(client, admin_token, restaurant, cashier_token, place_order):
    headers = auth(admin_token)
    paid = place_order()
    open_order = place_order(lines=(("Es Teh", 4),), table="2")
    client.post(f"/api/cashier/orders/{paid}/confirm", headers=auth(cashier_token))

    r = client.get("/api/admin/orders", headers=headers)
    assert r.json()["total"] == 2

    r = client.get("/api/admin/orders", params={"status": "pending"}, headers=headers)
    assert [o["id"] for o in r.json()["orders"]] == [open_order]

    r = client.get("/api/admin/orders", params={"restaurant_id": restaurant["id"], "limit": 1}, headers=headers)
    assert r.json()["total"] == 2
    assert len(r.json()["orders"]) == 1

    assert client.get("/api/admin/orders", params={"status": "lost"}, headers=headers).status_code == 422

    r = client.post(f"/api/admin/orders/{open_order}/cancel", headers=headers)
    assert r.json()["status"] == "cancelled"
    assert client.post(f"/api/admin/orders/{paid}/cancel", headers=headers).status_code == 409


def _sell(client, cashier_token, place_order):
    for lines in [(("Nasi Goreng", 2), ("Es Teh", 1)), (("Es Teh", 3),)]:
        order_id = place_order(lines=lines)
        r = client.post(f"/api/cashier/orders/{order_id}/confirm", headers=auth(cashier_token))
        assert r.status_code == 200
    place_order(lines=(("Mie Ayam", 1),))


def test_dashboard(client, admin_token, cashier_token, place_order):
    _sell(client, cashier_token, place_order)

    r = client.get("/api/admin/dashboard", params={"period": "daily"}, headers=auth(admin_token))
    assert r.status_code == 200
    data = r.json()
    assert data["total_sales"] == 55000 + 15000
    assert data["order_count"] == 3
    assert data["menu_count"] == 3
    assert data["restaurant_count"] == 1
    assert len(data["chart"]) == 1
    assert data["chart"][0]["sales"] == 70000
    assert data["chart"][0]["orders"] == 3
    assert data["best_seller"] == {"name": "Es Teh", "quantity": 4, "revenue": 20000}
    assert data["least_seller"]["name"] == "Nasi Goreng"

    assert client.get("/api/admin/dashboard", params={"period": "hourly"}, headers=auth(admin_token)).status_code == 422


def test_reports(client, admin_token, cashier, cashier_token, place_order):
    headers = auth(admin_token)
    _sell(client, cashier_token, place_order)
    client.post("/api/cashier/logout", headers=auth(cashier_token))

    r = client.get("/api/admin/reports/cashiers", headers=headers)
    rows = r.json()["cashiers"]
    assert len(rows) == 1
    assert rows[0]["cashier_id"] == cashier["id"]
    assert rows[0]["total_sales"] == 70000
    assert rows[0]["total_orders"] == 2
    assert rows[0]["shift_minutes"] >= 0

    r = client.get("/api/admin/reports/items", params={"period": "yearly"}, headers=headers)
    assert [(i["name"], i["quantity"]) for i in r.json()["items"]] == [("Es Teh", 4), ("Nasi Goreng", 2)]

    r = client.get("/api/admin/reports/sales", params={"cashier_id": cashier["id"]}, headers=headers)
    assert r.json()["count"] == 2
    r = client.get("/api/admin/reports/sales", params={"cashier_id": "someone-else"}, headers=headers)
    assert r.json()["count"] == 0


def test_sales_exports(client, admin_token, cashier_token, place_order):
    headers = auth(admin_token)
    _sell(client, cashier_token, place_order)

    r = client.get("/api/admin/export/sales-logs.xlsx", headers=headers)
    assert r.status_code == 200
    assert "attachment" in r.headers["content-disposition"]
    df = pd.read_excel(BytesIO(r.content), engine="openpyxl")
    assert list(df.columns) == ["Order ID", "Cashier", "Total", "Payment Method", "Date"]
    assert len(df) == 2
    assert df["Total"].sum() == 70000
    assert set(df["Cashier"]) == {CASHIER["name"]}

    r = client.get("/api/admin/export/sales-logs.csv", params={"period": "daily"}, headers=headers)
    assert r.headers["content-type"].startswith("text/csv")
    df = pd.read_csv(StringIO(r.text))
    assert len(df) == 2

    r = client.get("/api/admin/export/cashiers.xlsx", params={"period": "monthly"}, headers=headers)
    df = pd.read_excel(BytesIO(r.content), engine="openpyxl")
    assert df.iloc[0]["Cashier"] == CASHIER["name"]
    assert df.iloc[0]["Orders"] == 2


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["database"] == "healthy"
    assert body["storage"] == "healthy"
    assert body["broker"] == "healthy"
    assert body["status"] == "operational"
