from conftest import auth, send_together


def test_customer_browses_menu(client, admin_token, restaurant, menu):
    # hidden items never reach the customer menu
    r = client.put(
        f"/api/admin/menu/{menu['Mie Ayam']['id']}",
        json={"is_available": False},
        headers=auth(admin_token),
    )
    assert r.status_code == 200

    r = client.get("/api/restaurants")
    assert [x["name"] for x in r.json()] == ["Warung Nusantara"]

    r = client.get(f"/api/restaurants/{restaurant['id']}/menu")
    assert r.status_code == 200
    assert sorted(x["name"] for x in r.json()) == ["Es Teh", "Nasi Goreng"]

    r = client.get(f"/api/restaurants/{restaurant['id']}/menu", params={"category": "Drink"})
    assert [x["name"] for x in r.json()] == ["Es Teh"]

    r = client.get(f"/api/restaurants/{restaurant['id']}/categories")
    assert r.json() == ["Drink", "Food"]

    assert client.get("/api/restaurants/nope/menu").status_code == 404


def test_cart_operations(client, restaurant, menu):
    r = client.post("/api/carts", json={"restaurant_id": restaurant["id"]})
    assert r.status_code == 201
    cart = r.json()
    cart_id = cart["cart_id"]
    assert cart["items"] == [] and cart["table_number"] is None

    nasi, teh = menu["Nasi Goreng"]["id"], menu["Es Teh"]["id"]
    client.post(f"/api/carts/{cart_id}/items", json={"menu_item_id": nasi})
    r = client.post(f"/api/carts/{cart_id}/items", json={"menu_item_id": nasi, "quantity": 2})
    assert r.json()["items"][0]["quantity"] == 3

    r = client.post(f"/api/carts/{cart_id}/items", json={"menu_item_id": teh, "quantity": 2})
    assert r.json()["total_items"] == 5
    assert r.json()["total_price"] == 3 * 25000 + 2 * 5000

    r = client.post(f"/api/carts/{cart_id}/items/{teh}/decrement")
    assert r.json()["total_items"] == 4

    r = client.patch(f"/api/carts/{cart_id}/items/{nasi}", json={"quantity": 1})
    assert r.json()["total_price"] == 25000 + 5000

    assert client.patch(f"/api/carts/{cart_id}/items/{nasi}", json={"quantity": 0}).status_code == 422

    r = client.delete(f"/api/carts/{cart_id}/items/{teh}")
    assert [x["name"] for x in r.json()["items"]] == ["Nasi Goreng"]

    r = client.put(f"/api/carts/{cart_id}/table", json={"table_number": "3"})
    assert r.json()["table_number"] == "3"

    # the cart is kept between requests
    assert client.get(f"/api/carts/{cart_id}").json()["total_items"] == 1

    assert client.delete(f"/api/carts/{cart_id}").json()["message"] == "Cart cleared"
    assert client.get(f"/api/carts/{cart_id}").status_code == 404


def test_cart_rejects_foreign_or_unavailable_items(client, admin_token, restaurant, menu):
    r = client.post(
        "/api/admin/restaurants",
        json={"name": "Kedai Lain", "location": "Jl. Lain 2"},
        headers=auth(admin_token),
    )
    other = r.json()
    r = client.post(
        "/api/admin/menu",
        json={"restaurant_id": other["id"], "name": "Bakso", "price": 15000},
        headers=auth(admin_token),
    )
    bakso = r.json()
    assert bakso["category"] == "Other"

    cart_id = client.post("/api/carts", json={"restaurant_id": restaurant["id"]}).json()["cart_id"]

    r = client.post(f"/api/carts/{cart_id}/items", json={"menu_item_id": bakso["id"]})
    assert r.status_code == 409

    client.put(
        f"/api/admin/menu/{menu['Es Teh']['id']}",
        json={"is_available": False},
        headers=auth(admin_token),
    )
    r = client.post(f"/api/carts/{cart_id}/items", json={"menu_item_id": menu["Es Teh"]["id"]})
    assert r.status_code == 409

    r = client.post(f"/api/carts/{cart_id}/items", json={"menu_item_id": "missing"})
    assert r.status_code == 404

    assert client.post("/api/carts", json={"restaurant_id": "missing"}).status_code == 404


def test_checkout_requires_items_and_table(client, restaurant, menu):
    cart_id = client.post("/api/carts", json={"restaurant_id": restaurant["id"]}).json()["cart_id"]

    r = client.post(f"/api/carts/{cart_id}/checkout")
    assert r.status_code == 400
    assert r.json()["success"] is False

    client.post(f"/api/carts/{cart_id}/items", json={"menu_item_id": menu["Nasi Goreng"]["id"]})
    r = client.post(f"/api/carts/{cart_id}/checkout")
    assert r.status_code == 400
    assert "table" in r.json()["detail"]

    # failed checkouts keep the cart
    assert client.get(f"/api/carts/{cart_id}").json()["total_items"] == 1

    client.put(f"/api/carts/{cart_id}/table", json={"table_number": "9"})
    r = client.post(f"/api/carts/{cart_id}/checkout")
    assert r.status_code == 201
    assert client.get(f"/api/carts/{cart_id}").status_code == 404


def test_double_submit_places_one_order(client, admin_token, restaurant, menu):
    cart_id = client.post(
        "/api/carts", json={"restaurant_id": restaurant["id"], "table_number": "3"}
    ).json()["cart_id"]
    client.post(f"/api/carts/{cart_id}/items", json={"menu_item_id": menu["Mie Ayam"]["id"]})
    submit = ("POST", f"/api/carts/{cart_id}/checkout", {})

    responses = send_together(submit, submit)

    assert sorted(r.status_code for r in responses) == [201, 404]
    r = client.get("/api/admin/orders", headers=auth(admin_token))
    assert r.json()["total"] == 1
    assert client.get(f"/api/carts/{cart_id}").status_code == 404


def test_simultaneous_adds_keep_every_line(client, restaurant, menu):
    cart_id = client.post("/api/carts", json={"restaurant_id": restaurant["id"]}).json()["cart_id"]
    url = f"/api/carts/{cart_id}/items"

    responses = send_together(*(
        ("POST", url, {"json": {"menu_item_id": menu[name]["id"], "quantity": 2}})
        for name in ("Nasi Goreng", "Mie Ayam", "Es Teh")
    ))

    assert [r.status_code for r in responses] == [200, 200, 200]
    cart = client.get(f"/api/carts/{cart_id}").json()
    assert sorted(line["name"] for line in cart["items"]) == ["Es Teh", "Mie Ayam", "Nasi Goreng"]
    assert cart["total_items"] == 6


def test_checkout_creates_order_with_snapshots(client, admin_token, restaurant, menu, place_order):
    order_id = place_order()

    r = client.get(f"/api/orders/{order_id}")
    assert r.status_code == 200
    order = r.json()
    assert order["status"] == "pending"
    assert order["table_number"] == "7"
    assert order["restaurant_name"] == "Warung Nusantara"
    assert [(i["name_snapshot"], i["quantity"]) for i in order["items"]] == [
        ("Nasi Goreng", 2),
        ("Es Teh", 1),
    ]
    assert order["total"] == 55000
    assert order["total_quantity"] == 3

    # later menu edits do not rewrite the order
    client.put(
        f"/api/admin/menu/{menu['Nasi Goreng']['id']}",
        json={"name": "Nasi Goreng Spesial", "price": 30000},
        headers=auth(admin_token),
    )
    order = client.get(f"/api/orders/{order_id}").json()
    assert order["items"][0]["name_snapshot"] == "Nasi Goreng"
    assert order["total"] == 55000


def test_status_polling_and_qr_code(client, place_order):
    order_id = place_order()

    r = client.get(f"/api/orders/{order_id}/status")
    assert r.json()["status"] == "pending"
    assert r.json()["is_final"] is False
    assert r.json()["poll_interval_seconds"] > 0

    r = client.get(f"/api/orders/{order_id}/qr.png")
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/png"
    assert r.content.startswith(b"\x89PNG")

    assert client.get("/api/orders/missing/status").status_code == 404
    assert client.get("/api/orders/missing/qr.png").status_code == 404
