from modules.order.models import Order


def test_place_order_uses_current_prices_and_keeps_cart(client, make_user, make_product, auth_headers, db):
    user = make_user()
    p1 = make_product(name="P1", price="10.00")
    p2 = make_product(name="P2", price="5.00")
    headers = auth_headers(user)
    client.post("/cart", json={"product_id": p1.id, "quantity": 1}, headers=headers)

    r = client.post("/orders", json={
        "items": [{"product_id": p1.id, "quantity": 2}, {"product_id": p2.id, "quantity": 1}],
        "shipping_address": "12 High Street",
    }, headers=headers)
    assert r.status_code == 201
    order = r.json()["order"]
    assert order["total_amount"] == 25.0
    assert order["status"] == "Pending"
    assert [(i["product_name"], i["unit_price"], i["line_total"]) for i in order["items"]] == [
        ("P1", 10.0, 20.0), ("P2", 5.0, 5.0),
    ]

    # Direct orders never clear the cart
    cart = client.get("/cart", headers=headers).json()
    assert len(cart["items"]) == 1


def test_place_order_unknown_product(client, make_user, auth_headers, db):
    r = client.post("/orders", json={"items": [{"product_id": 77, "quantity": 1}]}, headers=auth_headers(make_user()))
    assert r.status_code == 404
    assert db.query(Order).count() == 0


def test_place_order_validation(client, make_user, make_product, auth_headers):
    headers = auth_headers(make_user())
    product = make_product()
    r = client.post("/orders", json={"items": []}, headers=headers)
    assert r.status_code == 400
    assert r.json()["message"] == "No products provided"
    r = client.post("/orders", json={"items": [{"product_id": product.id, "quantity": 0}]}, headers=headers)
    assert r.status_code == 400


def test_order_snapshot_survives_price_change(client, make_user, make_product, auth_headers):
    user = make_user()
    seller = make_user(role="seller")
    product = make_product(creator=seller, price="10.00")
    order_id = client.post(
        "/orders", json={"items": [{"product_id": product.id, "quantity": 1}]}, headers=auth_headers(user),
    ).json()["order"]["id"]

    client.patch(f"/products/{product.id}", json={"price": "99.00"}, headers=auth_headers(seller))

    order = client.get(f"/orders/{order_id}", headers=auth_headers(user)).json()["order"]
    assert order["total_amount"] == 10.0


def test_order_visibility(client, make_user, make_product, auth_headers):
    owner = make_user()
    stranger = make_user()
    admin = make_user(role="admin")
    product = make_product()
    order_id = client.post(
        "/orders", json={"items": [{"product_id": product.id, "quantity": 1}]}, headers=auth_headers(owner),
    ).json()["order"]["id"]

    assert client.get(f"/orders/{order_id}", headers=auth_headers(owner)).status_code == 200
    assert client.get(f"/orders/{order_id}", headers=auth_headers(stranger)).status_code == 404
    assert client.get(f"/orders/{order_id}", headers=auth_headers(admin)).status_code == 200
    assert client.get("/orders/xyz", headers=auth_headers(owner)).status_code == 400

    mine = client.get("/orders", headers=auth_headers(owner)).json()["orders"]
    assert [o["id"] for o in mine] == [order_id]
    assert client.get("/orders", headers=auth_headers(stranger)).json()["orders"] == []


def test_admin_lists_and_updates_orders(client, make_user, make_product, auth_headers):
    customer = make_user()
    admin = make_user(role="admin")
    product = make_product()
    order_id = client.post(
        "/orders", json={"items": [{"product_id": product.id, "quantity": 2}]}, headers=auth_headers(customer),
    ).json()["order"]["id"]
    headers = auth_headers(admin)

    assert client.get("/admin/orders", headers=auth_headers(customer)).status_code == 403

    pending = client.get("/admin/orders", params={"status": "Pending"}, headers=headers).json()["orders"]
    assert [o["id"] for o in pending] == [order_id]
    assert pending[0]["user"]["email"] == customer.email

    r = client.patch(f"/admin/orders/{order_id}/status", json={"status": "Shipped"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["order"]["status"] == "Shipped"
    assert r.json()["order"]["total_amount"] == 20.0

    assert client.get("/admin/orders", params={"status": "Pending"}, headers=headers).json()["orders"] == []

    bad = client.patch(f"/admin/orders/{order_id}/status", json={"status": "Lost"}, headers=headers)
    assert bad.status_code == 400
    assert client.patch("/admin/orders/999/status", json={"status": "Shipped"}, headers=headers).status_code == 404
