import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config.settings import STATIC_DIR, UPLOAD_SUBDIR
from main import app
from modules.cart.models import CartItem
from modules.catalog.models import Category, Product
from modules.catalog.service import category_service
from modules.order.models import OrderItem


def _create(client, headers, png_bytes, **fields):
    data = {"name": "Desk Lamp", "description": "Bright", "price": "19.99", "category": "Lighting", "stock": "5"}
    data.update(fields)
    return client.post(
        "/products", data=data, headers=headers,
        files={"image": ("lamp.png", png_bytes, "image/png")},
    )


# ==========================================
# Read
# ==========================================

def test_get_product_invalid_id_is_bad_request(client):
    r = client.get("/products/not-an-id")
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Invalid product ID format"}


def test_get_product_unknown_id_is_not_found(client):
    assert client.get("/products/999").status_code == 404


def test_get_product(client, make_user, make_product):
    seller = make_user(role="seller", name="Shop Owner")
    product = make_product(creator=seller, name="Mug", price="7.50")
    r = client.get(f"/products/{product.id}")
    assert r.status_code == 200
    body = r.json()["product"]
    assert body["name"] == "Mug"
    assert body["price"] == 7.5
    assert body["created_by"]["name"] == "Shop Owner"


def test_list_products_search_category_and_pagination(client, make_product):
    for i in range(12):
        make_product(name=f"Chair {i}", category="Furniture")
    make_product(name="Teapot", description="Ceramic pot", category="Kitchen")

    r = client.get("/products")
    data = r.json()
    assert len(data["products"]) == 10
    assert data["pagination"] == {
        "current_page": 1, "total_pages": 2, "total_products": 13,
        "has_next_page": True, "has_prev_page": False,
    }

    page2 = client.get("/products", params={"page": 2}).json()
    assert len(page2["products"]) == 3
    assert page2["pagination"]["has_prev_page"] is True

    found = client.get("/products", params={"search": "CERAMIC"}).json()
    assert [p["name"] for p in found["products"]] == ["Teapot"]

    kitchen = client.get("/products", params={"category": "Kitchen"}).json()
    assert kitchen["pagination"]["total_products"] == 1


def test_list_products_limit_is_capped(client, make_product):
    make_product()
    r = client.get("/products", params={"limit": 500})
    assert r.status_code == 200
    assert r.json()["pagination"]["total_pages"] == 1


def test_seller_only_sees_own_products(client, make_user, make_product, auth_headers):
    seller = make_user(role="seller")
    other = make_user(role="seller")
    make_product(creator=seller, name="Mine")
    make_product(creator=other, name="Theirs")

    mine = client.get("/products", headers=auth_headers(seller)).json()
    assert [p["name"] for p in mine["products"]] == ["Mine"]

    everyone = client.get("/products").json()
    assert everyone["pagination"]["total_products"] == 2


# ==========================================
# Write
# ==========================================

def test_seller_creates_product_with_image(client, make_user, auth_headers, png_bytes, db):
    seller = make_user(role="seller")
    r = _create(client, auth_headers(seller), png_bytes)
    assert r.status_code == 201
    product = r.json()["product"]
    assert product["price"] == 19.99
    assert product["image"].startswith("/public/uploads/image-")

    stored = db.query(Product).filter(Product.id == product["id"]).first()
    assert os.path.exists(os.path.join(STATIC_DIR, stored.image))

    # Category created on demand
    assert db.query(Category).filter(Category.name == "Lighting").count() == 1

    served = client.get(product["image"])
    assert served.status_code == 200


def test_customer_cannot_create_product(client, make_user, auth_headers, png_bytes):
    customer = make_user()
    assert _create(client, auth_headers(customer), png_bytes).status_code == 403


def test_create_product_requires_image(client, make_user, auth_headers):
    seller = make_user(role="seller")
    r = client.post("/products", headers=auth_headers(seller), data={
        "name": "Lamp", "description": "Bright", "price": "10", "category": "Lighting",
    })
    assert r.status_code == 400
    assert r.json()["message"] == "Please upload an image"


def test_create_product_rejects_bad_price_and_non_image(client, make_user, auth_headers, png_bytes):
    seller = make_user(role="seller")
    headers = auth_headers(seller)
    assert _create(client, headers, png_bytes, price="cheap").status_code == 400
    assert _create(client, headers, png_bytes, price="-1").status_code == 400

    r = client.post(
        "/products", headers=headers,
        data={"name": "Lamp", "description": "Bright", "price": "10", "category": "Lighting"},
        files={"image": ("notes.txt", b"hello", "text/plain")},
    )
    assert r.status_code == 400


def test_update_product_owner_only(client, make_user, make_product, auth_headers):
    owner = make_user(role="seller")
    intruder = make_user(role="seller")
    admin = make_user(role="admin")
    product = make_product(creator=owner, price="10.00")

    r = client.patch(f"/products/{product.id}", json={"price": "12.50"}, headers=auth_headers(intruder))
    assert r.status_code == 403

    r = client.patch(f"/products/{product.id}", json={"price": "12.50", "category": "Gifts"}, headers=auth_headers(owner))
    assert r.status_code == 200
    assert r.json()["product"]["price"] == 12.5
    assert r.json()["product"]["category"] == "Gifts"

    r = client.patch(f"/products/{product.id}", json={"stock": 3}, headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()["product"]["stock"] == 3


def test_update_product_validation(client, make_user, make_product, auth_headers):
    owner = make_user(role="seller")
    product = make_product(creator=owner)
    r = client.patch(f"/products/{product.id}", json={"price": -5}, headers=auth_headers(owner))
    assert r.status_code == 400
    r = client.patch("/products/abc", json={"price": 5}, headers=auth_headers(owner))
    assert r.status_code == 400


def test_delete_product_removes_cart_lines_and_keeps_order_snapshot(client, make_user, make_product, auth_headers, db):
    owner = make_user(role="seller")
    customer = make_user()
    product = make_product(creator=owner, name="Vase", price="30.00")

    client.post("/cart", json={"product_id": product.id, "quantity": 2}, headers=auth_headers(customer))
    client.post("/orders", json={"items": [{"product_id": product.id, "quantity": 1}]}, headers=auth_headers(customer))

    r = client.delete(f"/products/{product.id}", headers=auth_headers(owner))
    assert r.status_code == 200
    assert client.get(f"/products/{product.id}").status_code == 404

    assert db.query(CartItem).count() == 0
    line = db.query(OrderItem).one()
    assert line.product_id is None
    assert line.product_name == "Vase"


def test_delete_product_forbidden_for_non_owner(client, make_user, make_product, auth_headers):
    owner = make_user(role="seller")
    other = make_user(role="seller")
    product = make_product(creator=owner)
    assert client.delete(f"/products/{product.id}", headers=auth_headers(other)).status_code == 403

def _uploads():
    folder = os.path.join(STATIC_DIR, UPLOAD_SUBDIR)
    return set(os.listdir(folder)) if os.path.isdir(folder) else set()


@pytest.fixture
def failing_commit(monkeypatch):
    def _fail(self):
        raise SQLAlchemyError("commit failed")

    def _arm():
        monkeypatch.setattr(Session, "commit", _fail)
    return _arm


def test_delete_product_removes_image_file(client, make_user, auth_headers, png_bytes, db):
    seller = make_user(role="seller")
    headers = auth_headers(seller)
    product_id = _create(client, headers, png_bytes).json()["product"]["id"]
    path = os.path.join(STATIC_DIR, db.query(Product).filter(Product.id == product_id).one().image)
    assert os.path.exists(path)

    assert client.delete(f"/products/{product_id}", headers=headers).status_code == 200
    assert not os.path.exists(path)


def test_failed_create_commit_leaves_no_image_behind(make_user, auth_headers, png_bytes, failing_commit):
    seller = make_user(role="seller")
    before = _uploads()
    failing_commit()

    r = _create(TestClient(app, raise_server_exceptions=False), auth_headers(seller), png_bytes)
    assert r.status_code == 500
    assert _uploads() == before


def test_failed_delete_commit_keeps_image(client, make_user, auth_headers, png_bytes, db, failing_commit):
    seller = make_user(role="seller")
    headers = auth_headers(seller)
    product_id = _create(client, headers, png_bytes).json()["product"]["id"]
    path = os.path.join(STATIC_DIR, db.query(Product).filter(Product.id == product_id).one().image)
    failing_commit()

    r = TestClient(app, raise_server_exceptions=False).delete(f"/products/{product_id}", headers=headers)
    assert r.status_code == 500
    assert os.path.exists(path)


# ==========================================
# Categories and admin reports
# ==========================================

def test_category_resolution_reports_created_then_found(db):
    first = category_service.resolve(db, "  Toys ")
    assert first.created is True
    assert first.category.name == "Toys"

    second = category_service.resolve(db, "Toys")
    assert second.created is False
    assert second.category.id == first.category.id


def test_admin_category_crud(client, make_user, auth_headers):
    admin = make_user(role="admin")
    headers = auth_headers(admin)

    r = client.post("/admin/categories", json={"name": "Books"}, headers=headers)
    assert r.status_code == 201
    category_id = r.json()["category"]["id"]

    assert client.post("/admin/categories", json={"name": "Books"}, headers=headers).status_code == 409
    assert client.post("/admin/categories", json={"name": "   "}, headers=headers).status_code == 400

    names = [c["name"] for c in client.get("/admin/categories", headers=headers).json()["categories"]]
    assert names == ["Books"]

    assert client.delete(f"/admin/categories/{category_id}", headers=headers).status_code == 200
    assert client.delete(f"/admin/categories/{category_id}", headers=headers).status_code == 404


def test_categories_require_admin(client, make_user, auth_headers):
    seller = make_user(role="seller")
    r = client.post("/admin/categories", json={"name": "Books"}, headers=auth_headers(seller))
    assert r.status_code == 403
    assert r.json()["message"] == "Admin access required"


def test_my_products_and_low_stock(client, make_user, make_product, auth_headers):
    admin = make_user(role="admin")
    make_product(creator=admin, name="Plenty", stock=50)
    make_product(creator=admin, name="Few", stock=3)
    make_product(creator=admin, name="None left", stock=0)
    make_product(name="Not mine", stock=2)

    mine = client.get("/admin/my-products", headers=auth_headers(admin)).json()["products"]
    assert {p["name"] for p in mine} == {"Plenty", "Few", "None left"}

    low = client.get("/admin/products/low-stock", headers=auth_headers(admin)).json()["products"]
    assert [p["name"] for p in low] == ["Few"]
