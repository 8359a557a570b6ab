import json

from common.security import sign_payload
from config.settings import PAYSTACK_SECRET_KEY
from modules.payment.gateways import GatewayCreateResult, GatewayVerifyResult
from modules.payment.models import Checkout


def _fill_cart(client, headers, make_product):
    p1 = make_product(name="P1", price="10.00")
    p2 = make_product(name="P2", price="5.00")
    client.post("/cart", json={"product_id": p1.id, "quantity": 2}, headers=headers)
    client.post("/cart", json={"product_id": p2.id, "quantity": 1}, headers=headers)


# ==========================================
# Initiate
# ==========================================

def test_initiate_returns_authorization_url(client, make_user, make_product, auth_headers, gateway):
    user = make_user()
    headers = auth_headers(user)
    _fill_cart(client, headers, make_product)

    r = client.post("/payment", headers=headers)
    assert r.status_code == 200
    data = r.json()
    assert data["authorization_url"] == "https://checkout.example.com/abc"
    assert data["reference"]

    sent = gateway.created[0]
    assert str(sent.amount) == "25.00"
    assert sent.email == user.email
    assert sent.metadata["user_id"] == user.id
    assert sent.callback_url.endswith("/payment/callback")


def test_initiate_empty_cart(client, make_user, auth_headers, gateway):
    assert client.post("/payment", headers=auth_headers(make_user())).status_code == 400
    assert gateway.created == []


def test_initiate_gateway_failure(client, make_user, make_product, auth_headers, gateway):
    headers = auth_headers(make_user())
    _fill_cart(client, headers, make_product)
    gateway.create_result = GatewayCreateResult(success=False, error_message="Gateway error: Invalid key")

    r = client.post("/payment", headers=headers)
    assert r.status_code == 502
    assert r.json() == {"success": False, "message": "Gateway error: Invalid key"}


def test_payment_info(client, make_user, make_product, auth_headers, gateway):
    headers = auth_headers(make_user())
    _fill_cart(client, headers, make_product)
    info = client.get("/payment/info", headers=headers).json()
    assert info["gateway"] == "paystack"
    assert info["cart_total"] == 25.0


# ==========================================
# Callback
# ==========================================

def test_successful_callback_records_checkout_and_clears_cart(client, make_user, make_product, auth_headers, gateway, db):
    user = make_user()
    headers = auth_headers(user)
    _fill_cart(client, headers, make_product)
    gateway.paid(user.id, "25.00")

    r = client.get("/payment/callback", params={"reference": "REF-1", "trxref": "REF-1"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["checkout"]["status"] is True
    assert body["checkout"]["total_amount"] == 25.0
    assert len(body["checkout"]["items"]) == 2

    assert db.query(Checkout).count() == 1
    assert client.get("/cart", headers=headers).json()["cart_id"] is None


def test_failed_callback_keeps_cart(client, make_user, make_product, auth_headers, gateway, db):
    user = make_user()
    headers = auth_headers(user)
    _fill_cart(client, headers, make_product)
    gateway.failed(user.id, "25.00")

    r = client.get("/payment/callback", params={"reference": "REF-2"})
    assert r.status_code == 400
    assert r.json()["success"] is False

    checkout = db.query(Checkout).one()
    assert checkout.status is False
    assert client.get("/cart", headers=headers).json()["total_amount"] == 25.0


def test_callback_is_idempotent_per_reference(client, make_user, make_product, auth_headers, gateway, db):
    user = make_user()
    headers = auth_headers(user)
    _fill_cart(client, headers, make_product)
    gateway.paid(user.id, "25.00")

    first = client.get("/payment/callback", params={"reference": "REF-3"})
    again = client.get("/payment/callback", params={"reference": "REF-3"})

    assert first.status_code == again.status_code == 200
    assert again.json()["checkout"]["id"] == first.json()["checkout"]["id"]
    assert db.query(Checkout).count() == 1
    # The gateway is not asked twice
    assert gateway.verified == ["REF-3"]


def test_callback_missing_reference(client, gateway):
    assert client.get("/payment/callback").status_code == 400


def test_callback_verification_failure(client, gateway, db):
    gateway.verify_result = GatewayVerifyResult(success=False, error_message="Could not reach payment gateway")
    r = client.get("/payment/callback", params={"reference": "REF-4"})
    assert r.status_code == 502
    assert db.query(Checkout).count() == 0


def test_callback_unknown_user(client, gateway):
    gateway.paid(4242, "10.00")
    r = client.get("/payment/callback", params={"reference": "REF-5"})
    assert r.status_code == 400


def test_callback_empty_cart(client, make_user, gateway, db):
    user = make_user()
    gateway.paid(user.id, "10.00")
    r = client.get("/payment/callback", params={"reference": "REF-6"})
    assert r.status_code == 400
    assert r.json()["message"] == "Cart is empty"
    assert db.query(Checkout).count() == 0

def test_callback_rejects_malformed_reference(client, gateway, db):
    for ref in ("../../customer", "REF/1", "a..b"):
        r = client.get("/payment/callback", params={"reference": ref})
        assert r.status_code == 400
        assert r.json()["message"] == "Invalid transaction reference"
    assert gateway.verified == []
    assert db.query(Checkout).count() == 0


def test_pending_callback_records_nothing(client, make_user, make_product, auth_headers, gateway, db):
    user = make_user()
    headers = auth_headers(user)
    _fill_cart(client, headers, make_product)
    gateway.pending(user.id, "25.00")

    r = client.get("/payment/callback", params={"reference": "REF-P"})
    assert r.status_code == 400
    assert r.json()["message"] == "Payment is still pending"
    assert db.query(Checkout).count() == 0
    assert client.get("/cart", headers=headers).json()["total_amount"] == 25.0


def test_failed_checkout_is_settled_when_gateway_later_reports_paid(client, make_user, make_product, auth_headers, gateway, db):
    user = make_user()
    headers = auth_headers(user)
    _fill_cart(client, headers, make_product)
    gateway.failed(user.id, "25.00")
    assert client.get("/payment/callback", params={"reference": "REF-9"}).status_code == 400

    gateway.paid(user.id, "25.00")
    r = client.get("/payment/callback", params={"reference": "REF-9"})
    assert r.status_code == 200
    assert r.json()["checkout"]["status"] is True

    checkout = db.query(Checkout).one()
    assert checkout.status is True
    assert checkout.gateway_ref == "987654"
    assert len(checkout.items) == 2
    assert client.get("/cart", headers=headers).json()["cart_id"] is None
    assert gateway.verified == ["REF-9", "REF-9"]


def test_failed_checkout_replayed_while_still_unpaid(client, make_user, make_product, auth_headers, gateway, db):
    user = make_user()
    headers = auth_headers(user)
    _fill_cart(client, headers, make_product)
    gateway.failed(user.id, "25.00")

    first = client.get("/payment/callback", params={"reference": "REF-10"})
    again = client.get("/payment/callback", params={"reference": "REF-10"})
    assert first.status_code == again.status_code == 400
    assert again.json()["checkout"]["id"] == first.json()["checkout"]["id"]
    assert db.query(Checkout).count() == 1
    assert client.get("/cart", headers=headers).json()["total_amount"] == 25.0



def test_callback_renders_html_for_browsers(client, make_user, make_product, auth_headers, gateway):
    user = make_user(name="Ada Lovelace")
    headers = auth_headers(user)
    _fill_cart(client, headers, make_product)
    gateway.paid(user.id, "25.00")

    r = client.get("/payment/callback", params={"reference": "REF-7"}, headers={"Accept": "text/html"})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert "Payment successful" in r.text
    assert "REF-7" in r.text
    assert "25.00" in r.text


# ==========================================
# Webhook
# ==========================================

def _webhook(client, event):
    raw = json.dumps(event).encode()
    return client.post(
        "/payment/webhook", content=raw,
        headers={"x-paystack-signature": sign_payload(PAYSTACK_SECRET_KEY, raw), "Content-Type": "application/json"},
    )


def test_webhook_rejects_bad_signature(client, gateway):
    r = client.post("/payment/webhook", content=b'{"event": "charge.success"}', headers={"x-paystack-signature": "nope"})
    assert r.status_code == 401


def test_webhook_charge_success_reconciles(client, make_user, make_product, auth_headers, gateway, db):
    user = make_user()
    headers = auth_headers(user)
    _fill_cart(client, headers, make_product)
    gateway.paid(user.id, "25.00")

    r = _webhook(client, {"event": "charge.success", "data": {"reference": "REF-8"}})
    assert r.status_code == 200
    assert r.json()["reference"] == "REF-8"
    assert db.query(Checkout).filter(Checkout.reference == "REF-8").one().status is True

    # The browser callback arriving later replays the stored record
    assert client.get("/payment/callback", params={"reference": "REF-8"}).status_code == 200
    assert db.query(Checkout).count() == 1


def test_webhook_ignores_other_events(client, gateway, db):
    r = _webhook(client, {"event": "transfer.success", "data": {"reference": "X"}})
    assert r.status_code == 200
    assert r.json()["message"] == "Event acknowledged"
    assert gateway.verified == []


def test_webhook_settles_payment_that_was_pending_at_callback(client, make_user, make_product, auth_headers, gateway, db):
    user = make_user()
    headers = auth_headers(user)
    _fill_cart(client, headers, make_product)
    gateway.pending(user.id, "25.00")
    assert client.get("/payment/callback", params={"reference": "REF-P2"}).status_code == 400

    gateway.paid(user.id, "25.00")
    r = _webhook(client, {"event": "charge.success", "data": {"reference": "REF-P2"}})
    assert r.status_code == 200
    assert r.json()["message"] == "Event processed"

    checkout = db.query(Checkout).filter(Checkout.reference == "REF-P2").one()
    assert checkout.status is True
    assert client.get("/cart", headers=headers).json()["cart_id"] is None
    assert gateway.verified == ["REF-P2", "REF-P2"]


def test_webhook_ignores_malformed_reference(client, gateway, db):
    r = _webhook(client, {"event": "charge.success", "data": {"reference": "../../customer"}})
    assert r.status_code == 200
    assert r.json()["message"] == "Event acknowledged"
    assert gateway.verified == []
