"""
Shared fixtures: in-memory SQLite, a TestClient, user/product factories
and a scriptable fake payment gateway.
"""

import io
import os
import tempfile

# Settings are read at import time, so the environment must be ready first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["OTP_SECRET"] = "test-otp-secret"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_secret"
os.environ["STATIC_DIR"] = tempfile.mkdtemp(prefix="storefront-static-")
os.environ.setdefault("RESEND_API_KEY", "")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from main import app
from config.database import Base, engine, SessionLocal
from common.security import hash_password
from modules.auth.service import issue_token
from modules.catalog.models import Product
from modules.payment.gateways import (
    BaseGateway, GatewayCreateResult, GatewayVerifyResult,
)
from modules.user.models import User


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


def _persist(obj):
    """Commit obj in its own session and hand back a detached, fully loaded copy."""
    session = SessionLocal()
    try:
        session.add(obj)
        session.commit()
        session.refresh(obj)
        session.expunge(obj)
        return obj
    finally:
        session.close()


@pytest.fixture
def make_user():
    counter = {"n": 0}

    def _make(role="customer", email=None, password="secret123", name="Test User", is_active=True):
        counter["n"] += 1
        return _persist(User(
            name=name,
            email=email or f"user{counter['n']}@example.com",
            password_hash=hash_password(password),
            role=role,
            is_active=is_active,
        ))
    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {issue_token(user)}"}
    return _headers


@pytest.fixture
def make_product():
    def _make(creator=None, name="Widget", price="10.00", stock=20, category="General", description="A product"):
        return _persist(Product(
            name=name,
            description=description,
            price=Decimal(str(price)),
            category=category,
            stock=stock,
            created_by=creator.id if creator else None,
        ))
    return _make


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (20, 20), (200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()


class FakeGateway(BaseGateway):
    """Gateway double: results are set per test, calls are recorded."""
    name = "paystack"
    label = "Fake Paystack"

    def __init__(self):
        self.create_result = GatewayCreateResult(
            success=True, redirect_url="https://checkout.example.com/abc", access_code="abc",
        )
        self.verify_result = None
        self.created = []
        self.verified = []

    def create_payment(self, req):
        self.created.append(req)
        if self.create_result.success and not self.create_result.reference:
            return GatewayCreateResult(
                success=True,
                redirect_url=self.create_result.redirect_url,
                reference=req.reference,
                access_code=self.create_result.access_code,
            )
        return self.create_result

    def verify_payment(self, reference):
        self.verified.append(reference)
        return self.verify_result

    def paid(self, user_id, amount):
        self.verify_result = GatewayVerifyResult(
            success=True, paid=True, amount=Decimal(str(amount)),
            metadata={"user_id": user_id}, ref_number="987654", gateway_status="success",
        )

    def failed(self, user_id, amount):
        self.verify_result = GatewayVerifyResult(
            success=True, paid=False, amount=Decimal(str(amount)),
            metadata={"user_id": user_id}, gateway_status="failed",
        )

    def pending(self, user_id, amount):
        self.verify_result = GatewayVerifyResult(
            success=True, paid=False, amount=Decimal(str(amount)),
            metadata={"user_id": user_id}, gateway_status="ongoing",
        )


@pytest.fixture
def gateway(monkeypatch):
    fake = FakeGateway()
    monkeypatch.setattr("modules.payment.service.get_gateway", lambda name: fake)
    return fake
