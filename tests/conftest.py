"""Shared fixtures.

The environment is set before any storefront import so the module-level app in
storefront.main builds against the test database.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_temp.db")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_secret")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")

import pytest
from fastapi.testclient import TestClient

from storefront.auth import verify_token
from storefront.config import Settings
from storefront.database import Base
from storefront.fulfillment import ShopifyClient
from storefront.main import create_app
from storefront.models import PAYMENT_UNPAID, Cart, Order
from storefront.paystack_service import Authorization, PaymentVerified, PaystackClient

TEST_DATABASE_URL = "sqlite:///./test_temp.db"
SECRET_KEY = "sk_test_secret"
FRONTEND_URL = "http://shop.test"


def verified(reference="LA-REF-1", amount=500000):
    return PaymentVerified(
        reference=reference,
        amount=amount,
        currency="NGN",
        channel="card",
        transaction_id=4099260516,
        authorization=Authorization(auth_code="AUTH_abc123", card_last4="4081", card_brand="visa"),
    )


@pytest.fixture
def settings():
    return Settings(
        database_url=TEST_DATABASE_URL,
        paystack_secret_key=SECRET_KEY,
        paystack_callback_url="http://api.test/api/payment/callback",
        frontend_url=FRONTEND_URL,
        jwt_secret="test-jwt-secret",
    )


@pytest.fixture
def gateway(mocker):
    return mocker.Mock(spec=PaystackClient)


@pytest.fixture
def fulfillment(mocker):
    client = mocker.Mock(spec=ShopifyClient)
    client.create_order.return_value = "shop_1001"
    return client


@pytest.fixture
def fastapi_app(settings, gateway, fulfillment):
    app = create_app(settings, gateway=gateway, fulfillment=fulfillment)
    yield app
    Base.metadata.drop_all(bind=app.state.engine)
    app.state.engine.dispose()


@pytest.fixture
def client(fastapi_app):
    # Bypass auth verification for tests
    fastapi_app.dependency_overrides[verify_token] = lambda: True
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def session_factory(fastapi_app):
    return fastapi_app.state.session_factory


@pytest.fixture
def make_order(session_factory):
    def _make(reference="LA-REF-1", user_id="user-1", payment_status=PAYMENT_UNPAID, **kwargs):
        kwargs.setdefault("items", [{"variant_id": 4401, "title": "Ankara Dress", "quantity": 1, "price": 5000}])
        db = session_factory()
        order = Order(
            reference=reference,
            email="a@b.com",
            user_id=user_id,
            total_amount=5000,
            payment_status=payment_status,
            **kwargs
        )
        db.add(order)
        db.commit()
        db.close()
        return order
    return _make


@pytest.fixture
def make_cart(session_factory):
    def _make(user_id="user-1", items=None):
        db = session_factory()
        cart = Cart(user_id=user_id, items=items if items is not None else [{"variant_id": 4401, "quantity": 1}])
        db.add(cart)
        db.commit()
        db.close()
        return cart
    return _make


@pytest.fixture
def load_order(session_factory):
    def _load(reference="LA-REF-1"):
        db = session_factory()
        try:
            return db.query(Order).filter_by(reference=reference).first()
        finally:
            db.close()
    return _load


@pytest.fixture
def load_cart(session_factory):
    def _load(user_id="user-1"):
        db = session_factory()
        try:
            return db.query(Cart).filter_by(user_id=user_id).first()
        finally:
            db.close()
    return _load
