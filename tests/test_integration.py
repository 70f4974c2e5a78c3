"""
Full lifecycle against fake Paystack and Shopify servers:
initialize -> browser callback -> late webhook -> verify poll.
"""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import FRONTEND_URL, SECRET_KEY
from storefront.auth import verify_token
from storefront.database import Base
from storefront.fulfillment import ShopifyClient
from storefront.main import create_app
from storefront.models import PAYMENT_PAID, Cart, Order
from storefront.paystack_service import PaystackClient
from storefront.webhooks import compute_signature

TRANSACTION = {
    "id": 4099260516,
    "status": "success",
    "reference": "LA-REF-1",
    "amount": 2500000,
    "currency": "NGN",
    "channel": "card",
    "authorization": {"authorization_code": "AUTH_1", "last4": "4081", "card_type": "visa"},
}


class FakeProviders:
    def __init__(self):
        self.requests = []

    def paystack(self, request):
        self.requests.append(("paystack", request.url.path))
        if request.url.path == "/transaction/initialize":
            body = json.loads(request.content)
            return httpx.Response(200, json={"status": True, "data": {
                "authorization_url": "https://checkout.paystack.com/abc",
                "access_code": "abc",
                "reference": body["reference"],
            }})
        return httpx.Response(200, json={"status": True, "data": TRANSACTION})

    def shopify(self, request):
        self.requests.append(("shopify", request.url.path))
        return httpx.Response(201, json={"order": {"id": 5001}})

    def count(self, provider):
        return sum(1 for name, _ in self.requests if name == provider)


@pytest.fixture
def providers():
    return FakeProviders()


@pytest.fixture
def live_app(settings, providers):
    settings = settings.model_copy(update={
        "shopify_store_domain": "la-store.myshopify.com",
        "shopify_admin_token": "shpat_test",
    })
    app = create_app(
        settings,
        gateway=PaystackClient(settings, transport=httpx.MockTransport(providers.paystack)),
        fulfillment=ShopifyClient(settings, transport=httpx.MockTransport(providers.shopify)),
    )
    app.dependency_overrides[verify_token] = lambda: True
    yield app
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=app.state.engine)
    app.state.engine.dispose()


@pytest.fixture
def live_client(live_app):
    with TestClient(live_app) as c:
        yield c


def test_full_payment_lifecycle(live_app, live_client, providers):
    db = live_app.state.session_factory()
    db.add(Order(reference="LA-REF-1", email="a@b.com", user_id="user-1",
                 items=[{"variant_id": 4401, "quantity": 1, "price": 25000}], total_amount=25000))
    db.add(Cart(user_id="user-1", items=[{"variant_id": 4401, "quantity": 1}]))
    db.commit()
    db.close()

    # --- 1. INITIALIZE ---
    response = live_client.post(
        "/api/payment/initialize",
        json={"email": "a@b.com", "amount": "25,000", "reference": "LA-REF-1", "orderId": "O1"}
    )
    assert response.status_code == 200
    assert response.json()["data"]["reference"] == "LA-REF-1"

    # --- 2. BROWSER CALLBACK ---
    response = live_client.get("/api/payment/callback?reference=LA-REF-1&trxref=LA-REF-1", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"].startswith(f"{FRONTEND_URL}/user-account")

    db = live_app.state.session_factory()
    order = db.query(Order).filter_by(reference="LA-REF-1").first()
    db.close()
    assert order.payment_status == PAYMENT_PAID
    assert order.payment_details["amount"] == 25000.0
    assert order.shopify_order_id == "5001"

    db = live_app.state.session_factory()
    cart = db.query(Cart).filter_by(user_id="user-1").first()
    db.close()
    assert cart.items == []

    # --- 3. LATE WEBHOOK FOR THE SAME CHARGE ---
    body = json.dumps({"event": "charge.success", "data": TRANSACTION}).encode()
    response = live_client.post(
        "/api/payment/webhook",
        content=body,
        headers={"x-paystack-signature": compute_signature(body, SECRET_KEY)}
    )
    assert response.status_code == 200

    # --- 4. VERIFY POLL ---
    response = live_client.get("/api/payment/verify/LA-REF-1")
    assert response.status_code == 200
    assert response.json()["order"]["status"] == "processing"

    assert providers.count("shopify") == 1
    assert providers.requests.count(("paystack", "/transaction/verify/LA-REF-1")) == 1
