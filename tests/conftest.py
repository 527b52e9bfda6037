"""
Shared fixtures: an in-memory SQLite database and fake payment gateways
wired into the app through dependency overrides.
"""
import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from joggingshop import models  # noqa: F401
from joggingshop.database import get_session
from joggingshop.main import app
from joggingshop.models.event import Event
from joggingshop.models.product import Product
from joggingshop.models.registration import Registration
from joggingshop.services.momo import CALLBACK_FIELDS, MomoClient, get_momo_client
from joggingshop.services.stripe_gateway import get_stripe_gateway


class FakeResponse:
    def __init__(self, data):
        self._data = data

    def json(self):
        return self._data


class FakeMomoHttp:
    def __init__(self):
        self.requests = []
        self.response = {"resultCode": 0, "message": "Successful.", "payUrl": "https://momo.test/pay/1"}

    def post(self, url, json=None, timeout=None):
        self.requests.append({"url": url, "json": json, "timeout": timeout})
        return FakeResponse(self.response)


class FakeStripeGateway:
    def __init__(self):
        self.calls = []
        self.error = None

    def create_checkout_session(self, **kwargs):
        if self.error is not None:
            raise self.error
        self.calls.append(kwargs)
        session_id = f"cs_test_{len(self.calls)}"
        return {"id": session_id, "url": f"https://checkout.stripe.test/{session_id}"}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def momo_http():
    return FakeMomoHttp()


@pytest.fixture
def momo_client(momo_http):
    return MomoClient(
        partner_code="MOMO",
        access_key="test-access-key",
        secret_key="test-secret-key",
        endpoint="https://momo.test/v2/gateway/api/create",
        timeout=30,
        http=momo_http,
    )


@pytest.fixture
def stripe_gateway():
    return FakeStripeGateway()


@pytest.fixture
def client(engine, momo_client, stripe_gateway):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_momo_client] = lambda: momo_client
    app.dependency_overrides[get_stripe_gateway] = lambda: stripe_gateway

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def make_product(session):
    def _make(name="Giày chạy bộ", price=100000, stock=10, **kwargs):
        product = Product(name=name, price=price, stock_quantity=stock, **kwargs)
        session.add(product)
        session.commit()
        session.refresh(product)
        return product
    return _make


@pytest.fixture
def make_event(session):
    def _make(name="Hanoi Marathon", **prices):
        event = Event(name=name, **prices)
        session.add(event)
        session.commit()
        session.refresh(event)
        return event
    return _make


@pytest.fixture
def make_registration(session):
    def _make(event, distance="10km", user_id="user-1", **kwargs):
        registration = Registration(
            event_id=event.id,
            user_id=user_id,
            full_name="Nguyễn Văn A",
            email="runner@example.com",
            distance=distance,
            **kwargs,
        )
        session.add(registration)
        session.commit()
        session.refresh(registration)
        return registration
    return _make


@pytest.fixture
def checkout_body():
    def _body(*lines, **overrides):
        body = {
            "items": [{"productId": pid, "quantity": qty} for pid, qty in lines],
            "userId": "user-1",
            "fullName": "Nguyễn Văn A",
            "shippingAddress": "12 Tràng Tiền, Hoàn Kiếm, Hà Nội",
            "phone": "0912345678",
        }
        body.update(overrides)
        return body
    return _body


@pytest.fixture
def signed_callback(momo_client):
    """Build a MoMo IPN body signed the way MoMo signs it."""
    def _callback(extra_data, result_code=0, trans_id=4088878653, **overrides):
        payload = {
            "partnerCode": "MOMO",
            "orderId": "ORDER_1_1700000000000",
            "requestId": "ORDER_1_1700000000000",
            "amount": 200000,
            "orderInfo": "Thanh toán đơn hàng #1",
            "orderType": "momo_wallet",
            "transId": trans_id,
            "resultCode": result_code,
            "message": "Successful." if result_code == 0 else "Transaction denied by user.",
            "payType": "qr",
            "responseTime": 1700000012345,
            "extraData": extra_data,
        }
        payload.update(overrides)
        payload["signature"] = momo_client.sign_fields(CALLBACK_FIELDS, payload)
        return payload
    return _callback
