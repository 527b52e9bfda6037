from sqlmodel import select

from joggingshop.models.order import Order
from joggingshop.models.order_event import OrderEvent
from joggingshop.models.order_item import OrderItem
from joggingshop.models.product import Product
from joggingshop.services.momo import decode_extra_data


def test_momo_checkout_returns_pay_url(client, session, momo_http, make_product, checkout_body):
    product = make_product(price=100000, stock=5)

    response = client.post("/api/checkout/momo", json=checkout_body((product.id, 2)))

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["payUrl"] == "https://momo.test/pay/1"

    order = session.get(Order, data["orderId"])
    assert order.status == "pending"
    assert order.payment_status == "pending"
    assert order.payment_method == "momo"
    assert order.total_amount == 200000
    assert order.stripe_session_id.startswith(f"ORDER_{order.id}_")

    sent = momo_http.requests[0]["json"]
    assert sent["orderId"] == order.stripe_session_id
    assert sent["amount"] == "200000"
    assert sent["ipnUrl"].endswith("/api/checkout/momo/callback")
    assert decode_extra_data(sent["extraData"]) == {"orderId": order.id}


def test_momo_checkout_leaves_stock_for_callback(client, session, make_product, checkout_body):
    product = make_product(stock=5)

    client.post("/api/checkout/momo", json=checkout_body((product.id, 2)))

    session.expire_all()
    assert session.get(Product, product.id).stock_quantity == 5


def test_gateway_rejection_discards_order(client, session, momo_http, make_product, checkout_body):
    momo_http.response = {"resultCode": 1001, "message": "Giao dịch thất bại do tài khoản không đủ tiền"}
    product = make_product(stock=5)

    response = client.post("/api/checkout/momo", json=checkout_body((product.id, 1)))

    assert response.status_code == 400
    assert response.json()["error"] == "Giao dịch thất bại do tài khoản không đủ tiền"
    assert session.exec(select(Order)).all() == []
    assert session.exec(select(OrderItem)).all() == []
    assert session.exec(select(OrderEvent)).all() == []


def test_gateway_rejection_without_message(client, session, momo_http, make_product, checkout_body):
    momo_http.response = {"resultCode": 99}
    product = make_product(stock=5)

    response = client.post("/api/checkout/momo", json=checkout_body((product.id, 1)))

    assert response.status_code == 400
    assert response.json()["error"] == "Lỗi khi tạo thanh toán MoMo"


def test_shortfall_never_reaches_gateway(client, session, momo_http, make_product, checkout_body):
    product = make_product(name="Đồng hồ GPS", stock=0)

    response = client.post("/api/checkout/momo", json=checkout_body((product.id, 1)))

    assert response.status_code == 400
    assert "Đồng hồ GPS" in response.json()["error"]
    assert momo_http.requests == []
    assert session.exec(select(Order)).all() == []
