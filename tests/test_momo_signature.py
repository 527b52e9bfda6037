import hashlib
import hmac

import pytest
import requests

from joggingshop.services.momo import (
    CALLBACK_FIELDS,
    PAYMENT_REQUEST_FIELDS,
    MomoError,
    build_raw_signature,
    decode_extra_data,
    encode_extra_data,
)


def payment_kwargs(**overrides):
    kwargs = dict(
        reference="ORDER_7_1700000000000",
        amount=200000.0,
        order_info="Thanh toán đơn hàng #7",
        extra_data=encode_extra_data({"orderId": 7}),
        redirect_url="http://localhost:3000/don-hang/7?success=true",
        ipn_url="http://localhost:3000/api/checkout/momo/callback",
    )
    kwargs.update(overrides)
    return kwargs


def test_raw_signature_follows_field_order():
    raw = build_raw_signature(("b", "a", "c"), {"a": 1, "b": "x", "c": 0})
    assert raw == "b=x&a=1&c=0"


def test_payment_request_signature(momo_client):
    body = momo_client.build_payment_request(**payment_kwargs())

    raw = (
        "accessKey=test-access-key"
        "&amount=200000"
        f"&extraData={body['extraData']}"
        "&ipnUrl=http://localhost:3000/api/checkout/momo/callback"
        "&orderId=ORDER_7_1700000000000"
        "&orderInfo=Thanh toán đơn hàng #7"
        "&partnerCode=MOMO"
        "&redirectUrl=http://localhost:3000/don-hang/7?success=true"
        "&requestId=ORDER_7_1700000000000"
        "&requestType=payWithMethod"
    )
    expected = hmac.new(b"test-secret-key", raw.encode("utf-8"), hashlib.sha256).hexdigest()

    assert body["signature"] == expected
    assert body["amount"] == "200000"
    assert body["requestId"] == body["orderId"]


def test_signed_request_verifies(momo_client):
    body = momo_client.build_payment_request(**payment_kwargs())

    assert momo_client.verify_fields(PAYMENT_REQUEST_FIELDS, body, body["signature"])


def test_callback_round_trip(momo_client, signed_callback):
    payload = signed_callback(encode_extra_data({"orderId": 1}))

    assert momo_client.verify_callback(payload)


def test_tampered_callback_is_rejected(momo_client, signed_callback):
    payload = signed_callback(encode_extra_data({"orderId": 1}), result_code=1006)
    payload["resultCode"] = 0

    assert not momo_client.verify_callback(payload)


def test_callback_signed_with_other_secret_is_rejected(momo_client, signed_callback):
    payload = signed_callback(encode_extra_data({"orderId": 1}))
    momo_client.secret_key = "another-secret"

    assert not momo_client.verify_callback(payload)


def test_missing_signature_is_rejected(momo_client, signed_callback):
    payload = signed_callback(encode_extra_data({"orderId": 1}))
    del payload["signature"]

    assert not momo_client.verify_callback(payload)


def test_callback_uses_configured_access_key(momo_client, signed_callback):
    payload = signed_callback(encode_extra_data({"orderId": 1}))
    payload["accessKey"] = "spoofed"

    assert momo_client.verify_callback(payload)


def test_extra_data_round_trip():
    encoded = encode_extra_data({"type": "event", "registrationId": 3})

    assert decode_extra_data(encoded) == {"type": "event", "registrationId": 3}


@pytest.mark.parametrize("blob", ["not base64!", "", encode_extra_data([1, 2])])
def test_invalid_extra_data(blob):
    with pytest.raises(ValueError):
        decode_extra_data(blob)


def test_create_payment_posts_signed_body(momo_client, momo_http):
    data = momo_client.create_payment(**payment_kwargs())

    assert data["payUrl"] == "https://momo.test/pay/1"
    sent = momo_http.requests[0]
    assert sent["url"] == "https://momo.test/v2/gateway/api/create"
    assert sent["timeout"] == 30
    assert sent["json"]["requestType"] == "payWithMethod"
    assert momo_client.verify_fields(PAYMENT_REQUEST_FIELDS, sent["json"], sent["json"]["signature"])


def test_create_payment_rejected(momo_client, momo_http):
    momo_http.response = {"resultCode": 22, "message": "Số tiền giao dịch không hợp lệ"}

    with pytest.raises(MomoError) as excinfo:
        momo_client.create_payment(**payment_kwargs())

    assert excinfo.value.result_code == 22
    assert excinfo.value.message == "Số tiền giao dịch không hợp lệ"


def test_create_payment_network_error(momo_client, momo_http):
    def boom(*args, **kwargs):
        raise requests.ConnectTimeout("timed out")

    momo_http.post = boom

    with pytest.raises(MomoError):
        momo_client.create_payment(**payment_kwargs())
