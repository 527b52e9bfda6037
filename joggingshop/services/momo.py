"""
MoMo wallet gateway (v2 "payWithMethod" API).

Requests and IPN callbacks are signed with HMAC-SHA256 over a
``key=value&key=value`` string built from a fixed field order.
"""
import base64
import hashlib
import hmac
import json
import logging
from functools import lru_cache
from typing import Any, Dict, Iterable, Mapping

import requests

from joggingshop.config import settings

logger = logging.getLogger(__name__)

PAYMENT_REQUEST_FIELDS = (
    "accessKey",
    "amount",
    "extraData",
    "ipnUrl",
    "orderId",
    "orderInfo",
    "partnerCode",
    "redirectUrl",
    "requestId",
    "requestType",
)

CALLBACK_FIELDS = (
    "accessKey",
    "amount",
    "extraData",
    "message",
    "orderId",
    "orderInfo",
    "orderType",
    "partnerCode",
    "payType",
    "requestId",
    "responseTime",
    "resultCode",
    "transId",
)

REQUEST_TYPE = "payWithMethod"


class MomoError(Exception):
    def __init__(self, message: str, result_code: Any = None):
        super().__init__(message)
        self.message = message
        self.result_code = result_code


def build_raw_signature(fields: Iterable[str], values: Mapping[str, Any]) -> str:
    return "&".join(f"{name}={values.get(name, '')}" for name in fields)


def encode_extra_data(data: Dict[str, Any]) -> str:
    return base64.b64encode(json.dumps(data).encode("utf-8")).decode("ascii")


def decode_extra_data(extra_data: str) -> Dict[str, Any]:
    """Raises ValueError when the blob is not base64 encoded JSON."""
    try:
        decoded = json.loads(base64.b64decode(extra_data, validate=True).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        raise ValueError(f"Invalid extraData: {e}") from e

    if not isinstance(decoded, dict):
        raise ValueError("Invalid extraData: expected an object")
    return decoded


class MomoClient:
    def __init__(
        self,
        partner_code: str,
        access_key: str,
        secret_key: str,
        endpoint: str,
        timeout: int = 30,
        http: Any = None,
    ):
        self.partner_code = partner_code
        self.access_key = access_key
        self.secret_key = secret_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.http = http or requests

    def sign(self, raw: str) -> str:
        return hmac.new(
            self.secret_key.encode("utf-8"), raw.encode("utf-8"), hashlib.sha256
        ).hexdigest()

    def sign_fields(self, fields: Iterable[str], values: Mapping[str, Any]) -> str:
        return self.sign(build_raw_signature(fields, {**values, "accessKey": self.access_key}))

    def verify_fields(self, fields: Iterable[str], values: Mapping[str, Any], signature: str) -> bool:
        expected = self.sign_fields(fields, values)
        return hmac.compare_digest(expected, signature or "")

    def verify_callback(self, payload: Mapping[str, Any]) -> bool:
        return self.verify_fields(CALLBACK_FIELDS, payload, payload.get("signature", ""))

    def build_payment_request(
        self,
        *,
        reference: str,
        amount: float,
        order_info: str,
        extra_data: str,
        redirect_url: str,
        ipn_url: str,
    ) -> Dict[str, Any]:
        values = {
            "amount": str(round(amount)),
            "extraData": extra_data,
            "ipnUrl": ipn_url,
            "orderId": reference,
            "orderInfo": order_info,
            "partnerCode": self.partner_code,
            "redirectUrl": redirect_url,
            "requestId": reference,
            "requestType": REQUEST_TYPE,
        }
        return {
            **values,
            "partnerName": "Jogging Shop",
            "storeId": "JoggingStore",
            "lang": "vi",
            "autoCapture": True,
            "signature": self.sign_fields(PAYMENT_REQUEST_FIELDS, values),
        }

    def create_payment(self, **kwargs) -> Dict[str, Any]:
        """Create a payment session and return MoMo's response (``payUrl`` etc)."""
        body = self.build_payment_request(**kwargs)

        try:
            response = self.http.post(self.endpoint, json=body, timeout=self.timeout)
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"MoMo create payment failed for {body['orderId']}: {e}")
            raise MomoError(str(e)) from e

        result_code = data.get("resultCode")
        if result_code != 0:
            logger.warning(
                f"MoMo rejected {body['orderId']}: resultCode={result_code} message={data.get('message')}"
            )
            raise MomoError(data.get("message") or "", result_code)

        logger.info(f"MoMo payment session created for {body['orderId']}")
        return data


@lru_cache(maxsize=1)
def get_momo_client() -> MomoClient:
    return MomoClient(
        partner_code=settings.momo_partner_code,
        access_key=settings.momo_access_key,
        secret_key=settings.momo_secret_key,
        endpoint=settings.momo_endpoint,
        timeout=settings.momo_timeout_seconds,
    )
