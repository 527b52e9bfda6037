import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

import stripe
from fastapi import HTTPException

from joggingshop.config import settings

logger = logging.getLogger(__name__)

CURRENCY = "vnd"


def vnd_line_item(name: str, unit_amount: float, quantity: int = 1,
                  image_url: Optional[str] = None, description: Optional[str] = None) -> Dict[str, Any]:
    # VND is zero-decimal: the stored amount is passed through unscaled
    product_data: Dict[str, Any] = {"name": name}
    if image_url:
        product_data["images"] = [image_url]
    if description:
        product_data["description"] = description

    return {
        "price_data": {
            "currency": CURRENCY,
            "product_data": product_data,
            "unit_amount": int(round(unit_amount)),
        },
        "quantity": quantity,
    }


class StripeGateway:
    def __init__(self, api_key: Optional[str]):
        self.api_key = api_key

    def create_checkout_session(
        self,
        *,
        line_items: List[Dict[str, Any]],
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
        customer_email: Optional[str] = None,
    ) -> Dict[str, str]:
        if not self.api_key:
            raise HTTPException(500, "Stripe is not configured")

        params: Dict[str, Any] = {
            "payment_method_types": ["card"],
            "mode": "payment",
            "line_items": line_items,
            "metadata": metadata,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if customer_email:
            params["customer_email"] = customer_email

        session = stripe.checkout.Session.create(api_key=self.api_key, **params)
        logger.info(f"Stripe checkout session {session.id} created ({metadata.get('type')})")
        return {"id": session.id, "url": session.url}


@lru_cache(maxsize=1)
def get_stripe_gateway() -> StripeGateway:
    return StripeGateway(settings.stripe_secret_key)
