from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional, Union


class CartItemIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(alias="productId")
    quantity: int = 1

    # sent by the storefront for card checkout; never trusted for pricing
    name: Optional[str] = None
    price: Optional[float] = None
    image_url: Optional[str] = None


class CheckoutRequest(BaseModel):
    """Body shared by the COD and MoMo checkout endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    items: List[CartItemIn] = []
    user_id: Optional[str] = Field(default=None, alias="userId")
    full_name: Optional[str] = Field(default=None, alias="fullName")
    shipping_address: Optional[str] = Field(default=None, alias="shippingAddress")
    phone: Optional[str] = None


class CardCheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: Optional[int] = Field(default=None, alias="orderId")
    items: List[CartItemIn] = []
    total_amount: Optional[float] = Field(default=None, alias="totalAmount")
    email: Optional[EmailStr] = None
    user_id: Optional[str] = Field(default=None, alias="userId")

    # only needed when the order is created by this request
    full_name: Optional[str] = Field(default=None, alias="fullName")
    shipping_address: Optional[str] = Field(default=None, alias="shippingAddress")
    phone: Optional[str] = None


class EventCheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    registration_id: Optional[int] = Field(default=None, alias="registrationId")
    event_id: Optional[int] = Field(default=None, alias="eventId")
    event_name: Optional[str] = Field(default=None, alias="eventName")
    distance: Optional[str] = None
    email: Optional[EmailStr] = None


class MomoEventCheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    registration_id: Optional[int] = Field(default=None, alias="registrationId")


class MomoCallbackPayload(BaseModel):
    """MoMo IPN body. Values are kept as sent so the signature can be rebuilt."""

    model_config = ConfigDict(populate_by_name=True)

    partner_code: str = Field(default="", alias="partnerCode")
    order_id: str = Field(default="", alias="orderId")
    request_id: str = Field(default="", alias="requestId")
    amount: Union[int, str] = ""
    order_info: str = Field(default="", alias="orderInfo")
    order_type: str = Field(default="", alias="orderType")
    trans_id: Union[int, str] = Field(default="", alias="transId")
    result_code: Union[int, str] = Field(default="", alias="resultCode")
    message: str = ""
    pay_type: str = Field(default="", alias="payType")
    response_time: Union[int, str] = Field(default="", alias="responseTime")
    extra_data: str = Field(default="", alias="extraData")
    signature: str = ""
