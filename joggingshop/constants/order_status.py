from enum import Enum


class OrderStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    shipping = "shipping"
    completed = "completed"
    cancelled = "cancelled"


class PaymentStatus(str, Enum):
    pending = "pending"
    cod_pending = "cod_pending"
    paid = "paid"
    failed = "failed"


class PaymentMethod(str, Enum):
    cod = "cod"
    momo = "momo"
    card = "card"


class RegistrationStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"


ALLOWED_TRANSITIONS = {
    "pending": ["confirmed", "cancelled"],
    "confirmed": ["shipping", "cancelled"],
    "shipping": ["completed", "cancelled"],
    "completed": [],
    "cancelled": []
}
