from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime

from joggingshop.models.order_item import OrderItem


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)

    customer_name: str
    phone: str
    shipping_address: str

    total_amount: float

    status: str = Field(default="pending", index=True)
    payment_status: str = Field(default="pending")
    payment_method: str

    # Stripe session id, or the MoMo orderId for wallet payments
    stripe_session_id: Optional[str] = Field(default=None, index=True)

    stock_committed: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    items: List["OrderItem"] = Relationship(back_populates="order")
