from pydantic import BaseModel
from typing import Optional

from joggingshop.constants.order_status import OrderStatus


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    note: Optional[str] = None
