from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Event(SQLModel, table=True):
    __tablename__ = "events"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    location: Optional[str] = None
    event_date: Optional[datetime] = None

    # per-distance prices in VND; None falls back to the house price
    price_5km: Optional[float] = None
    price_10km: Optional[float] = None
    price_21km: Optional[float] = None
    price_42km: Optional[float] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
