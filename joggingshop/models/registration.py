from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Registration(SQLModel, table=True):
    __tablename__ = "registrations"

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="events.id", index=True)
    user_id: str = Field(index=True)

    full_name: str
    email: Optional[str] = None
    distance: str

    status: str = Field(default="pending")  # pending | confirmed | cancelled
    payment_status: str = Field(default="pending")  # pending | paid | failed
    amount_paid: Optional[float] = None

    stripe_session_id: Optional[str] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
