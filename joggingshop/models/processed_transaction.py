from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from typing import Optional
from datetime import datetime


class ProcessedTransaction(SQLModel, table=True):
    """Provider transactions that have already been applied."""

    __tablename__ = "processed_transactions"
    __table_args__ = (
        UniqueConstraint("provider", "transaction_id", name="uq_provider_transaction"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    provider: str  # momo | stripe
    transaction_id: str = Field(index=True)

    order_id: Optional[int] = Field(default=None, index=True)
    registration_id: Optional[int] = Field(default=None, index=True)
    result_code: Optional[int] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
