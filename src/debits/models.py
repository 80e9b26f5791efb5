from sqlmodel import SQLModel, Field, Column
import uuid
from decimal import Decimal
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

def utc_now():
    return datetime.now(timezone.utc)


class DebitStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class DebitLog(SQLModel, table=True):
    """Immutable audit row: one per customer per debit run."""
    __tablename__ = "debit_logs"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    customer_id: uuid.UUID = Field(foreign_key="customers.id", ondelete="CASCADE", index=True)
    status: DebitStatus
    amount: Decimal = Field(max_digits=12, decimal_places=2)
    balance_before: Decimal = Field(max_digits=12, decimal_places=2)
    balance_after: Decimal = Field(max_digits=12, decimal_places=2)
    error_message: Optional[str] = None

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True), index=True)
    )
