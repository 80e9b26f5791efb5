from sqlmodel import SQLModel, Field, Column
import uuid
from decimal import Decimal
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, timezone
from typing import Optional

def utc_now():
    return datetime.now(timezone.utc)

class Customer(SQLModel, table=True):
    __tablename__ = "customers"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.user_id", index=True)
    name: str = Field(index=True)
    
    # balance: prepaid money left to debit from
    balance: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)
    
    # hourly_debit_amount: what each scheduled run takes from the balance
    hourly_debit_amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)

    # only moved forward by a successful debit
    last_debited_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(pg.TIMESTAMP(timezone=True), nullable=True)
    )
    
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )
