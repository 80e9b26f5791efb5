from pydantic import BaseModel, Field
from typing import Optional, List
from decimal import Decimal
import uuid
from datetime import datetime
from src.debits.models import DebitStatus

class CustomerCreate(BaseModel):
    name: str = Field(min_length=1)
    balance: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    hourly_debit_amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)

class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    balance: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    hourly_debit_amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)

class CustomerInfo(BaseModel):
    id: uuid.UUID
    name: str
    balance: Decimal
    hourly_debit_amount: Decimal
    last_debited_at: Optional[datetime] = None
    created_at: datetime

class CustomerResponse(BaseModel):
    success: bool
    message: str
    data: CustomerInfo

class CustomerListResponse(BaseModel):
    success: bool
    message: str
    data: List[CustomerInfo]

class DebitLogInfo(BaseModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    customer_name: str
    status: DebitStatus
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    error_message: Optional[str] = None
    created_at: datetime

class DebitLogListResponse(BaseModel):
    success: bool
    message: str
    data: List[DebitLogInfo]

class ManualDebitInfo(BaseModel):
    customer_id: uuid.UUID
    status: DebitStatus
    amount: Decimal
    previous_balance: Decimal
    new_balance: Decimal
    error_message: Optional[str] = None

class ManualDebitResponse(BaseModel):
    success: bool
    message: str
    data: ManualDebitInfo
