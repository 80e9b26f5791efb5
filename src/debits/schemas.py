from pydantic import BaseModel
from typing import Optional, List
from decimal import Decimal
import uuid
from datetime import datetime
from src.debits.models import DebitStatus

class DebitResult(BaseModel):
    customer_id: uuid.UUID
    customer_name: str
    status: DebitStatus
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    error_message: Optional[str] = None

class RunSummary(BaseModel):
    message: str
    timestamp: datetime
    total_customers: int
    successful: int
    failed: int
    results: List[DebitResult]

class RunSummaryResponse(BaseModel):
    success: bool
    message: str
    data: RunSummary

class SchedulerStatus(BaseModel):
    is_running: bool
    next_run: Optional[datetime] = None

class RecentLogSummary(BaseModel):
    total_transactions: int
    successful: int
    failed: int
    last_processed: Optional[datetime] = None

class ProcessorStatus(BaseModel):
    window_hours: int
    processing: bool
    recent: RecentLogSummary
    scheduler: SchedulerStatus
    timestamp: datetime

class ProcessorStatusResponse(BaseModel):
    success: bool
    message: str
    data: ProcessorStatus
