"""Ledger store used by the debit processor.

Wraps one AsyncSession. Writes only flush; the caller owns the
transaction so a balance update and its audit row commit together.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional
import uuid

from sqlalchemy import case
from sqlmodel import select, func, asc
from sqlmodel.ext.asyncio.session import AsyncSession

from src.customers.models import Customer
from src.debits.models import DebitLog, DebitStatus


@dataclass(frozen=True)
class CustomerSnapshot:
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    balance: Decimal
    hourly_debit_amount: Decimal


@dataclass(frozen=True)
class LogSummary:
    total_transactions: int
    successful: int
    failed: int
    last_processed: Optional[datetime]


class LedgerStore:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_eligible_customers(self) -> List[CustomerSnapshot]:
        statement = (
            select(Customer)
            .where(Customer.balance > 0)
            .order_by(asc(Customer.created_at), asc(Customer.id))
        )
        result = await self.session.exec(statement)

        return [
            CustomerSnapshot(
                id=customer.id,
                user_id=customer.user_id,
                name=customer.name,
                balance=customer.balance,
                hourly_debit_amount=customer.hourly_debit_amount,
            )
            for customer in result.all()
        ]

    async def get_customer_for_update(self, customer_id: uuid.UUID) -> Optional[Customer]:
        # Row lock held until the caller commits or rolls back
        statement = select(Customer).where(Customer.id == customer_id).with_for_update()
        result = await self.session.exec(statement)
        return result.first()

    async def update_customer_after_debit(self, customer_id: uuid.UUID, new_balance: Decimal, debited_at: datetime):
        customer = await self.session.get(Customer, customer_id)
        if customer is None:
            raise LookupError(f"customer {customer_id} no longer exists")

        customer.balance = new_balance
        customer.last_debited_at = debited_at
        self.session.add(customer)
        await self.session.flush()

    async def append_debit_log(self, entry: DebitLog) -> DebitLog:
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def recent_log_summary(self, window: timedelta) -> LogSummary:
        since = datetime.now(timezone.utc) - window

        statement = select(
            func.count(DebitLog.id),
            func.sum(case((DebitLog.status == DebitStatus.SUCCESS, 1), else_=0)),
            func.sum(case((DebitLog.status == DebitStatus.FAILED, 1), else_=0)),
            func.max(DebitLog.created_at),
        ).where(DebitLog.created_at >= since)

        result = await self.session.exec(statement)
        total, successful, failed, last_processed = result.one()

        return LogSummary(
            total_transactions=total or 0,
            successful=successful or 0,
            failed=failed or 0,
            last_processed=last_processed,
        )
