"""Hourly debit run.

`DebitProcessor.run_once()` is the single entry point used by both the
scheduler and the manual trigger route; `debit_customer()` runs the same
per-customer step for a single customer. One run takes a snapshot of every
customer with a positive balance and processes them one at a time, each in
its own transaction, so one customer's failure never stops the others.
Every processed customer gets exactly one `debit_logs` row.

Runs inside one process are serialized by an asyncio.Lock, and each
customer row is re-read with FOR UPDATE before deciding, so a trigger
arriving during a scheduled run cannot debit the same balance twice.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Tuple

from sqlmodel.ext.asyncio.session import AsyncSession

from src.debits.engine import DebitDecision, decide
from src.debits.models import DebitLog, DebitStatus
from src.debits.schemas import DebitResult, RunSummary
from src.debits.store import CustomerSnapshot, LedgerStore

logger = logging.getLogger(__name__)

RUN_COMPLETED_MESSAGE = "Hourly debit process completed"
PROCESSING_ERROR_PREFIX = "Processing error: "


def utc_now():
    return datetime.now(timezone.utc)


class CustomerGone(LookupError):
    """The customer row vanished before it could be locked."""


class DebitProcessor:

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self._session_factory = session_factory
        self._run_lock = asyncio.Lock()

    @property
    def is_processing(self) -> bool:
        return self._run_lock.locked()

    async def run_once(self) -> RunSummary:
        """Process every eligible customer once and summarise the outcome.

        Raises whatever the eligible-customer fetch raises; nothing else
        escapes.
        """
        if self._run_lock.locked():
            logger.info("Debit run already in progress, waiting for it to finish")

        async with self._run_lock:
            logger.info("Starting hourly debit process...")

            customers = await self._fetch_eligible()
            logger.info("Processing %d customers for hourly debits", len(customers))

            results: List[DebitResult] = []
            successful, failed = 0, 0

            for customer in customers:
                result = await self._process_customer(customer)
                results.append(result)

                if result.status == DebitStatus.SUCCESS:
                    successful += 1
                else:
                    failed += 1

            summary = RunSummary(
                message=RUN_COMPLETED_MESSAGE,
                timestamp=utc_now(),
                total_customers=len(customers),
                successful=successful,
                failed=failed,
                results=results,
            )

            logger.info(
                "Hourly debit process completed: %d customers, %d successful, %d failed",
                summary.total_customers, summary.successful, summary.failed
            )
            return summary

    async def debit_customer(self, customer_id: uuid.UUID) -> Tuple[CustomerSnapshot, DebitDecision]:
        """Debit one customer now, outside the hourly run.

        Same decision and single transaction as a run step, so it writes
        exactly one log row. Errors propagate to the caller and leave no
        row behind.
        """
        async with self._run_lock:
            customer, decision = await self._apply_debit(customer_id)

        logger.info(
            "Manual debit %s for %s (ID: %s): %s -> %s",
            decision.status.value, customer.name, customer.id,
            decision.balance_before, decision.balance_after
        )
        return customer, decision

    async def _fetch_eligible(self) -> List[CustomerSnapshot]:
        async with self._session_factory() as session:
            return await LedgerStore(session).list_eligible_customers()

    async def _process_customer(self, customer: CustomerSnapshot) -> DebitResult:
        try:
            customer, decision = await self._apply_debit(customer.id)
        except Exception as e:
            logger.exception("Error processing customer %s", customer.id)
            return await self._record_processing_error(customer, e)

        if decision.succeeded:
            logger.info(
                "Debited %s from %s (ID: %s)",
                decision.amount, customer.name, customer.id
            )
        else:
            logger.warning(
                "Insufficient balance for %s (ID: %s). Balance: %s, Required: %s",
                customer.name, customer.id, decision.balance_before, decision.amount
            )

        return self._to_result(customer, decision)

    async def _apply_debit(self, customer_id: uuid.UUID) -> Tuple[CustomerSnapshot, DebitDecision]:
        """Decide and persist one customer's debit in a single transaction."""
        async with self._session_factory() as session:
            store = LedgerStore(session)
            try:
                row = await store.get_customer_for_update(customer_id)
                if row is None:
                    raise CustomerGone(f"customer {customer_id} no longer exists")

                # decide on the locked row, not the run snapshot
                customer = CustomerSnapshot(
                    id=row.id,
                    user_id=row.user_id,
                    name=row.name,
                    balance=row.balance,
                    hourly_debit_amount=row.hourly_debit_amount,
                )
                decision = decide(customer.balance, customer.hourly_debit_amount)

                if decision.succeeded:
                    await store.update_customer_after_debit(customer.id, decision.balance_after, utc_now())

                await store.append_debit_log(self._to_log(customer, decision))
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        return customer, decision

    async def _record_processing_error(self, customer: CustomerSnapshot, error: Exception) -> DebitResult:
        balance = customer.balance
        decision = None

        try:
            async with self._session_factory() as session:
                store = LedgerStore(session)

                # log the stored balance when the row is still there
                row = await store.get_customer_for_update(customer.id)
                if row is not None:
                    balance = row.balance

                decision = self._processing_error(customer, balance, error)
                await store.append_debit_log(self._to_log(customer, decision))
                await session.commit()
        except Exception:
            # still reported in the summary
            logger.exception("Could not write failure log for customer %s", customer.id)

        if decision is None:
            decision = self._processing_error(customer, balance, error)
        return self._to_result(customer, decision)

    @staticmethod
    def _processing_error(customer: CustomerSnapshot, balance: Decimal, error: Exception) -> DebitDecision:
        return DebitDecision(
            status=DebitStatus.FAILED,
            amount=customer.hourly_debit_amount,
            balance_before=balance,
            balance_after=balance,
            error_message=f"{PROCESSING_ERROR_PREFIX}{error}",
        )

    @staticmethod
    def _to_log(customer: CustomerSnapshot, decision: DebitDecision) -> DebitLog:
        return DebitLog(
            customer_id=customer.id,
            status=decision.status,
            amount=decision.amount,
            balance_before=decision.balance_before,
            balance_after=decision.balance_after,
            error_message=decision.error_message,
            created_at=utc_now(),
        )

    @staticmethod
    def _to_result(customer: CustomerSnapshot, decision: DebitDecision) -> DebitResult:
        return DebitResult(
            customer_id=customer.id,
            customer_name=customer.name,
            status=decision.status,
            amount=decision.amount,
            balance_before=decision.balance_before,
            balance_after=decision.balance_after,
            error_message=decision.error_message,
        )
