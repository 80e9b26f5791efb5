from datetime import datetime, timezone
import asyncio

import pytest
from fastapi import HTTPException

from src.debits.routes import trigger_debit_run, get_processor_status
from src.debits.scheduler import DebitScheduler
from src.debits.schemas import RunSummary
from src.debits.services import DebitProcessor
from support import add_user, add_customer


class FakeProcessor:
    def __init__(self, summary=None, error=None):
        self.summary = summary
        self.error = error

    async def run_once(self):
        if self.error:
            raise self.error
        return self.summary


def test_trigger_returns_the_run_summary_even_with_failed_debits():
    summary = RunSummary(
        message="Hourly debit process completed",
        timestamp=datetime.now(timezone.utc),
        total_customers=2,
        successful=1,
        failed=1,
        results=[],
    )

    res = asyncio.run(trigger_debit_run(processor=FakeProcessor(summary), user_details={"user_id": "u1"}))

    assert res['success'] is True
    assert res['message'] == "Hourly debit process completed"
    assert res['data'].failed == 1


def test_trigger_reports_a_run_that_could_not_start():
    processor = FakeProcessor(error=ConnectionError("database unavailable"))

    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(trigger_debit_run(processor=processor, user_details={"user_id": "u1"}))

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail == "Failed to process hourly debits"


def test_status_combines_recent_logs_and_scheduler_state(open_ledger):
    async def scenario():
        engine, factory = await open_ledger()
        try:
            user = await add_user(factory)
            await add_customer(factory, user.user_id, 'Acme', '100.00', '30.00')
            await add_customer(factory, user.user_id, 'Low', '10.00', '30.00', order=1)
            await DebitProcessor(factory).run_once()

            scheduler = DebitScheduler(FakeProcessor(), interval_seconds=3600)
            async with factory() as session:
                return await get_processor_status(
                    session=session, processor=DebitProcessor(factory), scheduler=scheduler
                )
        finally:
            await engine.dispose()

    res = asyncio.run(scenario())

    data = res['data']
    assert res['success'] is True
    assert data['window_hours'] == 24
    assert data['processing'] is False
    assert data['recent']['total_transactions'] == 2
    assert data['recent']['successful'] == 1
    assert data['recent']['failed'] == 1
    assert data['scheduler'].is_running is False
    assert data['scheduler'].next_run is None


def test_status_reports_a_run_in_progress(open_ledger):
    async def scenario():
        engine, factory = await open_ledger()
        try:
            processor = DebitProcessor(factory)
            scheduler = DebitScheduler(FakeProcessor(), interval_seconds=3600)

            # holding the run lock is what an in-flight run looks like
            async with processor._run_lock:
                async with factory() as session:
                    return await get_processor_status(session=session, processor=processor, scheduler=scheduler)
        finally:
            await engine.dispose()

    res = asyncio.run(scenario())

    assert res['data']['processing'] is True
