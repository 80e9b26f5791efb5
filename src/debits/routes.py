from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel.ext.asyncio.session import AsyncSession
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
import logging

from src.config import Config
from src.db.main import get_Session
from src.utils.auth import get_current_user
from src.debits.schemas import RunSummaryResponse, ProcessorStatusResponse
from src.debits.services import DebitProcessor
from src.debits.scheduler import DebitScheduler
from src.debits.store import LedgerStore

logger = logging.getLogger(__name__)

debit_router = APIRouter()


def get_debit_processor(request: Request) -> DebitProcessor:
    return request.app.state.debit_processor

def get_debit_scheduler(request: Request) -> DebitScheduler:
    return request.app.state.debit_scheduler


@debit_router.post("/trigger", response_model=RunSummaryResponse, status_code=status.HTTP_200_OK)
async def trigger_debit_run(
    processor: DebitProcessor = Depends(get_debit_processor),
    user_details: dict = Depends(get_current_user)
):
    """Run the hourly debit process now and return its summary.

    Customers that fail to debit still give a successful response; only a
    run that cannot start at all is reported as an error.
    """
    logger.info("Manual debit run triggered by user %s", user_details.get("user_id"))

    try:
        summary = await processor.run_once()
    except Exception:
        logger.exception("Manual debit trigger error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process hourly debits"
        )

    return {
        "success": True,
        "message": summary.message,
        "data": summary
    }


@debit_router.get("/status", response_model=ProcessorStatusResponse, status_code=status.HTTP_200_OK)
async def get_processor_status(
    session: AsyncSession = Depends(get_Session),
    processor: DebitProcessor = Depends(get_debit_processor),
    scheduler: DebitScheduler = Depends(get_debit_scheduler)
):
    window_hours = Config.DEBIT_STATUS_WINDOW_HOURS

    try:
        recent = await LedgerStore(session).recent_log_summary(timedelta(hours=window_hours))
    except Exception:
        logger.exception("Status check error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get status"
        )

    return {
        "success": True,
        "message": "Debit processor status",
        "data": {
            "window_hours": window_hours,
            "processing": processor.is_processing,
            "recent": asdict(recent),
            "scheduler": scheduler.status(),
            "timestamp": datetime.now(timezone.utc),
        }
    }
