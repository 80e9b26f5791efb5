from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from src.utils.auth import get_current_user
from src.customers.schemas import (
    CustomerCreate, CustomerResponse, CustomerListResponse,
    CustomerUpdate, DebitLogListResponse, ManualDebitResponse,
)
from src.customers.services import CustomerServices
from sqlmodel.ext.asyncio.session import AsyncSession
from src.db.main import get_Session
from src.utils.limiter import limiter
from src.debits.routes import get_debit_processor
from src.debits.services import DebitProcessor, CustomerGone
import logging
import uuid


customer_router = APIRouter()
customer_services = CustomerServices()

logger = logging.getLogger(__name__)


@customer_router.post("/", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_customer(
    request: Request,
    response: Response,
    customer: CustomerCreate,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    new_customer = await customer_services.create_customer(customer, session, user_id)

    return {
        "success": True,
        "message": "Customer created successfully",
        "data": new_customer
    }

@customer_router.get("/", response_model=CustomerListResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_all_customer(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    customers = await customer_services.get_all_customers(session, user_id)

    return {
        "success": True,
        "message": "customers fetched successfully",
        "data": customers
    }


# declared before /{id} so "logs" is not parsed as a customer id
@customer_router.get("/logs", response_model=DebitLogListResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_debit_logs(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    logs = await customer_services.get_recent_logs(session, user_id)

    return {
        "success": True,
        "message": "debit logs fetched successfully",
        "data": logs
    }


@customer_router.get("/{id}", response_model=CustomerResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_customer(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    customer = await customer_services.get_customer_by_id(id, session, user_id)

    return {
        "success": True,
        "message": "customer fetched successfully",
        "data": customer
    }


@customer_router.patch("/{id}", response_model=CustomerResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def update_customer(
    request: Request,
    response: Response,
    id: uuid.UUID,
    update_data: CustomerUpdate,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    customer = await customer_services.update_customer(id, update_data, session, user_id)

    return {
        "success": True,
        "message": "Customer updated successfully",
        "data": customer
    }


@customer_router.delete("/{id}", status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def delete_customer(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    customer = await customer_services.delete_customer(id, session, user_id)

    return {
        "success": True,
        "message": "Customer deleted successfully",
        "data": {"id": str(customer.id), "name": customer.name}
    }


@customer_router.get("/{id}/logs", response_model=DebitLogListResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_customer_logs(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    logs = await customer_services.get_customer_logs(id, session, user_id)

    return {
        "success": True,
        "message": "customer logs fetched successfully",
        "data": logs
    }


@customer_router.post("/{id}/debit", response_model=ManualDebitResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def debit_customer(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    processor: DebitProcessor = Depends(get_debit_processor),
    user_details: dict = Depends(get_current_user)
):
    """Debit one of the caller's customers now.

    An insufficient balance is still a successful response; the returned
    status says whether money moved.
    """
    user_id = user_details.get("user_id")

    # ownership check; 404 for someone else's customer
    await customer_services.get_customer_by_id(id, session, user_id)

    try:
        _, decision = await processor.debit_customer(id)
    except CustomerGone:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found"
        )
    except Exception:
        logger.exception("Manual debit error for customer %s", id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process debit"
        )

    return {
        "success": True,
        "message": f"Debit {decision.status.value}",
        "data": {
            "customer_id": id,
            "status": decision.status,
            "amount": decision.amount,
            "previous_balance": decision.balance_before,
            "new_balance": decision.balance_after,
            "error_message": decision.error_message,
        }
    }
