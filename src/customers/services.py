from src.customers.schemas import CustomerCreate, CustomerUpdate
from sqlmodel.ext.asyncio.session import AsyncSession
from src.customers.models import Customer
from src.debits.models import DebitLog
from sqlmodel import select, desc
from fastapi import HTTPException, status
from sqlalchemy.exc import DatabaseError
import logging
import uuid
from src.auth.services import AuthServices

authServices = AuthServices()

logger = logging.getLogger(__name__)

RECENT_LOGS_LIMIT = 50
CUSTOMER_LOGS_LIMIT = 100


class CustomerServices():


    async def create_customer(self, customer: CustomerCreate, session: AsyncSession, user_id: str):
        # Verify the user exists in the system before allowing customer creation
        await authServices.check_user_exists(user_id, session)

        new_customer = Customer(**customer.model_dump(), user_id=uuid.UUID(user_id))

        session.add(new_customer)

        try:
            await session.commit()
            await session.refresh(new_customer)

            logger.info("Customer %s created for user %s", new_customer.id, user_id)
            return new_customer
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create customer"
            )

    async def get_all_customers(self, session: AsyncSession, user_id: str):
        statement = (
            select(Customer)
            .where(Customer.user_id == uuid.UUID(user_id))
            .order_by(desc(Customer.created_at))
        )

        try:
            result = await session.exec(statement)
            return result.all()

        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch customers"
            )

    async def get_customer_by_id(self, customer_id: uuid.UUID, session: AsyncSession, user_id: str):
        # Multi-tenancy: a customer owned by another user is reported as missing
        statement = select(Customer).where(
            Customer.id == customer_id,
            Customer.user_id == uuid.UUID(user_id)
        )

        try:
            result = await session.exec(statement)
            customer = result.first()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch customer"
            )

        if not customer:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Customer not found"
            )

        return customer

    async def update_customer(self, customer_id: uuid.UUID, update_data: CustomerUpdate, session: AsyncSession, user_id: str):
        update_dict = update_data.model_dump(exclude_unset=True, exclude_none=True)

        if not update_dict:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No valid fields to update"
            )

        customer = await self.get_customer_by_id(customer_id, session, user_id)

        for key, value in update_dict.items():
            setattr(customer, key, value)

        try:
            await session.commit()
            await session.refresh(customer)
            return customer

        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update customer"
            )

    async def delete_customer(self, customer_id: uuid.UUID, session: AsyncSession, user_id: str):
        customer = await self.get_customer_by_id(customer_id, session, user_id)

        # debit_logs rows go with it (ON DELETE CASCADE)
        try:
            await session.delete(customer)
            await session.commit()

        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete customer"
            )

        logger.info("Customer %s deleted by user %s", customer_id, user_id)
        return customer

    async def get_recent_logs(self, session: AsyncSession, user_id: str, limit: int = RECENT_LOGS_LIMIT):
        statement = (
            select(DebitLog, Customer.name)
            .join(Customer, DebitLog.customer_id == Customer.id)
            .where(Customer.user_id == uuid.UUID(user_id))
            .order_by(desc(DebitLog.created_at))
            .limit(limit)
        )

        try:
            result = await session.exec(statement)
            rows = result.all()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch debit logs"
            )

        return [{**log.model_dump(), "customer_name": name} for log, name in rows]

    async def get_customer_logs(self, customer_id: uuid.UUID, session: AsyncSession, user_id: str, limit: int = CUSTOMER_LOGS_LIMIT):
        customer = await self.get_customer_by_id(customer_id, session, user_id)

        statement = (
            select(DebitLog)
            .where(DebitLog.customer_id == customer.id)
            .order_by(desc(DebitLog.created_at))
            .limit(limit)
        )

        try:
            result = await session.exec(statement)
            logs = result.all()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch customer logs"
            )

        return [{**log.model_dump(), "customer_name": customer.name} for log in logs]
