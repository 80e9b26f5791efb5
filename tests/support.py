from datetime import datetime, timedelta, timezone
from decimal import Decimal
import uuid

from sqlmodel import select

from src.auth.models import User
from src.customers.models import Customer
from src.debits.models import DebitLog

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


async def add_user(factory, email="owner@example.com"):
    async with factory() as session:
        user = User(email=email, password_hash="not-a-real-hash")
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


async def add_customer(factory, user_id, name, balance, hourly_debit_amount, order=0):
    async with factory() as session:
        customer = Customer(
            user_id=user_id,
            name=name,
            balance=Decimal(balance),
            hourly_debit_amount=Decimal(hourly_debit_amount),
            created_at=BASE_TIME + timedelta(minutes=order),
        )
        session.add(customer)
        await session.commit()
        await session.refresh(customer)
        return customer


async def get_customer(factory, customer_id: uuid.UUID):
    async with factory() as session:
        return await session.get(Customer, customer_id)


async def logs_for(factory, customer_id: uuid.UUID):
    async with factory() as session:
        result = await session.exec(
            select(DebitLog).where(DebitLog.customer_id == customer_id)
        )
        return result.all()
