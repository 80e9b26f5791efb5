import asyncio
import uuid
from decimal import Decimal
from src.db.main import async_session_maker, init_db
from src.customers.models import Customer

# name, starting balance, hourly debit
DEMO_CUSTOMERS = [
    ("Acme Hosting", Decimal("100.00"), Decimal("30.00")),
    ("Low Balance Ltd", Decimal("10.00"), Decimal("30.00")),
    ("Empty Wallet Co", Decimal("0.00"), Decimal("30.00")),
    ("Steady Streamer", Decimal("500.00"), Decimal("12.50")),
]

async def seed_data(user_id: str):
    await init_db()

    async with async_session_maker() as session:
        user_uuid = uuid.UUID(user_id)

        for name, balance, hourly_debit_amount in DEMO_CUSTOMERS:
            session.add(Customer(
                user_id=user_uuid,
                name=name,
                balance=balance,
                hourly_debit_amount=hourly_debit_amount,
            ))

        try:
            await session.commit()
            print(f"Seeded {len(DEMO_CUSTOMERS)} customers for user {user_id}")
        except Exception as e:
            await session.rollback()
            print(f"Failed to seed customers: {e}")

if __name__ == "__main__":
    import sys

    if len(sys.argv) == 2:
        # python seed_customers.py <user_id>
        asyncio.run(seed_data(sys.argv[1]))
    else:
        print("Usage: python seed_customers.py <user_id>")
