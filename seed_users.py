import asyncio
from sqlmodel import select
from src.db.main import async_session_maker, init_db
from src.auth.models import User
from src.utils.auth import generate_password_hash

async def create_user(email: str, password: str):
    await init_db()

    async with async_session_maker() as session:
        # Check if user already exists
        statement = select(User).where(User.email == email.lower())
        result = await session.exec(statement)
        existing_user = result.first()
        
        if existing_user:
            print(f"Error: User with email '{email}' already exists.")
            return

        new_user = User(
            email=email.lower(),
            password_hash=generate_password_hash(password),
        )
        
        session.add(new_user)
        try:
            await session.commit()
            await session.refresh(new_user)
            print(f"Successfully created user!")
            print(f"Email: {new_user.email}")
            print(f"User ID: {new_user.user_id}")
            print("-" * 30)
            print("KEEP THIS USER_ID FOR SEEDING CUSTOMERS LATER!")
        except Exception as e:
            await session.rollback()
            print(f"Failed to create user: {e}")

if __name__ == "__main__":
    import sys
    
    if len(sys.argv) == 3:
        # python seed_users.py <email> <password>
        asyncio.run(create_user(sys.argv[1], sys.argv[2]))
    else:
        print("Usage: python seed_users.py <email> <password>")
        print("Example: python seed_users.py admin@example.com mysecretpassword")
