import os

# Settings are read at import time; give them throw-away values
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./unused.db")
os.environ.setdefault("JWT_KEY", "test-secret-key-for-the-suite")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# register every table on SQLModel.metadata
from src.auth import models as _auth_models
from src.customers import models as _customer_models
from src.debits import models as _debit_models


@pytest.fixture
def open_ledger(tmp_path):
    """Coroutine factory for a fresh SQLite database with all tables.

    Call it inside the test's event loop; it returns (engine, session_factory)
    and the caller disposes the engine.
    """
    url = f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"

    async def _open():
        engine = create_async_engine(url)
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        factory = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
        return engine, factory

    return _open
