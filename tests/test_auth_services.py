import asyncio
import uuid

import pytest
from fastapi import HTTPException

from src.auth.services import AuthServices
from support import add_user

services = AuthServices()


def test_token_subject_string_finds_its_user(open_ledger):
    async def scenario():
        engine, factory = await open_ledger()
        try:
            user = await add_user(factory)
            async with factory() as session:
                found = await services.check_user_exists(str(user.user_id), session)
            return user, found
        finally:
            await engine.dispose()

    user, found = asyncio.run(scenario())

    assert found.user_id == user.user_id
    assert found.email == user.email


@pytest.mark.parametrize("subject", ["not-a-uuid", str(uuid.uuid4())])
def test_unknown_or_malformed_subject_is_unauthorized(open_ledger, subject):
    async def scenario():
        engine, factory = await open_ledger()
        try:
            await add_user(factory)
            async with factory() as session:
                await services.check_user_exists(subject, session)
        finally:
            await engine.dispose()

    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(scenario())

    assert exc_info.value.status_code == 401
