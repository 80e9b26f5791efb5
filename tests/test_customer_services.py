from decimal import Decimal
import asyncio
import uuid

import pytest
from fastapi import HTTPException

from src.customers.schemas import CustomerCreate, CustomerUpdate
from src.customers.routes import debit_customer
from src.customers.services import CustomerServices
from src.debits.models import DebitStatus
from src.debits.services import DebitProcessor
from src.utils.limiter import limiter
from support import add_user, add_customer

services = CustomerServices()


def test_customers_are_scoped_to_their_owner(open_ledger):
    async def scenario():
        engine, factory = await open_ledger()
        try:
            owner = await add_user(factory, 'owner@example.com')
            other = await add_user(factory, 'other@example.com')

            async with factory() as session:
                created = await services.create_customer(
                    CustomerCreate(name='Acme', balance=Decimal('100.00'), hourly_debit_amount=Decimal('30.00')),
                    session, str(owner.user_id)
                )

            async with factory() as session:
                own_list = await services.get_all_customers(session, str(owner.user_id))
                other_list = await services.get_all_customers(session, str(other.user_id))

            async with factory() as session:
                with pytest.raises(HTTPException) as exc_info:
                    await services.get_customer_by_id(created.id, session, str(other.user_id))

            return created, own_list, other_list, exc_info.value
        finally:
            await engine.dispose()

    created, own_list, other_list, error = asyncio.run(scenario())

    assert created.balance == Decimal('100.00')
    assert created.last_debited_at is None
    assert [c.id for c in own_list] == [created.id]
    assert other_list == []
    assert error.status_code == 404


def test_update_requires_at_least_one_field(open_ledger):
    async def scenario():
        engine, factory = await open_ledger()
        try:
            owner = await add_user(factory)
            async with factory() as session:
                with pytest.raises(HTTPException) as exc_info:
                    await services.update_customer(uuid.uuid4(), CustomerUpdate(), session, str(owner.user_id))
                return exc_info.value
        finally:
            await engine.dispose()

    error = asyncio.run(scenario())

    assert error.status_code == 400


def test_partial_update_changes_only_given_fields(open_ledger):
    async def scenario():
        engine, factory = await open_ledger()
        try:
            owner = await add_user(factory)
            async with factory() as session:
                created = await services.create_customer(
                    CustomerCreate(name='Acme', balance=Decimal('100.00'), hourly_debit_amount=Decimal('30.00')),
                    session, str(owner.user_id)
                )
            async with factory() as session:
                return await services.update_customer(
                    created.id, CustomerUpdate(hourly_debit_amount=Decimal('45.00')), session, str(owner.user_id)
                )
        finally:
            await engine.dispose()

    updated = asyncio.run(scenario())

    assert updated.name == 'Acme'
    assert updated.balance == Decimal('100.00')
    assert updated.hourly_debit_amount == Decimal('45.00')


def test_recent_logs_include_customer_names(open_ledger):
    async def scenario():
        engine, factory = await open_ledger()
        try:
            owner = await add_user(factory, 'owner@example.com')
            other = await add_user(factory, 'other@example.com')

            async with factory() as session:
                await services.create_customer(
                    CustomerCreate(name='Acme', balance=Decimal('100.00'), hourly_debit_amount=Decimal('30.00')),
                    session, str(owner.user_id)
                )
            await DebitProcessor(factory).run_once()

            async with factory() as session:
                own_logs = await services.get_recent_logs(session, str(owner.user_id))
                other_logs = await services.get_recent_logs(session, str(other.user_id))
            return own_logs, other_logs
        finally:
            await engine.dispose()

    own_logs, other_logs = asyncio.run(scenario())

    assert len(own_logs) == 1
    assert own_logs[0]['customer_name'] == 'Acme'
    assert own_logs[0]['balance_after'] == Decimal('70.00')
    assert other_logs == []


def test_create_payload_rejects_non_positive_debit():
    with pytest.raises(ValueError):
        CustomerCreate(name='Acme', balance=Decimal('10.00'), hourly_debit_amount=Decimal('0'))

    with pytest.raises(ValueError):
        CustomerCreate(name='Acme', balance=Decimal('-1.00'), hourly_debit_amount=Decimal('5.00'))


def test_customer_logs_are_newest_first_and_owner_only(open_ledger):
    async def scenario():
        engine, factory = await open_ledger()
        try:
            owner = await add_user(factory, 'owner@example.com')
            other = await add_user(factory, 'other@example.com')
            acme = await add_customer(factory, owner.user_id, 'Acme', '100.00', '30.00', order=0)
            await add_customer(factory, owner.user_id, 'Other', '100.00', '5.00', order=1)

            processor = DebitProcessor(factory)
            await processor.run_once()
            await processor.run_once()

            async with factory() as session:
                logs = await services.get_customer_logs(acme.id, session, str(owner.user_id))
                limited = await services.get_customer_logs(acme.id, session, str(owner.user_id), limit=1)

            async with factory() as session:
                with pytest.raises(HTTPException) as exc_info:
                    await services.get_customer_logs(acme.id, session, str(other.user_id))

            return logs, limited, exc_info.value
        finally:
            await engine.dispose()

    logs, limited, error = asyncio.run(scenario())

    assert [log['balance_before'] for log in logs] == [Decimal('70.00'), Decimal('100.00')]
    assert {log['customer_name'] for log in logs} == {'Acme'}
    assert len(limited) == 1
    assert limited[0]['balance_after'] == Decimal('40.00')
    assert error.status_code == 404


def test_manual_debit_returns_previous_and_new_balance(open_ledger, monkeypatch):
    monkeypatch.setattr(limiter, 'enabled', False)

    async def scenario():
        engine, factory = await open_ledger()
        try:
            owner = await add_user(factory)
            acme = await add_customer(factory, owner.user_id, 'Acme', '100.00', '30.00')
            processor = DebitProcessor(factory)
            user_details = {"user_id": str(owner.user_id)}

            async with factory() as session:
                first = await debit_customer(
                    request=None, response=None, id=acme.id, session=session,
                    processor=processor, user_details=user_details
                )

            async with factory() as session:
                logs = await services.get_customer_logs(acme.id, session, str(owner.user_id))
            return first, logs
        finally:
            await engine.dispose()

    res, logs = asyncio.run(scenario())

    assert res['success'] is True
    assert res['message'] == "Debit success"
    assert res['data']['status'] == DebitStatus.SUCCESS
    assert res['data']['amount'] == Decimal('30.00')
    assert res['data']['previous_balance'] == Decimal('100.00')
    assert res['data']['new_balance'] == Decimal('70.00')
    assert len(logs) == 1


def test_manual_debit_of_another_users_customer_is_not_found(open_ledger, monkeypatch):
    monkeypatch.setattr(limiter, 'enabled', False)

    async def scenario():
        engine, factory = await open_ledger()
        try:
            owner = await add_user(factory, 'owner@example.com')
            other = await add_user(factory, 'other@example.com')
            acme = await add_customer(factory, owner.user_id, 'Acme', '100.00', '30.00')

            async with factory() as session:
                with pytest.raises(HTTPException) as exc_info:
                    await debit_customer(
                        request=None, response=None, id=acme.id, session=session,
                        processor=DebitProcessor(factory), user_details={"user_id": str(other.user_id)}
                    )

            async with factory() as session:
                logs = await services.get_customer_logs(acme.id, session, str(owner.user_id))
            return exc_info.value, logs
        finally:
            await engine.dispose()

    error, logs = asyncio.run(scenario())

    assert error.status_code == 404
    assert logs == []
