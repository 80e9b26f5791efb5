"""Debit decision engine.

Pure logic: given a customer's balance and hourly debit amount, decide
whether the debit goes through and what the audit row should say. Nothing
here touches storage.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union
from src.debits.models import DebitStatus

INSUFFICIENT_BALANCE = "Insufficient balance"

Number = Union[Decimal, int, float, str]


@dataclass(frozen=True)
class DebitDecision:
    status: DebitStatus
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == DebitStatus.SUCCESS


def to_decimal(value: Number) -> Decimal:
    # str() first so floats keep their printed value instead of binary noise
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def decide(balance: Number, hourly_debit_amount: Number) -> DebitDecision:
    """Decide a single debit.

    A balance that covers the hourly amount is debited by exactly that
    amount. Otherwise the balance is left alone and the decision carries
    the amount that would have been taken, with an insufficient-balance
    message.
    """
    balance = to_decimal(balance)
    amount = to_decimal(hourly_debit_amount)

    if balance >= amount:
        return DebitDecision(
            status=DebitStatus.SUCCESS,
            amount=amount,
            balance_before=balance,
            balance_after=balance - amount,
        )

    return DebitDecision(
        status=DebitStatus.FAILED,
        amount=amount,
        balance_before=balance,
        balance_after=balance,
        error_message=INSUFFICIENT_BALANCE,
    )
