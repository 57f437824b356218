"""
Exact monetary amounts.

All billing arithmetic goes through :class:`Money`, a thin immutable
wrapper around :class:`decimal.Decimal`.  Floats are converted through
their string form so that ``Money(0.1)`` is exactly one tenth, and there
is a single implicit currency throughout the clinic.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Union

from .exceptions import InvalidAmount

# Smallest billable unit; stored amounts have two decimal places.
CENT = Decimal('0.01')

AmountLike = Union['Money', Decimal, int, str, float]


def _to_decimal(value: AmountLike) -> Decimal:
    if isinstance(value, Money):
        return value.amount
    if isinstance(value, bool):
        raise InvalidAmount(f"not a monetary amount: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise InvalidAmount(f"not a monetary amount: {value!r}") from exc
    else:
        raise InvalidAmount(f"not a monetary amount: {value!r}")
    if not amount.is_finite():
        raise InvalidAmount(f"not a monetary amount: {value!r}")
    return amount


@dataclass(frozen=True, order=True)
class Money:
    """An exact amount of money.

    ``Money(...)`` may hold a negative delta; cost-bearing values should
    be built with :meth:`Money.of`, which rejects negatives.
    """

    amount: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, 'amount', _to_decimal(self.amount))

    @classmethod
    def of(cls, value: AmountLike) -> 'Money':
        """Build a non-negative amount in whole cents.

        Raises :class:`InvalidAmount` for negatives and for fractions of a
        cent; amounts are never rounded to fit.
        """
        money = cls(value)
        if money.is_negative():
            raise InvalidAmount(f"amount cannot be negative: {money.amount}")
        if not money.is_whole_cents():
            raise InvalidAmount(f"amount has fractions of a cent: {money.amount}")
        return money

    @classmethod
    def zero(cls) -> 'Money':
        return cls(Decimal('0'))

    def add(self, other: 'Money') -> 'Money':
        return Money(self.amount + _to_decimal(other))

    def subtract(self, other: 'Money') -> 'Money':
        return Money(self.amount - _to_decimal(other))

    def multiply(self, factor: int) -> 'Money':
        if isinstance(factor, bool) or not isinstance(factor, int):
            raise TypeError(f"money can only be multiplied by an integer, got {factor!r}")
        return Money(self.amount * factor)

    def __add__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            return NotImplemented
        return self.subtract(other)

    def is_negative(self) -> bool:
        return self.amount < 0

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_whole_cents(self) -> bool:
        try:
            return self.amount == self.amount.quantize(CENT)
        except InvalidOperation:
            return False

    def __str__(self) -> str:
        return format(self.amount, 'f')


def sum_money(values) -> Money:
    """Add up an iterable of :class:`Money`, starting from zero."""
    total = Money.zero()
    for value in values:
        total = total.add(value)
    return total
