"""
Order cost summaries.

An order reaching billing is a list of priced line items that all share
one category (medication, procedure or diagnostic aid).  The clinic's
order service enforces that before billing sees the data, so
:class:`OrderCostSummary` trusts its input.  :func:`build_order_summary`
is the boundary helper used when raw payloads come in; it fails fast
instead of coercing malformed rows.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from .exceptions import EmptyOrderSet, PreconditionViolated
from .money import Money, sum_money


class OrderCategory(str, Enum):
    MEDICATION = 'medication'
    PROCEDURE = 'procedure'
    DIAGNOSTIC_AID = 'diagnostic_aid'


@dataclass(frozen=True)
class OrderLineCost:
    """One priced item of an order."""

    category: OrderCategory
    item_name: str
    unit_cost: Money
    quantity: int = 1
    dosage: str = ''

    @property
    def line_total(self) -> Money:
        return self.unit_cost.multiply(self.quantity)

    def as_dict(self) -> dict:
        data = {
            'category': self.category.value,
            'itemName': self.item_name,
            'unitCost': str(self.unit_cost),
            'quantity': self.quantity,
            'lineTotal': str(self.line_total),
        }
        if self.dosage:
            data['dosage'] = self.dosage
        return data


@dataclass(frozen=True)
class OrderCostSummary:
    """The priced lines of a single clinical order."""

    order_id: str
    lines: tuple[OrderLineCost, ...] = field(default_factory=tuple)

    @property
    def total(self) -> Money:
        return sum_money(line.line_total for line in self.lines)

    @property
    def category(self) -> Optional[OrderCategory]:
        return self.lines[0].category if self.lines else None

    def as_dict(self) -> dict:
        return {
            'orderId': self.order_id,
            'category': self.category.value if self.category else None,
            'lines': [line.as_dict() for line in self.lines],
            'total': str(self.total),
        }


def total_cost(summaries: Iterable[OrderCostSummary], *, require_items: bool = False) -> Money:
    """Sum the totals of a billing run.

    With ``require_items`` an order set without any line item raises
    :class:`EmptyOrderSet`; otherwise its total is simply zero.
    """
    summaries = list(summaries)
    if require_items and not any(s.lines for s in summaries):
        raise EmptyOrderSet('at least one order line is required for billing')
    return sum_money(s.total for s in summaries)


def _category(value: Any) -> OrderCategory:
    if isinstance(value, OrderCategory):
        return value
    try:
        return OrderCategory(str(value).strip().lower())
    except ValueError as exc:
        raise PreconditionViolated(f'unknown order category: {value!r}') from exc


def build_order_line(data: Mapping[str, Any]) -> OrderLineCost:
    quantity = data.get('quantity', 1)
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise PreconditionViolated(f'quantity must be a positive integer, got {quantity!r}')
    return OrderLineCost(
        category=_category(data.get('category')),
        item_name=str(data.get('itemName') or data.get('item_name') or '').strip(),
        unit_cost=Money.of(data.get('unitCost', data.get('unit_cost'))),
        quantity=quantity,
        dosage=str(data.get('dosage') or '').strip(),
    )


def build_order_summary(order_id: str, lines: Iterable[Mapping[str, Any]]) -> OrderCostSummary:
    """Turn raw line rows into a summary, rejecting category mixing."""
    built = tuple(build_order_line(row) for row in lines)
    categories = {line.category for line in built}
    if len(categories) > 1:
        names = ', '.join(sorted(c.value for c in categories))
        raise PreconditionViolated(f'order {order_id} mixes categories: {names}')
    return OrderCostSummary(order_id=str(order_id), lines=built)
