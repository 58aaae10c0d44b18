"""Sale completion math.

Builds transaction records from cart lines and fee definitions, the same
way the checkout screen does, so receipts can be rendered for a finished
sale or previewed before payment.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Union

from struk.core.models import FeeApplication, FeeType, LineItem, TransactionRecord
from struk.utils.formatting import round_half_up

logger = logging.getLogger(__name__)


class PaymentState(Enum):
    """Outcome of comparing the cash handed over with the total."""

    CHANGE = "change"
    INSUFFICIENT = "insufficient"


@dataclass(frozen=True)
class PaymentStatus:
    state: PaymentState
    amount: int  # always non-negative

    @property
    def is_sufficient(self) -> bool:
        return self.state is PaymentState.CHANGE


def change_status(change: float) -> PaymentStatus:
    """Classify a stored change amount; a shortfall is reported as a positive amount."""
    change = round_half_up(change)
    if change >= 0:
        return PaymentStatus(PaymentState.CHANGE, change)
    return PaymentStatus(PaymentState.INSUFFICIENT, -change)


def payment_status(cash_paid: float, total: float) -> PaymentStatus:
    """Classify a payment from the cash handed over and the total."""
    return change_status(cash_paid - total)


def subtotal_after_discount(items: Iterable[LineItem]) -> int:
    """Sum of rounded extended totals, discounts applied."""
    return sum(round_half_up(item.extended_total) for item in items)


def apply_fees(subtotal: int, fees: Iterable[Mapping[str, Any]]) -> List[FeeApplication]:
    """Compute each fee's amount against the discounted subtotal."""
    applied = []
    for fee in fees:
        fee_type = FeeType(fee["type"])
        value = float(fee["value"])
        raw = subtotal * (value / 100) if fee_type is FeeType.PERCENTAGE else value
        applied.append(FeeApplication(
            name=fee["name"],
            type=fee_type,
            value=value,
            computed_amount=round_half_up(raw),
        ))
    return applied


def _build(
    items: Iterable[Union[LineItem, Mapping[str, Any]]],
    fees: Iterable[Mapping[str, Any]],
    cash_paid: float,
    timestamp: Optional[datetime],
    transaction_id: Optional[Union[int, str]],
    preview: bool,
) -> TransactionRecord:
    lines = [i if isinstance(i, LineItem) else LineItem.model_validate(i) for i in items]
    discounted = subtotal_after_discount(lines)
    applied = apply_fees(discounted, fees)
    total = discounted + sum(int(f.computed_amount) for f in applied)

    gross = sum(item.unit_price * item.quantity for item in lines)
    discount = sum(
        item.unit_price * (item.discount_percentage / 100) * item.quantity for item in lines
    )
    cash = round_half_up(cash_paid)

    return TransactionRecord(
        id=transaction_id,
        items=lines,
        subtotal=gross,
        total_discount=discount,
        fees=applied,
        total=total,
        cash_paid=cash,
        change=0 if preview else cash - total,
        timestamp=timestamp or datetime.now(),
        is_preview=preview,
    )


def complete_transaction(
    items: Iterable[Union[LineItem, Mapping[str, Any]]],
    fees: Iterable[Mapping[str, Any]] = (),
    cash_paid: float = 0,
    timestamp: Optional[datetime] = None,
    transaction_id: Optional[Union[int, str]] = None,
) -> TransactionRecord:
    """Finalize a sale; the returned record is immutable."""
    record = _build(items, fees, cash_paid, timestamp, transaction_id, preview=False)
    logger.debug(f"Transaction completed: total={record.total} change={record.change}")
    return record


def preview_transaction(
    items: Iterable[Union[LineItem, Mapping[str, Any]]],
    fees: Iterable[Mapping[str, Any]] = (),
    timestamp: Optional[datetime] = None,
) -> TransactionRecord:
    """Record for an on-screen preview: no payment yet, no identifier."""
    return _build(items, fees, 0, timestamp, None, preview=True)
