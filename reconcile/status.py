from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple, Type, TypeVar

E = TypeVar("E", bound=Enum)


class LeadStage(str, Enum):
    NEW_LEAD = "New Lead"
    CONTACTED = "Contacted"
    CONVERTED = "Converted"
    EVENT_COMPLETED = "Event Completed"
    OTHER = "Other"


class EventStatus(str, Enum):
    CONFIRMED = "Confirmed"
    PENDING = "Pending"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class PaymentType(str, Enum):
    ADVANCE = "Advance"
    BALANCE = "Balance"
    FULL = "Full"
    PARTIAL = "Partial"
    OTHER = "Other"


class PaymentRecordStatus(str, Enum):
    """Status written on an individual payment row."""

    RECEIVED = "Received"
    PENDING = "Pending"
    OVERDUE = "Overdue"


class PaymentStatus(str, Enum):
    """Status derived for a client from their ledger."""

    FULLY_PAID = "Fully Paid"
    PARTIAL_PAID = "Partial Paid"
    PENDING = "Pending"
    OVERDUE = "Overdue"


FALLBACKS = {
    LeadStage: LeadStage.OTHER,
    EventStatus: EventStatus.PENDING,
    PaymentType: PaymentType.OTHER,
    PaymentRecordStatus: PaymentRecordStatus.PENDING,
}

# Only these stages carry a committed budget and show up in the payment view.
PAYMENT_STAGES = frozenset({LeadStage.CONVERTED, LeadStage.EVENT_COMPLETED})


def match_status(enum_cls: Type[E], value: Optional[str]) -> Tuple[E, bool]:
    """Case-sensitive lookup of ``value`` in ``enum_cls``.

    Returns the member and whether it matched; unmatched values get the
    family's fallback member.
    """
    if value is not None:
        for member in enum_cls:
            if member.value == value:
                return member, True
    return FALLBACKS[enum_cls], False  # type: ignore[return-value]


def is_payment_eligible(stage: LeadStage) -> bool:
    return stage in PAYMENT_STAGES


def classify_payment_status(
    budget: Decimal,
    total_paid: Decimal,
    balance_due_date: Optional[date] = None,
    *,
    today: date,
) -> PaymentStatus:
    if total_paid > 0 and total_paid >= budget:
        status = PaymentStatus.FULLY_PAID
    elif total_paid > 0:
        status = PaymentStatus.PARTIAL_PAID
    else:
        status = PaymentStatus.PENDING

    # Overdue is checked last and wins over Partial/Pending. A date-only due
    # date starts at midnight, so the due day itself already counts.
    if balance_due_date is not None and balance_due_date <= today and total_paid < budget:
        status = PaymentStatus.OVERDUE
    return status


def funnel_counts(stages: Iterable[LeadStage]) -> Dict[LeadStage, int]:
    counts = {stage: 0 for stage in LeadStage}
    for stage in stages:
        counts[stage] += 1
    return counts
