from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from reconcile.normalize import Lead, Payment
from reconcile.status import PaymentStatus, classify_payment_status, is_payment_eligible


@dataclass(frozen=True)
class ClientLedger:
    lead_id: str
    client_name: str
    budget: Decimal
    total_paid: Decimal
    remaining: Decimal
    status: PaymentStatus
    payment_count: int
    payments: Tuple[Payment, ...]
    balance_due_date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "leadId": self.lead_id,
            "clientName": self.client_name,
            "budget": float(self.budget),
            "totalPaid": float(self.total_paid),
            "remaining": float(self.remaining),
            "status": self.status.value,
            "paymentCount": self.payment_count,
            "balanceDueDate": self.balance_due_date.isoformat() if self.balance_due_date else None,
            "payments": [p.to_dict() for p in self.payments],
        }


def newest_first(payments: Iterable[Payment]) -> List[Payment]:
    """Dated payments newest first, undated ones after them; ties keep source order."""
    payments = list(payments)
    dated = sorted((p for p in payments if p.payment_date is not None), key=lambda p: p.payment_date, reverse=True)
    undated = [p for p in payments if p.payment_date is None]
    return dated + undated


def payments_for(payments: Iterable[Payment], lead_id: str) -> Tuple[Payment, ...]:
    return tuple(newest_first(p for p in payments if p.lead_id == lead_id))


def total_paid(payments: Iterable[Payment]) -> Decimal:
    return sum((p.amount for p in payments), Decimal("0"))


def build_ledger(lead: Lead, payments: Iterable[Payment], *, today: date) -> ClientLedger:
    matching = payments_for(payments, lead.id)
    paid = total_paid(matching)
    return ClientLedger(
        lead_id=lead.id,
        client_name=lead.client_name,
        budget=lead.budget,
        total_paid=paid,
        remaining=lead.budget - paid,
        status=classify_payment_status(lead.budget, paid, lead.balance_due_date, today=today),
        payment_count=len(matching),
        payments=matching,
        balance_due_date=lead.balance_due_date,
    )


def build_ledgers(
    leads: Iterable[Lead],
    payments: Iterable[Payment],
    *,
    today: date,
) -> Tuple[Dict[str, ClientLedger], Tuple[Payment, ...]]:
    """One ledger per converted/completed lead, plus the payments no lead claims.

    Ledgers are keyed by lead id in lead order; a repeated lead id keeps its
    first row.
    """
    leads = list(leads)
    payments = list(payments)

    by_lead: Dict[str, List[Payment]] = {}
    for p in payments:
        if p.lead_id is not None:
            by_lead.setdefault(p.lead_id, []).append(p)

    ledgers: Dict[str, ClientLedger] = {}
    for lead in leads:
        if not is_payment_eligible(lead.stage) or lead.id in ledgers:
            continue
        ledgers[lead.id] = build_ledger(lead, by_lead.get(lead.id, ()), today=today)

    known_ids = {lead.id for lead in leads}
    orphans = tuple(p for p in payments if p.lead_id not in known_ids)
    return ledgers, orphans
