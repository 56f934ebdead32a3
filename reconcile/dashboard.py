from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from reconcile.config import EngineConfig, local_today
from reconcile.errors import SnapshotError
from reconcile.events import UpcomingEvent, get_dedup_key, upcoming_events
from reconcile.ledger import ClientLedger, build_ledgers, newest_first, total_paid
from reconcile.normalize import (
    DataQualityIssue,
    Event,
    Lead,
    Payment,
    normalize_events,
    normalize_leads,
    normalize_payments,
    normalize_photographers,
)
from reconcile.stats import (
    CategoryCount,
    MonthBucket,
    leads_by_source,
    leads_by_type,
    payment_status_distribution,
    revenue_series,
    round_half_up,
    top_packages,
)
from reconcile.status import (
    LeadStage,
    PaymentRecordStatus,
    PaymentStatus,
    funnel_counts,
    is_payment_eligible,
)


@dataclass(frozen=True)
class SourceUnavailable:
    """Marker for a collection that could not be loaded."""

    reason: str = "unavailable"


Rows = Iterable[Mapping[str, Any]]
Collection = Union[Rows, SourceUnavailable]


@dataclass(frozen=True)
class DashboardResult:
    today: date
    stats: Mapping[str, Any]
    upcoming_events: Tuple[UpcomingEvent, ...]
    recent_leads: Tuple[Lead, ...]
    recent_payments: Tuple[Payment, ...]
    revenue: Tuple[MonthBucket, ...]
    leads_by_type: Tuple[CategoryCount, ...]
    payment_status: Tuple[CategoryCount, ...]
    client_ledgers: Mapping[str, ClientLedger]
    all_events: Tuple[Event, ...] = ()
    leads_by_source: Tuple[CategoryCount, ...] = ()
    top_packages: Tuple[CategoryCount, ...] = ()
    sources: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    data_quality: Tuple[DataQualityIssue, ...] = ()

    def ledger(self, lead_id: str) -> Optional[ClientLedger]:
        return self.client_ledgers.get(lead_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "today": self.today.isoformat(),
            "stats": dict(self.stats),
            "upcomingEvents": [e.to_dict() for e in self.upcoming_events],
            "recentLeads": [lead.to_dict() for lead in self.recent_leads],
            "recentPayments": [p.to_dict() for p in self.recent_payments],
            "charts": {
                "revenue": [b.to_dict() for b in self.revenue],
                "leadsByType": [c.to_dict() for c in self.leads_by_type],
                "paymentStatus": [c.to_dict() for c in self.payment_status],
                "leadsBySource": [c.to_dict() for c in self.leads_by_source],
                "topPackages": [c.to_dict() for c in self.top_packages],
            },
            "clientLedgers": {key: ledger.to_dict() for key, ledger in self.client_ledgers.items()},
            "allEvents": [e.to_dict() for e in self.all_events],
            "sources": {name: dict(state) for name, state in self.sources.items()},
            "dataQuality": [issue.to_dict() for issue in self.data_quality],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))


def _rows(name: str, collection: Optional[Collection]) -> Tuple[List[Mapping[str, Any]], Dict[str, Any]]:
    if collection is None:
        raise SnapshotError(f"{name} collection is missing; pass SourceUnavailable if it failed to load")
    if isinstance(collection, SourceUnavailable):
        return [], {"status": "unavailable", "reason": collection.reason}
    rows = list(collection)
    return rows, {"status": "ok", "records": len(rows)}


def most_recent_leads(leads: Iterable[Lead], limit: int = 5) -> Tuple[Lead, ...]:
    leads = list(leads)
    dated = sorted((l for l in leads if l.created_at is not None), key=lambda l: l.created_at, reverse=True)
    undated = [l for l in leads if l.created_at is None]
    return tuple((dated + undated)[:limit])


def most_recent_payments(payments: Iterable[Payment], limit: int = 5) -> Tuple[Payment, ...]:
    return tuple(newest_first(payments)[:limit])


def conversion_rate(converted: int, total: int) -> int:
    if total <= 0:
        return 0
    return int(round_half_up(Decimal(converted) * 100 / Decimal(total)))


def _stats(
    leads: Tuple[Lead, ...],
    events: Tuple[Event, ...],
    payments: Tuple[Payment, ...],
    ledgers: Mapping[str, ClientLedger],
    upcoming: Tuple[UpcomingEvent, ...],
) -> Dict[str, Any]:
    stages = funnel_counts(lead.stage for lead in leads)
    converted = stages[LeadStage.CONVERTED] + stages[LeadStage.EVENT_COMPLETED]
    booked = sum((lead.budget for lead in leads if is_payment_eligible(lead.stage)), Decimal("0"))
    collected = total_paid(p for p in payments if p.status is PaymentRecordStatus.RECEIVED)
    outstanding = sum((ledger.remaining for ledger in ledgers.values()), Decimal("0"))
    classified = [ledger.status for ledger in ledgers.values()]
    avg_deal = int(round_half_up(booked / converted)) if converted else 0

    return {
        "totalLeads": len(leads),
        "newLeads": stages[LeadStage.NEW_LEAD],
        "contacted": stages[LeadStage.CONTACTED],
        "converted": converted,
        "eventCompleted": stages[LeadStage.EVENT_COMPLETED],
        "conversionRate": conversion_rate(converted, len(leads)),
        "totalEvents": len(events),
        "upcomingEvents": len(upcoming),
        "totalPayments": len(payments),
        "bookedRevenue": float(booked),
        "collectedRevenue": float(collected),
        "outstandingBalance": float(outstanding),
        "pendingPayments": sum(1 for p in payments if p.status is PaymentRecordStatus.PENDING),
        "overdueClients": classified.count(PaymentStatus.OVERDUE),
        "fullyPaidClients": classified.count(PaymentStatus.FULLY_PAID),
        "avgDealSize": avg_deal,
    }


def compute_dashboard(
    leads: Optional[Collection],
    events: Optional[Collection],
    payments: Optional[Collection],
    photographers: Collection = (),
    *,
    config: Optional[EngineConfig] = None,
    today: Optional[date] = None,
) -> DashboardResult:
    """Build every dashboard view from one snapshot of the source collections.

    Nothing is cached between calls: the same rows, config and ``today``
    always give the same result. Without ``today`` the current date in
    ``config.timezone`` is used.
    """
    config = config or EngineConfig()
    today = today or local_today(config.timezone)

    lead_rows, lead_state = _rows("leads", leads)
    event_rows, event_state = _rows("events", events)
    payment_rows, payment_state = _rows("payments", payments)
    photographer_rows, photographer_state = _rows("photographers", photographers)

    opts = {"locale": config.currency, "tz_name": config.timezone}
    norm_leads, lead_issues = normalize_leads(lead_rows, **opts)
    norm_events, event_issues = normalize_events(event_rows, **opts)
    norm_payments, payment_issues = normalize_payments(payment_rows, **opts)
    roster = normalize_photographers(photographer_rows)

    upcoming = upcoming_events(
        norm_events,
        norm_leads,
        today=today,
        window_months=config.upcoming_window_months,
        key=get_dedup_key(config.dedup_key),
        photographers=roster,
    )
    ledgers, orphans = build_ledgers(norm_leads, norm_payments, today=today)

    orphan_issues = tuple(
        DataQualityIssue("payments", p.id, "lead_id", str(p.lead_id), "unknown_lead")
        for p in orphans
    )

    return DashboardResult(
        today=today,
        stats=MappingProxyType(_stats(norm_leads, norm_events, norm_payments, ledgers, upcoming)),
        upcoming_events=upcoming,
        recent_leads=most_recent_leads(norm_leads, config.recent_limit),
        recent_payments=most_recent_payments(norm_payments, config.recent_limit),
        revenue=revenue_series(norm_payments, norm_events, norm_leads, today=today, months=config.revenue_months),
        leads_by_type=leads_by_type(norm_leads),
        payment_status=payment_status_distribution(norm_payments),
        client_ledgers=MappingProxyType(ledgers),
        all_events=norm_events,
        leads_by_source=leads_by_source(norm_leads),
        top_packages=top_packages(norm_leads),
        sources=MappingProxyType(
            {
                "leads": lead_state,
                "events": event_state,
                "payments": payment_state,
                "photographers": photographer_state,
            }
        ),
        data_quality=lead_issues + event_issues + payment_issues + orphan_issues,
    )
