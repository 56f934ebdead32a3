from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Tuple

import pandas as pd

from reconcile.normalize import Event, Lead, Payment
from reconcile.status import PaymentRecordStatus

OTHER_CATEGORY = "Other"
DIRECT_SOURCE = "Direct"
TOP_PACKAGES = 5


@dataclass(frozen=True)
class MonthBucket:
    month: str
    label: str
    revenue: Decimal
    events: int
    leads: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "label": self.label,
            "revenue": float(self.revenue),
            "events": self.events,
            "leads": self.leads,
        }


@dataclass(frozen=True)
class CategoryCount:
    name: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "count": self.count}


def round_half_up(value: Decimal, ndigits: int = 0) -> Decimal:
    q = Decimal(10) ** -ndigits
    return Decimal(value).quantize(q, rounding=ROUND_HALF_UP)


def to_minor(amount: Decimal) -> int:
    """Whole hundredths, so pandas can sum money as int64 without drift."""
    return int((amount * 100).to_integral_value(rounding=ROUND_HALF_UP))


def trailing_months(today: date, count: int = 6) -> List[Tuple[str, str]]:
    periods = pd.period_range(end=pd.Period(today, freq="M"), periods=count, freq="M")
    return [(p.strftime("%Y-%m"), p.strftime("%b")) for p in periods]


def _month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def _monthly_sum(rows: List[Tuple[str, int]], months: List[str]) -> pd.Series:
    frame = pd.DataFrame(rows, columns=["month", "value"])
    return frame.groupby("month")["value"].sum().reindex(months, fill_value=0)


def _monthly_count(keys: List[str], months: List[str]) -> pd.Series:
    return pd.Series(keys, dtype="object").value_counts().reindex(months, fill_value=0)


def revenue_series(
    payments: Iterable[Payment],
    events: Iterable[Event],
    leads: Iterable[Lead] = (),
    *,
    today: date,
    months: int = 6,
) -> Tuple[MonthBucket, ...]:
    buckets = trailing_months(today, months)
    keys = [k for k, _ in buckets]

    received = [
        (_month_key(p.payment_date), to_minor(p.amount))
        for p in payments
        if p.payment_date is not None and p.status is PaymentRecordStatus.RECEIVED
    ]
    revenue = _monthly_sum(received, keys)
    event_counts = _monthly_count([_month_key(e.event_date) for e in events if e.event_date is not None], keys)
    lead_counts = _monthly_count([_month_key(l.created_at) for l in leads if l.created_at is not None], keys)

    return tuple(
        MonthBucket(
            month=key,
            label=label,
            revenue=Decimal(int(revenue[key])) / 100,
            events=int(event_counts[key]),
            leads=int(lead_counts[key]),
        )
        for key, label in buckets
    )


def category_distribution(values: Iterable[str], *, other: str = OTHER_CATEGORY) -> Tuple[CategoryCount, ...]:
    labels = pd.Series([v or other for v in values], dtype="object")
    if labels.empty:
        return ()
    counts = labels.value_counts().rename_axis("name").reset_index(name="count")
    counts = counts.sort_values(["count", "name"], ascending=[False, True], kind="mergesort")
    return tuple(CategoryCount(str(name), int(n)) for name, n in zip(counts["name"], counts["count"]))


def leads_by_type(leads: Iterable[Lead]) -> Tuple[CategoryCount, ...]:
    return category_distribution(lead.event_type for lead in leads)


def leads_by_source(leads: Iterable[Lead]) -> Tuple[CategoryCount, ...]:
    return category_distribution((lead.source for lead in leads), other=DIRECT_SOURCE)


def top_packages(leads: Iterable[Lead], limit: int = TOP_PACKAGES) -> Tuple[CategoryCount, ...]:
    """Most requested package categories; leads without one are left out."""
    return category_distribution(lead.package_category for lead in leads if lead.package_category)[:limit]


def payment_status_distribution(payments: Iterable[Payment]) -> Tuple[CategoryCount, ...]:
    counts = pd.Series([p.status.value for p in payments], dtype="object").value_counts()
    return tuple(CategoryCount(s.value, int(counts.get(s.value, 0))) for s in PaymentRecordStatus)
