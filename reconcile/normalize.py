from __future__ import annotations

import numbers
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo

import pandas as pd

from reconcile.currency import INR, CurrencyLocale, try_parse_currency
from reconcile.status import (
    EventStatus,
    LeadStage,
    PaymentRecordStatus,
    PaymentType,
    match_status,
)

# The Leads sheet uses spreadsheet headers, Events/Payments use camelCase keys.
# Earlier entries win when a row carries more than one alias.
LEAD_COLUMNS = {
    "id": "id",
    "ID": "id",
    "Lead ID": "id",
    "Client Name": "client_name",
    "clientName": "client_name",
    "client_name": "client_name",
    "Phone": "phone",
    "phone": "phone",
    "Email": "email",
    "email": "email",
    "Event Type": "event_type",
    "eventType": "event_type",
    "event_type": "event_type",
    "Event Date": "event_date",
    "eventDate": "event_date",
    "event_date": "event_date",
    "Venue": "venue",
    "venue": "venue",
    "Budget": "budget",
    "budget": "budget",
    "Assigned Photographer": "photographer",
    "Photographer": "photographer",
    "photographer": "photographer",
    "Status": "status",
    "status": "status",
    "Created At": "created_at",
    "createdAt": "created_at",
    "created_at": "created_at",
    "Balance Due Date": "balance_due_date",
    "balanceDueDate": "balance_due_date",
    "balance_due_date": "balance_due_date",
    "Source": "source",
    "Lead Source": "source",
    "source": "source",
    "leadSource": "source",
    "Package Category": "package_category",
    "packageCategory": "package_category",
    "package_category": "package_category",
    "Package": "package_category",
}

EVENT_COLUMNS = {
    "id": "id",
    "ID": "id",
    "Event ID": "id",
    "clientName": "client_name",
    "Client Name": "client_name",
    "client_name": "client_name",
    "eventType": "event_type",
    "Event Type": "event_type",
    "event_type": "event_type",
    "eventDate": "event_date",
    "Event Date": "event_date",
    "event_date": "event_date",
    "venue": "venue",
    "Venue": "venue",
    "location": "venue",
    "Location": "venue",
    "price": "price",
    "Price": "price",
    "Total Price": "price",
    "totalPrice": "price",
    "advance": "advance",
    "Advance": "advance",
    "Advance Paid": "advance",
    "advancePaid": "advance",
    "photographer": "photographer",
    "Photographer": "photographer",
    "Assigned Photographer": "photographer",
    "status": "status",
    "Status": "status",
}

PAYMENT_COLUMNS = {
    "id": "id",
    "ID": "id",
    "Payment ID": "id",
    "leadId": "lead_id",
    "Lead ID": "lead_id",
    "lead_id": "lead_id",
    "clientId": "lead_id",
    "clientName": "client_name",
    "Client Name": "client_name",
    "client_name": "client_name",
    "amount": "amount",
    "Amount": "amount",
    "paymentType": "payment_type",
    "Payment Type": "payment_type",
    "payment_type": "payment_type",
    "paymentMethod": "payment_method",
    "Payment Method": "payment_method",
    "payment_method": "payment_method",
    "paymentDate": "payment_date",
    "Payment Date": "payment_date",
    "payment_date": "payment_date",
    "transactionId": "transaction_id",
    "Transaction ID": "transaction_id",
    "transaction_id": "transaction_id",
    "notes": "notes",
    "Notes": "notes",
    "status": "status",
    "Status": "status",
}

PHOTOGRAPHER_COLUMNS = {
    "id": "id",
    "ID": "id",
    "name": "name",
    "Name": "name",
}

_NA_TOKENS = {"", "nan", "none", "null", "n/a", "na", "<na>", "nat"}
_TEXT_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%d %b %Y", "%d %B %Y", "%b %d, %Y", "%B %d, %Y")
_SERIAL_DAY_LIMIT = 60000


@dataclass(frozen=True)
class DataQualityIssue:
    source: str
    record_id: str
    field: str
    raw_value: str
    problem: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "source": self.source,
            "recordId": self.record_id,
            "field": self.field,
            "rawValue": self.raw_value,
            "problem": self.problem,
        }


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _money(value: Decimal) -> float:
    return float(value)


@dataclass(frozen=True)
class Lead:
    id: str
    client_name: str
    phone: str
    email: str
    event_type: str
    event_date: Optional[date]
    venue: str
    budget: Decimal
    photographer: Optional[str]
    stage: LeadStage
    created_at: Optional[datetime]
    balance_due_date: Optional[date]
    source: str = ""
    package_category: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "clientName": self.client_name,
            "phone": self.phone,
            "email": self.email,
            "eventType": self.event_type,
            "eventDate": _iso(self.event_date),
            "venue": self.venue,
            "budget": _money(self.budget),
            "photographer": self.photographer,
            "status": self.stage.value,
            "createdAt": _iso(self.created_at),
            "balanceDueDate": _iso(self.balance_due_date),
            "source": self.source,
            "packageCategory": self.package_category,
        }


@dataclass(frozen=True)
class Event:
    id: str
    client_name: str
    event_type: str
    event_date: Optional[date]
    venue: str
    price: Decimal
    advance: Decimal
    photographer: Optional[str]
    status: EventStatus
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "clientName": self.client_name,
            "eventType": self.event_type,
            "eventDate": _iso(self.event_date),
            "venue": self.venue,
            "price": _money(self.price),
            "advance": _money(self.advance),
            "photographer": self.photographer,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class Payment:
    id: str
    lead_id: Optional[str]
    client_name: str
    amount: Decimal
    payment_type: PaymentType
    payment_method: str
    payment_date: Optional[date]
    transaction_id: Optional[str]
    notes: Optional[str]
    status: PaymentRecordStatus
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "leadId": self.lead_id,
            "clientName": self.client_name,
            "amount": _money(self.amount),
            "paymentType": self.payment_type.value,
            "paymentMethod": self.payment_method,
            "paymentDate": _iso(self.payment_date),
            "transactionId": self.transaction_id,
            "notes": self.notes,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class Photographer:
    id: str
    name: str


# ---------------- Value helpers ----------------
def is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() in _NA_TOKENS
    if isinstance(value, (bytes, list, tuple, dict, set)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def clean_text(value: object) -> Optional[str]:
    if is_missing(value):
        return None
    s = str(value).strip()
    return s or None


def clean_id(value: object) -> Optional[str]:
    """Sheet ids come back as numbers (``12.0``) or strings; compare them as text."""
    if is_missing(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return clean_text(value)


def rename_row(row: Mapping[str, Any], columns: Mapping[str, str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for source_name, canonical in columns.items():
        if canonical in out:
            continue
        value = row.get(source_name)
        if not is_missing(value):
            out[canonical] = value
    return out


def parse_timestamp(value: object, tz: Optional[ZoneInfo] = None) -> Optional[datetime]:
    """Read a sheet date/time cell as a naive datetime, or ``None``.

    Offset-aware values are shifted into ``tz`` (UTC by default) before the
    offset is dropped, so calendar dates match what the studio sees locally.
    """
    if is_missing(value) or isinstance(value, bool):
        return None

    parsed: Optional[datetime] = None
    if isinstance(value, pd.Timestamp):
        parsed = value.to_pydatetime()
    elif isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, numbers.Real):
        serial = float(value)
        if not 0 < serial <= _SERIAL_DAY_LIMIT:
            return None
        return pd.to_datetime(serial, unit="D", origin="1899-12-30").to_pydatetime()
    else:
        text = str(value).strip()
        iso_text = text[:-1] + "+00:00" if text.endswith("Z") else text
        try:
            parsed = datetime.fromisoformat(iso_text)
        except ValueError:
            for fmt in _TEXT_DATE_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
    if parsed is None:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz or timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date(value: object, tz: Optional[ZoneInfo] = None) -> Optional[date]:
    ts = parse_timestamp(value, tz)
    return ts.date() if ts is not None else None


# ---------------- Record normalizers ----------------
class _Normalizer:
    """Shared field readers that note every value they had to default."""

    def __init__(self, source: str, locale: CurrencyLocale, tz: Optional[ZoneInfo]):
        self.source = source
        self.locale = locale
        self.tz = tz
        self.issues: List[DataQualityIssue] = []

    def note(self, record_id: str, field_name: str, raw_value: object, problem: str) -> None:
        self.issues.append(DataQualityIssue(self.source, record_id, field_name, str(raw_value), problem))

    def record_id(self, row: Mapping[str, Any], index: int) -> str:
        rid = clean_id(row.get("id"))
        if rid is None:
            rid = f"row-{index + 1}"
            self.note(rid, "id", row.get("id"), "missing_id")
        return rid

    def money(self, row: Mapping[str, Any], rid: str, name: str) -> Decimal:
        raw = row.get(name)
        parsed = try_parse_currency(raw, self.locale)
        if parsed is None:
            self.note(rid, name, raw, "unparseable_amount")
            return Decimal("0")
        return parsed

    def day(self, row: Mapping[str, Any], rid: str, name: str) -> Optional[date]:
        raw = row.get(name)
        if raw is None:
            return None
        parsed = parse_date(raw, self.tz)
        if parsed is None:
            self.note(rid, name, raw, "invalid_date")
        return parsed

    def moment(self, row: Mapping[str, Any], rid: str, name: str) -> Optional[datetime]:
        raw = row.get(name)
        if raw is None:
            return None
        parsed = parse_timestamp(raw, self.tz)
        if parsed is None:
            self.note(rid, name, raw, "invalid_date")
        return parsed

    def status(self, row: Mapping[str, Any], rid: str, enum_cls, name: str = "status"):
        raw = clean_text(row.get(name))
        member, matched = match_status(enum_cls, raw)
        if raw is not None and not matched:
            self.note(rid, name, raw, "unknown_status")
        return member


def _zone(tz_name: Optional[str]) -> Optional[ZoneInfo]:
    return ZoneInfo(tz_name) if tz_name else None


def normalize_leads(
    rows: Iterable[Mapping[str, Any]],
    *,
    locale: CurrencyLocale = INR,
    tz_name: Optional[str] = None,
) -> Tuple[Tuple[Lead, ...], Tuple[DataQualityIssue, ...]]:
    n = _Normalizer("leads", locale, _zone(tz_name))
    out: List[Lead] = []
    for index, source_row in enumerate(rows):
        row = rename_row(source_row, LEAD_COLUMNS)
        rid = n.record_id(row, index)
        out.append(
            Lead(
                id=rid,
                client_name=clean_text(row.get("client_name")) or "",
                phone=clean_text(row.get("phone")) or "",
                email=clean_text(row.get("email")) or "",
                event_type=clean_text(row.get("event_type")) or "",
                event_date=n.day(row, rid, "event_date"),
                venue=clean_text(row.get("venue")) or "",
                budget=n.money(row, rid, "budget"),
                photographer=clean_id(row.get("photographer")),
                stage=n.status(row, rid, LeadStage),
                created_at=n.moment(row, rid, "created_at"),
                balance_due_date=n.day(row, rid, "balance_due_date"),
                source=clean_text(row.get("source")) or "",
                package_category=clean_text(row.get("package_category")) or "",
                raw=MappingProxyType(dict(source_row)),
            )
        )
    return tuple(out), tuple(n.issues)


def normalize_events(
    rows: Iterable[Mapping[str, Any]],
    *,
    locale: CurrencyLocale = INR,
    tz_name: Optional[str] = None,
) -> Tuple[Tuple[Event, ...], Tuple[DataQualityIssue, ...]]:
    n = _Normalizer("events", locale, _zone(tz_name))
    out: List[Event] = []
    for index, source_row in enumerate(rows):
        row = rename_row(source_row, EVENT_COLUMNS)
        rid = n.record_id(row, index)
        out.append(
            Event(
                id=rid,
                client_name=clean_text(row.get("client_name")) or "",
                event_type=clean_text(row.get("event_type")) or "",
                event_date=n.day(row, rid, "event_date"),
                venue=clean_text(row.get("venue")) or "",
                price=n.money(row, rid, "price"),
                advance=n.money(row, rid, "advance"),
                photographer=clean_id(row.get("photographer")),
                status=n.status(row, rid, EventStatus),
                raw=MappingProxyType(dict(source_row)),
            )
        )
    return tuple(out), tuple(n.issues)


def normalize_payments(
    rows: Iterable[Mapping[str, Any]],
    *,
    locale: CurrencyLocale = INR,
    tz_name: Optional[str] = None,
) -> Tuple[Tuple[Payment, ...], Tuple[DataQualityIssue, ...]]:
    n = _Normalizer("payments", locale, _zone(tz_name))
    out: List[Payment] = []
    for index, source_row in enumerate(rows):
        row = rename_row(source_row, PAYMENT_COLUMNS)
        rid = n.record_id(row, index)
        out.append(
            Payment(
                id=rid,
                lead_id=clean_id(row.get("lead_id")),
                client_name=clean_text(row.get("client_name")) or "",
                amount=n.money(row, rid, "amount"),
                payment_type=n.status(row, rid, PaymentType, "payment_type"),
                payment_method=clean_text(row.get("payment_method")) or "",
                payment_date=n.day(row, rid, "payment_date"),
                transaction_id=clean_text(row.get("transaction_id")),
                notes=clean_text(row.get("notes")),
                status=n.status(row, rid, PaymentRecordStatus),
                raw=MappingProxyType(dict(source_row)),
            )
        )
    return tuple(out), tuple(n.issues)


def normalize_photographers(rows: Iterable[Mapping[str, Any]]) -> Tuple[Photographer, ...]:
    out: List[Photographer] = []
    for source_row in rows:
        row = rename_row(source_row, PHOTOGRAPHER_COLUMNS)
        pid = clean_id(row.get("id"))
        name = clean_text(row.get("name"))
        if pid is None or name is None:
            continue
        out.append(Photographer(id=pid, name=name))
    return tuple(out)
