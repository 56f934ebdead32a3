from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from reconcile.normalize import Event, Lead, Photographer
from reconcile.status import is_payment_eligible

UNASSIGNED = "Unassigned"

SOURCE_EVENTS = "events"
SOURCE_LEADS = "leads"


@dataclass(frozen=True)
class UpcomingEvent:
    id: str
    record_id: str
    source: str
    client_name: str
    event_type: str
    event_date: date
    venue: str
    photographer: str
    photographer_id: Optional[str]
    status: str
    days_until: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "recordId": self.record_id,
            "source": self.source,
            "clientName": self.client_name,
            "eventType": self.event_type,
            "eventDate": self.event_date.isoformat(),
            "venue": self.venue,
            "photographer": self.photographer,
            "photographerId": self.photographer_id,
            "status": self.status,
            "daysUntil": self.days_until,
        }


DedupKey = Callable[[UpcomingEvent], Hashable]


def name_date_key(event: UpcomingEvent) -> Hashable:
    # Two different clients with the same display name on the same day collapse into one.
    return (event.client_name, event.event_date)


def record_id_key(event: UpcomingEvent) -> Hashable:
    return (event.source, event.record_id)


DEDUP_KEYS: Dict[str, DedupKey] = {
    "name_date": name_date_key,
    "record_id": record_id_key,
}


def get_dedup_key(name: str) -> DedupKey:
    return DEDUP_KEYS.get(name, name_date_key)


def photographer_names(photographers: Iterable[Photographer]) -> Dict[str, str]:
    return {p.id: p.name for p in photographers}


def resolve_photographer(photographer_id: Optional[str], names: Mapping[str, str]) -> str:
    if not photographer_id:
        return UNASSIGNED
    if photographer_id in names:
        return names[photographer_id]
    # Without a roster (or when the sheet already holds a name) show the cell as written.
    if not names or photographer_id in names.values():
        return photographer_id
    return UNASSIGNED


def from_event(event: Event, *, today: date, names: Mapping[str, str]) -> Optional[UpcomingEvent]:
    if event.event_date is None:
        return None
    return UpcomingEvent(
        id=event.id,
        record_id=event.id,
        source=SOURCE_EVENTS,
        client_name=event.client_name,
        event_type=event.event_type,
        event_date=event.event_date,
        venue=event.venue,
        photographer=resolve_photographer(event.photographer, names),
        photographer_id=event.photographer,
        status=event.status.value,
        days_until=(event.event_date - today).days,
    )


def from_lead(lead: Lead, *, today: date, names: Mapping[str, str]) -> Optional[UpcomingEvent]:
    if lead.event_date is None or not is_payment_eligible(lead.stage):
        return None
    return UpcomingEvent(
        id=f"lead-{lead.id}",
        record_id=lead.id,
        source=SOURCE_LEADS,
        client_name=lead.client_name,
        event_type=lead.event_type,
        event_date=lead.event_date,
        venue=lead.venue,
        photographer=resolve_photographer(lead.photographer, names),
        photographer_id=lead.photographer,
        status=lead.stage.value,
        days_until=(lead.event_date - today).days,
    )


def merge_candidates(
    events: Iterable[Event],
    leads: Iterable[Lead],
    *,
    today: date,
    names: Mapping[str, str],
) -> List[UpcomingEvent]:
    """Events first, then converted/completed leads; undated records are skipped."""
    merged: List[UpcomingEvent] = []
    for event in events:
        item = from_event(event, today=today, names=names)
        if item is not None:
            merged.append(item)
    for lead in leads:
        item = from_lead(lead, today=today, names=names)
        if item is not None:
            merged.append(item)
    return merged


def window_end(today: date, months: int) -> date:
    return (pd.Timestamp(today) + pd.DateOffset(months=months)).date()


def dedupe(items: Iterable[UpcomingEvent], key: DedupKey = name_date_key) -> List[UpcomingEvent]:
    seen = set()
    kept: List[UpcomingEvent] = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        kept.append(item)
    return kept


def upcoming_events(
    events: Iterable[Event],
    leads: Iterable[Lead],
    *,
    today: date,
    window_months: int = 1,
    key: DedupKey = name_date_key,
    photographers: Iterable[Photographer] = (),
) -> Tuple[UpcomingEvent, ...]:
    names = photographer_names(photographers)
    last_day = window_end(today, window_months)
    in_window = [
        item
        for item in merge_candidates(events, leads, today=today, names=names)
        if today <= item.event_date <= last_day
    ]
    return tuple(sorted(dedupe(in_window, key), key=lambda item: item.event_date))
