from datetime import date

from reconcile.events import (
    UNASSIGNED,
    name_date_key,
    record_id_key,
    resolve_photographer,
    upcoming_events,
    window_end,
)
from reconcile.normalize import normalize_events, normalize_leads, normalize_photographers

TODAY = date(2025, 10, 20)


def _build(event_rows, lead_rows, **kwargs):
    events, _ = normalize_events(event_rows)
    leads, _ = normalize_leads(lead_rows)
    return upcoming_events(events, leads, today=TODAY, **kwargs)


def test_events_win_over_leads_for_the_same_client_and_date():
    upcoming = _build(
        [{"id": "E1", "clientName": "A", "eventDate": "2025-11-01"}],
        [{"id": "L1", "clientName": "A", "eventDate": "2025-11-01", "status": "Converted"}],
    )
    assert len(upcoming) == 1
    assert upcoming[0].source == "events"
    assert upcoming[0].id == "E1"


def test_record_id_key_keeps_both_sources():
    upcoming = _build(
        [{"id": "E1", "clientName": "A", "eventDate": "2025-11-01"}],
        [{"id": "L1", "clientName": "A", "eventDate": "2025-11-01", "status": "Converted"}],
        key=record_id_key,
    )
    assert [(u.source, u.id) for u in upcoming] == [("events", "E1"), ("leads", "lead-L1")]


def test_first_event_wins_within_one_source():
    upcoming = _build(
        [
            {"id": "E1", "clientName": "A", "eventDate": "2025-11-01", "venue": "First"},
            {"id": "E2", "clientName": "A", "eventDate": "2025-11-01", "venue": "Second"},
        ],
        [],
    )
    assert [u.venue for u in upcoming] == ["First"]


def test_only_converted_or_completed_leads_with_dates_take_part():
    upcoming = _build(
        [],
        [
            {"id": 1, "clientName": "New", "eventDate": "2025-10-28", "status": "New Lead"},
            {"id": 2, "clientName": "Contacted", "eventDate": "2025-10-28", "status": "Contacted"},
            {"id": 3, "clientName": "Done", "eventDate": "2025-10-28", "status": "Event Completed"},
            {"id": 4, "clientName": "Undated", "status": "Converted"},
        ],
    )
    assert [u.id for u in upcoming] == ["lead-3"]
    assert upcoming[0].status == "Event Completed"


def test_window_is_today_through_one_month_inclusive():
    rows = [
        {"id": "yesterday", "clientName": "A", "eventDate": "2025-10-19"},
        {"id": "today", "clientName": "B", "eventDate": "2025-10-20"},
        {"id": "last", "clientName": "C", "eventDate": "2025-11-20"},
        {"id": "after", "clientName": "D", "eventDate": "2025-11-21"},
        {"id": "undated", "clientName": "E", "eventDate": "soon"},
    ]
    upcoming = _build(rows, [])
    assert [u.id for u in upcoming] == ["today", "last"]
    assert [u.days_until for u in upcoming] == [0, 31]


def test_wider_window():
    upcoming = _build([{"id": "E", "clientName": "A", "eventDate": "2026-01-10"}], [], window_months=3)
    assert [u.id for u in upcoming] == ["E"]


def test_window_end_clamps_to_month_end():
    assert window_end(date(2025, 1, 31), 1) == date(2025, 2, 28)


def test_sorted_by_date_and_unique_per_name_and_date(event_rows, lead_rows, photographer_rows):
    events, _ = normalize_events(event_rows)
    leads, _ = normalize_leads(lead_rows)
    upcoming = upcoming_events(events, leads, today=TODAY, photographers=normalize_photographers(photographer_rows))

    assert [u.id for u in upcoming] == ["E2", "lead-3", "E1"]
    dates = [u.event_date for u in upcoming]
    assert dates == sorted(dates)
    keys = [name_date_key(u) for u in upcoming]
    assert len(keys) == len(set(keys))
    assert [u.photographer for u in upcoming] == [UNASSIGNED, "Priya", "Arjun"]


def test_resolve_photographer():
    names = {"P1": "Arjun"}
    assert resolve_photographer("P1", names) == "Arjun"
    assert resolve_photographer("Arjun", names) == "Arjun"
    assert resolve_photographer("P7", names) == UNASSIGNED
    assert resolve_photographer(None, names) == UNASSIGNED
    assert resolve_photographer("Kabir", {}) == "Kabir"


def test_to_dict_uses_wire_names():
    upcoming = _build([{"id": "E1", "clientName": "A", "eventDate": "2025-11-01", "status": "Confirmed"}], [])
    assert upcoming[0].to_dict() == {
        "id": "E1",
        "recordId": "E1",
        "source": "events",
        "clientName": "A",
        "eventType": "",
        "eventDate": "2025-11-01",
        "venue": "",
        "photographer": UNASSIGNED,
        "photographerId": None,
        "status": "Confirmed",
        "daysUntil": 12,
    }
