from datetime import date
from decimal import Decimal

from reconcile.ledger import build_ledger, build_ledgers, newest_first, payments_for, total_paid
from reconcile.normalize import normalize_leads, normalize_payments
from reconcile.status import PaymentStatus

TODAY = date(2025, 10, 20)


def _normalized(lead_rows, payment_rows):
    leads, _ = normalize_leads(lead_rows)
    payments, _ = normalize_payments(payment_rows)
    return leads, payments


def test_ledgers_for_eligible_leads_only(lead_rows, payment_rows):
    leads, payments = _normalized(lead_rows, payment_rows)
    ledgers, _ = build_ledgers(leads, payments, today=TODAY)
    assert list(ledgers) == ["1", "2", "3"]


def test_ledger_totals_and_status(lead_rows, payment_rows):
    leads, payments = _normalized(lead_rows, payment_rows)
    ledgers, _ = build_ledgers(leads, payments, today=TODAY)

    asha, vikram, meera = ledgers["1"], ledgers["2"], ledgers["3"]
    assert (asha.total_paid, asha.remaining, asha.status) == (
        Decimal("50000"),
        Decimal("100000"),
        PaymentStatus.PARTIAL_PAID,
    )
    assert vikram.status is PaymentStatus.FULLY_PAID
    assert meera.total_paid == Decimal("30000.50")
    assert meera.remaining == Decimal("29999.50")
    assert meera.status is PaymentStatus.OVERDUE
    assert meera.payment_count == 2
    assert [p.id for p in meera.payments] == ["PAY4", "PAY3"]


def test_total_paid_is_exact_sum_of_matching_amounts(lead_rows, payment_rows):
    leads, payments = _normalized(lead_rows, payment_rows)
    ledgers, _ = build_ledgers(leads, payments, today=TODAY)
    for lead_id, ledger in ledgers.items():
        expected = sum((p.amount for p in payments if p.lead_id == lead_id), Decimal("0"))
        assert ledger.total_paid == expected


def test_overpayment_keeps_negative_remaining():
    leads, payments = _normalized(
        [{"id": 1, "Budget": "50000", "Status": "Converted"}],
        [
            {"id": "a", "leadId": 1, "amount": "40000"},
            {"id": "b", "leadId": 1, "amount": "20000"},
        ],
    )
    ledger = build_ledger(leads[0], payments, today=TODAY)
    assert ledger.remaining == Decimal("-10000")
    assert ledger.status is PaymentStatus.FULLY_PAID


def test_payments_without_a_known_lead_are_orphans(lead_rows, payment_rows):
    leads, payments = _normalized(lead_rows, payment_rows)
    _, orphans = build_ledgers(leads, payments, today=TODAY)
    assert [p.id for p in orphans] == ["PAY5"]


def test_payments_for_ineligible_leads_are_not_orphans():
    leads, payments = _normalized(
        [{"id": 7, "Status": "Contacted"}],
        [{"id": "x", "leadId": 7, "amount": 100}],
    )
    ledgers, orphans = build_ledgers(leads, payments, today=TODAY)
    assert ledgers == {}
    assert orphans == ()


def test_duplicate_lead_id_keeps_first_row():
    leads, payments = _normalized(
        [
            {"id": 1, "Client Name": "First", "Budget": "100", "Status": "Converted"},
            {"id": 1, "Client Name": "Second", "Budget": "900", "Status": "Converted"},
        ],
        [],
    )
    ledgers, _ = build_ledgers(leads, payments, today=TODAY)
    assert ledgers["1"].client_name == "First"
    assert ledgers["1"].budget == Decimal("100")


def test_newest_first_puts_undated_payments_last():
    _, payments = _normalized(
        [],
        [
            {"id": "old", "amount": 1, "paymentDate": "2025-01-01"},
            {"id": "undated", "amount": 1},
            {"id": "new", "amount": 1, "paymentDate": "2025-06-01"},
            {"id": "also-new", "amount": 1, "paymentDate": "2025-06-01"},
        ],
    )
    assert [p.id for p in newest_first(payments)] == ["new", "also-new", "old", "undated"]


def test_payments_for_and_total_paid():
    _, payments = _normalized(
        [],
        [
            {"id": "a", "leadId": "L1", "amount": "0.10"},
            {"id": "b", "leadId": "L1", "amount": "0.20"},
            {"id": "c", "leadId": "L2", "amount": "5"},
        ],
    )
    mine = payments_for(payments, "L1")
    assert [p.id for p in mine] == ["a", "b"]
    assert total_paid(mine) == Decimal("0.30")


def test_ledger_to_dict(lead_rows, payment_rows):
    leads, payments = _normalized(lead_rows, payment_rows)
    ledgers, _ = build_ledgers(leads, payments, today=TODAY)
    data = ledgers["3"].to_dict()
    assert data["leadId"] == "3"
    assert data["status"] == "Overdue"
    assert data["remaining"] == 29999.5
    assert data["balanceDueDate"] == "2025-10-01"
    assert [p["id"] for p in data["payments"]] == ["PAY4", "PAY3"]
