import copy
from datetime import date

import pytest

TODAY = date(2025, 10, 20)

LEAD_ROWS = [
    {
        "id": 1,
        "Client Name": "Asha Rao",
        "Phone": "98450 11111",
        "Email": "asha@example.com",
        "Event Type": "Wedding",
        "Event Date": "2025-11-01",
        "Venue": "Taj Palace",
        "Budget": "₹1,50,000",
        "Assigned Photographer": "P1",
        "Status": "Converted",
        "Created At": "2025-10-01T10:00:00.000Z",
        "Balance Due Date": "2025-10-30",
        "Source": "Instagram",
        "Package Category": "Gold",
    },
    {
        "id": 2,
        "Client Name": "Vikram Shah",
        "Event Type": "Birthday",
        "Event Date": "2025-09-10",
        "Budget": "40000",
        "Status": "Event Completed",
        "Created At": "2025-08-05",
        "Balance Due Date": "2025-09-30",
        "Source": "Referral",
        "Package Category": "Silver",
    },
    {
        "id": 3,
        "Client Name": "Meera Iyer",
        "Event Type": "Wedding",
        "Event Date": "2025-10-25",
        "Budget": "₹60,000",
        "Assigned Photographer": "P2",
        "Status": "Converted",
        "Created At": "2025-09-12",
        "Balance Due Date": "2025-10-01",
        "Source": "Instagram",
        "Package Category": "Gold",
    },
    {
        "id": 4,
        "Client Name": "Rahul Nair",
        "Event Type": "Wedding",
        "Budget": "2,00,000",
        "Lead Source": "Website",
        "Status": "New Lead",
        "Created At": "2025-10-15",
    },
    {
        "id": 5,
        "Client Name": "Sara Khan",
        "Event Type": "Corporate",
        "Budget": "",
        "Status": "Contacted",
        "Created At": "2025-07-20",
    },
    {
        "id": 6,
        "Client Name": "Dev Patel",
        "Event Type": "",
        "Budget": "abc",
        "Status": "Lost",
        "Created At": "2025-05-02",
    },
]

EVENT_ROWS = [
    {
        "id": "E1",
        "clientName": "Asha Rao",
        "eventType": "Wedding",
        "eventDate": "2025-11-01",
        "venue": "Taj Palace",
        "price": 150000,
        "advance": 50000,
        "photographer": "P1",
        "status": "Confirmed",
    },
    {
        "id": "E2",
        "clientName": "Kiran Das",
        "eventType": "Engagement",
        "eventDate": "2025-10-22",
        "venue": "Lotus Hall",
        "price": "₹80,000",
        "advance": "₹20,000",
        "photographer": "P9",
        "status": "Pending",
    },
    {
        "id": "E3",
        "clientName": "Vikram Shah",
        "eventType": "Birthday",
        "eventDate": "2025-09-10",
        "venue": "Home",
        "price": 40000,
        "advance": 10000,
        "status": "Completed",
    },
    {
        "id": "E4",
        "clientName": "Nisha Roy",
        "eventType": "Wedding",
        "eventDate": "2026-01-10",
        "status": "Confirmed",
    },
]

PAYMENT_ROWS = [
    {
        "id": "PAY1",
        "leadId": 1,
        "clientName": "Asha Rao",
        "amount": "₹50,000",
        "paymentType": "Advance",
        "paymentMethod": "UPI",
        "paymentDate": "2025-10-05",
        "status": "Received",
    },
    {
        "id": "PAY2",
        "leadId": "2",
        "clientName": "Vikram Shah",
        "amount": 40000,
        "paymentType": "Full",
        "paymentMethod": "Bank Transfer",
        "paymentDate": "2025-09-01",
        "status": "Received",
    },
    {
        "id": "PAY3",
        "leadId": 3,
        "clientName": "Meera Iyer",
        "amount": "20,000",
        "paymentType": "Advance",
        "paymentDate": "2025-09-15",
        "status": "Received",
    },
    {
        "id": "PAY4",
        "leadId": 3,
        "clientName": "Meera Iyer",
        "amount": "10000.50",
        "paymentType": "Balance",
        "paymentDate": "2025-10-10",
        "status": "Pending",
    },
    {
        "id": "PAY5",
        "leadId": 99,
        "clientName": "Walk-in",
        "amount": 5000,
        "paymentType": "Full",
        "paymentDate": "2025-10-12",
        "status": "Received",
    },
]

PHOTOGRAPHER_ROWS = [
    {"id": "P1", "name": "Arjun"},
    {"id": "P2", "name": "Priya"},
]


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def lead_rows():
    return copy.deepcopy(LEAD_ROWS)


@pytest.fixture
def event_rows():
    return copy.deepcopy(EVENT_ROWS)


@pytest.fixture
def payment_rows():
    return copy.deepcopy(PAYMENT_ROWS)


@pytest.fixture
def photographer_rows():
    return copy.deepcopy(PHOTOGRAPHER_ROWS)


@pytest.fixture
def snapshot(lead_rows, event_rows, payment_rows, photographer_rows):
    return {
        "leads": lead_rows,
        "events": event_rows,
        "payments": payment_rows,
        "photographers": photographer_rows,
    }
