"""Core (UI-agnostic) reconciliation engine for the studio CRM dashboard.

This package contains:
- field normalization (sheet rows -> typed, frozen records)
- currency parsing driven by a locale descriptor
- the upcoming-events merger, payment ledgers and status classification
- monthly / categorical aggregations (pandas)
- chart helpers (Altair -> Vega-Lite spec dict)
- the dashboard facade returning one JSON-serializable result
"""

from reconcile.dashboard import DashboardResult, SourceUnavailable, compute_dashboard

__all__ = ["DashboardResult", "SourceUnavailable", "compute_dashboard"]
