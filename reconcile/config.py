from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from reconcile.currency import INR, CurrencyLocale, get_locale


DEDUP_KEY_NAMES = ("name_date", "record_id")


@dataclass(frozen=True)
class EngineConfig:
    currency: CurrencyLocale = field(default_factory=lambda: INR)
    timezone: str = "UTC"
    upcoming_window_months: int = 1
    recent_limit: int = 5
    revenue_months: int = 6
    dedup_key: str = "name_date"


def _as_int(value: object, default: int, *, low: int, high: int) -> int:
    try:
        out = int(value)  # type: ignore[arg-type]
    except Exception:
        out = default
    return max(low, min(high, out))


def normalize_config(raw: dict) -> EngineConfig:
    raw = raw or {}

    currency = raw.get("currency")
    locale = currency if isinstance(currency, CurrencyLocale) else get_locale(currency)

    timezone = str(raw.get("timezone") or "UTC").strip() or "UTC"
    try:
        ZoneInfo(timezone)
    except Exception:
        timezone = "UTC"

    dedup_key = str(raw.get("dedup_key") or "name_date").strip()
    if dedup_key not in DEDUP_KEY_NAMES:
        dedup_key = "name_date"

    return EngineConfig(
        currency=locale,
        timezone=timezone,
        upcoming_window_months=_as_int(raw.get("upcoming_window_months", 1), 1, low=1, high=12),
        recent_limit=_as_int(raw.get("recent_limit", 5), 5, low=1, high=100),
        revenue_months=_as_int(raw.get("revenue_months", 6), 6, low=1, high=36),
        dedup_key=dedup_key,
    )


def local_today(tz_name: str, now: Optional[datetime] = None) -> date:
    """Calendar date in ``tz_name``; sheet dates are read in that zone too."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(ZoneInfo(tz_name)).date()
