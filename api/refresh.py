from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from api.sources import Snapshot
from reconcile.config import EngineConfig
from reconcile.dashboard import DashboardResult, compute_dashboard

logger = logging.getLogger(__name__)

JOB_ID = "dashboard-refresh"


@dataclass(frozen=True)
class RefreshConfig:
    interval_minutes: int = 5
    enabled: bool = True

    @classmethod
    def from_env(cls) -> "RefreshConfig":
        try:
            minutes = int(os.environ.get("REFRESH_MINUTES", "5"))
        except ValueError:
            minutes = 5
        enabled = os.environ.get("REFRESH_ENABLED", "1").strip().lower() not in {"0", "false", "no"}
        return cls(interval_minutes=max(1, minutes), enabled=enabled)


class DashboardRefresher:
    """Recomputes the dashboard from a fresh snapshot on a fixed interval.

    Every refresh is a full recomputation. Each run takes a generation number
    when it starts; if a newer run started while it was fetching, its result
    is dropped instead of replacing the newer one.
    """

    def __init__(
        self,
        fetch: Callable[[], Snapshot],
        *,
        engine_config: Optional[EngineConfig] = None,
        refresh_config: Optional[RefreshConfig] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        self._fetch = fetch
        self.engine_config = engine_config or EngineConfig()
        self.refresh_config = refresh_config or RefreshConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._generation = 0
        self._latest: Optional[DashboardResult] = None
        self._last_refresh: Optional[datetime] = None
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def latest(self) -> Optional[DashboardResult]:
        with self._lock:
            return self._latest

    @property
    def last_refresh(self) -> Optional[datetime]:
        with self._lock:
            return self._last_refresh

    def refresh(self) -> Optional[DashboardResult]:
        with self._lock:
            self._generation += 1
            generation = self._generation

        snapshot = self._fetch()
        result = compute_dashboard(
            snapshot.get("leads"),
            snapshot.get("events"),
            snapshot.get("payments"),
            snapshot.get("photographers", ()),
            config=self.engine_config,
            today=self._clock() if self._clock is not None else None,
        )

        with self._lock:
            if generation != self._generation:
                logger.info("Discarding refresh #%d; superseded by #%d", generation, self._generation)
                return None
            self._latest = result
            self._last_refresh = datetime.now()

        for name, state in result.sources.items():
            if state.get("status") != "ok":
                logger.warning("Dashboard built without %s: %s", name, state.get("reason"))
        for issue in result.data_quality:
            logger.warning(
                "Data quality: %s %s %s=%r (%s)",
                issue.source, issue.record_id, issue.field, issue.raw_value, issue.problem,
            )
        logger.info("Dashboard refreshed (#%d, %d upcoming events)", generation, len(result.upcoming_events))
        return result

    def _safe_refresh(self) -> None:
        try:
            self.refresh()
        except Exception:
            logger.exception("Scheduled dashboard refresh failed")

    def start(self) -> None:
        if not self.refresh_config.enabled or self._scheduler is not None:
            return
        self._scheduler = BackgroundScheduler(daemon=True)
        self._scheduler.add_job(
            self._safe_refresh,
            "interval",
            minutes=self.refresh_config.interval_minutes,
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            next_run_time=datetime.now(),
        )
        self._scheduler.start()
        logger.info("Refreshing every %d min", self.refresh_config.interval_minutes)

    def shutdown(self) -> None:
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
