"""Apps Script client: pulls the CRM sheets the dashboard is built from.

The spreadsheet backend answers ``POST {"action": "getLeads"}`` with
``{"success": true, "leads": [...]}`` (likewise events, payments and
photographers). All four are requested at once; a source that fails after its
retries comes back as ``SourceUnavailable`` so the dashboard can degrade that
part instead of showing it as empty.
"""

from __future__ import annotations

import json
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import requests

from reconcile.dashboard import SourceUnavailable
from reconcile.errors import SourceFetchError

logger = logging.getLogger(__name__)

APPS_SCRIPT_URL = os.environ.get("APPS_SCRIPT_URL", "")

SOURCE_ACTIONS = {
    "leads": "getLeads",
    "events": "getEvents",
    "payments": "getPayments",
    "photographers": "getPhotographers",
}

Snapshot = Dict[str, Union[List[Dict[str, Any]], SourceUnavailable]]


class AppsScriptClient:
    def __init__(
        self,
        url: str = APPS_SCRIPT_URL,
        *,
        timeout: int = 30,
        max_attempts: int = 3,
        delay: float = 1.0,
        backoff: float = 2.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.url = url
        self.timeout = timeout
        self.max_attempts = max(1, int(max_attempts))
        self.delay = delay
        self.backoff = backoff
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", "StudioDashboard/1.0")
        self._sleep = sleep

    @property
    def is_configured(self) -> bool:
        return bool(self.url)

    def _post(self, source: str, action: str) -> Dict[str, Any]:
        # text/plain keeps Apps Script reading the body from postData.contents
        resp = self.session.post(
            self.url,
            data=json.dumps({"action": action}),
            headers={"Content-Type": "text/plain"},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        try:
            return resp.json()
        except ValueError as exc:
            raise SourceFetchError(source, f"invalid JSON response: {exc}") from exc

    def fetch(self, source: str, action: Optional[str] = None) -> List[Dict[str, Any]]:
        if not self.is_configured:
            raise SourceFetchError(source, "APPS_SCRIPT_URL is not set")
        action = action or SOURCE_ACTIONS[source]

        current_delay = self.delay
        for attempt in range(1, self.max_attempts + 1):
            try:
                payload = self._post(source, action)
                break
            except (requests.RequestException, SourceFetchError) as exc:
                if attempt == self.max_attempts:
                    logger.error("%s failed after %d attempts: %s", action, self.max_attempts, exc)
                    raise SourceFetchError(source, str(exc)) from exc
                logger.warning(
                    "%s failed (attempt %d/%d): %s. Retrying in %.1fs...",
                    action, attempt, self.max_attempts, exc, current_delay,
                )
                self._sleep(current_delay)
                current_delay *= self.backoff

        if not isinstance(payload, dict):
            raise SourceFetchError(source, f"expected a JSON object, got {type(payload).__name__}")
        if not payload.get("success"):
            raise SourceFetchError(source, str(payload.get("message") or payload.get("error") or "request not successful"))
        rows = payload.get(source) or []
        if not isinstance(rows, list):
            raise SourceFetchError(source, f"expected a list under '{source}', got {type(rows).__name__}")
        logger.info("  → %s: %d rows", source, len(rows))
        return rows


def fetch_snapshot(client: AppsScriptClient, sources: Mapping[str, str] = SOURCE_ACTIONS) -> Snapshot:
    """Request every source concurrently and wait for all of them."""
    with ThreadPoolExecutor(max_workers=len(sources), thread_name_prefix="sheets") as pool:
        futures = {name: pool.submit(client.fetch, name, action) for name, action in sources.items()}
        snapshot: Snapshot = {}
        for name, future in futures.items():
            try:
                snapshot[name] = future.result()
            except SourceFetchError as exc:
                logger.warning("Source %s unavailable: %s", name, exc.message)
                snapshot[name] = SourceUnavailable(reason=exc.message)
    return snapshot
