"""Best-effort mirroring of created charts to the remote chart service.

The remote service keeps a per-user record of created charts. Mirroring is
fire-and-forget: it runs on a background worker, never blocks the caller,
and any failure is logged without touching the local store.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import httpx
from django.conf import settings

logger = logging.getLogger(__name__)

SAVE_PATH = "/api/chart/save"


class RemoteChartMirror:
    """Client for the remote chart save endpoint.

    Args:
        base_url: Remote service base URL.
        token_provider: Callable returning the bearer credential (or None).
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (used by tests).
    """

    def __init__(
        self,
        *,
        base_url: str,
        token_provider: Callable[[], str | None],
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._timeout = timeout
        self._transport = transport
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="chart-mirror")

    def save(self, *, chart_type: str, from_excel_file: str, chart_config: dict[str, Any]) -> bool:
        """Send one chart to the remote service.

        Returns:
            True on a 2xx response; False (after logging) on any other outcome.
        """

        headers = {"Content-Type": "application/json"}
        token = self._token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        body = {"chartType": chart_type, "fromExcelFile": from_excel_file, "chartConfig": chart_config}
        try:
            with httpx.Client(base_url=self._base_url, timeout=self._timeout, transport=self._transport) as client:
                response = client.post(SAVE_PATH, json=body, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Remote chart save failed for %r: %s", from_excel_file, exc)
            return False
        if not response.is_success:
            logger.warning(
                "Remote chart save rejected for %r: HTTP %s",
                from_excel_file,
                response.status_code,
            )
            return False
        logger.info("Remote chart save succeeded for %r", from_excel_file)
        return True

    def submit(self, *, chart_type: str, from_excel_file: str, chart_config: dict[str, Any]) -> Future[bool]:
        """Queue a save on the background worker and return immediately."""

        return self._executor.submit(
            self.save,
            chart_type=chart_type,
            from_excel_file=from_excel_file,
            chart_config=chart_config,
        )


def mirror_from_settings() -> RemoteChartMirror | None:
    """Build the remote mirror configured in settings, or None when disabled."""

    base_url = getattr(settings, "CHARTS_REMOTE_BASE_URL", "")
    if not base_url:
        return None
    token = getattr(settings, "CHARTS_REMOTE_API_TOKEN", "") or None
    return RemoteChartMirror(
        base_url=base_url,
        token_provider=lambda: token,
        timeout=float(getattr(settings, "CHARTS_REMOTE_TIMEOUT_SECONDS", 10)),
    )
