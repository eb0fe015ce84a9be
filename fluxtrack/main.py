"""
Session wiring: logging setup, the shared HTTP client and one instance of each store.

    async with TrackerSession() as session:
        await session.daily_log.load()
        session.daily_log.subscribe(render)
"""
from __future__ import annotations

import logging
import sys

import httpx

from fluxtrack.config import Settings, settings as default_settings
from fluxtrack.services.daily_log_store import DailyLogStore
from fluxtrack.services.http_client import close_http_client, init_http_client
from fluxtrack.services.notification_store import NotificationStore
from fluxtrack.services.plan_store import PlanStore
from fluxtrack.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings | None = None) -> None:
    """Print fluxtrack logs to stdout; DEBUG for the package when settings.debug is on."""
    settings = settings or default_settings
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stdout,
    )
    if settings.debug:
        logging.getLogger("fluxtrack").setLevel(logging.DEBUG)


class TrackerSession:
    """Owns the HTTP client and the stores for one user session."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self._transport = transport
        self.profile = ProfileStore()
        self.daily_log = DailyLogStore(compensate_replace=self.settings.replace_compensation_enabled)
        self.plan = PlanStore()
        self.notifications = NotificationStore()

    @property
    def stores(self) -> tuple:
        return (self.profile, self.daily_log, self.plan, self.notifications)

    async def start(self) -> None:
        self.settings.validate_config()
        init_http_client(
            base_url=self.settings.normalized_base_url,
            timeout=self.settings.request_timeout_seconds,
            transport=self._transport,
        )
        logger.info("Tracker session started against %s", self.settings.api_base_url)

    async def close(self) -> None:
        for store in self.stores:
            store.cancel()
        await close_http_client()
        logger.info("Tracker session closed")

    async def __aenter__(self) -> TrackerSession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
