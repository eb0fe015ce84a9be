"""Client-side data stores for the nutrition/training tracker API."""

from fluxtrack.main import TrackerSession, configure_logging
from fluxtrack.services.daily_log_store import DailyLogStore
from fluxtrack.services.notification_store import NotificationStore
from fluxtrack.services.plan_store import PlanStore
from fluxtrack.services.profile_store import ProfileStore

__all__ = [
    "DailyLogStore",
    "NotificationStore",
    "PlanStore",
    "ProfileStore",
    "TrackerSession",
    "configure_logging",
]
