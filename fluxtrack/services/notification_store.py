"""
Store for the pending weekly strategy (flux) notification.

Dismissal always clears the held notification, even when the dismiss call fails: the new
target is already authoritative on the server, the call only stops it being offered again.
"""
import logging

from pydantic import BaseModel, ConfigDict

from fluxtrack.core.cancellation import CancelToken, RequestCancelled
from fluxtrack.core.store import Store
from fluxtrack.schemas.notification import FluxNotification
from fluxtrack.services import api_client
from fluxtrack.services.api_client import error_message

logger = logging.getLogger(__name__)


class NotificationState(BaseModel):
    model_config = ConfigDict(frozen=True)

    notification: FluxNotification | None = None
    loading: bool = False
    error: str | None = None


class NotificationStore(Store[NotificationState]):
    def __init__(self) -> None:
        super().__init__(NotificationState())

    async def check_pending(self, cancel_token: CancelToken | None = None) -> None:
        """Fetch the pending notification, if any. Supersedes earlier checks."""
        seq, token = self._begin_read(cancel_token)
        self._update(loading=True, error=None)
        try:
            notification = await api_client.get_metabolic_notification(cancel_token=token)
        except RequestCancelled:
            return
        except Exception as e:
            if self._is_current(seq, token):
                self._update(loading=False, error=error_message(e, "Failed to fetch notification"))
            return
        if self._is_current(seq, token):
            self._update(notification=notification, loading=False)

    async def dismiss(self, notification_id: int, cancel_token: CancelToken | None = None) -> bool:
        """Dismiss on the server and clear locally. Returns False if the server call failed."""
        # A check still in flight must not bring the notification back
        self.cancel()
        try:
            await api_client.dismiss_metabolic_notification(notification_id, cancel_token=cancel_token)
        except RequestCancelled:
            return False
        except Exception as e:
            message = error_message(e, "Failed to dismiss notification")
            logger.warning("Dismiss of notification %s failed: %s", notification_id, message)
            self._update(notification=None, loading=False, error=message)
            return False
        self._update(notification=None, loading=False, error=None)
        return True
