"""
Store for one day's log (today unless a date is given): load, create, replace (delete + create +
restore), actual-training and active-calories updates, and delete.

Writes report failures only through `save_error`, so a failed write never hides a log that
was loaded successfully.
"""
import logging
from collections.abc import Awaitable, Callable

from pydantic import BaseModel, ConfigDict

from fluxtrack.config import settings
from fluxtrack.core.cancellation import CancelToken, RequestCancelled
from fluxtrack.core.store import Store
from fluxtrack.schemas.daily_log import ActualTrainingSession, CreateDailyLogRequest, DailyLog
from fluxtrack.services import api_client
from fluxtrack.services.api_client import ApiError, error_message
from fluxtrack.services.log_replace import ReplaceError, ReplaceFailure, replace_log

logger = logging.getLogger(__name__)


class DailyLogState(BaseModel):
    model_config = ConfigDict(frozen=True)

    log: DailyLog | None = None
    loading: bool = False
    saving: bool = False
    load_error: str | None = None
    save_error: str | None = None
    replace_failure: ReplaceFailure | None = None  # set when the last replace failed

    @property
    def has_log_today(self) -> bool:
        return self.log is not None


class DailyLogStore(Store[DailyLogState]):
    def __init__(self, compensate_replace: bool | None = None, log_date: str | None = None) -> None:
        super().__init__(DailyLogState())
        self.log_date = log_date  # YYYY-MM-DD; None follows "today" on the server
        if compensate_replace is None:
            compensate_replace = settings.replace_compensation_enabled
        self._compensate_replace = compensate_replace

    async def load(self, cancel_token: CancelToken | None = None) -> None:
        """Fetch the store's log. Only the most recently started load may change the state."""
        seq, token = self._begin_read(cancel_token)
        self._update(loading=True, load_error=None)
        try:
            if self.log_date is not None:
                log = await api_client.get_log_by_date(self.log_date, cancel_token=token)
            else:
                log = await api_client.get_today_log(cancel_token=token)
        except RequestCancelled:
            return
        except Exception as e:
            if self._is_current(seq, token):
                self._update(log=None, loading=False, load_error=error_message(e, "Failed to load log"))
            return
        if self._is_current(seq, token):
            self._update(log=log, loading=False)

    refresh = load

    async def create(
        self,
        log_request: CreateDailyLogRequest,
        cancel_token: CancelToken | None = None,
    ) -> DailyLog | None:
        """Create today's log. Returns it, or None on failure (e.g. 409 already_exists)."""
        self._update(saving=True)
        try:
            log = await api_client.create_daily_log(log_request, cancel_token=cancel_token)
        except RequestCancelled:
            return None
        except Exception as e:
            self._update(save_error=error_message(e, "Failed to create log"))
            return None
        else:
            self._update(log=log, save_error=None, replace_failure=None)
            return log
        finally:
            self._update(saving=False)

    async def replace(
        self,
        log_request: CreateDailyLogRequest,
        cancel_token: CancelToken | None = None,
    ) -> DailyLog | None:
        """Edit today's log by deleting and re-creating it, keeping its actual training.

        Returns the new log, including when only the training restore failed (then
        `save_error` tells the user to re-enter their sessions). Returns None when the
        delete or create step failed.
        """
        self._update(saving=True)
        try:
            log = await replace_log(
                self._state.log,
                log_request,
                cancel_token=cancel_token,
                compensate=self._compensate_replace,
            )
        except RequestCancelled:
            return None
        except ReplaceError as e:
            changes = {"save_error": e.failure.message, "replace_failure": e.failure}
            if e.log is not None:
                changes["log"] = e.log
            self._update(**changes)
            return e.log if e.partial else None
        except Exception as e:
            self._update(save_error=error_message(e, "Failed to update log"))
            return None
        else:
            self._update(log=log, save_error=None, replace_failure=None)
            return log
        finally:
            self._update(saving=False)

    async def _patch_log(
        self,
        call: Callable[[DailyLog], Awaitable[DailyLog]],
        fallback: str,
    ) -> DailyLog | None:
        current = self._state.log
        if current is None:
            return None
        self._update(saving=True)
        try:
            log = await call(current)
        except RequestCancelled:
            return None
        except Exception as e:
            self._update(save_error=error_message(e, fallback))
            return None
        else:
            self._update(log=log, save_error=None)
            return log
        finally:
            self._update(saving=False)

    async def update_actual(
        self,
        sessions: list[ActualTrainingSession],
        cancel_token: CancelToken | None = None,
    ) -> DailyLog | None:
        """Replace the actual training sessions of the held log. No-op without a log."""
        return await self._patch_log(
            lambda log: api_client.update_actual_training(log.date, sessions, cancel_token=cancel_token),
            "Failed to update actual training",
        )

    async def update_active_calories(
        self,
        calories: int | None,
        cancel_token: CancelToken | None = None,
    ) -> DailyLog | None:
        """Set (or clear, with None) the active calories burned on the held log. No-op without a log."""
        logger.debug("Updating active calories to %s", calories)
        return await self._patch_log(
            lambda log: api_client.update_active_calories(log.date, calories, cancel_token=cancel_token),
            "Failed to update active calories",
        )

    async def delete(self, cancel_token: CancelToken | None = None) -> bool:
        """Delete today's log. A 404 counts as success."""
        self._update(saving=True)
        try:
            await api_client.delete_today_log(cancel_token=cancel_token)
        except RequestCancelled:
            return False
        except ApiError as e:
            if not e.is_not_found:
                self._update(save_error=e.message)
                return False
        except Exception as e:
            self._update(save_error=error_message(e, "Failed to delete log"))
            return False
        finally:
            self._update(saving=False)
        self._update(log=None, save_error=None, replace_failure=None)
        return True
