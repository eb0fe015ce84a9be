"""
Replace today's log on a server that only supports create and delete.

The edit runs as a saga:
  1. snapshot the current log's actual training sessions (without server ordering)
  2. delete today's log (404 tolerated)
  3. create the new log for the same date
  4. re-apply the snapshot through the actual-training update, if it was non-empty

Failure at 2 or 3 raises ReplaceError with no usable new log. Failure at 4 raises ReplaceError
carrying the log created at 3, which callers should keep. If 3 fails after 2 deleted the old
log, the old log is re-created from its own inputs when compensation is enabled.
"""
import logging
from enum import Enum

from pydantic import BaseModel

from fluxtrack.core.cancellation import CancelToken
from fluxtrack.schemas.daily_log import (
    ActualTrainingSession,
    CreateDailyLogRequest,
    DailyLog,
    recreate_request,
    strip_server_fields,
)
from fluxtrack.services import api_client
from fluxtrack.services.api_client import ApiError, error_message

logger = logging.getLogger(__name__)

RESTORE_PARTIAL_MESSAGE = (
    "Log saved, but today's actual training could not be restored. Please re-enter your training sessions."
)


class ReplaceStep(str, Enum):
    DELETE = "delete"
    CREATE = "create"
    RESTORE = "restore"


class ReplaceFailure(BaseModel):
    """What a failed replace left behind."""

    step: ReplaceStep
    message: str
    server_mutated: bool  # the previous log was deleted on the server
    compensated: bool = False  # the previous log was re-created after a failed create


class ReplaceError(Exception):
    def __init__(self, failure: ReplaceFailure, log: DailyLog | None = None) -> None:
        self.failure = failure
        self.log = log  # usable log the caller should hold, if any
        super().__init__(failure.message)

    @property
    def partial(self) -> bool:
        """True when the new log exists and only the training restore failed."""
        return self.failure.step == ReplaceStep.RESTORE


async def _compensate(previous: DailyLog, snapshot: list[ActualTrainingSession]) -> DailyLog | None:
    """Put the deleted log back. Returns the re-created log, or None if that failed too."""
    try:
        restored = await api_client.create_daily_log(recreate_request(previous))
        if snapshot:
            restored = await api_client.update_actual_training(restored.date, snapshot)
    except Exception:
        logger.exception("Could not re-create log for %s after failed replace", previous.date)
        return None
    logger.info("Re-created log for %s after failed replace", previous.date)
    return restored


async def replace_log(
    previous: DailyLog | None,
    log_request: CreateDailyLogRequest,
    cancel_token: CancelToken | None = None,
    compensate: bool = True,
) -> DailyLog:
    """Run the replace saga and return the new log. Raises ReplaceError or RequestCancelled.

    `cancel_token` is honoured until the delete step completes; after that the saga runs to the
    end so the caller's state matches the server.
    """
    snapshot = strip_server_fields(previous.actual_training_sessions) if previous else []
    if previous is not None:
        log_request = log_request.model_copy(update={"date": previous.date})

    try:
        await api_client.delete_today_log(cancel_token=cancel_token)
    except ApiError as e:
        if not e.is_not_found:
            raise ReplaceError(ReplaceFailure(step=ReplaceStep.DELETE, message=e.message, server_mutated=False)) from e

    try:
        created = await api_client.create_daily_log(log_request)
    except Exception as e:
        message = error_message(e, "Failed to save log")
        restored = None
        if previous is not None and compensate:
            restored = await _compensate(previous, snapshot)
        failure = ReplaceFailure(
            step=ReplaceStep.CREATE,
            message=message,
            server_mutated=previous is not None and restored is None,
            compensated=restored is not None,
        )
        raise ReplaceError(failure, log=restored) from e

    if not snapshot:
        return created
    try:
        return await api_client.update_actual_training(created.date, snapshot)
    except Exception as e:
        logger.warning("Log for %s re-created but actual training restore failed: %s", created.date, e)
        failure = ReplaceFailure(step=ReplaceStep.RESTORE, message=RESTORE_PARTIAL_MESSAGE, server_mutated=True)
        raise ReplaceError(failure, log=created) from e
