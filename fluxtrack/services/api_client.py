"""
Tracker API client: the single boundary between the stores and the HTTP server.

request() normalizes every non-2xx response and transport failure into ApiError and every
cancellation into RequestCancelled. 404 is not special here; the endpoint functions below
decide when "not found" is a valid empty state.
"""
import logging
from typing import Any

import httpx

from fluxtrack.core.cancellation import CancelToken, RequestCancelled
from fluxtrack.schemas.common import ErrorBody, ErrorCode
from fluxtrack.schemas.daily_log import (
    ActualTrainingSession,
    CreateDailyLogRequest,
    DailyLog,
    UpdateActiveCaloriesPayload,
    to_actual_payload,
    to_create_payload,
)
from fluxtrack.schemas.notification import FluxNotification
from fluxtrack.schemas.plan import (
    CreatePlanRequest,
    NutritionPlan,
    RecalibrationOptionType,
    RecalibrationRecord,
    WeeklyTarget,
)
from fluxtrack.schemas.profile import UserProfile
from fluxtrack.services.http_client import get_http_client

logger = logging.getLogger(__name__)

WRITE_METHODS = frozenset({"POST", "PUT", "PATCH"})
JSON_HEADERS = {"Content-Type": "application/json"}


class ApiError(Exception):
    """Any failed API call: non-2xx status, transport failure or unreadable response."""

    def __init__(self, status: int, code: str, message: str | None = None) -> None:
        self.status = status
        self.code = code
        self.message = message or code
        super().__init__(self.message)

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, code={self.code!r}, message={self.message!r})"


def _log_response_error(method: str, path: str, response: httpx.Response) -> None:
    """Log HTTP error without dumping the whole body."""
    body = (response.text or "")[:500]
    logger.warning("Tracker API %s %s -> %s body=%s", method, path, response.status_code, body)


def error_message(exc: Exception, fallback: str) -> str:
    """Message a store shows for a failed call. Unexpected exceptions are logged with their traceback."""
    if isinstance(exc, ApiError):
        return exc.message
    logger.exception(fallback)
    return fallback


def _error_from_response(response: httpx.Response) -> ApiError:
    try:
        body = ErrorBody.model_validate(response.json())
    except ValueError:
        # Not JSON, or JSON without an "error" code
        return ApiError(response.status_code, ErrorCode.REQUEST_FAILED.value)
    return ApiError(response.status_code, body.error, body.message)


async def request(
    method: str,
    path: str,
    body: Any = None,
    cancel_token: CancelToken | None = None,
    params: dict[str, Any] | None = None,
) -> Any:
    """Perform one API call and return the decoded JSON body (None for an empty body)."""
    method = method.upper()
    kwargs: dict[str, Any] = {}
    if params:
        kwargs["params"] = params
    if method in WRITE_METHODS:
        kwargs["headers"] = JSON_HEADERS
        if body is not None:
            kwargs["json"] = body
    client = get_http_client()
    try:
        call = client.request(method, path, **kwargs)
        response = await (cancel_token.run(call) if cancel_token is not None else call)
    except RequestCancelled:
        logger.debug("Tracker API %s %s cancelled", method, path)
        raise
    except httpx.TransportError as e:
        logger.warning("Tracker API %s %s failed: %s", method, path, e)
        raise ApiError(0, ErrorCode.REQUEST_FAILED.value, f"Network request failed: {e}") from e

    if not response.is_success:
        _log_response_error(method, path, response)
        raise _error_from_response(response)
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as e:
        raise ApiError(response.status_code, ErrorCode.INVALID_RESPONSE.value, "Server returned invalid JSON") from e


async def _get_or_none(path: str, cancel_token: CancelToken | None) -> Any:
    """GET where 404 means "nothing there yet"."""
    try:
        return await request("GET", path, cancel_token=cancel_token)
    except ApiError as e:
        if e.is_not_found:
            return None
        raise


# --- profile --------------------------------------------------------------


async def get_profile(cancel_token: CancelToken | None = None) -> UserProfile | None:
    data = await _get_or_none("/profile", cancel_token)
    return UserProfile.model_validate(data) if data is not None else None


async def save_profile(profile: UserProfile, cancel_token: CancelToken | None = None) -> UserProfile:
    data = await request("PUT", "/profile", profile.to_wire(), cancel_token)
    return UserProfile.model_validate(data)


# --- daily log ------------------------------------------------------------


async def get_today_log(cancel_token: CancelToken | None = None) -> DailyLog | None:
    data = await _get_or_none("/logs/today", cancel_token)
    return DailyLog.model_validate(data) if data is not None else None


async def get_log_by_date(log_date: str, cancel_token: CancelToken | None = None) -> DailyLog | None:
    data = await _get_or_none(f"/logs/{log_date}", cancel_token)
    return DailyLog.model_validate(data) if data is not None else None


async def create_daily_log(
    log_request: CreateDailyLogRequest,
    cancel_token: CancelToken | None = None,
) -> DailyLog:
    """POST /logs. Fails with 409 already_exists when a log for the date exists."""
    payload = to_create_payload(log_request)
    data = await request("POST", "/logs", payload.to_wire(), cancel_token)
    return DailyLog.model_validate(data)


async def delete_today_log(cancel_token: CancelToken | None = None) -> None:
    """DELETE /logs/today. A 404 is raised; callers decide whether it matters."""
    await request("DELETE", "/logs/today", cancel_token=cancel_token)


async def update_actual_training(
    log_date: str,
    sessions: list[ActualTrainingSession],
    cancel_token: CancelToken | None = None,
) -> DailyLog:
    """PATCH the actual-training sub-list of the log for `log_date`."""
    payload = to_actual_payload(sessions)
    data = await request("PATCH", f"/logs/{log_date}/actual-training", payload.to_wire(), cancel_token)
    return DailyLog.model_validate(data)


async def update_active_calories(
    log_date: str,
    calories: int | None,
    cancel_token: CancelToken | None = None,
) -> DailyLog:
    """PATCH the active calories burned on the log for `log_date`. None clears the value."""
    payload = UpdateActiveCaloriesPayload(active_calories_burned=calories)
    data = await request("PATCH", f"/logs/{log_date}/active-calories", payload.to_wire(), cancel_token)
    return DailyLog.model_validate(data)


# --- nutrition plan -------------------------------------------------------


async def get_active_plan(cancel_token: CancelToken | None = None) -> NutritionPlan | None:
    # The server answers 200 with JSON null when no plan is active; older builds answer 404
    data = await _get_or_none("/plans/active", cancel_token)
    return NutritionPlan.model_validate(data) if data is not None else None


async def get_plan(plan_id: int, cancel_token: CancelToken | None = None) -> NutritionPlan:
    data = await request("GET", f"/plans/{plan_id}", cancel_token=cancel_token)
    return NutritionPlan.model_validate(data)


async def create_plan(plan_request: CreatePlanRequest, cancel_token: CancelToken | None = None) -> NutritionPlan:
    """POST /plans. Fails with 409 active_plan_exists while another plan is active."""
    data = await request("POST", "/plans", plan_request.to_wire(), cancel_token)
    return NutritionPlan.model_validate(data)


async def _plan_action(plan_id: int, action: str, cancel_token: CancelToken | None) -> None:
    await request("POST", f"/plans/{plan_id}/{action}", cancel_token=cancel_token)


async def complete_plan(plan_id: int, cancel_token: CancelToken | None = None) -> None:
    await _plan_action(plan_id, "complete", cancel_token)


async def abandon_plan(plan_id: int, cancel_token: CancelToken | None = None) -> None:
    await _plan_action(plan_id, "abandon", cancel_token)


async def pause_plan(plan_id: int, cancel_token: CancelToken | None = None) -> None:
    await _plan_action(plan_id, "pause", cancel_token)


async def resume_plan(plan_id: int, cancel_token: CancelToken | None = None) -> None:
    await _plan_action(plan_id, "resume", cancel_token)


async def recalibrate_plan(
    plan_id: int,
    option_type: RecalibrationOptionType,
    cancel_token: CancelToken | None = None,
) -> NutritionPlan:
    """Apply one recalibration option. The response is the full updated plan."""
    body = {"type": RecalibrationOptionType(option_type).value}
    data = await request("POST", f"/plans/{plan_id}/recalibrate", body, cancel_token)
    return NutritionPlan.model_validate(data)


async def get_recalibration_history(
    plan_id: int,
    cancel_token: CancelToken | None = None,
) -> list[RecalibrationRecord]:
    data = await request("GET", f"/plans/{plan_id}/recalibrations", cancel_token=cancel_token)
    if not isinstance(data, list):
        data = [data] if data else []
    return [RecalibrationRecord.model_validate(item) for item in data]


async def get_current_week_target(cancel_token: CancelToken | None = None) -> WeeklyTarget | None:
    """Current week's target; None when no plan is active or the plan has not started/ended."""
    data = await _get_or_none("/plans/current-week", cancel_token)
    return WeeklyTarget.model_validate(data) if data is not None else None


# --- weekly strategy notification ----------------------------------------


async def get_metabolic_notification(cancel_token: CancelToken | None = None) -> FluxNotification | None:
    data = await _get_or_none("/metabolic/notification", cancel_token)
    return FluxNotification.model_validate(data) if data is not None else None


async def dismiss_metabolic_notification(notification_id: int, cancel_token: CancelToken | None = None) -> None:
    await request("POST", f"/metabolic/notification/{notification_id}/dismiss", cancel_token=cancel_token)
