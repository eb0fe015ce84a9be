"""
Store for the nutrition plan the user is looking at and its lifecycle transitions.

Transitions return True/False. Failures go to the shared `error` slot and leave the held plan
untouched. With no held plan every transition returns False without a network call.
"""
import logging
from collections.abc import Awaitable, Callable

from pydantic import BaseModel, ConfigDict

from fluxtrack.core.cancellation import CancelToken, RequestCancelled
from fluxtrack.core.store import Store
from fluxtrack.schemas.plan import (
    CreatePlanRequest,
    NutritionPlan,
    RecalibrationOptionType,
    RecalibrationRecord,
    WeeklyTarget,
)
from fluxtrack.services import api_client
from fluxtrack.services.api_client import error_message
from fluxtrack.services.plan_lifecycle import (
    Confirmation,
    InvalidTransition,
    PlanAction,
    confirmation_for,
    next_status,
)

logger = logging.getLogger(__name__)


class PlanState(BaseModel):
    model_config = ConfigDict(frozen=True)

    plan: NutritionPlan | None = None
    loading: bool = False
    creating: bool = False
    error: str | None = None
    create_error: str | None = None
    current_week: WeeklyTarget | None = None
    recalibrations: list[RecalibrationRecord] = []


class PlanStore(Store[PlanState]):
    def __init__(self) -> None:
        super().__init__(PlanState())

    async def _read_plan(
        self,
        fetch: Callable[[CancelToken], Awaitable[NutritionPlan | None]],
        cancel_token: CancelToken | None,
    ) -> None:
        seq, token = self._begin_read(cancel_token)
        self._update(loading=True, error=None)
        try:
            plan = await fetch(token)
        except RequestCancelled:
            return
        except Exception as e:
            if self._is_current(seq, token):
                self._update(loading=False, error=error_message(e, "Failed to load plan"))
            return
        if self._is_current(seq, token):
            self._update(plan=plan, loading=False)

    async def refresh(self, cancel_token: CancelToken | None = None) -> None:
        """Re-read the active plan. None when no plan is active."""
        await self._read_plan(lambda t: api_client.get_active_plan(cancel_token=t), cancel_token)

    load = refresh

    async def _reload(self, plan_id: int) -> None:
        # By id, so a paused plan stays in view with its server status
        await self._read_plan(lambda t: api_client.get_plan(plan_id, cancel_token=t), None)

    async def create(
        self,
        plan_request: CreatePlanRequest,
        cancel_token: CancelToken | None = None,
    ) -> NutritionPlan | None:
        """Start a new plan. Fails with 409 while another plan is active."""
        self._update(creating=True, create_error=None)
        try:
            plan = await api_client.create_plan(plan_request, cancel_token=cancel_token)
        except RequestCancelled:
            return None
        except Exception as e:
            self._update(create_error=error_message(e, "Failed to create plan"))
            return None
        else:
            self._update(plan=plan, recalibrations=[], current_week=None)
            return plan
        finally:
            self._update(creating=False)

    async def _transition(
        self,
        action: PlanAction,
        call: Callable[[NutritionPlan], Awaitable[NutritionPlan | None]],
    ) -> bool:
        plan = self._state.plan
        if plan is None:
            return False
        try:
            next_status(plan.status, action)
        except InvalidTransition as e:
            logger.debug("Rejected plan transition: %s", e)
            self._update(error=str(e))
            return False
        try:
            result = await call(plan)
        except RequestCancelled:
            return False
        except Exception as e:
            self._update(error=error_message(e, f"Failed to {action.value} plan"))
            return False

        confirmation = confirmation_for(action)
        if confirmation == Confirmation.ADOPT_RESPONSE:
            self._update(plan=result, error=None)
        elif confirmation == Confirmation.REFETCH_PLAN:
            await self._reload(plan.id)
        else:
            await self.refresh()
        logger.info("Plan %s: %s", plan.id, action.value)
        return True

    async def complete(self, cancel_token: CancelToken | None = None) -> bool:
        return await self._transition(
            PlanAction.COMPLETE,
            lambda p: api_client.complete_plan(p.id, cancel_token=cancel_token),
        )

    async def abandon(self, cancel_token: CancelToken | None = None) -> bool:
        return await self._transition(
            PlanAction.ABANDON,
            lambda p: api_client.abandon_plan(p.id, cancel_token=cancel_token),
        )

    async def pause(self, cancel_token: CancelToken | None = None) -> bool:
        return await self._transition(
            PlanAction.PAUSE,
            lambda p: api_client.pause_plan(p.id, cancel_token=cancel_token),
        )

    async def resume(self, cancel_token: CancelToken | None = None) -> bool:
        return await self._transition(
            PlanAction.RESUME,
            lambda p: api_client.resume_plan(p.id, cancel_token=cancel_token),
        )

    async def recalibrate(
        self,
        option_type: RecalibrationOptionType | str,
        cancel_token: CancelToken | None = None,
    ) -> bool:
        """Apply a recalibration option. The response is adopted as-is; no re-fetch."""
        if self._state.plan is None:
            return False
        try:
            option = RecalibrationOptionType(option_type)
        except ValueError:
            self._update(error=f"Unknown recalibration option: {option_type}")
            return False
        return await self._transition(
            PlanAction.RECALIBRATE,
            lambda p: api_client.recalibrate_plan(p.id, option, cancel_token=cancel_token),
        )

    async def load_current_week(self, cancel_token: CancelToken | None = None) -> WeeklyTarget | None:
        """Read this week's target into `current_week` (None before start / after end)."""
        try:
            week = await api_client.get_current_week_target(cancel_token=cancel_token)
        except RequestCancelled:
            return None
        except Exception as e:
            self._update(error=error_message(e, "Failed to load current week"))
            return None
        self._update(current_week=week)
        return week

    async def load_recalibrations(self, cancel_token: CancelToken | None = None) -> list[RecalibrationRecord]:
        """Read the held plan's recalibration history. Empty without a plan."""
        plan = self._state.plan
        if plan is None:
            return []
        try:
            records = await api_client.get_recalibration_history(plan.id, cancel_token=cancel_token)
        except RequestCancelled:
            return []
        except Exception as e:
            self._update(error=error_message(e, "Failed to load recalibration history"))
            return []
        self._update(recalibrations=records)
        return records
