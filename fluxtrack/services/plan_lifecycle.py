"""
Nutrition plan lifecycle: which client actions are allowed from which status, and how each
transition is confirmed once the server accepts it.

    (none) --create--> active
    active --complete--> completed        (terminal)
    active --abandon--> abandoned         (terminal)
    active --pause--> paused --resume--> active
    paused --complete/abandon--> completed / abandoned
    active --recalibrate--> active        (targets change, status does not)
"""
from enum import Enum

from fluxtrack.schemas.plan import PlanStatus


class PlanAction(str, Enum):
    COMPLETE = "complete"
    ABANDON = "abandon"
    PAUSE = "pause"
    RESUME = "resume"
    RECALIBRATE = "recalibrate"


class Confirmation(str, Enum):
    """How the store learns the plan's state after a successful transition."""

    REFETCH_ACTIVE = "refetch_active"  # GET /plans/active; terminal plans drop out of it
    REFETCH_PLAN = "refetch_plan"  # GET /plans/{id}; keeps a paused plan in view
    ADOPT_RESPONSE = "adopt_response"  # the mutation's response is the new plan


TERMINAL_STATUSES = frozenset({PlanStatus.COMPLETED, PlanStatus.ABANDONED})

TRANSITIONS: dict[tuple[PlanStatus, PlanAction], PlanStatus] = {
    (PlanStatus.ACTIVE, PlanAction.COMPLETE): PlanStatus.COMPLETED,
    (PlanStatus.ACTIVE, PlanAction.ABANDON): PlanStatus.ABANDONED,
    (PlanStatus.ACTIVE, PlanAction.PAUSE): PlanStatus.PAUSED,
    (PlanStatus.PAUSED, PlanAction.RESUME): PlanStatus.ACTIVE,
    (PlanStatus.PAUSED, PlanAction.COMPLETE): PlanStatus.COMPLETED,
    (PlanStatus.PAUSED, PlanAction.ABANDON): PlanStatus.ABANDONED,
    (PlanStatus.ACTIVE, PlanAction.RECALIBRATE): PlanStatus.ACTIVE,
}

CONFIRMATIONS: dict[PlanAction, Confirmation] = {
    PlanAction.COMPLETE: Confirmation.REFETCH_ACTIVE,
    PlanAction.ABANDON: Confirmation.REFETCH_ACTIVE,
    PlanAction.PAUSE: Confirmation.REFETCH_PLAN,
    PlanAction.RESUME: Confirmation.REFETCH_PLAN,
    PlanAction.RECALIBRATE: Confirmation.ADOPT_RESPONSE,
}


class InvalidTransition(Exception):
    def __init__(self, status: PlanStatus, action: PlanAction) -> None:
        self.status = status
        self.action = action
        super().__init__(f"Cannot {action.value} a plan that is {status.value}")


def next_status(status: PlanStatus, action: PlanAction) -> PlanStatus:
    """Status the plan moves to, or InvalidTransition if `action` is not allowed from `status`."""
    try:
        return TRANSITIONS[(PlanStatus(status), PlanAction(action))]
    except KeyError:
        raise InvalidTransition(PlanStatus(status), PlanAction(action)) from None


def can_apply(status: PlanStatus, action: PlanAction) -> bool:
    return (PlanStatus(status), PlanAction(action)) in TRANSITIONS


def allowed_actions(status: PlanStatus) -> list[PlanAction]:
    """Actions the UI may offer for a plan in `status`."""
    return [action for (s, action) in TRANSITIONS if s == PlanStatus(status)]


def confirmation_for(action: PlanAction) -> Confirmation:
    return CONFIRMATIONS[PlanAction(action)]
