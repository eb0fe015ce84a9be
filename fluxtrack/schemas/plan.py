"""Pydantic schemas for nutrition plan API."""

from enum import Enum

from pydantic import Field

from fluxtrack.schemas.common import CamelModel


class PlanStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class RecalibrationOptionType(str, Enum):
    INCREASE_DEFICIT = "increase_deficit"
    EXTEND_TIMELINE = "extend_timeline"
    REVISE_GOAL = "revise_goal"
    KEEP_CURRENT = "keep_current"


class WeeklyTarget(CamelModel):
    week_number: int
    start_date: str
    end_date: str
    projected_weight_kg: float
    projected_tdee: int = Field(..., alias="projectedTDEE")
    target_intake_kcal: int
    target_carbs_g: int
    target_protein_g: int
    target_fats_g: int
    actual_weight_kg: float | None = None
    actual_intake_kcal: int | None = None
    days_logged: int = 0


class NutritionPlan(CamelModel):
    id: int
    name: str | None = None
    start_date: str
    start_weight_kg: float
    goal_weight_kg: float
    duration_weeks: int
    required_weekly_change_kg: float
    required_daily_deficit_kcal: float
    status: PlanStatus
    current_week: int = 0  # 0 before start, > duration_weeks after end
    weekly_targets: list[WeeklyTarget] = Field(default_factory=list)
    last_recalibrated_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class CreatePlanRequest(CamelModel):
    """Body for POST /plans."""

    name: str | None = None
    start_date: str = Field(..., description="YYYY-MM-DD")
    start_weight_kg: float = Field(..., gt=0)
    goal_weight_kg: float = Field(..., gt=0)
    duration_weeks: int = Field(..., ge=4, le=104)


class RecalibrationDetails(CamelModel):
    before_goal_weight_kg: float
    before_duration_weeks: int
    before_required_weekly_change_kg: float
    before_daily_deficit_kcal: float
    after_goal_weight_kg: float
    after_duration_weeks: int
    after_required_weekly_change_kg: float
    after_daily_deficit_kcal: float
    current_week: int
    actual_weight_kg: float
    feasibility_tag: str | None = None
    impact: str | None = None


class RecalibrationRecord(CamelModel):
    """Append-only history entry written by the server on each recalibration."""

    id: int
    plan_id: int
    action_type: RecalibrationOptionType
    details: RecalibrationDetails
    created_at: str
