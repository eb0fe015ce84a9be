"""Pydantic schemas for the user profile API (GET/PUT /profile)."""

from enum import Enum

from pydantic import Field

from fluxtrack.schemas.common import CamelModel


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"


class Goal(str, Enum):
    LOSE_WEIGHT = "lose_weight"
    MAINTAIN = "maintain"
    GAIN_WEIGHT = "gain_weight"


class MealRatios(CamelModel):
    breakfast: float
    lunch: float
    dinner: float


class PointsConfig(CamelModel):
    carb_multiplier: float
    protein_multiplier: float
    fat_multiplier: float


class UserProfile(CamelModel):
    height_cm: float = Field(..., alias="height_cm")  # server spells this one in snake_case
    birth_date: str
    sex: Sex
    goal: Goal
    current_weight_kg: float | None = None
    target_weight_kg: float
    timeframe_weeks: int | None = None
    target_weekly_change_kg: float
    carb_ratio: float
    protein_ratio: float
    fat_ratio: float
    meal_ratios: MealRatios
    points_config: PointsConfig
    fruit_target_g: float
    veggie_target_g: float
    bmr_equation: str | None = None
    body_fat_percent: float | None = None
    tdee_source: str | None = None
    manual_tdee: float | None = Field(None, alias="manualTDEE")
    recalibration_tolerance: float | None = None
    created_at: str | None = None
    updated_at: str | None = None
