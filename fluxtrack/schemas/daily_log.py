"""
Pydantic schemas for the daily log API.

Display models (TrainingSession, ActualTrainingSession, CreateDailyLogRequest) may carry the
UI-only `_id` list key and the server-assigned `sessionOrder`. Wire payloads never do; requests
are always built through to_create_payload() / to_actual_payload().
"""

from enum import Enum

from pydantic import ConfigDict, Field

from fluxtrack.schemas.common import CamelModel


class TrainingType(str, Enum):
    REST = "rest"
    QIGONG = "qigong"
    WALKING = "walking"
    GMB = "gmb"
    RUN = "run"
    ROW = "row"
    CYCLE = "cycle"
    HIIT = "hiit"
    STRENGTH = "strength"
    CALISTHENICS = "calisthenics"
    MOBILITY = "mobility"
    MIXED = "mixed"


class DayType(str, Enum):
    PERFORMANCE = "performance"
    FATBURNER = "fatburner"
    METABOLIZE = "metabolize"


# --- display models -------------------------------------------------------


class TrainingSession(CamelModel):
    """Planned session as held by the UI or returned by the server."""

    client_id: str | None = Field(None, alias="_id")  # list key, never sent
    session_order: int | None = None  # assigned by server, never sent
    type: TrainingType
    duration_min: int = Field(..., ge=0)
    notes: str | None = None


class ActualTrainingSession(TrainingSession):
    """Session logged after completion."""

    perceived_intensity: int | None = Field(None, ge=1, le=10)  # RPE


class CreateDailyLogRequest(CamelModel):
    """Morning check-in as entered in the UI."""

    date: str | None = Field(None, description="YYYY-MM-DD; server default today")
    weight_kg: float = Field(..., gt=0)
    body_fat_percent: float | None = None
    resting_heart_rate: int | None = None
    hrv_ms: float | None = None
    sleep_quality: int = Field(..., ge=1, le=100)
    sleep_hours: float | None = None
    planned_training_sessions: list[TrainingSession] = Field(default_factory=list)
    day_type: DayType | None = None


# --- wire payloads --------------------------------------------------------


class PlannedSessionPayload(CamelModel):
    model_config = ConfigDict(extra="forbid")

    type: TrainingType
    duration_min: int
    notes: str | None = None


class ActualSessionPayload(CamelModel):
    model_config = ConfigDict(extra="forbid")

    type: TrainingType
    duration_min: int
    perceived_intensity: int | None = None
    notes: str | None = None


class CreateDailyLogPayload(CamelModel):
    """Body for POST /logs."""

    model_config = ConfigDict(extra="forbid")

    date: str | None = None
    weight_kg: float
    body_fat_percent: float | None = None
    resting_heart_rate: int | None = None
    hrv_ms: float | None = None
    sleep_quality: int
    sleep_hours: float | None = None
    planned_training_sessions: list[PlannedSessionPayload]
    day_type: DayType | None = None


class UpdateActualTrainingPayload(CamelModel):
    """Body for PATCH /logs/{date}/actual-training."""

    actual_sessions: list[ActualSessionPayload]


class UpdateActiveCaloriesPayload(CamelModel):
    """Body for PATCH /logs/{date}/active-calories. None clears the value."""

    active_calories_burned: int | None = Field(..., ge=0)

    def to_wire(self) -> dict:
        # null is meaningful here
        return self.model_dump(by_alias=True, mode="json")


# --- server responses -----------------------------------------------------


class MacroPoints(CamelModel):
    carbs: int
    protein: int
    fats: int


class MealTargets(CamelModel):
    breakfast: MacroPoints
    lunch: MacroPoints
    dinner: MacroPoints


class DailyTargets(CamelModel):
    total_carbs_g: int
    total_protein_g: int
    total_fats_g: int
    total_calories: int
    estimated_tdee: int | None = Field(None, alias="estimatedTDEE")
    meals: MealTargets
    fruit_g: int
    veggies_g: int
    water_l: float
    day_type: DayType


class TrainingSummary(CamelModel):
    session_count: int
    total_duration_min: int
    total_load_score: float
    summary: str


class RecoveryScoreBreakdown(CamelModel):
    score: float
    rest_component: float
    acr_component: float
    sleep_component: float


class DailyLog(CamelModel):
    """One log per calendar date."""

    date: str
    weight_kg: float
    body_fat_percent: float | None = None
    resting_heart_rate: int | None = None
    hrv_ms: float | None = None
    sleep_quality: int
    sleep_hours: float | None = None
    planned_training_sessions: list[TrainingSession] = Field(default_factory=list)
    actual_training_sessions: list[ActualTrainingSession] = Field(default_factory=list)
    training_summary: TrainingSummary | None = None
    day_type: DayType
    calculated_targets: DailyTargets | None = None
    active_calories_burned: int | None = None
    estimated_tdee: int | None = Field(None, alias="estimatedTDEE")
    formula_tdee: int | None = Field(None, alias="formulaTDEE")
    tdee_source_used: str | None = None
    tdee_confidence: float | None = None
    data_points_used: int | None = None
    recovery_score: RecoveryScoreBreakdown | None = None
    created_at: str | None = None
    updated_at: str | None = None


# --- mapping --------------------------------------------------------------


def to_planned_payload(session: TrainingSession) -> PlannedSessionPayload:
    return PlannedSessionPayload(type=session.type, duration_min=session.duration_min, notes=session.notes)


def to_create_payload(request: CreateDailyLogRequest) -> CreateDailyLogPayload:
    """Map the UI request to the POST /logs body, dropping `_id` and `sessionOrder`."""
    return CreateDailyLogPayload(
        date=request.date,
        weight_kg=request.weight_kg,
        body_fat_percent=request.body_fat_percent,
        resting_heart_rate=request.resting_heart_rate,
        hrv_ms=request.hrv_ms,
        sleep_quality=request.sleep_quality,
        sleep_hours=request.sleep_hours,
        planned_training_sessions=[to_planned_payload(s) for s in request.planned_training_sessions],
        day_type=request.day_type,
    )


def to_actual_payload(sessions: list[ActualTrainingSession]) -> UpdateActualTrainingPayload:
    """Map actual sessions to the PATCH body, dropping `_id` and `sessionOrder`."""
    return UpdateActualTrainingPayload(
        actual_sessions=[
            ActualSessionPayload(
                type=s.type,
                duration_min=s.duration_min,
                perceived_intensity=s.perceived_intensity,
                notes=s.notes,
            )
            for s in sessions
        ]
    )


def strip_server_fields(sessions: list[ActualTrainingSession]) -> list[ActualTrainingSession]:
    """Copy of `sessions` without server ordering or UI keys."""
    return [s.model_copy(update={"session_order": None, "client_id": None}) for s in sessions]


def recreate_request(log: DailyLog) -> CreateDailyLogRequest:
    """Request that re-creates `log` from its own inputs."""
    return CreateDailyLogRequest(
        date=log.date,
        weight_kg=log.weight_kg,
        body_fat_percent=log.body_fat_percent,
        resting_heart_rate=log.resting_heart_rate,
        hrv_ms=log.hrv_ms,
        sleep_quality=log.sleep_quality,
        sleep_hours=log.sleep_hours,
        planned_training_sessions=[
            s.model_copy(update={"session_order": None, "client_id": None})
            for s in log.planned_training_sessions
        ],
        day_type=log.day_type,
    )
