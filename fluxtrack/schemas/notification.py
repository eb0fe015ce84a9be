"""Pydantic schema for the weekly strategy (flux) notification."""

from pydantic import Field

from fluxtrack.schemas.common import CamelModel


class FluxNotification(CamelModel):
    """Server-computed advisory proposing a new daily energy target."""

    id: int
    previous_tdee: int = Field(..., alias="previousTDEE")
    new_tdee: int = Field(..., alias="newTDEE")
    delta_kcal: int
    reason: str
    created_at: str | None = None
