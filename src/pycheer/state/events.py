"""Actions dispatched to the store.

Every state change goes through one of these frozen actions. Async thunks
emit a ``pending`` action when dispatched and exactly one ``fulfilled`` or
``rejected`` action when their backend call settles.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SliceName(StrEnum):
    AUTH = "auth"
    COMPETITIONS = "competitions"
    DIVISIONS = "divisions"
    NEWS = "news"
    PROVINCES = "provinces"
    JUDGES = "judges"
    LICENSE_COURSES = "license_courses"
    PUBLIC_IMAGES = "public_images"
    COACHES = "coaches"


class SliceStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ActionPhase(StrEnum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


class ThunkMeta(BaseModel):
    """Bookkeeping attached to the three actions of one thunk run."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    request_id: int = Field(..., ge=1, description="Monotonic per-store request sequence number")
    phase: ActionPhase
    arg: Any = None
    completed_at: datetime | None = Field(
        default=None,
        description="Store clock reading when the backend call settled",
    )


class Action(BaseModel):
    """A normalized state change request.

    ``type`` is ``"<slice>/<name>"`` for plain actions and
    ``"<slice>/<thunk>/<phase>"`` for thunk lifecycle actions.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: str
    payload: Any = None
    error: str | None = None
    meta: ThunkMeta | None = None

    @field_validator("type")
    @classmethod
    def _normalize_type(cls, value: str) -> str:
        action_type = value.strip()
        if "/" not in action_type:
            raise ValueError("action type must be '<slice>/<name>'")
        return action_type

    @property
    def slice_name(self) -> str:
        return self.type.split("/", 1)[0]

    @property
    def request_id(self) -> int | None:
        return self.meta.request_id if self.meta is not None else None


def action_creator(action_type: str):
    """Return a factory building plain actions of *action_type*."""

    def _create(payload: Any = None) -> Action:
        return Action(type=action_type, payload=payload)

    _create.type = action_type  # type: ignore[attr-defined]
    return _create
