"""Auth user and profile records."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pycheer.ingestion.normalize import safe_bool
from pycheer.models._base import CheerEnum, CheerRecord, CheerTimestamp


class ProfileRole(CheerEnum):
    ADMIN = "admin"
    COACH = "coach"
    ATHLETE = "athlete"
    JUDGE = "judge"
    USER = "user"
    UNKNOWN = "unknown"


class AuthUser(CheerRecord):
    """The user object returned by the auth provider."""

    email: str = ""
    user_metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: CheerTimestamp = None

    @property
    def display_name(self) -> str:
        """Metadata display name, falling back to the e-mail local part."""
        name = self.user_metadata.get("display_name")
        if isinstance(name, str) and name.strip():
            return name.strip()
        return self.email.split("@")[0] if self.email else ""


class Profile(CheerRecord):
    """Row of the ``profiles`` table linked 1:1 to an auth user."""

    email: str = ""
    display_name: str | None = None
    role: ProfileRole = ProfileRole.USER
    created_at: CheerTimestamp = None
    updated_at: CheerTimestamp = None
    user_id: str | None = None
    gender: str | None = None
    birth_date: str | None = None
    phone_number: str | None = None
    id_photo_url: str | None = None
    profile_photo_url: str | None = None
    is_verified: bool | None = None
    province_code: str | None = None
    member_code: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.ADMIN

    @field_validator("is_verified", mode="before")
    @classmethod
    def _coerce_verified(cls, value: Any) -> bool | None:
        if value is None:
            return None
        return safe_bool(value)
