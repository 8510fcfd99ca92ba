"""Auth slice: current session, user and profile.

``hydrated`` flips to true once, after the first session check settles, so
route guards can tell "not signed in" apart from "not known yet".
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict

from pycheer._constants import NO_ROWS_CODE, TABLE_PROFILES
from pycheer.exceptions import CheerApiError
from pycheer.models.profile import AuthUser, Profile, ProfileRole
from pycheer.session import AuthSession
from pycheer.state.events import Action, ActionPhase, SliceName, action_creator
from pycheer.state.policy import describe_error, is_stale_resolution
from pycheer.state.thunks import AsyncThunk, ThunkContext

_logger = logging.getLogger(__name__)


class AuthState(BaseModel):
    model_config = ConfigDict(frozen=True)

    session: AuthSession | None = None
    user: AuthUser | None = None
    profile: Profile | None = None
    hydrated: bool = False
    loading: bool = False
    error: str | None = None
    last_request_id: int = 0
    applied_request_id: int = 0


class AuthFetchResult(BaseModel):
    """Payload of a fulfilled ``fetch_session_and_profile``."""

    model_config = ConfigDict(frozen=True)

    session: AuthSession | None = None
    user: AuthUser | None = None
    profile: Profile | None = None
    profile_error: str | None = None


def default_profile_row(user: AuthUser, admin_emails: tuple[str, ...]) -> dict[str, Any]:
    """Row inserted for a user that has no ``profiles`` row yet."""
    email = (user.email or "").strip().lower()
    role = ProfileRole.ADMIN if email and email in admin_emails else ProfileRole.USER
    return {
        "id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "role": str(role),
    }


async def _load_or_create_profile(ctx: ThunkContext, user: AuthUser) -> Profile:
    try:
        row = await ctx.client.select_single(TABLE_PROFILES, filters={"id": user.id})
    except CheerApiError as exc:
        if exc.code != NO_ROWS_CODE:
            raise
        _logger.info("No profile for user %s, creating default profile", user.id)
        row = await ctx.client.insert(TABLE_PROFILES, default_profile_row(user, ctx.config.admin_emails))
    return Profile.model_validate(row)


async def _fetch_session_and_profile(ctx: ThunkContext, _arg: Any) -> AuthFetchResult:
    session = await ctx.client.auth.get_session()
    if session is None:
        return AuthFetchResult()
    user = session.user
    try:
        profile = await _load_or_create_profile(ctx, user)
    except Exception as exc:
        message = describe_error(exc, "Failed to load profile")
        _logger.warning("Profile fetch failed for user %s: %s", user.id, message)
        return AuthFetchResult(session=session, user=user, profile_error=message)
    return AuthFetchResult(session=session, user=user, profile=profile)


class AuthSlice:
    """Session/profile slice with its actions."""

    name = str(SliceName.AUTH)

    def __init__(self) -> None:
        self.fetch_session_and_profile = AsyncThunk(
            f"{self.name}/fetch_session_and_profile",
            _fetch_session_and_profile,
            default_error="Failed to fetch session",
        )
        self.set_auth_state = action_creator(f"{self.name}/set_auth_state")
        self.clear_profile = action_creator(f"{self.name}/clear_profile")

    def __repr__(self) -> str:
        return "AuthSlice()"

    def initial_state(self) -> AuthState:
        return AuthState()

    def auth_state_payload(self, session: AuthSession | None, user: AuthUser | None = None) -> Action:
        """``set_auth_state`` action; the user defaults to the session's user."""
        if user is None and session is not None:
            user = session.user
        return self.set_auth_state({"session": session, "user": user})

    def reduce(self, state: AuthState, action: Action) -> AuthState:
        if action.slice_name != self.name:
            return state

        if action.type == self.set_auth_state.type:  # type: ignore[attr-defined]
            payload = action.payload or {}
            return state.model_copy(update={"session": payload.get("session"), "user": payload.get("user")})
        if action.type == self.clear_profile.type:  # type: ignore[attr-defined]
            return state.model_copy(update={"profile": None})

        if action.meta is None or not action.type.startswith(self.fetch_session_and_profile.type_prefix + "/"):
            return state

        request_id = action.meta.request_id
        if action.meta.phase == ActionPhase.PENDING:
            return state.model_copy(
                update={
                    "loading": True,
                    "error": None,
                    "last_request_id": max(state.last_request_id, request_id),
                }
            )

        if is_stale_resolution(request_id, state.applied_request_id):
            return state

        still_loading = state.last_request_id > request_id
        if action.meta.phase == ActionPhase.REJECTED:
            return state.model_copy(
                update={
                    "loading": still_loading,
                    "hydrated": True,
                    "error": action.error or self.fetch_session_and_profile.default_error,
                    "applied_request_id": request_id,
                }
            )

        result: AuthFetchResult = action.payload
        return state.model_copy(
            update={
                "session": result.session,
                "user": result.user,
                "profile": result.profile,
                "error": result.profile_error,
                "loading": still_loading,
                "hydrated": True,
                "applied_request_id": request_id,
            }
        )
