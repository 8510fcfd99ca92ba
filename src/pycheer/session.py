"""Auth session returned by the backend auth provider."""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pycheer.models.profile import AuthUser

#: Refresh this many seconds before the advertised expiry.
EXPIRY_MARGIN_SECONDS: float = 60.0


class AuthSession(BaseModel):
    """Bearer-token bundle for a signed-in user.

    Parameters
    ----------
    access_token : str
        JWT sent as ``Authorization: Bearer`` on data requests.
    refresh_token : str
        Token exchanged for a new session once the access token expires.
    expires_at : float or None
        Epoch seconds when the access token expires. Derived from
        ``expires_in`` when the provider omits it.
    user : AuthUser
        The authenticated user.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    access_token: str
    refresh_token: str = ""
    token_type: str = "bearer"
    expires_at: float | None = None
    user: AuthUser
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)

    @model_validator(mode="before")
    @classmethod
    def _derive_expiry(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        merged.setdefault("raw", dict(values))
        if merged.get("expires_at") is None and merged.get("expires_in") is not None:
            try:
                merged["expires_at"] = time.time() + float(merged["expires_in"])
            except (TypeError, ValueError):
                pass
        return merged

    def is_expired(self, now: float | None = None) -> bool:
        """Whether the access token is (about to be) expired."""
        if self.expires_at is None:
            return False
        current = time.time() if now is None else now
        return current >= self.expires_at - EXPIRY_MARGIN_SECONDS
