"""Auth namespace of :class:`pycheer.client.CheerClient`.

Holds the current :class:`AuthSession` and pushes auth state-change events to
listeners registered with :meth:`AuthClient.on_auth_state_change`.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pycheer._api import auth as _auth_api
from pycheer._constants import EVENT_SIGNED_IN, EVENT_SIGNED_OUT, EVENT_TOKEN_REFRESHED, EVENT_USER_UPDATED
from pycheer.exceptions import CheerAuthenticationError
from pycheer.models.profile import AuthUser
from pycheer.session import AuthSession

if TYPE_CHECKING:
    from pycheer.client import CheerClient

_logger = logging.getLogger(__name__)

AuthListener = Callable[[str, AuthSession | None], None]


@dataclass(slots=True)
class Subscription:
    """Handle returned by ``on_auth_state_change``.

    ``unsubscribe()`` is idempotent. The handle is also a context manager that
    releases itself on exit.
    """

    id: int
    _release: Callable[[int], None] = field(repr=False)
    active: bool = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._release(self.id)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.unsubscribe()


class AuthClient:
    """Session bookkeeping plus GoTrue calls."""

    def __init__(self, client: CheerClient) -> None:
        self._client = client
        self._session: AuthSession | None = None
        self._listeners: dict[int, AuthListener] = {}
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def on_auth_state_change(self, callback: AuthListener) -> Subscription:
        """Register *callback* for ``(event, session)`` notifications."""
        sub_id = next(self._ids)
        self._listeners[sub_id] = callback
        return Subscription(id=sub_id, _release=self._release)

    def _release(self, sub_id: int) -> None:
        self._listeners.pop(sub_id, None)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _emit(self, event: str, session: AuthSession | None) -> None:
        _logger.debug("Auth event %s user=%s", event, session.user.id if session else None)
        for callback in list(self._listeners.values()):
            try:
                callback(event, session)
            except Exception:
                _logger.exception("Auth state listener failed for %s", event)

    def _set_session(self, session: AuthSession | None) -> None:
        self._session = session
        self._client._require_transport().set_access_token(session.access_token if session else None)

    def clear_listeners(self) -> None:
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    async def get_session(self) -> AuthSession | None:
        """Return the current session, refreshing it first when expired.

        A failed refresh drops the session, emits ``SIGNED_OUT`` and raises
        :class:`CheerAuthenticationError`.
        """
        session = self._session
        if session is None or not session.is_expired():
            return session
        if not session.refresh_token:
            self._set_session(None)
            self._emit(EVENT_SIGNED_OUT, None)
            return None
        return await self.refresh_session()

    async def refresh_session(self) -> AuthSession:
        session = self._session
        if session is None or not session.refresh_token:
            raise CheerAuthenticationError("No session to refresh")
        transport = self._client._require_transport()
        try:
            refreshed = await _auth_api.refresh_grant(transport, session.refresh_token)
        except CheerAuthenticationError:
            self._set_session(None)
            self._emit(EVENT_SIGNED_OUT, None)
            raise
        self._set_session(refreshed)
        self._emit(EVENT_TOKEN_REFRESHED, refreshed)
        return refreshed

    async def get_user(self) -> AuthUser | None:
        """Fetch the signed-in user from the provider (``None`` when signed out)."""
        session = await self.get_session()
        if session is None:
            return None
        transport = self._client._require_transport()
        return await _auth_api.fetch_user(transport, session.access_token)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        transport = self._client._require_transport()
        session = await _auth_api.password_grant(transport, email.strip(), password)
        self._set_session(session)
        self._emit(EVENT_SIGNED_IN, session)
        return session

    async def set_session(self, session: AuthSession) -> None:
        """Adopt a session obtained elsewhere (e.g. restored from disk)."""
        self._set_session(session)
        self._emit(EVENT_SIGNED_IN, session)

    def notify_user_updated(self) -> None:
        if self._session is not None:
            self._emit(EVENT_USER_UPDATED, self._session)

    async def sign_out(self) -> None:
        """Revoke the session server-side and clear it locally.

        The local session is cleared and ``SIGNED_OUT`` emitted even when the
        revoke call fails; the failure is re-raised afterwards.
        """
        session = self._session
        if session is None:
            return
        transport = self._client._require_transport()
        try:
            await _auth_api.logout(transport, session.access_token)
        finally:
            self._set_session(None)
            self._emit(EVENT_SIGNED_OUT, None)
