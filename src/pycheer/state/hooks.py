"""Lifecycle helpers binding a consumer to the store.

:class:`ResourceWatcher` fetches a resource once when it is mounted (if the
cached data needs a refresh) and exposes convenience views. :class:`AuthSync`
hydrates the auth slice and mirrors backend auth events into it for as long as
it is entered.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pycheer._constants import (
    EVENT_INITIAL_SESSION,
    EVENT_SIGNED_IN,
    EVENT_SIGNED_OUT,
    EVENT_TOKEN_REFRESHED,
    EVENT_USER_UPDATED,
)
from pycheer.exceptions import CheerError
from pycheer.session import AuthSession
from pycheer.state.auth import AuthSlice, AuthState
from pycheer.state.events import Action, SliceStatus
from pycheer.state.slice import ResourceSlice, SliceState
from pycheer.state.store import Store

if TYPE_CHECKING:
    from pycheer._client.auth import Subscription
    from pycheer.client import CheerClient

_logger = logging.getLogger(__name__)


class ResourceWatcher:
    """Fetch-if-needed binding of one resource slice.

    Usage::

        async with ResourceWatcher(store, resources.provinces) as provinces:
            await provinces.wait()
            print(provinces.items)
    """

    def __init__(self, store: Store, resource: ResourceSlice[Any], *, arg: Any = None) -> None:
        self._store = store
        self._resource = resource
        self._arg = arg
        self._unsubscribe: Callable[[], None] | None = None
        self._dispatched = False
        self._task: asyncio.Task[Action] | None = None

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def state(self) -> SliceState[Any]:
        return self._store.select(self._resource.name)

    @property
    def items(self) -> tuple[Any, ...]:
        return self.state.items

    @property
    def loading(self) -> bool:
        return self.state.status == SliceStatus.LOADING

    @property
    def error(self) -> str | None:
        return self.state.error

    @property
    def is_empty(self) -> bool:
        return not self.state.items

    @property
    def has_data(self) -> bool:
        return bool(self.state.items)

    @property
    def is_ready(self) -> bool:
        """Loaded and non-empty."""
        state = self.state
        return state.status != SliceStatus.LOADING and bool(state.items)

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def mount(self) -> None:
        if self._unsubscribe is not None:
            return
        self._dispatched = False
        self._unsubscribe = self._store.subscribe(self._react)
        self._react()

    def unmount(self) -> None:
        """Drop interest in the resource. In-flight requests are not cancelled."""
        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None

    def _own_request_pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def _react(self) -> None:
        if self._unsubscribe is None or self._dispatched or self._own_request_pending():
            return
        if not self._resource.needs_refresh(self.state, self._store.now()):
            return
        # Flag first: the pending dispatch below re-enters this listener.
        self._dispatched = True
        self._task = self._store.dispatch(self._resource.fetch_all(self._arg))

    def refetch(self, *, force: bool = False) -> asyncio.Task[Action] | None:
        """Dispatch a fetch now unless one of ours is loading (``force`` skips that check)."""
        if self._own_request_pending() and not force:
            return self._task
        self._task = self._store.dispatch(self._resource.fetch_all(self._arg))
        return self._task

    async def wait(self) -> None:
        """Wait for this watcher's last dispatched fetch, if any."""
        if self._task is not None:
            await self._task

    async def __aenter__(self) -> ResourceWatcher:
        self.mount()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.unmount()


class AuthSync:
    """Keep the auth slice in step with the backend's auth events.

    On enter the session/profile is fetched and a listener is registered with
    ``client.auth.on_auth_state_change``; on exit the listener is always
    released.
    """

    def __init__(self, store: Store, client: CheerClient, auth: AuthSlice) -> None:
        self._store = store
        self._client = client
        self._auth = auth
        self._subscription: Subscription | None = None
        self._tasks: list[asyncio.Task[Action]] = []

    @property
    def state(self) -> AuthState:
        return self._store.select(self._auth.name)

    @property
    def active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def _refetch(self) -> None:
        self._tasks = [t for t in self._tasks if not t.done()]
        self._tasks.append(self._store.dispatch(self._auth.fetch_session_and_profile()))

    def _on_auth_event(self, event: str, session: AuthSession | None) -> None:
        _logger.debug("AuthSync received %s", event)
        if event == EVENT_SIGNED_IN:
            self._store.dispatch(self._auth.auth_state_payload(session))
            self._refetch()
        elif event == EVENT_SIGNED_OUT:
            self._store.dispatch(self._auth.auth_state_payload(None, None))
            self._store.dispatch(self._auth.clear_profile())
        elif event in (EVENT_TOKEN_REFRESHED, EVENT_USER_UPDATED):
            self._store.dispatch(self._auth.auth_state_payload(session))
        elif event != EVENT_INITIAL_SESSION:
            _logger.debug("Ignoring auth event %s", event)

    async def start(self) -> None:
        if self._subscription is not None:
            raise CheerError("AuthSync already started")
        self._refetch()
        self._subscription = self._client.auth.on_auth_state_change(self._on_auth_event)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def wait_until_hydrated(self) -> AuthState:
        while self._tasks and not self.state.hydrated:
            await asyncio.gather(*self._tasks)
            self._tasks = [t for t in self._tasks if not t.done()]
        return self.state

    async def sign_out(self) -> None:
        """Sign out on the backend; the ``SIGNED_OUT`` event clears the slice."""
        await self._client.auth.sign_out()

    async def __aenter__(self) -> AuthSync:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.stop()
