"""In-memory store holding every slice of the site state.

The store is the single writer: slices only change through :meth:`Store.dispatch`.
Thunk calls are run as asyncio tasks; the pending action is applied
synchronously so observers see ``loading`` before the backend is contacted.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pycheer.config import CheerConfig
from pycheer.exceptions import CheerConfigError, CheerError
from pycheer.state.events import Action
from pycheer.state.policy import describe_error
from pycheer.state.slice import Slice
from pycheer.state.thunks import ThunkCall, ThunkContext

if TYPE_CHECKING:
    from pycheer.client import CheerClient

_logger = logging.getLogger(__name__)

Listener = Callable[[], None]


def utcnow() -> datetime:
    return datetime.now(UTC)


class Store:
    """Holds one state snapshot per slice and runs async thunks.

    Parameters
    ----------
    slices : Iterable[Slice]
        Slices with disjoint names.
    client : CheerClient, optional
        Backend client handed to payload creators. Required only when thunks
        are dispatched.
    config : CheerConfig, optional
        Defaults to ``client.config``.
    clock : Callable[[], datetime]
        Injected for tests; stamps ``fetched_at``.
    """

    def __init__(
        self,
        slices: Iterable[Slice],
        *,
        client: CheerClient | None = None,
        config: CheerConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._slices: dict[str, Slice] = {}
        for slice_ in slices:
            if slice_.name in self._slices:
                raise CheerConfigError(f"Duplicate slice name: {slice_.name!r}")
            self._slices[slice_.name] = slice_
        self._state: dict[str, Any] = {name: s.initial_state() for name, s in self._slices.items()}
        self._client = client
        self._config = config if config is not None else (client.config if client is not None else None)
        self._clock = clock
        self._request_ids = itertools.count(1)
        self._listeners: dict[int, Listener] = {}
        self._listener_ids = itertools.count(1)
        self._tasks: set[asyncio.Task[Action]] = set()

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    @property
    def slice_names(self) -> tuple[str, ...]:
        return tuple(self._slices)

    def now(self) -> datetime:
        return self._clock()

    def get_state(self) -> dict[str, Any]:
        """Snapshot of all slices. Slice states are frozen models."""
        return dict(self._state)

    def select(self, name: str) -> Any:
        try:
            return self._state[name]
        except KeyError:
            raise CheerError(f"Unknown slice: {name!r}") from None

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* after every state change. Returns an unsubscribe callable."""
        listener_id = next(self._listener_ids)
        self._listeners[listener_id] = listener

        def unsubscribe() -> None:
            self._listeners.pop(listener_id, None)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _notify(self) -> None:
        for listener in list(self._listeners.values()):
            try:
                listener()
            except Exception:
                _logger.exception("Store listener failed")

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, action: Action | ThunkCall) -> Any:
        """Apply a plain action, or start a thunk run.

        A plain action returns itself. A :class:`ThunkCall` returns the
        :class:`asyncio.Task` resolving to the final fulfilled/rejected action.
        """
        if isinstance(action, ThunkCall):
            return self._start_thunk(action)
        self._apply(action)
        return action

    def _apply(self, action: Action) -> None:
        slice_ = self._slices.get(action.slice_name)
        if slice_ is None:
            _logger.debug("No slice for action %s", action.type)
            return
        previous = self._state[slice_.name]
        updated = slice_.reduce(previous, action)
        if updated is previous:
            return
        self._state[slice_.name] = updated
        _logger.debug("Applied %s (request=%s)", action.type, action.request_id)
        self._notify()

    def _start_thunk(self, call: ThunkCall) -> asyncio.Task[Action]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise CheerError(f"Dispatching {call.thunk.type_prefix} requires a running event loop") from None
        request_id = next(self._request_ids)
        self._apply(call.thunk.pending(request_id, call.arg))
        task = loop.create_task(self._run(call, request_id), name=f"{call.thunk.type_prefix}#{request_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _context(self) -> ThunkContext:
        if self._client is None or self._config is None:
            raise CheerError("Store has no backend client")
        return ThunkContext(client=self._client, config=self._config, get_state=self.get_state, now=self._clock)

    async def _run(self, call: ThunkCall, request_id: int) -> Action:
        thunk = call.thunk
        try:
            payload = await thunk.payload_creator(self._context(), call.arg)
        except Exception as exc:
            message = describe_error(exc, thunk.default_error)
            _logger.warning("%s failed (request %d): %s", thunk.type_prefix, request_id, message)
            _logger.debug("%s failure detail", thunk.type_prefix, exc_info=True)
            action = thunk.rejected(request_id, message, arg=call.arg, completed_at=self._clock())
        else:
            action = thunk.fulfilled(request_id, payload, arg=call.arg, completed_at=self._clock())
        self._apply(action)
        return action

    async def drain(self) -> None:
        """Wait until every running thunk has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

