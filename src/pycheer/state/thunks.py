"""Async thunks: backend calls wrapped in pending/fulfilled/rejected actions."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pycheer.config import CheerConfig
from pycheer.state.events import Action, ActionPhase, ThunkMeta

if TYPE_CHECKING:
    from pycheer.client import CheerClient


@dataclass(frozen=True, slots=True)
class ThunkContext:
    """What a payload creator may use: the backend client, config and a state reader."""

    client: CheerClient
    config: CheerConfig
    get_state: Callable[[], Mapping[str, Any]]
    now: Callable[[], datetime]


PayloadCreator = Callable[[ThunkContext, Any], Awaitable[Any]]


class AsyncThunk:
    """Action creator for one async operation, e.g. ``provinces/fetch_all``.

    Calling the thunk returns a :class:`ThunkCall`; dispatching that call runs
    ``payload_creator`` and emits the lifecycle actions. Any exception raised
    by the payload creator becomes the ``error`` of the rejected action
    (``default_error`` when the exception has no message).
    """

    def __init__(self, type_prefix: str, payload_creator: PayloadCreator, *, default_error: str) -> None:
        self.type_prefix = type_prefix
        self.payload_creator = payload_creator
        self.default_error = default_error

    @property
    def pending_type(self) -> str:
        return f"{self.type_prefix}/{ActionPhase.PENDING}"

    @property
    def fulfilled_type(self) -> str:
        return f"{self.type_prefix}/{ActionPhase.FULFILLED}"

    @property
    def rejected_type(self) -> str:
        return f"{self.type_prefix}/{ActionPhase.REJECTED}"

    def __call__(self, arg: Any = None) -> ThunkCall:
        return ThunkCall(thunk=self, arg=arg)

    def pending(self, request_id: int, arg: Any = None) -> Action:
        return Action(
            type=self.pending_type,
            meta=ThunkMeta(request_id=request_id, phase=ActionPhase.PENDING, arg=arg),
        )

    def fulfilled(self, request_id: int, payload: Any, *, arg: Any = None, completed_at: datetime | None = None) -> Action:
        return Action(
            type=self.fulfilled_type,
            payload=payload,
            meta=ThunkMeta(
                request_id=request_id,
                phase=ActionPhase.FULFILLED,
                arg=arg,
                completed_at=completed_at,
            ),
        )

    def rejected(self, request_id: int, error: str, *, arg: Any = None, completed_at: datetime | None = None) -> Action:
        return Action(
            type=self.rejected_type,
            error=error,
            meta=ThunkMeta(
                request_id=request_id,
                phase=ActionPhase.REJECTED,
                arg=arg,
                completed_at=completed_at,
            ),
        )

    def __repr__(self) -> str:
        return f"AsyncThunk({self.type_prefix!r})"


@dataclass(frozen=True, slots=True)
class ThunkCall:
    """A dispatchable invocation of an :class:`AsyncThunk`."""

    thunk: AsyncThunk
    arg: Any = None
