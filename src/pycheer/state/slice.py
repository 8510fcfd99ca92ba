"""Generic async resource slice.

:func:`create_resource_slice` turns ``(name, fetcher)`` into a slice that owns
one record collection and implements the idle/loading/succeeded/failed
contract. Every entity slice of the site is built with it.

Ordering: the store stamps each thunk run with a monotonic request id. Reads
(``fetch_all``/``fetch_one``) are sequenced per operation: a resolution whose
id is not newer than the last applied read of the same kind is discarded, so
an older list request that resolves late cannot overwrite a newer list.
Mutations are never discarded against each other. The slice stays
``loading`` while any of its requests is in flight.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from pycheer.state.events import Action, ActionPhase, SliceStatus, action_creator
from pycheer.state.policy import is_stale_resolution, needs_refresh, settled_status
from pycheer.state.thunks import AsyncThunk, PayloadCreator

_logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class Slice(Protocol):
    """What the store needs from a slice."""

    name: str

    def initial_state(self) -> BaseModel: ...

    def reduce(self, state: Any, action: Action) -> Any: ...


class OperationKind(StrEnum):
    FETCH_ALL = "fetch_all"
    FETCH_ONE = "fetch_one"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def is_read(self) -> bool:
        return self in (OperationKind.FETCH_ALL, OperationKind.FETCH_ONE)


class SliceState(BaseModel, Generic[RecordT]):
    """Snapshot of one entity slice.

    ``items`` keeps its last-known-good value when a fetch fails.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    items: tuple[RecordT, ...] = ()
    status: SliceStatus = SliceStatus.IDLE
    error: str | None = None
    fetched_at: datetime | None = None
    selected: RecordT | None = None
    last_request_id: int = Field(default=0, description="Highest request id dispatched to this slice")
    applied_request_ids: dict[str, int] = Field(
        default_factory=dict,
        description="Request id of the last applied read, per operation kind",
    )
    in_flight: dict[int, str] = Field(
        default_factory=dict,
        description="Outstanding request ids and their operation kind",
    )
    discard_through: int = Field(default=0, description="Resolutions up to this id are dropped (set by clear)")

    @property
    def loading(self) -> bool:
        return self.status == SliceStatus.LOADING


@dataclass(frozen=True, slots=True)
class RecordUpdate:
    """Argument of an ``update`` thunk: the record id and the changed columns."""

    id: str
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ResourceMutations:
    """Optional payload creators for single-record operations.

    ``create``/``update``/``fetch_one`` resolve to a record; ``delete``
    resolves to the removed record's id.
    """

    fetch_one: PayloadCreator | None = None
    create: PayloadCreator | None = None
    update: PayloadCreator | None = None
    delete: PayloadCreator | None = None


def _record_id(record: Any) -> str:
    value = getattr(record, "record_id", None)
    if value is None:
        value = getattr(record, "id")
    return str(value)


class ResourceSlice(Generic[RecordT]):
    """One entity slice. Build it with :func:`create_resource_slice`."""

    def __init__(
        self,
        name: str,
        fetcher: PayloadCreator,
        *,
        max_age: timedelta | None = None,
        sort_key: Callable[[RecordT], Any] | None = None,
        mutations: ResourceMutations | None = None,
        label: str | None = None,
    ) -> None:
        self.name = str(name)
        self.max_age = max_age
        self.sort_key = sort_key
        self.label = label or name.replace("_", " ")

        self.fetch_all = AsyncThunk(
            f"{name}/{OperationKind.FETCH_ALL}",
            fetcher,
            default_error=f"Failed to fetch {self.label}",
        )
        self._kinds: dict[str, OperationKind] = {self.fetch_all.type_prefix: OperationKind.FETCH_ALL}

        mutations = mutations or ResourceMutations()
        self.fetch_one = self._optional_thunk(OperationKind.FETCH_ONE, mutations.fetch_one, "fetch")
        self.create = self._optional_thunk(OperationKind.CREATE, mutations.create, "create")
        self.update = self._optional_thunk(OperationKind.UPDATE, mutations.update, "update")
        self.delete = self._optional_thunk(OperationKind.DELETE, mutations.delete, "delete")

        self.clear = action_creator(f"{name}/clear")
        self.clear_error = action_creator(f"{name}/clear_error")
        self.set_selected = action_creator(f"{name}/set_selected")

    def _optional_thunk(self, kind: OperationKind, creator: PayloadCreator | None, verb: str) -> AsyncThunk | None:
        if creator is None:
            return None
        thunk = AsyncThunk(f"{self.name}/{kind}", creator, default_error=f"Failed to {verb} {self.label}")
        self._kinds[thunk.type_prefix] = kind
        return thunk

    def __repr__(self) -> str:
        return f"ResourceSlice({self.name!r})"

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def initial_state(self) -> SliceState[RecordT]:
        return SliceState[RecordT]()

    def needs_refresh(self, state: SliceState[RecordT], now: datetime) -> bool:
        return needs_refresh(state.status, state.fetched_at, now, self.max_age)

    def _sorted(self, items: tuple[RecordT, ...]) -> tuple[RecordT, ...]:
        if self.sort_key is None:
            return items
        return tuple(sorted(items, key=self.sort_key))

    # ------------------------------------------------------------------
    # Reducer
    # ------------------------------------------------------------------

    def reduce(self, state: SliceState[RecordT], action: Action) -> SliceState[RecordT]:
        if action.slice_name != self.name:
            return state

        if action.type == self.clear.type:  # type: ignore[attr-defined]
            # Requests still in flight resolve into the cleared state and are dropped.
            return SliceState[RecordT](
                last_request_id=state.last_request_id,
                discard_through=state.last_request_id,
            )
        if action.type == self.clear_error.type:  # type: ignore[attr-defined]
            return state.model_copy(update={"error": None})
        if action.type == self.set_selected.type:  # type: ignore[attr-defined]
            return state.model_copy(update={"selected": action.payload})

        if action.meta is None:
            return state
        prefix = action.type.rsplit("/", 1)[0]
        kind = self._kinds.get(prefix)
        if kind is None:
            return state

        request_id = action.meta.request_id
        phase = action.meta.phase

        if phase == ActionPhase.PENDING:
            return state.model_copy(
                update={
                    "status": SliceStatus.LOADING,
                    "error": None,
                    "last_request_id": max(state.last_request_id, request_id),
                    "in_flight": {**state.in_flight, request_id: str(kind)},
                }
            )

        applied = state.applied_request_ids.get(kind, 0) if kind.is_read else 0
        if request_id <= state.discard_through or is_stale_resolution(request_id, applied):
            _logger.debug("Discarding stale %s (request %d)", action.type, request_id)
            return state

        update: dict[str, Any] = {"applied_request_ids": state.applied_request_ids}
        if kind.is_read:
            # Older reads of the same kind can no longer win.
            in_flight = {rid: k for rid, k in state.in_flight.items() if k != kind or rid > request_id}
            update["applied_request_ids"] = {**state.applied_request_ids, str(kind): request_id}
        else:
            in_flight = {rid: k for rid, k in state.in_flight.items() if rid != request_id}
        update["in_flight"] = in_flight

        if phase == ActionPhase.REJECTED:
            status = settled_status(SliceStatus.FAILED, in_flight)
            # Other requests are still loading: their outcome decides the error.
            error = action.error or f"Failed to {kind.replace('_', ' ')} {self.label}"
            update.update(status=status, error=error if status == SliceStatus.FAILED else None)
            return state.model_copy(update=update)

        update.update(status=settled_status(SliceStatus.SUCCEEDED, in_flight), error=None)
        update.update(self._apply_payload(state, kind, action))
        return state.model_copy(update=update)

    def _apply_payload(self, state: SliceState[RecordT], kind: OperationKind, action: Action) -> dict[str, Any]:
        payload = action.payload
        if kind == OperationKind.FETCH_ALL:
            return {
                "items": tuple(payload or ()),
                "fetched_at": action.meta.completed_at if action.meta else None,
            }
        if kind == OperationKind.FETCH_ONE:
            return {"selected": payload}
        if kind == OperationKind.CREATE:
            return {"items": self._sorted((*state.items, payload))}
        if kind == OperationKind.UPDATE:
            record_id = _record_id(payload)
            items = tuple(payload if _record_id(item) == record_id else item for item in state.items)
            changes: dict[str, Any] = {"items": self._sorted(items)}
            if state.selected is not None and _record_id(state.selected) == record_id:
                changes["selected"] = payload
            return changes
        # DELETE: payload is the removed id
        removed = str(payload)
        changes = {"items": tuple(item for item in state.items if _record_id(item) != removed)}
        if state.selected is not None and _record_id(state.selected) == removed:
            changes["selected"] = None
        return changes


def create_resource_slice(
    name: str,
    fetcher: PayloadCreator,
    *,
    max_age: timedelta | None = None,
    sort_key: Callable[[Any], Any] | None = None,
    mutations: ResourceMutations | None = None,
    label: str | None = None,
) -> ResourceSlice[Any]:
    """Build a slice with the fetch_all contract (plus optional mutations)."""
    if not name or "/" in name:
        raise ValueError(f"invalid slice name: {name!r}")
    return ResourceSlice(name, fetcher, max_age=max_age, sort_key=sort_key, mutations=mutations, label=label)
