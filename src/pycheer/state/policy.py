"""Freshness and ordering policy for slices.

Pure functions only; reducers and selectors call into this module.
"""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime, timedelta

from pycheer.state.events import SliceStatus

MAX_ERROR_LENGTH = 300


def is_window_elapsed(now: datetime, fetched_at: datetime | None, max_age: timedelta | None) -> bool:
    if max_age is None or max_age <= timedelta(0):
        return False
    if fetched_at is None:
        return True
    return now - fetched_at >= max_age


def needs_refresh(
    status: SliceStatus,
    fetched_at: datetime | None,
    now: datetime,
    max_age: timedelta | None = None,
) -> bool:
    """Decide whether cached slice data should be refetched.

    - idle or failed: refetch.
    - loading: never (a request is already in flight).
    - succeeded: only once the freshness window has elapsed.
    """
    if status == SliceStatus.LOADING:
        return False
    if status in (SliceStatus.IDLE, SliceStatus.FAILED):
        return True
    return is_window_elapsed(now, fetched_at, max_age)


def is_stale_resolution(request_id: int, applied_request_id: int) -> bool:
    """A resolution is stale when a newer (or the same) request was already applied."""
    return request_id <= applied_request_id


def settled_status(outcome: SliceStatus, in_flight: Collection[int]) -> SliceStatus:
    """Status after applying a resolution.

    Stays ``loading`` while any other request of the slice is in flight.
    """
    if in_flight:
        return SliceStatus.LOADING
    return outcome


def describe_error(exc: BaseException, default: str) -> str:
    """Short human-readable message for *exc*, never the exception object."""
    message = " ".join(str(exc).split())
    if not message:
        message = default
    if len(message) > MAX_ERROR_LENGTH:
        message = message[: MAX_ERROR_LENGTH - 1] + "…"
    return message
