"""Masking of Supabase credentials in debug output.

Every request carries the project ``apikey`` and a bearer token, and the
GoTrue endpoints exchange passwords and access/refresh tokens. Headers keep
their scheme and the last few characters so two keys can still be told apart
in a log; JSON bodies have credential fields replaced outright.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

REDACTED = "<redacted>"

_CREDENTIAL_HEADERS = frozenset({"apikey", "authorization", "cookie", "set-cookie"})
_CREDENTIAL_FIELDS = frozenset({"password", "apikey", "token", "secret", "code_verifier"})
_CREDENTIAL_SUFFIXES = ("_token", "_secret", "_password")


def is_credential_field(name: str) -> bool:
    """``refresh_token``, ``provider_token``, ``password`` and friends."""
    key = name.lower()
    return key in _CREDENTIAL_FIELDS or key.endswith(_CREDENTIAL_SUFFIXES)


def mask_secret(value: str, *, visible: int = 4) -> str:
    """``"Bearer eyJhb...xyz1"`` -> ``"Bearer …xyz1"``."""
    scheme, _, secret = value.rpartition(" ")
    tail = secret[-visible:] if len(secret) > visible * 3 else ""
    masked = f"…{tail}" if tail else REDACTED
    return f"{scheme} {masked}" if scheme else masked


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {k: mask_secret(v) if k.lower() in _CREDENTIAL_HEADERS else v for k, v in headers.items()}


def redact_payload(value: Any) -> Any:
    """Copy of a decoded JSON *value* with credential fields replaced.

    Row payloads are lists of objects, GoTrue payloads nest the user under
    ``user``; both are walked.
    """
    if isinstance(value, Mapping):
        return {
            k: REDACTED if is_credential_field(str(k)) and v is not None else redact_payload(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_payload(v) for v in value]
    return value
