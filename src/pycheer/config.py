"""Client configuration for pycheer."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pycheer._constants import (
    DEFAULT_MAX_AGE_SECONDS,
    DEFAULT_PUBLIC_IMAGES_LIMIT,
    DEFAULT_PUBLIC_IMAGES_PREFIX,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SCHEMA,
    DEFAULT_STORAGE_BUCKET,
)
from pycheer.exceptions import CheerConfigError


def _env_csv(value: str | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    return tuple(part.strip().lower() for part in value.split(",") if part.strip())


@dataclasses.dataclass(frozen=True)
class CheerConfig:
    """Client configuration.

    Parameters
    ----------
    supabase_url : str
        Project URL, e.g. ``"https://abcd.supabase.co"``.
    supabase_key : str
        Anon (public) API key. Sent as ``apikey`` and as the bearer token
        until a user session exists.
    schema : str
        Postgres schema exposed through PostgREST.
    storage_bucket : str
        Storage bucket holding site uploads.
    public_images_prefix : str
        Folder inside the bucket listed by the public-images slice.
    public_images_limit : int
        Maximum number of objects listed per public-images fetch.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    provinces_max_age : float
        Seconds after which a loaded provinces slice is considered stale.
        ``0`` disables the freshness window.
    coaches_max_age : float
        Same as ``provinces_max_age`` for the coaches slice.
    admin_emails : tuple[str, ...]
        Lower-cased e-mails that receive the ``admin`` role when their
        missing profile row is created on first sign-in.
    """

    supabase_url: str
    supabase_key: str
    schema: str = DEFAULT_SCHEMA
    storage_bucket: str = DEFAULT_STORAGE_BUCKET
    public_images_prefix: str = DEFAULT_PUBLIC_IMAGES_PREFIX
    public_images_limit: int = DEFAULT_PUBLIC_IMAGES_LIMIT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    provinces_max_age: float = DEFAULT_MAX_AGE_SECONDS
    coaches_max_age: float = DEFAULT_MAX_AGE_SECONDS
    admin_emails: tuple[str, ...] = ()

    @property
    def base_url(self) -> str:
        return self.supabase_url.rstrip("/")

    def validate(self) -> None:
        """Raise :class:`CheerConfigError` when required fields are missing."""
        if not self.supabase_url.strip():
            raise CheerConfigError("supabase_url is required (set SUPABASE_URL)")
        if not self.supabase_key.strip():
            raise CheerConfigError("supabase_key is required (set SUPABASE_ANON_KEY)")
        if self.public_images_limit <= 0:
            raise CheerConfigError("public_images_limit must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> CheerConfig:
        """Create configuration from environment variables.

        Reads ``SUPABASE_URL`` and ``SUPABASE_ANON_KEY`` (falling back to
        ``SUPABASE_KEY``) plus optional ``CHEER_*`` variables. Explicit
        keyword arguments override environment values.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {
            "supabase_url": env.get("SUPABASE_URL", ""),
            "supabase_key": env.get("SUPABASE_ANON_KEY") or env.get("SUPABASE_KEY") or "",
        }

        _ENV_STR_MAP = {
            "CHEER_SCHEMA": "schema",
            "CHEER_STORAGE_BUCKET": "storage_bucket",
            "CHEER_PUBLIC_IMAGES_PREFIX": "public_images_prefix",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_FLOAT_MAP = {
            "CHEER_REQUEST_TIMEOUT": "request_timeout",
            "CHEER_PROVINCES_MAX_AGE": "provinces_max_age",
            "CHEER_COACHES_MAX_AGE": "coaches_max_age",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                try:
                    config_kwargs[field_name] = float(val)
                except ValueError as exc:
                    raise CheerConfigError(f"{env_key} must be a number, got {val!r}") from exc

        limit_env = env.get("CHEER_PUBLIC_IMAGES_LIMIT")
        if limit_env is not None and "public_images_limit" not in overrides:
            try:
                config_kwargs["public_images_limit"] = int(limit_env)
            except ValueError as exc:
                raise CheerConfigError(f"CHEER_PUBLIC_IMAGES_LIMIT must be an integer, got {limit_env!r}") from exc

        admins = _env_csv(env.get("CHEER_ADMIN_EMAILS"))
        if admins is not None:
            config_kwargs["admin_emails"] = admins

        config_kwargs.update(overrides)
        if "admin_emails" in overrides:
            config_kwargs["admin_emails"] = tuple(str(e).strip().lower() for e in overrides["admin_emails"])

        return cls(**config_kwargs)
