"""GoTrue auth endpoints: ``/auth/v1/*``."""

from __future__ import annotations

from pycheer._transport import Transport
from pycheer.exceptions import CheerApiError, CheerAuthenticationError
from pycheer.models.profile import AuthUser
from pycheer.session import AuthSession


def _bearer(token: str) -> dict[str, str]:
    return {"authorization": f"Bearer {token}"}


async def _token_grant(transport: Transport, grant_type: str, body: dict[str, str]) -> AuthSession:
    endpoint = "/auth/v1/token"
    try:
        payload = await transport.request(
            "POST",
            endpoint,
            params=[("grant_type", grant_type)],
            json_body=body,
        )
    except CheerApiError as exc:
        raise CheerAuthenticationError(
            str(exc),
            code=exc.code,
            endpoint=endpoint,
            status_code=exc.status_code,
        ) from exc
    if not isinstance(payload, dict) or not payload.get("access_token"):
        raise CheerAuthenticationError(f"{endpoint} returned no access token", endpoint=endpoint)
    return AuthSession.model_validate(payload)


async def password_grant(transport: Transport, email: str, password: str) -> AuthSession:
    return await _token_grant(transport, "password", {"email": email, "password": password})


async def refresh_grant(transport: Transport, refresh_token: str) -> AuthSession:
    return await _token_grant(transport, "refresh_token", {"refresh_token": refresh_token})


async def fetch_user(transport: Transport, access_token: str) -> AuthUser:
    endpoint = "/auth/v1/user"
    payload = await transport.request("GET", endpoint, headers=_bearer(access_token))
    if not isinstance(payload, dict):
        raise CheerAuthenticationError(f"{endpoint} returned no user", endpoint=endpoint)
    return AuthUser.model_validate(payload)


async def logout(transport: Transport, access_token: str) -> None:
    await transport.request("POST", "/auth/v1/logout", headers=_bearer(access_token))
