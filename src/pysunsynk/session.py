"""Bearer token lifecycle for a Sunsynk Connect account.

:class:`SessionStore` holds the current :class:`Credential` and answers
validity questions. :class:`AccountSession` performs the password and
refresh-token exchanges against ``/oauth/token`` and keeps the store
current.

Concurrent callers share one exchange: while a login or refresh is in
flight, further callers await the same result instead of sending a
duplicate request.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from .constants import (
    CLIENT_ID,
    CODE_BAD_CREDENTIALS,
    CODE_OK,
    HTTP_NOT_FOUND,
    TOKEN_PATH,
    TOKEN_REFRESH_MARGIN,
)
from .exceptions import SunSynkAPIError, SunSynkAuthError, SunSynkError
from .models import TokenResponse
from .results import AuthResult, AuthStatus

if TYPE_CHECKING:
    from .client import SunSynkClient

_LOGGER = logging.getLogger(__name__)

_GRANT_PASSWORD = "password"
_GRANT_REFRESH = "refresh_token"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Credential:
    """Tokens from one successful exchange.

    Never mutated; a new instance replaces the old one on every
    successful login or refresh.
    """

    access_token: str = ""
    refresh_token: str = ""
    issued_at: datetime | None = None
    expires_in_seconds: int = 0

    @property
    def expires_at(self) -> datetime | None:
        if self.issued_at is None:
            return None
        return self.issued_at + timedelta(seconds=self.expires_in_seconds)

    def remaining(self, now: datetime) -> timedelta:
        """Time left before expiry (zero if never issued)."""
        expires_at = self.expires_at
        if expires_at is None:
            return timedelta(0)
        return expires_at - now

    def __repr__(self) -> str:
        # Tokens stay out of logs and tracebacks
        return (
            f"Credential(issued_at={self.issued_at!r}, "
            f"expires_in_seconds={self.expires_in_seconds})"
        )


class SessionStore:
    """In-memory holder for the account's current credential."""

    def __init__(self) -> None:
        self._credential = Credential()
        self.usable = True

    @property
    def credential(self) -> Credential:
        return self._credential

    @property
    def access_token(self) -> str:
        return self._credential.access_token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._credential.access_token)

    def replace(self, credential: Credential) -> None:
        self._credential = credential
        self.usable = True

    def is_valid(self, now: datetime, margin: timedelta = TOKEN_REFRESH_MARGIN) -> bool:
        """True if the access token has more than ``margin`` left."""
        return self.is_authenticated and self._credential.remaining(now) > margin


class AccountSession:
    """Login and token refresh for one account.

    Example:
        ```python
        session = client.account
        result = await session.authenticate("me@example.com", "secret")
        if result.status is AuthStatus.SUCCESS:
            token = session.current_access_token()
        ```
    """

    def __init__(
        self,
        client: SunSynkClient,
        username: str = "",
        password: str = "",
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._client = client
        self.username = username
        self._password = password
        self._clock = clock
        self.store = SessionStore()
        self._inflight: asyncio.Future[AuthResult] | None = None
        self._inflight_key: tuple[str, str, str] | None = None
        self._last_failure: AuthResult | None = None

    @property
    def is_usable(self) -> bool:
        """False after the remote rejected the credentials.

        Stays False until :meth:`authenticate` is called again.
        """
        return self.store.usable

    def current_access_token(self) -> str:
        """Latest access token, or ``""`` if never authenticated."""
        return self.store.access_token

    async def authenticate(self, username: str, password: str) -> AuthResult:
        """Log in with a password grant.

        The supplied credentials are kept for :meth:`reauthenticate`.
        """
        self.username = username
        self._password = password
        body = {
            "username": username,
            "password": password,
            "grant_type": _GRANT_PASSWORD,
            "client_id": CLIENT_ID,
        }
        _LOGGER.debug("Authenticating Sunsynk account %s", username)
        return await self._exchange(body, _GRANT_PASSWORD)

    async def ensure_valid(self, username: str | None = None) -> AuthResult:
        """Refresh the token if it expires within 30 seconds.

        Returns the current credential without any network call when the
        token is still good. Otherwise performs one refresh-token exchange,
        or a password login if no refresh token has been issued yet.
        """
        if not self.is_usable and self._last_failure is not None:
            return self._last_failure

        if self.store.is_valid(self._clock()):
            _LOGGER.debug("Account token not expired")
            return AuthResult.success(self.store.credential)

        refresh_token = self.store.credential.refresh_token
        if not refresh_token:
            return await self.authenticate(username or self.username, self._password)

        username = username or self.username
        _LOGGER.debug("Account token expired or expiring, refreshing")
        body = {
            "grant_type": _GRANT_REFRESH,
            "username": username,
            "refresh_token": refresh_token,
            "client_id": CLIENT_ID,
        }
        return await self._exchange(body, _GRANT_REFRESH)

    async def reauthenticate(self) -> AuthResult:
        """Log in again with the stored credentials.

        Used after the API rejects a token. Does nothing once the remote
        has rejected these credentials.
        """
        if not self.is_usable and self._last_failure is not None:
            _LOGGER.debug("Session unusable, not re-authenticating with rejected credentials")
            return self._last_failure
        return await self.authenticate(self.username, self._password)

    async def _exchange(self, body: dict[str, Any], grant: str) -> AuthResult:
        """Send ``body``, or join an identical exchange already in flight.

        An in-flight exchange for a different grant or different
        credentials is awaited first, then ``body`` is sent on its own.
        """
        key = (
            grant,
            str(body.get("username", "")),
            str(body.get("password") or body.get("refresh_token") or ""),
        )
        while self._inflight is not None and not self._inflight.done():
            inflight = self._inflight
            if self._inflight_key == key:
                _LOGGER.debug("Joining in-flight token exchange")
                return await asyncio.shield(inflight)
            _LOGGER.debug("Waiting for in-flight token exchange before sending a new one")
            await asyncio.shield(inflight)

        inflight = asyncio.ensure_future(self._send(body, grant))
        inflight.add_done_callback(self._clear_inflight)
        self._inflight = inflight
        self._inflight_key = key
        return await asyncio.shield(inflight)

    def _clear_inflight(self, future: asyncio.Future[AuthResult]) -> None:
        if self._inflight is future:
            self._inflight = None
            self._inflight_key = None

    async def _send(self, body: dict[str, Any], grant: str) -> AuthResult:
        """Run one token exchange and update the store."""
        try:
            payload = await self._client._request(
                "POST", TOKEN_PATH, json_data=body, check_envelope=False
            )
        except SunSynkAPIError as err:
            if err.status == HTTP_NOT_FOUND:
                return self._fail(AuthResult.remote_not_found(str(err)))
            if err.code == CODE_BAD_CREDENTIALS:
                return self._fail(AuthResult.invalid_credentials(str(err)))
            return self._fail(AuthResult.transport_error(str(err)))
        except SunSynkAuthError as err:
            if grant == _GRANT_PASSWORD:
                return self._fail(AuthResult.invalid_credentials(str(err)))
            return self._fail(AuthResult.transport_error(f"Refresh token rejected: {err}"))
        except SunSynkError as err:
            return self._fail(AuthResult.transport_error(str(err)))

        try:
            response = TokenResponse.model_validate(payload)
        except ValidationError as err:
            return self._fail(AuthResult.transport_error(f"Malformed token response: {err}"))

        if response.code == CODE_BAD_CREDENTIALS:
            return self._fail(
                AuthResult.invalid_credentials(response.msg or "Check your password or email")
            )
        if response.status == HTTP_NOT_FOUND:
            return self._fail(
                AuthResult.remote_not_found(f"404 {response.error or ''} {response.path or ''}".strip())
            )
        if response.code not in (None, CODE_OK):
            return self._fail(
                AuthResult.transport_error(f"Token exchange failed ({response.code}): {response.msg}")
            )
        if response.data is None or not response.data.access_token:
            return self._fail(AuthResult.transport_error("Token response carried no access token"))

        credential = Credential(
            access_token=response.data.access_token,
            refresh_token=response.data.refresh_token,
            issued_at=self._clock(),
            expires_in_seconds=response.data.expires_in,
        )
        self.store.replace(credential)
        self._last_failure = None
        _LOGGER.info(
            "Sunsynk %s exchange successful, token expires at %s",
            "login" if grant == _GRANT_PASSWORD else "refresh",
            credential.expires_at,
        )
        return AuthResult.success(credential)

    def _fail(self, result: AuthResult) -> AuthResult:
        if result.is_fatal:
            self.store.usable = False
            self._last_failure = result
            _LOGGER.error(
                "Sunsynk account %s could not be authenticated (%s): %s",
                self.username,
                result.status.value,
                result.detail,
            )
        else:
            _LOGGER.warning("Sunsynk token exchange failed: %s", result.detail)
        return result


__all__ = [
    "AccountSession",
    "AuthStatus",
    "Credential",
    "SessionStore",
]
