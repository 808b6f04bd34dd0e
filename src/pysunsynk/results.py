"""Tagged outcomes for remote calls.

Authentication and data calls never hand a bare boolean or a sentinel
string back to the caller. Each returns a small frozen dataclass with an
explicit status enum, so callers branch on ``result.status`` rather than
on message contents.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from pysunsynk.session import Credential

T = TypeVar("T")


class AuthStatus(str, Enum):
    """Outcome of a login or token-refresh exchange."""

    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    REMOTE_NOT_FOUND = "remote_not_found"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class AuthResult:
    """Result of :meth:`AccountSession.authenticate` / :meth:`AccountSession.ensure_valid`.

    Attributes:
        status: Which variant this is
        credential: The credential now in force (``SUCCESS`` only)
        detail: Human-readable reason for failures
    """

    status: AuthStatus
    credential: Credential | None = None
    detail: str | None = None

    @classmethod
    def success(cls, credential: Credential) -> AuthResult:
        return cls(AuthStatus.SUCCESS, credential=credential)

    @classmethod
    def invalid_credentials(cls, detail: str | None = None) -> AuthResult:
        return cls(AuthStatus.INVALID_CREDENTIALS, detail=detail)

    @classmethod
    def remote_not_found(cls, detail: str | None = None) -> AuthResult:
        return cls(AuthStatus.REMOTE_NOT_FOUND, detail=detail)

    @classmethod
    def transport_error(cls, detail: str) -> AuthResult:
        return cls(AuthStatus.TRANSPORT_ERROR, detail=detail)

    @property
    def is_success(self) -> bool:
        return self.status is AuthStatus.SUCCESS

    @property
    def is_fatal(self) -> bool:
        """True when retrying with the same credentials cannot succeed."""
        return self.status in (AuthStatus.INVALID_CREDENTIALS, AuthStatus.REMOTE_NOT_FOUND)


class ApiStatus(str, Enum):
    """Outcome of an authenticated data call."""

    OK = "ok"
    AUTH_FAILURE = "auth_failure"
    REQUEST_FAILURE = "request_failure"


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    """Result of an :class:`~pysunsynk.endpoints.InverterEndpoints` call.

    ``value`` holds the parsed payload for ``OK`` results; for a settings
    push it holds the API's acknowledgement message.
    """

    status: ApiStatus
    value: T | None = None
    detail: str | None = None

    @classmethod
    def ok(cls, value: T) -> ApiResult[T]:
        return cls(ApiStatus.OK, value=value)

    @classmethod
    def auth_failure(cls, detail: str | None = None) -> ApiResult[T]:
        return cls(ApiStatus.AUTH_FAILURE, detail=detail)

    @classmethod
    def request_failure(cls, detail: str | None = None) -> ApiResult[T]:
        return cls(ApiStatus.REQUEST_FAILURE, detail=detail)

    @property
    def is_ok(self) -> bool:
        return self.status is ApiStatus.OK


__all__ = [
    "ApiResult",
    "ApiStatus",
    "AuthResult",
    "AuthStatus",
]
