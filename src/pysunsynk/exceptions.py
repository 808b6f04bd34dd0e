"""Exception hierarchy for pysunsynk.

Exceptions are raised inside the HTTP layer and by local settings
validation. Public components (:class:`~pysunsynk.session.AccountSession`,
:class:`~pysunsynk.endpoints.InverterEndpoints`, and
:class:`~pysunsynk.devices.RefreshScheduler`) convert remote failures into
the tagged results in :mod:`pysunsynk.results` instead of raising.
"""

from __future__ import annotations


class SunSynkError(Exception):
    """Base exception for all pysunsynk errors."""

    pass


class SunSynkAPIError(SunSynkError):
    """The API answered, but with an error.

    Attributes:
        status: HTTP status code, or the body ``status`` field when the
            API embeds one in a 200 response
        code: Sunsynk body ``code`` field, if present
    """

    def __init__(self, message: str, *, status: int | None = None, code: int | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.code = code


class SunSynkAuthError(SunSynkError):
    """The bearer token was rejected (expired or invalid)."""

    pass


class SunSynkConnectionError(SunSynkError):
    """Network failure or timeout talking to the API."""

    pass


class SettingsValidationError(SunSynkError, ValueError):
    """A charge-interval setting was rejected before reaching the remote."""

    pass


class InvalidSlotError(SettingsValidationError):
    """Slot index outside 1..6."""

    def __init__(self, slot: object) -> None:
        self.slot = slot
        super().__init__(f"Charge interval slot must be between 1 and 6, got {slot!r}")


class InvalidFormatError(SettingsValidationError):
    """Value has the wrong format or is out of range for its field."""

    pass
