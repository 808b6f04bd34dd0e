"""Python client library for the Sunsynk Connect inverter cloud API.

Usage:
    Basic client usage:
        from pysunsynk import SunSynkClient

        async with SunSynkClient(username, password) as client:
            token = client.account.current_access_token()
            settings = await client.inverters.fetch_settings(serial, token)

    Scheduled polling:
        from pysunsynk import InverterConfig, SunSynkClient
        from pysunsynk.devices import LoggingObserver, RefreshScheduler

        async with SunSynkClient(username, password) as client:
            scheduler = RefreshScheduler.from_client(
                client, InverterConfig(serial=serial), LoggingObserver()
            )
            scheduler.start()
"""

from __future__ import annotations

from .client import SunSynkClient
from .config import AccountConfig, InverterConfig
from .endpoints import InverterEndpoints
from .exceptions import (
    InvalidFormatError,
    InvalidSlotError,
    SettingsValidationError,
    SunSynkAPIError,
    SunSynkAuthError,
    SunSynkConnectionError,
    SunSynkError,
)
from .results import ApiResult, ApiStatus, AuthResult, AuthStatus
from .session import AccountSession, Credential, SessionStore
from .settings import ChargeInterval, IntervalField, SettingsSnapshot

__version__ = "0.1.0"
__all__ = [
    "SunSynkClient",
    "AccountSession",
    "SessionStore",
    "Credential",
    "InverterEndpoints",
    # Configuration
    "AccountConfig",
    "InverterConfig",
    # Settings
    "ChargeInterval",
    "IntervalField",
    "SettingsSnapshot",
    # Results
    "ApiResult",
    "ApiStatus",
    "AuthResult",
    "AuthStatus",
    # Exceptions
    "SunSynkError",
    "SunSynkAPIError",
    "SunSynkAuthError",
    "SunSynkConnectionError",
    "SettingsValidationError",
    "InvalidSlotError",
    "InvalidFormatError",
]
