"""Inverter endpoints for the Sunsynk Connect API.

This module provides per-inverter functionality including:
- Inverter discovery for the account
- Charge settings read and write (overwrite-all)
- Real-time telemetry (grid, battery, solar, temperature)

Every method takes the bearer token explicitly and returns an
:class:`~pysunsynk.results.ApiResult`; nothing is raised to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import date
from typing import Any, TypeVar

from pydantic import ValidationError

from pysunsynk.constants import (
    BATTERY_REALTIME_PATH,
    GRID_REALTIME_PATH,
    INVERTER_LIST_PARAMS,
    INVERTER_LIST_PATH,
    SETTINGS_READ_PATH,
    SETTINGS_WRITE_PATH,
    SOLAR_REALTIME_PATH,
    TEMPERATURE_COLUMNS,
    TEMPERATURE_DAY_PATH,
)
from pysunsynk.endpoints.base import BaseEndpoint
from pysunsynk.exceptions import SunSynkAPIError, SunSynkAuthError, SunSynkError
from pysunsynk.models import (
    BatteryStatus,
    GridStatus,
    InverterList,
    SolarStatus,
    Telemetry,
    TemperatureHistory,
)
from pysunsynk.results import ApiResult
from pysunsynk.settings import SettingsSnapshot

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class InverterEndpoints(BaseEndpoint):
    """Inverter discovery, settings, and telemetry endpoints."""

    async def get_inverters(self, token: str) -> ApiResult[InverterList]:
        """List the inverters registered to the account."""
        return await self._guarded(
            "inverter list", "account", token, lambda: self._get_inverters(token)
        )

    async def fetch_settings(self, serial_number: str, token: str) -> ApiResult[SettingsSnapshot]:
        """Read the current charge settings snapshot.

        Args:
            serial_number: Inverter serial number
            token: Bearer token

        Returns:
            ApiResult with the parsed :class:`SettingsSnapshot`; ``AUTH_FAILURE``
            if the token was rejected, ``REQUEST_FAILURE`` for anything else.
        """
        return await self._guarded(
            "settings", serial_number, token, lambda: self._get_settings(serial_number, token)
        )

    async def fetch_telemetry(
        self, serial_number: str, token: str, *, day: date | None = None
    ) -> ApiResult[Telemetry]:
        """Fetch grid, battery, solar and temperature data.

        The four groups are fetched one after another. If any of them
        fails the whole call fails; partial telemetry is never returned.

        Args:
            serial_number: Inverter serial number
            token: Bearer token
            day: Day for the temperature history (default: today)
        """
        return await self._guarded(
            "telemetry",
            serial_number,
            token,
            lambda: self._get_telemetry(serial_number, token, day or date.today()),
        )

    async def push_settings(self, snapshot: SettingsSnapshot, token: str) -> ApiResult[str]:
        """Write the full settings snapshot back to the inverter.

        WARNING: This changes device configuration!

        The remote overwrites all six charge intervals, so the complete
        snapshot is sent, not a diff.

        Returns:
            ApiResult whose value is the API's acknowledgement message.
        """
        return await self._guarded(
            "settings write",
            snapshot.serial_number,
            token,
            lambda: self._post_settings(snapshot, token),
        )

    # ------------------------------------------------------------------
    # Raw calls (raise SunSynkError)
    # ------------------------------------------------------------------

    async def _get_data(
        self, path: str, token: str, params: dict[str, str] | None = None
    ) -> dict[str, Any]:
        payload = await self.client._request("GET", path, params=params, token=token)
        data = payload.get("data")
        if not isinstance(data, dict):
            raise SunSynkAPIError(f"Response from {path} carried no data object")
        return data

    async def _get_inverters(self, token: str) -> InverterList:
        data = await self._get_data(INVERTER_LIST_PATH, token, dict(INVERTER_LIST_PARAMS))
        return InverterList.model_validate(data)

    async def _get_settings(self, serial_number: str, token: str) -> SettingsSnapshot:
        data = await self._get_data(SETTINGS_READ_PATH.format(sn=serial_number), token)
        return SettingsSnapshot.from_wire(data, serial_number=serial_number, source_token=token)

    async def _get_telemetry(self, serial_number: str, token: str, day: date) -> Telemetry:
        sn = serial_number
        grid = GridStatus.model_validate(
            await self._get_data(GRID_REALTIME_PATH.format(sn=sn), token, {"sn": sn})
        )
        battery = BatteryStatus.model_validate(
            await self._get_data(
                BATTERY_REALTIME_PATH.format(sn=sn), token, {"sn": sn, "lan": "en"}
            )
        )
        solar = SolarStatus.model_validate(
            await self._get_data(SOLAR_REALTIME_PATH.format(sn=sn), token)
        )
        temperature = TemperatureHistory.model_validate(
            await self._get_data(
                TEMPERATURE_DAY_PATH.format(sn=sn),
                token,
                {"lan": "en", "date": day.isoformat(), "column": TEMPERATURE_COLUMNS},
            )
        )
        return Telemetry(grid=grid, battery=battery, solar=solar, temperature=temperature)

    async def _post_settings(self, snapshot: SettingsSnapshot, token: str) -> str:
        payload = await self.client._request(
            "POST",
            SETTINGS_WRITE_PATH.format(sn=snapshot.serial_number),
            json_data=snapshot.to_wire(),
            token=token,
        )
        return str(payload.get("msg") or "Success")

    async def _guarded(
        self, what: str, serial_number: str, token: str, call: Callable[[], Awaitable[T]]
    ) -> ApiResult[T]:
        """Run ``call`` and fold any failure into an ApiResult."""
        if not token:
            # Never send an empty bearer token
            return ApiResult.auth_failure("Not authenticated")
        try:
            return ApiResult.ok(await call())
        except SunSynkAuthError as err:
            _LOGGER.warning("Token rejected fetching %s for %s", what, serial_number)
            return ApiResult.auth_failure(str(err))
        except (SunSynkError, ValidationError) as err:
            _LOGGER.warning("Failed to fetch %s for %s: %s", what, serial_number, err)
            return ApiResult.request_failure(str(err))
