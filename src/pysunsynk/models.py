"""Pydantic models for Sunsynk Connect API responses.

Every data call answers with the same envelope::

    {"code": 0, "msg": "Success", "success": true, "data": {...}}

The HTTP layer checks the envelope; the models here describe ``data``.
Numeric fields often arrive as strings ("52.1"), which pydantic's lax
mode coerces.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pysunsynk.constants import TEMPERATURE_STATUS_NO_DATA, TEMPERATURE_STATUS_OK


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _object_list(value: Any, name: str) -> list[dict[str, Any]]:
    """Return ``value`` as a list of objects, raising ValueError on any other shape."""
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ValueError(f"{name} must be a list of objects, got {value!r}")
    return value


# ============================================================================
# Authentication
# ============================================================================


class TokenData(_WireModel):
    """Payload of a successful ``/oauth/token`` exchange."""

    access_token: str = ""
    token_type: str | None = None
    refresh_token: str = ""
    expires_in: int = 0
    scope: str | None = None


class TokenResponse(_WireModel):
    """Full ``/oauth/token`` response.

    Failures come back as HTTP 200 with ``code`` set (102 = bad
    credentials) or as a Spring-style error body carrying ``status``,
    ``error`` and ``path``.
    """

    code: int | None = None
    msg: str | None = None
    success: bool | None = None
    data: TokenData | None = None
    status: int | None = None
    error: str | None = None
    path: str | None = None


# ============================================================================
# Discovery
# ============================================================================


class InverterSummary(_WireModel):
    """One row of the account's inverter list."""

    sn: str
    alias: str | None = None
    status: int | None = None
    pac: float | None = None
    etoday: float | None = None
    etotal: float | None = None


class InverterList(_WireModel):
    total: int = 0
    infos: list[InverterSummary] = Field(default_factory=list)


# ============================================================================
# Telemetry
# ============================================================================


class GridStatus(_WireModel):
    """Real-time grid connection (first phase)."""

    power: float = Field(0.0, alias="pac")
    voltage: float = 0.0
    current: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _flatten_vip(cls, data: Any) -> Any:
        # Voltage/current are reported per phase under "vip"
        if isinstance(data, dict) and "vip" in data:
            data = dict(data)
            phases = _object_list(data.pop("vip"), "vip")
            if phases:
                data.setdefault("voltage", phases[0].get("volt", 0.0))
                data.setdefault("current", phases[0].get("current", 0.0))
        return data


class BatteryStatus(_WireModel):
    """Real-time battery readings."""

    voltage: float = 0.0
    current: float = 0.0
    power: float = 0.0
    state_of_charge: float = Field(0.0, alias="soc")
    temperature: float = Field(0.0, alias="temp")


class SolarStatus(_WireModel):
    """Real-time PV input and energy counters."""

    energy_today: float = Field(0.0, alias="etoday")
    energy_total: float = Field(0.0, alias="etotal")
    instant_power: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _sum_strings(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "instant_power" in data:
            return data
        data = dict(data)
        strings = _object_list(data.get("pvIV"), "pvIV")
        if strings:
            try:
                data["instant_power"] = sum(float(s.get("ppv") or 0) for s in strings)
            except TypeError as err:
                raise ValueError(f"pvIV power must be numeric: {err}") from err
        else:
            data["instant_power"] = data.get("pac") or 0.0
        return data


class TemperatureHistory(_WireModel):
    """Latest AC/DC inverter temperatures from today's history.

    ``status`` is ``"okay"`` only when both series had at least one
    record; consumers should ignore the readings otherwise.
    """

    ac_temp: float | None = None
    dc_temp: float | None = None
    status: str = TEMPERATURE_STATUS_NO_DATA

    @model_validator(mode="before")
    @classmethod
    def _latest_records(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "infos" not in data:
            return data
        latest: dict[str, Any] = {}
        for info in _object_list(data.get("infos"), "infos"):
            records = _object_list(info.get("records"), "records")
            if not records:
                continue
            label = str(info.get("label", "")).lower()
            if "dc" in label:
                latest["dc_temp"] = records[-1].get("value")
            elif "ac" in label or "igbt" in label:
                latest["ac_temp"] = records[-1].get("value")
        ok = "ac_temp" in latest and "dc_temp" in latest
        latest["status"] = TEMPERATURE_STATUS_OK if ok else TEMPERATURE_STATUS_NO_DATA
        return latest


@dataclass(frozen=True)
class Telemetry:
    """All telemetry groups from one poll cycle; replaced wholesale."""

    grid: GridStatus
    battery: BatteryStatus
    solar: SolarStatus
    temperature: TemperatureHistory

    def to_fields(self) -> dict[str, Any]:
        """Flatten to observer field names."""
        fields: dict[str, Any] = {
            "grid_power": self.grid.power,
            "grid_voltage": self.grid.voltage,
            "grid_current": self.grid.current,
            "battery_voltage": self.battery.voltage,
            "battery_current": self.battery.current,
            "battery_power": self.battery.power,
            "battery_soc": self.battery.state_of_charge,
            "battery_temperature": self.battery.temperature,
            "solar_energy_today": self.solar.energy_today,
            "solar_energy_total": self.solar.energy_total,
            "solar_power_now": self.solar.instant_power,
        }
        if self.temperature.status == TEMPERATURE_STATUS_OK:
            fields["inverter_ac_temperature"] = self.temperature.ac_temp
            fields["inverter_dc_temperature"] = self.temperature.dc_temp
        return fields


__all__ = [
    "BatteryStatus",
    "GridStatus",
    "InverterList",
    "InverterSummary",
    "SolarStatus",
    "Telemetry",
    "TemperatureHistory",
    "TokenData",
    "TokenResponse",
]
