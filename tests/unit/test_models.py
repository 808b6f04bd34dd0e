"""Unit tests for API response models."""

from __future__ import annotations

from typing import Any

import pytest

from pysunsynk.models import (
    BatteryStatus,
    GridStatus,
    InverterList,
    SolarStatus,
    Telemetry,
    TemperatureHistory,
    TokenResponse,
)


class TestTokenResponse:
    """Test TokenResponse model."""

    def test_success(self, token_response: dict[str, Any]) -> None:
        response = TokenResponse.model_validate(token_response)

        assert response.code == 0
        assert response.data is not None
        assert response.data.access_token == "access-token-1"
        assert response.data.expires_in == 604799

    def test_spring_error_body(self) -> None:
        response = TokenResponse.model_validate(
            {"timestamp": "2024-05-01", "status": 404, "error": "Not Found", "path": "/oauth"}
        )

        assert response.status == 404
        assert response.data is None


class TestTelemetryModels:
    """Test telemetry group parsing."""

    def test_grid_uses_first_phase(self, grid_response: dict[str, Any]) -> None:
        grid = GridStatus.model_validate(grid_response["data"])

        assert grid.power == 1010
        assert grid.voltage == pytest.approx(239.8)
        assert grid.current == pytest.approx(4.2)

    def test_grid_without_phases(self) -> None:
        grid = GridStatus.model_validate({"pac": 5, "vip": []})
        assert grid.voltage == 0.0

    def test_battery_string_values(self, battery_response: dict[str, Any]) -> None:
        battery = BatteryStatus.model_validate(battery_response["data"])

        assert battery.voltage == pytest.approx(52.4)
        assert battery.state_of_charge == 76.0
        assert battery.temperature == pytest.approx(24.5)
        assert battery.power == -645

    def test_solar_sums_strings(self, solar_response: dict[str, Any]) -> None:
        solar = SolarStatus.model_validate(solar_response["data"])

        assert solar.instant_power == 2390
        assert solar.energy_today == pytest.approx(12.6)

    def test_solar_falls_back_to_pac(self) -> None:
        solar = SolarStatus.model_validate({"pac": 800, "etoday": 1, "etotal": 2})
        assert solar.instant_power == 800

    def test_temperature_takes_latest_record(self, temperature_response: dict[str, Any]) -> None:
        history = TemperatureHistory.model_validate(temperature_response["data"])

        assert history.status == "okay"
        assert history.dc_temp == pytest.approx(33.8)
        assert history.ac_temp == pytest.approx(41.7)

    def test_temperature_igbt_label(self) -> None:
        history = TemperatureHistory.model_validate(
            {
                "infos": [
                    {"label": "DC TEMP", "records": [{"value": "30"}]},
                    {"label": "IGBT TEMP", "records": [{"value": "45"}]},
                ]
            }
        )
        assert history.status == "okay"
        assert history.ac_temp == 45

    def test_temperature_empty(self) -> None:
        history = TemperatureHistory.model_validate({"infos": []})

        assert history.status == "no data"
        assert history.ac_temp is None


class TestTelemetryFields:
    """Test flattening to observer fields."""

    def _telemetry(self, temperature: TemperatureHistory) -> Telemetry:
        return Telemetry(
            grid=GridStatus(pac=100),
            battery=BatteryStatus(soc=50),
            solar=SolarStatus(etoday=1.5),
            temperature=temperature,
        )

    def test_temperatures_published_when_okay(self) -> None:
        fields = self._telemetry(
            TemperatureHistory(ac_temp=40.0, dc_temp=30.0, status="okay")
        ).to_fields()

        assert fields["grid_power"] == 100
        assert fields["battery_soc"] == 50
        assert fields["solar_energy_today"] == 1.5
        assert fields["inverter_ac_temperature"] == 40.0
        assert fields["inverter_dc_temperature"] == 30.0

    def test_temperatures_withheld_without_data(self) -> None:
        fields = self._telemetry(TemperatureHistory()).to_fields()

        assert "inverter_ac_temperature" not in fields
        assert "inverter_dc_temperature" not in fields
        assert len(fields) == 11


class TestInverterList:
    """Test inverter discovery model."""

    def test_parse(self, inverters_response: dict[str, Any]) -> None:
        listing = InverterList.model_validate(inverters_response["data"])

        assert listing.total == 2
        assert listing.infos[0].alias == "Garage"
        assert listing.infos[0].pac == 1010
