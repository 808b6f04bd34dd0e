"""Pytest configuration and fixtures for pysunsynk tests."""

from __future__ import annotations

import json
import re
from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest
from aioresponses import aioresponses

BASE_URL = "https://api.sunsynk.net"
SERIAL = "2211229948"

TOKEN_URL = f"{BASE_URL}/oauth/token"
SETTINGS_READ_URL = f"{BASE_URL}/api/v1/common/setting/{SERIAL}/read"
SETTINGS_WRITE_URL = f"{BASE_URL}/api/v1/common/setting/{SERIAL}/set"
GRID_URL = re.compile(rf"^{re.escape(BASE_URL)}/api/v1/inverter/grid/{SERIAL}/realtime(\?.*)?$")
BATTERY_URL = re.compile(
    rf"^{re.escape(BASE_URL)}/api/v1/inverter/battery/{SERIAL}/realtime(\?.*)?$"
)
SOLAR_URL = f"{BASE_URL}/api/v1/inverter/{SERIAL}/realtime/input"
TEMPERATURE_URL = re.compile(rf"^{re.escape(BASE_URL)}/api/v1/inverter/{SERIAL}/output/day(\?.*)?$")
INVERTERS_URL = re.compile(rf"^{re.escape(BASE_URL)}/api/v1/inverters(\?.*)?$")

# Load sample API responses
SAMPLES_DIR = Path(__file__).parent / "samples"


def load_sample(filename: str) -> dict[str, Any]:
    """Load a sample JSON response file."""
    file_path = SAMPLES_DIR / filename
    with open(file_path, encoding="utf-8") as f:
        result: dict[str, Any] = json.load(f)
        return result


class FakeClock:
    """Manually advanced clock for lockout and expiry tests."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at a fixed UTC instant."""
    return FakeClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def token_response() -> dict[str, Any]:
    """Sample successful /oauth/token response."""
    return load_sample("token.json")


@pytest.fixture
def settings_response() -> dict[str, Any]:
    """Sample settings read response."""
    return load_sample(f"settings_{SERIAL}.json")


@pytest.fixture
def grid_response() -> dict[str, Any]:
    """Sample grid realtime response."""
    return load_sample(f"grid_{SERIAL}.json")


@pytest.fixture
def battery_response() -> dict[str, Any]:
    """Sample battery realtime response."""
    return load_sample(f"battery_{SERIAL}.json")


@pytest.fixture
def solar_response() -> dict[str, Any]:
    """Sample PV input realtime response."""
    return load_sample(f"solar_{SERIAL}.json")


@pytest.fixture
def temperature_response() -> dict[str, Any]:
    """Sample temperature day history response."""
    return load_sample(f"temperature_{SERIAL}.json")


@pytest.fixture
def inverters_response() -> dict[str, Any]:
    """Sample inverter list response."""
    return load_sample("inverters.json")


@pytest.fixture
def mocked_api() -> Generator[aioresponses, None, None]:
    """Create aioresponses mock for HTTP requests.

    This fixture provides a context manager for mocking aiohttp requests
    using the aioresponses library.
    """
    with aioresponses() as m:
        yield m


@pytest.fixture
def mock_telemetry(
    mocked_api: aioresponses,
    grid_response: dict[str, Any],
    battery_response: dict[str, Any],
    solar_response: dict[str, Any],
    temperature_response: dict[str, Any],
) -> aioresponses:
    """Register one successful response for each telemetry group."""
    mocked_api.get(GRID_URL, payload=grid_response)
    mocked_api.get(BATTERY_URL, payload=battery_response)
    mocked_api.get(SOLAR_URL, payload=solar_response)
    mocked_api.get(TEMPERATURE_URL, payload=temperature_response)
    return mocked_api


def recorded_calls(mocked: aioresponses, method: str, url: str) -> list[Any]:
    """Return the aioresponses calls made to ``url`` (any query string)."""
    calls: list[Any] = []
    for (call_method, call_url), items in mocked.requests.items():
        if call_method == method and str(call_url).split("?", 1)[0] == url:
            calls.extend(items)
    return calls
