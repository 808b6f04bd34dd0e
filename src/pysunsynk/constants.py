"""Constants for the Sunsynk Connect cloud API.

Endpoint paths, OAuth parameters, response codes, and the timing windows
used by the session manager and the per-device refresh scheduler.
"""

from __future__ import annotations

from datetime import timedelta

# ============================================================================
# API
# ============================================================================

BASE_URL = "https://api.sunsynk.net"

# OAuth client id used by the Sunsynk Connect web app
CLIENT_ID = "csp-web"

# Fixed timeout for every remote call (seconds)
DEFAULT_TIMEOUT = 4.0

TOKEN_PATH = "/oauth/token"
INVERTER_LIST_PATH = "/api/v1/inverters"
SETTINGS_READ_PATH = "/api/v1/common/setting/{sn}/read"
SETTINGS_WRITE_PATH = "/api/v1/common/setting/{sn}/set"
GRID_REALTIME_PATH = "/api/v1/inverter/grid/{sn}/realtime"
BATTERY_REALTIME_PATH = "/api/v1/inverter/battery/{sn}/realtime"
SOLAR_REALTIME_PATH = "/api/v1/inverter/{sn}/realtime/input"
TEMPERATURE_DAY_PATH = "/api/v1/inverter/{sn}/output/day"

# Query string the web app sends when listing inverters for an account
INVERTER_LIST_PARAMS: dict[str, str] = {
    "page": "1",
    "limit": "10",
    "total": "0",
    "status": "-1",
    "sn": "",
    "plantId": "",
    "type": "-2",
    "softVer": "",
    "hmiVer": "",
    "agentCompanyId": "-1",
    "gsn": "",
}

TEMPERATURE_COLUMNS = "dc_temp,igbt_temp"

# ============================================================================
# Response codes
# ============================================================================

# Body "code" when username/password are rejected
CODE_BAD_CREDENTIALS = 102

# Body "code" on a successful data call
CODE_OK = 0

HTTP_UNAUTHORIZED = 401
HTTP_NOT_FOUND = 404

# ============================================================================
# Timing
# ============================================================================

# A token with less than this left is refreshed before use
TOKEN_REFRESH_MARGIN = timedelta(seconds=30)

# Minimum spacing between two poll cycles for one inverter
LOCKOUT_WINDOW = timedelta(minutes=1)

# Poll interval floor and default (seconds)
MIN_REFRESH_INTERVAL = 60
DEFAULT_REFRESH_INTERVAL = 60

# ============================================================================
# Charge intervals
# ============================================================================

INTERVAL_COUNT = 6
INTERVAL_SLOTS: tuple[int, ...] = tuple(range(1, INTERVAL_COUNT + 1))

VENDOR = "SunSynk"

# Temperature history status meaning both readings are present
TEMPERATURE_STATUS_OK = "okay"
TEMPERATURE_STATUS_NO_DATA = "no data"
