"""Account and inverter configuration.

Plain dataclasses with validation and dict round-tripping, so host
integrations can store them in their own config entries.

Example:
    account = AccountConfig(username="me@example.com", password="secret")
    inverter = InverterConfig(serial="2211229948", alias="Garage", refresh=120)
    inverter.validate()

    restored = InverterConfig.from_dict(inverter.to_dict())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pysunsynk.constants import (
    BASE_URL,
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_TIMEOUT,
    MIN_REFRESH_INTERVAL,
)

_LOGGER = logging.getLogger(__name__)


@dataclass
class AccountConfig:
    """Sunsynk Connect account credentials.

    Attributes:
        username: Account email
        password: Account password
        base_url: API base URL
        timeout: Per-request timeout in seconds
    """

    username: str
    password: str
    base_url: str = BASE_URL
    timeout: float = DEFAULT_TIMEOUT

    def validate(self) -> None:
        """Raises ValueError if credentials or timeout are unusable."""
        if not self.username:
            raise ValueError("username is required")
        if not self.password:
            raise ValueError("password is required")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    def to_dict(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "password": self.password,
            "base_url": self.base_url,
            "timeout": self.timeout,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccountConfig:
        return cls(
            username=data.get("username", ""),
            password=data.get("password", ""),
            base_url=data.get("base_url", BASE_URL),
            timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
        )

    def __repr__(self) -> str:
        return f"AccountConfig(username={self.username!r}, base_url={self.base_url!r})"


@dataclass
class InverterConfig:
    """Configuration for one polled inverter.

    Attributes:
        serial: Inverter serial number
        alias: Display name used in logs and status messages
        refresh: Poll interval in seconds (minimum 60)
    """

    serial: str
    alias: str = ""
    refresh: int = DEFAULT_REFRESH_INTERVAL

    def __post_init__(self) -> None:
        if not self.alias:
            self.alias = self.serial

    def validate(self) -> None:
        """Validate the configuration.

        A refresh interval under the 60 second floor is raised to the
        floor with a warning rather than rejected.

        Raises:
            ValueError: If the serial number is missing
        """
        if not self.serial:
            raise ValueError("serial is required")
        if self.refresh < MIN_REFRESH_INTERVAL:
            _LOGGER.warning(
                "Refresh time [%s] is not valid. Refresh time must be at least %d seconds. "
                "Setting to minimum of %d sec",
                self.refresh,
                MIN_REFRESH_INTERVAL,
                MIN_REFRESH_INTERVAL,
            )
            self.refresh = MIN_REFRESH_INTERVAL

    def to_dict(self) -> dict[str, Any]:
        return {"serial": self.serial, "alias": self.alias, "refresh": self.refresh}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InverterConfig:
        return cls(
            serial=str(data.get("serial", "")),
            alias=data.get("alias", ""),
            refresh=int(data.get("refresh", DEFAULT_REFRESH_INTERVAL)),
        )


__all__ = [
    "AccountConfig",
    "InverterConfig",
]
