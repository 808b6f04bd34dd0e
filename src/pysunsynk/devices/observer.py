"""Host-facing observer interface for inverter state.

The refresh scheduler pushes values and status changes through an
:class:`InverterObserver`; the host integration (openHAB-style channels,
Home Assistant entities, MQTT, ...) owns the implementation.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

_LOGGER = logging.getLogger(__name__)


@runtime_checkable
class InverterObserver(Protocol):
    """Receives published state for one inverter."""

    def publish(self, field: str, value: Any) -> None:
        """Publish one telemetry or settings field."""
        ...

    def mark_online(self) -> None:
        """The last cycle reached the inverter."""
        ...

    def mark_offline(self, reason: str) -> None:
        """The last cycle or command failed."""
        ...

    def request_reauthentication(self) -> None:
        """The account needs new credentials before polling can resume."""
        ...


class LoggingObserver:
    """Observer that records the latest values and logs status changes.

    Useful for scripts and as a default when no host integration is
    attached.
    """

    def __init__(self, name: str = "inverter") -> None:
        self.name = name
        self.values: dict[str, Any] = {}
        self.online: bool | None = None
        self.offline_reason: str | None = None
        self.reauthentication_requested = False

    def publish(self, field: str, value: Any) -> None:
        self.values[field] = value

    def mark_online(self) -> None:
        if self.online is not True:
            _LOGGER.info("%s online", self.name)
        self.online = True
        self.offline_reason = None

    def mark_offline(self, reason: str) -> None:
        _LOGGER.warning("%s offline: %s", self.name, reason)
        self.online = False
        self.offline_reason = reason

    def request_reauthentication(self) -> None:
        _LOGGER.error("%s: account needs new credentials", self.name)
        self.reauthentication_requested = True
