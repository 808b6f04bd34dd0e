"""Battery charge-interval settings (six fixed time slots).

The inverter exposes six charge intervals. Each slot has five fields, and
the remote API stores them as flat keys::

    time{n}on      grid charge enabled      (bool)
    genTime{n}on   generator charge enabled (bool)
    sellTime{n}    start time               ("HH:MM")
    cap{n}         capacity target          (percent, 0-100)
    sellTime{n}Pac power limit              (watts, >= 0)

Host integrations see the same data as flat channels named
``battery_interval_{n}_{field}``. This module maps both flat forms onto an
ordered tuple of :class:`ChargeInterval` records addressed by
``(slot, IntervalField)``.

The write endpoint overwrites all six slots, so :meth:`SettingsSnapshot.to_wire`
always emits every slot in ascending order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from pysunsynk.constants import INTERVAL_COUNT, INTERVAL_SLOTS
from pysunsynk.exceptions import InvalidFormatError, InvalidSlotError

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_CHANNEL_RE = re.compile(r"^battery_interval_(\d+)_([a-z_]+)$")

_TRUE_STRINGS = frozenset({"on", "true", "1"})
_FALSE_STRINGS = frozenset({"off", "false", "0"})


class IntervalField(str, Enum):
    """Selects one field of a charge interval.

    The value doubles as the flat channel suffix.
    """

    GRID_CHARGE = "grid_charge"
    GEN_CHARGE = "gen_charge"
    TIME = "time"
    CAPACITY = "capacity"
    POWER_LIMIT = "power_limit"

    def wire_key(self, slot: int) -> str:
        """Return the API key for this field in ``slot``."""
        return _WIRE_TEMPLATES[self].format(n=slot)


_WIRE_TEMPLATES: dict[IntervalField, str] = {
    IntervalField.GRID_CHARGE: "time{n}on",
    IntervalField.GEN_CHARGE: "genTime{n}on",
    IntervalField.TIME: "sellTime{n}",
    IntervalField.CAPACITY: "cap{n}",
    IntervalField.POWER_LIMIT: "sellTime{n}Pac",
}

# ChargeInterval attribute backing each field
_ATTRIBUTES: dict[IntervalField, str] = {
    IntervalField.GRID_CHARGE: "grid_charge_enabled",
    IntervalField.GEN_CHARGE: "gen_charge_enabled",
    IntervalField.TIME: "start_time",
    IntervalField.CAPACITY: "capacity_target_percent",
    IntervalField.POWER_LIMIT: "power_limit_watts",
}


def _generate_wire_keys() -> frozenset[str]:
    return frozenset(f.wire_key(slot) for slot in INTERVAL_SLOTS for f in IntervalField)


SLOT_WIRE_KEYS: frozenset[str] = _generate_wire_keys()


def channel_id(slot: int, interval_field: IntervalField) -> str:
    """Return the flat channel id for one slot field."""
    check_slot(slot)
    return f"battery_interval_{slot}_{interval_field.value}"


def parse_channel_id(channel: str) -> tuple[int, IntervalField]:
    """Map a flat channel id back to ``(slot, field)``.

    Raises:
        InvalidSlotError: Slot number outside 1..6
        InvalidFormatError: Not a charge-interval channel
    """
    match = _CHANNEL_RE.match(channel)
    if match is None:
        raise InvalidFormatError(f"Not a charge interval channel: {channel!r}")
    try:
        interval_field = IntervalField(match.group(2))
    except ValueError as err:
        raise InvalidFormatError(f"Unknown charge interval field in {channel!r}") from err
    slot = int(match.group(1))
    check_slot(slot)
    return slot, interval_field


def check_slot(slot: Any) -> int:
    """Return ``slot`` if it is a valid 1-based slot index."""
    if isinstance(slot, bool) or not isinstance(slot, int) or slot not in INTERVAL_SLOTS:
        raise InvalidSlotError(slot)
    return slot


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise InvalidFormatError(f"Expected ON/OFF, got {value!r}")


def _coerce_int(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidFormatError(f"Expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise InvalidFormatError(f"Expected an integer, got {value!r}")


def validate_field(interval_field: IntervalField, value: Any) -> bool | int | str:
    """Validate and normalize a value for ``interval_field``.

    Accepts host-style values as well as native ones: ``"ON"``/``"OFF"``
    for the charge switches and numeric strings for capacity and power.

    Raises:
        InvalidFormatError: Wrong type, bad ``HH:MM`` string, capacity
            outside 0-100, or a negative power limit
    """
    if interval_field in (IntervalField.GRID_CHARGE, IntervalField.GEN_CHARGE):
        return _coerce_bool(value)

    if interval_field is IntervalField.TIME:
        text = str(value).strip() if isinstance(value, str) else None
        if text is None or not _TIME_RE.match(text):
            raise InvalidFormatError(f"Interval time must be HH:MM (24-hour), got {value!r}")
        return text

    number = _coerce_int(value)
    if interval_field is IntervalField.CAPACITY and not 0 <= number <= 100:
        raise InvalidFormatError(f"Capacity must be between 0 and 100, got {number}")
    if interval_field is IntervalField.POWER_LIMIT and number < 0:
        raise InvalidFormatError(f"Power limit must not be negative, got {number}")
    return number


@dataclass(frozen=True)
class ChargeInterval:
    """One charge-interval slot."""

    grid_charge_enabled: bool = False
    gen_charge_enabled: bool = False
    start_time: str = "00:00"
    capacity_target_percent: int = 0
    power_limit_watts: int = 0

    def get(self, interval_field: IntervalField) -> bool | int | str:
        value: bool | int | str = getattr(self, _ATTRIBUTES[interval_field])
        return value

    def with_value(self, interval_field: IntervalField, value: Any) -> ChargeInterval:
        """Return a copy with one field replaced (validated)."""
        normalized = validate_field(interval_field, value)
        return replace(self, **{_ATTRIBUTES[interval_field]: normalized})


def _default_intervals() -> tuple[ChargeInterval, ...]:
    return tuple(ChargeInterval() for _ in INTERVAL_SLOTS)


@dataclass
class SettingsSnapshot:
    """Complete charge settings for one inverter.

    ``intervals`` always holds exactly six slots. Mutate only through the
    slot-scoped setters; a rejected value leaves the snapshot unchanged.

    Attributes:
        serial_number: Inverter serial number
        intervals: Slots 1..6 in order
        source_token: Access token the snapshot was read with. Writes use
            the session's current token instead, which may be newer
        extra: Non-interval settings from the read, echoed back on write
    """

    serial_number: str
    intervals: tuple[ChargeInterval, ...] = field(default_factory=_default_intervals)
    source_token: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if len(self.intervals) != INTERVAL_COUNT:
            raise ValueError(
                f"Settings must contain exactly {INTERVAL_COUNT} intervals, "
                f"got {len(self.intervals)}"
            )

    # ------------------------------------------------------------------
    # Indexed access
    # ------------------------------------------------------------------

    def interval(self, slot: int) -> ChargeInterval:
        return self.intervals[check_slot(slot) - 1]

    def get_field(self, slot: int, interval_field: IntervalField) -> bool | int | str:
        return self.interval(slot).get(interval_field)

    def set_field(self, slot: int, interval_field: IntervalField, value: Any) -> None:
        """Set one field of one slot.

        Raises:
            InvalidSlotError: ``slot`` outside 1..6
            InvalidFormatError: ``value`` rejected by :func:`validate_field`
        """
        index = check_slot(slot) - 1
        updated = self.intervals[index].with_value(interval_field, value)
        self.intervals = self.intervals[:index] + (updated,) + self.intervals[index + 1 :]

    # Named setters, value first then slot

    def set_interval_grid_charge(self, enabled: Any, slot: int) -> None:
        self.set_field(slot, IntervalField.GRID_CHARGE, enabled)

    def set_interval_gen_charge(self, enabled: Any, slot: int) -> None:
        self.set_field(slot, IntervalField.GEN_CHARGE, enabled)

    def set_interval_time(self, start_time: Any, slot: int) -> None:
        self.set_field(slot, IntervalField.TIME, start_time)

    def set_interval_battery_capacity(self, capacity: Any, slot: int) -> None:
        self.set_field(slot, IntervalField.CAPACITY, capacity)

    def set_interval_power_limit(self, watts: Any, slot: int) -> None:
        self.set_field(slot, IntervalField.POWER_LIMIT, watts)

    def copy(self) -> SettingsSnapshot:
        return replace(self, extra=dict(self.extra))

    # ------------------------------------------------------------------
    # Flat representations
    # ------------------------------------------------------------------

    def to_channels(self) -> dict[str, bool | int | str]:
        """Flatten to ``battery_interval_{n}_{field}`` channel values."""
        return {
            channel_id(slot, interval_field): self.get_field(slot, interval_field)
            for interval_field in IntervalField
            for slot in INTERVAL_SLOTS
        }

    def to_wire(self) -> dict[str, Any]:
        """Build the body for the settings write endpoint.

        All six slots are written, ascending, whichever one changed.
        Capacity and power limit go out as strings, matching what the
        read endpoint returns.
        """
        body: dict[str, Any] = dict(self.extra)
        body["sn"] = self.serial_number
        for slot in INTERVAL_SLOTS:
            interval = self.interval(slot)
            body[IntervalField.TIME.wire_key(slot)] = interval.start_time
            body[IntervalField.CAPACITY.wire_key(slot)] = str(interval.capacity_target_percent)
            body[IntervalField.POWER_LIMIT.wire_key(slot)] = str(interval.power_limit_watts)
            body[IntervalField.GRID_CHARGE.wire_key(slot)] = interval.grid_charge_enabled
            body[IntervalField.GEN_CHARGE.wire_key(slot)] = interval.gen_charge_enabled
        return body

    @classmethod
    def from_wire(
        cls, data: dict[str, Any], serial_number: str | None = None, source_token: str = ""
    ) -> SettingsSnapshot:
        """Parse the settings read payload.

        Missing slot keys fall back to the :class:`ChargeInterval` defaults.

        Raises:
            InvalidFormatError: A slot value present on the wire is invalid
        """
        intervals = []
        for slot in INTERVAL_SLOTS:
            interval = ChargeInterval()
            for interval_field in IntervalField:
                key = interval_field.wire_key(slot)
                if data.get(key) is not None:
                    interval = interval.with_value(interval_field, data[key])
            intervals.append(interval)

        extra = {k: v for k, v in data.items() if k not in SLOT_WIRE_KEYS and k != "sn"}
        return cls(
            serial_number=serial_number or str(data.get("sn", "")),
            intervals=tuple(intervals),
            source_token=source_token,
            extra=extra,
        )


__all__ = [
    "SLOT_WIRE_KEYS",
    "ChargeInterval",
    "IntervalField",
    "SettingsSnapshot",
    "channel_id",
    "check_slot",
    "parse_channel_id",
    "validate_field",
]
