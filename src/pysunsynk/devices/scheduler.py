"""Per-inverter polling and command dispatch.

One :class:`RefreshScheduler` runs per inverter. A fixed-delay timer ticks
immediately and then every ``refresh`` seconds; each tick either starts a
poll cycle or is suppressed by the lockout window::

    IDLE --tick, now < lockout_until--> SUPPRESSED (no-op)
    IDLE --tick--> POLLING --ok--> PUBLISHED --> IDLE
                           --token rejected--> AUTH_RETRY --> IDLE
                           --other failure--> IDLE (observer marked offline)

``lockout_until`` moves to ``now + 1 minute`` as soon as a cycle starts,
before any remote call, so a manual refresh racing the timer cannot
produce two cycles inside one window.

Commands mutate the local :class:`~pysunsynk.settings.SettingsSnapshot`
and push it immediately. Poll cycles and pushes share one lock, so a
command arriving mid-cycle is queued and applied once the cycle ends.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any

from pysunsynk.constants import LOCKOUT_WINDOW, VENDOR
from pysunsynk.exceptions import SettingsValidationError
from pysunsynk.results import ApiResult, ApiStatus, AuthResult
from pysunsynk.session import utcnow
from pysunsynk.settings import IntervalField, check_slot, parse_channel_id, validate_field

if TYPE_CHECKING:
    from pysunsynk.client import SunSynkClient
    from pysunsynk.config import InverterConfig
    from pysunsynk.devices.observer import InverterObserver
    from pysunsynk.endpoints import InverterEndpoints
    from pysunsynk.models import Telemetry
    from pysunsynk.session import AccountSession
    from pysunsynk.settings import SettingsSnapshot

_LOGGER = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    AUTH_RETRY = "auth_retry"
    PUBLISHED = "published"
    DISPOSED = "disposed"


class PollOutcome(str, Enum):
    """How one tick ended."""

    PUBLISHED = "published"
    SUPPRESSED = "suppressed"
    AUTH_RETRY = "auth_retry"
    DEGRADED = "degraded"
    UNAUTHENTICATED = "unauthenticated"
    DISPOSED = "disposed"


class CommandOutcome(str, Enum):
    """How one settings command ended."""

    SENT = "sent"
    REJECTED = "rejected"
    NOT_READY = "not_ready"
    AUTH_RETRY = "auth_retry"
    FAILED = "failed"
    DISPOSED = "disposed"


@dataclass
class PollState:
    """Lockout bookkeeping for one inverter."""

    last_poll_at: datetime | None = None
    lockout_until: datetime | None = None
    pending_settings_write: bool = False

    def is_locked_out(self, now: datetime) -> bool:
        return self.lockout_until is not None and now < self.lockout_until

    def begin(self, now: datetime, window: timedelta = LOCKOUT_WINDOW) -> None:
        self.last_poll_at = now
        self.lockout_until = now + window


class RefreshScheduler:
    """Polls one inverter and pushes charge-setting commands to it.

    Example:
        ```python
        async with SunSynkClient(username, password) as client:
            scheduler = RefreshScheduler.from_client(
                client, InverterConfig(serial="2211229948"), LoggingObserver()
            )
            scheduler.start()
            ...
            await scheduler.async_handle_command(2, IntervalField.CAPACITY, 80)
            ...
            scheduler.dispose()
        ```
    """

    def __init__(
        self,
        config: InverterConfig,
        account: AccountSession,
        inverters: InverterEndpoints,
        observer: InverterObserver,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the scheduler.

        Args:
            config: Inverter configuration (validated here; refresh is
                clamped to the 60 second floor)
            account: Session providing the bearer token and re-authentication
            inverters: Stateless inverter endpoints
            observer: Host interface receiving published state
            clock: Source of "now", injectable for tests
        """
        config.validate()
        self.config = config
        self.serial_number = config.serial
        self._account = account
        self._inverters = inverters
        self._observer = observer
        self._clock = clock

        self.state = SchedulerState.IDLE
        self.poll = PollState()
        self.settings: SettingsSnapshot | None = None
        self.telemetry: Telemetry | None = None

        # Validated (slot, field, value) changes not yet applied to settings
        self._pending_changes: list[tuple[int, IntervalField, Any]] = []
        self._dispatch_lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._cycle: asyncio.Task[PollOutcome] | None = None
        self._disposed = False

    @classmethod
    def from_client(
        cls,
        client: SunSynkClient,
        config: InverterConfig,
        observer: InverterObserver,
        **kwargs: Any,
    ) -> RefreshScheduler:
        return cls(config, client.account, client.inverters, observer, **kwargs)

    @property
    def alias(self) -> str:
        return self.config.alias or self.serial_number

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the fixed-delay refresh task (first tick runs immediately)."""
        if self._disposed:
            raise RuntimeError(f"Scheduler for {self.alias} has been disposed")
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"pysunsynk-refresh-{self.serial_number}"
        )
        _LOGGER.info("Start automatic refresh of %s at %d seconds", self.alias, self.config.refresh)

    def dispose(self) -> None:
        """Cancel the timer.

        A cycle already talking to the remote runs to completion, but its
        results are discarded.
        """
        _LOGGER.debug("Disposing refresh scheduler for %s", self.alias)
        self._disposed = True
        self.state = SchedulerState.DISPOSED
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while not self._disposed:
            # Own task: cancelling the timer leaves an in-flight cycle running
            self._cycle = asyncio.ensure_future(self.tick())
            try:
                await asyncio.shield(self._cycle)
            except Exception:
                _LOGGER.exception("Unexpected error refreshing %s", self.alias)
            await asyncio.sleep(self.config.refresh)

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def async_request_refresh(self) -> PollOutcome:
        """Refresh on demand; subject to the same lockout as the timer."""
        return await self.tick()

    async def tick(self) -> PollOutcome:
        """Run one poll cycle unless inside the lockout window."""
        if self._disposed:
            return PollOutcome.DISPOSED

        now = self._clock()
        if self.poll.is_locked_out(now):
            _LOGGER.debug(
                "API call too frequent for %s, ignored until %s",
                self.alias,
                self.poll.lockout_until,
            )
            return PollOutcome.SUPPRESSED

        self.poll.begin(now)
        self.state = SchedulerState.POLLING
        try:
            async with self._dispatch_lock:
                return await self._poll_cycle()
        finally:
            if not self._disposed:
                self.state = SchedulerState.IDLE

    async def _poll_cycle(self) -> PollOutcome:
        auth = await self._account.ensure_valid()
        if self._disposed:
            return PollOutcome.DISPOSED
        if auth.is_fatal:
            return self._session_unusable(auth)
        if not auth.is_success:
            # Carry on with the current token; a rejection lands in AUTH_RETRY
            _LOGGER.warning("Token refresh failed for %s: %s", self.alias, auth.detail)

        token = self._account.current_access_token()
        if not token:
            # Never logged in; the next tick retries the login
            self._observer.mark_offline(
                f"Could not log in to Sunsynk account for {self.alias}: {auth.detail}"
            )
            return PollOutcome.DEGRADED

        if self._pending_changes or self.poll.pending_settings_write:
            pushed = await self._push(token)
            if self._disposed:
                return PollOutcome.DISPOSED
            if not pushed.is_ok:
                return await self._poll_failed(pushed, "send settings to")

        settings = await self._inverters.fetch_settings(self.serial_number, token)
        if self._disposed:
            return PollOutcome.DISPOSED
        if not settings.is_ok:
            return await self._poll_failed(settings, "read settings from")

        telemetry = await self._inverters.fetch_telemetry(self.serial_number, token)
        if self._disposed:
            return PollOutcome.DISPOSED
        if not telemetry.is_ok:
            return await self._poll_failed(telemetry, "read telemetry from")

        self.settings = settings.value
        self.telemetry = telemetry.value
        self.poll.pending_settings_write = False
        self.state = SchedulerState.PUBLISHED
        self._publish()
        return PollOutcome.PUBLISHED

    async def _poll_failed(self, result: ApiResult[Any], action: str) -> PollOutcome:
        if result.status is ApiStatus.AUTH_FAILURE:
            await self._auth_retry()
            return PollOutcome.AUTH_RETRY
        self._observer.mark_offline(f"Could not {action} inverter {self.alias}: {result.detail}")
        return PollOutcome.DEGRADED

    async def _auth_retry(self) -> None:
        """Log in again once; the next tick retries with the new token."""
        self.state = SchedulerState.AUTH_RETRY
        self._observer.mark_offline(
            f"Could not reach inverter {self.alias}, likely to be a token issue"
        )
        auth = await self._account.reauthenticate()
        if auth.is_fatal:
            self._session_unusable(auth)

    def _session_unusable(self, auth: AuthResult) -> PollOutcome:
        self._observer.mark_offline(f"Sunsynk account could not be authenticated: {auth.detail}")
        self._observer.request_reauthentication()
        return PollOutcome.UNAUTHENTICATED

    def _publish(self) -> None:
        _LOGGER.debug("Updating channels for %s", self.alias)
        fields: dict[str, Any] = {"vendor": VENDOR, "serial_number": self.serial_number}
        if self.settings is not None:
            fields.update(self.settings.to_channels())
        if self.telemetry is not None:
            fields.update(self.telemetry.to_fields())

        self._observer.mark_online()
        for name, value in fields.items():
            self._observer.publish(name, value)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def async_handle_channel_command(self, channel: str, value: Any) -> CommandOutcome:
        """Handle a command addressed by flat channel id.

        Example:
            >>> await scheduler.async_handle_channel_command("battery_interval_1_grid_charge", "ON")
        """
        try:
            slot, interval_field = parse_channel_id(channel)
        except SettingsValidationError as err:
            _LOGGER.warning("Ignoring command for %s: %s", self.alias, err)
            return CommandOutcome.REJECTED
        return await self.async_handle_command(slot, interval_field, value)

    async def async_handle_command(
        self, slot: int, interval_field: IntervalField, value: Any
    ) -> CommandOutcome:
        """Change one field of one charge interval and push the settings.

        The value is validated before anything is queued; rejected values
        never reach the local snapshot or the remote. A failed push keeps
        the change and the next dispatch sends it again.
        """
        if self._disposed:
            return CommandOutcome.DISPOSED
        try:
            check_slot(slot)
            normalized = validate_field(interval_field, value)
        except SettingsValidationError as err:
            _LOGGER.warning("Rejected %s command for %s: %s", interval_field.value, self.alias, err)
            return CommandOutcome.REJECTED

        if self.settings is None:
            _LOGGER.debug("No settings read yet for %s, ignoring command", self.alias)
            return CommandOutcome.NOT_READY

        self._pending_changes.append((slot, interval_field, normalized))

        async with self._dispatch_lock:
            if self._disposed:
                return CommandOutcome.DISPOSED
            if not self._pending_changes and not self.poll.pending_settings_write:
                # Already sent by a dispatch that ran while we waited
                return CommandOutcome.SENT

            pushed = await self._push(self._account.current_access_token())
            if self._disposed:
                return CommandOutcome.DISPOSED
            if pushed.is_ok:
                return CommandOutcome.SENT
            if pushed.status is ApiStatus.AUTH_FAILURE:
                await self._auth_retry()
                return CommandOutcome.AUTH_RETRY

        self._observer.mark_offline(f"Could not send command to inverter {self.alias}")
        return CommandOutcome.FAILED

    async def _push(self, token: str) -> ApiResult[str]:
        """Apply queued changes and send the full snapshot (lock held)."""
        if self.settings is None:
            return ApiResult.request_failure("No settings snapshot to send")
        for slot, interval_field, value in self._pending_changes:
            self.settings.set_field(slot, interval_field, value)
        if self._pending_changes:
            self.poll.pending_settings_write = True
        self._pending_changes.clear()

        result = await self._inverters.push_settings(self.settings, token)
        if result.is_ok:
            self.poll.pending_settings_write = False
            _LOGGER.debug("Sent command: %s to inverter %s", result.value, self.alias)
        return result


__all__ = [
    "CommandOutcome",
    "PollOutcome",
    "PollState",
    "RefreshScheduler",
    "SchedulerState",
]
