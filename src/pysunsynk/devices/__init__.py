"""Per-inverter polling and the host observer interface."""

from .observer import InverterObserver, LoggingObserver
from .scheduler import CommandOutcome, PollOutcome, PollState, RefreshScheduler, SchedulerState

__all__ = [
    "CommandOutcome",
    "InverterObserver",
    "LoggingObserver",
    "PollOutcome",
    "PollState",
    "RefreshScheduler",
    "SchedulerState",
]
