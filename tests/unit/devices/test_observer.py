"""Tests for the observer interface."""

from __future__ import annotations

from pysunsynk.devices import InverterObserver, LoggingObserver


def test_logging_observer_satisfies_protocol() -> None:
    assert isinstance(LoggingObserver(), InverterObserver)


def test_status_transitions() -> None:
    observer = LoggingObserver("Garage")
    assert observer.online is None

    observer.mark_offline("timeout")
    assert observer.online is False
    assert observer.offline_reason == "timeout"

    observer.mark_online()
    assert observer.online is True
    assert observer.offline_reason is None

    observer.request_reauthentication()
    assert observer.reauthentication_requested is True
