#!/usr/bin/env python3
"""Diagnostic tool for pysunsynk.

Logs in to a Sunsynk Connect account, lists its inverters, and runs poll
cycles against one of them, printing every published field.

Credentials come from the command line or from ``SUNSYNK_USERNAME`` /
``SUNSYNK_PASSWORD`` (a ``.env`` file in the working directory is loaded
first).

Usage:
    pysunsynk-diag --list
    pysunsynk-diag --serial 2211229948
    pysunsynk-diag --serial 2211229948 --set battery_interval_2_capacity=80
    pysunsynk-diag --help
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import os
import sys
from typing import Any

from dotenv import load_dotenv

from pysunsynk import __version__
from pysunsynk.client import SunSynkClient
from pysunsynk.config import AccountConfig, InverterConfig
from pysunsynk.constants import BASE_URL, DEFAULT_TIMEOUT
from pysunsynk.devices import CommandOutcome, LoggingObserver, PollOutcome, RefreshScheduler
from pysunsynk.exceptions import SunSynkAuthError


class PrintObserver(LoggingObserver):
    """LoggingObserver that also echoes each published field."""

    def publish(self, field: str, value: Any) -> None:
        super().publish(field, value)
        print(f"  {field:<40} {value}")


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="pysunsynk-diag",
        description="Query Sunsynk Connect inverters for diagnostics.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pysunsynk-diag --list
      List inverters registered to the account

  pysunsynk-diag --serial 2211229948
      Run one poll cycle and print all fields

  pysunsynk-diag --serial 2211229948 --set battery_interval_1_grid_charge=ON
      Change one charge interval field, then poll
""",
    )

    account_group = parser.add_argument_group("Account Options")
    account_group.add_argument("--username", "-u", help="Sunsynk Connect username (email)")
    account_group.add_argument("--password", "-p", help="Sunsynk Connect password")
    account_group.add_argument("--base-url", default=BASE_URL, help="API base URL")
    account_group.add_argument(
        "--timeout", type=float, default=DEFAULT_TIMEOUT, help="Request timeout in seconds"
    )

    device_group = parser.add_argument_group("Inverter Options")
    device_group.add_argument("--list", "-l", action="store_true", help="List inverters")
    device_group.add_argument("--serial", "-s", help="Inverter serial number to poll")
    device_group.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="CHANNEL=VALUE",
        help="Change a charge interval field (repeatable)",
    )
    device_group.add_argument(
        "--cycles", type=int, default=1, help="Number of poll cycles (default: 1)"
    )

    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def parse_assignments(values: list[str]) -> list[tuple[str, str]]:
    """Split ``CHANNEL=VALUE`` arguments."""
    assignments = []
    for item in values:
        channel, sep, value = item.partition("=")
        if not sep or not channel:
            raise ValueError(f"Expected CHANNEL=VALUE, got {item!r}")
        assignments.append((channel.strip(), value.strip()))
    return assignments


async def run_list(client: SunSynkClient) -> int:
    result = await client.inverters.get_inverters(client.account.current_access_token())
    if not result.is_ok or result.value is None:
        print(f"Failed to discover inverters: {result.detail}", file=sys.stderr)
        return 1
    print(f"{'Serial':<14} {'Alias':<24} {'Status':>6} {'Power (W)':>10}")
    for inverter in result.value.infos:
        print(
            f"{inverter.sn:<14} {inverter.alias or '':<24} "
            f"{inverter.status if inverter.status is not None else '-':>6} "
            f"{inverter.pac if inverter.pac is not None else '-':>10}"
        )
    return 0


async def run_poll(client: SunSynkClient, args: argparse.Namespace) -> int:
    config = InverterConfig(serial=args.serial)
    observer = PrintObserver(config.alias)
    scheduler = RefreshScheduler.from_client(client, config, observer)

    try:
        outcome = await scheduler.tick()
        print(f"\nPoll: {outcome.value}")
        if outcome is not PollOutcome.PUBLISHED:
            return 1

        for channel, value in parse_assignments(args.set):
            command = await scheduler.async_handle_channel_command(channel, value)
            print(f"Set {channel}={value}: {command.value}")
            if command is not CommandOutcome.SENT:
                return 1

        for _ in range(args.cycles - 1):
            await asyncio.sleep(config.refresh)
            outcome = await scheduler.tick()
            print(f"\nPoll: {outcome.value}")
    finally:
        scheduler.dispose()
    return 0


async def run(args: argparse.Namespace) -> int:
    account = AccountConfig(
        username=args.username,
        password=args.password,
        base_url=args.base_url,
        timeout=args.timeout,
    )
    account.validate()

    try:
        async with SunSynkClient(
            account.username,
            account.password,
            base_url=account.base_url,
            timeout=account.timeout,
        ) as client:
            if args.list:
                return await run_list(client)
            return await run_poll(client, args)
    except SunSynkAuthError as err:
        print(f"Login failed: {err}", file=sys.stderr)
        return 1


def main() -> int:
    """Main entry point."""
    load_dotenv()
    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    args.username = args.username or os.getenv("SUNSYNK_USERNAME")
    args.password = args.password or os.getenv("SUNSYNK_PASSWORD")
    if not args.username:
        parser.error("--username or SUNSYNK_USERNAME is required")
    if not args.password:
        args.password = getpass.getpass("Sunsynk password: ")
    if not args.list and not args.serial:
        parser.error("one of --list or --serial is required")
    try:
        parse_assignments(args.set)
    except ValueError as err:
        parser.error(str(err))

    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
