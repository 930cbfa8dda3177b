#!/usr/bin/env python3
"""
Monthly Reset Script for HostelPay

Run from cron (e.g. hourly, or daily at 00:05) to reset every student's fee
status at the start of each month. Safe to run any number of times: once
the month is done, further runs change nothing.

Usage:
    hostelpay-monthly-reset              # Reset if this month is not done yet
    hostelpay-monthly-reset --check      # Only report whether a reset is needed
    hostelpay-monthly-reset --seed       # Seed an empty remote store first
"""

import argparse
import asyncio
import sys

from hostelpay.core.config import settings
from hostelpay.core.logging_config import logger
from hostelpay.db.seed_data import seed_remote
from hostelpay.services.container import build_services


async def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="HostelPay monthly fee reset")
    parser.add_argument("--check", action="store_true", help="Only report whether a reset is needed")
    parser.add_argument("--seed", action="store_true", help="Seed an empty remote store with sample data")
    args = parser.parse_args(argv)

    services = build_services(settings)
    try:
        if args.seed:
            if not services.remote_stores:
                print("[MonthlyReset] ERROR: REMOTE_STORE_URL is not set, nothing to seed")
                return 1
            created = await seed_remote(services.remote_stores)
            print(f"[MonthlyReset] Seeded remote store: {created}")

        await services.start(run_background=False)

        if args.check:
            status = await services.scheduler.status()
            print(
                f"[MonthlyReset] Period {status.current_period}: "
                f"{'reset needed' if status.reset_needed else 'already reset'} "
                f"(last reset: {status.last_reset or 'never'})"
            )
            return 0

        result = await services.scheduler.check_and_reset()
        print(f"[MonthlyReset] {result.message}")
        return 0 if result.success else 1
    except Exception as e:
        logger.log_error_with_context(e, context="monthly reset script")
        return 1
    finally:
        await services.stop()


def run():
    """Console entry point: hostelpay-monthly-reset"""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
