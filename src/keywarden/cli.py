#!/usr/bin/env python3
"""keywarden CLI - check API key balances and self-heal billing disablements

Usage:
    keywarden                    # Check all keys, disable depleted, re-enable recovered
    keywarden --status           # Report balances without changing the store
    keywarden --verbose          # Echo log lines to the console
    keywarden --threshold 5      # Custom depletion threshold (default: 1)

Prints the run summary as JSON on stdout. Exit codes:
    0  run completed
    1  credential store missing or unreadable (or invalid configuration)
    2  no key is healthy and at least one is depleted
"""

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from .config import get_settings
from .credentials import BalanceProbe, CredentialHealthMonitor, CredentialStore
from .exceptions import StoreError
from .logging_config import configure_logging
from .version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STORE_UNREADABLE = 1
EXIT_ALL_UNHEALTHY = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keywarden",
        description="Probe API key balances and disable/re-enable depleted keys",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Report balances without changing the credential store",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Echo log lines to stderr",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        help="Depletion threshold; keys with a lower balance are disabled (default: 1)",
    )
    parser.add_argument("--store", type=Path, help="Path to auth-profiles.json")
    parser.add_argument("--state-file", type=Path, help="Where to write the last-run snapshot")
    parser.add_argument("--log-file", type=Path, help="Log file to append to")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def run_check(args) -> int:
    """Run one health check and return the process exit code."""
    try:
        settings = get_settings(
            threshold=args.threshold,
            store_path=args.store,
            state_file=args.state_file,
            log_file=args.log_file,
        )
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_STORE_UNREADABLE

    configure_logging(log_file=settings.log_file, verbose=args.verbose, log_level=settings.log_level)

    store = CredentialStore(settings.resolved_store_path)
    if not store.path.is_file():
        logger.error(f"ERROR: credential store not found at {store.path}")
        return EXIT_STORE_UNREADABLE

    probe = BalanceProbe(
        api_url=settings.api_url,
        model=settings.probe_model,
        timeout=settings.probe_timeout,
    )
    monitor = CredentialHealthMonitor(
        store=store,
        probe=probe,
        provider_prefix=settings.provider_prefix,
        disable_duration_seconds=settings.disable_duration_seconds,
        probe_delay_seconds=settings.probe_delay_seconds,
        state_file=settings.state_file.expanduser(),
    )

    try:
        report = monitor.run(threshold=settings.threshold, dry_run=args.status)
    except StoreError as e:
        logger.error(f"ERROR: {e}")
        return EXIT_STORE_UNREADABLE
    finally:
        probe.close()

    print(report.to_json())

    if report.all_unhealthy:
        return EXIT_ALL_UNHEALTHY
    return EXIT_OK


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return run_check(args)


if __name__ == "__main__":
    sys.exit(main())
