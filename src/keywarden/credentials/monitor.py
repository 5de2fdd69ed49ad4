"""Credential health monitor.

Probes every key in a provider namespace, disables keys whose balance fell
below the threshold and re-enables keys that recovered. Only billing
disablements are owned here: a key disabled for any other reason is never
re-enabled by this monitor.
"""

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from .models import CredentialRecord, HealthState, ProbeResult
from .probe import BalanceProbe
from .report import KeyReport, SummaryReport, save_report
from .store import CredentialStore

logger = logging.getLogger(__name__)


def classify_balance(balance: float, threshold: float) -> HealthState:
    """Depleted iff balance is strictly below threshold."""
    if balance < threshold:
        return HealthState.DEPLETED
    return HealthState.HEALTHY


def classify(result: ProbeResult, threshold: float) -> HealthState:
    """Classify a probe result against the depletion threshold.

    Unknown results stay UNKNOWN. A billing-exhausted response is DEPLETED
    whatever the threshold.
    """
    if result.is_unknown:
        return HealthState.UNKNOWN
    if result.exhausted:
        return HealthState.DEPLETED
    return classify_balance(result.balance, threshold)


def _describe(result: ProbeResult) -> str:
    unit = result.unit.value.upper() if result.unit else "DIEM"
    return f"{result.balance:g} {unit}"


class CredentialHealthMonitor:
    """Runs one health-check pass over the credential store."""

    def __init__(
        self,
        store: CredentialStore,
        probe: BalanceProbe,
        provider_prefix: str = "venice:",
        disable_duration_seconds: int = 21600,
        probe_delay_seconds: float = 2.0,
        state_file: Optional[Path] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize monitor.

        Args:
            store: Shared credential store
            probe: Balance probe
            provider_prefix: Identifier prefix of the monitored namespace
            disable_duration_seconds: How long a depleted key stays disabled
            probe_delay_seconds: Pause between consecutive probes (provider rate limit)
            state_file: Where the last-run snapshot is written (None to skip)
            sleep: Sleep function, replaceable in tests
        """
        self.store = store
        self.probe = probe
        self.provider_prefix = provider_prefix
        self.disable_duration_seconds = disable_duration_seconds
        self.probe_delay_seconds = probe_delay_seconds
        self.state_file = state_file
        self._sleep = sleep

    def list_credentials(self) -> list[CredentialRecord]:
        """Credentials in the monitored namespace.

        Raises:
            StoreReadError: If the store is missing or unparseable
        """
        return self.store.list_credentials(self.provider_prefix)

    def _apply(self, record: CredentialRecord, result: ProbeResult, state: HealthState, report: SummaryReport):
        if state == HealthState.DEPLETED:
            self.store.disable(record.profile_id, self.disable_duration_seconds)
            report.disabled.append(record.profile_id)
            logger.info(f"DISABLED: {record.profile_id} for {self.disable_duration_seconds}s")
        elif state == HealthState.HEALTHY:
            if self.store.reenable(record.profile_id):
                report.recovered.append(record.profile_id)
                logger.info(f"RECOVERED: {record.profile_id} ({_describe(result)})")

    def check(self, record: CredentialRecord, threshold: float, dry_run: bool, report: SummaryReport) -> KeyReport:
        """Probe, classify and (unless dry run) act on one credential."""
        result = self.probe.probe(record)
        state = classify(result, threshold)
        key_report = KeyReport.from_probe(record.profile_id, result, state)
        report.add(key_report)

        if state == HealthState.UNKNOWN:
            status = result.http_status if result.http_status is not None else "no response"
            logger.warning(f"WARN: Could not probe {record.profile_id} (HTTP {status}): {result.error}")
            return key_report

        if state == HealthState.DEPLETED:
            logger.info(f"DEPLETED: {record.profile_id} - {_describe(result)} (below threshold {threshold:g})")
        else:
            logger.info(f"HEALTHY: {record.profile_id} - {_describe(result)}")

        if not dry_run:
            self._apply(record, result, state, report)
        return key_report

    def run(self, threshold: float, dry_run: bool = False) -> SummaryReport:
        """Check every credential once.

        Args:
            threshold: Balance below which a key is depleted
            dry_run: Report only, never touch the store

        Returns:
            SummaryReport of the run (also written to the state file)

        Raises:
            StoreReadError: If the store cannot be read or locked
            StoreWriteError: If a disable/re-enable rewrite fails
        """
        logger.info(f"Starting key health check (threshold: {threshold:g}, dry run: {dry_run})")
        records = self.list_credentials()
        report = SummaryReport(threshold=threshold, dry_run=dry_run)

        if not records:
            logger.info(f"No '{self.provider_prefix}' credentials found")

        for index, record in enumerate(records):
            if index > 0 and self.probe_delay_seconds > 0:
                self._sleep(self.probe_delay_seconds)
            self.check(record, threshold, dry_run, report)

        if self.state_file is not None:
            save_report(report, self.state_file)

        logger.info(
            f"Complete: {report.total} keys checked - {report.healthy} healthy, "
            f"{report.depleted} depleted, {report.errors} errors"
        )
        if report.all_unhealthy:
            logger.critical(f"CRITICAL: All '{self.provider_prefix}' keys depleted!")
        return report
