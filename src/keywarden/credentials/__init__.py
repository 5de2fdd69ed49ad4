"""Provider credential balance checks and billing self-healing.

Probes API keys for their remaining balance, disables depleted keys in the
shared credential store and re-enables them once they recover.
"""

from .models import (BILLING_REASON, BalanceUnit, CredentialRecord,
                     HealthState, ProbeResult, UsageStats)
from .monitor import CredentialHealthMonitor, classify, classify_balance
from .probe import BalanceProbe
from .report import KeyReport, SummaryReport, save_report
from .store import CredentialStore

__all__ = [
    # Models
    "BILLING_REASON",
    "BalanceUnit",
    "CredentialRecord",
    "HealthState",
    "ProbeResult",
    "UsageStats",
    # Store
    "CredentialStore",
    # Probing and classification
    "BalanceProbe",
    "classify",
    "classify_balance",
    # Monitor and reporting
    "CredentialHealthMonitor",
    "KeyReport",
    "SummaryReport",
    "save_report",
]
