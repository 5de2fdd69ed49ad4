"""Credential store and probe models.

The store document belongs to another system, so the models here read the
fields this tool cares about and carry everything else through untouched.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

BILLING_REASON = "billing"


class HealthState(str, Enum):
    """Classification of a probed credential."""

    HEALTHY = "healthy"  # Balance at or above threshold
    DEPLETED = "depleted"  # Balance below threshold, or billing exhausted
    UNKNOWN = "unknown"  # Probe failed; neither disables nor re-enables


class BalanceUnit(str, Enum):
    """Unit of the balance header a probe was answered with."""

    DIEM = "diem"
    USD = "usd"


@dataclass
class UsageStats:
    """Per-credential status fields kept under ``usageStats[profile_id]``.

    Absent fields stay absent on write; unknown fields are kept in ``extra``
    and merged back by ``to_dict``.
    """

    disabled_until: Optional[int] = None  # epoch ms
    disabled_reason: Optional[str] = None
    error_count: Optional[int] = None
    failure_counts: Optional[dict[str, int]] = None
    last_failure_at: Optional[int] = None  # epoch ms
    extra: dict[str, Any] = field(default_factory=dict)

    _FIELDS = {
        "disabledUntil": "disabled_until",
        "disabledReason": "disabled_reason",
        "errorCount": "error_count",
        "failureCounts": "failure_counts",
        "lastFailureAt": "last_failure_at",
    }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "UsageStats":
        data = dict(data or {})
        known = {attr: data.pop(key) for key, attr in cls._FIELDS.items() if key in data}
        if known.get("failure_counts") is not None:
            known["failure_counts"] = dict(known["failure_counts"])
        return cls(**known, extra=data)

    def to_dict(self) -> dict:
        """Serialize back to the store's camelCase shape, unknown fields first."""
        result = dict(self.extra)
        for key, attr in self._FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                result[key] = value
            else:
                result.pop(key, None)
        return result

    @property
    def is_billing_disabled(self) -> bool:
        return self.disabled_reason == BILLING_REASON

    def mark_disabled(self, until_ms: int, now_ms: int, reason: str = BILLING_REASON):
        """Stamp a disablement and bump the failure counters."""
        self.disabled_until = until_ms
        self.disabled_reason = reason
        counts = dict(self.failure_counts or {})
        counts[reason] = counts.get(reason, 0) + 1
        self.failure_counts = counts
        self.error_count = (self.error_count or 0) + 1
        self.last_failure_at = now_ms

    def clear_billing_disablement(self) -> bool:
        """Lift a billing disablement; any other reason is left alone.

        Returns:
            True if the stats changed
        """
        if not self.is_billing_disabled:
            return False
        self.disabled_until = None
        self.disabled_reason = None
        self.error_count = 0
        if self.failure_counts is not None:
            counts = dict(self.failure_counts)
            counts.pop(BILLING_REASON, None)
            self.failure_counts = counts
        return True


@dataclass
class CredentialRecord:
    """A managed API key as listed in the credential store."""

    profile_id: str
    key: str = field(repr=False)
    type: str = "api_key"
    usage: UsageStats = field(default_factory=UsageStats)


@dataclass
class ProbeResult:
    """Raw reading from one balance probe.

    A result with no balance is Unknown; ``http_status`` is None when no
    response arrived at all (timeout, connection error).
    """

    balance: Optional[float] = None
    unit: Optional[BalanceUnit] = None
    http_status: Optional[int] = None
    exhausted: bool = False  # provider answered with its billing-exhausted status
    error: Optional[str] = None

    @property
    def is_unknown(self) -> bool:
        return self.balance is None

    @classmethod
    def unknown(cls, http_status: Optional[int] = None, error: Optional[str] = None) -> "ProbeResult":
        return cls(http_status=http_status, error=error)
