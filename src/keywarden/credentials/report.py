"""Run summary and its last-run snapshot file."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from .models import HealthState, ProbeResult

logger = logging.getLogger(__name__)


@dataclass
class KeyReport:
    """Outcome for one credential in a run."""

    profile_id: str
    state: HealthState
    balance: Optional[float] = None
    unit: Optional[str] = None
    http_status: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def from_probe(cls, profile_id: str, result: ProbeResult, state: HealthState) -> "KeyReport":
        return cls(
            profile_id=profile_id,
            state=state,
            balance=result.balance,
            unit=result.unit.value if result.unit else None,
            http_status=result.http_status,
            error=result.error,
        )

    @property
    def healthy(self) -> Optional[bool]:
        """True/False once classified; None for Unknown."""
        if self.state == HealthState.UNKNOWN:
            return None
        return self.state == HealthState.HEALTHY

    def to_dict(self) -> dict:
        return {
            "balance": self.balance,
            "unit": self.unit,
            "status": self.http_status,
            "healthy": self.healthy,
        }


@dataclass
class SummaryReport:
    """Totals and per-credential results of one monitor run."""

    threshold: float
    dry_run: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    keys: list[KeyReport] = field(default_factory=list)
    disabled: list[str] = field(default_factory=list)
    recovered: list[str] = field(default_factory=list)

    def add(self, key_report: KeyReport):
        self.keys.append(key_report)

    @property
    def total(self) -> int:
        return len(self.keys)

    @property
    def healthy(self) -> int:
        return sum(1 for k in self.keys if k.state == HealthState.HEALTHY)

    @property
    def depleted(self) -> int:
        return sum(1 for k in self.keys if k.state == HealthState.DEPLETED)

    @property
    def errors(self) -> int:
        return sum(1 for k in self.keys if k.state == HealthState.UNKNOWN)

    @property
    def all_unhealthy(self) -> bool:
        """No classified credential is healthy and at least one is depleted.

        Unknown results do not count either way.
        """
        return self.healthy == 0 and self.depleted > 0

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "threshold": self.threshold,
            "dry_run": self.dry_run,
            "total": self.total,
            "healthy": self.healthy,
            "depleted": self.depleted,
            "errors": self.errors,
            "keys": {k.profile_id: k.to_dict() for k in self.keys},
            "disabled": list(self.disabled),
            "recovered": list(self.recovered),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def save_report(report: SummaryReport, path: Union[str, Path]) -> Path:
    """Write the last-run snapshot, replacing any previous one.

    Args:
        report: Summary to persist
        path: State file path (parent directories are created)

    Returns:
        The resolved path written
    """
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(report.to_dict(), f, indent=2)
    tmp_path.replace(path)
    logger.debug(f"Saved run snapshot to {path}")
    return path

