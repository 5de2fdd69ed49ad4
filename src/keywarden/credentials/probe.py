"""Balance probe.

Makes one minimal chat-completion request per key (a single output token on
the cheapest model) and reads the remaining balance from the response
headers. Every failure is reported as an Unknown result; nothing here raises
for a bad key.
"""

import logging
import re
from typing import Optional

import requests

from ..exceptions import ProbeError
from .models import BalanceUnit, CredentialRecord, ProbeResult

logger = logging.getLogger(__name__)

# Status the provider answers with once a key has no balance left
BILLING_EXHAUSTED_STATUS = 402

# Header lookup order; the provider sends one or the other depending on account type
BALANCE_HEADERS = (
    ("x-venice-balance-diem", BalanceUnit.DIEM),
    ("x-venice-balance-usd", BalanceUnit.USD),
)

_NON_NUMERIC = re.compile(r"[^0-9.]")


def parse_balance(raw: str) -> float:
    """Parse a balance header value.

    Anything other than digits and dots is dropped; a value with no digits
    left (e.g. "n/a") reads as 0.

    Raises:
        ValueError: If what remains is not a number (e.g. "1.2.3")
    """
    cleaned = _NON_NUMERIC.sub("", raw or "")
    if not cleaned:
        return 0.0
    return float(cleaned)


class BalanceProbe:
    """Reads a credential's balance with a 1-token inference call."""

    def __init__(
        self,
        api_url: str,
        model: str,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize probe.

        Args:
            api_url: Chat-completion endpoint
            model: Model used for the probe request
            timeout: Request timeout in seconds
            session: Optional requests session (a new one is created otherwise)
        """
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self.session = session or requests.Session()

    def _payload(self) -> dict:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": "."}],
            "max_tokens": 1,
            "stream": False,
        }

    def _request(self, record: CredentialRecord) -> requests.Response:
        headers = {
            "Authorization": f"Bearer {record.key}",
            "Content-Type": "application/json",
        }
        try:
            return self.session.post(
                self.api_url,
                headers=headers,
                json=self._payload(),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise ProbeError(f"timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise ProbeError(f"request failed: {e.__class__.__name__}") from e

    def probe(self, record: CredentialRecord) -> ProbeResult:
        """Probe one credential.

        Args:
            record: Credential to probe

        Returns:
            ProbeResult with balance and unit, or an Unknown result
        """
        try:
            response = self._request(record)
        except ProbeError as e:
            logger.debug(f"Probe of {record.profile_id} failed: {e}")
            return ProbeResult.unknown(http_status=e.status_code, error=str(e))

        status = response.status_code
        if status == BILLING_EXHAUSTED_STATUS:
            return ProbeResult(balance=0.0, http_status=status, exhausted=True)

        for header, unit in BALANCE_HEADERS:
            raw = (response.headers.get(header) or "").strip()
            if not raw:
                continue
            try:
                balance = parse_balance(raw)
            except ValueError:
                return ProbeResult.unknown(http_status=status, error=f"unparseable {header}: {raw!r}")
            return ProbeResult(balance=balance, unit=unit, http_status=status)

        return ProbeResult.unknown(http_status=status, error="no balance header in response")

    def close(self):
        self.session.close()
