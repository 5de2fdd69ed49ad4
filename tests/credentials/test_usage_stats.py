"""Tests for credential models."""

from keywarden.credentials import (BILLING_REASON, CredentialRecord,
                                   ProbeResult, UsageStats)


class TestUsageStats:
    """Test UsageStats (de)serialization and transitions."""

    def test_from_dict_reads_known_fields(self):
        """Known camelCase fields map onto attributes."""
        stats = UsageStats.from_dict(
            {
                "disabledUntil": 1700000021600000,
                "disabledReason": "billing",
                "errorCount": 2,
                "failureCounts": {"billing": 2},
                "lastFailureAt": 1700000000000,
            }
        )
        assert stats.disabled_until == 1700000021600000
        assert stats.disabled_reason == "billing"
        assert stats.error_count == 2
        assert stats.failure_counts == {"billing": 2}
        assert stats.last_failure_at == 1700000000000
        assert stats.extra == {}

    def test_unknown_fields_survive_round_trip(self):
        """Fields owned by other systems are written back unchanged."""
        raw = {"lastUsed": 1699999999999, "cooldownUntil": 5, "errorCount": 3}
        stats = UsageStats.from_dict(raw)

        assert stats.extra == {"lastUsed": 1699999999999, "cooldownUntil": 5}
        assert stats.to_dict() == raw

    def test_absent_fields_stay_absent(self):
        """Serializing empty stats does not invent fields."""
        assert UsageStats.from_dict(None).to_dict() == {}
        assert UsageStats.from_dict({}).to_dict() == {}

    def test_from_dict_does_not_alias_input(self):
        """Mutating the model leaves the source dict alone."""
        raw = {"failureCounts": {"billing": 1}}
        stats = UsageStats.from_dict(raw)
        stats.mark_disabled(until_ms=10, now_ms=1)

        assert raw == {"failureCounts": {"billing": 1}}

    def test_mark_disabled_from_scratch(self):
        """First disablement sets counters to 1."""
        stats = UsageStats()
        stats.mark_disabled(until_ms=21601000, now_ms=1000)

        assert stats.to_dict() == {
            "disabledUntil": 21601000,
            "disabledReason": BILLING_REASON,
            "errorCount": 1,
            "failureCounts": {"billing": 1},
            "lastFailureAt": 1000,
        }

    def test_mark_disabled_increments(self):
        """Repeated disablement re-stamps and increments."""
        stats = UsageStats.from_dict({"errorCount": 4, "failureCounts": {"rate_limit": 3, "billing": 1}})
        stats.mark_disabled(until_ms=500, now_ms=100)

        assert stats.error_count == 5
        assert stats.failure_counts == {"rate_limit": 3, "billing": 2}
        assert stats.disabled_until == 500

    def test_clear_billing_disablement(self):
        """Billing disablement is lifted and counters reset."""
        stats = UsageStats.from_dict(
            {
                "disabledUntil": 99,
                "disabledReason": "billing",
                "errorCount": 3,
                "failureCounts": {"billing": 2, "auth": 1},
                "lastFailureAt": 10,
            }
        )
        assert stats.clear_billing_disablement() is True
        assert stats.to_dict() == {"errorCount": 0, "failureCounts": {"auth": 1}, "lastFailureAt": 10}

    def test_clear_ignores_other_reasons(self):
        """Disablements for other reasons are not ours to lift."""
        stats = UsageStats.from_dict({"disabledUntil": 99, "disabledReason": "auth", "errorCount": 7})
        assert stats.clear_billing_disablement() is False
        assert stats.disabled_until == 99
        assert stats.disabled_reason == "auth"
        assert stats.error_count == 7

    def test_is_billing_disabled(self):
        assert UsageStats(disabled_reason="auth").is_billing_disabled is False
        assert UsageStats(disabled_reason="billing").is_billing_disabled is True


class TestCredentialRecord:
    """Test CredentialRecord helpers."""

    def test_key_never_in_repr(self):
        """repr() must not leak the secret."""
        record = CredentialRecord(profile_id="venice:main", key="vk-supersecret-123")
        assert "supersecret" not in repr(record)


class TestProbeResult:
    def test_unknown_result(self):
        result = ProbeResult.unknown(http_status=500, error="boom")
        assert result.is_unknown is True
        assert result.http_status == 500

    def test_balance_result_is_known(self):
        assert ProbeResult(balance=0.0, http_status=200).is_unknown is False
