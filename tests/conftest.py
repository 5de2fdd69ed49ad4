"""Pytest configuration and fixtures for keywarden tests"""

import json
import logging
import sys
from pathlib import Path

import pytest

# Ensure src directory is in Python path before any imports
project_root = Path(__file__).resolve().parent.parent
src_path = project_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from keywarden.credentials import CredentialStore, ProbeResult  # noqa: E402

_ENV_VARS = (
    "OPENCLAW_AGENT_DIR",
    "DIEM_THRESHOLD",
    "KEYWARDEN_AGENT_DIR",
    "KEYWARDEN_STORE_PATH",
    "KEYWARDEN_API_URL",
    "KEYWARDEN_PROBE_MODEL",
    "KEYWARDEN_PROBE_TIMEOUT",
    "KEYWARDEN_PROBE_DELAY_SECONDS",
    "KEYWARDEN_THRESHOLD",
    "KEYWARDEN_DISABLE_DURATION_SECONDS",
    "KEYWARDEN_PROVIDER_PREFIX",
    "KEYWARDEN_LOG_FILE",
    "KEYWARDEN_STATE_FILE",
    "KEYWARDEN_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from the caller's environment and any .env file"""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    # configure_logging() detaches the package logger from the root; undo it for caplog
    logger = logging.getLogger("keywarden")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def sample_document():
    """Credential store with two Venice keys, a foreign key and unrelated fields"""
    return {
        "version": 1,
        "profiles": {
            "venice:main": {"type": "api_key", "provider": "venice", "key": "vk-main-0000000001"},
            "venice:backup": {"type": "api_key", "provider": "venice", "key": "vk-backup-000000002"},
            "venice:oauth": {"type": "oauth", "provider": "venice", "access": "tok"},
            "anthropic:default": {"type": "api_key", "provider": "anthropic", "key": "sk-ant-xyz"},
        },
        "usageStats": {
            "anthropic:default": {"lastUsed": 1700000000000, "errorCount": 0},
        },
        "order": ["venice:main", "venice:backup"],
    }


@pytest.fixture
def write_store(tmp_path):
    """Factory writing a document to auth-profiles.json and returning its path"""

    def _write(document, name="auth-profiles.json"):
        path = tmp_path / name
        path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def store(write_store, sample_document):
    """CredentialStore backed by the sample document"""
    return CredentialStore(write_store(sample_document))


class FakeProbe:
    """Probe returning canned results per profile id"""

    def __init__(self, results):
        self.results = results
        self.calls = []

    def probe(self, record):
        self.calls.append(record.profile_id)
        result = self.results[record.profile_id]
        if isinstance(result, (int, float)):
            return ProbeResult(balance=float(result), http_status=200)
        return result

    def close(self):
        pass


@pytest.fixture
def fake_probe():
    """FakeProbe class, for building probes with canned results"""
    return FakeProbe

