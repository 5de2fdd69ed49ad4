"""Configuration module for keywarden settings.

Settings come from the environment (and an optional `.env` file). The
`OPENCLAW_AGENT_DIR` and `DIEM_THRESHOLD` variables used by existing cron
setups are honoured alongside the `KEYWARDEN_*` names.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _openclaw_home() -> Path:
    return Path.home() / ".openclaw"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    agent_dir: Path = Field(
        default_factory=lambda: _openclaw_home() / "agents" / "main" / "agent",
        validation_alias=AliasChoices("KEYWARDEN_AGENT_DIR", "OPENCLAW_AGENT_DIR"),
    )
    # Defaults to <agent_dir>/auth-profiles.json when unset
    store_path: Optional[Path] = Field(
        default=None, validation_alias=AliasChoices("KEYWARDEN_STORE_PATH")
    )

    api_url: str = Field(
        default="https://api.venice.ai/api/v1/chat/completions",
        validation_alias=AliasChoices("KEYWARDEN_API_URL"),
    )
    # Cheapest model on the endpoint; a 1-token probe costs ~0.0001 DIEM
    probe_model: str = Field(
        default="zai-org-glm-4.7-flash",
        validation_alias=AliasChoices("KEYWARDEN_PROBE_MODEL"),
    )
    probe_timeout: float = Field(
        default=15.0, gt=0, validation_alias=AliasChoices("KEYWARDEN_PROBE_TIMEOUT")
    )
    probe_delay_seconds: float = Field(
        default=2.0, ge=0, validation_alias=AliasChoices("KEYWARDEN_PROBE_DELAY_SECONDS")
    )

    threshold: float = Field(
        default=1.0, validation_alias=AliasChoices("KEYWARDEN_THRESHOLD", "DIEM_THRESHOLD")
    )
    # Matches the gateway's billingMaxHours of 6
    disable_duration_seconds: int = Field(
        default=21600, gt=0, validation_alias=AliasChoices("KEYWARDEN_DISABLE_DURATION_SECONDS")
    )
    provider_prefix: str = Field(
        default="venice:", validation_alias=AliasChoices("KEYWARDEN_PROVIDER_PREFIX")
    )

    log_file: Path = Field(
        default_factory=lambda: _openclaw_home() / "logs" / "venice-key-monitor.log",
        validation_alias=AliasChoices("KEYWARDEN_LOG_FILE"),
    )
    state_file: Path = Field(
        default_factory=lambda: _openclaw_home() / "logs" / "venice-key-balances.json",
        validation_alias=AliasChoices("KEYWARDEN_STATE_FILE"),
    )
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("KEYWARDEN_LOG_LEVEL"))

    @property
    def resolved_store_path(self) -> Path:
        """Path of the shared credential store."""
        if self.store_path is not None:
            return self.store_path
        return self.agent_dir / "auth-profiles.json"


def get_settings(**overrides) -> Settings:
    """Build settings from the environment, applying non-None overrides.

    Args:
        **overrides: Field values (typically from CLI flags); None values are skipped

    Returns:
        Settings instance
    """
    values = {name: value for name, value in overrides.items() if value is not None}
    return Settings().model_copy(update=values)
