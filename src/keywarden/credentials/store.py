"""Shared credential store access.

The store is a JSON document owned by the gateway:

    {
      "profiles": {"venice:main": {"type": "api_key", "key": "..."}, ...},
      "usageStats": {"venice:main": {"disabledUntil": 1700000000000, ...}, ...}
    }

Every mutation goes through ``with_lock``, which holds an exclusive lock on
the file for the whole read-modify-write. Reads take a shared lock, so no
partial write is ever visible.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional, Union

from ..exceptions import StoreReadError, StoreWriteError
from ..file_lock import FileLock
from .models import BILLING_REASON, CredentialRecord, UsageStats

logger = logging.getLogger(__name__)

Document = dict[str, Any]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _profiles_of(document: Document) -> Optional[dict]:
    # Older stores keep profiles at the top level
    profiles = document.get("profiles", document)
    return profiles if isinstance(profiles, dict) else None


class CredentialStore:
    """File-backed credential store with locked read-modify-write.

    Example:
        store = CredentialStore("~/.openclaw/agents/main/agent/auth-profiles.json")
        for record in store.list_credentials("venice:"):
            ...
        store.disable("venice:main", duration_seconds=21600)
        store.reenable("venice:main")
    """

    def __init__(self, path: Union[str, Path]):
        """Initialize store.

        Args:
            path: Path to the JSON credential store
        """
        self.path = Path(path).expanduser()

    def load(self) -> Document:
        """Read and parse the store under a shared lock.

        The shared lock waits out any rewrite in progress, so a concurrent
        ``with_lock`` is never seen half-written.

        Raises:
            StoreReadError: If the file is missing, unreadable or not a JSON object
        """
        try:
            with FileLock(self.path, shared=True) as lock:
                document = json.load(lock.handle)
        except FileNotFoundError as e:
            raise StoreReadError(f"Credential store not found at {self.path}", str(self.path)) from e
        except (OSError, RuntimeError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StoreReadError(f"Cannot read credential store {self.path}: {e}", str(self.path)) from e

        if not isinstance(document, dict):
            raise StoreReadError(f"Credential store {self.path} is not a JSON object", str(self.path))
        return document

    def list_credentials(self, provider_prefix: str = "venice:", credential_type: str = "api_key") -> list[CredentialRecord]:
        """List API key records in one provider namespace, in store order.

        Args:
            provider_prefix: Identifier prefix of the provider namespace
            credential_type: Only records of this ``type`` are returned

        Returns:
            CredentialRecords with their current usage stats

        Raises:
            StoreReadError: If the store is missing or unparseable
        """
        document = self.load()
        profiles = _profiles_of(document)
        if profiles is None:
            raise StoreReadError(f"Credential store {self.path}: 'profiles' is not a JSON object", str(self.path))
        usage = document.get("usageStats")
        if not isinstance(usage, dict):
            usage = {}

        records = []
        for profile_id, profile in profiles.items():
            if not profile_id.startswith(provider_prefix) or not isinstance(profile, dict):
                continue
            if profile.get("type") != credential_type or not profile.get("key"):
                continue
            records.append(
                CredentialRecord(
                    profile_id=profile_id,
                    key=profile["key"],
                    type=profile["type"],
                    usage=UsageStats.from_dict(usage.get(profile_id)),
                )
            )

        logger.debug(f"Found {len(records)} '{provider_prefix}' credentials in {self.path}")
        return records

    def with_lock(self, mutate_fn: Callable[[Document], bool]) -> bool:
        """Apply ``mutate_fn`` to the document under an exclusive lock.

        ``mutate_fn`` edits the parsed document in place and returns True if it
        changed anything; only then is the file rewritten. The lock is released
        on every exit path, including exceptions raised by ``mutate_fn``.

        Args:
            mutate_fn: Callable receiving the parsed document

        Returns:
            True if the store was rewritten

        Raises:
            StoreReadError: If the store is missing or unparseable
            StoreWriteError: If rewriting the file fails
        """
        try:
            lock = FileLock(self.path)
            lock.acquire()
        except FileNotFoundError as e:
            raise StoreReadError(f"Credential store not found at {self.path}", str(self.path)) from e
        except (OSError, RuntimeError) as e:
            raise StoreReadError(f"Cannot lock credential store {self.path}: {e}", str(self.path)) from e

        try:
            handle = lock.handle
            try:
                document = json.load(handle)
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise StoreReadError(f"Cannot parse credential store {self.path}: {e}", str(self.path)) from e
            if not isinstance(document, dict):
                raise StoreReadError(f"Credential store {self.path} is not a JSON object", str(self.path))

            changed = bool(mutate_fn(document))
            if changed:
                try:
                    # Serialize fully before touching the file
                    text = json.dumps(document, indent=2)
                    handle.seek(0)
                    handle.write(text)
                    handle.truncate()
                    handle.flush()
                except (OSError, TypeError, ValueError) as e:
                    raise StoreWriteError(f"Failed to rewrite credential store {self.path}: {e}", str(self.path)) from e
            return changed
        finally:
            lock.release()

    def disable(
        self,
        profile_id: str,
        duration_seconds: int,
        reason: str = BILLING_REASON,
        now_ms: Optional[int] = None,
    ) -> UsageStats:
        """Disable a credential for ``duration_seconds``.

        Repeated calls re-stamp the deadline and increment the counters again.

        Args:
            profile_id: Credential identifier
            duration_seconds: How long the gateway should skip the credential
            reason: Disablement reason recorded in the store
            now_ms: Current time in epoch ms (defaults to the clock)

        Returns:
            The usage stats as written
        """
        now_ms = _now_ms() if now_ms is None else now_ms
        until_ms = now_ms + int(duration_seconds * 1000)
        written: dict[str, UsageStats] = {}

        def mutate(document: Document) -> bool:
            all_stats = document.get("usageStats")
            if not isinstance(all_stats, dict):
                all_stats = document["usageStats"] = {}
            stats = UsageStats.from_dict(all_stats.get(profile_id))
            stats.mark_disabled(until_ms, now_ms, reason)
            all_stats[profile_id] = stats.to_dict()
            written["stats"] = stats
            return True

        self.with_lock(mutate)
        logger.info(f"{profile_id} disabled until {until_ms} (reason: {reason})")
        return written["stats"]

    def reenable(self, profile_id: str) -> bool:
        """Lift a billing disablement.

        Credentials disabled for any other reason are left untouched, and the
        file is not rewritten.

        Args:
            profile_id: Credential identifier

        Returns:
            True if the credential was billing-disabled and is now enabled
        """

        def mutate(document: Document) -> bool:
            all_stats = document.get("usageStats")
            if not isinstance(all_stats, dict) or profile_id not in all_stats:
                return False
            stats = UsageStats.from_dict(all_stats[profile_id])
            if not stats.clear_billing_disablement():
                return False
            all_stats[profile_id] = stats.to_dict()
            return True

        changed = self.with_lock(mutate)
        if changed:
            logger.info(f"{profile_id} re-enabled")
        else:
            logger.debug(f"{profile_id} not billing-disabled, nothing to re-enable")
        return changed
