"""
Config store: dual-backed persistence for the AI config.

- Remote: one ai_config row per user, durable across devices.
- Local: write-through JSON cache, available offline and signed out.

Remote failures never escape this module. Loads fail soft to None; saves
report a SaveOutcome.
"""
import logging
import time
from enum import Enum
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from expense_ai.exceptions import ConfigLoadError, ConfigSaveError
from expense_ai.repositories.ai_config_repository import AIConfigRepository
from expense_ai.schemas.ai import AIConfigRecord, CachedConfigEntry
from expense_ai.storage.local_cache import LocalConfigCache
from expense_ai.utils.logging import log_config_save_failed, log_config_saved
from expense_ai.utils.metrics import config_loads_total, config_save_latency_seconds, config_saves_total

logger = logging.getLogger(__name__)


class SaveOutcome(str, Enum):
    SAVED = "saved"
    FAILED = "failed"
    SKIPPED = "skipped"  # No signed-in user or no credential to store


class ConfigStore:
    """Reads and writes the AI config across the remote and local backends."""

    def __init__(self, session_factory: async_sessionmaker, local_cache: LocalConfigCache):
        self.session_factory = session_factory
        self.local_cache = local_cache

    async def _fetch_remote(self, user_id: str) -> Optional[AIConfigRecord]:
        try:
            async with self.session_factory() as db:
                row = await AIConfigRepository.get_by_user(db, user_id)
                return AIConfigRecord.model_validate(row) if row else None
        except Exception as e:
            raise ConfigLoadError(details=str(e)) from e

    async def _upsert_remote(self, entry: CachedConfigEntry, user_id: str) -> None:
        try:
            async with self.session_factory() as db:
                await AIConfigRepository.upsert(
                    db,
                    user_id=user_id,
                    provider=entry.provider.value,
                    api_key=entry.api_key,
                    model_name=entry.model_name,
                )
        except Exception as e:
            raise ConfigSaveError(details=str(e)) from e

    async def load_remote(self, user_id: str) -> Optional[AIConfigRecord]:
        """
        Load the user's remote record.

        Returns:
            AIConfigRecord, or None if absent or the load failed
        """
        try:
            record = await self._fetch_remote(user_id)
        except ConfigLoadError as e:
            config_loads_total.labels(source="remote", outcome="error").inc()
            logger.warning(
                f"Remote AI config load failed, falling back to cache/defaults: {e.details}",
                extra={"event": "config_load_failed", "user_id": user_id, "error": e.to_dict()},
            )
            return None

        config_loads_total.labels(source="remote", outcome="hit" if record else "miss").inc()
        return record

    def load_local(self) -> Optional[CachedConfigEntry]:
        """Load the cached entry. Never raises."""
        entry = self.local_cache.load()
        config_loads_total.labels(source="local", outcome="hit" if entry else "miss").inc()
        return entry

    async def save_remote(self, entry: CachedConfigEntry, user_id: Optional[str]) -> SaveOutcome:
        """
        Upsert the full record for user_id.

        Skipped while signed out or when the entry has no API key; the remote
        credential is never blanked. Failures are logged and reported as
        SaveOutcome.FAILED.
        """
        if not user_id:
            config_saves_total.labels(target="remote", outcome="skipped").inc()
            logger.info("Remote AI config save deferred: no signed-in user")
            return SaveOutcome.SKIPPED
        if not entry.api_key:
            config_saves_total.labels(target="remote", outcome="skipped").inc()
            logger.warning("Remote AI config save skipped: empty API key")
            return SaveOutcome.SKIPPED

        start_time = time.time()
        try:
            await self._upsert_remote(entry, user_id)
        except ConfigSaveError as e:
            duration = time.time() - start_time
            config_saves_total.labels(target="remote", outcome="failed").inc()
            log_config_save_failed(
                logger,
                target="remote",
                error=e.details or e.message,
                error_code=e.error_code,
                provider=entry.provider.value,
                user_id=user_id,
                duration_ms=duration * 1000,
            )
            return SaveOutcome.FAILED

        duration = time.time() - start_time
        config_save_latency_seconds.observe(duration)
        config_saves_total.labels(target="remote", outcome="saved").inc()
        log_config_saved(
            logger,
            target="remote",
            provider=entry.provider.value,
            user_id=user_id,
            duration_ms=duration * 1000,
        )
        return SaveOutcome.SAVED

    def save_local(self, entry: CachedConfigEntry) -> bool:
        """Write the entry to the local cache. Never raises."""
        saved = self.local_cache.save(entry)
        config_saves_total.labels(target="local", outcome="saved" if saved else "failed").inc()
        if saved:
            log_config_saved(logger, target="local", provider=entry.provider.value)
        else:
            log_config_save_failed(logger, target="local", error="write failed", provider=entry.provider.value)
        return saved
