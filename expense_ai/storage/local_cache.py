"""
Client-local write-through cache for the AI config.

A small JSON document on disk, keyed like browser local storage. The AI config
lives under a single well-known key so other client state can share the file.
Reads are best effort: a missing, unreadable or invalid entry is a miss.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from expense_ai.ai.registry import get_default_config, parse_provider
from expense_ai.schemas.ai import CachedConfigEntry

logger = logging.getLogger(__name__)

AI_CONFIG_KEY = "ai_config"


class LocalConfigCache:
    """Synchronous JSON-file cache holding one CachedConfigEntry."""

    def __init__(self, path, key: str = AI_CONFIG_KEY):
        self.path = Path(path).expanduser()
        self.key = key

    def _read_document(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            document = json.load(f)
        if not isinstance(document, dict):
            raise ValueError(f"Cache document is {type(document).__name__}, expected object")
        return document

    def load(self) -> Optional[CachedConfigEntry]:
        """
        Return the cached entry, or None when absent or corrupt.

        A missing modelName falls back to the provider default; an unknown
        provider makes the whole entry invalid.
        """
        try:
            raw = self._read_document().get(self.key)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable local AI config cache {self.path}: {e}")
            return None

        if not isinstance(raw, dict):
            return None

        provider = parse_provider(raw.get("provider"))
        if provider is None:
            logger.warning(f"Ignoring local AI config with unknown provider: {raw.get('provider')!r}")
            return None

        try:
            return CachedConfigEntry(
                provider=provider,
                api_key=raw.get("apiKey") or "",
                model_name=raw.get("modelName") or get_default_config(provider).model_name,
            )
        except ValidationError as e:
            logger.warning(f"Ignoring invalid local AI config: {e}")
            return None

    def save(self, entry: CachedConfigEntry) -> bool:
        """
        Write the entry atomically. Returns False instead of raising on I/O errors.
        """
        try:
            try:
                document = self._read_document()
            except ValueError:
                document = {}  # Corrupt file is replaced

            document[self.key] = entry.model_dump(mode="json", by_alias=True)

            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".ai_config-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
            return True
        except OSError as e:
            logger.error(f"Error saving AI config to local cache {self.path}: {e}")
            return False

