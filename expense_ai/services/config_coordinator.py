"""
Config coordinator: the single owner of the current AI provider, config and
bound capability service.

Phases:
    uninitialized -> loading_local -> loading_remote -> ready
                                   -> awaiting_identity -> loading_remote -> ready
    ready -> awaiting_identity on sign-out, -> loading_remote on sign-in as another user

- start() adopts the local cache synchronously, then schedules the remote load.
- The first remote resolution is authoritative over a provisional local value.
  Later or duplicate resolutions are ignored.
- An explicit mutation before that resolution supersedes it.
- The remote load is deferred while signed out, never cancelled. Each signed-in
  user gets one remote resolution; edits made while signed out are pushed on
  sign-in when they carry a key, otherwise the user's remote record is loaded.
- Every mutation is applied in memory, written to the local cache, rebinds the
  service, and is then queued for the remote store as a full snapshot.

All state transitions run synchronously inside one event loop turn. The only
suspension points are the remote load and the outbox saves.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

from expense_ai.ai.base import AIService
from expense_ai.ai.factory import create_service
from expense_ai.ai.registry import (
    get_available_models,
    get_available_providers,
    get_default_config,
    parse_provider,
)
from expense_ai.auth.identity import IdentitySupplier
from expense_ai.config import settings
from expense_ai.schemas.ai import AIConfigRecord, CachedConfigEntry, ModelConfig, ProviderId
from expense_ai.services.config_store import ConfigStore, SaveOutcome
from expense_ai.services.outbox import OutboxItem, RemoteSaveOutbox
from expense_ai.utils.logging import log_config_loaded

logger = logging.getLogger(__name__)

SAVED_MESSAGE = "AI configuration saved"
SAVED_LOCALLY_MESSAGE = "AI configuration saved locally"


class CoordinatorPhase(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING_LOCAL = "loading_local"
    AWAITING_IDENTITY = "awaiting_identity"
    LOADING_REMOTE = "loading_remote"
    READY = "ready"


@dataclass(frozen=True)
class Notice:
    """Soft, non-error message for the user (e.g. a toast)."""
    level: str  # "success" or "info"
    message: str


@dataclass(frozen=True)
class CoordinatorSnapshot:
    """Read-only view of the coordinator state handed to consumers."""
    phase: CoordinatorPhase
    provider: ProviderId
    config: ModelConfig
    service: Optional[AIService] = field(compare=False)
    config_loaded: bool

    @property
    def is_configured(self) -> bool:
        return self.service is not None

    @property
    def available_models(self) -> Tuple[str, ...]:
        return get_available_models(self.provider)

    @property
    def available_providers(self) -> Tuple[ProviderId, ...]:
        return get_available_providers()


Listener = Callable[[CoordinatorSnapshot], None]
ServiceFactory = Callable[[ProviderId, ModelConfig], Optional[AIService]]


def _log_notice(notice: Notice) -> None:
    logger.info(notice.message, extra={"event": "config_notice", "level_hint": notice.level})


class ConfigCoordinator:
    """
    Owns the (provider, config, service) triple.

    Construct once at application start and pass it to every consumer.
    Consumers read ``snapshot`` (or subscribe) and never mutate state directly.
    """

    def __init__(
        self,
        store: ConfigStore,
        identity: IdentitySupplier,
        default_provider: Optional[str] = None,
        reuse_api_key_across_providers: Optional[bool] = None,
        service_factory: ServiceFactory = create_service,
        notify: Optional[Callable[[Notice], None]] = None,
    ):
        self.store = store
        self.identity = identity
        self.reuse_api_key_across_providers = (
            settings.reuse_api_key_across_providers
            if reuse_api_key_across_providers is None
            else reuse_api_key_across_providers
        )
        self._service_factory = service_factory
        self._notify = notify or _log_notice

        provider = parse_provider(default_provider or settings.default_provider)
        if provider is None:
            logger.warning(f"Unknown default provider {default_provider or settings.default_provider!r}")
            provider = get_available_providers()[0]

        self._phase = CoordinatorPhase.UNINITIALIZED
        self._provider: ProviderId = provider
        self._config: ModelConfig = get_default_config(provider)
        self._service: Optional[AIService] = None
        self._config_loaded = False
        # User whose remote load is in flight, and user whose remote record was settled
        self._loading_user: Optional[str] = None
        self._resolved_user: Optional[str] = None
        # Config changed while nobody was signed in and not yet pushed remotely
        self._unsynced = False

        self._remote_tasks: List[asyncio.Task] = []
        self._listeners: List[Listener] = []
        self._outbox = RemoteSaveOutbox(self.store.save_remote, self._on_save_result)

    # State accessors

    @property
    def phase(self) -> CoordinatorPhase:
        return self._phase

    @property
    def provider(self) -> ProviderId:
        return self._provider

    @property
    def config(self) -> ModelConfig:
        return self._config

    @property
    def service(self) -> Optional[AIService]:
        return self._service

    @property
    def config_loaded(self) -> bool:
        return self._config_loaded

    @property
    def is_configured(self) -> bool:
        return self._service is not None

    @property
    def snapshot(self) -> CoordinatorSnapshot:
        return CoordinatorSnapshot(
            phase=self._phase,
            provider=self._provider,
            config=self._config,
            service=self._service,
            config_loaded=self._config_loaded,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with a fresh snapshot after every change.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Lifecycle

    def start(self) -> None:
        """
        Adopt the local cache and schedule the remote load.
        Must be called once, from inside the running event loop.
        """
        if self._phase != CoordinatorPhase.UNINITIALIZED:
            raise RuntimeError("ConfigCoordinator.start() called twice")

        self._phase = CoordinatorPhase.LOADING_LOCAL
        entry = self.store.load_local()
        if entry is not None:
            self._adopt(entry.provider, entry.api_key, entry.model_name, source="local")

        self._request_remote_load()
        self._publish()

    def refresh_identity(self) -> None:
        """
        Re-read the identity supplier after sign-in or sign-out.

        - Signed out: the local cache becomes authoritative (awaiting_identity).
        - Signed in as a user whose remote record is not settled yet: edits made
          while signed out win if they carry a key and are pushed; otherwise
          the user's remote record is loaded.
        - Signed in as the already settled user: pending local edits are pushed.
        """
        if self._phase == CoordinatorPhase.UNINITIALIZED:
            return

        user_id = self.identity.current_user_id()
        if not user_id:
            if self._phase != CoordinatorPhase.AWAITING_IDENTITY:
                self._phase = CoordinatorPhase.AWAITING_IDENTITY
                self._loading_user = None
                self._publish()
            return

        if user_id == self._resolved_user:
            if self._phase == CoordinatorPhase.AWAITING_IDENTITY:
                self._phase = CoordinatorPhase.READY
                self._publish()
            self._sync_local_edits(user_id)
            return

        if self._phase == CoordinatorPhase.LOADING_REMOTE and user_id == self._loading_user:
            return  # Already loading for this user

        if self._unsynced and self._config.api_key:
            logger.info("AI config edited while signed out wins over the remote record", extra={"user_id": user_id})
            self._phase = CoordinatorPhase.READY
            self._loading_user = None
            self._resolved_user = user_id
            self._sync_local_edits(user_id)
            self._publish()
            return

        self._unsynced = False
        self._request_remote_load()
        self._publish()

    async def wait_idle(self) -> None:
        """Wait for pending remote loads and all queued saves."""
        while any(not task.done() for task in self._remote_tasks):
            await asyncio.gather(*self._remote_tasks)
        self._remote_tasks = []
        await self._outbox.wait_idle()

    # Mutations

    def set_provider(self, provider: ProviderId) -> None:
        """
        Switch provider. Model and generation parameters reset to the new
        provider's defaults; the API key is kept unless
        reuse_api_key_across_providers is off.
        """
        provider = ProviderId(provider)
        api_key = self._config.api_key if self.reuse_api_key_across_providers else ""
        self._commit(provider, get_default_config(provider).model_copy(update={"api_key": api_key}))

    def set_api_key(self, api_key: str) -> None:
        api_key = (api_key or "").strip()
        if not api_key:
            logger.warning("Empty API key provided")
        self._commit(self._provider, self._config.model_copy(update={"api_key": api_key}))

    def set_model_name(self, model_name: str) -> None:
        if model_name not in get_available_models(self._provider):
            logger.warning(f"Model {model_name!r} is not in the {self._provider.value} catalogue")
        self._commit(self._provider, self._config.model_copy(update={"model_name": model_name}))

    def reset_config(self) -> None:
        """Restore the current provider's default parameters, keeping the API key."""
        defaults = get_default_config(self._provider)
        self._commit(self._provider, defaults.model_copy(update={"api_key": self._config.api_key}))

    # Internals

    def _entry(self) -> CachedConfigEntry:
        return CachedConfigEntry(
            provider=self._provider,
            api_key=self._config.api_key,
            model_name=self._config.model_name,
        )

    def _adopt(
        self,
        provider: ProviderId,
        api_key: str,
        model_name: str,
        source: str,
        user_id: Optional[str] = None,
    ) -> None:
        """Take a stored config; generation parameters come from provider defaults."""
        defaults = get_default_config(provider)
        self._provider = provider
        self._config = defaults.model_copy(update={
            "api_key": api_key or "",
            "model_name": model_name or defaults.model_name,
        })
        self._config_loaded = True
        self._recompute_service()
        log_config_loaded(
            logger,
            source=source,
            provider=provider.value,
            has_api_key=bool(api_key),
            user_id=user_id,
        )

    def _recompute_service(self) -> None:
        try:
            self._service = self._service_factory(self._provider, self._config)
        except Exception as e:
            logger.error(f"Error creating AI service for {self._provider.value}: {e}", exc_info=True)
            self._service = None

    def _request_remote_load(self) -> None:
        user_id = self.identity.current_user_id()
        if not user_id:
            self._phase = CoordinatorPhase.AWAITING_IDENTITY
            self._loading_user = None
            return
        self._phase = CoordinatorPhase.LOADING_REMOTE
        self._loading_user = user_id
        self._remote_tasks = [task for task in self._remote_tasks if not task.done()]
        self._remote_tasks.append(asyncio.get_running_loop().create_task(self._load_remote(user_id)))

    async def _load_remote(self, user_id: str) -> None:
        record = await self.store.load_remote(user_id)
        self._resolve_remote(record, user_id)

    def _resolve_remote(self, record: Optional[AIConfigRecord], user_id: str) -> None:
        if self._phase != CoordinatorPhase.LOADING_REMOTE or user_id != self._loading_user:
            logger.debug("Ignoring remote AI config resolved after it was superseded")
            return

        if self.identity.current_user_id() != user_id:
            logger.info("Discarding remote AI config for a user who is no longer signed in")
            self._request_remote_load()
            self._publish()
            return

        self._phase = CoordinatorPhase.READY
        self._loading_user = None
        self._resolved_user = user_id

        if record is not None:
            provider = parse_provider(record.provider)
            if provider is None:
                logger.warning(f"Ignoring remote AI config with unknown provider {record.provider!r}")
            else:
                self._adopt(provider, record.api_key, record.model_name, source="remote", user_id=user_id)
                # Next offline start resumes from the authoritative value
                self.store.save_local(self._entry())

        self._publish()

    def _sync_local_edits(self, user_id: str) -> None:
        if not self._unsynced:
            return
        self._unsynced = False
        logger.info("Syncing AI config edited while signed out", extra={"user_id": user_id})
        self._outbox.submit(self._entry(), user_id)

    def _commit(self, provider: ProviderId, config: ModelConfig) -> None:
        if self._phase == CoordinatorPhase.UNINITIALIZED:
            raise RuntimeError("ConfigCoordinator.start() must be called before mutating config")

        user_id = self.identity.current_user_id()
        self._provider = provider
        self._config = config
        self._config_loaded = True
        self._unsynced = user_id is None

        if self._phase == CoordinatorPhase.LOADING_REMOTE:
            logger.info("Explicit AI config change supersedes the pending remote load")
            self._phase = CoordinatorPhase.READY
            # The snapshot below is written for the current user, settling their record
            self._resolved_user = user_id or self._loading_user
            self._loading_user = None

        entry = self._entry()
        self.store.save_local(entry)
        self._recompute_service()
        self._publish()
        self._outbox.submit(entry, user_id)

    def _on_save_result(self, item: OutboxItem, outcome: SaveOutcome, superseded: bool) -> None:
        if superseded or not item.entry.api_key:
            return

        if outcome == SaveOutcome.SAVED:
            self._emit(Notice("success", SAVED_MESSAGE))
        else:
            self._emit(Notice("info", SAVED_LOCALLY_MESSAGE))

    def _emit(self, notice: Notice) -> None:
        try:
            self._notify(notice)
        except Exception:
            logger.exception("AI config notice handler failed")

    def _publish(self) -> None:
        snapshot = self.snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("AI config listener failed")
