"""
Composition root.

Builds the config coordinator and its consumers once at application start.
The returned objects are passed explicitly to whatever needs them; nothing
here is stored in module globals.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from expense_ai.auth.firebase import FirebaseIdentity, initialize_firebase
from expense_ai.auth.identity import IdentitySupplier, StaticIdentity
from expense_ai.config import settings
from expense_ai.database import build_engine, build_session_factory, init_db
from expense_ai.services.config_coordinator import ConfigCoordinator, Notice
from expense_ai.services.config_store import ConfigStore
from expense_ai.services.receipt_service import ReceiptService
from expense_ai.services.report_service import ReportService
from expense_ai.storage.local_cache import LocalConfigCache
from expense_ai.utils.logging import configure_logging

logger = logging.getLogger(__name__)


def default_identity() -> IdentitySupplier:
    """
    Firebase identity when a Firebase project is configured, otherwise an
    in-process identity that starts signed out.
    """
    if settings.firebase_project_id:
        initialize_firebase()
        return FirebaseIdentity()
    return StaticIdentity()


@dataclass
class AIComponents:
    coordinator: ConfigCoordinator
    reports: ReportService
    receipts: ReceiptService
    engine: AsyncEngine

    async def aclose(self) -> None:
        """Let queued saves finish, then release database connections."""
        await self.coordinator.wait_idle()
        await self.engine.dispose()


async def create_ai_components(
    identity: Optional[IdentitySupplier] = None,
    database_url: Optional[str] = None,
    local_cache_path: Optional[str] = None,
    notify: Optional[Callable[[Notice], None]] = None,
    create_schema: bool = True,
) -> AIComponents:
    """
    Wire the store, coordinator and consumers, and start the coordinator.

    Must be awaited inside the application's event loop. The coordinator is
    usable as soon as this returns; the remote load continues in background.
    """
    configure_logging(settings.service_name, settings.log_level)

    engine = build_engine(database_url or settings.database_url)
    if create_schema:
        await init_db(engine)

    store = ConfigStore(
        build_session_factory(engine),
        LocalConfigCache(local_cache_path or settings.local_cache_path),
    )
    coordinator = ConfigCoordinator(store, identity or default_identity(), notify=notify)
    coordinator.start()

    logger.info(
        "AI config coordinator started",
        extra={"event": "coordinator_started", "phase": coordinator.phase.value},
    )
    return AIComponents(
        coordinator=coordinator,
        reports=ReportService(coordinator),
        receipts=ReceiptService(coordinator),
        engine=engine,
    )
