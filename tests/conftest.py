"""
Test configuration and fixtures.
Uses a file-backed SQLite database (aiosqlite) per test for the remote store,
and an in-memory fake store for coordinator race tests.
"""
import os

# Set test environment before any imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DEFAULT_PROVIDER"] = "gemini-langchain"
os.environ["REUSE_API_KEY_ACROSS_PROVIDERS"] = "true"

import asyncio
from datetime import datetime
from typing import AsyncGenerator, List, Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from expense_ai.auth.identity import StaticIdentity
from expense_ai.database import build_engine, build_session_factory, init_db
from expense_ai.schemas.ai import AIConfigRecord, CachedConfigEntry, ProviderId
from expense_ai.services.config_coordinator import ConfigCoordinator, Notice
from expense_ai.services.config_store import ConfigStore, SaveOutcome
from expense_ai.storage.local_cache import LocalConfigCache

TEST_USER_ID = "user-1"


def make_record(
    provider: str = "gemini",
    api_key: str = "remote-key",
    model_name: str = "gemini-1.5-pro",
    user_id: str = TEST_USER_ID,
) -> AIConfigRecord:
    now = datetime.utcnow()
    return AIConfigRecord(
        id="00000000-0000-0000-0000-000000000001",
        user_id=user_id,
        provider=provider,
        api_key=api_key,
        model_name=model_name,
        created_at=now,
        updated_at=now,
    )


class FakeConfigStore:
    """
    In-memory ConfigStore with controllable timing.

    - ``remote_gate``: when set, load_remote waits for the event
    - ``hold_saves``: each save_remote waits on a future appended to ``save_gates``
    - ``events``: ordered log of local writes and remote save starts
    """

    def __init__(
        self,
        local: Optional[CachedConfigEntry] = None,
        remote: Optional[AIConfigRecord] = None,
    ):
        self.local_entry = local
        self.remote_record = remote
        self.remote_gate: Optional[asyncio.Event] = None
        self.hold_saves = False
        self.fail_saves = False
        self.save_gates: List[asyncio.Future] = []
        self.remote_loads: List[str] = []
        self.local_saves: List[CachedConfigEntry] = []
        self.remote_writes: List[CachedConfigEntry] = []
        self.persisted: Optional[CachedConfigEntry] = None
        self.events = []

    def load_local(self) -> Optional[CachedConfigEntry]:
        return self.local_entry

    async def load_remote(self, user_id: str) -> Optional[AIConfigRecord]:
        self.remote_loads.append(user_id)
        if self.remote_gate is not None:
            await self.remote_gate.wait()
        return self.remote_record

    def save_local(self, entry: CachedConfigEntry) -> bool:
        self.events.append(("local", entry))
        self.local_saves.append(entry)
        self.local_entry = entry
        return True

    async def save_remote(self, entry: CachedConfigEntry, user_id: Optional[str]) -> SaveOutcome:
        self.events.append(("remote", entry))
        if self.hold_saves:
            gate = asyncio.get_running_loop().create_future()
            self.save_gates.append(gate)
            await gate
        if not user_id or not entry.api_key:
            return SaveOutcome.SKIPPED
        if self.fail_saves:
            return SaveOutcome.FAILED
        self.persisted = entry
        self.remote_writes.append(entry)
        return SaveOutcome.SAVED

    def release_saves(self) -> None:
        for gate in self.save_gates:
            if not gate.done():
                gate.set_result(None)


@pytest.fixture
def fake_store() -> FakeConfigStore:
    return FakeConfigStore()


@pytest.fixture
def identity() -> StaticIdentity:
    return StaticIdentity(TEST_USER_ID)


@pytest.fixture
def notices() -> List[Notice]:
    return []


@pytest.fixture
async def coordinator_factory(fake_store: FakeConfigStore, identity: StaticIdentity, notices: List[Notice]):
    """Build coordinators over the fake store; pending work is released on teardown."""
    created: List[ConfigCoordinator] = []

    def factory(**kwargs) -> ConfigCoordinator:
        kwargs.setdefault("notify", notices.append)
        coordinator = ConfigCoordinator(fake_store, kwargs.pop("identity", identity), **kwargs)
        created.append(coordinator)
        return coordinator

    yield factory

    if fake_store.remote_gate is not None:
        fake_store.remote_gate.set()
    fake_store.hold_saves = False
    fake_store.release_saves()
    for coordinator in created:
        await coordinator.wait_idle()


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh SQLite database with the ai_config table."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'remote.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return build_session_factory(engine)


@pytest.fixture
def local_cache(tmp_path) -> LocalConfigCache:
    return LocalConfigCache(tmp_path / "cache.json")


@pytest.fixture
def config_store(session_factory: async_sessionmaker, local_cache: LocalConfigCache) -> ConfigStore:
    return ConfigStore(session_factory, local_cache)


@pytest.fixture
def gemini_entry() -> CachedConfigEntry:
    return CachedConfigEntry(provider=ProviderId.GEMINI, api_key="local-key", model_name="gemini-2.0-flash")


@pytest.fixture
def remote_record():
    """Factory for remote rows, defaulting to a gemini config for TEST_USER_ID."""
    return make_record
