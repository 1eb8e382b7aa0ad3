"""
Tests for the coalescing remote save outbox.
"""
import asyncio

import pytest

from expense_ai.schemas.ai import CachedConfigEntry, ProviderId
from expense_ai.services.config_store import SaveOutcome
from expense_ai.services.outbox import RemoteSaveOutbox


def _entry(api_key: str) -> CachedConfigEntry:
    return CachedConfigEntry(provider=ProviderId.GEMINI, api_key=api_key, model_name="gemini-2.0-flash")


class GatedSaver:
    """Remote save whose calls block until released one by one."""

    def __init__(self, outcomes=None):
        self.calls = []
        self.gates = []
        self.outcomes = list(outcomes or [])
        self.written = []

    async def __call__(self, entry, user_id):
        self.calls.append(entry.api_key)
        gate = asyncio.get_running_loop().create_future()
        self.gates.append(gate)
        await gate
        outcome = self.outcomes.pop(0) if self.outcomes else SaveOutcome.SAVED
        if outcome == SaveOutcome.SAVED:
            self.written.append(entry.api_key)
        return outcome

    async def release_next(self):
        while not self.gates or all(g.done() for g in self.gates):
            await asyncio.sleep(0)
        next(g for g in self.gates if not g.done()).set_result(None)
        await asyncio.sleep(0)


class TestRemoteSaveOutbox:
    """Tests for RemoteSaveOutbox."""

    @pytest.mark.asyncio
    async def test_single_submission_is_saved(self):
        results = []

        async def save(entry, user_id):
            return SaveOutcome.SAVED

        outbox = RemoteSaveOutbox(save, lambda item, outcome, superseded: results.append((item.sequence, outcome, superseded)))
        assert outbox.idle

        seq = outbox.submit(_entry("k1"), "user-1")
        assert not outbox.idle
        await outbox.wait_idle()

        assert outbox.idle
        assert results == [(seq, SaveOutcome.SAVED, False)]

    @pytest.mark.asyncio
    async def test_last_submission_wins_while_first_is_in_flight(self):
        saver = GatedSaver()
        results = []
        outbox = RemoteSaveOutbox(saver, lambda item, outcome, superseded: results.append((item.entry.api_key, superseded)))

        outbox.submit(_entry("a"), "user-1")
        await asyncio.sleep(0)
        outbox.submit(_entry("b"), "user-1")
        outbox.submit(_entry("c"), "user-1")

        await saver.release_next()
        await saver.release_next()
        await outbox.wait_idle()

        # "b" was coalesced away; "c" was written after "a"
        assert saver.calls == ["a", "c"]
        assert saver.written == ["a", "c"]
        assert results == [("a", True), ("c", False)]

    @pytest.mark.asyncio
    async def test_only_one_save_in_flight(self):
        saver = GatedSaver()
        outbox = RemoteSaveOutbox(saver)

        outbox.submit(_entry("a"), "user-1")
        await asyncio.sleep(0)
        outbox.submit(_entry("b"), "user-1")
        await asyncio.sleep(0)

        assert saver.calls == ["a"]

        await saver.release_next()
        await saver.release_next()
        await outbox.wait_idle()
        assert saver.calls == ["a", "b"]

    @pytest.mark.asyncio
    async def test_failure_then_success(self):
        saver = GatedSaver(outcomes=[SaveOutcome.FAILED, SaveOutcome.SAVED])
        results = []
        outbox = RemoteSaveOutbox(saver, lambda item, outcome, superseded: results.append((item.entry.api_key, outcome)))

        outbox.submit(_entry("a"), "user-1")
        await asyncio.sleep(0)
        outbox.submit(_entry("b"), "user-1")

        await saver.release_next()
        await saver.release_next()
        await outbox.wait_idle()

        assert results == [("a", SaveOutcome.FAILED), ("b", SaveOutcome.SAVED)]
        assert saver.written == ["b"]

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_reported_as_failure(self):
        results = []

        async def save(entry, user_id):
            raise RuntimeError("bug")

        outbox = RemoteSaveOutbox(save, lambda item, outcome, superseded: results.append(outcome))
        outbox.submit(_entry("a"), "user-1")
        await outbox.wait_idle()

        assert results == [SaveOutcome.FAILED]

    @pytest.mark.asyncio
    async def test_sequence_numbers_increase(self):
        async def save(entry, user_id):
            return SaveOutcome.SKIPPED

        outbox = RemoteSaveOutbox(save)
        first = outbox.submit(_entry("a"), None)
        second = outbox.submit(_entry("b"), None)
        await outbox.wait_idle()

        assert second == first + 1
