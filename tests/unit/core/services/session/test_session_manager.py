"""Tests for lazily loaded browser sessions."""

import asyncio
import time
from unittest.mock import AsyncMock, patch

import pytest

from src.shortlinks.core.models.session import SessionRecord
from src.shortlinks.core.services.session import SessionManager
from src.shortlinks.core.storage.session_storage import (
    InMemorySessionStorage,
    SessionStorageError,
)
from src.shortlinks.runtime.config.config_data import SessionConfig


class TestSession:
    async def test_new_session_is_not_persisted_until_written(
        self, session_manager, session_storage
    ):
        session = session_manager.load(None)
        assert session.id is None
        assert not session.is_loaded

        assert await session.get("user_id") is None
        assert session.is_loaded
        assert session.id is not None
        assert session_storage._data == {}

    async def test_insert_writes_through(self, session_manager, session_storage):
        session = session_manager.load(None)
        await session.insert("user_id", "user:ana")

        stored = await session_storage.get(f"session:{session.id}", SessionRecord)
        assert stored is not None
        assert stored.data == {"user_id": "user:ana"}

    async def test_existing_session_is_loaded_by_cookie(self, session_manager):
        first = session_manager.load(None)
        await first.insert("user_id", "user:ana")

        second = session_manager.load(first.id)
        assert await second.get("user_id") == "user:ana"
        assert second.id == first.id

    async def test_unknown_token_gets_fresh_id(self, session_manager):
        session = session_manager.load("forged-token")
        assert await session.get("user_id") is None
        assert session.id != "forged-token"

    async def test_expired_session_gets_fresh_id(self, session_manager, session_storage):
        old = SessionRecord.create("stale", 60)
        old.data["user_id"] = "user:ana"
        old.expires_at = 0
        await session_storage.set("session:stale", old, 60)

        session = session_manager.load("stale")
        assert await session.get("user_id") is None
        assert session.id != "stale"

    async def test_refresh_expiry_skips_unpersisted_session(self, session_manager):
        storage = AsyncMock(spec=InMemorySessionStorage)
        storage.get.return_value = None
        session = SessionManager(storage, SessionConfig()).load(None)

        await session.get("user_id")
        await session.refresh_expiry()

        storage.set.assert_not_called()

    async def test_refresh_expiry_slides_window(self, session_manager, session_storage):
        session = session_manager.load(None)
        await session.insert("user_id", "user:ana")
        key = f"session:{session.id}"
        soon = int(time.time()) + 10
        session_storage._data[key]["data"]["expires_at"] = soon

        reloaded = session_manager.load(session.id)
        await reloaded.get("user_id")
        await reloaded.refresh_expiry()

        stored = await session_storage.get(key, SessionRecord)
        assert stored.expires_at > soon

    async def test_concurrent_inserts_share_one_record(self, session_manager):
        session = session_manager.load(None)
        await asyncio.gather(session.insert("a", "1"), session.insert("b", "2"))
        assert await session.get("a") == "1"
        assert await session.get("b") == "2"

    async def test_storage_failure_propagates(self):
        storage = AsyncMock(spec=InMemorySessionStorage)
        storage.get.side_effect = SessionStorageError("Redis get failed")
        session = SessionManager(storage, SessionConfig()).load("abc")

        with pytest.raises(SessionStorageError):
            await session.get("user_id")


class TestSessionManager:
    def test_default_expiry_is_seven_days(self, session_config):
        assert session_config.max_age_seconds == 7 * 24 * 60 * 60
        assert session_config.sweep_interval_seconds == 300

    async def test_purge_expired(self, session_manager, session_storage):
        await session_storage.set("session:gone", SessionRecord.create("gone", 60), 60)
        session_storage._data["session:gone"]["expires_at"] = 0

        assert await session_manager.purge_expired() == 1

    async def test_sweep_runs_periodically_and_survives_errors(self):
        storage = AsyncMock(spec=InMemorySessionStorage)
        storage.cleanup_expired.side_effect = [SessionStorageError("down"), 2, 0]
        manager = SessionManager(storage, SessionConfig(sweep_interval_seconds=0))

        sweep = asyncio.create_task(manager.run_expiry_sweep())
        for _ in range(20):
            await asyncio.sleep(0)
            if storage.cleanup_expired.await_count >= 3:
                break
        sweep.cancel()
        with pytest.raises(asyncio.CancelledError):
            await sweep

        assert storage.cleanup_expired.await_count >= 3

    async def test_sweep_waits_for_interval(self):
        storage = AsyncMock(spec=InMemorySessionStorage)
        manager = SessionManager(storage, SessionConfig())

        with patch("asyncio.sleep", new=AsyncMock(side_effect=asyncio.CancelledError)) as sleep:
            with pytest.raises(asyncio.CancelledError):
                await manager.run_expiry_sweep()

        sleep.assert_awaited_once_with(300)
        storage.cleanup_expired.assert_not_called()
