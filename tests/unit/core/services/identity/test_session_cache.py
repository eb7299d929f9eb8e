"""Tests for the identity cached in the session."""

from unittest.mock import AsyncMock

import pytest

from src.shortlinks.core.models.session import SessionIdentity
from src.shortlinks.core.services.identity import USER_ID_KEY, SessionCache
from src.shortlinks.core.services.session import SessionManager
from src.shortlinks.core.storage.session_storage import (
    InMemorySessionStorage,
    SessionStorageError,
)
from src.shortlinks.runtime.config.config_data import SessionConfig


class TestSessionCache:
    async def test_empty_session_reads_none(self, session_cache):
        assert await session_cache.read() is None

    async def test_write_then_read(self, session_cache):
        await session_cache.write(SessionIdentity(user_id="user:ana"))
        assert await session_cache.read() == SessionIdentity(user_id="user:ana")

    async def test_identity_survives_into_next_request(self, session_manager, session_cache):
        await session_cache.write(SessionIdentity(user_id="user:ana"))

        next_request = SessionCache(session_manager.load(session_cache.session.id))
        assert (await next_request.read()).user_id == "user:ana"

    async def test_malformed_value_is_a_miss(self, session):
        await session.insert(USER_ID_KEY, "not a record id")
        assert await SessionCache(session).read() is None

    async def test_unreachable_store_is_a_miss(self):
        storage = AsyncMock(spec=InMemorySessionStorage)
        storage.get.side_effect = SessionStorageError("Redis get failed")
        session = SessionManager(storage, SessionConfig()).load("abc")

        assert await SessionCache(session).read() is None

    async def test_write_failure_propagates(self):
        storage = AsyncMock(spec=InMemorySessionStorage)
        storage.get.return_value = None
        storage.set.side_effect = SessionStorageError("Redis set failed")
        cache = SessionCache(SessionManager(storage, SessionConfig()).load(None))

        with pytest.raises(SessionStorageError):
            await cache.write(SessionIdentity(user_id="user:ana"))
