"""Session storage interface and implementations.

Provides a unified interface for storing browser sessions with a
Redis-first approach and in-memory fallback.
"""

from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod
from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

T = TypeVar("T", bound=BaseModel)


class SessionStorageError(RuntimeError):
    """The session backend could not complete an operation."""


class SessionStorage(ABC):
    """Abstract interface for session storage backends."""

    @abstractmethod
    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        """Store a session with TTL.

        Args:
            key: Session identifier
            value: Session data (Pydantic model)
            ttl_seconds: Time to live in seconds
        """

    @abstractmethod
    async def get(self, key: str, model_class: type[T]) -> T | None:
        """Retrieve a session.

        Args:
            key: Session identifier
            model_class: Pydantic model class to deserialize to

        Returns:
            Session data or None if not found/expired
        """

    @abstractmethod
    async def cleanup_expired(self) -> int:
        """Clean up expired sessions.

        Returns:
            Number of sessions cleaned up
        """


class InMemorySessionStorage(SessionStorage):
    """In-memory session storage with TTL support."""

    def __init__(self):
        self._data: dict[str, dict[str, Any]] = {}

    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        self._data[key] = {
            "data": json.loads(value.model_dump_json()),
            "expires_at": time.time() + ttl_seconds,
        }

    async def get(self, key: str, model_class: type[T]) -> T | None:
        if key not in self._data:
            return None

        entry = self._data[key]
        if time.time() > entry["expires_at"]:
            del self._data[key]
            return None

        try:
            return model_class.model_validate(entry["data"])
        except ValidationError:
            # Clean up corrupted data
            del self._data[key]
            return None

    async def cleanup_expired(self) -> int:
        now = time.time()
        expired_keys = [
            key for key, entry in self._data.items() if now > entry["expires_at"]
        ]

        for key in expired_keys:
            del self._data[key]

        return len(expired_keys)


class RedisSessionStorage(SessionStorage):
    """Redis-based session storage with serialization."""

    def __init__(self, redis_client):
        self._redis = redis_client

    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        try:
            await self._redis.setex(key, ttl_seconds, value.model_dump_json())
        except Exception as e:
            raise SessionStorageError(f"Redis set failed: {e}") from e

    async def get(self, key: str, model_class: type[T]) -> T | None:
        try:
            data = await self._redis.get(key)
        except Exception as e:
            raise SessionStorageError(f"Redis get failed: {e}") from e

        if data is None:
            return None

        if isinstance(data, bytes):
            data = data.decode("utf-8")

        try:
            return model_class.model_validate_json(data)
        except ValidationError:
            logger.warning("Discarding unreadable session entry {}", key)
            return None

    async def cleanup_expired(self) -> int:
        """Redis handles expiration automatically."""
        return 0

    async def ping(self) -> bool:
        try:
            await self._redis.ping()
            return True
        except Exception:
            return False

    async def close(self) -> None:
        await self._redis.aclose()


# Global storage instance
_storage: SessionStorage | None = None


async def _detect_redis_availability() -> SessionStorage:
    """Attempt to create Redis storage, fall back to in-memory."""
    from src.shortlinks.runtime.context import get_config

    config = get_config()
    if not config.redis.enabled or not config.redis.url:
        logger.info("Session storage: Redis not configured, using in-memory storage")
        return InMemorySessionStorage()

    import redis.asyncio as redis

    redis_client = redis.from_url(
        config.redis.connection_string,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=2,
        socket_timeout=2,
    )

    redis_storage = RedisSessionStorage(redis_client)
    if await redis_storage.ping():
        logger.info("Session storage: Redis connected")
        return redis_storage

    if config.app.environment == "production":
        raise SessionStorageError("Redis ping failed")
    logger.warning("Redis unavailable, using in-memory session storage")
    return InMemorySessionStorage()


async def get_session_storage() -> SessionStorage:
    """Get the configured session storage instance."""
    global _storage

    if _storage is None:
        _storage = await _detect_redis_availability()

    return _storage


def _reset_storage() -> None:
    """Reset storage instance (for testing)."""
    global _storage
    _storage = None
