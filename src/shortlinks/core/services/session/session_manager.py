"""Browser sessions backed by session storage."""

import asyncio
import secrets

from loguru import logger

from src.shortlinks.core.models.session import SessionRecord
from src.shortlinks.core.storage.session_storage import SessionStorage
from src.shortlinks.runtime.config.config_data import SessionConfig

_KEY_PREFIX = "session:"


class Session:
    """Key/value bag for one browser session, loaded lazily on first access.

    A token that is unknown or expired is never reused: the session gets a
    fresh random identifier, which the middleware then sends back as the cookie.
    """

    def __init__(
        self, requested_id: str | None, storage: SessionStorage, max_age_seconds: int
    ) -> None:
        self._requested_id = requested_id
        self._storage = storage
        self._max_age = max_age_seconds
        self._record: SessionRecord | None = None
        self._persisted = False
        self._lock = asyncio.Lock()

    @property
    def id(self) -> str | None:
        if self._record is not None:
            return self._record.id
        return self._requested_id

    @property
    def is_loaded(self) -> bool:
        return self._record is not None

    async def get(self, key: str) -> str | None:
        """Return the value stored under ``key``.

        Raises:
            SessionStorageError: If the backend cannot be reached
        """
        record = await self._load()
        return record.data.get(key)

    async def insert(self, key: str, value: str) -> None:
        """Store ``value`` under ``key`` and persist the session immediately.

        Raises:
            SessionStorageError: If the backend cannot be reached
        """
        record = await self._load()
        async with self._lock:
            record.data[key] = value
            record.touch(self._max_age)
            await self._storage.set(_KEY_PREFIX + record.id, record, self._max_age)
            self._persisted = True

    async def refresh_expiry(self) -> None:
        """Slide the inactivity window of a session that already exists in storage."""
        if self._record is None or not self._persisted:
            return
        async with self._lock:
            self._record.touch(self._max_age)
            await self._storage.set(
                _KEY_PREFIX + self._record.id, self._record, self._max_age
            )

    async def _load(self) -> SessionRecord:
        async with self._lock:
            if self._record is None:
                record = None
                if self._requested_id:
                    record = await self._storage.get(
                        _KEY_PREFIX + self._requested_id, SessionRecord
                    )
                if record is None or record.is_expired():
                    record = SessionRecord.create(
                        secrets.token_urlsafe(32), self._max_age
                    )
                    self._persisted = False
                else:
                    self._persisted = True
                self._record = record
            return self._record


class SessionManager:
    """Creates request sessions and sweeps expired ones."""

    def __init__(self, storage: SessionStorage, config: SessionConfig) -> None:
        self._storage = storage
        self._config = config

    @property
    def config(self) -> SessionConfig:
        return self._config

    def load(self, session_id: str | None) -> Session:
        return Session(session_id, self._storage, self._config.max_age_seconds)

    async def purge_expired(self) -> int:
        """Delete expired sessions from storage."""
        removed = await self._storage.cleanup_expired()
        if removed:
            logger.info("Deleted {} expired sessions", removed)
        return removed

    async def run_expiry_sweep(self) -> None:
        """Delete expired sessions every ``sweep_interval_seconds`` until cancelled."""
        interval = self._config.sweep_interval_seconds
        while True:
            await asyncio.sleep(interval)
            try:
                await self.purge_expired()
            except Exception:
                logger.exception("Failed to delete expired sessions")
